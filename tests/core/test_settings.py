"""Tests for docshape.core.settings module.

Covers:
- Defaults
- Environment variable override (DOCSHAPE_ prefix)
- Validation and normalization
- Cached factory
"""

import pytest
from pydantic import ValidationError

from docshape.core.settings import DocshapeSettings, clear_settings_cache, get_settings


class TestDocshapeSettingsDefaults:
    def test_defaults(self):
        s = DocshapeSettings()
        assert s.codec == "json"
        assert s.namespace is None
        assert s.weak_typing is False
        assert s.discriminator == "type"
        assert s.log_level == "INFO"
        assert s.log_format == "console"


class TestDocshapeSettingsEnvOverride:
    def test_codec_from_env(self, monkeypatch):
        monkeypatch.setenv("DOCSHAPE_CODEC", "YAML")
        assert DocshapeSettings().codec == "yaml"

    def test_weak_typing_from_env(self, monkeypatch):
        monkeypatch.setenv("DOCSHAPE_WEAK_TYPING", "true")
        assert DocshapeSettings().weak_typing is True

    def test_log_level_is_uppercased(self, monkeypatch):
        monkeypatch.setenv("DOCSHAPE_LOG_LEVEL", "debug")
        assert DocshapeSettings().log_level == "DEBUG"

    def test_unprefixed_variables_are_ignored(self, monkeypatch):
        monkeypatch.setenv("CODEC", "toml")
        assert DocshapeSettings().codec == "json"


class TestDocshapeSettingsValidation:
    def test_empty_discriminator_rejected(self):
        with pytest.raises(ValidationError):
            DocshapeSettings(discriminator="")

    def test_unknown_log_format_rejected(self):
        with pytest.raises(ValidationError):
            DocshapeSettings(log_format="xml")


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("DOCSHAPE_NAMESPACE", "Yaml")
        assert get_settings() is first
        reloaded = get_settings(_force_reload=True)
        assert reloaded is not first
        assert reloaded.namespace == "yaml"

    def test_clear_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
