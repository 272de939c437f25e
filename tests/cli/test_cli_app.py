"""Tests for docshape.cli - command smoke tests via CliRunner.

Records are written to tmp files and decoded against the example content
blocks, so the whole parse -> preprocess -> resolve -> map pipeline runs.
"""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from docshape import __version__
from docshape.cli.app import app

runner = CliRunner()

POST = "docshape.examples.blocks:Post"
BLOCKS = "docshape.examples.blocks:BLOCK_REGISTRY"
STRICT_BLOCKS = "docshape.examples.blocks:STRICT_BLOCK_REGISTRY"
PREPROCESSORS = "docshape.examples.blocks:POST_PREPROCESSORS"


@pytest.fixture
def post_file(tmp_path, post_json):
    path = tmp_path / "post.json"
    path.write_text(post_json)
    return path


# ─── Root callback ───────────────────────────────────────────────────────


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"docshape {__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "decode" in result.output
        assert "describe" in result.output


# ─── decode ──────────────────────────────────────────────────────────────


class TestDecode:
    def test_json_record(self, post_file):
        result = runner.invoke(
            app, ["decode", str(post_file), "-t", POST, "-r", BLOCKS, "-p", PREPROCESSORS, "--json"]
        )
        assert result.exit_code == 0, result.output
        post = json.loads(result.stdout)
        assert post["__shape__"] == "Post"
        assert post["id"] == "65a4f1c2e4b0a1b2c3d4e5f6"
        assert post["meta"]["author"] == "ada"
        assert post["meta"]["published_at"] == "2024-01-15T10:30:00+00:00"
        assert [block["__shape__"] for block in post["blocks"]] == ["TextBlock", "ImageBlock", "UnknownBlock"]

    def test_codec_follows_extension(self, tmp_path, post_yaml):
        path = tmp_path / "post.yml"
        path.write_text(post_yaml)
        result = runner.invoke(app, ["decode", str(path), "-t", POST, "-r", BLOCKS, "--json"])
        assert result.exit_code == 0, result.output
        post = json.loads(result.stdout)
        # yaml namespace reads "by" and "caption"
        assert post["meta"]["author"] == "ada"
        assert post["blocks"][1]["alt"] == "A"

    def test_explicit_codec_overrides_extension(self, tmp_path, post_yaml):
        path = tmp_path / "post.txt"
        path.write_text(post_yaml)
        result = runner.invoke(app, ["decode", str(path), "-t", POST, "-r", BLOCKS, "-c", "yaml", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["title"] == "Hello"

    def test_unknown_extension_uses_settings_codec(self, tmp_path, post_json):
        path = tmp_path / "post.record"
        path.write_text(post_json)
        result = runner.invoke(app, ["decode", str(path), "-t", POST, "-r", BLOCKS, "--json"])
        assert result.exit_code == 0, result.output

    def test_weak_typing_flag(self, tmp_path):
        path = tmp_path / "block.json"
        path.write_text('{"type": "image", "url": "a.png", "width": "640"}')
        args = ["decode", str(path), "-t", "docshape.examples.blocks:Block", "-r", BLOCKS, "--json"]

        strict = runner.invoke(app, args + ["--strict"])
        assert strict.exit_code == 1
        assert "TypeMismatchError" in strict.output

        weak = runner.invoke(app, args + ["--weak"])
        assert weak.exit_code == 0, weak.output
        assert json.loads(weak.stdout)["width"] == 640

    def test_unknown_discriminator_fails(self, post_file):
        result = runner.invoke(app, ["decode", str(post_file), "-t", POST, "-r", STRICT_BLOCKS, "--json"])
        assert result.exit_code == 1
        assert '"error_type": "UnknownDiscriminatorError"' in result.output
        assert "blocks[2]" in result.output

    def test_error_rendered_as_text(self, post_file):
        result = runner.invoke(app, ["decode", str(post_file), "-t", POST, "-r", STRICT_BLOCKS])
        assert result.exit_code == 1
        assert "UnknownDiscriminatorError" in result.output
        assert "audio" in result.output

    def test_parse_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text('{"title": ')
        result = runner.invoke(app, ["decode", str(path), "-t", POST])
        assert result.exit_code == 1
        assert "ParseError" in result.output

    def test_bad_target(self, post_file):
        result = runner.invoke(app, ["decode", str(post_file), "-t", "docshape.examples.blocks"])
        assert result.exit_code == 2

    def test_registry_option_must_be_registry(self, post_file):
        result = runner.invoke(app, ["decode", str(post_file), "-t", POST, "-r", POST])
        assert result.exit_code == 2

    def test_unknown_codec(self, post_file):
        result = runner.invoke(app, ["decode", str(post_file), "-t", POST, "-c", "xml"])
        assert result.exit_code == 2

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["decode", str(tmp_path / "nope.json"), "-t", POST])
        assert result.exit_code == 2


# ─── describe / codecs ───────────────────────────────────────────────────


class TestDescribe:
    def test_namespace_tags(self):
        result = runner.invoke(app, ["describe", "-t", "docshape.examples.blocks:ImageBlock", "-n", "yaml"])
        assert result.exit_code == 0, result.output
        assert "caption" in result.output
        assert "url" in result.output

    def test_embedded_field_listed(self):
        result = runner.invoke(app, ["describe", "-t", POST])
        assert result.exit_code == 0, result.output
        assert "embedded" in result.output

    def test_not_a_shape(self):
        result = runner.invoke(app, ["describe", "-t", "docshape.examples.blocks:Block"])
        assert result.exit_code == 1


class TestCodecs:
    def test_lists_builtin_codecs(self):
        result = runner.invoke(app, ["codecs"])
        assert result.exit_code == 0
        for name in ("json", "yaml", "toml", "msgpack"):
            assert name in result.output
