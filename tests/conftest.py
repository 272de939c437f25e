"""
Shared pytest fixtures and configuration for docshape tests.

This module provides:
- Registry and settings cleanup fixtures for test isolation
- Prebuilt decoders for the example content blocks
- Sample raw documents in every supported format

Usage:
    Fixtures are auto-discovered by pytest. Simply use them as function
    arguments (pytest injects them automatically).

    def test_something(block_decoder):
        ...
"""

import sys
from pathlib import Path
from typing import Generator

import pytest
import structlog

# Ensure docshape package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docshape.core.logging import clear_context
from docshape.core.settings import clear_settings_cache
from docshape.decoding.decoder import Decoder
from docshape.examples.blocks import (
    BLOCK_REGISTRY,
    POST_PREPROCESSORS,
    STRICT_BLOCK_REGISTRY,
)


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        # CLI and cross-codec tests exercise the whole pipeline
        if test_path.parts[0] == "cli" or "end_to_end" in test_path.name:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_fixture(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Drop cached settings and DOCSHAPE_* variables around each test.

    Settings read from the developer's environment must never leak into
    assertions about defaults.
    """
    import os

    for key in list(os.environ):
        if key.startswith("DOCSHAPE_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logging_fixture() -> Generator[None, None, None]:
    """Restore structlog defaults so configure_logging() calls stay local to one test."""
    yield
    clear_context()
    structlog.reset_defaults()


# =============================================================================
# Decoder Fixtures
# =============================================================================


@pytest.fixture
def block_decoder() -> Decoder:
    """JSON decoder with the block registry (fallback set) and post preprocessors."""
    return Decoder(registries=[BLOCK_REGISTRY], preprocessors=POST_PREPROCESSORS)


@pytest.fixture
def strict_block_decoder() -> Decoder:
    """JSON decoder whose block registry has no fallback."""
    return Decoder(registries=[STRICT_BLOCK_REGISTRY], preprocessors=POST_PREPROCESSORS)


# =============================================================================
# Sample Documents
# =============================================================================


POST_JSON = """
{
  "_id": "65a4f1c2e4b0a1b2c3d4e5f6",
  "title": "Hello",
  "author": "ada",
  "published_at": "2024-01-15T10:30:00Z",
  "tags": ["intro", "blocks"],
  "blocks": [
    {"type": "text", "content": "hello"},
    {"type": "image", "url": "a.png", "alt": "A", "width": 640},
    {"type": "audio", "url": "a.mp3"}
  ]
}
"""

POST_YAML = """
_id: "65a4f1c2e4b0a1b2c3d4e5f6"
title: Hello
by: ada
published_at: 2024-01-15T10:30:00Z
tags: [intro, blocks]
blocks:
  - type: text
    content: hello
  - type: image
    url: a.png
    caption: A
    width: 640
  - type: audio
    url: a.mp3
"""

POST_TOML = """
_id = "65a4f1c2e4b0a1b2c3d4e5f6"
title = "Hello"
author = "ada"
published_at = 2024-01-15T10:30:00Z
tags = ["intro", "blocks"]

[[blocks]]
type = "text"
content = "hello"

[[blocks]]
type = "image"
url = "a.png"
alt = "A"
width = 640

[[blocks]]
type = "audio"
url = "a.mp3"
"""


@pytest.fixture
def post_json() -> str:
    return POST_JSON


@pytest.fixture
def post_yaml() -> str:
    return POST_YAML


@pytest.fixture
def post_toml() -> str:
    return POST_TOML


@pytest.fixture
def post_msgpack() -> bytes:
    """The sample post as msgpack, with a binary _id and a msgpack Timestamp."""
    import msgpack

    document = {
        "_id": bytes.fromhex("65a4f1c2e4b0a1b2c3d4e5f6"),
        "title": "Hello",
        "author": "ada",
        "published_at": msgpack.Timestamp(1705314600),
        "tags": ["intro", "blocks"],
        "blocks": [
            {"type": "text", "content": "hello"},
            {"type": "image", "url": "a.png", "alt": "A", "width": 640},
            {"type": "audio", "url": "a.mp3"},
        ],
    }
    return msgpack.packb(document)
