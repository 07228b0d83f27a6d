"""Test configuration and fixtures.

Provides reusable fixtures for:
- LRC samples
- Fake aiohttp session/responses for LRCLIB
- Fake translators replacing deep_translator.GoogleTranslator
- Fake lyrics service for the sync engine
"""

import asyncio
from typing import Callable, Optional

import pytest

from letra_karaoke.lrc_parser import LRCParser, LyricLine
from letra_karaoke.lyrics_service import LyricsResult


SAMPLE_LRC = "\n".join(
    [
        "[ar:Sample Artist]",
        "[ti:Sample Song]",
        "[00:00.00]Line one",
        "[00:10.00]Line two",
        "[00:20.00]Line three",
        "[00:30.00]Line four",
    ]
)


@pytest.fixture
def sample_lrc():
    return SAMPLE_LRC


@pytest.fixture
def sample_lines():
    return LRCParser.parse_synced(SAMPLE_LRC)


# =============================================================================
# aiohttp fakes
# =============================================================================


class FakeResponse:
    def __init__(self, status: int = 200, payload=None):
        self.status = status
        self._payload = payload

    async def json(self):
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Minimal stand-in for aiohttp.ClientSession.get().

    The handler returns (status, payload), a response, or an exception to raise.
    """

    def __init__(self, handler: Callable[[str, dict], object]):
        self.handler = handler
        self.calls: list[tuple[str, dict]] = []

    def get(self, url, params=None, timeout=None, **kwargs):
        self.calls.append((url, dict(params or {})))
        result = self.handler(url, params or {})
        if isinstance(result, Exception):
            raise result
        if isinstance(result, tuple):
            return FakeResponse(*result)
        return result


@pytest.fixture
def fake_session_factory():
    return FakeSession


# =============================================================================
# Translator fakes
# =============================================================================


class FakeTranslator:
    """Replaces GoogleTranslator; prefixes text with the source language."""

    instances: list["FakeTranslator"] = []

    def __init__(self, source="auto", target="en", **kwargs):
        self.source = source
        self.target = target
        self.translate_calls: list[str] = []
        self.batch_calls: list[list[str]] = []
        FakeTranslator.instances.append(self)

    def translate(self, text, **kwargs):
        self.translate_calls.append(text)
        return f"{self.source}>{text}"

    def translate_batch(self, batch, **kwargs):
        self.batch_calls.append(list(batch))
        return [f"{self.source}>{text}" for text in batch]


@pytest.fixture
def fake_translator(monkeypatch):
    from letra_karaoke import translation_service

    FakeTranslator.instances = []
    monkeypatch.setattr(translation_service, "GoogleTranslator", FakeTranslator)
    return FakeTranslator


# =============================================================================
# Lyrics service fake for SyncEngine
# =============================================================================


class FakeLyricsService:
    def __init__(
        self,
        lyrics: Optional[dict[str, list[LyricLine]]] = None,
        official: Optional[dict[str, list[LyricLine]]] = None,
    ):
        self.lyrics = lyrics or {}
        self.official = official or {}
        self.gates: dict[str, asyncio.Event] = {}
        self.fetch_calls: list[str] = []

    async def fetch_lyrics(self, track_name, artist_name, duration_ms=0):
        self.fetch_calls.append(track_name)
        gate = self.gates.get(track_name)
        if gate is not None:
            await gate.wait()
        lines = self.lyrics.get(track_name)
        if lines is None:
            return None
        return LyricsResult(lines=lines, provider="fake")

    async def fetch_official_translation(self, track_name, artist_name):
        return self.official.get(track_name)


@pytest.fixture
def fake_lyrics_service():
    return FakeLyricsService
