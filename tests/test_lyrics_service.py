import asyncio

import aiohttp

from letra_karaoke.lyrics_service import LRCLIBProvider, LyricsService


def _run(coro):
    return asyncio.run(coro)


def _service(session):
    return LyricsService(session=session)


def test_fetch_prefers_synced_lyrics(fake_session_factory, sample_lrc):
    session = fake_session_factory(
        lambda url, params: (
            200, {"syncedLyrics": sample_lrc, "plainLyrics": "ignored"}
        )
    )

    result = _run(_service(session).fetch_lyrics("Sample Song", "Sample Artist", 215000))

    assert result.is_synced
    assert result.provider == "LRCLIB"
    assert [line.text for line in result.lines][:2] == ["Line one", "Line two"]
    url, params = session.calls[0]
    assert url.endswith("/get")
    assert params == {
        "track_name": "Sample Song",
        "artist_name": "Sample Artist",
        "duration": "215",
    }


def test_fetch_without_duration_omits_param(fake_session_factory, sample_lrc):
    session = fake_session_factory(lambda url, params: (200, {"syncedLyrics": sample_lrc}))
    _run(_service(session).fetch_lyrics("Song", "Artist"))
    assert "duration" not in session.calls[0][1]


def test_plain_lyrics_are_spread_over_duration(fake_session_factory):
    session = fake_session_factory(
        lambda url, params: (200, {"syncedLyrics": None, "plainLyrics": "a\nb"})
    )

    result = _run(_service(session).fetch_lyrics("Song", "Artist", 10000))

    assert result.is_synced is False
    assert [(line.text, line.start_time_ms) for line in result.lines] == [("a", 0), ("b", 5000)]


def test_plain_lyrics_without_duration_are_not_found(fake_session_factory):
    session = fake_session_factory(lambda url, params: (200, {"plainLyrics": "a\nb"}))
    assert _run(_service(session).fetch_lyrics("Song", "Artist")) is None


def test_not_found_and_http_errors_return_none(fake_session_factory):
    for status in (404, 500):
        session = fake_session_factory(lambda url, params, s=status: (s, {}))
        assert _run(_service(session).fetch_lyrics("Song", "Artist")) is None


def test_instrumental_returns_none(fake_session_factory, sample_lrc):
    session = fake_session_factory(
        lambda url, params: (200, {"instrumental": True, "syncedLyrics": sample_lrc})
    )
    assert _run(_service(session).fetch_lyrics("Song", "Artist")) is None


def test_network_errors_return_none(fake_session_factory):
    session = fake_session_factory(lambda url, params: aiohttp.ClientError("boom"))
    assert _run(_service(session).fetch_lyrics("Song", "Artist")) is None


def test_missing_artist_or_title_skips_request(fake_session_factory):
    session = fake_session_factory(lambda url, params: (200, {}))
    assert _run(_service(session).fetch_lyrics("", "Artist")) is None
    assert session.calls == []


def test_uninitialized_service_returns_none():
    assert _run(LyricsService().fetch_lyrics("Song", "Artist")) is None


def test_official_translation_search(fake_session_factory):
    def handler(url, params):
        if "(English ver.)" not in params["q"]:
            return (200, [])
        return (
            200,
            [
                {"trackName": "夜に駆ける", "artistName": "YOASOBI", "syncedLyrics": "[00:01.00]x"},
                {
                    "trackName": "Into The Night (English Ver.)",
                    "artistName": "YOASOBI",
                    "syncedLyrics": "[00:01.00]Into the night\n[00:03.00]Let's go",
                },
            ],
        )

    session = fake_session_factory(handler)

    lines = _run(_service(session).fetch_official_translation("Into The Night", "YOASOBI"))

    assert [line.text for line in lines] == ["Into the night", "Let's go"]
    assert [params["q"] for _, params in session.calls] == [
        "Into The Night English YOASOBI",
        "Into The Night (English ver.) YOASOBI",
    ]


def test_official_translation_requires_matching_artist_and_marker(fake_session_factory):
    results = [
        {"trackName": "Song (English Version)", "artistName": "Cover Band", "syncedLyrics": "[00:01.00]x"},
        {"trackName": "Song", "artistName": "Artist", "syncedLyrics": "[00:01.00]y"},
        {"trackName": "Song [English]", "artistName": "Artist", "syncedLyrics": None},
    ]
    session = fake_session_factory(lambda url, params: (200, results))

    assert _run(_service(session).fetch_official_translation("Song", "Artist")) is None
    assert len(session.calls) == len(LRCLIBProvider.TRANSLATION_QUERIES)


def test_official_translation_survives_search_errors(fake_session_factory):
    session = fake_session_factory(lambda url, params: aiohttp.ClientError("boom"))
    assert _run(_service(session).fetch_official_translation("Song", "Artist")) is None


def test_close_keeps_injected_session(fake_session_factory):
    session = fake_session_factory(lambda url, params: (200, {}))
    service = _service(session)
    _run(service.close())
    assert session.calls == []
