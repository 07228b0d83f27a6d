import json

import pytest

from letra_karaoke.language import (
    LanguageHeuristic,
    LanguageIndicators,
    contains_cjk,
    detect_source_lang,
    needs_translation,
)


@pytest.mark.parametrize("text", ["사랑해", "hello 안녕", "こんにちは", "カタカナ", "漢字"])
def test_cjk_always_needs_translation(text):
    assert needs_translation(text) is True


def test_hangul_wins_over_english_indicators():
    assert needs_translation("I love you 사랑해") is True


def test_german_and_english_indicators_are_native():
    assert needs_translation("Ich bin müde") is False
    assert needs_translation("I am here") is False


def test_indicator_match_is_case_insensitive_whole_word():
    assert needs_translation("THE END") is False
    assert needs_translation("theory") is True


@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
def test_blank_text_never_needs_translation(text):
    assert needs_translation(text) is False


def test_romaji_needs_translation():
    assert needs_translation("kimi ga suki desu") is True


def test_ambiguous_latin_text_defaults_to_translation():
    assert needs_translation("la la la") is True
    assert needs_translation("corazón partido") is True


def test_custom_indicator_tables(tmp_path):
    path = tmp_path / "indicators.json"
    path.write_text(json.dumps({"german": [], "english": ["hola"], "romaji": []}))
    heuristic = LanguageHeuristic(LanguageIndicators.load(path))
    assert heuristic.needs_translation("hola amigo") is False
    assert heuristic.needs_translation("the end") is True


def test_default_tables_are_loaded_from_data_file():
    indicators = LanguageIndicators.load()
    assert "ich" in indicators.german
    assert "here" in indicators.english
    assert "desu" in indicators.romaji


def test_detect_source_lang():
    assert detect_source_lang("사랑") == "ko"
    assert detect_source_lang("愛してる") == "ja"
    assert detect_source_lang("kimi ga suki") == "auto"
    assert contains_cjk("abc") is False
