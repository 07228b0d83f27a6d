import pytest

from letra_karaoke.lrc_parser import LyricLine
from letra_karaoke.translation_aligner import TranslationAligner


def _lines(*pairs):
    return [LyricLine(text=text, start_time_ms=start) for text, start in pairs]


def test_empty_candidate_returns_original_unchanged():
    original = _lines(("一", 0), ("二", 1000))
    merged = TranslationAligner.merge(original, [])
    assert merged == original


@pytest.mark.parametrize("length", [1, 2, 5, 17])
def test_equal_lengths_map_identity(length):
    for i in range(length):
        assert TranslationAligner.candidate_index(i, length, length) == i


def test_single_original_line_maps_to_first_candidate():
    assert TranslationAligner.candidate_index(0, 1, 4) == 0


def test_ratio_mapping_for_different_lengths():
    # 5 originales sobre 3 candidatas: 0, 0.5, 1, 1.5, 2 -> redondeo hacia arriba
    assert [TranslationAligner.candidate_index(i, 5, 3) for i in range(5)] == [0, 1, 1, 2, 2]
    assert [TranslationAligner.candidate_index(i, 3, 6) for i in range(3)] == [0, 3, 5]


def test_merge_attaches_translations_and_does_not_mutate_inputs():
    original = _lines(("君が好き", 0), ("ありがとう", 4000))
    candidate = _lines(("I like you", 200), ("Thank you", 4100))

    merged = TranslationAligner.merge(original, candidate)

    assert [line.translation for line in merged] == ["I like you", "Thank you"]
    assert all(line.translation is None for line in original)
    assert merged is not original


def test_rejects_pairs_more_than_five_seconds_apart():
    original = _lines(("一", 0), ("二", 10000))
    candidate = _lines(("one", 5000), ("two", 15001))

    merged = TranslationAligner.merge(original, candidate)

    assert merged[0].translation == "one"  # exactly 5000ms apart is accepted
    assert merged[1].translation is None


def test_rejects_identical_text_case_insensitive():
    merged = TranslationAligner.merge(_lines(("Oh Yeah", 0)), _lines(("oh yeah", 0)))
    assert merged[0].translation is None


def test_rejects_blank_candidate_text():
    merged = TranslationAligner.merge(_lines(("一", 0)), _lines(("   ", 0)))
    assert merged[0].translation is None


def test_never_attaches_far_timestamps_with_mismatched_lengths():
    original = _lines(*[(f"line {i}", i * 3000) for i in range(10)])
    candidate = _lines(*[(f"cand {i}", i * 9000) for i in range(4)])

    merged = TranslationAligner.merge(original, candidate)

    for index, line in enumerate(merged):
        if line.translation is None:
            continue
        cand = candidate[TranslationAligner.candidate_index(index, 10, 4)]
        assert cand.text == line.translation
        assert abs(cand.start_time_ms - line.start_time_ms) <= 5000
