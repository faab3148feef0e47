import pytest

from rsvp_reader.text.words import recognition_offset, split_words
from rsvp_reader.timing import (
    DEFAULT_TIMING_SETTINGS,
    MAX_WPM,
    MIN_WPM,
    TimingSettings,
    clamp_wpm,
    compute_delay,
)


def test_comma_adds_three_quarters_of_base_interval():
    assert compute_delay("word,", 300, DEFAULT_TIMING_SETTINGS) == pytest.approx(350.0)


def test_plain_word_gets_base_interval_only():
    assert compute_delay("word", 300) == pytest.approx(200.0)


def test_length_and_punctuation_delays_are_summed():
    settings = TimingSettings(length_delay_enabled=True, length_delay_factor=0.1)

    assert compute_delay("extraordinary.", 300, settings) == pytest.approx(660.0)


def test_length_delay_ignored_when_disabled():
    assert compute_delay("extraordinary", 300) == pytest.approx(200.0)


def test_short_words_get_no_length_delay():
    settings = TimingSettings(length_delay_enabled=True, length_delay_factor=0.5)

    assert compute_delay("hello", 300, settings) == pytest.approx(200.0)


@pytest.mark.parametrize(
    "word, multiplier",
    [("end.", 1.5), ("what?", 1.5), ("wow!", 1.5), ("so;", 0.75), ("as:", 0.75), ("wait—", 1.0), ("well-", 0.25)],
)
def test_punctuation_multipliers_use_last_character(word, multiplier):
    assert compute_delay(word, 600) == pytest.approx(100.0 * (1 + multiplier))


def test_frequency_delay_uses_normalized_lookup():
    seen = []

    def lookup(word):
        seen.append(word)
        return 1.0

    settings = TimingSettings(frequency_delay_enabled=True, frequency_delay_factor=0.3)
    delay = compute_delay("Quixotic,", 300, settings, lookup)

    assert seen == ["quixotic"]
    assert delay == pytest.approx(200 + 150 + 60)


def test_frequency_delay_skips_words_without_letters():
    settings = TimingSettings(frequency_delay_enabled=True)

    def lookup(word):  # pragma: no cover - must not be called
        raise AssertionError(word)

    assert compute_delay("1984", 300, settings, lookup) == pytest.approx(200.0)


def test_frequency_delay_without_lookup_is_zero():
    settings = TimingSettings(frequency_delay_enabled=True, frequency_delay_factor=1.0)

    assert compute_delay("zymurgy", 300, settings) == pytest.approx(200.0)


@pytest.mark.parametrize("wpm", [MIN_WPM, 250, 575, MAX_WPM])
def test_delay_never_drops_below_base_interval(wpm):
    settings = TimingSettings(
        length_delay_enabled=True,
        length_delay_factor=0.5,
        frequency_delay_enabled=True,
        frequency_delay_factor=1.0,
    )
    base = 60000 / wpm

    assert compute_delay("a", wpm, settings, lambda _: 0.0) == pytest.approx(base)
    assert compute_delay("remarkably!", wpm, settings, lambda _: 1.0) > base


def test_timing_settings_reject_out_of_range_factors():
    with pytest.raises(ValueError):
        TimingSettings(length_delay_factor=0.6)
    with pytest.raises(ValueError):
        TimingSettings(frequency_delay_factor=-0.1)


def test_clamp_wpm_snaps_to_step_and_range():
    assert clamp_wpm(40) == MIN_WPM
    assert clamp_wpm(5000) == MAX_WPM
    assert clamp_wpm(312) == 300
    assert clamp_wpm(313) == 325


@pytest.mark.parametrize(
    "word, expected",
    [("", 0), ("a", 0), ("I.", 0), ("cat", 1), ("cat,", 1), ("hello", 1), ("wonderful", 3), ("wonderful!\"", 3)],
)
def test_recognition_offset(word, expected):
    assert recognition_offset(word) == expected


def test_split_words_drops_empty_pieces_and_keeps_punctuation():
    words = split_words("  Hello,   brave\nnew world.  ")

    assert [word.text for word in words] == ["Hello,", "brave", "new", "world."]
    assert [word.recognition_offset for word in words] == [1, 1, 1, 1]
