from __future__ import annotations

import pytest

from vigenere import (
    ENGLISH_IC,
    InputTooShort,
    average_column_ic,
    character_frequency,
    frequency_profile,
    index_of_coincidence,
    split_columns,
)


def test_profile_counts_are_case_folded_and_skip_non_letters():
    profile = frequency_profile("aA b!B 3c")
    assert profile.total == 5
    assert profile.counts[0] == 2
    assert profile.counts[1] == 2
    assert profile.counts[2] == 1
    assert sum(profile.counts) == 5


def test_frequencies_sum_to_one(passage):
    freqs = character_frequency(passage)
    assert set(freqs) == set("ABCDEFGHIJKLMNOPQRSTUVWXYZ")
    assert sum(freqs.values()) == pytest.approx(1.0)


@pytest.mark.parametrize("text", ["", "1234 !?", "é ß"])
def test_frequencies_undefined_without_letters(text):
    profile = frequency_profile(text)
    assert profile.total == 0
    with pytest.raises(InputTooShort):
        profile.vector()
    with pytest.raises(InputTooShort):
        character_frequency(text)


def test_ic_counting_form():
    # counts A=2, B=2: (2*1 + 2*1) / (4*3)
    assert index_of_coincidence("AaBb") == pytest.approx(4 / 12)
    assert index_of_coincidence("ABCD") == 0.0
    assert index_of_coincidence("zzzz") == pytest.approx(1.0)


@pytest.mark.parametrize("text", ["", "A", "  x  "])
def test_ic_undefined_for_one_letter_or_less(text):
    with pytest.raises(InputTooShort):
        index_of_coincidence(text)


def test_english_ic_is_near_reference(passage):
    assert abs(index_of_coincidence(passage) - ENGLISH_IC) < 0.015


def test_split_columns_uses_absolute_positions():
    assert split_columns("AB CD", 2) == ["A D", "BC"]


def test_average_column_ic_skips_short_columns():
    # key length 3 over "AAB": every column has one letter, nothing to average
    assert average_column_ic("AAB", 3) == 0.0
    # columns "AA" and "BB" are both constant
    assert average_column_ic("ABAB", 2) == pytest.approx(1.0)
