from __future__ import annotations

import numpy as np
import pytest

from conftest import KEY, PASSAGE
from vigenere import (
    ENGLISH_MIC,
    ENGLISH_VECTOR,
    DegenerateColumn,
    InvalidKeyLength,
    UndeterminedConfidence,
    chi_squared_table,
    column_counts,
    confidence_score,
    frequency_profile,
    mutual_ic_table,
    mutual_index_of_coincidence,
    recover_key,
    vigenere_decrypt,
    vigenere_encrypt,
)


@pytest.mark.parametrize("scorer", ["chi-squared", "mutual-ic"])
def test_recovers_key_from_columns(ciphertext, scorer):
    assert recover_key(ciphertext, 5, scorer=scorer) == KEY


def test_recovery_is_deterministic(ciphertext):
    keys = {recover_key(ciphertext, 5) for _ in range(3)}
    assert keys == {KEY}


def test_caesar_shift_minimises_chi_squared():
    cipher = vigenere_encrypt(PASSAGE, "H")
    chi2 = chi_squared_table(column_counts(cipher, 1))
    assert chi2.shape == (1, 26)
    assert int(np.argmin(chi2[0])) == 7
    mic = mutual_ic_table(column_counts(cipher, 1))
    assert int(np.argmax(mic[0])) == 7


def test_chi_squared_matches_direct_formula():
    cipher = vigenere_encrypt(PASSAGE, "D")
    counts = column_counts(cipher, 1)[0]
    n = counts.sum()
    ref = ENGLISH_VECTOR / ENGLISH_VECTOR.sum()
    shift = 3
    observed = np.array([counts[(j + shift) % 26] for j in range(26)])
    expected = ref * n
    direct = float(((observed - expected) ** 2 / expected).sum())
    assert chi_squared_table(counts)[0, shift] == pytest.approx(direct)


def test_unknown_scorer_is_rejected(ciphertext):
    with pytest.raises(ValueError):
        recover_key(ciphertext, 5, scorer="bigram")


def test_empty_column_is_degenerate():
    # column 1 holds only spaces
    with pytest.raises(DegenerateColumn):
        recover_key("A B C", 2)


def test_non_positive_key_length_is_rejected():
    with pytest.raises(InvalidKeyLength):
        column_counts("ABC", 0)


def test_confidence_of_english_is_near_100():
    assert 85.0 < confidence_score(PASSAGE) < 115.0


def test_confidence_is_not_clamped():
    # all E: mutual IC equals the English frequency of E (~0.127)
    assert confidence_score("EEEE") == pytest.approx(ENGLISH_VECTOR[4] / ENGLISH_MIC * 100)
    assert confidence_score("EEEE") > 100.0


def test_mutual_ic_uses_relative_frequencies():
    profile = frequency_profile("AB")
    expected = 0.5 * ENGLISH_VECTOR[0] + 0.5 * ENGLISH_VECTOR[1]
    assert mutual_index_of_coincidence(profile) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["", "A", "1234 ..."])
def test_confidence_undetermined_with_too_few_letters(text):
    with pytest.raises(UndeterminedConfidence):
        confidence_score(text)


def test_true_key_scores_highest_confidence(ciphertext):
    rng = np.random.default_rng(7)
    wrong_keys = {"LEMOM", "KEMON", "LFMON", "NOMEL"}
    while len(wrong_keys) < 30:
        wrong_keys.add("".join(chr(65 + int(i)) for i in rng.integers(0, 26, size=5)))
    wrong_keys.discard(KEY)

    best = confidence_score(vigenere_decrypt(ciphertext, KEY))
    for key in wrong_keys:
        assert confidence_score(vigenere_decrypt(ciphertext, key)) < best, key
