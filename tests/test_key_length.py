from __future__ import annotations

import pytest

import key_length
from conftest import PASSAGE
from key_length import (
    Autocorrelation,
    GcdWeighting,
    KeyLengthStrategy,
    autocorrelation_score,
    available_strategies,
    best_key_length,
    estimate_key_length,
    format_score_table,
    friedman_estimate,
    friedman_test,
    get_strategy,
    register_strategy,
    score_key_lengths,
)
from vigenere import InputTooShort, KeyLengthCandidate, kasiski_examination


def test_explicit_length_short_circuits():
    # no scoring happens, so even an empty text and no candidates are fine
    assert estimate_key_length(["ic"], [], "", explicit_length=7) == 7


def test_builtin_strategies_are_registered():
    assert {"autocorrelation", "ic", "friedman", "gcd"} <= set(available_strategies())
    assert isinstance(get_strategy("autocorrelation"), Autocorrelation)


def test_unknown_strategy_name():
    with pytest.raises(ValueError):
        get_strategy("entropy")
    with pytest.raises(ValueError):
        estimate_key_length([], [5], PASSAGE)


def test_autocorrelation_range():
    assert autocorrelation_score(3, "ABCABCABC") == pytest.approx(2.0)
    assert autocorrelation_score(1, "ABCD") == pytest.approx(1.0)
    assert autocorrelation_score(10, "ABC") == 1.0
    assert autocorrelation_score(3, "abcABC") == pytest.approx(2.0)


def test_friedman_test_finds_period(ciphertext):
    diff, best = friedman_test(5, ciphertext)
    assert best == 5
    assert diff < 0.02


def test_friedman_estimate():
    assert friedman_estimate(PASSAGE) == pytest.approx(1.0, abs=0.5)
    assert friedman_estimate("ABCDEFGHIJKLMNOPQRSTUVWXYZ") is None


def test_estimates_true_length(ciphertext):
    candidates = kasiski_examination(ciphertext)
    assert estimate_key_length(["autocorrelation", "ic"], candidates, ciphertext) == 5


@pytest.mark.parametrize("strategies", [["ic"], ["friedman", "ic"], ["autocorrelation", "friedman"]])
def test_estimates_true_length_with_other_strategy_sets(ciphertext, strategies):
    candidates = kasiski_examination(ciphertext)
    assert estimate_key_length(strategies, candidates, ciphertext) == 5


def test_gcd_injects_common_divisor():
    candidates = [14, 21, 28, 2, 3]
    rows = score_key_lengths(["gcd"], candidates, PASSAGE, frequency_weight=0.0)
    assert [r["length"] for r in rows] == [14, 21, 28, 2, 3, 7]
    assert estimate_key_length(["gcd"], candidates, PASSAGE, frequency_weight=0.0) == 7


def test_gcd_rewards_existing_base_length():
    candidates = [12, 18, 6, 24, 2, 3]
    rows = score_key_lengths([GcdWeighting()], candidates, PASSAGE, frequency_weight=0.0)
    assert [r["length"] for r in rows] == candidates
    assert best_key_length(rows) == 6


def test_gcd_ignores_small_common_divisor():
    assert GcdWeighting().expand([8, 12, 2]) == [8, 12, 2]


def test_frequency_bonus_only_above_three():
    candidates = [KeyLengthCandidate(3, 50), KeyLengthCandidate(4, 50)]
    rows = score_key_lengths(["ic"], candidates, PASSAGE, frequency_weight=0.01)
    by_length = {r["length"]: r for r in rows}
    assert by_length[3]["bonus"] == 0.0
    assert by_length[4]["bonus"] == pytest.approx(0.5)


def test_bare_int_candidates_weigh_their_repeats():
    rows = score_key_lengths(["ic"], [5, 10, 5, 5], PASSAGE, frequency_weight=1.0)
    assert [(r["length"], r["weight"]) for r in rows] == [(5, 3), (10, 1)]


@pytest.fixture
def scratch_registry(monkeypatch):
    """Registrations made during the test are dropped afterwards."""
    monkeypatch.setattr(key_length, "_REGISTRY", dict(key_length._REGISTRY))


def test_ties_go_to_first_candidate(scratch_registry):
    @register_strategy
    class Flat(KeyLengthStrategy):
        name = "test-flat"

        def score(self, length, text, pool):
            return 1.0

    assert estimate_key_length(["test-flat"], [9, 4, 6], PASSAGE, frequency_weight=0.0) == 9


def test_scratch_registrations_are_dropped():
    assert "test-flat" not in available_strategies()


def test_custom_strategy_by_instance():
    class PreferSeven(KeyLengthStrategy):
        name = "prefer-seven"

        def score(self, length, text, pool):
            return 1.0 if length == 7 else 0.0

    assert estimate_key_length([PreferSeven()], [4, 7, 9], PASSAGE, frequency_weight=0.0) == 7


def test_candidates_longer_than_text_are_dropped():
    rows = score_key_lengths(["ic"], [3, 50], "ABCDEFGHIJ")
    assert [r["length"] for r in rows] == [3]


def test_fallback_scan_without_candidates(ciphertext):
    rows = score_key_lengths(["ic"], [], ciphertext)
    assert [r["length"] for r in rows] == list(range(2, 21))
    assert estimate_key_length(["ic", "friedman"], [], "LXFOPVEFRNHR") in range(2, 7)


def test_nothing_to_score():
    with pytest.raises(InputTooShort):
        estimate_key_length(["ic"], [], "ABC")


def test_log_receives_one_line_per_candidate(ciphertext):
    lines = []
    estimate_key_length(["ic"], [5, 7], ciphertext, log=lines.append)
    assert len(lines) == 2
    assert lines[0].startswith("Key length   5")


def test_score_table_lists_every_row(ciphertext):
    rows = score_key_lengths(["autocorrelation", "ic"], [5, 7], ciphertext)
    table = format_score_table(rows).splitlines()
    assert len(table) == 4
    assert "autocorrelation" in table[0]
