"""
---
version: 0.2.0
created: 2026-10-13
updated: 2026-10-19
---

key_length.py — Key-length estimation for periodic ciphers.

Candidate lengths (usually from the Kasiski examination) are scored by a
caller-selected set of strategies. Each strategy is a small class
registered by name, so new ones can be added without touching the
estimator:

  autocorrelation  fraction of equal characters at lag = length, in [1, 2]
  ic               average per-column index of coincidence
  friedman         closeness of the best average column IC to English
  gcd              injects the GCD of the long candidates and rewards it

The total for a length is the mean strategy score plus a frequency bonus
for lengths that recur as divisors of many Kasiski distances.
"""

from __future__ import annotations

from functools import reduce
from math import gcd
from typing import Iterable, Sequence, Union

from vigenere import (
    ENGLISH_IC, RANDOM_IC,
    InputTooShort, KeyLengthCandidate, LogFn,
    average_column_ic, count_letters, index_of_coincidence, to_upper_ascii,
)

DEFAULT_STRATEGIES: tuple[str, ...] = ("autocorrelation", "ic")
DEFAULT_FREQUENCY_WEIGHT: float = 0.001
FREQUENCY_BONUS_MIN_LENGTH: int = 3      # bonus applies to lengths above this
FALLBACK_MAX_LENGTH: int = 20


# ============================================================================
# STRATEGY REGISTRY
# ============================================================================

class KeyLengthStrategy:
    """Base class for a key-length scoring rule. Higher scores are better."""

    name: str = ""

    def expand(self, lengths: list[int]) -> list[int]:
        """Optionally add implicit candidates to the pool."""
        return lengths

    def score(self, length: int, text: str, pool: Sequence[int]) -> float:
        raise NotImplementedError


_REGISTRY: dict[str, type[KeyLengthStrategy]] = {}


def register_strategy(cls: type[KeyLengthStrategy]) -> type[KeyLengthStrategy]:
    """Class decorator: make a strategy selectable by its ``name``."""
    if not cls.name:
        raise ValueError(f"{cls.__name__} has no name")
    _REGISTRY[cls.name] = cls
    return cls


def available_strategies() -> list[str]:
    return sorted(_REGISTRY)


def get_strategy(name: str) -> KeyLengthStrategy:
    try:
        return _REGISTRY[name]()
    except KeyError:
        raise ValueError(
            f"Unknown key-length strategy {name!r}; choose from {available_strategies()}"
        ) from None


StrategySpec = Union[str, KeyLengthStrategy]


def resolve_strategies(strategies: Iterable[StrategySpec]) -> list[KeyLengthStrategy]:
    resolved = [get_strategy(s) if isinstance(s, str) else s for s in strategies]
    if not resolved:
        raise ValueError("at least one key-length strategy is required")
    return resolved


# ============================================================================
# BUILT-IN STRATEGIES
# ============================================================================

def autocorrelation_score(key_length: int, text: str) -> float:
    """1 + (equal pairs at lag key_length) / (pairs compared); 1.0 if none."""
    upper = to_upper_ascii(text)
    possible = len(upper) - key_length
    if possible <= 0:
        return 1.0
    matches = sum(1 for a, b in zip(upper, upper[key_length:]) if a == b)
    return 1.0 + matches / possible


def friedman_test(max_key_length: int, text: str) -> tuple[float, int]:
    """
    Find the trial length in 1..max_key_length whose average column IC is
    closest to English.

    Returns:
        (smallest |ENGLISH_IC - average IC|, length achieving it)
    """
    best_length = 1
    smallest = float("inf")
    for trial in range(1, max_key_length + 1):
        diff = abs(ENGLISH_IC - average_column_ic(text, trial))
        if diff < smallest:
            smallest = diff
            best_length = trial
    return smallest, best_length


def friedman_estimate(text: str) -> float | None:
    """
    Classical Friedman key-length estimate (kp - kr) / (IC - kr).

    Returns None when the text IC is at or below random, where the
    formula has no meaningful value.
    """
    ic = index_of_coincidence(text)
    if ic <= RANDOM_IC:
        return None
    return (ENGLISH_IC - RANDOM_IC) / (ic - RANDOM_IC)


def pool_gcd(lengths: Iterable[int], threshold: int) -> int:
    """GCD of the lengths above threshold (0 if there are none)."""
    return reduce(gcd, (n for n in lengths if n > threshold), 0)


@register_strategy
class Autocorrelation(KeyLengthStrategy):
    name = "autocorrelation"

    def score(self, length: int, text: str, pool: Sequence[int]) -> float:
        return autocorrelation_score(length, text)


@register_strategy
class IndexOfCoincidence(KeyLengthStrategy):
    name = "ic"

    def score(self, length: int, text: str, pool: Sequence[int]) -> float:
        return average_column_ic(text, length)


@register_strategy
class FriedmanTest(KeyLengthStrategy):
    """Scores 1 - (smallest IC gap over trial lengths up to the candidate)."""

    name = "friedman"

    def score(self, length: int, text: str, pool: Sequence[int]) -> float:
        diff, _ = friedman_test(length, text)
        return 1.0 - diff


@register_strategy
class GcdWeighting(KeyLengthStrategy):
    """
    Long candidates that share a common divisor point at the true period.

    The GCD of all candidates above ``threshold`` joins the pool when it is
    itself above the threshold, and it is the only length this strategy
    scores.
    """

    name = "gcd"
    threshold = 5

    def expand(self, lengths: list[int]) -> list[int]:
        g = pool_gcd(lengths, self.threshold)
        if g > self.threshold and g not in lengths:
            return lengths + [g]
        return lengths

    def score(self, length: int, text: str, pool: Sequence[int]) -> float:
        g = pool_gcd(pool, self.threshold)
        return 1.0 if g > self.threshold and length == g else 0.0


# ============================================================================
# ESTIMATOR
# ============================================================================

CandidateSpec = Union[KeyLengthCandidate, int]


def _candidate_weights(candidates: Sequence[CandidateSpec]) -> dict[int, int]:
    """Ordered length -> weight. Bare ints weigh their count in the list."""
    weights: dict[int, int] = {}
    for cand in candidates:
        if isinstance(cand, KeyLengthCandidate):
            weights[cand.length] = weights.get(cand.length, 0) + cand.weight
        else:
            weights[int(cand)] = weights.get(int(cand), 0) + 1
    return weights


def score_key_lengths(
    strategies: Iterable[StrategySpec],
    candidates: Sequence[CandidateSpec],
    text: str,
    frequency_weight: float = DEFAULT_FREQUENCY_WEIGHT,
) -> list[dict]:
    """
    Score every candidate length under the given strategies.

    Candidates longer than the text's letter count are dropped. With no
    usable candidates, lengths 2..min(FALLBACK_MAX_LENGTH, N // 2) are
    scanned instead.

    Returns:
        One dict per length, in pool order, with keys length, weight,
        scores (per strategy), average, bonus and total.

    Raises:
        InputTooShort: If no length can be scored at all.
    """
    resolved = resolve_strategies(strategies)
    n_letters = count_letters(text)

    weights = {
        length: w for length, w in _candidate_weights(candidates).items()
        if 1 <= length <= n_letters
    }
    if not weights:
        upper = min(FALLBACK_MAX_LENGTH, n_letters // 2)
        weights = {length: 0 for length in range(2, upper + 1)}
    if not weights:
        raise InputTooShort(f"{n_letters} letters is too few to estimate a key length")

    pool = list(weights)
    for strategy in resolved:
        pool = [n for n in strategy.expand(pool) if 1 <= n <= n_letters]

    rows: list[dict] = []
    for length in pool:
        scores = {s.name: s.score(length, text, pool) for s in resolved}
        average = sum(scores.values()) / len(resolved)
        weight = weights.get(length, 0)
        bonus = weight * frequency_weight if length > FREQUENCY_BONUS_MIN_LENGTH else 0.0
        rows.append({
            "length": length,
            "weight": weight,
            "scores": scores,
            "average": average,
            "bonus": bonus,
            "total": average + bonus,
        })
    return rows


def best_key_length(rows: Sequence[dict]) -> int:
    """Length with the highest total; ties go to the earliest row."""
    best = rows[0]
    for row in rows[1:]:
        if row["total"] > best["total"]:
            best = row
    return best["length"]


def estimate_key_length(
    strategies: Iterable[StrategySpec],
    candidates: Sequence[CandidateSpec],
    text: str,
    explicit_length: int | None = None,
    frequency_weight: float = DEFAULT_FREQUENCY_WEIGHT,
    log: LogFn | None = None,
) -> int:
    """
    Pick the most likely key length.

    An explicit length is returned as is, without any scoring.
    """
    if explicit_length is not None:
        return explicit_length
    rows = score_key_lengths(strategies, candidates, text, frequency_weight)
    if log is not None:
        for row in rows:
            parts = "  ".join(f"{k}={v:.4f}" for k, v in row["scores"].items())
            log(f"Key length {row['length']:>3}: {parts}  bonus={row['bonus']:.4f}  "
                f"total={row['total']:.4f}")
    return best_key_length(rows)


def format_score_table(rows: Sequence[dict]) -> str:
    """Format score_key_lengths() output as a text table."""
    if not rows:
        return ""
    names = list(rows[0]["scores"])
    header = f"{'Length':>6} {'Weight':>6} " + " ".join(f"{n:>15}" for n in names)
    header += f" {'Bonus':>8} {'Total':>8}"
    lines = [header, "-" * len(header)]
    for row in rows:
        cells = " ".join(f"{row['scores'][n]:>15.4f}" for n in names)
        lines.append(f"{row['length']:>6} {row['weight']:>6} {cells} "
                     f"{row['bonus']:>8.4f} {row['total']:>8.4f}")
    return "\n".join(lines)
