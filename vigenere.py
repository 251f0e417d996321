"""
---
version: 0.3.0
created: 2026-10-12
updated: 2026-10-19
---

vigenere.py — Shared module for Vigenère cryptanalysis.

Seven sections:
  1. Data constants (English reference table, IC baselines)
  2. Errors (typed, recoverable failures)
  3. Frequency profiling (letter counts, index of coincidence)
  4. Kasiski examination (repeated n-gram distances -> key-length candidates)
  5. Codec (Vigenère encrypt/decrypt)
  6. Key recovery (per-column chi-squared / mutual-IC) and confidence
  7. Output utils (formatting)

Nothing in this module reads files or prints; callers that want progress
messages pass a ``log`` callable where one is accepted.
"""

from __future__ import annotations

import string
from bisect import bisect_right
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, NamedTuple, Sequence

import numpy as np
from scipy import stats as sp_stats

LogFn = Callable[[str], None]

# ============================================================================
# 1. DATA CONSTANTS
# ============================================================================

ALPHABET = string.ascii_uppercase

_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)
_ALPHA_SET = frozenset(ALPHABET)

# English letter frequencies (relative, A-Z).
ENGLISH_FREQ: Mapping[str, float] = MappingProxyType({
    "A": 0.08167, "B": 0.01492, "C": 0.02782, "D": 0.04253, "E": 0.12702,
    "F": 0.02228, "G": 0.02015, "H": 0.06094, "I": 0.06966, "J": 0.00153,
    "K": 0.00772, "L": 0.04025, "M": 0.02406, "N": 0.06749, "O": 0.07507,
    "P": 0.01929, "Q": 0.00095, "R": 0.05987, "S": 0.06327, "T": 0.09056,
    "U": 0.02758, "V": 0.00978, "W": 0.02360, "X": 0.00150, "Y": 0.01974,
    "Z": 0.00074,
})

# Same table as a read-only vector indexed by letter (A=0 .. Z=25).
ENGLISH_VECTOR: np.ndarray = np.array([ENGLISH_FREQ[c] for c in ALPHABET], dtype=float)
ENGLISH_VECTOR.setflags(write=False)

ENGLISH_IC: float = 0.0667        # IC of English text
RANDOM_IC: float = 1.0 / 26.0     # IC of uniformly random letters (~0.0385)
ENGLISH_MIC: float = 0.066        # accepted average mutual IC for English

MIN_CONFIDENCE_LETTERS: int = 2

# ============================================================================
# 2. ERRORS
# ============================================================================


class CryptanalysisError(ValueError):
    """Base class for recoverable analysis failures."""


class InputTooShort(CryptanalysisError):
    """Too few alphabetic characters for the requested statistic."""


class InvalidKeyLength(CryptanalysisError):
    """Key length is non-positive or exceeds the ciphertext letter count."""


class DegenerateColumn(CryptanalysisError):
    """A key column contains no letters, so it cannot be scored."""


class UndeterminedConfidence(CryptanalysisError):
    """Decrypted text has too few letters for a meaningful mutual IC."""


# ============================================================================
# 3. FREQUENCY PROFILING
# ============================================================================

def to_upper_ascii(text: str) -> str:
    """Uppercase ASCII letters only; every other character is left alone.

    Unlike ``str.upper`` this never changes the length of the string, so
    positions stay aligned with the original ciphertext.
    """
    return text.translate(_UPPER)


def letter_indices(text: str) -> np.ndarray:
    """Return the 0-25 values of the ASCII letters in text, in order."""
    return np.fromiter(
        (ord(c) - 65 for c in to_upper_ascii(text) if c in _ALPHA_SET),
        dtype=np.int64,
    )


def count_letters(text: str) -> int:
    """Number of ASCII letters in text."""
    return sum(1 for c in to_upper_ascii(text) if c in _ALPHA_SET)


@dataclass(frozen=True)
class FrequencyProfile:
    """Absolute A-Z counts of a character stream plus the letter total."""

    counts: tuple[int, ...]
    total: int

    def vector(self) -> np.ndarray:
        """Relative frequencies as a length-26 array (sums to 1.0).

        Raises:
            InputTooShort: If the stream had no letters.
        """
        if self.total == 0:
            raise InputTooShort("no alphabetic characters; frequencies are undefined")
        return np.asarray(self.counts, dtype=float) / self.total

    def frequencies(self) -> dict[str, float]:
        """Relative frequency per letter, A-Z."""
        vec = self.vector()
        return {c: float(vec[i]) for i, c in enumerate(ALPHABET)}

    def index_of_coincidence(self) -> float:
        """Counting-form IC: sum f(f-1) / (N(N-1)).

        Raises:
            InputTooShort: If N <= 1.
        """
        n = self.total
        if n <= 1:
            raise InputTooShort(f"index of coincidence needs at least 2 letters, got {n}")
        return sum(f * (f - 1) for f in self.counts) / (n * (n - 1))


def frequency_profile(text: str) -> FrequencyProfile:
    """Count A-Z (case-folded) in text; non-letters are ignored."""
    idx = letter_indices(text)
    counts = np.bincount(idx, minlength=26)
    return FrequencyProfile(counts=tuple(int(c) for c in counts), total=int(idx.size))


def character_frequency(text: str) -> dict[str, float]:
    """Relative letter frequencies of text.

    Raises:
        InputTooShort: If text has no letters.
    """
    return frequency_profile(text).frequencies()


def index_of_coincidence(text: str) -> float:
    """
    Compute the index of coincidence for a text.

    English: ~0.0667. Random (uniform 26): ~0.0385.

    Raises:
        InputTooShort: If text has fewer than 2 letters.
    """
    return frequency_profile(text).index_of_coincidence()


def split_columns(text: str, key_length: int) -> list[str]:
    """Partition text into key_length columns by absolute position (i mod L)."""
    return [text[i::key_length] for i in range(key_length)]


def average_column_ic(text: str, key_length: int) -> float:
    """
    Average IC over the key_length columns of text.

    Columns with fewer than 2 letters have no defined IC and are left out
    of the average. Returns 0.0 when no column qualifies.
    """
    iocs = []
    for column in split_columns(text, key_length):
        profile = frequency_profile(column)
        if profile.total > 1:
            iocs.append(profile.index_of_coincidence())
    return sum(iocs) / len(iocs) if iocs else 0.0


# ============================================================================
# 4. KASISKI EXAMINATION
# ============================================================================

class KeyLengthCandidate(NamedTuple):
    """A candidate key length and how often it was emitted as a divisor."""

    length: int
    weight: int


@dataclass(frozen=True)
class KasiskiConfig:
    """Tunable n-gram range and truncation for the Kasiski examination."""

    min_ngram: int = 3
    max_ngram: int = 5
    short_text_letters: int = 100   # texts with fewer letters start lower
    short_min_ngram: int = 2
    top_k: int = 20

    def ngram_range(self, n_letters: int) -> range:
        start = self.short_min_ngram if n_letters < self.short_text_letters else self.min_ngram
        return range(start, self.max_ngram + 1)


def _recurrence_chain(offsets: list[int], length: int) -> list[int]:
    """Non-overlapping matches of one n-gram, scanning left to right."""
    chain: list[int] = []
    next_free = -1
    for off in offsets:
        if off >= next_free:
            chain.append(off)
            next_free = off + length
    return chain


def ngram_distances(text: str, length: int) -> Counter:
    """
    Distance histogram for repeated n-grams of one length.

    For every offset holding a purely alphabetic n-gram, each later match
    in that n-gram's non-overlapping recurrence chain contributes its
    distance once. Offsets of each n-gram are indexed in a single pass,
    so the cost is linear in the text plus the number of recorded pairs.
    """
    upper = to_upper_ascii(text)
    offsets: dict[str, list[int]] = {}
    for start in range(len(upper) - length + 1):
        gram = upper[start:start + length]
        if gram.isascii() and gram.isalpha():
            offsets.setdefault(gram, []).append(start)

    distances: Counter = Counter()
    for positions in offsets.values():
        if len(positions) < 2:
            continue
        chain = _recurrence_chain(positions, length)
        for start in positions:
            for later in chain[bisect_right(chain, start):]:
                distances[later - start] += 1
    return distances


def distance_histogram(text: str, config: KasiskiConfig | None = None) -> Counter:
    """
    Merge the per-length distance histograms over the configured n-gram range.

    Raises:
        InputTooShort: If text has fewer letters than the minimum n-gram length.
    """
    if config is None:
        config = KasiskiConfig()
    n_letters = count_letters(text)
    lengths = config.ngram_range(n_letters)
    if n_letters < lengths.start:
        raise InputTooShort(
            f"Kasiski examination needs at least {lengths.start} letters, got {n_letters}"
        )
    per_length = [ngram_distances(text, length) for length in lengths]
    return sum(per_length, Counter())


def divisors(n: int) -> list[int]:
    """Divisors of n greater than 1, ascending."""
    small: list[int] = []
    large: list[int] = []
    i = 1
    while i * i <= n:
        if n % i == 0:
            small.append(i)
            if i != n // i:
                large.append(n // i)
        i += 1
    return [d for d in small + large[::-1] if d > 1]


def candidate_divisors(histogram: Mapping[int, int]) -> list[int]:
    """
    Emit the divisors of every distance, most-supported distances first.

    Distances are ordered by occurrence count descending, ties by distance
    ascending. Duplicates are kept: a length that divides many distances
    appears many times.
    """
    ordered = sorted(histogram.items(), key=lambda item: (-item[1], item[0]))
    emitted: list[int] = []
    for dist, _ in ordered:
        emitted.extend(divisors(dist))
    return emitted


def kasiski_examination(
    text: str,
    config: KasiskiConfig | None = None,
) -> list[KeyLengthCandidate]:
    """
    Derive key-length candidates from repeated substrings.

    Returns:
        Up to ``config.top_k`` distinct candidates in emission order, each
        weighted by how many times it divided a recurrence distance.
    """
    if config is None:
        config = KasiskiConfig()
    emitted = candidate_divisors(distance_histogram(text, config))
    weights = Counter(emitted)
    candidates: list[KeyLengthCandidate] = []
    seen: set[int] = set()
    for length in emitted:
        if length in seen:
            continue
        seen.add(length)
        candidates.append(KeyLengthCandidate(length, weights[length]))
        if len(candidates) >= config.top_k:
            break
    return candidates


# ============================================================================
# 5. CODEC — Vigenère encrypt/decrypt
# ============================================================================

def normalize_key(key: str) -> str:
    """
    Reduce a key to its uppercase A-Z letters.

    Raises:
        InvalidKeyLength: If the key has no letters.
    """
    k = "".join(c for c in to_upper_ascii(key) if c in _ALPHA_SET)
    if not k:
        raise InvalidKeyLength(f"key {key!r} contains no letters")
    return k


def _apply_key(text: str, key: str, sign: int) -> str:
    shifts = [ord(c) - 65 for c in normalize_key(key)]
    period = len(shifts)
    result: list[str] = []
    for i, c in enumerate(text):
        if "a" <= c <= "z":
            base = 97
        elif "A" <= c <= "Z":
            base = 65
        else:
            result.append(c)
            continue
        k = shifts[i % period]
        result.append(chr((ord(c) - base + sign * k + 26) % 26 + base))
    return "".join(result)


def vigenere_decrypt(ciphertext: str, key: str) -> str:
    """
    Decrypt a Vigenère ciphertext.

    Every character consumes one key position; only ASCII letters are
    shifted, keeping their case. Key letters are case-insensitive.
    """
    return _apply_key(ciphertext, key, -1)


def vigenere_encrypt(plaintext: str, key: str) -> str:
    """Encrypt plaintext; inverse of vigenere_decrypt for the same key."""
    return _apply_key(plaintext, key, 1)


# ============================================================================
# 6. KEY RECOVERY AND CONFIDENCE
# ============================================================================

COLUMN_SCORERS = ("chi-squared", "mutual-ic")

# _SHIFT_INDEX[s, j] = (j + s) % 26: ciphertext letter that plaintext letter j
# becomes under shift s.
_SHIFT_INDEX = (np.arange(26)[:, None] + np.arange(26)[None, :]) % 26


def column_counts(text: str, key_length: int) -> np.ndarray:
    """
    Letter counts per column, shape (key_length, 26).

    Raises:
        InvalidKeyLength: If key_length < 1.
        DegenerateColumn: If any column has no letters.
    """
    if key_length < 1:
        raise InvalidKeyLength(f"key length must be positive, got {key_length}")
    rows = []
    for i, column in enumerate(split_columns(text, key_length)):
        profile = frequency_profile(column)
        if profile.total == 0:
            raise DegenerateColumn(
                f"column {i} of {key_length} has no letters; cannot score it"
            )
        rows.append(profile.counts)
    return np.array(rows, dtype=float)


def chi_squared_table(
    counts: np.ndarray,
    reference: np.ndarray = ENGLISH_VECTOR,
) -> np.ndarray:
    """
    Chi-squared of every column under every shift, shape (columns, 26).

    Entry [c, s] compares the counts of column c, read back through shift
    s, with the reference distribution scaled to the column size.
    """
    counts = np.atleast_2d(counts)
    shifted = counts[:, _SHIFT_INDEX]                        # (cols, 26, 26)
    ref = np.asarray(reference, dtype=float)
    ref = ref / ref.sum()
    expected = counts.sum(axis=1)[:, None, None] * ref[None, None, :]
    expected = np.broadcast_to(expected, shifted.shape).copy()
    chi2, _ = sp_stats.chisquare(shifted, expected, axis=2)
    return np.asarray(chi2, dtype=float)


def mutual_ic_table(
    counts: np.ndarray,
    reference: np.ndarray = ENGLISH_VECTOR,
) -> np.ndarray:
    """Mutual IC of every column under every shift, shape (columns, 26)."""
    counts = np.atleast_2d(counts)
    freqs = counts / counts.sum(axis=1, keepdims=True)
    return freqs[:, _SHIFT_INDEX] @ np.asarray(reference, dtype=float)


def recover_key(
    ciphertext: str,
    key_length: int,
    scorer: str = "chi-squared",
    reference: np.ndarray = ENGLISH_VECTOR,
) -> str:
    """
    Recover the key one column at a time.

    Args:
        ciphertext: Text to analyse.
        key_length: Number of columns (key positions).
        scorer: "chi-squared" (minimise) or "mutual-ic" (maximise).
        reference: Reference letter distribution.

    Returns:
        Uppercase key of length key_length. Ties go to the lowest shift.
    """
    counts = column_counts(ciphertext, key_length)
    if scorer == "chi-squared":
        shifts = np.argmin(chi_squared_table(counts, reference), axis=1)
    elif scorer == "mutual-ic":
        shifts = np.argmax(mutual_ic_table(counts, reference), axis=1)
    else:
        raise ValueError(f"Unknown column scorer {scorer!r}; expected one of {COLUMN_SCORERS}")
    return "".join(ALPHABET[int(s)] for s in shifts)


def mutual_index_of_coincidence(
    profile: FrequencyProfile,
    reference: np.ndarray = ENGLISH_VECTOR,
) -> float:
    """Sum over letters of observed frequency times reference frequency."""
    return float(profile.vector() @ np.asarray(reference, dtype=float))


def confidence_score(
    text: str,
    reference: np.ndarray = ENGLISH_VECTOR,
    min_letters: int = MIN_CONFIDENCE_LETTERS,
) -> float:
    """
    Plausibility of text as English, as a percentage of ENGLISH_MIC.

    Values above 100 are possible and are not clamped.

    Raises:
        UndeterminedConfidence: If text has fewer than min_letters letters.
    """
    profile = frequency_profile(text)
    if profile.total < min_letters:
        raise UndeterminedConfidence(
            f"{profile.total} letters is too few to score (need {min_letters})"
        )
    return mutual_index_of_coincidence(profile, reference) / ENGLISH_MIC * 100.0


# ============================================================================
# 7. OUTPUT UTILS
# ============================================================================

def format_candidates(candidates: Sequence[KeyLengthCandidate]) -> str:
    """One-line summary such as ``5(x12) 10(x7) 2(x4)``."""
    return " ".join(f"{c.length}(x{c.weight})" for c in candidates)


def format_confidence(confidence: float | None) -> str:
    if confidence is None:
        return "undetermined"
    return f"{confidence:.1f}%"


def format_ic(ic: float | None) -> str:
    return "undetermined" if ic is None else f"{ic:.6f}"


def format_decode_preview(decoded: str, width: int = 70) -> str:
    """
    Format a decoded string for display with line wrapping.
    """
    lines: list[str] = []
    for i in range(0, len(decoded), width):
        chunk = decoded[i : i + width]
        lines.append(f"  {i:4d}: {chunk}")
    return "\n".join(lines)


def format_frequency_table(profile: FrequencyProfile) -> str:
    """Observed vs English frequency per letter, as a text table."""
    lines = [f"{'Letter':>6} {'Count':>7} {'Observed':>9} {'English':>8}"]
    lines.append("-" * len(lines[0]))
    freqs = profile.vector() if profile.total else np.zeros(26)
    for i, c in enumerate(ALPHABET):
        lines.append(
            f"{c:>6} {profile.counts[i]:>7} {freqs[i]:>9.4f} {ENGLISH_VECTOR[i]:>8.4f}"
        )
    return "\n".join(lines)


# ============================================================================
# SELF-TEST — Run when executed directly
# ============================================================================

def _self_test() -> None:
    """Check the textbook example and a Kasiski round on a synthetic text."""
    print("=== vigenere.py self-test ===\n")

    plain = vigenere_decrypt("LXFOPVEFRNHR", "LEMON")
    print(f"LXFOPVEFRNHR / LEMON -> {plain}")
    assert plain == "ATTACKATDAWN", f"decrypt FAILED: got {plain!r}"

    sample = "Meet me by the old mill at midnight; bring the map, and come alone."
    cipher = vigenere_encrypt(sample, "Lemon")
    assert vigenere_decrypt(cipher, "LEMON") == sample
    print("Round trip: PASS")

    filler = "ABCDEFGHIJKLMNOPQRST" + "ABC" + "UVWXYZ"
    lengths = [c.length for c in kasiski_examination(filler)]
    print(f"Kasiski candidates (distance 20): {lengths}")
    assert {2, 4, 5, 10, 20} <= set(lengths)

    print(f"IC of sample: {index_of_coincidence(sample):.4f}")
    print(f"Confidence of sample: {format_confidence(confidence_score(sample))}")
    print("\n=== Self-test complete ===")


if __name__ == "__main__":
    _self_test()
