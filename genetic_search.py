"""
---
version: 0.2.0
created: 2026-10-14
updated: 2026-10-19
---

genetic_search.py — Population-based Vigenère key search.

Alternative to per-column chi-squared recovery for short or heavily
perturbed ciphertexts. A population of random keys of a fixed length is
evolved by elitist selection, single-point crossover and per-letter
mutation; fitness is the L1 distance between the letter distribution of
the decryption and English (lower is better).

Fitness for a whole generation is computed in one numpy step: the letter
counts of a decryption are the sum over key positions of that column's
counts rotated by the key letter, so no plaintext strings are built.

Usage:
    python3 genetic_search.py FILE --key-length N [--population P]
        [--generations G] [--seed S] [--time-limit SECONDS]
"""

from __future__ import annotations

import argparse
import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple

import numpy as np

from vigenere import (
    ALPHABET, ENGLISH_VECTOR,
    CryptanalysisError, InvalidKeyLength, LogFn, UndeterminedConfidence,
    count_letters, letter_indices, vigenere_decrypt, confidence_score,
    format_confidence, format_decode_preview,
)


@dataclass(frozen=True)
class GeneticParams:
    """Search parameters. Defaults are sized for interactive use."""

    population_size: int = 400
    generations: int = 300
    crossover_rate: float = 0.8
    mutation_rate: float = 0.15
    tournament_size: int = 40        # elites kept and used as parents
    patience: int | None = 50        # stop after this many flat generations
    time_limit: float | None = None  # seconds of wall clock
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.population_size < 2:
            raise ValueError("population_size must be at least 2")
        if self.generations < 0:
            raise ValueError("generations must be non-negative")
        if not 0.0 <= self.crossover_rate <= 1.0:
            raise ValueError("crossover_rate must be in [0, 1]")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError("mutation_rate must be in [0, 1]")
        if not 1 <= self.tournament_size <= self.population_size:
            raise ValueError("tournament_size must be in [1, population_size]")


def clamp_tournament_size(tournament_size: int, population_size: int) -> int:
    """Elite count that fits a population of population_size."""
    return max(1, min(tournament_size, population_size))


class GeneticResult(NamedTuple):
    key: str
    fitness: float
    generations: int
    stop_reason: str     # "budget", "plateau", "deadline" or "cancelled"


def _rotated_column_counts(ciphertext: str, key_length: int) -> np.ndarray:
    """
    table[col, k, j]: how many letters of column col decrypt to letter j
    under key letter k. Columns follow absolute positions in the text.
    """
    positions = [pos for pos, c in enumerate(ciphertext) if c.isascii() and c.isalpha()]
    codes = letter_indices(ciphertext)
    cols = np.asarray(positions, dtype=np.int64) % key_length
    counts = np.zeros((key_length, 26), dtype=float)
    np.add.at(counts, (cols, codes), 1.0)
    # Plaintext letter j under key k comes from ciphertext letter (j + k) % 26.
    index = (np.arange(26)[None, :] + np.arange(26)[:, None]) % 26   # [k, j]
    return counts[:, index]


def population_fitness(
    keys: np.ndarray,
    table: np.ndarray,
    n_letters: int,
    reference: np.ndarray = ENGLISH_VECTOR,
) -> np.ndarray:
    """Sum of |observed - reference| per key; keys has shape (P, L)."""
    key_length = keys.shape[1]
    counts = table[np.arange(key_length)[None, :], keys].sum(axis=1)   # (P, 26)
    return np.abs(counts / n_letters - reference[None, :]).sum(axis=1)


def key_fitness(ciphertext: str, key: str, reference: np.ndarray = ENGLISH_VECTOR) -> float:
    """Fitness of one key, computed from the actual decryption."""
    decoded = letter_indices(vigenere_decrypt(ciphertext, key))
    freqs = np.bincount(decoded, minlength=26) / decoded.size
    return float(np.abs(freqs - reference).sum())


def _breed(
    elites: np.ndarray,
    n_children: int,
    params: GeneticParams,
    rng: np.random.Generator,
) -> np.ndarray:
    """Crossover and mutate pairs of elites until n_children keys exist."""
    n_elite, key_length = elites.shape
    n_pairs = (n_children + 1) // 2
    first = rng.integers(0, n_elite, size=n_pairs)
    if n_elite > 1:
        second = (first + rng.integers(1, n_elite, size=n_pairs)) % n_elite
    else:
        second = first
    a, b = elites[first], elites[second]

    if key_length > 1:
        cross = rng.random(n_pairs) < params.crossover_rate
        points = rng.integers(1, key_length, size=n_pairs)
        head = np.arange(key_length)[None, :] < points[:, None]
        swap = cross[:, None] & ~head
        a, b = np.where(swap, b, a), np.where(swap, a, b)

    children = np.concatenate([a, b])[:n_children]
    mutate = rng.random(children.shape) < params.mutation_rate
    children[mutate] = rng.integers(0, 26, size=int(mutate.sum()))
    return children


def genetic_key_search(
    ciphertext: str,
    key_length: int,
    params: GeneticParams | None = None,
    rng: np.random.Generator | None = None,
    cancel: threading.Event | None = None,
    reference: np.ndarray = ENGLISH_VECTOR,
    log: LogFn | None = None,
    log_every: int = 25,
) -> GeneticResult:
    """
    Evolve keys of key_length letters and return the fittest.

    Args:
        ciphertext: Text to attack.
        key_length: Length of every candidate key.
        params: Search parameters (defaults if None).
        rng: NumPy random generator; built from params.seed if None.
        cancel: Set from another thread to stop after the current generation.
        reference: Reference letter distribution.
        log: Optional progress callback.
        log_every: Generations between progress messages.

    Returns:
        GeneticResult with the best key of the final population.

    Raises:
        InvalidKeyLength: If key_length < 1 or exceeds the letter count.
    """
    if params is None:
        params = GeneticParams()
    if rng is None:
        rng = np.random.default_rng(params.seed)
    n_letters = count_letters(ciphertext)
    if key_length < 1 or key_length > n_letters:
        raise InvalidKeyLength(
            f"key length {key_length} not in 1..{n_letters} (letters in ciphertext)"
        )

    table = _rotated_column_counts(ciphertext, key_length)
    population = rng.integers(0, 26, size=(params.population_size, key_length))
    deadline = None if params.time_limit is None else time.monotonic() + params.time_limit

    best = float("inf")
    flat = 0
    generation = 0
    stop_reason = "budget"
    while generation < params.generations:
        if cancel is not None and cancel.is_set():
            stop_reason = "cancelled"
            break
        if deadline is not None and time.monotonic() >= deadline:
            stop_reason = "deadline"
            break

        fitness = population_fitness(population, table, n_letters, reference)
        order = np.argsort(fitness, kind="stable")
        elites = population[order[:params.tournament_size]]
        gen_best = float(fitness[order[0]])

        if gen_best < best - 1e-12:
            best = gen_best
            flat = 0
        else:
            flat += 1
        if log is not None and generation % log_every == 0:
            key = "".join(ALPHABET[k] for k in elites[0])
            log(f"  generation {generation:>5}: best fitness {gen_best:.4f} ({key})")

        children = _breed(elites, params.population_size - len(elites), params, rng)
        population = np.concatenate([elites, children])
        generation += 1

        if params.patience is not None and flat >= params.patience:
            stop_reason = "plateau"
            break

    fitness = population_fitness(population, table, n_letters, reference)
    winner = int(np.argmin(fitness))
    key = "".join(ALPHABET[k] for k in population[winner])
    if log is not None:
        log(f"  stopped after {generation} generations ({stop_reason}); "
            f"best {key} fitness {fitness[winner]:.4f}")
    return GeneticResult(key, float(fitness[winner]), generation, stop_reason)


# ============================================================================
# CLI
# ============================================================================

def main() -> None:
    parser = argparse.ArgumentParser(description="Genetic key search for a Vigenère ciphertext")
    parser.add_argument("file", type=str, help="Ciphertext file")
    parser.add_argument("--key-length", type=int, required=True, help="Key length to search")
    parser.add_argument("--population", type=int, default=400, help="Population size (default: 400)")
    parser.add_argument("--generations", type=int, default=300,
                        help="Generation budget (default: 300)")
    parser.add_argument("--crossover-rate", type=float, default=0.8)
    parser.add_argument("--mutation-rate", type=float, default=0.15)
    parser.add_argument("--patience", type=int, default=50,
                        help="Stop after this many generations without improvement")
    parser.add_argument("--time-limit", type=float, default=None, help="Seconds before stopping")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    args = parser.parse_args()

    try:
        text = "".join(Path(args.file).read_text(encoding="utf-8").splitlines())
        params = GeneticParams(
            population_size=args.population,
            generations=args.generations,
            crossover_rate=args.crossover_rate,
            mutation_rate=args.mutation_rate,
            tournament_size=clamp_tournament_size(
                GeneticParams.tournament_size, args.population),
            patience=args.patience,
            time_limit=args.time_limit,
            seed=args.seed,
        )
        t0 = time.time()
        result = genetic_key_search(text, args.key_length, params, log=print)
    except (CryptanalysisError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    plaintext = vigenere_decrypt(text, result.key)
    try:
        confidence = confidence_score(plaintext)
    except UndeterminedConfidence:
        confidence = None
    print(f"\nSearch took {time.time() - t0:.1f}s")
    print(f"Key:        {result.key}")
    print(f"Fitness:    {result.fitness:.4f}")
    print(f"Confidence: {format_confidence(confidence)}")
    print(format_decode_preview(plaintext))


if __name__ == "__main__":
    main()
