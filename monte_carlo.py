"""
---
version: 0.1.0
created: 2026-10-16
updated: 2026-10-19
---

monte_carlo.py — How often does the engine recover the key?

Generates synthetic ciphers: random text with English letter frequencies,
encrypted with a random key. Runs the full pipeline on each and measures,
per plaintext length:
  1. key-length hit rate (estimated length == true length)
  2. exact key hit rate
  3. mean confidence of the decryption

Random letters with English frequencies have no repeated words, so
Kasiski candidates are sparser than for real prose; these rates are a
lower bound.

Usage:
    python3 monte_carlo.py [--n-sims N] [--lengths 100 200 400 800]
        [--key-lengths 3 12] [--strategies ...] [--no-plots] [--save-dir DIR]
"""

from __future__ import annotations

import argparse
import time
from pathlib import Path

import numpy as np

from engine import EngineConfig, crack
from key_length import available_strategies
from vigenere import ALPHABET, ENGLISH_VECTOR, CryptanalysisError, vigenere_encrypt


def generate_english_freq_text(length: int, rng: np.random.Generator) -> str:
    """Random uppercase letters drawn with English frequencies."""
    probs = ENGLISH_VECTOR / ENGLISH_VECTOR.sum()
    idx = rng.choice(26, size=length, p=probs)
    return "".join(ALPHABET[i] for i in idx)


def generate_random_key(length: int, rng: np.random.Generator) -> str:
    return "".join(ALPHABET[i] for i in rng.integers(0, 26, size=length))


def run_monte_carlo(
    n_sims: int = 200,
    lengths: list[int] | None = None,
    key_lengths: tuple[int, int] = (3, 12),
    config: EngineConfig | None = None,
    seed: int = 42,
) -> dict[int, dict]:
    """
    Simulate n_sims ciphers per plaintext length.

    Returns:
        {text_length: {"length_hits", "key_hits", "errors", "n",
                       "confidences", "key_lengths"}}
    """
    if lengths is None:
        lengths = [100, 200, 400, 800]
    if config is None:
        config = EngineConfig()
    rng = np.random.default_rng(seed)
    results: dict[int, dict] = {}

    t0 = time.time()
    for text_length in lengths:
        stats = {"length_hits": 0, "key_hits": 0, "errors": 0, "n": n_sims,
                 "confidences": [], "key_lengths": []}
        for i in range(n_sims):
            key_len = int(rng.integers(key_lengths[0], key_lengths[1] + 1))
            key = generate_random_key(key_len, rng)
            plaintext = generate_english_freq_text(text_length, rng)
            ciphertext = vigenere_encrypt(plaintext, key)
            stats["key_lengths"].append(key_len)
            try:
                result = crack(ciphertext, config)
            except CryptanalysisError:
                stats["errors"] += 1
                continue
            if result.key_length == key_len:
                stats["length_hits"] += 1
            if result.key == key:
                stats["key_hits"] += 1
            if result.confidence is not None:
                stats["confidences"].append(result.confidence)
            if (i + 1) % 50 == 0:
                print(f"  length {text_length}: {i + 1}/{n_sims}", end="\r")
        results[text_length] = stats
        print(f"  length {text_length}: done ({time.time() - t0:.1f}s elapsed)")

    return results


def print_summary(results: dict[int, dict]) -> None:
    print(f"\n{'Text length':>12} {'Length hit':>11} {'Key hit':>9} "
          f"{'Errors':>7} {'Mean conf':>10}")
    print("-" * 53)
    for text_length, s in results.items():
        n = s["n"]
        conf = float(np.mean(s["confidences"])) if s["confidences"] else float("nan")
        print(f"{text_length:>12} {s['length_hits'] / n:>10.1%} {s['key_hits'] / n:>8.1%} "
              f"{s['errors']:>7} {conf:>9.1f}%")


def plot_success_rates(results: dict[int, dict], save_dir: Path) -> None:
    """Line plot of hit rates against plaintext length."""
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        print("  matplotlib not available; skipping plots")
        return

    xs = list(results)
    length_rate = [results[x]["length_hits"] / results[x]["n"] for x in xs]
    key_rate = [results[x]["key_hits"] / results[x]["n"] for x in xs]

    fig, ax = plt.subplots(figsize=(7, 4))
    ax.plot(xs, length_rate, marker="o", label="Key length recovered")
    ax.plot(xs, key_rate, marker="s", label="Exact key recovered")
    ax.set_xlabel("Plaintext length (letters)")
    ax.set_ylabel("Success rate")
    ax.set_ylim(0, 1.05)
    ax.set_title("Vigenère recovery vs text length")
    ax.legend(fontsize=8)
    plt.tight_layout()
    path = save_dir / "monte_carlo_success.png"
    plt.savefig(str(path), dpi=150, bbox_inches="tight")
    print(f"  Saved: {path}")
    plt.close(fig)


def main() -> None:
    parser = argparse.ArgumentParser(description="Monte Carlo evaluation of Vigenère recovery")
    parser.add_argument("--n-sims", type=int, default=200, help="Ciphers per text length")
    parser.add_argument("--lengths", type=int, nargs="+", default=[100, 200, 400, 800],
                        help="Plaintext lengths to test")
    parser.add_argument("--key-lengths", type=int, nargs=2, default=[3, 12],
                        metavar=("MIN", "MAX"), help="Range of random key lengths")
    parser.add_argument("--strategies", nargs="+", choices=available_strategies(),
                        default=None, help="Key-length strategies")
    parser.add_argument("--no-plots", action="store_true", help="Skip plot generation")
    parser.add_argument("--save-dir", type=str, default=".", help="Directory for output")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    config = EngineConfig(strategies=tuple(args.strategies)) if args.strategies else EngineConfig()

    print("=" * 70)
    print("MONTE CARLO EVALUATION OF VIGENERE RECOVERY")
    print(f"Simulations: {args.n_sims} per length, lengths {args.lengths}, "
          f"key lengths {args.key_lengths[0]}-{args.key_lengths[1]}")
    print(f"Strategies: {', '.join(config.strategies)}")
    print("=" * 70)

    results = run_monte_carlo(
        n_sims=args.n_sims,
        lengths=args.lengths,
        key_lengths=(args.key_lengths[0], args.key_lengths[1]),
        config=config,
        seed=args.seed,
    )
    print_summary(results)

    if not args.no_plots:
        save_dir = Path(args.save_dir)
        save_dir.mkdir(parents=True, exist_ok=True)
        print("\nGenerating plots...")
        plot_success_rates(results, save_dir)


if __name__ == "__main__":
    main()
