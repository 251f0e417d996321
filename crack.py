"""
---
version: 0.2.0
created: 2026-10-15
updated: 2026-10-19
---

crack.py — Break a Vigenère ciphertext from the command line.

Reads the ciphertext (file lines are joined without newlines), runs the
engine and prints the index of coincidence, Kasiski candidates, chosen
key length, key, plaintext and confidence.

Usage:
    python3 crack.py ciphertext.txt
    python3 crack.py --text "LXFOPVEFRNHR" --key LEMON
    python3 crack.py FILE --strategies autocorrelation ic friedman gcd --verbose
    python3 crack.py FILE --recovery genetic --generations 500 --seed 42
    python3 crack.py FILE --plot --save-dir plots/
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
import time
import warnings
from pathlib import Path

from engine import EngineConfig, KeyRecovery, crack, load_config
from genetic_search import clamp_tournament_size
from key_length import available_strategies, format_score_table, score_key_lengths
from vigenere import (
    CryptanalysisError,
    format_candidates, format_confidence, format_decode_preview, format_ic,
)


def read_ciphertext(path: str | Path) -> str:
    """Read a ciphertext file, concatenating its lines."""
    return "".join(Path(path).read_text(encoding="utf-8").splitlines())


def plot_key_length_scores(rows: list[dict], save_path: str | Path | None = None) -> None:
    """
    Bar chart of the total score per candidate key length.

    Requires matplotlib (optional dependency).
    """
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        warnings.warn("matplotlib not available; skipping plot")
        return

    lengths = [str(r["length"]) for r in rows]
    totals = [r["total"] for r in rows]
    bonuses = [r["bonus"] for r in rows]

    fig, ax = plt.subplots(figsize=(max(6, len(rows) * 0.5), 4))
    ax.bar(lengths, [t - b for t, b in zip(totals, bonuses)], label="Strategy mean")
    ax.bar(lengths, bonuses, bottom=[t - b for t, b in zip(totals, bonuses)],
           label="Frequency bonus", color="orange")
    ax.set_xlabel("Candidate key length")
    ax.set_ylabel("Score")
    ax.set_title("Key-length candidate scores")
    ax.legend(fontsize=8)
    plt.tight_layout()
    if save_path:
        plt.savefig(str(save_path), dpi=150, bbox_inches="tight")
        print(f"Saved: {save_path}")
    plt.close(fig)


def build_config(args: argparse.Namespace) -> EngineConfig:
    """Start from --config (or defaults) and apply command-line overrides."""
    config = load_config(args.config) if args.config else EngineConfig()

    overrides: dict = {}
    if args.strategies:
        overrides["strategies"] = tuple(args.strategies)
    if args.frequency_weight is not None:
        overrides["frequency_weight"] = args.frequency_weight
    if args.recovery:
        overrides["recovery"] = KeyRecovery(args.recovery)

    genetic: dict = {}
    for arg, name in [
        ("population", "population_size"),
        ("generations", "generations"),
        ("crossover_rate", "crossover_rate"),
        ("mutation_rate", "mutation_rate"),
        ("time_limit", "time_limit"),
        ("seed", "seed"),
    ]:
        value = getattr(args, arg)
        if value is not None:
            genetic[name] = value
    if genetic:
        params = config.genetic
        if "population_size" in genetic:
            genetic.setdefault("tournament_size", clamp_tournament_size(
                params.tournament_size, genetic["population_size"]))
        overrides["genetic"] = dataclasses.replace(params, **genetic)

    return dataclasses.replace(config, **overrides) if overrides else config


def main() -> None:
    parser = argparse.ArgumentParser(description="Break a Vigenère ciphertext")
    parser.add_argument("file", nargs="?", default=None, help="Ciphertext file")
    parser.add_argument("--text", type=str, default=None, help="Ciphertext given inline")
    parser.add_argument("--key", type=str, default=None, help="Decrypt with this key")
    parser.add_argument("--key-length", type=int, default=None,
                        help="Skip key-length estimation and use this length")
    parser.add_argument("--strategies", nargs="+", choices=available_strategies(),
                        default=None, help="Key-length strategies (default: autocorrelation ic)")
    parser.add_argument("--frequency-weight", type=float, default=None,
                        help="Weight of the Kasiski frequency bonus (default: 0.001)")
    parser.add_argument("--recovery", choices=[r.value for r in KeyRecovery], default=None,
                        help="Key recovery method (default: chi-squared)")
    parser.add_argument("--population", type=int, default=None, help="Genetic population size")
    parser.add_argument("--generations", type=int, default=None, help="Genetic generation budget")
    parser.add_argument("--crossover-rate", type=float, default=None)
    parser.add_argument("--mutation-rate", type=float, default=None)
    parser.add_argument("--time-limit", type=float, default=None,
                        help="Seconds before the genetic search stops")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--config", type=str, default=None, help="JSON config file")
    parser.add_argument("--verbose", action="store_true", help="Print intermediate scores")
    parser.add_argument("--plot", action="store_true", help="Plot key-length scores")
    parser.add_argument("--save-dir", type=str, default=".", help="Directory for plots")
    args = parser.parse_args()

    if (args.file is None) == (args.text is None):
        parser.print_help()
        sys.exit(1)

    log = print if args.verbose else None
    try:
        config = build_config(args)
        ciphertext = args.text if args.text is not None else read_ciphertext(args.file)
        t0 = time.time()
        result = crack(ciphertext, config, explicit_key=args.key,
                       explicit_length=args.key_length, log=log)
        elapsed = time.time() - t0
        rows = None
        if (args.plot or args.verbose) and result.candidates:
            rows = score_key_lengths(config.strategies, result.candidates, ciphertext,
                                     config.frequency_weight)
    except (CryptanalysisError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Decryption took {elapsed:.3f}s")
    print(f"Index of Coincidence: {format_ic(result.ic)}")
    print(f"Possible key lengths: {format_candidates(result.candidates)}")
    print(f"Estimated key length: {result.key_length}")
    print(f"Decrypted key: {result.key}")
    print(f"Confidence: {format_confidence(result.confidence)}")
    print("Decrypted text:")
    print(format_decode_preview(result.plaintext))

    if args.verbose and rows:
        print()
        print(format_score_table(rows))

    if args.plot and rows:
        save_dir = Path(args.save_dir)
        save_dir.mkdir(parents=True, exist_ok=True)
        plot_key_length_scores(rows, save_dir / "key_length_scores.png")


if __name__ == "__main__":
    main()
