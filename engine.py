"""
---
version: 0.2.0
created: 2026-10-15
updated: 2026-10-19
---

engine.py — Library entry points for breaking a Vigenère ciphertext.

    analyze(text)                          -> Analysis(profile, ic, candidates)
    estimate_key_length(strategies, ...)   -> int
    decrypt(ciphertext, key_length, key?)  -> DecryptionResult(key, plaintext, confidence)
    crack(ciphertext, config?)             -> CrackResult

Key recovery is selected by KeyRecovery: per-column chi-squared (default),
per-column mutual IC, or the genetic search. Failures are raised as
subclasses of vigenere.CryptanalysisError; nothing here prints or exits.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import NamedTuple

import numpy as np

from genetic_search import GeneticParams, clamp_tournament_size, genetic_key_search
from key_length import (
    DEFAULT_FREQUENCY_WEIGHT, DEFAULT_STRATEGIES,
    estimate_key_length, resolve_strategies,
)
from vigenere import (
    FrequencyProfile, InputTooShort, InvalidKeyLength, KasiskiConfig,
    KeyLengthCandidate, LogFn, UndeterminedConfidence,
    confidence_score, count_letters, frequency_profile, kasiski_examination,
    normalize_key, recover_key, vigenere_decrypt,
)

__all__ = [
    "Analysis", "CrackResult", "DecryptionResult", "EngineConfig", "KeyRecovery",
    "analyze", "crack", "decrypt", "estimate_key_length", "load_config",
    "validate_key_length",
]


class KeyRecovery(str, Enum):
    CHI_SQUARED = "chi-squared"
    MUTUAL_IC = "mutual-ic"
    GENETIC = "genetic"


class Analysis(NamedTuple):
    profile: FrequencyProfile
    ic: float
    candidates: list[KeyLengthCandidate]


class DecryptionResult(NamedTuple):
    key: str
    plaintext: str
    confidence: float | None     # None: too few letters to score

    @property
    def confidence_determined(self) -> bool:
        return self.confidence is not None


class CrackResult(NamedTuple):
    key_length: int
    key: str
    plaintext: str
    confidence: float | None
    ic: float | None             # None: explicit key on a text too short to profile
    candidates: list[KeyLengthCandidate]


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True)
class EngineConfig:
    strategies: tuple[str, ...] = DEFAULT_STRATEGIES
    frequency_weight: float = DEFAULT_FREQUENCY_WEIGHT
    recovery: KeyRecovery = KeyRecovery.CHI_SQUARED
    kasiski: KasiskiConfig = field(default_factory=KasiskiConfig)
    genetic: GeneticParams = field(default_factory=GeneticParams)

    def __post_init__(self) -> None:
        object.__setattr__(self, "strategies", tuple(self.strategies))
        object.__setattr__(self, "recovery", KeyRecovery(self.recovery))
        resolve_strategies(self.strategies)

    @classmethod
    def from_dict(cls, data: dict) -> "EngineConfig":
        """
        Build a config from plain data (e.g. parsed JSON).

        Nested "kasiski" and "genetic" sections map onto KasiskiConfig and
        GeneticParams. A population smaller than the default elite count
        shrinks the elite count to match unless tournament_size is given.
        Unknown keys raise ValueError.
        """
        data = dict(data)
        _reject_unknown(cls, data, "config")
        if "kasiski" in data:
            _reject_unknown(KasiskiConfig, data["kasiski"], "kasiski")
            data["kasiski"] = KasiskiConfig(**data["kasiski"])
        if "genetic" in data:
            genetic = dict(data["genetic"])
            _reject_unknown(GeneticParams, genetic, "genetic")
            if "population_size" in genetic:
                genetic.setdefault("tournament_size", clamp_tournament_size(
                    GeneticParams.tournament_size, genetic["population_size"]))
            data["genetic"] = GeneticParams(**genetic)
        return cls(**data)


def _reject_unknown(cls: type, data: dict, section: str) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown {section} option(s): {', '.join(unknown)}")


def load_config(path: str | Path) -> EngineConfig:
    """Read an EngineConfig from a JSON file."""
    with open(path, encoding="utf-8") as f:
        return EngineConfig.from_dict(json.load(f))


# ============================================================================
# PIPELINE
# ============================================================================

def analyze(text: str, kasiski: KasiskiConfig | None = None) -> Analysis:
    """
    Letter profile, index of coincidence and Kasiski key-length candidates.

    Raises:
        InputTooShort: If text has fewer than 2 letters (or fewer than the
            minimum n-gram length).
    """
    profile = frequency_profile(text)
    ic = profile.index_of_coincidence()
    candidates = kasiski_examination(text, kasiski)
    return Analysis(profile, ic, candidates)


def validate_key_length(ciphertext: str, key_length: int) -> None:
    """
    Raises:
        InputTooShort: If the ciphertext has no letters.
        InvalidKeyLength: If key_length is not in 1..letter count.
    """
    n_letters = count_letters(ciphertext)
    if n_letters == 0:
        raise InputTooShort("ciphertext contains no alphabetic characters")
    if key_length < 1 or key_length > n_letters:
        raise InvalidKeyLength(
            f"key length {key_length} not in 1..{n_letters} (letters in ciphertext)"
        )


def decrypt(
    ciphertext: str,
    key_length: int,
    explicit_key: str | None = None,
    recovery: KeyRecovery | str = KeyRecovery.CHI_SQUARED,
    genetic: GeneticParams | None = None,
    rng: np.random.Generator | None = None,
    cancel: threading.Event | None = None,
    log: LogFn | None = None,
) -> DecryptionResult:
    """
    Decrypt with an explicit key, or recover a key of key_length first.

    Args:
        ciphertext: Text to decrypt.
        key_length: Length of the key to recover (ignored with explicit_key).
        explicit_key: Key supplied by the operator.
        recovery: Key recovery method when no key is supplied.
        genetic: Parameters for KeyRecovery.GENETIC.
        rng: Random generator for KeyRecovery.GENETIC.
        cancel: Cancellation signal for KeyRecovery.GENETIC.
        log: Optional progress callback.

    Returns:
        DecryptionResult; confidence is None when it cannot be determined.
    """
    if count_letters(ciphertext) == 0:
        raise InputTooShort("ciphertext contains no alphabetic characters")

    if explicit_key is not None:
        key = normalize_key(explicit_key)
    else:
        validate_key_length(ciphertext, key_length)
        recovery = KeyRecovery(recovery)
        if recovery is KeyRecovery.GENETIC:
            key = genetic_key_search(
                ciphertext, key_length, genetic, rng=rng, cancel=cancel, log=log,
            ).key
        else:
            key = recover_key(ciphertext, key_length, scorer=recovery.value)
        if log is not None:
            log(f"Recovered key ({recovery.value}): {key}")

    plaintext = vigenere_decrypt(ciphertext, key)
    try:
        confidence = confidence_score(plaintext)
    except UndeterminedConfidence as e:
        if log is not None:
            log(f"Confidence undetermined: {e}")
        confidence = None
    return DecryptionResult(key, plaintext, confidence)


def crack(
    ciphertext: str,
    config: EngineConfig | None = None,
    explicit_key: str | None = None,
    explicit_length: int | None = None,
    rng: np.random.Generator | None = None,
    cancel: threading.Event | None = None,
    log: LogFn | None = None,
) -> CrackResult:
    """
    Run the whole pipeline: analyze, estimate the key length, recover the
    key, decrypt and score.

    With an explicit key the key length is not estimated or checked
    against the text: the explicit length is reported if given, the key's
    own length otherwise. IC and candidates are then best effort and come
    back as None and [] when the text is too short for them.
    """
    if config is None:
        config = EngineConfig()

    if explicit_key is not None:
        key_length = explicit_length
        if key_length is None:
            key_length = len(normalize_key(explicit_key))
        try:
            _, ic, candidates = analyze(ciphertext, config.kasiski)
        except InputTooShort:
            ic, candidates = None, []
    else:
        profile, ic, candidates = analyze(ciphertext, config.kasiski)
        if log is not None:
            log(f"Letters: {profile.total}  IC: {ic:.4f}")
            log(f"Kasiski candidates: {[c.length for c in candidates]}")
        key_length = estimate_key_length(
            config.strategies, candidates, ciphertext,
            explicit_length=explicit_length,
            frequency_weight=config.frequency_weight,
            log=log,
        )
        validate_key_length(ciphertext, key_length)
    if log is not None:
        log(f"Key length: {key_length}")

    result = decrypt(
        ciphertext, key_length, explicit_key,
        recovery=config.recovery, genetic=config.genetic,
        rng=rng, cancel=cancel, log=log,
    )
    return CrackResult(key_length, result.key, result.plaintext, result.confidence,
                       ic, candidates)
