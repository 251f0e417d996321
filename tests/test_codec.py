from __future__ import annotations

import pytest

from conftest import KEY, PASSAGE
from vigenere import InvalidKeyLength, normalize_key, vigenere_decrypt, vigenere_encrypt


def test_textbook_example():
    assert vigenere_decrypt("LXFOPVEFRNHR", "LEMON") == "ATTACKATDAWN"
    assert vigenere_encrypt("ATTACKATDAWN", "LEMON") == "LXFOPVEFRNHR"


@pytest.mark.parametrize("key", ["LEMON", "a", "Zebra", "QWERTYUIOPASDFG"])
def test_round_trip_preserves_case_and_punctuation(key):
    cipher = vigenere_encrypt(PASSAGE, key)
    assert vigenere_decrypt(cipher, key) == PASSAGE


def test_non_letters_pass_through_at_same_positions():
    plain = "Hi, there! 42 times."
    cipher = vigenere_encrypt(plain, KEY)
    assert len(cipher) == len(plain)
    for p, c in zip(plain, cipher):
        if not p.isalpha():
            assert c == p
        else:
            assert p.isupper() == c.isupper()


def test_key_position_follows_absolute_index():
    # the space consumes key letter "B", so the second "a" is shifted by "A"
    assert vigenere_encrypt("a a", "AB") == "a a"
    assert vigenere_encrypt("aa", "AB") == "ab"


def test_key_case_does_not_matter():
    assert vigenere_decrypt("LXFOPVEFRNHR", "lemon") == "ATTACKATDAWN"


def test_decrypt_is_pure():
    first = vigenere_decrypt("Lxfo pvef rnhr!", KEY)
    vigenere_decrypt(PASSAGE, "OTHER")
    assert vigenere_decrypt("Lxfo pvef rnhr!", KEY) == first


@pytest.mark.parametrize("key", ["", "123", "--"])
def test_key_without_letters_is_rejected(key):
    with pytest.raises(InvalidKeyLength):
        normalize_key(key)
    with pytest.raises(InvalidKeyLength):
        vigenere_decrypt("ABC", key)


def test_normalize_key_strips_non_letters():
    assert normalize_key("le-mon 1") == "LEMON"
