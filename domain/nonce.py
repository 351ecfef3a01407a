# -*- coding: utf-8 -*-
"""Nonce classification and generation.

Classification is heuristic (character statistics and known patterns), not a
proof of randomness. Generation draws from ``secrets`` and only returns values
that pass every classifier used by the validators.
"""

from __future__ import annotations

import re
import secrets
import string

from core.types import NonceValidation

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
MIN_LENGTH = 8
SECURE_MIN_LENGTH = 12
DEFAULT_LENGTH = 16

WEAK_ENTROPY = 0.3
LOW_ENTROPY = 0.5

_ALNUM_RE = re.compile(r"^[a-zA-Z0-9]+$")
_SEQUENTIAL_RE = re.compile(r"0123456789|abcdefgh|12345678", re.IGNORECASE)
_PREDICTABLE_SEQUENCES = ("01234567890", "abcdefghijk", "12345678", "aaaaaaaa", "00000000")
_WEAK_PATTERNS = (
    re.compile(r"^(test|demo|example)", re.IGNORECASE),
    re.compile(r"^(123|abc|000)"),
    re.compile(r"^(.)\1{4,}"),
    re.compile(r"^\d+$"),
    re.compile(r"^[a-z]+$", re.IGNORECASE),
)


def entropy(nonce: str) -> float:
    """Distinct characters over length (0.0 for an empty value)."""
    if not nonce:
        return 0.0
    return len(set(nonce)) / len(nonce)


def is_well_formed(nonce: str) -> bool:
    return bool(_ALNUM_RE.match(nonce)) and len(nonce) >= MIN_LENGTH


def classify(nonce: str) -> NonceValidation:
    value = entropy(nonce)
    if value < WEAK_ENTROPY:
        pattern = "weak"
    elif _SEQUENTIAL_RE.search(nonce):
        pattern = "sequential"
    elif value < LOW_ENTROPY:
        pattern = "predictable"
    else:
        pattern = "random"
    return NonceValidation(is_valid=is_well_formed(nonce), length=len(nonce), entropy=value, pattern=pattern)


def is_predictable(nonce: str) -> bool:
    lowered = nonce.lower()
    return any(seq in lowered for seq in _PREDICTABLE_SEQUENCES)


def has_weak_pattern(nonce: str) -> bool:
    return any(p.search(nonce) for p in _WEAK_PATTERNS)


def character_classes(nonce: str) -> int:
    checks = (
        any(c.islower() and c.isascii() for c in nonce),
        any(c.isupper() and c.isascii() for c in nonce),
        any(c.isdigit() for c in nonce),
        any(not c.isalnum() or not c.isascii() for c in nonce),
    )
    return sum(1 for hit in checks if hit)


def is_secure(nonce: str) -> bool:
    """True when no nonce rule (format or security) would flag the value."""
    return (
        is_well_formed(nonce)
        and len(nonce) >= SECURE_MIN_LENGTH
        and classify(nonce).pattern == "random"
        and not is_predictable(nonce)
        and not has_weak_pattern(nonce)
        and character_classes(nonce) >= 2
    )


def generate_nonce(length: int = DEFAULT_LENGTH) -> str:
    length = max(int(length), SECURE_MIN_LENGTH)
    while True:
        candidate = "".join(secrets.choice(ALPHABET) for _ in range(length))
        if is_secure(candidate):
            return candidate


def extend_nonce(nonce: str, length: int = SECURE_MIN_LENGTH) -> str:
    """Pad ``nonce`` with random characters up to a secure length.

    Falls back to a fresh nonce when the existing prefix cannot be kept
    (non-alphanumeric content, weak leading pattern, ...).
    """
    target = max(length, len(nonce) + 4)
    for _ in range(8):
        candidate = nonce + "".join(secrets.choice(ALPHABET) for _ in range(target - len(nonce)))
        if is_secure(candidate):
            return candidate
    return generate_nonce(max(target, DEFAULT_LENGTH))
