# -*- coding: utf-8 -*-
"""EIP-55 address checksum.

One routine for every call site (full regeneration and targeted replace):
keccak-256 over the lowercase hex, letter case taken from the hash nibbles.
"""

from __future__ import annotations

from typing import Optional

from eth_utils import is_checksum_address, to_checksum_address

from core.types import AddressValidation
from domain.grammar import ADDRESS_RE


def classify_address(address: str) -> AddressValidation:
    if not ADDRESS_RE.match(address or ""):
        return AddressValidation(is_valid=False, is_checksum=False, format="lowercase")

    hex_part = address[2:]
    has_upper = any(c in "ABCDEF" for c in hex_part)
    has_lower = any(c in "abcdef" for c in hex_part)
    if has_upper and has_lower:
        fmt = "checksum" if is_checksum_address(address) else "mixed"
    elif has_upper:
        fmt = "uppercase"
    else:
        fmt = "lowercase"
    return AddressValidation(is_valid=True, is_checksum=fmt == "checksum", format=fmt)


def checksum_address(address: str) -> Optional[str]:
    """EIP-55 form of a well-formed address, None otherwise."""
    if not ADDRESS_RE.match(address or ""):
        return None
    return to_checksum_address(address)


def repair_address(address: Optional[str]) -> Optional[str]:
    """Repair small formatting slips and return the checksummed address.

    Handles surrounding whitespace, a missing ``0x`` and an upper-case ``0X``.
    Anything else is too malformed to repair.
    """
    if not address:
        return None
    candidate = address.strip()
    if candidate[:2] in ("0X", "0x"):
        candidate = "0x" + candidate[2:]
    elif len(candidate) == 40:
        candidate = "0x" + candidate
    return checksum_address(candidate)
