# -*- coding: utf-8 -*-
"""
domain/fixes.py

Pure remediation helpers shared by the auto-fixer (full regeneration) and
the field replacer (targeted edits). Every helper either returns a value that
passes the rule it repairs, or None when no such value can be produced.
"""

from __future__ import annotations

import re
from dataclasses import fields as dc_fields, replace
from datetime import datetime, timedelta
from typing import Optional

from core.types import SiweMessageFields
from domain.checksum import repair_address
from domain.clock import resolve_now
from domain.nonce import extend_nonce, generate_nonce, is_secure
from domain.parse import coerce_timestamp, format_rfc3339, parse_rfc3339

DEFAULT_EXPIRATION = timedelta(minutes=10)

_LINE_BREAKS_RE = re.compile(r"[\r\n]+")

__all__ = [
    "collapse_statement",
    "coerce_timestamp",
    "default_expiration",
    "extend_nonce",
    "fresh_nonce",
    "now_timestamp",
    "repair_address",
    "strip_values",
    "upgrade_to_https",
]


def collapse_statement(statement: Optional[str]) -> Optional[str]:
    if not statement:
        return None
    return _LINE_BREAKS_RE.sub(" ", statement).strip() or None


def upgrade_to_https(uri: Optional[str]) -> Optional[str]:
    if uri and uri.startswith("http://"):
        return "https://" + uri[len("http://"):]
    return None


def now_timestamp(now: Optional[datetime] = None) -> str:
    """Current time in canonical form (milliseconds, never ahead of ``now``)."""
    return format_rfc3339(resolve_now(now))


def default_expiration(issued_at: Optional[str], now: Optional[datetime] = None,
                       lifetime: timedelta = DEFAULT_EXPIRATION) -> Optional[str]:
    """Expiration ``lifetime`` after issuance, or after ``now`` when issuance is unreadable.

    None when the result falls outside the representable date range.
    """
    anchor = parse_rfc3339(issued_at) or resolve_now(now)
    try:
        return format_rfc3339(anchor + lifetime)
    except OverflowError:
        return None


def fresh_nonce(current: Optional[str] = None, length: int = 16) -> str:
    """Keep ``current`` when it already passes every nonce rule."""
    if current and is_secure(current):
        return current
    return generate_nonce(length)


def strip_values(fields: SiweMessageFields) -> SiweMessageFields:
    """Trim surrounding whitespace from every value; empty values become None."""
    changes = {}
    for f in dc_fields(fields):
        value = getattr(fields, f.name)
        if isinstance(value, str):
            changes[f.name] = value.strip() or None
        elif isinstance(value, tuple):
            changes[f.name] = tuple(v.strip() for v in value if v.strip())
    return replace(fields, **changes)
