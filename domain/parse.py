# -*- coding: utf-8 -*-
"""
domain/parse.py

Shared parsing/normalization helpers for raw field values.
Goal:
- Avoid duplicating timestamp/URI/host handling across validators and fixers.
- Be tolerant: helpers return None / invalid records instead of raising.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional, Tuple
from urllib.parse import urlsplit

from dateutil import parser as date_parser

from core.types import TimeValidation, UriValidation

RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)
URI_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):")
HOST_PORT_RE = re.compile(r"^(.+):(\d+)$")
IPV4_RE = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")

_HIERARCHICAL_SCHEMES = {"http", "https", "ws", "wss", "ftp"}


def is_blank(val: Any) -> bool:
    """True if the value should be treated as empty."""
    if val is None:
        return True
    return str(val).strip() == ""


def parse_rfc3339(value: Optional[str]) -> Optional[datetime]:
    """Parse a strict RFC 3339 timestamp into an aware datetime.

    - Offset is mandatory (``Z`` or ``+hh:mm``).
    - Fractional seconds of any length are accepted (truncated to microseconds).
    """
    if not value:
        return None
    m = RFC3339_RE.match(value)
    if not m:
        return None
    date_part, time_part, fraction, offset = m.groups()
    normalized = f"{date_part}T{time_part}"
    if fraction:
        normalized += "." + fraction[:6]
    normalized += "Z" if offset in ("Z", "z") else offset
    try:
        return date_parser.isoparse(normalized)
    except (ValueError, OverflowError):
        return None


def validate_timestamp(value: str) -> TimeValidation:
    ts = parse_rfc3339(value)
    if ts is None:
        return TimeValidation(is_valid=False, value=value, timestamp=None, timezone=None)
    tz = "UTC" if value.upper().endswith("Z") else "offset"
    return TimeValidation(is_valid=True, value=value, timestamp=ts, timezone=tz)


def format_rfc3339(moment: datetime) -> str:
    """Render as UTC with millisecond precision: ``2024-01-01T00:00:00.000Z``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return f"{moment:%Y-%m-%dT%H:%M:%S}.{moment.microsecond // 1000:03d}Z"


def coerce_timestamp(value: Optional[str]) -> Optional[str]:
    """Best-effort conversion of a loosely formatted date to RFC 3339.

    Returns None when the value cannot be understood as a date at all.
    """
    if is_blank(value):
        return None
    try:
        moment = parse_rfc3339(value.strip()) or date_parser.parse(value.strip())
        return format_rfc3339(moment)
    except (ValueError, OverflowError, TypeError):
        return None


def split_host_port(authority: str) -> Tuple[str, Optional[str]]:
    """``"example.com:3000"`` -> ``("example.com", "3000")``."""
    m = HOST_PORT_RE.match(authority)
    if m:
        return m.group(1), m.group(2)
    return authority, None


def is_ipv4(host: str) -> bool:
    m = IPV4_RE.match(host)
    if not m:
        return False
    return all(0 <= int(octet) <= 255 for octet in m.groups())


def split_uri(value: Optional[str]) -> UriValidation:
    """Split an absolute URI into its components.

    Only absolute URIs are accepted. For hierarchical web schemes an authority
    with a host is required; an empty path is reported as ``/``.
    """
    if is_blank(value) or any(ch.isspace() for ch in value):
        return UriValidation(is_valid=False)
    m = URI_SCHEME_RE.match(value)
    if not m:
        return UriValidation(is_valid=False)
    scheme = m.group(1).lower()
    try:
        parts = urlsplit(value)
        hostname = parts.hostname
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return UriValidation(is_valid=False)

    if scheme in _HIERARCHICAL_SCHEMES and not hostname:
        return UriValidation(is_valid=False)
    if not parts.netloc and not parts.path:
        return UriValidation(is_valid=False)

    path = parts.path
    if parts.netloc and not path:
        path = "/"
    return UriValidation(
        is_valid=True,
        scheme=scheme,
        authority=parts.netloc or None,
        path=path,
        query=parts.query or None,
        fragment=parts.fragment or None,
    )


def uri_host_port(value: str) -> Tuple[Optional[str], Optional[str]]:
    """Hostname and explicit port of a URI, (None, None) when unparseable."""
    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError:
        return None, None
    return parts.hostname, (str(port) if port is not None else None)
