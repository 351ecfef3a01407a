# -*- coding: utf-8 -*-
"""EIP-4361 line grammar: literal prefixes and line classification.

The parser, the line-break analyzer and the field replacer all locate
structure through these helpers, so a prefix is defined in exactly one place.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Tuple

from core.keys import FieldKeys as F

HEADER_SUFFIX = " wants you to sign in with your Ethereum account:"
HEADER_RE = re.compile(
    r"^(?:([a-zA-Z][a-zA-Z0-9+.-]*)://)?(.+) wants you to sign in with your Ethereum account:$"
)
ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
# Looser shape used only to spot the address line when locating structure.
ADDRESS_LIKE_RE = re.compile(r"^(0x)?[a-fA-F0-9]{40}$")

RESOURCES_MARKER = "Resources:"
RESOURCE_BULLET = "- "

REQUIRED_FIELDS: Tuple[Tuple[str, str], ...] = (
    (F.URI, "URI: "),
    (F.VERSION, "Version: "),
    (F.CHAIN_ID, "Chain ID: "),
    (F.NONCE, "Nonce: "),
    (F.ISSUED_AT, "Issued At: "),
)

OPTIONAL_FIELDS: Tuple[Tuple[str, str], ...] = (
    (F.EXPIRATION_TIME, "Expiration Time: "),
    (F.NOT_BEFORE, "Not Before: "),
    (F.REQUEST_ID, "Request ID: "),
)

# canonical order of every prefixed field
FIELD_ORDER: Tuple[Tuple[str, str], ...] = REQUIRED_FIELDS + OPTIONAL_FIELDS
FIELD_PREFIXES = {name: prefix for name, prefix in FIELD_ORDER}

LABELS = {
    F.URI: "URI",
    F.VERSION: "Version",
    F.CHAIN_ID: "Chain ID",
    F.NONCE: "Nonce",
    F.ISSUED_AT: "Issued At",
    F.EXPIRATION_TIME: "Expiration Time",
    F.NOT_BEFORE: "Not Before",
    F.REQUEST_ID: "Request ID",
    F.RESOURCES: "Resources",
}


class LineKind(str, Enum):
    BLANK = "blank"
    HEADER = "header"
    FIELD = "field"
    RESOURCES = "resources"
    BULLET = "bullet"
    TEXT = "text"


def is_blank_line(line: str) -> bool:
    return line.strip() == ""


def match_header(line: str) -> Optional[Tuple[Optional[str], str]]:
    """Return ``(scheme, domain)`` for a header line, None otherwise."""
    m = HEADER_RE.match(line)
    if not m:
        return None
    return m.group(1), m.group(2)


def field_of(line: str) -> Optional[str]:
    """Name of the prefixed field a line carries, if any."""
    for name, prefix in FIELD_ORDER:
        if line.startswith(prefix):
            return name
    return None


def is_address_slot(line: str, after_blank: bool = False) -> bool:
    """Whether the line in the address position is taken as the address.

    Directly under the header any non-field line is; after blank lines only
    something shaped like an address is, otherwise it is the statement.
    """
    if classify_line(line) in (LineKind.BLANK, LineKind.FIELD, LineKind.RESOURCES):
        return False
    return not after_blank or bool(ADDRESS_LIKE_RE.match(line.strip()))


def is_statement_line(line: str) -> bool:
    return classify_line(line) not in (LineKind.BLANK, LineKind.FIELD, LineKind.RESOURCES)


def classify_line(line: str) -> LineKind:
    if is_blank_line(line):
        return LineKind.BLANK
    if HEADER_SUFFIX in line:
        return LineKind.HEADER
    if field_of(line) is not None:
        return LineKind.FIELD
    if line.startswith(RESOURCES_MARKER):
        return LineKind.RESOURCES
    if line.startswith(RESOURCE_BULLET):
        return LineKind.BULLET
    return LineKind.TEXT


def order_of(name: str) -> int:
    for i, (field_name, _) in enumerate(FIELD_ORDER):
        if field_name == name:
            return i
    return -1
