# -*- coding: utf-8 -*-
"""FieldReplacer

Minimal-diff edits on raw message text. Unlike the AutoFixer, which rebuilds
the whole message, every operation here touches only the line(s) of one
field: all other lines come back byte-identical.

Strategies by field shape:
- domain: header line rewrite (scheme kept)
- address: the address line, inserted under the header when absent
- statement: the slot between address and fields (replace, insert, remove)
- prefixed fields: replace the prefixed line, or insert it in canonical order
- resources: bullet list operations
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from app import config
from core.keys import Codes, FieldKeys as F
from core.types import Issue
from domain.clock import Clock, utc_now
from domain.fixes import (
    coerce_timestamp,
    collapse_statement,
    default_expiration,
    extend_nonce,
    fresh_nonce,
    now_timestamp,
    repair_address,
    upgrade_to_https,
)
from domain.grammar import (
    FIELD_ORDER,
    FIELD_PREFIXES,
    HEADER_SUFFIX,
    OPTIONAL_FIELDS,
    RESOURCE_BULLET,
    RESOURCES_MARKER,
    is_blank_line,
    match_header,
    order_of,
)
from domain.nonce import is_secure
from domain.parser import parse_message

log = logging.getLogger(__name__)

OPTIONAL_NAMES = tuple(name for name, _ in OPTIONAL_FIELDS)


# --- line helpers -------------------------------------------------------------------

def _find_prefixed(lines: List[str], prefix: str) -> Optional[int]:
    for i, line in enumerate(lines):
        if line.startswith(prefix):
            return i
    return None


def _find_header(lines: List[str]) -> Optional[int]:
    for i, line in enumerate(lines):
        if match_header(line.rstrip()):
            return i
    return None


def _find_resources(lines: List[str]) -> Optional[int]:
    for i, line in enumerate(lines):
        if line.rstrip() == RESOURCES_MARKER:
            return i
    return None


def _insert_in_order(lines: List[str], name: str, new_line: str) -> None:
    """Insert a prefixed field line keeping canonical field order."""
    position = order_of(name)
    for _, prefix in reversed(FIELD_ORDER[:position]):
        idx = _find_prefixed(lines, prefix)
        if idx is not None:
            lines.insert(idx + 1, new_line)
            return
    for _, prefix in FIELD_ORDER[position + 1:]:
        idx = _find_prefixed(lines, prefix)
        if idx is not None:
            lines.insert(idx, new_line)
            return
    idx = _find_resources(lines)
    if idx is not None:
        lines.insert(idx, new_line)
        return
    lines.append(new_line)


class FieldReplacer:
    def __init__(self, clock: Clock = utc_now, nonce_length: int = config.NONCE_LENGTH):
        self.clock = clock
        self.nonce_length = nonce_length

    # --- per-shape strategies ---

    def _replace_domain(self, lines: List[str], value: str) -> None:
        idx = _find_header(lines)
        if idx is None:
            log.debug("no header line to rewrite")
            return
        scheme, _ = match_header(lines[idx].rstrip())
        prefix = f"{scheme}://" if scheme else ""
        lines[idx] = f"{prefix}{value}{HEADER_SUFFIX}"

    def _replace_address(self, lines: List[str], value: str) -> None:
        parsed = parse_message("\n".join(lines))
        if parsed.fields.address:
            lines[parsed.positions[F.ADDRESS] - 1] = value
            return
        header = _find_header(lines)
        lines.insert(0 if header is None else header + 1, value)

    def _replace_statement(self, lines: List[str], value: Optional[str]) -> None:
        parsed = parse_message("\n".join(lines))
        if parsed.fields.statement:
            # a statement may span several lines; they are replaced as one
            first, last = parsed.statement_lines[0] - 1, parsed.statement_lines[-1]
            # address, "", statement, "" -> address, "", ""
            lines[first:last] = [value] if value else []
            return
        if not value:
            return

        anchor = parsed.positions.get(F.ADDRESS) if parsed.fields.address else None
        if anchor is None:
            header = _find_header(lines)
            anchor = None if header is None else header + 1
        if anchor is None:
            lines.insert(0, value)
            return
        # address, "", "" -> address, "", statement, ""
        if (
            anchor + 1 < len(lines)
            and is_blank_line(lines[anchor])
            and is_blank_line(lines[anchor + 1])
        ):
            lines.insert(anchor + 1, value)
        else:
            lines[anchor:anchor] = ["", value, ""]

    def _replace_prefixed(self, lines: List[str], name: str, value: str) -> None:
        prefix = FIELD_PREFIXES[name]
        idx = _find_prefixed(lines, prefix)
        if idx is not None:
            lines[idx] = prefix + value
        else:
            _insert_in_order(lines, name, prefix + value)

    # --- public API ---

    def replace_field(self, message: str, field_name: str, value: str) -> str:
        lines = message.split("\n")
        if field_name == F.DOMAIN:
            self._replace_domain(lines, value)
        elif field_name == F.ADDRESS:
            self._replace_address(lines, value)
        elif field_name == F.STATEMENT:
            self._replace_statement(lines, value)
        elif field_name in FIELD_PREFIXES:
            self._replace_prefixed(lines, field_name, value)
        else:
            log.debug("replace_field: unsupported field %r", field_name)
            return message
        return "\n".join(lines)

    def remove_field(self, message: str, field_name: str) -> str:
        """Remove an optional field (statement, optional fields, resources)."""
        if field_name == F.STATEMENT:
            lines = message.split("\n")
            self._replace_statement(lines, None)
            return "\n".join(lines)
        if field_name == F.RESOURCES:
            return self.remove_resources(message)
        if field_name not in OPTIONAL_NAMES:
            return message
        prefix = FIELD_PREFIXES[field_name]
        return "\n".join(line for line in message.split("\n") if not line.startswith(prefix))

    def add_resource(self, message: str, resource: str) -> str:
        lines = message.split("\n")
        marker = _find_resources(lines)
        if marker is None:
            while lines and lines[-1] == "":
                lines.pop()
            lines.extend([RESOURCES_MARKER, f"{RESOURCE_BULLET}{resource}"])
            return "\n".join(lines)
        end = marker + 1
        while end < len(lines) and lines[end].startswith(RESOURCE_BULLET):
            end += 1
        lines.insert(end, f"{RESOURCE_BULLET}{resource}")
        return "\n".join(lines)

    def remove_resource(self, message: str, resource: str) -> str:
        """Remove one bullet; the ``Resources:`` line goes with the last bullet."""
        lines = message.split("\n")
        marker = _find_resources(lines)
        if marker is None:
            return message
        end = marker + 1
        while end < len(lines) and lines[end].startswith(RESOURCE_BULLET):
            end += 1
        bullets = lines[marker + 1:end]
        target = f"{RESOURCE_BULLET}{resource}"
        if target not in bullets:
            return message
        bullets.remove(target)
        block = [lines[marker], *bullets] if bullets else []
        return "\n".join(lines[:marker] + block + lines[end:])

    def remove_resources(self, message: str) -> str:
        out: List[str] = []
        in_block = False
        for line in message.split("\n"):
            if line.rstrip() == RESOURCES_MARKER:
                in_block = True
                continue
            if in_block and line.startswith(RESOURCE_BULLET):
                continue
            in_block = False
            out.append(line)
        return "\n".join(out)

    # --- targeted fixes ---

    def apply_field_fix(self, message: str, issue: Issue, now: Optional[datetime] = None) -> Optional[str]:
        """Targeted edit for one diagnostic, or None when no such edit exists."""
        handler = self._FIX_HANDLERS.get(issue.code)
        if handler is None:
            return None
        return handler(self, message, issue, now or self.clock())

    def _fix_address(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        fields = parse_message(message).fields
        repaired = repair_address(fields.address)
        return self.replace_field(message, F.ADDRESS, repaired) if repaired else None

    def _fix_version(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        return self.replace_field(message, F.VERSION, "1")

    def _fix_nonce(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        current = parse_message(message).fields.nonce
        return self.replace_field(message, F.NONCE, fresh_nonce(current, self.nonce_length))

    def _fix_short_nonce(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        current = parse_message(message).fields.nonce
        if current and is_secure(current):
            return message
        value = extend_nonce(current) if current else fresh_nonce(None, self.nonce_length)
        return self.replace_field(message, F.NONCE, value)

    def _fix_uri(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        secure = upgrade_to_https(parse_message(message).fields.uri)
        return self.replace_field(message, F.URI, secure) if secure else None

    def _fix_statement(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        statement = collapse_statement(parse_message(message).fields.statement)
        return self.replace_field(message, F.STATEMENT, statement) if statement else None

    def _fix_expiration(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        fields = parse_message(message).fields
        if fields.expiration_time:
            return None
        expiration = default_expiration(fields.issued_at, now)
        return self.replace_field(message, F.EXPIRATION_TIME, expiration) if expiration else None

    def _fix_issued_at(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        return self.replace_field(message, F.ISSUED_AT, now_timestamp(now))

    def _fix_timestamp(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        value = coerce_timestamp(parse_message(message).fields.get(issue.field))
        return self.replace_field(message, issue.field, value) if value else None

    def _fix_resources(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        parsed = parse_message(message)
        lines = message.split("\n")
        changed = False
        for line_no in parsed.resource_lines:
            value = lines[line_no - 1][len(RESOURCE_BULLET):]
            secure = upgrade_to_https(value)
            if secure:
                lines[line_no - 1] = f"{RESOURCE_BULLET}{secure}"
                changed = True
        return "\n".join(lines) if changed else None

    def _fix_trailing_whitespace(self, message: str, issue: Issue, now: datetime) -> Optional[str]:
        lines = message.split("\n")
        if not 1 <= issue.line <= len(lines):
            return None
        lines[issue.line - 1] = lines[issue.line - 1].rstrip()
        return "\n".join(lines)

    _FIX_HANDLERS: Dict[str, Callable[..., Optional[str]]] = {
        Codes.ADDRESS_NOT_CHECKSUM: _fix_address,
        Codes.ADDRESS_INVALID_CHECKSUM: _fix_address,
        Codes.ADDRESS_INVALID_FORMAT: _fix_address,
        Codes.VERSION_REQUIRED: _fix_version,
        Codes.VERSION_INVALID: _fix_version,
        Codes.NONCE_REQUIRED: _fix_nonce,
        Codes.SECURITY_NO_NONCE: _fix_nonce,
        Codes.NONCE_WEAK_ENTROPY: _fix_nonce,
        Codes.NONCE_SEQUENTIAL: _fix_nonce,
        Codes.SECURITY_LOW_NONCE_ENTROPY: _fix_nonce,
        Codes.SECURITY_PREDICTABLE_NONCE: _fix_nonce,
        Codes.SECURITY_WEAK_NONCE_PATTERN: _fix_nonce,
        Codes.SECURITY_LOW_NONCE_COMPLEXITY: _fix_nonce,
        Codes.NONCE_TOO_SHORT: _fix_short_nonce,
        Codes.SECURITY_SHORT_NONCE: _fix_short_nonce,
        Codes.URI_INSECURE_SCHEME: _fix_uri,
        Codes.STATEMENT_LINE_BREAKS: _fix_statement,
        Codes.SECURITY_NO_EXPIRATION: _fix_expiration,
        Codes.ISSUED_AT_REQUIRED: _fix_issued_at,
        Codes.ISSUED_AT_INVALID_FORMAT: _fix_timestamp,
        Codes.EXPIRATION_TIME_INVALID_FORMAT: _fix_timestamp,
        Codes.NOT_BEFORE_INVALID_FORMAT: _fix_timestamp,
        Codes.SECURITY_INSECURE_RESOURCE: _fix_resources,
        Codes.TRAILING_WHITESPACE: _fix_trailing_whitespace,
    }
