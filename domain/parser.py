# -*- coding: utf-8 -*-
"""EIP-4361 message parser and canonical generator.

The grammar is line-positional. Scanning is an explicit state machine:

    HEADER -> ADDRESS -> STATEMENT -> REQUIRED_FIELDS -> OPTIONAL_FIELDS
           -> RESOURCES -> DONE

Blank lines between sections are skipped here; whether their count is right
is judged by ``core.validators.line_breaks``. A missing field produces a
parse issue but never stops the scan, so one bad line does not hide the rest
of the message.

The prefixed fields are looked up anywhere in the field block (the lines
before ``Resources:``) and captured at their actual line. A field found
after one it should precede is reported as ``FIELD_OUT_OF_ORDER``; any other
line left in the block is ``UNEXPECTED_LINE``.
"""

from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Optional, Set, Union

from core.keys import Codes, FieldKeys as F
from core.types import Issue, IssueType, ParsedMessage, Severity, SiweMessageFields
from domain.grammar import (
    ADDRESS_LIKE_RE,
    LABELS,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    RESOURCE_BULLET,
    RESOURCES_MARKER,
    LineKind,
    classify_line,
    field_of,
    is_address_slot,
    is_blank_line,
    is_statement_line,
    match_header,
    order_of,
)

log = logging.getLogger(__name__)

HEADER_HINT = 'Invalid header format. Expected: "[scheme://]domain wants you to sign in with your Ethereum account:"'


class ParseState(str, Enum):
    HEADER = "header"
    ADDRESS = "address"
    STATEMENT = "statement"
    REQUIRED_FIELDS = "required_fields"
    OPTIONAL_FIELDS = "optional_fields"
    RESOURCES = "resources"
    DONE = "done"


def _parse_issue(field: str, line: int, message: str, code: str, fixable: bool = False) -> Issue:
    return Issue(
        code=code,
        message=message,
        type=IssueType.FORMAT,
        field=field,
        line=line,
        column=1,
        severity=Severity.ERROR,
        fixable=fixable,
    )


class _Cursor:
    """Mutable scan state for a single parse call."""

    def __init__(self, lines: List[str]):
        self.lines = lines
        self.index = 0
        self.values: Dict[str, object] = {}
        self.positions: Dict[str, int] = {}
        self.statement_lines: List[int] = []
        self.resource_lines: List[int] = []
        self.errors: List[Issue] = []
        # field block as a half-open line range, and the lines already taken
        self.block = (0, 0)
        self.claimed: Set[int] = set()

    # --- navigation ---------------------------------------------------------

    def current(self) -> Optional[str]:
        if self.index < len(self.lines):
            return self.lines[self.index]
        return None

    def next_content(self) -> int:
        """Index of the next non-blank line (may be past the end)."""
        i = self.index
        while i < len(self.lines) and is_blank_line(self.lines[i]):
            i += 1
        return i

    def line_no(self, index: Optional[int] = None) -> int:
        i = self.index if index is None else index
        return min(i + 1, max(len(self.lines), 1))

    def missing(self, field: str, code: str, index: Optional[int] = None, message: Optional[str] = None) -> None:
        line = self.line_no(index)
        self.positions.setdefault(field, line)
        self.errors.append(_parse_issue(field, line, message or f"Missing required field: {field}", code))

    # --- states -------------------------------------------------------------

    def header(self) -> ParseState:
        line = self.current()
        self.positions[F.DOMAIN] = 1
        matched = match_header(line.rstrip()) if line is not None else None
        if matched:
            scheme, domain = matched
            self.values[F.DOMAIN] = domain
            if scheme:
                self.values[F.SCHEME] = scheme
            self.index += 1
            return ParseState.ADDRESS

        self.errors.append(_parse_issue(F.DOMAIN, 1, HEADER_HINT, Codes.INVALID_HEADER))
        # Keep a first line that is really the address or a field for later states.
        if line is not None and classify_line(line) in (LineKind.TEXT, LineKind.BULLET, LineKind.HEADER):
            if not ADDRESS_LIKE_RE.match(line.strip()):
                self.index += 1
        return ParseState.ADDRESS

    def address(self) -> ParseState:
        expected = self.index
        target = self.next_content()
        line = self.lines[target] if target < len(self.lines) else None

        if line is None or not is_address_slot(line, after_blank=target > expected):
            self.missing(F.ADDRESS, Codes.MISSING_ADDRESS, expected, "Missing Ethereum address")
            return ParseState.STATEMENT

        self.values[F.ADDRESS] = line.strip()
        self.positions[F.ADDRESS] = target + 1
        self.index = target + 1
        return ParseState.STATEMENT

    def statement(self) -> ParseState:
        # a statement spanning several lines is kept whole; the field
        # validators report the line breaks
        target = self.next_content()
        end = target
        while end < len(self.lines) and is_statement_line(self.lines[end]):
            end += 1
        if end > target:
            self.values[F.STATEMENT] = "\n".join(self.lines[target:end])
            self.positions[F.STATEMENT] = target + 1
            self.statement_lines = list(range(target + 1, end + 1))
            self.index = end
        return ParseState.REQUIRED_FIELDS

    # --- field block ----------------------------------------------------------

    def _open_block(self) -> None:
        start = self.next_content()
        end = start
        while end < len(self.lines) and self.lines[end].rstrip() != RESOURCES_MARKER:
            end += 1
        self.block = (start, end)
        self.index = start

    def _claim(self, prefix: str) -> Optional[int]:
        """First unclaimed line of the field block carrying ``prefix``."""
        start, end = self.block
        for i in range(start, end):
            if i not in self.claimed and self.lines[i].startswith(prefix):
                self.claimed.add(i)
                return i
        return None

    def required_fields(self) -> ParseState:
        self._open_block()
        expected = self.block[0]
        for name, prefix in REQUIRED_FIELDS:
            found = self._claim(prefix)
            if found is None:
                self.missing(name, f"MISSING_{name.upper()}", expected)
                continue
            self.values[name] = self.lines[found][len(prefix):]
            self.positions[name] = found + 1
            expected = max(expected, found + 1)
        return ParseState.OPTIONAL_FIELDS

    def optional_fields(self) -> ParseState:
        start, end = self.block
        for name, prefix in OPTIONAL_FIELDS:
            found = self._claim(prefix)
            if found is None:
                self.positions[name] = self.line_no(end)
                continue
            self.values[name] = self.lines[found][len(prefix):]
            self.positions[name] = found + 1

        highest = -1
        for i in range(start, end):
            line = self.lines[i]
            if is_blank_line(line):
                continue
            if i not in self.claimed:
                self.errors.append(_parse_issue(
                    field_of(line) or F.UNKNOWN, i + 1,
                    f"Unexpected line in field block: {line.strip()!r}", Codes.UNEXPECTED_LINE,
                ))
                continue
            name = field_of(line)
            rank = order_of(name)
            if rank < highest:
                self.errors.append(_parse_issue(
                    name, i + 1, f"{LABELS[name]} field is out of order", Codes.FIELD_OUT_OF_ORDER,
                    fixable=True,
                ))
            highest = max(highest, rank)

        self.index = end
        return ParseState.RESOURCES

    def resources(self) -> ParseState:
        target = self.next_content()
        if target >= len(self.lines) or self.lines[target].rstrip() != RESOURCES_MARKER:
            self.positions[F.RESOURCES] = self.line_no()
            return ParseState.DONE

        self.positions[F.RESOURCES] = target + 1
        self.index = target + 1
        collected: List[str] = []
        while self.index < len(self.lines) and self.lines[self.index].startswith(RESOURCE_BULLET):
            collected.append(self.lines[self.index][len(RESOURCE_BULLET):])
            self.resource_lines.append(self.index + 1)
            self.index += 1
        if collected:
            self.values[F.RESOURCES] = tuple(collected)
        return ParseState.DONE


def parse_message(message: str) -> ParsedMessage:
    """Parse raw text into a ParsedMessage. Never raises for malformed input."""
    lines = message.split("\n")
    cursor = _Cursor(lines)
    handlers = {
        ParseState.HEADER: cursor.header,
        ParseState.ADDRESS: cursor.address,
        ParseState.STATEMENT: cursor.statement,
        ParseState.REQUIRED_FIELDS: cursor.required_fields,
        ParseState.OPTIONAL_FIELDS: cursor.optional_fields,
        ParseState.RESOURCES: cursor.resources,
    }

    state = ParseState.HEADER
    try:
        while state is not ParseState.DONE:
            state = handlers[state]()
    except Exception as exc:
        log.debug("parser failed in state %s", state.value, exc_info=True)
        cursor.errors.append(
            _parse_issue(F.UNKNOWN, cursor.line_no(), f"Parse error: {exc}", Codes.PARSE_ERROR)
        )

    fields = SiweMessageFields(**cursor.values)
    return ParsedMessage(
        fields=fields,
        lines=tuple(lines),
        raw_message=message,
        is_valid=not cursor.errors and fields.has_required(),
        parse_errors=tuple(cursor.errors),
        positions=MappingProxyType(dict(cursor.positions)),
        statement_lines=tuple(cursor.statement_lines),
        resource_lines=tuple(cursor.resource_lines),
    )


def generate_message(fields: SiweMessageFields) -> str:
    """Render fields as canonical EIP-4361 text."""
    lines: List[str] = []

    if fields.domain:
        prefix = f"{fields.scheme}://" if fields.scheme else ""
        lines.append(f"{prefix}{fields.domain} wants you to sign in with your Ethereum account:")

    if fields.address:
        lines.append(fields.address)

    # one blank line around a statement, two when there is none
    if fields.statement:
        lines.extend(["", fields.statement, ""])
    else:
        lines.extend(["", ""])

    for name, prefix in REQUIRED_FIELDS + OPTIONAL_FIELDS:
        value = fields.get(name)
        if value:
            lines.append(f"{prefix}{value}")

    if fields.resources:
        lines.append(RESOURCES_MARKER)
        lines.extend(f"{RESOURCE_BULLET}{res}" for res in fields.resources)

    return "\n".join(lines)


def get_field_line(source: Union[ParsedMessage, str], field_name: str) -> int:
    """1-based line of a field in the original text.

    For an absent field this is the line where the field was expected.
    Fields the scan never reached fall back to line 1.
    """
    parsed = parse_message(source) if isinstance(source, str) else source
    return parsed.positions.get(field_name, 1)
