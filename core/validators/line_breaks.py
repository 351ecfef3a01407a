# -*- coding: utf-8 -*-
"""Blank-line and whitespace validation (pure).

Works on raw lines, independent of field values. Structure is located with
the same grammar helpers the parser uses; counts are then compared with the
canonical layout:

    header
    address
    <blank>
    statement        (optional)
    <blank>          (a second blank replaces the statement when absent)
    URI / Version / Chain ID / Nonce / Issued At
    Expiration Time / Not Before / Request ID / Resources
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from core.keys import Codes, FieldKeys as F
from core.types import Issue, Severity
from domain.grammar import (
    ADDRESS_LIKE_RE,
    LABELS,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    LineKind,
    classify_line,
    field_of,
    is_address_slot,
    is_blank_line,
    is_statement_line,
)

MAX_BLANK_RUN = 2


@dataclass
class MessageLayout:
    """0-based indices of the structural lines of a message."""

    header: Optional[int] = None
    address: Optional[int] = None
    statement: Optional[int] = None
    statement_end: Optional[int] = None
    fields: Dict[str, int] = field(default_factory=dict)
    resources: Optional[int] = None

    def before_fields(self) -> bool:
        return not self.fields and self.resources is None


def _address_slot(lines: List[str], index: int, layout: MessageLayout) -> bool:
    """Same rule the parser applies to the first line after the header."""
    if layout.header is None:
        return bool(ADDRESS_LIKE_RE.match(lines[index].strip()))
    if index <= layout.header:
        return False
    return is_address_slot(lines[index], after_blank=index > layout.header + 1)


def locate_layout(lines: List[str]) -> MessageLayout:
    layout = MessageLayout()
    for index, line in enumerate(lines):
        kind = classify_line(line)
        if kind is LineKind.BLANK:
            continue
        if kind is LineKind.HEADER and layout.header is None:
            layout.header = index
        elif (
            layout.address is None
            and layout.statement is None
            and layout.before_fields()
            and _address_slot(lines, index, layout)
        ):
            layout.address = index
        elif kind is LineKind.FIELD:
            layout.fields.setdefault(field_of(line), index)
        elif kind is LineKind.RESOURCES and layout.resources is None:
            layout.resources = index
        elif (
            layout.statement_end is not None
            and index == layout.statement_end + 1
            and layout.before_fields()
        ):
            layout.statement_end = index
        elif (
            is_statement_line(line)
            and layout.statement is None
            and layout.header is not None
            and index > (layout.address if layout.address is not None else layout.header)
            and layout.before_fields()
        ):
            layout.statement = layout.statement_end = index
    return layout


def blanks_before(lines: List[str], index: int) -> int:
    count = 0
    i = index - 1
    while i >= 0 and is_blank_line(lines[i]):
        count += 1
        i -= 1
    return count


def _structure(code: str, line: int, message: str, suggestion: str) -> Issue:
    return Issue(
        code=code,
        message=message,
        field=F.STRUCTURE,
        line=line,
        severity=Severity.ERROR,
        fixable=True,
        suggestion=suggestion,
    )


# --- checks -------------------------------------------------------------------------

def check_extra_line_breaks(lines: List[str], layout: MessageLayout) -> List[Issue]:
    issues: List[Issue] = []

    if layout.header is not None and layout.address is not None and layout.address > layout.header + 1:
        between = lines[layout.header + 1:layout.address]
        if any(is_blank_line(line) for line in between):
            issues.append(_structure(
                Codes.EXTRA_LINE_BREAK_HEADER_ADDRESS, layout.header + 2,
                "Extra empty line between header and address",
                "Remove extra empty lines between header and Ethereum address",
            ))

    if layout.statement is not None and layout.address is not None:
        found = blanks_before(lines, layout.statement)
        if found > 1:
            issues.append(_structure(
                Codes.EXTRA_LINE_BREAKS_BEFORE_STATEMENT, layout.statement - found + 2,
                f"Extra empty lines before statement (found {found}, expected 1)",
                "Keep exactly one empty line between the address and the statement",
            ))

    uri = layout.fields.get(F.URI)
    if uri is not None and (layout.statement is not None or layout.address is not None):
        found = blanks_before(lines, uri)
        expected = 1 if layout.statement is not None else 2
        if found > expected:
            issues.append(_structure(
                Codes.EXTRA_LINE_BREAKS_BEFORE_URI, uri - found + expected + 1,
                f"Extra empty lines before URI field (found {found}, expected {expected})",
                "Remove extra empty lines before URI field",
            ))

    required = [layout.fields[name] for name, _ in REQUIRED_FIELDS if name in layout.fields]
    for current, nxt in zip(required, required[1:]):
        gap = sum(1 for line in lines[current + 1:nxt] if is_blank_line(line))
        if gap:
            issues.append(_structure(
                Codes.EXTRA_LINE_BREAKS_BETWEEN_FIELDS, current + 2,
                f"Extra empty lines between required fields ({gap} empty lines found)",
                "Required fields should be on consecutive lines with no empty lines between them",
            ))

    optional = [(name, layout.fields[name]) for name, _ in OPTIONAL_FIELDS if name in layout.fields]
    if layout.resources is not None:
        optional.append((F.RESOURCES, layout.resources))
    anchor = layout.fields.get(F.ISSUED_AT)
    for name, index in optional:
        previous = anchor
        for _, other in optional:
            if other < index and (previous is None or other > previous):
                previous = other
        if previous is None or index <= previous + 1:
            continue
        gap = sum(1 for line in lines[previous + 1:index] if is_blank_line(line))
        if gap:
            label = LABELS.get(name, name)
            issues.append(_structure(
                Codes.EXTRA_LINE_BREAKS_BEFORE_OPTIONAL_FIELD, previous + 2,
                f"Extra empty lines before {label} field ({gap} empty lines found)",
                f"{label} should immediately follow the previous field with no empty lines",
            ))
    return issues


def check_missing_line_breaks(lines: List[str], layout: MessageLayout) -> List[Issue]:
    issues: List[Issue] = []
    uri = layout.fields.get(F.URI)

    if layout.address is not None and layout.statement is not None and layout.statement == layout.address + 1:
        issues.append(_structure(
            Codes.MISSING_LINE_BREAK_ADDRESS_STATEMENT, layout.address + 2,
            "Missing empty line between address and statement",
            "Add an empty line between the Ethereum address and statement",
        ))

    if layout.statement_end is not None and uri is not None and uri == layout.statement_end + 1:
        issues.append(_structure(
            Codes.MISSING_LINE_BREAK_STATEMENT_URI, layout.statement_end + 2,
            "Missing empty line between statement and URI field",
            "Add an empty line between the statement and URI field",
        ))

    if layout.statement is None and layout.address is not None and uri is not None:
        found = blanks_before(lines, uri)
        if found < 2:
            issues.append(_structure(
                Codes.MISSING_LINE_BREAK_NO_STATEMENT, layout.address + 2,
                f"Missing empty line between address and URI field (found {found}, expected 2 when no statement)",
                "Add a second empty line between the address and URI field when there is no statement",
            ))
    return issues


def check_trailing_whitespace(lines: List[str]) -> List[Issue]:
    issues: List[Issue] = []
    for index, line in enumerate(lines):
        stripped = line.rstrip()
        if line and line != stripped:
            issues.append(Issue(
                code=Codes.TRAILING_WHITESPACE,
                message="Line has trailing whitespace",
                field=F.WHITESPACE,
                line=index + 1,
                column=len(stripped) + 1,
                severity=Severity.WARNING,
                fixable=True,
                suggestion="Remove trailing spaces/tabs from the end of the line",
            ))
    return issues


def check_consecutive_empty_lines(lines: List[str]) -> List[Issue]:
    issues: List[Issue] = []
    run, start = 0, 0

    def flush() -> None:
        if run > MAX_BLANK_RUN:
            issues.append(Issue(
                code=Codes.TOO_MANY_CONSECUTIVE_EMPTY_LINES,
                message=f"Too many consecutive empty lines ({run} found)",
                field=F.STRUCTURE,
                line=start + 1,
                severity=Severity.WARNING,
                fixable=True,
                suggestion="Reduce to at most 2 consecutive empty lines",
            ))

    for index, line in enumerate(lines):
        if is_blank_line(line):
            if run == 0:
                start = index
            run += 1
        else:
            flush()
            run = 0
    flush()
    return issues


def validate_line_breaks(message: str) -> List[Issue]:
    lines = message.split("\n")
    layout = locate_layout(lines)
    issues: List[Issue] = []
    issues.extend(check_extra_line_breaks(lines, layout))
    issues.extend(check_missing_line_breaks(lines, layout))
    issues.extend(check_trailing_whitespace(lines))
    issues.extend(check_consecutive_empty_lines(lines))
    return issues


def fix_line_breaks(message: str) -> str:
    """Re-emit the message with canonical blank-line counts.

    Trailing whitespace is trimmed, blank lines are dropped and re-inserted
    only where the layout needs them, and any remaining run is capped at two.
    """
    lines = [line.rstrip() for line in message.split("\n")]
    layout = locate_layout(lines)

    rebuilt: List[str] = []
    for index, line in enumerate(lines):
        if not line:
            continue
        rebuilt.append(line)
        if index == layout.address:
            rebuilt.extend([""] if layout.statement is not None else ["", ""])
        elif index == layout.statement_end:
            rebuilt.append("")

    capped: List[str] = []
    run = 0
    for line in rebuilt:
        run = run + 1 if line == "" else 0
        if run <= MAX_BLANK_RUN:
            capped.append(line)
    return "\n".join(capped)

