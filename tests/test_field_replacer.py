# -*- coding: utf-8 -*-
"""FieldReplacer: minimal-diff edits on raw message text."""

from __future__ import annotations

import pytest

from core.keys import Codes, FieldKeys as F
from core.types import Issue
from core.validators.line_breaks import validate_line_breaks
from domain import nonce as nonce_rules
from domain.checksum import checksum_address
from domain.parser import parse_message
from services.field_replacer import FieldReplacer

LOWER = "0x742d35cc6c4c1ca5d428d9ee0e9b1e1234567890"


@pytest.fixture
def replacer(clock):
    return FieldReplacer(clock=clock)


def _changed_lines(before: str, after: str):
    a, b = before.split("\n"), after.split("\n")
    assert len(a) == len(b)
    return [i for i, (x, y) in enumerate(zip(a, b)) if x != y]


@pytest.mark.parametrize("name, value, line", [
    (F.DOMAIN, "other.example.org", 0),
    (F.ADDRESS, LOWER, 1),
    (F.STATEMENT, "A different statement.", 3),
    (F.URI, "https://example.com/other", 5),
    (F.VERSION, "2", 6),
    (F.CHAIN_ID, "137", 7),
    (F.NONCE, "Zq81LmT0pXc4", 8),
    (F.ISSUED_AT, "2024-01-01T00:01:00Z", 9),
    (F.EXPIRATION_TIME, "2024-01-01T00:20:00Z", 10),
])
def test_replace_field_touches_only_its_line(replacer, well_formed, name, value, line):
    out = replacer.replace_field(well_formed, name, value)
    assert _changed_lines(well_formed, out) == [line]
    assert parse_message(out).fields.get(name) == value


def test_domain_rewrite_keeps_scheme(replacer, well_formed):
    text = "https://" + well_formed
    out = replacer.replace_field(text, F.DOMAIN, "login.example.com")
    parsed = parse_message(out)
    assert parsed.fields.scheme == "https"
    assert parsed.fields.domain == "login.example.com"


def test_missing_optional_field_is_inserted_in_order(replacer, well_formed, example_message):
    out = replacer.replace_field(well_formed, F.NOT_BEFORE, "2024-01-01T00:00:00Z")
    lines = out.split("\n")
    assert lines[:11] == well_formed.split("\n")
    assert lines[11] == "Not Before: 2024-01-01T00:00:00Z"

    out = replacer.replace_field(example_message, F.EXPIRATION_TIME, "2024-01-01T00:10:00Z")
    assert out.split("\n")[-1] == "Expiration Time: 2024-01-01T00:10:00Z"
    assert parse_message(out).fields.expiration_time == "2024-01-01T00:10:00Z"


def test_missing_required_field_is_inserted_before_its_successor(replacer, well_formed):
    without_version = "\n".join(line for line in well_formed.split("\n") if not line.startswith("Version: "))
    out = replacer.replace_field(without_version, F.VERSION, "1")
    assert out == well_formed


def test_insert_before_resources(replacer, build_message):
    text = build_message(resources=("https://example.com/a",))
    out = replacer.replace_field(text, F.REQUEST_ID, "req-1")
    lines = out.split("\n")
    assert lines[lines.index("Request ID: req-1") + 1] == "Resources:"


def test_statement_insert_and_remove_keep_layout(replacer, well_formed, example_message):
    inserted = replacer.replace_field(example_message, F.STATEMENT, "Welcome back.")
    assert parse_message(inserted).fields.statement == "Welcome back."
    assert validate_line_breaks(inserted) == []

    removed = replacer.remove_field(well_formed, F.STATEMENT)
    assert parse_message(removed).fields.statement is None
    assert validate_line_breaks(removed) == []


def test_remove_optional_field(replacer, well_formed):
    out = replacer.remove_field(well_formed, F.EXPIRATION_TIME)
    assert "Expiration Time" not in out
    # required fields are never removed
    assert replacer.remove_field(well_formed, F.NONCE) == well_formed


def test_resource_operations(replacer, well_formed):
    one = replacer.add_resource(well_formed, "https://example.com/a")
    two = replacer.add_resource(one, "https://example.com/b")
    assert parse_message(two).fields.resources == ("https://example.com/a", "https://example.com/b")
    assert two.split("\n")[:11] == well_formed.split("\n")

    back = replacer.remove_resource(two, "https://example.com/b")
    assert back == one
    assert replacer.remove_resource(one, "https://example.com/a") == well_formed
    assert replacer.remove_resource(one, "https://example.com/missing") == one
    assert replacer.remove_field(two, F.RESOURCES) == well_formed
    assert replacer.remove_resources(two) == well_formed


def test_unsupported_field_is_left_alone(replacer, well_formed):
    assert replacer.replace_field(well_formed, "bogus", "x") == well_formed


def test_apply_field_fix_version(replacer, example_message):
    text = example_message.replace("Version: 1", "Version: 2")
    issue = Issue(code=Codes.VERSION_INVALID, message="bad version", field=F.VERSION, fixable=True)
    out = replacer.apply_field_fix(text, issue)
    assert out == example_message


def test_apply_field_fix_uses_canonical_checksum(replacer, build_message):
    text = build_message(address=LOWER)
    issue = Issue(code=Codes.ADDRESS_NOT_CHECKSUM, message="checksum", field=F.ADDRESS, fixable=True)
    out = replacer.apply_field_fix(text, issue)
    assert parse_message(out).fields.address == checksum_address(LOWER)
    assert _changed_lines(text, out) == [1]


def test_apply_field_fix_nonce_and_uri(replacer, build_message):
    text = build_message(nonce="aaaaaaaa", uri="http://example.com/login")
    nonce_issue = Issue(code=Codes.SECURITY_WEAK_NONCE_PATTERN, message="weak", field=F.NONCE, fixable=True)
    out = replacer.apply_field_fix(text, nonce_issue)
    assert nonce_rules.is_secure(parse_message(out).fields.nonce)
    assert _changed_lines(text, out) == [8]

    uri_issue = Issue(code=Codes.URI_INSECURE_SCHEME, message="http", field=F.URI, fixable=True)
    out = replacer.apply_field_fix(text, uri_issue)
    assert parse_message(out).fields.uri == "https://example.com/login"


def test_apply_field_fix_adds_expiration(replacer, example_message):
    issue = Issue(code=Codes.SECURITY_NO_EXPIRATION, message="no exp", field=F.EXPIRATION_TIME, fixable=True)
    out = replacer.apply_field_fix(example_message, issue)
    assert parse_message(out).fields.expiration_time == "2024-01-01T00:10:00.000Z"


def test_apply_field_fix_timestamp_format(replacer, build_message):
    text = build_message(issued_at="2024-01-01 00:00:00")
    issue = Issue(code=Codes.ISSUED_AT_INVALID_FORMAT, message="format", field=F.ISSUED_AT, fixable=True)
    out = replacer.apply_field_fix(text, issue)
    assert parse_message(out).fields.issued_at == "2024-01-01T00:00:00.000Z"


def test_apply_field_fix_trailing_whitespace(replacer, well_formed):
    lines = well_formed.split("\n")
    lines[6] += "  "
    text = "\n".join(lines)
    issue = Issue(code=Codes.TRAILING_WHITESPACE, message="ws", field=F.WHITESPACE, line=7, fixable=True)
    assert replacer.apply_field_fix(text, issue) == well_formed


def test_apply_field_fix_without_targeted_edit(replacer, well_formed):
    issue = Issue(code=Codes.EXTRA_LINE_BREAKS_BEFORE_URI, message="layout", fixable=True)
    assert replacer.apply_field_fix(well_formed, issue) is None


def test_apply_field_fix_expiration_out_of_range(replacer, build_message):
    text = build_message(issued_at="9999-12-31T23:59:59Z", expiration_time=None)
    issue = Issue(code=Codes.SECURITY_NO_EXPIRATION, message="no exp", field=F.EXPIRATION_TIME, fixable=True)
    assert replacer.apply_field_fix(text, issue) is None


def test_apply_field_fix_timestamp_out_of_range(replacer, build_message):
    text = build_message(issued_at="0001-01-01T00:00:00+01:00")
    issue = Issue(code=Codes.ISSUED_AT_INVALID_FORMAT, message="format", field=F.ISSUED_AT, fixable=True)
    assert replacer.apply_field_fix(text, issue) is None


def test_replace_multi_line_statement(replacer, well_formed, build_message):
    lines = well_formed.split("\n")
    lines[3:4] = ["Line one", "Line two"]
    text = "\n".join(lines)

    issue = Issue(code=Codes.STATEMENT_LINE_BREAKS, message="breaks", field=F.STATEMENT, fixable=True)
    assert replacer.apply_field_fix(text, issue) == build_message(statement="Line one Line two")
    assert replacer.remove_field(text, F.STATEMENT) == build_message(statement=None)
