# -*- coding: utf-8 -*-
"""Parser state machine and canonical generator."""

from __future__ import annotations

import pytest

from core.keys import Codes, FieldKeys as F
from domain.parser import generate_message, get_field_line, parse_message


def test_parses_worked_example_without_statement(example_message):
    parsed = parse_message(example_message)

    assert parsed.is_valid
    assert parsed.parse_errors == ()
    assert parsed.fields.has_required()
    assert parsed.fields.statement is None
    assert parsed.fields.domain == "example.com"
    assert parsed.fields.nonce == "abcdef123456"
    assert parsed.fields.issued_at == "2024-01-01T00:00:00Z"
    assert parsed.positions[F.URI] == 5


def test_parses_statement_and_optional_fields(well_formed):
    parsed = parse_message(well_formed)

    assert parsed.is_valid
    assert parsed.fields.statement == "Sign in to Example."
    assert parsed.fields.expiration_time == "2024-01-01T00:10:00.000Z"
    assert parsed.positions[F.STATEMENT] == 4
    assert parsed.positions[F.EXPIRATION_TIME] == 11


def test_header_scheme_is_captured():
    text = (
        "https://example.com wants you to sign in with your Ethereum account:\n"
        "0x742d35cc6c4c1ca5d428d9ee0e9b1e1234567890\n\n\n"
        "URI: https://example.com\nVersion: 1\nChain ID: 1\nNonce: Xk9fP2qLm7Rt\n"
        "Issued At: 2024-01-01T00:00:00Z"
    )
    parsed = parse_message(text)
    assert parsed.fields.scheme == "https"
    assert parsed.fields.domain == "example.com"


def test_resources_are_collected_with_their_lines(build_message):
    text = build_message(resources=("https://example.com/a", "https://example.com/b"))
    parsed = parse_message(text)

    assert parsed.fields.resources == ("https://example.com/a", "https://example.com/b")
    assert parsed.resource_lines == (13, 14)
    assert parsed.positions[F.RESOURCES] == 12


def test_invalid_header_is_reported_on_line_one(well_formed):
    text = "hello there\n" + well_formed.split("\n", 1)[1]
    parsed = parse_message(text)

    codes = [e.code for e in parsed.parse_errors]
    assert Codes.INVALID_HEADER in codes
    assert parsed.fields.domain is None
    # the rest of the message is still recovered
    assert parsed.fields.address is not None
    assert parsed.fields.nonce == "Xk9fP2qLm7Rt4Wz8"


def test_missing_field_does_not_stop_the_scan(well_formed):
    text = "\n".join(line for line in well_formed.split("\n") if not line.startswith("Chain ID: "))
    parsed = parse_message(text)

    errors = {e.code: e for e in parsed.parse_errors}
    assert set(errors) == {Codes.MISSING_CHAIN_ID}
    assert errors[Codes.MISSING_CHAIN_ID].field == F.CHAIN_ID
    assert parsed.fields.nonce == "Xk9fP2qLm7Rt4Wz8"
    assert parsed.fields.issued_at == "2024-01-01T00:00:00.000Z"
    assert not parsed.is_valid


def test_missing_address_is_reported():
    text = (
        "example.com wants you to sign in with your Ethereum account:\n\n"
        "Some statement\n\n"
        "URI: https://example.com\nVersion: 1\nChain ID: 1\nNonce: Xk9fP2qLm7Rt\n"
        "Issued At: 2024-01-01T00:00:00Z"
    )
    parsed = parse_message(text)
    assert Codes.MISSING_ADDRESS in [e.code for e in parsed.parse_errors]
    assert parsed.fields.address is None


def test_empty_message_never_raises():
    parsed = parse_message("")
    assert not parsed.is_valid
    assert parsed.fields.is_empty()
    assert Codes.INVALID_HEADER in [e.code for e in parsed.parse_errors]


def test_generate_message_round_trips(well_formed):
    parsed = parse_message(well_formed)
    assert generate_message(parsed.fields) == well_formed


def test_generate_message_uses_two_blank_lines_without_statement(build_message):
    lines = build_message(statement=None).split("\n")
    assert lines[2] == ""
    assert lines[3] == ""
    assert lines[4].startswith("URI: ")


def test_get_field_line_accepts_raw_text(well_formed):
    assert get_field_line(well_formed, F.NONCE) == 9
    assert get_field_line(well_formed, F.DOMAIN) == 1


def test_statement_spanning_two_lines_keeps_every_field(well_formed):
    lines = well_formed.split("\n")
    lines[3:4] = ["Line one", "Line two"]
    parsed = parse_message("\n".join(lines))

    assert parsed.parse_errors == ()
    assert parsed.fields.statement == "Line one\nLine two"
    assert parsed.statement_lines == (4, 5)
    assert parsed.fields.has_required()
    assert parsed.fields.uri == "https://example.com/login"
    assert parsed.fields.expiration_time == "2024-01-01T00:10:00.000Z"
    assert parsed.positions[F.URI] == 7


def test_swapped_fields_are_captured_and_flagged(well_formed):
    lines = well_formed.split("\n")
    lines[6], lines[7] = lines[7], lines[6]
    parsed = parse_message("\n".join(lines))

    [error] = parsed.parse_errors
    assert error.code == Codes.FIELD_OUT_OF_ORDER
    assert error.field == F.VERSION
    assert error.line == 8
    assert error.fixable
    assert parsed.fields.version == "1"
    assert parsed.fields.chain_id == "1"
    assert parsed.fields.nonce == "Xk9fP2qLm7Rt4Wz8"
    assert parsed.fields.issued_at == "2024-01-01T00:00:00.000Z"
    assert parsed.positions[F.VERSION] == 8


def test_stray_line_in_field_block_does_not_hide_later_fields(well_formed):
    lines = well_formed.split("\n")
    lines.insert(5, "stray text")
    parsed = parse_message("\n".join(lines))

    [error] = parsed.parse_errors
    assert error.code == Codes.UNEXPECTED_LINE
    assert error.line == 6
    assert parsed.fields.has_required()
    assert parsed.fields.uri == "https://example.com/login"
    assert parsed.fields.expiration_time == "2024-01-01T00:10:00.000Z"


def test_duplicate_field_keeps_the_first_value(well_formed):
    lines = well_formed.split("\n")
    lines.insert(9, "Nonce: second")
    parsed = parse_message("\n".join(lines))

    [error] = parsed.parse_errors
    assert error.code == Codes.UNEXPECTED_LINE
    assert error.field == F.NONCE
    assert parsed.fields.nonce == "Xk9fP2qLm7Rt4Wz8"


def test_positions_are_read_only(well_formed):
    parsed = parse_message(well_formed)
    with pytest.raises(TypeError):
        parsed.positions[F.URI] = 1
