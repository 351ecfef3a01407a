# -*- coding: utf-8 -*-
"""Cross-field security rules."""

from __future__ import annotations

from core.keys import Codes, FieldKeys as F
from core.types import IssueType, Severity
from core.validators import security as sv
from domain.parser import parse_message


def _codes(issues):
    return [i.code for i in issues]


def test_well_formed_message_is_clean(well_formed, now):
    assert sv.validate_security(parse_message(well_formed), now=now) == []


def test_every_security_issue_is_typed_security(build_message, now):
    text = build_message(nonce="aaaaaaaa", uri="http://evil.org", expiration_time=None)
    issues = sv.validate_security(parse_message(text), now=now)
    assert issues
    assert all(i.type is IssueType.SECURITY for i in issues)


def test_repeated_character_nonce(build_message, now):
    codes = _codes(sv.validate_nonce_security(parse_message(build_message(nonce="aaaaaaaa")), now=now))
    assert Codes.SECURITY_WEAK_NONCE_PATTERN in codes
    assert Codes.SECURITY_LOW_NONCE_COMPLEXITY in codes
    assert Codes.SECURITY_SHORT_NONCE in codes


def test_missing_nonce_is_an_error(build_message, now):
    issues = sv.validate_replay_protection(parse_message(build_message(nonce=None)), now=now)
    [issue] = [i for i in issues if i.code == Codes.SECURITY_NO_NONCE]
    assert issue.severity is Severity.ERROR
    assert issue.fixable


def test_missing_expiration_points_at_expected_line(build_message, now):
    parsed = parse_message(build_message(expiration_time=None))
    [issue] = sv.validate_replay_protection(parsed, now=now)
    assert issue.code == Codes.SECURITY_NO_EXPIRATION
    assert issue.field == F.EXPIRATION_TIME
    assert issue.line == parsed.positions[F.EXPIRATION_TIME]


def test_predictable_nonce(build_message, now):
    codes = _codes(sv.validate_replay_protection(parse_message(build_message(nonce="Xy12345678")), now=now))
    assert Codes.SECURITY_PREDICTABLE_NONCE in codes


def test_domain_binding(build_message, now):
    mismatch = sv.validate_domain_binding(parse_message(build_message(uri="https://evil.com/login")), now=now)
    assert _codes(mismatch) == [Codes.SECURITY_DOMAIN_MISMATCH]
    assert mismatch[0].field == F.URI

    sub = sv.validate_domain_binding(parse_message(build_message(uri="https://app.example.com/")), now=now)
    assert sub == []


def test_port_mismatch(build_message, now):
    text = build_message(domain="example.com:3000", uri="https://example.com:4000/login")
    codes = _codes(sv.validate_domain_binding(parse_message(text), now=now))
    assert codes == [Codes.SECURITY_PORT_MISMATCH]


def test_single_label_host_never_matches_subdomains():
    assert not sv.host_matches("com", "example.com")
    assert sv.host_matches("example.com", "API.example.com")


def test_suspicious_domains():
    assert sv.is_suspicious_domain("metamask-login.com")
    assert not sv.is_suspicious_domain("metamask.io")
    assert sv.is_suspicious_domain("10.0.0.1:8080")


def test_development_domain_is_info(build_message, now):
    text = build_message(domain="localhost:3000", uri="https://localhost:3000/login")
    issues = sv.validate_domain_binding(parse_message(text), now=now)
    [dev] = [i for i in issues if i.code == Codes.SECURITY_DEVELOPMENT_DOMAIN]
    assert dev.severity is Severity.INFO

    overall = _codes(sv.validate_overall_security(parse_message(text), now=now))
    assert Codes.SECURITY_TESTING_INDICATORS in overall


def test_time_rules(build_message, now):
    def codes_for(**overrides):
        return _codes(sv.validate_time_security(parse_message(build_message(**overrides)), now=now))

    assert codes_for(issued_at="2024-01-01T01:00:00Z", expiration_time="2024-01-01T01:10:00Z") == [
        Codes.SECURITY_FUTURE_ISSUED_AT,
    ]
    assert codes_for(issued_at="2023-12-31T20:00:00Z") == [Codes.SECURITY_OLD_ISSUED_AT]
    assert codes_for(expiration_time="2024-01-03T00:00:00Z") == [Codes.SECURITY_LONG_LIFETIME]
    assert codes_for(issued_at="2024-01-01T00:04:00Z", expiration_time="2024-01-01T00:05:30Z") == [
        Codes.SECURITY_SHORT_LIFETIME,
    ]
    assert codes_for(not_before="2024-01-01T01:00:00Z") == [Codes.SECURITY_NOT_YET_VALID]


def test_unparseable_timestamps_are_skipped(build_message, now):
    text = build_message(issued_at="yesterday", expiration_time="tomorrow")
    assert sv.validate_time_security(parse_message(text), now=now) == []


def test_resource_rules_report_the_bullet_line(build_message, now):
    text = build_message(resources=(
        "https://example.com/profile",
        "http://example.com/files",
        "https://example.com/",
        "not a uri",
        "https://192.168.1.1/data",
    ))
    parsed = parse_message(text)
    issues = sv.validate_resource_security(parsed, now=now)
    by_code = {i.code: i for i in issues}

    assert set(by_code) == {
        Codes.SECURITY_INSECURE_RESOURCE,
        Codes.SECURITY_BROAD_RESOURCE_ACCESS,
        Codes.SECURITY_INVALID_RESOURCE_URI,
        Codes.SECURITY_SUSPICIOUS_RESOURCE_DOMAIN,
    }
    assert by_code[Codes.SECURITY_INSECURE_RESOURCE].line == parsed.resource_lines[1]
    assert by_code[Codes.SECURITY_BROAD_RESOURCE_ACCESS].line == parsed.resource_lines[2]
    assert by_code[Codes.SECURITY_INVALID_RESOURCE_URI].line == parsed.resource_lines[3]


def test_too_many_resources(build_message, now):
    resources = tuple(f"https://example.com/r{i}" for i in range(11))
    parsed = parse_message(build_message(resources=resources))
    codes = _codes(sv.validate_resource_security(parsed, now=now))
    assert codes == [Codes.SECURITY_TOO_MANY_RESOURCES]


def test_low_baseline(build_message, now):
    text = build_message(uri="http://example.com", expiration_time=None, nonce="Xk9fP2qL")
    codes = _codes(sv.validate_overall_security(parse_message(text), now=now))
    assert Codes.SECURITY_LOW_BASELINE in codes
