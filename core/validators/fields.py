# -*- coding: utf-8 -*-
"""Field-level validations (pure).

Each validator looks at one field of a ParsedMessage and returns a list of
Issue. No validator calls another; aggregation belongs to the engine.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from core.keys import Codes, FieldKeys as F
from core.types import DomainValidation, Issue, IssueType, ParsedMessage, Severity
from domain import nonce as nonce_rules
from domain.checksum import classify_address
from domain.clock import resolve_now
from domain.parse import is_ipv4, split_host_port, split_uri, validate_timestamp
from domain.parser import get_field_line

CHAIN_ID_RE = re.compile(r"^[1-9]\d*$")
LABEL_RE = re.compile(r"^([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)*[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$")

MAX_DOMAIN_LENGTH = 253
MAX_STATEMENT_LENGTH = 200
MAX_DRIFT = timedelta(hours=1)
MAX_LIFETIME = timedelta(hours=24)
MIN_LIFETIME = timedelta(minutes=5)

_LOOPBACK_HOSTS = ("localhost", "0.0.0.0")

FieldValidator = Callable[..., List[Issue]]


def _issue(parsed: ParsedMessage, field: str, code: str, message: str, **kw) -> Issue:
    return Issue(code=code, message=message, field=field, line=get_field_line(parsed, field), **kw)


# --- helpers ------------------------------------------------------------------

def classify_domain(domain: str) -> DomainValidation:
    host, port = split_host_port(domain)
    if port is not None and not 1 <= int(port) <= 65535:
        return DomainValidation(is_valid=False, is_subdomain=False, tld=None)

    ipv4 = is_ipv4(host)
    localhost = host == "localhost"
    is_valid = (bool(LABEL_RE.match(host)) or ipv4 or localhost) and len(host) <= MAX_DOMAIN_LENGTH

    parts = host.split(".")
    named = not ipv4 and not localhost
    tld = parts[-1] if named and len(parts) > 1 else None

    risk = "none"
    if host in _LOOPBACK_HOSTS or "127.0.0.1" in host:
        risk = "low"
    return DomainValidation(is_valid=is_valid, is_subdomain=named and len(parts) > 2, tld=tld, security_risk=risk)


# --- validators -----------------------------------------------------------------

def validate_domain(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    domain = parsed.fields.domain
    if not domain:
        return [_issue(parsed, F.DOMAIN, Codes.DOMAIN_REQUIRED, "Domain is required")]

    issues: List[Issue] = []
    result = classify_domain(domain)
    if not result.is_valid:
        issues.append(_issue(
            parsed, F.DOMAIN, Codes.DOMAIN_INVALID_FORMAT,
            "Invalid domain format. Must be a valid RFC 3986 authority",
            suggestion="Use format: example.com or subdomain.example.com",
        ))
    if result.security_risk != "none":
        issues.append(_issue(
            parsed, F.DOMAIN, Codes.DOMAIN_SECURITY_RISK,
            f"Domain has {result.security_risk} security risk",
            type=IssueType.SECURITY,
            severity=Severity.ERROR if result.security_risk == "high" else Severity.WARNING,
        ))
    return issues


def validate_address(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    address = parsed.fields.address
    if not address:
        return [_issue(parsed, F.ADDRESS, Codes.ADDRESS_REQUIRED, "Ethereum address is required")]

    result = classify_address(address)
    if not result.is_valid:
        return [_issue(
            parsed, F.ADDRESS, Codes.ADDRESS_INVALID_FORMAT,
            "Invalid Ethereum address format. Must be 40-character hex with 0x prefix",
            fixable=True,
            suggestion="Ensure address starts with 0x followed by 40 hexadecimal characters",
        )]
    if result.format == "mixed":
        return [_issue(
            parsed, F.ADDRESS, Codes.ADDRESS_INVALID_CHECKSUM,
            "Address letter case does not match its EIP-55 checksum",
            severity=Severity.WARNING, fixable=True,
            suggestion="Re-derive the checksum from the lowercase address",
        )]
    if not result.is_checksum:
        return [_issue(
            parsed, F.ADDRESS, Codes.ADDRESS_NOT_CHECKSUM,
            "Address should use EIP-55 checksum format for better security",
            severity=Severity.WARNING, fixable=True,
            suggestion="Convert to checksum format: mix of uppercase and lowercase letters",
        )]
    return []


def validate_uri(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    uri = parsed.fields.uri
    if not uri:
        return [_issue(parsed, F.URI, Codes.URI_REQUIRED, "URI is required")]

    # trailing whitespace is reported on its own
    result = split_uri(uri.strip())
    if not result.is_valid:
        return [_issue(
            parsed, F.URI, Codes.URI_INVALID_FORMAT,
            "Invalid URI format. Must be a valid RFC 3986 URI",
            suggestion="Use format: https://example.com/path",
        )]
    if result.scheme == "http":
        return [_issue(
            parsed, F.URI, Codes.URI_INSECURE_SCHEME,
            "Consider using HTTPS for better security",
            type=IssueType.SECURITY, severity=Severity.WARNING, fixable=True,
            suggestion="Replace http:// with https://",
        )]
    if result.scheme != "https":
        return [_issue(
            parsed, F.URI, Codes.URI_UNSUPPORTED_SCHEME,
            f"Unsupported URI scheme '{result.scheme}'. Use https or http",
            suggestion="Use format: https://example.com/path",
        )]
    return []


def validate_version(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    version = parsed.fields.version
    if not version:
        return [_issue(
            parsed, F.VERSION, Codes.VERSION_REQUIRED, "Version is required",
            fixable=True, suggestion='Add "Version: 1"',
        )]
    if version != "1":
        return [_issue(
            parsed, F.VERSION, Codes.VERSION_INVALID,
            'Version must be "1" for EIP-4361 compliance',
            type=IssueType.COMPLIANCE, fixable=True, suggestion='Set version to "1"',
        )]
    return []


def validate_chain_id(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    chain_id = parsed.fields.chain_id
    if not chain_id:
        return [_issue(parsed, F.CHAIN_ID, Codes.CHAIN_ID_REQUIRED, "Chain ID is required")]
    if not CHAIN_ID_RE.match(chain_id):
        return [_issue(
            parsed, F.CHAIN_ID, Codes.CHAIN_ID_INVALID_FORMAT,
            "Chain ID must be a positive integer (EIP-155)",
            suggestion="Use valid chain ID: 1 (Ethereum), 10 (Optimism), 137 (Polygon), etc.",
        )]
    return []


def validate_nonce(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    value = parsed.fields.nonce
    if not value:
        return [_issue(
            parsed, F.NONCE, Codes.NONCE_REQUIRED, "Nonce is required",
            fixable=True, suggestion="Generate a cryptographically secure random nonce",
        )]

    issues: List[Issue] = []
    result = nonce_rules.classify(value)
    if not result.is_valid:
        issues.append(_issue(
            parsed, F.NONCE, Codes.NONCE_TOO_SHORT,
            "Nonce must be at least 8 alphanumeric characters",
            fixable=True, suggestion="Use a longer random string with letters and numbers",
        ))
    if result.pattern == "weak":
        issues.append(_issue(
            parsed, F.NONCE, Codes.NONCE_WEAK_ENTROPY,
            "Nonce appears to have low entropy (security risk)",
            type=IssueType.SECURITY, severity=Severity.WARNING, fixable=True,
            suggestion="Use a cryptographically secure random nonce generator",
        ))
    elif result.pattern == "sequential":
        issues.append(_issue(
            parsed, F.NONCE, Codes.NONCE_SEQUENTIAL,
            "Nonce appears to be sequential (replay attack risk)",
            type=IssueType.SECURITY, fixable=True,
            suggestion="Use random nonce generation instead of sequential values",
        ))
    return issues


def validate_issued_at(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    value = parsed.fields.issued_at
    if not value:
        return [_issue(
            parsed, F.ISSUED_AT, Codes.ISSUED_AT_REQUIRED, "Issued At timestamp is required",
            fixable=True, suggestion="Add current timestamp in RFC 3339 format",
        )]

    result = validate_timestamp(value)
    if not result.is_valid:
        return [_issue(
            parsed, F.ISSUED_AT, Codes.ISSUED_AT_INVALID_FORMAT,
            "Invalid timestamp format. Must be RFC 3339 (ISO 8601)",
            fixable=True, suggestion="Use format: 2023-10-31T16:30:00Z or 2023-10-31T16:30:00+00:00",
        )]
    if abs(resolve_now(now) - result.timestamp) > MAX_DRIFT:
        return [_issue(
            parsed, F.ISSUED_AT, Codes.ISSUED_AT_TIME_DRIFT,
            "Issued At timestamp is more than 1 hour from current time",
            type=IssueType.SECURITY, severity=Severity.WARNING,
            suggestion="Ensure timestamp reflects actual message creation time",
        )]
    return []


def validate_expiration_time(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    value = parsed.fields.expiration_time
    if not value:
        return []

    result = validate_timestamp(value)
    if not result.is_valid:
        return [_issue(
            parsed, F.EXPIRATION_TIME, Codes.EXPIRATION_TIME_INVALID_FORMAT,
            "Invalid expiration timestamp format. Must be RFC 3339 (ISO 8601)",
            fixable=True, suggestion="Use format: 2023-10-31T16:30:00Z",
        )]

    current = resolve_now(now)
    expires = result.timestamp
    issues: List[Issue] = []

    issued = validate_timestamp(parsed.fields.issued_at) if parsed.fields.issued_at else None
    anchor = issued.timestamp if issued is not None and issued.is_valid else current

    if issued is not None and issued.is_valid and expires <= issued.timestamp:
        issues.append(_issue(
            parsed, F.EXPIRATION_TIME, Codes.EXPIRATION_BEFORE_ISSUED,
            "Expiration time must be after issued at time",
        ))
    if expires < current:
        issues.append(_issue(
            parsed, F.EXPIRATION_TIME, Codes.MESSAGE_EXPIRED, "Message has already expired",
            type=IssueType.SECURITY,
        ))

    lifetime = expires - anchor
    if lifetime > MAX_LIFETIME:
        issues.append(_issue(
            parsed, F.EXPIRATION_TIME, Codes.EXPIRATION_TOO_LONG,
            "Expiration time is more than 24 hours after issuance (security risk)",
            type=IssueType.SECURITY, severity=Severity.WARNING,
            suggestion="Consider shorter expiration windows (5-15 minutes)",
        ))
    elif timedelta(0) < lifetime < MIN_LIFETIME:
        issues.append(_issue(
            parsed, F.EXPIRATION_TIME, Codes.EXPIRATION_TOO_SHORT,
            "Expiration time is very short (less than 5 minutes)",
            type=IssueType.SECURITY, severity=Severity.WARNING,
            suggestion="Allow sufficient time for user to sign the message",
        ))
    return issues


def validate_not_before(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    value = parsed.fields.not_before
    if not value or validate_timestamp(value).is_valid:
        return []
    return [_issue(
        parsed, F.NOT_BEFORE, Codes.NOT_BEFORE_INVALID_FORMAT,
        "Invalid not-before timestamp format. Must be RFC 3339 (ISO 8601)",
        fixable=True, suggestion="Use format: 2023-10-31T16:30:00Z",
    )]


def validate_statement(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    statement = parsed.fields.statement
    if not statement:
        return []

    issues: List[Issue] = []
    if "\n" in statement or "\r" in statement:
        issues.append(_issue(
            parsed, F.STATEMENT, Codes.STATEMENT_LINE_BREAKS, "Statement cannot contain line breaks",
            fixable=True, suggestion="Remove line breaks from statement",
        ))
    if len(statement) > MAX_STATEMENT_LENGTH:
        issues.append(_issue(
            parsed, F.STATEMENT, Codes.STATEMENT_TOO_LONG,
            "Statement is very long (may cause display issues)",
            severity=Severity.WARNING,
            suggestion="Consider shortening statement for better user experience",
        ))
    return issues


FIELD_VALIDATORS: Dict[str, FieldValidator] = {
    F.DOMAIN: validate_domain,
    F.ADDRESS: validate_address,
    F.STATEMENT: validate_statement,
    F.URI: validate_uri,
    F.VERSION: validate_version,
    F.CHAIN_ID: validate_chain_id,
    F.NONCE: validate_nonce,
    F.ISSUED_AT: validate_issued_at,
    F.EXPIRATION_TIME: validate_expiration_time,
    F.NOT_BEFORE: validate_not_before,
}


def validate_fields(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    current = resolve_now(now)
    issues: List[Issue] = []
    for validator in FIELD_VALIDATORS.values():
        issues.extend(validator(parsed, now=current))
    return issues
