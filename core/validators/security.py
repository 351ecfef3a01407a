# -*- coding: utf-8 -*-
"""Cross-field security validations (pure).

These rules layer on top of field validity: a timestamp that does not parse
is reported by the field validators and silently skipped here.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import List, Optional

from core.keys import Codes, FieldKeys as F
from core.types import Issue, IssueType, ParsedMessage, Severity
from domain import nonce as nonce_rules
from domain.clock import resolve_now
from domain.parse import parse_rfc3339, split_host_port, split_uri, uri_host_port
from domain.parser import get_field_line

MAX_ISSUED_AGE = timedelta(hours=1)
MAX_LIFETIME = timedelta(hours=24)
MIN_LIFETIME = timedelta(minutes=2)
MAX_RESOURCES = 10

SUSPICIOUS_DOMAIN_PATTERNS = (
    re.compile(r"metamask.*\.(?!io$)", re.IGNORECASE),
    re.compile(r"wallet.*connect", re.IGNORECASE),
    re.compile(r"ethereum.*wallet", re.IGNORECASE),
    re.compile(r"crypto.*app", re.IGNORECASE),
    re.compile(r"defi.*swap", re.IGNORECASE),
    re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}"),
    re.compile(r"[a-z]{20,}\.com", re.IGNORECASE),
    re.compile(r"[0-9]{8,}\."),
)

DEV_HOST_MARKERS = (
    "localhost", "127.0.0.1", "0.0.0.0", "::1",
    ".local", ".test", ".dev", "staging.", "dev.", "test.",
)


def _security(parsed: ParsedMessage, field: str, code: str, message: str, *,
              severity: Severity = Severity.WARNING, fixable: bool = False,
              suggestion: Optional[str] = None, line: Optional[int] = None) -> Issue:
    return Issue(
        code=code,
        message=message,
        type=IssueType.SECURITY,
        field=field,
        line=line if line is not None else get_field_line(parsed, field),
        severity=severity,
        fixable=fixable,
        suggestion=suggestion,
    )


def is_suspicious_domain(domain: str) -> bool:
    host, _ = split_host_port(domain)
    return any(p.search(host) for p in SUSPICIOUS_DOMAIN_PATTERNS)


def is_development_domain(domain: str) -> bool:
    host, _ = split_host_port(domain)
    return any(marker in host for marker in DEV_HOST_MARKERS)


def host_matches(message_host: str, uri_host: str) -> bool:
    """URI host equals the message host or is a subdomain of it.

    A single-label message host (``com``) never grants subdomains.
    """
    message_host = message_host.lower()
    uri_host = uri_host.lower()
    if message_host == uri_host:
        return True
    return len(message_host.split(".")) >= 2 and uri_host.endswith("." + message_host)


# --- rule groups ------------------------------------------------------------------

def validate_replay_protection(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    fields = parsed.fields
    issues: List[Issue] = []

    if not fields.nonce:
        issues.append(_security(
            parsed, F.NONCE, Codes.SECURITY_NO_NONCE,
            "Missing nonce - critical for replay attack prevention",
            severity=Severity.ERROR, fixable=True,
            suggestion="Add a cryptographically secure random nonce",
        ))
    else:
        if nonce_rules.entropy(fields.nonce) < nonce_rules.LOW_ENTROPY:
            issues.append(_security(
                parsed, F.NONCE, Codes.SECURITY_LOW_NONCE_ENTROPY,
                "Low nonce entropy increases replay attack risk",
                fixable=True, suggestion="Use a more random nonce with higher entropy",
            ))
        if nonce_rules.is_predictable(fields.nonce):
            issues.append(_security(
                parsed, F.NONCE, Codes.SECURITY_PREDICTABLE_NONCE,
                "Nonce appears predictable - security vulnerability",
                fixable=True, suggestion="Use cryptographically secure random generation",
            ))

    if not fields.expiration_time:
        issues.append(_security(
            parsed, F.EXPIRATION_TIME, Codes.SECURITY_NO_EXPIRATION,
            "Missing expiration time - messages should have limited lifetime",
            fixable=True, suggestion="Add expiration time (5-15 minutes from issued at)",
        ))
    return issues


def validate_domain_binding(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    domain, uri = parsed.fields.domain, parsed.fields.uri
    if not domain:
        return [_security(
            parsed, F.DOMAIN, Codes.SECURITY_NO_DOMAIN,
            "Missing domain - critical for preventing phishing attacks",
            suggestion="Specify the domain requesting authentication",
        )]

    issues: List[Issue] = []
    if is_suspicious_domain(domain):
        issues.append(_security(
            parsed, F.DOMAIN, Codes.SECURITY_SUSPICIOUS_DOMAIN,
            "Domain appears suspicious - potential phishing risk",
            suggestion="Verify domain legitimacy and spelling",
        ))

    if uri:
        uri_host, uri_port = uri_host_port(uri.strip())
        if uri_host:
            message_host, message_port = split_host_port(domain)
            if not host_matches(message_host, uri_host):
                issues.append(_security(
                    parsed, F.URI, Codes.SECURITY_DOMAIN_MISMATCH,
                    "URI domain does not match message domain - security risk",
                    suggestion="Ensure URI domain matches or is subdomain of message domain",
                ))
            elif message_port and uri_port and message_port != uri_port:
                issues.append(_security(
                    parsed, F.URI, Codes.SECURITY_PORT_MISMATCH,
                    f"URI port ({uri_port}) does not match message domain port ({message_port})",
                    suggestion="Ensure URI port matches the port specified in the domain",
                ))

    if is_development_domain(domain):
        issues.append(_security(
            parsed, F.DOMAIN, Codes.SECURITY_DEVELOPMENT_DOMAIN,
            "Development domain detected - ensure this is not production",
            severity=Severity.INFO,
            suggestion="Use production domain for production deployments",
        ))
    return issues


def validate_time_security(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    fields = parsed.fields
    current = resolve_now(now)
    issues: List[Issue] = []

    issued = parse_rfc3339(fields.issued_at)
    if issued is not None:
        if issued > current:
            issues.append(_security(
                parsed, F.ISSUED_AT, Codes.SECURITY_FUTURE_ISSUED_AT,
                "Message issued in the future - clock skew or tampering risk",
                suggestion="Ensure server clock is accurate",
            ))
        elif current - issued > MAX_ISSUED_AGE:
            issues.append(_security(
                parsed, F.ISSUED_AT, Codes.SECURITY_OLD_ISSUED_AT,
                "Message issued too far in the past - potential replay risk",
                suggestion="Generate fresh messages for authentication",
            ))

    expires = parse_rfc3339(fields.expiration_time)
    if expires is not None:
        lifetime = expires - (issued or current)
        if lifetime > MAX_LIFETIME:
            issues.append(_security(
                parsed, F.EXPIRATION_TIME, Codes.SECURITY_LONG_LIFETIME,
                "Message lifetime too long - increases attack window",
                suggestion="Use shorter expiration times (5-15 minutes)",
            ))
        elif lifetime < MIN_LIFETIME:
            issues.append(_security(
                parsed, F.EXPIRATION_TIME, Codes.SECURITY_SHORT_LIFETIME,
                "Message lifetime very short - may cause UX issues",
                severity=Severity.INFO,
                suggestion="Allow sufficient time for user interaction",
            ))

    not_before = parse_rfc3339(fields.not_before)
    if not_before is not None and not_before > current:
        issues.append(_security(
            parsed, F.NOT_BEFORE, Codes.SECURITY_NOT_YET_VALID,
            "Message not yet valid - check notBefore timing",
            suggestion="Ensure notBefore time is appropriate",
        ))
    return issues


def validate_nonce_security(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    value = parsed.fields.nonce
    if not value:
        return []

    issues: List[Issue] = []
    if len(value) < nonce_rules.SECURE_MIN_LENGTH:
        issues.append(_security(
            parsed, F.NONCE, Codes.SECURITY_SHORT_NONCE,
            "Nonce should be at least 12 characters for better security",
            fixable=True, suggestion="Use longer nonces (16+ characters recommended)",
        ))
    if nonce_rules.has_weak_pattern(value):
        issues.append(_security(
            parsed, F.NONCE, Codes.SECURITY_WEAK_NONCE_PATTERN,
            "Nonce contains weak patterns - security vulnerability",
            fixable=True, suggestion="Use cryptographically secure random generation",
        ))
    if nonce_rules.character_classes(value) < 2:
        issues.append(_security(
            parsed, F.NONCE, Codes.SECURITY_LOW_NONCE_COMPLEXITY,
            "Nonce should use mixed character types for better entropy",
            fixable=True, suggestion="Include mix of letters and numbers",
        ))
    return issues


def validate_resource_security(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    resources = parsed.fields.resources
    if not resources:
        return []

    header_line = get_field_line(parsed, F.RESOURCES)
    issues: List[Issue] = []
    for index, resource in enumerate(resources):
        if index < len(parsed.resource_lines):
            line = parsed.resource_lines[index]
        else:
            line = header_line + index + 1
        n = index + 1

        result = split_uri(resource)
        if not result.is_valid:
            issues.append(_security(
                parsed, F.RESOURCES, Codes.SECURITY_INVALID_RESOURCE_URI,
                f"Resource {n} is not a valid URI",
                suggestion="Ensure resource is a valid URI", line=line,
            ))
            continue

        if result.scheme == "http":
            issues.append(_security(
                parsed, F.RESOURCES, Codes.SECURITY_INSECURE_RESOURCE,
                f"Resource {n} uses insecure HTTP protocol",
                fixable=True, suggestion="Use HTTPS for secure resource access", line=line,
            ))
        host, _ = uri_host_port(resource)
        if host and is_suspicious_domain(host):
            issues.append(_security(
                parsed, F.RESOURCES, Codes.SECURITY_SUSPICIOUS_RESOURCE_DOMAIN,
                f"Resource {n} domain appears suspicious",
                suggestion="Verify resource domain legitimacy", line=line,
            ))
        if result.path in ("/", "/*"):
            issues.append(_security(
                parsed, F.RESOURCES, Codes.SECURITY_BROAD_RESOURCE_ACCESS,
                f"Resource {n} grants very broad access",
                suggestion="Use specific resource paths instead of wildcards", line=line,
            ))

    if len(resources) > MAX_RESOURCES:
        issues.append(_security(
            parsed, F.RESOURCES, Codes.SECURITY_TOO_MANY_RESOURCES,
            "Large number of resources may indicate over-permissioning",
            suggestion="Consider reducing scope of requested access", line=header_line,
        ))
    return issues


def validate_overall_security(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    fields = parsed.fields
    issues: List[Issue] = []

    score = sum((
        bool(fields.uri and fields.uri.startswith("https://")),
        bool(fields.expiration_time),
        bool(fields.nonce and len(fields.nonce) >= nonce_rules.SECURE_MIN_LENGTH),
    ))
    if score < 2:
        issues.append(_security(
            parsed, F.OVERALL, Codes.SECURITY_LOW_BASELINE, "Message lacks basic security features",
            suggestion="Implement HTTPS, expiration times and strong nonces", line=1,
        ))

    domain = fields.domain or ""
    indicators = (
        "test" in domain,
        "dev" in domain,
        "localhost" in domain,
        "localhost" in (fields.uri or ""),
        "test" in (fields.nonce or "").lower(),
    )
    if any(indicators):
        issues.append(_security(
            parsed, F.OVERALL, Codes.SECURITY_TESTING_INDICATORS,
            "Message contains development/testing indicators",
            severity=Severity.INFO,
            suggestion="Ensure production configuration for live deployment", line=1,
        ))
    return issues


SECURITY_RULES = (
    validate_replay_protection,
    validate_domain_binding,
    validate_time_security,
    validate_nonce_security,
    validate_resource_security,
    validate_overall_security,
)


def validate_security(parsed: ParsedMessage, now: Optional[datetime] = None) -> List[Issue]:
    current = resolve_now(now)
    issues: List[Issue] = []
    for rule in SECURITY_RULES:
        issues.extend(rule(parsed, now=current))
    return issues
