# -*- coding: utf-8 -*-
"""AutoFixer

Repairs fixable diagnostics by transforming an immutable SiweMessageFields
record and regenerating the whole message canonically.

- One pure remediation per diagnostic code (see ``REMEDIATIONS``).
- A remediation returns the new fields, or None when it cannot produce a
  valid value (the diagnostic then stays in ``remaining_issues``).
- Blank-line and whitespace diagnostics need no field change: canonical
  regeneration lays the message out correctly by construction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from app import config
from core.keys import Codes, FieldKeys as F
from core.types import AutoFixResult, Issue, ParsedMessage, SiweMessageFields
from core.validators.line_breaks import fix_line_breaks
from domain.checksum import checksum_address
from domain.clock import Clock, utc_now
from domain.fixes import (
    coerce_timestamp,
    collapse_statement,
    default_expiration,
    extend_nonce,
    fresh_nonce,
    now_timestamp,
    repair_address,
    strip_values,
    upgrade_to_https,
)
from domain.nonce import generate_nonce, is_secure
from domain.parse import format_rfc3339
from domain.parser import generate_message

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixContext:
    now: datetime
    nonce_length: int = config.NONCE_LENGTH
    expiration: timedelta = timedelta(minutes=config.DEFAULT_EXPIRATION_MINUTES)


Remediation = Callable[[SiweMessageFields, FixContext], Optional[SiweMessageFields]]


# --- remediations ---------------------------------------------------------------

def _checksum_address(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    repaired = repair_address(fields.address)
    return replace(fields, address=repaired) if repaired else None


def _set_version(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    return replace(fields, version="1")


def _add_issued_at(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    return replace(fields, issued_at=now_timestamp(ctx.now))


def _coerce(name: str) -> Remediation:
    def _fix(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
        value = coerce_timestamp(fields.get(name))
        return replace(fields, **{name: value}) if value else None

    return _fix


def _regenerate_nonce(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    return replace(fields, nonce=fresh_nonce(fields.nonce, ctx.nonce_length))


def _extend_nonce(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    current = fields.nonce
    if current and is_secure(current):
        return fields
    value = extend_nonce(current) if current else generate_nonce(ctx.nonce_length)
    return replace(fields, nonce=value)


def _https_uri(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    secure = upgrade_to_https(fields.uri)
    return replace(fields, uri=secure) if secure else None


def _collapse_statement(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    if not fields.statement:
        return None
    return replace(fields, statement=collapse_statement(fields.statement))


def _add_expiration(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    if fields.expiration_time:
        return fields
    expiration = default_expiration(fields.issued_at, ctx.now, ctx.expiration)
    return replace(fields, expiration_time=expiration) if expiration else None


def _https_resources(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    upgraded = tuple(upgrade_to_https(r) or r for r in fields.resources)
    if upgraded == fields.resources:
        return None
    return replace(fields, resources=upgraded)


def _strip_whitespace(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    return strip_values(fields)


def _canonical_layout(fields: SiweMessageFields, ctx: FixContext) -> Optional[SiweMessageFields]:
    return fields


_NONCE_REGENERATE = "Replaced weak nonce with cryptographically secure one"
_LAYOUT = "Normalized empty lines to the EIP-4361 layout"

REMEDIATIONS: Dict[str, Tuple[Remediation, str]] = {
    Codes.ADDRESS_NOT_CHECKSUM: (_checksum_address, "Converted address to EIP-55 checksum format"),
    Codes.ADDRESS_INVALID_CHECKSUM: (_checksum_address, "Recomputed EIP-55 checksum of address"),
    Codes.ADDRESS_INVALID_FORMAT: (_checksum_address, "Fixed address format (0x prefix and checksum)"),
    Codes.VERSION_REQUIRED: (_set_version, "Added required version field"),
    Codes.VERSION_INVALID: (_set_version, 'Corrected version to "1" for EIP-4361 compliance'),
    Codes.ISSUED_AT_REQUIRED: (_add_issued_at, "Added current timestamp for issuedAt"),
    Codes.ISSUED_AT_INVALID_FORMAT: (_coerce(F.ISSUED_AT), "Fixed issuedAt timestamp format to RFC 3339"),
    Codes.EXPIRATION_TIME_INVALID_FORMAT: (
        _coerce(F.EXPIRATION_TIME), "Fixed expirationTime timestamp format to RFC 3339",
    ),
    Codes.NOT_BEFORE_INVALID_FORMAT: (_coerce(F.NOT_BEFORE), "Fixed notBefore timestamp format to RFC 3339"),
    Codes.NONCE_REQUIRED: (_regenerate_nonce, "Generated cryptographically secure nonce"),
    Codes.SECURITY_NO_NONCE: (_regenerate_nonce, "Generated cryptographically secure nonce"),
    Codes.NONCE_TOO_SHORT: (_extend_nonce, "Extended nonce to meet minimum security length"),
    Codes.SECURITY_SHORT_NONCE: (_extend_nonce, "Extended nonce to meet minimum security length"),
    Codes.NONCE_WEAK_ENTROPY: (_regenerate_nonce, _NONCE_REGENERATE),
    Codes.NONCE_SEQUENTIAL: (_regenerate_nonce, _NONCE_REGENERATE),
    Codes.SECURITY_LOW_NONCE_ENTROPY: (_regenerate_nonce, _NONCE_REGENERATE),
    Codes.SECURITY_PREDICTABLE_NONCE: (_regenerate_nonce, _NONCE_REGENERATE),
    Codes.SECURITY_WEAK_NONCE_PATTERN: (_regenerate_nonce, _NONCE_REGENERATE),
    Codes.SECURITY_LOW_NONCE_COMPLEXITY: (_regenerate_nonce, _NONCE_REGENERATE),
    Codes.URI_INSECURE_SCHEME: (_https_uri, "Changed URI scheme from HTTP to HTTPS"),
    Codes.STATEMENT_LINE_BREAKS: (_collapse_statement, "Removed line breaks from statement"),
    Codes.SECURITY_NO_EXPIRATION: (_add_expiration, "Added 10-minute expiration time for security"),
    Codes.SECURITY_INSECURE_RESOURCE: (_https_resources, "Changed resource URIs from HTTP to HTTPS"),
    Codes.TRAILING_WHITESPACE: (_strip_whitespace, "Removed trailing whitespace"),
}
REMEDIATIONS.update({code: (_canonical_layout, _LAYOUT) for code in Codes.LINE_BREAK_CODES})
REMEDIATIONS[Codes.FIELD_OUT_OF_ORDER] = (_canonical_layout, "Reordered fields to the EIP-4361 order")


class AutoFixer:
    def __init__(
        self,
        clock: Clock = utc_now,
        nonce_length: int = config.NONCE_LENGTH,
        expiration_minutes: int = config.DEFAULT_EXPIRATION_MINUTES,
        remediations: Optional[Mapping[str, Tuple[Remediation, str]]] = None,
    ):
        self.clock = clock
        self.nonce_length = nonce_length
        self.expiration = timedelta(minutes=expiration_minutes)
        self.remediations: Dict[str, Tuple[Remediation, str]] = dict(REMEDIATIONS)
        if remediations:
            self.remediations.update(remediations)

    def _context(self, now: Optional[datetime] = None) -> FixContext:
        return FixContext(
            now=now or self.clock(),
            nonce_length=self.nonce_length,
            expiration=self.expiration,
        )

    def fix_message(self, parsed: ParsedMessage, issues: Sequence[Issue],
                    now: Optional[datetime] = None) -> AutoFixResult:
        """Apply every available remediation and regenerate the message.

        Non-fixable issues and fixable ones whose remediation failed are
        returned in ``remaining_issues`` in their original order.
        """
        if not any(issue.fixable for issue in issues):
            return AutoFixResult(fixed=False, message=parsed.raw_message, applied_fixes=[],
                                 remaining_issues=list(issues))

        ctx = self._context(now)
        fields = parsed.fields
        applied: List[str] = []
        applied_codes: List[str] = []
        remaining: List[Issue] = []

        for issue in issues:
            entry = self.remediations.get(issue.code) if issue.fixable else None
            if entry is None:
                remaining.append(issue)
                continue
            remediation, description = entry
            try:
                updated = remediation(fields, ctx)
            except Exception:
                log.debug("remediation for %s failed", issue.code, exc_info=True)
                updated = None
            if updated is None:
                remaining.append(issue)
                continue
            fields = updated
            applied.append(description)
            applied_codes.append(issue.code)

        if not applied:
            return AutoFixResult(fixed=False, message=parsed.raw_message, applied_fixes=[],
                                 remaining_issues=remaining)

        log.debug("applied %d fixes: %s", len(applied_codes), ", ".join(applied_codes))
        return AutoFixResult(
            fixed=True,
            message=generate_message(fields),
            applied_fixes=applied,
            remaining_issues=remaining,
            applied_codes=applied_codes,
        )

    def preview_fixes(self, parsed: ParsedMessage, issues: Sequence[Issue]) -> Dict[str, Any]:
        """Describe what ``fix_message`` would attempt, without applying anything."""
        fixes = [
            {"issue": issue, "description": self.remediations[issue.code][1]}
            for issue in issues
            if issue.fixable and issue.code in self.remediations
        ]
        return {"fixable_count": len(fixes), "fixes": fixes}

    def generate_template(self, overrides: Optional[Mapping[str, Any]] = None,
                          now: Optional[datetime] = None) -> str:
        """A compliant message with secure defaults.

        ``overrides`` maps field names to values and wins over every default.
        A well-formed override address is checksummed.
        """
        moment = now or self.clock()
        fields = SiweMessageFields(
            domain=config.TEMPLATE_DOMAIN,
            address=checksum_address(config.TEMPLATE_ADDRESS),
            statement=config.TEMPLATE_STATEMENT,
            uri=config.TEMPLATE_URI,
            version="1",
            chain_id=config.TEMPLATE_CHAIN_ID,
            nonce=generate_nonce(self.nonce_length),
            issued_at=now_timestamp(moment),
            expiration_time=format_rfc3339(moment + self.expiration),
        )
        if overrides:
            values = dict(overrides)
            if "resources" in values:
                values["resources"] = tuple(values["resources"] or ())
            fields = replace(fields, **values)
            fields = replace(fields, address=checksum_address(fields.address) or fields.address)
        return generate_message(fields)

    def fix_common_formatting(self, message: str) -> str:
        """Normalize line endings, then repair blank lines and trailing whitespace."""
        normalized = message.replace("\r\n", "\n").replace("\r", "\n")
        return fix_line_breaks(normalized)


def fix_message(parsed: ParsedMessage, issues: Sequence[Issue], now: Optional[datetime] = None) -> AutoFixResult:
    return AutoFixer().fix_message(parsed, issues, now=now)


def generate_template(overrides: Optional[Mapping[str, Any]] = None, now: Optional[datetime] = None) -> str:
    return AutoFixer().generate_template(overrides, now=now)
