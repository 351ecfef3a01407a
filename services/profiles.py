# -*- coding: utf-8 -*-
"""Validation profiles and per-call configuration.

A profile is a named, stateless filtering policy. Applying it is a pure
function from issue list to issue list; it never mutates the input.
The built-in table is only a default: engines receive their profiles at
construction and callers may register their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List

from app import config
from core.keys import Codes
from core.types import Issue, IssueType, Severity
from domain.clock import Clock, utc_now


@dataclass(frozen=True)
class ValidationProfile:
    name: str
    description: str = ""
    # run the cross-field security rules
    run_security: bool = False
    drop_security_warnings: bool = False
    drop_dev_indicators: bool = False
    errors_only: bool = False
    drop_compliance: bool = False
    promote_security_warnings: bool = False

    def keeps(self, issue: Issue) -> bool:
        if self.errors_only and issue.severity is not Severity.ERROR:
            return False
        if self.drop_compliance and issue.type is IssueType.COMPLIANCE:
            return False
        if (
            self.drop_security_warnings
            and issue.type is IssueType.SECURITY
            and issue.severity is Severity.WARNING
        ):
            return False
        if self.drop_dev_indicators and issue.code in Codes.DEV_INDICATOR_CODES:
            return False
        return True

    def apply(self, issues: Iterable[Issue]) -> List[Issue]:
        out: List[Issue] = []
        for issue in issues:
            if not self.keeps(issue):
                continue
            if (
                self.promote_security_warnings
                and issue.type is IssueType.SECURITY
                and issue.severity is Severity.WARNING
            ):
                issue = replace(issue, severity=Severity.ERROR)
            out.append(issue)
        return out


STRICT = ValidationProfile(
    name="strict",
    description="All diagnostics, security rules included",
    run_security=True,
)
DEVELOPMENT = ValidationProfile(
    name="development",
    description="Relaxed rules for local development",
    drop_security_warnings=True,
    drop_dev_indicators=True,
)
SECURITY = ValidationProfile(
    name="security",
    description="Security warnings are treated as errors",
    run_security=True,
    promote_security_warnings=True,
)
BASIC = ValidationProfile(
    name="basic",
    description="Format and security errors only",
    errors_only=True,
    drop_compliance=True,
)


def default_profiles() -> Dict[str, ValidationProfile]:
    """Fresh copy of the built-in table (safe to extend per engine)."""
    return {p.name: p for p in (STRICT, DEVELOPMENT, SECURITY, BASIC)}


@dataclass(frozen=True)
class ValidationConfig:
    profile: str = config.DEFAULT_PROFILE
    auto_fix: bool = False
    max_message_size: int = config.DEFAULT_MAX_MESSAGE_SIZE
    clock: Clock = field(default=utc_now, compare=False)
