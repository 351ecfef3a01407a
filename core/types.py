# -*- coding: utf-8 -*-
"""Shared domain types (pure, test-friendly)."""

from __future__ import annotations

from dataclasses import dataclass, field, fields as dc_fields
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from core.keys import FieldKeys as F


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class IssueType(str, Enum):
    FORMAT = "format"
    SECURITY = "security"
    COMPLIANCE = "compliance"


@dataclass(frozen=True)
class Issue:
    """One diagnostic.

    ``line`` and ``column`` are 1-based and always point into the original
    message text, never into a rewritten copy.
    """

    code: str
    message: str
    type: IssueType = IssueType.FORMAT
    field: str = F.UNKNOWN
    line: int = 1
    column: int = 1
    severity: Severity = Severity.ERROR
    fixable: bool = False
    suggestion: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "field": self.field,
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "severity": self.severity.value,
            "fixable": self.fixable,
            "suggestion": self.suggestion,
            "code": self.code,
        }


@dataclass(frozen=True)
class SiweMessageFields:
    """Raw field values as they appear in the message.

    Nothing is validated here; a value may be syntactically wrong.
    """

    scheme: Optional[str] = None
    domain: Optional[str] = None
    address: Optional[str] = None
    statement: Optional[str] = None
    uri: Optional[str] = None
    version: Optional[str] = None
    chain_id: Optional[str] = None
    nonce: Optional[str] = None
    issued_at: Optional[str] = None
    expiration_time: Optional[str] = None
    not_before: Optional[str] = None
    request_id: Optional[str] = None
    resources: Tuple[str, ...] = ()

    def get(self, name: str):
        return getattr(self, name, None)

    def is_empty(self) -> bool:
        for f in dc_fields(self):
            if getattr(self, f.name):
                return False
        return True

    def has_required(self) -> bool:
        return all(getattr(self, name) for name in F.REQUIRED)


@dataclass(frozen=True)
class ParsedMessage:
    fields: SiweMessageFields
    lines: Tuple[str, ...]
    raw_message: str
    is_valid: bool
    parse_errors: Tuple[Issue, ...] = ()
    # 1-based line where each field was found, or where it was expected
    positions: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    statement_lines: Tuple[int, ...] = ()
    resource_lines: Tuple[int, ...] = ()


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[Issue]
    warnings: List[Issue]
    suggestions: List[Issue]
    original_message: str
    fixed_message: Optional[str] = None

    def all_issues(self) -> List[Issue]:
        return [*self.errors, *self.warnings, *self.suggestions]


@dataclass
class AutoFixResult:
    fixed: bool
    message: str
    applied_fixes: List[str]
    remaining_issues: List[Issue]
    applied_codes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DomainValidation:
    is_valid: bool
    is_subdomain: bool
    tld: Optional[str]
    security_risk: str = "none"  # none | low | medium | high


@dataclass(frozen=True)
class AddressValidation:
    is_valid: bool
    is_checksum: bool
    format: str  # lowercase | uppercase | mixed | checksum


@dataclass(frozen=True)
class TimeValidation:
    is_valid: bool
    value: str
    timestamp: Optional[datetime]
    timezone: Optional[str]


@dataclass(frozen=True)
class UriValidation:
    is_valid: bool
    scheme: Optional[str] = None
    authority: Optional[str] = None
    path: Optional[str] = None
    query: Optional[str] = None
    fragment: Optional[str] = None


@dataclass(frozen=True)
class NonceValidation:
    is_valid: bool
    length: int
    entropy: float
    pattern: str  # random | sequential | predictable | weak
