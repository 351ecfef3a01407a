# -*- coding: utf-8 -*-
"""ValidationEngine

Orchestrates parser and validators under a named profile.

Pipeline (short-circuits on size):
    size check -> line breaks -> parser -> field rules -> security rules
    -> profile filter -> severity partition -> optional auto-fix

- Validators are pure and return core.types.Issue instances.
- A crashing validator group yields one VALIDATOR_CRASH issue (see logs)
  instead of propagating.
- No state is shared between calls; "now" comes from the config clock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from core.keys import Codes, FieldKeys as F
from core.types import Issue, IssueType, Severity, ValidationResult
from core.validators.fields import FIELD_VALIDATORS, validate_fields
from core.validators.line_breaks import validate_line_breaks
from core.validators.security import validate_security
from domain.clock import resolve_now
from domain.parse import format_rfc3339
from domain.parser import parse_message
from infra import perf
from services.auto_fixer import AutoFixer
from services.profiles import ValidationConfig, ValidationProfile, default_profiles

log = logging.getLogger(__name__)

_FIELDS_WITHOUT_RULES = (F.SCHEME, F.REQUEST_ID, F.RESOURCES)


def _crash_issue(label: str) -> Issue:
    return Issue(
        code=Codes.VALIDATOR_CRASH,
        message=f"Validator '{label}' failed (see logs).",
        field=F.UNKNOWN,
        severity=Severity.WARNING,
    )


def _guarded(label: str, fn: Callable[..., List[Issue]], *args, **kwargs) -> List[Issue]:
    try:
        with perf.span(f"validate.{label}"):
            return list(fn(*args, **kwargs) or [])
    except Exception:
        log.debug("validator %s failed", label, exc_info=True)
        return [_crash_issue(label)]


def _partition(issues: Iterable[Issue]):
    errors: List[Issue] = []
    warnings: List[Issue] = []
    suggestions: List[Issue] = []
    for issue in issues:
        if issue.severity is Severity.ERROR:
            errors.append(issue)
        elif issue.severity is Severity.WARNING:
            warnings.append(issue)
        else:
            suggestions.append(issue)
    return errors, warnings, suggestions


class ValidationEngine:
    def __init__(
        self,
        profiles: Optional[Mapping[str, ValidationProfile]] = None,
        fixer: Optional[AutoFixer] = None,
    ):
        self.profiles: Dict[str, ValidationProfile] = (
            dict(profiles) if profiles is not None else default_profiles()
        )
        self.fixer = fixer

    def register_profile(self, profile: ValidationProfile) -> None:
        self.profiles[profile.name] = profile

    def get_profile(self, name: str) -> ValidationProfile:
        """Raises KeyError for a name no profile was registered under."""
        try:
            return self.profiles[name]
        except KeyError:
            raise KeyError(f"unknown validation profile: {name!r}") from None

    def _fixer_for(self, config: ValidationConfig) -> AutoFixer:
        return self.fixer or AutoFixer(clock=config.clock)

    # --- main entry points ---

    def validate(self, message: str, config: Optional[ValidationConfig] = None) -> ValidationResult:
        config = config or ValidationConfig()
        profile = self.get_profile(config.profile)
        now = resolve_now(config.clock())

        size = len(message.encode("utf-8"))
        if size > config.max_message_size:
            issue = Issue(
                code=Codes.MESSAGE_TOO_LARGE,
                message=f"Message too large ({size} bytes, max {config.max_message_size})",
                field=F.MESSAGE,
            )
            return ValidationResult(is_valid=False, errors=[issue], warnings=[], suggestions=[],
                                    original_message=message)

        issues: List[Issue] = []
        issues.extend(_guarded("line_breaks", validate_line_breaks, message))

        with perf.span("validate.parse"):
            parsed = parse_message(message)
        issues.extend(parsed.parse_errors)

        if not parsed.fields.is_empty():
            issues.extend(_guarded("fields", validate_fields, parsed, now=now))
            if profile.run_security:
                issues.extend(_guarded("security", validate_security, parsed, now=now))

        filtered = profile.apply(issues)
        errors, warnings, suggestions = _partition(filtered)
        result = ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
            original_message=message,
        )

        if config.auto_fix and any(issue.fixable for issue in filtered):
            with perf.span("validate.auto_fix"):
                fix = self._fixer_for(config).fix_message(parsed, filtered, now=now)
            if fix.fixed:
                result.fixed_message = fix.message

        log.debug(
            "validated message (%d bytes) with profile %s: %d errors, %d warnings, %d suggestions",
            size, profile.name, len(errors), len(warnings), len(suggestions),
        )
        return result

    def quick_validate(self, message: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Cheap check for interactive use: field rules only."""
        if not message.strip():
            return {"has_errors": False, "error_count": 0, "warning_count": 0, "is_complete": False}

        parsed = parse_message(message)
        issues = _guarded("fields", validate_fields, parsed, now=resolve_now(now))
        error_count = sum(1 for i in issues if i.severity is Severity.ERROR)
        warning_count = sum(1 for i in issues if i.severity is Severity.WARNING)
        return {
            "has_errors": error_count > 0,
            "error_count": error_count,
            "warning_count": warning_count,
            "is_complete": parsed.fields.has_required(),
        }

    def validate_field(self, message: str, field_name: str, now: Optional[datetime] = None) -> List[Issue]:
        validator = FIELD_VALIDATORS.get(field_name)
        if validator is None:
            if field_name in _FIELDS_WITHOUT_RULES:
                return []
            raise KeyError(f"unknown field: {field_name!r}")
        return validator(parse_message(message), now=resolve_now(now))

    def batch_validate(self, messages: Sequence[str],
                       config: Optional[ValidationConfig] = None) -> List[ValidationResult]:
        return [self.validate(message, config) for message in messages]

    # --- reporting ---

    @staticmethod
    def get_validation_stats(result: ValidationResult) -> Dict[str, int]:
        issues = result.all_issues()
        return {
            "total_issues": len(issues),
            "error_count": len(result.errors),
            "warning_count": len(result.warnings),
            "suggestion_count": len(result.suggestions),
            "fixable_count": sum(1 for i in issues if i.fixable),
            "security_issues": sum(1 for i in issues if i.type is IssueType.SECURITY),
            "compliance_issues": sum(1 for i in issues if i.type is IssueType.COMPLIANCE),
            "format_issues": sum(1 for i in issues if i.type is IssueType.FORMAT),
        }

    @staticmethod
    def export_report(result: ValidationResult, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Plain-dict report (JSON serializable)."""
        summary = {
            "is_valid": result.is_valid,
            "timestamp": format_rfc3339(resolve_now(now)),
            "message_length": len(result.original_message),
            "statistics": ValidationEngine.get_validation_stats(result),
        }
        details = {
            "errors": [
                {
                    "type": e.type.value,
                    "field": e.field,
                    "line": e.line,
                    "message": e.message,
                    "code": e.code,
                    "fixable": e.fixable,
                }
                for e in result.errors
            ],
            "warnings": [
                {"type": w.type.value, "field": w.field, "line": w.line, "message": w.message, "code": w.code}
                for w in result.warnings
            ],
            "suggestions": [
                {"field": s.field, "message": s.message, "suggestion": s.suggestion}
                for s in result.suggestions
            ],
        }
        fix_suggestions = [e.suggestion or "Apply auto-fix" for e in result.errors if e.fixable]
        fix_suggestions += [w.suggestion for w in result.warnings if w.suggestion]
        return {"summary": summary, "details": details, "fix_suggestions": fix_suggestions}

    def generate_samples(self, now: Optional[datetime] = None) -> Dict[str, str]:
        """Example messages: a minimal one and a template carrying resources."""
        moment = resolve_now(now)
        fixer = self.fixer or AutoFixer()
        minimal = "\n".join([
            "example.com wants you to sign in with your Ethereum account:",
            "0x742d35Cc6C4C1Ca5d428d9eE0e9B1E1234567890",
            "",
            "",
            "URI: https://example.com",
            "Version: 1",
            "Chain ID: 1",
            "Nonce: abcdef123456",
            f"Issued At: {format_rfc3339(moment)}",
        ])
        with_resources = fixer.generate_template(
            {
                "domain": "app.example.com",
                "statement": "Sign in to our Web3 application.",
                "uri": "https://app.example.com/auth",
                "chain_id": "137",
                "resources": ("https://api.example.com/user", "https://storage.example.com/files"),
            },
            now=moment,
        )
        return {"minimal": minimal, "with_resources": with_resources}


_default_engine = ValidationEngine()


def validate(message: str, config: Optional[ValidationConfig] = None) -> ValidationResult:
    return _default_engine.validate(message, config)


def quick_validate(message: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    return _default_engine.quick_validate(message, now=now)


def validate_field(message: str, field_name: str, now: Optional[datetime] = None) -> List[Issue]:
    return _default_engine.validate_field(message, field_name, now=now)


def batch_validate(messages: Sequence[str], config: Optional[ValidationConfig] = None) -> List[ValidationResult]:
    return _default_engine.batch_validate(messages, config)


def get_validation_stats(result: ValidationResult) -> Dict[str, int]:
    return ValidationEngine.get_validation_stats(result)


def export_report(result: ValidationResult, now: Optional[datetime] = None) -> Dict[str, Any]:
    return ValidationEngine.export_report(result, now=now)


def generate_samples(now: Optional[datetime] = None) -> Dict[str, str]:
    return _default_engine.generate_samples(now=now)
