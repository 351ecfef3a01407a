"""siwe-lint package entry.

Validation and repair of Sign-In with Ethereum (EIP-4361) messages.
The implementation lives in the top-level packages (core/, domain/,
services/); this package re-exports the public surface.
"""

from siwe_lint.version import __version__  # single source of truth

from core.keys import Codes, FieldKeys
from core.types import AutoFixResult, Issue, IssueType, ParsedMessage, Severity, SiweMessageFields, ValidationResult
from domain.clock import fixed_clock, utc_now
from domain.parser import generate_message, get_field_line, parse_message
from services.auto_fixer import AutoFixer
from services.field_replacer import FieldReplacer
from services.profiles import ValidationConfig, ValidationProfile, default_profiles
from services.validation_engine import (
    ValidationEngine,
    batch_validate,
    export_report,
    generate_samples,
    get_validation_stats,
    quick_validate,
    validate,
    validate_field,
)

__all__ = [
    "__version__",
    "AutoFixResult",
    "AutoFixer",
    "Codes",
    "FieldKeys",
    "FieldReplacer",
    "Issue",
    "IssueType",
    "ParsedMessage",
    "Severity",
    "SiweMessageFields",
    "ValidationConfig",
    "ValidationEngine",
    "ValidationProfile",
    "ValidationResult",
    "batch_validate",
    "default_profiles",
    "export_report",
    "fixed_clock",
    "generate_message",
    "generate_samples",
    "get_field_line",
    "get_validation_stats",
    "parse_message",
    "quick_validate",
    "utc_now",
    "validate",
    "validate_field",
]
