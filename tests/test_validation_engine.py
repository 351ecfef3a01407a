# -*- coding: utf-8 -*-
"""ValidationEngine: pipeline, profiles, reporting."""

from __future__ import annotations

import json

import pytest

from core.keys import Codes, FieldKeys as F
from core.types import Severity
from domain.grammar import FIELD_PREFIXES
from services import validation_engine
from services.auto_fixer import AutoFixer
from services.profiles import ValidationConfig, ValidationProfile
from services.validation_engine import ValidationEngine


@pytest.fixture
def engine(clock):
    return ValidationEngine(fixer=AutoFixer(clock=clock))


def _config(clock, **kw):
    return ValidationConfig(clock=clock, **kw)


def _codes(issues):
    return [i.code for i in issues]


def _without_field(message: str, name: str) -> str:
    lines = message.split("\n")
    if name == F.DOMAIN:
        del lines[0]
    elif name == F.ADDRESS:
        del lines[1]
    else:
        lines = [line for line in lines if not line.startswith(FIELD_PREFIXES[name])]
    return "\n".join(lines)


def test_well_formed_message_is_valid_and_clean(engine, clock, well_formed):
    result = engine.validate(well_formed, _config(clock))
    assert result.is_valid
    assert result.all_issues() == []
    assert result.fixed_message is None


def test_worked_example_has_no_basic_errors(engine, clock, example_message):
    result = engine.validate(example_message, _config(clock, profile="basic"))
    assert result.is_valid
    assert result.errors == []


def test_worked_example_is_valid_under_strict(engine, clock, example_message):
    result = engine.validate(example_message, _config(clock))
    assert result.is_valid
    assert Codes.SECURITY_NO_EXPIRATION in _codes(result.warnings)


def test_version_two_yields_exactly_one_fixable_error(engine, clock, example_message):
    text = example_message.replace("Version: 1", "Version: 2")
    result = engine.validate(text, _config(clock))

    [error] = result.errors
    assert error.code == Codes.VERSION_INVALID
    assert error.fixable
    assert not result.is_valid


def test_version_two_is_repaired_by_auto_fix(engine, clock, example_message):
    text = example_message.replace("Version: 1", "Version: 2")
    result = engine.validate(text, _config(clock, auto_fix=True))

    assert result.fixed_message is not None
    assert "Version: 1" in result.fixed_message.split("\n")
    assert engine.validate(result.fixed_message, _config(clock)).is_valid


def test_repeated_character_nonce_warnings(engine, clock, example_message):
    text = example_message.replace("Nonce: abcdef123456", "Nonce: aaaaaaaa")
    result = engine.validate(text, _config(clock))
    codes = _codes(result.warnings)
    assert Codes.SECURITY_WEAK_NONCE_PATTERN in codes
    assert Codes.SECURITY_LOW_NONCE_COMPLEXITY in codes


@pytest.mark.parametrize("name", F.REQUIRED)
def test_missing_required_field_is_reported_on_that_field(engine, clock, well_formed, name):
    result = engine.validate(_without_field(well_formed, name), _config(clock))
    assert not result.is_valid
    assert any(e.field == name for e in result.errors)


def test_oversized_message_short_circuits(engine, clock, well_formed):
    result = engine.validate(well_formed, _config(clock, max_message_size=16))
    assert _codes(result.errors) == [Codes.MESSAGE_TOO_LARGE]
    assert result.warnings == []
    assert not result.is_valid


def test_default_size_limit_counts_utf8_bytes(engine, clock):
    text = "é" * (6 * 1024)
    result = engine.validate(text, _config(clock))
    assert _codes(result.errors) == [Codes.MESSAGE_TOO_LARGE]


def test_crashing_validator_becomes_a_warning(engine, clock, well_formed, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(validation_engine, "validate_security", boom)
    result = engine.validate(well_formed, _config(clock))

    assert result.is_valid
    [crash] = result.warnings
    assert crash.code == Codes.VALIDATOR_CRASH
    assert crash.severity is Severity.WARNING


def test_unknown_profile_raises(engine, well_formed):
    with pytest.raises(KeyError):
        engine.validate(well_formed, ValidationConfig(profile="nope"))


def test_custom_profile_can_be_registered(engine, clock, example_message):
    engine.register_profile(ValidationProfile(name="quiet", errors_only=True))
    text = example_message.replace("Version: 1", "Version: 2")
    result = engine.validate(text, _config(clock, profile="quiet"))
    assert _codes(result.errors) == [Codes.VERSION_INVALID]
    assert result.warnings == []


def test_security_profile_promotes_warnings(engine, clock, example_message):
    result = engine.validate(example_message, _config(clock, profile="security"))
    assert Codes.SECURITY_NO_EXPIRATION in _codes(result.errors)
    assert not result.is_valid


@pytest.mark.parametrize("variant", [
    lambda m: m,
    lambda m: m.replace("Version: 1", "Version: 2"),
    lambda m: m.replace("abcdef123456", "aaaaaaaa"),
    lambda m: m.replace("https://example.com", "http://evil.com"),
    lambda m: m.replace("\n\n\n", "\n"),
    lambda m: m.replace("Chain ID: 1", "Chain ID: zero"),
    lambda m: "hello",
    lambda m: "",
])
def test_basic_errors_are_a_subset_of_strict_errors(engine, clock, example_message, variant):
    text = variant(example_message)

    def keys(profile):
        result = engine.validate(text, _config(clock, profile=profile))
        return {(e.code, e.field, e.line, e.column) for e in result.errors}

    assert keys("basic") <= keys("strict")


def test_quick_validate(engine, now, well_formed):
    assert engine.quick_validate(well_formed, now=now) == {
        "has_errors": False,
        "error_count": 0,
        "warning_count": 0,
        "is_complete": True,
    }
    assert engine.quick_validate("   ")["is_complete"] is False


def test_validate_field(engine, now, well_formed, example_message):
    assert engine.validate_field(well_formed, F.NONCE, now=now) == []
    text = example_message.replace("Version: 1", "Version: 2")
    assert _codes(engine.validate_field(text, F.VERSION, now=now)) == [Codes.VERSION_INVALID]
    assert engine.validate_field(well_formed, F.REQUEST_ID, now=now) == []
    with pytest.raises(KeyError):
        engine.validate_field(well_formed, "bogus", now=now)


def test_batch_validate(engine, clock, well_formed):
    results = engine.batch_validate([well_formed, "hello"], _config(clock))
    assert [r.is_valid for r in results] == [True, False]


def test_stats_and_report(engine, clock, now, example_message):
    text = example_message.replace("Version: 1", "Version: 2")
    result = engine.validate(text, _config(clock))

    stats = engine.get_validation_stats(result)
    assert stats["error_count"] == 1
    assert stats["compliance_issues"] == 1
    assert stats["total_issues"] == len(result.all_issues())

    report = engine.export_report(result, now=now)
    assert set(report) == {"summary", "details", "fix_suggestions"}
    assert report["summary"]["timestamp"] == "2024-01-01T00:05:00.000Z"
    assert report["summary"]["is_valid"] is False
    assert report["details"]["errors"][0]["code"] == Codes.VERSION_INVALID
    assert 'Set version to "1"' in report["fix_suggestions"]
    json.dumps(report)


def test_generated_samples_validate(engine, clock, now):
    samples = engine.generate_samples(now=now)
    assert set(samples) == {"minimal", "with_resources"}
    assert engine.validate(samples["minimal"], _config(clock, profile="basic")).is_valid

    rich = engine.validate(samples["with_resources"], _config(clock))
    assert rich.is_valid
    assert "Resources:" in samples["with_resources"]


def test_module_level_helpers_delegate(now, well_formed):
    config = ValidationConfig(clock=lambda: now)
    assert validation_engine.validate(well_formed, config).is_valid
    assert validation_engine.quick_validate(well_formed, now=now)["is_complete"]


def test_two_line_statement_is_collapsed_without_losing_fields(engine, clock, well_formed, build_message):
    lines = well_formed.split("\n")
    lines[3:4] = ["Line one", "Line two"]
    result = engine.validate("\n".join(lines), _config(clock, auto_fix=True))

    assert _codes(result.errors) == [Codes.STATEMENT_LINE_BREAKS]
    assert result.fixed_message == build_message(statement="Line one Line two")


def test_swapped_fields_are_reordered_by_auto_fix(engine, clock, well_formed):
    lines = well_formed.split("\n")
    lines[6], lines[7] = lines[7], lines[6]
    result = engine.validate("\n".join(lines), _config(clock, auto_fix=True))

    assert _codes(result.errors) == [Codes.FIELD_OUT_OF_ORDER]
    assert result.fixed_message == well_formed


def test_malformed_address_gets_no_layout_error(engine, clock, build_message):
    text = build_message(address="0x123", statement=None)
    result = engine.validate(text, _config(clock, auto_fix=True))

    assert _codes(result.errors) == [Codes.ADDRESS_INVALID_FORMAT]
    assert result.fixed_message is None
