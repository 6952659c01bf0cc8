"""Tests for the validation result model and context builder."""

import pytest

from flowtest_engine.engine.validation import (
    Severity,
    ValidationContext,
    ValidationContextBuilder,
    ValidationResult,
    aggregate,
    filter_by_severity,
    format_result,
    format_set,
    get_failures,
    has_errors,
    has_warnings,
)

PASS = ValidationResult.success("age", "range", 30)
ERROR = ValidationResult.failure("age", "type", "x", "Expected type 'number', got 'string'")
WARNING = ValidationResult.failure("age", "advisory", 30, "Unusual age", severity=Severity.WARNING)


class TestResult:
    """Factory methods."""

    def test_success(self) -> None:
        """Success leaves failure fields unset."""
        assert PASS.valid
        assert PASS.message is None and PASS.severity is None
        assert not PASS.is_warning

    def test_failure_defaults_to_error(self) -> None:
        """Failures default to ERROR severity."""
        assert not ERROR.valid
        assert ERROR.severity is Severity.ERROR
        assert WARNING.is_warning


class TestAggregate:
    """Folding results into a set."""

    def test_errors_and_warnings_split(self) -> None:
        """Messages are split by severity, in order."""
        result_set = aggregate("age", [PASS, ERROR, WARNING])
        assert not result_set.valid
        assert result_set.errors == ["Expected type 'number', got 'string'"]
        assert result_set.warnings == ["Unusual age"]
        assert has_errors(result_set) and has_warnings(result_set)
        assert result_set.failures == [ERROR, WARNING]

    def test_only_warnings_valid(self) -> None:
        """Warnings alone keep the set valid."""
        result_set = aggregate("age", [PASS, WARNING])
        assert result_set.valid
        assert not has_errors(result_set)

    def test_empty(self) -> None:
        """No results is a valid set."""
        result_set = aggregate(None, [])
        assert result_set.valid
        assert result_set.results == []

    def test_filters(self) -> None:
        """Filtering helpers."""
        results = [PASS, ERROR, WARNING]
        assert filter_by_severity(results, Severity.WARNING) == [WARNING]
        assert filter_by_severity(results, Severity.ERROR) == [ERROR]
        assert get_failures(results) == [ERROR, WARNING]


class TestFormatting:
    """Human-readable rendering."""

    @pytest.mark.parametrize(
        ("result", "text"),
        [
            (PASS, "✅ age: range passed"),
            (ERROR, "❌ age: Expected type 'number', got 'string'"),
            (WARNING, "⚠️ age: Unusual age"),
        ],
    )
    def test_format_result(self, result: ValidationResult, text: str) -> None:
        """Icons reflect validity and severity."""
        assert format_result(result) == text

    def test_format_set_failed(self) -> None:
        """Failed sets list errors then warnings."""
        text = format_set(aggregate("age", [ERROR, WARNING]))
        assert text.splitlines() == [
            "❌ Validation failed for age",
            "  Errors:",
            "    - Expected type 'number', got 'string'",
            "  Warnings:",
            "    - Unusual age",
        ]

    def test_format_set_passed(self) -> None:
        """Passing sets are a single line."""
        assert format_set(aggregate("age", [PASS])) == "✅ All validations passed for age"


class TestContextBuilder:
    """Fluent context construction."""

    def test_build(self) -> None:
        """All parts are carried into the context."""
        context = (
            ValidationContextBuilder.create("age", 17)
            .with_rule({"min": "{{min_age}}"})
            .with_variables({"min_age": 18})
            .with_metadata({"source": "form"})
            .build()
        )
        assert context == ValidationContext(
            field="age",
            value=17,
            rule={"min": "{{min_age}}"},
            variables={"min_age": 18},
            metadata={"source": "form"},
        )

    def test_build_requires_rule(self) -> None:
        """A rule is mandatory."""
        with pytest.raises(ValueError, match="Validation rule is required for field: age"):
            ValidationContextBuilder.create("age", 17).build()

    def test_with_value(self) -> None:
        """with_value copies the context."""
        context = ValidationContext(field="f", value=1, rule={"required": True})
        changed = context.with_value(2)
        assert changed.value == 2 and context.value == 1
        assert changed.rule is context.rule
