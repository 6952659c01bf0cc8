"""
Validation result model.

Validation failures are data, never exceptions: every strategy returns a
``ValidationResult`` and the registry folds them into a
``ValidationResultSet`` that the report layer can render directly.

Design Principles:
- Factory methods (success/failure) ensure valid field combinations
- message/severity/expected/actual are set only on failures
- A set is valid iff every result is valid or a warning
- errors/warnings keep the order the results were produced in
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any


class Severity(Enum):
    """How a failed result affects validity."""

    ERROR = "error"  # Blocks: makes the set invalid
    WARNING = "warning"  # Advisory: reported, set stays valid
    INFO = "info"


@dataclass
class ValidationResult:
    """
    Outcome of one strategy on one field.

    Example Usage:
        ValidationResult.success("age", "range", 30)
        ValidationResult.failure(
            "age", "range", 17, "Value must be at least 18 (current: 17)",
            expected=">= 18", actual=17,
        )
    """

    valid: bool
    field: str
    validator_name: str
    value: Any
    message: str | None = None
    severity: Severity | None = None
    expected: Any = None
    actual: Any = None
    metadata: dict[str, Any] | None = None

    @staticmethod
    def success(field: str, validator_name: str, value: Any) -> ValidationResult:
        """Create a passing result."""
        return ValidationResult(valid=True, field=field, validator_name=validator_name, value=value)

    @staticmethod
    def failure(
        field: str,
        validator_name: str,
        value: Any,
        message: str,
        severity: Severity = Severity.ERROR,
        expected: Any = None,
        actual: Any = None,
        metadata: dict[str, Any] | None = None,
    ) -> ValidationResult:
        """
        Create a failing result.

        Args:
            field: Field being validated
            validator_name: Strategy that produced the failure
            value: Value as validated
            message: Human-readable explanation
            severity: ERROR (default) or WARNING
            expected: Constraint, for programmatic inspection
            actual: Observed value or property
            metadata: Extra detail, e.g. {"kind": "configuration"}

        Returns:
            ValidationResult with valid=False
        """
        return ValidationResult(
            valid=False,
            field=field,
            validator_name=validator_name,
            value=value,
            message=message,
            severity=severity,
            expected=expected,
            actual=actual,
            metadata=metadata,
        )

    @property
    def is_warning(self) -> bool:
        return not self.valid and self.severity is Severity.WARNING


@dataclass
class ValidationResultSet:
    """Aggregate of every strategy result for one field."""

    valid: bool
    field: str | None = None
    results: list[ValidationResult] = dataclass_field(default_factory=list)
    errors: list[str] = dataclass_field(default_factory=list)
    warnings: list[str] = dataclass_field(default_factory=list)
    metadata: dict[str, Any] | None = None

    @property
    def failures(self) -> list[ValidationResult]:
        return get_failures(self.results)


def aggregate(field: str | None, results: list[ValidationResult]) -> ValidationResultSet:
    """
    Fold results into a set.

    Failures with severity WARNING go to ``warnings``; every other failure
    (including one without a severity) goes to ``errors``.
    """
    errors: list[str] = []
    warnings: list[str] = []

    for result in results:
        if result.valid or not result.message:
            continue
        if result.severity is Severity.WARNING:
            warnings.append(result.message)
        else:
            errors.append(result.message)

    return ValidationResultSet(
        valid=all(r.valid or r.severity is Severity.WARNING for r in results),
        field=field,
        results=list(results),
        errors=errors,
        warnings=warnings,
    )


def has_errors(result_set: ValidationResultSet) -> bool:
    return len(result_set.errors) > 0


def has_warnings(result_set: ValidationResultSet) -> bool:
    return len(result_set.warnings) > 0


def filter_by_severity(
    results: list[ValidationResult], severity: Severity
) -> list[ValidationResult]:
    return [r for r in results if r.severity is severity]


def get_failures(results: list[ValidationResult]) -> list[ValidationResult]:
    return [r for r in results if not r.valid]


def format_result(result: ValidationResult) -> str:
    """One-line rendering: ``✅ age: range passed`` / ``❌ age: <message>``."""
    if result.valid:
        return f"✅ {result.field}: {result.validator_name} passed"

    icon = "⚠️" if result.severity is Severity.WARNING else "❌"
    return f"{icon} {result.field}: {result.message or 'Validation failed'}"


def format_set(result_set: ValidationResultSet) -> str:
    """
    Multi-line rendering of a result set.

    Example:
        ❌ Validation failed for password
          Errors:
            - Field 'password' cannot be empty
            - Must be at least 8 characters (current: 0)
    """
    name = result_set.field or "field"
    lines = [
        f"✅ All validations passed for {name}"
        if result_set.valid
        else f"❌ Validation failed for {name}"
    ]

    if result_set.errors:
        lines.append("  Errors:")
        lines.extend(f"    - {error}" for error in result_set.errors)

    if result_set.warnings:
        lines.append("  Warnings:")
        lines.extend(f"    - {warning}" for warning in result_set.warnings)

    return "\n".join(lines)
