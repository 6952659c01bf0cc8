"""String and array length validation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..context import ValidationContext
from ..result import ValidationResult
from .base import CONFIGURATION, ValidationStrategy, is_finite_number


def _unit(value: Any, count: float) -> str:
    noun = "character" if isinstance(value, str) else "element"
    return noun if count == 1 else f"{noun}s"


def _is_sized(value: Any) -> bool:
    return isinstance(value, (str, list, tuple))


class _LengthStrategy(ValidationStrategy):
    """Shared bound lookup for the two length strategies."""

    keys: tuple[str, str]
    priority = 50

    def can_handle(self, rule: Mapping[str, Any]) -> bool:
        return any(rule.get(key) is not None for key in self.keys)

    def bound(self, rule: Mapping[str, Any]) -> Any:
        return self.first_key(rule, *self.keys)

    def invalid_bound(self, context: ValidationContext, bound: Any) -> ValidationResult | None:
        if is_finite_number(bound) and bound >= 0:
            return None
        return self.failure(
            context,
            f"Invalid {self.name} configuration: must be a positive number",
            expected=bound,
            actual=type(bound).__name__,
            kind=CONFIGURATION,
        )

    def not_sized(self, context: ValidationContext) -> ValidationResult:
        return self.failure(
            context,
            "Value must be a string or array for length validation",
            expected="string | array",
            actual=type(context.value).__name__,
        )


class MinLengthStrategy(_LengthStrategy):
    """Length must be at least ``min_length`` (null/undefined counts as 0)."""

    name = "min_length"
    keys = ("min_length", "minLength")

    def validate(self, context: ValidationContext) -> ValidationResult:
        min_length = self.bound(context.rule)
        invalid = self.invalid_bound(context, min_length)
        if invalid:
            return invalid

        value = context.value
        if self.is_missing(value):
            if min_length == 0:
                return self.success(context)
            return self.failure(
                context,
                f"Must be at least {min_length} characters (current: 0)",
                expected=min_length,
                actual=0,
            )

        if not _is_sized(value):
            return self.not_sized(context)

        length = len(value)
        if length >= min_length:
            return self.success(context)

        return self.failure(
            context,
            f"Must be at least {min_length} {_unit(value, min_length)} (current: {length})",
            expected=min_length,
            actual=length,
        )

    def suggest(self, context: ValidationContext) -> list[str]:
        value = context.value
        if self.is_missing(value):
            return ["Provide a non-empty value"]
        if not _is_sized(value):
            return ["Ensure value is a string or array"]

        min_length = self.bound(context.rule)
        if not is_finite_number(min_length):
            return []
        deficit = min_length - len(value)
        if deficit <= 0:
            return []
        return [f"Add at least {deficit} more {_unit(value, deficit)}"]


class MaxLengthStrategy(_LengthStrategy):
    """Length must be at most ``max_length`` (null/undefined always passes)."""

    name = "max_length"
    keys = ("max_length", "maxLength")

    def validate(self, context: ValidationContext) -> ValidationResult:
        max_length = self.bound(context.rule)
        invalid = self.invalid_bound(context, max_length)
        if invalid:
            return invalid

        value = context.value
        if self.is_missing(value):
            return self.success(context)

        if not _is_sized(value):
            return self.not_sized(context)

        length = len(value)
        if length <= max_length:
            return self.success(context)

        return self.failure(
            context,
            f"Must be at most {max_length} {_unit(value, max_length)} (current: {length})",
            expected=max_length,
            actual=length,
        )

    def suggest(self, context: ValidationContext) -> list[str]:
        value = context.value
        if self.is_missing(value):
            return []
        if not _is_sized(value):
            return ["Ensure value is a string or array"]

        max_length = self.bound(context.rule)
        if not is_finite_number(max_length):
            return []
        excess = len(value) - max_length
        if excess <= 0:
            return []
        if isinstance(value, str):
            return [
                f"Remove at least {excess} {_unit(value, excess)}",
                f"Shorten text to {max_length} characters or less",
            ]
        return [
            f"Remove at least {excess} {_unit(value, excess)}",
            f"Reduce array to {max_length} elements or fewer",
        ]
