"""Numeric range validation with optional ``{{name}}`` bounds."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from ..context import ValidationContext
from ..result import ValidationResult
from .base import CONFIGURATION, ValidationStrategy, format_number, is_number


def to_number(value: Any) -> float | None:
    """
    Coerce a number or numeric string, or return None.

    Examples:
        to_number(25) → 25
        to_number(" 2.5 ") → 2.5
        to_number("") → 0
        to_number("abc") → None
        to_number(True) → None
    """
    if is_number(value):
        return None if math.isnan(value) else value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


class RangeStrategy(ValidationStrategy):
    """
    Inclusive ``min``/``max`` bounds on a numeric value.

    Either bound may be a literal or a ``{{name}}`` reference into
    ``context.variables``. A reference that does not resolve leaves that
    side unbounded.
    """

    name = "range"
    priority = 55

    def can_handle(self, rule: Mapping[str, Any]) -> bool:
        return rule.get("min") is not None or rule.get("max") is not None

    def _bounds(self, context: ValidationContext) -> tuple[Any, Any]:
        rule, variables = context.rule, context.variables
        return (
            self.resolve_bound(rule.get("min"), variables),
            self.resolve_bound(rule.get("max"), variables),
        )

    def validate(self, context: ValidationContext) -> ValidationResult:
        value = context.value
        min_value, max_value = self._bounds(context)

        if self.is_missing(value):
            return self.failure(
                context,
                "Value is required for range validation",
                expected=f"min: {min_value}, max: {max_value}",
                actual=value,
            )

        number = to_number(value)
        if number is None:
            received = type(value).__name__
            return self.failure(
                context,
                f"Value must be a number (received: {received})",
                expected="number",
                actual=received,
            )

        for key, bound in (("min", min_value), ("max", max_value)):
            if bound is None:
                continue
            limit = to_number(bound)
            if limit is None:
                return self.failure(
                    context,
                    f"Invalid {key} configuration: must be a number",
                    expected=bound,
                    actual=type(bound).__name__,
                    kind=CONFIGURATION,
                )
            if key == "min" and number < limit:
                return self.failure(
                    context,
                    f"Value must be at least {format_number(limit)} "
                    f"(current: {format_number(number)})",
                    expected=f">= {format_number(limit)}",
                    actual=number,
                )
            if key == "max" and number > limit:
                return self.failure(
                    context,
                    f"Value must be at most {format_number(limit)} "
                    f"(current: {format_number(number)})",
                    expected=f"<= {format_number(limit)}",
                    actual=number,
                )

        return self.success(context)

    def suggest(self, context: ValidationContext) -> list[str]:
        value = context.value
        if self.is_missing(value):
            return ["Provide a numeric value"]

        number = to_number(value)
        if number is None:
            return ["Ensure value is a valid number", f"Current type: {type(value).__name__}"]

        min_value, max_value = self._bounds(context)
        low = to_number(min_value) if min_value is not None else None
        high = to_number(max_value) if max_value is not None else None

        suggestions = []
        if low is not None and number < low:
            suggestions.append(f"Increase value by at least {format_number(low - number)}")
            suggestions.append(f"Minimum allowed: {format_number(low)}")
        if high is not None and number > high:
            suggestions.append(f"Decrease value by at least {format_number(number - high)}")
            suggestions.append(f"Maximum allowed: {format_number(high)}")
        if low is not None and high is not None:
            suggestions.append(f"Valid range: {format_number(low)} to {format_number(high)}")
        return suggestions
