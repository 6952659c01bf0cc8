"""Required-value validation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..context import ValidationContext
from ..result import ValidationResult
from .base import ValidationStrategy, is_number


class RequiredStrategy(ValidationStrategy):
    """
    Fail on null, undefined, "", [], and {}.

    ``False`` and ``0`` pass unless the rule sets ``allow_false: false`` or
    ``allow_zero: false``.
    """

    name = "required"
    priority = 100

    def can_handle(self, rule: Mapping[str, Any]) -> bool:
        return rule.get("required") is True

    def validate(self, context: ValidationContext) -> ValidationResult:
        field, value, rule = context.field, context.value, context.rule
        allow_false = rule.get("allow_false") is not False
        allow_zero = rule.get("allow_zero") is not False

        if self.is_missing(value):
            return self.failure(
                context,
                f"Field '{field}' is required",
                expected="non-null value",
                actual="null" if value is None else "undefined",
            )

        if value == "" and isinstance(value, str):
            return self.failure(
                context,
                f"Field '{field}' cannot be empty",
                expected="non-empty value",
                actual="empty string",
            )

        if isinstance(value, (list, tuple)) and len(value) == 0:
            return self.failure(
                context,
                f"Field '{field}' cannot be an empty array",
                expected="non-empty array",
                actual="empty array",
            )

        if isinstance(value, Mapping) and len(value) == 0:
            return self.failure(
                context,
                f"Field '{field}' cannot be an empty object",
                expected="non-empty object",
                actual="empty object",
            )

        if value is False and not allow_false:
            return self.failure(
                context, f"Field '{field}' must be true", expected=True, actual=False
            )

        if is_number(value) and value == 0 and not allow_zero:
            return self.failure(
                context, f"Field '{field}' cannot be zero", expected="non-zero number", actual=0
            )

        return self.success(context)

    def suggest(self, context: ValidationContext) -> list[str]:
        value = context.value
        if self.is_missing(value):
            return [
                f"Provide a value for '{context.field}'",
                "Ensure the field is set before validation",
            ]
        if isinstance(value, str) and value == "":
            return ["Enter a non-empty value", "Remove whitespace-only values"]
        if isinstance(value, (list, tuple)) and len(value) == 0:
            return ["Add at least one item to the array"]
        if isinstance(value, Mapping) and len(value) == 0:
            return ["Add at least one property to the object"]
        return []
