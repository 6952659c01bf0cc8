"""Runtime type validation against JSON-style type tags."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ...variables import UNDEFINED
from ..context import ValidationContext
from ..result import ValidationResult
from .base import CONFIGURATION, ValidationStrategy, is_number

VALID_TYPES = ("string", "number", "boolean", "object", "array", "null", "undefined", "function")


def type_tag(value: Any) -> str:
    """
    Map a Python value to its type tag.

    bool is checked before number, and NaN is still a number:
        type_tag(True) → "boolean"
        type_tag(float("nan")) → "number"
        type_tag((1, 2)) → "array"
    """
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if callable(value) and not isinstance(value, Mapping):
        return "function"
    return "object"


class TypeStrategy(ValidationStrategy):
    """Value's type tag must equal ``rule["type"]``."""

    name = "type"
    priority = 90

    def can_handle(self, rule: Mapping[str, Any]) -> bool:
        return "type" in rule and rule["type"] is not None

    def validate(self, context: ValidationContext) -> ValidationResult:
        expected_type = context.rule["type"]

        if expected_type not in VALID_TYPES:
            return self.failure(
                context,
                f"Invalid type specification: '{expected_type}'. "
                f"Must be one of: {', '.join(VALID_TYPES)}",
                expected=" | ".join(VALID_TYPES),
                actual=expected_type,
                kind=CONFIGURATION,
            )

        actual_type = type_tag(context.value)
        if actual_type == expected_type:
            return self.success(context)

        return self.failure(
            context,
            f"Expected type '{expected_type}', got '{actual_type}'",
            expected=expected_type,
            actual=actual_type,
        )

    def suggest(self, context: ValidationContext) -> list[str]:
        value = context.value
        expected_type = context.rule.get("type")
        actual_type = type_tag(value)
        suggestions = []

        if expected_type == "number" and actual_type == "string":
            suggestions.append("Convert the string to a number")
            try:
                suggestions.append(f'Suggested conversion: "{value}" → {float(value):g}')
            except ValueError:
                pass
        elif expected_type == "string" and actual_type != "string":
            suggestions.append("Convert the value to a string")
        elif expected_type == "boolean":
            suggestions.append("Use true or false")
        elif expected_type == "array" and actual_type == "object":
            suggestions.append("Wrap the object in an array: [value]")
        elif expected_type == "object" and actual_type == "array":
            suggestions.append("Arrays are not plain objects in this context")
            suggestions.append("Use a plain object instead: { key: value }")

        suggestions.append(f"Current type: {actual_type}")
        suggestions.append(f"Expected type: {expected_type}")
        return suggestions
