"""Regular-expression validation."""

from __future__ import annotations

import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from ...variables import format_for_string
from ..context import ValidationContext
from ..result import ValidationResult
from .base import CONFIGURATION, ValidationStrategy

# "/pattern/flags" form
FLAGGED_PATTERN = re.compile(r"^/(.+)/([gimsuvyx]*)$", re.DOTALL)

FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": re.UNICODE,
    "v": re.UNICODE,
    "x": re.VERBOSE,
    # g and y change iteration state only
    "g": 0,
    "y": 0,
}


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """
    Compile ``pattern`` (plain or ``/pattern/flags``) once per distinct string.

    Raises:
        re.error: If the pattern is not a valid regular expression
    """
    match = FLAGGED_PATTERN.match(pattern)
    if not match:
        return re.compile(pattern)

    body, flags = match.groups()
    compiled_flags = 0
    for flag in flags:
        compiled_flags |= FLAG_MAP[flag]
    return re.compile(body, compiled_flags)


def is_valid_pattern(pattern: str) -> bool:
    try:
        compile_pattern(pattern)
    except re.error:
        return False
    return True


class PatternStrategy(ValidationStrategy):
    """Value (stringified) must contain a match for ``rule["pattern"]`` / ``rule["regex"]``."""

    name = "pattern"
    priority = 60

    def can_handle(self, rule: Mapping[str, Any]) -> bool:
        return rule.get("pattern") is not None or rule.get("regex") is not None

    def validate(self, context: ValidationContext) -> ValidationResult:
        pattern = self.first_key(context.rule, "pattern", "regex")

        if not isinstance(pattern, str) or not pattern:
            return self.failure(
                context,
                "Invalid pattern configuration: must be a non-empty string",
                expected=pattern,
                actual=type(pattern).__name__,
                kind=CONFIGURATION,
            )

        if self.is_missing(context.value):
            return self.failure(
                context,
                "Value is required for pattern validation",
                expected=pattern,
                actual=context.value,
            )

        text = format_for_string(context.value)

        try:
            regex = compile_pattern(pattern)
        except re.error as e:
            return self.failure(
                context,
                f"Invalid regular expression: {e}",
                expected=pattern,
                actual="compilation error",
                kind=CONFIGURATION,
            )

        if regex.search(text):
            return self.success(context)

        return self.failure(
            context,
            f"Value does not match required pattern: {pattern}",
            expected=pattern,
            actual=text,
        )

    def suggest(self, context: ValidationContext) -> list[str]:
        pattern = self.first_key(context.rule, "pattern", "regex")
        if self.is_missing(context.value):
            return ["Provide a non-null value"]
        if not isinstance(pattern, str):
            return []

        suggestions = []
        if "@" in pattern:
            suggestions.append("Ensure value is a valid email address")
            suggestions.append("Example: user@example.com")
        elif "^\\+" in pattern or "\\d" in pattern:
            suggestions.append("Ensure value matches the phone number format")
            suggestions.append("Example: +1234567890")
        elif "^[a-z" in pattern or "^[A-Z" in pattern:
            suggestions.append("Ensure value contains only allowed characters")
        else:
            suggestions.append(f"Check that value matches pattern: {pattern}")

        if isinstance(context.value, str):
            suggestions.append(f'Current value: "{context.value}"')
        return suggestions
