"""
Validation strategy foundation.

A strategy checks one kind of constraint. The registry asks every strategy
whether it handles a rule (``can_handle``, pure and cheap) and runs
``validate`` on each one that does. ``validate`` never raises: broken rules
and failing values are both expressed as failed results.

Example:
    class EvenStrategy(ValidationStrategy):
        name = "even"
        priority = 40

        def can_handle(self, rule: Mapping[str, Any]) -> bool:
            return rule.get("even") is True

        def validate(self, context: ValidationContext) -> ValidationResult:
            if isinstance(context.value, int) and context.value % 2 == 0:
                return self.success(context)
            return self.failure(context, f"Value must be even (current: {context.value})")
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from ...variables import UNDEFINED, is_missing, resolve_placeholder
from ..context import ValidationContext
from ..result import Severity, ValidationResult

CONFIGURATION = "configuration"
CONSTRAINT = "constraint"


class ValidationStrategy(ABC):
    """
    Base class for validation strategies.

    Strategies are ordered by priority (higher = earlier) and all matching
    strategies run; priority only decides the order of the results.
    """

    name: str
    priority: int = 0  # Higher = earlier

    @abstractmethod
    def can_handle(self, rule: Mapping[str, Any]) -> bool:
        """
        Check if this strategy applies to ``rule``.

        Must not perform any validation work.
        """
        pass

    @abstractmethod
    def validate(self, context: ValidationContext) -> ValidationResult:
        """
        Validate ``context.value`` against ``context.rule``.

        Returns:
            A passing result, or a failure describing the violation
        """
        pass

    def suggest(self, context: ValidationContext) -> list[str]:
        """Remediation hints for a failing value (none by default)."""
        return []

    def success(self, context: ValidationContext) -> ValidationResult:
        return ValidationResult.success(context.field, self.name, context.value)

    def failure(
        self,
        context: ValidationContext,
        message: str,
        expected: Any = None,
        actual: Any = None,
        kind: str = CONSTRAINT,
        severity: Severity = Severity.ERROR,
    ) -> ValidationResult:
        """Failed result; ``kind`` marks a broken rule ("configuration") vs a bad value."""
        return ValidationResult.failure(
            context.field,
            self.name,
            context.value,
            message,
            severity=severity,
            expected=expected,
            actual=actual,
            metadata={"kind": kind},
        )

    @staticmethod
    def is_missing(value: Any) -> bool:
        return is_missing(value)

    @staticmethod
    def is_empty(value: Any) -> bool:
        if is_missing(value):
            return True
        if isinstance(value, (str, list, tuple, Mapping)):
            return len(value) == 0
        return False

    @staticmethod
    def get_length(value: Any) -> int:
        if isinstance(value, (str, list, tuple, Mapping)):
            return len(value)
        return 0

    @staticmethod
    def resolve_bound(constraint: Any, variables: Mapping[str, Any] | None) -> Any:
        """Literal bound, or the variable a ``{{name}}`` bound refers to."""
        return resolve_placeholder(constraint, variables)

    @staticmethod
    def first_key(rule: Mapping[str, Any], *keys: str) -> Any:
        """Value of the first of ``keys`` present in ``rule`` (UNDEFINED if none)."""
        for key in keys:
            if key in rule and rule[key] is not None:
                return rule[key]
        return UNDEFINED


def is_number(value: Any) -> bool:
    """int or float but not bool (NaN counts as a number)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_finite_number(value: Any) -> bool:
    return is_number(value) and not math.isnan(value)


def format_number(value: float) -> str:
    """Render 18.0 as "18" and 2.5 as "2.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
