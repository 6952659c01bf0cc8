"""Validation context: what a strategy sees for one field."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class ValidationContext:
    """
    Immutable input to a validation strategy.

    Attributes:
        field: Field name, used in messages
        value: Resolved value to check
        rule: Constraint bag, e.g. {"required": True, "min_length": 5}
        variables: Variables for ``{{name}}`` bound references
        metadata: Caller-defined extras (ignored by built-in strategies)
    """

    field: str
    value: Any
    rule: Mapping[str, Any]
    variables: Mapping[str, Any] | None = None
    metadata: Mapping[str, Any] | None = None

    def with_value(self, value: Any) -> ValidationContext:
        """Copy of this context with a different value."""
        return replace(self, value=value)


class ValidationContextBuilder:
    """
    Fluent construction of a ValidationContext.

    Example:
        context = (
            ValidationContextBuilder.create("age", 17)
            .with_rule({"min": "{{min_age}}"})
            .with_variables({"min_age": 18})
            .build()
        )
    """

    def __init__(self, field: str, value: Any):
        self._field = field
        self._value = value
        self._rule: Mapping[str, Any] | None = None
        self._variables: Mapping[str, Any] | None = None
        self._metadata: Mapping[str, Any] | None = None

    @classmethod
    def create(cls, field: str, value: Any) -> ValidationContextBuilder:
        return cls(field, value)

    def with_rule(self, rule: Mapping[str, Any]) -> ValidationContextBuilder:
        self._rule = rule
        return self

    def with_variables(self, variables: Mapping[str, Any]) -> ValidationContextBuilder:
        self._variables = variables
        return self

    def with_metadata(self, metadata: Mapping[str, Any]) -> ValidationContextBuilder:
        self._metadata = metadata
        return self

    def build(self) -> ValidationContext:
        """
        Raises:
            ValueError: If no rule was given
        """
        if not self._rule:
            raise ValueError(f"Validation rule is required for field: {self._field}")
        return ValidationContext(
            field=self._field,
            value=self._value,
            rule=self._rule,
            variables=self._variables,
            metadata=self._metadata,
        )
