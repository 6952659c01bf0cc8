"""
Validation strategy registry.

An open, priority-ordered collection of ``ValidationStrategy`` instances.
Every strategy whose ``can_handle`` accepts a rule runs; priority only
decides the order results appear in.

Features:
- Register strategies with same-name replacement
- Lookup by name, list names in priority order
- Run all matching strategies and aggregate into a ValidationResultSet
- Validate many fields at once
- Collect remediation suggestions
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .context import ValidationContext
from .result import Severity, ValidationResult, ValidationResultSet, aggregate
from .strategies import ValidationStrategy, default_strategies

logger = logging.getLogger(__name__)

UNKNOWN_VALIDATOR = "unknown"


class ValidationRegistry:
    """
    Central registry of validation strategies.

    Example:
        registry = ValidationRegistry.with_defaults()
        result_set = registry.validate_value("password", "", {"required": True, "min_length": 8})
        # result_set.valid is False, two errors (required, then min_length)
    """

    def __init__(self, strategies: Iterable[ValidationStrategy] | None = None) -> None:
        self._strategies: list[ValidationStrategy] = []
        if strategies:
            self.register_many(strategies)

    @classmethod
    def with_defaults(cls) -> "ValidationRegistry":
        """Registry pre-loaded with the six built-in strategies."""
        return cls(default_strategies())

    # -- Registration -------------------------------------------------------

    def register(self, strategy: ValidationStrategy) -> None:
        """
        Register a strategy, replacing any strategy with the same name.

        Strategies stay sorted by descending priority; ties keep
        registration order.
        """
        replaced = self.has(strategy.name)
        if replaced:
            self._strategies = [s for s in self._strategies if s.name != strategy.name]

        self._strategies.append(strategy)
        self._strategies.sort(key=lambda s: s.priority, reverse=True)

        action = "Replaced" if replaced else "Registered"
        logger.debug(f"{action} validation strategy: {strategy.name} ({strategy.priority})")

    def register_many(self, strategies: Iterable[ValidationStrategy]) -> None:
        for strategy in strategies:
            self.register(strategy)

    def unregister(self, name: str) -> bool:
        """
        Remove a strategy by name.

        Returns:
            True if a strategy was removed
        """
        if not self.has(name):
            return False
        self._strategies = [s for s in self._strategies if s.name != name]
        logger.debug(f"Unregistered validation strategy: {name}")
        return True

    def get(self, name: str) -> ValidationStrategy | None:
        for strategy in self._strategies:
            if strategy.name == name:
                return strategy
        return None

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def names(self) -> list[str]:
        """Registered strategy names in priority order."""
        return [s.name for s in self._strategies]

    @property
    def strategies(self) -> list[ValidationStrategy]:
        return list(self._strategies)

    def clear(self) -> None:
        """Remove all strategies (for testing)."""
        self._strategies.clear()

    def __len__(self) -> int:
        return len(self._strategies)

    # -- Lookup ---------------------------------------------------------------

    def find_all(self, rule: Mapping[str, Any]) -> list[ValidationStrategy]:
        """Every strategy that handles ``rule``, highest priority first."""
        return [s for s in self._strategies if s.can_handle(rule)]

    def find(self, rule: Mapping[str, Any]) -> ValidationStrategy | None:
        for strategy in self._strategies:
            if strategy.can_handle(rule):
                return strategy
        return None

    # -- Validation -----------------------------------------------------------

    def _run(self, strategy: ValidationStrategy, context: ValidationContext) -> ValidationResult:
        try:
            return strategy.validate(context)
        except Exception as e:
            logger.exception(f"Strategy '{strategy.name}' raised on field '{context.field}'")
            return ValidationResult.failure(
                context.field,
                strategy.name,
                context.value,
                f"Validation error: {e}",
                metadata={"kind": "error", "exception": type(e).__name__},
            )

    def validate_all(self, context: ValidationContext) -> ValidationResultSet:
        """
        Run every matching strategy and aggregate the results.

        Never short-circuits: a required failure and a min_length failure on
        the same field are both reported.
        """
        strategies = self.find_all(context.rule)

        if not strategies:
            logger.debug(f"No validators found for field '{context.field}'")
            return ValidationResultSet(
                valid=True,
                field=context.field,
                warnings=["No validators found for this rule"],
            )

        results = [self._run(strategy, context) for strategy in strategies]
        result_set = aggregate(context.field, results)

        if not result_set.valid:
            logger.debug(
                f"Validation failed for '{context.field}': {len(result_set.errors)} error(s)"
            )
        return result_set

    def validate(self, context: ValidationContext) -> ValidationResult:
        """Result of the single highest-priority matching strategy."""
        strategy = self.find(context.rule)
        if strategy is None:
            return ValidationResult.failure(
                context.field,
                UNKNOWN_VALIDATOR,
                context.value,
                "No validator found for this rule",
                severity=Severity.WARNING,
            )
        return self._run(strategy, context)

    def validate_many(
        self, contexts: Mapping[str, ValidationContext]
    ) -> dict[str, ValidationResultSet]:
        """Validate several fields; keys are preserved."""
        return {field: self.validate_all(context) for field, context in contexts.items()}

    def validate_value(
        self,
        field: str,
        value: Any,
        rule: Mapping[str, Any],
        variables: Mapping[str, Any] | None = None,
    ) -> ValidationResultSet:
        """Shortcut for ``validate_all`` without building a context first."""
        return self.validate_all(
            ValidationContext(field=field, value=value, rule=rule, variables=variables)
        )

    def suggest(self, context: ValidationContext) -> list[str]:
        """Suggestions from every matching strategy, in priority order."""
        suggestions: list[str] = []
        for strategy in self.find_all(context.rule):
            suggestions.extend(strategy.suggest(context))
        return suggestions
