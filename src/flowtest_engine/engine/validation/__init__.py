"""
Input validation package.

Strategies check one constraint each; the registry runs every strategy
that handles a rule and folds the results into a ValidationResultSet.
Failures are returned as data, never raised.

Public API:
    - ValidationRegistry: Open, priority-ordered strategy registry
    - ValidationStrategy: Base class for custom strategies
    - ValidationContext / ValidationContextBuilder: Strategy input
    - ValidationResult / ValidationResultSet / Severity: Result model
"""

from .context import ValidationContext, ValidationContextBuilder
from .registry import ValidationRegistry
from .result import (
    Severity,
    ValidationResult,
    ValidationResultSet,
    aggregate,
    filter_by_severity,
    format_result,
    format_set,
    get_failures,
    has_errors,
    has_warnings,
)
from .strategies import (
    MaxLengthStrategy,
    MinLengthStrategy,
    PatternStrategy,
    RangeStrategy,
    RequiredStrategy,
    TypeStrategy,
    ValidationStrategy,
    default_strategies,
)

__all__ = [
    "ValidationRegistry",
    "ValidationStrategy",
    "ValidationContext",
    "ValidationContextBuilder",
    "ValidationResult",
    "ValidationResultSet",
    "Severity",
    "RequiredStrategy",
    "TypeStrategy",
    "PatternStrategy",
    "RangeStrategy",
    "MinLengthStrategy",
    "MaxLengthStrategy",
    "default_strategies",
    "aggregate",
    "has_errors",
    "has_warnings",
    "filter_by_severity",
    "get_failures",
    "format_result",
    "format_set",
]
