"""Built-in validation strategies."""

from .base import CONFIGURATION, CONSTRAINT, ValidationStrategy
from .length import MaxLengthStrategy, MinLengthStrategy
from .pattern import PatternStrategy, compile_pattern, is_valid_pattern
from .range import RangeStrategy, to_number
from .required import RequiredStrategy
from .type_check import VALID_TYPES, TypeStrategy, type_tag


def default_strategies() -> list[ValidationStrategy]:
    """Fresh instances of the six built-in strategies, highest priority first."""
    return [
        RequiredStrategy(),
        TypeStrategy(),
        PatternStrategy(),
        RangeStrategy(),
        MinLengthStrategy(),
        MaxLengthStrategy(),
    ]


__all__ = [
    "CONFIGURATION",
    "CONSTRAINT",
    "VALID_TYPES",
    "MaxLengthStrategy",
    "MinLengthStrategy",
    "PatternStrategy",
    "RangeStrategy",
    "RequiredStrategy",
    "TypeStrategy",
    "ValidationStrategy",
    "compile_pattern",
    "default_strategies",
    "is_valid_pattern",
    "to_number",
    "type_tag",
]
