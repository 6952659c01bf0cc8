"""Test-flow engine core: expression resolution and input validation.

Key Components:

- ExpressionParser: Classifies and resolves literal, template, query, script
  and fake-data expressions into a ParseResult
- ParserContext: Variables and bindings for one parse call
- ParserConfig: Parser settings (pydantic), loadable from FLOWTEST_* env vars
- ValidationRegistry: Runs every matching validation strategy on a value
- ValidationResultSet: Aggregated, report-ready validation outcome
- FlowTestError: Root of the exception hierarchy

Parse failures raise; validation failures are returned as data.
"""

from .config import ParserConfig
from .exceptions import (
    AmbiguousExpressionError,
    ExpressionParseError,
    ExpressionTimeoutError,
    FakeDataError,
    FlowTestError,
    ForbiddenScriptError,
    MixedSyntaxError,
    ParseError,
    ScriptCancelledError,
    ScriptError,
    ScriptExecutionError,
    ScriptTimeoutError,
)
from .resolver import (
    ExpressionClassifier,
    ExpressionParser,
    ExpressionType,
    FakeDataResolver,
    ParseResult,
    ParserContext,
    ScriptContext,
    ScriptEvaluator,
    StructuredQueryResolver,
    TemplateInterpolator,
)
from .validation import (
    Severity,
    ValidationContext,
    ValidationRegistry,
    ValidationResult,
    ValidationResultSet,
    ValidationStrategy,
)
from .variables import UNDEFINED, is_undefined

__all__ = [
    # Parsing
    "ExpressionParser",
    "ExpressionClassifier",
    "ExpressionType",
    "ParseResult",
    "ParserContext",
    "ParserConfig",
    "TemplateInterpolator",
    "StructuredQueryResolver",
    "ScriptEvaluator",
    "ScriptContext",
    "FakeDataResolver",
    "UNDEFINED",
    "is_undefined",
    # Validation
    "ValidationRegistry",
    "ValidationStrategy",
    "ValidationContext",
    "ValidationResult",
    "ValidationResultSet",
    "Severity",
    # Exceptions
    "FlowTestError",
    "ParseError",
    "ExpressionParseError",
    "MixedSyntaxError",
    "AmbiguousExpressionError",
    "ScriptError",
    "ScriptExecutionError",
    "ScriptTimeoutError",
    "ScriptCancelledError",
    "ForbiddenScriptError",
    "FakeDataError",
    "ExpressionTimeoutError",
]
