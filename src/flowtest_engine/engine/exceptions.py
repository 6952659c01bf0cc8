"""Exception hierarchy for expression resolution.

Parser-level failures are exceptions: they abort resolution of the current
expression and propagate to the step executor, which marks the owning step
as failed. Validation failures are never raised; they are returned as
``ValidationResult`` data (see ``flowtest_engine.engine.validation``).

Exception Hierarchy:
    FlowTestError (base)
    ├── ParseError (malformed expression)
    │   ├── ExpressionParseError (resolver failure wrapped with the expression)
    │   ├── MixedSyntaxError (more than one prefix in one expression)
    │   └── AmbiguousExpressionError (strict mode only)
    ├── ScriptError (script evaluator failures)
    │   ├── ScriptExecutionError (runtime error inside the snippet)
    │   ├── ScriptTimeoutError (snippet exceeded its time budget)
    │   ├── ScriptCancelledError (owning step was cancelled)
    │   └── ForbiddenScriptError (snippet references a forbidden construct)
    ├── FakeDataError (unknown or failing generator)
    └── ExpressionTimeoutError (async parse exceeded its time budget)

Example:
    >>> try:
    ...     parser.parse("@items[?")
    ... except ParseError as e:
    ...     logger.error(f"Step failed: {e}")
"""

from __future__ import annotations


class FlowTestError(Exception):
    """Base exception for all expression-resolution errors."""

    pass


class ParseError(FlowTestError):
    """Raised when an expression cannot be parsed or resolved."""

    pass


class ExpressionParseError(ParseError):
    """
    Resolver failure wrapped with the original expression text.

    Attributes:
        expression: The expression as written in the test definition
        expression_type: Classified type name (e.g. "script"), if known
        reason: Human-readable description of the underlying cause
    """

    def __init__(self, expression: str, reason: str, expression_type: str | None = None):
        self.expression = expression
        self.expression_type = expression_type
        self.reason = reason

        if expression_type:
            message = f'Failed to parse {expression_type} expression "{expression}": {reason}'
        else:
            message = f'Failed to parse expression "{expression}": {reason}'
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"ExpressionParseError(expression={self.expression!r}, "
            f"type={self.expression_type!r}, reason={self.reason!r})"
        )


class MixedSyntaxError(ParseError):
    """
    Raised when an expression mixes prefixes that each qualify on their own.

    Attributes:
        expression: The offending expression
        detail: Which prefixes collided, or which inner prefix was used
    """

    def __init__(self, expression: str, detail: str):
        self.expression = expression
        self.detail = detail
        super().__init__(f'Cannot mix prefixes in expression "{expression}": {detail}')


class AmbiguousExpressionError(ParseError):
    """Raised in strict mode when a literal looks like an unmarked expression."""

    def __init__(self, expression: str, hint: str):
        self.expression = expression
        self.hint = hint
        super().__init__(f'Ambiguous expression "{expression}": {hint}')


class ScriptError(FlowTestError):
    """Base exception for script evaluator failures."""

    pass


class ScriptExecutionError(ScriptError):
    """
    Runtime error raised while evaluating a script snippet.

    Attributes:
        snippet: Snippet text as supplied by the caller
        details: Underlying error message
    """

    def __init__(self, snippet: str, details: str):
        self.snippet = snippet
        self.details = details
        super().__init__(f"Script execution error in `{snippet}`: {details}")


class ScriptTimeoutError(ScriptError):
    """
    Raised when a snippet does not finish within its time budget.

    The worker thread may still be running when this is raised; its result
    is abandoned.
    """

    def __init__(self, snippet: str, timeout: float):
        self.snippet = snippet
        self.timeout = timeout
        super().__init__(f"Script `{snippet}` exceeded timeout of {timeout:g}s")

    def __repr__(self) -> str:
        return f"ScriptTimeoutError(snippet={self.snippet!r}, timeout={self.timeout})"


class ScriptCancelledError(ScriptError):
    """Raised when the owning step cancels an in-flight evaluation."""

    def __init__(self, snippet: str):
        self.snippet = snippet
        super().__init__(f"Script `{snippet}` was cancelled")


class ForbiddenScriptError(ScriptError):
    """Raised when a snippet references a construct outside the sandbox."""

    def __init__(self, snippet: str, pattern: str):
        self.snippet = snippet
        self.pattern = pattern
        super().__init__(f"Access to '{pattern}' is forbidden in scripts")


class FakeDataError(FlowTestError):
    """
    Raised for unknown or failing fake-data generators.

    Attributes:
        method_path: The ``category.method`` token that was requested
        details: Why generation failed
    """

    def __init__(self, method_path: str, details: str):
        self.method_path = method_path
        self.details = details
        super().__init__(f"Fake-data method '{method_path}': {details}")


class ExpressionTimeoutError(FlowTestError):
    """Raised when an asynchronous parse exceeds the caller's time budget."""

    def __init__(self, expression: str, timeout: float):
        self.expression = expression
        self.timeout = timeout
        super().__init__(f'Expression "{expression}" exceeded timeout of {timeout:g}s')


__all__ = [
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
