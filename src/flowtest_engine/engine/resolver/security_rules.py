"""
Security transformation rules for script snippets.

Rules:
    - ForbiddenNamespaceRule: Block dunder access and dangerous builtins
    - SnippetShapeRule: Bound snippet length and require balanced brackets
"""

import re

from ..exceptions import ForbiddenScriptError, ScriptExecutionError
from .rules import RuleContext, RuleType, TransformRule

MAX_SNIPPET_LENGTH = 1000


class ForbiddenNamespaceRule(TransformRule):
    """
    Reject snippets that reach outside the sandbox.

    Any dunder (``__class__``, ``__import__``), an ``import`` statement, or a
    bare call to exec, eval, compile, open, globals, locals or the
    get/set/delattr builtins raises ForbiddenScriptError. Method calls of
    the same name on data (``row.compile()``) are allowed.
    """

    rule_type = RuleType.SECURITY
    priority = 1

    FORBIDDEN_PATTERNS = [
        "__",
        "import ",
        "exec(",
        "eval(",
        "compile(",
        "open(",
        "globals(",
        "locals(",
        "getattr(",
        "setattr(",
        "delattr(",
    ]

    _WORD_BOUNDARY = re.compile(r"[A-Za-z0-9_$.]$")

    def applies_to(self, context: RuleContext) -> bool:
        return any(pattern in context.expression for pattern in self.FORBIDDEN_PATTERNS)

    def transform(self, context: RuleContext) -> RuleContext:
        expression = context.expression
        for pattern in self.FORBIDDEN_PATTERNS:
            start = expression.find(pattern)
            while start != -1:
                # "reopen(" or "data.compile(" are not the builtin
                if pattern.endswith("(") and self._WORD_BOUNDARY.search(expression[:start]):
                    start = expression.find(pattern, start + 1)
                    continue
                raise ForbiddenScriptError(context.original, pattern.strip())
        return context

    @property
    def description(self) -> str:
        return "Reject dunders, imports and escape builtins"


class SnippetShapeRule(TransformRule):
    """Reject oversized snippets and unbalanced brackets before compiling."""

    rule_type = RuleType.SECURITY
    priority = 2

    PAIRS = {")": "(", "]": "[", "}": "{"}

    def applies_to(self, context: RuleContext) -> bool:
        return True

    def transform(self, context: RuleContext) -> RuleContext:
        if len(context.expression) > MAX_SNIPPET_LENGTH:
            raise ScriptExecutionError(
                context.original, f"Snippet exceeds {MAX_SNIPPET_LENGTH} characters"
            )

        stack: list[str] = []
        quote: str | None = None
        escaped = False
        for char in context.expression:
            if quote:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == quote:
                    quote = None
                continue
            if char in ("'", '"'):
                quote = char
            elif char in "([{":
                stack.append(char)
            elif char in self.PAIRS:
                if not stack or stack.pop() != self.PAIRS[char]:
                    raise ScriptExecutionError(context.original, f"Unbalanced '{char}'")
        if stack:
            raise ScriptExecutionError(context.original, f"Unclosed '{stack[-1]}'")
        return context

    @property
    def description(self) -> str:
        return "Bound snippet length and require balanced brackets"
