"""
Syntax transformation rules for script snippets.

These rules rewrite the JavaScript-flavoured forms common in test
definitions into the sandboxed expression language while leaving string
literals untouched.

Rules:
    - ReturnKeywordRule: ``return expr;`` → ``expr``
    - LogicalOperatorRule: ``&&``, ``||``, ``!``, ``===``, ``!==`` → Jinja operators
    - NullLiteralRule: ``null`` / ``undefined`` → ``none``
"""

import re
from collections.abc import Callable

from .rules import RuleContext, RuleType, TransformRule

_STRING_LITERAL = re.compile(r"""("(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')""")


def map_code_segments(expression: str, func: Callable[[str], str]) -> str:
    """Apply ``func`` to the parts of ``expression`` outside string literals."""
    parts = _STRING_LITERAL.split(expression)
    # split() with one capture group alternates code, literal, code, ...
    return "".join(func(part) if i % 2 == 0 else part for i, part in enumerate(parts))


def code_only(expression: str) -> str:
    """Return ``expression`` with string literal contents blanked out."""
    return _STRING_LITERAL.sub('""', expression)


class ReturnKeywordRule(TransformRule):
    """
    Strip a leading ``return`` keyword and trailing semicolons.

    Transforms: return items.length * 2; → items.length * 2
    Snippets without ``return`` are already single expressions.
    """

    rule_type = RuleType.SYNTAX
    priority = 10

    RETURN_PATTERN = re.compile(r"^\s*return\b\s*")

    def applies_to(self, context: RuleContext) -> bool:
        return True

    def transform(self, context: RuleContext) -> RuleContext:
        expression = context.expression.strip()
        match = self.RETURN_PATTERN.match(expression)
        context.metadata["explicit_return"] = bool(match)
        if match:
            expression = expression[match.end() :]
        context.expression = expression.rstrip().rstrip(";").rstrip()
        return context

    @property
    def description(self) -> str:
        return "Treat snippets as single return expressions"


class LogicalOperatorRule(TransformRule):
    """
    Rewrite JavaScript comparison and logical operators.

    Transforms: a === 1 && !b → a == 1 and not b
    """

    rule_type = RuleType.SYNTAX
    priority = 20

    _REPLACEMENTS = [
        (re.compile(r"!=="), "!="),
        (re.compile(r"==="), "=="),
        (re.compile(r"\s*&&\s*"), " and "),
        (re.compile(r"\s*\|\|\s*"), " or "),
        (re.compile(r"!(?!=)\s*"), " not "),
    ]

    def applies_to(self, context: RuleContext) -> bool:
        code = code_only(context.expression)
        return any(token in code for token in ("&&", "||", "!", "==="))

    def transform(self, context: RuleContext) -> RuleContext:
        def rewrite(segment: str) -> str:
            for pattern, replacement in self._REPLACEMENTS:
                segment = pattern.sub(replacement, segment)
            return segment

        context.expression = map_code_segments(context.expression, rewrite).strip()
        return context

    @property
    def description(self) -> str:
        return "Convert &&, ||, !, === and !== to and, or, not, == and !="


class NullLiteralRule(TransformRule):
    """Map ``null`` and ``undefined`` to ``none``."""

    rule_type = RuleType.SYNTAX
    priority = 30

    _NULL_PATTERN = re.compile(r"(?<![\w.])(null|undefined)(?!\w)")

    def applies_to(self, context: RuleContext) -> bool:
        return bool(self._NULL_PATTERN.search(code_only(context.expression)))

    def transform(self, context: RuleContext) -> RuleContext:
        context.expression = map_code_segments(
            context.expression, lambda s: self._NULL_PATTERN.sub("none", s)
        )
        return context

    @property
    def description(self) -> str:
        return "Convert null and undefined literals to none"
