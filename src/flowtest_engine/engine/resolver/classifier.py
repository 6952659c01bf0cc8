"""
Expression classification by prefix.

Every expression string in a test definition belongs to exactly one of five
forms, decided by a strict ordered list (first match wins):

    1. #faker.<category>.<method>   FAKE_DATA   #faker.internet.email
    2. @<query>                     QUERY       @response.data[0].id
    3. $<snippet>                   SCRIPT      $return items.length * 2
    4. ...{{ ... }}...              TEMPLATE    {{$env.API_URL}}/users
    5. anything else                LITERAL     hello world

The type depends on the prefix only, never on whether resolution succeeds.
"""

from __future__ import annotations

import re
from enum import Enum

from ..exceptions import MixedSyntaxError


class ExpressionType(Enum):
    """The five expression forms."""

    LITERAL = "literal"  # hello world
    TEMPLATE = "template"  # {{base}}/users/{{id}}
    QUERY = "jmespath-style-query"  # @response.data[0].id
    SCRIPT = "script"  # $return x * 2
    FAKE_DATA = "fake-data"  # #faker.person.firstName


class ExpressionClassifier:
    """
    Classify expressions and reject mixed syntax.

    Example:
        classifier = ExpressionClassifier()
        classifier.classify("@response.status")
        # Returns: ExpressionType.QUERY
        classifier.check_mixed_syntax("@foo#faker.bar")
        # Raises: MixedSyntaxError
    """

    FAKE_DATA_MARKER = "#faker."
    QUERY_MARKER = "@"
    SCRIPT_MARKER = "$"
    TEMPLATE_OPENER = "{{"

    # $-forms that are sub-syntaxes rather than top-level scripts
    SCRIPT_EXEMPT_PREFIXES = ("$env.", "$faker.")
    INNER_ALLOWED_PREFIXES = ("$env.", "$faker.", "$js:")

    INNER_PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

    # Ambiguity heuristics (literals only)
    QUERY_LIKE_PATTERN = re.compile(
        r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)+(\[\d+\]|\[.+\])?"
    )
    SCRIPT_LIKE_PATTERN = re.compile(r"^(Math\.|Date\.|JSON\.)")
    FAKE_DATA_LIKE_PATTERN = re.compile(r"^faker\.[a-z]+\.[a-z]+", re.IGNORECASE)

    QUERY_HINT = "Looks like a structured query. Add the @ prefix to evaluate it as a query"
    SCRIPT_HINT = "Looks like a script. Add the $ prefix to execute it as code"
    FAKE_DATA_HINT = (
        "Looks like a fake-data reference. Add the # prefix (#faker.category.method) "
        "to generate data"
    )

    def classify(self, expression: str) -> ExpressionType:
        """
        Classify expression by its prefix.

        Args:
            expression: Expression string to classify

        Returns:
            ExpressionType enum value
        """
        if expression.startswith(self.FAKE_DATA_MARKER):
            return ExpressionType.FAKE_DATA
        if expression.startswith(self.QUERY_MARKER):
            return ExpressionType.QUERY
        if expression.startswith(self.SCRIPT_MARKER):
            return ExpressionType.SCRIPT
        if self.TEMPLATE_OPENER in expression:
            return ExpressionType.TEMPLATE
        return ExpressionType.LITERAL

    def detected_markers(self, expression: str) -> list[str]:
        """Names of the top-level triggers that ``expression`` satisfies."""
        detected = []
        if self.FAKE_DATA_MARKER in expression:
            detected.append("fake-data marker (#faker.)")
        if expression.startswith(self.QUERY_MARKER):
            detected.append("query marker (@)")
        if expression.startswith(self.SCRIPT_MARKER) and not expression.startswith(
            self.SCRIPT_EXEMPT_PREFIXES
        ):
            detected.append("script marker ($)")
        return detected

    def check_mixed_syntax(self, expression: str) -> None:
        """
        Reject expressions that combine prefixes.

        Raises:
            MixedSyntaxError: More than one top-level trigger, or a placeholder
                whose inner text starts with @ or a non-exempt $
        """
        detected = self.detected_markers(expression)
        if len(detected) > 1:
            raise MixedSyntaxError(
                expression,
                f"Found {' and '.join(detected)} in same expression. Split into separate fields.",
            )

        if self.TEMPLATE_OPENER not in expression:
            return

        for match in self.INNER_PLACEHOLDER_PATTERN.finditer(expression):
            inner = match.group(1).strip()
            if inner.startswith(self.QUERY_MARKER) or (
                inner.startswith(self.SCRIPT_MARKER)
                and not inner.startswith(self.INNER_ALLOWED_PREFIXES)
            ):
                raise MixedSyntaxError(
                    expression,
                    f"Cannot use {inner[0]} prefix inside {{{{}}}}. Use the prefix outside the "
                    f"template or one of {', '.join(self.INNER_ALLOWED_PREFIXES)}",
                )

    def ambiguity_hints(self, expression: str) -> list[str]:
        """
        Hints for a literal that looks like an unmarked expression.

        Returns:
            One hint per matching heuristic (empty for unambiguous literals)
        """
        hints = []
        if self.QUERY_LIKE_PATTERN.match(expression):
            hints.append(self.QUERY_HINT)
        if "return " in expression or self.SCRIPT_LIKE_PATTERN.match(expression):
            hints.append(self.SCRIPT_HINT)
        if self.FAKE_DATA_LIKE_PATTERN.match(expression):
            hints.append(self.FAKE_DATA_HINT)
        return hints
