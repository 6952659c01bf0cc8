"""
Rule system foundation for script snippet transformations.

Script snippets are written in a JavaScript-flavoured style (``return x``,
``a && b``, ``value === null``). Before evaluation they run through a
pipeline of rules, applied in priority order, that validate the snippet and
rewrite it into the sandboxed expression language.

Rule Types:
    - SECURITY: Rejections of constructs outside the sandbox
    - SYNTAX: Expression syntax transformations (e.g., ``&&`` → ``and``)

Example:
    class UpperRule(TransformRule):
        rule_type = RuleType.SYNTAX
        priority = 40

        def applies_to(self, context: RuleContext) -> bool:
            return "UPPER(" in context.expression

        def transform(self, context: RuleContext) -> RuleContext:
            context.expression = context.expression.replace("UPPER(", "upper(")
            return context

        @property
        def description(self) -> str:
            return "Accept UPPER() as an alias for upper()"
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RuleType(Enum):
    """What a rule does to a snippet."""

    SECURITY = "security"  # Rejects the snippet
    SYNTAX = "syntax"  # Rewrites the snippet


@dataclass
class RuleContext:
    """
    Snippet state threaded through the rule pipeline.

    Attributes:
        expression: Current text; rules rewrite this in place
        original: Text as the caller wrote it, used in error messages
        metadata: Flags left by earlier rules (e.g. had_return_keyword)
    """

    expression: str
    original: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


class TransformRule(ABC):
    """
    One step of the snippet pipeline.

    Rules run in ascending priority. A rule may rewrite ``expression``,
    record flags in ``metadata`` for later rules, or raise to reject the
    snippet. Security rules use priorities below 10 so they see the text
    before any rewriting.
    """

    rule_type: RuleType
    priority: int = 0  # Lower runs first

    @abstractmethod
    def applies_to(self, context: RuleContext) -> bool:
        """Cheap test for whether ``transform`` has work to do."""
        pass

    @abstractmethod
    def transform(self, context: RuleContext) -> RuleContext:
        """
        Rewrite or reject the snippet.

        Raises:
            ScriptError: If the snippet is rejected
        """
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        pass


def apply_rules(rules: list[TransformRule], snippet: str) -> RuleContext:
    """Run ``snippet`` through ``rules`` in priority order."""
    context = RuleContext(expression=snippet, original=snippet)
    for rule in sorted(rules, key=lambda r: r.priority):
        if rule.applies_to(context):
            context = rule.transform(context)
    return context
