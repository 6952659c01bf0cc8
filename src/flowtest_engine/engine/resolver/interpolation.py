"""
Template interpolation for ``{{ ... }}`` placeholders.

Each placeholder's inner text is resolved by the first strategy that claims
it, in priority order (lower = earlier):

    EnvironmentStrategy   (10)   {{$env.API_URL}}
    FakeDataStrategy      (20)   {{$faker.internet.email}} / {{faker.person.firstName}}
    InlineScriptStrategy  (30)   {{$js: Math.max(a, b)}} / {{js: a + 1}}
    VariableStrategy      (100)  {{user.id}} / {{items[0].name}}

Type preservation:
    "{{count}}"          → 42 (the value itself)
    "Total: {{count}}"   → "Total: 42"
"""

from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from ..exceptions import ExpressionParseError
from ..variables import UNDEFINED, format_for_string
from .context import ParserContext
from .fake_data import FakeDataResolver
from .script import ScriptContext, ScriptEvaluator

logger = logging.getLogger(__name__)

TEMPLATE_TYPE_NAME = "template"
CIRCULAR_REFERENCE = "[Circular Reference]"

INLINE_SCRIPT_PATTERN = re.compile(r"^\$?js[:.]")
NESTED_PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")


@dataclass(frozen=True)
class Placeholder:
    """One ``{{ ... }}`` occurrence: its span in the text and trimmed inner text."""

    start: int
    end: int
    inner: str


def iter_placeholders(text: str) -> Iterator[Placeholder]:
    """
    Yield the top-level placeholders in ``text``, left to right.

    Nested ``{{ }}`` pairs (used by inline scripts) stay inside their parent's
    inner text.

    Raises:
        ValueError: If a ``{{`` is never closed
    """
    i = 0
    while True:
        start = text.find("{{", i)
        if start == -1:
            return

        depth = 1
        j = start + 2
        while j < len(text) - 1:
            pair = text[j : j + 2]
            if pair == "{{":
                depth += 1
                j += 2
            elif pair == "}}":
                depth -= 1
                if depth == 0:
                    break
                j += 2
            else:
                j += 1

        if depth != 0:
            raise ValueError(f"Unclosed '{{{{' at position {start}")

        yield Placeholder(start=start, end=j + 2, inner=text[start + 2 : j].strip())
        i = j + 2


class PlaceholderStrategy(ABC):
    """
    Base class for placeholder sub-form strategies.

    ``can_handle`` must be a cheap prefix check; ``resolve`` returns the value
    or ``UNDEFINED`` when the placeholder does not resolve.
    """

    name: str
    priority: int = 100  # Lower = earlier

    @abstractmethod
    def can_handle(self, inner: str) -> bool:
        pass

    @abstractmethod
    def resolve(self, inner: str, context: ParserContext) -> Any:
        pass


class EnvironmentStrategy(PlaceholderStrategy):
    """``$env.NAME`` → environment variable, ``None`` when unset."""

    name = "environment"
    priority = 10

    def can_handle(self, inner: str) -> bool:
        return inner.startswith("$env.")

    def resolve(self, inner: str, context: ParserContext) -> Any:
        return os.environ.get(inner[len("$env.") :])


class FakeDataStrategy(PlaceholderStrategy):
    """``$faker.category.method`` or ``faker.category.method`` → generated value."""

    name = "fake-data"
    priority = 20

    def __init__(self, fake_data: FakeDataResolver):
        self.fake_data = fake_data

    def can_handle(self, inner: str) -> bool:
        return inner.startswith("$faker.") or inner.startswith("faker.")

    def resolve(self, inner: str, context: ParserContext) -> Any:
        return self.fake_data.parse_expression(inner.removeprefix("$"))


class InlineScriptStrategy(PlaceholderStrategy):
    """
    ``$js:``, ``js:`` or ``$js.`` → script snippet.

    Nested ``{{var}}`` and ``{{$env.NAME}}`` references inside the snippet are
    substituted as text before evaluation:
        {{$js: "{{user}}:{{password}}".length}}
    """

    name = "inline-script"
    priority = 30

    def __init__(self, scripts: ScriptEvaluator):
        self.scripts = scripts

    def can_handle(self, inner: str) -> bool:
        return bool(INLINE_SCRIPT_PATTERN.match(inner))

    def resolve(self, inner: str, context: ParserContext) -> Any:
        snippet = INLINE_SCRIPT_PATTERN.sub("", inner, count=1).strip()
        snippet = self.substitute_nested(snippet, context)
        return self.scripts.run(snippet, context.script_context or ScriptContext())

    @staticmethod
    def substitute_nested(snippet: str, context: ParserContext) -> str:
        def replace(match: re.Match[str]) -> str:
            inner = match.group(1).strip()
            if INLINE_SCRIPT_PATTERN.match(inner) or inner.startswith(("$faker.", "faker.")):
                return match.group(0)
            if inner.startswith("$env."):
                value = os.environ.get(inner[len("$env.") :], UNDEFINED)
            elif context.variable_resolver is not None:
                value = context.variable_resolver(inner)
            else:
                value = UNDEFINED

            if value is UNDEFINED:
                if not context.suppress_warnings:
                    logger.warning(f"Nested variable '{inner}' not found in inline script")
                return match.group(0)
            return format_for_string(value)

        return NESTED_PLACEHOLDER_PATTERN.sub(replace, snippet)


class VariableStrategy(PlaceholderStrategy):
    """Fallback: ``name`` or ``dotted.path`` through the caller's variable resolver."""

    name = "variable"
    priority = 100

    def can_handle(self, inner: str) -> bool:
        return True

    def resolve(self, inner: str, context: ParserContext) -> Any:
        if context.variable_resolver is None:
            return UNDEFINED
        return context.variable_resolver(inner)


class TemplateInterpolator:
    """
    Resolve ``{{ ... }}`` placeholders against a variable namespace.

    Example:
        interpolator = TemplateInterpolator(FakeDataResolver(), ScriptEvaluator())
        ctx = ParserContext.from_variables({"host": "api.test", "port": 8080})
        interpolator.interpolate("https://{{host}}:{{port}}/v1", ctx)
        # → "https://api.test:8080/v1"
        interpolator.interpolate("{{port}}", ctx)
        # → 8080
    """

    def __init__(
        self,
        fake_data: FakeDataResolver,
        scripts: ScriptEvaluator,
        max_depth: int = 10,
        warn_missing: bool = True,
    ):
        """
        Args:
            fake_data: Resolver for ``$faker.`` placeholders
            scripts: Evaluator for inline script placeholders
            max_depth: Nesting limit for ``interpolate_value``
            warn_missing: Log unresolved variables (unless the call suppresses it)
        """
        self.max_depth = max_depth
        self.warn_missing = warn_missing
        self._strategies: dict[str, PlaceholderStrategy] = {}

        for strategy in (
            EnvironmentStrategy(),
            FakeDataStrategy(fake_data),
            InlineScriptStrategy(scripts),
            VariableStrategy(),
        ):
            self.register_strategy(strategy)

    @property
    def strategies(self) -> list[PlaceholderStrategy]:
        """Registered strategies in resolution order."""
        return sorted(self._strategies.values(), key=lambda s: s.priority)

    def register_strategy(self, strategy: PlaceholderStrategy) -> None:
        """Add a strategy, replacing any registered under the same name."""
        self._strategies[strategy.name] = strategy
        logger.debug(f"Registered strategy: {strategy.name} (priority: {strategy.priority})")

    def unregister_strategy(self, name: str) -> None:
        self._strategies.pop(name, None)
        logger.debug(f"Unregistered placeholder strategy: {name}")

    def resolve_placeholder(self, inner: str, context: ParserContext) -> Any:
        """Resolve one placeholder's inner text; ``UNDEFINED`` when nothing resolves it."""
        for strategy in self.strategies:
            if strategy.can_handle(inner):
                return strategy.resolve(inner, context)
        return UNDEFINED

    def interpolate(
        self, expression: str, context: ParserContext | None = None, _depth: int = 0
    ) -> Any:
        """
        Interpolate every placeholder in ``expression``.

        Substituted text is scanned again until nothing changes, so a variable
        holding ``"{{host}}/api"`` resolves fully. At most ``max_depth`` passes
        are made.

        Returns:
            The placeholder's value (type preserved) when ``expression`` is
            exactly one placeholder, otherwise the substituted string.
            Unresolved placeholders are ``UNDEFINED`` in the first case and
            kept verbatim in the second. Dicts, lists and template strings
            returned by a lone placeholder are interpolated in turn.

        Raises:
            ExpressionParseError: Unclosed or empty placeholder
        """
        context = context or ParserContext()
        placeholders = self._scan(expression)
        if not placeholders:
            return expression

        if _depth >= self.max_depth:
            logger.warning(f"Maximum interpolation depth reached ({self.max_depth})")
            return expression

        first = placeholders[0]
        if len(placeholders) == 1 and first.start == 0 and first.end == len(expression):
            value = self.resolve_placeholder(first.inner, context)
            if value is UNDEFINED:
                self._log_missing(first.inner, context)
                return value
            if isinstance(value, (dict, list)) or (isinstance(value, str) and "{{" in value):
                return self.interpolate_value(value, context, _depth + 1)
            return value

        text = self._substitute(expression, placeholders, context, warn=True)
        for _ in range(self.max_depth - 1):
            if "{{" not in text:
                break
            try:
                placeholders = self._scan(text)
            except ExpressionParseError:
                # A substituted value brought in unbalanced braces
                break
            previous = text
            text = self._substitute(text, placeholders, context, warn=False)
            if text == previous:
                break
        return text

    @staticmethod
    def _scan(text: str) -> list[Placeholder]:
        try:
            placeholders = list(iter_placeholders(text))
        except ValueError as e:
            raise ExpressionParseError(text, str(e), TEMPLATE_TYPE_NAME) from e
        if any(not placeholder.inner for placeholder in placeholders):
            raise ExpressionParseError(text, "Empty placeholder", TEMPLATE_TYPE_NAME)
        return placeholders

    def _substitute(
        self,
        text: str,
        placeholders: list[Placeholder],
        context: ParserContext,
        warn: bool,
    ) -> str:
        """One left-to-right pass; unresolved placeholders are kept verbatim."""
        parts: list[str] = []
        last = 0
        for placeholder in placeholders:
            parts.append(text[last : placeholder.start])
            value = self.resolve_placeholder(placeholder.inner, context)
            if value is UNDEFINED:
                if warn:
                    self._log_missing(placeholder.inner, context)
                parts.append(text[placeholder.start : placeholder.end])
            else:
                parts.append(format_for_string(value))
            last = placeholder.end
        parts.append(text[last:])
        return "".join(parts)

    def interpolate_value(
        self,
        template: Any,
        context: ParserContext | None = None,
        _depth: int = 0,
        _visited: set[int] | None = None,
    ) -> Any:
        """
        Interpolate strings anywhere inside nested dicts and lists.

        Nesting deeper than ``max_depth`` is returned unchanged with a warning;
        a container that contains itself is replaced by ``"[Circular Reference]"``.

        Example:
            interpolator.interpolate_value(
                {"url": "{{base}}/users", "headers": {"Authorization": "Bearer {{token}}"}},
                ctx,
            )
        """
        context = context or ParserContext()
        visited = _visited if _visited is not None else set()

        if _depth >= self.max_depth:
            logger.warning(f"Maximum interpolation depth reached ({self.max_depth})")
            return template

        if isinstance(template, str):
            if "{{" not in template:
                return template
            return self.interpolate(template, context, _depth)

        if isinstance(template, (dict, list)):
            if id(template) in visited:
                logger.warning("Circular reference detected during interpolation")
                return CIRCULAR_REFERENCE
            visited.add(id(template))
            try:
                if isinstance(template, dict):
                    return {
                        key: self.interpolate_value(value, context, _depth + 1, visited)
                        for key, value in template.items()
                    }
                return [
                    self.interpolate_value(item, context, _depth + 1, visited) for item in template
                ]
            finally:
                visited.discard(id(template))

        return template

    def _log_missing(self, inner: str, context: ParserContext) -> None:
        if self.warn_missing and not context.suppress_warnings:
            logger.warning(f"Variable '{inner}' not found during interpolation")
