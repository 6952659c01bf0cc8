"""
Expression parser: classify, dispatch, trace.

Architecture:
    Expression string
          ↓
    Mixed-syntax check (ExpressionClassifier)
          ↓
    Classification by prefix
          ↓
    Resolver (fake data | query | script | template | literal)
          ↓
    Ambiguity hints (literals only)
          ↓
    ParseResult

Example:
    parser = ExpressionParser()
    ctx = ParserContext.from_variables({"items": [1, 2, 3]})
    parser.parse("$return items.length * 2", ctx).result  # → 6
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from ..config import ParserConfig
from ..exceptions import (
    AmbiguousExpressionError,
    ExpressionParseError,
    ExpressionTimeoutError,
    MixedSyntaxError,
    ScriptCancelledError,
    ScriptTimeoutError,
)
from .classifier import ExpressionClassifier, ExpressionType
from .context import ParserContext
from .fake_data import FakeDataResolver
from .interpolation import FakeDataStrategy, TemplateInterpolator
from .query import StructuredQueryResolver
from .script import ScriptContext, ScriptEvaluator

logger = logging.getLogger(__name__)

_RETURN_PATTERN = re.compile(r"^return\b")
_TRACE_PREVIEW_LIMIT = 100

SYNTAX_GUIDE = """\
┌──────────────────────────┬────────────────┬──────────────────────────┐
│ To produce...            │ Write...       │ Example                  │
├──────────────────────────┼────────────────┼──────────────────────────┤
│ Fixed text               │ text           │ Hello World              │
│ Variable / template      │ {{var}}        │ {{$env.URL}}/{{id}}      │
│ JSON query               │ @query         │ @response.data[0].id     │
│ Computation / logic      │ $snippet       │ $return x * 2            │
│ Fake test data           │ #faker.kind    │ #faker.internet.email    │
└──────────────────────────┴────────────────┴──────────────────────────┘

Placeholder sub-forms inside {{ }}:
• {{$env.NAME}}              → environment variable (None when unset)
• {{$faker.category.method}} → generated value
• {{$js: expression}}        → inline script ({{var}} allowed inside)

Common fake data:
• #faker.person.fullName            → "Maria Silva"
• #faker.internet.email             → "maria@example.com"
• #faker.phone.number               → "(11) 98765-4321"
• #faker.string.uuid                → "a5f3c2d1-..."
• #faker.number.int({min: 1, max: 9}) → 4
• #faker.lorem.paragraph            → "Lorem ipsum..."
• #faker.date.recent                → 2025-01-29T10:30:00+00:00
"""


@dataclass
class ParseResult:
    """
    Outcome of parsing one expression.

    Attributes:
        type: Form the expression was classified as (prefix only)
        expression: The original input
        result: Resolved value
        trace: Diagnostic lines, present only in debug mode
    """

    type: ExpressionType
    expression: str
    result: Any
    trace: list[str] | None = None


def _preview(value: Any) -> str:
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return repr(value)


class ExpressionParser:
    """
    Resolve expression strings into runtime values.

    The parser holds configuration and its resolvers; everything else is
    per call, so one parser can serve many concurrent steps.
    """

    def __init__(
        self,
        config: ParserConfig | None = None,
        fake_data: FakeDataResolver | None = None,
        scripts: ScriptEvaluator | None = None,
        queries: StructuredQueryResolver | None = None,
    ):
        """
        Initialize expression parser.

        Args:
            config: Parser configuration (defaults to ``ParserConfig()``)
            fake_data: Fake-data resolver; a new one per parser when omitted
            scripts: Script evaluator; a new one per parser when omitted
            queries: Query resolver
        """
        self.config = config or ParserConfig()
        self.fake_data = fake_data or FakeDataResolver(
            locale=self.config.faker_locale, seed=self.config.faker_seed
        )
        self.scripts = scripts or ScriptEvaluator(timeout=self.config.script_timeout)
        self.queries = queries or StructuredQueryResolver()
        self.interpolator = TemplateInterpolator(
            self.fake_data,
            self.scripts,
            max_depth=self.config.max_interpolation_depth,
            warn_missing=self.config.enable_warnings,
        )
        self.classifier = ExpressionClassifier()

        self._handlers: dict[
            ExpressionType, Callable[[str, ParserContext, list[str]], Any]
        ] = {
            ExpressionType.FAKE_DATA: self._parse_fake_data,
            ExpressionType.QUERY: self._parse_query,
            ExpressionType.SCRIPT: self._parse_script,
            ExpressionType.TEMPLATE: self._parse_template,
            ExpressionType.LITERAL: self._parse_literal,
        }

    def configure(self, **overrides: Any) -> ParserConfig:
        """
        Apply configuration overrides and return the new config.

        Example:
            parser.configure(debug=True, script_timeout=1.0)
        """
        previous = self.config
        self.config = ParserConfig.model_validate({**previous.model_dump(), **overrides})

        self.scripts.timeout = self.config.script_timeout
        self.interpolator.max_depth = self.config.max_interpolation_depth
        self.interpolator.warn_missing = self.config.enable_warnings

        if self.config.faker_locale != previous.faker_locale:
            self.fake_data = FakeDataResolver(
                locale=self.config.faker_locale, seed=self.config.faker_seed
            )
            self.interpolator.register_strategy(FakeDataStrategy(self.fake_data))
        elif self.config.faker_seed != previous.faker_seed:
            self.fake_data.seed(self.config.faker_seed)

        logger.debug(f"Parser configured: {overrides}")
        return self.config

    def parse(self, expression: str, context: ParserContext | None = None) -> ParseResult:
        """
        Classify and resolve ``expression``.

        Args:
            expression: Expression string
            context: Per-call context (variables, script bindings, query data)

        Returns:
            ParseResult with the classified type and resolved value

        Raises:
            MixedSyntaxError: Expression combines prefixes
            ExpressionParseError: Any resolver failure, carrying the expression
            AmbiguousExpressionError: Strict mode and the literal looks like an expression
            ScriptTimeoutError: Script exceeded its time budget
            ScriptCancelledError: Script was cancelled by the owning step
        """
        context = context or ParserContext()
        debug = self.config.debug
        trace: list[str] = []

        if debug:
            trace.append(f'[PARSE] Input: "{expression}"')

        try:
            self.classifier.check_mixed_syntax(expression)
        except MixedSyntaxError as e:
            if debug:
                trace.append(f"[ERROR] {e}")
                self._log_trace(trace)
            raise

        expression_type = self.classifier.classify(expression)
        if debug:
            trace.append(f"[PARSE] Type: {expression_type.value}")

        try:
            result = self._handlers[expression_type](expression, context, trace)
        except (ScriptTimeoutError, ScriptCancelledError):
            if debug:
                self._log_trace(trace)
            raise
        except Exception as e:
            if debug:
                trace.append(f"[ERROR] {e}")
                self._log_trace(trace)
            if isinstance(e, ExpressionParseError) and e.expression == expression:
                raise
            raise ExpressionParseError(expression, str(e), expression_type.value) from e

        if expression_type is ExpressionType.LITERAL:
            self._check_ambiguity(expression, context, trace)

        parsed = ParseResult(type=expression_type, expression=expression, result=result)
        if debug:
            trace.append(f"[RESULT] Type: {expression_type.value}, Value: {_preview(result)}")
            parsed.trace = trace
            self._log_trace(trace)
        return parsed

    def parse_any(self, value: Any, context: ParserContext | None = None) -> ParseResult:
        """Parse strings; any other value is a literal as-is."""
        if not isinstance(value, str):
            return ParseResult(type=ExpressionType.LITERAL, expression=str(value), result=value)
        return self.parse(value, context)

    def parse_many(
        self, values: Mapping[str, Any], context: ParserContext | None = None
    ) -> dict[str, ParseResult]:
        """Parse each named value independently."""
        return {name: self.parse_any(value, context) for name, value in values.items()}

    async def parse_async(
        self,
        expression: Any,
        context: ParserContext | None = None,
        timeout: float | None = None,
    ) -> ParseResult:
        """
        Parse in a worker thread without blocking the event loop.

        Raises:
            ExpressionTimeoutError: ``timeout`` seconds elapsed first
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.parse_any, expression, context), timeout
            )
        except TimeoutError as e:
            raise ExpressionTimeoutError(str(expression), timeout or 0) from e

    async def parse_many_async(
        self,
        values: Mapping[str, Any],
        context: ParserContext | None = None,
        timeout: float | None = None,
    ) -> dict[str, ParseResult]:
        """Parse named values concurrently; the first failure propagates."""
        names = list(values)
        results = await asyncio.gather(
            *(self.parse_async(values[name], context, timeout) for name in names)
        )
        return dict(zip(names, results, strict=True))

    @staticmethod
    def syntax_guide() -> str:
        """Quick reference of the five expression forms."""
        return SYNTAX_GUIDE

    def _parse_fake_data(self, expression: str, context: ParserContext, trace: list[str]) -> Any:
        method = expression[1:]  # Drop "#", keep "faker."
        result = self.fake_data.parse_expression(method)
        if self.config.debug:
            trace.append(f"[FAKE-DATA] Method: {method}")
            trace.append(f"[FAKE-DATA] Result: {_preview(result)}")
        return result

    def _parse_query(self, expression: str, context: ParserContext, trace: list[str]) -> Any:
        query = expression[1:]
        if not query.strip():
            raise ExpressionParseError(
                expression, "Query cannot be empty after @ prefix", ExpressionType.QUERY.value
            )

        data = context.query_context if context.query_context is not None else {}
        result = self.queries.query(query, data)
        if self.config.debug:
            trace.append(f"[QUERY] Query: {query}")
            trace.append(f"[QUERY] Context: {_preview(data)[:_TRACE_PREVIEW_LIMIT]}...")
            trace.append(f"[QUERY] Result: {_preview(result)}")
        return result

    def _parse_script(self, expression: str, context: ParserContext, trace: list[str]) -> Any:
        snippet = expression[1:]
        if not snippet.strip():
            raise ExpressionParseError(
                expression, "Script cannot be empty after $ prefix", ExpressionType.SCRIPT.value
            )

        code = snippet if _RETURN_PATTERN.match(snippet.strip()) else f"return {snippet}"
        result = self.scripts.run(code, context.script_context or ScriptContext())
        if self.config.debug:
            trace.append(f"[SCRIPT] Code: {snippet}")
            trace.append(f"[SCRIPT] Executed: {code}")
            trace.append(f"[SCRIPT] Result: {_preview(result)}")
        return result

    def _parse_template(self, expression: str, context: ParserContext, trace: list[str]) -> Any:
        result = self.interpolator.interpolate(expression, context)
        if self.config.debug:
            trace.append(f"[TEMPLATE] Expression: {expression}")
            trace.append(f"[TEMPLATE] Result: {_preview(result)}")
        return result

    def _parse_literal(self, expression: str, context: ParserContext, trace: list[str]) -> Any:
        if self.config.debug:
            trace.append(f"[LITERAL] Value: {expression}")
        return expression

    def _check_ambiguity(self, expression: str, context: ParserContext, trace: list[str]) -> None:
        hints = self.classifier.ambiguity_hints(expression)
        if not hints:
            return
        if self.config.strict:
            raise AmbiguousExpressionError(expression, hints[0])
        if not self.config.enable_warnings or context.suppress_warnings:
            return
        for hint in hints:
            if self.config.debug:
                trace.append(f"[WARNING] {hint}")
            logger.warning(f'Ambiguous expression "{expression}": {hint}')

    @staticmethod
    def _log_trace(trace: list[str]) -> None:
        logger.debug("Expression parsing trace:\n" + "\n".join(trace))
