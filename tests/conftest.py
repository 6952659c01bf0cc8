"""Shared test configuration for flowtest-engine tests.

Provides:
- A seeded ExpressionParser (reproducible fake data)
- Stand-alone resolvers for unit tests
- A ValidationRegistry loaded with the built-in strategies
- A helper to build validation contexts
"""

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from flowtest_engine.engine.config import ParserConfig
from flowtest_engine.engine.resolver import (
    ExpressionParser,
    FakeDataResolver,
    ScriptEvaluator,
    StructuredQueryResolver,
    TemplateInterpolator,
)
from flowtest_engine.engine.validation import ValidationContext, ValidationRegistry

TEST_SEED = 1234


@pytest.fixture
def parser() -> Iterator[ExpressionParser]:
    """Expression parser with a fixed fake-data seed."""
    instance = ExpressionParser(ParserConfig(faker_seed=TEST_SEED))
    yield instance
    instance.scripts.shutdown()


@pytest.fixture
def scripts() -> Iterator[ScriptEvaluator]:
    """Script evaluator with a short default time budget."""
    evaluator = ScriptEvaluator(timeout=2.0)
    yield evaluator
    evaluator.shutdown()


@pytest.fixture
def fake_data() -> FakeDataResolver:
    return FakeDataResolver(seed=TEST_SEED)


@pytest.fixture
def queries() -> StructuredQueryResolver:
    return StructuredQueryResolver()


@pytest.fixture
def interpolator(fake_data: FakeDataResolver, scripts: ScriptEvaluator) -> TemplateInterpolator:
    return TemplateInterpolator(fake_data, scripts)


@pytest.fixture
def registry() -> ValidationRegistry:
    """Registry with the six built-in strategies."""
    return ValidationRegistry.with_defaults()


@pytest.fixture
def make_context() -> Callable[..., ValidationContext]:
    """Build a ValidationContext; field defaults to "field"."""

    def _make(
        value: Any,
        rule: dict[str, Any],
        variables: dict[str, Any] | None = None,
        field: str = "field",
    ) -> ValidationContext:
        return ValidationContext(field=field, value=value, rule=rule, variables=variables)

    return _make
