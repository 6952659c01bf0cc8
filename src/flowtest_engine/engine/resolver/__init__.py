"""
Expression resolution package.

Classifies expression strings by prefix and routes them to the matching
resolver:
1. Fake data (#faker.category.method) via Faker
2. Structured queries (@path) via JMESPath
3. Script snippets ($expr) via a sandboxed Jinja2 expression evaluator
4. Templates ({{ ... }}) via placeholder strategies
5. Literals, passed through unchanged

Public API:
    - ExpressionParser: Dispatcher returning ParseResult
    - ParserContext: Per-call variables, script bindings and query data
    - TemplateInterpolator / PlaceholderStrategy: Template resolution
    - StructuredQueryResolver: JMESPath evaluation
    - ScriptEvaluator / ScriptContext: Sandboxed snippet evaluation
    - FakeDataResolver: Allow-listed fake data generation
    - TransformRule: Base class for custom snippet transformation rules
"""

from .classifier import ExpressionClassifier, ExpressionType
from .context import ParserContext
from .fake_data import FakeDataResolver
from .interpolation import PlaceholderStrategy, TemplateInterpolator
from .parser import ExpressionParser, ParseResult
from .query import StructuredQueryResolver
from .rules import RuleContext, RuleType, TransformRule
from .script import ScriptContext, ScriptEvaluator

__all__ = [
    "ExpressionParser",
    "ParseResult",
    "ParserContext",
    "ExpressionClassifier",
    "ExpressionType",
    "TemplateInterpolator",
    "PlaceholderStrategy",
    "StructuredQueryResolver",
    "ScriptEvaluator",
    "ScriptContext",
    "FakeDataResolver",
    "TransformRule",
    "RuleType",
    "RuleContext",
]
