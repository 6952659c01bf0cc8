"""JMESPath queries over captured responses and other JSON-like values."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

import jmespath
from jmespath.exceptions import JMESPathError
from jmespath.parser import ParsedResult

from ..exceptions import ExpressionParseError

logger = logging.getLogger(__name__)

QUERY_TYPE_NAME = "jmespath-style-query"


@lru_cache(maxsize=512)
def compile_query(path: str) -> ParsedResult:
    """Compile a query once per distinct string (compiled queries are immutable)."""
    return jmespath.compile(path)


class StructuredQueryResolver:
    """
    Evaluate JMESPath queries against an in-memory value tree.

    Example:
        resolver = StructuredQueryResolver()
        resolver.query("response.data[0].id", {"response": {"data": [{"id": 123}]}})
        # → 123
        resolver.query("response.missing", {"response": {}})
        # → None
    """

    def __init__(self, options: jmespath.Options | None = None):
        """
        Args:
            options: Optional jmespath options (custom functions, dict class)
        """
        self.options = options

    def query(self, path: str, context_object: Any) -> Any:
        """
        Evaluate ``path`` against ``context_object``.

        Returns:
            The selected value, or ``None`` when the path does not exist

        Raises:
            ExpressionParseError: If ``path`` is not a valid query
        """
        if not path or not path.strip():
            raise ExpressionParseError(path, "Query is empty", QUERY_TYPE_NAME)

        try:
            compiled = compile_query(path.strip())
        except JMESPathError as e:
            raise ExpressionParseError(path, f"Invalid query syntax: {e}", QUERY_TYPE_NAME) from e

        try:
            result = compiled.search(context_object, options=self.options)
        except JMESPathError as e:
            raise ExpressionParseError(path, str(e), QUERY_TYPE_NAME) from e

        logger.debug(f"Query `{path}` → {result!r}")
        return result
