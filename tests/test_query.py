"""Tests for JMESPath structured queries."""

import pytest

from flowtest_engine.engine.exceptions import ExpressionParseError
from flowtest_engine.engine.resolver import StructuredQueryResolver
from flowtest_engine.engine.resolver.query import QUERY_TYPE_NAME, compile_query

DATA = {
    "response": {
        "status": 200,
        "data": [
            {"id": 123, "name": "ana", "age": 34, "tags": ["a"]},
            {"id": 456, "name": "bruno", "age": 27, "tags": []},
        ],
        "headers": {"content-type": "application/json"},
    }
}


class TestQuery:
    """Query evaluation."""

    def test_index(self, queries: StructuredQueryResolver) -> None:
        """Dot and index access."""
        assert queries.query("response.data[0].id", DATA) == 123
        assert queries.query("response.data[-1].name", DATA) == "bruno"

    def test_projection(self, queries: StructuredQueryResolver) -> None:
        """Projections collect values."""
        assert queries.query("response.data[*].id", DATA) == [123, 456]

    def test_filter(self, queries: StructuredQueryResolver) -> None:
        """Filters select matching items."""
        assert queries.query("response.data[?age > `30`].name", DATA) == ["ana"]

    def test_functions(self, queries: StructuredQueryResolver) -> None:
        """Built-in functions."""
        assert queries.query("length(response.data)", DATA) == 2

    def test_quoted_key(self, queries: StructuredQueryResolver) -> None:
        """Keys with special characters are quoted."""
        assert queries.query('response.headers."content-type"', DATA) == "application/json"

    def test_missing_path(self, queries: StructuredQueryResolver) -> None:
        """Missing paths are None, not errors."""
        assert queries.query("response.body.id", DATA) is None
        assert queries.query("response.data[5]", DATA) is None

    def test_whitespace_trimmed(self, queries: StructuredQueryResolver) -> None:
        """Surrounding whitespace is ignored."""
        assert queries.query("  response.status  ", DATA) == 200


class TestQueryErrors:
    """Invalid queries raise ExpressionParseError."""

    def test_empty(self, queries: StructuredQueryResolver) -> None:
        """Empty queries are rejected."""
        with pytest.raises(ExpressionParseError, match="Query is empty"):
            queries.query("   ", DATA)

    def test_syntax(self, queries: StructuredQueryResolver) -> None:
        """Syntax errors carry the query text."""
        with pytest.raises(ExpressionParseError) as exc_info:
            queries.query("response.data[?", DATA)
        assert exc_info.value.expression == "response.data[?"
        assert exc_info.value.expression_type == QUERY_TYPE_NAME
        assert "Invalid query syntax" in exc_info.value.reason

    def test_runtime_type_error(self, queries: StructuredQueryResolver) -> None:
        """Function type errors are wrapped."""
        with pytest.raises(ExpressionParseError):
            queries.query("abs(response.data[0].name)", DATA)

    def test_compile_cached(self) -> None:
        """Compiled queries are reused."""
        assert compile_query("response.status") is compile_query("response.status")
