"""Tests for variable paths, the UNDEFINED sentinel and string formatting."""

import copy
from datetime import datetime
from enum import Enum

import pytest

from flowtest_engine.engine.variables import (
    UNDEFINED,
    format_for_string,
    is_missing,
    lookup_path,
    mapping_resolver,
    parse_variable_path,
    resolve_placeholder,
)


class Color(Enum):
    RED = "red"


class TestUndefined:
    """The UNDEFINED sentinel."""

    def test_singleton(self) -> None:
        """Copies are the same object."""
        assert copy.deepcopy(UNDEFINED) is UNDEFINED
        assert copy.copy(UNDEFINED) is UNDEFINED

    def test_falsy_and_distinct_from_none(self) -> None:
        """UNDEFINED is falsy but not None."""
        assert not UNDEFINED
        assert UNDEFINED is not None
        assert repr(UNDEFINED) == "UNDEFINED"

    def test_is_missing(self) -> None:
        """None and UNDEFINED are missing; falsy values are not."""
        assert is_missing(None) and is_missing(UNDEFINED)
        assert not any(is_missing(v) for v in (0, "", False, []))


class TestPaths:
    """Path parsing and lookup."""

    @pytest.mark.parametrize(
        ("path", "segments"),
        [
            ("user", ["user"]),
            ("user.address.city", ["user", "address", "city"]),
            ("items[0].id", ["items", 0, "id"]),
            ('headers["x-request-id"]', ["headers", "x-request-id"]),
            ("rows[-1]['name']", ["rows", -1, "name"]),
            ("  spaced  ", ["spaced"]),
        ],
    )
    def test_parse(self, path: str, segments: list) -> None:
        """Dot and bracket notation."""
        assert parse_variable_path(path) == segments

    def test_parse_malformed(self) -> None:
        """Unterminated brackets raise."""
        with pytest.raises(ValueError, match="Invalid bracket notation"):
            parse_variable_path("items[abc]")

    def test_lookup(self) -> None:
        """Mappings, sequences and attributes are navigated."""
        data = {"user": {"roles": ["admin", "qa"]}, "now": datetime(2024, 5, 1)}
        assert lookup_path(data, "user.roles[1]") == "qa"
        assert lookup_path(data, "user.roles.0") == "admin"
        assert lookup_path(data, "now.year") == 2024

    @pytest.mark.parametrize("path", ["user.age", "user.roles[9]", "now._private", "", "x[bad]"])
    def test_lookup_missing(self, path: str) -> None:
        """Anything that does not resolve is UNDEFINED."""
        data = {"user": {"roles": []}, "now": datetime(2024, 5, 1)}
        assert lookup_path(data, path) is UNDEFINED

    def test_lookup_none_value(self) -> None:
        """A present None is returned as None."""
        assert lookup_path({"a": None}, "a") is None

    def test_mapping_resolver(self) -> None:
        """mapping_resolver wraps lookup_path."""
        resolve = mapping_resolver({"user": {"name": "Ana"}})
        assert resolve("user.name") == "Ana"
        assert resolve("user.age") is UNDEFINED


class TestResolvePlaceholder:
    """{{name}} references in validation rules."""

    def test_literal_passthrough(self) -> None:
        """Non-references are returned unchanged."""
        assert resolve_placeholder(18, {"x": 1}) == 18
        assert resolve_placeholder("18", None) == "18"

    def test_reference(self) -> None:
        """References resolve against the variables."""
        assert resolve_placeholder("{{limits.min}}", {"limits": {"min": 21}}) == 21
        assert resolve_placeholder("{{ age }}", {"age": 30}) == 30

    def test_unresolved(self) -> None:
        """Unresolved references are None."""
        assert resolve_placeholder("{{missing}}", {"x": 1}) is None
        assert resolve_placeholder("{{x}}", None) is None


class TestFormatForString:
    """Text rendering of substituted values."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (True, "true"),
            (False, "false"),
            (None, ""),
            (UNDEFINED, ""),
            (42, "42"),
            (2.5, "2.5"),
            ("text", "text"),
            (Color.RED, "red"),
            ({"a": [1, 2]}, '{"a":[1,2]}'),
            ([1, "x"], '[1,"x"]'),
            (datetime(2024, 1, 2, 3, 4, 5), "2024-01-02T03:04:05"),
        ],
    )
    def test_values(self, value, expected: str) -> None:
        """Each kind of value renders as documented."""
        assert format_for_string(value) == expected
