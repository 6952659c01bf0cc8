"""
Variable lookup helpers shared by the resolvers and the validators.

This module provides:
1. UNDEFINED: explicit sentinel for names that do not resolve
2. parse_variable_path / lookup_path: dotted and bracket path navigation
3. mapping_resolver: a ready-made variable resolver over a plain mapping
4. resolve_placeholder: the "{{name}}" bound lookup used by validators
5. format_for_string: stringification used for template substitution

Path syntax:
- "user" - top-level name
- "user.address.city" - nested mapping keys
- "items[0].id" - list index
- 'headers["content-type"]' - quoted key with special characters
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping, Sequence
from datetime import date, time
from enum import Enum
from typing import Any

PLACEHOLDER_PATTERN = re.compile(r"^\{\{\s*(.*?)\s*\}\}$", re.DOTALL)

_BRACKET_PATTERN = re.compile(
    r"\["  # Opening bracket
    r"(?:"
    r'"([^"]+)"|'  # Double-quoted key
    r"'([^']+)'|"  # Single-quoted key
    r"(-?\d+)"  # Numeric index
    r")"
    r"\]"  # Closing bracket
)


class _Undefined:
    """Sentinel type for unresolvable names (distinct from ``None``)."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __str__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Undefined:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Undefined:
        return self

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED: Any = _Undefined()
"""Returned by variable resolvers for names that do not exist."""


def is_undefined(value: Any) -> bool:
    """True for the ``UNDEFINED`` sentinel."""
    return value is UNDEFINED


def is_missing(value: Any) -> bool:
    """True for ``None`` and ``UNDEFINED`` (null-or-undefined)."""
    return value is None or value is UNDEFINED


def parse_variable_path(var_path: str) -> list[str | int]:
    """
    Parse a variable path into segments, handling bracket notation.

    Converts mixed dot and bracket notation into a list of segments:
    - "response.data" → ["response", "data"]
    - "items[0].id" → ["items", 0, "id"]
    - 'headers["x-request-id"]' → ["headers", "x-request-id"]
    - " user " → ["user"] (surrounding whitespace is ignored)

    Args:
        var_path: Variable path string

    Returns:
        Segments; integer segments are list indexes

    Raises:
        ValueError: If bracket notation is malformed

    Example:
        >>> parse_variable_path('data.items[2]["name"]')
        ['data', 'items', 2, 'name']
    """
    var_path = var_path.strip()

    segments: list[str | int] = []
    current = ""
    i = 0

    while i < len(var_path):
        char = var_path[i]

        if char == ".":
            if current:
                segments.append(current)
                current = ""
            i += 1

        elif char == "[":
            if current:
                segments.append(current)
                current = ""

            match = _BRACKET_PATTERN.match(var_path, i)
            if not match:
                raise ValueError(
                    f"Invalid bracket notation at position {i}: {var_path[i : i + 20]}..."
                )

            double_quoted, single_quoted, numeric = match.groups()
            if double_quoted is not None:
                segments.append(double_quoted)
            elif single_quoted is not None:
                segments.append(single_quoted)
            else:
                segments.append(int(numeric))

            i = match.end()

        else:
            current += char
            i += 1

    if current:
        segments.append(current)

    return segments


def lookup_path(data: Any, var_path: str) -> Any:
    """
    Navigate ``data`` along ``var_path``.

    Mappings are navigated by key, sequences by integer index (a numeric
    string segment also indexes a sequence), and other objects by attribute.

    Returns:
        The value found, or ``UNDEFINED`` when any segment is missing or the
        path is malformed.
    """
    try:
        segments = parse_variable_path(var_path)
    except ValueError:
        return UNDEFINED

    if not segments:
        return UNDEFINED

    value = data
    for segment in segments:
        value = _step(value, segment)
        if value is UNDEFINED:
            return UNDEFINED
    return value


def _step(value: Any, segment: str | int) -> Any:
    if isinstance(value, Mapping):
        if segment in value:
            return value[segment]
        if isinstance(segment, int) and str(segment) in value:
            return value[str(segment)]
        return UNDEFINED

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        index = segment
        if isinstance(index, str):
            if not index.lstrip("-").isdigit():
                return UNDEFINED
            index = int(index)
        if -len(value) <= index < len(value):
            return value[index]
        return UNDEFINED

    if isinstance(segment, str) and not segment.startswith("_") and hasattr(value, segment):
        return getattr(value, segment)

    return UNDEFINED


def mapping_resolver(variables: Mapping[str, Any]) -> Callable[[str], Any]:
    """
    Build a variable resolver over a plain mapping.

    Example:
        >>> resolve = mapping_resolver({"user": {"name": "Ana"}})
        >>> resolve("user.name")
        'Ana'
        >>> resolve("user.age")
        UNDEFINED
    """

    def resolve(path: str) -> Any:
        return lookup_path(variables, path)

    return resolve


def resolve_placeholder(constraint: Any, variables: Mapping[str, Any] | None) -> Any:
    """
    Resolve a ``{{name}}`` constraint against a variable map.

    Non-placeholder constraints are returned unchanged, so literal bounds
    and references can be mixed freely in validation rules.

    Args:
        constraint: Literal value or a string of the form "{{name}}"
        variables: Variable map (may be None)

    Returns:
        The literal, the referenced value, or ``None`` when the reference
        does not resolve.
    """
    if isinstance(constraint, str):
        match = PLACEHOLDER_PATTERN.match(constraint)
        if match:
            if not variables:
                return None
            value = lookup_path(variables, match.group(1))
            return None if value is UNDEFINED else value
    return constraint


def format_for_string(value: Any) -> str:
    """Format a value for substitution into surrounding text.

    Booleans are lowercased and containers rendered as compact JSON so that
    substituted values read naturally in URLs, headers and request bodies:
    - True → "true"
    - None → ""
    - datetime(2024, 1, 2) → "2024-01-02T00:00:00"
    - {"a": 1} → '{"a":1}'
    """
    if isinstance(value, bool):
        return str(value).lower()
    elif isinstance(value, Enum):
        return str(value.value)
    elif isinstance(value, str):
        return value
    elif isinstance(value, (int, float)):
        return str(value)
    elif isinstance(value, (date, time)):
        return value.isoformat()
    elif value is None or value is UNDEFINED:
        return ""
    elif isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    else:
        return str(value)


__all__ = [
    "UNDEFINED",
    "PLACEHOLDER_PATTERN",
    "is_undefined",
    "is_missing",
    "parse_variable_path",
    "lookup_path",
    "mapping_resolver",
    "resolve_placeholder",
    "format_for_string",
]
