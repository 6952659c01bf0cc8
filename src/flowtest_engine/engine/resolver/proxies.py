"""
Helper namespaces exposed to script snippets.

Snippets in test definitions lean on a handful of familiar helpers. Each
namespace is a read-only proxy over a fixed function table:
    - Math: Math.max(a, b), Math.floor(x), Math.PI, ...
    - JSON: JSON.stringify(obj), JSON.parse(text)
    - Date: Date.now(), Date.iso()
    - Object: Object.keys(obj), Object.values(obj), Object.entries(obj)

Example:
    $Math.max(10, 20, 5)            # → 20
    $JSON.stringify(response.data)  # → '{"id":1}'
"""

import json
import math
import random
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any


class ProxyBase:
    """Base class for proxy objects."""

    def __init__(self, name: str, members: Mapping[str, Any]):
        """
        Initialize proxy with a name and its member table.

        Args:
            name: Namespace name used in error messages
            members: Attribute name → value (functions or constants)
        """
        object.__setattr__(self, "_name", name)
        object.__setattr__(self, "_members", dict(members))

    def __getattr__(self, name: str) -> Any:
        members = object.__getattribute__(self, "_members")
        if name in members:
            return members[name]
        namespace = object.__getattribute__(self, "_name")
        raise AttributeError(f"{namespace}.{name} is not available in scripts")

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{object.__getattribute__(self, '_name')} is read-only")

    def __repr__(self) -> str:
        return f"<{object.__getattribute__(self, '_name')}>"


class HelperNamespace(ProxyBase):
    """Read-only helper namespace (Math, JSON, Date, Object)."""

    def __dir__(self) -> list[str]:
        return sorted(object.__getattribute__(self, "_members"))


def _js_round(value: float) -> int:
    # Math.round rounds halves up, unlike Python's banker's rounding
    return math.floor(value + 0.5)


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _stringify(value: Any, indent: int | None = None) -> str:
    if indent:
        return json.dumps(value, indent=indent, default=str)
    return json.dumps(value, separators=(",", ":"), default=str)


def _entries(obj: Mapping[str, Any]) -> list[list[Any]]:
    return [[key, value] for key, value in obj.items()]


def _parse_int(value: Any, base: int = 10) -> int | float:
    text = str(value).strip()
    digits = ""
    for i, char in enumerate(text):
        if char.isdigit() or (i == 0 and char in "+-"):
            digits += char
        else:
            break
    if digits in ("", "+", "-"):
        return math.nan
    return int(digits, base)


def _parse_float(value: Any) -> float:
    try:
        return float(str(value).strip())
    except ValueError:
        return math.nan


def _is_nan(value: Any) -> bool:
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return True


MATH = HelperNamespace(
    "Math",
    {
        "max": max,
        "min": min,
        "abs": abs,
        "floor": math.floor,
        "ceil": math.ceil,
        "round": _js_round,
        "trunc": math.trunc,
        "sqrt": math.sqrt,
        "pow": math.pow,
        "sign": _sign,
        "random": random.random,
        "PI": math.pi,
        "E": math.e,
    },
)

JSON = HelperNamespace("JSON", {"stringify": _stringify, "parse": json.loads})

DATE = HelperNamespace(
    "Date",
    {
        "now": lambda: int(datetime.now(UTC).timestamp() * 1000),
        "iso": lambda: datetime.now(UTC).isoformat(),
    },
)

OBJECT = HelperNamespace(
    "Object",
    {
        "keys": lambda obj: list(obj.keys()),
        "values": lambda obj: list(obj.values()),
        "entries": _entries,
    },
)

SCRIPT_GLOBALS: Mapping[str, Any] = {
    "Math": MATH,
    "JSON": JSON,
    "Date": DATE,
    "Object": OBJECT,
    "parseInt": _parse_int,
    "parseFloat": _parse_float,
    "isNaN": _is_nan,
    "String": str,
    "Number": _parse_float,
    "Boolean": bool,
    "len": len,
    "int": int,
    "float": float,
    "str": str,
    "bool": bool,
    "range": range,
}
"""Globals installed into every script sandbox."""
