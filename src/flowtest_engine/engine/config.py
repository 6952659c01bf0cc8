"""Parser configuration.

Configuration lives for the lifetime of an ``ExpressionParser`` instance and
is the only state shared across resolution calls. Values come from, in
priority order:

1. Explicit keyword arguments / ``ParserConfig(...)``
2. ``FLOWTEST_*`` environment variables (via ``ParserConfig.from_env()``)
3. Built-in defaults

Environment variables:
    FLOWTEST_DEBUG                    Emit parse traces (default: false)
    FLOWTEST_ENABLE_WARNINGS          Log ambiguity warnings (default: true)
    FLOWTEST_STRICT                   Raise on ambiguous literals (default: false)
    FLOWTEST_SCRIPT_TIMEOUT           Script time budget in seconds (default: 5)
    FLOWTEST_MAX_INTERPOLATION_DEPTH  Nested template depth limit (default: 10)
    FLOWTEST_FAKER_LOCALE             Faker locale, e.g. "pt_BR" (default: Faker's)
    FLOWTEST_FAKER_SEED               Seed for reproducible fake data
"""

from __future__ import annotations

import logging
import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

ENV_PREFIX = "FLOWTEST_"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class ParserConfig(BaseModel):
    """Expression parser configuration (immutable)."""

    model_config = ConfigDict(frozen=True)

    debug: bool = Field(default=False, description="Record and log a step-by-step parse trace")
    enable_warnings: bool = Field(
        default=True, description="Log hints for literals that look like unmarked expressions"
    )
    strict: bool = Field(
        default=False, description="Raise AmbiguousExpressionError instead of warning"
    )
    script_timeout: float = Field(
        default=5.0,
        gt=0,
        le=300,
        description="Per-call time budget for script snippets, in seconds",
    )
    max_interpolation_depth: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum nesting depth when interpolating dict/list templates",
    )
    faker_locale: str | None = Field(default=None, description="Locale for fake-data generation")
    faker_seed: int | None = Field(default=None, description="Seed for reproducible fake data")

    @classmethod
    def from_env(cls, **overrides: Any) -> ParserConfig:
        """Build a config from ``FLOWTEST_*`` variables, then apply overrides.

        Unparseable values are logged and ignored so that a typo in the
        environment never prevents the engine from starting.
        """
        values: dict[str, Any] = {}

        for name in ("debug", "enable_warnings", "strict"):
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            lowered = raw.strip().lower()
            if lowered in _TRUTHY:
                values[name] = True
            elif lowered in _FALSY:
                values[name] = False
            else:
                logger.warning(f"Ignoring {ENV_PREFIX}{name.upper()}={raw!r}: expected a boolean")

        for name, caster in (
            ("script_timeout", float),
            ("max_interpolation_depth", int),
            ("faker_seed", int),
        ):
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            try:
                values[name] = caster(raw)
            except ValueError:
                logger.warning(
                    f"Ignoring {ENV_PREFIX}{name.upper()}={raw!r}: expected {caster.__name__}"
                )

        locale = os.getenv(f"{ENV_PREFIX}FAKER_LOCALE")
        if locale:
            values["faker_locale"] = locale

        values.update(overrides)
        return cls(**values)


__all__ = ["ParserConfig", "ENV_PREFIX"]
