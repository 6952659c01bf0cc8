"""Per-call context bundle supplied by the step executor."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from ..variables import mapping_resolver
from .script import ScriptContext


@dataclass
class ParserContext:
    """
    Everything one resolution call may read.

    Owned by the caller for the duration of a single ``parse`` call and never
    retained by the parser.

    Attributes:
        variable_resolver: ``path -> value`` lookup; returns ``UNDEFINED`` for
            unknown names
        script_context: Bindings for script snippets
        query_context: Value tree that ``@`` queries run against
        suppress_warnings: Silence ambiguity and missing-variable warnings
    """

    variable_resolver: Callable[[str], Any] | None = None
    script_context: ScriptContext | None = None
    query_context: Any = None
    suppress_warnings: bool = False

    @classmethod
    def from_variables(
        cls,
        variables: Mapping[str, Any],
        response: Any = None,
        request: Any = None,
        captured: Mapping[str, Any] | None = None,
        suppress_warnings: bool = False,
    ) -> ParserContext:
        """
        Build a context where every resolver sees the same variables.

        Queries run against the variables plus ``response``, ``request`` and
        ``captured``, so ``@response.body.id`` and ``@user.id`` both work.

        Example:
            ctx = ParserContext.from_variables({"user_id": 7}, response={"status": 200})
            parser.parse("@response.status", ctx).result  # → 200
        """
        captured = dict(captured or {})
        query_context = dict(variables)
        query_context.update(response=response, request=request, captured=captured)
        return cls(
            variable_resolver=mapping_resolver(variables),
            script_context=ScriptContext(
                variables=variables, response=response, request=request, captured=captured
            ),
            query_context=query_context,
            suppress_warnings=suppress_warnings,
        )
