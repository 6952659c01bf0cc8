"""
Sandboxed script evaluation.

Snippets are single expressions evaluated with Jinja2's sandboxed expression
compiler. Each call:

    Snippet ("return items.length * 2;")
          ↓
    Transform Pipeline (security + syntax rules)
          ↓
    Fresh _ScriptSandbox (per call, never shared)
          ↓
    compile_expression → evaluate in a worker thread
          ↓
    Watchdog (caller waits at most ``timeout`` seconds)

The sandbox checks the deadline and the caller's cancel event on every
attribute access, call and multiplication, so a runaway snippet stops itself.
``**`` and ``*`` whose result would be huge are rejected before they run,
since a single big-integer operation holds the GIL and would starve the
watchdog.

Example:
    evaluator = ScriptEvaluator(timeout=2.0)
    evaluator.run("return items.length * 2", ScriptContext(variables={"items": [1, 2, 3]}))
    # → 6
"""

from __future__ import annotations

import inspect
import keyword
import logging
import os
import threading
import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from jinja2 import StrictUndefined, TemplateSyntaxError
from jinja2.sandbox import ImmutableSandboxedEnvironment

from ..exceptions import ScriptCancelledError, ScriptError, ScriptExecutionError, ScriptTimeoutError
from .proxies import SCRIPT_GLOBALS
from .rules import TransformRule, apply_rules
from .security_rules import ForbiddenNamespaceRule, SnippetShapeRule
from .syntax_rules import LogicalOperatorRule, NullLiteralRule, ReturnKeywordRule

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
RESERVED_BINDINGS = ("variables", "response", "request", "captured", "env")

# Upper bounds for a single ``**`` or ``*`` result
MAX_INT_BITS = 100_000
MAX_REPEAT_LENGTH = 1_000_000


@dataclass
class ScriptContext:
    """
    Bindings for one script evaluation.

    Attributes:
        variables: Flow variables; valid identifiers are also bound by name
        response: Last response (status, headers, body), if any
        request: Outgoing request, if any
        captured: Values captured by earlier steps
        cancel_event: Set by the owning step to abort an in-flight evaluation
    """

    variables: Mapping[str, Any] = field(default_factory=dict)
    response: Any = None
    request: Any = None
    captured: Mapping[str, Any] = field(default_factory=dict)
    cancel_event: threading.Event | None = None

    def bindings(self) -> dict[str, Any]:
        """
        Build the name → value table a snippet sees.

        A variable named like a reserved binding keeps its value when the
        matching field (response, request, captured) is unset; otherwise the
        reserved binding wins and the collision is logged.
        """
        scope = {
            name: value
            for name, value in self.variables.items()
            if name.isidentifier() and not keyword.iskeyword(name)
        }
        reserved = {
            "variables": dict(self.variables),
            "response": self.response,
            "request": self.request,
            "captured": dict(self.captured),
            "env": dict(os.environ),
        }
        unset = {name for name in ("response", "request") if getattr(self, name) is None}
        if not self.captured:
            unset.add("captured")

        for name in RESERVED_BINDINGS:
            if name in scope:
                if name in unset:
                    continue
                logger.warning(f"Variable '{name}' is shadowed by the script binding")
            scope[name] = reserved[name]
        return scope


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class _ScriptSandbox(ImmutableSandboxedEnvironment):
    """Immutable sandbox with a deadline, a cancel event and ``.length`` support."""

    # Routed through call_binop, which also keeps them out of constant folding
    intercepted_binops = frozenset({"**", "*"})

    def __init__(self, snippet: str, deadline: float, timeout: float, cancel_event: Any):
        super().__init__(undefined=StrictUndefined, autoescape=False)
        self.snippet = snippet
        self.deadline = deadline
        self.timeout = timeout
        self.cancel_event = cancel_event
        self.globals.update(SCRIPT_GLOBALS)

    def check_budget(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ScriptCancelledError(self.snippet)
        if time.monotonic() > self.deadline:
            raise ScriptTimeoutError(self.snippet, self.timeout)

    def getattr(self, obj: Any, attribute: str) -> Any:
        self.check_budget()
        if attribute == "length":
            if isinstance(obj, (str, list, tuple)):
                return len(obj)
            if isinstance(obj, Mapping) and "length" not in obj:
                return len(obj)
        return super().getattr(obj, attribute)

    def getitem(self, obj: Any, argument: Any) -> Any:
        self.check_budget()
        return super().getitem(obj, argument)

    def call(self, context: Any, obj: Any, /, *args: Any, **kwargs: Any) -> Any:
        self.check_budget()
        return super().call(context, obj, *args, **kwargs)

    def call_binop(self, context: Any, operator: str, left: Any, right: Any) -> Any:
        self.check_budget()
        if operator == "**":
            self._check_power(left, right)
        elif operator == "*":
            self._check_product(left, right)
        return super().call_binop(context, operator, left, right)

    def _check_power(self, base: Any, exponent: Any) -> None:
        if not (_is_int(base) and _is_int(exponent)) or exponent <= 0 or abs(base) <= 1:
            return
        if base.bit_length() * exponent > MAX_INT_BITS:
            raise ScriptExecutionError(self.snippet, "Result of '**' is too large")

    def _check_product(self, left: Any, right: Any) -> None:
        if _is_int(left) and _is_int(right):
            if left.bit_length() + right.bit_length() > MAX_INT_BITS:
                raise ScriptExecutionError(self.snippet, "Result of '*' is too large")
            return
        for sequence, count in ((left, right), (right, left)):
            if isinstance(sequence, (str, list, tuple)) and _is_int(count):
                if len(sequence) * count > MAX_REPEAT_LENGTH:
                    raise ScriptExecutionError(
                        self.snippet, f"Repeated sequence exceeds {MAX_REPEAT_LENGTH} items"
                    )


class ScriptEvaluator:
    """
    Evaluate script snippets in an isolated, time-bounded sandbox.

    The worker pool is the only state shared between calls; every call gets
    its own sandbox environment and binding table.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        rules: list[TransformRule] | None = None,
        max_workers: int = 4,
    ):
        """
        Initialize script evaluator.

        Args:
            timeout: Default per-call time budget in seconds
            rules: Optional extra transformation rules
            max_workers: Size of the worker pool
        """
        self.timeout = timeout
        self.rules = self._initialize_rules(rules)
        self._max_workers = max_workers
        self._pool: ThreadPoolExecutor | None = None
        self._pool_lock = threading.Lock()

    def _initialize_rules(self, custom_rules: list[TransformRule] | None) -> list[TransformRule]:
        default_rules: list[TransformRule] = [
            ForbiddenNamespaceRule(),  # Security first
            SnippetShapeRule(),
            ReturnKeywordRule(),
            LogicalOperatorRule(),
            NullLiteralRule(),
        ]
        return sorted(default_rules + (custom_rules or []), key=lambda r: r.priority)

    def _executor(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="flowtest-script"
                )
            return self._pool

    def prepare(self, snippet: str) -> str:
        """
        Run the transform pipeline and return the expression to evaluate.

        Raises:
            ForbiddenScriptError: If the snippet uses a forbidden construct
            ScriptExecutionError: If the snippet is empty or malformed
        """
        if not snippet or not snippet.strip():
            raise ScriptExecutionError(snippet, "Snippet is empty")
        transformed = apply_rules(self.rules, snippet)
        if not transformed.expression:
            raise ScriptExecutionError(snippet, "Nothing to evaluate after 'return'")
        return transformed.expression

    def run(
        self,
        snippet: str,
        context: ScriptContext | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Evaluate ``snippet`` and return its value.

        Args:
            snippet: Snippet text, with or without a leading ``return``
            context: Bindings (defaults to an empty context)
            timeout: Per-call override of the time budget

        Returns:
            The value of the expression

        Raises:
            ScriptExecutionError: Runtime or syntax error inside the snippet
            ScriptTimeoutError: Snippet exceeded its time budget
            ScriptCancelledError: ``context.cancel_event`` was set
            ForbiddenScriptError: Snippet references a forbidden construct
        """
        context = context or ScriptContext()
        budget = timeout if timeout is not None else self.timeout
        expression = self.prepare(snippet)

        if context.cancel_event is not None and context.cancel_event.is_set():
            raise ScriptCancelledError(snippet)

        deadline = time.monotonic() + budget
        future = self._executor().submit(
            self._evaluate, snippet, expression, context, deadline, budget
        )
        try:
            return future.result(timeout=budget)
        except TimeoutError as e:
            future.cancel()
            logger.warning(f"Abandoning script `{snippet}` after {budget:g}s")
            raise ScriptTimeoutError(snippet, budget) from e

    def _evaluate(
        self,
        snippet: str,
        expression: str,
        context: ScriptContext,
        deadline: float,
        budget: float,
    ) -> Any:
        sandbox = _ScriptSandbox(snippet, deadline, budget, context.cancel_event)
        try:
            compiled = sandbox.compile_expression(expression)
            result = compiled(**context.bindings())
        except ScriptError:
            raise
        except TemplateSyntaxError as e:
            raise ScriptExecutionError(snippet, f"Syntax error: {e.message}") from e
        except Exception as e:
            raise ScriptExecutionError(snippet, str(e) or type(e).__name__) from e

        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise ScriptExecutionError(snippet, "Asynchronous results are not supported")

        logger.debug(f"Script `{snippet}` evaluated as `{expression}` → {result!r}")
        return result

    def shutdown(self, wait: bool = False) -> None:
        """Release the worker pool; a later call creates a new one."""
        with self._pool_lock:
            if self._pool is not None:
                self._pool.shutdown(wait=wait, cancel_futures=True)
                self._pool = None
