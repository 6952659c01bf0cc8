"""Tests for the sandboxed script evaluator and its transform rules."""

import logging
import threading
import time

import pytest

from flowtest_engine.engine.exceptions import (
    ForbiddenScriptError,
    ScriptCancelledError,
    ScriptExecutionError,
    ScriptTimeoutError,
)
from flowtest_engine.engine.resolver import (
    RuleContext,
    RuleType,
    ScriptContext,
    ScriptEvaluator,
    TransformRule,
)
from flowtest_engine.engine.resolver.rules import apply_rules
from flowtest_engine.engine.resolver.security_rules import (
    MAX_SNIPPET_LENGTH,
    ForbiddenNamespaceRule,
    SnippetShapeRule,
)
from flowtest_engine.engine.resolver.syntax_rules import (
    LogicalOperatorRule,
    NullLiteralRule,
    ReturnKeywordRule,
)


def run(scripts: ScriptEvaluator, snippet: str, **variables):
    return scripts.run(snippet, ScriptContext(variables=variables))


class TestEvaluation:
    """Expression evaluation with bindings."""

    def test_return_expression(self, scripts) -> None:
        """return and a trailing semicolon are accepted."""
        assert run(scripts, "return items.length * 2;", items=[1, 2, 3]) == 6

    def test_length_of_string_and_mapping(self, scripts) -> None:
        """.length works on strings and mappings."""
        assert run(scripts, "name.length", name="alice") == 5
        assert run(scripts, "data.length", data={"a": 1, "b": 2}) == 2

    def test_logical_operators(self, scripts) -> None:
        """&&, || and ! are rewritten."""
        assert run(scripts, "a === 1 && !b", a=1, b=False) is True
        assert run(scripts, "a !== 1 || b", a=1, b=False) is False

    def test_null_literals(self, scripts) -> None:
        """null and undefined mean None."""
        assert run(scripts, "value === null", value=None) is True
        assert run(scripts, "value !== undefined", value=3) is True

    def test_string_literals_untouched(self, scripts) -> None:
        """Operators inside strings are not rewritten."""
        assert run(scripts, "'a && !b || null'") == "a && !b || null"

    def test_nested_access(self, scripts) -> None:
        """Bracket and dot access on response data."""
        context = ScriptContext(response={"body": {"results": [{"id": 9}]}})
        assert scripts.run("response.body.results[0].id", context) == 9

    def test_variables_mapping(self, scripts) -> None:
        """Names that are not identifiers are reachable through variables."""
        assert run(scripts, "variables['user-id']", **{"user-id": 5}) == 5

    def test_env_binding(self, scripts, monkeypatch) -> None:
        """env exposes the process environment."""
        monkeypatch.setenv("FLOWTEST_SCRIPT_VAR", "on")
        assert scripts.run("env.FLOWTEST_SCRIPT_VAR") == "on"

    def test_conditional(self, scripts) -> None:
        """Inline if/else works as a ternary."""
        assert run(scripts, "'adult' if age >= 18 else 'minor'", age=20) == "adult"

    def test_variable_named_like_binding(self, scripts) -> None:
        """A variable called response is visible when no response is set."""
        assert run(scripts, "return response", response=5) == 5
        assert run(scripts, "captured + 1", captured=1) == 2

    def test_binding_wins_on_collision(self, scripts, caplog) -> None:
        """A set response shadows the variable and the collision is logged."""
        context = ScriptContext(variables={"response": 5}, response={"status": 200})
        with caplog.at_level(logging.WARNING, logger="flowtest_engine.engine.resolver.script"):
            assert scripts.run("response.status", context) == 200
        assert "Variable 'response' is shadowed" in caplog.text


class TestHelpers:
    """Helper namespaces and globals."""

    def test_math(self, scripts) -> None:
        """Math helpers."""
        assert scripts.run("Math.max(10, 20, 5)") == 20
        assert scripts.run("Math.floor(2.7)") == 2
        assert scripts.run("Math.round(2.5)") == 3
        assert scripts.run("Math.abs(-4)") == 4

    def test_json(self, scripts) -> None:
        """JSON helpers."""
        assert run(scripts, "JSON.stringify(obj)", obj={"a": 1}) == '{"a":1}'
        assert scripts.run("JSON.parse('[1, 2]')") == [1, 2]

    def test_object(self, scripts) -> None:
        """Object helpers."""
        assert run(scripts, "Object.keys(obj)", obj={"a": 1, "b": 2}) == ["a", "b"]
        assert run(scripts, "Object.entries(obj)", obj={"a": 1}) == [["a", 1]]

    def test_parse_int(self, scripts) -> None:
        """parseInt stops at the first non-digit."""
        assert scripts.run("parseInt('42px')") == 42
        assert scripts.run("isNaN(parseInt('px'))") is True

    def test_date_now(self, scripts) -> None:
        """Date.now is epoch milliseconds."""
        assert scripts.run("Date.now()") > 1_600_000_000_000

    def test_unknown_helper(self, scripts) -> None:
        """Helpers outside the table are unavailable."""
        with pytest.raises(ScriptExecutionError):
            scripts.run("Math.hypot(3, 4)")


class TestErrors:
    """Errors carry the snippet text."""

    def test_runtime_error(self, scripts) -> None:
        """Division by zero is a ScriptExecutionError."""
        with pytest.raises(ScriptExecutionError) as exc_info:
            scripts.run("1 / 0")
        assert exc_info.value.snippet == "1 / 0"

    def test_syntax_error(self, scripts) -> None:
        """Malformed expressions report a syntax error."""
        with pytest.raises(ScriptExecutionError, match="Syntax error"):
            scripts.run("1 +")

    def test_undefined_name(self, scripts) -> None:
        """Unknown names fail instead of evaluating to nothing."""
        with pytest.raises(ScriptExecutionError):
            scripts.run("missing + 1")

    def test_empty(self, scripts) -> None:
        """Empty snippets are rejected."""
        with pytest.raises(ScriptExecutionError, match="Snippet is empty"):
            scripts.run("   ")
        with pytest.raises(ScriptExecutionError, match="Nothing to evaluate"):
            scripts.run("return ;")

    @pytest.mark.parametrize(
        "snippet",
        ["().__class__", "eval('1')", "open('/etc/passwd')", "x.__globals__", "import os"],
    )
    def test_forbidden(self, scripts, snippet) -> None:
        """Dunder access and dangerous builtins are blocked before evaluation."""
        with pytest.raises(ForbiddenScriptError) as exc_info:
            scripts.run(snippet)
        assert exc_info.value.snippet == snippet

    def test_method_named_like_builtin(self, scripts) -> None:
        """A method call ending in a forbidden name is not the builtin."""
        assert run(scripts, "reopen()", reopen=lambda: "ok") == "ok"

    def test_unbalanced(self, scripts) -> None:
        """Unbalanced brackets are rejected."""
        with pytest.raises(ScriptExecutionError, match="Unclosed '\\('"):
            scripts.run("(1 + 2")
        with pytest.raises(ScriptExecutionError, match="Unbalanced '\\]'"):
            scripts.run("1 + 2]")

    def test_too_long(self, scripts) -> None:
        """Oversized snippets are rejected."""
        with pytest.raises(ScriptExecutionError, match="exceeds"):
            scripts.run("1" * (MAX_SNIPPET_LENGTH + 1))

    def test_async_result_rejected(self, scripts) -> None:
        """Awaitables are not resolved."""

        async def fetch():
            return 1

        with pytest.raises(ScriptExecutionError, match="Asynchronous"):
            run(scripts, "fetch()", fetch=fetch)


class TestIsolationAndLimits:
    """Per-call isolation, timeouts and cancellation."""

    def test_bindings_do_not_leak(self, scripts) -> None:
        """Variables from one call are invisible to the next."""
        assert run(scripts, "x + 1", x=1) == 2
        with pytest.raises(ScriptExecutionError):
            scripts.run("x + 1")

    def test_cannot_mutate_bindings(self, scripts) -> None:
        """Sandboxed calls cannot modify caller data."""
        data = {"items": [1]}
        with pytest.raises(ScriptExecutionError):
            run(scripts, "data['items'].append(2)", data=data)
        assert data == {"items": [1]}

    def test_timeout(self, scripts) -> None:
        """A slow snippet fails with ScriptTimeoutError instead of blocking."""
        started = time.monotonic()
        with pytest.raises(ScriptTimeoutError) as exc_info:
            scripts.run("slow()", ScriptContext(variables={"slow": lambda: time.sleep(1)}), 0.1)
        assert exc_info.value.timeout == 0.1
        assert time.monotonic() - started < 1

    def test_cancelled(self, scripts) -> None:
        """A set cancel event aborts evaluation."""
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ScriptCancelledError):
            scripts.run("1 + 1", ScriptContext(cancel_event=cancel))

    @pytest.mark.parametrize(
        "snippet",
        [
            "return 7 ** 99999999",
            "7 ** 999999999",
            "(2 ** 49000) * (2 ** 49000) * (2 ** 49000)",
            "'x' * 10000000",
            "[0] * 10000000",
        ],
    )
    def test_oversized_arithmetic_rejected(self, snippet: str) -> None:
        """Huge powers and repetitions fail fast instead of starving the watchdog."""
        evaluator = ScriptEvaluator(timeout=0.5)
        started = time.monotonic()
        try:
            with pytest.raises(ScriptExecutionError, match="too large|exceeds"):
                evaluator.run(snippet)
        finally:
            evaluator.shutdown()
        assert time.monotonic() - started < 0.5

    def test_ordinary_arithmetic(self, scripts) -> None:
        """Small powers and products still evaluate."""
        assert scripts.run("2 ** 10") == 1024
        assert scripts.run("'ab' * 3") == "ababab"
        assert run(scripts, "items * 2", items=[1]) == [1, 1]
        assert scripts.run("1.5 * 2") == 3.0

    def test_shutdown_and_reuse(self) -> None:
        """The worker pool is recreated after shutdown."""
        evaluator = ScriptEvaluator()
        assert evaluator.run("1 + 1") == 2
        evaluator.shutdown(wait=True)
        assert evaluator.run("2 + 2") == 4
        evaluator.shutdown(wait=True)


class TestRules:
    """Transform pipeline."""

    def test_return_keyword(self) -> None:
        """return is stripped and recorded."""
        context = ReturnKeywordRule().transform(RuleContext(expression="  return x;  "))
        assert context.expression == "x"
        assert context.metadata["explicit_return"] is True

    def test_logical_operators(self) -> None:
        """Operators are rewritten outside strings only."""
        context = RuleContext(expression="a && '&&' || !b")
        assert LogicalOperatorRule().applies_to(context)
        result = LogicalOperatorRule().transform(context)
        assert result.expression == "a and '&&' or  not b"

    def test_null_literal(self) -> None:
        """null becomes none but not inside identifiers or attributes."""
        context = RuleContext(expression="x == null and y.null and nullable")
        result = NullLiteralRule().transform(context)
        assert result.expression == "x == none and y.null and nullable"

    def test_security_first(self) -> None:
        """Security rules sort ahead of syntax rules."""
        evaluator = ScriptEvaluator()
        assert isinstance(evaluator.rules[0], ForbiddenNamespaceRule)
        assert isinstance(evaluator.rules[1], SnippetShapeRule)
        assert [r.rule_type for r in evaluator.rules[:2]] == [RuleType.SECURITY] * 2

    def test_custom_rule(self) -> None:
        """Extra rules join the pipeline in priority order."""

        class UpperAliasRule(TransformRule):
            rule_type = RuleType.SYNTAX
            priority = 40

            def applies_to(self, context: RuleContext) -> bool:
                return "UPPER(" in context.expression

            def transform(self, context: RuleContext) -> RuleContext:
                context.expression = context.expression.replace("UPPER(", "str(")
                context.expression += ".upper()"
                return context

            @property
            def description(self) -> str:
                return "UPPER(x) alias"

        evaluator = ScriptEvaluator(rules=[UpperAliasRule()])
        try:
            assert evaluator.run("UPPER(name)", ScriptContext(variables={"name": "ana"})) == "ANA"
        finally:
            evaluator.shutdown()

    def test_apply_rules_keeps_original(self) -> None:
        """The original snippet is kept for error messages."""
        context = apply_rules([ReturnKeywordRule()], "return 1;")
        assert context.original == "return 1;"
        assert context.expression == "1"
