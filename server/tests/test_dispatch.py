"""
Tests for single-pass rule dispatch.
"""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from fakes import N, build_tree
from pascallint.engine.config import build_workspace_config, PascalLintConfig
from pascallint.engine.dispatch import (
    ActiveRule, DispatchEngine, active_rules, enable_rule_timing, get_rule_timing,
)
from pascallint.engine.errors import RuleError
from pascallint.engine.nodes import SyntaxTree
from pascallint.engine.types import EnterLeave, LintRule, Report, RuleMeta

SOURCE = "begin with A do B; x := 1; end"
SPEC = N("root",
         N("block", SOURCE,
           N("kBegin", "begin"),
           N("with", "with A do B;",
             N("kWith", "with"),
             N("statement", "B;")),
           N("statement", "x := 1;"),
           N("kEnd", "end")))


def make_rule(rule_id, factory, severity="warn"):
    return LintRule(
        id=rule_id,
        meta=RuleMeta(description=rule_id, category="style"),
        default_severity=severity,
        factory=factory,
    )


def run(*rules, source=SOURCE, spec=SPEC, severity="warn", options=None):
    tree = SyntaxTree(build_tree(source, spec), source.encode("utf-8"))
    active = [ActiveRule(rule=r, severity=severity, options=options or {}) for r in rules]
    try:
        return DispatchEngine().run(tree, active, source, "/ws/Unit1.pas")
    finally:
        tree.release()


class TestDispatchOrder:

    def test_preorder_traversal_with_enter_and_leave(self):
        events = []
        rule = make_rule("trace", lambda ctx: {
            "*": EnterLeave(
                enter=lambda node: events.append(("enter", node.type)),
                leave=lambda node: events.append(("leave", node.type)),
            ),
        })

        run(rule)

        assert events[:4] == [("enter", "root"), ("enter", "block"), ("enter", "kBegin"), ("leave", "kBegin")]
        assert events[-2:] == [("leave", "block"), ("leave", "root")]
        entered = [t for phase, t in events if phase == "enter"]
        assert entered == ["root", "block", "kBegin", "with", "kWith", "statement", "statement", "kEnd"]

    def test_rules_sharing_a_type_run_in_catalogue_order(self):
        calls = []
        first = make_rule("first", lambda ctx: {"statement": lambda n: calls.append("first")})
        second = make_rule("second", lambda ctx: {"statement": lambda n: calls.append("second")})

        run(second, first)

        assert calls == ["second", "first", "second", "first"]

    def test_exact_handlers_fire_before_wildcard(self):
        calls = []
        wildcard = make_rule("wild", lambda ctx: {"*": lambda n: calls.append(("wild", n.type))})
        exact = make_rule("exact", lambda ctx: {"with": lambda n: calls.append(("exact", n.type))})

        run(wildcard, exact)

        index = calls.index(("exact", "with"))
        assert calls[index + 1] == ("wild", "with")

    def test_listener_entry_forms(self):
        calls = []
        rule = make_rule("forms", lambda ctx: {
            "with": {"leave": lambda n: calls.append("mapping-leave")},
            "kEnd": SimpleNamespace(enter=lambda n: calls.append("object-enter"), leave=None),
            "kBegin": lambda n: calls.append("plain"),
        })

        run(rule)

        assert calls == ["plain", "mapping-leave", "object-enter"]

    def test_invalid_listener_entry_raises(self):
        rule = make_rule("bad", lambda ctx: {"with": 42})
        with pytest.raises(RuleError):
            run(rule)


class TestAncestors:

    def test_ancestors_exclude_current_node(self):
        seen = {}

        def factory(ctx):
            def on_statement(node):
                seen.setdefault("enter", []).append([a.type for a in ctx.ancestors])

            def on_leave(node):
                seen["leave"] = [a.type for a in ctx.ancestors]

            return {
                "statement": on_statement,
                "with": EnterLeave(leave=on_leave),
            }

        run(make_rule("anc", factory))

        assert seen["enter"] == [["root", "block", "with"], ["root", "block"]]
        assert seen["leave"] == ["root", "block"]

    def test_inside(self):
        inside = []

        def factory(ctx):
            return {"statement": lambda n: inside.append(ctx.inside("with"))}

        run(make_rule("inside", factory))

        assert inside == [True, False]


class TestReporting:

    def test_reports_are_stamped_with_rule_and_severity(self):
        rule = make_rule("no-with-like", lambda ctx: {
            "with": lambda n: ctx.report(Report(message="found with", range=n.range)),
        })

        issues = run(rule, severity="error")

        assert len(issues) == 1
        issue = issues[0]
        assert issue.rule_id == "no-with-like"
        assert issue.severity == "error"
        assert issue.range.start.offset == SOURCE.index("with")
        assert issue.range.end.offset == SOURCE.index("x :=") - 1

    def test_context_accessors(self):
        seen = {}

        def factory(ctx):
            seen["source"] = ctx.get_source_code()
            seen["file"] = ctx.get_filename()
            seen["bytes"] = ctx.get_source_bytes()
            seen["options"] = ctx.options
            seen["range"] = ctx.range_at(6, 10)
            return {}

        run(make_rule("ctx", factory), options={"style": "upper"})

        assert seen["source"] == SOURCE
        assert seen["file"] == "/ws/Unit1.pas"
        assert seen["bytes"] == SOURCE.encode("utf-8")
        assert seen["options"] == {"style": "upper"}
        assert seen["range"].start.column == 6
        assert seen["range"].end.offset == 10

    def test_off_rule_is_never_created(self):
        factory = Mock(return_value={})
        rule = make_rule("spy", factory, severity="off")
        config = build_workspace_config(None, {"spy": "off"})

        issues = DispatchEngine().run(
            SyntaxTree(build_tree(SOURCE, SPEC), SOURCE.encode("utf-8")),
            active_rules([rule], config), SOURCE, "/ws/Unit1.pas",
        )

        assert issues == []
        factory.assert_not_called()

    def test_off_active_rule_is_skipped(self):
        factory = Mock(return_value={})
        run(make_rule("spy", factory), severity="off")
        factory.assert_not_called()

    def test_active_rules_carry_config_options(self):
        rule = make_rule("upper-ish", lambda ctx: {})
        config = build_workspace_config(
            PascalLintConfig.model_validate({"rules": {"upper-ish": ["warn", {"style": "upper"}]}}),
            {"upper-ish": "off"},
        )

        (active,) = active_rules([rule], config)

        assert active.severity == "warn"
        assert active.options == {"style": "upper"}


class TestRuleErrors:

    def test_handler_error_is_wrapped(self):
        def explode(node):
            raise ValueError("bad node")

        rule = make_rule("broken", lambda ctx: {"with": explode})

        with pytest.raises(RuleError) as exc_info:
            run(rule)

        assert exc_info.value.rule_id == "broken"
        assert exc_info.value.file_id == "/ws/Unit1.pas"
        assert isinstance(exc_info.value.cause, ValueError)

    def test_create_error_is_wrapped(self):
        def factory(ctx):
            raise KeyError("missing")

        with pytest.raises(RuleError) as exc_info:
            run(make_rule("broken-create", factory))
        assert exc_info.value.rule_id == "broken-create"


class TestRuleTiming:

    def test_timing_records_calls_and_issues(self):
        enable_rule_timing()
        rule = make_rule("timed", lambda ctx: {
            "statement": lambda n: ctx.report(Report(message="s", range=n.range)),
        })

        run(rule)

        timing = get_rule_timing()["timed"]
        assert timing["call_count"] == 2
        assert timing["issues_count"] == 2
        assert timing["total_ms"] >= 0
