# server/pascallint/rules/check_assigned.py
"""
Rule to suggest checking ``Assigned`` before freeing an object.

A free is considered guarded when it sits inside an if statement whose
condition tests the same variable with ``Assigned(X)`` or ``X <> nil``, or
when such a test appears in the five lines above it. The enclosing guards
are tracked with enter/leave handlers on if statements.
"""

import re
from typing import List, Set

from ..engine.types import EnterLeave, RuleMeta
from .common import node_report

FREE_METHOD = re.compile(r"^(\w+)\.Free\s*;?$", re.IGNORECASE)
FREE_AND_NIL = re.compile(r"^FreeAndNil\s*\(\s*(\w+)\s*\)\s*;?$", re.IGNORECASE)
ASSIGNED_TEST = re.compile(r"\bassigned\s*\(\s*(\w+)", re.IGNORECASE)
NIL_TEST = re.compile(r"\b(\w+)\s*<>\s*nil\b", re.IGNORECASE)

LOOKBACK_LINES = 5


def guarded_names(condition_text: str) -> Set[str]:
    names = {m.group(1).lower() for m in ASSIGNED_TEST.finditer(condition_text)}
    names.update(m.group(1).lower() for m in NIL_TEST.finditer(condition_text))
    return names


class CheckAssignedRule:

    id = "check-assigned"
    meta = RuleMeta(
        description="Suggest checking Assigned before Free",
        category="best-practice",
        fixable=False,
        docs="Before calling Free or FreeAndNil, check if the object is assigned to avoid access violations.",
    )
    default_severity = "info"

    def create(self, context):
        guards: List[Set[str]] = []
        lines = None

        def enter_if(node):
            condition = node.child_by_field_name("condition")
            guards.append(guarded_names(condition.text) if condition is not None else set())

        def leave_if(node):
            guards.pop()

        def checked_above(name: str, row: int) -> bool:
            nonlocal lines
            if lines is None:
                lines = context.get_source_code().split("\n")
            needle_assigned = f"assigned({name}"
            needle_nil = f"{name} <> nil"
            for line in lines[max(0, row - LOOKBACK_LINES):row]:
                lowered = line.lower()
                if needle_assigned in lowered or needle_nil in lowered:
                    return True
            return False

        def check_free(node, name):
            lowered = name.lower()
            if any(lowered in names for names in guards):
                return
            if checked_above(lowered, node.start_point[0]):
                return
            context.report(node_report(node, f"Consider checking 'Assigned({name})' before freeing."))

        def check_statement(node):
            match = FREE_METHOD.match(node.text.strip())
            if match:
                check_free(node, match.group(1))

        def check_call(node):
            match = FREE_AND_NIL.match(node.text.strip())
            if match:
                check_free(node, match.group(1))

        guard = EnterLeave(enter=enter_if, leave=leave_if)
        return {
            "if": guard,
            "ifElse": guard,
            "statement": check_statement,
            "exprCall": check_call,
        }


RULES = [CheckAssignedRule()]
