"""
Rule to enforce PascalCase names for types and routines.

Delphi convention: ``TMyClass``, ``IMyInterface``, ``DoSomething``.
"""

import re

from ..engine.types import RuleMeta
from .common import child_of_type, node_report, simple_name

PASCAL_CASE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")

ROUTINE_KINDS = {
    "kProcedure": "Procedure",
    "kFunction": "Function",
    "kConstructor": "Method",
    "kDestructor": "Method",
    "kOperator": "Method",
}

CLASS_TYPES = {"declClass", "declIntf", "declHelper"}


class PascalCaseRule:

    id = "pascal-case"
    meta = RuleMeta(
        description="Enforce PascalCase naming for classes and methods",
        category="style",
        fixable=False,
        docs="Class names and method names should follow PascalCase convention (e.g., TMyClass, DoSomething).",
    )
    default_severity = "warn"

    def create(self, context):
        def check_name(name_node, kind):
            name = simple_name(name_node.text)
            if len(name) <= 1 or PASCAL_CASE.match(name):
                return
            context.report(node_report(name_node, f"{kind} name '{name}' should follow PascalCase naming convention."))

        def check_type(node):
            name_node = node.child_by_field_name("name")
            if name_node is None:
                return
            kind = "Class" if child_of_type(node, CLASS_TYPES) is not None else "Type"
            check_name(name_node, kind)

        def check_routine(node):
            name_node = node.child_by_field_name("name")
            if name_node is None:
                return
            keyword = child_of_type(node, ROUTINE_KINDS)
            kind = ROUTINE_KINDS[keyword.type] if keyword is not None else "Method"
            check_name(name_node, kind)

        return {
            "declType": check_type,
            "declProc": check_routine,
        }


RULES = [PascalCaseRule()]
