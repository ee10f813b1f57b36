# server/pascallint/rules/camel_case.py
"""
Rule to enforce camelCase for local variables and parameters.

Only variables declared inside a routine are checked; unit-level variables
and fields keep their own conventions. Names with a Delphi prefix
(``FValue``, ``AOwner``, ``TClass``, ``IIntf``, ``EError``) and all-caps
names are skipped.
"""

import re

from ..engine.types import RuleMeta
from .common import node_report

CAMEL_CASE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
SNAKE_CASE = re.compile(r"^[a-z][a-z0-9_]*$")
ALL_CAPS = re.compile(r"^[A-Z][A-Z0-9]*$")
DELPHI_PREFIXES = ("F", "A", "T", "I", "E")

ROUTINE_TYPES = {"declProc", "defProc"}


def follows_convention(name: str) -> bool:
    if len(name) <= 1:
        return True
    if name[0] in DELPHI_PREFIXES and name[1].isupper():
        return True
    return bool(CAMEL_CASE.match(name) or SNAKE_CASE.match(name) or ALL_CAPS.match(name))


def declared_names(node):
    """Identifier children that precede the ``:`` of a declaration."""
    names = []
    for child in node.children:
        if child.type == ":":
            break
        if child.type == "identifier":
            names.append(child)
    return names


class CamelCaseRule:

    id = "camel-case"
    meta = RuleMeta(
        description="Enforce camelCase naming for local variables and parameters",
        category="style",
        fixable=False,
        docs="Local variables and parameters should follow camelCase convention (e.g., myVariable, inputValue).",
    )
    default_severity = "off"

    def create(self, context):
        def check(node, kind):
            for name_node in declared_names(node):
                if not follows_convention(name_node.text):
                    context.report(node_report(
                        name_node, f"{kind} '{name_node.text}' should use camelCase naming convention.",
                    ))

        def check_variable(node):
            if context.inside(ROUTINE_TYPES):
                check(node, "Variable")

        def check_parameter(node):
            check(node, "Parameter")

        return {
            "declVar": check_variable,
            "declArg": check_parameter,
        }


RULES = [CamelCaseRule()]
