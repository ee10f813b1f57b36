"""
Rule to disallow calling a constructor on an instance.

``Obj.Create`` on an existing instance re-runs the constructor on that
object instead of allocating a new one; ``TObj.Create`` was meant.
"""

import re

from ..engine.types import RuleMeta
from .common import node_report

CREATE_CALL = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_]*)\.Create\b", re.IGNORECASE)
INSTANCE_NAME = re.compile(r"^(?:[a-z]|(?:F|Self|my|the|a)[A-Z])")
CLASS_NAME = re.compile(r"^T[A-Z]")


def class_name_for(identifier: str) -> str:
    """Guess the class name from an instance name (``FList`` -> ``TList``)."""
    name = identifier
    if len(name) > 1 and name[0] == "F" and name[1].isupper():
        name = name[1:]
    return "T" + name[:1].upper() + name[1:]


class ConstructorCallOnInstanceRule:

    id = "constructor-call-on-instance"
    meta = RuleMeta(
        description="Disallow calling constructor on instance variables",
        category="error",
        fixable=False,
        docs=(
            "Constructors should be called on class types, not on existing instances. "
            "Calling constructor on instance can cause memory leaks."
        ),
    )
    default_severity = "error"

    def create(self, context):
        def check_call(node):
            match = CREATE_CALL.match(node.text)
            if not match:
                return
            identifier = match.group(1)
            if CLASS_NAME.match(identifier) or not INSTANCE_NAME.match(identifier):
                return
            context.report(node_report(
                node,
                f"Calling Create on instance '{identifier}'. "
                f"Use '{class_name_for(identifier)}.Create' instead to create a new object.",
            ))

        def check_bare_call(node):
            # ``x.Create;`` without parentheses is a statement holding an exprDot
            parent = node.parent
            if parent is not None and parent.type == "statement":
                check_call(node)

        return {"exprCall": check_call, "exprDot": check_bare_call}


RULES = [ConstructorCallOnInstanceRule()]
