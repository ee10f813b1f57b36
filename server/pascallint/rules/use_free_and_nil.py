"""
Rule to suggest ``FreeAndNil(Obj)`` over ``Obj.Free``.

``Obj.Free`` leaves a dangling reference in ``Obj``; ``FreeAndNil`` frees
the object and clears the variable.
"""

import re

from ..engine.types import RuleMeta
from .common import node_report

FREE_STATEMENT = re.compile(r"^(\w+)\.Free\s*;?$", re.IGNORECASE)


class UseFreeAndNilRule:

    id = "use-free-and-nil"
    meta = RuleMeta(
        description="Suggest using FreeAndNil instead of Obj.Free",
        category="best-practice",
        fixable=True,
        docs="FreeAndNil is safer because it sets the variable to nil after freeing, preventing dangling references.",
    )
    default_severity = "warn"

    def create(self, context):
        def check_statement(node):
            text = node.text.strip()
            match = FREE_STATEMENT.match(text)
            if not match:
                return
            name = match.group(1)
            terminator = ";" if text.endswith(";") else ""
            context.report(node_report(
                node,
                f"Consider using 'FreeAndNil({name})' instead of '{name}.Free'.",
                f"FreeAndNil({name}){terminator}",
            ))

        return {"statement": check_statement}


RULES = [UseFreeAndNilRule()]
