# server/pascallint/rules/unreachable_code.py
"""
Rule to detect code after statements that never fall through.

Within one begin...end block, a statement following ``Exit``, ``raise`` or
``Halt`` can never execute. Only the first unreachable statement of a block
is reported.
"""

import re

from ..engine.types import RuleMeta
from .common import node_report

TERMINATOR = re.compile(r"(exit|raise|halt)\b", re.IGNORECASE)

SKIPPED = {"kBegin", "kEnd", "comment"}


def is_terminating_statement(node) -> bool:
    if node.type == "raise":
        return True
    return bool(TERMINATOR.match(node.text.lstrip()))


class UnreachableCodeRule:

    id = "unreachable-code"
    meta = RuleMeta(
        description="Detect unreachable code after return, raise, or exit",
        category="error",
        fixable=False,
        docs="Code after return, raise, or exit statements will never execute.",
    )
    default_severity = "error"

    def create(self, context):
        def check_block(node):
            found_terminator = False
            for child in node.named_children:
                if child.type in SKIPPED:
                    continue
                if found_terminator:
                    context.report(node_report(child, "Unreachable code detected."))
                    return
                if is_terminating_statement(child):
                    found_terminator = True

        return {"block": check_block}


RULES = [UnreachableCodeRule()]
