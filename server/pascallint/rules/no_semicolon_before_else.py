"""
Rule to disallow a semicolon directly before ``else``.

In Pascal the statement before ``else`` must not be terminated: ``;`` ends
the whole if statement, so the ``else`` either fails to compile or binds to
an enclosing if or case. Because the code does not compile, the grammar
rarely builds an ``ifElse`` node for it; the check runs on every ``else``
token, including those left inside ERROR nodes.
"""

from ..engine.types import RuleMeta
from .common import child_of_type, previous_semicolon, span_report

ELSE_TYPES = ("kElse",)

# Parents whose ``else`` branch may legally follow a semicolon
ELSE_LIST_PARENTS = {"case", "caseElse", "exceptionElse", "try"}


class NoSemicolonBeforeElseRule:
    """Reports ``; else`` and removes the semicolon."""

    id = "no-semicolon-before-else"
    meta = RuleMeta(
        description="Disallow semicolon before 'else' keyword",
        category="error",
        fixable=True,
        docs="In Pascal, a semicolon before 'else' is a syntax error or creates an empty statement.",
    )
    default_severity = "error"

    def create(self, context):
        reported = set()

        def check_else(else_node):
            offset = previous_semicolon(context.get_source_bytes(), else_node.start_byte)
            if offset is None or offset in reported:
                return
            reported.add(offset)
            span = context.range_at(offset, offset + 1)
            context.report(span_report(span, "Unexpected semicolon before 'else'.", ""))

        def check_keyword(node):
            parent = node.parent
            if parent is not None and parent.type in ELSE_LIST_PARENTS:
                return
            check_else(node)

        def check_if_else(node):
            if child_of_type(node, ELSE_TYPES) is not None:
                return
            # Plain ``else`` token without a keyword node
            else_node = next((c for c in node.children if c.text.lower() == "else"), None)
            if else_node is not None:
                check_else(else_node)

        return {"kElse": check_keyword, "ifElse": check_if_else}


RULES = [NoSemicolonBeforeElseRule()]
