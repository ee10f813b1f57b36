# server/pascallint/rules/no_exit_in_finally.py
"""
Rule to disallow leaving a finally block early.

``Exit``, ``raise`` or ``Break`` inside ``finally`` discards the exception
being propagated (if any) and skips the rest of the cleanup. Whether a node
sits inside a finally section is read from the traversal's ancestor stack:
the nearest enclosing ``try`` whose ``finally`` keyword precedes the node.
"""

from ..engine.types import RuleMeta
from .common import child_of_type, node_report

LOOP_TYPES = {"for", "foreach", "while", "repeat"}
CALL_PARENTS = {"exprCall", "exprDot"}


def finally_owner(node, ancestors):
    """Index of the innermost ancestor ``try`` whose finally section holds ``node``."""
    for index in range(len(ancestors) - 1, -1, -1):
        ancestor = ancestors[index]
        if ancestor.type != "try":
            continue
        keyword = child_of_type(ancestor, ("kFinally",))
        if keyword is not None and node.start_byte >= keyword.end_byte:
            return index
    return None


class NoExitInFinallyRule:
    """Reports Exit, raise and Break inside finally sections."""

    id = "no-exit-in-finally"
    meta = RuleMeta(
        description="Disallow exit, raise, or break in finally blocks",
        category="error",
        fixable=True,
        docs="Using exit, raise, or break in finally blocks can cause unexpected behavior and hide exceptions.",
    )
    default_severity = "error"

    def create(self, context):
        def check_exit(node):
            context.report(node_report(node, "Do not use Exit in finally block.", "{ Error: Exit in finally }"))

        def check_break(node, ancestors, owner):
            # Break inside a loop nested in the finally section only ends that loop
            if any(a.type in LOOP_TYPES for a in ancestors[owner + 1:]):
                return
            context.report(node_report(node, "Do not use Break in finally block."))

        def check_flow(node, name):
            ancestors = context.ancestors
            owner = finally_owner(node, ancestors)
            if owner is None:
                return
            if name == "exit":
                check_exit(node)
            elif name == "break":
                check_break(node, ancestors, owner)

        def check_call(node):
            entity = node.child_by_field_name("entity")
            name = (entity.text if entity is not None else node.text.split("(", 1)[0]).strip().lower()
            check_flow(node, name)

        def check_identifier(node):
            parent = node.parent
            if parent is not None and parent.type in CALL_PARENTS:
                return
            check_flow(node, node.text.lower())

        def check_raise(node):
            if finally_owner(node, context.ancestors) is not None:
                context.report(node_report(node, "Do not use Raise in finally block."))

        return {
            "exprCall": check_call,
            "identifier": check_identifier,
            "raise": check_raise,
        }


RULES = [NoExitInFinallyRule()]
