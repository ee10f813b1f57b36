"""
Rule to disallow empty finally blocks.

An empty ``finally`` section protects nothing and usually marks cleanup code
that was never written.
"""

from ..engine.types import RuleMeta
from .common import span_report

NON_STATEMENTS = {"kFinally", "kEnd", "comment"}


class NoEmptyFinallyRule:

    id = "no-empty-finally"
    meta = RuleMeta(
        description="Disallow empty finally blocks",
        category="error",
        fixable=False,
        docs="An empty finally block serves no purpose and may indicate incomplete code.",
    )
    default_severity = "warn"

    def create(self, context):
        def check_try(node):
            children = node.children
            finally_index = next((i for i, c in enumerate(children) if c.type == "kFinally"), None)
            if finally_index is None:
                return

            body = [
                child for child in children[finally_index + 1:]
                if child.is_named and child.type not in NON_STATEMENTS and child.text.strip()
            ]
            if body:
                return

            keyword = children[finally_index]
            span = context.range_at(keyword.start_byte, node.end_byte)
            context.report(span_report(span, "Empty finally block detected."))

        return {"try": check_try}


RULES = [NoEmptyFinallyRule()]
