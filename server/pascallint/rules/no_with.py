# server/pascallint/rules/no_with.py
"""
Rule to disallow ``with`` statements.

``with`` brings every member of the record or object into scope, which hides
where an identifier comes from and silently changes meaning when a member is
added later.
"""

from ..engine.types import RuleMeta
from .common import node_report


class NoWithRule:
    """Reports every with statement."""

    id = "no-with"
    meta = RuleMeta(
        description="Disallow with statement",
        category="error",
        fixable=False,
        docs="The `with` statement makes code harder to read and maintain. It can hide variable scope issues.",
    )
    default_severity = "error"

    def create(self, context):
        def check_with(node):
            context.report(node_report(node, "Avoid using `with` statement."))

        return {"with": check_with}


RULES = [NoWithRule()]
