"""
Rule to enforce one variable per declaration.
"""

from ..engine.types import RuleMeta
from .common import node_report


class OneVarPerLineRule:

    id = "one-var-per-line"
    meta = RuleMeta(
        description="Enforce one variable declaration per line",
        category="style",
        fixable=False,
        docs="Each variable should be declared on its own line for better readability and diff tracking.",
    )
    default_severity = "info"

    def create(self, context):
        def check_declaration(node):
            text = node.text
            colon = text.find(":")
            if colon == -1:
                return
            commas = text[:colon].count(",")
            if commas == 0:
                return
            context.report(node_report(
                node,
                f"Multiple variables ({commas + 1}) declared on one line. Consider one variable per line.",
            ))

        return {"declVar": check_declaration}


RULES = [OneVarPerLineRule()]
