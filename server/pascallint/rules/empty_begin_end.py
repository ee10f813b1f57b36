"""
Rule to detect empty begin...end blocks.
"""

from ..engine.types import RuleMeta
from .common import node_report

IGNORED = {"kBegin", "kEnd", "comment"}


class EmptyBeginEndRule:

    id = "empty-begin-end"
    meta = RuleMeta(
        description="Detect empty begin...end blocks",
        category="best-practice",
        fixable=True,
        docs="Empty begin...end blocks serve no purpose and may indicate incomplete code.",
    )
    default_severity = "warn"

    def create(self, context):
        def check_block(node):
            if any(child.type not in IGNORED for child in node.named_children):
                return
            context.report(node_report(node, "Empty begin...end block detected.", "{ empty block removed }"))

        return {"block": check_block}


RULES = [EmptyBeginEndRule()]
