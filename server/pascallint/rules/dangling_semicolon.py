"""
Rule to detect unintended empty statements.

``if Ready then;`` and ``while Busy do;`` parse as a control statement with
an empty body, and the next statement runs unconditionally (or never, for a
loop that never ends). The semicolon is almost always a typo.

The grammar often cannot build the statement at all and recovers into an
ERROR node holding the bare ``then`` / ``do`` tokens, so the check runs on
those keyword tokens wherever they appear.
"""

import re
from typing import Optional

from ..engine.edits import char_to_byte
from ..engine.types import RuleMeta
from .common import child_of_type, next_semicolon, span_report

# Statement node type -> (keyword node types, name used in the message)
CONTROL_STATEMENTS = {
    "if": (("kThen",), "if"),
    "ifElse": (("kThen",), "if"),
    "while": (("kDo",), "while"),
    "for": (("kDo",), "for"),
}

# Keyword tokens that open a ``do`` body we report on
LOOP_KEYWORDS = {"kWhile": "while", "kFor": "for"}

TEXT_PATTERNS = (
    re.compile(r"\bthen\s*;", re.IGNORECASE),
    re.compile(r"\bdo\s*;", re.IGNORECASE),
)


def loop_name(keyword) -> Optional[str]:
    """Statement name for a ``do`` token: nearest preceding while/for sibling, if any."""
    parent = keyword.parent
    if parent is None:
        return None
    if parent.type in ("while", "for"):
        return parent.type
    name = None
    for sibling in parent.children:
        if sibling.start_byte >= keyword.start_byte:
            break
        if sibling.type in LOOP_KEYWORDS:
            name = LOOP_KEYWORDS[sibling.type]
        elif sibling.type in ("kWith", "kOn", "kDo"):
            name = None
    return name


class DanglingSemicolonRule:
    """Reports ``then;`` / ``do;`` and removes the semicolon."""

    id = "dangling-semicolon"
    meta = RuleMeta(
        description="Detect unintended empty statement (dangling semicolon)",
        category="error",
        fixable=True,
        docs="A semicolon immediately after if/while/for creates an empty statement, which is usually a bug.",
    )
    default_severity = "error"

    def create(self, context):
        reported = set()

        def report(offset, statement_name):
            if offset is None or offset in reported:
                return
            reported.add(offset)
            span = context.range_at(offset, offset + 1)
            context.report(span_report(
                span,
                f"Unexpected semicolon after '{statement_name}' creates an empty statement.",
                "",
            ))

        def check_then(node):
            report(next_semicolon(context.get_source_bytes(), node.end_byte), "if")

        def check_do(node):
            name = loop_name(node)
            if name is not None:
                report(next_semicolon(context.get_source_bytes(), node.end_byte), name)

        def make_statement_handler(keyword_types, statement_name):
            def check(node):
                if child_of_type(node, keyword_types) is not None:
                    # Handled on the keyword token
                    return
                # No keyword child (error recovery): fall back to the node text
                text = node.text
                for pattern in TEXT_PATTERNS:
                    match = pattern.search(text)
                    if match:
                        report(node.start_byte + char_to_byte(text, match.end()) - 1, statement_name)
                        return
            return check

        listeners = {
            node_type: make_statement_handler(keywords, name)
            for node_type, (keywords, name) in CONTROL_STATEMENTS.items()
        }
        listeners["kThen"] = check_then
        listeners["kDo"] = check_do
        return listeners


RULES = [DanglingSemicolonRule()]
