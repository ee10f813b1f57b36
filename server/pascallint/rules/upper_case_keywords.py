"""
Rule to enforce consistent keyword casing.

Options::

    "upper-case-keywords": ["warn", {"style": "upper"}]

``style`` is ``"lower"`` (default) or ``"upper"``.
"""

from ..engine.types import WILDCARD, RuleMeta
from .common import node_report

KEYWORDS = frozenset([
    "begin", "end", "if", "then", "else", "case", "of",
    "for", "to", "downto", "do", "while", "repeat", "until",
    "try", "except", "finally", "raise",
    "procedure", "function", "var", "const", "type",
    "class", "interface", "implementation", "unit", "uses",
    "and", "or", "not", "xor", "div", "mod", "shl", "shr",
    "nil", "true", "false", "inherited", "self",
    "array", "record", "set", "file", "string",
    "in", "is", "as", "with", "property", "read", "write",
    "private", "protected", "public", "published", "strict",
    "virtual", "override", "reintroduce", "abstract", "dynamic",
    "overload", "inline", "forward", "external", "cdecl", "stdcall",
])


class UpperCaseKeywordsRule:

    id = "upper-case-keywords"
    meta = RuleMeta(
        description="Enforce consistent keyword casing",
        category="style",
        fixable=True,
        docs="Keywords should use consistent casing. Default is lowercase.",
    )
    default_severity = "off"

    def create(self, context):
        upper = str(context.options.get("style", "lower")).lower() == "upper"
        case_name = "uppercase" if upper else "lowercase"

        def check_leaf(node):
            if node.child_count > 0:
                return
            text = node.text
            lowered = text.lower()
            if lowered not in KEYWORDS:
                return
            expected = text.upper() if upper else lowered
            if text == expected:
                return
            context.report(node_report(node, f"Keyword '{text}' should be {case_name} '{expected}'.", expected))

        return {WILDCARD: check_leaf}


RULES = [UpperCaseKeywordsRule()]
