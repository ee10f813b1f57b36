"""
Inline suppression comments.

A comment on the reported line disables matching issues::

    with Foo do  // pascallint-disable-line no-with
    x := 1; { pascallint-disable-line dangling-semicolon, one-var-* }
    y := 2; (* pascallint-disable-line *)

Rule ids may be glob patterns; no id disables every rule on that line.
"""

import fnmatch
import re
from typing import Dict, List, Optional, Set, Union

from .edits import Text
from .types import Issue

ALL_RULES = "*"

_DIRECTIVE = re.compile(
    r"(?://|\{|\(\*)\s*pascallint-disable-line\b([^}\n]*?)(?:\}|\*\)|$)",
    re.IGNORECASE,
)


class SuppressionParser:
    """Parser for suppression comments in one source text."""

    def __init__(self, text: Text):
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        self.lines = text.split("\n")
        self.line_suppressions: Dict[int, Set[str]] = {}  # 0-based line -> {rule_patterns}
        self._parse_suppressions()

    def _parse_suppressions(self) -> None:
        for line_num, line in enumerate(self.lines):
            patterns = self._extract_suppression_patterns(line)
            if patterns:
                self.line_suppressions[line_num] = patterns

    def _extract_suppression_patterns(self, line: str) -> Set[str]:
        patterns: Set[str] = set()
        for match in _DIRECTIVE.finditer(line):
            ids = [p.strip() for p in match.group(1).split(",") if p.strip()]
            if not ids:
                patterns.add(ALL_RULES)
            patterns.update(ids)
        return patterns

    def is_suppressed(self, rule_id: str, line: int) -> bool:
        """Check if an issue of ``rule_id`` on 0-based ``line`` is suppressed."""
        patterns = self.line_suppressions.get(line)
        if not patterns:
            return False
        return any(rule_id == p or fnmatch.fnmatch(rule_id, p) for p in patterns)

    def __bool__(self) -> bool:
        return bool(self.line_suppressions)


def filter_suppressed_issues(issues: List[Issue], text: Union[Text, SuppressionParser]) -> List[Issue]:
    """Drop issues suppressed by a comment on their start line."""
    if not issues:
        return issues

    parser: Optional[SuppressionParser] = text if isinstance(text, SuppressionParser) else SuppressionParser(text)
    if not parser:
        return issues
    return [issue for issue in issues
            if not parser.is_suppressed(issue.rule_id, issue.range.start.line)]
