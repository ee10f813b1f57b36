"""
Apply mechanical fixes to source text.

Fixes are spliced in descending start-offset order so that applying one
never shifts the offsets of those still pending. Overlapping fixes cannot be
applied together in one pass: by default the one that sorts later is skipped
and reported back, in strict mode a ``FixConflictError`` is raised.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

from .edits import Text, to_bytes
from .errors import FixConflictError
from .types import Fix, Issue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixResult:
    """Outcome of one fix pass."""
    fixed_text: Union[str, bytes]
    applied_count: int
    skipped: Tuple[Issue, ...] = ()

    @property
    def changed(self) -> bool:
        return self.applied_count > 0


def _chosen_fix(issue: Issue, use_suggestions: bool):
    if issue.fix is not None:
        return issue.fix
    if use_suggestions and issue.suggestions:
        return issue.suggestions[0]
    return None


def _overlaps(a: Fix, b: Fix) -> bool:
    a_start, a_end = a.range.start_offset, a.range.end_offset
    b_start, b_end = b.range.start_offset, b.range.end_offset
    if a_start == a_end or b_start == b_end:
        # An insertion conflicts only with a replacement strictly around it
        return a_start < b_end and b_start < a_end and a_start != b_start
    return a_start < b_end and b_start < a_end


def apply_fixes(source_text: Text, issues: Iterable[Issue], strict: bool = False,
                use_suggestions: bool = False) -> FixResult:
    """
    Apply every fix carried by ``issues`` to ``source_text``.

    Offsets are UTF-8 byte offsets into ``source_text``. The result has the
    same type (str or bytes) as the input. Insertions at the same offset end
    up in report order.

    Args:
        source_text: Text the fixes were computed against
        issues: Issues from one lint of ``source_text``; those without a fix are ignored
        strict: Raise on overlapping fixes instead of skipping
        use_suggestions: Fall back to an issue's first suggestion when it has no fix

    Raises:
        FixConflictError: in strict mode, if two fixes overlap
    """
    data = to_bytes(source_text)

    candidates: List[Tuple[int, Issue, Fix]] = []
    for position, issue in enumerate(issues):
        fix = _chosen_fix(issue, use_suggestions)
        if fix is not None:
            candidates.append((position, issue, fix))

    if not candidates:
        return FixResult(fixed_text=source_text, applied_count=0)

    # Descending start; at equal starts replacements go before insertions and
    # later-reported fixes go first
    candidates.sort(key=lambda c: (-c[2].range.start_offset, -c[2].range.end_offset, -c[0]))

    accepted: List[Tuple[Issue, Fix]] = []
    skipped: List[Issue] = []
    for _, issue, fix in candidates:
        conflict = next((prev for prev in accepted if _overlaps(prev[1], fix)), None)
        if conflict is not None:
            if strict:
                raise FixConflictError(conflict[0], issue, conflict[1], fix)
            logger.warning(
                "Skipping fix for '%s' at %d-%d: overlaps fix for '%s'",
                issue.rule_id, fix.range.start_offset, fix.range.end_offset, conflict[0].rule_id,
            )
            skipped.append(issue)
            continue
        accepted.append((issue, fix))

    result = data
    for _, fix in accepted:
        start = max(0, min(fix.range.start_offset, len(result)))
        end = max(start, min(fix.range.end_offset, len(result)))
        result = result[:start] + fix.text.encode("utf-8") + result[end:]

    fixed: Union[str, bytes] = result if isinstance(source_text, bytes) else result.decode("utf-8")
    return FixResult(fixed_text=fixed, applied_count=len(accepted), skipped=tuple(skipped))
