"""
Single-pass multi-rule dispatch over a syntax tree.

Each active rule builds a listener for one invocation; the listeners are
indexed by node type once and the tree is walked once in pre-order. Enter
handlers fire on arrival at a node, leave handlers after all of its
children. Node types are grammar-defined strings and listener keys are
looked up dynamically; ``"*"`` matches every node.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .config import WorkspaceConfig
from .edits import Text, range_at
from .errors import RuleError
from .nodes import SyntaxNode, SyntaxTree
from .types import WILDCARD, EnterLeave, Handler, Issue, Listener, Range, Report, Rule, Severity

logger = logging.getLogger(__name__)

# Per-rule timing data: rule_id -> {"total_ms": float, "call_count": int, "issues_count": int}
_rule_timing: Dict[str, Dict[str, float]] = {}
_timing_enabled = False


def enable_rule_timing():
    """Enable per-rule timing collection."""
    global _timing_enabled
    _timing_enabled = True


def disable_rule_timing():
    """Disable per-rule timing collection."""
    global _timing_enabled
    _timing_enabled = False


def get_rule_timing() -> Dict[str, Dict[str, float]]:
    """Get collected rule timing data."""
    return {rule_id: dict(data) for rule_id, data in _rule_timing.items()}


def clear_rule_timing():
    """Clear collected rule timing data."""
    _rule_timing.clear()


def _record_timing(rule_id: str, elapsed_ms: float, issues: int = 0) -> None:
    data = _rule_timing.setdefault(rule_id, {"total_ms": 0.0, "call_count": 0, "issues_count": 0})
    data["total_ms"] += elapsed_ms
    data["call_count"] += 1
    data["issues_count"] += issues


@dataclass(frozen=True)
class ActiveRule:
    """A rule together with its effective severity and options for one lint."""
    rule: Rule
    severity: Severity
    options: Mapping[str, Any] = field(default_factory=dict)


def active_rules(rules: Sequence[Rule], config: WorkspaceConfig) -> List[ActiveRule]:
    """Rules whose configured severity is not ``off``, in catalogue order."""
    active = []
    for rule in rules:
        severity = config.severity_of(rule.id)
        if severity == "off":
            continue
        active.append(ActiveRule(rule=rule, severity=severity, options=config.options_of(rule.id)))
    return active


class LintContext:
    """What a rule sees during one lint invocation."""

    def __init__(self, rule_id: str, severity: Severity, source_text: str, file_id: str,
                 options: Mapping[str, Any], issues: List[Issue], path: List[SyntaxNode]):
        self.rule_id = rule_id
        self.severity = severity
        self._source_text = source_text
        self._file_id = file_id
        self._options = dict(options)
        self._issues = issues
        self._path = path
        self._source_bytes: Optional[bytes] = None

    def report(self, issue: Report) -> None:
        """Record an issue, stamped with this rule's id and severity."""
        self._issues.append(Issue(
            rule_id=self.rule_id,
            severity=self.severity,
            message=issue.message,
            range=issue.range,
            fix=issue.fix,
            suggestions=tuple(issue.suggestions),
        ))

    def get_source_code(self) -> str:
        return self._source_text

    def get_filename(self) -> str:
        return self._file_id

    def get_source_bytes(self) -> bytes:
        """Source as UTF-8, the encoding all offsets refer to."""
        if self._source_bytes is None:
            self._source_bytes = self._source_text.encode("utf-8")
        return self._source_bytes

    def range_at(self, start: int, end: int) -> Range:
        """Range between two byte offsets of the source."""
        return range_at(self.get_source_bytes(), start, end)

    @property
    def options(self) -> Dict[str, Any]:
        return self._options

    @property
    def ancestors(self) -> Tuple[SyntaxNode, ...]:
        """Nodes enclosing the node being visited, outermost first."""
        return tuple(self._path)

    def inside(self, node_type: Union[str, Iterable[str]]) -> bool:
        """True when any enclosing node has one of the given types."""
        wanted = {node_type} if isinstance(node_type, str) else set(node_type)
        return any(node.type in wanted for node in self._path)


def _split_entry(entry: Any) -> Tuple[Optional[Handler], Optional[Handler]]:
    """Normalize a listener entry to an (enter, leave) pair."""
    if isinstance(entry, EnterLeave):
        return entry.enter, entry.leave
    if isinstance(entry, Mapping):
        return entry.get("enter"), entry.get("leave")
    if callable(entry):
        return entry, None
    enter = getattr(entry, "enter", None)
    leave = getattr(entry, "leave", None)
    if enter is None and leave is None:
        raise TypeError(f"listener entry {entry!r} is neither a handler nor an enter/leave pair")
    return enter, leave


HandlerList = List[Tuple[str, Handler]]


class _ListenerIndex:
    """Node type -> ordered (rule id, handler) pairs, for each phase."""

    def __init__(self):
        self.enter: Dict[str, HandlerList] = {}
        self.leave: Dict[str, HandlerList] = {}

    def add(self, rule_id: str, listener: Listener) -> None:
        for node_type, entry in listener.items():
            enter, leave = _split_entry(entry)
            if enter is not None:
                self.enter.setdefault(node_type, []).append((rule_id, enter))
            if leave is not None:
                self.leave.setdefault(node_type, []).append((rule_id, leave))

    def handlers(self, table: Dict[str, HandlerList], node_type: str) -> HandlerList:
        exact = table.get(node_type, [])
        wildcard = table.get(WILDCARD, [])
        if not wildcard:
            return exact
        if not exact:
            return wildcard
        return exact + wildcard

    def __bool__(self) -> bool:
        return bool(self.enter or self.leave)


class DispatchEngine:
    """Runs active rules over a tree in a single traversal."""

    def run(self, tree: SyntaxTree, rules: Sequence[ActiveRule], source_text: Text,
            file_id: str) -> List[Issue]:
        """
        Dispatch every active rule over ``tree``.

        Returns:
            Issues in traversal order; rules sharing a node type report in
            the order they appear in ``rules``

        Raises:
            RuleError: if a rule's ``create`` or one of its handlers raises
        """
        if isinstance(source_text, bytes):
            source_text = source_text.decode("utf-8", errors="replace")

        issues: List[Issue] = []
        path: List[SyntaxNode] = []
        index = _ListenerIndex()

        for active in rules:
            if active.severity == "off":
                continue
            rule_id = active.rule.id
            context = LintContext(rule_id, active.severity, source_text, file_id,
                                  active.options, issues, path)
            try:
                listener = active.rule.create(context)
                index.add(rule_id, listener)
            except Exception as e:
                raise RuleError(rule_id, file_id, e) from e

        if not index:
            return issues

        self._traverse(tree.root_node, index, path, issues, file_id)
        return issues

    def _traverse(self, root: SyntaxNode, index: _ListenerIndex, path: List[SyntaxNode],
                  issues: List[Issue], file_id: str) -> None:
        # (node, leaving) pairs; iterative so deep trees don't hit the recursion limit
        stack: List[Tuple[SyntaxNode, bool]] = [(root, False)]
        while stack:
            node, leaving = stack.pop()
            if leaving:
                path.pop()
                self._fire(index.handlers(index.leave, node.type), node, issues, file_id)
                continue

            self._fire(index.handlers(index.enter, node.type), node, issues, file_id)
            stack.append((node, True))
            path.append(node)
            for child in reversed(node.children):
                stack.append((child, False))

    def _fire(self, handlers: HandlerList, node: SyntaxNode, issues: List[Issue],
              file_id: str) -> None:
        for rule_id, handler in handlers:
            start = time.perf_counter() if _timing_enabled else 0.0
            reported = len(issues)
            try:
                handler(node)
            except Exception as e:
                raise RuleError(rule_id, file_id, e) from e
            if _timing_enabled:
                _record_timing(rule_id, (time.perf_counter() - start) * 1000, len(issues) - reported)
