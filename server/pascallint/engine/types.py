"""
Core types for the PascalLint engine.

This module provides shared dataclasses and types used across the engine
and the rules.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, Literal, Mapping, Optional, Protocol, Sequence, Tuple, Union


# Type aliases for clarity
Severity = Literal["error", "warn", "info", "off"]
Category = Literal["error", "best-practice", "style"]
Point = Tuple[int, int]  # (row, column) 0-based, column in bytes

SEVERITIES: Tuple[str, ...] = ("error", "warn", "info", "off")

# Listener key that matches every node type
WILDCARD = "*"


@dataclass(frozen=True)
class Position:
    """A point in source text. Line and column are 0-based, offset is a UTF-8 byte offset."""
    line: int
    column: int
    offset: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass(frozen=True)
class Range:
    """Half-open span between two positions."""
    start: Position
    end: Position

    @property
    def start_offset(self) -> int:
        return self.start.offset

    @property
    def end_offset(self) -> int:
        return self.end.offset

    def overlaps(self, other: "Range") -> bool:
        """True when the two spans share at least one byte."""
        return self.start.offset < other.end.offset and other.start.offset < self.end.offset

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


@dataclass(frozen=True)
class Fix:
    """A mechanical text replacement over a span of the pre-fix text."""
    range: Range
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"range": self.range.to_dict(), "text": self.text}


@dataclass(frozen=True)
class Issue:
    """An issue reported by a rule during dispatch."""
    rule_id: str
    severity: Severity
    message: str
    range: Range
    fix: Optional[Fix] = None
    suggestions: Tuple[Fix, ...] = ()

    def _replace(self, **kwargs):
        """Provide NamedTuple-like _replace method for compatibility."""
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Render the JSON wire shape used by formatters and the HTTP service."""
        data: Dict[str, Any] = {
            "ruleId": self.rule_id,
            "severity": self.severity,
            "message": self.message,
            "range": self.range.to_dict(),
        }
        if self.fix is not None:
            data["fix"] = self.fix.to_dict()
        if self.suggestions:
            data["suggestions"] = [s.to_dict() for s in self.suggestions]
        return data


@dataclass(frozen=True)
class Report:
    """What a rule hands to ``context.report``: an issue without rule id or severity."""
    message: str
    range: Range
    fix: Optional[Fix] = None
    suggestions: Tuple[Fix, ...] = ()


@dataclass(frozen=True)
class RuleMeta:
    """Metadata about a rule.

    Attributes:
        description: Human-readable description
        category: Rule category for grouping ("error", "best-practice", "style")
        fixable: Whether the rule attaches fixes to its issues
        docs: Longer explanation shown by reporters
        docs_url: Optional link to rule documentation
    """
    description: str
    category: Category
    fixable: bool = False
    docs: str = ""
    docs_url: Optional[str] = None


Handler = Callable[[Any], None]


@dataclass(frozen=True)
class EnterLeave:
    """A listener entry that fires on arrival at a node and after its children."""
    enter: Optional[Handler] = None
    leave: Optional[Handler] = None


ListenerEntry = Union[Handler, EnterLeave, Mapping[str, Handler]]
Listener = Mapping[str, ListenerEntry]


class RuleContext(Protocol):
    """What a rule sees during one lint invocation."""

    def report(self, issue: Report) -> None:
        ...

    def get_source_code(self) -> str:
        ...

    def get_filename(self) -> str:
        ...

    def get_source_bytes(self) -> bytes:
        ...

    def range_at(self, start: int, end: int) -> Range:
        ...

    @property
    def options(self) -> Dict[str, Any]:
        ...

    @property
    def ancestors(self) -> Sequence[Any]:
        ...

    def inside(self, node_type: Union[str, Iterable[str]]) -> bool:
        ...


class Rule(Protocol):
    """Protocol for all rules in the engine.

    Rules keep per-invocation state inside the listener built by ``create``
    and talk to the engine only through the context.
    """
    id: str
    meta: RuleMeta
    default_severity: Severity

    def create(self, context: RuleContext) -> Listener:
        """Build the listener for one lint invocation."""
        ...


@dataclass
class LintRule:
    """Plain rule descriptor: static metadata plus a listener factory."""
    id: str
    meta: RuleMeta
    default_severity: Severity
    factory: Callable[[RuleContext], Listener] = field(repr=False)

    def create(self, context: RuleContext) -> Listener:
        return self.factory(context)

    @property
    def fixable(self) -> bool:
        return self.meta.fixable

