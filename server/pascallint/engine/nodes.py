"""
Read-only node views and the owning tree handle.

``SyntaxTree`` owns one parse tree produced by the parser gateway. The tree
cache is its only owner; everyone else reads it through ``root_node`` for
the duration of one lint call. ``SyntaxNode`` wraps a raw tree-sitter node
and exposes the small API rules are allowed to use.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from .errors import TreeReleasedError
from .types import Point, Position, Range


class SyntaxTree:
    """Owning handle over a parse tree.

    The only legal operations are reading (``root_node``, ``raw``) and
    ``release()``. A released handle refuses both.
    """

    def __init__(self, raw: Any, source: bytes):
        self._raw = raw
        self._source = source
        self._released = False
        self._views: Dict[Any, "SyntaxNode"] = {}

    @property
    def released(self) -> bool:
        return self._released

    @property
    def raw(self) -> Any:
        """The underlying parser tree (for the parser gateway only)."""
        self._check_live()
        return self._raw

    @property
    def source_bytes(self) -> bytes:
        self._check_live()
        return self._source

    @property
    def root_node(self) -> "SyntaxNode":
        self._check_live()
        return self.view(self._raw.root_node)

    def view(self, raw_node: Any) -> "SyntaxNode":
        """Return the cached view for a raw node of this tree."""
        key = _node_key(raw_node)
        node = self._views.get(key)
        if node is None:
            node = SyntaxNode(raw_node, self)
            self._views[key] = node
        return node

    def release(self) -> None:
        """Free the underlying tree. Must be called exactly once."""
        if self._released:
            raise TreeReleasedError("syntax tree released twice")
        self._released = True
        self._views.clear()
        delete = getattr(self._raw, "delete", None)
        if callable(delete):
            delete()
        self._raw = None

    def _check_live(self) -> None:
        if self._released:
            raise TreeReleasedError("syntax tree used after release")

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"<SyntaxTree {state} {len(self._source)} bytes>"


def _node_key(raw_node: Any) -> Any:
    node_id = getattr(raw_node, "id", None)
    if node_id is None:
        return id(raw_node)
    return (node_id, raw_node.start_byte, raw_node.end_byte)


class SyntaxNode:
    """Read-only view of a node. Does not outlive its tree."""

    __slots__ = ("_node", "_tree")

    def __init__(self, raw_node: Any, tree: SyntaxTree):
        self._node = raw_node
        self._tree = tree

    @property
    def type(self) -> str:
        return str(self._node.type)

    @property
    def is_named(self) -> bool:
        return bool(getattr(self._node, "is_named", True))

    @property
    def start_byte(self) -> int:
        return int(self._node.start_byte)

    @property
    def end_byte(self) -> int:
        return int(self._node.end_byte)

    @property
    def start_point(self) -> Point:
        row, column = self._node.start_point
        return (int(row), int(column))

    @property
    def end_point(self) -> Point:
        row, column = self._node.end_point
        return (int(row), int(column))

    @property
    def start_position(self) -> Position:
        row, column = self.start_point
        return Position(line=row, column=column, offset=self.start_byte)

    @property
    def end_position(self) -> Position:
        row, column = self.end_point
        return Position(line=row, column=column, offset=self.end_byte)

    @property
    def range(self) -> Range:
        return Range(self.start_position, self.end_position)

    @property
    def text(self) -> str:
        """Source text covered by this node."""
        source = self._tree.source_bytes
        return source[self.start_byte:self.end_byte].decode("utf-8", errors="replace")

    @property
    def children(self) -> List["SyntaxNode"]:
        return [self._tree.view(child) for child in self._node.children]

    @property
    def named_children(self) -> List["SyntaxNode"]:
        named = getattr(self._node, "named_children", None)
        if named is None:
            named = [c for c in self._node.children if getattr(c, "is_named", True)]
        return [self._tree.view(child) for child in named]

    @property
    def child_count(self) -> int:
        return len(self._node.children)

    @property
    def parent(self) -> Optional["SyntaxNode"]:
        parent = getattr(self._node, "parent", None)
        if parent is None:
            return None
        return self._tree.view(parent)

    def child_by_field_name(self, name: str) -> Optional["SyntaxNode"]:
        child = self._node.child_by_field_name(name)
        if child is None:
            return None
        return self._tree.view(child)

    def descendants_of_type(self, types: Union[str, Iterable[str]]) -> List["SyntaxNode"]:
        """All descendants (not including this node) whose type is in ``types``, in pre-order."""
        wanted = {types} if isinstance(types, str) else set(types)
        return [node for node in self.walk() if node is not self and node.type in wanted]

    def walk(self) -> Iterator["SyntaxNode"]:
        """Pre-order iteration over this node and its descendants."""
        stack = [self]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, SyntaxNode):
            return (
                self._tree is other._tree
                and _node_key(self._node) == _node_key(other._node)
            )
        return NotImplemented

    def __hash__(self) -> int:
        return hash((id(self._tree), _node_key(self._node)))

    def __repr__(self) -> str:
        return f"<SyntaxNode {self.type} {self.start_byte}-{self.end_byte}>"
