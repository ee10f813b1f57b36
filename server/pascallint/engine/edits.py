"""
Edit descriptors for incremental parsing, plus byte/position helpers.

All offsets are UTF-8 byte offsets and all points are (row, column) with a
byte column, which is what tree-sitter expects.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

from .types import Point, Position, Range

Text = Union[str, bytes]


@dataclass(frozen=True)
class InputEdit:
    """Describes one changed region between an old and a new text."""
    start_byte: int
    old_end_byte: int
    new_end_byte: int
    start_point: Point
    old_end_point: Point
    new_end_point: Point

    def as_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``tree_sitter.Tree.edit``."""
        return {
            "start_byte": self.start_byte,
            "old_end_byte": self.old_end_byte,
            "new_end_byte": self.new_end_byte,
            "start_point": self.start_point,
            "old_end_point": self.old_end_point,
            "new_end_point": self.new_end_point,
        }


def to_bytes(text: Text) -> bytes:
    if isinstance(text, bytes):
        return text
    return text.encode("utf-8")


def point_at(data: bytes, offset: int) -> Point:
    """(row, byte column) of a byte offset."""
    offset = max(0, min(offset, len(data)))
    row = data.count(b"\n", 0, offset)
    line_start = data.rfind(b"\n", 0, offset) + 1
    return (row, offset - line_start)


def position_at(data: bytes, offset: int) -> Position:
    row, column = point_at(data, offset)
    return Position(line=row, column=column, offset=max(0, min(offset, len(data))))


def range_at(data: bytes, start: int, end: int) -> Range:
    return Range(position_at(data, start), position_at(data, end))


def char_to_byte(text: str, index: int) -> int:
    """Byte offset of a character index in ``text``."""
    return len(text[:index].encode("utf-8"))


def _is_continuation(data: bytes, index: int) -> bool:
    return 0 <= index < len(data) and (data[index] & 0xC0) == 0x80


def compute_edit(old_text: Text, new_text: Text) -> InputEdit:
    """
    Build the edit that turns ``old_text`` into ``new_text``.

    The changed region is everything between the longest common prefix and
    the longest common suffix, both snapped to UTF-8 character boundaries.
    """
    old = to_bytes(old_text)
    new = to_bytes(new_text)
    limit = min(len(old), len(new))

    prefix = 0
    while prefix < limit and old[prefix] == new[prefix]:
        prefix += 1
    while prefix > 0 and (_is_continuation(old, prefix) or _is_continuation(new, prefix)):
        prefix -= 1

    suffix = 0
    while (suffix < limit - prefix
           and old[len(old) - 1 - suffix] == new[len(new) - 1 - suffix]):
        suffix += 1
    while suffix > 0 and (_is_continuation(old, len(old) - suffix)
                          or _is_continuation(new, len(new) - suffix)):
        suffix -= 1

    old_end = len(old) - suffix
    new_end = len(new) - suffix
    return InputEdit(
        start_byte=prefix,
        old_end_byte=old_end,
        new_end_byte=new_end,
        start_point=point_at(old, prefix),
        old_end_point=point_at(old, old_end),
        new_end_point=point_at(new, new_end),
    )
