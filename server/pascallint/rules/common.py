"""Helpers shared by the built-in rules."""

import re
from typing import Iterable, Optional

from ..engine.types import Fix, Range, Report

WHITESPACE = b" \t\r\n"

IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def node_report(node, message: str, fix_text: Optional[str] = None) -> Report:
    """Report spanning ``node``, optionally replacing it with ``fix_text``."""
    fix = Fix(range=node.range, text=fix_text) if fix_text is not None else None
    return Report(message=message, range=node.range, fix=fix)


def span_report(span: Range, message: str, fix_text: Optional[str] = None) -> Report:
    fix = Fix(range=span, text=fix_text) if fix_text is not None else None
    return Report(message=message, range=span, fix=fix)


def child_of_type(node, types: Iterable[str]):
    """First direct child whose type is in ``types``."""
    wanted = set(types)
    for child in node.children:
        if child.type in wanted:
            return child
    return None


def next_semicolon(source: bytes, offset: int) -> Optional[int]:
    """Offset of a ``;`` following ``offset`` after only whitespace, if any."""
    i = offset
    while i < len(source) and source[i] in WHITESPACE:
        i += 1
    if i < len(source) and source[i:i + 1] == b";":
        return i
    return None


def previous_semicolon(source: bytes, offset: int) -> Optional[int]:
    """Offset of a ``;`` preceding ``offset`` with only whitespace between."""
    i = offset - 1
    while i >= 0 and source[i] in WHITESPACE:
        i -= 1
    if i >= 0 and source[i:i + 1] == b";":
        return i
    return None


def simple_name(text: str) -> str:
    """Last dotted segment of a name, without generic parameters."""
    name = text.split("<", 1)[0].strip()
    return name.rsplit(".", 1)[-1].strip()
