"""
Per-file tree and result caches.

The tree cache is the sole owner of parse trees: it releases a tree when it
is superseded, when its file is evicted and when the cache is cleared. The
result cache short-circuits re-analysis of content that has not changed.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from .edits import InputEdit, Text, to_bytes
from .nodes import SyntaxTree
from .parser import ParserGateway
from .types import Issue

logger = logging.getLogger(__name__)


def is_under(file_id: str, workspace_id: str) -> bool:
    """True when ``file_id`` is ``workspace_id`` itself or a path beneath it."""
    if not workspace_id:
        return False
    if file_id == workspace_id:
        return True
    root = workspace_id.rstrip("/\\")
    if not root:
        return file_id.startswith(("/", "\\"))
    return file_id.startswith(root + "/") or file_id.startswith(root + os.sep)


@dataclass
class TreeCacheEntry:
    tree: SyntaxTree
    content: bytes
    version: int


class TreeCache:
    """
    Per-file store of the most recent parse tree.

    At most one live tree exists per file. Every tree installed here is
    released exactly once: when superseded, when its file is evicted, or when
    the cache is cleared.
    """

    def __init__(self, gateway: ParserGateway):
        self._gateway = gateway
        self._entries: Dict[str, TreeCacheEntry] = {}

    def get_or_create(self, file_id: str, text: Text, version: Optional[int] = None,
                      edit: Optional[InputEdit] = None) -> SyntaxTree:
        """
        Return a live tree parsed from exactly ``text``.

        Identical content returns the cached tree with no parse work. An edit
        is used for an incremental reparse only when ``version`` is strictly
        greater than the cached version; anything else is a full parse.
        """
        content = to_bytes(text)
        entry = self._entries.get(file_id)

        if entry is not None and entry.content == content:
            logger.debug("Tree cache hit for %s", file_id)
            return entry.tree

        new_version = version if version is not None else (entry.version + 1 if entry else 0)

        if (entry is not None and edit is not None and version is not None
                and version > entry.version):
            try:
                tree = self._gateway.reparse(content, entry.tree, edit)
            except Exception:
                # The previous tree has already been edited in place and no
                # longer matches its snapshot.
                self.evict(file_id)
                raise
            logger.debug("Incremental reparse of %s (v%d -> v%d)", file_id, entry.version, version)
        else:
            tree = self._gateway.parse(content)
            logger.debug("Full parse of %s (v%d)", file_id, new_version)

        if entry is not None:
            entry.tree.release()
        self._entries[file_id] = TreeCacheEntry(tree=tree, content=content, version=new_version)
        return tree

    def get(self, file_id: str) -> Optional[SyntaxTree]:
        entry = self._entries.get(file_id)
        return entry.tree if entry else None

    def version_of(self, file_id: str) -> Optional[int]:
        entry = self._entries.get(file_id)
        return entry.version if entry else None

    def evict(self, file_id: str) -> bool:
        """Release and remove one file's tree. Returns False if none was cached."""
        entry = self._entries.pop(file_id, None)
        if entry is None:
            return False
        entry.tree.release()
        logger.debug("Evicted tree for %s", file_id)
        return True

    def clear(self) -> None:
        """Release every cached tree."""
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            entry.tree.release()

    def file_ids(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))


@dataclass
class ResultCacheEntry:
    content: bytes
    issues: List[Issue]


class ResultCache:
    """Per-file issue lists keyed by exact content equality."""

    def __init__(self):
        self._entries: Dict[str, ResultCacheEntry] = {}

    def get(self, file_id: str, text: Text) -> Optional[List[Issue]]:
        """Cached issues for ``file_id`` if its cached content equals ``text``.

        The returned list is the same object that was stored.
        """
        entry = self._entries.get(file_id)
        if entry is None or entry.content != to_bytes(text):
            return None
        return entry.issues

    def peek(self, file_id: str) -> Optional[List[Issue]]:
        """Most recent issues for ``file_id`` regardless of content."""
        entry = self._entries.get(file_id)
        return entry.issues if entry else None

    def store(self, file_id: str, text: Text, issues: List[Issue]) -> None:
        self._entries[file_id] = ResultCacheEntry(content=to_bytes(text), issues=issues)

    def evict(self, file_id: str) -> bool:
        return self._entries.pop(file_id, None) is not None

    def evict_under(self, workspace_id: str) -> List[str]:
        """Evict every entry whose file lies under ``workspace_id``."""
        evicted = [file_id for file_id in self._entries if is_under(file_id, workspace_id)]
        for file_id in evicted:
            del self._entries[file_id]
        if evicted:
            logger.debug("Evicted %d cached results under %s", len(evicted), workspace_id)
        return evicted

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
