"""
Parser gateway for the tree-sitter Pascal grammar.

The gateway owns the single parser instance and the loaded grammar. It is
initialized once per process; concurrent callers of ``initialize`` share the
same pending task instead of loading the grammar twice, and a failed load
resets everything so a later call can retry.
"""

import asyncio
import ctypes
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import tree_sitter

from .edits import InputEdit, Text, to_bytes
from .errors import GrammarLoadError, NotInitializedError
from .nodes import SyntaxTree
from .settings import settings

logger = logging.getLogger(__name__)

# Loader: grammar location (or None for the packaged grammar) -> parser object
ParserLoader = Callable[[Optional[str]], Any]


def _library_names(language_name: str):
    base = f"tree-sitter-{language_name}"
    if sys.platform == "win32":
        return (f"{base}.dll",)
    if sys.platform == "darwin":
        return (f"{base}.dylib", f"{base}.so")
    return (f"{base}.so",)


def find_grammar_library(location: str, language_name: str = "pascal") -> Path:
    """
    Locate a compiled grammar library.

    ``location`` is either the library file itself or a directory holding it
    directly or under ``parsers/``.
    """
    path = Path(location)
    if path.is_file():
        return path
    if path.is_dir():
        for directory in (path, path / "parsers"):
            for name in _library_names(language_name):
                candidate = directory / name
                if candidate.is_file():
                    return candidate
    raise GrammarLoadError(location, "grammar library not found")


def _language_from_library(library_path: Path, language_name: str) -> tree_sitter.Language:
    try:
        library = ctypes.cdll.LoadLibrary(str(library_path))
        language_fn = getattr(library, f"tree_sitter_{language_name}")
    except (OSError, AttributeError) as e:
        raise GrammarLoadError(str(library_path), str(e)) from e

    language_fn.restype = ctypes.c_void_p
    capsule_new = ctypes.pythonapi.PyCapsule_New
    capsule_new.restype = ctypes.py_object
    capsule_new.argtypes = (ctypes.c_void_p, ctypes.c_char_p, ctypes.c_void_p)
    capsule = capsule_new(language_fn(), b"tree_sitter.Language", None)
    return tree_sitter.Language(capsule)


def _packaged_language(language_name: str) -> tree_sitter.Language:
    try:
        from tree_sitter_language_pack import get_language
    except ImportError as e:
        raise GrammarLoadError(None, f"tree-sitter-language-pack not available: {e}") from e
    try:
        return get_language(language_name)
    except (LookupError, ValueError) as e:
        raise GrammarLoadError(None, str(e)) from e


def load_tree_sitter_parser(location: Optional[str] = None) -> tree_sitter.Parser:
    """Load the Pascal grammar and return a configured tree-sitter parser."""
    language_name = settings.language_name
    if location:
        language = _language_from_library(find_grammar_library(location, language_name), language_name)
    else:
        language = _packaged_language(language_name)

    parser = tree_sitter.Parser()
    parser.language = language
    return parser


class ParserGateway:
    """Owns the parser and grammar; hands out owned ``SyntaxTree`` handles."""

    def __init__(self, loader: Optional[ParserLoader] = None):
        self._loader = loader or load_tree_sitter_parser
        self._parser: Any = None
        self._location: Optional[str] = None
        self._init_task: Optional[asyncio.Future] = None

    @property
    def is_initialized(self) -> bool:
        return self._parser is not None

    @property
    def initializing(self) -> bool:
        return self._init_task is not None

    @property
    def location(self) -> Optional[str]:
        return self._location

    async def initialize(self, location: Optional[str] = None) -> None:
        """
        Load the grammar once. Safe to call multiple times.

        A caller arriving while a load is in flight awaits that same load and
        gets its outcome.

        Raises:
            GrammarLoadError: if the grammar cannot be located or loaded
        """
        if self._init_task is not None:
            await self._init_task
            return
        if self._parser is not None:
            return

        task = asyncio.ensure_future(self._load(location))
        self._init_task = task
        try:
            await task
        finally:
            if self._init_task is task:
                self._init_task = None

    async def wait_ready(self) -> None:
        """Wait for an in-flight initialization, if any."""
        if self._init_task is not None:
            await self._init_task

    async def _load(self, location: Optional[str]) -> None:
        try:
            parser = await asyncio.to_thread(self._loader, location)
        except GrammarLoadError:
            self._reset()
            raise
        except Exception as e:
            self._reset()
            raise GrammarLoadError(location, str(e)) from e

        self._parser = parser
        self._location = location
        logger.debug("Pascal parser initialized from %s", location or "language pack")

    def _require_parser(self) -> Any:
        if self._parser is None:
            raise NotInitializedError()
        return self._parser

    def parse(self, text: Text) -> SyntaxTree:
        """Full parse of ``text``.

        Raises:
            NotInitializedError: if called before a successful ``initialize``
        """
        parser = self._require_parser()
        source = to_bytes(text)
        return SyntaxTree(parser.parse(source), source)

    def reparse(self, text: Text, previous: SyntaxTree, edit: InputEdit) -> SyntaxTree:
        """
        Incremental parse of ``text`` using ``previous`` as a hint.

        ``previous`` has the edit applied to it and stays owned by the caller,
        who must still release it.
        """
        parser = self._require_parser()
        source = to_bytes(text)
        old_tree = previous.raw
        old_tree.edit(**edit.as_kwargs())
        return SyntaxTree(parser.parse(source, old_tree), source)

    async def shutdown(self) -> None:
        """Drop the parser and grammar. ``parse`` fails until ``initialize`` runs again."""
        if self._init_task is not None:
            await asyncio.wait({self._init_task})
        self._reset()
        logger.debug("Pascal parser shut down")

    def _reset(self) -> None:
        self._parser = None
        self._location = None
        self._init_task = None


# Process-wide gateway instance
_default_gateway = ParserGateway()


def get_parser_gateway() -> ParserGateway:
    """Get the process-wide parser gateway."""
    return _default_gateway
