"""
Linter service - orchestrates parsing, configuration and rule dispatch.

This is the surface consumed by the CLI and the HTTP service:

    linter = LinterService()
    await linter.initialize()
    issues = await linter.lint(text, "/ws/src/Unit1.pas", "/ws")

Trees and results are cached per file id (an absolute path). The service
owns every tree it caches; ``clear_cache`` and ``cleanup`` release them.
"""

import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .cache import ResultCache, TreeCache
from .config import ConfigLoader, ConfigResolver, WorkspaceConfig
from .dispatch import DispatchEngine, active_rules
from .edits import InputEdit, Text
from .errors import NotInitializedError
from .fixes import apply_fixes
from .parser import ParserGateway, get_parser_gateway
from .registry import RuleRegistry, get_registry
from .settings import settings
from .suppressions import filter_suppressed_issues
from .types import Issue, Rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixOutcome:
    """Result of fixing a file until no more fixes apply."""
    text: str
    applied: int
    issues: List[Issue]
    passes: int = 0


class LinterService:
    """Incremental lint engine for one process (or one editor session)."""

    def __init__(self, gateway: Optional[ParserGateway] = None,
                 registry: Optional[RuleRegistry] = None,
                 config_loader: Optional[ConfigLoader] = None,
                 config_resolver: Optional[ConfigResolver] = None):
        self._gateway = gateway if gateway is not None else get_parser_gateway()
        self._registry = registry if registry is not None else get_registry()
        self._rules: List[Rule] = self._registry.get_all_rules()
        self.results = ResultCache()
        self.trees = TreeCache(self._gateway)
        self.configs = config_resolver if config_resolver is not None else ConfigResolver(
            loader=config_loader, result_cache=self.results, defaults=self._registry.default_severities(),
        )
        self._dispatcher = DispatchEngine()

    @property
    def is_initialized(self) -> bool:
        return self._gateway.is_initialized

    @property
    def rules(self) -> Sequence[Rule]:
        return list(self._rules)

    async def initialize(self, location: Optional[str] = None) -> None:
        """
        Load the grammar. Safe to call multiple times and concurrently.

        ``location`` defaults to ``settings.grammar_location``; when both are
        unset the grammar bundled with tree-sitter-language-pack is used.
        """
        await self._gateway.initialize(location if location is not None else settings.grammar_location)

    async def _ensure_initialized(self) -> None:
        if self._gateway.is_initialized:
            return
        await self._gateway.wait_ready()
        if not self._gateway.is_initialized:
            raise NotInitializedError("LinterService not initialized. Call initialize() first.")

    async def lint(self, source_text: Text, file_id: str, workspace_id: Optional[str] = None,
                   version: Optional[int] = None, edit: Optional[InputEdit] = None) -> List[Issue]:
        """
        Lint one file.

        Unchanged content returns the cached issue list itself, without
        parsing or dispatching again.

        Args:
            source_text: Full current text of the file
            file_id: Absolute path of the file (cache key)
            workspace_id: Workspace root whose config applies; None for defaults
            version: Monotonic document version, enables incremental parsing
            edit: Changed region since the cached version

        Raises:
            NotInitializedError: if ``initialize`` has not completed
            RuleError: if a rule raises; no tree stays cached for this file
        """
        await self._ensure_initialized()

        cached = self.results.get(file_id, source_text)
        if cached is not None:
            return cached

        config = await self.configs.resolve(workspace_id)

        # Another lint of the same content may have finished while resolving
        cached = self.results.get(file_id, source_text)
        if cached is not None:
            return cached

        if workspace_id and config.is_ignored(file_id, workspace_id):
            logger.debug("Skipping ignored file %s", file_id)
            return []

        started = time.perf_counter()
        issues = self._lint_now(source_text, file_id, config, version, edit)
        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > settings.slow_lint_ms:
            logger.warning("PascalLint: linting %s took %.0f ms", file_id, elapsed_ms)
        return issues

    def _lint_now(self, source_text: Text, file_id: str, config: WorkspaceConfig,
                  version: Optional[int], edit: Optional[InputEdit]) -> List[Issue]:
        # A failed parse leaves the previous entry to the tree cache
        tree = self.trees.get_or_create(file_id, source_text, version, edit)
        try:
            issues = self._dispatcher.run(tree, active_rules(self._rules, config), source_text, file_id)
        except Exception:
            self.trees.evict(file_id)
            raise

        issues = filter_suppressed_issues(issues, source_text)
        self.results.store(file_id, source_text, issues)
        return issues

    def get_cached_results(self, file_id: str) -> Optional[List[Issue]]:
        """Most recent issues for a file, or None if it was never linted."""
        return self.results.peek(file_id)

    def clear_cache(self, file_id: Optional[str] = None) -> None:
        """Forget one file (or every file), releasing its tree."""
        if file_id:
            self.results.evict(file_id)
            self.trees.evict(file_id)
        else:
            self.results.clear()
            self.trees.clear()

    async def reload_config_for_workspace(self, workspace_id: str) -> WorkspaceConfig:
        """Re-read a workspace's config and drop cached results of its files."""
        self.configs.invalidate(workspace_id)
        return await self.configs.resolve(workspace_id)

    async def fix(self, source_text: str, file_id: str, workspace_id: Optional[str] = None,
                  max_passes: int = 10, strict: bool = False) -> FixOutcome:
        """
        Apply fixes until none apply or ``max_passes`` is reached.

        Each pass re-lints the fixed text from a full parse. Fixes skipped
        because of overlap in one pass get another chance in the next.
        """
        text = source_text
        applied = 0
        passes = 0
        issues = await self.lint(text, file_id, workspace_id)
        while passes < max_passes:
            result = apply_fixes(text, issues, strict=strict)
            if not result.changed:
                break
            passes += 1
            applied += result.applied_count
            text = result.fixed_text
            issues = await self.lint(text, file_id, workspace_id)
        return FixOutcome(text=text, applied=applied, issues=issues, passes=passes)

    def cleanup(self) -> None:
        """Release every cached tree and forget all results and configs."""
        self.clear_cache()
        self.configs.clear()

    async def shutdown(self) -> None:
        """``cleanup`` and release the parser."""
        self.cleanup()
        await self._gateway.shutdown()
