"""
PascalLint engine package.

Incremental lint engine for Delphi / Object Pascal built on tree-sitter:
parser lifecycle, tree and result caching, per-workspace configuration,
single-pass rule dispatch and fix application.
"""

from .types import (
    Severity, Position, Range, Fix, Issue, Report, RuleMeta, Rule, RuleContext,
    EnterLeave, Listener, LintRule, WILDCARD
)

from .errors import (
    PascalLintError, NotInitializedError, GrammarLoadError, ConfigParseError,
    FixConflictError, TreeReleasedError, RuleError
)

from .edits import InputEdit, compute_edit

from .parser import ParserGateway, get_parser_gateway

from .registry import RuleRegistry, get_registry, get_rule, get_all_rules

from .config import (
    ConfigResolver, WorkspaceConfig, get_default_rules, load_raw_config,
    find_workspace_root, init_config
)

from .fixes import FixResult, apply_fixes

from .linter import LinterService, FixOutcome

__all__ = [
    # Types
    "Severity", "Position", "Range", "Fix", "Issue", "Report", "RuleMeta", "Rule",
    "RuleContext", "EnterLeave", "Listener", "LintRule", "WILDCARD",

    # Errors
    "PascalLintError", "NotInitializedError", "GrammarLoadError", "ConfigParseError",
    "FixConflictError", "TreeReleasedError", "RuleError",

    # Parsing
    "InputEdit", "compute_edit", "ParserGateway", "get_parser_gateway",

    # Registry
    "RuleRegistry", "get_registry", "get_rule", "get_all_rules",

    # Config
    "ConfigResolver", "WorkspaceConfig", "get_default_rules", "load_raw_config",
    "find_workspace_root", "init_config",

    # Fixes and the service
    "FixResult", "apply_fixes", "LinterService", "FixOutcome",
]
