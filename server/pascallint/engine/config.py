"""
Workspace rule configuration.

A workspace's effective configuration is the built-in default severity table
overlaid with the ``rules`` of the first config file found in the workspace
root. Rule ids that are not built in are kept as-is so custom rules can be
configured alongside the built-in ones.
"""

import asyncio
import fnmatch
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from .errors import ConfigParseError
from .types import SEVERITIES, Severity

logger = logging.getLogger(__name__)

CONFIG_FILENAMES: Tuple[str, ...] = (
    ".pascallint.json",
    ".PascalLint.json",
    ".pascallintrc",
    ".pascallintrc.json",
    ".pascallint.yml",
    ".pascallint.yaml",
)

# Markers that identify a workspace root besides the config files themselves
ROOT_MARKERS: Tuple[str, ...] = (".git",)
ROOT_MARKER_SUFFIXES: Tuple[str, ...] = (".dproj", ".groupproj")

DEFAULT_IGNORE_PATTERNS: Tuple[str, ...] = ("**/node_modules/**", "**/out/**", "**/__history/**")

DEFAULT_RULES: Dict[str, Severity] = {
    # Potential errors
    "no-with": "error",
    "no-semicolon-before-else": "error",
    "dangling-semicolon": "error",
    "no-empty-finally": "warn",
    "unreachable-code": "error",
    "constructor-call-on-instance": "error",
    "no-exit-in-finally": "error",

    # Best practices
    "empty-begin-end": "warn",
    "use-free-and-nil": "warn",
    "check-assigned": "info",

    # Style
    "pascal-case": "warn",
    "one-var-per-line": "info",
    "camel-case": "off",
    "upper-case-keywords": "off",
}

RawRuleValue = Union[str, List[Any]]


class PascalLintConfig(BaseModel):
    """Schema of a workspace config file."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    extends: Optional[Union[str, List[str]]] = None
    rules: Dict[str, RawRuleValue] = Field(default_factory=dict)
    parser_options: Dict[str, Any] = Field(default_factory=dict, alias="parserOptions")
    ignore_patterns: List[str] = Field(default_factory=list, alias="ignorePatterns")

    _source: Optional[str] = PrivateAttr(default=None)

    @field_validator("rules")
    @classmethod
    def check_rule_values(cls, rules: Dict[str, RawRuleValue]) -> Dict[str, RawRuleValue]:
        for rule_id, value in rules.items():
            if isinstance(value, list):
                if not value or len(value) > 2 or not isinstance(value[0], str):
                    raise ValueError(f"rule '{rule_id}' must be a severity or [severity, options]")
                if len(value) == 2 and not isinstance(value[1], dict):
                    raise ValueError(f"options for rule '{rule_id}' must be an object")
        return rules


@dataclass(frozen=True)
class RuleSetting:
    """Effective severity and options of one rule."""
    severity: Severity
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkspaceConfig:
    """Effective rule table of one workspace."""
    rules: Mapping[str, RuleSetting]
    ignore_patterns: Tuple[str, ...] = ()
    parser_options: Mapping[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    def severity_of(self, rule_id: str) -> Severity:
        setting = self.rules.get(rule_id)
        return setting.severity if setting is not None else "off"

    def options_of(self, rule_id: str) -> Dict[str, Any]:
        setting = self.rules.get(rule_id)
        return dict(setting.options) if setting is not None else {}

    def is_ignored(self, file_id: str, workspace_root: str) -> bool:
        """True when ``file_id`` matches one of the ignore patterns, relative to the root."""
        if not self.ignore_patterns:
            return False
        try:
            relative = Path(file_id).relative_to(workspace_root).as_posix()
        except ValueError:
            return False
        candidates = (relative, "/" + relative)
        return any(fnmatch.fnmatch(c, p) for p in self.ignore_patterns for c in candidates)

    def to_dict(self) -> Dict[str, Any]:
        rules: Dict[str, Any] = {}
        for rule_id, setting in self.rules.items():
            rules[rule_id] = [setting.severity, dict(setting.options)] if setting.options else setting.severity
        return {
            "rules": rules,
            "ignorePatterns": list(self.ignore_patterns),
            "parserOptions": dict(self.parser_options),
        }


def get_default_rules() -> Dict[str, Severity]:
    """A fresh copy of the built-in default severity table."""
    return dict(DEFAULT_RULES)


def default_config() -> WorkspaceConfig:
    return build_workspace_config(None)


def _normalize_rule_value(rule_id: str, value: RawRuleValue) -> Optional[RuleSetting]:
    if isinstance(value, str):
        severity, options = value, {}
    else:
        severity = value[0]
        options = value[1] if len(value) > 1 else {}
    if severity not in SEVERITIES:
        logger.warning("Unknown severity %r for rule '%s'; keeping the default", severity, rule_id)
        return None
    return RuleSetting(severity=severity, options=dict(options))


def build_workspace_config(raw: Optional[PascalLintConfig],
                           defaults: Optional[Mapping[str, Severity]] = None) -> WorkspaceConfig:
    """Overlay a parsed config file onto the default table."""
    table = DEFAULT_RULES if defaults is None else defaults
    rules: Dict[str, RuleSetting] = {rule_id: RuleSetting(sev) for rule_id, sev in table.items()}
    if raw is None:
        return WorkspaceConfig(rules=rules)

    for rule_id, value in raw.rules.items():
        setting = _normalize_rule_value(rule_id, value)
        if setting is not None:
            rules[rule_id] = setting

    return WorkspaceConfig(
        rules=rules,
        ignore_patterns=tuple(raw.ignore_patterns),
        parser_options=dict(raw.parser_options),
        source=raw._source,
    )


def find_config_file(workspace_root: Union[str, Path]) -> Optional[Path]:
    """First config file present in ``workspace_root``, in lookup order."""
    root = Path(workspace_root)
    for name in CONFIG_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def _read_document(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(str(path), str(e)) from e

    try:
        if path.suffix in (".yml", ".yaml"):
            return yaml.safe_load(text) or {}
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(str(path), str(e)) from e


def _parse_config_file(path: Path, seen: Set[Path]) -> PascalLintConfig:
    resolved = path.resolve()
    if resolved in seen:
        raise ConfigParseError(str(path), "circular 'extends'")
    seen.add(resolved)

    document = _read_document(path)
    if not isinstance(document, dict):
        raise ConfigParseError(str(path), "top-level value must be an object")
    try:
        config = PascalLintConfig.model_validate(document)
    except ValidationError as e:
        raise ConfigParseError(str(path), str(e)) from e

    extends = config.extends
    if extends:
        bases = [extends] if isinstance(extends, str) else extends
        merged_rules: Dict[str, RawRuleValue] = {}
        merged_ignores: List[str] = []
        for base in bases:
            if base.startswith("pascallint:"):
                # Built-in presets are the defaults themselves
                continue
            base_path = (path.parent / base)
            if not base_path.is_file():
                raise ConfigParseError(str(path), f"extended config not found: {base}")
            base_config = _parse_config_file(base_path, seen)
            merged_rules.update(base_config.rules)
            merged_ignores.extend(base_config.ignore_patterns)
        merged_rules.update(config.rules)
        merged_ignores.extend(config.ignore_patterns)
        config = config.model_copy(update={"rules": merged_rules, "ignore_patterns": merged_ignores})

    return config


def load_config_file(path: Union[str, Path]) -> PascalLintConfig:
    """Load one specific config file.

    Raises:
        ConfigParseError: if the file cannot be read or is invalid
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigParseError(str(path), "no such file")
    config = _parse_config_file(path, set())
    config._source = str(path)
    return config


def load_raw_config(workspace_root: Union[str, Path]) -> Optional[PascalLintConfig]:
    """
    Load the workspace's config file.

    Returns:
        The parsed config, or None when the workspace has no config file

    Raises:
        ConfigParseError: if a config file exists but cannot be used
    """
    path = find_config_file(workspace_root)
    if path is None:
        return None
    return load_config_file(path)


ConfigLoader = Callable[[str], Optional[PascalLintConfig]]


class ConfigResolver:
    """
    Per-workspace cache of effective configurations.

    Malformed config files never fail resolution: a warning is logged and the
    default table is used.
    """

    def __init__(self, loader: Optional[ConfigLoader] = None, result_cache=None,
                 defaults: Optional[Mapping[str, Severity]] = None):
        self._loader = loader or load_raw_config
        self._result_cache = result_cache
        self._defaults = dict(defaults) if defaults is not None else None
        self._configs: Dict[str, WorkspaceConfig] = {}
        self._default: Optional[WorkspaceConfig] = None

    def defaults(self) -> WorkspaceConfig:
        if self._default is None:
            self._default = build_workspace_config(None, self._defaults)
        return self._default

    def cached(self, workspace_id: str) -> Optional[WorkspaceConfig]:
        return self._configs.get(workspace_id)

    async def resolve(self, workspace_id: Optional[str]) -> WorkspaceConfig:
        """Effective configuration of a workspace (defaults when None)."""
        if not workspace_id:
            return self.defaults()

        cached = self._configs.get(workspace_id)
        if cached is not None:
            return cached

        try:
            raw = await asyncio.to_thread(self._loader, workspace_id)
        except ConfigParseError as e:
            logger.warning("PascalLint: %s; using default rules", e)
            raw = None

        config = build_workspace_config(raw, self._defaults)
        # Another resolve for the same workspace may have finished meanwhile
        return self._configs.setdefault(workspace_id, config)

    def invalidate(self, workspace_id: str) -> List[str]:
        """
        Drop the cached configuration of a workspace and the cached lint
        results of every file under it. Returns the evicted file ids.
        """
        self._configs.pop(workspace_id, None)
        if self._result_cache is None:
            return []
        return self._result_cache.evict_under(workspace_id)

    def clear(self) -> None:
        self._configs.clear()


def _is_root(directory: Path) -> bool:
    for name in CONFIG_FILENAMES + ROOT_MARKERS:
        if (directory / name).exists():
            return True
    try:
        return any(entry.suffix.lower() in ROOT_MARKER_SUFFIXES for entry in directory.iterdir())
    except OSError:
        return False


def find_workspace_root(path: Union[str, Path]) -> str:
    """
    Walk upward from ``path`` to the nearest directory holding a config
    file, a Delphi project file or a ``.git`` directory. Falls back to the
    directory of ``path``.
    """
    start = Path(path).resolve()
    if not start.is_dir():
        start = start.parent

    for directory in (start, *start.parents):
        if _is_root(directory):
            return str(directory)
    return str(start)


def init_config(target_dir: Union[str, Path]) -> Path:
    """Write a config file with the default table into ``target_dir``."""
    document = {
        "rules": get_default_rules(),
        "parserOptions": {"delphiVersion": "xe"},
        "ignorePatterns": list(DEFAULT_IGNORE_PATTERNS),
    }
    path = Path(target_dir) / CONFIG_FILENAMES[0]
    os.makedirs(path.parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=4)
        f.write("\n")
    return path
