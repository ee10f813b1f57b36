"""
Report formatters.

Each formatter renders ``{file path: issues}`` to a string. Lines and
columns are printed 1-based except in the SonarQube format, whose columns
are 0-based.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional

from .types import Issue

Results = Mapping[str, List[Issue]]

_COLORS = {
    "reset": "\x1b[0m",
    "red": "\x1b[31m",
    "yellow": "\x1b[33m",
    "cyan": "\x1b[36m",
    "gray": "\x1b[90m",
    "bold": "\x1b[1m",
}
_NO_COLORS = {name: "" for name in _COLORS}

SONAR_SEVERITIES = {"error": "MAJOR", "warn": "MINOR", "info": "INFO"}


def _label(issue: Issue) -> str:
    return "error" if issue.severity == "error" else "warning"


class Formatter(ABC):
    """Abstract base class for report formatters."""

    name = ""

    @abstractmethod
    def format(self, results: Results) -> str:
        """Render the issues of every file."""


class StylishFormatter(Formatter):
    """Grouped by file, with a summary line."""

    name = "stylish"

    def __init__(self, use_color: bool = True, cwd: Optional[str] = None):
        self.use_color = use_color
        self.cwd = cwd

    def format(self, results: Results) -> str:
        c = _COLORS if self.use_color else _NO_COLORS
        lines: List[str] = []
        errors = warnings = 0

        for file_path, issues in results.items():
            if not issues:
                continue
            lines.append(f"\n{c['bold']}{self._display_path(file_path)}{c['reset']}")
            for issue in issues:
                label = _label(issue)
                color = c["red"] if label == "error" else c["yellow"]
                start = issue.range.start
                lines.append(
                    f"  {c['gray']}{start.line + 1}:{start.column + 1}{c['reset']}  "
                    f"{color}{label}{c['reset']}  {issue.message}  "
                    f"{c['gray']}{issue.rule_id}{c['reset']}"
                )
                if label == "error":
                    errors += 1
                else:
                    warnings += 1

        if errors or warnings:
            color = c["red"] if errors else c["yellow"]
            lines.append(
                f"\n{color}{c['bold']}✖ {errors + warnings} problem(s){c['reset']} "
                f"({errors} error(s), {warnings} warning(s))\n"
            )
        else:
            lines.append(f"\n{c['cyan']}✓ No problems found{c['reset']}\n")
        return "\n".join(lines)

    def _display_path(self, file_path: str) -> str:
        try:
            return os.path.relpath(file_path, self.cwd or os.getcwd())
        except ValueError:
            return file_path


class JsonFormatter(Formatter):
    """Flat list of issues for programmatic use."""

    name = "json"

    def format(self, results: Results) -> str:
        records = []
        for file_path, issues in results.items():
            for issue in issues:
                start, end = issue.range.start, issue.range.end
                records.append({
                    "filePath": file_path,
                    "ruleId": issue.rule_id,
                    "severity": issue.severity,
                    "message": issue.message,
                    "line": start.line + 1,
                    "column": start.column + 1,
                    "endLine": end.line + 1,
                    "endColumn": end.column + 1,
                    "fix": {
                        "text": issue.fix.text,
                        "range": {
                            "start": issue.fix.range.start_offset,
                            "end": issue.fix.range.end_offset,
                        },
                    } if issue.fix else None,
                })
        return json.dumps(records, indent=2)


class UnixFormatter(Formatter):
    """One ``path:line:col: severity: message [rule]`` line per issue."""

    name = "unix"

    def format(self, results: Results) -> str:
        lines = []
        for file_path, issues in results.items():
            for issue in issues:
                start = issue.range.start
                lines.append(
                    f"{file_path}:{start.line + 1}:{start.column + 1}: "
                    f"{_label(issue)}: {issue.message} [{issue.rule_id}]"
                )
        return "\n".join(lines)


class SonarFormatter(Formatter):
    """SonarQube generic issue import format."""

    name = "sonar"

    def format(self, results: Results) -> str:
        sonar_issues = []
        for file_path, issues in results.items():
            for issue in issues:
                start, end = issue.range.start, issue.range.end
                sonar_issues.append({
                    "engineId": "pascallint",
                    "ruleId": issue.rule_id,
                    "severity": SONAR_SEVERITIES.get(issue.severity, "INFO"),
                    "type": "CODE_SMELL",
                    "primaryLocation": {
                        "message": issue.message,
                        "filePath": file_path,
                        "textRange": {
                            "startLine": start.line + 1,
                            "startColumn": start.column,
                            "endLine": end.line + 1,
                            "endColumn": end.column,
                        },
                    },
                })
        return json.dumps({"issues": sonar_issues}, indent=2)


FORMATS = ("stylish", "json", "unix", "sonar")


def get_formatter(name: str, use_color: bool = True) -> Formatter:
    """Get a formatter by name; unknown names fall back to stylish."""
    formatters: Dict[str, Formatter] = {
        "stylish": StylishFormatter(use_color=use_color),
        "json": JsonFormatter(),
        "unix": UnixFormatter(),
        "sonar": SonarFormatter(),
    }
    return formatters.get(name, formatters["stylish"])


def format_results(results: Results, name: str = "stylish", use_color: bool = True) -> str:
    return get_formatter(name, use_color).format(results)
