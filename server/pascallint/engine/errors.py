"""
Exception hierarchy for the PascalLint engine.
"""

from typing import Optional


class PascalLintError(Exception):
    """Base class for all engine errors."""


class NotInitializedError(PascalLintError):
    """The parser (or linter) was used before a successful ``initialize``."""

    def __init__(self, message: str = "Parser not initialized. Call initialize() first."):
        super().__init__(message)


class GrammarLoadError(PascalLintError):
    """The grammar could not be located or loaded."""

    def __init__(self, location: Optional[str], reason: str):
        self.location = location
        self.reason = reason
        where = location if location else "<default>"
        super().__init__(f"Pascal grammar could not be loaded from {where}: {reason}")


class ConfigParseError(PascalLintError):
    """A workspace configuration file exists but cannot be used."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse config at {path}: {reason}")


class FixConflictError(PascalLintError):
    """Two fixes in one application pass touch overlapping ranges."""

    def __init__(self, first, second, first_fix=None, second_fix=None):
        self.first = first
        self.second = second
        # The applied fix may be a suggestion, so issue.fix can be None
        self.first_fix = first_fix if first_fix is not None else first.fix
        self.second_fix = second_fix if second_fix is not None else second.fix
        super().__init__(
            f"Fix for '{second.rule_id}' at {self.second_fix.range.start_offset}-"
            f"{self.second_fix.range.end_offset} overlaps fix for '{first.rule_id}' at "
            f"{self.first_fix.range.start_offset}-{self.first_fix.range.end_offset}"
        )


class TreeReleasedError(PascalLintError):
    """A syntax tree was read or released after it had already been released."""


class RuleError(PascalLintError):
    """A rule raised while building its listener or handling a node."""

    def __init__(self, rule_id: str, file_id: str, cause: BaseException):
        self.rule_id = rule_id
        self.file_id = file_id
        self.cause = cause
        super().__init__(f"Rule '{rule_id}' failed on {file_id}: {cause}")
