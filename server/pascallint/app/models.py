from typing import Any, Dict, List, Optional, Literal

from pydantic import BaseModel, Field

# ---- Lint ----

class LintRequest(BaseModel):
    """Lint one document."""
    text: str
    file_id: str  # Absolute path of the file (cache key)
    workspace_id: Optional[str] = None  # Workspace root whose config applies
    version: Optional[int] = None  # Monotonic document version

class LintResponse(BaseModel):
    file_id: str
    issues: List[Dict[str, Any]] = []  # Issue.to_dict() wire shape
    error_count: int = 0
    warning_count: int = 0
    took_ms: int = 0

# ---- Fix ----

class FixRequest(BaseModel):
    """Apply every available fix to one document."""
    text: str
    file_id: str
    workspace_id: Optional[str] = None
    max_passes: int = Field(default=10, ge=1, le=50)
    strict: bool = False  # Fail on overlapping fixes instead of skipping

class FixResponse(BaseModel):
    file_id: str
    text: str  # Fixed text
    applied: int  # Number of fixes applied across all passes
    passes: int
    issues: List[Dict[str, Any]] = []  # Issues remaining after fixing

# ---- Config and cache ----

class ConfigReloadRequest(BaseModel):
    workspace_id: str

class ConfigReloadResponse(BaseModel):
    workspace_id: str
    config: Dict[str, Any]  # Effective rules, ignorePatterns, parserOptions
    source: Optional[str] = None  # Config file it came from, None for defaults

class CacheClearRequest(BaseModel):
    file_id: Optional[str] = None  # None clears every file

class CacheClearResponse(BaseModel):
    cleared: Literal["file", "all"]
    file_id: Optional[str] = None

class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    version: str
    engine: Literal["tree-sitter", "unavailable"]
    rules: int
    cached_files: int
    timestamp: int
