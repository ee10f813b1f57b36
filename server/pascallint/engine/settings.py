"""
PascalLint engine settings

Configuration management using pydantic settings.
Loads from environment variables with PASCALLINT_ prefix.
"""

from typing import List, Literal, Optional

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine configuration settings.

    Environment variables:
    - PASCALLINT_GRAMMAR_LOCATION: Path to a compiled tree-sitter Pascal grammar
      (shared library). Unset means the grammar bundled with tree-sitter-language-pack.
    - PASCALLINT_LANGUAGE_NAME: Grammar name inside the language pack (default: pascal)
    - PASCALLINT_SLOW_LINT_MS: Lint calls slower than this are logged (default: 500)
    - PASCALLINT_LOG_LEVEL: Log level for the CLI and HTTP service (default: WARNING)
    - PASCALLINT_EXTENSIONS_RAW: Comma-separated Pascal file extensions
    """

    model_config = SettingsConfigDict(
        env_prefix="PASCALLINT_",
        env_file=".env",
        extra="ignore",
    )

    grammar_location: Optional[str] = None
    language_name: str = "pascal"

    slow_lint_ms: int = 500

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"

    extensions_raw: str = ".pas,.dpr,.dpk,.pp,.lpr"

    @computed_field
    @property
    def extensions(self) -> List[str]:
        """Parse comma-separated extensions into a lowercase list."""
        return [v.strip().lower() for v in self.extensions_raw.split(",") if v.strip()]


# Global settings instance
settings = Settings()
