"""Configuration for the HTML builder, loaded from environment variables and .env."""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Parser and renderer settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Deepest element nesting the tree builder accepts. Each level is one
    # Python stack frame, so keep this well under sys.getrecursionlimit().
    max_depth: int = Field(default=500, ge=1, alias="HTML_BUILDER_MAX_DEPTH")

    # Attribute order in serialized output: insertion order unless sorted
    sort_attributes: bool = Field(default=False, alias="HTML_BUILDER_SORT_ATTRIBUTES")

    log_level: str = Field(default="INFO", alias="HTML_BUILDER_LOG_LEVEL")
    cache_dir: Path = Field(default=Path("./template_cache"), alias="HTML_BUILDER_CACHE_DIR")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
