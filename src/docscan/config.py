from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from docscan.exceptions import ConfigError


class AppConfig(BaseModel):
    """Application-specific configuration values."""

    name: str = "docscan"
    log_level: str = "INFO"
    # "console" for humans, "json" for log shippers
    log_format: Literal["console", "json"] = "console"
    # Transport settings for FastMCP: "stdio" (default), "http", or "sse"
    transport: Literal["stdio", "http", "sse"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000


class SearchConfig(BaseModel):
    """Scan engine configuration values."""

    # Simultaneous in-flight directory listings / file extractions
    concurrency: int = Field(default=5, ge=1, le=32)
    # Per cache: one for workbooks, one for document text
    cache_max_entries: int = Field(default=1000, ge=1)
    # Characters kept on each side of a document match
    context_chars: int = Field(default=50, ge=0)
    # Explicit antiword binary; looked up on PATH when unset
    antiword_path: Optional[str] = None
    filter_legacy_markup: bool = True
    default_file_types: List[Literal["excel", "word"]] = ["excel", "word"]


class Settings(BaseSettings):
    """Top-level settings loaded from environment variables and .env only."""

    model_config = SettingsConfigDict(
        env_prefix="DOCSCAN_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppConfig = AppConfig()
    search: SearchConfig = SearchConfig()


def load_settings() -> Settings:
    """Load settings from environment variables and .env only.

    Raises `docscan.exceptions.ConfigError` when a value fails validation.
    """
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise ConfigError(f"Invalid docscan configuration: {exc}") from exc
