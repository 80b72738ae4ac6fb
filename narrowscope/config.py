"""Configuration management with Pydantic settings."""

import shlex
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SplitStyle = Literal["perl", "semicolon", "space", "none"]

DEFAULT_PROJECT_MARKERS = (".git", ".hg", ".svn", ".project", ".projectile")


class Settings(BaseSettings):
    """narrowscope configuration settings.

    Precedence: CLI flag > environment variable > config file > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="NARROWSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Indexer program
    program: str = Field(
        default="cscope",
        description="Name or path of the cscope executable",
    )

    args: str = Field(
        default="",
        description="Extra static arguments passed before the query (shell quoting allowed)",
    )

    database: str = Field(
        default="cscope.out",
        description="Index file, absolute or relative to the working directory/project root",
    )

    # Result formatting
    max_columns: int = Field(
        default=300,
        ge=10,
        description="Maximum number of content characters shown per candidate",
    )

    # Narrowing syntax
    split_style: SplitStyle = Field(
        default="perl",
        description="How raw input is split into pattern and filter text",
    )

    prefill_input: bool = Field(
        default=False,
        description="Pre-populate typed text as initial input instead of forward history",
    )

    # Database lookup
    project_root_discovery: bool = Field(
        default=True,
        description="Fall back to the project root when looking up the database",
    )

    project_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PROJECT_MARKERS),
        description="File or directory names marking a project root",
    )

    # Subprocess supervision
    io_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Kill a search whose output stalls for longer than this (seconds)",
    )

    stderr_limit: int = Field(
        default=4096,
        ge=0,
        description="Bytes of subprocess stderr kept for error reporting",
    )

    @field_validator("program")
    def _validate_program(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("program must not be empty")
        return value.strip()

    def get_args(self) -> list[str]:
        """Return the configured static arguments as an argv fragment."""
        try:
            return shlex.split(self.args)
        except ValueError as exc:
            raise ValueError(f"Invalid quoting in configured args: {self.args!r}") from exc


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (useful for testing)."""
    global _settings
    _settings = settings
