"""
Pydantic models for gcd configuration.

Defines all configuration schemas using Pydantic v2 for validation,
defaults, and serialization.
"""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


def default_config_dir() -> Path:
    """Directory holding config.yaml and the index file.

    $GCD_HOME, else $XDG_CONFIG_HOME/gcd, else ~/.config/gcd.
    """
    if gcd_home := os.environ.get("GCD_HOME"):
        return Path(gcd_home).expanduser()
    if xdg := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg).expanduser() / "gcd"
    return Path.home() / ".config" / "gcd"


def default_index_file() -> Path:
    return default_config_dir() / "index.json"


class IndexConfig(BaseModel):
    """Repository indexing configuration."""

    file: Path = Field(
        default_factory=default_index_file,
        description="Location of the JSON index file",
    )
    markers: list[str] = Field(
        default_factory=lambda: [".git"],
        description=(
            "Directory names that mark a working-directory root "
            "(e.g.: ['.git', '.hg', '.svn'])"
        ),
    )
    exclude_dirs: list[str] = Field(
        default_factory=lambda: ["node_modules", "target"],
        description="Glob patterns of directories never traversed while scanning",
    )

    @field_validator("file")
    @classmethod
    def _expand_file(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("markers")
    @classmethod
    def _markers_not_empty(cls, v: list[str]) -> list[str]:
        cleaned = [m for m in (s.strip() for s in v) if m]
        if not cleaned:
            raise ValueError("at least one marker directory is required")
        return cleaned

    model_config = {"extra": "forbid"}


class MatchConfig(BaseModel):
    """Query resolution configuration."""

    tie_break: Literal["auto", "report"] = Field(
        default="auto",
        description=(
            "'auto' picks a deterministic winner among tied candidates; "
            "'report' fails listing the tied candidates."
        ),
    )

    model_config = {"extra": "forbid"}


class LoggingConfig(BaseModel):
    """Logging system configuration."""

    level: Literal["debug", "info", "warn", "error"] = "warn"
    file: Path | None = None
    verbose: int = 0

    model_config = {"extra": "forbid"}


class AppConfig(BaseModel):
    """Full application configuration."""

    index: IndexConfig = Field(default_factory=IndexConfig)
    match: MatchConfig = Field(default_factory=MatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "forbid"}
