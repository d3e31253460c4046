"""⚙️ Configuration - Pydantic models for sqlweld settings.

Settings come from three places, lowest priority first:
- Defaults on WeldConfig
- sqlweld.yaml at the template root (or an explicit --config file)
- CLI flags, applied with WeldConfig.with_overrides()

Environment variables (SQLWELD_*) pick the config file, worker count and
log level.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

CONFIG_FILENAMES = ("sqlweld.yaml", "sqlweld.yml")

DEFAULT_HEADER = "Autogenerated by sqlweld"


class WeldConfig(BaseModel):
    """Complete sqlweld configuration.

    Example YAML:
        query_suffixes: [".sql.tmpl"]
        partial_suffixes: [".partial.sql.tmpl", ".partial.tmpl"]
        macro_suffixes: [".macros.sql.tmpl", ".macros.tmpl"]
        partials_dir: shared
        output_dir: build/sql
        extension: sql
        header: |
          Autogenerated by sqlweld
          Do not edit by hand
        context:
          schema: app
        workers: 4
    """

    model_config = ConfigDict(extra="forbid")

    # File classification, checked macro -> partial -> query
    query_suffixes: list[str] = Field(
        default_factory=lambda: [".sql.tmpl"],
        description="Suffixes of templates rendered to their own output",
    )
    partial_suffixes: list[str] = Field(
        default_factory=lambda: [".partial.sql.tmpl", ".partial.tmpl"],
        description="Suffixes of reusable fragments",
    )
    macro_suffixes: list[str] = Field(
        default_factory=lambda: [".macros.sql.tmpl", ".macros.tmpl"],
        description="Suffixes of macro-only modules",
    )

    # Resolution
    partials_dir: str | None = Field(
        default="partials",
        description="Shared directory searched after the importer's ancestors",
    )

    # Output
    output_dir: Path | None = Field(
        default=None,
        description="Write outputs here instead of beside each template",
    )
    extension: str = Field(default="sql", description="Output file extension")
    header: str = Field(
        default=DEFAULT_HEADER,
        description="Header comment added to outputs (empty to disable)",
    )

    # Rendering
    context: dict[str, Any] = Field(
        default_factory=dict, description="Extra variables for every template"
    )
    workers: int | None = Field(
        default=None, ge=1, description="Render pool size (default: CPU count)"
    )

    # Discovery
    include_ignored: bool = Field(
        default=False,
        description="Also walk hidden and .gitignore'd files",
    )

    verbose: bool = Field(default=False, description="Log every processed file")

    @field_validator("query_suffixes", "partial_suffixes", "macro_suffixes")
    @classmethod
    def _check_suffixes(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one suffix is required")
        for suffix in value:
            if not suffix.startswith(".") or len(suffix) < 2:
                raise ValueError(f"suffix must start with '.': {suffix!r}")
        # Longest first so '.partial.sql.tmpl' wins over '.sql.tmpl'
        return sorted(value, key=len, reverse=True)

    @field_validator("extension")
    @classmethod
    def _strip_extension_dot(cls, value: str) -> str:
        value = value.strip().lstrip(".")
        if not value:
            raise ValueError("extension must not be empty")
        return value

    @field_validator("partials_dir")
    @classmethod
    def _normalize_partials_dir(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.replace("\\", "/").strip("/")
        return value or None

    @classmethod
    def from_yaml(cls, path: Path | str) -> "WeldConfig":
        """Load configuration from a YAML file."""
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must be a mapping")
        return cls.from_dict(data, source=str(path))

    @classmethod
    def from_dict(cls, data: dict, source: str = "config") -> "WeldConfig":
        """Create from a dictionary."""
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid {source}: {e}") from e

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to a YAML file."""
        data = self.model_dump(mode="json", exclude_defaults=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)

    def with_overrides(self, **overrides: Any) -> "WeldConfig":
        """Return a copy with non-None overrides applied and re-validated."""
        update = {k: v for k, v in overrides.items() if v is not None}
        if not update:
            return self
        data = self.model_dump()
        if "context" in update:
            data["context"] = {**self.context, **update.pop("context")}
        data.update(update)
        return self.from_dict(data, source="options")

    @property
    def worker_count(self) -> int:
        """Resolved render pool size."""
        if self.workers:
            return self.workers
        return os.cpu_count() or 1


class Settings(BaseSettings):
    """Environment-based settings."""

    model_config = SettingsConfigDict(env_prefix="SQLWELD_", case_sensitive=False)

    config: Path | None = Field(default=None, description="Config file path")
    workers: int | None = Field(default=None, ge=1)
    log_level: str = Field(default="WARNING")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings from environment."""
    return Settings()


def load_config(root: Path | str, path: Path | str | None = None) -> WeldConfig:
    """Load configuration for a template tree.

    Args:
        root: Template root directory
        path: Explicit config file (overrides discovery)

    Returns:
        WeldConfig from the explicit file, or sqlweld.yaml/.yml at the root,
        or defaults if none exists
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return WeldConfig.from_yaml(path)

    root = Path(root)
    for filename in CONFIG_FILENAMES:
        candidate = root / filename
        if candidate.exists():
            return WeldConfig.from_yaml(candidate)

    return WeldConfig()
