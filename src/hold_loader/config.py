"""Run configuration and input validation.

The hold loader engine trusts its inputs.  Everything that comes from a
user (YAML files, interactive prompts, command-line flags) passes through
the pydantic models here first, so non-positive or non-finite values never
reach ``HoldLoader``.

Example YAML::

    hold:
      hold_volume: 1000
      window_width: 10
      window_height: 10
    bars:
      - {width: 5, length: 5, height: 5}
      - {width: 20, length: 5, height: 5}
    generator:
      count: 15
      seed: 42
    strict: false
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class ConfigError(Exception):
    """Configuration could not be loaded or validated.

    Attributes:
        message: The primary error message
        error_type: Category of error (file_not_found, yaml_parse, validation)
        path: Path to the configuration file (if applicable)
        details: Per-field validation errors as {"path": ..., "message": ...}
    """

    def __init__(
        self,
        message: str,
        error_type: str = "unknown",
        path: Path | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.message = message
        self.error_type = error_type
        self.path = path
        self.details = details or []
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


# ─────────────────────────────────────────────────────────────────────────────
# Models
# ─────────────────────────────────────────────────────────────────────────────

class HoldSettings(BaseModel):
    """Hold capacity and access window."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    hold_volume: float = Field(gt=0)
    window_width: float = Field(gt=0)
    window_height: float = Field(gt=0)


class BarSpec(BaseModel):
    """Raw extents of one incoming bar."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    width: float = Field(gt=0)
    length: float = Field(gt=0)
    height: float = Field(gt=0)

    @property
    def dims(self) -> tuple[float, float, float]:
        return (self.width, self.length, self.height)

    @property
    def volume(self) -> float:
        return self.width * self.length * self.height


class GeneratorSettings(BaseModel):
    """Random bar stream settings."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    count: int = Field(default=15, gt=0)
    seed: int | None = None
    min_dim: float = Field(default=1.0, gt=0)
    max_dim: float = Field(default=30.0, gt=0)

    @model_validator(mode="after")
    def _check_range(self) -> GeneratorSettings:
        if self.min_dim > self.max_dim:
            raise ValueError(
                f"min_dim ({self.min_dim}) must not exceed max_dim ({self.max_dim})"
            )
        return self


class RunConfig(BaseModel):
    """Everything needed for one loading session."""

    model_config = ConfigDict(extra="forbid")

    hold: HoldSettings
    bars: list[BarSpec] = Field(default_factory=list)
    generator: GeneratorSettings | None = None
    strict: bool = False
    results_dir: str | None = None
    notify: bool = False


# ─────────────────────────────────────────────────────────────────────────────
# Loading
# ─────────────────────────────────────────────────────────────────────────────

def _format_field_path(loc: tuple[str | int, ...]) -> str:
    """Format a pydantic location tuple as ``bars[1].width``."""
    parts: list[str] = []
    for segment in loc:
        if isinstance(segment, int):
            if parts:
                parts[-1] = f"{parts[-1]}[{segment}]"
            else:
                parts.append(f"[{segment}]")
        else:
            parts.append(str(segment))
    return ".".join(parts)


def validation_details(error: ValidationError) -> list[dict[str, Any]]:
    """Flatten a pydantic ``ValidationError`` into path/message pairs."""
    return [
        {"path": _format_field_path(tuple(err["loc"])), "message": err["msg"]}
        for err in error.errors()
    ]


def load_config_from_dict(data: Any, path: Path | None = None) -> RunConfig:
    """
    Validate an already-parsed configuration mapping.

    Raises:
        ConfigError: If ``data`` is not a mapping or fails validation.
    """
    if not isinstance(data, dict):
        raise ConfigError(
            "Configuration must be a mapping at the top level",
            error_type="validation",
            path=path,
        )
    try:
        return RunConfig.model_validate(data)
    except ValidationError as exc:
        details = validation_details(exc)
        summary = "; ".join(f"{d['path']}: {d['message']}" for d in details)
        raise ConfigError(
            f"Invalid configuration: {summary}",
            error_type="validation",
            path=path,
            details=details,
        ) from exc


def load_config(path: Path | str) -> RunConfig:
    """
    Load and validate a YAML run configuration.

    Raises:
        ConfigError: With ``error_type`` file_not_found, yaml_parse or
            validation.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(
            f"Configuration file not found: {path}",
            error_type="file_not_found",
            path=path,
        )

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Could not parse {path}: {exc}",
            error_type="yaml_parse",
            path=path,
        ) from exc

    return load_config_from_dict(data, path=path)
