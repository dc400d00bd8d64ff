"""Configuration loading and validation.

This module is responsible for:

- Loading `.env` into the process environment (without overriding existing vars).
- Converting environment variables into a strongly-typed Pydantic model.
- Validating values and providing actionable error messages.
"""

import logging
import os
from pathlib import Path
from typing import Literal

import dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "data-capture"


def _get_env_str(name: str, default: str) -> str:
    """Read a string env var with a default (blank counts as unset)."""
    value = os.getenv(name, "").strip()
    return value or default


def _get_env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    """Read an env var restricted to a fixed set of values (case-insensitive)."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    normalized = raw.strip().lower()
    if normalized not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}. Got: {raw!r}")
    return normalized


class CaptureConfig(BaseModel):
    """Configuration for where and how captured records are written."""

    model_config = ConfigDict(frozen=True)

    data_dir: Path = Field(default=DEFAULT_DATA_DIR, description="Persistent application data directory")
    attempt_id: str = Field(default="local", description="Run/attempt identifier")
    sink_format: Literal["jsonl", "duckdb"] = Field(default="jsonl", description="Output format")
    log_level: str = Field(default="INFO", description="Logging level name")

    @property
    def output_dir(self) -> Path:
        """Directory for this attempt's output files."""
        return self.data_dir / self.attempt_id

    @field_validator("attempt_id")
    def validate_attempt_id(cls, v: str) -> str:
        """Attempt ids become a directory name, so keep them to one path segment."""
        if not v or v in {".", ".."} or "/" in v or "\\" in v:
            raise ValueError(f"CAPTURE_ATTEMPT_ID must be a single path segment. Got: {v!r}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate the level against the stdlib logging names."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"CAPTURE_LOG_LEVEL must be a logging level name (e.g. INFO, DEBUG). Got: {v!r}")
        return level


class Config(BaseModel):
    """Top-level application configuration."""

    capture: CaptureConfig = Field(..., description="Capture configuration")


def load_config() -> Config:
    """Load application configuration from environment variables.

    Notes:
    - Loads the nearest `.env` (searching up from the working directory) so its
      values are visible to the process.
    - Raises `ValueError` with actionable messages for malformed values.
    """
    dotenv.load_dotenv(dotenv.find_dotenv(usecwd=True))

    capture = CaptureConfig(
        data_dir=Path(_get_env_str("CAPTURE_DATA_DIR", str(DEFAULT_DATA_DIR))).expanduser(),
        attempt_id=_get_env_str("CAPTURE_ATTEMPT_ID", "local"),
        sink_format=_get_env_choice("CAPTURE_FORMAT", "jsonl", ("jsonl", "duckdb")),  # type: ignore[arg-type]
        log_level=_get_env_str("CAPTURE_LOG_LEVEL", "INFO"),
    )
    return Config(capture=capture)
