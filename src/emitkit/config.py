"""Configuration loading and validation for emitkit."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
import logging
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    field_validator,
)

from .exceptions import ConfigValidationError

import tomllib  # stdlib since Python 3.11 (project requires >=3.11)

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "emitkit"
CONFIG_PATH = CONFIG_DIR / "config.toml"

VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class EmitterConfig(BaseModel):
    """Behavior switches for a single emitter.

    ``separator`` turns ``"a b"`` into two channels on subscribe/unsubscribe.
    ``wildcard`` names the channel that receives every publish; ``False`` or
    ``None`` disables the fan-out. ``enrich_events`` lets objects with a
    ``type`` attribute be published directly.
    """

    model_config = ConfigDict(frozen=True)
    separator: str | None = None
    wildcard: str | None = "*"
    enrich_events: bool = True
    thread_safe: bool = True

    @field_validator("separator", mode="before")
    @classmethod
    def _validate_separator(cls, value: Any) -> str | None:
        if value is None or value is False:
            return None
        if not isinstance(value, str):
            raise ValueError("separator must be a string.")
        # Whitespace is a legitimate separator, so only reject the empty string.
        if not value:
            raise ValueError("separator must not be empty.")
        return value

    @field_validator("wildcard", mode="before")
    @classmethod
    def _validate_wildcard(cls, value: Any) -> str | None:
        if value is None or value is False:
            return None
        if not isinstance(value, str):
            raise ValueError("wildcard must be a string or false.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("wildcard must not be empty.")
        return normalized


class LoggingConfig(BaseModel):
    """Logging behavior and output destinations."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: str = "~/.local/state/emitkit/emitkit.log"

    @field_validator("level", mode="before")
    @classmethod
    def _validate_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Unsupported log level {normalized!r}.")
        return normalized

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _validate_log_file_path(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("log_file_path must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("log_file_path must not be empty.")
        return normalized


class Config(BaseModel):
    """Root configuration model for all sections."""

    emitter: EmitterConfig = EmitterConfig()
    logging: LoggingConfig = LoggingConfig()


DEFAULT_EMITTER_CONFIG = EmitterConfig()
DEFAULT_CONFIG: dict[str, dict[str, Any]] = Config().model_dump()


def coerce_emitter_config(
    value: EmitterConfig | Mapping[str, Any] | None,
) -> EmitterConfig:
    """Return an EmitterConfig for ``value``; mappings are validated."""
    if value is None:
        return DEFAULT_EMITTER_CONFIG
    if isinstance(value, EmitterConfig):
        return value
    if not isinstance(value, Mapping):
        raise ConfigValidationError(
            f"Emitter config must be an EmitterConfig or a mapping, got {type(value).__name__}."
        )
    try:
        return EmitterConfig.model_validate(dict(value))
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid emitter config: {exc}") from exc


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override values onto base values."""
    merged: dict[str, Any] = deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _safe_default_config() -> dict[str, dict[str, Any]]:
    """Return a deep copy of validated default config data."""
    return deepcopy(DEFAULT_CONFIG)


def _validate_config(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Validate merged config and fallback to safe defaults when possible."""
    try:
        config = Config.model_validate(raw)
        return config.model_dump()
    except ValidationError as exc:
        LOGGER.warning("Configuration validation failed, using safe defaults: %s", exc)
        return _safe_default_config()
    except Exception as exc:  # noqa: BLE001 - unexpected model construction failure.
        raise ConfigValidationError(f"Unable to validate configuration: {exc}") from exc


def load_config(config_path: Path | None = None) -> dict[str, dict[str, Any]]:
    """
    Load configuration from TOML, merge with defaults, and validate.

    A missing file is not an error: the defaults are returned unchanged.
    """
    target_path = config_path or CONFIG_PATH

    raw_data: Any = {}
    if target_path.exists():
        try:
            raw_data = tomllib.loads(target_path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            LOGGER.warning("Failed to parse config at %s: %s", target_path, exc)
            raw_data = {}

    merged = (
        _deep_merge(DEFAULT_CONFIG, raw_data)
        if isinstance(raw_data, dict)
        else _safe_default_config()
    )
    return _validate_config(merged)


def load_emitter_config(config_path: Path | None = None) -> EmitterConfig:
    """Convenience wrapper returning only the validated ``[emitter]`` section."""
    return EmitterConfig.model_validate(load_config(config_path)["emitter"])
