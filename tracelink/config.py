"""Configuration loading: explicit overrides > environment > TOML file > defaults."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from tracelink.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "tracelink.toml"
ENV_PREFIX = "TRACELINK_"


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class TracingConfig(_Section):
    service_name: str = "tracelink"
    header_name: str = Field("traceparent", min_length=1)
    strict_lifecycle: bool = True


class CollectorConfig(_Section):
    drain_interval_millis: int = Field(1000, gt=0)
    max_export_batch_size: int = Field(512, gt=0)


class ExportersConfig(_Section):
    enable_console: bool = True
    enable_logging: bool = False


class ServerConfig(_Section):
    host: str = "127.0.0.1"
    port: int = Field(8080, ge=1, le=65535)
    span_name: str = "hello handler"


class ClientConfig(_Section):
    url: str = "http://127.0.0.1:8080"
    request_interval_millis: int = Field(5000, gt=0)
    timeout_seconds: float = Field(10.0, gt=0)
    span_name: str = "Request hello API"


class LoggingConfig(_Section):
    debug: bool = False
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown logging level: {value}")
        return level


class TracelinkConfig(_Section):
    tracing: TracingConfig = Field(default_factory=TracingConfig)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)
    exporters: ExportersConfig = Field(default_factory=ExportersConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# env var suffix -> (section, key)
ENV_VARS: Dict[str, Tuple[str, str]] = {
    "SERVICE_NAME": ("tracing", "service_name"),
    "HEADER_NAME": ("tracing", "header_name"),
    "STRICT_LIFECYCLE": ("tracing", "strict_lifecycle"),
    "DRAIN_INTERVAL_MILLIS": ("collector", "drain_interval_millis"),
    "MAX_EXPORT_BATCH_SIZE": ("collector", "max_export_batch_size"),
    "ENABLE_CONSOLE": ("exporters", "enable_console"),
    "ENABLE_LOGGING": ("exporters", "enable_logging"),
    "SERVER_HOST": ("server", "host"),
    "SERVER_PORT": ("server", "port"),
    "CLIENT_URL": ("client", "url"),
    "REQUEST_INTERVAL_MILLIS": ("client", "request_interval_millis"),
    "TIMEOUT_SECONDS": ("client", "timeout_seconds"),
    "DEBUG": ("logging", "debug"),
    "LOG_LEVEL": ("logging", "level"),
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _convert_env_value(section: str, key: str, raw: str) -> Any:
    """Convert env strings to the type of the matching config field."""
    section_model = TracelinkConfig.model_fields[section].annotation
    annotation = section_model.model_fields[key].annotation
    if annotation is bool:
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ConfigError("Invalid boolean in environment", {"key": key, "value": raw})
    if annotation is int:
        try:
            return int(raw)
        except ValueError:
            raise ConfigError("Invalid integer in environment", {"key": key, "value": raw}) from None
    if annotation is float:
        try:
            return float(raw)
        except ValueError:
            raise ConfigError("Invalid number in environment", {"key": key, "value": raw}) from None
    return raw


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def find_config_file() -> Optional[str]:
    """Look for tracelink.toml in the working directory, then the user config dir."""
    candidates = [
        Path.cwd() / CONFIG_FILE_NAME,
        Path.home() / ".config" / "tracelink" / CONFIG_FILE_NAME,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return str(candidate)
    return None


def load_toml_config(path: str) -> Dict[str, Any]:
    """
    Load a TOML config file.

    Returns:
        Parsed nested dict, or {} if the file does not exist

    Raises:
        ConfigError: if the file is not valid TOML
    """
    config_path = Path(path)
    if not config_path.is_file():
        return {}
    try:
        with config_path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError("Invalid TOML config file", {"path": path, "error": exc}) from exc


def load_config_from_env(flat: bool = False) -> Dict[str, Any]:
    """
    Read TRACELINK_* environment variables.

    Args:
        flat: return {key: value} instead of {section: {key: value}}
    """
    nested: Dict[str, Dict[str, Any]] = {}
    flat_values: Dict[str, Any] = {}
    for suffix, (section, key) in ENV_VARS.items():
        raw = os.environ.get(ENV_PREFIX + suffix)
        if raw is None:
            continue
        value = _convert_env_value(section, key, raw)
        nested.setdefault(section, {})[key] = value
        flat_values[key] = value
    return flat_values if flat else nested


def _merged_sources(
    config_file: Optional[str],
    overrides: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    path = config_file or find_config_file()
    merged: Dict[str, Any] = load_toml_config(path) if path else {}
    if path and merged:
        logger.debug("Loaded config file %s", path)
    merged = _deep_merge(merged, load_config_from_env())
    if overrides:
        merged = _deep_merge(merged, overrides)
    return merged


def load_config(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> TracelinkConfig:
    """
    Build the effective configuration.

    Raises:
        ConfigError: if the merged values do not validate
    """
    merged = _merged_sources(config_file, overrides)
    try:
        return TracelinkConfig.model_validate(merged)
    except PydanticValidationError as exc:
        raise ConfigError("Invalid configuration", {"errors": exc.error_count(), "detail": exc}) from exc


def validate_config(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Tuple[bool, str, Optional[TracelinkConfig]]:
    """Return (is_valid, message, config or None) without raising."""
    try:
        config = load_config(config_file=config_file, overrides=overrides)
    except ConfigError as exc:
        return False, str(exc), None
    return True, "ok", config


def configure_logging(config: TracelinkConfig) -> None:
    """Configure root logging from the [logging] section."""
    level = logging.DEBUG if config.logging.debug else getattr(logging, config.logging.level)
    logging.basicConfig(
        level=level,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
