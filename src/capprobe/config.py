"""Configuration parsing from ``.capprobe.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from capprobe.builtin import BUILTIN_PROBES

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".capprobe.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_REPORT_FORMATS = frozenset({"terminal", "json"})
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ConfigError(ValueError):
    """Raised when ``.capprobe.yml`` cannot be parsed."""


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


def _name_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    raise ConfigError(f"{key} must be a boolean (got: {value!r})")


@dataclass
class ProbesConfig:
    """Which probes the default registry carries."""

    builtin: bool = True
    """Register the built-in probes."""

    immediate: list[str] = field(default_factory=list)
    """Probe names evaluated right after the registry is created."""

    disabled: list[str] = field(default_factory=list)
    """Built-in probe names to leave out."""


@dataclass
class ReportConfig:
    """Diagnostic report settings."""

    format: str = "terminal"
    """Output format: terminal or json."""

    settle_seconds: float = 1.0
    """How long the CLI waits for asynchronous probes before reporting."""


@dataclass
class LoggingConfig:
    """Logging settings applied by the CLI."""

    level: str = "WARNING"
    """Root log level name."""


@dataclass
class CapProbeConfig:
    """Complete configuration from ``.capprobe.yml``."""

    probes: ProbesConfig = field(default_factory=ProbesConfig)
    """Probe selection."""

    report: ReportConfig = field(default_factory=ReportConfig)
    """Reporting configuration."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    """Logging configuration."""

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""


def _parse_probes_config(raw: dict[str, Any]) -> ProbesConfig:
    """Parse the ``probes`` section."""
    probes_raw = _section(raw, "probes")
    return ProbesConfig(
        builtin=_as_bool(probes_raw.get("builtin", True), "probes.builtin"),
        immediate=_name_list(probes_raw.get("immediate", [])),
        disabled=_name_list(probes_raw.get("disabled", [])),
    )


def _parse_report_config(raw: dict[str, Any]) -> ReportConfig:
    """Parse the ``report`` section."""
    report_raw = _section(raw, "report")
    settle_raw = report_raw.get("settle_seconds", os.environ.get("CAPPROBE_SETTLE_SECONDS", "1.0"))
    try:
        settle_seconds = float(settle_raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"report.settle_seconds must be a number (got: {settle_raw!r})") from exc

    return ReportConfig(
        format=str(report_raw.get("format", os.environ.get("CAPPROBE_REPORT_FORMAT", "terminal"))),
        settle_seconds=settle_seconds,
    )


def _parse_logging_config(raw: dict[str, Any]) -> LoggingConfig:
    """Parse the ``logging`` section."""
    logging_raw = _section(raw, "logging")
    level = logging_raw.get("level", os.environ.get("CAPPROBE_LOG_LEVEL", "WARNING"))
    return LoggingConfig(level=str(level).upper())


def load_config(root: str | Path) -> CapProbeConfig:
    """Load and parse ``.capprobe.yml`` from *root*.

    Falls back to defaults and environment variables when the file is
    missing or incomplete.

    Raises:
        ConfigError: If the file is not valid YAML.
    """
    config_path = Path(root).resolve() / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.is_file():
        text = config_path.read_text(encoding="utf-8")
        try:
            parsed = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        elif parsed is not None:
            logger.warning("Ignoring %s: top level is not a mapping", config_path)

    return CapProbeConfig(
        probes=_parse_probes_config(raw),
        report=_parse_report_config(raw),
        logging=_parse_logging_config(raw),
        raw=raw,
    )


def validate_config(config: CapProbeConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if config.logging.level not in _LOG_LEVELS:
        errors.append(
            f"logging.level must be one of {', '.join(sorted(_LOG_LEVELS))} "
            f"(got: {config.logging.level})"
        )

    if config.report.format not in _REPORT_FORMATS:
        errors.append(
            f"report.format must be one of {', '.join(sorted(_REPORT_FORMATS))} "
            f"(got: {config.report.format})"
        )

    if config.report.settle_seconds < 0:
        errors.append(
            f"report.settle_seconds must be >= 0 (got: {config.report.settle_seconds})"
        )

    errors.extend(
        f"probes.disabled names unknown built-in probe {name!r}"
        for name in config.probes.disabled
        if name not in BUILTIN_PROBES
    )

    overlap = sorted(set(config.probes.immediate) & set(config.probes.disabled))
    if overlap:
        errors.append(f"probes listed as both immediate and disabled: {', '.join(overlap)}")

    return errors
