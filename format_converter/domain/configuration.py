"""Configuration models and loading.

Settings are merged in a fixed order:
    1. Built-in defaults
    2. Optional JSON or YAML file (explicit path or ``FORMAT_CONVERTER_CONFIG``)
    3. Environment variables (``FORMAT_CONVERTER_TABLE_NAME``,
       ``FORMAT_CONVERTER_INDENT``, ``FORMAT_CONVERTER_LOG_LEVEL``)
    4. CLI overrides via ``with_cli_overrides``
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .requests import ConversionOptions


CONFIG_VERSION = "1.0.0"
ENV_PREFIX = "FORMAT_CONVERTER_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LoggingSettings:
    """Logging defaults for the CLI and engine."""

    level: str = "WARNING"
    format: str = "%(asctime)s - %(levelname)s - %(message)s"
    redaction_patterns: List[str] = field(
        default_factory=lambda: [
            r"(?i)password\s*[=:]\s*\S+",
            r"(?i)api[_-]?key\s*[=:]\s*\S+",
            r"(?:sk|pk)_[A-Za-z0-9]{16,64}",
        ]
    )


def _default_options() -> ConversionOptions:
    return ConversionOptions(
        name="data_table",
        indent=2,
        varchar_length=255,
        infer_types=True,
        font_size=11.0,
    )


@dataclass(frozen=True)
class ConverterSettings:
    """Aggregated configuration for the engine."""

    version: str = CONFIG_VERSION
    options: ConversionOptions = field(default_factory=_default_options)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def to_dict(self) -> Dict[str, object]:
        return {
            "version": self.version,
            "options": self.options.to_dict(),
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "redaction_patterns": list(self.logging.redaction_patterns),
            },
        }


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read config file {path}: {exc}") from exc
    if path.suffix.lower() in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def _coerce_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{key}' must be an integer, got {value!r}") from exc


def _coerce_level(value: Any) -> str:
    level = str(value).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {value!r}")
    return level


def _apply_mapping(settings: ConverterSettings, data: Mapping[str, Any]) -> ConverterSettings:
    if "options" in data:
        opts = data["options"] or {}
        current = settings.options
        settings = replace(
            settings,
            options=ConversionOptions(
                name=opts.get("name", current.name),
                indent=_coerce_int(opts.get("indent", current.indent), "indent"),
                varchar_length=_coerce_int(
                    opts.get("varchar_length", current.varchar_length), "varchar_length"
                ),
                infer_types=bool(opts.get("infer_types", current.infer_types)),
                font_size=float(opts.get("font_size", current.font_size)),
            ),
        )
    if "logging" in data:
        log = data["logging"] or {}
        current_log = settings.logging
        settings = replace(
            settings,
            logging=LoggingSettings(
                level=_coerce_level(log.get("level", current_log.level)),
                format=log.get("format", current_log.format),
                redaction_patterns=log.get("redaction_patterns", current_log.redaction_patterns),
            ),
        )
    return settings


def _apply_environment(settings: ConverterSettings, environ: Mapping[str, str]) -> ConverterSettings:
    options = settings.options
    table_name = environ.get(f"{ENV_PREFIX}TABLE_NAME")
    if table_name:
        options = replace(options, name=table_name)
    indent = environ.get(f"{ENV_PREFIX}INDENT")
    if indent:
        options = replace(options, indent=_coerce_int(indent, f"{ENV_PREFIX}INDENT"))
    settings = replace(settings, options=options)

    level = environ.get(f"{ENV_PREFIX}LOG_LEVEL")
    if level:
        settings = replace(settings, logging=replace(settings.logging, level=_coerce_level(level)))
    return settings


def load_settings(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ConverterSettings:
    """Build settings from defaults, an optional file and the environment."""
    environ = os.environ if environ is None else environ
    settings = ConverterSettings()

    if path is None and environ.get(f"{ENV_PREFIX}CONFIG"):
        path = Path(environ[f"{ENV_PREFIX}CONFIG"])
    if path is not None:
        settings = _apply_mapping(settings, _read_config_file(Path(path)))

    return _apply_environment(settings, environ)


def with_cli_overrides(settings: ConverterSettings, overrides: Dict[str, object]) -> ConverterSettings:
    """Create new settings with CLI overrides applied (``None`` values are ignored)."""
    options = settings.options
    if overrides.get("name") is not None:
        options = replace(options, name=str(overrides["name"]))
    if overrides.get("indent") is not None:
        options = replace(options, indent=_coerce_int(overrides["indent"], "indent"))

    logging_settings = settings.logging
    if overrides.get("log_level") is not None:
        logging_settings = replace(logging_settings, level=_coerce_level(overrides["log_level"]))

    return replace(settings, options=options, logging=logging_settings)
