import json
from pathlib import Path

import pytest

from format_converter.domain.configuration import (
    ConverterSettings,
    load_settings,
    with_cli_overrides,
)


def test_defaults_without_file_or_environment() -> None:
    settings = load_settings(environ={})
    assert settings.options.name == "data_table"
    assert settings.options.indent == 2
    assert settings.options.varchar_length == 255
    assert settings.options.infer_types is True
    assert settings.logging.level == "WARNING"


def test_load_settings_reads_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "converter.yaml"
    config_path.write_text(
        "options:\n  name: people\n  varchar_length: 80\n  infer_types: false\nlogging:\n  level: debug\n",
        encoding="utf-8",
    )
    settings = load_settings(config_path, environ={})
    assert settings.options.name == "people"
    assert settings.options.varchar_length == 80
    assert settings.options.infer_types is False
    assert settings.options.indent == 2
    assert settings.logging.level == "DEBUG"


def test_load_settings_reads_json_from_environment(tmp_path: Path) -> None:
    config_path = tmp_path / "converter.json"
    config_path.write_text(json.dumps({"options": {"indent": 4}}), encoding="utf-8")
    settings = load_settings(environ={"FORMAT_CONVERTER_CONFIG": str(config_path)})
    assert settings.options.indent == 4


def test_environment_overrides_file(tmp_path: Path) -> None:
    config_path = tmp_path / "converter.json"
    config_path.write_text(json.dumps({"options": {"name": "from_file"}}), encoding="utf-8")
    environ = {
        "FORMAT_CONVERTER_TABLE_NAME": "from_env",
        "FORMAT_CONVERTER_INDENT": "0",
        "FORMAT_CONVERTER_LOG_LEVEL": "info",
    }
    settings = load_settings(config_path, environ=environ)
    assert settings.options.name == "from_env"
    assert settings.options.indent == 0
    assert settings.logging.level == "INFO"


@pytest.mark.parametrize(
    "content, message",
    [
        ("[1, 2]", "must contain a mapping"),
        ("{not json", "Invalid JSON"),
        ('{"options": {"indent": "wide"}}', "'indent' must be an integer"),
        ('{"logging": {"level": "LOUD"}}', "Unknown log level"),
    ],
)
def test_invalid_config_files(tmp_path: Path, content: str, message: str) -> None:
    config_path = tmp_path / "converter.json"
    config_path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError, match=message):
        load_settings(config_path, environ={})


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Cannot read config file"):
        load_settings(tmp_path / "absent.yaml", environ={})


def test_empty_yaml_file_keeps_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "empty.yml"
    config_path.write_text("", encoding="utf-8")
    assert load_settings(config_path, environ={}) == ConverterSettings()


def test_with_cli_overrides_ignores_none() -> None:
    settings = ConverterSettings()
    updated = with_cli_overrides(settings, {"name": "orders", "indent": None, "log_level": "error"})
    assert updated.options.name == "orders"
    assert updated.options.indent == 2
    assert updated.logging.level == "ERROR"
    assert settings.options.name == "data_table"


def test_to_dict() -> None:
    data = ConverterSettings().to_dict()
    assert data["options"]["name"] == "data_table"
    assert data["logging"]["level"] == "WARNING"
    assert data["version"] == "1.0.0"
