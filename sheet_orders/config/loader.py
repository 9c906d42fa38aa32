from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..services.collaborators import FileFilter

"""Config loader.

Responsibilities:
- Load the YAML config (config/sheet_orders.yml, or $SHEET_ORDERS_CONFIG)
- Validate it against the bundled config_schema.json
- Apply defaults for everything the file leaves out
"""

__all__ = [
    "ConfigError",
    "AppConfig",
    "load_config",
    "resolve_config_path",
    "DEFAULT_CONFIG_PATH",
    "CONFIG_ENV_VAR",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/sheet_orders.yml")
CONFIG_ENV_VAR = "SHEET_ORDERS_CONFIG"

DEFAULT_OUTPUT_NAME = "output.xlsx"
DEFAULT_SHEET_NAME = "工作表1"
DEFAULT_OPEN_FILTERS: tuple[FileFilter, ...] = (FileFilter("Excel 文件", ("xlsx", "xls")),)
DEFAULT_SAVE_FILTERS: tuple[FileFilter, ...] = (FileFilter("Excel 文件", ("xlsx",)),)


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class AppConfig:
    default_output_name: str = DEFAULT_OUTPUT_NAME
    sheet_name: str = DEFAULT_SHEET_NAME  # 导出工作表名
    open_filters: tuple[FileFilter, ...] = DEFAULT_OPEN_FILTERS
    save_filters: tuple[FileFilter, ...] = DEFAULT_SAVE_FILTERS
    mapping_preset: dict[str, Any] = field(default_factory=dict)
    source: Path | None = None  # None = built-in defaults


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the data violates
            the schema (unknown keys, wrong types, unknown fields in
            mapping_preset)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _filters(raw: list[dict[str, Any]] | None, default: tuple[FileFilter, ...]) -> tuple[FileFilter, ...]:
    if raw is None:
        return default
    return tuple(FileFilter(item["name"], tuple(item["extensions"])) for item in raw)


def resolve_config_path(path: Path | None = None) -> tuple[Path, bool]:
    """Return the config path to use and whether it was requested explicitly."""
    if path is not None:
        return Path(path), True
    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env), True
    return DEFAULT_CONFIG_PATH, False


def load_config(path: Path | None = None) -> AppConfig:
    config_path, explicit = resolve_config_path(path)
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {config_path}")
        return AppConfig()
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {config_path}")

    _validate_config_schema(data)

    output = data.get("output", {})
    return AppConfig(
        default_output_name=output.get("default_name", DEFAULT_OUTPUT_NAME),
        sheet_name=output.get("sheet_name", DEFAULT_SHEET_NAME),
        open_filters=_filters(data.get("open_filters"), DEFAULT_OPEN_FILTERS),
        save_filters=_filters(data.get("save_filters"), DEFAULT_SAVE_FILTERS),
        mapping_preset=dict(data.get("mapping_preset") or {}),
        source=config_path,
    )
