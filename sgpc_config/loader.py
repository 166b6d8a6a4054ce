"""
Settings loader (``sgpc_config.loader``).

Responsibility
--------------
Loads the YAML settings file and parses it into the frozen dataclasses of
``sgpc_config.schema``.  Environment overrides are applied here and
nowhere else.  The public entry point is ``sgpc_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid values  -> ``ValueError`` from the schema ``__post_init__``.
* Unknown keys in a section  -> ``ValueError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from sgpc_config.schema import (
    CostSettings,
    DatabaseSettings,
    LoggingSettings,
    SgpcSettings,
)

# env var -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SGPC_DATABASE_URL": ("database", "url"),
    "SGPC_LOG_LEVEL": ("logging", "level"),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def apply_env_overrides(
    data: dict[str, Any], environ: Mapping[str, str]
) -> tuple[dict[str, Any], list[str]]:
    """Return a copy of ``data`` with environment overrides applied.

    Also returns the names of the variables that were applied.
    """
    merged = {
        key: dict(value) if isinstance(value, Mapping) else value
        for key, value in data.items()
    }
    applied: list[str] = []
    for var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            merged.setdefault(section, {})[key] = value
            applied.append(var)
    return merged, applied


def _parse_section(cls: type, data: Mapping[str, Any] | None, section: str):
    data = dict(data or {})
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown keys in {section}: {sorted(unknown)}")
    return cls(**data)


def parse_settings(data: Mapping[str, Any]) -> SgpcSettings:
    """Parse a settings dict (already env-merged) into ``SgpcSettings``."""
    return SgpcSettings(
        config_id=data.get("config_id", "default"),
        database=_parse_section(DatabaseSettings, data["database"], "database"),
        logging=_parse_section(LoggingSettings, data.get("logging"), "logging"),
        costs=_parse_section(CostSettings, data.get("costs"), "costs"),
    )
