"""
sgpc_config -- single public entrypoint for runtime settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_config()``.  No other component reads settings files or
    environment variables directly.

Architecture position:
    Configuration.  Sits above ``sgpc_kernel`` and below ``sgpc_modules``.
    ``bootstrap()`` hands the parsed sections to the kernel (engine and
    logging); modules receive their section by constructor injection.

Failure modes:
    - ``FileNotFoundError`` -- settings file does not exist.
    - ``ValueError`` -- schema validation failure.

Every successful ``get_active_config()`` call emits a ``config_loaded``
log entry naming the config id, source file and applied overrides.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from sgpc_config.loader import apply_env_overrides, load_yaml_file, parse_settings
from sgpc_config.schema import (
    CostSettings,
    DatabaseSettings,
    LoggingSettings,
    SgpcSettings,
)
from sgpc_kernel.logging_config import configure_logging, get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

__all__ = [
    "CostSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "SgpcSettings",
    "bootstrap",
    "get_active_config",
]


def get_active_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> SgpcSettings:
    """The ONLY public settings entrypoint.

    Args:
        config_path: YAML file to load. Defaults to sgpc_config/sets/default.yaml.
        environ: Environment mapping used for overrides. Defaults to os.environ.

    Returns:
        Frozen ``SgpcSettings``.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        ValueError: If validation fails.
    """
    path = config_path or _DEFAULT_CONFIG_PATH
    raw = load_yaml_file(path)
    merged, applied = apply_env_overrides(raw, os.environ if environ is None else environ)
    settings = parse_settings(merged)

    _logger.info(
        "config_loaded",
        extra={
            "config_id": settings.config_id,
            "config_path": str(path),
            "env_overrides": applied,
        },
    )
    return settings


def bootstrap(settings: SgpcSettings) -> None:
    """Configure logging and initialize the database engine from ``settings``."""
    from sgpc_kernel.db.engine import init_engine_from_settings

    configure_logging(level=settings.logging.level_number)
    init_engine_from_settings(settings.database)
