"""
Runtime settings schema.

Frozen dataclasses parsed from the YAML settings file by ``loader``.
Each section validates itself in ``__post_init__`` so that a bad value
fails at load time rather than deep inside a use case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

VALID_DIALECT_PREFIXES = ("postgresql", "sqlite")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseSettings:
    """Engine parameters; see ``sgpc_kernel.db.engine.init_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def __post_init__(self):
        if not self.url.startswith(VALID_DIALECT_PREFIXES):
            raise ValueError(
                f"database.url must start with one of {VALID_DIALECT_PREFIXES}, "
                f"got {self.url.split(':', 1)[0]!r}"
            )
        for name in ("pool_size", "pool_timeout", "pool_recycle"):
            if getattr(self, name) <= 0:
                raise ValueError(f"database.{name} must be positive")
        if self.max_overflow < 0:
            raise ValueError("database.max_overflow cannot be negative")


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"

    def __post_init__(self):
        if self.level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {VALID_LOG_LEVELS}, got {self.level!r}"
            )

    @property
    def level_number(self) -> int:
        return logging.getLevelName(self.level.upper())


@dataclass(frozen=True)
class CostSettings:
    """Rounding and status rules for the cost rollup."""

    # Places kept for project progress and budget usage percentages
    progress_decimal_places: int = 2
    usage_decimal_places: int = 2
    # Progress assigned when a task at 0% or 100% is moved to EM_ANDAMENTO
    in_progress_default_percentage: int = 50

    def __post_init__(self):
        for name in ("progress_decimal_places", "usage_decimal_places"):
            if not 0 <= getattr(self, name) <= 9:
                raise ValueError(f"costs.{name} must be between 0 and 9")
        if not 0 < self.in_progress_default_percentage < 100:
            raise ValueError(
                "costs.in_progress_default_percentage must be between 1 and 99"
            )


@dataclass(frozen=True)
class SgpcSettings:
    """The complete runtime settings artifact."""

    config_id: str
    database: DatabaseSettings
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    costs: CostSettings = field(default_factory=CostSettings)
