"""
Configuration schema (``inventory_config.schema``).

Frozen dataclasses describing the effective configuration.  Field types
drive coercion of environment overrides in ``loader.py``; ``validate()``
methods raise ``ValueError`` with the offending dotted key.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any

from inventory_ledger.domain.limits import QUANTITY_COLUMN_MAX

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def _require_positive(section: str, name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{section}.{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30

    def validate(self) -> None:
        if not isinstance(self.url, str) or not self.url.strip():
            raise ValueError("database.url must be a non-empty string")
        if not isinstance(self.echo, bool):
            raise ValueError(f"database.echo must be a boolean, got {self.echo!r}")
        _require_positive("database", "pool_size", self.pool_size)
        _require_positive("database", "pool_timeout", self.pool_timeout)
        if isinstance(self.max_overflow, bool) or not isinstance(self.max_overflow, int) or self.max_overflow < 0:
            raise ValueError(
                f"database.max_overflow must be a non-negative integer, got {self.max_overflow!r}"
            )


@dataclass(frozen=True)
class LedgerConfig:
    lock_timeout_ms: int = 5000
    code_allocation_attempts: int = 3
    default_page_size: int = 20
    max_page_size: int = 100
    max_remarks_length: int = 1000
    max_actor_length: int = 450
    max_quantity: int = QUANTITY_COLUMN_MAX

    def validate(self) -> None:
        for f in fields(self):
            _require_positive("ledger", f.name, getattr(self, f.name))
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"ledger.default_page_size ({self.default_page_size}) exceeds "
                f"ledger.max_page_size ({self.max_page_size})"
            )
        if self.max_quantity > QUANTITY_COLUMN_MAX:
            raise ValueError(
                f"ledger.max_quantity ({self.max_quantity}) exceeds the column "
                f"maximum ({QUANTITY_COLUMN_MAX})"
            )


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    def validate(self) -> None:
        if not isinstance(self.level, str) or self.level.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {sorted(_LOG_LEVELS)}, got {self.level!r}"
            )

    @property
    def level_number(self) -> int:
        return logging.getLevelName(self.level.upper())


@dataclass(frozen=True)
class InventoryLedgerConfig:
    """The effective configuration.  ``checksum`` identifies its content."""

    database: DatabaseConfig
    ledger: LedgerConfig
    logging: LoggingConfig
    checksum: str = ""
    source: str | None = None

    def validate(self) -> None:
        self.database.validate()
        self.ledger.validate()
        self.logging.validate()

    def to_dict(self) -> dict[str, Any]:
        return {
            "database": asdict(self.database),
            "ledger": asdict(self.ledger),
            "logging": asdict(self.logging),
        }


SECTIONS: dict[str, type] = {
    "database": DatabaseConfig,
    "ledger": LedgerConfig,
    "logging": LoggingConfig,
}
