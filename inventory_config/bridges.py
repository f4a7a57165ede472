"""
Config -> Kernel Bridges.

Functions that convert an InventoryLedgerConfig into kernel inputs.  They
live here (the producer) because the kernel must NEVER import
inventory_config.

Usage:
    from inventory_config import get_active_config
    from inventory_config.bridges import initialize_ledger

    config = get_active_config()
    service = initialize_ledger(config)
"""

from __future__ import annotations

from dataclasses import asdict

from sqlalchemy.engine import Engine

from inventory_config.schema import InventoryLedgerConfig
from inventory_ledger.db.engine import get_session_factory, init_engine_from_url
from inventory_ledger.db.immutability import register_immutability_listeners
from inventory_ledger.domain.clock import Clock
from inventory_ledger.domain.limits import LedgerLimits
from inventory_ledger.logging_config import configure_logging
from inventory_ledger.services.ledger_service import TransactionLedgerService


def build_ledger_limits(config: InventoryLedgerConfig) -> LedgerLimits:
    """Translate the ``ledger`` section into kernel LedgerLimits."""
    return LedgerLimits(**asdict(config.ledger))


def init_database(config: InventoryLedgerConfig) -> Engine:
    """Initialise the kernel engine from the ``database`` section.

    The SQLite busy timeout follows ``ledger.lock_timeout_ms`` so both
    backends bound lock waits the same way.
    """
    db = config.database
    return init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        sqlite_busy_timeout=config.ledger.lock_timeout_ms / 1000,
    )


def initialize_ledger(
    config: InventoryLedgerConfig,
    clock: Clock | None = None,
) -> TransactionLedgerService:
    """Configure logging, the engine and ORM guards; return a ready service."""
    configure_logging(level=config.logging.level_number)
    init_database(config)
    register_immutability_listeners()
    return TransactionLedgerService(
        get_session_factory(),
        clock=clock,
        limits=build_ledger_limits(config),
    )
