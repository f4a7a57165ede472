"""
Pure domain layer.

This module contains value objects and domain logic with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (SystemClock excepted)

All domain objects are immutable and deterministic.
"""

from inventory_ledger.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_ledger.domain.dtos import (
    ItemDTO,
    MovementQuery,
    PagedResult,
    StockMovementDTO,
    StockMovementSummaryDTO,
)
from inventory_ledger.domain.limits import DEFAULT_LIMITS, LedgerLimits
from inventory_ledger.domain.movement import (
    MOVEMENT_WORKFLOW,
    MovementDirection,
    MovementEvent,
    MovementStatus,
    StockEffect,
    Transition,
    resolve_transition,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "ItemDTO",
    "MovementQuery",
    "PagedResult",
    "StockMovementDTO",
    "StockMovementSummaryDTO",
    "LedgerLimits",
    "DEFAULT_LIMITS",
    "MOVEMENT_WORKFLOW",
    "MovementDirection",
    "MovementEvent",
    "MovementStatus",
    "StockEffect",
    "Transition",
    "resolve_transition",
]
