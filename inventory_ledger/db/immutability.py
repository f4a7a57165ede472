"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The movement table is the audit trail of every stock change.  A completed
or cancelled movement must read the same forever, and on-hand quantity
must only move through the ledger's guarded UPDATE statements.

Two layers protect this:

  Layer 1: THIS FILE (ORM event listeners)
    - Catches modifications through Python/SQLAlchemy code
    - Fires BEFORE the SQL is sent to the database

  Layer 2: CHECK constraints on the tables (models/*.py)
    - quantity >= 0, quantity > 0, status/stamp consistency
    - Fire AT the database level, independent of application code

===============================================================================
HOW IT WORKS
===============================================================================

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

StockLedger writes quantity with Core UPDATE statements against the table,
which never pass through the mapper, so these listeners do not see them.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity          | Rule
----------------|------------------------------------------------------------
Item            | quantity cannot be changed through an ORM attribute
StockMovement   | identity columns never change; terminal rows are frozen
                | except updated_at; rows are never deleted

===============================================================================
DESIGN DECISIONS
===============================================================================

1. updated_at may change on any row.  It is bookkeeping, not ledger data.

2. "Was terminal" is read from attribute history, not the current value,
   so the PENDING -> COMPLETED / CANCELLED transition itself is allowed
   while anything after it is blocked.

3. Model imports are inline to avoid circular imports (models import db).

===============================================================================
USAGE
===============================================================================

Called once at startup (inventory_config.bridges.initialize_ledger does it):

    from inventory_ledger.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from inventory_ledger.exceptions import ImmutabilityViolationError
from inventory_ledger.logging_config import get_logger

logger = get_logger("db.immutability")

# Never change after INSERT, whatever the status.
MOVEMENT_IDENTITY_FIELDS = (
    "code",
    "item_id",
    "quantity",
    "direction",
    "created_at",
    "received_by",
    "requested_by",
    "remarks",
)

BOOKKEEPING_FIELDS = frozenset({"updated_at"})

_TERMINAL_STATUS_VALUES = frozenset({"completed", "cancelled"})


def _status_value(status) -> str:
    return getattr(status, "value", status)


def _block(entity_type: str, entity_id, operation: str, field: str | None, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_item_quantity_immutability(mapper, connection, target):
    """
    Prevent ORM-level writes to Item.quantity.

    The only sanctioned quantity writes are StockLedger's conditional
    UPDATE statements, which bypass the mapper.
    """
    from inventory_ledger.models.item import Item

    if not isinstance(target, Item):
        return

    if get_history(target, "quantity").has_changes():
        _block(
            "Item",
            target.id,
            "UPDATE",
            "quantity",
            "Item quantity can only be changed by stock ledger operations",
        )


def _check_stock_movement_immutability(mapper, connection, target):
    """
    Prevent changes to identity columns and to terminal movements.

    Logic:
        1. Identity columns (code, item, quantity, direction, ...) never change.
        2. If status is changing FROM a terminal value: block.
        3. If status is NOT changing AND is terminal: block any non-bookkeeping change.
        4. PENDING -> COMPLETED / CANCELLED is the transition itself: allow.
    """
    from inventory_ledger.models.stock_movement import StockMovement

    if not isinstance(target, StockMovement):
        return

    for field in MOVEMENT_IDENTITY_FIELDS:
        if get_history(target, field).has_changes():
            _block(
                "StockMovement",
                target.id,
                "UPDATE",
                field,
                f"Cannot modify field '{field}' on a stock movement",
            )

    status_history = get_history(target, "status")
    if status_history.deleted:
        was_terminal = _status_value(status_history.deleted[0]) in _TERMINAL_STATUS_VALUES
    elif not status_history.added:
        was_terminal = _status_value(target.status) in _TERMINAL_STATUS_VALUES
    else:
        was_terminal = False

    if not was_terminal:
        return

    insp = inspect(target)
    for attr in insp.attrs:
        if attr.key in BOOKKEEPING_FIELDS:
            continue
        if attr.history.has_changes():
            _block(
                "StockMovement",
                target.id,
                "UPDATE",
                attr.key,
                f"Cannot modify field '{attr.key}' on a terminal stock movement",
            )


def _check_stock_movement_delete(mapper, connection, target):
    """Stock movements are never deleted; cancellation is a status."""
    from inventory_ledger.models.stock_movement import StockMovement

    if not isinstance(target, StockMovement):
        return

    _block(
        "StockMovement",
        target.id,
        "DELETE",
        None,
        "Stock movements cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call this after the models are importable and before any writes.
    Registering twice is harmless.
    """
    from inventory_ledger.models.item import Item
    from inventory_ledger.models.stock_movement import StockMovement

    for target, event_name, listener_fn in _listeners(Item, StockMovement):
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    from inventory_ledger.models.item import Item
    from inventory_ledger.models.stock_movement import StockMovement

    for target, event_name, listener_fn in _listeners(Item, StockMovement):
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)


def _listeners(item_cls, movement_cls):
    return (
        (item_cls, "before_update", _check_item_quantity_immutability),
        (movement_cls, "before_update", _check_stock_movement_immutability),
        (movement_cls, "before_delete", _check_stock_movement_delete),
    )
