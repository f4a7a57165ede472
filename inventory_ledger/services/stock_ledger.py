"""
StockLedger -- the only writer of Item.quantity.

Responsibility:
    Atomic increase/decrease primitives for an item's on-hand quantity.

Architecture position:
    Ledger > Services -- flush-only collaborator.  Called by
    TransactionStateMachine inside the unit of work that also writes the
    movement's status, so stock and status commit or roll back together.

Invariants enforced:
    - quantity >= 0 at all times.  ``decrease`` is a single conditional
      UPDATE (``... WHERE quantity >= :qty``); guard and effect are one
      statement, so concurrent decreases on the same item serialize on the
      row lock and can never both pass the guard.
    - quantity <= LedgerLimits.max_quantity.  ``increase`` guards the
      ceiling the same way (``... WHERE quantity <= :max - :qty``), so the
      column never overflows.
    - Only active items change.  Contention is per item row, never global.

Failure modes:
    - InvalidInputError: qty is not an integer in 1..max_quantity.
    - ItemNotFoundError: item missing or inactive.
    - InsufficientStockError: quantity < qty when the UPDATE executes;
      quantity is left unchanged.
    - StockCapacityExceededError: quantity + qty > max_quantity; quantity
      is left unchanged.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from inventory_ledger.domain.limits import DEFAULT_LIMITS, LedgerLimits
from inventory_ledger.domain.validation import require_quantity
from inventory_ledger.exceptions import (
    InsufficientStockError,
    ItemNotFoundError,
    StockCapacityExceededError,
)
from inventory_ledger.logging_config import get_logger
from inventory_ledger.models.item import Item
from inventory_ledger.services.base import BaseService

logger = get_logger("services.stock_ledger")

_items = Item.__table__


class StockLedger(BaseService):
    """
    Sole owner of quantity mutation.

    Writes go through Core UPDATE statements on the ``items`` table, so the
    ORM never holds a stale copy of quantity that a later flush could write
    back.  Each method returns the item's quantity after the change.
    """

    def __init__(self, session: Session, limits: LedgerLimits = DEFAULT_LIMITS):
        super().__init__(session)
        self._limits = limits

    def increase(self, item_id: int, qty: int) -> int:
        """
        Add ``qty`` if and only if the result stays within ``max_quantity``.

        Raises:
            InvalidInputError: qty is not an integer in 1..max_quantity.
            ItemNotFoundError: item missing or inactive.
            StockCapacityExceededError: on-hand quantity plus qty would
                exceed max_quantity at execution time.
        """
        require_quantity(qty, self._limits)
        max_quantity = self._limits.max_quantity
        new_quantity = self.session.execute(
            update(_items)
            .where(
                _items.c.id == item_id,
                _items.c.is_active.is_(True),
                _items.c.quantity <= max_quantity - qty,
            )
            .values(quantity=_items.c.quantity + qty)
            .returning(_items.c.quantity)
        ).scalar_one_or_none()

        if new_quantity is not None:
            logger.info(
                "stock_increased",
                extra={"item_id": item_id, "quantity": qty, "on_hand": new_quantity},
            )
            return new_quantity

        row = self._read_item(item_id)
        if row is None or not row.is_active:
            raise self._missing_or_inactive(item_id, row)

        logger.warning(
            "stock_increase_rejected",
            extra={
                "item_id": item_id,
                "requested": qty,
                "on_hand": row.quantity,
                "max_quantity": max_quantity,
            },
        )
        raise StockCapacityExceededError(
            item_id=item_id,
            requested=qty,
            on_hand=row.quantity,
            max_quantity=max_quantity,
        )

    def decrease(self, item_id: int, qty: int) -> int:
        """
        Subtract ``qty`` if and only if at least ``qty`` is on hand.

        Raises:
            InvalidInputError: qty is not an integer in 1..max_quantity.
            ItemNotFoundError: item missing or inactive.
            InsufficientStockError: on-hand quantity below qty at execution time.
        """
        require_quantity(qty, self._limits)
        new_quantity = self.session.execute(
            update(_items)
            .where(
                _items.c.id == item_id,
                _items.c.is_active.is_(True),
                _items.c.quantity >= qty,
            )
            .values(quantity=_items.c.quantity - qty)
            .returning(_items.c.quantity)
        ).scalar_one_or_none()

        if new_quantity is not None:
            logger.info(
                "stock_decreased",
                extra={"item_id": item_id, "quantity": qty, "on_hand": new_quantity},
            )
            return new_quantity

        row = self._read_item(item_id)
        if row is None or not row.is_active:
            raise self._missing_or_inactive(item_id, row)

        logger.warning(
            "stock_decrease_rejected",
            extra={"item_id": item_id, "requested": qty, "available": row.quantity},
        )
        raise InsufficientStockError(
            item_id=item_id, requested=qty, available=row.quantity
        )

    def on_hand(self, item_id: int) -> int:
        """Current quantity of an existing item (active or not)."""
        row = self._read_item(item_id)
        if row is None:
            raise ItemNotFoundError(item_id)
        return row.quantity

    def require_active(self, item_id: int) -> None:
        """Raise ItemNotFoundError unless the item exists and is active."""
        row = self._read_item(item_id)
        if row is None or not row.is_active:
            raise self._missing_or_inactive(item_id, row)

    def _read_item(self, item_id: int):
        return self.session.execute(
            select(_items.c.id, _items.c.quantity, _items.c.is_active)
            .where(_items.c.id == item_id)
        ).one_or_none()

    def _missing_or_inactive(self, item_id: int, row=None) -> ItemNotFoundError:
        if row is None:
            row = self._read_item(item_id)
        reason = "missing" if row is None else "inactive"
        logger.warning("item_unavailable", extra={"item_id": item_id, "reason": reason})
        return ItemNotFoundError(item_id, reason=reason)
