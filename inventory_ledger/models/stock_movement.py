"""
Module: inventory_ledger.models.stock_movement
Responsibility: ORM persistence for stock movements (receipts and issues),
    the ledger's audit trail of every stock-affecting event.
Architecture position: Ledger > Models.  May import from db/base.py,
    domain/limits.py and sibling models only.

Invariants enforced (database CHECK constraints):
    - 0 < quantity <= 2147483647 (ck_stock_movements_quantity_positive,
      ck_stock_movements_quantity_ceiling).
    - direction and status are closed vocabularies.
    - A receipt is always completed (ck_stock_movements_receipt_completed).
    - The originating actor is set: received_by for receipts, requested_by
      for issues (ck_stock_movements_origin_actor).
    - Stamps follow status (ck_stock_movements_status_stamps): while pending,
      processed_by, cancelled_by, cancelled_at and effective_at are unset;
      a completed issue has processed_by and effective_at; a cancelled
      issue has cancelled_by and cancelled_at and no effective_at.
    - code is globally unique (uq_stock_movements_code).

Invariants enforced (ORM listeners, db/immutability.py):
    - code, item_id, quantity, direction, created_at and the originating
      actor never change after INSERT.
    - Once completed or cancelled, only bookkeeping (updated_at) may change.
    - Movements are never deleted.
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_ledger.db.base import BigIntegerId, TrackedBase, UTCDateTime
from inventory_ledger.domain.limits import QUANTITY_COLUMN_MAX
from inventory_ledger.models.item import Item

_ACTOR_LENGTH = 450

_STATUS_STAMPS = (
    "(status = 'pending'"
    " AND processed_by IS NULL AND cancelled_by IS NULL"
    " AND cancelled_at IS NULL AND effective_at IS NULL)"
    " OR (status = 'completed'"
    " AND cancelled_by IS NULL AND cancelled_at IS NULL AND effective_at IS NOT NULL"
    " AND (direction = 'receipt' OR processed_by IS NOT NULL))"
    " OR (status = 'cancelled'"
    " AND processed_by IS NULL AND effective_at IS NULL"
    " AND cancelled_by IS NOT NULL AND cancelled_at IS NOT NULL)"
)


class StockMovement(TrackedBase):
    """
    A single receipt or issue of stock.

    Contract:
        Created by TransactionLedgerService; status changes only through
        TransactionStateMachine transitions.  Cancellation is a status,
        never a delete.
    """

    __tablename__ = "stock_movements"
    __table_args__ = (
        UniqueConstraint("code", name="uq_stock_movements_code"),
        CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
        CheckConstraint(
            f"quantity <= {QUANTITY_COLUMN_MAX}", name="ck_stock_movements_quantity_ceiling"
        ),
        CheckConstraint(
            "direction IN ('receipt', 'issue')",
            name="ck_stock_movements_direction",
        ),
        CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled')",
            name="ck_stock_movements_status",
        ),
        CheckConstraint(
            "direction <> 'receipt' OR status = 'completed'",
            name="ck_stock_movements_receipt_completed",
        ),
        CheckConstraint(
            "(direction = 'receipt' AND received_by IS NOT NULL)"
            " OR (direction = 'issue' AND requested_by IS NOT NULL)",
            name="ck_stock_movements_origin_actor",
        ),
        CheckConstraint(_STATUS_STAMPS, name="ck_stock_movements_status_stamps"),
        Index("idx_stock_movements_item", "item_id"),
        Index("idx_stock_movements_status", "status"),
        Index("idx_stock_movements_direction", "direction"),
        Index("idx_stock_movements_effective_at", "effective_at"),
        Index("idx_stock_movements_item_effective", "item_id", "effective_at"),
    )

    id: Mapped[int] = mapped_column(BigIntegerId, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(32), nullable=False)
    item_id: Mapped[int] = mapped_column(
        BigIntegerId, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    direction: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)

    effective_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    received_by: Mapped[str | None] = mapped_column(String(_ACTOR_LENGTH), nullable=True)
    requested_by: Mapped[str | None] = mapped_column(String(_ACTOR_LENGTH), nullable=True)
    processed_by: Mapped[str | None] = mapped_column(String(_ACTOR_LENGTH), nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(_ACTOR_LENGTH), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    remarks: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    item: Mapped[Item] = relationship(Item)

    def __repr__(self) -> str:
        return f"<StockMovement {self.id} {self.code} {self.status}>"
