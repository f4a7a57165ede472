"""
Module: inventory_ledger.models.item
Responsibility: ORM persistence for stock items and their authoritative
    on-hand quantity.
Architecture position: Ledger > Models.  May import from db/base.py and
    domain/limits.py only.

Invariants enforced:
    - 0 <= quantity <= 2147483647 (ck_items_quantity_non_negative,
      ck_items_quantity_ceiling); the ceiling is the 32-bit column maximum.
    - quantity is written only by StockLedger's conditional UPDATE
      statements; an ORM listener (db/immutability.py) rejects any
      attribute-level change to it after INSERT.
    - name is unique.

Master data (name, description, unit, is_active) is owned outside the
ledger; the ledger only reads it.
"""

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_ledger.db.base import BigIntegerId, TrackedBase
from inventory_ledger.domain.limits import QUANTITY_COLUMN_MAX


class Item(TrackedBase):
    """A stock-keeping item."""

    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
        CheckConstraint(
            f"quantity <= {QUANTITY_COLUMN_MAX}", name="ck_items_quantity_ceiling"
        ),
        Index("idx_items_is_active", "is_active"),
    )

    id: Mapped[int] = mapped_column(BigIntegerId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Item {self.id} {self.name!r} qty={self.quantity}>"
