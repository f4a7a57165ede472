"""
Module: inventory_ledger.models.code_counter
Responsibility: One counter row per (direction, date) bucket, used by
    TransactionCodeGenerator to allocate gapless movement code sequences.
Architecture position: Ledger > Models.  May import from db/base.py only.

Invariants enforced:
    - bucket is unique (uq_code_counters_bucket), e.g. ``OUT-20261018``.
    - current_value only increases, under a row lock held by the
      allocating transaction.
"""

from sqlalchemy import BigInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_ledger.db.base import BigIntegerId, TrackedBase


class CodeCounter(TrackedBase):
    """
    Allocator state for one movement code bucket.

    The counter is incremented inside the caller's transaction, so a rolled
    back allocation gives its value back and the sequence stays gapless.
    """

    __tablename__ = "code_counters"
    __table_args__ = (
        UniqueConstraint("bucket", name="uq_code_counters_bucket"),
    )

    id: Mapped[int] = mapped_column(BigIntegerId, primary_key=True, autoincrement=True)
    bucket: Mapped[str] = mapped_column(String(20), nullable=False)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<CodeCounter {self.bucket}={self.current_value}>"
