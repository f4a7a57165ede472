"""
TransactionCodeGenerator -- gapless movement codes via locked counter rows.

Responsibility:
    Produces ``{IN|OUT}-{YYYYMMDD}-{SEQ}`` codes, SEQ being a zero-padded
    (at least 4 digits) counter scoped to the (direction, date) bucket.
    Uses the ``code_counters`` table with row-level locking
    (``SELECT ... FOR UPDATE``) to guarantee uniqueness and ordering
    under concurrent creation.

Architecture position:
    Ledger > Services -- flush-only collaborator.  Called by
    TransactionLedgerService before it inserts a movement.

Invariants enforced:
    - Atomic allocation: the count-existing-rows-plus-one pattern is never
      used; the locked counter row is the sole source of truth.
    - Gapless: the increment belongs to the caller's transaction, so a
      rollback returns the value.
    - Buckets are independent: allocations for different (direction, date)
      pairs lock different rows.

Failure modes:
    - IntegrityError: concurrent first use of a bucket (handled via
      savepoint rollback and retry).
    - Lock wait beyond the unit of work's lock timeout surfaces from the
      unit of work as ContentionError.
"""

from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from inventory_ledger.domain.movement import MovementDirection
from inventory_ledger.logging_config import get_logger
from inventory_ledger.models.code_counter import CodeCounter
from inventory_ledger.services.base import BaseService

logger = get_logger("services.code_generator")

SEQUENCE_WIDTH = 4


def bucket_for(direction: MovementDirection, on_date: date) -> str:
    """Counter bucket key, e.g. ``OUT-20261018``."""
    return f"{direction.code_prefix}-{on_date:%Y%m%d}"


def format_code(direction: MovementDirection, on_date: date, value: int) -> str:
    """Render a movement code.  Values past 9999 widen rather than wrap."""
    return f"{bucket_for(direction, on_date)}-{value:0{SEQUENCE_WIDTH}d}"


class TransactionCodeGenerator(BaseService):
    """
    Allocates movement codes.

    Usage:
        with session_scope(factory) as session:
            code = TransactionCodeGenerator(session).next_code(
                MovementDirection.ISSUE, clock.now().date()
            )
            # If the transaction rolls back, the sequence value is not consumed
    """

    def next_code(self, direction: MovementDirection, on_date: date) -> str:
        """
        Allocate the next code for (direction, on_date).

        Postconditions:
            - The returned code's sequence is exactly one more than the
              bucket's previous committed value.
            - The counter row stays locked until the transaction completes.
        """
        bucket = bucket_for(direction, on_date)
        value = self._increment(bucket)
        code = format_code(direction, on_date, value)
        logger.debug(
            "code_allocated",
            extra={"bucket": bucket, "value": value, "movement_code": code},
        )
        return code

    def current_value(self, direction: MovementDirection, on_date: date) -> int:
        """Last allocated value for the bucket (0 if never used); no lock, no increment."""
        value = self.session.execute(
            select(CodeCounter.current_value)
            .where(CodeCounter.bucket == bucket_for(direction, on_date))
        ).scalar_one_or_none()
        return value or 0

    def _lock_counter(self, bucket: str) -> CodeCounter | None:
        return self.session.execute(
            select(CodeCounter)
            .where(CodeCounter.bucket == bucket)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _increment(self, bucket: str) -> int:
        counter = self._lock_counter(bucket)

        if counter is None:
            # First use of this bucket.  Another transaction may be creating it
            # at the same time; the savepoint keeps the caller's work intact.
            savepoint = self.session.begin_nested()
            try:
                counter = CodeCounter(bucket=bucket, current_value=1)
                self.session.add(counter)
                self.session.flush()
                savepoint.commit()
                return 1
            except IntegrityError:
                logger.debug("code_counter_race_retry", extra={"bucket": bucket})
                savepoint.rollback()
                counter = self._lock_counter(bucket)
                if counter is None:
                    raise

        counter.current_value += 1
        self.session.flush()
        return counter.current_value
