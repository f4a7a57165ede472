"""
TransactionLedgerService -- the public contract of the inventory ledger.

Responsibility:
    Validates requests, allocates movement codes, drives the state machine
    and returns immutable DTOs.  Each public mutating operation is exactly
    one unit of work: it commits whole or rolls back whole.

Architecture position:
    Ledger > Services -- the only component that owns transaction
    boundaries.  Consumed by the (external) HTTP layer and by
    ``scripts/ledger_cli.py``.  Collaborators (StockLedger,
    TransactionCodeGenerator, TransactionStateMachine) receive its session
    and only flush.

Invariants enforced:
    - Validation happens before the unit of work opens; a rejected request
      performs no database work.
    - Status change and stock effect commit together or not at all.
    - process/cancel lock the movement row (SELECT ... FOR UPDATE), so two
      concurrent calls on the same movement serialize and the second sees
      the terminal status.
    - A code collision on insert re-allocates up to
      ``LedgerLimits.code_allocation_attempts`` times.

Failure modes:
    - InvalidInputError, ItemNotFoundError, MovementNotFoundError,
      InsufficientStockError, StockCapacityExceededError,
      InvalidStateTransitionError, DuplicateCodeError, ContentionError --
      see inventory_ledger.exceptions.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Generator
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from inventory_ledger.db.engine import session_scope
from inventory_ledger.domain.clock import Clock, SystemClock
from inventory_ledger.domain.dtos import (
    ItemDTO,
    MovementQuery,
    PagedResult,
    StockMovementDTO,
    StockMovementSummaryDTO,
)
from inventory_ledger.domain.limits import DEFAULT_LIMITS, LedgerLimits
from inventory_ledger.domain.movement import MovementDirection
from inventory_ledger.domain.validation import (
    normalize_occurred_at,
    normalize_remarks,
    require_actor,
    require_code,
    require_positive_int,
    require_quantity,
)
from inventory_ledger.exceptions import DuplicateCodeError, MovementNotFoundError
from inventory_ledger.logging_config import LogContext, get_logger
from inventory_ledger.models.stock_movement import StockMovement
from inventory_ledger.selectors.item_selector import ItemSelector
from inventory_ledger.selectors.movement_selector import MovementSelector
from inventory_ledger.services.code_generator import TransactionCodeGenerator
from inventory_ledger.services.state_machine import TransactionStateMachine
from inventory_ledger.services.stock_ledger import StockLedger

logger = get_logger("services.ledger")


class TransactionLedgerService:
    """
    Records receipts and issues and moves issues through their lifecycle.

    Usage:
        service = TransactionLedgerService(get_session_factory(), SystemClock())
        issue = service.create_issue(item_id=7, quantity=4, requested_by="u-1")
        done = service.process(issue.id, processed_by="u-2")
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        limits: LedgerLimits | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._limits = limits or DEFAULT_LIMITS

    @property
    def limits(self) -> LedgerLimits:
        return self._limits

    # -----------------------------------------------------------------
    # Mutating operations
    # -----------------------------------------------------------------

    def create_receipt(
        self,
        item_id: int,
        quantity: int,
        received_by: str,
        occurred_at: datetime | None = None,
        remarks: str | None = None,
        correlation_id: str | None = None,
    ) -> StockMovementDTO:
        """
        Record stock arriving.  The receipt is COMPLETED on creation.

        Postconditions:
            - Item quantity increased by exactly ``quantity``.
            - effective_at is ``occurred_at`` (UTC) or the clock's now.
        """
        item_id = require_positive_int(item_id, "item_id")
        quantity = require_quantity(quantity, self._limits)
        received_by = require_actor(received_by, "received_by", self._limits)
        occurred_at = normalize_occurred_at(occurred_at)
        remarks = normalize_remarks(remarks, self._limits)

        with LogContext.bind(
            correlation_id=correlation_id or str(uuid4()),
            actor_id=received_by,
            item_id=item_id,
            operation="create_receipt",
        ):
            movement = self._create(
                MovementDirection.RECEIPT,
                item_id=item_id,
                quantity=quantity,
                actor=received_by,
                remarks=remarks,
                occurred_at=occurred_at,
            )
            logger.info(
                "receipt_created",
                extra={"movement_id": movement.id, "movement_code": movement.code, "quantity": quantity},
            )
            return movement

    def create_issue(
        self,
        item_id: int,
        quantity: int,
        requested_by: str,
        remarks: str | None = None,
        correlation_id: str | None = None,
    ) -> StockMovementDTO:
        """
        Request stock to be issued.  The issue is PENDING; stock is untouched
        until it is processed.
        """
        item_id = require_positive_int(item_id, "item_id")
        quantity = require_quantity(quantity, self._limits)
        requested_by = require_actor(requested_by, "requested_by", self._limits)
        remarks = normalize_remarks(remarks, self._limits)

        with LogContext.bind(
            correlation_id=correlation_id or str(uuid4()),
            actor_id=requested_by,
            item_id=item_id,
            operation="create_issue",
        ):
            movement = self._create(
                MovementDirection.ISSUE,
                item_id=item_id,
                quantity=quantity,
                actor=requested_by,
                remarks=remarks,
            )
            logger.info(
                "issue_created",
                extra={"movement_id": movement.id, "movement_code": movement.code, "quantity": quantity},
            )
            return movement

    def process(
        self,
        movement_id: int,
        processed_by: str,
        correlation_id: str | None = None,
    ) -> StockMovementDTO:
        """
        Complete a pending issue, decreasing stock.

        On InsufficientStockError the unit of work rolls back: the issue stays
        PENDING, stock is unchanged, and the call may be retried later.
        """
        movement_id = require_positive_int(movement_id, "movement_id")
        processed_by = require_actor(processed_by, "processed_by", self._limits)

        with LogContext.bind(
            correlation_id=correlation_id or str(uuid4()),
            actor_id=processed_by,
            movement_id=movement_id,
            operation="process",
        ):
            with self._unit_of_work("process") as session:
                movement = self._lock_movement(session, movement_id)
                with LogContext.bind(item_id=movement.item_id, movement_code=movement.code):
                    TransactionStateMachine(
                        session, self._clock, StockLedger(session, self._limits)
                    ).process(movement, processed_by)
                    result = StockMovementDTO.from_model(movement)

            logger.info(
                "issue_processed",
                extra={"movement_code": result.code, "item_id": result.item_id, "quantity": result.quantity},
            )
            return result

    def cancel(
        self,
        movement_id: int,
        cancelled_by: str,
        correlation_id: str | None = None,
    ) -> StockMovementDTO:
        """Cancel a pending issue.  No stock effect."""
        movement_id = require_positive_int(movement_id, "movement_id")
        cancelled_by = require_actor(cancelled_by, "cancelled_by", self._limits)

        with LogContext.bind(
            correlation_id=correlation_id or str(uuid4()),
            actor_id=cancelled_by,
            movement_id=movement_id,
            operation="cancel",
        ):
            with self._unit_of_work("cancel") as session:
                movement = self._lock_movement(session, movement_id)
                TransactionStateMachine(session, self._clock).cancel(movement, cancelled_by)
                result = StockMovementDTO.from_model(movement)

            logger.info(
                "issue_cancelled",
                extra={"movement_code": result.code, "item_id": result.item_id},
            )
            return result

    # -----------------------------------------------------------------
    # Query operations
    # -----------------------------------------------------------------

    def get_movement(self, movement_id: int) -> StockMovementDTO:
        movement_id = require_positive_int(movement_id, "movement_id")
        with self._read_scope() as session:
            return MovementSelector(session, self._limits).get_by_id(movement_id)

    def get_movement_by_code(self, code: str) -> StockMovementDTO:
        code = require_code(code)
        with self._read_scope() as session:
            return MovementSelector(session, self._limits).get_by_code(code)

    def list_movements(
        self, query: MovementQuery | None = None
    ) -> PagedResult[StockMovementSummaryDTO]:
        query = query or MovementQuery()
        if query.item_id is not None:
            require_positive_int(query.item_id, "item_id")
        with self._read_scope() as session:
            return MovementSelector(session, self._limits).list_movements(query)

    def list_pending_issues(
        self,
        page: int = 1,
        page_size: int | None = None,
        sort_by: str | None = None,
        descending: bool = False,
    ) -> PagedResult[StockMovementSummaryDTO]:
        with self._read_scope() as session:
            return MovementSelector(session, self._limits).list_pending_issues(
                page=page, page_size=page_size, sort_by=sort_by, descending=descending
            )

    def get_item(self, item_id: int) -> ItemDTO:
        item_id = require_positive_int(item_id, "item_id")
        with self._read_scope() as session:
            return ItemSelector(session).get_item(item_id)

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    @contextmanager
    def _unit_of_work(self, operation: str) -> Generator[Session, None, None]:
        with session_scope(
            self._session_factory,
            lock_timeout_ms=self._limits.lock_timeout_ms,
            operation=operation,
        ) as session:
            yield session

    def _read_scope(self):
        return session_scope(self._session_factory, operation="read")

    def _create(
        self,
        direction: MovementDirection,
        *,
        item_id: int,
        quantity: int,
        actor: str,
        remarks: str | None,
        occurred_at: datetime | None = None,
    ) -> StockMovementDTO:
        operation = f"create_{direction.value}"
        with self._unit_of_work(operation) as session:
            stock = StockLedger(session, self._limits)
            stock.require_active(item_id)

            codes = TransactionCodeGenerator(session)
            machine = TransactionStateMachine(session, self._clock, stock)
            on_date = self._clock.now().date()
            attempts = self._limits.code_allocation_attempts

            for attempt in range(1, attempts + 1):
                code = codes.next_code(direction, on_date)
                try:
                    movement = machine.create(
                        direction,
                        code=code,
                        item_id=item_id,
                        quantity=quantity,
                        actor=actor,
                        remarks=remarks,
                        occurred_at=occurred_at,
                    )
                    break
                except IntegrityError:
                    if not self._code_taken(session, code):
                        raise
                    logger.warning(
                        "code_collision_retry",
                        extra={"movement_code": code, "attempt": attempt, "max_attempts": attempts},
                    )
            else:
                logger.error(
                    "code_allocation_exhausted",
                    extra={"movement_code": code, "attempts": attempts},
                )
                raise DuplicateCodeError(movement_code=code, attempts=attempts)

            return StockMovementDTO.from_model(movement)

    @staticmethod
    def _code_taken(session: Session, code: str) -> bool:
        return session.execute(
            select(StockMovement.id).where(StockMovement.code == code)
        ).first() is not None

    @staticmethod
    def _lock_movement(session: Session, movement_id: int) -> StockMovement:
        movement = session.execute(
            select(StockMovement)
            .where(StockMovement.id == movement_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if movement is None:
            raise MovementNotFoundError(movement_id)
        return movement
