"""
TransactionStateMachine -- executes movement transitions and their stock effects.

Responsibility:
    Applies the transitions declared in ``domain.movement.MOVEMENT_WORKFLOW``:
    stamps status, actor and timestamps on the movement and invokes the
    bound StockLedger effect.  Legality comes from the transition table,
    never from ad hoc conditionals here.

Architecture position:
    Ledger > Services -- flush-only collaborator.  Called by
    TransactionLedgerService inside its unit of work; the movement row
    passed to ``process``/``cancel`` is already locked by the caller.

Invariants enforced:
    - The stock effect runs before the status write.  If the effect
      fails (InsufficientStockError) the movement is untouched and stays
      PENDING; the caller's rollback discards anything else.
    - Terminal movements and receipts reject PROCESS/CANCEL with
      InvalidStateTransitionError before any write.
    - effective_at is stamped exactly when stock changes; cancelled_at
      exactly on cancellation.

Failure modes:
    - InvalidStateTransitionError: event illegal for direction/status.
    - InsufficientStockError / ItemNotFoundError: from StockLedger.
    - IntegrityError: code collision on insert (savepoint already rolled
      back; the ledger service decides whether to retry).
"""

from datetime import datetime

from sqlalchemy.orm import Session

from inventory_ledger.domain.clock import Clock
from inventory_ledger.domain.movement import (
    MovementDirection,
    MovementEvent,
    MovementStatus,
    StockEffect,
    Transition,
    resolve_transition,
)
from inventory_ledger.exceptions import InvalidStateTransitionError
from inventory_ledger.logging_config import get_logger
from inventory_ledger.models.stock_movement import StockMovement
from inventory_ledger.services.base import BaseService
from inventory_ledger.services.stock_ledger import StockLedger

logger = get_logger("services.state_machine")

_CREATE_EVENTS = {
    MovementDirection.RECEIPT: MovementEvent.CREATE_RECEIPT,
    MovementDirection.ISSUE: MovementEvent.CREATE_ISSUE,
}


class TransactionStateMachine(BaseService):
    """
    Drives a StockMovement through its lifecycle.

    Contract:
        Every public method resolves a Transition first; only then does it
        touch stock or the row.  All writes are flushed, never committed.
    """

    def __init__(self, session: Session, clock: Clock, stock_ledger: StockLedger | None = None):
        super().__init__(session)
        self._clock = clock
        self._stock = stock_ledger or StockLedger(session)

    # -----------------------------------------------------------------
    # Creation
    # -----------------------------------------------------------------

    def create(
        self,
        direction: MovementDirection,
        *,
        code: str,
        item_id: int,
        quantity: int,
        actor: str,
        remarks: str | None = None,
        occurred_at: datetime | None = None,
    ) -> StockMovement:
        """
        Insert a new movement in its initial state and apply its effect.

        The INSERT runs inside a savepoint so a code collision can be retried
        by the caller without losing the rest of the unit of work.

        Postconditions:
            - Receipt: status COMPLETED, received_by and effective_at set,
              item quantity increased by ``quantity``.
            - Issue: status PENDING, requested_by set, no stock effect.
        """
        transition = resolve_transition(_CREATE_EVENTS[direction], direction, None)
        now = self._clock.now()

        movement = StockMovement(
            code=code,
            item_id=item_id,
            quantity=quantity,
            direction=direction.value,
            status=transition.to_status.value,
            created_at=now,
            updated_at=now,
            remarks=remarks,
        )
        setattr(movement, transition.actor_field, actor)
        if transition.stamps_effective_at:
            movement.effective_at = occurred_at or now

        with self.session.begin_nested():
            self.session.add(movement)
            self.session.flush()

        self._apply_effect(transition, item_id, quantity)

        logger.debug(
            "transition_applied",
            extra={
                "movement_id": movement.id,
                "movement_code": code,
                "event": transition.event.value,
                "from_status": None,
                "to_status": transition.to_status.value,
            },
        )
        return movement

    # -----------------------------------------------------------------
    # Transitions on existing movements
    # -----------------------------------------------------------------

    def process(self, movement: StockMovement, processed_by: str) -> StockMovement:
        """PENDING issue -> COMPLETED, decreasing stock atomically."""
        return self._transition(movement, MovementEvent.PROCESS, processed_by)

    def cancel(self, movement: StockMovement, cancelled_by: str) -> StockMovement:
        """PENDING issue -> CANCELLED.  No stock effect."""
        return self._transition(movement, MovementEvent.CANCEL, cancelled_by)

    def _transition(
        self,
        movement: StockMovement,
        event: MovementEvent,
        actor: str,
    ) -> StockMovement:
        direction = MovementDirection(movement.direction)
        from_status = MovementStatus(movement.status)
        try:
            transition = resolve_transition(event, direction, from_status, movement.id)
        except InvalidStateTransitionError:
            logger.warning(
                "transition_rejected",
                extra={
                    "movement_id": movement.id,
                    "event": event.value,
                    "direction": direction.value,
                    "from_status": from_status.value,
                },
            )
            raise

        # Effect first: a failed guard leaves the row exactly as it was.
        self._apply_effect(transition, movement.item_id, movement.quantity)

        now = self._clock.now()
        movement.status = transition.to_status.value
        setattr(movement, transition.actor_field, actor)
        if transition.stamps_effective_at:
            movement.effective_at = now
        if transition.stamps_cancelled_at:
            movement.cancelled_at = now
        movement.updated_at = now
        self.session.flush()

        logger.debug(
            "transition_applied",
            extra={
                "movement_id": movement.id,
                "movement_code": movement.code,
                "event": event.value,
                "from_status": from_status.value,
                "to_status": transition.to_status.value,
            },
        )
        return movement

    def _apply_effect(self, transition: Transition, item_id: int, quantity: int) -> None:
        if transition.stock_effect is StockEffect.INCREASE:
            self._stock.increase(item_id, quantity)
        elif transition.stock_effect is StockEffect.DECREASE:
            self._stock.decrease(item_id, quantity)
