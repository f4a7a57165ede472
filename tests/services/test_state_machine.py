"""
TransactionStateMachine: transitions and their stock effects, exercised
directly inside one session (no commit).
"""

from datetime import datetime, timezone

import pytest

from inventory_ledger.domain.movement import MovementDirection, MovementStatus
from inventory_ledger.exceptions import (
    InsufficientStockError,
    InvalidStateTransitionError,
)
from inventory_ledger.services.state_machine import TransactionStateMachine
from inventory_ledger.services.stock_ledger import StockLedger

FIXED_NOW = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def machine(session, clock):
    return TransactionStateMachine(session, clock)


def _issue(machine, item_id, quantity, code="OUT-20261018-0001"):
    return machine.create(
        MovementDirection.ISSUE,
        code=code,
        item_id=item_id,
        quantity=quantity,
        actor="alice",
        remarks="Room 204",
    )


class TestCreate:

    def test_receipt_is_completed_and_increases_stock(self, session, make_item, machine):
        item_id = make_item(quantity=2, session=session)

        movement = machine.create(
            MovementDirection.RECEIPT,
            code="IN-20261018-0001",
            item_id=item_id,
            quantity=5,
            actor="storekeeper",
        )

        assert movement.status == MovementStatus.COMPLETED.value
        assert movement.received_by == "storekeeper"
        assert movement.effective_at == FIXED_NOW
        assert movement.created_at == FIXED_NOW
        assert StockLedger(session).on_hand(item_id) == 7

    def test_receipt_effective_at_from_occurred_at(self, session, make_item, machine):
        item_id = make_item(session=session)
        occurred = datetime(2026, 10, 17, 16, 45, tzinfo=timezone.utc)

        movement = machine.create(
            MovementDirection.RECEIPT,
            code="IN-20261018-0001",
            item_id=item_id,
            quantity=1,
            actor="storekeeper",
            occurred_at=occurred,
        )

        assert movement.effective_at == occurred
        assert movement.created_at == FIXED_NOW

    def test_issue_is_pending_and_leaves_stock(self, session, make_item, machine):
        item_id = make_item(quantity=3, session=session)

        movement = _issue(machine, item_id, 10)

        assert movement.status == MovementStatus.PENDING.value
        assert movement.requested_by == "alice"
        assert movement.effective_at is None
        assert movement.processed_by is None
        assert StockLedger(session).on_hand(item_id) == 3


class TestProcess:

    def test_completes_and_decreases(self, session, make_item, machine, clock):
        item_id = make_item(quantity=10, session=session)
        movement = _issue(machine, item_id, 4)
        clock.advance(60)

        machine.process(movement, "supervisor")

        assert movement.status == MovementStatus.COMPLETED.value
        assert movement.processed_by == "supervisor"
        assert movement.effective_at == clock.now()
        assert movement.cancelled_at is None
        assert StockLedger(session).on_hand(item_id) == 6

    def test_insufficient_stock_leaves_movement_pending(self, session, make_item, machine):
        item_id = make_item(quantity=3, session=session)
        movement = _issue(machine, item_id, 4)

        with pytest.raises(InsufficientStockError):
            machine.process(movement, "supervisor")

        assert movement.status == MovementStatus.PENDING.value
        assert movement.processed_by is None
        assert movement.effective_at is None
        assert StockLedger(session).on_hand(item_id) == 3

    def test_completed_issue_cannot_be_processed_again(self, session, make_item, machine):
        item_id = make_item(quantity=10, session=session)
        movement = _issue(machine, item_id, 4)
        machine.process(movement, "supervisor")

        with pytest.raises(InvalidStateTransitionError):
            machine.process(movement, "supervisor")

        assert StockLedger(session).on_hand(item_id) == 6


class TestCancel:

    def test_cancels_without_stock_effect(self, session, make_item, machine, clock):
        item_id = make_item(quantity=10, session=session)
        movement = _issue(machine, item_id, 4)
        clock.advance(30)

        machine.cancel(movement, "supervisor")

        assert movement.status == MovementStatus.CANCELLED.value
        assert movement.cancelled_by == "supervisor"
        assert movement.cancelled_at == clock.now()
        assert movement.effective_at is None
        assert StockLedger(session).on_hand(item_id) == 10

    def test_cancelled_issue_cannot_be_processed(self, session, make_item, machine, captured_logs):
        item_id = make_item(quantity=10, session=session)
        movement = _issue(machine, item_id, 4)
        machine.cancel(movement, "supervisor")

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            machine.process(movement, "supervisor")

        assert exc_info.value.current_status == "cancelled"
        assert StockLedger(session).on_hand(item_id) == 10
        assert any(r["message"] == "transition_rejected" for r in captured_logs())

    def test_receipt_cannot_be_cancelled(self, session, make_item, machine):
        item_id = make_item(session=session)
        receipt = machine.create(
            MovementDirection.RECEIPT,
            code="IN-20261018-0001",
            item_id=item_id,
            quantity=5,
            actor="storekeeper",
        )

        with pytest.raises(InvalidStateTransitionError):
            machine.cancel(receipt, "supervisor")

        assert receipt.status == MovementStatus.COMPLETED.value
        assert StockLedger(session).on_hand(item_id) == 5
