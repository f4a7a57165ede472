"""
Stock movement lifecycle (``inventory_ledger.domain.movement``).

Responsibility
--------------
Closed vocabularies for a movement (direction, status, lifecycle event,
stock effect) and the single transition table that says which event is
legal from which state and what it does to stock.  The state machine
service executes these transitions; it never decides legality itself.

Architecture position
---------------------
**Ledger domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/`` or ``selectors/``.

Invariants enforced
-------------------
* Receipts are born ``completed`` and have no outgoing transitions.
* Issues are born ``pending``; only ``process`` and ``cancel`` leave it.
* ``completed`` and ``cancelled`` are terminal.
* Anything not in ``MOVEMENT_WORKFLOW.transitions`` is rejected with
  ``InvalidStateTransitionError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from inventory_ledger.exceptions import InvalidStateTransitionError


class MovementDirection(str, Enum):
    """Which way stock moves."""

    RECEIPT = "receipt"
    ISSUE = "issue"

    @property
    def code_prefix(self) -> str:
        """Prefix used in movement codes (``IN`` / ``OUT``)."""
        return "IN" if self is MovementDirection.RECEIPT else "OUT"


class MovementStatus(str, Enum):
    """
    Lifecycle status of a stock movement.

    State machine:
        (create receipt) -> COMPLETED
        (create issue)   -> PENDING
        PENDING -> COMPLETED | CANCELLED
        COMPLETED: terminal
        CANCELLED: terminal
    """

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[MovementStatus] = frozenset({
    MovementStatus.COMPLETED,
    MovementStatus.CANCELLED,
})


class MovementEvent(str, Enum):
    """Lifecycle events accepted by the state machine."""

    CREATE_RECEIPT = "create_receipt"
    CREATE_ISSUE = "create_issue"
    PROCESS = "process"
    CANCEL = "cancel"


class StockEffect(str, Enum):
    """Quantity mutation bound to a transition."""

    NONE = "none"
    INCREASE = "increase"
    DECREASE = "decrease"


@dataclass(frozen=True)
class Guard:
    """A condition that must hold before a transition fires.

    Descriptive only: the state machine service evaluates it.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A legal movement transition.

    ``from_status`` is None for creation events.  ``actor_field`` names the
    column stamped with the acting identifier, ``stamps_effective_at`` marks
    the transitions that actually move stock.
    """
    event: MovementEvent
    direction: MovementDirection
    from_status: MovementStatus | None
    to_status: MovementStatus
    stock_effect: StockEffect
    actor_field: str
    guards: tuple[Guard, ...] = ()
    stamps_effective_at: bool = False
    stamps_cancelled_at: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for the movement lifecycle."""
    name: str
    description: str
    states: tuple[MovementStatus, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[MovementStatus, ...] = ()


POSITIVE_QUANTITY = Guard("positive_quantity", "quantity is an integer greater than zero")
ITEM_ACTIVE = Guard("item_active", "referenced item exists and is active")
ACTOR_PROVIDED = Guard("actor_provided", "a non-blank actor identifier is supplied")
SUFFICIENT_STOCK = Guard(
    "sufficient_stock",
    "on-hand quantity covers the issue, checked atomically with the decrement",
)


MOVEMENT_WORKFLOW = Workflow(
    name="stock_movement",
    description="Receipts complete on creation; issues wait for processing or cancellation",
    states=(MovementStatus.PENDING, MovementStatus.COMPLETED, MovementStatus.CANCELLED),
    terminal_states=(MovementStatus.COMPLETED, MovementStatus.CANCELLED),
    transitions=(
        Transition(
            event=MovementEvent.CREATE_RECEIPT,
            direction=MovementDirection.RECEIPT,
            from_status=None,
            to_status=MovementStatus.COMPLETED,
            stock_effect=StockEffect.INCREASE,
            actor_field="received_by",
            guards=(POSITIVE_QUANTITY, ITEM_ACTIVE, ACTOR_PROVIDED),
            stamps_effective_at=True,
        ),
        Transition(
            event=MovementEvent.CREATE_ISSUE,
            direction=MovementDirection.ISSUE,
            from_status=None,
            to_status=MovementStatus.PENDING,
            stock_effect=StockEffect.NONE,
            actor_field="requested_by",
            guards=(POSITIVE_QUANTITY, ITEM_ACTIVE, ACTOR_PROVIDED),
        ),
        Transition(
            event=MovementEvent.PROCESS,
            direction=MovementDirection.ISSUE,
            from_status=MovementStatus.PENDING,
            to_status=MovementStatus.COMPLETED,
            stock_effect=StockEffect.DECREASE,
            actor_field="processed_by",
            guards=(ACTOR_PROVIDED, SUFFICIENT_STOCK),
            stamps_effective_at=True,
        ),
        Transition(
            event=MovementEvent.CANCEL,
            direction=MovementDirection.ISSUE,
            from_status=MovementStatus.PENDING,
            to_status=MovementStatus.CANCELLED,
            stock_effect=StockEffect.NONE,
            actor_field="cancelled_by",
            guards=(ACTOR_PROVIDED,),
            stamps_cancelled_at=True,
        ),
    ),
)

_TRANSITION_INDEX: dict[
    tuple[MovementEvent, MovementDirection, MovementStatus | None], Transition
] = {
    (t.event, t.direction, t.from_status): t for t in MOVEMENT_WORKFLOW.transitions
}


def resolve_transition(
    event: MovementEvent,
    direction: MovementDirection,
    current_status: MovementStatus | None,
    movement_id: int | None = None,
) -> Transition:
    """Look up the transition for ``event`` from the given state.

    Raises:
        InvalidStateTransitionError: no transition is defined for the
            (event, direction, status) triple.
    """
    transition = _TRANSITION_INDEX.get((event, direction, current_status))
    if transition is None:
        raise InvalidStateTransitionError(
            movement_id=movement_id,
            direction=direction.value,
            current_status=current_status.value if current_status else None,
            event=event.value,
        )
    return transition


def allowed_events(
    direction: MovementDirection,
    current_status: MovementStatus,
) -> tuple[MovementEvent, ...]:
    """Events that may still be applied to a movement in this state."""
    return tuple(
        t.event
        for t in MOVEMENT_WORKFLOW.transitions
        if t.direction == direction and t.from_status == current_status
    )
