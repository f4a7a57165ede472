"""
Typed Exception Hierarchy for the Inventory Ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The ledger is consumed by a boundary layer (HTTP controllers, the operator
CLI) that must turn every failure into a specific, actionable response.
Parsing message strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Every exception has a KIND attribute (what the boundary should do)
  4. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        service.process(movement_id, processed_by="u-7")
    except Exception as e:
        if "insufficient" in str(e):  # FRAGILE - message might change
            ...

Example - RIGHT way (what this module enables):
    try:
        service.process(movement_id, processed_by="u-7")
    except InsufficientStockError as e:
        respond(KIND_STATUS[e.kind], code=e.code, available=e.available)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryLedgerError (base)
    |
    +-- InvalidInputError
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- MovementNotFoundError
    |
    +-- ConflictError
    |   +-- InsufficientStockError
    |   +-- StockCapacityExceededError
    |   +-- InvalidStateTransitionError
    |
    +-- DuplicateCodeError
    |
    +-- ContentionError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                      | Kind          | When Raised
--------------------------|---------------|------------------------------------------
INVALID_INPUT             | invalid_input | Quantity out of range, blank actor, bad page
ITEM_NOT_FOUND            | not_found     | Item missing or inactive
MOVEMENT_NOT_FOUND        | not_found     | Movement id/code doesn't exist
INSUFFICIENT_STOCK        | conflict      | Process would drive quantity negative
STOCK_CAPACITY_EXCEEDED   | conflict      | Receipt would push quantity past the ceiling
INVALID_STATE_TRANSITION  | conflict      | Process/Cancel on terminal or receipt
DUPLICATE_CODE            | internal      | Code allocation retries exhausted
CONTENTION                | contention    | Lock/commit timeout; caller may retry
IMMUTABILITY_VIOLATION    | internal      | Write to a frozen column or terminal row
"""

INVALID_INPUT = "invalid_input"
NOT_FOUND = "not_found"
CONFLICT = "conflict"
CONTENTION = "contention"
INTERNAL = "internal"

# Transport-equivalent status per kind, for the boundary layer.
KIND_STATUS: dict[str, int] = {
    INVALID_INPUT: 400,
    NOT_FOUND: 404,
    CONFLICT: 409,
    CONTENTION: 503,
    INTERNAL: 500,
}

CREATED_STATUS = 201


class InventoryLedgerError(Exception):
    """
    Base exception for all inventory ledger errors.

    All subclasses must have a `code` and a `kind` class attribute.
    """

    code: str = "INVENTORY_LEDGER_ERROR"
    kind: str = INTERNAL

    @property
    def http_status(self) -> int:
        """Transport-equivalent status for this error's kind."""
        return KIND_STATUS[self.kind]


class InvalidInputError(InventoryLedgerError):
    """A request argument failed validation before any work was attempted."""

    code: str = "INVALID_INPUT"
    kind: str = INVALID_INPUT

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


# Lookup failures


class NotFoundError(InventoryLedgerError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"
    kind: str = NOT_FOUND


class ItemNotFoundError(NotFoundError):
    """Item does not exist, or exists but is inactive."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: int, reason: str = "missing"):
        self.item_id = item_id
        self.reason = reason
        if reason == "inactive":
            super().__init__(f"Item {item_id} is inactive")
        else:
            super().__init__(f"Item with ID {item_id} not found")


class MovementNotFoundError(NotFoundError):
    """Stock movement with the given id or code does not exist."""

    code: str = "MOVEMENT_NOT_FOUND"

    def __init__(self, movement_id: int | str):
        self.movement_id = movement_id
        super().__init__(f"Stock movement {movement_id} not found")


# Conflicts with current state


class ConflictError(InventoryLedgerError):
    """Base exception for requests that conflict with current state."""

    code: str = "CONFLICT"
    kind: str = CONFLICT


class InsufficientStockError(ConflictError):
    """
    Decrease guard failed: on-hand quantity is below the requested amount.

    The unit of work is rolled back; the movement stays pending and the
    caller may resubmit later.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: int, requested: int, available: int):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for item {item_id}: "
            f"requested {requested}, currently {available} available"
        )


class StockCapacityExceededError(ConflictError):
    """Increase guard failed: the new on-hand quantity would exceed the ceiling."""

    code: str = "STOCK_CAPACITY_EXCEEDED"

    def __init__(self, item_id: int, requested: int, on_hand: int, max_quantity: int):
        self.item_id = item_id
        self.requested = requested
        self.on_hand = on_hand
        self.max_quantity = max_quantity
        super().__init__(
            f"Cannot receive {requested} of item {item_id}: "
            f"{on_hand} on hand, at most {max_quantity} can be held"
        )


class InvalidStateTransitionError(ConflictError):
    """Event is not legal for the movement's direction and status."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        movement_id: int | None,
        direction: str,
        current_status: str | None,
        event: str,
    ):
        self.movement_id = movement_id
        self.direction = direction
        self.current_status = current_status
        self.event = event
        super().__init__(
            f"Cannot {event} {direction} movement {movement_id} "
            f"in status {current_status}"
        )


# Allocation and concurrency


class DuplicateCodeError(InventoryLedgerError):
    """Movement code collided on insert and retries were exhausted."""

    code: str = "DUPLICATE_CODE"
    kind: str = INTERNAL

    def __init__(self, movement_code: str, attempts: int):
        self.movement_code = movement_code
        self.attempts = attempts
        super().__init__(
            f"Movement code {movement_code} collided after {attempts} allocation attempts"
        )


class ContentionError(InventoryLedgerError):
    """
    The unit of work could not acquire its lock or commit in time.

    Nothing was applied; the caller may retry.
    """

    code: str = "CONTENTION"
    kind: str = CONTENTION

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} timed out waiting for a lock: {detail}")


# Immutability


class ImmutabilityViolationError(InventoryLedgerError):
    """Attempted to modify or delete a record the ledger treats as frozen."""

    code: str = "IMMUTABILITY_VIOLATION"
    kind: str = INTERNAL

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
