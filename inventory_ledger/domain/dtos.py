"""
DTOs -- immutable records returned by the ledger.

Responsibility:
    Defines the data structures that cross the ledger's public boundary:
    StockMovementDTO (full record), StockMovementSummaryDTO (list rows),
    ItemDTO, the MovementQuery filter object and the PagedResult envelope.

Architecture position:
    Ledger > Domain -- zero I/O.  ``from_model()`` class methods are boundary
    converters invoked only by services and selectors; domain logic never
    sees ORM entities.

Invariants enforced:
    - Callers never receive a live ORM instance, so nothing outside a unit
      of work can lazily load or mutate ledger rows.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Generic, TypeVar

from inventory_ledger.domain.movement import MovementDirection, MovementStatus

if TYPE_CHECKING:
    from inventory_ledger.models.item import Item as ItemModel
    from inventory_ledger.models.stock_movement import (
        StockMovement as StockMovementModel,
    )

T = TypeVar("T")


@dataclass(frozen=True)
class ItemDTO:
    id: int
    name: str
    unit: str | None
    quantity: int
    is_active: bool

    @classmethod
    def from_model(cls, model: ItemModel) -> ItemDTO:
        return cls(
            id=model.id,
            name=model.name,
            unit=model.unit,
            quantity=model.quantity,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class StockMovementDTO:
    """
    Full snapshot of a stock movement as of the end of a unit of work.

    Guarantees:
        - ``processed_by`` is set only when ``status`` is COMPLETED on an issue.
        - ``cancelled_by`` / ``cancelled_at`` are set only when CANCELLED.
        - ``effective_at`` is None exactly while the movement has not
          touched stock (pending or cancelled issues).
    """

    id: int
    code: str
    item_id: int
    quantity: int
    direction: MovementDirection
    status: MovementStatus
    created_at: datetime
    effective_at: datetime | None
    received_by: str | None
    requested_by: str | None
    processed_by: str | None
    cancelled_by: str | None
    cancelled_at: datetime | None
    remarks: str | None
    item_name: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @classmethod
    def from_model(cls, model: StockMovementModel) -> StockMovementDTO:
        return cls(
            id=model.id,
            code=model.code,
            item_id=model.item_id,
            quantity=model.quantity,
            direction=MovementDirection(model.direction),
            status=MovementStatus(model.status),
            created_at=model.created_at,
            effective_at=model.effective_at,
            received_by=model.received_by,
            requested_by=model.requested_by,
            processed_by=model.processed_by,
            cancelled_by=model.cancelled_by,
            cancelled_at=model.cancelled_at,
            remarks=model.remarks,
            item_name=model.item.name if model.item is not None else None,
        )

    def to_dict(self) -> dict:
        """Plain-dict form for JSON output."""
        return {
            "id": self.id,
            "code": self.code,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "direction": self.direction.value,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "effective_at": _iso(self.effective_at),
            "received_by": self.received_by,
            "requested_by": self.requested_by,
            "processed_by": self.processed_by,
            "cancelled_by": self.cancelled_by,
            "cancelled_at": _iso(self.cancelled_at),
            "remarks": self.remarks,
        }


@dataclass(frozen=True)
class StockMovementSummaryDTO:
    """One row of a movement listing."""

    id: int
    code: str
    item_id: int
    item_name: str
    quantity: int
    direction: MovementDirection
    status: MovementStatus
    actor: str | None
    created_at: datetime
    effective_at: datetime | None
    remarks: str | None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "direction": self.direction.value,
            "status": self.status.value,
            "actor": self.actor,
            "created_at": _iso(self.created_at),
            "effective_at": _iso(self.effective_at),
            "remarks": self.remarks,
        }


@dataclass(frozen=True)
class MovementQuery:
    """
    Filters, sorting and paging for ``list_movements``.

    ``date_from`` / ``date_to`` are inclusive UTC calendar days matched
    against ``effective_at`` (or ``created_at`` while the movement has not
    touched stock).  ``actor`` matches any of the four actor columns.
    ``page_size`` None means the configured default.
    """

    code: str | None = None
    direction: MovementDirection | None = None
    status: MovementStatus | None = None
    item_id: int | None = None
    requested_by: str | None = None
    received_by: str | None = None
    processed_by: str | None = None
    cancelled_by: str | None = None
    actor: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None
    sort_by: str | None = None
    descending: bool = False
    page: int = 1
    page_size: int | None = None


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    """A page of results plus the totals needed to render paging controls."""

    items: tuple[T, ...]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.total_count == 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @property
    def start_item(self) -> int:
        if self.total_count == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end_item(self) -> int:
        return min(self.page * self.page_size, self.total_count)

    @property
    def display_text(self) -> str:
        if self.total_count == 0:
            return "No items found"
        return f"Showing {self.start_item}-{self.end_item} of {self.total_count} items"

    def to_dict(self) -> dict:
        return {
            "items": [
                item.to_dict() if hasattr(item, "to_dict") else item
                for item in self.items
            ],
            "total_count": self.total_count,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "has_next_page": self.has_next_page,
            "has_previous_page": self.has_previous_page,
            "display_text": self.display_text,
        }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
