"""
Module: inventory_ledger.selectors.movement_selector
Responsibility: Read-only queries over stock movements: lookup by id or
    code, and the filtered, sorted, paginated listing behind the movement
    history and the pending-issue approval queue.
Architecture position: Ledger > Selectors.  Pass-through read paths; no
    state machine involvement and no locks taken.

Invariants enforced:
    - Date filters are inclusive UTC calendar days applied to effective_at,
      falling back to created_at for movements that have not touched stock.
    - A known sort key orders ascending unless descending is requested;
      unknown or missing sort keys order by id descending.
    - Ties are broken by id so paging is stable.

Failure modes:
    - MovementNotFoundError on lookups that match nothing.
    - InvalidInputError for bad paging, an inverted date range, or an
      unknown direction/status value.
"""

from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.orm import joinedload

from inventory_ledger.domain.dtos import (
    MovementQuery,
    PagedResult,
    StockMovementDTO,
    StockMovementSummaryDTO,
)
from inventory_ledger.domain.limits import DEFAULT_LIMITS, LedgerLimits
from inventory_ledger.domain.movement import MovementDirection, MovementStatus
from inventory_ledger.domain.validation import validate_date_range, validate_page
from inventory_ledger.exceptions import InvalidInputError, MovementNotFoundError
from inventory_ledger.models.item import Item
from inventory_ledger.models.stock_movement import StockMovement
from inventory_ledger.selectors.base import BaseSelector

# effective_at for movements that touched stock, created_at otherwise.
_movement_date = func.coalesce(StockMovement.effective_at, StockMovement.created_at)

SORT_COLUMNS = {
    "item_name": Item.name,
    "quantity": StockMovement.quantity,
    "effective_at": StockMovement.effective_at,
    "created_at": StockMovement.created_at,
    "id": StockMovement.id,
}


def _day_start(day) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class MovementSelector(BaseSelector):
    """Query stock movements."""

    def __init__(self, session, limits: LedgerLimits = DEFAULT_LIMITS):
        super().__init__(session)
        self._limits = limits

    def get_by_id(self, movement_id: int) -> StockMovementDTO:
        movement = self.session.execute(
            select(StockMovement)
            .options(joinedload(StockMovement.item))
            .where(StockMovement.id == movement_id)
        ).scalar_one_or_none()
        if movement is None:
            raise MovementNotFoundError(movement_id)
        return StockMovementDTO.from_model(movement)

    def get_by_code(self, code: str) -> StockMovementDTO:
        movement = self.session.execute(
            select(StockMovement)
            .options(joinedload(StockMovement.item))
            .where(StockMovement.code == code)
        ).scalar_one_or_none()
        if movement is None:
            raise MovementNotFoundError(code)
        return StockMovementDTO.from_model(movement)

    def list_movements(self, query: MovementQuery) -> PagedResult[StockMovementSummaryDTO]:
        """
        Filtered, sorted page of movement summaries.

        Postconditions:
            - total_count counts every match, not just this page.
            - A page past the end returns no items with the true total.
        """
        page, page_size = validate_page(query.page, query.page_size, self._limits)
        validate_date_range(query.date_from, query.date_to)
        conditions = self._conditions(query)

        total_count = self.session.execute(
            select(func.count(StockMovement.id))
            .select_from(StockMovement)
            .join(Item, StockMovement.item_id == Item.id)
            .where(*conditions)
        ).scalar_one()

        rows = self.session.execute(
            select(StockMovement, Item.name)
            .join(Item, StockMovement.item_id == Item.id)
            .where(*conditions)
            .order_by(*self._ordering(query.sort_by, query.descending))
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).all()

        return PagedResult(
            items=tuple(self._summary(movement, item_name) for movement, item_name in rows),
            total_count=total_count,
            page=page,
            page_size=page_size,
        )

    def list_pending_issues(
        self,
        page: int = 1,
        page_size: int | None = None,
        sort_by: str | None = None,
        descending: bool = False,
    ) -> PagedResult[StockMovementSummaryDTO]:
        """The approval queue: issues waiting to be processed or cancelled."""
        return self.list_movements(
            MovementQuery(
                direction=MovementDirection.ISSUE,
                status=MovementStatus.PENDING,
                sort_by=sort_by,
                descending=descending,
                page=page,
                page_size=page_size,
            )
        )

    # -----------------------------------------------------------------
    # Query building
    # -----------------------------------------------------------------

    def _conditions(self, query: MovementQuery) -> list:
        conditions = []

        if query.code:
            conditions.append(StockMovement.code == query.code.strip())
        if query.direction is not None:
            conditions.append(
                StockMovement.direction == _coerce(MovementDirection, query.direction, "direction").value
            )
        if query.status is not None:
            conditions.append(
                StockMovement.status == _coerce(MovementStatus, query.status, "status").value
            )
        if query.item_id is not None:
            conditions.append(StockMovement.item_id == query.item_id)

        for field in ("requested_by", "received_by", "processed_by", "cancelled_by"):
            value = getattr(query, field)
            if value:
                conditions.append(getattr(StockMovement, field) == value.strip())

        if query.actor:
            actor = query.actor.strip()
            conditions.append(
                or_(
                    StockMovement.received_by == actor,
                    StockMovement.requested_by == actor,
                    StockMovement.processed_by == actor,
                    StockMovement.cancelled_by == actor,
                )
            )

        if query.date_from is not None:
            conditions.append(_movement_date >= _day_start(query.date_from))
        # date.max has no following day; every stored date is on or before it.
        if query.date_to is not None and query.date_to < date.max:
            conditions.append(_movement_date < _day_start(query.date_to + timedelta(days=1)))

        if query.search and query.search.strip():
            term = f"%{_escape_like(query.search.strip().lower())}%"
            conditions.append(
                or_(
                    func.lower(Item.name).like(term, escape="\\"),
                    func.lower(StockMovement.remarks).like(term, escape="\\"),
                    func.lower(StockMovement.code).like(term, escape="\\"),
                )
            )

        return conditions

    def _ordering(self, sort_by: str | None, descending: bool) -> tuple:
        key = (sort_by or "").strip().lower()
        column = SORT_COLUMNS.get(key)
        if column is None:
            return (StockMovement.id.desc(),)

        primary = column.desc() if descending else column.asc()
        if key == "effective_at":
            primary = primary.nulls_last()
        if key == "id":
            return (primary,)
        tiebreak = StockMovement.id.desc() if descending else StockMovement.id.asc()
        return (primary, tiebreak)

    @staticmethod
    def _summary(movement: StockMovement, item_name: str) -> StockMovementSummaryDTO:
        direction = MovementDirection(movement.direction)
        actor = (
            movement.received_by
            if direction is MovementDirection.RECEIPT
            else movement.requested_by
        )
        return StockMovementSummaryDTO(
            id=movement.id,
            code=movement.code,
            item_id=movement.item_id,
            item_name=item_name,
            quantity=movement.quantity,
            direction=direction,
            status=MovementStatus(movement.status),
            actor=actor,
            created_at=movement.created_at,
            effective_at=movement.effective_at,
            remarks=movement.remarks,
        )


def _coerce(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidInputError(field, f"unknown value {value!r}") from None
