"""
Tests for the pure domain records.

These tests verify:
- DTOs are immutable
- PagedResult paging arithmetic and display text
- Clock implementations
"""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from inventory_ledger.domain.clock import DeterministicClock, SystemClock
from inventory_ledger.domain.dtos import (
    MovementQuery,
    PagedResult,
    StockMovementDTO,
    StockMovementSummaryDTO,
)
from inventory_ledger.domain.movement import MovementDirection, MovementStatus

NOW = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


def _movement(**overrides) -> StockMovementDTO:
    values = dict(
        id=1,
        code="OUT-20261018-0001",
        item_id=7,
        quantity=4,
        direction=MovementDirection.ISSUE,
        status=MovementStatus.PENDING,
        created_at=NOW,
        effective_at=None,
        received_by=None,
        requested_by="alice",
        processed_by=None,
        cancelled_by=None,
        cancelled_at=None,
        remarks="Room 204",
        item_name="Copy paper A4",
    )
    values.update(overrides)
    return StockMovementDTO(**values)


class TestDTOImmutability:

    def test_movement_dto_is_frozen(self):
        with pytest.raises(FrozenInstanceError):
            _movement().status = MovementStatus.COMPLETED

    def test_query_is_frozen(self):
        with pytest.raises(FrozenInstanceError):
            MovementQuery().page = 2


class TestStockMovementDTO:

    def test_is_terminal(self):
        assert not _movement().is_terminal
        assert _movement(status=MovementStatus.CANCELLED).is_terminal

    def test_to_dict_serializes_enums_and_datetimes(self):
        data = _movement().to_dict()
        assert data["direction"] == "issue"
        assert data["status"] == "pending"
        assert data["created_at"] == "2026-10-18T09:00:00+00:00"
        assert data["effective_at"] is None
        assert data["item_name"] == "Copy paper A4"

    def test_summary_to_dict(self):
        summary = StockMovementSummaryDTO(
            id=2,
            code="IN-20261018-0001",
            item_id=7,
            item_name="Copy paper A4",
            quantity=10,
            direction=MovementDirection.RECEIPT,
            status=MovementStatus.COMPLETED,
            actor="storekeeper",
            created_at=NOW,
            effective_at=NOW,
            remarks=None,
        )
        data = summary.to_dict()
        assert data["actor"] == "storekeeper"
        assert data["effective_at"] == "2026-10-18T09:00:00+00:00"


class TestPagedResult:

    def test_empty(self):
        page = PagedResult(items=(), total_count=0, page=1, page_size=20)
        assert page.total_pages == 0
        assert page.start_item == 0
        assert page.end_item == 0
        assert not page.has_next_page
        assert not page.has_previous_page
        assert page.display_text == "No items found"

    def test_middle_page(self):
        page = PagedResult(items=("x",) * 10, total_count=45, page=2, page_size=10)
        assert page.total_pages == 5
        assert page.has_next_page
        assert page.has_previous_page
        assert page.display_text == "Showing 11-20 of 45 items"

    def test_last_partial_page(self):
        page = PagedResult(items=("x",) * 5, total_count=45, page=5, page_size=10)
        assert not page.has_next_page
        assert page.end_item == 45
        assert page.display_text == "Showing 41-45 of 45 items"

    def test_to_dict(self):
        page = PagedResult(items=(_movement(),), total_count=1, page=1, page_size=20)
        data = page.to_dict()
        assert data["items"][0]["code"] == "OUT-20261018-0001"
        assert data["total_pages"] == 1
        assert data["display_text"] == "Showing 1-1 of 1 items"


class TestClock:

    def test_deterministic_clock_is_fixed(self):
        clock = DeterministicClock(NOW)
        assert clock.now() == clock.now() == NOW

    def test_deterministic_clock_advances(self):
        clock = DeterministicClock(NOW)
        clock.advance(90)
        assert clock.now() == datetime(2026, 10, 18, 9, 1, 30, tzinfo=timezone.utc)
        assert clock.tick() == datetime(2026, 10, 18, 9, 1, 31, tzinfo=timezone.utc)

    def test_set_time_resets_advance(self):
        clock = DeterministicClock(NOW)
        clock.advance(5)
        later = datetime(2026, 10, 19, tzinfo=timezone.utc)
        clock.set_time(later)
        assert clock.now() == later

    def test_system_clock_is_aware_and_monotonic(self):
        clock = SystemClock()
        first = clock.now()
        second = clock.now()
        assert first.tzinfo is not None
        assert second >= first
