"""Input normalisation rules applied before any unit of work opens."""

from datetime import date, datetime, timedelta, timezone

import pytest

from inventory_ledger.domain.limits import LedgerLimits
from inventory_ledger.domain.validation import (
    normalize_occurred_at,
    normalize_remarks,
    require_actor,
    require_code,
    require_positive_int,
    require_quantity,
    validate_date_range,
    validate_page,
)
from inventory_ledger.exceptions import InvalidInputError


class TestPositiveIntegers:

    def test_accepts_positive(self):
        assert require_quantity(3) == 3

    @pytest.mark.parametrize("value", [0, -1, -100])
    def test_rejects_zero_and_negative(self, value):
        with pytest.raises(InvalidInputError) as exc_info:
            require_quantity(value)
        assert exc_info.value.field == "quantity"
        assert exc_info.value.http_status == 400

    def test_quantity_ceiling(self):
        assert require_quantity(2_147_483_647) == 2_147_483_647
        for value in (2**31, 2**64):
            with pytest.raises(InvalidInputError, match="at most 2147483647") as exc_info:
                require_quantity(value)
            assert exc_info.value.field == "quantity"

    def test_configured_quantity_ceiling(self):
        limits = LedgerLimits(max_quantity=50)
        assert require_quantity(50, limits) == 50
        with pytest.raises(InvalidInputError):
            require_quantity(51, limits)

    @pytest.mark.parametrize("value", [True, 1.0, "1", None])
    def test_rejects_non_integers(self, value):
        with pytest.raises(InvalidInputError):
            require_positive_int(value, "item_id")


class TestActors:

    def test_trims(self):
        assert require_actor("  alice  ", "requested_by") == "alice"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_is_rejected(self, value):
        with pytest.raises(InvalidInputError, match="requested_by"):
            require_actor(value, "requested_by")

    def test_length_limit(self):
        limits = LedgerLimits(max_actor_length=5)
        assert require_actor("abcde", "processed_by", limits) == "abcde"
        with pytest.raises(InvalidInputError):
            require_actor("abcdef", "processed_by", limits)


class TestRemarks:

    def test_blank_becomes_none(self):
        assert normalize_remarks(None) is None
        assert normalize_remarks("   ") is None

    def test_trimmed(self):
        assert normalize_remarks("  Room 204 ") == "Room 204"

    def test_length_limit(self):
        limits = LedgerLimits(max_remarks_length=4)
        with pytest.raises(InvalidInputError) as exc_info:
            normalize_remarks("hello", limits)
        assert exc_info.value.field == "remarks"


class TestOccurredAt:

    def test_naive_taken_as_utc(self):
        value = normalize_occurred_at(datetime(2026, 10, 17, 15, 30))
        assert value == datetime(2026, 10, 17, 15, 30, tzinfo=timezone.utc)

    def test_aware_converted_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        value = normalize_occurred_at(datetime(2026, 10, 17, 15, 30, tzinfo=plus_two))
        assert value == datetime(2026, 10, 17, 13, 30, tzinfo=timezone.utc)
        assert value.utcoffset() == timedelta(0)

    def test_none_passes_through(self):
        assert normalize_occurred_at(None) is None

    def test_date_rejected(self):
        with pytest.raises(InvalidInputError):
            normalize_occurred_at(date(2026, 10, 17))


class TestQueryArguments:

    def test_code_required(self):
        assert require_code(" OUT-20261018-0001 ") == "OUT-20261018-0001"
        with pytest.raises(InvalidInputError):
            require_code("  ")

    def test_inverted_date_range(self):
        validate_date_range(date(2026, 10, 1), date(2026, 10, 1))
        with pytest.raises(InvalidInputError) as exc_info:
            validate_date_range(date(2026, 10, 2), date(2026, 10, 1))
        assert exc_info.value.field == "date_range"

    def test_page_defaults(self):
        assert validate_page(1, None) == (1, 20)

    def test_page_size_capped(self):
        assert validate_page(2, 100) == (2, 100)
        with pytest.raises(InvalidInputError, match="page_size"):
            validate_page(1, 101)

    @pytest.mark.parametrize("page", [0, -1])
    def test_page_must_be_positive(self, page):
        with pytest.raises(InvalidInputError, match="page"):
            validate_page(page, 10)


class TestLedgerLimits:

    def test_non_positive_rejected(self):
        with pytest.raises(ValueError, match="lock_timeout_ms"):
            LedgerLimits(lock_timeout_ms=0)

    def test_default_above_max_rejected(self):
        with pytest.raises(ValueError, match="exceeds"):
            LedgerLimits(default_page_size=50, max_page_size=10)

    def test_quantity_ceiling_bounded_by_column(self):
        with pytest.raises(ValueError, match="max_quantity"):
            LedgerLimits(max_quantity=2**31)
