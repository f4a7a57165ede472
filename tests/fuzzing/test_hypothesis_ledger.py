"""
Property-based tests for the ledger.

Hypothesis generates sequences of receipts, issues, processing and
cancellation and checks them against a plain in-memory model:
- on-hand quantity never goes negative
- on-hand quantity always equals receipts minus processed issues
- every movement ends in the status the model predicts
- codes stay contiguous per bucket
"""

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from inventory_ledger.domain.movement import MovementStatus
from inventory_ledger.domain.validation import require_actor, require_quantity
from inventory_ledger.exceptions import (
    InsufficientStockError,
    InvalidInputError,
    InvalidStateTransitionError,
)

DB_SETTINGS = settings(
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
)

operations = st.lists(
    st.one_of(
        st.tuples(st.just("receive"), st.integers(min_value=1, max_value=20)),
        st.tuples(st.just("issue"), st.integers(min_value=1, max_value=20)),
        st.tuples(st.just("process"), st.integers(min_value=0, max_value=30)),
        st.tuples(st.just("cancel"), st.integers(min_value=0, max_value=30)),
    ),
    min_size=1,
    max_size=25,
)


class TestLedgerModel:

    @DB_SETTINGS
    @given(opening=st.integers(min_value=0, max_value=10), ops=operations)
    def test_quantity_matches_model(self, ledger_service, make_item, opening, ops):
        item_id = make_item(quantity=opening)
        expected_quantity = opening
        issues: list[int] = []
        expected_status: dict[int, MovementStatus] = {}
        quantities: dict[int, int] = {}

        for op, value in ops:
            if op == "receive":
                ledger_service.create_receipt(item_id, value, received_by="storekeeper")
                expected_quantity += value
            elif op == "issue":
                issue = ledger_service.create_issue(item_id, value, requested_by="alice")
                issues.append(issue.id)
                expected_status[issue.id] = MovementStatus.PENDING
                quantities[issue.id] = value
            elif issues:
                movement_id = issues[value % len(issues)]
                pending = expected_status[movement_id] is MovementStatus.PENDING
                if op == "process":
                    if not pending:
                        expected_error = InvalidStateTransitionError
                    elif quantities[movement_id] > expected_quantity:
                        expected_error = InsufficientStockError
                    else:
                        expected_error = None
                    try:
                        ledger_service.process(movement_id, processed_by="supervisor")
                    except (InsufficientStockError, InvalidStateTransitionError) as exc:
                        assert type(exc) is expected_error
                    else:
                        assert expected_error is None
                        expected_quantity -= quantities[movement_id]
                        expected_status[movement_id] = MovementStatus.COMPLETED
                else:
                    try:
                        ledger_service.cancel(movement_id, cancelled_by="supervisor")
                    except InvalidStateTransitionError:
                        assert not pending
                    else:
                        assert pending
                        expected_status[movement_id] = MovementStatus.CANCELLED

            on_hand = ledger_service.get_item(item_id).quantity
            assert on_hand >= 0
            assert on_hand == expected_quantity

        for movement_id, status in expected_status.items():
            assert ledger_service.get_movement(movement_id).status is status

    @DB_SETTINGS
    @given(receipts=st.integers(min_value=1, max_value=12), issues=st.integers(min_value=0, max_value=12))
    def test_codes_contiguous_per_bucket(self, ledger_service, make_item, receipts, issues):
        item_id = make_item()
        before = ledger_service.list_movements().total_count

        codes = [
            ledger_service.create_receipt(item_id, 1, received_by="s").code for _ in range(receipts)
        ] + [
            ledger_service.create_issue(item_id, 1, requested_by="a").code for _ in range(issues)
        ]

        sequences = {}
        for code in codes:
            prefix, _, seq = code.split("-")
            sequences.setdefault(prefix, []).append(int(seq))
        for seqs in sequences.values():
            assert seqs == list(range(seqs[0], seqs[0] + len(seqs)))
        assert len(set(codes)) == len(codes)
        assert ledger_service.list_movements().total_count == before + receipts + issues


class TestInputFuzzing:

    @given(
        value=st.one_of(
            st.integers(max_value=0),
            st.integers(min_value=2**31),
            st.booleans(),
            st.floats(),
            st.text(),
            st.none(),
        )
    )
    def test_invalid_quantities_rejected(self, value):
        try:
            require_quantity(value)
        except InvalidInputError as exc:
            assert exc.field == "quantity"
        else:
            raise AssertionError(f"{value!r} accepted as a quantity")

    @given(actor=st.text(max_size=500))
    def test_actor_normalisation(self, actor):
        stripped = actor.strip()
        try:
            result = require_actor(actor, "requested_by")
        except InvalidInputError:
            assert not stripped or len(stripped) > 450
        else:
            assert result == stripped
            assert 0 < len(result) <= 450
