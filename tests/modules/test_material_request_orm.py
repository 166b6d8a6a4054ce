"""
Tests for the MaterialRequestModel aggregate: state machine and item rules.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from sgpc_kernel.exceptions import (
    EmptyRejectionReasonError,
    InvalidQuantityError,
    InvalidRequestStateError,
    MaterialRequestItemNotFoundError,
)
from sgpc_modules.material_request.orm import MaterialRequestModel
from tests.modules.conftest import (
    TEST_APPROVER_ID,
    TEST_CEMENT_ID,
    TEST_PROJECT_ID,
    TEST_REQUESTER_ID,
    TEST_SAND_ID,
)


@pytest.fixture
def pending(deterministic_clock):
    request = MaterialRequestModel.create(
        project_id=TEST_PROJECT_ID,
        requester_id=TEST_REQUESTER_ID,
        at=deterministic_clock.now(),
    )
    request.id = uuid4()
    request.add_item(TEST_CEMENT_ID, Decimal("30"), Decimal("32"), deterministic_clock.now())
    return request


class TestCreate:

    def test_starts_pending(self, pending, deterministic_clock):
        assert pending.status == "PENDENTE"
        assert pending.is_pending
        assert pending.request_date == deterministic_clock.today()
        assert pending.approved_by_id is None
        assert pending.rejection_reason is None


class TestApprove:

    def test_pending_to_approved(self, pending, deterministic_clock):
        pending.approve(TEST_APPROVER_ID, deterministic_clock.now())
        assert pending.status == "APROVADA"
        assert pending.approved_by_id == TEST_APPROVER_ID
        assert pending.approved_at == deterministic_clock.now()

    @pytest.mark.parametrize("terminal", ["APROVADA", "REJEITADA"])
    def test_terminal_states_cannot_be_approved(self, pending, deterministic_clock, terminal):
        pending.status = terminal
        with pytest.raises(InvalidRequestStateError) as exc_info:
            pending.approve(TEST_APPROVER_ID, deterministic_clock.now())
        assert exc_info.value.current_status == terminal
        assert exc_info.value.action == "approve"


class TestReject:

    def test_pending_to_rejected_keeps_trimmed_reason(self, pending, deterministic_clock):
        pending.reject(TEST_APPROVER_ID, "  Over budget  ", deterministic_clock.now())
        assert pending.status == "REJEITADA"
        assert pending.rejection_reason == "Over budget"
        assert pending.approved_by_id == TEST_APPROVER_ID

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_blank_reason_is_rejected(self, pending, deterministic_clock, reason):
        with pytest.raises(EmptyRejectionReasonError):
            pending.reject(TEST_APPROVER_ID, reason, deterministic_clock.now())
        assert pending.status == "PENDENTE"

    def test_second_reject_is_invalid_state(self, pending, deterministic_clock):
        pending.reject(TEST_APPROVER_ID, "Duplicate", deterministic_clock.now())
        with pytest.raises(InvalidRequestStateError):
            pending.reject(TEST_APPROVER_ID, "Again", deterministic_clock.now())
        assert pending.rejection_reason == "Duplicate"

    def test_state_is_checked_before_reason(self, pending, deterministic_clock):
        pending.approve(TEST_APPROVER_ID, deterministic_clock.now())
        with pytest.raises(InvalidRequestStateError):
            pending.reject(TEST_APPROVER_ID, "", deterministic_clock.now())


class TestItems:

    def test_lines_are_numbered(self, pending, deterministic_clock):
        item = pending.add_item(TEST_SAND_ID, Decimal("2"), Decimal("120"), deterministic_clock.now())
        assert item.line_number == 2
        assert pending.item_count == 2

    def test_total_amount_uses_snapshotted_prices(self, pending, deterministic_clock):
        pending.add_item(TEST_SAND_ID, Decimal("2"), Decimal("120"), deterministic_clock.now())
        assert pending.total_amount == Decimal("30") * Decimal("32") + Decimal("240")

    def test_quantities_are_summed_per_material(self, pending, deterministic_clock):
        pending.add_item(TEST_CEMENT_ID, Decimal("5"), Decimal("32"), deterministic_clock.now())
        pending.add_item(TEST_SAND_ID, Decimal("1"), Decimal("120"), deterministic_clock.now())
        assert pending.quantities_by_material() == {
            TEST_CEMENT_ID: Decimal("35"),
            TEST_SAND_ID: Decimal("1"),
        }

    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-1")])
    def test_non_positive_quantity(self, pending, deterministic_clock, quantity):
        with pytest.raises(InvalidQuantityError):
            pending.add_item(TEST_SAND_ID, quantity, Decimal("120"), deterministic_clock.now())

    def test_items_frozen_after_decision(self, pending, deterministic_clock):
        pending.approve(TEST_APPROVER_ID, deterministic_clock.now())
        with pytest.raises(InvalidRequestStateError):
            pending.add_item(TEST_SAND_ID, Decimal("1"), Decimal("120"), deterministic_clock.now())
        with pytest.raises(InvalidRequestStateError):
            pending.remove_item(pending.items[0].id, deterministic_clock.now())

    def test_remove_unknown_item(self, pending, deterministic_clock):
        with pytest.raises(MaterialRequestItemNotFoundError):
            pending.remove_item(uuid4(), deterministic_clock.now())

    def test_summary(self, pending):
        summary = pending.to_summary()
        assert summary.item_count == 1
        assert summary.status.value == "PENDENTE"
        assert summary.total_amount == Decimal("960")
