"""
Tests for MaterialRequestService: creation, item editing and the approval
workflow coupled with the stock ledger.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from sgpc_kernel.exceptions import (
    EmptyRejectionReasonError,
    EmptyRequestError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidRequestStateError,
    MaterialNotFoundError,
    MaterialRequestNotFoundError,
    ProjectNotFoundError,
    UserNotFoundError,
)
from sgpc_modules.inventory.orm import MaterialModel
from sgpc_modules.material_request.models import NewRequestItem, RequestStatus
from sgpc_modules.material_request.orm import MaterialRequestModel
from tests.modules.conftest import (
    TEST_APPROVER_ID,
    TEST_CEMENT_ID,
    TEST_PROJECT_ID,
    TEST_REQUESTER_ID,
    TEST_SAND_ID,
)


def _stock(session, material_id) -> Decimal:
    session.expire_all()
    return session.get(MaterialModel, material_id).current_stock


def _status(session, request_id) -> str:
    session.expire_all()
    return session.get(MaterialRequestModel, request_id).status


@pytest.fixture
def parties(test_requester, test_approver, test_project):
    return test_requester, test_approver, test_project


@pytest.fixture
def new_request(request_service, parties, cement, sand):
    """Factory for PENDENTE requests of ``test_project``."""

    def _create(*lines):
        return request_service.create_request(
            TEST_PROJECT_ID,
            TEST_REQUESTER_ID,
            items=[NewRequestItem(material_id, Decimal(qty)) for material_id, qty in lines],
        )

    return _create


class TestCreateRequest:

    def test_creates_pending_request_with_price_snapshot(self, new_request):
        details = new_request((TEST_CEMENT_ID, "30"), (TEST_SAND_ID, "2"))

        assert details.status is RequestStatus.PENDENTE
        assert details.project_name == "Residencial Aurora"
        assert details.requester_name == "Ana Souza"
        assert [i.material_name for i in details.items] == ["Cement", "Sand"]
        assert details.items[0].unit_price == Decimal("32")
        assert details.total_amount == Decimal("1200")

    def test_empty_request_is_rejected(self, request_service, parties):
        with pytest.raises(EmptyRequestError):
            request_service.create_request(TEST_PROJECT_ID, TEST_REQUESTER_ID, items=[])

    def test_unknown_requester(self, request_service, test_project, cement):
        with pytest.raises(UserNotFoundError):
            request_service.create_request(
                TEST_PROJECT_ID, uuid4(), items=[NewRequestItem(TEST_CEMENT_ID, Decimal("1"))],
            )

    def test_unknown_project(self, request_service, test_requester, cement):
        with pytest.raises(ProjectNotFoundError):
            request_service.create_request(
                uuid4(), TEST_REQUESTER_ID, items=[NewRequestItem(TEST_CEMENT_ID, Decimal("1"))],
            )

    def test_unknown_material_creates_nothing(self, session, request_service, parties):
        with pytest.raises(MaterialNotFoundError):
            request_service.create_request(
                TEST_PROJECT_ID, TEST_REQUESTER_ID, items=[NewRequestItem(uuid4(), Decimal("1"))],
            )
        assert request_service.list_requests() == []

    def test_creation_does_not_touch_stock(self, session, new_request):
        new_request((TEST_CEMENT_ID, "30"))
        assert _stock(session, TEST_CEMENT_ID) == Decimal("100")


class TestEditItems:

    def test_add_item(self, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))
        details = request_service.add_item(created.id, TEST_SAND_ID, Decimal("3"))
        assert len(details.items) == 2

    def test_add_item_rejects_non_positive_quantity(self, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))
        with pytest.raises(InvalidQuantityError):
            request_service.add_item(created.id, TEST_SAND_ID, Decimal("0"))
        assert len(request_service.get_request(created.id).items) == 1

    def test_remove_item(self, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"), (TEST_SAND_ID, "2"))
        details = request_service.remove_item(created.id, created.items[1].id)
        assert [i.material_id for i in details.items] == [TEST_CEMENT_ID]

    def test_items_frozen_after_approval(self, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))
        request_service.approve_request(created.id, TEST_APPROVER_ID)
        with pytest.raises(InvalidRequestStateError):
            request_service.add_item(created.id, TEST_SAND_ID, Decimal("1"))


class TestApproveRequest:

    def test_approval_decrements_stock(self, session, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))

        details = request_service.approve_request(created.id, TEST_APPROVER_ID)

        assert details.status is RequestStatus.APROVADA
        assert details.approved_by_id == TEST_APPROVER_ID
        assert details.approved_by_name == "Bruno Lima"
        assert details.approved_at is not None
        assert _stock(session, TEST_CEMENT_ID) == Decimal("70")

    def test_request_emptied_by_edits_cannot_be_approved(self, session, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))
        request_service.remove_item(created.id, created.items[0].id)

        with pytest.raises(EmptyRequestError):
            request_service.approve_request(created.id, TEST_APPROVER_ID)
        assert _status(session, created.id) == "PENDENTE"
        assert _stock(session, TEST_CEMENT_ID) == Decimal("100")

    def test_insufficient_stock_changes_nothing(self, session, request_service, new_request):
        created = new_request((TEST_SAND_ID, "15"))

        with pytest.raises(InsufficientStockError) as exc_info:
            request_service.approve_request(created.id, TEST_APPROVER_ID)

        assert exc_info.value.material_name == "Sand"
        assert exc_info.value.available == Decimal("10")
        assert exc_info.value.requested == Decimal("15")
        assert _stock(session, TEST_SAND_ID) == Decimal("10")
        assert _status(session, created.id) == "PENDENTE"

    def test_all_or_nothing_across_materials(self, session, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"), (TEST_SAND_ID, "11"))

        with pytest.raises(InsufficientStockError) as exc_info:
            request_service.approve_request(created.id, TEST_APPROVER_ID)

        assert exc_info.value.material_id == str(TEST_SAND_ID)
        assert _stock(session, TEST_CEMENT_ID) == Decimal("100")
        assert _stock(session, TEST_SAND_ID) == Decimal("10")
        assert _status(session, created.id) == "PENDENTE"

    def test_lines_of_same_material_are_checked_together(self, session, request_service, new_request):
        created = new_request((TEST_SAND_ID, "6"), (TEST_SAND_ID, "6"))

        with pytest.raises(InsufficientStockError) as exc_info:
            request_service.approve_request(created.id, TEST_APPROVER_ID)

        assert exc_info.value.requested == Decimal("12")
        assert _stock(session, TEST_SAND_ID) == Decimal("10")

    def test_failed_approval_can_be_retried_after_restock(
        self, session, request_service, inventory_service, new_request,
    ):
        created = new_request((TEST_SAND_ID, "15"))
        with pytest.raises(InsufficientStockError):
            request_service.approve_request(created.id, TEST_APPROVER_ID)

        inventory_service.register_movement(TEST_SAND_ID, "ENTRADA", Decimal("5"))
        details = request_service.approve_request(created.id, TEST_APPROVER_ID)

        assert details.status is RequestStatus.APROVADA
        assert _stock(session, TEST_SAND_ID) == Decimal("0")

    def test_second_approval_is_invalid_state(self, session, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))
        request_service.approve_request(created.id, TEST_APPROVER_ID)

        with pytest.raises(InvalidRequestStateError) as exc_info:
            request_service.approve_request(created.id, TEST_APPROVER_ID)

        assert exc_info.value.current_status == "APROVADA"
        assert _stock(session, TEST_CEMENT_ID) == Decimal("70")

    def test_unknown_approver(self, session, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))
        with pytest.raises(UserNotFoundError):
            request_service.approve_request(created.id, uuid4())
        assert _stock(session, TEST_CEMENT_ID) == Decimal("100")

    def test_unknown_request(self, request_service):
        with pytest.raises(MaterialRequestNotFoundError):
            request_service.approve_request(uuid4(), TEST_APPROVER_ID)

    def test_approval_is_logged_with_context(self, captured_logs, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))
        request_service.approve_request(created.id, TEST_APPROVER_ID)

        approved = [r for r in captured_logs() if r["message"] == "material_request_approved"]
        assert len(approved) == 1
        assert approved[0]["request_id"] == str(created.id)
        assert approved[0]["actor_id"] == str(TEST_APPROVER_ID)

    def test_failure_is_logged_with_error_code(self, captured_logs, request_service, new_request):
        created = new_request((TEST_SAND_ID, "15"))
        with pytest.raises(InsufficientStockError):
            request_service.approve_request(created.id, TEST_APPROVER_ID)

        failed = [r for r in captured_logs() if r["message"] == "material_request_approval_failed"]
        assert failed[0]["error_code"] == "INSUFFICIENT_STOCK"


class TestRejectRequest:

    def test_rejection_keeps_stock(self, session, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))

        details = request_service.reject_request(created.id, TEST_APPROVER_ID, "Not in scope")

        assert details.status is RequestStatus.REJEITADA
        assert details.rejection_reason == "Not in scope"
        assert _stock(session, TEST_CEMENT_ID) == Decimal("100")

    def test_second_rejection_is_invalid_state(self, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))
        request_service.reject_request(created.id, TEST_APPROVER_ID, "First")

        with pytest.raises(InvalidRequestStateError):
            request_service.reject_request(created.id, TEST_APPROVER_ID, "Second")

        assert request_service.get_request(created.id).rejection_reason == "First"

    def test_blank_reason(self, session, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))
        with pytest.raises(EmptyRejectionReasonError):
            request_service.reject_request(created.id, TEST_APPROVER_ID, "  ")
        assert _status(session, created.id) == "PENDENTE"

    def test_rejected_request_cannot_be_approved(self, session, request_service, new_request):
        created = new_request((TEST_CEMENT_ID, "30"))
        request_service.reject_request(created.id, TEST_APPROVER_ID, "No")
        with pytest.raises(InvalidRequestStateError):
            request_service.approve_request(created.id, TEST_APPROVER_ID)
        assert _stock(session, TEST_CEMENT_ID) == Decimal("100")


class TestQueries:

    def test_list_by_status(self, request_service, new_request):
        first = new_request((TEST_CEMENT_ID, "1"))
        second = new_request((TEST_CEMENT_ID, "2"))
        request_service.approve_request(first.id, TEST_APPROVER_ID)

        pending = request_service.list_requests(status="pendente")
        approved = request_service.list_requests(status=RequestStatus.APROVADA)

        assert [r.id for r in pending] == [second.id]
        assert [r.id for r in approved] == [first.id]

    def test_list_by_project(self, request_service, new_request):
        new_request((TEST_CEMENT_ID, "1"))
        assert len(request_service.list_requests(project_id=TEST_PROJECT_ID)) == 1
        assert request_service.list_requests(project_id=uuid4()) == []

    def test_unknown_status_filter(self, request_service):
        with pytest.raises(ValueError):
            request_service.list_requests(status="ARCHIVED")

    def test_get_unknown_request(self, request_service):
        with pytest.raises(MaterialRequestNotFoundError):
            request_service.get_request(uuid4())
