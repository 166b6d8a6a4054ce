"""
Material Request Service (``sgpc_modules.material_request.service``).

Responsibility
--------------
Use cases for the material-request lifecycle: create, edit items, read,
and the approval workflow that couples the request state machine with the
stock ledger.

Architecture
------------
Layer: **Modules** -- orchestration.  Directory lookups go through
``UserDirectory`` / ``ProjectDirectory``; balance changes go through
``StockLedger``; state changes go through ``MaterialRequestModel``.

Invariants
----------
- Each public write method owns its transaction boundary: commit on
  success, rollback and re-raise on any exception.
- Approval is all-or-nothing.  Every material is locked (ascending id) and
  checked before any balance is touched; the ledger's conditional UPDATE
  is the final guard against a concurrent drain.
- The request row is locked before its status is read, so two approvals
  of the same request serialise and the loser sees a terminal state.

Failure Modes
-------------
- ``MaterialRequestNotFoundError`` / ``UserNotFoundError`` /
  ``ProjectNotFoundError`` / ``MaterialNotFoundError``.
- ``InvalidRequestStateError`` -- action not allowed from current status.
- ``InsufficientStockError`` -- nothing was mutated.
- ``InvalidQuantityError`` / ``EmptyRequestError`` /
  ``EmptyRejectionReasonError``.

Usage::

    service = MaterialRequestService(session, clock)
    request = service.create_request(
        project_id, requester_id,
        items=[NewRequestItem(cement_id, Decimal("30"))],
    )
    service.approve_request(request.id, approver_id)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from sgpc_kernel.domain.clock import Clock, SystemClock
from sgpc_kernel.exceptions import (
    EmptyRequestError,
    InsufficientStockError,
    InvalidRequestStateError,
    MaterialNotFoundError,
    MaterialRequestNotFoundError,
)
from sgpc_kernel.logging_config import LogContext, get_logger
from sgpc_kernel.selectors.user_selector import UserDirectory
from sgpc_modules.inventory.ledger import StockLedger
from sgpc_modules.inventory.orm import MaterialModel
from sgpc_modules.material_request.models import (
    MaterialRequestDetails,
    MaterialRequestSummary,
    NewRequestItem,
    RequestStatus,
)
from sgpc_modules.material_request.orm import MaterialRequestModel
from sgpc_modules.material_request.workflows import APPROVE, REJECT
from sgpc_modules.project.directory import ProjectDirectory

logger = get_logger("modules.material_request.service")


class MaterialRequestService:
    """
    Orchestrates material-request use cases.

    Transaction boundary: this service commits on success, rolls back on failure.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._ledger = StockLedger(session, self._clock)
        self._users = UserDirectory(session)
        self._projects = ProjectDirectory(session)

    # =========================================================================
    # Creation and item editing
    # =========================================================================

    def create_request(
        self,
        project_id: UUID,
        requester_id: UUID,
        items: Sequence[NewRequestItem],
        needed_date: date | None = None,
        observations: str | None = None,
    ) -> MaterialRequestDetails:
        """
        Create a PENDENTE request, snapshotting each material's unit price.

        Raises:
            EmptyRequestError: ``items`` is empty.
            UserNotFoundError / ProjectNotFoundError / MaterialNotFoundError.
            InvalidQuantityError: a non-positive quantity.
        """
        with LogContext.bind(actor_id=requester_id, project_id=project_id):
            try:
                if not items:
                    raise EmptyRequestError()
                self._users.find_by_id(requester_id)
                self._projects.find_by_id(project_id)

                now = self._clock.now()
                request = MaterialRequestModel.create(
                    project_id=project_id,
                    requester_id=requester_id,
                    at=now,
                    needed_date=needed_date,
                    observations=observations,
                )
                for line in items:
                    material = self._ledger.get_material(line.material_id)
                    request.add_item(
                        material_id=material.id,
                        quantity=line.quantity,
                        unit_price=material.unit_price,
                        at=now,
                        observations=line.observations,
                    )
                self._session.add(request)
                self._session.flush()

                logger.info("material_request_created", extra={
                    "request_id": str(request.id),
                    "item_count": request.item_count,
                    "total_amount": str(request.total_amount),
                })
                details = self._to_details(request)
                self._session.commit()
                return details
            except Exception:
                self._session.rollback()
                raise

    def add_item(
        self,
        request_id: UUID,
        material_id: UUID,
        quantity: Decimal,
        observations: str | None = None,
    ) -> MaterialRequestDetails:
        """
        Add a line to a PENDENTE request.

        Raises:
            MaterialRequestNotFoundError / MaterialNotFoundError.
            InvalidRequestStateError: request is no longer PENDENTE.
            InvalidQuantityError: ``quantity <= 0``.
        """
        with LogContext.bind(request_id=request_id):
            try:
                request = self._load_request(request_id, for_update=True)
                material = self._ledger.get_material(material_id)
                request.add_item(
                    material_id=material.id,
                    quantity=quantity,
                    unit_price=material.unit_price,
                    at=self._clock.now(),
                    observations=observations,
                )
                self._session.flush()
                logger.info("material_request_item_added", extra={
                    "material_id": str(material_id),
                    "quantity": str(quantity),
                })
                details = self._to_details(request)
                self._session.commit()
                return details
            except Exception:
                self._session.rollback()
                raise

    def remove_item(self, request_id: UUID, item_id: UUID) -> MaterialRequestDetails:
        """
        Remove a line from a PENDENTE request.

        Raises:
            MaterialRequestNotFoundError / MaterialRequestItemNotFoundError.
            InvalidRequestStateError: request is no longer PENDENTE.
        """
        with LogContext.bind(request_id=request_id):
            try:
                request = self._load_request(request_id, for_update=True)
                request.remove_item(item_id, self._clock.now())
                self._session.flush()
                logger.info("material_request_item_removed", extra={"item_id": str(item_id)})
                details = self._to_details(request)
                self._session.commit()
                return details
            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Approval workflow
    # =========================================================================

    def approve_request(self, request_id: UUID, approver_id: UUID) -> MaterialRequestDetails:
        """
        Approve a PENDENTE request and withdraw every item from stock.

        Preconditions:
            - Request exists, is PENDENTE and has at least one item.
            - Approver exists.
            - Every material has stock for the request's total quantity of it.

        Postconditions:
            - Each material's stock is reduced by its total requested quantity.
            - Request is APROVADA with approver and timestamp.
            - On any failure nothing has changed.

        Raises:
            MaterialRequestNotFoundError, InvalidRequestStateError,
            EmptyRequestError, UserNotFoundError, MaterialNotFoundError,
            InsufficientStockError.
        """
        with LogContext.bind(request_id=request_id, actor_id=approver_id):
            try:
                request = self._load_request(request_id, for_update=True)
                transition = request.require_transition(APPROVE)
                if not request.items:
                    raise EmptyRequestError()
                self._users.find_by_id(approver_id)

                quantities = request.quantities_by_material()
                if transition.mutates_stock:
                    self._withdraw_all(quantities)

                request.approve(approver_id, self._clock.now())
                self._session.flush()

                logger.info("material_request_approved", extra={
                    "material_count": len(quantities),
                    "total_amount": str(request.total_amount),
                })
                details = self._to_details(request)
                self._session.commit()
                return details
            except Exception as exc:
                self._session.rollback()
                logger.warning("material_request_approval_failed", extra={
                    "error_code": getattr(exc, "code", type(exc).__name__),
                })
                raise

    def reject_request(
        self,
        request_id: UUID,
        approver_id: UUID,
        reason: str,
    ) -> MaterialRequestDetails:
        """
        Reject a PENDENTE request.  Stock is not touched.

        Raises:
            MaterialRequestNotFoundError, InvalidRequestStateError,
            UserNotFoundError, EmptyRejectionReasonError.
        """
        with LogContext.bind(request_id=request_id, actor_id=approver_id):
            try:
                request = self._load_request(request_id, for_update=True)
                self._require_pending(request, REJECT)
                self._users.find_by_id(approver_id)

                request.reject(approver_id, reason, self._clock.now())
                self._session.flush()

                logger.info("material_request_rejected", extra={
                    "rejection_reason": request.rejection_reason,
                })
                details = self._to_details(request)
                self._session.commit()
                return details
            except Exception as exc:
                self._session.rollback()
                logger.warning("material_request_rejection_failed", extra={
                    "error_code": getattr(exc, "code", type(exc).__name__),
                })
                raise

    # =========================================================================
    # Queries
    # =========================================================================

    def get_request(self, request_id: UUID) -> MaterialRequestDetails:
        """
        Raises:
            MaterialRequestNotFoundError: unknown id.
        """
        return self._to_details(self._load_request(request_id))

    def list_requests(
        self,
        status: RequestStatus | str | None = None,
        project_id: UUID | None = None,
    ) -> list[MaterialRequestSummary]:
        """Requests filtered by status and/or project, newest first.

        Raises:
            ValueError: ``status`` is not a known request status.
        """
        stmt = select(MaterialRequestModel)
        if status is not None:
            if not isinstance(status, RequestStatus):
                status = RequestStatus.from_string(status)
            stmt = stmt.where(MaterialRequestModel.status == status.value)
        if project_id is not None:
            stmt = stmt.where(MaterialRequestModel.project_id == project_id)
        stmt = stmt.order_by(MaterialRequestModel.created_at.desc())
        return [r.to_summary() for r in self._session.scalars(stmt)]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load_request(self, request_id: UUID, for_update: bool = False) -> MaterialRequestModel:
        stmt = select(MaterialRequestModel).where(MaterialRequestModel.id == request_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        request = self._session.scalars(stmt).one_or_none()
        if request is None:
            raise MaterialRequestNotFoundError(request_id)
        return request

    def _withdraw_all(self, quantities: dict[UUID, Decimal]) -> None:
        locked = self._ledger.lock_materials(quantities)

        # Validate every material before touching any balance
        for material_id, quantity in quantities.items():
            if not self._ledger.has_sufficient_stock(material_id, quantity):
                material = locked[material_id]
                raise InsufficientStockError(
                    material_id=material.id,
                    material_name=material.name,
                    available=material.current_stock,
                    requested=quantity,
                )

        for material_id, quantity in quantities.items():
            self._ledger.decrease(material_id, quantity)

    @staticmethod
    def _require_pending(request: MaterialRequestModel, action: str) -> None:
        if not request.is_pending:
            raise InvalidRequestStateError(request.id, request.status, action)

    def _to_details(self, request: MaterialRequestModel) -> MaterialRequestDetails:
        project = self._projects.find_by_id(request.project_id)
        requester = self._users.find_by_id(request.requester_id)
        approver = (
            self._users.find_by_id(request.approved_by_id)
            if request.approved_by_id is not None
            else None
        )

        material_ids = {i.material_id for i in request.items}
        materials = {
            m.id: m
            for m in self._session.scalars(
                select(MaterialModel).where(MaterialModel.id.in_(material_ids))
            )
        } if material_ids else {}

        items = []
        for item in request.items:
            material = materials.get(item.material_id)
            if material is None:
                raise MaterialNotFoundError(item.material_id)
            items.append(item.to_dto(material.name, material.unit_of_measure))

        return MaterialRequestDetails(
            id=request.id,
            project_id=request.project_id,
            project_name=project.name,
            requester_id=request.requester_id,
            requester_name=requester.full_name,
            request_date=request.request_date,
            needed_date=request.needed_date,
            status=RequestStatus(request.status),
            rejection_reason=request.rejection_reason,
            approved_by_id=request.approved_by_id,
            approved_by_name=approver.full_name if approver else None,
            approved_at=request.approved_at,
            observations=request.observations,
            items=tuple(items),
            total_amount=request.total_amount,
        )
