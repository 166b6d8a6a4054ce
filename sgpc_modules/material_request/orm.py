"""
SQLAlchemy ORM persistence for material requests.

Responsibility
--------------
The ``MaterialRequestModel`` aggregate root and its owned
``MaterialRequestItemModel`` lines.  The aggregate enforces its own state
machine (``MATERIAL_REQUEST_WORKFLOW``); stock checks and decrements are
the approval service's job.

Invariants enforced
-------------------
* Status moves PENDENTE -> APROVADA or PENDENTE -> REJEITADA exactly once.
* ``rejection_reason`` is set only on REJEITADA; approver and decision
  time are set only once the request leaves PENDENTE.
* Items are added and removed only while PENDENTE; quantity > 0.
* ``unit_price`` on an item is a snapshot taken when the item is added.
* Items reference their request and material by id; a request owns its
  items (delete-orphan cascade).
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sgpc_kernel.db.base import TrackedBase
from sgpc_kernel.db.types import ZERO
from sgpc_kernel.domain.workflow import Transition
from sgpc_kernel.exceptions import (
    EmptyRejectionReasonError,
    InvalidQuantityError,
    InvalidRequestStateError,
    MaterialRequestItemNotFoundError,
)
from sgpc_modules.material_request.workflows import (
    APPROVE,
    EDIT_ITEMS,
    MATERIAL_REQUEST_WORKFLOW,
    REJECT,
)

# ---------------------------------------------------------------------------
# MaterialRequestModel
# ---------------------------------------------------------------------------


class MaterialRequestModel(TrackedBase):
    """
    A request to withdraw materials from stock for a project.

    Maps to ``MaterialRequestSummary`` / ``MaterialRequestDetails`` in
    ``sgpc_modules.material_request.models``.
    """

    __tablename__ = "material_requests"

    __table_args__ = (
        Index("idx_material_request_status", "status"),
        Index("idx_material_request_project", "project_id"),
        CheckConstraint(
            "status IN ('PENDENTE', 'APROVADA', 'REJEITADA')",
            name="ck_material_request_status",
        ),
        CheckConstraint(
            "rejection_reason IS NULL OR status = 'REJEITADA'",
            name="ck_material_request_rejection_reason",
        ),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    requester_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    request_date: Mapped[date] = mapped_column(Date, nullable=False)
    needed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    observations: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    items: Mapped[list["MaterialRequestItemModel"]] = relationship(
        "MaterialRequestItemModel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MaterialRequestItemModel.line_number",
    )

    @classmethod
    def create(
        cls,
        project_id: UUID,
        requester_id: UUID,
        at: datetime,
        needed_date: date | None = None,
        observations: str | None = None,
    ) -> Self:
        return cls(
            project_id=project_id,
            requester_id=requester_id,
            request_date=at.date(),
            needed_date=needed_date,
            status=MATERIAL_REQUEST_WORKFLOW.initial_state,
            observations=observations,
            created_at=at,
            updated_at=at,
        )

    # -- state machine ------------------------------------------------------

    @property
    def is_pending(self) -> bool:
        return self.status == "PENDENTE"

    def require_transition(self, action: str) -> Transition:
        """
        Raises:
            InvalidRequestStateError: ``action`` is not allowed from the current status.
        """
        transition = MATERIAL_REQUEST_WORKFLOW.find_transition(self.status, action)
        if transition is None:
            raise InvalidRequestStateError(self.id, self.status, action)
        return transition

    def approve(self, approver_id: UUID, at: datetime) -> None:
        """
        Raises:
            InvalidRequestStateError: request is not PENDENTE.
        """
        transition = self.require_transition(APPROVE)
        self.status = transition.to_state
        self.approved_by_id = approver_id
        self.approved_at = at
        self.rejection_reason = None
        self.touch(at)

    def reject(self, approver_id: UUID, reason: str, at: datetime) -> None:
        """
        Raises:
            InvalidRequestStateError: request is not PENDENTE.
            EmptyRejectionReasonError: ``reason`` is blank.
        """
        transition = self.require_transition(REJECT)
        if not reason or not reason.strip():
            raise EmptyRejectionReasonError(self.id)
        self.status = transition.to_state
        self.approved_by_id = approver_id
        self.approved_at = at
        self.rejection_reason = reason.strip()
        self.touch(at)

    # -- items --------------------------------------------------------------

    def add_item(
        self,
        material_id: UUID,
        quantity: Decimal,
        unit_price: Decimal,
        at: datetime,
        observations: str | None = None,
    ) -> "MaterialRequestItemModel":
        """
        Raises:
            InvalidRequestStateError: request is no longer PENDENTE.
            InvalidQuantityError: ``quantity <= 0``.
        """
        self.require_transition(EDIT_ITEMS)
        if quantity <= 0:
            raise InvalidQuantityError(quantity)
        next_line = max((i.line_number for i in self.items), default=0) + 1
        item = MaterialRequestItemModel(
            material_id=material_id,
            line_number=next_line,
            quantity=quantity,
            unit_price=unit_price,
            observations=observations,
            created_at=at,
            updated_at=at,
        )
        self.items.append(item)
        self.touch(at)
        return item

    def remove_item(self, item_id: UUID, at: datetime) -> None:
        """
        Raises:
            InvalidRequestStateError: request is no longer PENDENTE.
            MaterialRequestItemNotFoundError: item is not on this request.
        """
        self.require_transition(EDIT_ITEMS)
        for item in self.items:
            if item.id == item_id:
                self.items.remove(item)
                self.touch(at)
                return
        raise MaterialRequestItemNotFoundError(self.id, item_id)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def total_amount(self) -> Decimal:
        return sum((i.total_price for i in self.items), ZERO)

    def quantities_by_material(self) -> dict[UUID, Decimal]:
        """Total requested quantity per material across all lines."""
        totals: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        for item in self.items:
            totals[item.material_id] += item.quantity
        return dict(totals)

    def to_summary(self):
        from sgpc_modules.material_request.models import (
            MaterialRequestSummary,
            RequestStatus,
        )

        return MaterialRequestSummary(
            id=self.id,
            project_id=self.project_id,
            requester_id=self.requester_id,
            request_date=self.request_date,
            needed_date=self.needed_date,
            status=RequestStatus(self.status),
            item_count=self.item_count,
            total_amount=self.total_amount,
        )

    def __repr__(self) -> str:
        return f"<MaterialRequestModel {self.id} [{self.status}] items={len(self.items)}>"


# ---------------------------------------------------------------------------
# MaterialRequestItemModel
# ---------------------------------------------------------------------------


class MaterialRequestItemModel(TrackedBase):
    """
    One requested material on a request.

    Guarantees:
        - (request_id, line_number) is unique.
        - ``quantity > 0``.
    """

    __tablename__ = "material_request_items"

    __table_args__ = (
        UniqueConstraint("request_id", "line_number", name="uq_material_request_item_line"),
        CheckConstraint("quantity > 0", name="ck_material_request_item_quantity"),
        Index("idx_material_request_item_material", "material_id"),
    )

    request_id: Mapped[UUID] = mapped_column(
        ForeignKey("material_requests.id", ondelete="CASCADE"), nullable=False
    )
    material_id: Mapped[UUID] = mapped_column(ForeignKey("materials.id"), nullable=False)
    line_number: Mapped[int] = mapped_column(nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    observations: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    @property
    def total_price(self) -> Decimal:
        return self.quantity * self.unit_price

    def to_dto(self, material_name: str, unit_of_measure: str):
        from sgpc_modules.material_request.models import MaterialRequestItem

        return MaterialRequestItem(
            id=self.id,
            material_id=self.material_id,
            material_name=material_name,
            unit_of_measure=unit_of_measure,
            quantity=self.quantity,
            unit_price=self.unit_price,
            total_price=self.total_price,
            observations=self.observations,
        )

    def __repr__(self) -> str:
        return f"<MaterialRequestItemModel #{self.line_number} {self.material_id} x{self.quantity}>"
