"""
Material Request Domain Models (``sgpc_modules.material_request.models``).

Frozen value objects for requests, their line items and the read views
returned by ``MaterialRequestService``.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class RequestStatus(str, Enum):
    """Approval state of a material request (persisted as the member value)."""

    PENDENTE = "PENDENTE"
    APROVADA = "APROVADA"
    REJEITADA = "REJEITADA"

    @property
    def description(self) -> str:
        return self.value.capitalize()

    @property
    def is_final(self) -> bool:
        return self is not RequestStatus.PENDENTE

    @classmethod
    def from_string(cls, value: str) -> RequestStatus:
        """Resolve a status from its name or description, case-insensitive.

        Raises:
            ValueError: unknown status.
        """
        if value is None:
            raise ValueError("Request status cannot be None")
        normalized = value.strip().upper()
        for status in cls:
            if status.value == normalized or status.description.upper() == normalized:
                return status
        raise ValueError(f"Invalid request status: {value!r}")


@dataclass(frozen=True)
class NewRequestItem:
    """Caller input for one line of a new request."""
    material_id: UUID
    quantity: Decimal
    observations: str | None = None


@dataclass(frozen=True)
class MaterialRequestItem:
    id: UUID
    material_id: UUID
    material_name: str
    unit_of_measure: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    observations: str | None = None


@dataclass(frozen=True)
class MaterialRequestSummary:
    """List view of a request."""
    id: UUID
    project_id: UUID
    requester_id: UUID
    request_date: date
    needed_date: date | None
    status: RequestStatus
    item_count: int
    total_amount: Decimal


@dataclass(frozen=True)
class MaterialRequestDetails:
    """Full view of a request with resolved names and its items."""
    id: UUID
    project_id: UUID
    project_name: str
    requester_id: UUID
    requester_name: str
    request_date: date
    needed_date: date | None
    status: RequestStatus
    rejection_reason: str | None
    approved_by_id: UUID | None
    approved_by_name: str | None
    approved_at: datetime | None
    observations: str | None
    items: tuple[MaterialRequestItem, ...]
    total_amount: Decimal
