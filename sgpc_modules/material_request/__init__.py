"""
Material Request Module (``sgpc_modules.material_request``).

Responsibility
--------------
Requests for materials from project staff, their line items and the
approval workflow: approving a request withdraws every requested material
from stock in one transaction, or changes nothing.

Invariants
----------
- PENDENTE -> APROVADA | REJEITADA, exactly once.
- Items are editable only while PENDENTE.
- Approval validates all materials before decrementing any.
"""

from sgpc_modules.material_request.models import (
    MaterialRequestDetails,
    MaterialRequestItem,
    MaterialRequestSummary,
    NewRequestItem,
    RequestStatus,
)
from sgpc_modules.material_request.service import MaterialRequestService
from sgpc_modules.material_request.workflows import MATERIAL_REQUEST_WORKFLOW

__all__ = [
    "MATERIAL_REQUEST_WORKFLOW",
    "MaterialRequestDetails",
    "MaterialRequestItem",
    "MaterialRequestService",
    "MaterialRequestSummary",
    "NewRequestItem",
    "RequestStatus",
]
