"""
Typed Exception Hierarchy for the SGPC core.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP adapters, batch jobs, tests) must react to failures without
parsing message strings. Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA as attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        service.approve_request(request_id, approver_id)
    except Exception as e:
        if "insufficient" in str(e).lower():  # FRAGILE
            ...

Example - RIGHT way:
    try:
        service.approve_request(request_id, approver_id)
    except InsufficientStockError as e:
        api_response(
            code=e.code,
            material=e.material_name,
            available=e.available,
            requested=e.requested,
        )

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from SgpcError:

    SgpcError (base)
    |
    +-- NotFoundError
    |   +-- MaterialNotFoundError
    |   +-- MaterialRequestNotFoundError
    |   +-- MaterialRequestItemNotFoundError
    |   +-- UserNotFoundError
    |   +-- ProjectNotFoundError
    |   +-- TaskNotFoundError
    |   +-- ServiceNotFoundError
    |
    +-- InvalidRequestStateError
    |
    +-- InsufficientStockError
    |
    +-- InvalidArgumentError
    |   +-- InvalidQuantityError
    |   +-- EmptyRejectionReasonError
    |   +-- EmptyRequestError
    |   +-- InvalidProgressError
    |   +-- InvalidMovementTypeError
    |   +-- InvalidCostError
    |
    +-- ConflictError
        +-- MaterialAlreadyExistsError
        +-- ServiceAlreadyExistsError
        +-- ServiceAlreadyAssignedError
        +-- ServiceNotAssignedToTaskError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|-----------------------------------
Not found       | MATERIAL_NOT_FOUND            | Unknown or inactive material
                | MATERIAL_REQUEST_NOT_FOUND    | Unknown request id
                | MATERIAL_REQUEST_ITEM_NOT_FOUND | Item not on the request
                | USER_NOT_FOUND                | Requester/approver not in directory
                | PROJECT_NOT_FOUND             | Unknown project id
                | TASK_NOT_FOUND                | Unknown task id
                | SERVICE_NOT_FOUND             | Unknown catalogue service
----------------|-------------------------------|-----------------------------------
State           | INVALID_REQUEST_STATE         | Action not allowed from status
----------------|-------------------------------|-----------------------------------
Stock           | INSUFFICIENT_STOCK            | Decrement larger than balance
----------------|-------------------------------|-----------------------------------
Argument        | INVALID_QUANTITY              | Non-positive quantity
                | EMPTY_REJECTION_REASON        | Reject without a reason
                | EMPTY_REQUEST                 | Request with no items
                | INVALID_PROGRESS              | Progress outside 0..100
                | INVALID_MOVEMENT_TYPE         | Unknown stock movement type
                | INVALID_COST                  | Negative unit cost
----------------|-------------------------------|-----------------------------------
Conflict        | MATERIAL_ALREADY_EXISTS       | Duplicate material name
                | SERVICE_ALREADY_EXISTS        | Duplicate catalogue service name
                | SERVICE_ALREADY_ASSIGNED      | Duplicate (task, service) pair
                | SERVICE_NOT_ASSIGNED_TO_TASK  | Removing an absent pair

===============================================================================
HANDLING PATTERNS
===============================================================================

1. CATCH SPECIFIC EXCEPTIONS FIRST:

    try:
        service.approve_request(request_id, approver_id)
    except InsufficientStockError as e:
        notify_warehouse(e.material_id, e.requested - e.available)
    except NotFoundError as e:
        return not_found(e.code)

2. NONE OF THESE ARE RETRYABLE. The owning service has already rolled
   back its transaction when the exception reaches the caller.

===============================================================================
"""

from decimal import Decimal
from uuid import UUID


class SgpcError(Exception):
    """
    Base exception for all SGPC errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SGPC_ERROR"


# Not-found exceptions


class NotFoundError(SgpcError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class MaterialNotFoundError(NotFoundError):
    """Material does not exist or has been deactivated."""

    code: str = "MATERIAL_NOT_FOUND"

    def __init__(self, material_id: UUID | str):
        self.material_id = str(material_id)
        super().__init__(f"Material not found: {material_id}")


class MaterialRequestNotFoundError(NotFoundError):
    """Material request with given ID was not found."""

    code: str = "MATERIAL_REQUEST_NOT_FOUND"

    def __init__(self, request_id: UUID | str):
        self.request_id = str(request_id)
        super().__init__(f"Material request not found: {request_id}")


class MaterialRequestItemNotFoundError(NotFoundError):
    """Line item is not part of the given request."""

    code: str = "MATERIAL_REQUEST_ITEM_NOT_FOUND"

    def __init__(self, request_id: UUID | str, item_id: UUID | str):
        self.request_id = str(request_id)
        self.item_id = str(item_id)
        super().__init__(
            f"Item {item_id} not found on material request {request_id}"
        )


class UserNotFoundError(NotFoundError):
    """User with given ID was not found in the directory."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: UUID | str):
        self.user_id = str(user_id)
        super().__init__(f"User not found: {user_id}")


class ProjectNotFoundError(NotFoundError):
    """Project with given ID was not found."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: UUID | str):
        self.project_id = str(project_id)
        super().__init__(f"Project not found: {project_id}")


class TaskNotFoundError(NotFoundError):
    """Task with given ID was not found."""

    code: str = "TASK_NOT_FOUND"

    def __init__(self, task_id: UUID | str):
        self.task_id = str(task_id)
        super().__init__(f"Task not found: {task_id}")


class ServiceNotFoundError(NotFoundError):
    """Catalogue service with given ID was not found."""

    code: str = "SERVICE_NOT_FOUND"

    def __init__(self, service_id: UUID | str):
        self.service_id = str(service_id)
        super().__init__(f"Service not found: {service_id}")


# Request state machine


class InvalidRequestStateError(SgpcError):
    """
    Attempted transition or mutation is not allowed from the request's
    current status.

    Raised for approve/reject of a non-pending request and for item
    changes after a terminal transition.
    """

    code: str = "INVALID_REQUEST_STATE"

    def __init__(self, request_id: UUID | str, current_status: str, action: str):
        self.request_id = str(request_id)
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} material request {request_id}: "
            f"status is {current_status}"
        )


# Stock


class InsufficientStockError(SgpcError):
    """Requested decrement exceeds the material's current stock."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        material_id: UUID | str,
        material_name: str,
        available: Decimal,
        requested: Decimal,
    ):
        self.material_id = str(material_id)
        self.material_name = material_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for material {material_name}: "
            f"available {available}, requested {requested}"
        )


# Argument validation


class InvalidArgumentError(SgpcError):
    """Base exception for rejected input values."""

    code: str = "INVALID_ARGUMENT"


class InvalidQuantityError(InvalidArgumentError):
    """Quantity must be strictly positive."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: Decimal, field: str = "quantity"):
        self.quantity = quantity
        self.field = field
        super().__init__(f"{field} must be greater than zero, got {quantity}")


class EmptyRejectionReasonError(InvalidArgumentError):
    """Rejection requires a non-blank reason."""

    code: str = "EMPTY_REJECTION_REASON"

    def __init__(self, request_id: UUID | str):
        self.request_id = str(request_id)
        super().__init__(
            f"Rejection reason is required for material request {request_id}"
        )


class EmptyRequestError(InvalidArgumentError):
    """A material request must contain at least one item."""

    code: str = "EMPTY_REQUEST"

    def __init__(self):
        super().__init__("Material request must contain at least one item")


class InvalidProgressError(InvalidArgumentError):
    """Task progress must lie within 0..100."""

    code: str = "INVALID_PROGRESS"

    def __init__(self, task_id: UUID | str, progress: int):
        self.task_id = str(task_id)
        self.progress = progress
        super().__init__(
            f"Progress for task {task_id} must be between 0 and 100, got {progress}"
        )


class InvalidMovementTypeError(InvalidArgumentError):
    """Stock movement type is neither an inbound nor an outbound alias."""

    code: str = "INVALID_MOVEMENT_TYPE"

    def __init__(self, movement_type: str):
        self.movement_type = movement_type
        super().__init__(
            f"Invalid movement type {movement_type!r}: "
            "use ENTRADA/IN or SAIDA/OUT"
        )


class InvalidCostError(InvalidArgumentError):
    """Unit costs and overrides may not be negative."""

    code: str = "INVALID_COST"

    def __init__(self, field: str, value: Decimal):
        self.field = field
        self.value = value
        super().__init__(f"{field} must not be negative, got {value}")


# Conflicts


class ConflictError(SgpcError):
    """Base exception for uniqueness and membership conflicts."""

    code: str = "CONFLICT"


class MaterialAlreadyExistsError(ConflictError):
    """A material with the same name already exists."""

    code: str = "MATERIAL_ALREADY_EXISTS"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Material already exists: {name}")


class ServiceAlreadyExistsError(ConflictError):
    """A catalogue service with the same name already exists."""

    code: str = "SERVICE_ALREADY_EXISTS"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Service already exists: {name}")


class ServiceAlreadyAssignedError(ConflictError):
    """The service is already linked to the task."""

    code: str = "SERVICE_ALREADY_ASSIGNED"

    def __init__(self, task_id: UUID | str, service_id: UUID | str):
        self.task_id = str(task_id)
        self.service_id = str(service_id)
        super().__init__(f"Service {service_id} is already assigned to task {task_id}")


class ServiceNotAssignedToTaskError(ConflictError):
    """The service is not linked to the task."""

    code: str = "SERVICE_NOT_ASSIGNED_TO_TASK"

    def __init__(self, task_id: UUID | str, service_id: UUID | str):
        self.task_id = str(task_id)
        self.service_id = str(service_id)
        super().__init__(f"Service {service_id} is not assigned to task {task_id}")
