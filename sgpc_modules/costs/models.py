"""
Cost Domain Models (``sgpc_modules.costs.models``).

Frozen value objects for the service catalogue, task service lines, task
cost buckets and reports.  ZERO I/O.  All monetary fields use ``Decimal``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sgpc_kernel.db.types import ZERO


class TaskStatus(str, Enum):
    """Task lifecycle status (persisted as the member value)."""

    A_FAZER = "A_FAZER"
    EM_ANDAMENTO = "EM_ANDAMENTO"
    CONCLUIDA = "CONCLUIDA"
    BLOQUEADA = "BLOQUEADA"
    CANCELADA = "CANCELADA"


@dataclass(frozen=True)
class CostBuckets:
    """Labor, material and equipment cost of a line, task or project."""
    labor: Decimal = ZERO
    material: Decimal = ZERO
    equipment: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.labor + self.material + self.equipment

    def __add__(self, other: CostBuckets) -> CostBuckets:
        return CostBuckets(
            labor=self.labor + other.labor,
            material=self.material + other.material,
            equipment=self.equipment + other.equipment,
        )


@dataclass(frozen=True)
class Service:
    """A catalogue service with per-unit costs."""
    id: UUID
    name: str
    unit_of_measurement: str
    unit_labor_cost: Decimal
    unit_material_cost: Decimal
    unit_equipment_cost: Decimal
    is_active: bool = True
    description: str | None = None

    @property
    def total_unit_cost(self) -> Decimal:
        return self.unit_labor_cost + self.unit_material_cost + self.unit_equipment_cost


@dataclass(frozen=True)
class TaskServiceLine:
    """A service applied to a task, with its computed costs."""
    id: UUID
    task_id: UUID
    service_id: UUID
    service_name: str
    quantity: Decimal
    unit_cost_override: Decimal | None
    effective_labor_unit_cost: Decimal
    costs: CostBuckets
    notes: str | None = None

    @property
    def total_cost(self) -> Decimal:
        return self.costs.total


@dataclass(frozen=True)
class Task:
    id: UUID
    project_id: UUID
    title: str
    status: TaskStatus
    progress_percentage: int
    labor_cost: Decimal
    material_cost: Decimal
    equipment_cost: Decimal
    actual_hours: Decimal | None = None
    start_date_actual: date | None = None
    end_date_actual: date | None = None
    notes: str | None = None

    @property
    def total_cost(self) -> Decimal:
        return self.labor_cost + self.material_cost + self.equipment_cost


@dataclass(frozen=True)
class TaskCostReport:
    task_id: UUID
    task_title: str
    labor_cost: Decimal
    material_cost: Decimal
    equipment_cost: Decimal
    total_cost: Decimal
    progress_percentage: int
    services: tuple[TaskServiceLine, ...]
