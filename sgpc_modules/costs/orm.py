"""
SQLAlchemy ORM persistence for the cost rollup.

Responsibility
--------------
``ServiceModel`` (the unit-cost catalogue), ``TaskModel`` (the cost-relevant
subset of a project task) and ``TaskServiceModel`` (a service applied to a
task in some quantity).

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (FixedDecimal(38, 9)).
* A service appears at most once per task (``uq_task_service_pair``).
* ``TaskModel.progress_percentage`` is within 0..100.
* Only the labor unit cost can be overridden on a task service line.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sgpc_kernel.db.base import TrackedBase
from sgpc_kernel.db.types import ZERO
from sgpc_modules.costs.calculations import effective_labor_unit_cost, line_costs

# ---------------------------------------------------------------------------
# ServiceModel
# ---------------------------------------------------------------------------


class ServiceModel(TrackedBase):
    """
    A catalogue service: what one unit of work costs in labor, material and
    equipment.

    Maps to the ``Service`` DTO in ``sgpc_modules.costs.models``.
    """

    __tablename__ = "services"

    __table_args__ = (
        UniqueConstraint("name", name="uq_service_name"),
        Index("idx_service_active", "is_active"),
        CheckConstraint(
            "unit_labor_cost >= 0 AND unit_material_cost >= 0 AND unit_equipment_cost >= 0",
            name="ck_service_unit_costs",
        ),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    unit_of_measurement: Mapped[str] = mapped_column(String(20), nullable=False)
    unit_labor_cost: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    unit_material_cost: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    unit_equipment_cost: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    @classmethod
    def create(
        cls,
        name: str,
        unit_of_measurement: str,
        at: datetime,
        unit_labor_cost: Decimal = ZERO,
        unit_material_cost: Decimal = ZERO,
        unit_equipment_cost: Decimal = ZERO,
        description: str | None = None,
    ) -> Self:
        return cls(
            name=name,
            description=description,
            unit_of_measurement=unit_of_measurement,
            unit_labor_cost=unit_labor_cost,
            unit_material_cost=unit_material_cost,
            unit_equipment_cost=unit_equipment_cost,
            is_active=True,
            created_at=at,
            updated_at=at,
        )

    def to_dto(self):
        from sgpc_modules.costs.models import Service

        return Service(
            id=self.id,
            name=self.name,
            unit_of_measurement=self.unit_of_measurement,
            unit_labor_cost=self.unit_labor_cost,
            unit_material_cost=self.unit_material_cost,
            unit_equipment_cost=self.unit_equipment_cost,
            is_active=self.is_active,
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"<ServiceModel {self.name}>"


# ---------------------------------------------------------------------------
# TaskModel
# ---------------------------------------------------------------------------


class TaskModel(TrackedBase):
    """
    A project task with three cost buckets.

    The buckets hold the service-line sums written by the last
    ``CostAggregator.recalculate_task_costs``; a task without service lines
    may carry direct costs instead.
    """

    __tablename__ = "tasks"

    __table_args__ = (
        Index("idx_task_project", "project_id"),
        Index("idx_task_status", "status"),
        CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100",
            name="ck_task_progress_range",
        ),
        CheckConstraint(
            "labor_cost >= 0 AND material_cost >= 0 AND equipment_cost >= 0",
            name="ck_task_costs",
        ),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="A_FAZER")
    progress_percentage: Mapped[int] = mapped_column(nullable=False, default=0)
    labor_cost: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    material_cost: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    equipment_cost: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    estimated_hours: Mapped[Decimal | None] = mapped_column(nullable=True)
    actual_hours: Mapped[Decimal | None] = mapped_column(nullable=True)
    start_date_actual: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date_actual: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    service_lines: Mapped[list["TaskServiceModel"]] = relationship(
        "TaskServiceModel",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @classmethod
    def create(
        cls,
        project_id: UUID,
        title: str,
        at: datetime,
        status: str = "A_FAZER",
        progress_percentage: int = 0,
        labor_cost: Decimal = ZERO,
        material_cost: Decimal = ZERO,
        equipment_cost: Decimal = ZERO,
        estimated_hours: Decimal | None = None,
    ) -> Self:
        return cls(
            project_id=project_id,
            title=title,
            status=status,
            progress_percentage=progress_percentage,
            labor_cost=labor_cost,
            material_cost=material_cost,
            equipment_cost=equipment_cost,
            estimated_hours=estimated_hours,
            created_at=at,
            updated_at=at,
        )

    @property
    def total_cost(self) -> Decimal:
        return self.labor_cost + self.material_cost + self.equipment_cost

    def apply_costs(self, labor: Decimal, material: Decimal, equipment: Decimal, at: datetime) -> None:
        self.labor_cost = labor
        self.material_cost = material
        self.equipment_cost = equipment
        self.touch(at)

    def apply_progress(self, progress: int, status: str, at: datetime) -> None:
        """Set progress and status together, maintaining the actual dates.

        Leaving A_FAZER stamps the start date once; reaching CONCLUIDA stamps
        the end date; returning to A_FAZER clears both.
        """
        self.progress_percentage = progress
        self.status = status
        today = at.date()
        if status == "A_FAZER":
            self.start_date_actual = None
            self.end_date_actual = None
        else:
            if self.start_date_actual is None:
                self.start_date_actual = today
            if status == "CONCLUIDA":
                self.end_date_actual = today
            elif status == "EM_ANDAMENTO":
                self.end_date_actual = None
        self.touch(at)

    def append_note(self, line: str, at: datetime) -> None:
        self.notes = f"{self.notes}\n{line}" if self.notes else line
        self.touch(at)

    def to_dto(self):
        from sgpc_modules.costs.models import Task, TaskStatus

        return Task(
            id=self.id,
            project_id=self.project_id,
            title=self.title,
            status=TaskStatus(self.status),
            progress_percentage=self.progress_percentage,
            labor_cost=self.labor_cost,
            material_cost=self.material_cost,
            equipment_cost=self.equipment_cost,
            actual_hours=self.actual_hours,
            start_date_actual=self.start_date_actual,
            end_date_actual=self.end_date_actual,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<TaskModel {self.title} [{self.status}] {self.progress_percentage}%>"


# ---------------------------------------------------------------------------
# TaskServiceModel
# ---------------------------------------------------------------------------


class TaskServiceModel(TrackedBase):
    """
    A catalogue service applied to a task.

    Guarantees:
        - (task_id, service_id) is unique.
        - ``quantity > 0``.
    """

    __tablename__ = "task_services"

    __table_args__ = (
        UniqueConstraint("task_id", "service_id", name="uq_task_service_pair"),
        CheckConstraint("quantity > 0", name="ck_task_service_quantity"),
        CheckConstraint(
            "unit_cost_override IS NULL OR unit_cost_override >= 0",
            name="ck_task_service_override",
        ),
        Index("idx_task_service_service", "service_id"),
    )

    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    service_id: Mapped[UUID] = mapped_column(ForeignKey("services.id"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_cost_override: Mapped[Decimal | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    service: Mapped[ServiceModel] = relationship(ServiceModel, lazy="joined")

    def costs(self):
        """Cost buckets of this line from the current catalogue prices."""
        return line_costs(
            quantity=self.quantity,
            unit_labor_cost=self.service.unit_labor_cost,
            unit_material_cost=self.service.unit_material_cost,
            unit_equipment_cost=self.service.unit_equipment_cost,
            unit_cost_override=self.unit_cost_override,
        )

    def to_dto(self):
        from sgpc_modules.costs.models import TaskServiceLine

        return TaskServiceLine(
            id=self.id,
            task_id=self.task_id,
            service_id=self.service_id,
            service_name=self.service.name,
            quantity=self.quantity,
            unit_cost_override=self.unit_cost_override,
            effective_labor_unit_cost=effective_labor_unit_cost(
                self.service.unit_labor_cost, self.unit_cost_override
            ),
            costs=self.costs(),
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<TaskServiceModel {self.task_id}/{self.service_id} x{self.quantity}>"
