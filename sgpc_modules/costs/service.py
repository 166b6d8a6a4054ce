"""
Cost Aggregator (``sgpc_modules.costs.service``).

Responsibility
--------------
Keeps the cost rollup consistent: task service lines -> task cost buckets
-> project realized cost, and task progress -> project progress.  Also owns
the service catalogue and the task progress/status updates that feed the
rollup.

Architecture
------------
Layer: **Modules** -- orchestration.  Arithmetic lives in
``sgpc_modules.costs.calculations``; this class loads rows, calls the pure
functions and writes the results.

Invariants
----------
- Each public write method owns its transaction boundary: commit on
  success, rollback and re-raise on any exception.  The ``_recalculate_*``
  helpers only flush, so a cascade (line -> task -> project) lands in one
  transaction.
- Task-level recomputation always precedes project-level recomputation.
- Recomputations are idempotent: repeating one with no data change writes
  the same values.
- A completed task contributes to realized cost exactly once: through its
  service lines when it has any, otherwise through its stored costs.

Usage::

    aggregator = CostAggregator(session, clock, settings.costs)
    aggregator.add_service_to_task(task_id, masonry_id, quantity=Decimal("2"))
    aggregator.update_task_status(task_id, TaskStatus.CONCLUIDA)
    budget = aggregator.get_project_budget(project_id)
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from sgpc_config.schema import CostSettings
from sgpc_kernel.db.types import ZERO
from sgpc_kernel.domain.clock import Clock, SystemClock
from sgpc_kernel.exceptions import (
    InvalidCostError,
    InvalidProgressError,
    InvalidQuantityError,
    ProjectNotFoundError,
    ServiceAlreadyAssignedError,
    ServiceAlreadyExistsError,
    ServiceNotAssignedToTaskError,
    ServiceNotFoundError,
    TaskNotFoundError,
)
from sgpc_kernel.logging_config import LogContext, get_logger
from sgpc_modules.costs.calculations import (
    TaskCostInput,
    average_progress,
    budget_usage_percentage,
    progress_for_status,
    realized_cost,
    status_for_progress,
    sum_buckets,
)
from sgpc_modules.costs.models import (
    CostBuckets,
    Service,
    Task,
    TaskCostReport,
    TaskServiceLine,
    TaskStatus,
)
from sgpc_modules.costs.orm import ServiceModel, TaskModel, TaskServiceModel
from sgpc_modules.project.models import ProjectBudget
from sgpc_modules.project.orm import ProjectModel

logger = get_logger("modules.costs.service")


class CostAggregator:
    """
    Cost rollup and task progress orchestration.

    Transaction boundary: this service commits on success, rolls back on failure.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: CostSettings | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._settings = settings or CostSettings()

    # =========================================================================
    # Service catalogue
    # =========================================================================

    def create_service(
        self,
        name: str,
        unit_of_measurement: str,
        unit_labor_cost: Decimal = ZERO,
        unit_material_cost: Decimal = ZERO,
        unit_equipment_cost: Decimal = ZERO,
        description: str | None = None,
    ) -> Service:
        """
        Register a catalogue service.

        Raises:
            ServiceAlreadyExistsError: a service with ``name`` exists.
            InvalidCostError: a negative unit cost.
        """
        try:
            existing = self._session.scalars(
                select(ServiceModel).where(ServiceModel.name == name)
            ).one_or_none()
            if existing is not None:
                raise ServiceAlreadyExistsError(name)
            for field, value in (
                ("unit_labor_cost", unit_labor_cost),
                ("unit_material_cost", unit_material_cost),
                ("unit_equipment_cost", unit_equipment_cost),
            ):
                if value < 0:
                    raise InvalidCostError(field, value)

            service = ServiceModel.create(
                name=name,
                unit_of_measurement=unit_of_measurement,
                at=self._clock.now(),
                unit_labor_cost=unit_labor_cost,
                unit_material_cost=unit_material_cost,
                unit_equipment_cost=unit_equipment_cost,
                description=description,
            )
            self._session.add(service)
            self._session.flush()
            logger.info("service_created", extra={
                "service_id": str(service.id),
                "service_name": name,
            })
            dto = service.to_dto()
            self._session.commit()
            return dto
        except Exception:
            self._session.rollback()
            raise

    def list_services(self, name_contains: str | None = None) -> list[Service]:
        """Active services ordered by name, optionally filtered by a
        case-insensitive name fragment."""
        stmt = select(ServiceModel).where(ServiceModel.is_active.is_(True))
        if name_contains:
            stmt = stmt.where(ServiceModel.name.ilike(f"%{name_contains}%"))
        stmt = stmt.order_by(ServiceModel.name)
        return [s.to_dto() for s in self._session.scalars(stmt)]

    # =========================================================================
    # Task service lines
    # =========================================================================

    def add_service_to_task(
        self,
        task_id: UUID,
        service_id: UUID,
        quantity: Decimal = Decimal("1"),
        unit_cost_override: Decimal | None = None,
        notes: str | None = None,
    ) -> TaskServiceLine:
        """
        Apply a service to a task and recalculate the task's costs.

        Raises:
            TaskNotFoundError / ServiceNotFoundError.
            ServiceAlreadyAssignedError: the service is already on the task.
            InvalidQuantityError: ``quantity <= 0``.
            InvalidCostError: negative ``unit_cost_override``.
        """
        with LogContext.bind(task_id=task_id):
            try:
                task = self._load_task(task_id)
                service = self._session.get(ServiceModel, service_id)
                if service is None:
                    raise ServiceNotFoundError(service_id)
                if self._find_line(task_id, service_id) is not None:
                    raise ServiceAlreadyAssignedError(task_id, service_id)
                if quantity <= 0:
                    raise InvalidQuantityError(quantity)
                if unit_cost_override is not None and unit_cost_override < 0:
                    raise InvalidCostError("unit_cost_override", unit_cost_override)

                now = self._clock.now()
                line = TaskServiceModel(
                    task_id=task.id,
                    service_id=service.id,
                    quantity=quantity,
                    unit_cost_override=unit_cost_override,
                    notes=notes,
                    created_at=now,
                    updated_at=now,
                )
                line.service = service
                task.service_lines.append(line)
                self._session.flush()

                logger.info("task_service_added", extra={
                    "service_id": str(service_id),
                    "quantity": str(quantity),
                })
                self._recalculate_task_costs(task)
                dto = line.to_dto()
                self._session.commit()
                return dto
            except Exception:
                self._session.rollback()
                raise

    def remove_service_from_task(self, task_id: UUID, service_id: UUID) -> None:
        """
        Remove a service from a task and recalculate the task's costs.

        Raises:
            TaskNotFoundError: unknown task.
            ServiceNotAssignedToTaskError: the service is not on the task.
        """
        with LogContext.bind(task_id=task_id):
            try:
                task = self._load_task(task_id)
                line = next(
                    (ln for ln in task.service_lines if ln.service_id == service_id),
                    None,
                )
                if line is None:
                    raise ServiceNotAssignedToTaskError(task_id, service_id)
                task.service_lines.remove(line)
                self._session.flush()

                logger.info("task_service_removed", extra={"service_id": str(service_id)})
                self._recalculate_task_costs(task)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

    def list_task_services(self, task_id: UUID) -> list[TaskServiceLine]:
        """
        Raises:
            TaskNotFoundError: unknown task.
        """
        task = self._load_task(task_id)
        return [line.to_dto() for line in self._ordered_lines(task)]

    # =========================================================================
    # Progress and status
    # =========================================================================

    def update_task_progress(
        self,
        task_id: UUID,
        progress: int,
        actual_hours: Decimal | None = None,
        notes: str | None = None,
    ) -> Task:
        """
        Set a task's progress; the status follows the progress.

        A non-blank ``notes`` is appended to the task notes as a dated line.
        Project progress and realized cost are recalculated afterwards.

        Raises:
            TaskNotFoundError: unknown task.
            InvalidProgressError: ``progress`` outside 0..100.
        """
        with LogContext.bind(task_id=task_id):
            try:
                if isinstance(progress, bool) or not 0 <= progress <= 100:
                    raise InvalidProgressError(task_id, progress)
                task = self._load_task(task_id)
                now = self._clock.now()

                task.apply_progress(progress, status_for_progress(progress), now)
                if actual_hours is not None:
                    task.actual_hours = actual_hours
                if notes and notes.strip():
                    task.append_note(
                        f"[{now.date().isoformat()}] Progress updated to {progress}%: "
                        f"{notes.strip()}",
                        now,
                    )
                self._session.flush()

                logger.info("task_progress_updated", extra={
                    "progress": progress,
                    "status": task.status,
                })
                self._recalculate_project(task.project_id)
                dto = task.to_dto()
                self._session.commit()
                return dto
            except Exception:
                self._session.rollback()
                raise

    def update_task_status(self, task_id: UUID, status: TaskStatus | str) -> Task:
        """
        Set a task's status; the progress follows the status.

        Project progress and realized cost are recalculated afterwards.

        Raises:
            TaskNotFoundError: unknown task.
            ValueError: unknown status.
        """
        status = TaskStatus(status)
        with LogContext.bind(task_id=task_id):
            try:
                task = self._load_task(task_id)
                progress = progress_for_status(
                    status.value,
                    task.progress_percentage,
                    self._settings.in_progress_default_percentage,
                )
                task.apply_progress(progress, status.value, self._clock.now())
                self._session.flush()

                logger.info("task_status_updated", extra={
                    "status": status.value,
                    "progress": progress,
                })
                self._recalculate_project(task.project_id)
                dto = task.to_dto()
                self._session.commit()
                return dto
            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Rollup
    # =========================================================================

    def recalculate_task_costs(self, task_id: UUID) -> Task:
        """
        Rewrite the task's cost buckets from its service lines, then the
        owning project's realized cost.

        Raises:
            TaskNotFoundError: unknown task.
        """
        with LogContext.bind(task_id=task_id):
            try:
                task = self._load_task(task_id)
                self._recalculate_task_costs(task)
                dto = task.to_dto()
                self._session.commit()
                return dto
            except Exception:
                self._session.rollback()
                raise

    def recalculate_project_realized_cost(self, project_id: UUID) -> Decimal:
        """
        Raises:
            ProjectNotFoundError: unknown project.
        """
        with LogContext.bind(project_id=project_id):
            try:
                project = self._load_project(project_id)
                value = self._recalculate_realized_cost(project)
                self._session.commit()
                return value
            except Exception:
                self._session.rollback()
                raise

    def recalculate_project_progress(self, project_id: UUID) -> Decimal:
        """
        Raises:
            ProjectNotFoundError: unknown project.
        """
        with LogContext.bind(project_id=project_id):
            try:
                project = self._load_project(project_id)
                value = self._recalculate_progress(project)
                self._session.commit()
                return value
            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Reports
    # =========================================================================

    def get_task_cost_report(self, task_id: UUID) -> TaskCostReport:
        """
        Raises:
            TaskNotFoundError: unknown task.
        """
        task = self._load_task(task_id)
        return TaskCostReport(
            task_id=task.id,
            task_title=task.title,
            labor_cost=task.labor_cost,
            material_cost=task.material_cost,
            equipment_cost=task.equipment_cost,
            total_cost=task.total_cost,
            progress_percentage=task.progress_percentage,
            services=tuple(line.to_dto() for line in self._ordered_lines(task)),
        )

    def get_project_budget(self, project_id: UUID) -> ProjectBudget:
        """
        Raises:
            ProjectNotFoundError: unknown project.
        """
        project = self._load_project(project_id)
        return ProjectBudget(
            project_id=project.id,
            project_name=project.name,
            total_budget=project.total_budget,
            realized_cost=project.realized_cost,
            budget_variance=project.budget_variance,
            budget_usage_percentage=budget_usage_percentage(
                project.realized_cost,
                project.total_budget,
                self._settings.usage_decimal_places,
            ),
            is_over_budget=project.is_over_budget,
        )

    # =========================================================================
    # Helpers (flush only)
    # =========================================================================

    def _recalculate_task_costs(self, task: TaskModel) -> None:
        buckets = sum_buckets(line.costs() for line in task.service_lines)
        task.apply_costs(buckets.labor, buckets.material, buckets.equipment, self._clock.now())
        self._session.flush()
        logger.info("task_costs_recalculated", extra={
            "task_id": str(task.id),
            "line_count": len(task.service_lines),
            "total_cost": str(buckets.total),
        })
        self._recalculate_realized_cost(self._load_project(task.project_id))

    def _recalculate_project(self, project_id: UUID) -> None:
        project = self._load_project(project_id)
        self._recalculate_progress(project)
        self._recalculate_realized_cost(project)

    def _recalculate_realized_cost(self, project: ProjectModel) -> Decimal:
        inputs = []
        for task in self._tasks_of(project.id):
            service_costs = (
                sum_buckets(line.costs() for line in task.service_lines)
                if task.service_lines
                else None
            )
            inputs.append(TaskCostInput(
                status=task.status,
                stored_costs=CostBuckets(task.labor_cost, task.material_cost, task.equipment_cost),
                service_costs=service_costs,
            ))
        value = realized_cost(inputs)
        project.apply_rollup(self._clock.now(), realized_cost=value)
        self._session.flush()
        logger.info("project_realized_cost_recalculated", extra={
            "project_id": str(project.id),
            "realized_cost": str(value),
        })
        return value

    def _recalculate_progress(self, project: ProjectModel) -> Decimal:
        value = average_progress(
            (t.progress_percentage for t in self._tasks_of(project.id)),
            self._settings.progress_decimal_places,
        )
        project.apply_rollup(self._clock.now(), progress_percentage=value)
        self._session.flush()
        logger.info("project_progress_recalculated", extra={
            "project_id": str(project.id),
            "progress_percentage": str(value),
        })
        return value

    def _tasks_of(self, project_id: UUID) -> list[TaskModel]:
        return list(self._session.scalars(
            select(TaskModel).where(TaskModel.project_id == project_id)
        ))

    def _load_task(self, task_id: UUID) -> TaskModel:
        task = self._session.get(TaskModel, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def _load_project(self, project_id: UUID) -> ProjectModel:
        project = self._session.get(ProjectModel, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def _find_line(self, task_id: UUID, service_id: UUID) -> TaskServiceModel | None:
        return self._session.scalars(
            select(TaskServiceModel).where(
                TaskServiceModel.task_id == task_id,
                TaskServiceModel.service_id == service_id,
            )
        ).one_or_none()

    @staticmethod
    def _ordered_lines(task: TaskModel) -> list[TaskServiceModel]:
        return sorted(task.service_lines, key=lambda ln: ln.service.name)
