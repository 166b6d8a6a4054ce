"""
Cost Rollup Calculations -- Pure Functions.

All functions are pure: no I/O, no side effects, no database.
``CostAggregator`` loads rows, calls these, and writes the results back.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from sgpc_kernel.db.types import HUNDRED, ZERO, round_percentage
from sgpc_modules.costs.models import CostBuckets, TaskStatus


def effective_labor_unit_cost(
    unit_labor_cost: Decimal,
    unit_cost_override: Decimal | None,
) -> Decimal:
    """The override when present, otherwise the catalogue labor cost."""
    return unit_labor_cost if unit_cost_override is None else unit_cost_override


def line_costs(
    quantity: Decimal,
    unit_labor_cost: Decimal,
    unit_material_cost: Decimal,
    unit_equipment_cost: Decimal,
    unit_cost_override: Decimal | None = None,
) -> CostBuckets:
    """Costs of one task service line.  Only labor can be overridden."""
    return CostBuckets(
        labor=quantity * effective_labor_unit_cost(unit_labor_cost, unit_cost_override),
        material=quantity * unit_material_cost,
        equipment=quantity * unit_equipment_cost,
    )


def sum_buckets(buckets: Iterable[CostBuckets]) -> CostBuckets:
    return sum(buckets, CostBuckets())


@dataclass(frozen=True)
class TaskCostInput:
    """What the realized-cost rule needs to know about one task."""
    status: str
    stored_costs: CostBuckets
    service_costs: CostBuckets | None  # None when the task has no service lines


def realized_cost(tasks: Iterable[TaskCostInput]) -> Decimal:
    """
    Realized cost of a project: the sum over completed tasks of their
    service-line total, or of their stored costs when they have no lines.
    A task contributes exactly once.
    """
    total = ZERO
    for task in tasks:
        if task.status != TaskStatus.CONCLUIDA.value:
            continue
        costs = task.service_costs if task.service_costs is not None else task.stored_costs
        total += costs.total
    return total


def average_progress(progress_values: Iterable[int], decimal_places: int = 2) -> Decimal:
    """Arithmetic mean of task progress, 0 for a project without tasks."""
    values = list(progress_values)
    if not values:
        return round_percentage(ZERO, decimal_places)
    return round_percentage(Decimal(sum(values)) / Decimal(len(values)), decimal_places)


def budget_usage_percentage(
    realized: Decimal,
    budget: Decimal | None,
    decimal_places: int = 2,
) -> Decimal:
    """realized / budget * 100, HALF_UP; 0 when there is no budget."""
    if not budget:
        return round_percentage(ZERO, decimal_places)
    return round_percentage(realized * HUNDRED / budget, decimal_places)


def status_for_progress(progress: int) -> str:
    """Status implied by a new progress value.

    0 -> A_FAZER, 1..99 -> EM_ANDAMENTO, 100 -> CONCLUIDA.
    """
    if progress == 0:
        return TaskStatus.A_FAZER.value
    if progress == 100:
        return TaskStatus.CONCLUIDA.value
    return TaskStatus.EM_ANDAMENTO.value


def progress_for_status(status: str, current_progress: int, in_progress_default: int = 50) -> int:
    """Progress implied by a new status.

    A_FAZER -> 0, CONCLUIDA -> 100, EM_ANDAMENTO -> ``in_progress_default``
    when the task was at 0 or 100, otherwise unchanged.  BLOQUEADA and
    CANCELADA keep the current progress.
    """
    if status == TaskStatus.A_FAZER.value:
        return 0
    if status == TaskStatus.CONCLUIDA.value:
        return 100
    if status == TaskStatus.EM_ANDAMENTO.value and current_progress in (0, 100):
        return in_progress_default
    return current_progress
