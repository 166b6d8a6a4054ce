"""
Project Domain Models (``sgpc_modules.project.models``).

Frozen value objects for the cost-relevant view of a project.  ZERO I/O.
All monetary fields use ``Decimal``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ProjectStatus(str, Enum):
    """Project lifecycle status (persisted as the member value)."""

    PLANEJAMENTO = "PLANEJAMENTO"
    EM_ANDAMENTO = "EM_ANDAMENTO"
    PAUSADO = "PAUSADO"
    CONCLUIDO = "CONCLUIDO"
    CANCELADO = "CANCELADO"


@dataclass(frozen=True)
class Project:
    id: UUID
    name: str
    status: ProjectStatus
    total_budget: Decimal | None
    realized_cost: Decimal
    progress_percentage: Decimal


@dataclass(frozen=True)
class ProjectBudget:
    """Budget position of a project after the last rollup."""

    project_id: UUID
    project_name: str
    total_budget: Decimal | None
    realized_cost: Decimal
    budget_variance: Decimal
    budget_usage_percentage: Decimal
    is_over_budget: bool
