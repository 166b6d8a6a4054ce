"""
SQLAlchemy ORM persistence for projects.

Responsibility
--------------
Only the columns the cost rollup reads and writes: budget, realized cost,
progress and status.  Scheduling, team and address data belong to the
surrounding project-management application.

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (FixedDecimal(38, 9)).
* ``realized_cost`` and ``progress_percentage`` are written only by
  ``CostAggregator``; ``apply_rollup`` is the single mutator.
"""

from datetime import datetime
from decimal import Decimal
from typing import Self

from sqlalchemy import CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sgpc_kernel.db.base import TrackedBase
from sgpc_kernel.db.types import PERCENTAGE_TYPE, ZERO


class ProjectModel(TrackedBase):
    """
    A construction project with cost tracking.

    Maps to the ``Project`` DTO in ``sgpc_modules.project.models``.
    """

    __tablename__ = "projects"

    __table_args__ = (
        UniqueConstraint("name", name="uq_project_name"),
        Index("idx_project_status", "status"),
        CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100",
            name="ck_project_progress_range",
        ),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PLANEJAMENTO")
    total_budget: Mapped[Decimal | None] = mapped_column(nullable=True)
    realized_cost: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    progress_percentage: Mapped[Decimal] = mapped_column(
        PERCENTAGE_TYPE, nullable=False, default=ZERO
    )

    @classmethod
    def create(
        cls,
        name: str,
        at: datetime,
        total_budget: Decimal | None = None,
        status: str = "PLANEJAMENTO",
    ) -> Self:
        return cls(
            name=name,
            status=status,
            total_budget=total_budget,
            realized_cost=ZERO,
            progress_percentage=ZERO,
            created_at=at,
            updated_at=at,
        )

    @property
    def budget_variance(self) -> Decimal:
        """Budget minus realized cost; a missing budget counts as zero."""
        return (self.total_budget or ZERO) - self.realized_cost

    @property
    def is_over_budget(self) -> bool:
        return self.budget_variance < ZERO

    def apply_rollup(
        self,
        at: datetime,
        realized_cost: Decimal | None = None,
        progress_percentage: Decimal | None = None,
    ) -> None:
        if realized_cost is not None:
            self.realized_cost = realized_cost
        if progress_percentage is not None:
            self.progress_percentage = progress_percentage
        self.touch(at)

    def to_dto(self):
        from sgpc_modules.project.models import Project, ProjectStatus

        return Project(
            id=self.id,
            name=self.name,
            status=ProjectStatus(self.status),
            total_budget=self.total_budget,
            realized_cost=self.realized_cost,
            progress_percentage=self.progress_percentage,
        )

    def __repr__(self) -> str:
        return f"<ProjectModel {self.name} [{self.status}]>"
