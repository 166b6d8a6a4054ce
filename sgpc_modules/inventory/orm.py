"""
SQLAlchemy ORM persistence for materials.

Responsibility
--------------
The ``materials`` table: master data plus the stock balance.  The balance
column is written exclusively by ``StockLedger`` through conditional UPDATE
statements; this model exposes no stock mutators.

Invariants enforced
-------------------
* ``current_stock >= 0`` (CHECK constraint, also guaranteed by the ledger).
* ``name`` is unique.
* All quantity and price fields use ``Decimal`` (FixedDecimal(38, 9)).
"""

from datetime import datetime
from decimal import Decimal
from typing import Self

from sqlalchemy import Boolean, CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sgpc_kernel.db.base import TrackedBase
from sgpc_kernel.db.types import ZERO


class MaterialModel(TrackedBase):
    """
    A construction material held in stock.

    Maps to the ``Material`` DTO in ``sgpc_modules.inventory.models``.
    Inactive materials are soft-deleted: they keep their history but the
    ledger treats them as not found.
    """

    __tablename__ = "materials"

    __table_args__ = (
        UniqueConstraint("name", name="uq_material_name"),
        CheckConstraint("current_stock >= 0", name="ck_material_stock_non_negative"),
        CheckConstraint("minimum_stock >= 0", name="ck_material_minimum_non_negative"),
        Index("idx_material_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    unit_of_measure: Mapped[str] = mapped_column(String(20), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    supplier: Mapped[str | None] = mapped_column(String(200), nullable=True)
    current_stock: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    minimum_stock: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @classmethod
    def create(
        cls,
        name: str,
        unit_of_measure: str,
        unit_price: Decimal,
        at: datetime,
        current_stock: Decimal = ZERO,
        minimum_stock: Decimal = ZERO,
        description: str | None = None,
        supplier: str | None = None,
    ) -> Self:
        return cls(
            name=name,
            description=description,
            unit_of_measure=unit_of_measure,
            unit_price=unit_price,
            supplier=supplier,
            current_stock=current_stock,
            minimum_stock=minimum_stock,
            is_active=True,
            created_at=at,
            updated_at=at,
        )

    @property
    def is_below_minimum(self) -> bool:
        return self.current_stock < self.minimum_stock

    def deactivate(self, at: datetime) -> None:
        self.is_active = False
        self.touch(at)

    def to_dto(self):
        from sgpc_modules.inventory.models import Material

        return Material(
            id=self.id,
            name=self.name,
            unit_of_measure=self.unit_of_measure,
            unit_price=self.unit_price,
            current_stock=self.current_stock,
            minimum_stock=self.minimum_stock,
            is_active=self.is_active,
            description=self.description,
            supplier=self.supplier,
        )

    def __repr__(self) -> str:
        return f"<MaterialModel {self.name} stock={self.current_stock}>"
