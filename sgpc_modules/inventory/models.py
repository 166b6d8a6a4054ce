"""
Inventory Domain Models (``sgpc_modules.inventory.models``).

Frozen value objects for materials and stock movements.  ZERO I/O.
Quantities and prices are ``Decimal``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sgpc_kernel.exceptions import InvalidMovementTypeError


class MovementType(str, Enum):
    """Direction of a manual stock movement."""

    ENTRADA = "ENTRADA"
    SAIDA = "SAIDA"

    @classmethod
    def parse(cls, value: str) -> MovementType:
        """Accept ENTRADA/IN and SAIDA/OUT, case-insensitive.

        Raises:
            InvalidMovementTypeError: for anything else.
        """
        normalized = (value or "").strip().upper()
        if normalized in ("ENTRADA", "IN"):
            return cls.ENTRADA
        if normalized in ("SAIDA", "OUT"):
            return cls.SAIDA
        raise InvalidMovementTypeError(value)


@dataclass(frozen=True)
class Material:
    """A stock-keeping material."""
    id: UUID
    name: str
    unit_of_measure: str
    unit_price: Decimal
    current_stock: Decimal
    minimum_stock: Decimal
    is_active: bool = True
    description: str | None = None
    supplier: str | None = None

    @property
    def is_below_minimum(self) -> bool:
        return self.current_stock < self.minimum_stock

    @property
    def total_stock_value(self) -> Decimal:
        return self.current_stock * self.unit_price


@dataclass(frozen=True)
class StockMovement:
    """Outcome of a manual stock movement."""
    material_id: UUID
    movement_type: MovementType
    quantity: Decimal
    stock_before: Decimal
    stock_after: Decimal
