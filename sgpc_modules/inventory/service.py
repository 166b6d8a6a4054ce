"""
Inventory Module Service (``sgpc_modules.inventory.service``).

Responsibility
--------------
Material master data and manual stock movements.  Balance changes are
delegated to ``StockLedger``; this class never writes ``current_stock``
itself.

Invariants
----------
- Each public write method owns its transaction boundary: commit on
  success, rollback and re-raise on any exception.
- Material names are unique.
- Inactive materials are invisible to every read except ``get_material``
  with ``include_inactive=True``.

Usage::

    service = InventoryService(session, clock)
    cement = service.create_material(
        name="Cement", unit_of_measure="bag", unit_price=Decimal("32.50"),
        current_stock=Decimal("100"),
    )
    service.register_movement(cement.id, "SAIDA", Decimal("5"))
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from sgpc_kernel.db.types import ZERO, to_decimal
from sgpc_kernel.domain.clock import Clock, SystemClock
from sgpc_kernel.exceptions import (
    InvalidCostError,
    InvalidQuantityError,
    MaterialAlreadyExistsError,
    MaterialNotFoundError,
)
from sgpc_kernel.logging_config import get_logger
from sgpc_modules.inventory.ledger import StockLedger
from sgpc_modules.inventory.models import Material, MovementType, StockMovement
from sgpc_modules.inventory.orm import MaterialModel

logger = get_logger("modules.inventory.service")

# Fields update_material may change; stock is excluded on purpose
_UPDATABLE_FIELDS = frozenset(
    {"name", "description", "unit_of_measure", "unit_price", "supplier", "minimum_stock"}
)


def _require_non_negative(**values: Decimal) -> None:
    for field, value in values.items():
        if to_decimal(value) < 0:
            raise InvalidCostError(field, value)


class InventoryService:
    """
    Material catalogue and manual stock movements.

    Transaction boundary: this service commits on success, rolls back on failure.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._ledger = StockLedger(session, self._clock)

    # =========================================================================
    # Master data
    # =========================================================================

    def create_material(
        self,
        name: str,
        unit_of_measure: str,
        unit_price: Decimal,
        current_stock: Decimal = ZERO,
        minimum_stock: Decimal = ZERO,
        description: str | None = None,
        supplier: str | None = None,
    ) -> Material:
        """
        Register a new material.

        Raises:
            MaterialAlreadyExistsError: a material with ``name`` exists.
            InvalidCostError: negative price or stock figures.
        """
        try:
            if self._find_by_name(name) is not None:
                raise MaterialAlreadyExistsError(name)
            _require_non_negative(
                unit_price=unit_price,
                current_stock=current_stock,
                minimum_stock=minimum_stock,
            )

            material = MaterialModel.create(
                name=name,
                unit_of_measure=unit_of_measure,
                unit_price=unit_price,
                at=self._clock.now(),
                current_stock=current_stock,
                minimum_stock=minimum_stock,
                description=description,
                supplier=supplier,
            )
            self._session.add(material)
            self._session.flush()

            logger.info("material_created", extra={
                "material_id": str(material.id),
                "material_name": name,
                "current_stock": str(current_stock),
            })
            dto = material.to_dto()
            self._session.commit()
            return dto
        except Exception:
            self._session.rollback()
            raise

    def update_material(self, material_id: UUID, **changes) -> Material:
        """
        Update master-data fields of an active material.

        Only the fields in ``_UPDATABLE_FIELDS`` may be passed; ``None``
        values are ignored.  Stock is changed through movements only.

        Raises:
            MaterialNotFoundError: unknown or inactive material.
            MaterialAlreadyExistsError: renaming onto an existing name.
            InvalidCostError: negative price or minimum stock.
            TypeError: an unsupported field was passed.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise TypeError(f"Cannot update material fields: {sorted(unknown)}")
        try:
            material = self._ledger.get_material(material_id)
            new_name = changes.get("name")
            if new_name and new_name != material.name and self._find_by_name(new_name):
                raise MaterialAlreadyExistsError(new_name)
            _require_non_negative(**{
                field: changes[field]
                for field in ("unit_price", "minimum_stock")
                if changes.get(field) is not None
            })

            for field, value in changes.items():
                if value is not None:
                    setattr(material, field, value)
            material.touch(self._clock.now())
            self._session.flush()

            logger.info("material_updated", extra={
                "material_id": str(material_id),
                "fields": sorted(k for k, v in changes.items() if v is not None),
            })
            dto = material.to_dto()
            self._session.commit()
            return dto
        except Exception:
            self._session.rollback()
            raise

    def deactivate_material(self, material_id: UUID) -> None:
        """
        Soft-delete a material.  History (request items) keeps pointing at it.

        Raises:
            MaterialNotFoundError: unknown or already inactive material.
        """
        try:
            material = self._ledger.get_material(material_id)
            material.deactivate(self._clock.now())
            self._session.flush()
            logger.info("material_deactivated", extra={"material_id": str(material_id)})
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Stock movements
    # =========================================================================

    def register_movement(
        self,
        material_id: UUID,
        movement_type: str,
        quantity: Decimal,
    ) -> StockMovement:
        """
        Apply a manual inbound (ENTRADA/IN) or outbound (SAIDA/OUT) movement.

        Raises:
            InvalidMovementTypeError: unknown movement type.
            InvalidQuantityError: ``quantity <= 0``.
            MaterialNotFoundError: unknown or inactive material.
            InsufficientStockError: outbound movement larger than the balance.
        """
        try:
            kind = MovementType.parse(movement_type)
            if quantity <= 0:
                raise InvalidQuantityError(quantity)

            before = self._ledger.get_material(material_id).current_stock
            if kind is MovementType.ENTRADA:
                after = self._ledger.increase(material_id, quantity)
            else:
                after = self._ledger.decrease(material_id, quantity)

            movement = StockMovement(
                material_id=material_id,
                movement_type=kind,
                quantity=quantity,
                stock_before=before,
                stock_after=after,
            )
            logger.info("stock_movement_registered", extra={
                "material_id": str(material_id),
                "movement_type": kind.value,
                "quantity": str(quantity),
            })
            self._session.commit()
            return movement
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Queries
    # =========================================================================

    def get_material(self, material_id: UUID, include_inactive: bool = False) -> Material:
        """
        Raises:
            MaterialNotFoundError: unknown material, or inactive unless
                ``include_inactive``.
        """
        if include_inactive:
            material = self._session.get(MaterialModel, material_id)
            if material is None:
                raise MaterialNotFoundError(material_id)
            return material.to_dto()
        return self._ledger.get_material(material_id).to_dto()

    def list_materials(self) -> list[Material]:
        """Active materials ordered by name."""
        stmt = (
            select(MaterialModel)
            .where(MaterialModel.is_active.is_(True))
            .order_by(MaterialModel.name)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def list_below_minimum(self) -> list[Material]:
        """Active materials whose stock is under their minimum, ordered by name."""
        stmt = (
            select(MaterialModel)
            .where(
                MaterialModel.is_active.is_(True),
                MaterialModel.current_stock < MaterialModel.minimum_stock,
            )
            .order_by(MaterialModel.name)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def _find_by_name(self, name: str) -> MaterialModel | None:
        return self._session.scalars(
            select(MaterialModel).where(MaterialModel.name == name)
        ).one_or_none()
