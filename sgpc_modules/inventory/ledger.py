"""
Stock Ledger (``sgpc_modules.inventory.ledger``).

Responsibility
--------------
The single writer of ``materials.current_stock``.  Every change is one
conditional UPDATE whose affected-row count is checked, so a balance can
never go negative even if two transactions race past their sufficiency
checks.

Architecture position
---------------------
Flush-only kernel-style service: runs inside the caller's transaction and
never commits.  ``MaterialRequestService`` and ``InventoryService`` own the
transaction boundary.

Invariants enforced
-------------------
* ``current_stock >= 0`` after every operation.
* A failed ``decrease`` leaves the balance unchanged.
* Every successful mutation sets ``updated_at`` from the injected clock.
* ``lock_materials`` always locks rows in ascending id order.

Failure modes
-------------
* ``MaterialNotFoundError`` -- unknown or inactive material.
* ``InsufficientStockError`` -- non-positive or oversized decrease.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update

from sgpc_kernel.db.types import to_decimal
from sgpc_kernel.exceptions import InsufficientStockError, MaterialNotFoundError
from sgpc_kernel.logging_config import get_logger
from sgpc_kernel.services.base import BaseService
from sgpc_modules.inventory.orm import MaterialModel

logger = get_logger("modules.inventory.ledger")


class StockLedger(BaseService):
    """
    Atomic stock balance operations on ``MaterialModel`` rows.

    Guarantees
    ----------
    - ``decrease`` is a single ``UPDATE ... WHERE current_stock >= :q`` whose
      row count must be exactly one.
    - ``increase`` with a non-positive quantity is a no-op.
    """

    def _load_active(self, material_id: UUID, for_update: bool = False) -> MaterialModel:
        stmt = (
            select(MaterialModel)
            .where(MaterialModel.id == material_id, MaterialModel.is_active.is_(True))
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        material = self.session.scalars(stmt).one_or_none()
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material

    def get_material(self, material_id: UUID) -> MaterialModel:
        """Return the active material with a freshly read balance."""
        return self._load_active(material_id)

    def has_sufficient_stock(self, material_id: UUID, quantity: Decimal) -> bool:
        """True iff the material's current stock covers ``quantity``.

        Raises:
            MaterialNotFoundError: unknown or inactive material.
        """
        return self._load_active(material_id).current_stock >= to_decimal(quantity)

    def lock_materials(self, material_ids: Iterable[UUID]) -> dict[UUID, MaterialModel]:
        """
        Take row locks on the given materials in ascending id order.

        On PostgreSQL this is ``SELECT ... FOR UPDATE``; dialects without row
        locks (SQLite) serialise writers at the database level instead.

        Raises:
            MaterialNotFoundError: the first requested id that is unknown or
                inactive.
        """
        ids = sorted(set(material_ids), key=str)
        if not ids:
            return {}
        stmt = (
            select(MaterialModel)
            .where(MaterialModel.id.in_(ids), MaterialModel.is_active.is_(True))
            .order_by(MaterialModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        locked = {m.id: m for m in self.session.scalars(stmt)}
        for material_id in ids:
            if material_id not in locked:
                raise MaterialNotFoundError(material_id)
        logger.debug("stock_materials_locked", extra={"material_count": len(locked)})
        return locked

    def decrease(self, material_id: UUID, quantity: Decimal) -> Decimal:
        """
        Remove ``quantity`` from the material's stock.

        Returns:
            The new balance.

        Raises:
            MaterialNotFoundError: unknown or inactive material.
            InsufficientStockError: ``quantity <= 0`` or larger than the
                current balance.  The balance is unchanged.
        """
        quantity = to_decimal(quantity)
        material = self._load_active(material_id)
        if quantity <= 0 or quantity > material.current_stock:
            self._reject_decrease(material, quantity)

        result = self.session.execute(
            update(MaterialModel)
            .where(
                MaterialModel.id == material_id,
                MaterialModel.is_active.is_(True),
                MaterialModel.current_stock >= quantity,
            )
            .values(
                current_stock=MaterialModel.current_stock - quantity,
                updated_at=self.clock.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Another transaction drained the balance after our read
            self.session.refresh(material)
            self._reject_decrease(material, quantity)

        self.session.refresh(material)
        logger.info(
            "stock_decreased",
            extra={
                "material_id": str(material_id),
                "quantity": str(quantity),
                "stock_after": str(material.current_stock),
            },
        )
        return material.current_stock

    def increase(self, material_id: UUID, quantity: Decimal) -> Decimal:
        """
        Add ``quantity`` to the material's stock.  A non-positive quantity
        leaves the balance untouched.

        Returns:
            The new balance.

        Raises:
            MaterialNotFoundError: unknown or inactive material.
        """
        quantity = to_decimal(quantity)
        material = self._load_active(material_id)
        if quantity <= 0:
            logger.debug(
                "stock_increase_ignored",
                extra={"material_id": str(material_id), "quantity": str(quantity)},
            )
            return material.current_stock

        result = self.session.execute(
            update(MaterialModel)
            .where(MaterialModel.id == material_id, MaterialModel.is_active.is_(True))
            .values(
                current_stock=MaterialModel.current_stock + quantity,
                updated_at=self.clock.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise MaterialNotFoundError(material_id)

        self.session.refresh(material)
        logger.info(
            "stock_increased",
            extra={
                "material_id": str(material_id),
                "quantity": str(quantity),
                "stock_after": str(material.current_stock),
            },
        )
        return material.current_stock

    def _reject_decrease(self, material: MaterialModel, quantity: Decimal) -> None:
        logger.warning(
            "stock_decrease_rejected",
            extra={
                "material_id": str(material.id),
                "available": str(material.current_stock),
                "requested": str(quantity),
            },
        )
        raise InsufficientStockError(
            material_id=material.id,
            material_name=material.name,
            available=material.current_stock,
            requested=quantity,
        )
