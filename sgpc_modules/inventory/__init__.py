"""
Inventory Module (``sgpc_modules.inventory``).

Responsibility
--------------
Materials and their stock balance.  ``StockLedger`` is the only writer of
``current_stock``; ``InventoryService`` adds master-data maintenance and
manual ENTRADA/SAIDA movements on top of it.

Invariants
----------
- Stock never goes negative (conditional UPDATE plus CHECK constraint).
- ``InventoryService`` methods own their transaction; ``StockLedger`` only
  flushes inside the caller's.
"""

from sgpc_modules.inventory.ledger import StockLedger
from sgpc_modules.inventory.models import Material, MovementType, StockMovement
from sgpc_modules.inventory.service import InventoryService

__all__ = [
    "InventoryService",
    "Material",
    "MovementType",
    "StockLedger",
    "StockMovement",
]
