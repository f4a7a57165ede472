"""ORM models for the inventory ledger."""

from inventory_ledger.models.code_counter import CodeCounter
from inventory_ledger.models.item import Item
from inventory_ledger.models.stock_movement import StockMovement

__all__ = [
    "CodeCounter",
    "Item",
    "StockMovement",
]
