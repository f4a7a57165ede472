"""Read-only selectors for the inventory ledger."""

from inventory_ledger.selectors.item_selector import ItemSelector
from inventory_ledger.selectors.movement_selector import MovementSelector

__all__ = [
    "ItemSelector",
    "MovementSelector",
]
