"""Read paths for items, used for availability lookups and error remediation."""

from sqlalchemy import select

from inventory_ledger.domain.dtos import ItemDTO
from inventory_ledger.exceptions import ItemNotFoundError
from inventory_ledger.models.item import Item
from inventory_ledger.selectors.base import BaseSelector


class ItemSelector(BaseSelector):
    """Query items without mutating them."""

    def get_item(self, item_id: int) -> ItemDTO:
        """
        Raises:
            ItemNotFoundError: no item with this id (inactive items are returned).
        """
        item = self.session.execute(
            select(Item).where(Item.id == item_id)
        ).scalar_one_or_none()
        if item is None:
            raise ItemNotFoundError(item_id)
        return ItemDTO.from_model(item)

    def list_items(self, active_only: bool = False) -> list[ItemDTO]:
        stmt = select(Item).order_by(Item.name)
        if active_only:
            stmt = stmt.where(Item.is_active.is_(True))
        return [ItemDTO.from_model(item) for item in self.session.scalars(stmt)]
