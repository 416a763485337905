"""
ItemSelector -- read access to items.

Every list this selector returns is in store iteration order (import_seq),
which is the order the placement engine and the waste planner consume.
"""

from datetime import date

from sqlalchemy import and_, or_, select

from cargo_kernel.domain.dtos import ItemInfo
from cargo_kernel.exceptions import ItemNotFoundError
from cargo_kernel.models.item import Item, ItemStatus
from cargo_kernel.selectors.base import BaseSelector


def item_to_info(item: Item) -> ItemInfo:
    """Convert ORM Item to ItemInfo DTO."""
    return ItemInfo(
        item_code=item.item_code,
        name=item.name,
        width=item.width,
        depth=item.depth,
        height=item.height,
        priority=item.priority,
        expiry_date=item.expiry_date,
        usage_limit=item.usage_limit,
        preferred_zone=item.preferred_zone,
        container_code=item.container_code,
        status=ItemStatus(item.status),
    )


class ItemSelector(BaseSelector[Item]):
    """Read-only queries over items."""

    def find(self, item_code: str) -> ItemInfo | None:
        stmt = select(Item).where(Item.item_code == item_code)
        item = self.session.execute(stmt).scalar_one_or_none()
        return item_to_info(item) if item else None

    def get(self, item_code: str) -> ItemInfo:
        """
        Raises:
            ItemNotFoundError: If the item doesn't exist.
        """
        info = self.find(item_code)
        if info is None:
            raise ItemNotFoundError(item_code)
        return info

    def list_all(self) -> list[ItemInfo]:
        stmt = select(Item).order_by(Item.import_seq)
        return [item_to_info(i) for i in self.session.execute(stmt).scalars()]

    def list_unplaced(self) -> list[ItemInfo]:
        """Stored items that have no container yet."""
        stmt = (
            select(Item)
            .where(Item.container_code.is_(None))
            .where(Item.status == ItemStatus.STORED.value)
            .order_by(Item.import_seq)
        )
        return [item_to_info(i) for i in self.session.execute(stmt).scalars()]

    def list_waste(self, reference_date: date) -> list[ItemInfo]:
        """
        Items that expired before reference_date or have no uses left.

        Items without an expiry date only qualify through usage.
        """
        stmt = (
            select(Item)
            .where(
                or_(
                    and_(
                        Item.expiry_date.is_not(None),
                        Item.expiry_date < reference_date,
                    ),
                    Item.usage_limit <= 0,
                )
            )
            .order_by(Item.import_seq)
        )
        return [item_to_info(i) for i in self.session.execute(stmt).scalars()]
