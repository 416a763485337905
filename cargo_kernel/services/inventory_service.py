"""
InventoryService -- upsert and lookup of items and containers.

Responsibility:
    The write side of the inventory store.  Imports validated records by
    identifier (insert or overwrite), and hands ORM rows to the other
    services.

Invariants enforced:
    - Upsert by identifier: reimporting an item overwrites every imported
      field and resets it to an unplaced STORED item.  If the old row was
      occupying a container, its volume is released first so the
      container's used volume keeps matching its stored items.
    - Reimporting a container overwrites zone and dimensions but keeps its
      used volume; shrinking it below that volume is rejected.
    - import_seq is refreshed on every upsert, so a reimported row moves to
      the end of store iteration order.

Failure modes:
    - ValidationError: malformed record (first invalid field wins), or a
      container reimport smaller than its current load.
    - ItemNotFoundError / ContainerNotFoundError on lookups.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from cargo_kernel.domain.records import (
    ContainerRecord,
    ItemRecord,
    parse_container_record,
    parse_item_record,
)
from cargo_kernel.exceptions import (
    ContainerNotFoundError,
    ItemNotFoundError,
    ValidationError,
)
from cargo_kernel.logging_config import get_logger
from cargo_kernel.models.container import Container
from cargo_kernel.models.item import Item, ItemStatus
from cargo_kernel.services.base import BaseService

logger = get_logger("services.inventory")


class InventoryService(BaseService[Item]):
    """Upserts and row lookups for the inventory store."""

    def __init__(self, session: Session, actor_id: str = "system"):
        super().__init__(session)
        self._actor_id = actor_id

    # -------------------------------------------------------------------------
    # Lookups (ORM rows, for other services)
    # -------------------------------------------------------------------------

    def find_item(self, item_code: str) -> Item | None:
        stmt = select(Item).where(Item.item_code == item_code)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_item(self, item_code: str) -> Item:
        """
        Raises:
            ItemNotFoundError: If the item doesn't exist.
        """
        item = self.find_item(item_code)
        if item is None:
            raise ItemNotFoundError(item_code)
        return item

    def find_container(self, container_code: str, for_update: bool = False) -> Container | None:
        stmt = select(Container).where(Container.container_code == container_code)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def get_container(self, container_code: str, for_update: bool = False) -> Container:
        """
        Raises:
            ContainerNotFoundError: If the container doesn't exist.
        """
        container = self.find_container(container_code, for_update=for_update)
        if container is None:
            raise ContainerNotFoundError(container_code)
        return container

    def lock_containers(self) -> list[Container]:
        """All containers in store order, row-locked for the transaction."""
        stmt = select(Container).order_by(Container.import_seq).with_for_update()
        return list(self.session.execute(stmt).scalars())

    def unplaced_items(self) -> list[Item]:
        stmt = (
            select(Item)
            .where(Item.container_code.is_(None))
            .where(Item.status == ItemStatus.STORED.value)
            .order_by(Item.import_seq)
        )
        return list(self.session.execute(stmt).scalars())

    # -------------------------------------------------------------------------
    # Upserts
    # -------------------------------------------------------------------------

    def _next_seq(self, model: type[Item] | type[Container]) -> int:
        current = self.session.execute(select(func.max(model.import_seq))).scalar()
        return (current or 0) + 1

    def upsert_item(self, record: ItemRecord) -> Item:
        """Insert or overwrite one item.  The result is an unplaced STORED item."""
        seq = self._next_seq(Item)
        item = self.find_item(record.item_code)
        if item is None:
            item = Item(item_code=record.item_code, created_by=self._actor_id)
            self.session.add(item)
        elif item.is_placed:
            container = self.find_container(item.container_code, for_update=True)
            if container is not None:
                container.used_volume = container.used_volume - item.volume

        item.name = record.name
        item.width = record.width
        item.depth = record.depth
        item.height = record.height
        item.priority = record.priority
        item.expiry_date = record.expiry_date
        item.usage_limit = record.usage_limit
        item.preferred_zone = record.preferred_zone
        item.container_code = None
        item.status = ItemStatus.STORED
        item.import_seq = seq
        self.session.flush()
        return item

    def upsert_container(self, record: ContainerRecord) -> Container:
        """Insert or overwrite one container, keeping its current load."""
        seq = self._next_seq(Container)
        container = self.find_container(record.container_code, for_update=True)
        if container is None:
            container = Container(
                container_code=record.container_code,
                used_volume=record.used_volume,
                created_by=self._actor_id,
            )
        elif container.used_volume > record.volume:
            raise ValidationError(
                "volume",
                record.volume,
                f"container {record.container_code} already holds "
                f"{container.used_volume}",
            )

        container.zone = record.zone
        container.width = record.width
        container.depth = record.depth
        container.height = record.height
        container.import_seq = seq
        self.session.add(container)
        self.session.flush()
        return container

    def import_items(self, records: Iterable[Mapping[str, Any] | ItemRecord]) -> int:
        """
        Validate and upsert item rows.

        Every row is validated before any is written, so a bad row rejects
        the whole batch.

        Returns:
            Number of rows imported.
        """
        parsed = [parse_item_record(raw, row=n) for n, raw in enumerate(records, start=1)]
        for record in parsed:
            self.upsert_item(record)
        logger.info("items_imported", extra={"count": len(parsed)})
        return len(parsed)

    def import_containers(
        self,
        records: Iterable[Mapping[str, Any] | ContainerRecord],
    ) -> int:
        """
        Validate and upsert container rows.

        Returns:
            Number of rows imported.
        """
        parsed = [
            parse_container_record(raw, row=n) for n, raw in enumerate(records, start=1)
        ]
        for record in parsed:
            self.upsert_container(record)
        logger.info("containers_imported", extra={"count": len(parsed)})
        return len(parsed)

    def clear(self) -> None:
        """Delete every item and container.  The action log is kept."""
        items = self.session.execute(delete(Item)).rowcount
        containers = self.session.execute(delete(Container)).rowcount
        self.session.flush()
        logger.warning(
            "inventory_cleared",
            extra={"items_deleted": items, "containers_deleted": containers},
        )
