"""
PlacementService -- runs the placement engine against the store and
persists its result.

Responsibility:
    Builds a snapshot of the candidate items and the (row-locked)
    containers, runs ``place_items`` on it, and only when every item found a
    container applies the placements through LifecycleService.

Invariants enforced:
    - Whole-batch atomicity: the engine runs on a snapshot.  If it raises
      InfeasiblePlacementError nothing has been written by this service and
      the caller's transaction rolls back any override upserts too.
    - Per-container atomicity: containers are read with SELECT ... FOR
      UPDATE, so a concurrent writer cannot pass the same volume check.
    - After persisting, each container's used volume equals the engine's
      computed value.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from sqlalchemy.orm import Session

from cargo_kernel.domain.dtos import PlacementResult
from cargo_kernel.domain.placement import place_items
from cargo_kernel.domain.records import (
    ContainerRecord,
    ItemRecord,
    parse_container_record,
    parse_item_record,
)
from cargo_kernel.exceptions import InfeasiblePlacementError
from cargo_kernel.logging_config import get_logger
from cargo_kernel.models.container import Container
from cargo_kernel.models.item import Item
from cargo_kernel.selectors.container_selector import ContainerSelector
from cargo_kernel.selectors.item_selector import item_to_info
from cargo_kernel.services.inventory_service import InventoryService
from cargo_kernel.services.lifecycle_service import LifecycleService

logger = get_logger("services.placement")


class PlacementService:
    """Store-backed placement with all-or-nothing persistence."""

    def __init__(
        self,
        session: Session,
        inventory: InventoryService,
        lifecycle: LifecycleService,
    ):
        self.session = session
        self._inventory = inventory
        self._lifecycle = lifecycle
        self._containers = ContainerSelector(session)

    def _candidate_items(
        self,
        items: Sequence[Mapping[str, Any] | ItemRecord] | None,
    ) -> list[Item]:
        if items is None:
            return self._inventory.unplaced_items()
        parsed = [parse_item_record(raw, row=n) for n, raw in enumerate(items, start=1)]
        self._inventory.import_items(parsed)
        return [self._inventory.get_item(record.item_code) for record in parsed]

    def _candidate_containers(
        self,
        containers: Sequence[Mapping[str, Any] | ContainerRecord] | None,
    ) -> list[Container]:
        if containers is None:
            return self._inventory.lock_containers()
        parsed = [
            parse_container_record(raw, row=n) for n, raw in enumerate(containers, start=1)
        ]
        self._inventory.import_containers(parsed)
        return [
            self._inventory.get_container(record.container_code, for_update=True)
            for record in parsed
        ]

    def place(
        self,
        items: Sequence[Mapping[str, Any] | ItemRecord] | None = None,
        containers: Sequence[Mapping[str, Any] | ContainerRecord] | None = None,
        user_id: str | None = None,
    ) -> PlacementResult:
        """
        Place the given items (default: every unplaced item) into the given
        containers (default: every container, in import order).

        Overrides are upserted into the store first, so that the placement
        can be persisted against real rows.

        Raises:
            InfeasiblePlacementError: if any item cannot be placed.  Nothing
                is placed in that case.
            ValidationError: malformed override record.
        """
        item_rows = self._candidate_items(items)
        container_rows = self._candidate_containers(containers)

        logger.info(
            "placement_started",
            extra={"items": len(item_rows), "containers": len(container_rows)},
        )

        snapshot = [self._containers.get(c.container_code) for c in container_rows]
        try:
            result = place_items([item_to_info(i) for i in item_rows], snapshot)
        except InfeasiblePlacementError as exc:
            logger.warning(
                "placement_infeasible",
                extra={
                    "infeasible_items": exc.item_codes,
                    "feasible_items": len(exc.placements),
                },
            )
            raise

        items_by_code = {i.item_code: i for i in item_rows}
        containers_by_code = {c.container_code: c for c in container_rows}
        for placement in result.placements:
            self._lifecycle.place(
                items_by_code[placement.item_code],
                containers_by_code[placement.container_code],
                user_id=user_id,
            )

        for updated in result.updated_containers:
            # INVARIANT: persisted load matches the engine's computation
            assert containers_by_code[updated.container_code].used_volume == updated.used_volume

        logger.info(
            "placement_completed",
            extra={"placed": len(result.placements)},
        )
        return result
