"""
WasteService -- waste identification and return planning.

Responsibility:
    Finds expired or used-up items and plans which of them ride home in the
    undocking container, under a weight budget.

Invariants enforced:
    - The manifest's total weight never exceeds max_weight.
    - Candidates are taken in store iteration order, never re-sorted; the
      first item that fits is kept even if a later combination would pack
      the budget tighter.
    - Only items that are still STORED are planned.  Items already planned
      or retrieved are left alone.
    - Items over budget are skipped, not errors.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Sequence

from sqlalchemy.orm import Session

from cargo_kernel.domain.clock import Clock, SystemClock
from cargo_kernel.domain.dtos import ItemInfo, ReturnManifest
from cargo_kernel.domain.waste import DEFAULT_WEIGHT_FACTOR, select_return
from cargo_kernel.exceptions import ValidationError
from cargo_kernel.logging_config import get_logger
from cargo_kernel.models.item import ItemStatus
from cargo_kernel.selectors.item_selector import ItemSelector
from cargo_kernel.services.inventory_service import InventoryService
from cargo_kernel.services.lifecycle_service import LifecycleService

logger = get_logger("services.waste")


def _as_weight(value: Decimal | int | float | str) -> Decimal:
    try:
        weight = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("max_weight", value, "must be a number") from None
    if not weight.is_finite() or weight < 0:
        raise ValidationError("max_weight", value, "must be a non-negative number")
    return weight


class WasteService:
    """Identifies waste and plans its return."""

    def __init__(
        self,
        session: Session,
        inventory: InventoryService,
        lifecycle: LifecycleService,
        clock: Clock | None = None,
        weight_factor: Decimal = DEFAULT_WEIGHT_FACTOR,
    ):
        self.session = session
        self._inventory = inventory
        self._lifecycle = lifecycle
        self._items = ItemSelector(session)
        self._clock = clock or SystemClock()
        self._weight_factor = weight_factor

    def identify(self, reference_date: date | None = None) -> list[ItemInfo]:
        """Items expired before reference_date (default today) or out of uses."""
        reference_date = reference_date or self._clock.today()
        waste = self._items.list_waste(reference_date)
        logger.info(
            "waste_identified",
            extra={"reference_date": reference_date, "count": len(waste)},
        )
        return waste

    def plan_return(
        self,
        undocking_container_code: str,
        max_weight: Decimal | int | float | str,
        undocking_date: date | None = None,
        reference_date: date | None = None,
        waste_items: Sequence[ItemInfo] | None = None,
        user_id: str | None = None,
    ) -> ReturnManifest:
        """
        Plan waste items into the undocking container.

        Args:
            undocking_container_code: Container that carries the waste off.
            max_weight: Weight budget for the manifest.
            undocking_date: Informational; echoed on the manifest.
            reference_date: Date waste is judged against (default today).
            waste_items: Candidates, in the order to try them.  Defaults to
                ``identify(reference_date)``.

        Raises:
            ContainerNotFoundError: Unknown undocking container.
            ValidationError: Negative or non-numeric max_weight.
        """
        budget = _as_weight(max_weight)
        self._inventory.get_container(undocking_container_code)
        reference_date = reference_date or self._clock.today()

        if waste_items is None:
            waste_items = self.identify(reference_date)
        candidates = [w for w in waste_items if w.status == ItemStatus.STORED]

        selection = select_return(candidates, budget, self._weight_factor)
        for info in selection.accepted:
            item = self._inventory.get_item(info.item_code)
            self._lifecycle.waste_plan(
                item,
                undocking_container_code,
                reference_date=reference_date,
                user_id=user_id,
            )

        manifest = ReturnManifest(
            undocking_container_code=undocking_container_code,
            undocking_date=undocking_date,
            return_items=tuple(i.item_code for i in selection.accepted),
            total_weight=selection.total_weight,
            skipped_items=tuple(i.item_code for i in selection.skipped),
        )
        logger.info(
            "waste_return_planned",
            extra={
                "container_code": undocking_container_code,
                "planned": len(manifest.return_items),
                "skipped": len(manifest.skipped_items),
                "total_weight": manifest.total_weight,
                "max_weight": budget,
            },
        )
        return manifest
