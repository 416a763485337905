"""
Placement engine -- greedy priority / zone / volume assignment.

Responsibility:
    Assign each item to a container, or report which items cannot be
    placed.  Pure function over snapshots: inputs are never mutated and the
    caller decides what to persist.

Algorithm (deterministic, single pass):
    1. Sort items by descending priority.  Equal priorities keep their input
       order (``sorted`` is stable).
    2. For each item, scan containers in their given order.
    3. A container is eligible when the item has no preferred zone or the
       zones are equal.
    4. The first eligible container with ``used + item_volume <= volume``
       takes the item.
    5. Accepting bumps the container's used volume, appends the item code to
       its manifest and emits a Placement.
    6. An item with no taker is recorded as infeasible and consumes nothing.
       After the pass, any infeasible item raises InfeasiblePlacementError
       carrying every infeasible code and the partial placements.

Geometry:
    VOLUME_ONLY_GEOMETRY.  Feasibility is the scalar volume sum only; each
    placement is reported as a box at the container origin sized to the
    item.  Boxes of different items may overlap.  There is no rotation,
    stacking or collision model.

Cost: O(I * C) for I items and C containers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol, Sequence

from cargo_kernel.db.base import box_volume
from cargo_kernel.domain.dtos import (
    ContainerInfo,
    Coordinates,
    Placement,
    PlacementResult,
    Position,
)
from cargo_kernel.exceptions import InfeasiblePlacementError, ValidationError

VOLUME_ONLY_GEOMETRY = "volume_only"

_ORIGIN = Coordinates(width=Decimal("0"), depth=Decimal("0"), height=Decimal("0"))


class PlaceableItem(Protocol):
    item_code: str
    width: Decimal
    depth: Decimal
    height: Decimal
    priority: int
    preferred_zone: str | None


class PlaceableContainer(Protocol):
    container_code: str
    zone: str
    width: Decimal
    depth: Decimal
    height: Decimal
    used_volume: Decimal


@dataclass
class _Slot:
    """Working copy of one container during a placement pass."""

    container_code: str
    zone: str
    width: Decimal
    depth: Decimal
    height: Decimal
    used_volume: Decimal
    item_codes: list[str] = field(default_factory=list)

    @property
    def volume(self) -> Decimal:
        return box_volume(self.width, self.depth, self.height)

    def fits(self, item_volume: Decimal) -> bool:
        return self.used_volume + item_volume <= self.volume

    def freeze(self) -> ContainerInfo:
        return ContainerInfo(
            container_code=self.container_code,
            zone=self.zone,
            width=self.width,
            depth=self.depth,
            height=self.height,
            used_volume=self.used_volume,
            item_codes=tuple(self.item_codes),
        )


def item_volume(item: PlaceableItem) -> Decimal:
    return box_volume(item.width, item.depth, item.height)


def zone_allows(item: PlaceableItem, zone: str) -> bool:
    """An item without a preferred zone may go anywhere."""
    return not item.preferred_zone or item.preferred_zone == zone


def degenerate_position(item: PlaceableItem) -> Position:
    """Box at the container origin with the item's own extent."""
    return Position(
        start=_ORIGIN,
        end=Coordinates(width=item.width, depth=item.depth, height=item.height),
    )


def order_by_priority(items: Sequence[PlaceableItem]) -> list[PlaceableItem]:
    """Highest priority first; ties keep input order."""
    return sorted(items, key=lambda item: -item.priority)


def _snapshot(containers: Sequence[PlaceableContainer]) -> list[_Slot]:
    slots = []
    seen: set[str] = set()
    for container in containers:
        if container.container_code in seen:
            raise ValidationError(
                "container_code",
                container.container_code,
                "duplicate container in placement batch",
            )
        seen.add(container.container_code)
        slots.append(
            _Slot(
                container_code=container.container_code,
                zone=container.zone,
                width=container.width,
                depth=container.depth,
                height=container.height,
                used_volume=container.used_volume or Decimal("0"),
                item_codes=list(getattr(container, "item_codes", ()) or ()),
            )
        )
    return slots


def place_items(
    items: Sequence[PlaceableItem],
    containers: Sequence[PlaceableContainer],
) -> PlacementResult:
    """
    Assign every item to a container.

    Returns:
        PlacementResult with one Placement per item (priority order) and the
        post-placement state of every container (input order).

    Raises:
        InfeasiblePlacementError: if any item fits no eligible container.
        ValidationError: if an item or container code repeats in the batch.
    """
    codes = [item.item_code for item in items]
    if len(set(codes)) != len(codes):
        duplicate = next(code for code in codes if codes.count(code) > 1)
        raise ValidationError(
            "item_code", duplicate, "duplicate item in placement batch"
        )

    slots = _snapshot(containers)
    placements: list[Placement] = []
    infeasible: list[str] = []

    for item in order_by_priority(items):
        volume = item_volume(item)
        slot = next(
            (s for s in slots if zone_allows(item, s.zone) and s.fits(volume)),
            None,
        )
        if slot is None:
            infeasible.append(item.item_code)
            continue
        slot.used_volume += volume
        slot.item_codes.append(item.item_code)
        placements.append(
            Placement(
                item_code=item.item_code,
                container_code=slot.container_code,
                position=degenerate_position(item),
            )
        )

    if infeasible:
        raise InfeasiblePlacementError(infeasible, tuple(placements))

    return PlacementResult(
        placements=tuple(placements),
        updated_containers=tuple(slot.freeze() for slot in slots),
    )
