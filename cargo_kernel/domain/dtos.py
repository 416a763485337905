"""
Data Transfer Objects for the cargo kernel.

All DTOs are frozen dataclasses.  Services return these, never ORM rows, so
callers cannot mutate persistent state behind the lifecycle manager's back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from cargo_kernel.db.base import box_volume
from cargo_kernel.models.item import ItemStatus
from cargo_kernel.models.log_entry import LogAction


@dataclass(frozen=True)
class ItemInfo:
    """Immutable snapshot of an item row."""

    item_code: str
    name: str
    width: Decimal
    depth: Decimal
    height: Decimal
    priority: int
    expiry_date: date | None
    usage_limit: int
    preferred_zone: str | None
    container_code: str | None
    status: ItemStatus

    @property
    def volume(self) -> Decimal:
        return box_volume(self.width, self.depth, self.height)

    @property
    def is_placed(self) -> bool:
        return self.container_code is not None and self.status == ItemStatus.STORED


@dataclass(frozen=True)
class ContainerInfo:
    """Immutable snapshot of a container row plus its current manifest."""

    container_code: str
    zone: str
    width: Decimal
    depth: Decimal
    height: Decimal
    used_volume: Decimal
    item_codes: tuple[str, ...] = ()

    @property
    def volume(self) -> Decimal:
        return box_volume(self.width, self.depth, self.height)

    @property
    def free_volume(self) -> Decimal:
        return self.volume - self.used_volume


@dataclass(frozen=True)
class Coordinates:
    """A point in a container's local frame."""

    width: Decimal
    depth: Decimal
    height: Decimal


@dataclass(frozen=True)
class Position:
    """Axis-aligned box given by its start and end corners."""

    start: Coordinates
    end: Coordinates


@dataclass(frozen=True)
class Placement:
    """An item assigned to a container."""

    item_code: str
    container_code: str
    position: Position


@dataclass(frozen=True)
class PlacementResult:
    """Outcome of one placement batch."""

    placements: tuple[Placement, ...]
    updated_containers: tuple[ContainerInfo, ...]

    def placement_for(self, item_code: str) -> Placement | None:
        for placement in self.placements:
            if placement.item_code == item_code:
                return placement
        return None


@dataclass(frozen=True)
class ReturnManifest:
    """Waste items planned for the undocking container."""

    undocking_container_code: str
    undocking_date: date | None
    return_items: tuple[str, ...]
    total_weight: Decimal
    skipped_items: tuple[str, ...] = ()


@dataclass(frozen=True)
class SimulationSummary:
    """Result of simulating daily item usage."""

    num_days: int
    usages_applied: int
    items_used: tuple[str, ...]
    items_exhausted: tuple[str, ...]
    skipped_item_codes: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LogEntryInfo:
    """Immutable snapshot of a log entry."""

    seq: int
    action: LogAction
    item_code: str
    user_id: str
    timestamp: datetime
