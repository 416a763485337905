"""
Waste rules -- which items are waste, and which of them go home.

An item is waste when its expiry date has passed or its uses are spent.
Return planning walks the waste list once, in the order given, and keeps
every item whose proxy weight still fits the budget.  There is no
backtracking: a heavy item early in the list can crowd out lighter ones
behind it, and items that do not fit are left for a later run.

ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol, Sequence, TypeVar

from cargo_kernel.db.base import box_volume

# Proxy weight per unit volume.  Items carry no mass of their own.
DEFAULT_WEIGHT_FACTOR = Decimal("0.1")


class WasteCandidate(Protocol):
    item_code: str
    width: Decimal
    depth: Decimal
    height: Decimal
    expiry_date: date | None
    usage_limit: int


T = TypeVar("T", bound=WasteCandidate)


@dataclass(frozen=True)
class ReturnSelection:
    """Greedy selection under a weight budget."""

    accepted: tuple
    skipped: tuple
    total_weight: Decimal


def is_expired(item: WasteCandidate, reference_date: date) -> bool:
    return item.expiry_date is not None and item.expiry_date < reference_date


def is_exhausted(item: WasteCandidate) -> bool:
    return item.usage_limit <= 0


def is_waste(item: WasteCandidate, reference_date: date) -> bool:
    return is_expired(item, reference_date) or is_exhausted(item)


def proxy_weight(
    item: WasteCandidate,
    weight_factor: Decimal = DEFAULT_WEIGHT_FACTOR,
) -> Decimal:
    return box_volume(item.width, item.depth, item.height) * weight_factor


def select_return(
    items: Sequence[T],
    max_weight: Decimal,
    weight_factor: Decimal = DEFAULT_WEIGHT_FACTOR,
) -> ReturnSelection:
    """Accept items in order while the running weight stays <= max_weight."""
    total = Decimal("0")
    accepted: list[T] = []
    skipped: list[T] = []
    for item in items:
        weight = proxy_weight(item, weight_factor)
        if total + weight <= max_weight:
            total += weight
            accepted.append(item)
        else:
            skipped.append(item)
    return ReturnSelection(
        accepted=tuple(accepted),
        skipped=tuple(skipped),
        total_weight=total,
    )
