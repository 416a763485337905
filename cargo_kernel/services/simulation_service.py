"""
SimulationService -- day-by-day usage simulation.

Days run strictly one after another: a use on day N sees the usage count
left by day N-1.  Each use goes through LifecycleService, so every applied
use has its own log entry.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Sequence

from sqlalchemy.orm import Session

from cargo_kernel.domain.clock import Clock, SystemClock
from cargo_kernel.domain.dtos import SimulationSummary
from cargo_kernel.exceptions import ValidationError
from cargo_kernel.logging_config import get_logger
from cargo_kernel.services.inventory_service import InventoryService
from cargo_kernel.services.lifecycle_service import LifecycleService

logger = get_logger("services.simulation")

_ITEM_KEYS = ("itemId", "item_id", "item_code")


def _usage_code(entry: str | Mapping[str, Any]) -> str | None:
    if isinstance(entry, str):
        return entry
    if not isinstance(entry, Mapping):
        raise ValidationError(
            "daily_usage", entry, "entry must be an item code or a mapping with one"
        )
    for key in _ITEM_KEYS:
        if entry.get(key):
            return str(entry[key])
    return None


class SimulationService:
    """Applies daily usage lists over a number of days."""

    def __init__(
        self,
        session: Session,
        inventory: InventoryService,
        lifecycle: LifecycleService,
        clock: Clock | None = None,
    ):
        self.session = session
        self._inventory = inventory
        self._lifecycle = lifecycle
        self._clock = clock or SystemClock()

    def simulate(
        self,
        num_days: int,
        daily_usage: Sequence[str | Mapping[str, Any]],
        user_id: str | None = None,
    ) -> SimulationSummary:
        """
        Use each listed item once per day for num_days days.

        Items that do not exist are skipped and reported.  Items with no
        uses left are passed over silently.  Day N's log entries are
        stamped N-1 days after the clock's current time.

        Raises:
            ValidationError: num_days is negative or not an integer, or a
                daily_usage entry is neither an item code nor a mapping.
        """
        if isinstance(num_days, bool) or not isinstance(num_days, int) or num_days < 0:
            raise ValidationError("num_days", num_days, "must be a non-negative integer")

        codes = [_usage_code(entry) for entry in daily_usage]
        start = self._clock.now()
        applied = 0
        used: list[str] = []
        exhausted: list[str] = []
        skipped: list[str] = []

        for day in range(num_days):
            stamp = start + timedelta(days=day)
            for code in codes:
                item = self._inventory.find_item(code) if code else None
                if item is None:
                    if code not in skipped:
                        skipped.append(code)
                    continue
                if self._lifecycle.use(item, user_id=user_id, timestamp=stamp) is None:
                    continue
                applied += 1
                if code not in used:
                    used.append(code)
                if item.usage_limit == 0:
                    exhausted.append(code)

        summary = SimulationSummary(
            num_days=num_days,
            usages_applied=applied,
            items_used=tuple(used),
            items_exhausted=tuple(exhausted),
            skipped_item_codes=tuple(c for c in skipped if c is not None),
        )
        logger.info(
            "simulation_completed",
            extra={
                "num_days": num_days,
                "usages_applied": applied,
                "items_exhausted": list(summary.items_exhausted),
            },
        )
        return summary
