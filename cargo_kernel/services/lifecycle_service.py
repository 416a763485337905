"""
LifecycleService -- item status transitions with their audit log entries.

Responsibility:
    The only writer of item status, container assignment, usage counts and
    LogEntry rows.  Each successful state-changing call mutates the item,
    adjusts container volume where the item moves in or out, and appends
    exactly one LogEntry -- all flushed into the caller's transaction, so
    they commit or roll back together.

Transitions:
    place       unplaced STORED -> STORED in a container (+ item volume)
    retrieve    STORED in a container -> RETRIEVED (- item volume)
    waste_plan  STORED and waste -> WASTE_PLANNED in the undocking container
                (- item volume from the previous container; the undocking
                container is bounded by weight, not volume, and is not charged)
    use         usage_limit - 1 while usage_limit > 0; otherwise a no-op
                that writes nothing

Failure modes:
    - ItemNotStoredError: retrieve on an item with no container.
    - InvalidStateError: any other transition from the wrong status.
    - ItemNotWasteError: waste_plan on an item that is neither expired nor
      exhausted.
    - VolumeInvariantError: placing into a container without room.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cargo_kernel.domain.clock import Clock, SystemClock, as_utc
from cargo_kernel.domain.dtos import LogEntryInfo
from cargo_kernel.domain.waste import is_waste
from cargo_kernel.exceptions import (
    InvalidStateError,
    ItemNotStoredError,
    ItemNotWasteError,
    VolumeInvariantError,
)
from cargo_kernel.logging_config import get_logger
from cargo_kernel.models.container import Container
from cargo_kernel.models.item import Item, ItemStatus
from cargo_kernel.models.log_entry import LogAction, LogEntry
from cargo_kernel.selectors.log_selector import log_entry_to_info
from cargo_kernel.services.base import BaseService

logger = get_logger("services.lifecycle")

SYSTEM_ACTOR = "system"


class LifecycleService(BaseService[LogEntry]):
    """Applies item transitions and records them in the action log."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        system_actor: str = SYSTEM_ACTOR,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._system_actor = system_actor

    # -------------------------------------------------------------------------
    # Log
    # -------------------------------------------------------------------------

    def _next_seq(self) -> int:
        current = self.session.execute(select(func.max(LogEntry.seq))).scalar()
        return (current or 0) + 1

    def _append(
        self,
        action: LogAction,
        item: Item,
        user_id: str | None,
        timestamp: datetime | None,
    ) -> LogEntryInfo:
        seq = self._next_seq()
        assert seq > 0, "log sequence must be strictly positive"

        entry = LogEntry(
            seq=seq,
            action=action,
            item_code=item.item_code,
            user_id=user_id or self._system_actor,
            timestamp=as_utc(timestamp) if timestamp is not None else self._clock.now(),
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "item_transitioned",
            extra={
                "action": action.value,
                "item_code": item.item_code,
                "status": item.status,
                "to_container": item.container_code,
                "user_id": entry.user_id,
                "seq": seq,
            },
        )
        return log_entry_to_info(entry)

    # -------------------------------------------------------------------------
    # Volume bookkeeping
    # -------------------------------------------------------------------------

    def _container(self, container_code: str) -> Container | None:
        stmt = (
            select(Container)
            .where(Container.container_code == container_code)
            .with_for_update()
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _release(self, item: Item) -> None:
        """Give the item's volume back to the container it occupies."""
        if not item.is_placed:
            return
        container = self._container(item.container_code)
        if container is not None:
            container.used_volume = container.used_volume - item.volume

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def place(
        self,
        item: Item,
        container: Container,
        user_id: str | None = None,
        timestamp: datetime | None = None,
    ) -> LogEntryInfo:
        """
        Put an unplaced item into a container.

        Raises:
            InvalidStateError: If the item is already placed or not STORED.
            VolumeInvariantError: If the container lacks room.
        """
        if item.status != ItemStatus.STORED or item.container_code is not None:
            raise InvalidStateError(item.item_code, item.status)

        new_used = container.used_volume + item.volume
        # INVARIANT: used volume never exceeds capacity
        if new_used > container.volume:
            raise VolumeInvariantError(
                container.container_code, new_used, container.volume
            )

        container.used_volume = new_used
        item.container_code = container.container_code
        item.status = ItemStatus.STORED
        return self._append(LogAction.PLACE, item, user_id, timestamp)

    def retrieve(
        self,
        item: Item,
        user_id: str | None = None,
        timestamp: datetime | None = None,
    ) -> LogEntryInfo:
        """
        Take a stored item out of its container.

        The container reference is kept as history.

        Raises:
            ItemNotStoredError: If the item has no container.
            InvalidStateError: If the item is not STORED.
        """
        if item.container_code is None:
            raise ItemNotStoredError(item.item_code, item.status)
        if item.status != ItemStatus.STORED:
            raise InvalidStateError(item.item_code, item.status)

        self._release(item)
        item.status = ItemStatus.RETRIEVED
        return self._append(LogAction.RETRIEVE, item, user_id, timestamp)

    def waste_plan(
        self,
        item: Item,
        undocking_container_code: str,
        reference_date: date | None = None,
        user_id: str | None = None,
        timestamp: datetime | None = None,
    ) -> LogEntryInfo:
        """
        Move a waste item onto the undocking manifest.

        Raises:
            InvalidStateError: If the item is not STORED.
            ItemNotWasteError: If the item is not expired or exhausted on
                reference_date (defaults to the clock's today).
        """
        if item.status != ItemStatus.STORED:
            raise InvalidStateError(item.item_code, item.status)
        if not is_waste(item, reference_date or self._clock.today()):
            raise ItemNotWasteError(item.item_code, item.status)

        self._release(item)
        item.container_code = undocking_container_code
        item.status = ItemStatus.WASTE_PLANNED
        return self._append(LogAction.WASTE_PLAN, item, user_id, timestamp)

    def use(
        self,
        item: Item,
        user_id: str | None = None,
        timestamp: datetime | None = None,
    ) -> LogEntryInfo | None:
        """
        Consume one use of an item.

        Returns:
            The log entry, or None when the item had no uses left (nothing
            is changed and nothing is logged).
        """
        if item.usage_limit <= 0:
            return None
        item.usage_limit = item.usage_limit - 1
        return self._append(LogAction.USE, item, user_id, timestamp)

    def transition(
        self,
        item: Item,
        action: LogAction,
        user_id: str | None = None,
        timestamp: datetime | None = None,
        *,
        container: Container | None = None,
        undocking_container_code: str | None = None,
        reference_date: date | None = None,
    ) -> LogEntryInfo | None:
        """Dispatch a transition by action kind."""
        action = LogAction(action)
        if action is LogAction.PLACE:
            if container is None:
                raise ValueError("place requires a container")
            return self.place(item, container, user_id, timestamp)
        if action is LogAction.RETRIEVE:
            return self.retrieve(item, user_id, timestamp)
        if action is LogAction.WASTE_PLAN:
            if undocking_container_code is None:
                raise ValueError("waste_plan requires an undocking container")
            return self.waste_plan(
                item, undocking_container_code, reference_date, user_id, timestamp
            )
        return self.use(item, user_id, timestamp)
