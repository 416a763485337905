"""LogSelector -- range queries over the append-only action log."""

from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func, select

from cargo_kernel.domain.clock import as_utc
from cargo_kernel.domain.dtos import LogEntryInfo
from cargo_kernel.models.log_entry import LogAction, LogEntry
from cargo_kernel.selectors.base import BaseSelector


def log_entry_to_info(entry: LogEntry) -> LogEntryInfo:
    """Convert ORM LogEntry to LogEntryInfo DTO."""
    return LogEntryInfo(
        seq=entry.seq,
        action=LogAction(entry.action),
        item_code=entry.item_code,
        user_id=entry.user_id,
        timestamp=as_utc(entry.timestamp),
    )


def _lower_bound(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _upper_bound(value: date | datetime) -> datetime:
    """A bare date covers the whole day."""
    if isinstance(value, datetime):
        return as_utc(value)
    return datetime.combine(value + timedelta(days=1), time.min, tzinfo=timezone.utc) - timedelta(
        microseconds=1
    )


class LogSelector(BaseSelector[LogEntry]):
    """Read-only queries over log entries, ordered by timestamp then seq."""

    def between(
        self,
        start: date | datetime,
        end: date | datetime,
    ) -> list[LogEntryInfo]:
        """Entries with start <= timestamp <= end (inclusive on both ends)."""
        stmt = (
            select(LogEntry)
            .where(LogEntry.timestamp >= _lower_bound(start))
            .where(LogEntry.timestamp <= _upper_bound(end))
            .order_by(LogEntry.timestamp, LogEntry.seq)
        )
        return [log_entry_to_info(e) for e in self.session.execute(stmt).scalars()]

    def for_item(self, item_code: str) -> list[LogEntryInfo]:
        stmt = (
            select(LogEntry)
            .where(LogEntry.item_code == item_code)
            .order_by(LogEntry.seq)
        )
        return [log_entry_to_info(e) for e in self.session.execute(stmt).scalars()]

    def count(self) -> int:
        stmt = select(func.count()).select_from(LogEntry)
        return self.session.execute(stmt).scalar_one()
