"""
Module: cargo_kernel.models.log_entry
Responsibility: ORM persistence for the append-only action log.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Log entries are append-only; no UPDATE or DELETE (ORM listeners in
      db/immutability.py raise ImmutabilityViolationError).
    - seq is strictly increasing in insertion order and breaks ties between
      entries that share a timestamp.
    - Only LifecycleService writes LogEntry rows.

Audit relevance:
    LogEntry IS the audit trail.  Every place, retrieve, waste_plan and use
    transition produces exactly one row in the same transaction as the state
    change it records.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from cargo_kernel.db.base import Base


class LogAction(str, Enum):
    """Kinds of logged item transitions."""

    PLACE = "place"
    RETRIEVE = "retrieve"
    WASTE_PLAN = "waste_plan"
    USE = "use"


class LogEntry(Base):
    """
    One immutable record of an item transition.

    Non-goals:
        - No hash chaining; integrity rests on the append-only listeners.
    """

    __tablename__ = "log_entries"

    __table_args__ = (
        Index("idx_log_timestamp", "timestamp"),
        Index("idx_log_item", "item_code"),
        Index("idx_log_seq", "seq"),
    )

    seq: Mapped[int] = mapped_column(
        nullable=False,
        unique=True,
    )

    action: Mapped[LogAction] = mapped_column(
        String(20),
        nullable=False,
    )

    item_code: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    # Who performed the action ("system" for automated transitions)
    user_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LogEntry #{self.seq} {self.action} {self.item_code}>"
