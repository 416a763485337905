"""
Module: cargo_kernel.models.item
Responsibility: ORM persistence for cargo items and their lifecycle status.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - item_code is unique (uq_item_code); reimport with the same code
      overwrites the row instead of inserting a second one.
    - A non-null container_code means the item is STORED or WASTE_PLANNED
      in that container.  RETRIEVED items keep their last container_code as
      history only; it is not a placement claim.
    - Status changes go through LifecycleService so that every change has
      exactly one LogEntry.

Failure modes:
    - IntegrityError on duplicate item_code.
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cargo_kernel.db.base import TrackedBase, box_volume


class ItemStatus(str, Enum):
    """Item lifecycle status.

    Contract: STORED -> RETRIEVED and STORED -> WASTE_PLANNED.  A STORED item
    with no container is unplaced (freshly imported).
    """

    STORED = "stored"
    RETRIEVED = "retrieved"
    WASTE_PLANNED = "waste_planned"


class Item(TrackedBase):
    """
    A single cargo item.

    Guarantees:
        - Dimensions are positive Decimals with at most DECIMAL_SCALE
          fractional digits; volume is their product at that scale.
        - expiry_date is None when the item never expires.
        - usage_limit counts down; zero or below means exhausted.
    """

    __tablename__ = "items"

    __table_args__ = (
        UniqueConstraint("item_code", name="uq_item_code"),
        Index("idx_item_container", "container_code"),
        Index("idx_item_status", "status"),
        Index("idx_item_expiry", "expiry_date"),
        Index("idx_item_import_seq", "import_seq"),
    )

    # Unique business identifier
    item_code: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    width: Mapped[Decimal] = mapped_column(nullable=False)
    depth: Mapped[Decimal] = mapped_column(nullable=False)
    height: Mapped[Decimal] = mapped_column(nullable=False)

    # Higher is placed first
    priority: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )

    expiry_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    usage_limit: Mapped[int] = mapped_column(
        nullable=False,
    )

    preferred_zone: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    # Current (or, once retrieved, last) container
    container_code: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    status: Mapped[ItemStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ItemStatus.STORED,
    )

    # Store iteration order; refreshed on every upsert
    import_seq: Mapped[int] = mapped_column(
        nullable=False,
    )

    @property
    def volume(self) -> Decimal:
        return box_volume(self.width, self.depth, self.height)

    @property
    def is_placed(self) -> bool:
        """True iff the item currently occupies volume in a container."""
        return self.container_code is not None and self.status == ItemStatus.STORED

    def __repr__(self) -> str:
        return f"<Item {self.item_code}: {self.name} ({self.status})>"
