"""
Module: cargo_kernel.models.container
Responsibility: ORM persistence for storage containers and their used-volume
    accumulator.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - container_code is unique (uq_container_code).
    - 0 <= used_volume <= width * depth * height.  Checked by the placement
      engine before every acceptance and again at flush time by the
      listener in db/immutability.py (VolumeInvariantError).

Failure modes:
    - VolumeInvariantError on flush if used_volume leaves its bounds.
"""

from decimal import Decimal

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cargo_kernel.db.base import TrackedBase, box_volume


class Container(TrackedBase):
    """
    A storage container located in a zone.

    Guarantees:
        - used_volume is the summed volume of the items currently STORED in
          this container.
    """

    __tablename__ = "containers"

    __table_args__ = (
        UniqueConstraint("container_code", name="uq_container_code"),
    )

    container_code: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    zone: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    width: Mapped[Decimal] = mapped_column(nullable=False)
    depth: Mapped[Decimal] = mapped_column(nullable=False)
    height: Mapped[Decimal] = mapped_column(nullable=False)

    used_volume: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    import_seq: Mapped[int] = mapped_column(
        nullable=False,
    )

    @property
    def volume(self) -> Decimal:
        return box_volume(self.width, self.depth, self.height)

    @property
    def free_volume(self) -> Decimal:
        return self.volume - self.used_volume

    def __repr__(self) -> str:
        return f"<Container {self.container_code} zone={self.zone}>"
