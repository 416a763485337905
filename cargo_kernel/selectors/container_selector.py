"""ContainerSelector -- read access to containers and their manifests."""

from sqlalchemy import select

from cargo_kernel.domain.dtos import ContainerInfo
from cargo_kernel.exceptions import ContainerNotFoundError
from cargo_kernel.models.container import Container
from cargo_kernel.models.item import Item, ItemStatus
from cargo_kernel.selectors.base import BaseSelector


def container_to_info(container: Container, item_codes: tuple[str, ...] = ()) -> ContainerInfo:
    """Convert ORM Container to ContainerInfo DTO."""
    return ContainerInfo(
        container_code=container.container_code,
        zone=container.zone,
        width=container.width,
        depth=container.depth,
        height=container.height,
        used_volume=container.used_volume,
        item_codes=item_codes,
    )


class ContainerSelector(BaseSelector[Container]):
    """Read-only queries over containers."""

    def _manifest(self, container_code: str) -> tuple[str, ...]:
        stmt = (
            select(Item.item_code)
            .where(Item.container_code == container_code)
            .where(Item.status == ItemStatus.STORED.value)
            .order_by(Item.import_seq)
        )
        return tuple(self.session.execute(stmt).scalars())

    def get(self, container_code: str) -> ContainerInfo:
        """
        Raises:
            ContainerNotFoundError: If the container doesn't exist.
        """
        stmt = select(Container).where(Container.container_code == container_code)
        container = self.session.execute(stmt).scalar_one_or_none()
        if container is None:
            raise ContainerNotFoundError(container_code)
        return container_to_info(container, self._manifest(container_code))

    def list_all(self) -> list[ContainerInfo]:
        stmt = select(Container).order_by(Container.import_seq)
        return [
            container_to_info(c, self._manifest(c.container_code))
            for c in self.session.execute(stmt).scalars()
        ]
