"""
CargoService -- the operation surface of the cargo kernel.

Responsibility:
    One method per caller-facing operation (import, place, search, retrieve,
    waste identification, waste return planning, simulation, log queries,
    reset).  Each call opens its own transaction from the injected session
    factory, wires the services for that session, and commits only if the
    whole operation succeeds.

Concurrency model:
    Single writer.  Mutating calls are serialized by a re-entrant lock held
    for the life of their transaction, so no two placements can interleave
    their volume checks.  Against PostgreSQL the container rows are
    additionally locked with SELECT ... FOR UPDATE.  There are no
    timeouts and no cancellation; storage errors propagate unchanged.

Store handle:
    The session factory is passed in (dependency injection); there is no
    process-wide store.  Two CargoService instances over two factories are
    fully isolated.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generator, Mapping, Sequence
from uuid import uuid4

from sqlalchemy.orm import Session, sessionmaker

from cargo_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from cargo_kernel.db.immutability import register_integrity_listeners
from cargo_kernel.domain.clock import Clock, SystemClock
from cargo_kernel.domain.dtos import (
    ContainerInfo,
    ItemInfo,
    LogEntryInfo,
    PlacementResult,
    ReturnManifest,
    SimulationSummary,
)
from cargo_kernel.domain.records import ContainerRecord, ItemRecord
from cargo_kernel.domain.waste import DEFAULT_WEIGHT_FACTOR
from cargo_kernel.logging_config import LogContext, configure_logging, get_logger
from cargo_kernel.selectors.container_selector import ContainerSelector
from cargo_kernel.selectors.item_selector import ItemSelector, item_to_info
from cargo_kernel.selectors.log_selector import LogSelector
from cargo_kernel.services.inventory_service import InventoryService
from cargo_kernel.services.lifecycle_service import SYSTEM_ACTOR, LifecycleService
from cargo_kernel.services.placement_service import PlacementService
from cargo_kernel.services.simulation_service import SimulationService
from cargo_kernel.services.waste_service import WasteService

logger = get_logger("services.cargo")


@dataclass
class _Unit:
    """Services bound to one transaction."""

    session: Session
    inventory: InventoryService
    lifecycle: LifecycleService
    placement: PlacementService
    waste: WasteService
    simulation: SimulationService


class CargoService:
    """Caller-facing facade over the cargo kernel."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        system_actor: str = SYSTEM_ACTOR,
        weight_factor: Decimal = DEFAULT_WEIGHT_FACTOR,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._system_actor = system_actor
        self._weight_factor = weight_factor
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Any, clock: Clock | None = None) -> "CargoService":
        """
        Build a service from ``cargo_config.CargoSettings``.

        Initializes the engine, creates tables and registers the integrity
        listeners.
        """
        configure_logging(level=settings.log_level)
        init_engine_from_url(settings.database_url, echo=settings.echo_sql)
        create_tables()
        register_integrity_listeners()
        logger.info(
            "cargo_service_ready",
            extra={
                "system_actor": settings.system_actor,
                "waste_weight_factor": settings.waste_weight_factor,
            },
        )
        return cls(
            get_session_factory(),
            clock=clock,
            system_actor=settings.system_actor,
            weight_factor=settings.waste_weight_factor,
        )

    # -------------------------------------------------------------------------
    # Transaction plumbing
    # -------------------------------------------------------------------------

    def _wire(self, session: Session) -> _Unit:
        inventory = InventoryService(session, actor_id=self._system_actor)
        lifecycle = LifecycleService(session, self._clock, self._system_actor)
        return _Unit(
            session=session,
            inventory=inventory,
            lifecycle=lifecycle,
            placement=PlacementService(session, inventory, lifecycle),
            waste=WasteService(
                session, inventory, lifecycle, self._clock, self._weight_factor
            ),
            simulation=SimulationService(session, inventory, lifecycle, self._clock),
        )

    @contextmanager
    def _write(self, operation: str, **context: str | None) -> Generator[_Unit, None, None]:
        with self._lock, LogContext.bind(
            operation=operation, correlation_id=str(uuid4()), **context
        ):
            with session_scope(self._session_factory) as session:
                yield self._wire(session)

    @contextmanager
    def _read(self, operation: str) -> Generator[Session, None, None]:
        with LogContext.bind(operation=operation):
            with session_scope(self._session_factory) as session:
                yield session

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    def import_items(self, records: Sequence[Mapping[str, Any] | ItemRecord]) -> int:
        """Upsert item rows.  Returns the count imported."""
        with self._write("import_items") as unit:
            return unit.inventory.import_items(records)

    def import_containers(
        self,
        records: Sequence[Mapping[str, Any] | ContainerRecord],
    ) -> int:
        """Upsert container rows.  Returns the count imported."""
        with self._write("import_containers") as unit:
            return unit.inventory.import_containers(records)

    # -------------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------------

    def place(
        self,
        items: Sequence[Mapping[str, Any] | ItemRecord] | None = None,
        containers: Sequence[Mapping[str, Any] | ContainerRecord] | None = None,
    ) -> PlacementResult:
        """
        Place unplaced items (or the given ones) into containers.

        Raises:
            InfeasiblePlacementError: nothing is placed; the error lists
                every item without room and the placements that were
                possible.
        """
        with self._write("place", actor_id=self._system_actor) as unit:
            return unit.placement.place(items, containers)

    # -------------------------------------------------------------------------
    # Item operations
    # -------------------------------------------------------------------------

    def search(self, item_code: str) -> ItemInfo:
        """
        Raises:
            ItemNotFoundError: unknown item.
        """
        with self._read("search") as session:
            return ItemSelector(session).get(item_code)

    def retrieve(
        self,
        item_code: str,
        user_id: str,
        timestamp: datetime | None = None,
    ) -> ItemInfo:
        """
        Retrieve a stored item on behalf of user_id.

        Raises:
            ItemNotFoundError: unknown item.
            ItemNotStoredError: the item has no container.
            InvalidStateError: the item is already retrieved or planned as waste.
        """
        with self._write("retrieve", actor_id=user_id, item_code=item_code) as unit:
            item = unit.inventory.get_item(item_code)
            unit.lifecycle.retrieve(item, user_id=user_id, timestamp=timestamp)
            return item_to_info(item)

    def container(self, container_code: str) -> ContainerInfo:
        """
        Raises:
            ContainerNotFoundError: unknown container.
        """
        with self._read("container") as session:
            return ContainerSelector(session).get(container_code)

    def containers(self) -> list[ContainerInfo]:
        with self._read("containers") as session:
            return ContainerSelector(session).list_all()

    # -------------------------------------------------------------------------
    # Waste
    # -------------------------------------------------------------------------

    def identify_waste(self, reference_date: date | None = None) -> list[ItemInfo]:
        with self._write("identify_waste") as unit:
            return unit.waste.identify(reference_date)

    def plan_waste_return(
        self,
        container_code: str,
        undocking_date: date | None,
        max_weight: Decimal | int | float | str,
        reference_date: date | None = None,
    ) -> ReturnManifest:
        """
        Plan waste into the undocking container, within max_weight.

        Raises:
            ContainerNotFoundError: unknown undocking container.
            ValidationError: bad max_weight.
        """
        with self._write("plan_waste_return", container_code=container_code) as unit:
            return unit.waste.plan_return(
                container_code,
                max_weight,
                undocking_date=undocking_date,
                reference_date=reference_date,
            )

    # -------------------------------------------------------------------------
    # Simulation
    # -------------------------------------------------------------------------

    def simulate(
        self,
        num_days: int,
        daily_usage: Sequence[str | Mapping[str, Any]],
    ) -> SimulationSummary:
        with self._write("simulate") as unit:
            return unit.simulation.simulate(num_days, daily_usage)

    # -------------------------------------------------------------------------
    # Log and reset
    # -------------------------------------------------------------------------

    def get_logs(self, start: date | datetime, end: date | datetime) -> list[LogEntryInfo]:
        """Log entries with start <= timestamp <= end; a bare date spans its whole day."""
        with self._read("get_logs") as session:
            return LogSelector(session).between(start, end)

    def reset(self) -> None:
        """Delete every item and container.  The action log is kept."""
        with self._write("reset") as unit:
            unit.inventory.clear()
