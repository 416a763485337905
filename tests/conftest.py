"""
Pytest fixtures for the cargo kernel test suite.

Provides:
- A fresh in-memory SQLite store per test (tables created, integrity
  listeners registered)
- A deterministic clock pinned to 2025-04-01 12:00 UTC
- Service fixtures wired to one session, plus a CargoService facade over
  the session factory
- Record builders for items and containers

Environment Variables:
- CARGO_TEST_DATABASE_URL: run against another store (e.g. PostgreSQL).
  Defaults to ``sqlite://``.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from io import StringIO

import pytest

from cargo_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from cargo_kernel.db.immutability import register_integrity_listeners
from cargo_kernel.domain.clock import DeterministicClock
from cargo_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from cargo_kernel.services.cargo_service import CargoService
from cargo_kernel.services.inventory_service import InventoryService
from cargo_kernel.services.lifecycle_service import LifecycleService
from cargo_kernel.services.placement_service import PlacementService
from cargo_kernel.services.simulation_service import SimulationService
from cargo_kernel.services.waste_service import WasteService

TEST_USER_ID = "astro-1"

REFERENCE_DATE = date(2025, 4, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture cargo_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, cargo_service):
            cargo_service.place()
            logs = captured_logs()
            assert any(r["message"] == "placement_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("cargo_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Store
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("CARGO_TEST_DATABASE_URL", "sqlite://")


@pytest.fixture
def engine():
    """A fresh store per test."""
    engine = init_engine_from_url(get_database_url())
    create_tables()
    register_integrity_listeners()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session_factory(engine):
    return get_session_factory()


@pytest.fixture
def session(session_factory):
    """
    A session whose work is rolled back at teardown.

    Services only flush, so tests see their writes through this session.
    """
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2025, 4, 1, 12, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Services bound to the test session
# =============================================================================


@pytest.fixture
def inventory(session):
    return InventoryService(session)


@pytest.fixture
def lifecycle(session, clock):
    return LifecycleService(session, clock)


@pytest.fixture
def placement_service(session, inventory, lifecycle):
    return PlacementService(session, inventory, lifecycle)


@pytest.fixture
def waste_service(session, inventory, lifecycle, clock):
    return WasteService(session, inventory, lifecycle, clock)


@pytest.fixture
def simulation_service(session, inventory, lifecycle, clock):
    return SimulationService(session, inventory, lifecycle, clock)


@pytest.fixture
def cargo_service(session_factory, clock):
    """Facade over the store; each call commits its own transaction."""
    return CargoService(session_factory, clock=clock)


# =============================================================================
# Record builders
# =============================================================================


def make_item(
    item_code="ITM-001",
    name="Food Packet",
    width=10,
    depth=10,
    height=10,
    priority=50,
    expiry_date="N/A",
    usage_limit=5,
    preferred_zone="",
):
    """Item row shaped like a tabular import (camelCase keys)."""
    return {
        "itemId": item_code,
        "name": name,
        "width": str(width),
        "depth": str(depth),
        "height": str(height),
        "priority": str(priority),
        "expiryDate": expiry_date,
        "usageLimit": str(usage_limit),
        "preferredZone": preferred_zone,
    }


def make_container(container_code="CNT-A", zone="Crew Quarters", width=10, depth=10, height=10):
    return {
        "containerId": container_code,
        "zone": zone,
        "width": str(width),
        "depth": str(depth),
        "height": str(height),
    }


@pytest.fixture
def item_row():
    """Factory fixture for item import rows."""
    return make_item


@pytest.fixture
def container_row():
    """Factory fixture for container import rows."""
    return make_container
