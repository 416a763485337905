"""
Tests for WasteService -- identification and weight-bounded return planning.
"""

from datetime import date
from decimal import Decimal

import pytest

from cargo_kernel.exceptions import ContainerNotFoundError, ValidationError
from cargo_kernel.models.item import ItemStatus
from cargo_kernel.models.log_entry import LogAction
from cargo_kernel.selectors.container_selector import ContainerSelector
from cargo_kernel.selectors.item_selector import ItemSelector
from cargo_kernel.selectors.log_selector import LogSelector
from tests.conftest import REFERENCE_DATE, make_container, make_item


class TestIdentify:

    def test_expiry_and_usage_rules(self, inventory, waste_service):
        inventory.import_items(
            [
                make_item("OLD", expiry_date="2025-03-01"),
                make_item("FRESH", expiry_date="2025-12-01"),
                make_item("SPENT", expiry_date="2025-12-01", usage_limit=0),
                make_item("FOREVER", expiry_date="N/A"),
            ]
        )

        waste = waste_service.identify(date(2025, 4, 1))

        assert [w.item_code for w in waste] == ["OLD", "SPENT"]

    def test_defaults_to_clock_today(self, inventory, waste_service):
        inventory.import_items([make_item("OLD", expiry_date="2025-03-31")])
        assert [w.item_code for w in waste_service.identify()] == ["OLD"]

    def test_identification_does_not_mutate(self, inventory, waste_service, session):
        inventory.import_items([make_item("OLD", expiry_date="2025-03-01")])
        waste_service.identify(REFERENCE_DATE)
        assert ItemSelector(session).get("OLD").status == ItemStatus.STORED
        assert LogSelector(session).count() == 0


class TestPlanReturn:

    @pytest.fixture
    def waste_stock(self, inventory, placement_service):
        inventory.import_containers(
            [make_container("CNT-A", width=100), make_container("UNDOCK", zone="Airlock")]
        )
        inventory.import_items(
            [
                make_item("HEAVY", height=6, usage_limit=0, preferred_zone="Crew Quarters"),
                make_item("LIGHT", height=5, usage_limit=0, preferred_zone="Crew Quarters"),
            ]
        )
        placement_service.place()
        return inventory

    def test_greedy_manifest(self, waste_stock, waste_service, session):
        manifest = waste_service.plan_return(
            "UNDOCK", max_weight=100, undocking_date=date(2025, 6, 1)
        )

        assert manifest.return_items == ("HEAVY",)
        assert manifest.skipped_items == ("LIGHT",)
        assert manifest.total_weight == Decimal(60)
        assert manifest.undocking_date == date(2025, 6, 1)

        heavy = ItemSelector(session).get("HEAVY")
        assert heavy.status == ItemStatus.WASTE_PLANNED
        assert heavy.container_code == "UNDOCK"
        assert ItemSelector(session).get("LIGHT").status == ItemStatus.STORED

    def test_volume_released_from_source(self, waste_stock, waste_service, session):
        waste_service.plan_return("UNDOCK", max_weight=1000)

        containers = ContainerSelector(session)
        assert containers.get("CNT-A").used_volume == 0
        assert containers.get("UNDOCK").used_volume == 0

    def test_one_log_entry_per_planned_item(self, waste_stock, waste_service, session):
        waste_service.plan_return("UNDOCK", max_weight=1000)
        actions = [e.action for e in LogSelector(session).for_item("LIGHT")]
        assert actions == [LogAction.PLACE, LogAction.WASTE_PLAN]

    def test_planned_items_not_replanned(self, waste_stock, waste_service):
        waste_service.plan_return("UNDOCK", max_weight=100)
        manifest = waste_service.plan_return("UNDOCK", max_weight=100)
        assert manifest.return_items == ("LIGHT",)
        assert manifest.total_weight == Decimal(50)

    def test_unknown_undocking_container(self, waste_stock, waste_service):
        with pytest.raises(ContainerNotFoundError):
            waste_service.plan_return("NOPE", max_weight=100)

    @pytest.mark.parametrize("bad", [-1, "heavy", "NaN"])
    def test_bad_max_weight(self, waste_stock, waste_service, bad):
        with pytest.raises(ValidationError) as exc_info:
            waste_service.plan_return("UNDOCK", max_weight=bad)
        assert exc_info.value.field == "max_weight"

    def test_empty_manifest(self, inventory, waste_service):
        inventory.import_containers([make_container("UNDOCK")])
        manifest = waste_service.plan_return("UNDOCK", max_weight=0)
        assert manifest.return_items == ()
        assert manifest.total_weight == 0
