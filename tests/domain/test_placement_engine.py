"""
Tests for the placement engine (cargo_kernel/domain/placement.py).

Pure: records in, PlacementResult out.  No store involved.
"""

from decimal import Decimal

import pytest

from cargo_kernel.domain.placement import (
    VOLUME_ONLY_GEOMETRY,
    degenerate_position,
    order_by_priority,
    place_items,
    zone_allows,
)
from cargo_kernel.domain.records import ContainerRecord, ItemRecord
from cargo_kernel.exceptions import InfeasiblePlacementError, ValidationError


def item(code, size=10, priority=50, zone=None):
    return ItemRecord(
        item_code=code,
        name=f"Item {code}",
        width=Decimal(size),
        depth=Decimal(size),
        height=Decimal(size),
        priority=priority,
        usage_limit=5,
        preferred_zone=zone,
    )


def box(code, size=10, zone="Crew Quarters", used=0):
    return ContainerRecord(
        container_code=code,
        zone=zone,
        width=Decimal(size),
        depth=Decimal(size),
        height=Decimal(size),
        used_volume=Decimal(used),
    )


class TestVolumeAccounting:

    def test_used_volume_grows_by_item_volumes(self):
        result = place_items([item("A", 5), item("B", 5)], [box("C1", 10)])

        (container,) = result.updated_containers
        assert container.used_volume == Decimal(250)
        assert container.item_codes == ("A", "B")

    def test_exact_fit_is_accepted(self):
        result = place_items([item("A", 10)], [box("C1", 10)])
        assert result.updated_containers[0].used_volume == Decimal(1000)
        assert result.updated_containers[0].free_volume == 0

    def test_existing_load_counts(self):
        with pytest.raises(InfeasiblePlacementError):
            place_items([item("A", 10)], [box("C1", 10, used=1)])

    def test_spills_into_next_container(self):
        result = place_items(
            [item("A", 10), item("B", 10)],
            [box("C1", 10), box("C2", 10)],
        )
        assert result.placement_for("A").container_code == "C1"
        assert result.placement_for("B").container_code == "C2"

    def test_inputs_not_mutated(self):
        container = box("C1", 10)
        place_items([item("A", 5)], [container])
        assert container.used_volume == 0


class TestZoneAffinity:

    def test_preferred_zone_never_violated(self):
        result = place_items(
            [item("A", 5, zone="Lab")],
            [box("C1", 10, zone="Storage"), box("C2", 10, zone="Lab")],
        )
        assert result.placement_for("A").container_code == "C2"

    def test_no_preferred_zone_goes_anywhere(self):
        result = place_items([item("A", 5, zone=None)], [box("C1", 10, zone="Storage")])
        assert result.placement_for("A").container_code == "C1"

    def test_no_container_in_zone_is_infeasible(self):
        with pytest.raises(InfeasiblePlacementError) as exc_info:
            place_items([item("A", 1, zone="Lab")], [box("C1", 10, zone="Storage")])
        assert exc_info.value.item_code == "A"

    def test_zone_allows_empty_string(self):
        assert zone_allows(item("A", zone=""), "Anywhere")


class TestPriorityContention:

    def test_higher_priority_wins_single_slot(self):
        low = item("LOW", 10, priority=10)
        high = item("HIGH", 10, priority=90)

        with pytest.raises(InfeasiblePlacementError) as exc_info:
            place_items([low, high], [box("C1", 10)])

        assert exc_info.value.item_codes == ["LOW"]
        (placed,) = exc_info.value.placements
        assert placed.item_code == "HIGH"

    def test_equal_priority_keeps_input_order(self):
        first = item("FIRST", 10, priority=50)
        second = item("SECOND", 10, priority=50)

        with pytest.raises(InfeasiblePlacementError) as exc_info:
            place_items([first, second], [box("C1", 10)])

        assert exc_info.value.item_codes == ["SECOND"]

    def test_order_by_priority_is_stable(self):
        items = [item("A", priority=1), item("B", priority=5), item("C", priority=5)]
        assert [i.item_code for i in order_by_priority(items)] == ["B", "C", "A"]

    def test_placements_in_priority_order(self):
        result = place_items(
            [item("A", 1, priority=1), item("B", 1, priority=99)],
            [box("C1", 10)],
        )
        assert [p.item_code for p in result.placements] == ["B", "A"]


class TestInfeasibility:

    def test_all_infeasible_items_reported(self):
        with pytest.raises(InfeasiblePlacementError) as exc_info:
            place_items(
                [item("BIG1", 20), item("OK", 5), item("BIG2", 20)],
                [box("C1", 10)],
            )
        err = exc_info.value
        assert err.item_codes == ["BIG1", "BIG2"]
        assert [p.item_code for p in err.placements] == ["OK"]
        assert err.code == "INFEASIBLE_PLACEMENT"

    def test_infeasible_item_consumes_nothing(self):
        with pytest.raises(InfeasiblePlacementError) as exc_info:
            place_items([item("BIG", 20, priority=99), item("SMALL", 10)], [box("C1", 10)])
        assert [p.item_code for p in exc_info.value.placements] == ["SMALL"]

    def test_no_containers(self):
        with pytest.raises(InfeasiblePlacementError):
            place_items([item("A")], [])

    def test_empty_batch(self):
        result = place_items([], [box("C1")])
        assert result.placements == ()
        assert result.updated_containers[0].used_volume == 0


class TestBatchValidation:

    def test_duplicate_item_code_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            place_items([item("A"), item("A")], [box("C1", 100)])
        assert exc_info.value.field == "item_code"

    def test_duplicate_container_code_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            place_items([item("A")], [box("C1"), box("C1")])
        assert exc_info.value.field == "container_code"


class TestGeometry:

    def test_position_is_box_at_origin(self):
        rec = ItemRecord(
            item_code="A",
            name="A",
            width=Decimal(2),
            depth=Decimal(3),
            height=Decimal(4),
        )
        position = degenerate_position(rec)
        assert (position.start.width, position.start.depth, position.start.height) == (0, 0, 0)
        assert (position.end.width, position.end.depth, position.end.height) == (2, 3, 4)

    def test_geometry_mode_name(self):
        assert VOLUME_ONLY_GEOMETRY == "volume_only"
