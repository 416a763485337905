"""Tests for the injectable clock and the structured error payloads."""

from datetime import date, datetime, timedelta, timezone

from cargo_kernel.domain.clock import DeterministicClock, SystemClock, as_utc
from cargo_kernel.exceptions import (
    CargoKernelError,
    InfeasiblePlacementError,
    ItemNotFoundError,
    NotFoundError,
    ValidationError,
)


class TestDeterministicClock:

    def test_fixed_until_advanced(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()
        assert clock.today() == date(2025, 4, 1)

    def test_advance_and_tick(self):
        clock = DeterministicClock()
        start = clock.now()
        clock.advance(59)
        assert clock.tick() == start + timedelta(seconds=60)

    def test_set_time_resets_advance(self):
        clock = DeterministicClock()
        clock.advance(10)
        target = datetime(2026, 1, 1, tzinfo=timezone.utc)
        clock.set_time(target)
        assert clock.now() == target

    def test_system_clock_is_aware(self):
        assert SystemClock().now().tzinfo is not None


class TestAsUtc:

    def test_naive_taken_as_utc(self):
        assert as_utc(datetime(2025, 4, 1, 8)) == datetime(2025, 4, 1, 8, tzinfo=timezone.utc)

    def test_offset_converted(self):
        value = datetime(2025, 4, 1, 10, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(value).hour == 8


class TestErrorPayloads:

    def test_not_found_payload(self):
        err = ItemNotFoundError("ITM-9")
        assert isinstance(err, NotFoundError)
        assert err.to_dict() == {
            "code": "ITEM_NOT_FOUND",
            "message": "Item not found: ITM-9",
            "item_code": "ITM-9",
        }

    def test_infeasible_carries_every_item(self):
        err = InfeasiblePlacementError(["A", "B"])
        assert err.item_code == "A"
        assert err.to_dict()["item_codes"] == ["A", "B"]
        assert "A, B" in str(err)

    def test_validation_mentions_row(self):
        err = ValidationError("width", "-1", "must be positive", row=4)
        assert isinstance(err, CargoKernelError)
        assert "row 4" in str(err)
