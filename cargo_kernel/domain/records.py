"""
Validated import records.

Bulk ingestion hands the kernel flat mappings (one per tabular row) whose
values are usually strings.  This module turns them into typed, frozen
records and rejects a row on its FIRST invalid field with ValidationError;
partially parsed values never reach the store.

Column names are accepted in the source's camelCase (``itemId``,
``preferredZone``) or in snake_case (``item_id``, ``item_code``).

ZERO I/O.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from cargo_kernel.db.base import DECIMAL_SCALE, box_volume
from cargo_kernel.exceptions import ValidationError

# Values that mean "this item never expires"
NO_EXPIRY_SENTINELS = frozenset({"", "n/a", "na", "none", "null"})

_ITEM_ALIASES: dict[str, tuple[str, ...]] = {
    "item_code": ("itemId", "item_id", "item_code"),
    "name": ("name",),
    "width": ("width",),
    "depth": ("depth",),
    "height": ("height",),
    "priority": ("priority",),
    "expiry_date": ("expiryDate", "expiry_date"),
    "usage_limit": ("usageLimit", "usage_limit"),
    "preferred_zone": ("preferredZone", "preferred_zone"),
}

_CONTAINER_ALIASES: dict[str, tuple[str, ...]] = {
    "container_code": ("containerId", "container_id", "container_code"),
    "zone": ("zone",),
    "width": ("width",),
    "depth": ("depth",),
    "height": ("height",),
}


@dataclass(frozen=True)
class ItemRecord:
    """A validated item import row."""

    item_code: str
    name: str
    width: Decimal
    depth: Decimal
    height: Decimal
    priority: int = 0
    expiry_date: date | None = None
    usage_limit: int = 0
    preferred_zone: str | None = None

    @property
    def volume(self) -> Decimal:
        return box_volume(self.width, self.depth, self.height)


@dataclass(frozen=True)
class ContainerRecord:
    """A validated container import row."""

    container_code: str
    zone: str
    width: Decimal
    depth: Decimal
    height: Decimal
    used_volume: Decimal = Decimal("0")

    @property
    def volume(self) -> Decimal:
        return box_volume(self.width, self.depth, self.height)


# -----------------------------------------------------------------------------
# Field parsers
# -----------------------------------------------------------------------------


def _lookup(raw: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    for key in aliases:
        if key in raw:
            return raw[key]
    return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_text(value: Any, field: str, row: int | None, required: bool = True) -> str | None:
    if _is_blank(value):
        if required:
            raise ValidationError(field, value, "required field is missing", row)
        return None
    return str(value).strip()


def parse_dimension(value: Any, field: str, row: int | None) -> Decimal:
    """Parse a strictly positive, finite Decimal of at most DECIMAL_SCALE places."""
    if _is_blank(value):
        raise ValidationError(field, value, "required field is missing", row)
    if isinstance(value, bool):
        raise ValidationError(field, value, "must be a number", row)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(field, value, "must be a number", row) from None
    if not number.is_finite():
        raise ValidationError(field, value, "must be finite", row)
    if number <= 0:
        raise ValidationError(field, value, "must be positive", row)
    if -number.normalize().as_tuple().exponent > DECIMAL_SCALE:
        raise ValidationError(
            field, value, f"must have at most {DECIMAL_SCALE} decimal places", row
        )
    return number


def parse_integer(
    value: Any,
    field: str,
    row: int | None,
    default: int | None = None,
) -> int:
    if _is_blank(value):
        if default is not None:
            return default
        raise ValidationError(field, value, "required field is missing", row)
    if isinstance(value, bool):
        raise ValidationError(field, value, "must be an integer", row)
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(field, value, "must be an integer", row) from None
    if not number.is_finite() or number != number.to_integral_value():
        raise ValidationError(field, value, "must be an integer", row)
    return int(number)


def parse_expiry(value: Any, field: str, row: int | None) -> date | None:
    """Parse an ISO date or timestamp; blank or "N/A" means no expiry."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if text.lower() in NO_EXPIRY_SENTINELS:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationError(field, value, "must be an ISO date (YYYY-MM-DD)", row) from None


# -----------------------------------------------------------------------------
# Record parsers
# -----------------------------------------------------------------------------


def parse_item_record(raw: Mapping[str, Any] | ItemRecord, row: int | None = None) -> ItemRecord:
    """
    Validate one item row.

    Raises:
        ValidationError: on the first missing or malformed field.
    """
    if isinstance(raw, ItemRecord):
        # Built in code, not parsed: check it like any other row
        return parse_item_record(asdict(raw), row)

    def get(name: str) -> Any:
        return _lookup(raw, _ITEM_ALIASES[name])

    return ItemRecord(
        item_code=parse_text(get("item_code"), "item_code", row),
        name=parse_text(get("name"), "name", row),
        width=parse_dimension(get("width"), "width", row),
        depth=parse_dimension(get("depth"), "depth", row),
        height=parse_dimension(get("height"), "height", row),
        priority=parse_integer(get("priority"), "priority", row, default=0),
        expiry_date=parse_expiry(get("expiry_date"), "expiry_date", row),
        usage_limit=parse_integer(get("usage_limit"), "usage_limit", row),
        preferred_zone=parse_text(get("preferred_zone"), "preferred_zone", row, required=False),
    )


def parse_container_record(
    raw: Mapping[str, Any] | ContainerRecord,
    row: int | None = None,
) -> ContainerRecord:
    """
    Validate one container row.

    Raises:
        ValidationError: on the first missing or malformed field.
    """
    if isinstance(raw, ContainerRecord):
        if raw.used_volume < 0:
            raise ValidationError("used_volume", raw.used_volume, "must not be negative", row)
        return replace(parse_container_record(asdict(raw), row), used_volume=raw.used_volume)

    def get(name: str) -> Any:
        return _lookup(raw, _CONTAINER_ALIASES[name])

    return ContainerRecord(
        container_code=parse_text(get("container_code"), "container_code", row),
        zone=parse_text(get("zone"), "zone", row),
        width=parse_dimension(get("width"), "width", row),
        depth=parse_dimension(get("depth"), "depth", row),
        height=parse_dimension(get("height"), "height", row),
    )
