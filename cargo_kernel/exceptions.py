"""
Typed Exception Hierarchy for the Cargo Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the kernel (an HTTP adapter, a CLI, a test) need to turn failures
into structured responses without parsing message strings.  Every exception
here therefore carries:
  1. A TYPED class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (item_code, container_code, field, ...)

Example:
    try:
        service.retrieve("ITM-007", user_id="astro-2")
    except ItemNotStoredError as e:
        respond(400, e.to_dict())

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    CargoKernelError (base)
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- ContainerNotFoundError
    |
    +-- InfeasiblePlacementError
    |
    +-- InvalidStateError
    |   +-- ItemNotStoredError
    |   +-- ItemNotWasteError
    |
    +-- ValidationError
    |
    +-- IntegrityError
        +-- ImmutabilityViolationError
        +-- VolumeInvariantError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Not found       | ITEM_NOT_FOUND              | Unknown item identifier
                | CONTAINER_NOT_FOUND         | Unknown container identifier
----------------|-----------------------------|-----------------------------------------
Placement       | INFEASIBLE_PLACEMENT        | No eligible container can take an item
----------------|-----------------------------|-----------------------------------------
State           | ITEM_NOT_STORED             | Retrieve on item without a placement
                | ITEM_NOT_WASTE              | Waste-plan on item that is not waste
----------------|-----------------------------|-----------------------------------------
Validation      | VALIDATION_ERROR            | Malformed import record
----------------|-----------------------------|-----------------------------------------
Integrity       | IMMUTABILITY_VIOLATION      | UPDATE/DELETE of a log entry
                | VOLUME_INVARIANT            | Container used volume out of bounds
"""

from typing import Any


class CargoKernelError(Exception):
    """
    Base exception for all cargo kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CARGO_KERNEL_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Structured failure payload: code, message and public attributes."""
        payload: dict[str, Any] = {"code": self.code, "message": str(self)}
        for key, value in vars(self).items():
            if not key.startswith("_"):
                payload[key] = value
        return payload


# Lookup failures


class NotFoundError(CargoKernelError):
    """Base exception for unknown identifiers."""

    code: str = "NOT_FOUND"


class ItemNotFoundError(NotFoundError):
    """Item with given identifier was not found."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_code: str):
        self.item_code = item_code
        super().__init__(f"Item not found: {item_code}")


class ContainerNotFoundError(NotFoundError):
    """Container with given identifier was not found."""

    code: str = "CONTAINER_NOT_FOUND"

    def __init__(self, container_code: str):
        self.container_code = container_code
        super().__init__(f"Container not found: {container_code}")


# Placement


class InfeasiblePlacementError(CargoKernelError):
    """
    One or more items could not be placed in any eligible container.

    ``item_codes`` lists every item that found no room, in placement order.
    ``placements`` holds the placements the engine computed for the other
    items; nothing has been persisted when this is raised.
    """

    code: str = "INFEASIBLE_PLACEMENT"

    def __init__(self, item_codes: list[str], placements: tuple = ()):
        self.item_codes = list(item_codes)
        self.placements = tuple(placements)
        super().__init__(f"No space for item(s): {', '.join(self.item_codes)}")

    @property
    def item_code(self) -> str:
        """First item that could not be placed."""
        return self.item_codes[0]


# Lifecycle state


class InvalidStateError(CargoKernelError):
    """Item is not in a state that allows the requested transition."""

    code: str = "INVALID_STATE"

    def __init__(self, item_code: str, status: str, message: str | None = None):
        self.item_code = item_code
        self.status = status
        super().__init__(
            message or f"Item {item_code} cannot transition from status {status}"
        )


class ItemNotStoredError(InvalidStateError):
    """Item has no current container placement."""

    code: str = "ITEM_NOT_STORED"

    def __init__(self, item_code: str, status: str):
        super().__init__(item_code, status, f"Item not stored: {item_code}")


class ItemNotWasteError(InvalidStateError):
    """Item is neither expired nor out of uses."""

    code: str = "ITEM_NOT_WASTE"

    def __init__(self, item_code: str, status: str):
        super().__init__(
            item_code, status, f"Item {item_code} is not eligible as waste"
        )


# Input validation


class ValidationError(CargoKernelError):
    """An import record is malformed."""

    code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        field: str,
        value: Any,
        reason: str,
        row: int | None = None,
    ):
        self.field = field
        self.value = value
        self.reason = reason
        self.row = row
        where = f" (row {row})" if row is not None else ""
        super().__init__(f"Invalid {field}{where}: {reason}")


# Storage integrity


class IntegrityError(CargoKernelError):
    """Base exception for persistence invariant violations."""

    code: str = "INTEGRITY_ERROR"


class ImmutabilityViolationError(IntegrityError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )


class VolumeInvariantError(IntegrityError):
    """Container used volume left the range [0, capacity]."""

    code: str = "VOLUME_INVARIANT"

    def __init__(self, container_code: str, used_volume: Any, capacity: Any):
        self.container_code = container_code
        self.used_volume = used_volume
        self.capacity = capacity
        super().__init__(
            f"Container {container_code} used volume {used_volume} "
            f"outside [0, {capacity}]"
        )
