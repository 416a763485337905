"""
ORM-Level Integrity Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Two rules of the cargo store must hold no matter which code path writes:

  1. The action log is append-only.  A LogEntry is never updated or deleted.
  2. A container's used volume stays within [0, capacity].

The services already respect both rules.  These listeners are the second
line: SQLAlchemy fires them before the SQL for an INSERT/UPDATE/DELETE is
sent, so a violating flush aborts the transaction and the database is never
modified.

    session.flush()
         |
         v
    [before_update / before_delete] --> _check_*() --> ImmutabilityViolationError
    [before_insert / before_update] --> _check_container_volume() --> VolumeInvariantError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity      | Rule                                 | Error
------------|--------------------------------------|------------------------------
LogEntry    | No UPDATE, no DELETE                 | ImmutabilityViolationError
Container   | 0 <= used_volume <= w * d * h        | VolumeInvariantError

===============================================================================
USAGE
===============================================================================

    from cargo_kernel.db.immutability import register_integrity_listeners
    register_integrity_listeners()  # Called once at startup (idempotent)

In tests that must write a violating row on purpose:

    unregister_integrity_listeners()
    ...
    register_integrity_listeners()
"""

from sqlalchemy import event

from cargo_kernel.db.base import box_volume
from cargo_kernel.exceptions import (
    ImmutabilityViolationError,
    VolumeInvariantError,
)
from cargo_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


# =============================================================================
# LogEntry: append-only
# =============================================================================


def _check_log_entry_update(mapper, connection, target):
    """Prevent any updates to LogEntry records."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LogEntry",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LogEntry",
        entity_id=str(target.id),
        reason="Log entries are immutable and cannot be modified",
    )


def _check_log_entry_delete(mapper, connection, target):
    """Prevent deletion of LogEntry records."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LogEntry",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LogEntry",
        entity_id=str(target.id),
        reason="Log entries cannot be deleted",
    )


# =============================================================================
# Container: used volume bounds
# =============================================================================


def _check_container_volume(mapper, connection, target):
    """Reject a container row whose used volume is negative or over capacity."""
    used = target.used_volume
    if used is None:
        return
    capacity = box_volume(target.width, target.depth, target.height)
    if used < 0 or used > capacity:
        logger.error(
            "volume_invariant_blocked",
            extra={
                "container_code": target.container_code,
                "used_volume": used,
                "capacity": capacity,
            },
        )
        raise VolumeInvariantError(
            container_code=target.container_code,
            used_volume=used,
            capacity=capacity,
        )


# =============================================================================
# Registration
# =============================================================================


def _listeners():
    from cargo_kernel.models.container import Container
    from cargo_kernel.models.log_entry import LogEntry

    return (
        (LogEntry, "before_update", _check_log_entry_update),
        (LogEntry, "before_delete", _check_log_entry_delete),
        (Container, "before_insert", _check_container_volume),
        (Container, "before_update", _check_container_volume),
    )


def register_integrity_listeners():
    """
    Register all integrity enforcement event listeners.

    Call this after all models are imported but before any database
    operations begin.  Calling it twice is harmless.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_integrity_listeners():
    """
    Remove integrity enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate the rules to verify detection.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
