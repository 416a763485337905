"""Domain models for the cargo kernel."""

from cargo_kernel.models.container import Container
from cargo_kernel.models.item import Item, ItemStatus
from cargo_kernel.models.log_entry import LogAction, LogEntry

__all__ = [
    "Container",
    "Item",
    "ItemStatus",
    "LogAction",
    "LogEntry",
]
