"""Selectors for the cargo kernel (read side)."""

from cargo_kernel.selectors.container_selector import ContainerSelector
from cargo_kernel.selectors.item_selector import ItemSelector
from cargo_kernel.selectors.log_selector import LogSelector

__all__ = [
    "ContainerSelector",
    "ItemSelector",
    "LogSelector",
]
