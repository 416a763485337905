"""Services for the cargo kernel (write side)."""

from cargo_kernel.services.cargo_service import CargoService
from cargo_kernel.services.inventory_service import InventoryService
from cargo_kernel.services.lifecycle_service import LifecycleService
from cargo_kernel.services.placement_service import PlacementService
from cargo_kernel.services.simulation_service import SimulationService
from cargo_kernel.services.waste_service import WasteService

__all__ = [
    "CargoService",
    "InventoryService",
    "LifecycleService",
    "PlacementService",
    "SimulationService",
    "WasteService",
]
