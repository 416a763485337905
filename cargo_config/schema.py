"""
Configuration schema (``cargo_config.schema``).

Frozen dataclasses only.  Parsing lives in ``loader.py``; the runtime
entrypoint is ``cargo_config.get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CargoSettings:
    """
    Runtime settings for a cargo kernel deployment.

    Attributes:
        database_url: SQLAlchemy URL of the inventory store.
        echo_sql: Log every SQL statement.
        system_actor: user_id recorded on automated transitions.
        waste_weight_factor: Proxy weight per unit volume for return planning.
        log_level: Level name for the ``cargo_kernel`` logger hierarchy.
    """

    database_url: str = "sqlite://"
    echo_sql: bool = False
    system_actor: str = "system"
    waste_weight_factor: Decimal = Decimal("0.1")
    log_level: str = "INFO"
