"""
cargo_config -- single public entrypoint for cargo kernel settings.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains settings.
    It reads a YAML file (the packaged ``defaults.yaml`` unless a path is
    given) and applies the ``CARGO_DATABASE_URL`` environment override.

Architecture position:
    Configuration sits above ``cargo_kernel``.  The kernel never imports
    from ``cargo_config``; CargoService.from_settings() receives the parsed
    ``CargoSettings`` from its caller.

Failure modes:
    - ``FileNotFoundError`` -- the given path does not exist.
    - ``ValueError`` -- malformed settings.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from cargo_config.loader import load_yaml_file, parse_settings
from cargo_config.schema import CargoSettings

_logger = logging.getLogger("cargo_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

DATABASE_URL_ENV = "CARGO_DATABASE_URL"


def get_active_config(path: Path | str | None = None) -> CargoSettings:
    """The ONLY public configuration entrypoint."""
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    data = load_yaml_file(config_path)

    env_url = os.environ.get(DATABASE_URL_ENV)
    if env_url:
        data.setdefault("database", {})
        data["database"] = {**(data["database"] or {}), "url": env_url}

    settings = parse_settings(data)
    _logger.info(
        "cargo_config_loaded",
        extra={
            "config_path": str(config_path),
            "database_override": bool(env_url),
            "system_actor": settings.system_actor,
            "waste_weight_factor": str(settings.waste_weight_factor),
        },
    )
    return settings


__all__ = ["DATABASE_URL_ENV", "CargoSettings", "get_active_config"]
