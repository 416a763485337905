"""
Configuration Loader (``cargo_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a ``CargoSettings``
instance.  Callers use ``cargo_config.get_active_config()``; this module is
its implementation.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong section shape -> ``ValueError``.
* Non-numeric weight factor -> ``ValueError``.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from cargo_config.schema import CargoSettings

_LEVELS = frozenset(logging.getLevelNamesMapping())


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"config section '{name}' must be a mapping")
    return section


def parse_settings(data: dict[str, Any]) -> CargoSettings:
    """Parse a settings dict; missing keys fall back to CargoSettings defaults."""
    defaults = CargoSettings()
    database = _section(data, "database")
    lifecycle = _section(data, "lifecycle")
    waste = _section(data, "waste")
    logging_section = _section(data, "logging")

    raw_factor = waste.get("weight_factor", defaults.waste_weight_factor)
    try:
        factor = Decimal(str(raw_factor))
    except InvalidOperation:
        raise ValueError(f"waste.weight_factor is not a number: {raw_factor!r}") from None
    if not factor.is_finite() or factor <= 0:
        raise ValueError(f"waste.weight_factor must be positive: {raw_factor!r}")

    level = str(logging_section.get("level", defaults.log_level)).upper()
    if level not in _LEVELS:
        raise ValueError(f"logging.level is not a logging level: {level!r}")

    return CargoSettings(
        database_url=str(database.get("url", defaults.database_url)),
        echo_sql=bool(database.get("echo", defaults.echo_sql)),
        system_actor=str(lifecycle.get("system_actor", defaults.system_actor)),
        waste_weight_factor=factor,
        log_level=level,
    )
