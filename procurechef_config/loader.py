"""
Configuration Loader (``procurechef_config.loader``).

Responsibility
--------------
Loads YAML settings files and parses them into a typed
``ProcurementConfig``.  Settings may sit at the top level of the file or
under a ``procurement:`` section, so one site file can carry several
sections.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Non-mapping document or unknown setting  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from procurechef_kernel.exceptions import ConfigurationError
from procurechef_kernel.logging_config import get_logger
from procurechef_modules.procurement.config import ProcurementConfig

logger = get_logger("config.loader")

PROCUREMENT_SECTION = "procurement"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (empty if the YAML document is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "document must be a mapping")
    return data


def procurement_settings(data: dict[str, Any]) -> dict[str, Any]:
    """Pick the procurement settings out of a parsed settings document."""
    if PROCUREMENT_SECTION in data:
        section = data[PROCUREMENT_SECTION] or {}
        if not isinstance(section, dict):
            raise ConfigurationError(PROCUREMENT_SECTION, "section must be a mapping")
        return section
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def load_procurement_config(path: Path | str) -> ProcurementConfig:
    """Read a YAML settings file into a ``ProcurementConfig``."""
    path = Path(path)
    settings = procurement_settings(load_yaml_file(path))
    config = ProcurementConfig.from_dict(settings)
    logger.info(
        "procurement_config_loaded",
        extra={
            "path": str(path),
            "checksum": compute_checksum(settings),
        },
    )
    return config
