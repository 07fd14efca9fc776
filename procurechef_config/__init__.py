"""
procurechef_config -- YAML settings for ProcureChef.

Sits above ``procurechef_kernel`` and beside ``procurechef_modules``; the
kernel and engines never import from here.  Services receive an already
built ``ProcurementConfig`` and never read files themselves.
"""

from procurechef_config.loader import (
    compute_checksum,
    load_procurement_config,
    load_yaml_file,
    procurement_settings,
)

__all__ = [
    "compute_checksum",
    "load_procurement_config",
    "load_yaml_file",
    "procurement_settings",
]
