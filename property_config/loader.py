"""
Settings loader (``property_config.loader``).

Loads a YAML settings file and splits it into the per-module sections the
config dataclasses consume.  Callers go through
``property_config.get_active_settings()``; nothing else reads settings files.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown top-level section  -> ``ValueError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

KNOWN_SECTIONS = frozenset({"settings_id", "version", "database", "pdc", "checkout"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping at the top level")
    return data


def parse_settings(data: dict[str, Any]) -> dict[str, Any]:
    """Check section names and default missing module sections to ``{}``."""
    unknown = set(data) - KNOWN_SECTIONS
    if unknown:
        raise ValueError(f"Unknown settings section(s): {sorted(unknown)}")
    for section in ("database", "pdc", "checkout"):
        value = data.get(section) or {}
        if not isinstance(value, dict):
            raise ValueError(f"Settings section '{section}' must be a mapping")
        data[section] = value
    return data
