"""
property_config -- single public entrypoint for back-office settings.

Responsibility:
    ``get_active_settings()`` is the only way services obtain their
    configuration.  It reads one YAML settings set, builds the typed module
    configs (``PDCConfig``, ``CheckoutConfig``) and emits a
    ``PROPERTY_CONFIG_TRACE`` log entry tying later operations to the
    settings version in force.

Architecture position:
    Sits above ``property_kernel`` and beside ``property_modules``; the
    kernel never imports from here.

Failure modes:
    - ``FileNotFoundError`` -- the requested settings set does not exist.
    - ``ValueError`` -- unknown sections or invalid module values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from property_config.loader import load_yaml_file, parse_settings
from property_modules.checkout.config import CheckoutConfig
from property_modules.pdc.config import PDCConfig

_logger = logging.getLogger("property_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


@dataclass(frozen=True)
class BackOfficeSettings:
    settings_id: str
    version: int
    pdc: PDCConfig
    checkout: CheckoutConfig
    database_url: str | None = None


def get_active_settings(
    name: str = "default",
    config_dir: Path | None = None,
) -> BackOfficeSettings:
    """Load the named settings set (``<config_dir>/<name>.yaml``).

    Args:
        name: Settings set name; the file stem under ``config_dir``.
        config_dir: Override path to the settings directory.
            Defaults to property_config/sets/.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        ValueError: If a section or value fails validation.
    """
    path = (config_dir or _DEFAULT_CONFIG_DIR) / f"{name}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"No settings set '{name}' in {path.parent}")

    data = parse_settings(load_yaml_file(path))
    settings = BackOfficeSettings(
        settings_id=str(data.get("settings_id", name)),
        version=int(data.get("version", 1)),
        pdc=PDCConfig.from_dict(data["pdc"]),
        checkout=CheckoutConfig.from_dict(data["checkout"]),
        database_url=data["database"].get("url"),
    )

    _logger.info(
        "PROPERTY_CONFIG_TRACE",
        extra={
            "trace_type": "PROPERTY_CONFIG_TRACE",
            "settings_id": settings.settings_id,
            "settings_version": settings.version,
            "source": str(path),
            "due_window_days": settings.pdc.due_window_days,
            "approval_threshold": str(settings.checkout.approval_threshold),
        },
    )
    return settings


__all__ = ["BackOfficeSettings", "get_active_settings"]
