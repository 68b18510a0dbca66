"""
compta_config -- single public entrypoint for bookkeeping configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``: chart-of-accounts labels, journals, VAT
    defaults and FEC import settings, as a frozen ``ComptaConfig``.

Architecture position:
    Configuration -- YAML-driven.  Sits above ``compta_kernel`` and
    ``compta_engines``; the kernel MUST NEVER import from ``compta_config``.
    ``compta_config.bridges`` translates the config into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ConfigError`` -- missing keys or invalid values.

Audit relevance:
    Every ``get_active_config()`` call emits a ``COMPTA_CONFIG_TRACE`` log
    record with the config id, version, checksum and source file, tying
    every computed figure to the configuration that governed it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from compta_config.loader import load_config_file
from compta_config.schema import ComptaConfig, FecSettings, JournalDef, VatSettings

_logger = logging.getLogger("compta_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | None = None) -> ComptaConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a YAML configuration file.
            Defaults to the ``defaults.yaml`` shipped with the package.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigError: If the file cannot be turned into a configuration.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    config = load_config_file(path)

    _logger.info(
        "COMPTA_CONFIG_TRACE",
        extra={
            "trace_type": "COMPTA_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(path),
            "account_count": len(config.chart_labels),
            "journal_count": len(config.journals),
        },
    )
    return config


__all__ = [
    "ComptaConfig",
    "FecSettings",
    "JournalDef",
    "VatSettings",
    "get_active_config",
]
