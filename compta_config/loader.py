"""
Configuration Loader (``compta_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen dataclasses
of ``compta_config.schema``.  The single public entry point for runtime
configuration is ``compta_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Rates and amounts are parsed from their string form into ``Decimal``;
  YAML floats are converted through ``str()``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing keys or invalid values  -> ``ConfigError`` naming the source.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from compta_kernel.exceptions import ConfigError

from compta_config.schema import ComptaConfig, FecSettings, JournalDef, VatSettings

DEFAULT_FEC_COLUMNS = (
    "JournalCode",
    "JournalLib",
    "EcritureNum",
    "EcritureDate",
    "CompteNum",
    "CompteLib",
    "Debit",
    "Credit",
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any) -> Decimal:
    """Parse a rate from YAML (string, int or float) into Decimal."""
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Not a number: {value!r}") from None


def parse_chart(data: dict[str, Any]) -> dict[str, str]:
    """Account numbers are kept as strings: YAML ints are converted back."""
    return {str(number): str(label) for number, label in data.items()}


def parse_journal(data: dict[str, Any]) -> JournalDef:
    return JournalDef(code=str(data["code"]), label=str(data["label"]))


def parse_vat(data: dict[str, Any]) -> VatSettings:
    default_rate = parse_decimal(data["default_rate"])
    if not Decimal("0") < default_rate < Decimal("1"):
        raise ValueError(f"default_rate must be in (0, 1), got {default_rate}")
    return VatSettings(
        default_rate=default_rate,
        standard_rates=tuple(parse_decimal(r) for r in data.get("standard_rates", ())),
        purchase_account=str(data.get("purchase_account", "607")),
        sales_account=str(data.get("sales_account", "707")),
        deductible_account=str(data.get("deductible_account", "445660")),
        collected_account=str(data.get("collected_account", "445710")),
    )


def parse_fec(data: dict[str, Any]) -> FecSettings:
    return FecSettings(
        required_columns=tuple(data.get("required_columns", DEFAULT_FEC_COLUMNS)),
        encodings=tuple(data.get("encodings", ("utf-8-sig", "cp1252"))),
        delimiter=str(data.get("delimiter", "\t")),
    )


def parse_config(data: dict[str, Any], source: str = "<memory>") -> ComptaConfig:
    """Build a ComptaConfig from a parsed YAML document."""
    try:
        return ComptaConfig(
            config_id=str(data["config_id"]),
            version=int(data.get("version", 1)),
            chart_labels=parse_chart(data.get("plan_comptable", {})),
            journals=tuple(parse_journal(j) for j in data.get("journals", ())),
            vat=parse_vat(data["vat"]),
            fec=parse_fec(data.get("fec", {})),
            checksum=compute_checksum(data),
            source=source,
        )
    except KeyError as exc:
        raise ConfigError(source, f"missing key {exc.args[0]!r}") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(source, str(exc)) from exc


def load_config_file(path: Path) -> ComptaConfig:
    data = load_yaml_file(path)
    if not isinstance(data, dict):
        raise ConfigError(str(path), "top-level YAML value must be a mapping")
    return parse_config(data, source=str(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
