"""
Configuration schema (``compta_config.schema``).

Frozen dataclasses produced by ``compta_config.loader`` from YAML: the
standard chart-of-accounts labels (plan comptable), the journals, the VAT
defaults and the FEC import settings.  No behaviour lives here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType


@dataclass(frozen=True)
class JournalDef:
    """A journal (purchases, sales, bank, cash, miscellaneous)."""

    code: str
    label: str


@dataclass(frozen=True)
class VatSettings:
    default_rate: Decimal
    standard_rates: tuple[Decimal, ...]
    purchase_account: str
    sales_account: str
    deductible_account: str
    collected_account: str


@dataclass(frozen=True)
class FecSettings:
    required_columns: tuple[str, ...]
    encodings: tuple[str, ...]
    delimiter: str = "\t"


@dataclass(frozen=True)
class ComptaConfig:
    """
    The runtime configuration artifact.

    ``checksum`` identifies the YAML content it was built from.
    """

    config_id: str
    version: int
    chart_labels: Mapping[str, str]
    journals: tuple[JournalDef, ...]
    vat: VatSettings
    fec: FecSettings
    checksum: str = ""
    source: str = ""
    extra: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "chart_labels", MappingProxyType(dict(self.chart_labels)))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def journal(self, code: str) -> JournalDef | None:
        for journal in self.journals:
            if journal.code == code:
                return journal
        return None

    @property
    def journal_labels(self) -> dict[str, str]:
        return {j.code: j.label for j in self.journals}
