"""
VAT (TVA) splitter.

Responsibility:
    Split a tax-inclusive (TTC) amount into principal (HT) and VAT for a
    given rate, and detect that rate from the labels available while an
    entry is typed.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The stateful part of
    entry-time VAT (sticky rate, edited lines) lives in
    ``compta_engines.entry_draft``; this module only computes.

Invariants enforced:
    - HT is derived by subtraction after rounding VAT:
          HTcomputed = round(TTC / (1 + rate), 2)
          VAT        = round(HTcomputed * rate, 2)
          HT         = round(TTC - VAT, 2)
      so HT + VAT == TTC exactly (TTC rounded to the cent first).
    - Rounding is ROUND_HALF_UP to the cent (``round_amount``).
    - A detected rate is always in the open interval (0, 1).

Failure modes:
    - ``split_vat`` raises ValueError for TTC <= 0 or a rate outside (0, 1).
    - Rate parsing never raises: unparseable text means "no rate here" and
      detection falls through to the next source.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

from compta_kernel.domain.accounts import (
    COLLECTED_VAT_PREFIX,
    DEDUCTIBLE_VAT_PREFIX,
    VatDirection,
    vat_direction_of,
)
from compta_kernel.domain.amounts import round_amount
from compta_kernel.logging_config import get_logger

from compta_engines.tracer import traced_engine

logger = get_logger("engines.vat")

DEFAULT_VAT_RATE = Decimal("0.20")

# Taux en vigueur en France métropolitaine
STANDARD_VAT_RATES: tuple[Decimal, ...] = (
    Decimal("0.20"),
    Decimal("0.10"),
    Decimal("0.055"),
    Decimal("0.021"),
)

_ONE = Decimal("1")
_HUNDRED = Decimal("100")
_RATE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)(\s*%?)")


class RateSource(str, Enum):
    """Where a detected rate came from, in detection order."""

    ACCOUNT = "account"
    LINE = "line"
    ENTRY = "entry"
    STICKY = "sticky"
    DEFAULT = "default"

    @property
    def is_textual(self) -> bool:
        """Rates read from a label update the session's sticky rate."""
        return self in (RateSource.ACCOUNT, RateSource.LINE, RateSource.ENTRY)


@dataclass(frozen=True, slots=True)
class RateDetection:
    rate: Decimal
    source: RateSource


@dataclass(frozen=True, slots=True)
class VatSplit:
    """TTC = HT + VAT, all rounded to the cent."""

    ttc: Decimal
    rate: Decimal
    ht: Decimal
    vat: Decimal


def _in_open_unit_interval(rate: Decimal) -> bool:
    return Decimal("0") < rate < _ONE


def parse_vat_rate(text: str | None) -> Decimal | None:
    """Read a rate from free text: "5,5", "5.5 %", "TVA 20%", "0.2".

    Only the first number is read.  It is a percentage when the text holds
    a "%" anywhere or when the number is greater than 1; otherwise it is
    already a fraction.  The result is kept only inside (0, 1).
    """
    if not text:
        return None
    normalized = text.replace(",", ".", 1)
    match = _RATE_PATTERN.search(normalized)
    if match is None:
        return None
    try:
        number = Decimal(match.group(1))
    except InvalidOperation:
        return None
    rate = number / _HUNDRED if ("%" in normalized or number > _ONE) else number
    return rate if _in_open_unit_interval(rate) else None


@traced_engine("vat", "1.0", fingerprint_fields=("account_label", "line_label", "entry_label", "last_rate"))
def detect_vat_rate(
    account_label: str | None = None,
    line_label: str | None = None,
    entry_label: str | None = None,
    last_rate: Decimal | None = None,
    account_rate: Decimal | None = None,
    default_rate: Decimal = DEFAULT_VAT_RATE,
) -> RateDetection:
    """First match wins: account, line label, entry label, sticky, default.

    ``account_rate`` is the rate stored on the account itself; it is read as
    part of the account source, before the account label.
    """
    if account_rate is not None and _in_open_unit_interval(account_rate):
        return RateDetection(account_rate, RateSource.ACCOUNT)
    for source, text in (
        (RateSource.ACCOUNT, account_label),
        (RateSource.LINE, line_label),
        (RateSource.ENTRY, entry_label),
    ):
        rate = parse_vat_rate(text)
        if rate is not None:
            return RateDetection(rate, source)
    if last_rate is not None and _in_open_unit_interval(last_rate):
        return RateDetection(last_rate, RateSource.STICKY)
    return RateDetection(default_rate, RateSource.DEFAULT)


def split_vat(ttc: Decimal, rate: Decimal) -> VatSplit:
    """Split a TTC amount. See module docstring for the rounding contract."""
    if ttc <= 0:
        raise ValueError(f"TTC must be > 0, got {ttc}")
    if not _in_open_unit_interval(rate):
        raise ValueError(f"VAT rate must be in (0, 1), got {rate}")
    ttc = round_amount(ttc)
    ht_computed = round_amount(ttc / (_ONE + rate))
    vat = round_amount(ht_computed * rate)
    ht = round_amount(ttc - vat)
    return VatSplit(ttc=ttc, rate=rate, ht=ht, vat=vat)


class VatSplitter:
    """
    VAT splitter configured with the company's defaults.

    Contract:
        Given the account typed on a line, says whether it triggers a split,
        on which side the VAT goes, which principal classe is expected on
        the following line and which account is used when that line must be
        created (607 for purchases, 707 for sales by default).

    Guarantees:
        - ``split`` honours the HT-by-subtraction contract of ``split_vat``.
        - Accounts outside 4456 / 4457 never trigger a split.
    """

    def __init__(
        self,
        default_rate: Decimal = DEFAULT_VAT_RATE,
        purchase_account: str = "607",
        sales_account: str = "707",
    ):
        if not _in_open_unit_interval(default_rate):
            raise ValueError(f"Default VAT rate must be in (0, 1), got {default_rate}")
        self.default_rate = default_rate
        self.purchase_account = purchase_account
        self.sales_account = sales_account

    def direction(self, account_number: str) -> VatDirection | None:
        return vat_direction_of(account_number)

    def triggers_split(self, account_number: str) -> bool:
        return account_number.startswith((DEDUCTIBLE_VAT_PREFIX, COLLECTED_VAT_PREFIX))

    def principal_classe(self, direction: VatDirection) -> str:
        """6 (charges) after deductible VAT, 7 (produits) after collected VAT."""
        return "6" if direction is VatDirection.DEDUCTIBLE else "7"

    def principal_account(self, direction: VatDirection) -> str:
        if direction is VatDirection.DEDUCTIBLE:
            return self.purchase_account
        return self.sales_account

    def detect_rate(
        self,
        account_label: str | None = None,
        line_label: str | None = None,
        entry_label: str | None = None,
        last_rate: Decimal | None = None,
        account_rate: Decimal | None = None,
    ) -> RateDetection:
        return detect_vat_rate(
            account_label=account_label,
            line_label=line_label,
            entry_label=entry_label,
            last_rate=last_rate,
            account_rate=account_rate,
            default_rate=self.default_rate,
        )

    def split(self, ttc: Decimal, rate: Decimal) -> VatSplit:
        result = split_vat(ttc, rate)
        logger.debug(
            "vat_split",
            extra={
                "ttc": str(result.ttc),
                "rate": str(result.rate),
                "ht": str(result.ht),
                "vat": str(result.vat),
            },
        )
        return result
