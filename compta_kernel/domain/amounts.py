"""
Amounts -- the single numeric representation of money in compta.

Responsibility:
    Convert the strings-or-numbers found at the edges (user input, FEC
    files, stored JSON) into ``Decimal``, and apply the one rounding policy
    used everywhere: two decimal places, ROUND_HALF_UP.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - No float ever reaches arithmetic: floats are converted through
      ``str()`` so that ``0.1`` becomes ``Decimal("0.1")``.
    - ``round_amount`` is the only rounding entry point.

Failure modes:
    - ``parse_amount`` raises ``ValueError`` on text that is not a number
      (including NaN / Infinity).  Import code turns it into a row error.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
CENT = Decimal("0.01")
TOLERANCE = Decimal("0.01")

_SPACES = (" ", "\u00a0", "\u202f", "\t")


def parse_amount(value: str | int | float | Decimal | None) -> Decimal:
    """Parse an amount written with a French or English decimal separator.

    ``None`` and blank text mean zero.  ``"1 234,56"``, ``"1.234,56"`` and
    ``"1234.56"`` all give ``Decimal("1234.56")``.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Montant invalide : {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        text = str(value).strip()
        for space in _SPACES:
            text = text.replace(space, "")
        if not text:
            return ZERO
        if "," in text and "." in text:
            if text.rfind(",") > text.rfind("."):
                text = text.replace(".", "").replace(",", ".")
            else:
                text = text.replace(",", "")
        else:
            text = text.replace(",", ".")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Montant invalide : {value!r}") from None

    if not result.is_finite():
        raise ValueError(f"Montant invalide : {value!r}")
    return result


def round_amount(value: Decimal) -> Decimal:
    """Round to the cent, half up. Negative zero is normalized to 0.00."""
    rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded == ZERO:
        return Decimal("0.00")
    return rounded


def format_amount(value: Decimal) -> str:
    """``Decimal("120.5")`` -> ``"120.50"``."""
    return f"{round_amount(value):f}"


def format_fr(value: Decimal) -> str:
    """``Decimal("120.5")`` -> ``"120,50"`` (FEC and CSV exports)."""
    return format_amount(value).replace(".", ",")
