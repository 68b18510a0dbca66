"""
FEC row parsing and validation.

Pure functions: a raw row dict (column name -> text) becomes a FecRow or
a FecRowError naming the line and its content, so the import can report
the error and go on with the next row.

Rules:
    - JournalCode, CompteNum and EcritureDate are required.
    - Dates are YYYYMMDD (exactly 8 digits, a real calendar date).
    - Debit / Credit use a French decimal comma; empty means zero.
    - Labels written as UTF-8 but read as Windows-1252 ("Ã©" for "é") are
      repaired.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import Decimal

from compta_kernel.domain.amounts import ZERO, parse_amount
from compta_kernel.domain.dtos import ValidationError
from compta_kernel.exceptions import FecRowError

from compta_ingestion.domain.types import FecRow

# UTF-8 sequences decoded as Windows-1252, the common French cases.
MOJIBAKE_FIXES: tuple[tuple[str, str], ...] = (
    ("Ã©", "é"),
    ("Ã¨", "è"),
    ("Ã´", "ô"),
    ("Ã®", "î"),
    ("Ã§", "ç"),
    ("Ã¹", "ù"),
    ("Ã»", "û"),
    ("Ã¢", "â"),
    ("Ãª", "ê"),
    ("Ã«", "ë"),
    ("Ã¯", "ï"),
    ("Ã¼", "ü"),
    ("Ã‰", "É"),
    ("Ã€", "À"),
    ("Ã‡", "Ç"),
    ("Å“", "œ"),
    ("Ã¦", "æ"),
    ("Ã\u00a0", "à"),
)

FEC_COLUMNS = (
    "JournalCode",
    "JournalLib",
    "EcritureNum",
    "EcritureDate",
    "CompteNum",
    "CompteLib",
    "CompAuxNum",
    "CompAuxLib",
    "PieceRef",
    "PieceDate",
    "EcritureLib",
    "Debit",
    "Credit",
    "EcritureLet",
    "DateLet",
    "ValidDate",
    "Montantdevise",
    "Idevise",
)


def fix_encoding(text: str) -> str:
    """Repair French accents mangled by a UTF-8 / Windows-1252 mix-up."""
    for wrong, right in MOJIBAKE_FIXES:
        if wrong in text:
            text = text.replace(wrong, right)
    return text


def parse_fec_date(value: str | None) -> date | None:
    """``"20250305"`` -> ``date(2025, 3, 5)``; None when not a valid YYYYMMDD."""
    text = (value or "").strip()
    if len(text) != 8 or not text.isdigit():
        return None
    try:
        return date(int(text[:4]), int(text[4:6]), int(text[6:]))
    except ValueError:
        return None


def format_fec_date(value: date) -> str:
    return value.strftime("%Y%m%d")


def _field(raw: Mapping[str, str | None], name: str) -> str:
    return (raw.get(name) or "").strip()


def _raw_content(raw: Mapping[str, str | None]) -> str:
    return "\t".join((v or "") for v in raw.values())


def _amount(raw: Mapping[str, str | None], name: str, row_number: int) -> Decimal:
    text = _field(raw, name)
    try:
        amount = parse_amount(text)
    except ValueError:
        raise FecRowError(row_number, f"montant {name} invalide {text!r}", _raw_content(raw)) from None
    if amount < ZERO:
        raise FecRowError(row_number, f"montant {name} négatif {text!r}", _raw_content(raw))
    return amount


def parse_fec_row(raw: Mapping[str, str | None], row_number: int) -> FecRow:
    """Parse one FEC row.

    Raises:
        FecRowError: missing required field, bad date or bad amount.
    """
    journal_code = _field(raw, "JournalCode")
    if not journal_code:
        raise FecRowError(row_number, "JournalCode manquant", _raw_content(raw))
    account_number = _field(raw, "CompteNum")
    if not account_number:
        raise FecRowError(row_number, "CompteNum manquant", _raw_content(raw))
    date_text = _field(raw, "EcritureDate")
    entry_date = parse_fec_date(date_text)
    if entry_date is None:
        raise FecRowError(row_number, f"EcritureDate invalide {date_text!r}", _raw_content(raw))

    return FecRow(
        row_number=row_number,
        journal_code=journal_code,
        journal_label=fix_encoding(_field(raw, "JournalLib")),
        entry_number=_field(raw, "EcritureNum"),
        entry_date=entry_date,
        account_number=account_number,
        account_label=fix_encoding(_field(raw, "CompteLib")),
        aux_account=_field(raw, "CompAuxNum"),
        aux_label=fix_encoding(_field(raw, "CompAuxLib")),
        piece_ref=_field(raw, "PieceRef"),
        piece_date=parse_fec_date(_field(raw, "PieceDate")),
        label=fix_encoding(_field(raw, "EcritureLib")),
        debit=_amount(raw, "Debit", row_number),
        credit=_amount(raw, "Credit", row_number),
        lettering=_field(raw, "EcritureLet"),
    )


def validate_fec_header(columns: tuple[str, ...], required: tuple[str, ...]) -> list[ValidationError]:
    """One error per required column absent from the header."""
    return [
        ValidationError(
            code="FEC_COLUMN_MISSING",
            message=f"Colonne FEC manquante : {name}",
            field=name,
        )
        for name in required
        if name not in columns
    ]
