"""
FEC and CSV exporters.

FEC: tab separated, the 18 standard columns, dates YYYYMMDD, amounts with
a decimal comma.  One row per line of each entry, in entry order.

CSV: ``;`` separated, UTF-8 with BOM, decimal comma; values holding ``;``,
a double quote or a newline are quoted with inner quotes doubled.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from compta_kernel.domain.accounts import ChartOfAccounts
from compta_kernel.domain.amounts import format_fr
from compta_kernel.domain.dtos import Entry
from compta_kernel.logging_config import get_logger

from compta_ingestion.domain.validators import FEC_COLUMNS, format_fec_date

logger = get_logger("ingestion.exporters")

BOM = "\ufeff"
DEFAULT_JOURNAL_LABEL = "Opérations Diverses"


def fec_rows(
    entries: Iterable[Entry],
    chart: ChartOfAccounts | None = None,
    journal_labels: Mapping[str, str] | None = None,
) -> list[dict[str, str]]:
    chart = chart or ChartOfAccounts()
    journal_labels = journal_labels or {}
    rows: list[dict[str, str]] = []
    for entry in entries:
        day = format_fec_date(entry.entry_date)
        journal_label = journal_labels.get(entry.journal_code, DEFAULT_JOURNAL_LABEL)
        for line in entry.lines:
            rows.append(
                {
                    "JournalCode": entry.journal_code,
                    "JournalLib": journal_label,
                    "EcritureNum": entry.entry_number or entry.piece_number,
                    "EcritureDate": day,
                    "CompteNum": line.account_number,
                    "CompteLib": chart.label_for(line.account_number) or line.account_label,
                    "CompAuxNum": "",
                    "CompAuxLib": "",
                    "PieceRef": entry.piece_number,
                    "PieceDate": day,
                    "EcritureLib": line.label or entry.label,
                    "Debit": format_fr(line.debit),
                    "Credit": format_fr(line.credit),
                    "EcritureLet": "",
                    "DateLet": "",
                    "ValidDate": day,
                    "Montantdevise": "",
                    "Idevise": "",
                }
            )
    return rows


def export_fec(
    entries: Iterable[Entry],
    chart: ChartOfAccounts | None = None,
    journal_labels: Mapping[str, str] | None = None,
) -> str:
    """FEC text: header plus one row per line, rows separated by ``\\n``.

    FEC fields are never quoted; tabs and newlines inside a value are
    replaced by a space.
    """
    rows = fec_rows(entries, chart, journal_labels)
    lines = ["\t".join(FEC_COLUMNS)]
    for row in rows:
        lines.append("\t".join(_fec_value(row[column]) for column in FEC_COLUMNS))
    logger.info("fec_exported", extra={"rows": len(rows)})
    return "\n".join(lines)


def _fec_value(value: str) -> str:
    return value.replace("\t", " ").replace("\r", " ").replace("\n", " ")


def _csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, Decimal):
        return format_fr(value)
    if isinstance(value, (int, float)):
        return str(value).replace(".", ",")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def export_csv(
    rows: Sequence[Mapping[str, Any]],
    headers: Sequence[str] | None = None,
) -> str:
    """CSV text with BOM; ``headers`` default to the keys of the first row."""
    columns = list(headers) if headers is not None else (list(rows[0]) if rows else [])
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([_csv_value(row.get(column)) for column in columns])
    return BOM + buffer.getvalue().rstrip("\n")


def write_fec_file(
    path: Path,
    entries: Iterable[Entry],
    chart: ChartOfAccounts | None = None,
    journal_labels: Mapping[str, str] | None = None,
) -> Path:
    path.write_text(export_fec(entries, chart, journal_labels), encoding="utf-8")
    return path


def write_csv_file(
    path: Path,
    rows: Sequence[Mapping[str, Any]],
    headers: Sequence[str] | None = None,
) -> Path:
    # The BOM is part of the text; plain utf-8 keeps it exactly once.
    path.write_text(export_csv(rows, headers), encoding="utf-8")
    return path
