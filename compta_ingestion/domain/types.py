"""
compta_ingestion.domain.types -- Frozen dataclasses for FEC import.

ZERO I/O. Imports only from compta_kernel.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from compta_kernel.domain.dtos import Account, Entry, JournalLine


class ImportStatus(str, Enum):
    """Outcome of an import run."""

    COMPLETED = "completed"  # Every row imported
    PARTIAL = "partial"  # Some rows imported, some errors
    FAILED = "failed"  # Nothing imported


@dataclass(frozen=True, slots=True)
class FecRow:
    """One parsed FEC data row (18 standard columns, the useful ones)."""

    row_number: int
    journal_code: str
    entry_date: date
    account_number: str
    debit: Decimal
    credit: Decimal
    journal_label: str = ""
    entry_number: str = ""  # EcritureNum
    account_label: str = ""
    aux_account: str = ""  # CompAuxNum
    aux_label: str = ""
    piece_ref: str = ""
    piece_date: date | None = None
    label: str = ""  # EcritureLib
    lettering: str = ""  # EcritureLet

    @property
    def piece_key(self) -> str:
        """PieceRef, or EcritureNum when the file leaves PieceRef empty."""
        return self.piece_ref or self.entry_number

    @property
    def group_key(self) -> tuple[str, str, str]:
        return (self.journal_code, self.entry_date.isoformat(), self.piece_key)

    def to_line(self) -> JournalLine:
        return JournalLine(
            account_number=self.account_number,
            account_label=self.account_label,
            label=self.label,
            debit=self.debit,
            credit=self.credit,
        )


@dataclass(frozen=True)
class FecGroup:
    """Rows sharing (journal, date, pièce), in file order."""

    key: tuple[str, str, str]
    rows: tuple[FecRow, ...]

    @property
    def journal_code(self) -> str:
        return self.key[0]

    @property
    def entry_date(self) -> date:
        return self.rows[0].entry_date

    @property
    def piece_key(self) -> str:
        return self.key[2]

    @property
    def label(self) -> str:
        for row in self.rows:
            if row.label:
                return row.label
        return ""

    @property
    def lines(self) -> tuple[JournalLine, ...]:
        return tuple(row.to_line() for row in self.rows)

    def describe(self) -> str:
        first = self.rows[0].row_number
        return f"{self.journal_code} {self.key[1]} pièce {self.piece_key or '-'} (ligne {first})"

    def to_entry(
        self,
        entry_number: str | None = None,
        company_id: str | None = None,
        exercise_id: str | None = None,
    ) -> Entry:
        return Entry(
            journal_code=self.journal_code,
            entry_date=self.entry_date,
            piece_number=self.piece_key,
            label=self.label,
            lines=self.lines,
            company_id=company_id,
            exercise_id=exercise_id,
            entry_number=entry_number,
        )


@dataclass(frozen=True)
class GroupingResult:
    """Entries built from a FEC file and the groups refused by validation."""

    entries: tuple[Entry, ...]
    errors: tuple[str, ...] = ()
    rejected: tuple[FecGroup, ...] = ()


@dataclass(frozen=True)
class ImportResult:
    """
    Outcome of a FEC import.

    ``imported`` counts imported rows (lines); ``entries`` holds the
    entries created from them.  The import is a partial success as soon
    as one row was imported.
    """

    imported: int
    errors: tuple[str, ...] = ()
    entries: tuple[Entry, ...] = ()
    accounts_to_create: tuple[Account, ...] = ()
    total_rows: int = 0
    encoding: str | None = None

    @property
    def partial_success(self) -> bool:
        return self.imported > 0

    @property
    def status(self) -> ImportStatus:
        if self.imported == 0:
            return ImportStatus.FAILED
        if self.errors:
            return ImportStatus.PARTIAL
        return ImportStatus.COMPLETED
