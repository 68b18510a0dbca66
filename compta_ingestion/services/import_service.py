"""
FEC import service: read -> parse -> group -> validate -> persist.

Orchestrates the FEC adapter, the row parser and the grouper.  Errors are
collected at row granularity (malformed row) and at entry granularity
(unbalanced group); the import carries on with whatever is left.
Uses structured logging (LogContext, get_logger("ingestion.*")).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any
from uuid import uuid4

from compta_kernel.domain.accounts import ChartOfAccounts, account_type_for
from compta_kernel.domain.dtos import Account, Entry
from compta_kernel.exceptions import FecError, FecRowError
from compta_kernel.logging_config import LogContext, get_logger
from compta_kernel.services.entry_service import EntryRepository, InMemoryEntryRepository

from compta_ingestion.adapters.base import SourceAdapter
from compta_ingestion.adapters.fec_adapter import FecFileAdapter
from compta_ingestion.domain.grouper import FecGrouper
from compta_ingestion.domain.types import FecRow, ImportResult
from compta_ingestion.domain.validators import parse_fec_row

logger = get_logger("ingestion.import_service")


def accounts_to_create(
    entries: Iterable[Entry],
    chart: ChartOfAccounts,
    company_id: str | None = None,
) -> tuple[Account, ...]:
    """Accounts used by ``entries`` the company has not opened yet.

    The label comes from the imported line (CompteLib), else the standard
    plan, else ``"Compte <number>"``.  Ordered by account number.
    """
    found: dict[str, Account] = {}
    for entry in entries:
        for line in entry.lines:
            number = line.account_number
            if not number or number in found or chart.is_known(number):
                continue
            label = line.account_label or chart.label_for(number) or f"Compte {number}"
            found[number] = Account(
                account_number=number,
                label=label,
                company_id=company_id,
                account_type=account_type_for(number).value,
            )
    return tuple(found[n] for n in sorted(found))


class FecImportService:
    """Imports FEC files into an entry repository."""

    def __init__(
        self,
        repository: EntryRepository | None = None,
        chart: ChartOfAccounts | None = None,
        adapter: SourceAdapter | None = None,
        options: Mapping[str, Any] | None = None,
    ):
        self._repository = repository if repository is not None else InMemoryEntryRepository()
        self._chart = chart or ChartOfAccounts()
        self._adapter: SourceAdapter = adapter or FecFileAdapter()
        self._options = dict(options or {})

    @property
    def repository(self) -> EntryRepository:
        return self._repository

    def import_file(
        self,
        source_path: Path,
        company_id: str | None = None,
        exercise_id: str | None = None,
    ) -> ImportResult:
        """Import one FEC file.

        A file the adapter cannot read at all yields an empty result
        carrying that single error.
        """
        import_id = str(uuid4())
        with LogContext.bind(import_id=import_id, company_id=company_id, exercise_id=exercise_id):
            logger.info("fec_import_started", extra={"source_filename": source_path.name})
            try:
                source = self._adapter.read_source(source_path, self._options)
            except FecError as exc:
                logger.error("fec_import_failed", extra={"error": str(exc)})
                return ImportResult(imported=0, errors=(str(exc),))
            except OSError as exc:
                message = f"Lecture du fichier impossible : {source_path.name} ({exc.strerror or exc})"
                logger.error("fec_import_failed", extra={"error": message})
                return ImportResult(imported=0, errors=(message,))
            return self._import(list(source.rows), company_id, exercise_id, source.encoding)

    def import_rows(
        self,
        rows: Iterable[tuple[int, Mapping[str, Any]]],
        company_id: str | None = None,
        exercise_id: str | None = None,
    ) -> ImportResult:
        """Import rows already read, as ``(line_number, raw_row)`` pairs."""
        with LogContext.bind(import_id=str(uuid4()), company_id=company_id, exercise_id=exercise_id):
            logger.info("fec_import_started", extra={"source_filename": None})
            return self._import(list(rows), company_id, exercise_id, None)

    def _import(
        self,
        numbered: list[tuple[int, Mapping[str, Any]]],
        company_id: str | None,
        exercise_id: str | None,
        encoding: str | None,
    ) -> ImportResult:
        errors: list[str] = []
        parsed: list[FecRow] = []
        for row_number, raw in numbered:
            try:
                parsed.append(parse_fec_row(raw, row_number))
            except FecRowError as exc:
                errors.append(str(exc))
                logger.warning(
                    "fec_row_rejected",
                    extra={"row_number": exc.row_number, "reason": exc.reason},
                )

        existing = [e.entry_number for e in self._repository.list(company_id, exercise_id)]
        grouper = FecGrouper(existing, company_id=company_id, exercise_id=exercise_id)
        grouping = grouper.group_and_validate(parsed)
        errors.extend(grouping.errors)

        stored = tuple(self._repository.create(entry) for entry in grouping.entries)
        imported = sum(len(entry.lines) for entry in stored)
        result = ImportResult(
            imported=imported,
            errors=tuple(errors),
            entries=stored,
            accounts_to_create=accounts_to_create(stored, self._chart, company_id),
            total_rows=len(numbered),
            encoding=encoding,
        )
        logger.info(
            "fec_import_completed",
            extra={
                "status": result.status.value,
                "total_rows": result.total_rows,
                "imported_rows": result.imported,
                "entries": len(stored),
                "errors": len(result.errors),
                "accounts_to_create": len(result.accounts_to_create),
            },
        )
        return result
