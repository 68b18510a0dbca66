"""
FEC source adapter.

Reads a Fichier des Écritures Comptables: tab-separated text, one header
row, dates YYYYMMDD, French decimals.  French accounting software writes
these files in Windows-1252 as often as in UTF-8, so the file is decoded
with the first encoding of the list that accepts every byte
(``utf-8-sig`` strips a BOM, ``cp1252`` is the fallback).

Options:
    encodings: tuple of encodings to try, in order.
    delimiter: field separator (default tab).
    required_columns: header columns that must be present.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Any, Iterator

from compta_kernel.exceptions import FecError, FecHeaderError

from compta_ingestion.adapters.base import SourceProbe, SourceRows
from compta_ingestion.domain.validators import validate_fec_header

DEFAULT_ENCODINGS = ("utf-8-sig", "cp1252")
REQUIRED_COLUMNS = (
    "JournalCode",
    "JournalLib",
    "EcritureNum",
    "EcritureDate",
    "CompteNum",
    "CompteLib",
    "Debit",
    "Credit",
)


def detect_encoding(data: bytes, encodings: tuple[str, ...] = DEFAULT_ENCODINGS) -> str:
    """First encoding able to decode ``data``."""
    for encoding in encodings:
        try:
            data.decode(encoding)
        except UnicodeDecodeError:
            continue
        return encoding
    raise FecError(f"Encodage du fichier non reconnu (essayés : {', '.join(encodings)})")


def _clean_header(fieldnames: list[str] | None) -> list[str]:
    return [name.strip().lstrip("\ufeff") for name in (fieldnames or [])]


class FecFileAdapter:
    """Read FEC files as one dict per data row."""

    def _open_text(self, source_path: Path, options: dict[str, Any]) -> tuple[str, str]:
        encodings = tuple(options.get("encodings", DEFAULT_ENCODINGS))
        data = source_path.read_bytes()
        encoding = detect_encoding(data, encodings)
        return data.decode(encoding), encoding

    def _reader(self, text: str, options: dict[str, Any]) -> csv.DictReader:
        delimiter = options.get("delimiter", "\t")
        reader = csv.DictReader(
            io.StringIO(text, newline=""),
            delimiter=delimiter,
            quoting=csv.QUOTE_NONE,
            restval="",
        )
        reader.fieldnames = _clean_header(reader.fieldnames)
        return reader

    def _missing_columns(self, columns: tuple[str, ...], options: dict[str, Any]) -> tuple[str, ...]:
        required = tuple(options.get("required_columns", REQUIRED_COLUMNS))
        return tuple(error.field for error in validate_fec_header(columns, required) if error.field)

    def _rows(self, text: str, options: dict[str, Any]) -> Iterator[tuple[int, dict[str, Any]]]:
        reader = self._reader(text, options)
        missing = self._missing_columns(tuple(reader.fieldnames or ()), options)
        if missing:
            raise FecHeaderError(missing)
        for row in reader:
            row.pop(None, None)  # type: ignore[call-overload]
            if not any((v or "").strip() for v in row.values()):
                continue
            yield reader.line_num, row

    def read_source(self, source_path: Path, options: dict[str, Any]) -> SourceRows:
        """Decode the file once; every data row with its line number.

        Raises:
            FecError: unknown encoding.
            FecHeaderError: when required columns are missing.
        """
        text, encoding = self._open_text(source_path, options)
        return SourceRows(rows=tuple(self._rows(text, options)), encoding=encoding)

    def read_numbered(
        self,
        source_path: Path,
        options: dict[str, Any],
    ) -> Iterator[tuple[int, dict[str, Any]]]:
        """Yield ``(line_number, row)``; line numbers count the header as 1.

        Raises:
            FecHeaderError: when required columns are missing.
        """
        text, _ = self._open_text(source_path, options)
        yield from self._rows(text, options)

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        for _, row in self.read_numbered(source_path, options):
            yield row

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        text, encoding = self._open_text(source_path, options)
        reader = self._reader(text, options)
        columns = tuple(reader.fieldnames or ())
        sample: list[dict[str, Any]] = []
        count = 0
        for row in reader:
            row.pop(None, None)  # type: ignore[call-overload]
            if not any((v or "").strip() for v in row.values()):
                continue
            count += 1
            if len(sample) < 5:
                sample.append(dict(row))
        return SourceProbe(
            row_count=count,
            columns=columns,
            sample_rows=tuple(sample),
            encoding=encoding,
            detected_delimiter=options.get("delimiter", "\t"),
            missing_columns=self._missing_columns(columns, options),
        )
