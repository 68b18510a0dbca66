"""
Source adapter protocol and the DTOs it returns.

Contract:
    SourceAdapter.read_source() decodes the file once and returns every
    data row with its line number, plus the encoding that was used.
    SourceAdapter.probe() returns a quick snapshot: row count, columns,
    sample rows, and the header columns that are missing.

Architecture: compta_ingestion/adapters. File I/O only, no storage or
engine imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SourceAdapter(Protocol):
    """What the import service needs from a file reader."""

    def read_source(self, source_path: Path, options: dict[str, Any]) -> "SourceRows":
        """Numbered data rows and the encoding they were decoded with.

        Raises:
            FecError: when the file cannot be decoded or its header is
                incomplete.
            OSError: when the file cannot be opened.
        """
        ...

    def probe(self, source_path: Path, options: dict[str, Any]) -> "SourceProbe":
        """Row count, detected columns, sample rows."""
        ...


@dataclass(frozen=True)
class SourceRows:
    """Data rows of a decoded file, keyed by their line in the file."""

    rows: tuple[tuple[int, dict[str, Any]], ...]
    encoding: str | None = None

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class SourceProbe:
    """Result of probing a source file (row count, columns, first N rows)."""

    row_count: int
    columns: tuple[str, ...]
    sample_rows: tuple[dict[str, Any], ...]  # first 5 rows
    encoding: str | None = None
    detected_delimiter: str | None = None
    missing_columns: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.missing_columns
