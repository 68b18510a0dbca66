"""Source adapters for accounting files (file I/O only, no storage)."""

from compta_ingestion.adapters.base import SourceAdapter, SourceProbe, SourceRows
from compta_ingestion.adapters.fec_adapter import FecFileAdapter

__all__ = [
    "SourceAdapter",
    "SourceProbe",
    "SourceRows",
    "FecFileAdapter",
]
