"""Pure FEC domain: row types, parsing rules and grouping. No I/O."""

from compta_ingestion.domain.grouper import FecGrouper, group_fec_rows
from compta_ingestion.domain.types import (
    FecGroup,
    FecRow,
    GroupingResult,
    ImportResult,
    ImportStatus,
)
from compta_ingestion.domain.validators import (
    FEC_COLUMNS,
    fix_encoding,
    format_fec_date,
    parse_fec_date,
    parse_fec_row,
    validate_fec_header,
)

__all__ = [
    "FEC_COLUMNS",
    "FecGroup",
    "FecGrouper",
    "FecRow",
    "GroupingResult",
    "ImportResult",
    "ImportStatus",
    "fix_encoding",
    "format_fec_date",
    "group_fec_rows",
    "parse_fec_date",
    "parse_fec_row",
    "validate_fec_header",
]
