"""
Sequence numbering for pieces, entries and invoices.

Responsibility:
    Derive the next identifier of a scope from the identifiers already
    issued in it: max numeric suffix + 1, zero-padded.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Callers load the
    existing identifiers (repository, import batch) and pass them in.

Scopes:
    - Pièce numbers ("0001"): scoped per company and exercise by the
      caller; the identifier itself carries no prefix, so the scope key
      is empty and every given identifier counts.
    - Entry numbers ("AC-2025-01-0003"): scope ``JOURNAL-YYYY-MM``
      embedded in the identifier; only identifiers starting with
      ``"{scope}-"`` count.
    - Invoice numbers ("F-001"): 3-digit padding, unlike the 4 digits of
      pieces and entries.  Kept as found in the existing data; both widths
      are issued side by side.

Failure modes:
    - InvalidScopeError for an empty journal code.
    - Identifiers without any digit are ignored.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from compta_kernel.exceptions import InvalidScopeError
from compta_kernel.logging_config import get_logger

logger = get_logger("engines.sequence")

PIECE_WIDTH = 4
ENTRY_WIDTH = 4
INVOICE_WIDTH = 3
INVOICE_PREFIX = "F"
BANK_JOURNAL = "BQ"

_NON_DIGITS = re.compile(r"\D")


def numeric_suffix(identifier: str, scope_key: str = "") -> int | None:
    """Number carried by ``identifier`` within ``scope_key``, None if out of scope."""
    if scope_key:
        prefix = f"{scope_key}-"
        if not identifier.startswith(prefix):
            return None
        identifier = identifier[len(prefix):]
    digits = _NON_DIGITS.sub("", identifier)
    return int(digits) if digits else None


def max_in_scope(scope_key: str, existing: Iterable[str | None]) -> int:
    values = (numeric_suffix(i, scope_key) for i in existing if i)
    return max((v for v in values if v is not None), default=0)


def format_number(scope_key: str, value: int, width: int = PIECE_WIDTH) -> str:
    body = f"{value:0{width}d}"
    return f"{scope_key}-{body}" if scope_key else body


def next_number(
    scope_key: str,
    existing: Iterable[str | None],
    width: int = PIECE_WIDTH,
) -> str:
    """Next identifier of the scope.

    >>> next_number("", [])
    '0001'
    >>> next_number("", ["0007", "0003"])
    '0008'
    >>> next_number("AC-2025-01", ["AC-2025-01-0001", "AC-2025-01-0002"])
    'AC-2025-01-0003'
    """
    return format_number(scope_key, max_in_scope(scope_key, existing) + 1, width)


def entry_scope(journal_code: str, entry_date: date) -> str:
    """``"AC"``, 2025-01-15 -> ``"AC-2025-01"``."""
    code = (journal_code or "").strip()
    if not code:
        raise InvalidScopeError(code, "journal code is empty")
    return f"{code}-{entry_date.year:04d}-{entry_date.month:02d}"


def next_entry_number(
    journal_code: str,
    entry_date: date,
    existing: Iterable[str | None],
) -> str:
    return next_number(entry_scope(journal_code, entry_date), existing, ENTRY_WIDTH)


def next_invoice_number(existing: Iterable[str | None]) -> str:
    """``F-001`` style invoice number (3 digits)."""
    return next_number(INVOICE_PREFIX, existing, INVOICE_WIDTH)


class SequenceNumberer:
    """
    Issues consecutive numbers for several scopes in one pass.

    Each scope's counter is seeded from the maximum found in ``existing``
    the first time the scope is used, then incremented in memory.  Used
    when a batch (FEC import, legacy migration) numbers many entries
    before any of them is stored.
    """

    def __init__(self, existing: Iterable[str | None] = (), width: int = ENTRY_WIDTH):
        self._existing = tuple(i for i in existing if i)
        self._counters: dict[str, int] = {}
        self.width = width

    def next(self, scope_key: str) -> str:
        if scope_key not in self._counters:
            self._counters[scope_key] = max_in_scope(scope_key, self._existing)
        self._counters[scope_key] += 1
        return format_number(scope_key, self._counters[scope_key], self.width)

    def next_entry(self, journal_code: str, entry_date: date) -> str:
        return self.next(entry_scope(journal_code, entry_date))


@dataclass(frozen=True, slots=True)
class LegacyLine:
    """A stored line without entry number (before numbering existed)."""

    line_id: str
    journal_code: str
    entry_date: date
    piece_ref: str = ""


def legacy_group_key(line: LegacyLine) -> str:
    """Bank lines are grouped per month, other journals per date and pièce."""
    journal = line.journal_code or "XX"
    if journal == BANK_JOURNAL:
        return f"{journal}-{line.entry_date.year:04d}-{line.entry_date.month:02d}"
    return f"{journal}-{line.entry_date.isoformat()}-{line.piece_ref}"


def number_legacy_lines(
    lines: Iterable[LegacyLine],
    existing: Iterable[str | None] = (),
) -> dict[str, str]:
    """Assign ``JOURNAL-YYYY-MM-NNNN`` numbers to unnumbered legacy lines.

    Groups are numbered in order of first appearance; counters continue
    after the numbers already issued in each journal/month.  Returns
    ``{line_id: entry_number}``.
    """
    groups: dict[str, list[LegacyLine]] = {}
    for line in lines:
        groups.setdefault(legacy_group_key(line), []).append(line)

    numberer = SequenceNumberer(existing)
    assigned: dict[str, str] = {}
    for key, members in groups.items():
        first = members[0]
        number = numberer.next_entry(first.journal_code or "XX", first.entry_date)
        for member in members:
            assigned[member.line_id] = number
        logger.debug("legacy_group_numbered", extra={"group_key": key, "entry_number": number, "lines": len(members)})

    logger.info("legacy_numbering_completed", extra={"groups": len(groups), "lines": len(assigned)})
    return assigned
