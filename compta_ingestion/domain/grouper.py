"""
FEC grouper -- from flat FEC rows to entries.

Responsibility:
    Gather rows sharing (JournalCode, EcritureDate, pièce) into one entry
    and give each entry its ``JOURNAL-YYYY-MM-NNNN`` number.

Invariants enforced:
    - Rows with the same key land in one group, in file order; rows that
      differ in any key field land in different groups.
    - Groups are listed in order of first appearance in the file.
    - The pièce is PieceRef, or EcritureNum when PieceRef is empty.
    - Dates are ISO dates before grouping (FecRow.entry_date).
    - Numbers continue per journal and month after the numbers already
      issued; a group refused by validation consumes no number.

Failure modes:
    - ``group`` does not validate; ``group_and_validate`` reports every
      group failing the balance gate as an error string and leaves it out.
"""

from __future__ import annotations

from collections.abc import Iterable

from compta_engines.balance import check_entry
from compta_engines.sequence import SequenceNumberer
from compta_kernel.domain.dtos import Entry
from compta_kernel.logging_config import get_logger

from compta_ingestion.domain.types import FecGroup, FecRow, GroupingResult

logger = get_logger("ingestion.grouper")


def group_fec_rows(rows: Iterable[FecRow]) -> list[FecGroup]:
    groups: dict[tuple[str, str, str], list[FecRow]] = {}
    for row in rows:
        groups.setdefault(row.group_key, []).append(row)
    return [FecGroup(key=key, rows=tuple(members)) for key, members in groups.items()]


class FecGrouper:
    """
    Groups and numbers FEC rows for one company / exercise.

    Contract:
        ``existing_numbers`` are the entry numbers already stored; new
        numbers continue after them in each journal/month scope.
    """

    def __init__(
        self,
        existing_numbers: Iterable[str | None] = (),
        company_id: str | None = None,
        exercise_id: str | None = None,
    ):
        self._numberer = SequenceNumberer(existing_numbers)
        self.company_id = company_id
        self.exercise_id = exercise_id

    def _build(self, group: FecGroup) -> Entry:
        number = self._numberer.next_entry(group.journal_code, group.entry_date)
        return group.to_entry(number, self.company_id, self.exercise_id)

    def group(self, rows: Iterable[FecRow]) -> list[Entry]:
        """Group and number every group, without validation."""
        return [self._build(g) for g in group_fec_rows(rows)]

    def group_and_validate(self, rows: Iterable[FecRow]) -> GroupingResult:
        """Group, run each group through the balance gate, number the valid ones."""
        entries: list[Entry] = []
        errors: list[str] = []
        rejected: list[FecGroup] = []
        for group in group_fec_rows(rows):
            result = check_entry(group.lines)
            if not result.is_valid:
                rejected.append(group)
                for message in result.messages:
                    errors.append(f"{group.describe()} : {message}")
                logger.warning(
                    "fec_group_rejected",
                    extra={
                        "journal_code": group.journal_code,
                        "entry_date": group.key[1],
                        "piece": group.piece_key,
                        "codes": [e.code for e in result.errors],
                    },
                )
                continue
            entries.append(self._build(group))
        return GroupingResult(
            entries=tuple(entries),
            errors=tuple(errors),
            rejected=tuple(rejected),
        )
