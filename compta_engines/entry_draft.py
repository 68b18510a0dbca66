"""
Entry draft -- per-entry editing session.

Responsibility:
    Hold the lines of the entry being typed together with the session
    state VAT auto-completion depends on: the set of lines the user has
    edited by hand and the last VAT rate read from a label (sticky rate).
    Queue finished pieces until they are saved.

Architecture position:
    Engines -- stateful but I/O free.  One EntryDraft per entry session;
    nothing here is module-level, so two drafts never share a sticky rate.

Invariants enforced:
    - Lines are addressed by a stable line id; inserting a line never
      shifts another line's identity or its edited flag.
    - The edited set and the sticky rate are cleared only by
      ``start_new_entry``.
    - A VAT-generated principal line never overwrites a line the user
      edited (debit or credit typed by hand).
    - A draft always keeps at least two lines.

Failure modes:
    - LineNotFoundError on an unknown line id.
    - MinimumLinesError when removing below two lines.
    - ``to_entry`` raises InsufficientLinesError / UnbalancedEntryError.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from compta_kernel.domain.accounts import ChartOfAccounts, VatDirection
from compta_kernel.domain.amounts import ZERO, parse_amount, round_amount
from compta_kernel.domain.dtos import Account, Entry, JournalLine
from compta_kernel.exceptions import LineNotFoundError, MinimumLinesError
from compta_kernel.logging_config import get_logger

from compta_engines.balance import BalanceTotals, require_valid, totals
from compta_engines.sequence import next_number
from compta_engines.vat import VatSplit, VatSplitter

logger = get_logger("engines.entry_draft")

MINIMUM_DRAFT_LINES = 2


@dataclass(frozen=True, slots=True)
class DraftLine:
    """One line of the draft; ``label`` is the line libellé."""

    line_id: int
    account_number: str = ""
    account_label: str = ""
    label: str = ""
    debit: Decimal = ZERO
    credit: Decimal = ZERO

    @property
    def is_active(self) -> bool:
        return bool(self.account_number) and (self.debit > 0 or self.credit > 0)

    def to_journal_line(self) -> JournalLine:
        return JournalLine(
            account_number=self.account_number,
            account_label=self.account_label,
            label=self.label,
            debit=self.debit,
            credit=self.credit,
        )


class EntryDraft:
    """
    Editing session for one entry at a time.

    Contract:
        ``set_account`` on a 4456 / 4457 account (not on the first line)
        splits the TTC found on the preceding line: VAT goes on the VAT
        line, HT on the next line when that line is a matching principal
        account (6xx for purchases, 7xx for sales) the user has not
        edited; otherwise a principal line is inserted after the VAT line
        unless the next line was edited.

    Guarantees:
        - ``edited`` and ``last_vat_rate`` survive every edit of the
          current entry and are reset by ``start_new_entry`` only.
    """

    def __init__(
        self,
        journal_code: str,
        entry_date: date,
        piece_number: str = "0001",
        label: str = "",
        *,
        chart: ChartOfAccounts | None = None,
        splitter: VatSplitter | None = None,
        company_id: str | None = None,
        exercise_id: str | None = None,
    ):
        self.journal_code = journal_code
        self.entry_date = entry_date
        self.piece_number = piece_number
        self.label = label
        self.company_id = company_id
        self.exercise_id = exercise_id
        self.chart = chart or ChartOfAccounts()
        self.splitter = splitter or VatSplitter()

        self._next_id = 0
        self._lines: list[DraftLine] = []
        self.edited: set[int] = set()
        self.last_vat_rate: Decimal | None = None
        self.pending: list[Entry] = []
        self._reset_lines()

    # ------------------------------------------------------------------
    # Line access
    # ------------------------------------------------------------------

    @property
    def lines(self) -> tuple[DraftLine, ...]:
        return tuple(self._lines)

    @property
    def line_ids(self) -> tuple[int, ...]:
        return tuple(line.line_id for line in self._lines)

    def line(self, line_id: int) -> DraftLine:
        return self._lines[self._index(line_id)]

    def _index(self, line_id: int) -> int:
        for i, line in enumerate(self._lines):
            if line.line_id == line_id:
                return i
        raise LineNotFoundError(line_id)

    def _new_line(self, **values: object) -> DraftLine:
        self._next_id += 1
        return DraftLine(line_id=self._next_id, **values)  # type: ignore[arg-type]

    def _reset_lines(self) -> None:
        self._lines = [self._new_line(), self._new_line()]

    def _replace(self, index: int, **changes: object) -> DraftLine:
        updated = replace(self._lines[index], **changes)
        self._lines[index] = updated
        return updated

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def add_line(self) -> DraftLine:
        """Append a blank line labelled like the first line (or the entry)."""
        first_label = self._lines[0].label if self._lines else ""
        line = self._new_line(label=first_label or self.label)
        self._lines.append(line)
        return line

    def remove_line(self, line_id: int) -> None:
        index = self._index(line_id)
        if len(self._lines) <= MINIMUM_DRAFT_LINES:
            raise MinimumLinesError(MINIMUM_DRAFT_LINES)
        del self._lines[index]
        self.edited.discard(line_id)

    def set_label(self, line_id: int, label: str) -> None:
        """Set a line libellé; the first line's libellé becomes the entry's."""
        index = self._index(line_id)
        self._replace(index, label=label)
        if index == 0 and label:
            self.label = label
            for i in range(1, len(self._lines)):
                if not self._lines[i].label:
                    self._replace(i, label=label)

    def set_amount(
        self,
        line_id: int,
        debit: Decimal | str | int | None = None,
        credit: Decimal | str | int | None = None,
    ) -> DraftLine:
        """Type an amount by hand; the line is marked edited."""
        index = self._index(line_id)
        changes: dict[str, object] = {}
        if debit is not None:
            changes["debit"] = self._amount(debit)
        if credit is not None:
            changes["credit"] = self._amount(credit)
        self.edited.add(line_id)
        return self._replace(index, **changes)

    @staticmethod
    def _amount(value: Decimal | str | int) -> Decimal:
        amount = parse_amount(value)
        if amount < 0:
            raise ValueError(f"Amounts must be >= 0, got {amount}")
        return amount

    def set_account(
        self,
        line_id: int,
        account_number: str,
        account_label: str | None = None,
    ) -> VatSplit | None:
        """Set the account of a line; applies VAT auto-completion if relevant.

        Returns the split that was applied, if any.
        """
        index = self._index(line_id)
        number = account_number.strip()
        account = self.chart.get(number)
        if account_label is None:
            account_label = self.chart.label_for(number, default="") or ""
        self._replace(index, account_number=number, account_label=account_label)

        if index == 0 and not self._lines[0].label and not self.label and account_label:
            self.set_label(line_id, account_label)

        return self._apply_vat(index, number, account, account_label)

    def _apply_vat(
        self,
        index: int,
        number: str,
        account: Account | None,
        account_label: str,
    ) -> VatSplit | None:
        if index <= 0 or not self.splitter.triggers_split(number):
            return None
        direction = self.splitter.direction(number)
        if direction is None:
            return None

        base = self._lines[index - 1]
        ttc = base.debit if base.debit > 0 else base.credit
        if ttc <= 0:
            return None

        detection = self.splitter.detect_rate(
            account_label=account_label or None,
            line_label=self._lines[index].label,
            entry_label=self.label,
            last_rate=self.last_vat_rate,
            account_rate=account.vat_rate if account is not None else None,
        )
        if detection.source.is_textual:
            self.last_vat_rate = detection.rate
        split = self.splitter.split(ttc, detection.rate)

        if direction is VatDirection.DEDUCTIBLE:
            self._replace(index, debit=split.vat, credit=ZERO)
        else:
            self._replace(index, debit=ZERO, credit=split.vat)

        self._fill_principal(index, direction, split)
        logger.info(
            "vat_applied",
            extra={
                "account_number": number,
                "rate": str(detection.rate),
                "rate_source": detection.source.value,
                "ttc": str(split.ttc),
                "vat": str(split.vat),
                "ht": str(split.ht),
            },
        )
        return split

    def _fill_principal(self, index: int, direction: VatDirection, split: VatSplit) -> None:
        entry_label = self._lines[0].label or self.label
        amounts = (
            {"debit": split.ht, "credit": ZERO}
            if direction is VatDirection.DEDUCTIBLE
            else {"debit": ZERO, "credit": split.ht}
        )
        next_index = index + 1
        nxt = self._lines[next_index] if next_index < len(self._lines) else None
        edited_next = nxt is not None and nxt.line_id in self.edited
        if edited_next:
            return

        expected = self.splitter.principal_classe(direction)
        if nxt is not None and nxt.account_number.startswith(expected):
            self._replace(
                next_index,
                label=nxt.label or entry_label,
                **amounts,
            )
            return

        account_number = self.splitter.principal_account(direction)
        principal = self._new_line(
            account_number=account_number,
            account_label=self.chart.label_for(account_number, default="") or "",
            label=entry_label,
            **amounts,
        )
        self._lines.insert(next_index, principal)

    def solder(self, line_id: int) -> DraftLine | None:
        """Complete a line so the draft balances (the "=" shortcut).

        The line takes the amount the other lines need: on the credit side
        when their debits exceed their credits, on the debit side
        otherwise.  The line's previous amounts are replaced.  Nothing
        happens when the draft already balances.
        """
        index = self._index(line_id)
        if self.is_balanced():
            return None
        others = totals(line for i, line in enumerate(self._lines) if i != index)
        needed = round_amount(others.delta)
        self.edited.add(line_id)
        if needed > 0:
            return self._replace(index, debit=ZERO, credit=needed)
        return self._replace(index, debit=abs(needed), credit=ZERO)

    # ------------------------------------------------------------------
    # State queries and transitions
    # ------------------------------------------------------------------

    def totals(self) -> BalanceTotals:
        return totals(self._lines)

    def is_balanced(self) -> bool:
        return self.totals().is_balanced

    def can_close(self) -> bool:
        """Active lines balance with activity: Enter may move on to the next piece.

        Lines without an account are left out, as in ``to_entry``.
        """
        return totals(self.active_lines()).is_balanced_nonzero

    def active_lines(self) -> tuple[DraftLine, ...]:
        return tuple(line for line in self._lines if line.is_active)

    def to_entry(self) -> Entry:
        """Validated entry made of the active lines of the draft."""
        active = self.active_lines()
        require_valid(active)
        return Entry(
            journal_code=self.journal_code,
            entry_date=self.entry_date,
            piece_number=self.piece_number,
            label=self.label,
            lines=tuple(line.to_journal_line() for line in active),
            company_id=self.company_id,
            exercise_id=self.exercise_id,
        )

    def start_new_entry(self, piece_number: str | None = None) -> Entry | None:
        """Close the current piece and reset the session (Enter key).

        Only a draft whose active lines balance with activity can be
        closed; otherwise nothing changes and None is returned.  The piece
        is queued when it has at least two active lines.  The piece number
        moves to ``piece_number`` or to the next 4-digit number.
        """
        if not self.can_close():
            return None
        queued: Entry | None = None
        if len(self.active_lines()) >= MINIMUM_DRAFT_LINES:
            queued = self.to_entry()
            self.pending.append(queued)
            logger.info(
                "entry_queued",
                extra={"piece_number": self.piece_number, "lines": len(queued.lines)},
            )

        self.piece_number = piece_number or next_number("", [self.piece_number])
        self.label = ""
        self._reset_lines()
        self.edited.clear()
        self.last_vat_rate = None
        return queued

    def drain_pending(self) -> list[Entry]:
        """Hand the queued pieces to the caller and empty the queue."""
        pending, self.pending = self.pending, []
        return pending


def propose_account(
    account_number: str,
    label: str,
    chart: ChartOfAccounts,
    company_id: str | None = None,
    vat_rate_percent: str = "20",
) -> Account | None:
    """Account to create for a number typed during entry, or None if known.

    Numbers shorter than three characters are still being typed.  A VAT
    account gets its rate appended to the label ("TVA achats 20%") so that
    rate detection finds it later.
    """
    number = account_number.strip()
    if len(number) < 3 or chart.is_known(number) or chart.standard_labels.get(number):
        return None
    final_label = label.strip()
    vat_rate: Decimal | None = None
    if number.startswith(("4456", "4457")):
        final_label = f"{final_label} {vat_rate_percent}%".strip()
        vat_rate = parse_amount(vat_rate_percent) / Decimal(100)
    return Account(
        account_number=number,
        label=final_label,
        company_id=company_id,
        vat_rate=vat_rate,
    )
