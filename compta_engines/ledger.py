"""
Ledger aggregator -- grand livre, balance, balance progressive.

Responsibility:
    Fold a flat list of entries into per-account views:
    - general ledger: movements in date order with the running balance
      (solde) after each movement;
    - trial balance: per-account debit / credit totals split into a
      debit or credit balance;
    - progressive balance: cumulative balance per account at the end of
      every month of a period.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Recomputed on every
    call; nothing is cached.

Invariants enforced:
    - Entries are sorted by date with a stable sort: entries sharing a
      date keep their input order, and lines keep their order in the entry.
    - solde_after = solde_before + debit - credit; an account's final
      balance equals Σdebit - Σcredit over exactly its lines.
    - Date bounds are inclusive.  Account filters (classes, from / to
      range) compare account numbers as strings, so "9" sorts after "10".
    - Accounts are listed in string order of their number.

Failure modes:
    - None.  Unknown accounts are labelled "Compte inconnu".
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from compta_kernel.domain.accounts import (
    UNKNOWN_ACCOUNT_LABEL,
    AccountNumber,
    ChartOfAccounts,
)
from compta_kernel.domain.amounts import ZERO
from compta_kernel.domain.dtos import Entry, JournalLine
from compta_kernel.logging_config import get_logger

from compta_engines.tracer import traced_engine

logger = get_logger("engines.ledger")


# =============================================================================
# Filters
# =============================================================================


@dataclass(frozen=True)
class LedgerFilter:
    """Date range, classes and account range applied to the reports."""

    start: date | None = None
    end: date | None = None
    account_from: str | None = None
    account_to: str | None = None
    classes: tuple[str, ...] = ()

    def matches_date(self, entry_date: date) -> bool:
        if self.start is not None and entry_date < self.start:
            return False
        if self.end is not None and entry_date > self.end:
            return False
        return True

    def matches_account(self, account_number: str) -> bool:
        acc = AccountNumber(account_number)
        if self.classes and acc.classe not in self.classes:
            return False
        return acc.in_range(self.account_from, self.account_to)


def sort_entries(entries: Iterable[Entry]) -> list[Entry]:
    """Ascending by date; ties keep input order (``sorted`` is stable)."""
    return sorted(entries, key=lambda e: e.entry_date)


def _resolve_label(
    account_number: str,
    line: JournalLine | None,
    chart: ChartOfAccounts | None,
) -> str:
    if chart is not None:
        label = chart.label_for(account_number)
        if label:
            return label
    if line is not None and line.account_label:
        return line.account_label
    return UNKNOWN_ACCOUNT_LABEL


# =============================================================================
# General ledger (grand livre)
# =============================================================================


@dataclass(frozen=True, slots=True)
class Movement:
    """One line of the grand livre with the balance after it."""

    entry_date: date
    journal_code: str
    piece_number: str
    label: str
    debit: Decimal
    credit: Decimal
    solde_after: Decimal
    entry_number: str | None = None


@dataclass(frozen=True)
class AccountLedger:
    """Movements of one account, in chronological order."""

    account_number: str
    account_label: str
    movements: tuple[Movement, ...]
    final_balance: Decimal

    @property
    def total_debit(self) -> Decimal:
        return sum((m.debit for m in self.movements), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((m.credit for m in self.movements), ZERO)


def aggregate(
    entries: Iterable[Entry],
    ledger_filter: LedgerFilter | None = None,
    chart: ChartOfAccounts | None = None,
) -> dict[str, AccountLedger]:
    """Fold entries into per-account movements with running balances.

    Accounts with no line in the date range are absent from the result.
    """
    flt = ledger_filter or LedgerFilter()
    movements: dict[str, list[Movement]] = {}
    soldes: dict[str, Decimal] = {}
    first_line: dict[str, JournalLine] = {}

    for entry in sort_entries(entries):
        if not flt.matches_date(entry.entry_date):
            continue
        for line in entry.lines:
            number = line.account_number
            solde = soldes.get(number, ZERO) + line.debit - line.credit
            soldes[number] = solde
            first_line.setdefault(number, line)
            movements.setdefault(number, []).append(
                Movement(
                    entry_date=entry.entry_date,
                    journal_code=entry.journal_code,
                    piece_number=entry.piece_number,
                    label=line.label or entry.label,
                    debit=line.debit,
                    credit=line.credit,
                    solde_after=solde,
                    entry_number=entry.entry_number,
                )
            )

    result: dict[str, AccountLedger] = {}
    for number in sorted(movements):
        if not flt.matches_account(number):
            continue
        result[number] = AccountLedger(
            account_number=number,
            account_label=_resolve_label(number, first_line.get(number), chart),
            movements=tuple(movements[number]),
            final_balance=soldes[number],
        )
    return result


@traced_engine(
    "ledger", "1.0",
    fingerprint_fields=("start", "end", "account_from", "account_to", "classes"),
)
def general_ledger(
    entries: Iterable[Entry],
    start: date | None = None,
    end: date | None = None,
    account_from: str | None = None,
    account_to: str | None = None,
    classes: Sequence[str] = (),
    chart: ChartOfAccounts | None = None,
) -> list[AccountLedger]:
    flt = LedgerFilter(start, end, account_from, account_to, tuple(classes))
    ledgers = list(aggregate(entries, flt, chart).values())
    logger.info("general_ledger_computed", extra={"accounts": len(ledgers)})
    return ledgers


# =============================================================================
# Trial balance (balance)
# =============================================================================


@dataclass(frozen=True, slots=True)
class TrialBalanceRow:
    account_number: str
    account_label: str
    debit_total: Decimal
    credit_total: Decimal

    @property
    def net(self) -> Decimal:
        return self.debit_total - self.credit_total

    @property
    def debit_balance(self) -> Decimal:
        return max(self.net, ZERO)

    @property
    def credit_balance(self) -> Decimal:
        return max(-self.net, ZERO)


@dataclass(frozen=True)
class TrialBalance:
    rows: tuple[TrialBalanceRow, ...]

    @property
    def total_debit(self) -> Decimal:
        return sum((r.debit_total for r in self.rows), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((r.credit_total for r in self.rows), ZERO)

    @property
    def total_debit_balance(self) -> Decimal:
        return sum((r.debit_balance for r in self.rows), ZERO)

    @property
    def total_credit_balance(self) -> Decimal:
        return sum((r.credit_balance for r in self.rows), ZERO)

    def row(self, account_number: str) -> TrialBalanceRow | None:
        for r in self.rows:
            if r.account_number == account_number:
                return r
        return None


@traced_engine(
    "ledger", "1.0",
    fingerprint_fields=("start", "end", "account_from", "account_to", "classes", "include_empty"),
)
def trial_balance(
    entries: Iterable[Entry],
    start: date | None = None,
    end: date | None = None,
    account_from: str | None = None,
    account_to: str | None = None,
    classes: Sequence[str] = (),
    chart: ChartOfAccounts | None = None,
    include_empty: bool = False,
) -> TrialBalance:
    """Per-account totals over the date range.

    Accounts whose debit and credit totals are both zero are left out,
    unless ``include_empty`` is set: then every account of ``chart``
    matching the account filters is listed, with zero totals if unused.
    """
    flt = LedgerFilter(start, end, account_from, account_to, tuple(classes))
    debits: dict[str, Decimal] = {}
    credits: dict[str, Decimal] = {}
    first_line: dict[str, JournalLine] = {}

    for entry in entries:
        if not flt.matches_date(entry.entry_date):
            continue
        for line in entry.lines:
            number = line.account_number
            debits[number] = debits.get(number, ZERO) + line.debit
            credits[number] = credits.get(number, ZERO) + line.credit
            first_line.setdefault(number, line)

    numbers = set(debits)
    if include_empty and chart is not None:
        numbers.update(a.account_number for a in chart.accounts)

    rows: list[TrialBalanceRow] = []
    for number in sorted(numbers):
        if not flt.matches_account(number):
            continue
        debit_total = debits.get(number, ZERO)
        credit_total = credits.get(number, ZERO)
        if not include_empty and debit_total == 0 and credit_total == 0:
            continue
        rows.append(
            TrialBalanceRow(
                account_number=number,
                account_label=_resolve_label(number, first_line.get(number), chart),
                debit_total=debit_total,
                credit_total=credit_total,
            )
        )

    result = TrialBalance(rows=tuple(rows))
    logger.info(
        "trial_balance_computed",
        extra={
            "accounts": len(rows),
            "total_debit": str(result.total_debit),
            "total_credit": str(result.total_credit),
        },
    )
    return result


# =============================================================================
# Progressive balance (balance progressive)
# =============================================================================


@dataclass(frozen=True, slots=True)
class Period:
    """One calendar month; ``label`` is "MM/YYYY"."""

    year: int
    month: int

    @property
    def label(self) -> str:
        return f"{self.month:02d}/{self.year:04d}"

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        if self.month == 12:
            return date(self.year, 12, 31)
        return date.fromordinal(date(self.year, self.month + 1, 1).toordinal() - 1)


def month_periods(start: date, end: date) -> tuple[Period, ...]:
    """Months from ``start``'s month to ``end``'s month, both included."""
    periods: list[Period] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        periods.append(Period(year, month))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return tuple(periods)


@dataclass(frozen=True, slots=True)
class ProgressiveRow:
    account_number: str
    account_label: str
    balances: tuple[Decimal, ...]

    @property
    def total(self) -> Decimal:
        """Balance at the end of the last period."""
        return self.balances[-1] if self.balances else ZERO


@dataclass(frozen=True)
class ProgressiveBalance:
    periods: tuple[Period, ...]
    rows: tuple[ProgressiveRow, ...]

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(p.label for p in self.periods)


@traced_engine(
    "ledger", "1.0",
    fingerprint_fields=("start", "end", "account_from", "account_to", "classes", "include_empty"),
)
def progressive_balance(
    entries: Iterable[Entry],
    start: date | None = None,
    end: date | None = None,
    account_from: str | None = None,
    account_to: str | None = None,
    classes: Sequence[str] = (),
    chart: ChartOfAccounts | None = None,
    include_empty: bool = False,
) -> ProgressiveBalance:
    """Cumulative balance (debit - credit) per account at each month end.

    Without explicit bounds the months span the first to the last entry
    date.  Accounts ending at zero are left out unless ``include_empty``.
    """
    flt = LedgerFilter(start, end, account_from, account_to, tuple(classes))
    selected = [e for e in entries if flt.matches_date(e.entry_date)]
    if not selected and (start is None or end is None):
        return ProgressiveBalance(periods=(), rows=())

    first = start or min(e.entry_date for e in selected)
    last = end or max(e.entry_date for e in selected)
    periods = month_periods(first, last)
    index = {(p.year, p.month): i for i, p in enumerate(periods)}

    balances: dict[str, list[Decimal]] = {}
    first_line: dict[str, JournalLine] = {}
    for entry in selected:
        position = index[(entry.entry_date.year, entry.entry_date.month)]
        for line in entry.lines:
            number = line.account_number
            row = balances.setdefault(number, [ZERO] * len(periods))
            first_line.setdefault(number, line)
            movement = line.debit - line.credit
            for i in range(position, len(periods)):
                row[i] += movement

    numbers = set(balances)
    if include_empty and chart is not None:
        numbers.update(a.account_number for a in chart.accounts)

    rows: list[ProgressiveRow] = []
    for number in sorted(numbers):
        if not flt.matches_account(number):
            continue
        values = tuple(balances.get(number, [ZERO] * len(periods)))
        row = ProgressiveRow(
            account_number=number,
            account_label=_resolve_label(number, first_line.get(number), chart),
            balances=values,
        )
        if not include_empty and row.total == 0:
            continue
        rows.append(row)

    return ProgressiveBalance(periods=periods, rows=tuple(rows))
