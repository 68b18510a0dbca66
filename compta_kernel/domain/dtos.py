"""
DTOs -- Immutable bookkeeping records.

Responsibility:
    Defines the values that flow between engines, import and persistence:
    JournalLine, Entry, Account, and the ValidationError / ValidationResult
    pair used to report problems as data.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Engines accept and return these
    types; repositories store them as-is.

Invariants enforced:
    - Amounts are ``Decimal`` and never negative (coerced in __post_init__).
    - An Entry's lines are a tuple; an Entry never changes once built
      (``with_number`` / ``with_lines`` return copies).

Failure modes:
    - ValueError on a negative or unparseable debit/credit.

Not enforced here (deliberately left to EntryBalanceChecker):
    - Debit == credit.  A draft may be unbalanced; only persistence refuses it.
    - At most one of debit/credit non-zero per line.  Aggregation assumes it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Any

from compta_kernel.domain.amounts import ZERO, parse_amount


@dataclass(frozen=True, slots=True)
class JournalLine:
    """
    One debit-or-credit movement against one account.

    ``label`` is the line's own libellé (it falls back to the entry label
    in reports); ``account_label`` is the label of the account as typed or
    imported alongside the number.
    """

    account_number: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    account_label: str = ""
    label: str = ""

    def __post_init__(self) -> None:
        for name in ("debit", "credit"):
            raw = getattr(self, name)
            amount = raw if isinstance(raw, Decimal) else parse_amount(raw)
            if amount < 0:
                raise ValueError(f"{name} must be >= 0, got {amount}")
            object.__setattr__(self, name, amount)
        object.__setattr__(self, "account_number", str(self.account_number).strip())

    @property
    def net(self) -> Decimal:
        """Debit minus credit."""
        return self.debit - self.credit

    @property
    def amount(self) -> Decimal:
        return self.debit if self.debit else self.credit

    @property
    def is_active(self) -> bool:
        """An account and a non-zero amount: the line counts for the entry."""
        return bool(self.account_number) and (self.debit > 0 or self.credit > 0)


@dataclass(frozen=True, slots=True)
class Entry:
    """
    One écriture: a dated set of lines in a journal.

    Contract:
        ``pieceNumber`` (piece_number) is the user-facing pièce reference,
        ``entry_number`` the ``JOURNAL-YYYY-MM-NNNN`` number assigned on
        import or migration (EcritureNum in FEC).

    Guarantees:
        - Immutable; lines is always a tuple.
    """

    journal_code: str
    entry_date: date
    piece_number: str
    label: str
    lines: tuple[JournalLine, ...]
    company_id: str | None = None
    exercise_id: str | None = None
    entry_number: str | None = None
    entry_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def active_lines(self) -> tuple[JournalLine, ...]:
        return tuple(line for line in self.lines if line.is_active)

    def with_number(self, entry_number: str) -> Entry:
        return replace(self, entry_number=entry_number)

    def with_lines(self, lines: tuple[JournalLine, ...] | list[JournalLine]) -> Entry:
        return replace(self, lines=tuple(lines))

    def with_id(self, entry_id: str) -> Entry:
        return replace(self, entry_id=entry_id)


@dataclass(frozen=True, slots=True)
class Account:
    """
    A ledger account of a company.

    ``vat_rate`` and the default counterpart accounts are optional settings
    used when the account is picked during entry; ``label`` may carry a rate
    in text form ("TVA déductible 5,5 %") which VAT detection reads first.
    """

    account_number: str
    label: str
    company_id: str | None = None
    vat_rate: Decimal | None = None
    default_expense_account: str | None = None
    default_vat_account: str | None = None
    account_type: str | None = None


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation error.

    Carries a machine-readable code, the message shown to the user, an
    optional field path and optional structured details (totals, row
    numbers).  It is the error representation; it is never raised.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validation.

    ``bool(result)`` is ``result.is_valid``; errors is always a tuple.
    """

    is_valid: bool
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(is_valid=True, errors=())

    @classmethod
    def failure(cls, *errors: ValidationError) -> ValidationResult:
        return cls(is_valid=False, errors=tuple(errors))

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(e.message for e in self.errors)

    def __bool__(self) -> bool:
        return self.is_valid
