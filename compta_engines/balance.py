"""
Entry balance checker.

Responsibility:
    Decide whether a set of lines is balanced (the double-entry invariant)
    and whether it holds enough lines with an amount to be an entry.  The
    two conditions are separate so that the user sees which one failed.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Used as the validation
    gate before persistence (EntryService, FEC import) and by the entry
    draft for its live balance indicator.

Invariants enforced:
    - balanced iff |Σdebit - Σcredit| < 0.01 (strict).
    - Totals are summed exactly; rounding happens only for display.
    - An entry needs at least two lines carrying an account and an amount.
      A zero-total set is "balanced" but never valid.

Failure modes:
    - ``check_entry`` never raises; it returns a ValidationResult.
    - ``require_balanced`` raises UnbalancedEntryError carrying both totals.
    - ``require_valid`` raises InsufficientLinesError first, then
      UnbalancedEntryError.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from compta_kernel.domain.amounts import TOLERANCE, ZERO, format_amount
from compta_kernel.domain.dtos import ValidationError, ValidationResult
from compta_kernel.exceptions import InsufficientLinesError, UnbalancedEntryError
from compta_kernel.logging_config import get_logger

from compta_engines.tracer import traced_engine

logger = get_logger("engines.balance")

MINIMUM_ACTIVE_LINES = 2


class AmountLine(Protocol):
    """Anything carrying a debit and a credit (JournalLine, DraftLine)."""

    @property
    def debit(self) -> Decimal: ...

    @property
    def credit(self) -> Decimal: ...


@dataclass(frozen=True, slots=True)
class BalanceTotals:
    """Debit and credit totals of a set of lines."""

    debit: Decimal
    credit: Decimal

    @property
    def delta(self) -> Decimal:
        return self.debit - self.credit

    @property
    def is_balanced(self) -> bool:
        return abs(self.delta) < TOLERANCE

    @property
    def is_balanced_nonzero(self) -> bool:
        """Balanced and carrying activity: the entry may be closed."""
        return self.is_balanced and (self.debit > 0 or self.credit > 0)

    def describe(self) -> str:
        return f"Débit={format_amount(self.debit)} / Crédit={format_amount(self.credit)}"


def totals(lines: Iterable[AmountLine]) -> BalanceTotals:
    debit = ZERO
    credit = ZERO
    for line in lines:
        debit += line.debit
        credit += line.credit
    return BalanceTotals(debit=debit, credit=credit)


def balance_delta(lines: Iterable[AmountLine]) -> Decimal:
    """Σdebit - Σcredit."""
    return totals(lines).delta


def is_balanced(lines: Iterable[AmountLine]) -> bool:
    return totals(lines).is_balanced


def count_active_lines(lines: Iterable[AmountLine]) -> int:
    count = 0
    for line in lines:
        account = getattr(line, "account_number", "x")
        if account and (line.debit > 0 or line.credit > 0):
            count += 1
    return count


@traced_engine("entry_balance", "1.0")
def check_entry(lines: Iterable[AmountLine]) -> ValidationResult:
    """Validate a set of lines for persistence, reporting problems as data.

    Both failures are reported when both apply, each with its own code.
    """
    materialized = list(lines)
    errors: list[ValidationError] = []

    active = count_active_lines(materialized)
    if active < MINIMUM_ACTIVE_LINES:
        errors.append(
            ValidationError(
                code=InsufficientLinesError.code,
                message=str(InsufficientLinesError(active, MINIMUM_ACTIVE_LINES)),
                field="lines",
                details={"active_lines": active},
            )
        )

    t = totals(materialized)
    if not t.is_balanced:
        debit, credit = format_amount(t.debit), format_amount(t.credit)
        errors.append(
            ValidationError(
                code=UnbalancedEntryError.code,
                message=str(UnbalancedEntryError(debit, credit)),
                field="lines",
                details={"debit_total": debit, "credit_total": credit},
            )
        )
        logger.info(
            "entry_unbalanced",
            extra={"debit_total": debit, "credit_total": credit, "delta": str(t.delta)},
        )

    if errors:
        return ValidationResult.failure(*errors)
    return ValidationResult.success()


def require_balanced(lines: Iterable[AmountLine]) -> BalanceTotals:
    """Return the totals or raise UnbalancedEntryError."""
    t = totals(lines)
    if not t.is_balanced:
        raise UnbalancedEntryError(format_amount(t.debit), format_amount(t.credit))
    return t


@traced_engine("entry_balance", "1.0")
def require_valid(lines: Iterable[AmountLine]) -> BalanceTotals:
    """Gate before persistence: enough active lines, then balance."""
    materialized = list(lines)
    active = count_active_lines(materialized)
    if active < MINIMUM_ACTIVE_LINES:
        raise InsufficientLinesError(active, MINIMUM_ACTIVE_LINES)
    return require_balanced(materialized)
