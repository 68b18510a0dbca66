"""
Pure domain layer.

Account numbers, amounts, journal lines, entries and accounts, with NO
dependencies on storage, time or I/O.  All domain objects are immutable
and deterministic.
"""

from compta_kernel.domain.accounts import (
    AccountClassification,
    AccountNumber,
    AccountType,
    ChartOfAccounts,
    VatDirection,
    account_type_for,
    classify,
)
from compta_kernel.domain.amounts import (
    CENT,
    TOLERANCE,
    ZERO,
    format_amount,
    format_fr,
    parse_amount,
    round_amount,
)
from compta_kernel.domain.dtos import (
    Account,
    Entry,
    JournalLine,
    ValidationError,
    ValidationResult,
)

__all__ = [
    "Account",
    "AccountClassification",
    "AccountNumber",
    "AccountType",
    "CENT",
    "ChartOfAccounts",
    "Entry",
    "JournalLine",
    "TOLERANCE",
    "ValidationError",
    "ValidationResult",
    "VatDirection",
    "ZERO",
    "account_type_for",
    "classify",
    "format_amount",
    "format_fr",
    "parse_amount",
    "round_amount",
]
