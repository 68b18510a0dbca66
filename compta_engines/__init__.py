"""
Module: compta_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines: balance
    checker, VAT splitter and entry draft, ledger aggregator, sequence
    numbering and statements.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import compta_kernel (and sibling engine modules).

Invariants enforced:
    - Decimal-only arithmetic, rounded to the cent with ROUND_HALF_UP.
    - Engines never read the clock; dates are passed in.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Public engine calls are traced via ``@traced_engine``
    (see ``compta_engines.tracer``), emitting COMPTA_ENGINE_TRACE records.
"""

from compta_engines.balance import (
    BalanceTotals,
    balance_delta,
    check_entry,
    count_active_lines,
    is_balanced,
    require_balanced,
    require_valid,
    totals,
)
from compta_engines.entry_draft import DraftLine, EntryDraft, propose_account
from compta_engines.ledger import (
    AccountLedger,
    LedgerFilter,
    Movement,
    Period,
    ProgressiveBalance,
    ProgressiveRow,
    TrialBalance,
    TrialBalanceRow,
    aggregate,
    general_ledger,
    month_periods,
    progressive_balance,
    sort_entries,
    trial_balance,
)
from compta_engines.sequence import (
    LegacyLine,
    SequenceNumberer,
    entry_scope,
    next_entry_number,
    next_invoice_number,
    next_number,
    number_legacy_lines,
)
from compta_engines.statements import (
    BalanceSheet,
    IncomeStatement,
    VatDeclaration,
    balance_sheet,
    class_recap,
    income_statement,
    vat_declaration,
)
from compta_engines.vat import (
    DEFAULT_VAT_RATE,
    STANDARD_VAT_RATES,
    RateDetection,
    RateSource,
    VatSplit,
    VatSplitter,
    detect_vat_rate,
    parse_vat_rate,
    split_vat,
)

__all__ = [
    # balance
    "BalanceTotals",
    "balance_delta",
    "check_entry",
    "count_active_lines",
    "is_balanced",
    "require_balanced",
    "require_valid",
    "totals",
    # entry draft
    "DraftLine",
    "EntryDraft",
    "propose_account",
    # ledger
    "AccountLedger",
    "LedgerFilter",
    "Movement",
    "Period",
    "ProgressiveBalance",
    "ProgressiveRow",
    "TrialBalance",
    "TrialBalanceRow",
    "aggregate",
    "general_ledger",
    "month_periods",
    "progressive_balance",
    "sort_entries",
    "trial_balance",
    # sequence
    "LegacyLine",
    "SequenceNumberer",
    "entry_scope",
    "next_entry_number",
    "next_invoice_number",
    "next_number",
    "number_legacy_lines",
    # statements
    "BalanceSheet",
    "IncomeStatement",
    "VatDeclaration",
    "balance_sheet",
    "class_recap",
    "income_statement",
    "vat_declaration",
    # vat
    "DEFAULT_VAT_RATE",
    "STANDARD_VAT_RATES",
    "RateDetection",
    "RateSource",
    "VatSplit",
    "VatSplitter",
    "detect_vat_rate",
    "parse_vat_rate",
    "split_vat",
]
