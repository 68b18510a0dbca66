"""
Typed exception hierarchy for the compta kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from ComptaError:

    ComptaError (base)
    |
    +-- EntryError
    |   +-- UnbalancedEntryError
    |   +-- InsufficientLinesError
    |   +-- EntryNotFoundError
    |
    +-- DraftError
    |   +-- LineNotFoundError
    |   +-- MinimumLinesError
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |
    +-- SequenceError
    |   +-- InvalidScopeError
    |
    +-- FecError
    |   +-- FecHeaderError
    |   +-- FecRowError
    |
    +-- ConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Entry           | UNBALANCED_ENTRY            | |Débit - Crédit| >= 0.01
                | INSUFFICIENT_LINES          | Fewer than 2 lines with an amount
                | ENTRY_NOT_FOUND             | Update/delete of an unknown entry
----------------|-----------------------------|-----------------------------------------
Draft           | LINE_NOT_FOUND              | Unknown line id in an entry draft
                | MINIMUM_LINES               | Removing a line below 2 lines
----------------|-----------------------------|-----------------------------------------
Account         | ACCOUNT_NOT_FOUND           | Account number not in the chart
----------------|-----------------------------|-----------------------------------------
Sequence        | INVALID_SCOPE               | Journal code / date unusable as a scope
----------------|-----------------------------|-----------------------------------------
FEC             | FEC_HEADER_INVALID          | Required FEC columns missing
                | FEC_ROW_INVALID             | Row with missing field or bad amount/date
----------------|-----------------------------|-----------------------------------------
Config          | CONFIG_INVALID              | Configuration file cannot be used

===============================================================================
HANDLING PATTERNS
===============================================================================

Computation functions report problems as data (``ValidationResult``, error
lists on import results).  The exceptions below exist for the gates that
refuse to go further, e.g. ``require_balanced`` before persistence:

    try:
        require_balanced(entry.lines)
    except UnbalancedEntryError as e:
        return {"error": e.code, "debit": e.debit_total, "credit": e.credit_total}

Amounts carried on exceptions are strings formatted with two decimals so
that the message can be shown verbatim to the user.
"""

from __future__ import annotations


class ComptaError(Exception):
    """Base exception for all compta errors."""

    code: str = "COMPTA_ERROR"


# =============================================================================
# Entry Errors
# =============================================================================


class EntryError(ComptaError):
    """Base for entry validation and persistence errors."""

    code: str = "ENTRY_ERROR"


class UnbalancedEntryError(EntryError):
    """Entry debits do not equal credits within tolerance."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debit_total: str, credit_total: str):
        self.debit_total = debit_total
        self.credit_total = credit_total
        super().__init__(
            f"Écriture déséquilibrée : Débit={debit_total} / Crédit={credit_total}"
        )


class InsufficientLinesError(EntryError):
    """Entry carries fewer than two lines with an amount."""

    code: str = "INSUFFICIENT_LINES"

    def __init__(self, active_lines: int, minimum: int = 2):
        self.active_lines = active_lines
        self.minimum = minimum
        super().__init__(
            f"Une écriture doit comporter au moins {minimum} lignes avec un "
            f"montant (trouvé : {active_lines})"
        )


class EntryNotFoundError(EntryError):
    """Entry id does not exist in the repository."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Écriture introuvable : {entry_id}")


# =============================================================================
# Draft Errors
# =============================================================================


class DraftError(ComptaError):
    """Base for entry-draft editing errors."""

    code: str = "DRAFT_ERROR"


class LineNotFoundError(DraftError):
    """Line id is not part of the draft."""

    code: str = "LINE_NOT_FOUND"

    def __init__(self, line_id: int):
        self.line_id = line_id
        super().__init__(f"Ligne introuvable dans le brouillon : {line_id}")


class MinimumLinesError(DraftError):
    """A draft never goes below two lines."""

    code: str = "MINIMUM_LINES"

    def __init__(self, minimum: int = 2):
        self.minimum = minimum
        super().__init__(f"Un brouillon conserve au moins {minimum} lignes")


# =============================================================================
# Account Errors
# =============================================================================


class AccountError(ComptaError):
    """Base for account errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account number is not part of the chart of accounts."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_number: str):
        self.account_number = account_number
        super().__init__(f"Compte inconnu : {account_number}")


# =============================================================================
# Sequence Errors
# =============================================================================


class SequenceError(ComptaError):
    """Base for numbering errors."""

    code: str = "SEQUENCE_ERROR"


class InvalidScopeError(SequenceError):
    """A numbering scope cannot be built from the given parts."""

    code: str = "INVALID_SCOPE"

    def __init__(self, scope: str, reason: str):
        self.scope = scope
        self.reason = reason
        super().__init__(f"Portée de numérotation invalide {scope!r}: {reason}")


# =============================================================================
# FEC Errors
# =============================================================================


class FecError(ComptaError):
    """Base for FEC import errors."""

    code: str = "FEC_ERROR"


class FecHeaderError(FecError):
    """FEC header row lacks required columns."""

    code: str = "FEC_HEADER_INVALID"

    def __init__(self, missing: tuple[str, ...]):
        self.missing = missing
        super().__init__(f"Colonnes FEC manquantes : {', '.join(missing)}")


class FecRowError(FecError):
    """A single FEC row cannot be parsed."""

    code: str = "FEC_ROW_INVALID"

    def __init__(self, row_number: int, reason: str, raw: str = ""):
        self.row_number = row_number
        self.reason = reason
        self.raw = raw
        message = f"Ligne {row_number} : {reason}"
        if raw:
            message = f"{message} ({raw})"
        super().__init__(message)


# =============================================================================
# Config Errors
# =============================================================================


class ConfigError(ComptaError):
    """Configuration file cannot be turned into a usable configuration."""

    code: str = "CONFIG_INVALID"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Configuration invalide ({source}) : {reason}")
