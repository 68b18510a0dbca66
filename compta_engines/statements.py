"""
Financial statements from entries: compte de résultat, bilan, TVA.

Responsibility:
    Turn per-account balances into the statements a French small business
    reads: income statement by nature (classes 6 / 7), simplified balance
    sheet, recap per classe and the VAT position of a period.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Built on the per-account
    fold of ``compta_engines.ledger``.

Sign conventions:
    - Account balance = debit - credit.
    - Produits (classe 7) and liabilities are shown as credit - debit, so
      that a normal activity prints positive.
    - Résultat net = total produits - total charges.

Failure modes:
    - None: accounts outside the recognised prefixes are ignored by the
      statement that does not cover them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from compta_kernel.domain.accounts import (
    COLLECTED_VAT_PREFIX,
    DEDUCTIBLE_VAT_PREFIX,
    RECEIVABLE_PREFIXES,
    UNKNOWN_ACCOUNT_LABEL,
    ChartOfAccounts,
)
from compta_kernel.domain.amounts import ZERO
from compta_kernel.domain.dtos import Entry

from compta_engines.ledger import LedgerFilter
from compta_engines.tracer import traced_engine


def account_balances(
    entries: Iterable[Entry],
    start: date | None = None,
    end: date | None = None,
) -> dict[str, Decimal]:
    """Debit - credit per account over the date range, in account order."""
    flt = LedgerFilter(start=start, end=end)
    soldes: dict[str, Decimal] = {}
    for entry in entries:
        if not flt.matches_date(entry.entry_date):
            continue
        for line in entry.lines:
            soldes[line.account_number] = (
                soldes.get(line.account_number, ZERO) + line.debit - line.credit
            )
    return {k: soldes[k] for k in sorted(soldes)}


@dataclass(frozen=True, slots=True)
class StatementLine:
    account_number: str
    label: str
    amount: Decimal


def _label(chart: ChartOfAccounts | None, number: str) -> str:
    if chart is None:
        return UNKNOWN_ACCOUNT_LABEL
    return chart.label_for(number, default=UNKNOWN_ACCOUNT_LABEL) or UNKNOWN_ACCOUNT_LABEL


def _total(lines: Iterable[StatementLine]) -> Decimal:
    return sum((line.amount for line in lines), ZERO)


# =============================================================================
# Récapitulatif par classe
# =============================================================================


@traced_engine("statements", "1.0", fingerprint_fields=("start", "end"))
def class_recap(
    entries: Iterable[Entry],
    start: date | None = None,
    end: date | None = None,
) -> dict[str, Decimal]:
    """Net balance (debit - credit) per classe, classes in order."""
    recap: dict[str, Decimal] = {}
    for number, solde in account_balances(entries, start, end).items():
        classe = number[:1]
        recap[classe] = recap.get(classe, ZERO) + solde
    return {k: recap[k] for k in sorted(recap)}


# =============================================================================
# Compte de résultat
# =============================================================================

# (section, prefixes) tested in order; the first match wins.
_CHARGE_SECTIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("financier", ("66", "686")),
    ("exceptionnel", ("67", "687")),
    ("participation", ("691",)),
    ("impots", ("69",)),
    ("exploitation", ("6",)),
)
_PRODUIT_SECTIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("financier", ("76", "786")),
    ("exceptionnel", ("77", "787")),
    ("exploitation", ("7",)),
)


def _section(number: str, sections: tuple[tuple[str, tuple[str, ...]], ...]) -> str:
    for name, prefixes in sections:
        if number.startswith(prefixes):
            return name
    return "exploitation"


@dataclass(frozen=True)
class IncomeStatement:
    """Compte de résultat by nature."""

    charges: dict[str, tuple[StatementLine, ...]]
    produits: dict[str, tuple[StatementLine, ...]]

    def _section_total(self, side: dict[str, tuple[StatementLine, ...]], name: str) -> Decimal:
        return _total(side.get(name, ()))

    @property
    def total_charges(self) -> Decimal:
        return sum((_total(lines) for lines in self.charges.values()), ZERO)

    @property
    def total_produits(self) -> Decimal:
        return sum((_total(lines) for lines in self.produits.values()), ZERO)

    @property
    def resultat_exploitation(self) -> Decimal:
        return self._section_total(self.produits, "exploitation") - self._section_total(self.charges, "exploitation")

    @property
    def resultat_financier(self) -> Decimal:
        return self._section_total(self.produits, "financier") - self._section_total(self.charges, "financier")

    @property
    def resultat_courant(self) -> Decimal:
        return self.resultat_exploitation + self.resultat_financier

    @property
    def resultat_exceptionnel(self) -> Decimal:
        return self._section_total(self.produits, "exceptionnel") - self._section_total(self.charges, "exceptionnel")

    @property
    def participation(self) -> Decimal:
        return self._section_total(self.charges, "participation")

    @property
    def impots(self) -> Decimal:
        return self._section_total(self.charges, "impots")

    @property
    def resultat_net(self) -> Decimal:
        return self.total_produits - self.total_charges


@traced_engine("statements", "1.0", fingerprint_fields=("start", "end"))
def income_statement(
    entries: Iterable[Entry],
    start: date | None = None,
    end: date | None = None,
    chart: ChartOfAccounts | None = None,
) -> IncomeStatement:
    """Charges (classe 6, debit - credit) and produits (classe 7, credit - debit)."""
    charges: dict[str, list[StatementLine]] = {}
    produits: dict[str, list[StatementLine]] = {}
    for number, solde in account_balances(entries, start, end).items():
        if number.startswith("6"):
            line = StatementLine(number, _label(chart, number), solde)
            charges.setdefault(_section(number, _CHARGE_SECTIONS), []).append(line)
        elif number.startswith("7"):
            line = StatementLine(number, _label(chart, number), -solde)
            produits.setdefault(_section(number, _PRODUIT_SECTIONS), []).append(line)
    return IncomeStatement(
        charges={k: tuple(v) for k, v in charges.items()},
        produits={k: tuple(v) for k, v in produits.items()},
    )


# =============================================================================
# Bilan
# =============================================================================


@dataclass(frozen=True)
class BalanceSheet:
    """Simplified bilan; the year's result is added to capitaux propres."""

    actif: dict[str, tuple[StatementLine, ...]] = field(default_factory=dict)
    passif: dict[str, tuple[StatementLine, ...]] = field(default_factory=dict)
    resultat: Decimal = ZERO

    def section_total(self, name: str) -> Decimal:
        if name in self.actif:
            return _total(self.actif[name])
        total = _total(self.passif.get(name, ()))
        if name == "capitaux":
            total += self.resultat
        return total

    @property
    def total_actif(self) -> Decimal:
        return sum((_total(lines) for lines in self.actif.values()), ZERO)

    @property
    def total_passif(self) -> Decimal:
        return sum((_total(lines) for lines in self.passif.values()), ZERO) + self.resultat


def _bilan_section(number: str) -> tuple[str, str] | None:
    """(side, section) of a balance-sheet account, None for classes 6 / 7."""
    if number.startswith("2"):
        return "actif", "immobilisations"
    if number.startswith("3"):
        return "actif", "stocks"
    if number.startswith(RECEIVABLE_PREFIXES + ("49",)):
        return "actif", "creances"
    if number.startswith("5"):
        return "actif", "disponibilites"
    if number.startswith("15"):
        return "passif", "provisions"
    if number.startswith("1"):
        return "passif", "capitaux"
    if number.startswith("4"):
        return "passif", "dettes"
    return None


@traced_engine("statements", "1.0", fingerprint_fields=("start", "end"))
def balance_sheet(
    entries: Iterable[Entry],
    start: date | None = None,
    end: date | None = None,
    chart: ChartOfAccounts | None = None,
) -> BalanceSheet:
    """Assets at their debit balance, liabilities at their credit balance.

    Contra-asset accounts (28, 29, 39, 49) keep their credit balance on the
    actif side as a negative amount.
    """
    actif: dict[str, list[StatementLine]] = {}
    passif: dict[str, list[StatementLine]] = {}
    resultat = ZERO
    for number, solde in account_balances(entries, start, end).items():
        if number.startswith(("6", "7")):
            resultat -= solde
            continue
        placement = _bilan_section(number)
        if placement is None:
            continue
        side, section = placement
        if side == "actif":
            actif.setdefault(section, []).append(StatementLine(number, _label(chart, number), solde))
        else:
            passif.setdefault(section, []).append(StatementLine(number, _label(chart, number), -solde))
    return BalanceSheet(
        actif={k: tuple(v) for k, v in actif.items()},
        passif={k: tuple(v) for k, v in passif.items()},
        resultat=resultat,
    )


# =============================================================================
# Déclaration de TVA
# =============================================================================


@dataclass(frozen=True, slots=True)
class VatDeclaration:
    tva_collectee: Decimal
    tva_deductible: Decimal

    @property
    def solde(self) -> Decimal:
        return self.tva_collectee - self.tva_deductible

    @property
    def tva_a_payer(self) -> Decimal:
        return max(self.solde, ZERO)

    @property
    def credit_tva(self) -> Decimal:
        return max(-self.solde, ZERO)


@traced_engine("statements", "1.0", fingerprint_fields=("start", "end"))
def vat_declaration(
    entries: Iterable[Entry],
    start: date | None = None,
    end: date | None = None,
) -> VatDeclaration:
    """Collected VAT (4457, credit - debit) against deductible VAT (4456, debit - credit)."""
    collectee = ZERO
    deductible = ZERO
    for number, solde in account_balances(entries, start, end).items():
        if number.startswith(COLLECTED_VAT_PREFIX):
            collectee -= solde
        elif number.startswith(DEDUCTIBLE_VAT_PREFIX):
            deductible += solde
    return VatDeclaration(tva_collectee=collectee, tva_deductible=deductible)
