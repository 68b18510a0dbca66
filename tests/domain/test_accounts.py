"""
Tests for account numbers, classification and the chart of accounts.

Covers:
- Classe and prefix queries on string account numbers
- Receivable / payable / VAT classification of classe 4
- Lexicographic range filtering
- Chart lookups: known accounts, labels, search, account creation proposal
"""

from decimal import Decimal

import pytest

from compta_engines.entry_draft import propose_account
from compta_kernel.domain.accounts import (
    UNKNOWN_ACCOUNT_LABEL,
    AccountNumber,
    AccountType,
    ChartOfAccounts,
    VatDirection,
    account_type_for,
    classify,
)
from compta_kernel.domain.dtos import Account
from compta_kernel.exceptions import AccountNotFoundError


class TestAccountNumber:
    """Account numbers are strings with prefix semantics."""

    def test_leading_zeros_preserved(self):
        acc = AccountNumber("0123")
        assert str(acc) == "0123"
        assert acc.classe == "0"

    def test_whitespace_stripped(self):
        assert AccountNumber(" 411000 ").value == "411000"

    def test_starts_with_any_prefix(self):
        acc = AccountNumber("445660")
        assert acc.starts_with("4456")
        assert acc.starts_with("4457", "445")
        assert not acc.starts_with("4457")

    def test_range_is_lexicographic_and_inclusive(self):
        assert AccountNumber("401000").in_range("400000", "409999")
        assert AccountNumber("400000").in_range("400000", "409999")
        assert AccountNumber("9").in_range("10", None)
        assert not AccountNumber("10").in_range("9", None)

    def test_open_bounds(self):
        assert AccountNumber("512000").in_range(None, None)
        assert AccountNumber("512000").in_range("5", None)
        assert not AccountNumber("512000").in_range(None, "5")

    def test_ordering_is_string_ordering(self):
        numbers = sorted([AccountNumber("9"), AccountNumber("10"), AccountNumber("101000")])
        assert [str(n) for n in numbers] == ["10", "101000", "9"]


class TestClassify:
    """Classe 4 sub-ranges: 41/42/43 receivable, the rest payable."""

    @pytest.mark.parametrize("number", ["411000", "421000", "431000"])
    def test_receivables(self, number):
        c = classify(number)
        assert c.classe == "4"
        assert c.is_receivable
        assert not c.is_payable

    @pytest.mark.parametrize("number", ["401000", "445660", "445710", "455000"])
    def test_payables(self, number):
        c = classify(number)
        assert c.is_payable
        assert not c.is_receivable

    def test_deductible_vat(self):
        c = classify("445660")
        assert c.is_vat
        assert c.vat_direction is VatDirection.DEDUCTIBLE

    def test_collected_vat(self):
        c = classify("445710")
        assert c.is_vat
        assert c.vat_direction is VatDirection.COLLECTED

    def test_other_tax_account_is_not_vat(self):
        c = classify("445510")
        assert not c.is_vat
        assert c.vat_direction is None

    def test_expense_and_revenue(self):
        assert classify("607000").is_expense
        assert classify("707000").is_revenue
        assert not classify("512000").is_payable

    def test_account_types_by_classe(self):
        assert account_type_for("101000") is AccountType.CAPITAUX
        assert account_type_for("218300") is AccountType.IMMOBILISATION
        assert account_type_for("411000") is AccountType.TIERS
        assert account_type_for("512000") is AccountType.FINANCIER
        assert account_type_for("607000") is AccountType.CHARGE
        assert account_type_for("707000") is AccountType.PRODUIT
        assert account_type_for("X1") is AccountType.AUTRE


class TestChartOfAccounts:
    """Known accounts, label resolution and search."""

    def setup_method(self):
        self.chart = ChartOfAccounts(
            accounts=(
                Account("512000", "Banque Populaire"),
                Account("401000", "Fournisseurs"),
            ),
            standard_labels={
                "401000": "Fournisseurs",
                "411000": "Clients",
                "512000": "Banque",
                "607000": "Achats de marchandises",
            },
        )

    def test_accounts_sorted_by_number(self):
        assert [a.account_number for a in self.chart.accounts] == ["401000", "512000"]

    def test_known_means_opened_by_company(self):
        assert self.chart.is_known("401000")
        assert "512000" in self.chart
        assert not self.chart.is_known("411000")

    def test_label_prefers_company_label(self):
        assert self.chart.label_for("512000") == "Banque Populaire"
        assert self.chart.label_for("411000") == "Clients"
        assert self.chart.label_for("999999") is None
        assert self.chart.label_for("999999", UNKNOWN_ACCOUNT_LABEL) == "Compte inconnu"

    def test_require_unknown_raises(self):
        with pytest.raises(AccountNotFoundError) as exc_info:
            self.chart.require("411000")
        assert exc_info.value.code == AccountNotFoundError.code

    def test_search_by_prefix_and_label(self):
        assert self.chart.search("51") == [("512000", "Banque Populaire")]
        found = self.chart.search("achats")
        assert found == [("607000", "Achats de marchandises")]

    def test_search_company_accounts_first(self):
        numbers = [n for n, _ in self.chart.search("")]
        assert numbers[:2] == ["401000", "512000"]
        assert numbers.count("401000") == 1

    def test_search_limit(self):
        assert len(self.chart.search("", limit=3)) == 3

    def test_with_account_returns_new_chart(self):
        updated = self.chart.with_account(Account("411000", "Clients"))
        assert updated.is_known("411000")
        assert not self.chart.is_known("411000")
        assert len(updated) == 3

    def test_from_standard_opens_every_account(self):
        chart = ChartOfAccounts.from_standard({"411000": "Clients", "607000": "Achats"})
        assert chart.is_known("607000")
        assert chart.get("411000").account_type == "tiers"


class TestProposeAccount:
    """Account creation proposal for a number typed during entry."""

    def setup_method(self):
        self.chart = ChartOfAccounts(
            accounts=(Account("401000", "Fournisseurs"),),
            standard_labels={"411000": "Clients"},
        )

    def test_short_numbers_are_still_being_typed(self):
        assert propose_account("40", "x", self.chart) is None

    def test_known_or_standard_numbers_need_no_creation(self):
        assert propose_account("401000", "x", self.chart) is None
        assert propose_account("411000", "x", self.chart) is None

    def test_new_account(self):
        account = propose_account("401100", "Fournisseur Dupont", self.chart, company_id="ACME")
        assert account == Account("401100", "Fournisseur Dupont", company_id="ACME")

    def test_vat_account_carries_rate_in_label(self):
        account = propose_account("445661", "TVA achats", self.chart, vat_rate_percent="5,5")
        assert account.label == "TVA achats 5,5%"
        assert account.vat_rate == Decimal("0.055")
