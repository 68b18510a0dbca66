"""
Tests for the VAT splitter.

Covers:
- HT computed by subtraction: HT + VAT == TTC exactly
- Rate parsing from free text
- Rate detection order (account, line, entry, sticky, default)
- Splitter configuration (directions, principal accounts)
"""

from decimal import Decimal

import pytest

from compta_engines.vat import (
    DEFAULT_VAT_RATE,
    RateSource,
    VatSplitter,
    detect_vat_rate,
    parse_vat_rate,
    split_vat,
)
from compta_kernel.domain.accounts import VatDirection


class TestSplitVat:
    """TTC = HT + VAT after rounding, never within epsilon."""

    def test_round_rate(self):
        split = split_vat(Decimal("120"), Decimal("0.20"))
        assert split.vat == Decimal("20.00")
        assert split.ht == Decimal("100.00")

    def test_awkward_rate(self):
        split = split_vat(Decimal("100.01"), Decimal("0.196"))
        assert split.vat == Decimal("16.39")
        assert split.ht == Decimal("83.62")
        assert split.ht + split.vat == Decimal("100.01")

    def test_ht_by_subtraction_where_independent_rounding_diverges(self):
        # 1.01 / 1.196 rounds to 0.84, which would lose a cent against VAT 0.16
        split = split_vat(Decimal("1.01"), Decimal("0.196"))
        assert split.vat == Decimal("0.16")
        assert split.ht == Decimal("0.85")
        assert split.ht + split.vat == split.ttc

    def test_reduced_rate(self):
        split = split_vat(Decimal("105.50"), Decimal("0.055"))
        assert split.vat == Decimal("5.50")
        assert split.ht == Decimal("100.00")

    def test_ttc_rounded_first(self):
        split = split_vat(Decimal("120.004"), Decimal("0.20"))
        assert split.ttc == Decimal("120.00")

    @pytest.mark.parametrize("ttc", [Decimal("0"), Decimal("-10")])
    def test_non_positive_ttc_rejected(self, ttc):
        with pytest.raises(ValueError):
            split_vat(ttc, Decimal("0.20"))

    @pytest.mark.parametrize("rate", [Decimal("0"), Decimal("1"), Decimal("20")])
    def test_rate_outside_unit_interval_rejected(self, rate):
        with pytest.raises(ValueError):
            split_vat(Decimal("100"), rate)


class TestParseVatRate:
    """First number of the text; percent when '%' is present or number > 1."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("5,5", Decimal("0.055")),
            ("20%", Decimal("0.20")),
            ("0.2", Decimal("0.2")),
            ("TVA déductible 5,5 %", Decimal("0.055")),
            ("TVA 10", Decimal("0.10")),
            ("TVA 20% sur 100", Decimal("0.20")),
            ("2,1 %", Decimal("0.021")),
        ],
    )
    def test_rates_read(self, text, expected):
        assert parse_vat_rate(text) == expected

    @pytest.mark.parametrize("text", [None, "", "pas de taux", "1", "0", "150%"])
    def test_no_usable_rate(self, text):
        assert parse_vat_rate(text) is None


class TestDetectVatRate:
    """First match wins: account, line label, entry label, sticky, default."""

    def test_account_rate_first(self):
        d = detect_vat_rate(
            account_label="TVA 5,5%",
            line_label="TVA 10%",
            account_rate=Decimal("0.021"),
        )
        assert d.rate == Decimal("0.021")
        assert d.source is RateSource.ACCOUNT

    def test_account_label_before_line_label(self):
        d = detect_vat_rate(account_label="TVA déductible 5,5 %", line_label="TVA 10%")
        assert d.rate == Decimal("0.055")
        assert d.source is RateSource.ACCOUNT

    def test_line_label_before_entry_label(self):
        d = detect_vat_rate(account_label="TVA déductible", line_label="Repas 10%", entry_label="20%")
        assert d.rate == Decimal("0.10")
        assert d.source is RateSource.LINE

    def test_entry_label(self):
        d = detect_vat_rate(entry_label="Livres 5,5%")
        assert d.rate == Decimal("0.055")
        assert d.source is RateSource.ENTRY

    def test_sticky_before_default(self):
        d = detect_vat_rate(account_label="TVA", last_rate=Decimal("0.10"))
        assert d.rate == Decimal("0.10")
        assert d.source is RateSource.STICKY
        assert not d.source.is_textual

    def test_default(self):
        d = detect_vat_rate()
        assert d.rate == DEFAULT_VAT_RATE
        assert d.source is RateSource.DEFAULT

    def test_unparseable_text_falls_through(self):
        d = detect_vat_rate(account_label="TVA 150%", line_label="abc", default_rate=Decimal("0.10"))
        assert d.rate == Decimal("0.10")
        assert d.source is RateSource.DEFAULT


class TestVatSplitter:
    def setup_method(self):
        self.splitter = VatSplitter()

    def test_only_vat_accounts_trigger_split(self):
        assert self.splitter.triggers_split("445660")
        assert self.splitter.triggers_split("445710")
        assert not self.splitter.triggers_split("445510")
        assert not self.splitter.triggers_split("607000")

    def test_principal_side(self):
        assert self.splitter.principal_classe(VatDirection.DEDUCTIBLE) == "6"
        assert self.splitter.principal_classe(VatDirection.COLLECTED) == "7"
        assert self.splitter.principal_account(VatDirection.DEDUCTIBLE) == "607"
        assert self.splitter.principal_account(VatDirection.COLLECTED) == "707"

    def test_default_rate_used_by_detection(self):
        splitter = VatSplitter(default_rate=Decimal("0.10"))
        assert splitter.detect_rate().rate == Decimal("0.10")

    def test_invalid_default_rate(self):
        with pytest.raises(ValueError):
            VatSplitter(default_rate=Decimal("20"))

    def test_configured_from_yaml(self, splitter):
        assert splitter.default_rate == Decimal("0.20")
        assert splitter.purchase_account == "607"
