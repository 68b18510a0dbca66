"""Tests for amount parsing, rounding and formatting, and the line / entry DTOs."""

from datetime import date
from decimal import Decimal

import pytest

from compta_kernel.domain.amounts import format_amount, format_fr, parse_amount, round_amount
from compta_kernel.domain.dtos import Entry, JournalLine, ValidationError, ValidationResult


class TestParseAmount:
    """Strings-or-numbers become Decimal."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("120,50", Decimal("120.50")),
            ("120.50", Decimal("120.50")),
            (" 1 234,56 ", Decimal("1234.56")),
            ("1 234,56", Decimal("1234.56")),
            ("1.234,56", Decimal("1234.56")),
            ("1,234.56", Decimal("1234.56")),
            (15, Decimal("15")),
            (Decimal("3.3"), Decimal("3.3")),
        ],
    )
    def test_valid_inputs(self, raw, expected):
        assert parse_amount(raw) == expected

    def test_float_goes_through_str(self):
        assert parse_amount(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_is_zero(self, raw):
        assert parse_amount(raw) == Decimal("0")

    @pytest.mark.parametrize("raw", ["abc", "12,3,4x", "NaN", "Infinity", True])
    def test_invalid_raises_value_error(self, raw):
        with pytest.raises(ValueError):
            parse_amount(raw)


class TestRounding:
    """Half-up to the cent, and display formats."""

    def test_half_up(self):
        assert round_amount(Decimal("0.005")) == Decimal("0.01")
        assert round_amount(Decimal("2.675")) == Decimal("2.68")
        assert round_amount(Decimal("-2.675")) == Decimal("-2.68")

    def test_negative_zero_normalized(self):
        assert str(round_amount(Decimal("-0.001"))) == "0.00"

    def test_format(self):
        assert format_amount(Decimal("120.5")) == "120.50"
        assert format_fr(Decimal("1234.5")) == "1234,50"
        assert format_fr(Decimal("0")) == "0,00"


class TestJournalLine:
    """Lines coerce their amounts and refuse negatives."""

    def test_string_amounts_coerced(self):
        line = JournalLine("607000", debit="100,00")
        assert line.debit == Decimal("100.00")
        assert line.credit == Decimal("0")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            JournalLine("607000", debit=Decimal("-1"))

    def test_active_needs_account_and_amount(self):
        assert JournalLine("607000", debit=Decimal("1")).is_active
        assert not JournalLine("607000").is_active
        assert not JournalLine("", debit=Decimal("1")).is_active

    def test_net_and_amount(self):
        line = JournalLine("401000", credit=Decimal("120"))
        assert line.net == Decimal("-120")
        assert line.amount == Decimal("120")


class TestEntry:
    def test_totals(self):
        entry = Entry(
            journal_code="AC",
            entry_date=date(2025, 1, 10),
            piece_number="0001",
            label="Achat",
            lines=[
                JournalLine("607000", debit=Decimal("100")),
                JournalLine("445660", debit=Decimal("20")),
                JournalLine("401000", credit=Decimal("120")),
            ],
        )
        assert isinstance(entry.lines, tuple)
        assert entry.total_debit == Decimal("120")
        assert entry.total_credit == Decimal("120")

    def test_with_number_is_a_copy(self):
        entry = Entry("AC", date(2025, 1, 10), "0001", "", ())
        numbered = entry.with_number("AC-2025-01-0001")
        assert numbered.entry_number == "AC-2025-01-0001"
        assert entry.entry_number is None


class TestValidationResult:
    def test_bool_and_messages(self):
        ok = ValidationResult.success()
        assert ok
        failed = ValidationResult.failure(ValidationError("X", "boom"))
        assert not failed
        assert failed.messages == ("boom",)
