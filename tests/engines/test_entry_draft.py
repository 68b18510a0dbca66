"""
Tests for the entry draft session.

Covers:
- VAT auto-completion on 4456 / 4457 accounts
- Edited lines are never overwritten
- Sticky VAT rate scoped to the current entry
- Solder shortcut, line management, closing a piece
"""

from datetime import date
from decimal import Decimal

import pytest

from compta_engines.entry_draft import EntryDraft
from compta_kernel.exceptions import (
    InsufficientLinesError,
    LineNotFoundError,
    MinimumLinesError,
)


class TestVatAutoCompletion:
    """Typing a VAT account splits the TTC of the preceding line."""

    def setup_method(self):
        self.day = date(2025, 1, 10)

    def _purchase(self, chart, splitter, ttc="120"):
        draft = EntryDraft("AC", self.day, chart=chart, splitter=splitter)
        draft.set_account(1, "401000")
        draft.set_amount(1, credit=ttc)
        return draft

    def test_purchase_inserts_principal_line(self, chart, splitter):
        draft = self._purchase(chart, splitter)
        split = draft.set_account(2, "445660")

        assert split.vat == Decimal("20.00")
        assert split.ht == Decimal("100.00")
        accounts = [line.account_number for line in draft.lines]
        assert accounts == ["401000", "445660", "607"]
        assert draft.lines[1].debit == Decimal("20.00")
        assert draft.lines[2].debit == Decimal("100.00")
        assert draft.can_close()

    def test_sale_fills_existing_revenue_line(self, chart, splitter):
        draft = EntryDraft("VE", self.day, chart=chart, splitter=splitter)
        third = draft.add_line()
        draft.set_account(1, "411000")
        draft.set_amount(1, debit="240")
        draft.set_account(third.line_id, "707000")
        draft.set_account(2, "445710")

        assert len(draft.lines) == 3
        assert draft.lines[1].credit == Decimal("40.00")
        assert draft.line(third.line_id).credit == Decimal("200.00")
        assert draft.is_balanced()

    def test_edited_principal_line_is_left_alone(self, chart, splitter):
        draft = EntryDraft("AC", self.day, chart=chart, splitter=splitter)
        third = draft.add_line()
        draft.set_account(1, "401000")
        draft.set_amount(1, credit="120")
        draft.set_account(third.line_id, "607000")
        draft.set_amount(third.line_id, debit="99")
        draft.set_account(2, "445660")

        assert len(draft.lines) == 3
        assert draft.line(third.line_id).debit == Decimal("99")
        assert draft.lines[1].debit == Decimal("20.00")

    def test_non_matching_next_line_gets_principal_inserted_before_it(self, chart, splitter):
        draft = EntryDraft("AC", self.day, chart=chart, splitter=splitter)
        third = draft.add_line()
        draft.set_account(third.line_id, "512000")
        draft.set_account(1, "401000")
        draft.set_amount(1, credit="120")
        draft.set_account(2, "445660")

        accounts = [line.account_number for line in draft.lines]
        assert accounts == ["401000", "445660", "607", "512000"]

    def test_first_line_never_splits(self, chart, splitter):
        draft = EntryDraft("AC", self.day, chart=chart, splitter=splitter)
        assert draft.set_account(1, "445660") is None
        assert len(draft.lines) == 2

    def test_no_amount_above_no_split(self, chart, splitter):
        draft = EntryDraft("AC", self.day, chart=chart, splitter=splitter)
        draft.set_account(1, "401000")
        assert draft.set_account(2, "445660") is None
        assert draft.lines[1].debit == Decimal("0")

    def test_rate_from_account_label(self, chart, splitter):
        draft = self._purchase(chart, splitter, ttc="211")
        split = draft.set_account(2, "445662")
        assert split.rate == Decimal("0.055")
        assert split.vat == Decimal("11.00")
        assert split.ht == Decimal("200.00")

    def test_rate_from_line_label(self, chart, splitter):
        draft = self._purchase(chart, splitter, ttc="110")
        draft.set_label(2, "Repas 10%")
        split = draft.set_account(2, "445660")
        assert split.rate == Decimal("0.10")
        assert draft.lines[1].debit == Decimal("10.00")

    def test_rate_from_picked_label_of_account_not_opened(self, chart, splitter):
        draft = self._purchase(chart, splitter, ttc="105.50")
        split = draft.set_account(2, "445661", account_label="TVA déductible 5,5%")
        assert split.rate == Decimal("0.055")
        assert split.vat == Decimal("5.50")
        assert split.ht == Decimal("100.00")
        assert draft.last_vat_rate == Decimal("0.055")


class TestStickyRate:
    """The last rate read from a label is reused until a new entry starts."""

    def test_sticky_rate_reused_then_reset(self, chart, splitter):
        draft = EntryDraft("AC", date(2025, 1, 10), chart=chart, splitter=splitter)
        draft.set_account(1, "401000")
        draft.set_amount(1, credit="211")
        draft.set_account(2, "445662")
        assert draft.last_vat_rate == Decimal("0.055")

        fourth = draft.add_line()
        split = draft.set_account(fourth.line_id, "445660")
        assert split.rate == Decimal("0.055")

    def test_default_rate_does_not_become_sticky(self, chart, splitter):
        draft = EntryDraft("AC", date(2025, 1, 10), chart=chart, splitter=splitter)
        draft.set_account(1, "401000")
        draft.set_amount(1, credit="120")
        draft.set_account(2, "445660")
        assert draft.last_vat_rate is None

    def test_new_entry_clears_session_state(self, chart, splitter):
        draft = EntryDraft("AC", date(2025, 1, 10), chart=chart, splitter=splitter)
        draft.set_account(1, "401000")
        draft.set_amount(1, credit="211")
        draft.set_account(2, "445662")
        assert draft.can_close()

        draft.start_new_entry()
        assert draft.last_vat_rate is None
        assert draft.edited == set()

    def test_drafts_do_not_share_state(self, chart, splitter):
        first = EntryDraft("AC", date(2025, 1, 10), chart=chart, splitter=splitter)
        second = EntryDraft("AC", date(2025, 1, 10), chart=chart, splitter=splitter)
        first.set_account(1, "401000")
        first.set_amount(1, credit="211")
        first.set_account(2, "445662")
        assert second.last_vat_rate is None


class TestEditing:
    """Labels, lines and the solder shortcut."""

    def setup_method(self):
        self.draft = EntryDraft("OD", date(2025, 2, 1))

    def test_starts_with_two_blank_lines(self):
        assert self.draft.line_ids == (1, 2)
        assert all(not line.is_active for line in self.draft.lines)

    def test_first_label_becomes_entry_label(self):
        self.draft.set_label(2, "Propre")
        self.draft.set_label(1, "Loyer janvier")
        assert self.draft.label == "Loyer janvier"
        assert self.draft.line(2).label == "Propre"
        assert self.draft.add_line().label == "Loyer janvier"

    def test_account_label_seeds_empty_entry_label(self):
        draft = EntryDraft("OD", date(2025, 2, 1))
        draft.set_account(1, "613200", account_label="Locations immobilières")
        assert draft.label == "Locations immobilières"

    def test_set_amount_marks_line_edited(self):
        self.draft.set_amount(2, debit="10,50")
        assert self.draft.line(2).debit == Decimal("10.50")
        assert 2 in self.draft.edited

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            self.draft.set_amount(1, debit="-5")

    def test_remove_line_keeps_two(self):
        third = self.draft.add_line()
        self.draft.remove_line(third.line_id)
        with pytest.raises(MinimumLinesError):
            self.draft.remove_line(1)

    def test_unknown_line(self):
        with pytest.raises(LineNotFoundError):
            self.draft.set_label(42, "x")

    def test_solder_credits_the_gap(self):
        self.draft.set_account(1, "613200")
        self.draft.set_amount(1, debit="100")
        self.draft.set_account(2, "401000")
        updated = self.draft.solder(2)
        assert updated.credit == Decimal("100.00")
        assert self.draft.is_balanced()
        assert 2 in self.draft.edited

    def test_solder_debits_the_gap(self):
        self.draft.set_account(1, "401000")
        self.draft.set_amount(1, credit="80")
        self.draft.set_account(2, "613200")
        assert self.draft.solder(2).debit == Decimal("80.00")

    def test_solder_on_balanced_draft_does_nothing(self):
        assert self.draft.solder(1) is None

    def test_solder_replaces_amount_already_on_the_line(self):
        self.draft.set_account(1, "607000")
        self.draft.set_amount(1, debit="100")
        self.draft.set_account(2, "445660")
        self.draft.set_amount(2, debit="20")
        third = self.draft.add_line()
        self.draft.set_account(third.line_id, "401000")
        self.draft.set_amount(third.line_id, debit="50")

        updated = self.draft.solder(third.line_id)
        assert updated.debit == Decimal("0")
        assert updated.credit == Decimal("120.00")
        assert self.draft.is_balanced()

    def test_solder_line_that_over_balances(self):
        self.draft.set_account(1, "607000")
        self.draft.set_amount(1, debit="100")
        self.draft.set_account(2, "401000")
        self.draft.set_amount(2, credit="100")
        third = self.draft.add_line()
        self.draft.set_account(third.line_id, "512000")
        self.draft.set_amount(third.line_id, debit="50")

        updated = self.draft.solder(third.line_id)
        assert updated.debit == updated.credit == Decimal("0")
        assert self.draft.is_balanced()


class TestClosingPieces:
    """start_new_entry queues balanced pieces and moves the piece number."""

    def _fill(self, draft, amount="100"):
        draft.set_account(draft.line_ids[0], "613200")
        draft.set_amount(draft.line_ids[0], debit=amount)
        draft.set_account(draft.line_ids[1], "401000")
        draft.set_amount(draft.line_ids[1], credit=amount)

    def test_unbalanced_draft_is_not_closed(self):
        draft = EntryDraft("OD", date(2025, 2, 1), piece_number="0007")
        draft.set_account(1, "613200")
        draft.set_amount(1, debit="100")
        assert draft.start_new_entry() is None
        assert draft.piece_number == "0007"
        assert draft.lines[0].debit == Decimal("100")

    def test_empty_draft_is_not_closed(self):
        draft = EntryDraft("OD", date(2025, 2, 1))
        assert draft.start_new_entry() is None

    def test_amount_without_account_does_not_close(self):
        draft = EntryDraft("VE", date(2025, 2, 1), piece_number="0003")
        draft.set_account(1, "411000")
        draft.set_amount(1, debit="100")
        draft.set_account(2, "707000")
        draft.set_amount(2, credit="60")
        third = draft.add_line()
        draft.set_amount(third.line_id, credit="40")

        assert draft.is_balanced()
        assert not draft.can_close()
        assert draft.start_new_entry() is None
        assert draft.piece_number == "0003"
        assert len(draft.lines) == 3

    def test_balanced_draft_queued_and_reset(self):
        draft = EntryDraft("OD", date(2025, 2, 1), piece_number="0007", company_id="ACME")
        draft.set_label(1, "Loyer")
        self._fill(draft)
        queued = draft.start_new_entry()

        assert queued.piece_number == "0007"
        assert queued.label == "Loyer"
        assert queued.company_id == "ACME"
        assert len(queued.lines) == 2
        assert draft.piece_number == "0008"
        assert draft.label == ""
        assert len(draft.lines) == 2
        assert all(not line.is_active for line in draft.lines)
        assert draft.drain_pending() == [queued]
        assert draft.pending == []

    def test_explicit_next_piece_number(self):
        draft = EntryDraft("OD", date(2025, 2, 1))
        self._fill(draft)
        draft.start_new_entry(piece_number="0100")
        assert draft.piece_number == "0100"

    def test_to_entry_keeps_active_lines_only(self):
        draft = EntryDraft("OD", date(2025, 2, 1))
        draft.add_line()
        self._fill(draft)
        entry = draft.to_entry()
        assert [line.account_number for line in entry.lines] == ["613200", "401000"]

    def test_to_entry_requires_two_active_lines(self):
        draft = EntryDraft("OD", date(2025, 2, 1))
        draft.set_account(1, "613200")
        with pytest.raises(InsufficientLinesError):
            draft.to_entry()
