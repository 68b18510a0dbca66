"""
Tests for EntryService.

Covers:
- Only balanced entries with two active lines reach the repository
- Numbers issued from what is stored, per company and exercise
- Update re-validates; unknown ids raise EntryNotFoundError
"""

import logging
from datetime import date

import pytest

from compta_kernel.exceptions import EntryNotFoundError
from compta_kernel.services import EntryService, InMemoryEntryRepository, PostStatus


class TestPost:
    """The validation gate in front of create."""

    def setup_method(self):
        self.repository = InMemoryEntryRepository()
        self.service = EntryService(self.repository)

    def test_balanced_entry_stored(self, make_entry, make_line):
        result = self.service.post(
            make_entry("AC", date(2025, 1, 10), make_line("607000", "100"), make_line("401000", credit="100"))
        )
        assert result.is_success
        assert result.status is PostStatus.POSTED
        assert result.entry.entry_id is not None
        assert result.entry.entry_number == "AC-2025-01-0001"
        assert self.repository.get(result.entry.entry_id) == result.entry

    def test_unbalanced_entry_rejected(self, make_entry, make_line):
        result = self.service.post(
            make_entry("AC", date(2025, 1, 10), make_line("607000", "100"), make_line("401000", credit="90"))
        )
        assert not result.is_success
        assert [e.code for e in result.errors] == ["UNBALANCED_ENTRY"]
        assert "Débit=100.00 / Crédit=90.00" in result.messages[0]
        assert len(self.repository) == 0

    def test_single_line_rejected_with_both_codes(self, make_entry, make_line):
        result = self.service.post(make_entry("OD", date(2025, 1, 10), make_line("512000", "10")))
        assert [e.code for e in result.errors] == ["INSUFFICIENT_LINES", "UNBALANCED_ENTRY"]

    def test_zero_lines_do_not_count(self, make_entry, make_line):
        result = self.service.post(
            make_entry("OD", date(2025, 1, 10), make_line("512000"), make_line("530000"))
        )
        assert [e.code for e in result.errors] == ["INSUFFICIENT_LINES"]

    def test_existing_entry_number_kept(self, make_entry, make_line):
        result = self.service.post(
            make_entry(
                "AC", date(2025, 1, 10),
                make_line("607000", "5"), make_line("401000", credit="5"),
                number="AC-2025-01-0042",
            )
        )
        assert result.entry.entry_number == "AC-2025-01-0042"

    def test_post_many_numbers_consecutively(self, sales_and_purchases):
        results = self.service.post_many(sales_and_purchases)
        assert all(r.is_success for r in results)
        assert [r.entry.entry_number for r in results] == [
            "AC-2025-01-0001",
            "VE-2025-01-0001",
            "BQ-2025-02-0001",
            "BQ-2025-03-0001",
        ]


class TestUpdateDelete:
    def setup_method(self):
        self.service = EntryService()

    def _posted(self, make_entry, make_line):
        return self.service.post(
            make_entry("VE", date(2025, 2, 1), make_line("411000", "50"), make_line("707000", credit="50"))
        ).entry

    def test_update_revalidates(self, make_entry, make_line):
        stored = self._posted(make_entry, make_line)
        broken = stored.with_lines([make_line("411000", "50"), make_line("707000", credit="40")])
        result = self.service.update(broken)
        assert result.status is PostStatus.REJECTED
        assert self.service.repository.get(stored.entry_id) == stored

    def test_update_replaces(self, make_entry, make_line):
        stored = self._posted(make_entry, make_line)
        changed = stored.with_lines([make_line("411000", "60"), make_line("707000", credit="60")])
        assert self.service.update(changed).is_success
        assert self.service.repository.get(stored.entry_id).total_debit == changed.total_debit

    def test_update_unknown_id(self, make_entry, make_line):
        stray = make_entry("VE", date(2025, 2, 1), make_line("411000", "1"), make_line("707000", credit="1"))
        with pytest.raises(EntryNotFoundError):
            self.service.update(stray.with_id("missing"))

    def test_delete(self, make_entry, make_line):
        stored = self._posted(make_entry, make_line)
        self.service.delete(stored.entry_id)
        assert self.service.list("ACME", "2025") == []
        with pytest.raises(EntryNotFoundError):
            self.service.delete(stored.entry_id)


class TestNumbersAndQueries:
    def setup_method(self):
        self.service = EntryService()

    def test_next_piece_number(self, sales_and_purchases):
        assert self.service.next_piece_number("ACME", "2025") == "0001"
        self.service.post_many(sales_and_purchases)
        assert self.service.next_piece_number("ACME", "2025") == "0005"
        assert self.service.next_piece_number("ACME", "2026") == "0001"
        assert self.service.next_piece_number("OTHER", "2025") == "0001"

    def test_entries_listed_per_company(self, make_entry, make_line):
        lines = (make_line("512000", "1"), make_line("758000", credit="1"))
        self.service.post(make_entry("OD", date(2025, 1, 1), *lines, company_id="ACME"))
        self.service.post(make_entry("OD", date(2025, 1, 1), *lines, company_id="OTHER"))
        acme = self.service.list("ACME", "2025")
        other = self.service.list("OTHER", "2025")
        assert len(acme) == len(other) == 1
        assert other[0].entry_number == "OD-2025-01-0001"

    def test_accounts_referenced(self, sales_and_purchases):
        self.service.post_many(sales_and_purchases)
        assert self.service.accounts_referenced("ACME", "2025") == {
            "401000", "411000", "445660", "445710", "512000", "607000", "707000",
        }

    def test_accounts_referenced_across_exercises(self, make_entry, make_line):
        self.service.post(
            make_entry("AC", date(2024, 6, 3), make_line("606100", "50"), make_line("401000", credit="50"),
                       exercise_id="2024")
        )
        self.service.post(
            make_entry("VE", date(2025, 1, 20), make_line("411000", "80"), make_line("706000", credit="80"))
        )
        self.service.post(
            make_entry("BQ", date(2025, 2, 1), make_line("512000", "10"), make_line("758000", credit="10"),
                       company_id="OTHER")
        )

        assert self.service.accounts_referenced("ACME") == {"606100", "401000", "411000", "706000"}
        assert self.service.accounts_referenced("ACME", "2024") == {"606100", "401000"}


class TestPostLogging:
    def test_posted_record_carries_exact_total(self, caplog, make_entry, make_line):
        service = EntryService(InMemoryEntryRepository())
        with caplog.at_level(logging.INFO, logger="compta_kernel.services.entry"):
            service.post(
                make_entry("AC", date(2025, 1, 10), make_line("607000", "100.10"), make_line("401000", credit="100.10"))
            )

        (record,) = [r for r in caplog.records if r.getMessage() == "entry_posted"]
        assert record.total_debit == "100.10"
