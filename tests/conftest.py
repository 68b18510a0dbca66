"""
Pytest fixtures for the compta test suite.

Provides:
- Clean logging state for every test
- The default configuration and the chart built from it
- Entry / line factories
"""

from datetime import date
from decimal import Decimal

import pytest

from compta_config import get_active_config
from compta_config.bridges import build_chart, build_vat_splitter
from compta_kernel.domain.dtos import Account, Entry, JournalLine
from compta_kernel.logging_config import LogContext, reset_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture(scope="session")
def config():
    return get_active_config()


@pytest.fixture
def chart(config):
    """Company chart: a handful of opened accounts, plan labels for the rest."""
    accounts = [
        Account("401000", "Fournisseurs"),
        Account("411000", "Clients"),
        Account("445660", "TVA déductible sur ABS"),
        Account("445710", "TVA collectée"),
        Account("445662", "TVA déductible 5,5 %"),
        Account("512000", "Banque"),
        Account("606100", "Fournitures non stockables"),
        Account("607000", "Achats de marchandises"),
        Account("707000", "Ventes de marchandises"),
    ]
    return build_chart(config, accounts)


@pytest.fixture
def splitter(config):
    return build_vat_splitter(config)


def line(account: str, debit: str = "0", credit: str = "0", label: str = "") -> JournalLine:
    return JournalLine(account_number=account, debit=Decimal(debit), credit=Decimal(credit), label=label)


def entry(
    journal: str,
    day: date,
    *lines: JournalLine,
    piece: str = "0001",
    label: str = "",
    number: str | None = None,
    company_id: str | None = "ACME",
    exercise_id: str | None = "2025",
) -> Entry:
    return Entry(
        journal_code=journal,
        entry_date=day,
        piece_number=piece,
        label=label,
        lines=lines,
        company_id=company_id,
        exercise_id=exercise_id,
        entry_number=number,
    )


@pytest.fixture
def make_line():
    return line


@pytest.fixture
def make_entry():
    return entry


@pytest.fixture
def sales_and_purchases():
    """A purchase, a sale and two payments over January-March 2025."""
    return [
        entry(
            "AC", date(2025, 1, 10),
            line("607000", "100.00"),
            line("445660", "20.00"),
            line("401000", credit="120.00"),
            piece="0001", label="Achat marchandises",
        ),
        entry(
            "VE", date(2025, 1, 20),
            line("411000", "240.00"),
            line("707000", credit="200.00"),
            line("445710", credit="40.00"),
            piece="0002", label="Vente F-001",
        ),
        entry(
            "BQ", date(2025, 2, 5),
            line("401000", "120.00"),
            line("512000", credit="120.00"),
            piece="0003", label="Règlement fournisseur",
        ),
        entry(
            "BQ", date(2025, 3, 15),
            line("512000", "240.00"),
            line("411000", credit="240.00"),
            piece="0004", label="Encaissement client",
        ),
    ]
