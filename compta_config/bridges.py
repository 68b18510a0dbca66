"""
Config -> kernel / engine bridges.

Functions that turn a ComptaConfig into the objects the kernel and the
engines take as inputs.  They live here because compta_kernel never
imports compta_config.

Usage:
    from compta_config.bridges import build_chart, build_vat_splitter

    config = get_active_config()
    chart = build_chart(config, company_accounts)
    splitter = build_vat_splitter(config)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from compta_engines.vat import VatSplitter
from compta_kernel.domain.accounts import ChartOfAccounts
from compta_kernel.domain.dtos import Account

from compta_config.schema import ComptaConfig


def build_chart(
    config: ComptaConfig,
    accounts: Iterable[Account] | None = None,
    company_id: str | None = None,
) -> ChartOfAccounts:
    """Chart of a company.

    With ``accounts`` the company's own accounts are used and the plan
    comptable only provides labels; without, every plan account is opened.
    """
    if accounts is None:
        return ChartOfAccounts.from_standard(config.chart_labels, company_id=company_id)
    return ChartOfAccounts(accounts=tuple(accounts), standard_labels=config.chart_labels)


def build_vat_splitter(config: ComptaConfig) -> VatSplitter:
    return VatSplitter(
        default_rate=config.vat.default_rate,
        purchase_account=config.vat.purchase_account,
        sales_account=config.vat.sales_account,
    )


def fec_options(config: ComptaConfig) -> dict[str, Any]:
    """Options understood by ``FecFileAdapter``."""
    return {
        "encodings": config.fec.encodings,
        "delimiter": config.fec.delimiter,
        "required_columns": config.fec.required_columns,
    }
