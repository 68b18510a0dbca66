"""
Accounts -- French chart-of-accounts semantics.

Responsibility:
    Classify an account number (a string, never an int) into its classe
    and the sub-ranges every other component relies on: receivables,
    payables, deductible and collected VAT.  Hold a company's chart of
    accounts and answer "is this account known" / "what is its label".

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Invariants enforced:
    - Membership is decided by ``startswith`` on the raw string.  Leading
      zeros and prefix structure are preserved; no normalization happens.
    - Specific prefixes are tested before broader ones (``4456`` before
      ``44``), so classification never depends on dict ordering.

Failure modes:
    - None for classification: any string is accepted, the empty string
      has classe ``""`` and type ``autre``.
    - ``ChartOfAccounts.require`` raises AccountNotFoundError.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from compta_kernel.domain.dtos import Account
from compta_kernel.exceptions import AccountNotFoundError

RECEIVABLE_PREFIXES = ("41", "42", "43")
DEDUCTIBLE_VAT_PREFIX = "4456"
COLLECTED_VAT_PREFIX = "4457"

UNKNOWN_ACCOUNT_LABEL = "Compte inconnu"


class VatDirection(str, Enum):
    """Which side of the VAT declaration an account feeds."""

    DEDUCTIBLE = "deductible"  # 4456, TVA sur achats
    COLLECTED = "collected"  # 4457, TVA sur ventes


class AccountType(str, Enum):
    """Account type derived from the classe when an account is created."""

    CAPITAUX = "capitaux"
    IMMOBILISATION = "immobilisation"
    STOCK = "stock"
    TIERS = "tiers"
    FINANCIER = "financier"
    CHARGE = "charge"
    PRODUIT = "produit"
    SPECIAL = "special"
    AUTRE = "autre"


_TYPE_BY_CLASSE: Mapping[str, AccountType] = MappingProxyType({
    "1": AccountType.CAPITAUX,
    "2": AccountType.IMMOBILISATION,
    "3": AccountType.STOCK,
    "4": AccountType.TIERS,
    "5": AccountType.FINANCIER,
    "6": AccountType.CHARGE,
    "7": AccountType.PRODUIT,
    "8": AccountType.SPECIAL,
})


@dataclass(frozen=True, slots=True, order=True)
class AccountNumber:
    """
    Account number with prefix semantics.

    Ordering is plain string ordering: ``"9" > "10"``.  This is how
    account ranges are filtered throughout the reports.
    """

    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", str(self.value).strip())

    @property
    def classe(self) -> str:
        return self.value[:1]

    def starts_with(self, *prefixes: str) -> bool:
        return any(self.value.startswith(p) for p in prefixes)

    def in_range(self, start: str | None = None, end: str | None = None) -> bool:
        """Lexicographic, inclusive range check; ``None`` bounds are open."""
        if start and self.value < start:
            return False
        if end and self.value > end:
            return False
        return True

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class AccountClassification:
    """Result of ``classify``."""

    number: str
    classe: str
    is_receivable: bool
    is_payable: bool
    is_vat: bool
    vat_direction: VatDirection | None
    account_type: AccountType

    @property
    def is_expense(self) -> bool:
        return self.classe == "6"

    @property
    def is_revenue(self) -> bool:
        return self.classe == "7"


def account_type_for(number: str | AccountNumber) -> AccountType:
    """Type of an account created on the fly (FEC import, entry)."""
    classe = AccountNumber(str(number)).classe
    return _TYPE_BY_CLASSE.get(classe, AccountType.AUTRE)


def vat_direction_of(number: str | AccountNumber) -> VatDirection | None:
    acc = number if isinstance(number, AccountNumber) else AccountNumber(number)
    if acc.starts_with(DEDUCTIBLE_VAT_PREFIX):
        return VatDirection.DEDUCTIBLE
    if acc.starts_with(COLLECTED_VAT_PREFIX):
        return VatDirection.COLLECTED
    return None


def classify(number: str | AccountNumber) -> AccountClassification:
    """Map an account number to its classe and classe-4 sub-ranges.

    In classe 4, ``41``/``42``/``43`` are créances (receivables) and every
    other classe-4 account is a dette (payable), VAT accounts included.
    """
    acc = number if isinstance(number, AccountNumber) else AccountNumber(number)
    direction = vat_direction_of(acc)
    is_receivable = acc.starts_with(*RECEIVABLE_PREFIXES)
    return AccountClassification(
        number=acc.value,
        classe=acc.classe,
        is_receivable=is_receivable,
        is_payable=acc.classe == "4" and not is_receivable,
        is_vat=direction is not None,
        vat_direction=direction,
        account_type=account_type_for(acc),
    )


@dataclass(frozen=True)
class ChartOfAccounts:
    """
    A company's accounts plus the standard plan comptable labels.

    Contract:
        ``is_known`` answers for the company's own accounts only: a number
        found in the standard plan but not yet opened by the company is
        unknown, and the caller runs the account-creation workflow (with
        the standard label as suggestion).

    Guarantees:
        - Immutable; ``with_account`` returns a new chart.
        - ``accounts`` is sorted by number (string order).
    """

    accounts: tuple[Account, ...] = ()
    standard_labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        by_number: dict[str, Account] = {}
        for account in self.accounts:
            by_number[account.account_number] = account
        object.__setattr__(
            self, "accounts", tuple(by_number[k] for k in sorted(by_number))
        )
        object.__setattr__(self, "_by_number", MappingProxyType(by_number))
        object.__setattr__(
            self, "standard_labels", MappingProxyType(dict(self.standard_labels))
        )

    @classmethod
    def from_standard(
        cls,
        labels: Mapping[str, str],
        company_id: str | None = None,
    ) -> ChartOfAccounts:
        """Chart where every standard plan account is opened."""
        accounts = tuple(
            Account(
                account_number=number,
                label=label,
                company_id=company_id,
                account_type=account_type_for(number).value,
            )
            for number, label in labels.items()
        )
        return cls(accounts=accounts, standard_labels=labels)

    def __contains__(self, number: object) -> bool:
        return str(number) in self._by_number  # type: ignore[attr-defined]

    def __len__(self) -> int:
        return len(self.accounts)

    def is_known(self, number: str) -> bool:
        return number in self

    def get(self, number: str) -> Account | None:
        return self._by_number.get(number)  # type: ignore[attr-defined]

    def require(self, number: str) -> Account:
        account = self.get(number)
        if account is None:
            raise AccountNotFoundError(number)
        return account

    def label_for(self, number: str, default: str | None = None) -> str | None:
        """Company label, then standard plan label, then ``default``."""
        account = self.get(number)
        if account is not None and account.label:
            return account.label
        return self.standard_labels.get(number) or default

    def search(self, query: str, limit: int = 10) -> list[tuple[str, str]]:
        """Accounts whose number starts with ``query`` or whose label contains it.

        Company accounts come first, then standard plan entries not opened
        by the company.  Label matching is case-insensitive.
        """
        q = query.strip().lower()
        results: list[tuple[str, str]] = []
        seen: set[str] = set()
        candidates: list[tuple[str, str]] = [
            (a.account_number, a.label) for a in self.accounts
        ]
        candidates.extend(sorted(self.standard_labels.items()))
        for number, label in candidates:
            if number in seen:
                continue
            if number.startswith(query.strip()) or q in label.lower():
                results.append((number, label))
                seen.add(number)
                if len(results) >= limit:
                    break
        return results

    def with_account(self, account: Account) -> ChartOfAccounts:
        return ChartOfAccounts(
            accounts=self.accounts + (account,),
            standard_labels=self.standard_labels,
        )
