"""
EntryService -- validated persistence of journal entries.

Responsibility:
    Guards the repository: an entry reaches ``create`` or ``update`` only
    after the validation gate (at least two active lines, then balance)
    accepted it.  Also issues piece and entry numbers from what is stored.

Architecture position:
    Kernel -- services layer.  Storage-agnostic: the repository is any
    object implementing ``EntryRepository`` (create / update / delete /
    list keyed by company and exercise).  ``InMemoryEntryRepository`` is
    the reference implementation.

Failure modes:
    - Validation failures are returned as data (``PostResult`` with
      status REJECTED and the validation errors); nothing is written.
    - ``EntryNotFoundError`` from the repository on update/delete of an
      unknown id.

Open point:
    Deleting an account still referenced by entries is not prevented;
    ``accounts_referenced`` lets the caller check before deleting.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol
from uuid import uuid4

from compta_engines.balance import check_entry
from compta_engines.sequence import next_entry_number, next_number

from compta_kernel.domain.dtos import Entry, ValidationError
from compta_kernel.exceptions import EntryNotFoundError
from compta_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.entry")


class EntryRepository(Protocol):
    """Storage contract over entries, keyed by company and exercise."""

    def create(self, entry: Entry) -> Entry:
        """Store a new entry; returns it with its ``entry_id`` set."""
        ...

    def update(self, entry: Entry) -> Entry:
        """Replace the stored entry with the same ``entry_id``."""
        ...

    def delete(self, entry_id: str) -> None:
        ...

    def list(self, company_id: str | None, exercise_id: str | None) -> list[Entry]:
        """Entries of the company / exercise, in creation order."""
        ...

    def list_company(self, company_id: str | None) -> list[Entry]:
        """Entries of the company across all its exercises, in creation order."""
        ...


class InMemoryEntryRepository:
    """Dict-backed repository, insertion ordered."""

    def __init__(self, entries: Iterable[Entry] = ()):
        self._entries: dict[str, Entry] = {}
        for entry in entries:
            self.create(entry)

    def create(self, entry: Entry) -> Entry:
        stored = entry if entry.entry_id else entry.with_id(str(uuid4()))
        self._entries[stored.entry_id] = stored
        return stored

    def update(self, entry: Entry) -> Entry:
        if entry.entry_id not in self._entries:
            raise EntryNotFoundError(str(entry.entry_id))
        self._entries[entry.entry_id] = entry
        return entry

    def delete(self, entry_id: str) -> None:
        if entry_id not in self._entries:
            raise EntryNotFoundError(entry_id)
        del self._entries[entry_id]

    def get(self, entry_id: str) -> Entry:
        try:
            return self._entries[entry_id]
        except KeyError:
            raise EntryNotFoundError(entry_id) from None

    def list(self, company_id: str | None, exercise_id: str | None) -> list[Entry]:
        return [
            e
            for e in self._entries.values()
            if e.company_id == company_id and e.exercise_id == exercise_id
        ]

    def list_company(self, company_id: str | None) -> list[Entry]:
        return [e for e in self._entries.values() if e.company_id == company_id]

    def __len__(self) -> int:
        return len(self._entries)


class PostStatus(str, Enum):
    POSTED = "posted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class PostResult:
    """Outcome of ``post`` / ``update``."""

    status: PostStatus
    entry: Entry | None = None
    errors: tuple[ValidationError, ...] = ()

    @property
    def is_success(self) -> bool:
        return self.status == PostStatus.POSTED

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(e.message for e in self.errors)


class EntryService:
    """Validates entries before they are written to the repository."""

    def __init__(self, repository: EntryRepository | None = None):
        self._repository = repository if repository is not None else InMemoryEntryRepository()

    @property
    def repository(self) -> EntryRepository:
        return self._repository

    def _validate(self, entry: Entry, event: str) -> PostResult | None:
        result = check_entry(entry.lines)
        if result.is_valid:
            return None
        logger.warning(
            event,
            extra={
                "journal_code": entry.journal_code,
                "piece_number": entry.piece_number,
                "codes": [e.code for e in result.errors],
            },
        )
        return PostResult(status=PostStatus.REJECTED, entry=entry, errors=result.errors)

    def post(self, entry: Entry) -> PostResult:
        """Validate then create.  A rejected entry is not stored."""
        with LogContext.bind(company_id=entry.company_id, exercise_id=entry.exercise_id):
            rejected = self._validate(entry, "entry_rejected")
            if rejected is not None:
                return rejected
            to_store = entry
            if not to_store.entry_number:
                to_store = to_store.with_number(
                    self.next_entry_number(entry.company_id, entry.exercise_id, entry)
                )
            stored = self._repository.create(to_store)
            logger.info(
                "entry_posted",
                extra={
                    "entry_id": stored.entry_id,
                    "entry_number": stored.entry_number,
                    "total_debit": str(stored.total_debit),
                },
            )
            return PostResult(status=PostStatus.POSTED, entry=stored)

    def post_many(self, entries: Iterable[Entry]) -> list[PostResult]:
        return [self.post(e) for e in entries]

    def update(self, entry: Entry) -> PostResult:
        """Re-validate then replace.

        Raises:
            EntryNotFoundError: when ``entry.entry_id`` is not stored.
        """
        with LogContext.bind(
            company_id=entry.company_id,
            exercise_id=entry.exercise_id,
            entry_id=entry.entry_id,
        ):
            rejected = self._validate(entry, "entry_update_rejected")
            if rejected is not None:
                return rejected
            stored = self._repository.update(entry)
            logger.info("entry_updated", extra={"entry_number": stored.entry_number})
            return PostResult(status=PostStatus.POSTED, entry=stored)

    def delete(self, entry_id: str) -> None:
        self._repository.delete(entry_id)
        logger.info("entry_deleted", extra={"entry_id": entry_id})

    def list(self, company_id: str | None, exercise_id: str | None) -> list[Entry]:
        return self._repository.list(company_id, exercise_id)

    def next_piece_number(self, company_id: str | None, exercise_id: str | None) -> str:
        """Next 4-digit piece number of the company / exercise."""
        existing = [e.piece_number for e in self._repository.list(company_id, exercise_id)]
        return next_number("", existing)

    def next_entry_number(
        self,
        company_id: str | None,
        exercise_id: str | None,
        entry: Entry,
    ) -> str:
        """Next ``JOURNAL-YYYY-MM-NNNN`` number for ``entry``'s journal and month."""
        existing = [e.entry_number for e in self._repository.list(company_id, exercise_id)]
        return next_entry_number(entry.journal_code, entry.entry_date, existing)

    def accounts_referenced(
        self,
        company_id: str | None,
        exercise_id: str | None = None,
    ) -> set[str]:
        """Account numbers used by at least one stored line.

        Without ``exercise_id`` every exercise of the company counts.
        """
        if exercise_id is None:
            entries = self._repository.list_company(company_id)
        else:
            entries = self._repository.list(company_id, exercise_id)
        return {
            line.account_number
            for e in entries
            for line in e.lines
            if line.account_number
        }
