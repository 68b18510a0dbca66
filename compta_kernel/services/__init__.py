"""Kernel services: validated entry persistence over a repository contract."""

from compta_kernel.services.entry_service import (
    EntryRepository,
    EntryService,
    InMemoryEntryRepository,
    PostResult,
    PostStatus,
)

__all__ = [
    "EntryRepository",
    "EntryService",
    "InMemoryEntryRepository",
    "PostResult",
    "PostStatus",
]
