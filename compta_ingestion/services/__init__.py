"""Ingestion services."""

from compta_ingestion.services.import_service import FecImportService, accounts_to_create

__all__ = ["FecImportService", "accounts_to_create"]
