"""
compta_ingestion -- FEC import and accounting file exports.

Reads FEC files (Fichier des Écritures Comptables), parses and groups
their rows into entries, runs them through the balance gate and hands
them to an entry repository.  Writes FEC and CSV exports.

Architecture:
    compta_ingestion/ is a top-level package.  Nothing in compta_kernel
    or compta_engines imports from ingestion.
"""
