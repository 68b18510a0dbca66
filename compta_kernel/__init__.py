"""
Compta Kernel

Domain core of a French double-entry bookkeeping system:
- Account numbers with prefix semantics (plan comptable)
- Decimal-only amounts with a single rounding policy
- Journal lines, entries and accounts as immutable values
- Typed exceptions and structured JSON logging
"""

__version__ = "0.1.0"
