"""
Ledger Kernel

Double-entry journal posting and accounting-period closing for the
Persian-language accounting back office:
- Balanced journal entries with a DRAFT -> POSTED / CANCELLED lifecycle
- Closing checklist with deterministic, concurrently evaluated checks
- All-or-nothing period close
- Optimistic concurrency on every mutable entity
"""

__version__ = "0.1.0"
