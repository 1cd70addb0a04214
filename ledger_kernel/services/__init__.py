"""Kernel services (write side).  Every service flushes; callers commit."""

from ledger_kernel.services.closing_check_runner import ClosingCheckRunner
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.period_service import PeriodCloseResult, PeriodService
from ledger_kernel.services.reconciliation_service import ReconciliationService
from ledger_kernel.services.reference_data_loader import AccountSeed, ReferenceDataLoader

__all__ = [
    "AccountSeed",
    "ClosingCheckRunner",
    "JournalService",
    "PeriodCloseResult",
    "PeriodService",
    "ReconciliationService",
    "ReferenceDataLoader",
]
