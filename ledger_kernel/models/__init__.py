"""Domain models for the ledger kernel."""

from ledger_kernel.models.account import Account, AccountType, NormalBalance
from ledger_kernel.models.accounting_period import AccountingPeriod, PeriodStatus
from ledger_kernel.models.bank_reconciliation import (
    BankReconciliation,
    DiscrepancyStatus,
    DiscrepancyType,
    ReconciliationDiscrepancy,
    ReconciliationStatus,
)
from ledger_kernel.models.journal import (
    JournalEntry,
    JournalEntryStatus,
    JournalLine,
)

__all__ = [
    "Account",
    "AccountType",
    "AccountingPeriod",
    "BankReconciliation",
    "DiscrepancyStatus",
    "DiscrepancyType",
    "JournalEntry",
    "JournalEntryStatus",
    "JournalLine",
    "NormalBalance",
    "PeriodStatus",
    "ReconciliationDiscrepancy",
    "ReconciliationStatus",
]
