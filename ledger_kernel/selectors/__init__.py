"""Read-only selectors (query side of the ledger kernel)."""

from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.journal_selector import JournalEntryFilter, JournalSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector, PeriodAggregates

__all__ = [
    "AccountSelector",
    "JournalEntryFilter",
    "JournalSelector",
    "LedgerSelector",
    "PeriodAggregates",
]
