from ledger_api.routers import (
    accounting_periods,
    closing_checks,
    journal_entries,
    reconciliations,
)

__all__ = ["accounting_periods", "closing_checks", "journal_entries", "reconciliations"]
