"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Read-only ledger queries over posted journal lines: cumulative
    account balances, period revenue/expense aggregates, and the immutable
    PeriodLedgerSnapshot consumed by the closing checks.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - No stored balances.  Every balance derives from POSTED JournalLine rows
      at query time.
    - The snapshot is built once per checklist run and is fully detached from
      the session (plain Decimals, frozen dataclasses, read-only mappings).

Failure modes:
    - Returns zero balances / empty tuples when no posted entries exist.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from uuid import UUID

from sqlalchemy import func, select

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.closing_checks import EntrySnapshot, PeriodLedgerSnapshot
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.models.bank_reconciliation import (
    BankReconciliation,
    ReconciliationStatus,
)
from ledger_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.base import BaseSelector


def _dec(value) -> Decimal:
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass(frozen=True)
class PeriodAggregates:
    """Revenue/expense totals of a period's POSTED entries."""

    total_revenue: Decimal
    total_expenses: Decimal

    @property
    def net_income(self) -> Decimal:
        return self.total_revenue - self.total_expenses


class LedgerSelector(BaseSelector[JournalLine]):
    """
    Selector for balance and aggregate queries.

    Guarantees:
        - Only POSTED entries contribute to balances and aggregates.
        - Balances are signed debit - credit.
    """

    def account_balances(self, as_of_date: date) -> dict[UUID, Decimal]:
        """Cumulative debit - credit per account over POSTED entries up to ``as_of_date``."""
        rows = self.session.execute(
            select(
                JournalLine.account_id,
                func.sum(JournalLine.debit),
                func.sum(JournalLine.credit),
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.status == JournalEntryStatus.POSTED,
                JournalEntry.entry_date <= as_of_date,
            )
            .group_by(JournalLine.account_id)
        ).all()
        return {account_id: _dec(debit) - _dec(credit) for account_id, debit, credit in rows}

    def period_aggregates(self, period_id: UUID) -> PeriodAggregates:
        """
        Revenue and expenses of a period.

        total_revenue  = sum(credit - debit) over REVENUE accounts
        total_expenses = sum(debit - credit) over EXPENSE accounts
        """
        rows = self.session.execute(
            select(
                Account.account_type,
                func.sum(JournalLine.debit),
                func.sum(JournalLine.credit),
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .join(Account, JournalLine.account_id == Account.id)
            .where(
                JournalEntry.period_id == period_id,
                JournalEntry.status == JournalEntryStatus.POSTED,
                Account.account_type.in_([AccountType.REVENUE, AccountType.EXPENSE]),
            )
            .group_by(Account.account_type)
        ).all()

        revenue = ZERO
        expenses = ZERO
        for account_type, debit, credit in rows:
            if account_type == AccountType.REVENUE:
                revenue = _dec(credit) - _dec(debit)
            else:
                expenses = _dec(debit) - _dec(credit)
        return PeriodAggregates(total_revenue=revenue, total_expenses=expenses)

    def _period_entries(self, period_id: UUID) -> tuple[EntrySnapshot, ...]:
        entries = self.session.execute(
            select(JournalEntry)
            .where(JournalEntry.period_id == period_id)
            .order_by(JournalEntry.entry_date, JournalEntry.number)
        ).scalars()
        snapshots = []
        for entry in entries:
            snapshots.append(
                EntrySnapshot(
                    entry_id=entry.id,
                    number=entry.number,
                    status=str(getattr(entry.status, "value", entry.status)),
                    total_debit=_dec(entry.total_debit),
                    total_credit=_dec(entry.total_credit),
                    line_debit=sum((_dec(line.debit) for line in entry.lines), ZERO),
                    line_credit=sum((_dec(line.credit) for line in entry.lines), ZERO),
                )
            )
        return tuple(snapshots)

    def _pending_reconciliations(self, start: date, end: date) -> tuple[str, ...]:
        rows = self.session.execute(
            select(BankReconciliation)
            .where(
                BankReconciliation.status == ReconciliationStatus.PENDING,
                BankReconciliation.statement_date >= start,
                BankReconciliation.statement_date <= end,
            )
            .order_by(BankReconciliation.statement_date)
        ).scalars()
        return tuple(str(r.id) for r in rows)

    def period_snapshot(self, period: AccountingPeriod) -> PeriodLedgerSnapshot:
        """Detached view of the period for the closing checks."""
        return PeriodLedgerSnapshot(
            period_id=period.id,
            period_name=period.name,
            start_date=period.start_date,
            end_date=period.end_date,
            entries=self._period_entries(period.id),
            accounts=MappingProxyType(AccountSelector(self.session).by_code()),
            cumulative_balances=MappingProxyType(self.account_balances(period.end_date)),
            pending_reconciliations=self._pending_reconciliations(
                period.start_date, period.end_date
            ),
        )
