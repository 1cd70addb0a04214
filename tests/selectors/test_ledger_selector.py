"""LedgerSelector: balances, aggregates and the closing-check snapshot."""

from datetime import date
from decimal import Decimal

from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.selectors.ledger_selector import LedgerSelector


class TestLedgerSelector:
    def test_balances_only_count_posted_entries(
        self, session, create_entry, accounts, journal_service
    ):
        create_entry(post=True)
        create_entry()  # draft
        cancelled = create_entry()
        journal_service.cancel_entry(cancelled.id)

        balances = LedgerSelector(session).account_balances(date(2025, 1, 31))

        assert balances[accounts["3101"].id] == Decimal("1000000")
        assert balances[accounts["4101"].id] == Decimal("-1000000")

    def test_balances_respect_as_of_date(self, session, create_entry, accounts):
        create_entry(entry_date=date(2025, 1, 25), post=True)

        balances = LedgerSelector(session).account_balances(date(2025, 1, 24))

        assert accounts["3101"].id not in balances

    def test_period_aggregates(self, session, create_entry, accounts, make_lines, period):
        create_entry(post=True)
        create_entry(
            lines=make_lines(
                (accounts["5101"], "300", "0"),
                (accounts["3201"], "0", "300"),
            ),
            post=True,
        )

        aggregates = LedgerSelector(session).period_aggregates(period.id)

        assert aggregates.total_revenue == Decimal("1000000")
        assert aggregates.total_expenses == Decimal("300")
        assert aggregates.net_income == Decimal("999700")

    def test_snapshot_is_detached(self, session, create_entry, accounts, period):
        posted = create_entry(number="P-1", post=True)
        create_entry(number="D-1")

        snapshot = LedgerSelector(session).period_snapshot(
            session.get(AccountingPeriod, period.id)
        )

        assert [e.number for e in snapshot.entries] == ["D-1", "P-1"]
        assert [e.entry_id for e in snapshot.posted_entries()] == [posted.id]
        assert snapshot.accounts["1301"].code == "1301"
        assert snapshot.balance_of(accounts["3101"]) == Decimal("1000000")
        assert snapshot.pending_reconciliations == ()
