"""
ClosingCheckRunner: catalog filtering, subset runs, concurrent evaluation.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain import closing_checks
from ledger_kernel.domain.closing_checks import CheckCategory, CheckStatus
from ledger_kernel.domain.dtos import ReconciliationDraft
from ledger_kernel.exceptions import PeriodNotFoundError, ValidationError
from ledger_kernel.services.closing_check_runner import ClosingCheckRunner


class TestCatalog:
    def test_full_catalog_in_configured_order(self, runner):
        assert [d.check_id for d in runner.catalog()] == [str(i) for i in range(1, 9)]

    def test_filter_by_category(self, runner):
        checks = runner.catalog(category=CheckCategory.INVENTORY)
        assert [(d.check_id, d.account_code) for d in checks] == [("5", "1301")]

    def test_filter_by_required(self, runner):
        optional = runner.catalog(required=False)
        assert [d.check_id for d in optional] == ["7", "8"]
        assert len(runner.catalog(required=True)) == 6


class TestRun:
    def test_clean_period_passes_everything(self, runner, period, accounts, clock):
        run = runner.run(period.id)

        assert run.period_id == period.id
        assert run.executed_at == clock.now()
        assert [r.status for r in run.results] == [CheckStatus.COMPLETED] * 8
        assert run.summary.success_rate == 100
        assert run.summary.can_close is True

    def test_results_stamped_with_period_and_time(self, runner, period, accounts, clock):
        run = runner.run(period.id)
        assert {r.period_id for r in run.results} == {period.id}
        assert {r.executed_at for r in run.results} == {clock.now()}

    def test_subset_run(self, runner, period, accounts):
        run = runner.run(period.id, check_ids=["1", "3"])
        assert [r.check_id for r in run.results] == ["1", "3"]
        assert run.summary.total == 2

    def test_unknown_ids_ignored(self, runner, period, accounts):
        run = runner.run(period.id, check_ids=["2", "99"])
        assert [r.check_id for r in run.results] == ["2"]

    def test_empty_selection_rejected(self, runner, period):
        with pytest.raises(ValidationError):
            runner.run(period.id, check_ids=["99"])

    def test_unknown_period(self, runner):
        with pytest.raises(PeriodNotFoundError):
            runner.run(uuid4())

    def test_draft_fails_documents_check(self, runner, period, create_entry):
        create_entry(number="D-1")

        run = runner.run(period.id)

        failed = run.failed_results
        assert [r.check_id for r in failed] == ["3"]
        assert failed[0].error_message == "برخی اسناد مالی ثبت نشده‌اند"
        assert failed[0].details["entries"] == ["D-1"]
        assert run.summary.failed == 1
        assert run.summary.required_failed == 1
        assert run.summary.success_rate == 88
        assert run.summary.can_close is False

    def test_temporary_account_balance_fails(self, runner, period, create_entry, accounts, make_lines):
        create_entry(
            lines=make_lines(
                (accounts["1901"], "7000", "0"),
                (accounts["3101"], "0", "7000"),
            ),
            post=True,
        )

        run = runner.run(period.id, check_ids=["2"])

        assert run.results[0].status == CheckStatus.FAILED
        assert run.results[0].details["accounts"] == ["1901"]

    def test_pending_reconciliation_outside_period_ignored(
        self, runner, period, reconciliation_service, accounts
    ):
        reconciliation_service.create_reconciliation(
            ReconciliationDraft(
                bank_name="بانک ملت",
                account_number="1",
                statement_date=date(2025, 3, 1),
                statement_balance=Decimal("10"),
                system_balance=Decimal("0"),
            ),
            actor="admin",
        )
        run = runner.run(period.id, check_ids=["4"])
        assert run.results[0].status == CheckStatus.COMPLETED

    def test_balances_are_cumulative_across_periods(
        self, runner, create_period, create_entry, accounts, make_lines, period
    ):
        # December leaves the suspense account open; January inherits it
        december = create_period("آذر", date(2024, 12, 1), date(2024, 12, 31))
        create_entry(
            period_id=december.id,
            entry_date=date(2024, 12, 20),
            lines=make_lines(
                (accounts["1901"], "300", "0"),
                (accounts["3101"], "0", "300"),
            ),
            post=True,
        )

        run = runner.run(period.id, check_ids=["2"])

        assert run.results[0].failed

    def test_predicate_error_becomes_failed_result(
        self, runner, period, accounts, monkeypatch, captured_logs
    ):
        def explode(definition, snapshot, tolerance):
            raise ZeroDivisionError("boom")

        monkeypatch.setitem(
            closing_checks._PREDICATES, CheckCategory.BANK_RECONCILIATION, explode
        )

        run = runner.run(period.id)

        result = next(r for r in run.results if r.check_id == "4")
        assert result.status == CheckStatus.FAILED
        assert "ZeroDivisionError" in result.details["reason"]
        assert sum(1 for r in run.results if r.failed) == 1
        assert any(r["message"] == "closing_check_errored" for r in captured_logs())

    def test_single_worker_gives_same_results(
        self, session, clock, check_definitions, period, create_entry
    ):
        create_entry(number="D-1")
        serial = ClosingCheckRunner(session, check_definitions, clock=clock, max_workers=1)
        parallel = ClosingCheckRunner(session, check_definitions, clock=clock, max_workers=8)

        assert serial.run(period.id).results == parallel.run(period.id).results

    def test_run_is_logged(self, runner, period, accounts, captured_logs):
        runner.run(period.id)

        done = [r for r in captured_logs() if r["message"] == "closing_checks_completed"]
        assert len(done) == 1
        assert done[0]["period_id"] == str(period.id)
        assert done[0]["total"] == 8
        assert done[0]["can_close"] is True
