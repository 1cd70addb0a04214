"""Bank reconciliations: difference computation, discrepancies and completion rules."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.dtos import (
    ClosingMeta,
    DiscrepancyDraft,
    ReconciliationDraft,
    ReconciliationPatch,
)
from ledger_kernel.exceptions import (
    ClosingChecksFailedError,
    DiscrepancyNotFoundError,
    InvalidStateTransitionError,
    OpenDiscrepanciesError,
    OptimisticLockError,
    ReconciliationNotFoundError,
    ReconciliationOutOfBalanceError,
    ValidationError,
)
from ledger_kernel.models.bank_reconciliation import ReconciliationStatus


def _draft(statement: str, system: str, statement_date: date = date(2025, 1, 31)):
    return ReconciliationDraft(
        bank_name="بانک ملت",
        account_number="0101-22",
        statement_date=statement_date,
        statement_balance=Decimal(statement),
        system_balance=Decimal(system),
    )


class TestReconciliationService:
    def test_create_computes_difference(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("1000", "950"), "admin")

        assert info.status == "PENDING"
        assert info.difference == Decimal("50")
        assert info.reconciled_at is None

    def test_complete_when_balanced(self, reconciliation_service, clock):
        info = reconciliation_service.create_reconciliation(_draft("1000", "1000"), "admin")

        done = reconciliation_service.complete_reconciliation(info.id)

        assert done.status == "COMPLETED"
        assert done.reconciled_at == clock.now()

    def test_complete_within_tolerance(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("1000.01", "1000"), "admin")
        assert reconciliation_service.complete_reconciliation(info.id).status == "COMPLETED"

    def test_complete_with_difference_rejected(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("1000", "900"), "admin")

        with pytest.raises(ReconciliationOutOfBalanceError) as exc_info:
            reconciliation_service.complete_reconciliation(info.id)
        assert exc_info.value.difference == Decimal("100")

    def test_complete_twice_rejected(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("5", "5"), "admin")
        reconciliation_service.complete_reconciliation(info.id)

        with pytest.raises(InvalidStateTransitionError):
            reconciliation_service.complete_reconciliation(info.id)

    def test_unknown_reconciliation(self, reconciliation_service):
        with pytest.raises(ReconciliationNotFoundError):
            reconciliation_service.get_reconciliation(uuid4())

    def test_list_by_status(self, reconciliation_service):
        pending = reconciliation_service.create_reconciliation(_draft("1", "0"), "admin")
        balanced = reconciliation_service.create_reconciliation(
            _draft("3", "3", date(2025, 2, 28)), "admin"
        )
        reconciliation_service.complete_reconciliation(balanced.id)

        everything = reconciliation_service.list_reconciliations()
        assert [r.id for r in everything] == [balanced.id, pending.id]
        only_pending = reconciliation_service.list_reconciliations(ReconciliationStatus.PENDING)
        assert [r.id for r in only_pending] == [pending.id]


def _discrepancy(amount: str = "1500000", kind: str = "MISSING_TRANSACTION"):
    return DiscrepancyDraft(
        amount=Decimal(amount),
        discrepancy_type=kind,
        description="کارمزد بانکی ثبت نشده",
    )


class TestUpdateAndDelete:
    def test_update_recomputes_difference(self, reconciliation_service, clock):
        info = reconciliation_service.create_reconciliation(_draft("1000", "900"), "admin")
        clock.advance(60)

        updated = reconciliation_service.update_reconciliation(
            info.id, ReconciliationPatch(system_balance=Decimal("1000"), description="اصلاح")
        )

        assert updated.difference == Decimal("0")
        assert updated.statement_balance == Decimal("1000")
        assert updated.description == "اصلاح"
        assert updated.updated_at == clock.now()
        assert updated.version == info.version + 1
        assert reconciliation_service.complete_reconciliation(updated.id).status == "COMPLETED"

    def test_update_stale_version_rejected(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("1000", "900"), "admin")

        with pytest.raises(OptimisticLockError):
            reconciliation_service.update_reconciliation(
                info.id,
                ReconciliationPatch(bank_name="بانک ملی"),
                expected_version=info.version + 5,
            )

    def test_update_completed_rejected(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("5", "5"), "admin")
        reconciliation_service.complete_reconciliation(info.id)

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            reconciliation_service.update_reconciliation(
                info.id, ReconciliationPatch(statement_balance=Decimal("6"))
            )
        assert exc_info.value.action == "update"

    def test_delete_pending(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("1000", "900"), "admin")
        reconciliation_service.add_discrepancy(info.id, _discrepancy("100"), "admin")

        reconciliation_service.delete_reconciliation(info.id)

        with pytest.raises(ReconciliationNotFoundError):
            reconciliation_service.get_reconciliation(info.id)

    def test_delete_completed_rejected(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("5", "5"), "admin")
        reconciliation_service.complete_reconciliation(info.id)

        with pytest.raises(InvalidStateTransitionError):
            reconciliation_service.delete_reconciliation(info.id)

    def test_delete_unknown(self, reconciliation_service):
        with pytest.raises(ReconciliationNotFoundError):
            reconciliation_service.delete_reconciliation(uuid4())


class TestDiscrepancies:
    def test_add_discrepancy(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(
            _draft("48500000", "50000000"), "admin"
        )

        recon, discrepancy = reconciliation_service.add_discrepancy(
            info.id, _discrepancy(), "admin"
        )

        assert discrepancy.status == "OPEN"
        assert discrepancy.discrepancy_type == "MISSING_TRANSACTION"
        assert discrepancy.amount == Decimal("1500000")
        assert [d.id for d in recon.open_discrepancies] == [discrepancy.id]
        assert recon.version == info.version + 1

    def test_non_positive_amount_rejected(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("10", "0"), "admin")

        with pytest.raises(ValidationError) as exc_info:
            reconciliation_service.add_discrepancy(info.id, _discrepancy("0"), "admin")
        assert exc_info.value.field == "amount"

    def test_unknown_type_rejected(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("10", "0"), "admin")

        with pytest.raises(ValidationError) as exc_info:
            reconciliation_service.add_discrepancy(info.id, _discrepancy("10", "ROUNDING"), "admin")
        assert exc_info.value.field == "type"

    def test_open_discrepancy_blocks_completion(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("10", "0"), "admin")
        reconciliation_service.add_discrepancy(info.id, _discrepancy("10"), "admin")

        with pytest.raises(OpenDiscrepanciesError) as exc_info:
            reconciliation_service.complete_reconciliation(info.id)
        assert exc_info.value.open_count == 1

    def test_resolved_discrepancies_allow_completion(self, reconciliation_service, clock):
        info = reconciliation_service.create_reconciliation(
            _draft("48500000", "50000000"), "admin"
        )
        _, first = reconciliation_service.add_discrepancy(
            info.id, _discrepancy("1000000"), "admin"
        )
        _, second = reconciliation_service.add_discrepancy(
            info.id, _discrepancy("500000", "AMOUNT_DIFFERENCE"), "admin"
        )

        reconciliation_service.resolve_discrepancy(info.id, first.id, "سند اصلاحی ثبت شد")
        resolved = reconciliation_service.resolve_discrepancy(info.id, second.id, "تایید شد")

        assert [d.status for d in resolved.discrepancies] == ["RESOLVED", "RESOLVED"]
        assert resolved.discrepancies[0].resolution == "سند اصلاحی ثبت شد"
        assert resolved.discrepancies[1].resolved_at == clock.now()

        done = reconciliation_service.complete_reconciliation(info.id)
        assert done.status == "COMPLETED"
        assert done.difference == Decimal("-1500000")

    def test_resolve_twice_rejected(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("10", "0"), "admin")
        _, discrepancy = reconciliation_service.add_discrepancy(
            info.id, _discrepancy("10"), "admin"
        )
        reconciliation_service.resolve_discrepancy(info.id, discrepancy.id, "ok")

        with pytest.raises(InvalidStateTransitionError):
            reconciliation_service.resolve_discrepancy(info.id, discrepancy.id, "again")

    def test_resolve_unknown_discrepancy(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("10", "0"), "admin")

        with pytest.raises(DiscrepancyNotFoundError):
            reconciliation_service.resolve_discrepancy(info.id, uuid4(), "ok")

    def test_add_to_completed_rejected(self, reconciliation_service):
        info = reconciliation_service.create_reconciliation(_draft("5", "5"), "admin")
        reconciliation_service.complete_reconciliation(info.id)

        with pytest.raises(InvalidStateTransitionError):
            reconciliation_service.add_discrepancy(info.id, _discrepancy("1"), "admin")


class TestPeriodCloseUnblocked:
    """A pending reconciliation stops blocking the close once settled or removed."""

    META = ClosingMeta(closing_date="1403/10/30", description="بستن دوره دی")

    def _blocking(self, reconciliation_service):
        return reconciliation_service.create_reconciliation(
            _draft("48500000", "50000000"), "admin"
        )

    def test_close_after_discrepancies_resolved(
        self, period, period_service, reconciliation_service, accounts
    ):
        info = self._blocking(reconciliation_service)
        with pytest.raises(ClosingChecksFailedError):
            period_service.close_period(period.id, self.META, "admin")

        _, discrepancy = reconciliation_service.add_discrepancy(
            info.id, _discrepancy(), "admin"
        )
        reconciliation_service.resolve_discrepancy(info.id, discrepancy.id, "ثبت شد")
        reconciliation_service.complete_reconciliation(info.id)

        assert period_service.close_period(period.id, self.META, "admin").period.is_closed

    def test_close_after_balances_corrected(
        self, period, period_service, reconciliation_service, accounts
    ):
        info = self._blocking(reconciliation_service)
        reconciliation_service.update_reconciliation(
            info.id, ReconciliationPatch(statement_balance=Decimal("50000000"))
        )
        reconciliation_service.complete_reconciliation(info.id)

        assert period_service.close_period(period.id, self.META, "admin").period.is_closed

    def test_close_after_delete(self, period, period_service, reconciliation_service, accounts):
        info = self._blocking(reconciliation_service)
        reconciliation_service.delete_reconciliation(info.id)

        assert period_service.close_period(period.id, self.META, "admin").period.is_closed
