"""
ReconciliationService -- bank statement reconciliations.

Responsibility:
    Records bank statement vs. book balance comparisons, the discrepancies
    that explain any gap between them, and completes a reconciliation once
    every discrepancy is resolved.  PENDING reconciliations dated inside a
    period block the BANK_RECONCILIATION closing check.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes only.

Invariants enforced:
    - difference = statement_balance - system_balance, computed here and
      recomputed on every balance edit.
    - Only PENDING reconciliations are edited, deleted or given new
      discrepancies.
    - PENDING -> COMPLETED only, never while a discrepancy is OPEN, and a
      difference beyond tolerance needs at least one recorded discrepancy.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import BALANCE_TOLERANCE
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import (
    BankReconciliationInfo,
    DiscrepancyDraft,
    DiscrepancyInfo,
    ReconciliationDraft,
    ReconciliationPatch,
)
from ledger_kernel.exceptions import (
    DiscrepancyNotFoundError,
    InvalidStateTransitionError,
    OpenDiscrepanciesError,
    ReconciliationNotFoundError,
    ReconciliationOutOfBalanceError,
    ValidationError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.bank_reconciliation import (
    BankReconciliation,
    DiscrepancyStatus,
    DiscrepancyType,
    ReconciliationDiscrepancy,
    ReconciliationStatus,
)
from ledger_kernel.services.base import BaseService

logger = get_logger("services.reconciliation")

_ENTITY = "BankReconciliation"


class ReconciliationService(BaseService[BankReconciliation]):
    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        tolerance: Decimal = BALANCE_TOLERANCE,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._tolerance = tolerance

    def _get_for_update(self, reconciliation_id: UUID) -> BankReconciliation:
        recon = self.session.execute(
            select(BankReconciliation)
            .where(BankReconciliation.id == reconciliation_id)
            .with_for_update()
        ).scalar_one_or_none()
        if recon is None:
            raise ReconciliationNotFoundError(str(reconciliation_id))
        return recon

    def _load_pending(
        self,
        reconciliation_id: UUID,
        action: str,
        expected_version: int | None = None,
    ) -> BankReconciliation:
        recon = self._get_for_update(reconciliation_id)
        self._check_version(_ENTITY, recon, expected_version)
        if not recon.is_pending:
            raise InvalidStateTransitionError(
                _ENTITY, str(reconciliation_id), ReconciliationStatus(recon.status).value, action
            )
        return recon

    def create_reconciliation(
        self,
        draft: ReconciliationDraft,
        actor: str,
    ) -> BankReconciliationInfo:
        now = self._clock.now()
        recon = BankReconciliation(
            bank_name=draft.bank_name,
            account_number=draft.account_number,
            statement_date=draft.statement_date,
            statement_balance=draft.statement_balance,
            system_balance=draft.system_balance,
            difference=draft.statement_balance - draft.system_balance,
            status=ReconciliationStatus.PENDING,
            description=draft.description,
            created_by=actor,
            created_at=now,
            updated_at=now,
        )
        self.session.add(recon)
        self.session.flush()

        logger.info(
            "reconciliation_created",
            extra={
                "reconciliation_id": str(recon.id),
                "bank_name": recon.bank_name,
                "statement_date": str(recon.statement_date),
                "difference": str(recon.difference),
            },
        )
        return BankReconciliationInfo.from_model(recon)

    def update_reconciliation(
        self,
        reconciliation_id: UUID,
        patch: ReconciliationPatch,
        expected_version: int | None = None,
    ) -> BankReconciliationInfo:
        """Edit a PENDING reconciliation; the difference follows the balances."""
        recon = self._load_pending(reconciliation_id, "update", expected_version)

        for field in ("bank_name", "account_number", "statement_date", "description"):
            value = getattr(patch, field)
            if value is not None:
                setattr(recon, field, value)
        if patch.statement_balance is not None:
            recon.statement_balance = patch.statement_balance
        if patch.system_balance is not None:
            recon.system_balance = patch.system_balance
        recon.difference = recon.statement_balance - recon.system_balance

        recon.updated_at = self._clock.now()
        self._flush_versioned(_ENTITY, recon)

        logger.info(
            "reconciliation_updated",
            extra={
                "reconciliation_id": str(recon.id),
                "difference": str(recon.difference),
            },
        )
        return BankReconciliationInfo.from_model(recon)

    def delete_reconciliation(
        self,
        reconciliation_id: UUID,
        expected_version: int | None = None,
    ) -> None:
        """Remove a PENDING reconciliation together with its discrepancies."""
        recon = self._load_pending(reconciliation_id, "delete", expected_version)
        bank_name = recon.bank_name

        self.session.delete(recon)
        self._flush_versioned(_ENTITY, recon)

        logger.info(
            "reconciliation_deleted",
            extra={"reconciliation_id": str(reconciliation_id), "bank_name": bank_name},
        )

    def add_discrepancy(
        self,
        reconciliation_id: UUID,
        draft: DiscrepancyDraft,
        actor: str,
        expected_version: int | None = None,
    ) -> tuple[BankReconciliationInfo, DiscrepancyInfo]:
        """
        Record an OPEN discrepancy against a PENDING reconciliation.

        Raises:
            ReconciliationNotFoundError, InvalidStateTransitionError,
            ValidationError (non-positive amount, unknown type),
            OptimisticLockError.
        """
        recon = self._load_pending(reconciliation_id, "add discrepancy to", expected_version)
        if draft.amount <= 0:
            raise ValidationError("Discrepancy amount must be positive", field="amount")
        try:
            discrepancy_type = DiscrepancyType(draft.discrepancy_type)
        except ValueError:
            raise ValidationError(
                f"Unknown discrepancy type {draft.discrepancy_type!r}", field="type"
            ) from None

        now = self._clock.now()
        discrepancy = ReconciliationDiscrepancy(
            amount=draft.amount,
            discrepancy_type=discrepancy_type,
            description=draft.description,
            resolution=draft.resolution,
            status=DiscrepancyStatus.OPEN,
            seq=len(recon.discrepancies),
            created_by=actor,
            created_at=now,
            updated_at=now,
        )
        recon.discrepancies.append(discrepancy)
        recon.updated_at = now
        self._flush_versioned(_ENTITY, recon)

        logger.info(
            "reconciliation_discrepancy_added",
            extra={
                "reconciliation_id": str(recon.id),
                "discrepancy_id": str(discrepancy.id),
                "discrepancy_type": discrepancy_type.value,
                "amount": str(discrepancy.amount),
            },
        )
        return BankReconciliationInfo.from_model(recon), DiscrepancyInfo.from_model(discrepancy)

    def resolve_discrepancy(
        self,
        reconciliation_id: UUID,
        discrepancy_id: UUID,
        resolution: str,
    ) -> BankReconciliationInfo:
        """Mark one OPEN discrepancy RESOLVED with the given resolution note."""
        recon = self._load_pending(reconciliation_id, "resolve discrepancy of")
        discrepancy = next(
            (d for d in recon.discrepancies if d.id == discrepancy_id),
            None,
        )
        if discrepancy is None:
            raise DiscrepancyNotFoundError(str(discrepancy_id))
        if DiscrepancyStatus(discrepancy.status) != DiscrepancyStatus.OPEN:
            raise InvalidStateTransitionError(
                "ReconciliationDiscrepancy",
                str(discrepancy_id),
                DiscrepancyStatus(discrepancy.status).value,
                "resolve",
            )

        now = self._clock.now()
        discrepancy.status = DiscrepancyStatus.RESOLVED
        discrepancy.resolution = resolution
        discrepancy.resolved_at = now
        discrepancy.updated_at = now
        recon.updated_at = now
        self._flush_versioned(_ENTITY, recon)

        logger.info(
            "reconciliation_discrepancy_resolved",
            extra={
                "reconciliation_id": str(recon.id),
                "discrepancy_id": str(discrepancy_id),
            },
        )
        return BankReconciliationInfo.from_model(recon)

    def complete_reconciliation(
        self,
        reconciliation_id: UUID,
        expected_version: int | None = None,
    ) -> BankReconciliationInfo:
        """
        Mark a PENDING reconciliation COMPLETED.

        A difference beyond tolerance is accepted once it has been explained
        by recorded discrepancies, all of which must be RESOLVED.

        Raises:
            ReconciliationNotFoundError, InvalidStateTransitionError,
            OpenDiscrepanciesError, ReconciliationOutOfBalanceError,
            OptimisticLockError.
        """
        recon = self._load_pending(reconciliation_id, "complete", expected_version)

        open_count = sum(
            1 for d in recon.discrepancies
            if DiscrepancyStatus(d.status) == DiscrepancyStatus.OPEN
        )
        if open_count:
            raise OpenDiscrepanciesError(str(reconciliation_id), open_count)
        if abs(recon.difference) > self._tolerance and not recon.discrepancies:
            raise ReconciliationOutOfBalanceError(str(reconciliation_id), recon.difference)

        now = self._clock.now()
        recon.status = ReconciliationStatus.COMPLETED
        recon.reconciled_at = now
        recon.updated_at = now
        self._flush_versioned(_ENTITY, recon)

        logger.info(
            "reconciliation_completed",
            extra={
                "reconciliation_id": str(recon.id),
                "bank_name": recon.bank_name,
                "discrepancy_count": len(recon.discrepancies),
            },
        )
        return BankReconciliationInfo.from_model(recon)

    def get_reconciliation(self, reconciliation_id: UUID) -> BankReconciliationInfo:
        recon = self.session.get(BankReconciliation, reconciliation_id)
        if recon is None:
            raise ReconciliationNotFoundError(str(reconciliation_id))
        return BankReconciliationInfo.from_model(recon)

    def list_reconciliations(
        self,
        status: ReconciliationStatus | None = None,
    ) -> list[BankReconciliationInfo]:
        stmt = select(BankReconciliation).order_by(BankReconciliation.statement_date.desc())
        if status is not None:
            stmt = stmt.where(BankReconciliation.status == status)
        return [
            BankReconciliationInfo.from_model(r)
            for r in self.session.execute(stmt).scalars()
        ]
