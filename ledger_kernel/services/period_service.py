"""
PeriodService -- accounting period lifecycle.

Responsibility:
    Creates, edits, closes and deletes accounting periods.  Closing runs the
    full closing checklist and, only when it passes, stamps the period with
    the closing metadata and its revenue/expense aggregates.

Architecture position:
    Kernel > Services -- imperative shell.
    Uses ClosingCheckRunner for the close gate and LedgerSelector for the
    period aggregates.  Flushes only.

Invariants enforced:
    - start_date < end_date.
    - Periods never overlap: two ranges overlap if
      start1 <= end2 AND start2 <= end1 (both bounds inclusive).
    - OPEN -> CLOSED only.  A CLOSED period cannot be edited, deleted or
      closed again.
    - Close is all-or-nothing: a blocking checklist failure raises before
      any field of the period is touched.
    - Concurrent closes serialize on ``SELECT ... FOR UPDATE`` (PostgreSQL)
      and on the version column everywhere.

Failure modes:
    - PeriodNotFoundError, InvalidDateRangeError, OverlappingPeriodError.
    - PeriodClosedError: update/delete of a closed period.
    - AlreadyClosedError: close of a closed period.
    - ClosingChecksFailedError: the checklist blocked the close.
    - PeriodInUseError: delete of a period that journal entries reference.
    - OptimisticLockError: stale expected_version or lost race.

Audit relevance:
    Period creation, update, close and delete are logged at INFO.  Blocked
    closes are logged at WARNING with the failed check ids.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.closing_checks import ChecklistRun
from ledger_kernel.domain.dtos import (
    AccountingPeriodInfo,
    ClosingMeta,
    PeriodDraft,
    PeriodPatch,
)
from ledger_kernel.exceptions import (
    AlreadyClosedError,
    ClosingChecksFailedError,
    InvalidDateRangeError,
    OverlappingPeriodError,
    PeriodClosedError,
    PeriodInUseError,
    PeriodNotFoundError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.accounting_period import AccountingPeriod, PeriodStatus
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.closing_check_runner import ClosingCheckRunner

logger = get_logger("services.period")

_ENTITY = "AccountingPeriod"


@dataclass(frozen=True)
class PeriodCloseResult:
    """A closed period together with the checklist run that allowed it."""

    period: AccountingPeriodInfo
    checklist: ChecklistRun


class PeriodService(BaseService[AccountingPeriod]):
    """
    Service for managing the accounting period lifecycle.

    Contract:
        Returns frozen ``AccountingPeriodInfo`` DTOs.  Lifecycle methods
        flush within the caller's transaction.

    Non-goals:
        - Does NOT reopen closed periods.
        - Does NOT post closing entries; closing only records aggregates.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        checklist: ClosingCheckRunner | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._checklist = checklist

    def _get_for_update(self, period_id: UUID) -> AccountingPeriod:
        period = self.session.execute(
            select(AccountingPeriod)
            .where(AccountingPeriod.id == period_id)
            .with_for_update()
        ).scalar_one_or_none()
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return period

    @staticmethod
    def _validate_range(start_date: date, end_date: date) -> None:
        if end_date <= start_date:
            raise InvalidDateRangeError(str(start_date), str(end_date))

    def _validate_no_overlap(
        self,
        start_date: date,
        end_date: date,
        exclude_id: UUID | None = None,
    ) -> None:
        """
        Reject a range that intersects any other period.

        Covers the new start inside an existing period, the new end inside
        one, and the new range fully containing one.

        Raises:
            OverlappingPeriodError: If overlap is detected.
        """
        stmt = select(AccountingPeriod).where(
            AccountingPeriod.start_date <= end_date,
            AccountingPeriod.end_date >= start_date,
        )
        if exclude_id is not None:
            stmt = stmt.where(AccountingPeriod.id != exclude_id)
        overlapping = self.session.execute(
            stmt.order_by(AccountingPeriod.start_date).limit(1)
        ).scalar_one_or_none()

        if overlapping:
            overlap_start = max(start_date, overlapping.start_date)
            overlap_end = min(end_date, overlapping.end_date)
            logger.warning(
                "period_overlap_rejected",
                extra={
                    "existing_period": overlapping.name,
                    "start_date": str(start_date),
                    "end_date": str(end_date),
                },
            )
            raise OverlappingPeriodError(
                existing_period_id=str(overlapping.id),
                existing_period_name=overlapping.name,
                overlap_start=str(overlap_start),
                overlap_end=str(overlap_end),
            )

    def create_period(self, draft: PeriodDraft, actor: str) -> AccountingPeriodInfo:
        """
        Create a new OPEN period.

        Raises:
            InvalidDateRangeError: If end_date <= start_date.
            OverlappingPeriodError: If the range overlaps an existing period.
        """
        self._validate_range(draft.start_date, draft.end_date)
        self._validate_no_overlap(draft.start_date, draft.end_date)

        now = self._clock.now()
        period = AccountingPeriod(
            name=draft.name,
            start_date=draft.start_date,
            end_date=draft.end_date,
            status=PeriodStatus.OPEN,
            created_by=actor,
            created_at=now,
            updated_at=now,
        )
        self.session.add(period)
        self.session.flush()

        logger.info(
            "period_created",
            extra={
                "period_id": str(period.id),
                "period_name": period.name,
                "start_date": str(period.start_date),
                "end_date": str(period.end_date),
            },
        )
        return AccountingPeriodInfo.from_model(period)

    def update_period(
        self,
        period_id: UUID,
        patch: PeriodPatch,
        expected_version: int | None = None,
    ) -> AccountingPeriodInfo:
        """Rename an OPEN period or move its dates (range and overlap re-checked)."""
        period = self._get_for_update(period_id)
        self._check_version(_ENTITY, period, expected_version)
        if period.is_closed:
            raise PeriodClosedError(str(period_id), "update")

        start_date = patch.start_date or period.start_date
        end_date = patch.end_date or period.end_date
        if (start_date, end_date) != (period.start_date, period.end_date):
            self._validate_range(start_date, end_date)
            self._validate_no_overlap(start_date, end_date, exclude_id=period.id)
            period.start_date = start_date
            period.end_date = end_date
        if patch.name is not None:
            period.name = patch.name

        period.updated_at = self._clock.now()
        self._flush_versioned(_ENTITY, period)

        logger.info(
            "period_updated",
            extra={"period_id": str(period.id), "period_name": period.name},
        )
        return AccountingPeriodInfo.from_model(period)

    def close_period(
        self,
        period_id: UUID,
        meta: ClosingMeta,
        actor: str,
        expected_version: int | None = None,
    ) -> PeriodCloseResult:
        """
        Close a period after the full closing checklist passes.

        Postconditions:
            - status is CLOSED, closed_at is the clock time, closed_by is
              ``actor``, closing metadata is stored, and total_revenue,
              total_expenses, net_income are recomputed from POSTED entries.
            - On any raised error the period is untouched.

        Raises:
            PeriodNotFoundError, AlreadyClosedError,
            ClosingChecksFailedError, OptimisticLockError.
        """
        if self._checklist is None:
            raise RuntimeError("PeriodService needs a ClosingCheckRunner to close periods")

        period = self._get_for_update(period_id)
        self._check_version(_ENTITY, period, expected_version)
        if period.is_closed:
            raise AlreadyClosedError(str(period_id))

        with LogContext.bind(period_id=str(period.id)):
            run = self._checklist.run(period.id)
            blocking = run.blocking_results
            if blocking:
                logger.warning(
                    "period_close_blocked",
                    extra={"failed_checks": [r.check_id for r in blocking]},
                )
                raise ClosingChecksFailedError(str(period.id), blocking, run.results)

            aggregates = LedgerSelector(self.session).period_aggregates(period.id)

            period.status = PeriodStatus.CLOSED
            period.closed_at = self._clock.now()
            period.closed_by = actor
            period.closing_date = meta.closing_date
            period.closing_description = meta.description
            period.total_revenue = aggregates.total_revenue
            period.total_expenses = aggregates.total_expenses
            period.net_income = aggregates.net_income
            period.updated_at = period.closed_at
            self._flush_versioned(_ENTITY, period)

            logger.info(
                "period_closed",
                extra={
                    "period_name": period.name,
                    "closed_by": actor,
                    "total_revenue": str(aggregates.total_revenue),
                    "total_expenses": str(aggregates.total_expenses),
                    "net_income": str(aggregates.net_income),
                },
            )

        return PeriodCloseResult(
            period=AccountingPeriodInfo.from_model(period),
            checklist=run,
        )

    def delete_period(self, period_id: UUID, expected_version: int | None = None) -> None:
        """
        Delete an OPEN period that no journal entry references.

        Raises:
            PeriodNotFoundError, PeriodClosedError, PeriodInUseError.
        """
        period = self._get_for_update(period_id)
        self._check_version(_ENTITY, period, expected_version)
        if period.is_closed:
            raise PeriodClosedError(str(period_id), "delete")

        entry_count = JournalSelector(self.session).count_for_period(period.id)
        if entry_count:
            raise PeriodInUseError(str(period_id), entry_count)

        name = period.name
        self.session.delete(period)
        self._flush_versioned(_ENTITY, period)

        logger.info(
            "period_deleted",
            extra={"period_id": str(period_id), "period_name": name},
        )

    def get_period(self, period_id: UUID) -> AccountingPeriodInfo:
        period = self.session.get(AccountingPeriod, period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return AccountingPeriodInfo.from_model(period)

    def list_periods(self, is_closed: bool | None = None) -> list[AccountingPeriodInfo]:
        """All periods, newest start date first."""
        stmt = select(AccountingPeriod).order_by(AccountingPeriod.start_date.desc())
        if is_closed is not None:
            status = PeriodStatus.CLOSED if is_closed else PeriodStatus.OPEN
            stmt = stmt.where(AccountingPeriod.status == status)
        return [
            AccountingPeriodInfo.from_model(p)
            for p in self.session.execute(stmt).scalars()
        ]
