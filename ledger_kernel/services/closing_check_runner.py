"""
ClosingCheckRunner -- executes the period closing checklist.

Responsibility:
    Selects checks from the catalog, builds one immutable ledger snapshot of
    the period, evaluates every selected check concurrently and summarizes
    the outcome (counts, success rate, can-close gate).

Architecture position:
    Kernel > Services -- imperative shell around the pure predicates in
    ``domain.closing_checks``.  Called directly by the HTTP layer and by
    PeriodService.close_period().

Invariants enforced:
    - Predicates never touch the session; they only see the snapshot, so
      running them on worker threads is safe.
    - Every selected check yields exactly one result.  A predicate that
      raises is recorded as FAILED with the exception text.
    - Results keep catalog order regardless of completion order.

Failure modes:
    - PeriodNotFoundError: unknown period id.
    - ValidationError: the requested subset selects no check.
"""

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.db.types import BALANCE_TOLERANCE
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.closing_checks import (
    CheckCategory,
    CheckOutcome,
    ChecklistRun,
    ChecklistSummary,
    ClosingCheckDefinition,
    ClosingCheckResult,
    evaluate_check,
)
from ledger_kernel.exceptions import PeriodNotFoundError, ValidationError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.selectors.ledger_selector import LedgerSelector

logger = get_logger("services.closing_checks")


class ClosingCheckRunner:
    """
    Runs closing checks for one period at a time.

    Contract:
        ``run()`` is read-only: it never adds, flushes or commits.
    """

    def __init__(
        self,
        session: Session,
        definitions: Sequence[ClosingCheckDefinition],
        clock: Clock | None = None,
        tolerance: Decimal = BALANCE_TOLERANCE,
        max_workers: int = 4,
        block_on_optional_failures: bool = True,
    ):
        self.session = session
        self._definitions = tuple(definitions)
        self._clock = clock or SystemClock()
        self._tolerance = tolerance
        self._max_workers = max(1, max_workers)
        self._block_on_optional_failures = block_on_optional_failures

    def catalog(
        self,
        category: CheckCategory | None = None,
        required: bool | None = None,
    ) -> tuple[ClosingCheckDefinition, ...]:
        """Catalog entries, optionally filtered by category and/or required flag."""
        return tuple(
            d
            for d in self._definitions
            if (category is None or d.category == category)
            and (required is None or d.required == required)
        )

    def _select(self, check_ids: Sequence[str] | None) -> tuple[ClosingCheckDefinition, ...]:
        if check_ids is None:
            return self._definitions
        wanted = set(check_ids)
        return tuple(d for d in self._definitions if d.check_id in wanted)

    def _evaluate(self, definition, snapshot) -> CheckOutcome:
        return evaluate_check(definition, snapshot, self._tolerance)

    def run(self, period_id: UUID, check_ids: Sequence[str] | None = None) -> ChecklistRun:
        """
        Execute the selected checks (all when ``check_ids`` is None).

        Unknown ids in ``check_ids`` are ignored.

        Raises:
            PeriodNotFoundError: If the period does not exist.
            ValidationError: If no check is selected.
        """
        period = self.session.get(AccountingPeriod, period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))

        selected = self._select(check_ids)
        if not selected:
            raise ValidationError("No checks to run", field="checkIds")

        snapshot = LedgerSelector(self.session).period_snapshot(period)
        executed_at = self._clock.now()

        workers = min(self._max_workers, len(selected))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="closing-check") as pool:
            futures = [pool.submit(self._evaluate, d, snapshot) for d in selected]

            results = []
            for definition, future in zip(selected, futures):
                try:
                    outcome = future.result()
                except Exception as exc:
                    logger.warning(
                        "closing_check_errored",
                        extra={"check_id": definition.check_id},
                        exc_info=True,
                    )
                    outcome = CheckOutcome(False, f"{type(exc).__name__}: {exc}")
                results.append(
                    ClosingCheckResult.from_outcome(
                        definition, outcome, period.id, executed_at
                    )
                )

        results = tuple(results)
        summary = ChecklistSummary.from_results(results, self._block_on_optional_failures)

        with LogContext.bind(period_id=str(period.id)):
            logger.info(
                "closing_checks_completed",
                extra={
                    "total": summary.total,
                    "completed": summary.completed,
                    "failed": summary.failed,
                    "required_failed": summary.required_failed,
                    "success_rate": summary.success_rate,
                    "can_close": summary.can_close,
                    "failed_checks": [r.check_id for r in results if r.failed],
                },
            )

        return ChecklistRun(
            period_id=period.id,
            executed_at=executed_at,
            results=results,
            summary=summary,
            block_on_optional_failures=self._block_on_optional_failures,
        )
