"""
JournalService -- write side of the Journal Entry Store.

Responsibility:
    Creates, edits, posts, cancels and deletes journal entries.  Every
    write that carries lines runs the pure entry validator first and caches
    the resulting totals on the entry header.

Architecture position:
    Kernel > Services -- imperative shell.
    Reads via AccountSelector / JournalSelector, validates via
    ``domain.entry_validator``, persists via the ORM, flushes only.

Invariants enforced:
    - Lifecycle: DRAFT -> POSTED and DRAFT -> CANCELLED only.  Edit, post,
      cancel and delete all require DRAFT.
    - Closed periods: no entry may be created in, moved into, or posted
      into a CLOSED period.
    - Entry numbers are unique.
    - Every mutation stamps ``updated_at`` from the injected clock and bumps
      ``version``; a stale ``expected_version`` or a concurrent writer that
      already bumped the row raises OptimisticLockError.

Failure modes:
    - JournalEntryNotFoundError, PeriodNotFoundError, AccountNotFoundError.
    - TooFewLinesError, InvalidAmountError, ImbalancedEntryError,
      MissingSideError (from the validator).
    - DuplicateEntryNumberError, PeriodClosedError,
      InvalidStateTransitionError, OptimisticLockError.

Audit relevance:
    Creation, edit, post, cancel and delete are logged at INFO with the
    entry number, status and totals.  Rejections are logged at WARNING.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import BALANCE_TOLERANCE
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import (
    JournalEntryDraft,
    JournalEntryInfo,
    JournalEntryPatch,
    JournalLineInput,
    ValidatedLines,
)
from ledger_kernel.domain.entry_validator import validate_entry_lines
from ledger_kernel.exceptions import (
    DuplicateEntryNumberError,
    InvalidStateTransitionError,
    JournalEntryNotFoundError,
    PeriodClosedError,
    PeriodNotFoundError,
    ValidationError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.services.base import BaseService

logger = get_logger("services.journal")

_ENTITY = "JournalEntry"


def _period_share_lock(period_id: UUID) -> Select:
    """
    Read a period under a shared row lock, refreshing any cached copy.

    Entry writes hold FOR SHARE on their period while close_period takes
    FOR UPDATE, so a close waits for in-flight writes and a write started
    after the close sees CLOSED.
    """
    return (
        select(AccountingPeriod)
        .where(AccountingPeriod.id == period_id)
        .with_for_update(read=True)
        .execution_options(populate_existing=True)
    )


class JournalService(BaseService[JournalEntry]):
    """
    Service for the journal entry lifecycle.

    Contract:
        Accepts drafts/patches as frozen DTOs and returns JournalEntryInfo.
        Flushes within the caller's transaction; never commits.

    Non-goals:
        - Does NOT check that the entry date falls inside the period range.
        - Does NOT list entries; use JournalSelector.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        tolerance: Decimal = BALANCE_TOLERANCE,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._tolerance = tolerance
        self._accounts = AccountSelector(session)
        self._journal = JournalSelector(session)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _validate(self, items: tuple[JournalLineInput, ...]) -> ValidatedLines:
        accounts = self._accounts.by_ids({item.account_id for item in items})
        try:
            return validate_entry_lines(items, accounts, self._tolerance)
        except ValidationError as exc:
            logger.warning(
                "journal_entry_rejected",
                extra={"reason": exc.code, "detail": str(exc)},
            )
            raise

    def _open_period(self, period_id: UUID, operation: str) -> AccountingPeriod:
        period = self.session.execute(_period_share_lock(period_id)).scalar_one_or_none()
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        if period.is_closed:
            logger.warning(
                "closed_period_rejected",
                extra={"period_id": str(period_id), "operation": operation},
            )
            raise PeriodClosedError(str(period_id), operation)
        return period

    def _ensure_unique_number(self, number: str, exclude_id: UUID | None = None) -> None:
        if self._journal.number_exists(number, exclude_id):
            raise DuplicateEntryNumberError(number)

    def _get_for_update(self, entry_id: UUID) -> JournalEntry:
        entry = self.session.execute(
            select(JournalEntry).where(JournalEntry.id == entry_id).with_for_update()
        ).scalar_one_or_none()
        if entry is None:
            raise JournalEntryNotFoundError(str(entry_id))
        return entry

    def _load_draft(
        self,
        entry_id: UUID,
        action: str,
        expected_version: int | None,
    ) -> JournalEntry:
        entry = self._get_for_update(entry_id)
        self._check_version(_ENTITY, entry, expected_version)
        if not entry.is_draft:
            status = JournalEntryStatus(entry.status).value
            logger.warning(
                "journal_entry_transition_rejected",
                extra={"entry_number": entry.number, "status": status, "action": action},
            )
            raise InvalidStateTransitionError(_ENTITY, str(entry_id), status, action)
        return entry

    @staticmethod
    def _build_lines(validated: ValidatedLines) -> list[JournalLine]:
        return [
            JournalLine(
                account_id=line.account_id,
                account_code=line.account_code,
                account_name=line.account_name,
                debit=line.debit,
                credit=line.credit,
                description=line.description,
                line_seq=line.line_seq,
            )
            for line in validated.lines
        ]

    def _apply_status(self, entry: JournalEntry, target: str) -> str:
        """Route a status value from an edit to the matching transition."""
        if target == JournalEntryStatus.POSTED.value:
            self._open_period(entry.period_id, "post into")
            entry.status = JournalEntryStatus.POSTED
            return "journal_entry_posted"
        if target == JournalEntryStatus.CANCELLED.value:
            entry.status = JournalEntryStatus.CANCELLED
            return "journal_entry_cancelled"
        if target == JournalEntryStatus.DRAFT.value:
            return "journal_entry_updated"
        raise ValidationError(f"Unknown journal entry status {target!r}", field="status")

    def _log_transition(self, event: str, entry: JournalEntry) -> None:
        logger.info(
            event,
            extra={
                "entry_number": entry.number,
                "status": JournalEntryStatus(entry.status).value,
                "total_debit": str(entry.total_debit),
                "total_credit": str(entry.total_credit),
                "version": entry.version,
            },
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_entry(self, draft: JournalEntryDraft, actor: str) -> JournalEntryInfo:
        """
        Create a DRAFT entry.

        Raises:
            Validator errors, PeriodNotFoundError, PeriodClosedError,
            DuplicateEntryNumberError.
        """
        validated = self._validate(draft.items)
        self._open_period(draft.period_id, "record entries in")
        self._ensure_unique_number(draft.number)

        now = self._clock.now()
        entry = JournalEntry(
            number=draft.number,
            entry_date=draft.entry_date,
            description=draft.description,
            period_id=draft.period_id,
            status=JournalEntryStatus.DRAFT,
            total_debit=validated.total_debit,
            total_credit=validated.total_credit,
            created_by=actor,
            created_at=now,
            updated_at=now,
        )
        entry.lines = self._build_lines(validated)

        self.session.add(entry)
        self.session.flush()

        with LogContext.bind(entry_id=str(entry.id), period_id=str(entry.period_id)):
            self._log_transition("journal_entry_created", entry)

        return JournalEntryInfo.from_model(entry)

    def edit_entry(
        self,
        entry_id: UUID,
        patch: JournalEntryPatch,
        expected_version: int | None = None,
    ) -> JournalEntryInfo:
        """
        Apply a partial update to a DRAFT entry.

        Lines, when present, are re-validated and replace the old lines and
        totals wholesale.  A ``status`` in the patch is applied after the
        field edits (POSTED posts, CANCELLED cancels).
        """
        entry = self._load_draft(entry_id, "edit", expected_version)

        validated = self._validate(patch.items) if patch.items is not None else None

        target_period = self._open_period(
            patch.period_id or entry.period_id, "record entries in"
        )

        if patch.number is not None and patch.number != entry.number:
            self._ensure_unique_number(patch.number, exclude_id=entry.id)
            entry.number = patch.number
        if patch.entry_date is not None:
            entry.entry_date = patch.entry_date
        if patch.description is not None:
            entry.description = patch.description
        if patch.period_id is not None:
            entry.period_id = patch.period_id
            entry.period = target_period

        if validated is not None:
            entry.lines.clear()
            entry.lines.extend(self._build_lines(validated))
            entry.total_debit = validated.total_debit
            entry.total_credit = validated.total_credit

        event = "journal_entry_updated"
        if patch.status is not None:
            event = self._apply_status(entry, patch.status)

        entry.updated_at = self._clock.now()
        self._flush_versioned(_ENTITY, entry)

        with LogContext.bind(entry_id=str(entry.id), period_id=str(entry.period_id)):
            self._log_transition(event, entry)

        return JournalEntryInfo.from_model(entry)

    def post_entry(
        self,
        entry_id: UUID,
        expected_version: int | None = None,
    ) -> JournalEntryInfo:
        """
        Finalize a DRAFT entry (DRAFT -> POSTED).

        Raises:
            JournalEntryNotFoundError, InvalidStateTransitionError,
            PeriodClosedError, OptimisticLockError.
        """
        entry = self._load_draft(entry_id, "post", expected_version)
        self._open_period(entry.period_id, "post into")

        entry.status = JournalEntryStatus.POSTED
        entry.updated_at = self._clock.now()
        self._flush_versioned(_ENTITY, entry)

        with LogContext.bind(entry_id=str(entry.id), period_id=str(entry.period_id)):
            self._log_transition("journal_entry_posted", entry)

        return JournalEntryInfo.from_model(entry)

    def cancel_entry(
        self,
        entry_id: UUID,
        expected_version: int | None = None,
    ) -> JournalEntryInfo:
        """Void a DRAFT entry (DRAFT -> CANCELLED)."""
        entry = self._load_draft(entry_id, "cancel", expected_version)

        entry.status = JournalEntryStatus.CANCELLED
        entry.updated_at = self._clock.now()
        self._flush_versioned(_ENTITY, entry)

        with LogContext.bind(entry_id=str(entry.id), period_id=str(entry.period_id)):
            self._log_transition("journal_entry_cancelled", entry)

        return JournalEntryInfo.from_model(entry)

    def delete_entry(
        self,
        entry_id: UUID,
        expected_version: int | None = None,
    ) -> None:
        """Remove a DRAFT entry and its lines."""
        entry = self._load_draft(entry_id, "delete", expected_version)
        number = entry.number

        self.session.delete(entry)
        self._flush_versioned(_ENTITY, entry)

        logger.info(
            "journal_entry_deleted",
            extra={"entry_id": str(entry_id), "entry_number": number},
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_entry(self, entry_id: UUID) -> JournalEntryInfo:
        entry = self._journal.get(entry_id)
        if entry is None:
            raise JournalEntryNotFoundError(str(entry_id))
        return entry
