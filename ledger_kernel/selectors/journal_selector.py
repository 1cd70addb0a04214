"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only query access to journal entries and their lines.
    Converts ORM models to frozen DTOs for clean layer separation.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only: No mutations performed on any queried data.
    - DTO convention: All public methods return JournalEntryInfo, never raw
      ORM models.
    - Listings are newest first (entry_date, then created_at, then number,
      all descending) so pagination is deterministic.

Failure modes:
    - Returns None or an empty page when nothing matches (never raises on
      absence of data).
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import Select, func, or_, select

from ledger_kernel.domain.dtos import JournalEntryInfo, Page
from ledger_kernel.models.journal import JournalEntry, JournalEntryStatus
from ledger_kernel.selectors.base import BaseSelector

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class JournalEntryFilter:
    """Listing filters.  None means "do not filter on this field"."""

    period_id: UUID | None = None
    status: JournalEntryStatus | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None


class JournalSelector(BaseSelector[JournalEntry]):
    """
    Selector for journal entry queries.

    Guarantees:
        - Read-only: No mutations are performed.
        - Lines are eager-loaded (selectin) and ordered by line_seq.
    """

    def get(self, entry_id: UUID) -> JournalEntryInfo | None:
        entry = self.session.get(JournalEntry, entry_id)
        return JournalEntryInfo.from_model(entry) if entry else None

    def number_exists(self, number: str, exclude_id: UUID | None = None) -> bool:
        stmt = select(JournalEntry.id).where(JournalEntry.number == number)
        if exclude_id is not None:
            stmt = stmt.where(JournalEntry.id != exclude_id)
        return self.session.execute(stmt.limit(1)).first() is not None

    def count_for_period(self, period_id: UUID) -> int:
        return self.session.execute(
            select(func.count(JournalEntry.id)).where(JournalEntry.period_id == period_id)
        ).scalar_one()

    def _apply_filters(self, stmt: Select, filters: JournalEntryFilter) -> Select:
        if filters.period_id is not None:
            stmt = stmt.where(JournalEntry.period_id == filters.period_id)
        if filters.status is not None:
            stmt = stmt.where(JournalEntry.status == filters.status)
        if filters.date_from is not None:
            stmt = stmt.where(JournalEntry.entry_date >= filters.date_from)
        if filters.date_to is not None:
            stmt = stmt.where(JournalEntry.entry_date <= filters.date_to)
        if filters.search:
            term = filters.search.strip()
            stmt = stmt.where(
                or_(
                    JournalEntry.number.contains(term, autoescape=True),
                    JournalEntry.description.contains(term, autoescape=True),
                )
            )
        return stmt

    def list_entries(
        self,
        filters: JournalEntryFilter | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page[JournalEntryInfo]:
        """
        One page of entries matching ``filters``, newest first.

        ``page`` is 1-based and clamped to at least 1; ``limit`` is clamped
        to [1, MAX_PAGE_SIZE].
        """
        filters = filters or JournalEntryFilter()
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        total = self.session.execute(
            self._apply_filters(select(func.count(JournalEntry.id)), filters)
        ).scalar_one()

        stmt = (
            self._apply_filters(select(JournalEntry), filters)
            .order_by(
                JournalEntry.entry_date.desc(),
                JournalEntry.created_at.desc(),
                JournalEntry.number.desc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
        )
        entries = self.session.execute(stmt).scalars().all()

        return Page(
            items=tuple(JournalEntryInfo.from_model(e) for e in entries),
            current_page=page,
            items_per_page=limit,
            total_items=total,
        )
