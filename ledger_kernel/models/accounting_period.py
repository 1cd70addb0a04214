"""
Module: ledger_kernel.models.accounting_period
Responsibility: ORM persistence for the accounting period lifecycle -- controls
    which periods still accept journal postings.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - start_date < end_date and no overlap with other periods (checked by
      PeriodService at creation and on date edits).
    - OPEN -> CLOSED only; a CLOSED period is terminal and immutable.
    - version column drives optimistic concurrency on every UPDATE.

Failure modes:
    - PeriodClosedError when mutating, deleting or posting into a closed period.
    - AlreadyClosedError on a redundant close attempt.
    - OptimisticLockError when a concurrent writer bumped the version.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class PeriodStatus(str, Enum):
    """Lifecycle status of an accounting period.

    Contract: OPEN -> CLOSED.  Once CLOSED, the period cannot reopen.
    """

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class AccountingPeriod(TrackedBase):
    """
    Accounting period ("دوره مالی").

    Contract:
        Periods control where journal entries may be recorded.  Closing
        requires a passing closing checklist and stores the period-level
        revenue/expense aggregates computed from POSTED entries.

    Non-goals:
        - This model does NOT enforce non-overlapping date ranges; that is
          checked by PeriodService.
    """

    __tablename__ = "accounting_periods"

    __table_args__ = (
        Index("idx_period_dates", "start_date", "end_date"),
        Index("idx_period_status", "status"),
    )

    # Human-readable name, e.g. "دی ماه ۱۴۰۳"
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Period boundaries (inclusive)
    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    status: Mapped[PeriodStatus] = mapped_column(
        String(20),
        default=PeriodStatus.OPEN,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    closed_by: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    # Closing metadata supplied with the close request
    closing_date: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )

    closing_description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    total_revenue: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    total_expenses: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    net_income: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<AccountingPeriod {self.name}: {self.status}>"

    @property
    def is_closed(self) -> bool:
        return self.status == PeriodStatus.CLOSED
