"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries ("سند حسابداری") and their
    lines -- the single source of financial truth in this system.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - number is unique within the installation (uq_journal_number).
    - total_debit == total_credit within tolerance; totals are cached at
      write time by JournalService after the validator accepted the lines.
    - Lines are owned exclusively by their entry (delete-orphan cascade).
    - version column drives optimistic concurrency on every UPDATE.

Failure modes:
    - IntegrityError on duplicate number (pre-checked by JournalService).
    - OptimisticLockError when a concurrent writer bumped the version.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import Base, TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.accounting_period import AccountingPeriod


class JournalEntryStatus(str, Enum):
    """Lifecycle status of a journal entry.

    Contract: DRAFT -> POSTED or DRAFT -> CANCELLED.  POSTED and CANCELLED
    are terminal.
    """

    DRAFT = "DRAFT"
    POSTED = "POSTED"
    CANCELLED = "CANCELLED"


class JournalEntry(TrackedBase):
    """
    Journal entry header -- the atomic unit of double-entry accounting.

    Contract:
        Created in DRAFT by JournalService.  Mutable only while DRAFT; every
        edit that touches lines is re-validated.  POSTED entries feed period
        aggregates and closing checks.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("number", name="uq_journal_number"),
        Index("idx_journal_period", "period_id"),
        Index("idx_journal_entry_date", "entry_date"),
        Index("idx_journal_status", "status"),
    )

    # Human-readable number, e.g. "س-001"
    number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    entry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    period_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounting_periods.id"),
        nullable=False,
    )

    status: Mapped[JournalEntryStatus] = mapped_column(
        String(10),
        default=JournalEntryStatus.DRAFT,
        nullable=False,
    )

    total_debit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    total_credit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.line_seq",
        lazy="selectin",
    )

    period: Mapped["AccountingPeriod"] = relationship()

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<JournalEntry {self.number} status={self.status}>"

    @property
    def is_draft(self) -> bool:
        return self.status == JournalEntryStatus.DRAFT


class JournalLine(Base):
    """
    One line ("آیتم") of a journal entry.

    Contract:
        Each line belongs to exactly one JournalEntry and references one
        Account.  debit and credit are both >= 0; at least one line of the
        entry carries a debit and at least one carries a credit.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    # Snapshot of the account reference at write time
    account_code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    account_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    debit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    credit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
    )

    # Line order within the entry
    line_seq: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    entry: Mapped["JournalEntry"] = relationship(
        back_populates="lines",
    )

    account: Mapped["Account"] = relationship(
        back_populates="journal_lines",
    )

    def __repr__(self) -> str:
        return f"<JournalLine {self.account_code} Dr {self.debit} Cr {self.credit}>"
