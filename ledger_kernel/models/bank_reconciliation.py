"""
Module: ledger_kernel.models.bank_reconciliation
Responsibility: ORM persistence for bank reconciliations ("مغایرت‌گیری بانکی")
    and the discrepancies recorded against them.  PENDING reconciliations
    are the evidence the BANK_RECONCILIATION closing check inspects.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - difference == statement_balance - system_balance (set by the service).
    - PENDING -> COMPLETED only.  Completion needs every discrepancy
      RESOLVED, and a difference beyond tolerance must be explained by at
      least one recorded discrepancy.
    - Discrepancies are owned by their reconciliation and deleted with it.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString


class ReconciliationStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class DiscrepancyType(str, Enum):
    MISSING_TRANSACTION = "MISSING_TRANSACTION"
    DUPLICATE_TRANSACTION = "DUPLICATE_TRANSACTION"
    AMOUNT_DIFFERENCE = "AMOUNT_DIFFERENCE"
    DATE_DIFFERENCE = "DATE_DIFFERENCE"
    OTHER = "OTHER"


class DiscrepancyStatus(str, Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class BankReconciliation(TrackedBase):
    """Bank statement vs. book balance comparison for one account and date."""

    __tablename__ = "bank_reconciliations"

    __table_args__ = (
        Index("idx_recon_statement_date", "statement_date"),
        Index("idx_recon_status", "status"),
    )

    bank_name: Mapped[str] = mapped_column(String(100), nullable=False)

    account_number: Mapped[str] = mapped_column(String(50), nullable=False)

    statement_date: Mapped[date] = mapped_column(Date, nullable=False)

    statement_balance: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    system_balance: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    difference: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    status: Mapped[ReconciliationStatus] = mapped_column(
        String(20),
        default=ReconciliationStatus.PENDING,
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    reconciled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    discrepancies: Mapped[list["ReconciliationDiscrepancy"]] = relationship(
        back_populates="reconciliation",
        cascade="all, delete-orphan",
        order_by="ReconciliationDiscrepancy.seq",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<BankReconciliation {self.bank_name} {self.statement_date}: {self.status}>"

    @property
    def is_pending(self) -> bool:
        return self.status == ReconciliationStatus.PENDING


class ReconciliationDiscrepancy(TrackedBase):
    """One explained difference between the statement and the books."""

    __tablename__ = "reconciliation_discrepancies"

    __table_args__ = (Index("idx_discrepancy_recon", "reconciliation_id"),)

    reconciliation_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("bank_reconciliations.id", ondelete="CASCADE"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    discrepancy_type: Mapped[DiscrepancyType] = mapped_column(String(30), nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    resolution: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[DiscrepancyStatus] = mapped_column(
        String(10),
        default=DiscrepancyStatus.OPEN,
        nullable=False,
    )

    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Order of recording within the reconciliation
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    reconciliation: Mapped["BankReconciliation"] = relationship(
        back_populates="discrepancies",
    )
