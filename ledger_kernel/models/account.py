"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts -- the Account
    Reference every journal line resolves against.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - code is unique (uq_account_code).
    - normal_balance is consistent with account_type (seeded from config).

Failure modes:
    - AccountNotFoundError when a journal line references an unknown id.
"""

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from ledger_kernel.models.journal import JournalLine


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


DEFAULT_NORMAL_BALANCE = {
    AccountType.ASSET: NormalBalance.DEBIT,
    AccountType.EXPENSE: NormalBalance.DEBIT,
    AccountType.LIABILITY: NormalBalance.CREDIT,
    AccountType.EQUITY: NormalBalance.CREDIT,
    AccountType.REVENUE: NormalBalance.CREDIT,
}


class Account(TrackedBase):
    """
    Chart of Accounts entry.

    Contract:
        Account rows are master data.  The ledger reads them (code, name,
        type, normal balance) and snapshots code/name onto journal lines.

    Guarantees:
        - code is unique and non-null.
        - is_temporary marks clearing/suspense accounts that must net to
          zero before a period may close.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_type", "account_type"),
    )

    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    account_type: Mapped[AccountType] = mapped_column(
        String(20),
        nullable=False,
    )

    normal_balance: Mapped[NormalBalance] = mapped_column(
        String(10),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Clearing/suspense account ("حساب موقت")
    is_temporary: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    journal_lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="account",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"
