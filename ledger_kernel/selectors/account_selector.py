"""
Module: ledger_kernel.selectors.account_selector
Responsibility: Account Reference lookups -- resolves account ids to code,
    name and normal balance for the validator and the closing checks.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.models.account import Account
from ledger_kernel.selectors.base import BaseSelector


class AccountSelector(BaseSelector[Account]):
    """Read-only access to the chart of accounts."""

    def get(self, account_id: UUID) -> AccountInfo | None:
        account = self.session.get(Account, account_id)
        return AccountInfo.from_model(account) if account else None

    def get_by_code(self, code: str) -> AccountInfo | None:
        account = self.session.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()
        return AccountInfo.from_model(account) if account else None

    def by_ids(self, account_ids: set[UUID]) -> dict[UUID, AccountInfo]:
        """Account Reference restricted to the given ids; unknown ids are absent."""
        if not account_ids:
            return {}
        rows = self.session.execute(
            select(Account).where(Account.id.in_(account_ids))
        ).scalars()
        return {a.id: AccountInfo.from_model(a) for a in rows}

    def list_all(self) -> list[AccountInfo]:
        rows = self.session.execute(select(Account).order_by(Account.code)).scalars()
        return [AccountInfo.from_model(a) for a in rows]

    def by_code(self) -> dict[str, AccountInfo]:
        return {a.code: a for a in self.list_all()}
