"""
Reference Data Loader - seeds and loads the chart of accounts.

The ReferenceDataLoader writes the configured chart of accounts into the
database and reads it back as the Account Reference the validator and the
closing checks consume.

This keeps database access out of the pure domain layer.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import (
    DEFAULT_NORMAL_BALANCE,
    Account,
    AccountType,
    NormalBalance,
)

logger = get_logger("services.reference_data")


@dataclass(frozen=True)
class AccountSeed:
    """One chart-of-accounts row to seed."""

    code: str
    name: str
    account_type: str
    is_temporary: bool = False
    normal_balance: str | None = None


class ReferenceDataLoader:
    """
    Seeds and loads Account Reference data.

    Seeding is idempotent: accounts whose code already exists are left as
    they are.
    """

    def __init__(self, session: Session):
        self._session = session

    def seed_accounts(self, seeds: tuple[AccountSeed, ...], actor: str = "system") -> int:
        """
        Insert every seed whose code is not yet present.

        Returns:
            Number of accounts created.
        """
        existing = set(self._session.execute(select(Account.code)).scalars())
        created = 0
        for seed in seeds:
            if seed.code in existing:
                continue
            account_type = AccountType(seed.account_type)
            normal_balance = (
                NormalBalance(seed.normal_balance)
                if seed.normal_balance
                else DEFAULT_NORMAL_BALANCE[account_type]
            )
            self._session.add(
                Account(
                    code=seed.code,
                    name=seed.name,
                    account_type=account_type,
                    normal_balance=normal_balance,
                    is_active=True,
                    is_temporary=seed.is_temporary,
                    created_by=actor,
                )
            )
            existing.add(seed.code)
            created += 1
        self._session.flush()

        logger.info("chart_of_accounts_seeded", extra={"accounts_created": created})
        return created

    def load(self) -> dict[UUID, AccountInfo]:
        """Account Reference keyed by account id."""
        accounts = self._session.execute(select(Account).order_by(Account.code)).scalars()
        return {a.id: AccountInfo.from_model(a) for a in accounts}
