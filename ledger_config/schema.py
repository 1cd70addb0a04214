"""
LedgerConfig schema.

Typed, frozen view of a YAML configuration set.  The loader parses YAML
into these types; ``get_active_config()`` returns the assembled
``LedgerConfig`` and ``bridges`` converts parts of it into kernel inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    echo: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class LedgerSettings:
    # Largest |debits - credits| still treated as balanced
    balance_tolerance: Decimal = Decimal("0.01")


@dataclass(frozen=True)
class ApiConfig:
    # Actor recorded when a request carries no X-Actor-Id header
    default_actor: str = "admin"


@dataclass(frozen=True)
class ClosingCheckDef:
    """One closing-check catalog entry as authored in YAML."""

    id: str
    name: str
    description: str
    category: str
    required: bool
    error_message: str
    account_code: str | None = None


@dataclass(frozen=True)
class ClosingConfig:
    max_workers: int = 4
    block_on_optional_failures: bool = True
    checks: tuple[ClosingCheckDef, ...] = ()


@dataclass(frozen=True)
class AccountDef:
    """Chart-of-accounts seed row."""

    code: str
    name: str
    account_type: str
    is_temporary: bool = False
    normal_balance: str | None = None


@dataclass(frozen=True)
class LedgerConfig:
    """The complete configuration of one ledger installation."""

    config_id: str
    version: int
    database: DatabaseConfig
    logging: LoggingConfig
    ledger: LedgerSettings
    api: ApiConfig
    closing: ClosingConfig
    chart_of_accounts: tuple[AccountDef, ...]
    checksum: str = ""
