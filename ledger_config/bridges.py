"""
Config -> Kernel Bridges.

Functions that convert LedgerConfig artifacts into kernel inputs.  These
live in ledger_config (the producer) because the kernel must NEVER import
ledger_config.

Usage:
    from ledger_config.bridges import build_check_definitions

    config = get_active_config()
    runner = ClosingCheckRunner(session, build_check_definitions(config))
"""

from __future__ import annotations

from ledger_config.schema import LedgerConfig
from ledger_kernel.domain.closing_checks import CheckCategory, ClosingCheckDefinition
from ledger_kernel.services.reference_data_loader import AccountSeed


def build_check_definitions(config: LedgerConfig) -> tuple[ClosingCheckDefinition, ...]:
    """Closing-check catalog in configuration order."""
    return tuple(
        ClosingCheckDefinition(
            check_id=c.id,
            name=c.name,
            description=c.description,
            category=CheckCategory(c.category),
            required=c.required,
            error_message=c.error_message,
            account_code=c.account_code,
        )
        for c in config.closing.checks
    )


def build_account_seeds(config: LedgerConfig) -> tuple[AccountSeed, ...]:
    return tuple(
        AccountSeed(
            code=a.code,
            name=a.name,
            account_type=a.account_type,
            is_temporary=a.is_temporary,
            normal_balance=a.normal_balance,
        )
        for a in config.chart_of_accounts
    )
