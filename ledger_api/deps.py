"""Request-scoped dependencies and service wiring for the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from fastapi import Header, Request
from sqlalchemy.orm import Session

from ledger_config.schema import LedgerConfig
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.closing_checks import ClosingCheckDefinition
from ledger_kernel.exceptions import NotFoundError
from ledger_kernel.services.closing_check_runner import ClosingCheckRunner
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.reconciliation_service import ReconciliationService


@dataclass(frozen=True)
class LedgerRuntime:
    """Process-wide state shared by every request."""

    config: LedgerConfig
    check_definitions: tuple[ClosingCheckDefinition, ...]
    clock: Clock

    def journal_service(self, session: Session) -> JournalService:
        return JournalService(
            session,
            clock=self.clock,
            tolerance=self.config.ledger.balance_tolerance,
        )

    def checklist(self, session: Session) -> ClosingCheckRunner:
        return ClosingCheckRunner(
            session,
            self.check_definitions,
            clock=self.clock,
            tolerance=self.config.ledger.balance_tolerance,
            max_workers=self.config.closing.max_workers,
            block_on_optional_failures=self.config.closing.block_on_optional_failures,
        )

    def period_service(self, session: Session) -> PeriodService:
        return PeriodService(session, clock=self.clock, checklist=self.checklist(session))

    def reconciliation_service(self, session: Session) -> ReconciliationService:
        return ReconciliationService(
            session,
            clock=self.clock,
            tolerance=self.config.ledger.balance_tolerance,
        )


def get_runtime(request: Request) -> LedgerRuntime:
    return request.app.state.ledger


def get_actor(
    request: Request,
    x_actor_id: str | None = Header(default=None),
) -> str:
    """Actor identity from the auth proxy, or the configured default."""
    if x_actor_id and x_actor_id.strip():
        return x_actor_id.strip()
    return get_runtime(request).config.api.default_actor


def parse_id(raw: str, not_found: type[NotFoundError]) -> UUID:
    """Path ids that are not UUIDs name nothing that exists."""
    try:
        return UUID(raw)
    except ValueError as exc:
        raise not_found(raw) from exc
