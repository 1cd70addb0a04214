"""
Application factory for the ledger HTTP surface.

``create_app()`` loads configuration, initializes the database engine,
creates tables, seeds the chart of accounts and mounts the routers.  Every
endpoint opens its own ``session_scope()``, so one request is one
transaction.
"""

from __future__ import annotations

from uuid import uuid4

from fastapi import FastAPI, Request

from ledger_api.deps import LedgerRuntime
from ledger_api.errors import install_error_handlers
from ledger_api.routers import (
    accounting_periods,
    closing_checks,
    journal_entries,
    reconciliations,
)
from ledger_config import get_active_config
from ledger_config.bridges import build_account_seeds, build_check_definitions
from ledger_config.schema import LedgerConfig
from ledger_kernel import __version__
from ledger_kernel.db.engine import create_tables, init_engine_from_url, session_scope
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import LogContext, configure_logging, get_logger
from ledger_kernel.services.reference_data_loader import ReferenceDataLoader

logger = get_logger("api")


async def bind_request_context(request: Request, call_next):
    """Bind correlation and actor ids to every log line of the request."""
    correlation_id = request.headers.get("x-request-id") or str(uuid4())
    actor_id = request.headers.get("x-actor-id")
    with LogContext.bind(correlation_id=correlation_id, actor_id=actor_id):
        response = await call_next(request)
    response.headers["X-Request-Id"] = correlation_id
    return response


def create_app(
    config: LedgerConfig | None = None,
    *,
    clock: Clock | None = None,
    setup_database: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Configuration to run with; defaults to ``get_active_config()``.
        clock: Clock injected into every service; defaults to SystemClock.
        setup_database: When False the caller has already initialized the
            engine, created tables and seeded accounts.
    """
    config = config or get_active_config()
    configure_logging(level=config.logging.level)

    if setup_database:
        init_engine_from_url(config.database.url, echo=config.database.echo)
        create_tables()
        with session_scope() as session:
            ReferenceDataLoader(session).seed_accounts(build_account_seeds(config))

    app = FastAPI(title="Ledger Posting & Period-Close Engine", version=__version__)
    app.state.ledger = LedgerRuntime(
        config=config,
        check_definitions=build_check_definitions(config),
        clock=clock or SystemClock(),
    )

    install_error_handlers(app)
    app.middleware("http")(bind_request_context)

    app.include_router(journal_entries.router)
    app.include_router(accounting_periods.router)
    app.include_router(closing_checks.router)
    app.include_router(reconciliations.router)

    logger.info(
        "app_created",
        extra={"config_id": config.config_id, "check_count": len(config.closing.checks)},
    )
    return app
