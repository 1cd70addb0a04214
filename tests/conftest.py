"""
Pytest fixtures for the ledger kernel test suite.

Provides:
- In-memory SQLite sessions for service and selector tests
- The default configuration, seeded chart of accounts and period factories
- A FastAPI TestClient wired to the same engine
- Structured log capture

Environment Variables:
- LEDGER_TEST_DATABASE_URL: run against another database (e.g. PostgreSQL)
  instead of the in-memory SQLite default.
"""

import json
import logging
import os
from dataclasses import replace
from datetime import date
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from ledger_config import get_active_config
from ledger_config.bridges import build_account_seeds, build_check_definitions
from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.dtos import (
    AccountInfo,
    JournalEntryDraft,
    JournalLineInput,
    PeriodDraft,
)
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.services.closing_check_runner import ClosingCheckRunner
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.reconciliation_service import ReconciliationService
from ledger_kernel.services.reference_data_loader import ReferenceDataLoader

TEST_ACTOR = "admin"

DEFAULT_TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"


def get_database_url() -> str:
    return os.environ.get("LEDGER_TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, journal_service):
            journal_service.post_entry(entry_id)
            logs = captured_logs()
            assert any(r["message"] == "journal_entry_posted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    """Fresh schema per test; the in-memory database vanishes with the engine."""
    reset_engine()
    eng = init_engine_from_url(get_database_url())
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def config():
    return get_active_config()


@pytest.fixture
def check_definitions(config):
    return build_check_definitions(config)


@pytest.fixture
def accounts(session, config) -> dict[str, AccountInfo]:
    """The default chart of accounts, seeded and keyed by code."""
    ReferenceDataLoader(session).seed_accounts(build_account_seeds(config))
    return AccountSelector(session).by_code()


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def journal_service(session, clock) -> JournalService:
    return JournalService(session, clock=clock)


@pytest.fixture
def runner(session, clock, check_definitions) -> ClosingCheckRunner:
    return ClosingCheckRunner(session, check_definitions, clock=clock)


@pytest.fixture
def period_service(session, clock, runner) -> PeriodService:
    return PeriodService(session, clock=clock, checklist=runner)


@pytest.fixture
def reconciliation_service(session, clock) -> ReconciliationService:
    return ReconciliationService(session, clock=clock)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def create_period(period_service):
    """Factory: create an OPEN period, January 2025 by default."""

    def _create(
        name: str = "دی ۱۴۰۳",
        start_date: date = date(2025, 1, 1),
        end_date: date = date(2025, 1, 31),
    ):
        return period_service.create_period(
            PeriodDraft(name=name, start_date=start_date, end_date=end_date),
            actor=TEST_ACTOR,
        )

    return _create


@pytest.fixture
def period(create_period):
    return create_period()


def _lines(*pairs: tuple[AccountInfo, str, str]) -> tuple[JournalLineInput, ...]:
    return tuple(
        JournalLineInput(account_id=account.id, debit=debit, credit=credit)
        for account, debit, credit in pairs
    )


@pytest.fixture
def make_lines():
    """Factory: lines from (account, debit, credit) triples."""
    return _lines


@pytest.fixture
def create_entry(journal_service, accounts, period):
    """
    Factory: create a DRAFT entry in ``period``.

    Defaults to a balanced 1,000,000 sale: debit cash (3101), credit
    sales (4101).
    """
    counter = {"n": 0}

    def _create(
        number: str | None = None,
        lines: tuple[JournalLineInput, ...] | None = None,
        period_id=None,
        entry_date: date = date(2025, 1, 15),
        description: str = "فروش نقدی",
        post: bool = False,
    ):
        counter["n"] += 1
        if lines is None:
            lines = _lines(
                (accounts["3101"], "1000000", "0"),
                (accounts["4101"], "0", "1000000"),
            )
        info = journal_service.create_entry(
            JournalEntryDraft(
                number=number or f"JV-{counter['n']:04d}",
                entry_date=entry_date,
                description=description,
                period_id=period_id or period.id,
                items=lines,
            ),
            actor=TEST_ACTOR,
        )
        if post:
            info = journal_service.post_entry(info.id)
        return info

    return _create


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def api_config(config):
    return replace(config, database=replace(config.database, url=get_database_url()))


@pytest.fixture
def client(api_config, clock):
    """TestClient over a fresh database, seeded through the app factory."""
    from fastapi.testclient import TestClient

    from ledger_api.app import create_app

    reset_engine()
    app = create_app(api_config, clock=clock)
    with TestClient(app) as test_client:
        yield test_client
    drop_tables()
    reset_engine()


@pytest.fixture
def api_accounts(client) -> dict[str, AccountInfo]:
    """Chart of accounts seeded by ``client``, keyed by code."""
    with get_session() as sess:
        return AccountSelector(sess).by_code()
