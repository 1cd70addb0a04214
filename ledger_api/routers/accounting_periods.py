from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ledger_api.deps import LedgerRuntime, get_actor, get_runtime, parse_id
from ledger_api.schemas import (
    ClosingCheckResultOut,
    MessageOut,
    PeriodCloseIn,
    PeriodCloseOut,
    PeriodIn,
    PeriodOut,
    PeriodUpdateIn,
)
from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.dtos import ClosingMeta, PeriodDraft, PeriodPatch
from ledger_kernel.exceptions import PeriodNotFoundError
from ledger_kernel.logging_config import LogContext

router = APIRouter(prefix="/accounting-periods", tags=["accounting-periods"])


def _period_id(raw: str) -> UUID:
    return parse_id(raw, PeriodNotFoundError)


@router.get("")
def list_periods(
    is_closed: bool | None = Query(None, alias="isClosed"),
    runtime: LedgerRuntime = Depends(get_runtime),
) -> list[PeriodOut]:
    with session_scope() as session:
        periods = runtime.period_service(session).list_periods(is_closed=is_closed)
    return [PeriodOut.from_info(p) for p in periods]


@router.post("", status_code=201)
def create_period(
    body: PeriodIn,
    runtime: LedgerRuntime = Depends(get_runtime),
    actor: str = Depends(get_actor),
) -> PeriodOut:
    draft = PeriodDraft(name=body.name, start_date=body.start_date, end_date=body.end_date)
    with session_scope() as session:
        info = runtime.period_service(session).create_period(draft, actor)
    return PeriodOut.from_info(info)


@router.get("/{period_id}")
def get_period(
    period_id: str,
    runtime: LedgerRuntime = Depends(get_runtime),
) -> PeriodOut:
    with session_scope() as session:
        info = runtime.period_service(session).get_period(_period_id(period_id))
    return PeriodOut.from_info(info)


@router.put("/{period_id}")
def update_period(
    period_id: str,
    body: PeriodUpdateIn,
    runtime: LedgerRuntime = Depends(get_runtime),
) -> PeriodOut:
    patch = PeriodPatch(name=body.name, start_date=body.start_date, end_date=body.end_date)
    with LogContext.bind(period_id=period_id), session_scope() as session:
        info = runtime.period_service(session).update_period(
            _period_id(period_id), patch, expected_version=body.version
        )
    return PeriodOut.from_info(info)


@router.post("/{period_id}")
def close_period(
    period_id: str,
    body: PeriodCloseIn,
    runtime: LedgerRuntime = Depends(get_runtime),
    actor: str = Depends(get_actor),
) -> PeriodCloseOut:
    meta = ClosingMeta(closing_date=body.closing_date, description=body.description)
    with LogContext.bind(period_id=period_id), session_scope() as session:
        result = runtime.period_service(session).close_period(
            _period_id(period_id), meta, actor, expected_version=body.version
        )
    return PeriodCloseOut(
        period=PeriodOut.from_info(result.period),
        closing_checks=[ClosingCheckResultOut.from_result(r) for r in result.checklist.results],
        message="Accounting period closed successfully",
    )


@router.delete("/{period_id}")
def delete_period(
    period_id: str,
    expected_version: int | None = Query(None, alias="expectedVersion"),
    runtime: LedgerRuntime = Depends(get_runtime),
) -> MessageOut:
    with LogContext.bind(period_id=period_id), session_scope() as session:
        runtime.period_service(session).delete_period(
            _period_id(period_id), expected_version=expected_version
        )
    return MessageOut(message="Accounting period deleted successfully")
