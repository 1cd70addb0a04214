from fastapi import APIRouter, Depends, Query

from ledger_api.deps import LedgerRuntime, get_runtime
from ledger_api.schemas import ChecklistRunOut, ClosingCheckOut, RunChecksIn
from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.closing_checks import CheckCategory
from ledger_kernel.logging_config import LogContext

router = APIRouter(prefix="/closing-checks", tags=["closing-checks"])


@router.get("")
def list_closing_checks(
    category: CheckCategory | None = Query(None),
    required: bool | None = Query(None),
    runtime: LedgerRuntime = Depends(get_runtime),
) -> list[ClosingCheckOut]:
    with session_scope() as session:
        definitions = runtime.checklist(session).catalog(category=category, required=required)
    return [ClosingCheckOut.from_definition(d) for d in definitions]


@router.post("")
def run_closing_checks(
    body: RunChecksIn,
    runtime: LedgerRuntime = Depends(get_runtime),
) -> ChecklistRunOut:
    with LogContext.bind(period_id=str(body.period_id)), session_scope() as session:
        run = runtime.checklist(session).run(body.period_id, check_ids=body.check_ids)
    return ChecklistRunOut.from_run(run)
