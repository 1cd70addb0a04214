from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ledger_api.deps import LedgerRuntime, get_actor, get_runtime, parse_id
from ledger_api.schemas import (
    DiscrepancyAddedOut,
    DiscrepancyIn,
    DiscrepancyOut,
    MessageOut,
    ReconciliationCompleteOut,
    ReconciliationIn,
    ReconciliationOut,
    ReconciliationUpdateIn,
    ResolveDiscrepancyIn,
)
from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.dtos import DiscrepancyDraft, ReconciliationDraft, ReconciliationPatch
from ledger_kernel.exceptions import DiscrepancyNotFoundError, ReconciliationNotFoundError
from ledger_kernel.models.bank_reconciliation import ReconciliationStatus

router = APIRouter(prefix="/reconciliations", tags=["reconciliations"])


def _reconciliation_id(raw: str) -> UUID:
    return parse_id(raw, ReconciliationNotFoundError)


@router.get("")
def list_reconciliations(
    status: ReconciliationStatus | None = Query(None),
    runtime: LedgerRuntime = Depends(get_runtime),
) -> list[ReconciliationOut]:
    with session_scope() as session:
        records = runtime.reconciliation_service(session).list_reconciliations(status=status)
    return [ReconciliationOut.from_info(r) for r in records]


@router.post("", status_code=201)
def create_reconciliation(
    body: ReconciliationIn,
    runtime: LedgerRuntime = Depends(get_runtime),
    actor: str = Depends(get_actor),
) -> ReconciliationOut:
    draft = ReconciliationDraft(
        bank_name=body.bank_name,
        account_number=body.account_number,
        statement_date=body.statement_date,
        statement_balance=body.statement_balance,
        system_balance=body.system_balance,
        description=body.description,
    )
    with session_scope() as session:
        info = runtime.reconciliation_service(session).create_reconciliation(draft, actor)
    return ReconciliationOut.from_info(info)


@router.get("/{reconciliation_id}")
def get_reconciliation(
    reconciliation_id: str,
    runtime: LedgerRuntime = Depends(get_runtime),
) -> ReconciliationOut:
    with session_scope() as session:
        info = runtime.reconciliation_service(session).get_reconciliation(
            _reconciliation_id(reconciliation_id)
        )
    return ReconciliationOut.from_info(info)


@router.put("/{reconciliation_id}")
def update_reconciliation(
    reconciliation_id: str,
    body: ReconciliationUpdateIn,
    runtime: LedgerRuntime = Depends(get_runtime),
) -> ReconciliationOut:
    patch = ReconciliationPatch(
        bank_name=body.bank_name,
        account_number=body.account_number,
        statement_date=body.statement_date,
        statement_balance=body.statement_balance,
        system_balance=body.system_balance,
        description=body.description,
    )
    with session_scope() as session:
        info = runtime.reconciliation_service(session).update_reconciliation(
            _reconciliation_id(reconciliation_id), patch, expected_version=body.version
        )
    return ReconciliationOut.from_info(info)


@router.post("/{reconciliation_id}", status_code=201)
def add_discrepancy(
    reconciliation_id: str,
    body: DiscrepancyIn,
    runtime: LedgerRuntime = Depends(get_runtime),
    actor: str = Depends(get_actor),
) -> DiscrepancyAddedOut:
    draft = DiscrepancyDraft(
        amount=body.amount,
        discrepancy_type=body.type,
        description=body.description,
        resolution=body.resolution,
    )
    with session_scope() as session:
        info, discrepancy = runtime.reconciliation_service(session).add_discrepancy(
            _reconciliation_id(reconciliation_id), draft, actor, expected_version=body.version
        )
    return DiscrepancyAddedOut(
        reconciliation=ReconciliationOut.from_info(info),
        discrepancy=DiscrepancyOut.from_info(discrepancy),
        message="Discrepancy added successfully",
    )


@router.post("/{reconciliation_id}/discrepancies/{discrepancy_id}/resolve")
def resolve_discrepancy(
    reconciliation_id: str,
    discrepancy_id: str,
    body: ResolveDiscrepancyIn,
    runtime: LedgerRuntime = Depends(get_runtime),
) -> ReconciliationOut:
    with session_scope() as session:
        info = runtime.reconciliation_service(session).resolve_discrepancy(
            _reconciliation_id(reconciliation_id),
            parse_id(discrepancy_id, DiscrepancyNotFoundError),
            body.resolution,
        )
    return ReconciliationOut.from_info(info)


@router.post("/{reconciliation_id}/complete")
def complete_reconciliation(
    reconciliation_id: str,
    expected_version: int | None = Query(None, alias="expectedVersion"),
    runtime: LedgerRuntime = Depends(get_runtime),
) -> ReconciliationCompleteOut:
    with session_scope() as session:
        info = runtime.reconciliation_service(session).complete_reconciliation(
            _reconciliation_id(reconciliation_id), expected_version=expected_version
        )
    return ReconciliationCompleteOut(
        reconciliation=ReconciliationOut.from_info(info),
        message="Reconciliation completed successfully",
    )


@router.delete("/{reconciliation_id}")
def delete_reconciliation(
    reconciliation_id: str,
    expected_version: int | None = Query(None, alias="expectedVersion"),
    runtime: LedgerRuntime = Depends(get_runtime),
) -> MessageOut:
    with session_scope() as session:
        runtime.reconciliation_service(session).delete_reconciliation(
            _reconciliation_id(reconciliation_id), expected_version=expected_version
        )
    return MessageOut(message="Reconciliation deleted successfully")
