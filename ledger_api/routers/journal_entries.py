from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ledger_api.deps import LedgerRuntime, get_actor, get_runtime, parse_id
from ledger_api.schemas import (
    JournalEntryEnvelope,
    JournalEntryIn,
    JournalEntryListOut,
    JournalEntryOut,
    JournalEntryUpdateIn,
    MessageOut,
)
from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.dtos import JournalEntryDraft, JournalEntryPatch
from ledger_kernel.exceptions import JournalEntryNotFoundError
from ledger_kernel.logging_config import LogContext
from ledger_kernel.models.journal import JournalEntryStatus
from ledger_kernel.selectors.journal_selector import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    JournalEntryFilter,
    JournalSelector,
)

router = APIRouter(prefix="/journal-entries", tags=["journal-entries"])


def _entry_id(raw: str) -> UUID:
    return parse_id(raw, JournalEntryNotFoundError)


@router.get("")
def list_journal_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    period_id: UUID | None = Query(None, alias="periodId"),
    status: JournalEntryStatus | None = Query(None),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    search: str | None = Query(None),
) -> JournalEntryListOut:
    filters = JournalEntryFilter(
        period_id=period_id,
        status=status,
        date_from=start_date,
        date_to=end_date,
        search=search,
    )
    with session_scope() as session:
        result = JournalSelector(session).list_entries(filters, page=page, limit=limit)
    return JournalEntryListOut.from_page(result)


@router.post("", status_code=201)
def create_journal_entry(
    body: JournalEntryIn,
    runtime: LedgerRuntime = Depends(get_runtime),
    actor: str = Depends(get_actor),
) -> JournalEntryEnvelope:
    draft = JournalEntryDraft(
        number=body.number,
        entry_date=body.entry_date,
        description=body.description,
        period_id=body.period_id,
        items=tuple(item.to_input() for item in body.items),
    )
    with session_scope() as session:
        info = runtime.journal_service(session).create_entry(draft, actor)
    return JournalEntryEnvelope(
        data=JournalEntryOut.from_info(info),
        message="سند حسابداری با موفقیت ثبت شد",
    )


@router.get("/{entry_id}")
def get_journal_entry(
    entry_id: str,
    runtime: LedgerRuntime = Depends(get_runtime),
) -> JournalEntryEnvelope:
    with session_scope() as session:
        info = runtime.journal_service(session).get_entry(_entry_id(entry_id))
    return JournalEntryEnvelope(data=JournalEntryOut.from_info(info))


@router.put("/{entry_id}")
def update_journal_entry(
    entry_id: str,
    body: JournalEntryUpdateIn,
    runtime: LedgerRuntime = Depends(get_runtime),
) -> JournalEntryEnvelope:
    patch = JournalEntryPatch(
        number=body.number,
        entry_date=body.entry_date,
        description=body.description,
        period_id=body.period_id,
        status=body.status,
        items=tuple(i.to_input() for i in body.items) if body.items is not None else None,
    )
    with LogContext.bind(entry_id=entry_id), session_scope() as session:
        info = runtime.journal_service(session).edit_entry(
            _entry_id(entry_id), patch, expected_version=body.version
        )
    return JournalEntryEnvelope(
        data=JournalEntryOut.from_info(info),
        message="سند حسابداری با موفقیت به‌روزرسانی شد",
    )


@router.post("/{entry_id}")
def post_journal_entry(
    entry_id: str,
    expected_version: int | None = Query(None, alias="expectedVersion"),
    runtime: LedgerRuntime = Depends(get_runtime),
) -> JournalEntryEnvelope:
    with LogContext.bind(entry_id=entry_id), session_scope() as session:
        info = runtime.journal_service(session).post_entry(
            _entry_id(entry_id), expected_version=expected_version
        )
    return JournalEntryEnvelope(
        data=JournalEntryOut.from_info(info),
        message="سند حسابداری با موفقیت ثبت نهایی شد",
    )


@router.post("/{entry_id}/cancel")
def cancel_journal_entry(
    entry_id: str,
    expected_version: int | None = Query(None, alias="expectedVersion"),
    runtime: LedgerRuntime = Depends(get_runtime),
) -> JournalEntryEnvelope:
    with LogContext.bind(entry_id=entry_id), session_scope() as session:
        info = runtime.journal_service(session).cancel_entry(
            _entry_id(entry_id), expected_version=expected_version
        )
    return JournalEntryEnvelope(
        data=JournalEntryOut.from_info(info),
        message="سند حسابداری با موفقیت ابطال شد",
    )


@router.delete("/{entry_id}")
def delete_journal_entry(
    entry_id: str,
    expected_version: int | None = Query(None, alias="expectedVersion"),
    runtime: LedgerRuntime = Depends(get_runtime),
) -> MessageOut:
    with LogContext.bind(entry_id=entry_id), session_scope() as session:
        runtime.journal_service(session).delete_entry(
            _entry_id(entry_id), expected_version=expected_version
        )
    return MessageOut(message="سند حسابداری با موفقیت حذف شد")
