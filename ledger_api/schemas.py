"""
Request and response bodies of the HTTP surface.

Every body uses camelCase keys on the wire.  Amounts are Decimal inside the
process and JSON numbers on the wire.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from ledger_kernel.domain.closing_checks import (
    ChecklistRun,
    ChecklistSummary,
    ClosingCheckDefinition,
    ClosingCheckResult,
)
from ledger_kernel.domain.dtos import (
    AccountingPeriodInfo,
    BankReconciliationInfo,
    DiscrepancyInfo,
    JournalEntryInfo,
    JournalLineInput,
    Page,
)

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# Amounts arrive as numeric strings in the UI; numbers are accepted too.
AmountIn = Union[str, int, float, None]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Journal entries
# ---------------------------------------------------------------------------


class JournalLineIn(CamelModel):
    account_id: UUID
    debit: AmountIn = "0"
    credit: AmountIn = "0"
    description: str | None = None

    def to_input(self) -> JournalLineInput:
        return JournalLineInput(
            account_id=self.account_id,
            debit=self.debit,
            credit=self.credit,
            description=self.description,
        )


class JournalEntryIn(CamelModel):
    number: str = Field(min_length=1)
    entry_date: date = Field(alias="date")
    description: str = Field(min_length=1)
    period_id: UUID
    items: list[JournalLineIn]


class JournalEntryUpdateIn(CamelModel):
    number: str | None = Field(default=None, min_length=1)
    entry_date: date | None = Field(default=None, alias="date")
    description: str | None = Field(default=None, min_length=1)
    period_id: UUID | None = None
    status: Literal["DRAFT", "POSTED", "CANCELLED"] | None = None
    items: list[JournalLineIn] | None = None
    version: int | None = None


class JournalLineOut(CamelModel):
    id: UUID
    account_id: UUID
    account_code: str
    account_name: str
    debit: Money
    credit: Money
    description: str


class JournalEntryOut(CamelModel):
    id: UUID
    number: str
    entry_date: date = Field(alias="date")
    description: str
    period_id: UUID
    period_name: str
    status: str
    total_debit: Money
    total_credit: Money
    created_by: str
    created_at: datetime
    updated_at: datetime
    version: int
    items: list[JournalLineOut]

    @classmethod
    def from_info(cls, info: JournalEntryInfo) -> JournalEntryOut:
        return cls(
            id=info.id,
            number=info.number,
            entry_date=info.entry_date,
            description=info.description,
            period_id=info.period_id,
            period_name=info.period_name,
            status=info.status,
            total_debit=info.total_debit,
            total_credit=info.total_credit,
            created_by=info.created_by,
            created_at=info.created_at,
            updated_at=info.updated_at,
            version=info.version,
            items=[
                JournalLineOut(
                    id=line.id,
                    account_id=line.account_id,
                    account_code=line.account_code,
                    account_name=line.account_name,
                    debit=line.debit,
                    credit=line.credit,
                    description=line.description,
                )
                for line in info.items
            ],
        )


class PaginationOut(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class JournalEntryListOut(CamelModel):
    success: bool = True
    data: list[JournalEntryOut]
    pagination: PaginationOut

    @classmethod
    def from_page(cls, page: Page[JournalEntryInfo]) -> JournalEntryListOut:
        return cls(
            data=[JournalEntryOut.from_info(e) for e in page.items],
            pagination=PaginationOut(
                current_page=page.current_page,
                total_pages=page.total_pages,
                total_items=page.total_items,
                items_per_page=page.items_per_page,
            ),
        )


class JournalEntryEnvelope(CamelModel):
    success: bool = True
    data: JournalEntryOut
    message: str | None = None


class MessageOut(CamelModel):
    success: bool = True
    message: str


# ---------------------------------------------------------------------------
# Accounting periods
# ---------------------------------------------------------------------------


class PeriodIn(CamelModel):
    name: str = Field(min_length=1)
    start_date: date
    end_date: date


class PeriodUpdateIn(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    start_date: date | None = None
    end_date: date | None = None
    version: int | None = None


class PeriodCloseIn(CamelModel):
    closing_date: str = Field(min_length=1)
    description: str = Field(min_length=1)
    version: int | None = None


class PeriodOut(CamelModel):
    id: UUID
    name: str
    start_date: date
    end_date: date
    is_closed: bool
    closed_at: datetime | None
    closed_by: str | None
    closing_date: str | None
    closing_description: str | None
    total_revenue: Money
    total_expenses: Money
    net_income: Money
    created_at: datetime
    updated_at: datetime
    version: int

    @classmethod
    def from_info(cls, info: AccountingPeriodInfo) -> PeriodOut:
        return cls(
            id=info.id,
            name=info.name,
            start_date=info.start_date,
            end_date=info.end_date,
            is_closed=info.is_closed,
            closed_at=info.closed_at,
            closed_by=info.closed_by,
            closing_date=info.closing_date,
            closing_description=info.closing_description,
            total_revenue=info.total_revenue,
            total_expenses=info.total_expenses,
            net_income=info.net_income,
            created_at=info.created_at,
            updated_at=info.updated_at,
            version=info.version,
        )


# ---------------------------------------------------------------------------
# Closing checks
# ---------------------------------------------------------------------------


class ClosingCheckOut(CamelModel):
    id: str
    name: str
    description: str
    category: str
    required: bool
    account_code: str | None = None

    @classmethod
    def from_definition(cls, definition: ClosingCheckDefinition) -> ClosingCheckOut:
        return cls(
            id=definition.check_id,
            name=definition.name,
            description=definition.description,
            category=definition.category.value,
            required=definition.required,
            account_code=definition.account_code,
        )


class ClosingCheckResultOut(CamelModel):
    id: str
    name: str
    description: str
    category: str
    required: bool
    status: str
    error_message: str | None
    executed_at: datetime
    period_id: UUID
    details: dict

    @classmethod
    def from_result(cls, result: ClosingCheckResult) -> ClosingCheckResultOut:
        return cls(
            id=result.check_id,
            name=result.name,
            description=result.description,
            category=result.category.value,
            required=result.required,
            status=result.status.value,
            error_message=result.error_message,
            executed_at=result.executed_at,
            period_id=result.period_id,
            details={
                key: float(value) if isinstance(value, Decimal) else value
                for key, value in result.details.items()
            },
        )


class ChecklistSummaryOut(CamelModel):
    total: int
    completed: int
    failed: int
    required_failed: int
    success_rate: int
    can_close: bool

    @classmethod
    def from_summary(cls, summary: ChecklistSummary) -> ChecklistSummaryOut:
        return cls(
            total=summary.total,
            completed=summary.completed,
            failed=summary.failed,
            required_failed=summary.required_failed,
            success_rate=summary.success_rate,
            can_close=summary.can_close,
        )


class RunChecksIn(CamelModel):
    period_id: UUID
    check_ids: list[str] | None = None


class ChecklistRunOut(CamelModel):
    results: list[ClosingCheckResultOut]
    summary: ChecklistSummaryOut
    period_id: UUID
    executed_at: datetime

    @classmethod
    def from_run(cls, run: ChecklistRun) -> ChecklistRunOut:
        return cls(
            results=[ClosingCheckResultOut.from_result(r) for r in run.results],
            summary=ChecklistSummaryOut.from_summary(run.summary),
            period_id=run.period_id,
            executed_at=run.executed_at,
        )


class PeriodCloseOut(CamelModel):
    period: PeriodOut
    closing_checks: list[ClosingCheckResultOut]
    message: str


# ---------------------------------------------------------------------------
# Bank reconciliations
# ---------------------------------------------------------------------------


class ReconciliationIn(CamelModel):
    bank_name: str = Field(min_length=1)
    account_number: str = Field(min_length=1)
    statement_date: date
    statement_balance: Decimal
    system_balance: Decimal
    description: str | None = None


class ReconciliationUpdateIn(CamelModel):
    bank_name: str | None = Field(default=None, min_length=1)
    account_number: str | None = Field(default=None, min_length=1)
    statement_date: date | None = None
    statement_balance: Decimal | None = None
    system_balance: Decimal | None = None
    description: str | None = None
    version: int | None = None


class DiscrepancyIn(CamelModel):
    amount: Decimal = Field(gt=0)
    type: str = Field(min_length=1)
    description: str = Field(min_length=1)
    resolution: str | None = None
    version: int | None = None


class ResolveDiscrepancyIn(CamelModel):
    resolution: str = Field(min_length=1)


class DiscrepancyOut(CamelModel):
    id: UUID
    amount: Money
    type: str
    description: str
    resolution: str | None
    status: str
    resolved_at: datetime | None

    @classmethod
    def from_info(cls, info: DiscrepancyInfo) -> DiscrepancyOut:
        return cls(
            id=info.id,
            amount=info.amount,
            type=info.discrepancy_type,
            description=info.description,
            resolution=info.resolution,
            status=info.status,
            resolved_at=info.resolved_at,
        )


class ReconciliationOut(CamelModel):
    id: UUID
    bank_name: str
    account_number: str
    statement_date: date
    statement_balance: Money
    system_balance: Money
    difference: Money
    status: str
    description: str | None
    reconciled_at: datetime | None
    created_at: datetime
    updated_at: datetime
    version: int
    discrepancies: list[DiscrepancyOut] = []

    @classmethod
    def from_info(cls, info: BankReconciliationInfo) -> ReconciliationOut:
        return cls(
            id=info.id,
            bank_name=info.bank_name,
            account_number=info.account_number,
            statement_date=info.statement_date,
            statement_balance=info.statement_balance,
            system_balance=info.system_balance,
            difference=info.difference,
            status=info.status,
            description=info.description,
            reconciled_at=info.reconciled_at,
            created_at=info.created_at,
            updated_at=info.updated_at,
            version=info.version,
            discrepancies=[DiscrepancyOut.from_info(d) for d in info.discrepancies],
        )


class ReconciliationCompleteOut(CamelModel):
    reconciliation: ReconciliationOut
    message: str


class DiscrepancyAddedOut(CamelModel):
    reconciliation: ReconciliationOut
    discrepancy: DiscrepancyOut
    message: str
