"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the service boundary:
    draft inputs (JournalLineInput, JournalEntryDraft, JournalEntryPatch,
    PeriodDraft, PeriodPatch, ReconciliationDraft, ReconciliationPatch,
    DiscrepancyDraft), validator output (NormalizedLine,
    ValidatedLines), and read-side records (AccountInfo, JournalEntryInfo,
    AccountingPeriodInfo, BankReconciliationInfo, DiscrepancyInfo, Page).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` class methods are boundary converters invoked only from
    services and selectors, never from domain logic.

Invariants enforced:
    - Services and selectors return these frozen DTOs, never ORM entities.
    - Monetary fields are Decimal, never float.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar
from uuid import UUID

T = TypeVar("T")


@dataclass(frozen=True)
class AccountInfo:
    """Account Reference record: id -> code, name, normal balance."""

    id: UUID
    code: str
    name: str
    account_type: str
    normal_balance: str
    is_active: bool = True
    is_temporary: bool = False

    @classmethod
    def from_model(cls, account: Any) -> AccountInfo:
        return cls(
            id=account.id,
            code=account.code,
            name=account.name,
            account_type=str(getattr(account.account_type, "value", account.account_type)),
            normal_balance=str(getattr(account.normal_balance, "value", account.normal_balance)),
            is_active=account.is_active,
            is_temporary=account.is_temporary,
        )


@dataclass(frozen=True)
class JournalLineInput:
    """A submitted line; debit/credit arrive as numeric strings."""

    account_id: UUID
    debit: str | int | float | Decimal | None = "0"
    credit: str | int | float | Decimal | None = "0"
    description: str | None = None


@dataclass(frozen=True)
class JournalEntryDraft:
    """Fields of a journal entry submission."""

    number: str
    entry_date: date
    description: str
    period_id: UUID
    items: tuple[JournalLineInput, ...]


@dataclass(frozen=True)
class JournalEntryPatch:
    """Partial update of a DRAFT entry.  None means "leave unchanged"."""

    number: str | None = None
    entry_date: date | None = None
    description: str | None = None
    period_id: UUID | None = None
    status: str | None = None
    items: tuple[JournalLineInput, ...] | None = None


@dataclass(frozen=True)
class NormalizedLine:
    """Validator output: numeric amounts plus resolved account reference."""

    account_id: UUID
    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal
    description: str
    line_seq: int


@dataclass(frozen=True)
class ValidatedLines:
    """Accepted lines of an entry and their cached totals."""

    lines: tuple[NormalizedLine, ...]
    total_debit: Decimal
    total_credit: Decimal


@dataclass(frozen=True)
class JournalLineInfo:
    id: UUID
    account_id: UUID
    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal
    description: str
    line_seq: int


@dataclass(frozen=True)
class JournalEntryInfo:
    """Read-side view of a stored journal entry."""

    id: UUID
    number: str
    entry_date: date
    description: str
    period_id: UUID
    period_name: str
    status: str
    total_debit: Decimal
    total_credit: Decimal
    created_by: str
    created_at: datetime
    updated_at: datetime
    version: int
    items: tuple[JournalLineInfo, ...] = ()

    @classmethod
    def from_model(cls, entry: Any) -> JournalEntryInfo:
        return cls(
            id=entry.id,
            number=entry.number,
            entry_date=entry.entry_date,
            description=entry.description,
            period_id=entry.period_id,
            period_name=entry.period.name if entry.period is not None else "",
            status=str(getattr(entry.status, "value", entry.status)),
            total_debit=Decimal(entry.total_debit),
            total_credit=Decimal(entry.total_credit),
            created_by=entry.created_by,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            version=entry.version,
            items=tuple(
                JournalLineInfo(
                    id=line.id,
                    account_id=line.account_id,
                    account_code=line.account_code,
                    account_name=line.account_name,
                    debit=Decimal(line.debit),
                    credit=Decimal(line.credit),
                    description=line.description,
                    line_seq=line.line_seq,
                )
                for line in entry.lines
            ),
        )


@dataclass(frozen=True)
class PeriodDraft:
    name: str
    start_date: date
    end_date: date


@dataclass(frozen=True)
class PeriodPatch:
    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None


@dataclass(frozen=True)
class ClosingMeta:
    """Metadata supplied with a close request."""

    closing_date: str
    description: str


@dataclass(frozen=True)
class AccountingPeriodInfo:
    """Read-side view of an accounting period."""

    id: UUID
    name: str
    start_date: date
    end_date: date
    is_closed: bool
    closed_at: datetime | None
    closed_by: str | None
    closing_date: str | None
    closing_description: str | None
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal
    created_at: datetime
    updated_at: datetime
    version: int

    @classmethod
    def from_model(cls, period: Any) -> AccountingPeriodInfo:
        return cls(
            id=period.id,
            name=period.name,
            start_date=period.start_date,
            end_date=period.end_date,
            is_closed=period.is_closed,
            closed_at=period.closed_at,
            closed_by=period.closed_by,
            closing_date=period.closing_date,
            closing_description=period.closing_description,
            total_revenue=Decimal(period.total_revenue),
            total_expenses=Decimal(period.total_expenses),
            net_income=Decimal(period.net_income),
            created_at=period.created_at,
            updated_at=period.updated_at,
            version=period.version,
        )


@dataclass(frozen=True)
class ReconciliationDraft:
    bank_name: str
    account_number: str
    statement_date: date
    statement_balance: Decimal
    system_balance: Decimal
    description: str | None = None


@dataclass(frozen=True)
class ReconciliationPatch:
    """Fields to change on a PENDING reconciliation; None leaves a field alone."""

    bank_name: str | None = None
    account_number: str | None = None
    statement_date: date | None = None
    statement_balance: Decimal | None = None
    system_balance: Decimal | None = None
    description: str | None = None


@dataclass(frozen=True)
class DiscrepancyDraft:
    amount: Decimal
    discrepancy_type: str
    description: str
    resolution: str | None = None


@dataclass(frozen=True)
class DiscrepancyInfo:
    id: UUID
    amount: Decimal
    discrepancy_type: str
    description: str
    resolution: str | None
    status: str
    resolved_at: datetime | None

    @classmethod
    def from_model(cls, discrepancy: Any) -> DiscrepancyInfo:
        return cls(
            id=discrepancy.id,
            amount=Decimal(discrepancy.amount),
            discrepancy_type=str(
                getattr(discrepancy.discrepancy_type, "value", discrepancy.discrepancy_type)
            ),
            description=discrepancy.description,
            resolution=discrepancy.resolution,
            status=str(getattr(discrepancy.status, "value", discrepancy.status)),
            resolved_at=discrepancy.resolved_at,
        )


@dataclass(frozen=True)
class BankReconciliationInfo:
    id: UUID
    bank_name: str
    account_number: str
    statement_date: date
    statement_balance: Decimal
    system_balance: Decimal
    difference: Decimal
    status: str
    description: str | None
    reconciled_at: datetime | None
    created_at: datetime
    updated_at: datetime
    version: int
    discrepancies: tuple[DiscrepancyInfo, ...]

    @property
    def open_discrepancies(self) -> tuple[DiscrepancyInfo, ...]:
        return tuple(d for d in self.discrepancies if d.status == "OPEN")

    @classmethod
    def from_model(cls, recon: Any) -> BankReconciliationInfo:
        return cls(
            id=recon.id,
            bank_name=recon.bank_name,
            account_number=recon.account_number,
            statement_date=recon.statement_date,
            statement_balance=Decimal(recon.statement_balance),
            system_balance=Decimal(recon.system_balance),
            difference=Decimal(recon.difference),
            status=str(getattr(recon.status, "value", recon.status)),
            description=recon.description,
            reconciled_at=recon.reconciled_at,
            created_at=recon.created_at,
            updated_at=recon.updated_at,
            version=recon.version,
            discrepancies=tuple(DiscrepancyInfo.from_model(d) for d in recon.discrepancies),
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a filtered listing."""

    items: tuple[T, ...]
    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        pages = -(-self.total_items // self.items_per_page) if self.items_per_page else 0
        object.__setattr__(self, "total_pages", pages)
