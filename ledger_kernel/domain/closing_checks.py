"""
Closing checks -- deterministic predicates gating an accounting period close.

Responsibility:
    Defines the closing-check vocabulary (categories, definitions, results,
    checklist summary), the immutable ledger snapshot the checks inspect, and
    one pure predicate per category.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The snapshot is
    built by LedgerSelector; ClosingCheckRunner evaluates the predicates
    concurrently and stamps the results.

Invariants enforced:
    - Each predicate reads only the frozen snapshot, so checks are
      independent and may run in any order or in parallel.
    - A category without a registered predicate is a programming error
      (KeyError at evaluation time, reported as a FAILED result).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

from ledger_kernel.db.types import BALANCE_TOLERANCE, ZERO, is_balanced
from ledger_kernel.domain.dtos import AccountInfo


class CheckCategory(str, Enum):
    ACCOUNT_BALANCE = "ACCOUNT_BALANCE"
    TEMPORARY_ACCOUNTS = "TEMPORARY_ACCOUNTS"
    FINANCIAL_DOCUMENTS = "FINANCIAL_DOCUMENTS"
    BANK_RECONCILIATION = "BANK_RECONCILIATION"
    INVENTORY = "INVENTORY"
    TAX_CALCULATION = "TAX_CALCULATION"
    ACCOUNTS_RECEIVABLE = "ACCOUNTS_RECEIVABLE"
    ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"


class CheckStatus(str, Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class ClosingCheckDefinition:
    """Static catalog entry for one closing check."""

    check_id: str
    name: str
    description: str
    category: CheckCategory
    required: bool
    error_message: str
    # Control account inspected by balance-side checks
    account_code: str | None = None


@dataclass(frozen=True)
class CheckOutcome:
    """What a predicate concluded, before stamping."""

    passed: bool
    reason: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ClosingCheckResult:
    """One executed check.  Produced per run; never persisted."""

    check_id: str
    name: str
    description: str
    category: CheckCategory
    required: bool
    status: CheckStatus
    error_message: str | None
    executed_at: datetime
    period_id: UUID
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.status == CheckStatus.FAILED

    @classmethod
    def from_outcome(
        cls,
        definition: ClosingCheckDefinition,
        outcome: CheckOutcome,
        period_id: UUID,
        executed_at: datetime,
    ) -> ClosingCheckResult:
        details = dict(outcome.data)
        if outcome.reason:
            details["reason"] = outcome.reason
        return cls(
            check_id=definition.check_id,
            name=definition.name,
            description=definition.description,
            category=definition.category,
            required=definition.required,
            status=CheckStatus.COMPLETED if outcome.passed else CheckStatus.FAILED,
            error_message=None if outcome.passed else definition.error_message,
            executed_at=executed_at,
            period_id=period_id,
            details=MappingProxyType(details),
        )


@dataclass(frozen=True)
class ChecklistSummary:
    total: int
    completed: int
    failed: int
    required_failed: int
    success_rate: int
    can_close: bool

    @classmethod
    def from_results(
        cls,
        results: tuple[ClosingCheckResult, ...],
        block_on_optional_failures: bool = True,
    ) -> ChecklistSummary:
        total = len(results)
        completed = sum(1 for r in results if r.status == CheckStatus.COMPLETED)
        failed = sum(1 for r in results if r.failed)
        required_failed = sum(1 for r in results if r.failed and r.required)
        if total:
            rate = (Decimal(completed) * 100 / Decimal(total)).quantize(
                Decimal("1"), rounding=ROUND_HALF_UP
            )
            success_rate = int(rate)
        else:
            success_rate = 0
        blocking = failed if block_on_optional_failures else required_failed
        return cls(
            total=total,
            completed=completed,
            failed=failed,
            required_failed=required_failed,
            success_rate=success_rate,
            can_close=blocking == 0,
        )


@dataclass(frozen=True)
class ChecklistRun:
    """Results and summary of one ``ClosingCheckRunner.run()`` call."""

    period_id: UUID
    executed_at: datetime
    results: tuple[ClosingCheckResult, ...]
    summary: ChecklistSummary
    block_on_optional_failures: bool = True

    @property
    def failed_results(self) -> tuple[ClosingCheckResult, ...]:
        return tuple(r for r in self.results if r.failed)

    @property
    def blocking_results(self) -> tuple[ClosingCheckResult, ...]:
        if self.block_on_optional_failures:
            return self.failed_results
        return tuple(r for r in self.results if r.failed and r.required)


# ---------------------------------------------------------------------------
# Ledger snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EntrySnapshot:
    """One journal entry of the period, with cached and recomputed totals."""

    entry_id: UUID
    number: str
    status: str
    total_debit: Decimal
    total_credit: Decimal
    line_debit: Decimal
    line_credit: Decimal


@dataclass(frozen=True)
class PeriodLedgerSnapshot:
    """
    Read-only view of everything the closing checks may inspect.

    ``cumulative_balances`` holds debit - credit per account over POSTED
    entries dated on or before the period end.
    """

    period_id: UUID
    period_name: str
    start_date: date
    end_date: date
    entries: tuple[EntrySnapshot, ...]
    accounts: Mapping[str, AccountInfo]
    cumulative_balances: Mapping[UUID, Decimal]
    pending_reconciliations: tuple[str, ...] = ()

    def posted_entries(self) -> tuple[EntrySnapshot, ...]:
        return tuple(e for e in self.entries if e.status == "POSTED")

    def entries_with_status(self, status: str) -> tuple[EntrySnapshot, ...]:
        return tuple(e for e in self.entries if e.status == status)

    def balance_of(self, account: AccountInfo) -> Decimal:
        return self.cumulative_balances.get(account.id, ZERO)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

Predicate = Callable[[ClosingCheckDefinition, PeriodLedgerSnapshot, Decimal], CheckOutcome]

_PREDICATES: dict[CheckCategory, Predicate] = {}


def _predicate(category: CheckCategory) -> Callable[[Predicate], Predicate]:
    def register(fn: Predicate) -> Predicate:
        _PREDICATES[category] = fn
        return fn

    return register


@_predicate(CheckCategory.ACCOUNT_BALANCE)
def _account_balance(
    definition: ClosingCheckDefinition,
    snapshot: PeriodLedgerSnapshot,
    tolerance: Decimal,
) -> CheckOutcome:
    posted = snapshot.posted_entries()
    debits = sum((e.line_debit for e in posted), ZERO)
    credits = sum((e.line_credit for e in posted), ZERO)
    mismatched = [
        e.number
        for e in posted
        if not is_balanced(e.total_debit, e.line_debit, tolerance)
        or not is_balanced(e.total_credit, e.line_credit, tolerance)
    ]
    data = {"total_debit": debits, "total_credit": credits}
    if mismatched:
        return CheckOutcome(
            False,
            f"cached totals differ from lines: {', '.join(mismatched)}",
            {**data, "entries": mismatched},
        )
    if not is_balanced(debits, credits, tolerance):
        return CheckOutcome(False, "posted debits and credits differ", data)
    return CheckOutcome(True, data=data)


@_predicate(CheckCategory.TEMPORARY_ACCOUNTS)
def _temporary_accounts(
    definition: ClosingCheckDefinition,
    snapshot: PeriodLedgerSnapshot,
    tolerance: Decimal,
) -> CheckOutcome:
    open_accounts = [
        account.code
        for account in snapshot.accounts.values()
        if account.is_temporary and abs(snapshot.balance_of(account)) > tolerance
    ]
    if open_accounts:
        return CheckOutcome(
            False,
            "temporary accounts carry a balance",
            {"accounts": sorted(open_accounts)},
        )
    return CheckOutcome(True)


@_predicate(CheckCategory.FINANCIAL_DOCUMENTS)
def _financial_documents(
    definition: ClosingCheckDefinition,
    snapshot: PeriodLedgerSnapshot,
    tolerance: Decimal,
) -> CheckOutcome:
    drafts = [e.number for e in snapshot.entries_with_status("DRAFT")]
    if drafts:
        return CheckOutcome(
            False,
            f"{len(drafts)} draft entries are not posted",
            {"entries": drafts},
        )
    return CheckOutcome(True, data={"posted_count": len(snapshot.posted_entries())})


@_predicate(CheckCategory.BANK_RECONCILIATION)
def _bank_reconciliation(
    definition: ClosingCheckDefinition,
    snapshot: PeriodLedgerSnapshot,
    tolerance: Decimal,
) -> CheckOutcome:
    if snapshot.pending_reconciliations:
        return CheckOutcome(
            False,
            f"{len(snapshot.pending_reconciliations)} reconciliations still pending",
            {"reconciliations": list(snapshot.pending_reconciliations)},
        )
    return CheckOutcome(True)


def _control_account_side(
    definition: ClosingCheckDefinition,
    snapshot: PeriodLedgerSnapshot,
    tolerance: Decimal,
) -> CheckOutcome:
    """The control account must not sit on the wrong side of its normal balance."""
    if not definition.account_code:
        return CheckOutcome(False, "no control account configured")
    account = snapshot.accounts.get(definition.account_code)
    if account is None:
        return CheckOutcome(False, f"control account {definition.account_code} not found")
    balance = snapshot.balance_of(account)
    signed = balance if account.normal_balance == "DEBIT" else -balance
    data = {"account_code": account.code, "balance": signed}
    if signed < -tolerance:
        return CheckOutcome(False, f"account {account.code} has an abnormal balance", data)
    return CheckOutcome(True, data=data)


for _category in (
    CheckCategory.INVENTORY,
    CheckCategory.TAX_CALCULATION,
    CheckCategory.ACCOUNTS_RECEIVABLE,
    CheckCategory.ACCOUNTS_PAYABLE,
):
    _PREDICATES[_category] = _control_account_side


def evaluate_check(
    definition: ClosingCheckDefinition,
    snapshot: PeriodLedgerSnapshot,
    tolerance: Decimal = BALANCE_TOLERANCE,
) -> CheckOutcome:
    """Run the predicate registered for the definition's category."""
    return _PREDICATES[definition.category](definition, snapshot, tolerance)
