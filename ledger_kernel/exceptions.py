"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every rejection the ledger produces is caught by type, never by parsing a
message.  Each class carries:

  1. a ``code`` class attribute (machine-readable, API-safe),
  2. a ``kind`` class attribute (the public error kind returned to clients),
  3. a ``user_message`` class attribute (the Persian text shown in the UI),
  4. structured attributes (amounts, ids, statuses) instead of prose.

Example:
    try:
        journal_service.create_entry(draft, actor="admin")
    except ImbalancedEntryError as e:
        return {
            "error": e.code,
            "totalDebit": e.total_debit,
            "totalCredit": e.total_credit,
            "difference": e.difference,
        }

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- ValidationError
    |   +-- TooFewLinesError
    |   +-- ImbalancedEntryError
    |   +-- MissingSideError
    |   +-- InvalidAmountError
    |   +-- DuplicateEntryNumberError
    |   +-- ReconciliationOutOfBalanceError
    |   +-- OpenDiscrepanciesError
    |
    +-- NotFoundError
    |   +-- JournalEntryNotFoundError
    |   +-- PeriodNotFoundError
    |   +-- AccountNotFoundError
    |   +-- ReconciliationNotFoundError
    |   +-- DiscrepancyNotFoundError
    |
    +-- InvalidStateTransitionError
    |
    +-- PeriodError
    |   +-- AlreadyClosedError
    |   +-- PeriodClosedError
    |   +-- OverlappingPeriodError
    |   +-- InvalidDateRangeError
    |   +-- PeriodInUseError
    |   +-- ClosingChecksFailedError
    |
    +-- ConcurrencyError
        +-- OptimisticLockError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                        | When Raised
-------------|-----------------------------|-------------------------------------
Validation   | VALIDATION_ERROR            | Malformed input shape
             | TOO_FEW_LINES               | Entry has fewer than two lines
             | IMBALANCED_ENTRY            | |debits - credits| > tolerance
             | MISSING_SIDE                | No debit line or no credit line
             | INVALID_AMOUNT              | Negative or non-numeric amount
             | DUPLICATE_ENTRY_NUMBER      | Entry number already used
             | RECONCILIATION_OUT_OF_BALANCE | Completing with a difference
             | OPEN_DISCREPANCIES          | Completing with an open discrepancy
-------------|-----------------------------|-------------------------------------
Not found    | JOURNAL_ENTRY_NOT_FOUND     | Entry id does not exist
             | PERIOD_NOT_FOUND            | Period id does not exist
             | ACCOUNT_NOT_FOUND           | Line references unknown account
             | RECONCILIATION_NOT_FOUND    | Reconciliation id does not exist
             | DISCREPANCY_NOT_FOUND       | Discrepancy id does not exist
-------------|-----------------------------|-------------------------------------
Lifecycle    | INVALID_STATE_TRANSITION    | Edit/post/cancel/delete non-DRAFT
-------------|-----------------------------|-------------------------------------
Period       | ALREADY_CLOSED              | Closing a closed period
             | PERIOD_CLOSED               | Mutating or posting into closed period
             | OVERLAPPING_PERIOD          | Date range intersects another period
             | INVALID_DATE_RANGE          | end_date <= start_date
             | PERIOD_IN_USE               | Deleting a period with entries
             | CLOSING_CHECKS_FAILED       | Checklist blocked the close
-------------|-----------------------------|-------------------------------------
Concurrency  | OPTIMISTIC_LOCK_CONFLICT    | Stale version on write

===============================================================================
HANDLING PATTERNS
===============================================================================

1. The HTTP layer maps categories, not individual classes:
   NotFoundError -> 404, ConcurrencyError -> 409, everything else -> 400.

2. ``to_details()`` returns the structured attributes of an exception for
   API payloads; the log formatter expands the same attributes as
   ``exc_<name>`` fields.

3. No exception is process-fatal.  A raised error always means the
   enclosing ``session_scope()`` rolled back, so prior state is untouched.
"""

from decimal import Decimal
from typing import Any


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"
    kind: str = "LedgerKernelError"
    user_message: str = "خطای نامشخص"

    def to_details(self) -> dict[str, Any]:
        """Structured attributes of this error (public, non-underscore)."""
        details: dict[str, Any] = {}
        for key, value in vars(self).items():
            if key.startswith("_"):
                continue
            if isinstance(value, Decimal):
                value = float(value)
            details[key] = value
        return details


# Validation exceptions


class ValidationError(LedgerKernelError):
    """Input does not have the required shape or values."""

    code: str = "VALIDATION_ERROR"
    kind: str = "ValidationError"
    user_message: str = "داده‌های نامعتبر"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class TooFewLinesError(ValidationError):
    """A journal entry needs at least two lines."""

    code: str = "TOO_FEW_LINES"
    kind: str = "TooFewLines"
    user_message: str = "حداقل دو آیتم الزامی است"

    def __init__(self, line_count: int, minimum: int = 2):
        self.line_count = line_count
        self.minimum = minimum
        super().__init__(
            f"Journal entry has {line_count} line(s); at least {minimum} required",
            field="items",
        )


class ImbalancedEntryError(ValidationError):
    """Journal entry debits do not equal credits."""

    code: str = "IMBALANCED_ENTRY"
    kind: str = "ImbalancedEntry"
    user_message: str = "مجموع بدهکار و بستانکار باید برابر باشند"

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.difference = abs(total_debit - total_credit)
        super().__init__(
            f"Imbalanced entry: debits={total_debit}, credits={total_credit}, "
            f"difference={self.difference}",
            field="items",
        )


class MissingSideError(ValidationError):
    """Entry lacks a debit line or a credit line."""

    code: str = "MISSING_SIDE"
    kind: str = "MissingSide"
    user_message: str = "حداقل یک آیتم بدهکار و یک آیتم بستانکار الزامی است"

    def __init__(self, has_debit: bool, has_credit: bool):
        self.has_debit = has_debit
        self.has_credit = has_credit
        missing = "debit" if not has_debit else "credit"
        super().__init__(
            f"Journal entry has no line with a positive {missing}",
            field="items",
        )


class InvalidAmountError(ValidationError):
    """A debit or credit is negative or not a number."""

    code: str = "INVALID_AMOUNT"
    user_message: str = "مبلغ بدهکار و بستانکار باید عدد مثبت باشد"

    def __init__(self, line_index: int, side: str, value: str):
        self.line_index = line_index
        self.side = side
        self.value = value
        super().__init__(
            f"Line {line_index}: {side} amount {value!r} is not a non-negative number",
            field=f"items[{line_index}].{side}",
        )


class DuplicateEntryNumberError(ValidationError):
    """Entry numbers are unique within an installation."""

    code: str = "DUPLICATE_ENTRY_NUMBER"
    user_message: str = "شماره سند تکراری است"

    def __init__(self, number: str):
        self.number = number
        super().__init__(f"Journal entry number {number} already exists", field="number")


class ReconciliationOutOfBalanceError(ValidationError):
    """Statement and books differ and no discrepancy explains the gap."""

    code: str = "RECONCILIATION_OUT_OF_BALANCE"
    user_message: str = "مغایرت‌های بانکی حل نشده باقی مانده‌اند"

    def __init__(self, reconciliation_id: str, difference: Decimal):
        self.reconciliation_id = reconciliation_id
        self.difference = difference
        super().__init__(
            f"Reconciliation {reconciliation_id} still has a difference of {difference}"
        )


class OpenDiscrepanciesError(ValidationError):
    """A reconciliation cannot complete while a discrepancy is still open."""

    code: str = "OPEN_DISCREPANCIES"
    kind: str = "OpenDiscrepancies"
    user_message: str = "مغایرت‌های باز باید پیش از تکمیل حل شوند"

    def __init__(self, reconciliation_id: str, open_count: int):
        self.reconciliation_id = reconciliation_id
        self.open_count = open_count
        super().__init__(
            f"Reconciliation {reconciliation_id} has {open_count} open discrepancy(ies)"
        )


# Not-found exceptions


class NotFoundError(LedgerKernelError):
    """Requested entity does not exist."""

    code: str = "NOT_FOUND"
    kind: str = "NotFound"
    user_message: str = "مورد درخواستی یافت نشد"
    entity: str = "entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} {entity_id} not found")


class JournalEntryNotFoundError(NotFoundError):
    code: str = "JOURNAL_ENTRY_NOT_FOUND"
    user_message: str = "سند حسابداری یافت نشد"
    entity: str = "JournalEntry"


class PeriodNotFoundError(NotFoundError):
    code: str = "PERIOD_NOT_FOUND"
    user_message: str = "دوره مالی یافت نشد"
    entity: str = "AccountingPeriod"


class AccountNotFoundError(NotFoundError):
    code: str = "ACCOUNT_NOT_FOUND"
    user_message: str = "حساب یافت نشد"
    entity: str = "Account"


class ReconciliationNotFoundError(NotFoundError):
    code: str = "RECONCILIATION_NOT_FOUND"
    user_message: str = "مغایرت‌گیری بانکی یافت نشد"
    entity: str = "BankReconciliation"


class DiscrepancyNotFoundError(NotFoundError):
    code: str = "DISCREPANCY_NOT_FOUND"
    user_message: str = "مغایرت یافت نشد"
    entity: str = "ReconciliationDiscrepancy"


# Lifecycle exceptions


class InvalidStateTransitionError(LedgerKernelError):
    """Requested action is not allowed from the entity's current status."""

    code: str = "INVALID_STATE_TRANSITION"
    kind: str = "InvalidStateTransition"
    user_message: str = "فقط اسناد پیش‌نویس قابل تغییر هستند"

    def __init__(self, entity: str, entity_id: str, current_status: str, action: str):
        self.entity = entity
        self.entity_id = entity_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} {entity} {entity_id} in status {current_status}"
        )


# Period-related exceptions


class PeriodError(LedgerKernelError):
    """Base exception for period-related errors."""

    code: str = "PERIOD_ERROR"
    kind: str = "PeriodError"


class AlreadyClosedError(PeriodError):
    """Period is already closed."""

    code: str = "ALREADY_CLOSED"
    kind: str = "AlreadyClosed"
    user_message: str = "دوره مالی قبلاً بسته شده است"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Period {period_id} is already closed")


class PeriodClosedError(PeriodError):
    """Attempted to mutate, delete or post into a closed period."""

    code: str = "PERIOD_CLOSED"
    kind: str = "PeriodClosed"
    user_message: str = "دوره مالی بسته شده قابل تغییر نیست"

    def __init__(self, period_id: str, operation: str):
        self.period_id = period_id
        self.operation = operation
        super().__init__(f"Cannot {operation} closed period {period_id}")


class OverlappingPeriodError(PeriodError):
    """New period date range overlaps with an existing period."""

    code: str = "OVERLAPPING_PERIOD"
    kind: str = "OverlappingPeriod"
    user_message: str = "دوره مالی با دوره موجود هم‌پوشانی دارد"

    def __init__(
        self,
        existing_period_id: str,
        existing_period_name: str,
        overlap_start: str,
        overlap_end: str,
    ):
        self.existing_period_id = existing_period_id
        self.existing_period_name = existing_period_name
        self.overlap_start = overlap_start
        self.overlap_end = overlap_end
        super().__init__(
            f"Period overlaps with {existing_period_name} "
            f"({overlap_start} to {overlap_end})"
        )


class InvalidDateRangeError(PeriodError):
    """Period end date must be after its start date."""

    code: str = "INVALID_DATE_RANGE"
    kind: str = "InvalidDateRange"
    user_message: str = "تاریخ پایان باید بعد از تاریخ شروع باشد"

    def __init__(self, start_date: str, end_date: str):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"end_date ({end_date}) must be after start_date ({start_date})"
        )


class PeriodInUseError(PeriodError):
    """Period still has journal entries and cannot be deleted."""

    code: str = "PERIOD_IN_USE"
    kind: str = "PeriodInUse"
    user_message: str = "دوره مالی دارای سند است و قابل حذف نیست"

    def __init__(self, period_id: str, entry_count: int):
        self.period_id = period_id
        self.entry_count = entry_count
        super().__init__(
            f"Period {period_id} is referenced by {entry_count} journal entries"
        )


class ClosingChecksFailedError(PeriodError):
    """
    The closing checklist reported blocking failures.

    Carries the failed subset and every result of the run so callers can
    show the complete checklist.
    """

    code: str = "CLOSING_CHECKS_FAILED"
    kind: str = "ClosingChecksFailed"
    user_message: str = "بررسی‌های بستن دوره ناموفق بود"

    def __init__(self, period_id: str, failed_checks: tuple, results: tuple):
        self.period_id = period_id
        self.failed_checks = failed_checks
        self.results = results
        names = ", ".join(r.check_id for r in failed_checks)
        super().__init__(
            f"Period {period_id} cannot close: {len(failed_checks)} check(s) failed ({names})"
        )

    def to_details(self) -> dict[str, Any]:
        return {
            "period_id": self.period_id,
            "failed_count": len(self.failed_checks),
        }


# Concurrency-related exceptions


class ConcurrencyError(LedgerKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"
    kind: str = "ConcurrencyError"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"
    kind: str = "OptimisticLockConflict"
    user_message: str = "این مورد هم‌زمان توسط کاربر دیگری تغییر کرده است"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
