"""
Entry validator -- double-entry invariants for a candidate journal entry.

Responsibility:
    Given the submitted lines of an entry and the Account Reference, parse the
    amounts, resolve account code/name, compute the two totals and reject
    entries that break double-entry bookkeeping.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Called by
    JournalService on create and on every edit that carries lines.

Checks (in this order):
    1. At least two lines                       -> TooFewLinesError
    2. Amounts are non-negative numbers         -> InvalidAmountError
    3. |total_debit - total_credit| <= tolerance -> ImbalancedEntryError
    4. Some line debits and some line credits   -> MissingSideError
    5. Every account id is known                -> AccountNotFoundError

A line that carries both a debit and a credit is accepted.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from uuid import UUID

from ledger_kernel.db.types import BALANCE_TOLERANCE, ZERO, is_balanced, parse_amount
from ledger_kernel.domain.dtos import (
    AccountInfo,
    JournalLineInput,
    NormalizedLine,
    ValidatedLines,
)
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    ImbalancedEntryError,
    InvalidAmountError,
    MissingSideError,
    TooFewLinesError,
)

MIN_LINES = 2


def _parse_side(value: object, index: int, side: str) -> Decimal:
    try:
        amount = parse_amount(value)
    except ValueError as exc:
        raise InvalidAmountError(index, side, str(value)) from exc
    if amount < ZERO:
        raise InvalidAmountError(index, side, str(value))
    return amount


def validate_entry_lines(
    items: Sequence[JournalLineInput],
    accounts: Mapping[UUID, AccountInfo],
    tolerance: Decimal = BALANCE_TOLERANCE,
) -> ValidatedLines:
    """
    Validate and normalize the lines of a journal entry.

    Pure: no side effects, same input always yields the same output.

    Args:
        items: Submitted lines in display order.
        accounts: Account Reference keyed by account id.
        tolerance: Largest |debits - credits| still treated as balanced.

    Returns:
        ValidatedLines with normalized lines and the cached totals.

    Raises:
        TooFewLinesError, InvalidAmountError, ImbalancedEntryError,
        MissingSideError, AccountNotFoundError.
    """
    if len(items) < MIN_LINES:
        raise TooFewLinesError(len(items), MIN_LINES)

    amounts = [
        (_parse_side(item.debit, index, "debit"), _parse_side(item.credit, index, "credit"))
        for index, item in enumerate(items)
    ]
    total_debit = sum((debit for debit, _ in amounts), ZERO)
    total_credit = sum((credit for _, credit in amounts), ZERO)

    if not is_balanced(total_debit, total_credit, tolerance):
        raise ImbalancedEntryError(total_debit, total_credit)

    has_debit = any(debit > ZERO for debit, _ in amounts)
    has_credit = any(credit > ZERO for _, credit in amounts)
    if not has_debit or not has_credit:
        raise MissingSideError(has_debit, has_credit)

    lines: list[NormalizedLine] = []
    for index, (item, (debit, credit)) in enumerate(zip(items, amounts)):
        account = accounts.get(item.account_id)
        if account is None:
            raise AccountNotFoundError(str(item.account_id))
        lines.append(
            NormalizedLine(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                debit=debit,
                credit=credit,
                description=item.description or "",
                line_seq=index,
            )
        )

    return ValidatedLines(
        lines=tuple(lines),
        total_debit=total_debit,
        total_credit=total_credit,
    )
