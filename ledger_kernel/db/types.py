"""
Module: ledger_kernel.db.types
Responsibility: Annotated type aliases and utility functions for financial-grade
    column types.  Centralizes precision, tolerance and amount parsing so that
    every model and service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the ledger kernel.  All monetary amounts use
      Decimal with explicit precision; floats only appear at the JSON edge.
    - BALANCE_TOLERANCE is the single epsilon for debit/credit comparisons.
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import Numeric

# Monetary amount: 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

ZERO = Decimal("0")

# Maximum |debits - credits| still treated as balanced
BALANCE_TOLERANCE = Decimal("0.01")


def parse_amount(value: object) -> Decimal:
    """
    Parse a user-supplied amount into a Decimal.

    Blank strings and None mean zero.  Numbers are routed through ``str`` so
    float inputs do not carry binary noise into the ledger.

    Raises:
        ValueError: If value is not numeric or not finite.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Not an amount: {value!r}")
    raw = value if isinstance(value, str) else str(value)
    raw = raw.strip().replace(",", "")
    if not raw:
        return ZERO
    try:
        amount = Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"Not an amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Not an amount: {value!r}")
    return amount


def is_balanced(
    total_debit: Decimal,
    total_credit: Decimal,
    tolerance: Decimal = BALANCE_TOLERANCE,
) -> bool:
    """True when debits and credits agree within tolerance."""
    return abs(total_debit - total_credit) <= tolerance
