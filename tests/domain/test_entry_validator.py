"""
Double-entry validation of candidate journal entries.

The validator is pure, so these tests build the Account Reference by hand
and never touch the database.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.dtos import AccountInfo, JournalLineInput
from ledger_kernel.domain.entry_validator import validate_entry_lines
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    ImbalancedEntryError,
    InvalidAmountError,
    MissingSideError,
    TooFewLinesError,
)


def _account(code: str, name: str, normal_balance: str = "DEBIT") -> AccountInfo:
    return AccountInfo(
        id=uuid4(),
        code=code,
        name=name,
        account_type="ASSET" if normal_balance == "DEBIT" else "REVENUE",
        normal_balance=normal_balance,
    )


@pytest.fixture
def cash():
    return _account("3101", "صندوق")


@pytest.fixture
def sales():
    return _account("4101", "فروش کالا", "CREDIT")


@pytest.fixture
def reference(cash, sales):
    return {cash.id: cash, sales.id: sales}


class TestBalancedEntries:
    """Entries that satisfy double-entry rules."""

    def test_balanced_entry_accepted(self, cash, sales, reference):
        validated = validate_entry_lines(
            (
                JournalLineInput(cash.id, debit="35000000", credit="0"),
                JournalLineInput(sales.id, debit="0", credit="35000000"),
            ),
            reference,
        )

        assert validated.total_debit == Decimal("35000000")
        assert validated.total_credit == Decimal("35000000")
        assert [line.line_seq for line in validated.lines] == [0, 1]

    def test_account_code_and_name_resolved(self, cash, sales, reference):
        validated = validate_entry_lines(
            (
                JournalLineInput(cash.id, debit="100", credit="0", description="دریافت"),
                JournalLineInput(sales.id, debit="0", credit="100"),
            ),
            reference,
        )

        first, second = validated.lines
        assert (first.account_code, first.account_name) == ("3101", "صندوق")
        assert first.description == "دریافت"
        assert (second.account_code, second.account_name) == ("4101", "فروش کالا")
        assert second.description == ""

    def test_difference_within_tolerance_accepted(self, cash, sales, reference):
        validated = validate_entry_lines(
            (
                JournalLineInput(cash.id, debit="100.005", credit="0"),
                JournalLineInput(sales.id, debit="0", credit="100"),
            ),
            reference,
        )
        assert validated.total_debit - validated.total_credit == Decimal("0.005")

    def test_blank_and_missing_amounts_mean_zero(self, cash, sales, reference):
        validated = validate_entry_lines(
            (
                JournalLineInput(cash.id, debit="500", credit=""),
                JournalLineInput(sales.id, debit=None, credit="500"),
            ),
            reference,
        )
        assert validated.lines[0].credit == Decimal("0")
        assert validated.lines[1].debit == Decimal("0")

    def test_line_with_both_sides_accepted(self, cash, sales, reference):
        validated = validate_entry_lines(
            (
                JournalLineInput(cash.id, debit="300", credit="100"),
                JournalLineInput(sales.id, debit="0", credit="200"),
            ),
            reference,
        )
        assert validated.total_debit == Decimal("300")
        assert validated.total_credit == Decimal("300")

    def test_numeric_inputs_accepted(self, cash, sales, reference):
        validated = validate_entry_lines(
            (
                JournalLineInput(cash.id, debit=1250.5, credit=0),
                JournalLineInput(sales.id, debit=0, credit=Decimal("1250.5")),
            ),
            reference,
        )
        assert validated.total_debit == Decimal("1250.5")


class TestRejectedEntries:
    """Each double-entry rule raises its own typed error."""

    def test_imbalanced_entry_reports_difference(self, cash, sales, reference):
        with pytest.raises(ImbalancedEntryError) as exc_info:
            validate_entry_lines(
                (
                    JournalLineInput(cash.id, debit="100", credit="0"),
                    JournalLineInput(sales.id, debit="0", credit="90"),
                ),
                reference,
            )

        err = exc_info.value
        assert err.total_debit == Decimal("100")
        assert err.total_credit == Decimal("90")
        assert err.difference == Decimal("10")
        assert err.user_message == "مجموع بدهکار و بستانکار باید برابر باشند"

    def test_single_line_rejected(self, cash, reference):
        with pytest.raises(TooFewLinesError) as exc_info:
            validate_entry_lines(
                (JournalLineInput(cash.id, debit="100", credit="0"),),
                reference,
            )
        assert exc_info.value.line_count == 1

    def test_no_lines_rejected(self, reference):
        with pytest.raises(TooFewLinesError):
            validate_entry_lines((), reference)

    def test_negative_amount_rejected(self, cash, sales, reference):
        with pytest.raises(InvalidAmountError) as exc_info:
            validate_entry_lines(
                (
                    JournalLineInput(cash.id, debit="-100", credit="0"),
                    JournalLineInput(sales.id, debit="0", credit="-100"),
                ),
                reference,
            )
        assert exc_info.value.line_index == 0
        assert exc_info.value.side == "debit"

    def test_non_numeric_amount_rejected(self, cash, sales, reference):
        with pytest.raises(InvalidAmountError) as exc_info:
            validate_entry_lines(
                (
                    JournalLineInput(cash.id, debit="100", credit="0"),
                    JournalLineInput(sales.id, debit="0", credit="صد"),
                ),
                reference,
            )
        assert exc_info.value.line_index == 1
        assert exc_info.value.side == "credit"

    def test_unknown_account_rejected(self, cash, reference):
        stranger = uuid4()
        with pytest.raises(AccountNotFoundError) as exc_info:
            validate_entry_lines(
                (
                    JournalLineInput(cash.id, debit="100", credit="0"),
                    JournalLineInput(stranger, debit="0", credit="100"),
                ),
                reference,
            )
        assert exc_info.value.entity_id == str(stranger)

    def test_imbalance_reported_before_unknown_account(self, cash, reference):
        with pytest.raises(ImbalancedEntryError) as exc_info:
            validate_entry_lines(
                (
                    JournalLineInput(cash.id, debit="100", credit="0"),
                    JournalLineInput(uuid4(), debit="0", credit="60"),
                ),
                reference,
            )
        assert exc_info.value.difference == Decimal("40")

    def test_missing_side_reported_before_unknown_account(self, cash, reference):
        with pytest.raises(MissingSideError):
            validate_entry_lines(
                (
                    JournalLineInput(cash.id, debit="0", credit="0"),
                    JournalLineInput(uuid4(), debit="0", credit="0"),
                ),
                reference,
            )

    def test_all_zero_lines_missing_sides(self, cash, sales, reference):
        with pytest.raises(MissingSideError) as exc_info:
            validate_entry_lines(
                (
                    JournalLineInput(cash.id, debit="0", credit="0"),
                    JournalLineInput(sales.id, debit="0", credit="0"),
                ),
                reference,
            )
        assert exc_info.value.has_debit is False
        assert exc_info.value.has_credit is False

    def test_custom_tolerance(self, cash, sales, reference):
        with pytest.raises(ImbalancedEntryError):
            validate_entry_lines(
                (
                    JournalLineInput(cash.id, debit="100.005", credit="0"),
                    JournalLineInput(sales.id, debit="0", credit="100"),
                ),
                reference,
                tolerance=Decimal("0"),
            )
