from datetime import date

import pytest

from models import Frequency, TransactionType
from records import TransactionRecord
from recurrence import (
    days_in_month,
    installment_dates,
    month_transactions,
    parse_virtual_id,
    payable_id,
    project_recurring,
    split_installments,
)


def _template(
    txn_id: str = "rent",
    on: date = date(2024, 1, 15),
    frequency: Frequency = Frequency.monthly,
    **overrides,
) -> TransactionRecord:
    fields = dict(
        id=txn_id,
        description="Rent",
        amount=1200,
        type=TransactionType.expense,
        category="Housing",
        payment_method="Bank transfer",
        date=on,
        is_recurring=True,
        frequency=frequency,
        is_paid=False,
    )
    fields.update(overrides)
    return TransactionRecord(**fields)


def test_projection_is_idempotent():
    txns = [_template(), _template("gym", date(2023, 11, 3))]
    assert project_recurring(txns, 3, 2024) == project_recurring(txns, 3, 2024)


def test_origin_month_is_not_projected():
    assert project_recurring([_template()], 1, 2024) == []


def test_months_before_origin_are_not_projected():
    assert project_recurring([_template()], 12, 2023) == []


def test_monthly_roll_forward():
    [virtual] = project_recurring([_template()], 3, 2024)
    assert virtual.date == date(2024, 3, 15)
    assert virtual.is_virtual is True
    assert virtual.original_transaction_id == "rent"
    assert virtual.id == "rent_recurring_2024-03"
    assert virtual.amount == 1200
    assert virtual.category == "Housing"


def test_day_is_clamped_to_month_length():
    template = _template(on=date(2023, 1, 31))
    [non_leap] = project_recurring([template], 2, 2023)
    [leap] = project_recurring([template], 2, 2024)
    [april] = project_recurring([template], 4, 2024)
    assert non_leap.date == date(2023, 2, 28)
    assert leap.date == date(2024, 2, 29)
    assert april.date == date(2024, 4, 30)


def test_yearly_recurrence_gate():
    template = _template("insurance", date(2023, 6, 1), Frequency.yearly)
    [virtual] = project_recurring([template], 6, 2024)
    assert virtual.date == date(2024, 6, 1)
    assert project_recurring([template], 7, 2024) == []
    assert project_recurring([template], 6, 2023) == []


def test_non_recurring_and_missing_frequency_are_ignored():
    plain = _template(is_recurring=False, frequency=None)
    no_frequency = _template("x", frequency=None)
    assert project_recurring([plain, no_frequency], 3, 2024) == []


def test_installment_series_is_never_projected():
    template = _template(installments=10, current_installment=1)
    assert project_recurring([template], 3, 2024) == []


def test_excluded_date_suppresses_occurrence():
    template = _template(excluded_dates=frozenset({date(2024, 3, 15)}))
    assert project_recurring([template], 3, 2024) == []
    assert len(project_recurring([template], 4, 2024)) == 1


def test_projection_keeps_input_order():
    txns = [_template("b"), _template("a"), _template("c")]
    assert [v.original_transaction_id for v in project_recurring(txns, 2, 2024)] == [
        "b",
        "a",
        "c",
    ]


def test_month_transactions_combines_real_and_virtual_rows():
    template = _template()
    groceries = TransactionRecord(
        id="g1",
        description="Groceries",
        amount=80,
        type=TransactionType.expense,
        category="Food",
        payment_method="Card",
        date=date(2024, 3, 20),
    )
    last_month = TransactionRecord(
        id="g0",
        description="Groceries",
        amount=70,
        type=TransactionType.expense,
        category="Food",
        payment_method="Card",
        date=date(2024, 2, 27),
    )
    combined = month_transactions([template, groceries, last_month], 3, 2024)
    assert [txn.id for txn in combined] == ["g1", "rent_recurring_2024-03"]


def test_month_transactions_hides_excluded_template_row():
    template = _template(excluded_dates=frozenset({date(2024, 1, 15)}))
    assert month_transactions([template], 1, 2024) == []
    assert [txn.id for txn in month_transactions([template], 2, 2024)] == [
        "rent_recurring_2024-02"
    ]


def test_payable_id_redirects_virtual_rows_to_template():
    template = _template()
    [virtual] = project_recurring([template], 5, 2024)
    assert payable_id(virtual) == "rent"
    assert payable_id(template) == "rent"


def test_parse_virtual_id():
    assert parse_virtual_id("abc-123_recurring_2024-03") == ("abc-123", 2024, 3)
    assert parse_virtual_id("abc-123") is None
    assert parse_virtual_id("abc_recurring_2024-13") is None
    assert parse_virtual_id("_recurring_2024-01") is None


def test_days_in_month():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2023, 2) == 28
    assert days_in_month(2024, 12) == 31


def test_installment_dates_clamp_each_month():
    assert installment_dates(date(2024, 1, 31), 4) == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]


def test_installment_dates_cross_year():
    assert installment_dates(date(2024, 11, 10), 3)[-1] == date(2025, 1, 10)


def test_split_installments_puts_remainder_on_first_part():
    assert split_installments(1000, 3) == [334, 333, 333]
    assert split_installments(1200, 4) == [300, 300, 300, 300]
    assert sum(split_installments(99_999, 7)) == 99_999


def test_split_installments_rejects_empty_series():
    with pytest.raises(ValueError):
        split_installments(100, 0)
