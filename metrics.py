import math
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from models import TransactionType
from periods import in_month, previous_month
from records import (
    CategoryShare,
    FinancialSummary,
    MonthComparison,
    MonthTotals,
    PaymentMethodSummary,
    TransactionRecord,
)


class InvalidAmountError(ValueError):
    pass


def check_amounts(transactions: Iterable[TransactionRecord]) -> None:
    """Reject non-finite or negative amounts (strict mode only)."""
    for txn in transactions:
        try:
            finite = math.isfinite(txn.amount)
        except TypeError:
            finite = False
        if not finite or txn.amount < 0:
            raise InvalidAmountError(
                f"Transaction {txn.id} has an invalid amount: {txn.amount!r}"
            )


def summarize(transactions: Iterable[TransactionRecord]) -> FinancialSummary:
    income = 0
    expense = 0
    for txn in transactions:
        if txn.type == TransactionType.income:
            income += txn.amount
        elif txn.type == TransactionType.expense:
            expense += txn.amount
    return FinancialSummary(
        total_income=income, total_expense=expense, balance=income - expense
    )


def _round_half_up(value: float) -> float:
    if not math.isfinite(value):
        # NaN from an upstream amount flows through instead of raising.
        return value
    return math.floor(value + 0.5)


def change_pct(current: float, previous: float) -> float:
    if previous > 0:
        return _round_half_up(((current - previous) / previous) * 100)
    if current > 0:
        return 100
    return 0


def progress_pct(current: float, previous: float) -> float:
    if previous > 0:
        return min((current / previous) * 100, 100)
    if current > 0:
        return 100
    return 0


def compare_to_previous_month(
    transactions: Iterable[TransactionRecord],
    current: FinancialSummary,
    month: int,
    year: int,
) -> MonthComparison:
    prev_year, prev_month = previous_month(year, month)
    previous = summarize(
        txn for txn in transactions if in_month(txn.date, prev_year, prev_month)
    )
    return MonthComparison(
        income_change_pct=change_pct(current.total_income, previous.total_income),
        expense_change_pct=change_pct(current.total_expense, previous.total_expense),
        income_progress_pct=progress_pct(
            current.total_income, previous.total_income
        ),
        expense_progress_pct=progress_pct(
            current.total_expense, previous.total_expense
        ),
    )


def category_breakdown(
    transactions: Iterable[TransactionRecord], txn_type: TransactionType
) -> list[CategoryShare]:
    totals: dict[str, float] = defaultdict(float)
    for txn in transactions:
        if txn.type == txn_type:
            totals[txn.category] += txn.amount
    grand_total = sum(totals.values())
    shares = [
        CategoryShare(
            category=category,
            amount=amount,
            percentage=(amount / grand_total) * 100 if grand_total > 0 else 0,
        )
        for category, amount in totals.items()
    ]
    shares.sort(key=lambda share: share.amount, reverse=True)
    return shares


def payment_method_summary(
    transactions: Iterable[TransactionRecord],
    methods: Optional[Sequence[str]] = None,
) -> list[PaymentMethodSummary]:
    by_name: dict[str, PaymentMethodSummary] = {
        name: PaymentMethodSummary(name=name) for name in methods or []
    }
    for txn in transactions:
        summary = by_name.get(txn.payment_method)
        if summary is None:
            if methods is not None:
                continue
            summary = by_name[txn.payment_method] = PaymentMethodSummary(
                name=txn.payment_method
            )
        summary.transaction_count += 1
        if not txn.is_paid:
            summary.unpaid_count += 1
            summary.unpaid_amount += txn.amount
        if txn.type == TransactionType.income:
            summary.total_income += txn.amount
        else:
            summary.total_expense += txn.amount
    return list(by_name.values())


def monthly_series(transactions: Iterable[TransactionRecord]) -> list[MonthTotals]:
    buckets: dict[tuple[int, int], list[float]] = defaultdict(lambda: [0, 0])
    for txn in transactions:
        bucket = buckets[(txn.date.year, txn.date.month)]
        if txn.type == TransactionType.income:
            bucket[0] += txn.amount
        else:
            bucket[1] += txn.amount
    return [
        MonthTotals(year=year, month=month, income=income, expense=expense)
        for (year, month), (income, expense) in sorted(buckets.items())
    ]


def analytics_stats(transactions: Iterable[TransactionRecord]) -> dict[str, float]:
    snapshot = list(transactions)
    summary = summarize(snapshot)
    series = monthly_series(snapshot)
    month_count = len(series) or 1
    savings_rate = (
        (summary.balance / summary.total_income) * 100
        if summary.total_income > 0
        else 0
    )
    return {
        "total_income": summary.total_income,
        "total_expense": summary.total_expense,
        "avg_monthly_income": sum(m.income for m in series) / month_count,
        "avg_monthly_expense": sum(m.expense for m in series) / month_count,
        "savings_rate": savings_rate,
        "transaction_count": len(snapshot),
    }
