from datetime import date
from typing import Iterable, Optional

from recurrence import local_today
from records import (
    BudgetRecord,
    BudgetWithSpending,
    GoalProgress,
    GoalRecord,
    TransactionRecord,
)


def evaluate_budgets(
    budgets: Iterable[BudgetRecord], period_transactions: Iterable[TransactionRecord]
) -> list[BudgetWithSpending]:
    """Attach spending to each budget.

    Matching is an exact, case-sensitive comparison on type and category.
    ``percentage`` is capped at 100, so overspending is only visible through
    ``is_over_budget`` and a negative ``remaining``. Limits are assumed to be
    positive; input validation rejects zero limits before they get here.
    """
    snapshot = list(period_transactions)
    results: list[BudgetWithSpending] = []
    for budget in budgets:
        spent = sum(
            (
                txn.amount
                for txn in snapshot
                if txn.type == budget.type and txn.category == budget.category
            ),
            0,
        )
        results.append(
            BudgetWithSpending(
                budget=budget,
                spent=spent,
                remaining=budget.limit_amount - spent,
                percentage=min((spent / budget.limit_amount) * 100, 100),
                is_over_budget=spent > budget.limit_amount,
            )
        )
    return results


def evaluate_goals(
    goals: Iterable[GoalRecord], today: Optional[date] = None
) -> list[GoalProgress]:
    today = today or local_today()
    results: list[GoalProgress] = []
    for goal in goals:
        days_remaining = None
        is_overdue = None
        if goal.deadline:
            days_remaining = (goal.deadline - today).days
            is_overdue = days_remaining < 0 and not goal.is_completed
        results.append(
            GoalProgress(
                goal=goal,
                percentage=min((goal.current_amount / goal.target_amount) * 100, 100),
                remaining_amount=max(goal.target_amount - goal.current_amount, 0),
                days_remaining=days_remaining,
                is_overdue=is_overdue,
            )
        )
    return results


def apply_goal_contribution(
    current_amount: float, target_amount: float, amount: float
) -> tuple[float, bool]:
    new_amount = current_amount + amount
    return new_amount, new_amount >= target_amount
