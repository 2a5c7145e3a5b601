from datetime import date, timedelta

from models import TransactionType
from progress import apply_goal_contribution, evaluate_budgets, evaluate_goals
from records import BudgetRecord, GoalRecord, TransactionRecord


TODAY = date(2024, 5, 10)


def _expense(amount: float, category: str, txn_id: str = "t") -> TransactionRecord:
    return TransactionRecord(
        id=txn_id,
        description="spend",
        amount=amount,
        type=TransactionType.expense,
        category=category,
        payment_method="Card",
        date=date(2024, 5, 1),
    )


def _budget(limit: float, category: str = "Food") -> BudgetRecord:
    return BudgetRecord(
        id=1,
        category=category,
        type=TransactionType.expense,
        limit_amount=limit,
        month=5,
        year=2024,
    )


def _goal(**overrides) -> GoalRecord:
    fields = dict(id=1, name="Trip", target_amount=1000, current_amount=250)
    fields.update(overrides)
    return GoalRecord(**fields)


def test_budget_over_limit_caps_percentage():
    [result] = evaluate_budgets([_budget(100)], [_expense(150, "Food")])
    assert result.spent == 150
    assert result.is_over_budget is True
    assert result.percentage == 100
    assert result.remaining == -50


def test_budget_under_limit():
    [result] = evaluate_budgets(
        [_budget(200)], [_expense(50, "Food", "a"), _expense(30, "Food", "b")]
    )
    assert result.spent == 80
    assert result.remaining == 120
    assert result.percentage == 40
    assert result.is_over_budget is False


def test_budget_exactly_at_limit_is_not_over():
    [result] = evaluate_budgets([_budget(100)], [_expense(100, "Food")])
    assert result.percentage == 100
    assert result.is_over_budget is False


def test_budget_matching_is_exact_and_type_aware():
    income_food = TransactionRecord(
        id="i",
        description="refund",
        amount=40,
        type=TransactionType.income,
        category="Food",
        payment_method="Card",
        date=date(2024, 5, 2),
    )
    [result] = evaluate_budgets(
        [_budget(100)], [_expense(60, "food"), _expense(10, "Food "), income_food]
    )
    assert result.spent == 0
    assert result.percentage == 0


def test_budget_keeps_definition_untouched():
    budget = _budget(100)
    [result] = evaluate_budgets([budget], [])
    assert result.budget is budget


def test_goal_completion_boundary():
    [progress] = evaluate_goals([_goal(current_amount=1000)], today=TODAY)
    assert progress.percentage == 100
    assert progress.remaining_amount == 0


def test_goal_beyond_target_is_capped():
    [progress] = evaluate_goals([_goal(current_amount=1500)], today=TODAY)
    assert progress.percentage == 100
    assert progress.remaining_amount == 0


def test_goal_without_deadline_has_no_schedule_fields():
    [progress] = evaluate_goals([_goal()], today=TODAY)
    assert progress.percentage == 25
    assert progress.remaining_amount == 750
    assert progress.days_remaining is None
    assert progress.is_overdue is None


def test_goal_overdue_logic():
    yesterday = TODAY - timedelta(days=1)
    [open_goal] = evaluate_goals([_goal(deadline=yesterday)], today=TODAY)
    assert open_goal.days_remaining == -1
    assert open_goal.is_overdue is True

    [done_goal] = evaluate_goals(
        [_goal(deadline=yesterday, is_completed=True)], today=TODAY
    )
    assert done_goal.is_overdue is False


def test_goal_deadline_today_and_future():
    [due_today] = evaluate_goals([_goal(deadline=TODAY)], today=TODAY)
    assert due_today.days_remaining == 0
    assert due_today.is_overdue is False

    [later] = evaluate_goals([_goal(deadline=date(2024, 6, 9))], today=TODAY)
    assert later.days_remaining == 30


def test_goal_contribution_reports_completion():
    assert apply_goal_contribution(900, 1000, 50) == (950, False)
    assert apply_goal_contribution(900, 1000, 100) == (1000, True)
