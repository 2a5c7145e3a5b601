from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from models import Budget, Frequency, TransactionType
from schemas import BudgetCopyIn, BudgetIn, BudgetUpdateIn, TransactionIn
from services import BudgetService, DuplicateBudgetError, NotFoundError, TransactionService


def _session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def _budget(**overrides) -> BudgetIn:
    fields = dict(
        category="Food",
        type=TransactionType.expense,
        limit_amount_cents=50_000,
        year=2024,
        month=3,
        is_recurring=True,
    )
    fields.update(overrides)
    return BudgetIn(**fields)


def test_duplicate_budget_in_same_month_is_rejected():
    with _session() as session:
        service = BudgetService(session)
        service.create(_budget())
        with pytest.raises(DuplicateBudgetError):
            service.create(_budget(limit_amount_cents=10_000))
        # Same category for the other type is a different budget.
        service.create(_budget(type=TransactionType.income))
        assert len(service.list_all()) == 2


def test_update_cannot_collide_with_existing_budget():
    with _session() as session:
        service = BudgetService(session)
        service.create(_budget())
        other = service.create(_budget(category="Transport"))
        with pytest.raises(DuplicateBudgetError):
            service.update(other.id, BudgetUpdateIn(category="Food"))

        updated = service.update(other.id, BudgetUpdateIn(limit_amount_cents=7_500))
        assert updated.limit_amount_cents == 7_500
        assert updated.category == "Transport"


def test_update_rejects_unknown_fields():
    with pytest.raises(ValueError):
        BudgetUpdateIn(spent=10)


def test_update_rejects_explicit_null():
    with pytest.raises(ValueError, match="category cannot be null"):
        BudgetUpdateIn(category=None)
    assert BudgetUpdateIn(year=2025).model_fields_set == {"year"}


def test_delete_missing_budget_raises():
    with _session() as session:
        with pytest.raises(NotFoundError):
            BudgetService(session).delete(99)


def test_generate_recurring_fills_empty_month_from_latest_budget():
    with _session() as session:
        service = BudgetService(session)
        service.create(_budget(month=1, limit_amount_cents=40_000))
        service.create(_budget(month=2, limit_amount_cents=45_000))
        service.create(_budget(category="Gifts", month=2, is_recurring=False))

        created = service.generate_recurring(2024, 4)
        assert [(b.category, b.limit_amount_cents) for b in created] == [
            ("Food", 45_000)
        ]
        assert all(b.is_recurring for b in created)

        # A month that already has budgets is left alone.
        assert service.generate_recurring(2024, 4) == []


def test_generate_recurring_ignores_later_months():
    with _session() as session:
        service = BudgetService(session)
        service.create(_budget(year=2024, month=6))
        assert service.generate_recurring(2024, 5) == []


def test_list_for_month_rolls_budgets_forward():
    with _session() as session:
        service = BudgetService(session)
        service.create(_budget(year=2023, month=12))
        january = service.list_for_month(2024, 1)
        assert [(b.category, b.year, b.month) for b in january] == [
            ("Food", 2024, 1)
        ]
        assert session.query(Budget).count() == 2


def test_copy_to_month_skips_existing_categories():
    with _session() as session:
        service = BudgetService(session)
        service.create(_budget(category="Food", month=3))
        service.create(_budget(category="Rent", month=3, is_recurring=False))
        service.create(_budget(category="Food", month=5, limit_amount_cents=1_000))

        copies = service.copy_to_month(
            BudgetCopyIn(from_year=2024, from_month=3, to_year=2024, to_month=5)
        )
        assert [b.category for b in copies] == ["Rent"]
        may = {b.category: b.limit_amount_cents for b in service.list_for_month(2024, 5)}
        assert may == {"Food": 1_000, "Rent": 50_000}


def test_available_categories_excludes_budgeted_ones():
    with _session() as session:
        service = BudgetService(session)
        service.create(_budget(category="Food"))
        names = service.available_categories(
            2024, 3, TransactionType.expense, ["Food", "Rent", "Fun"]
        )
        assert names == ["Rent", "Fun"]
        income_names = service.available_categories(
            2024, 3, TransactionType.income, ["Food"]
        )
        assert income_names == ["Food"]


def test_with_spending_counts_projected_occurrences():
    with _session() as session:
        TransactionService(session).create(
            TransactionIn(
                description="Groceries plan",
                amount_cents=30_000,
                type=TransactionType.expense,
                category="Food",
                payment_method="Card",
                date=date(2024, 1, 5),
                is_recurring=True,
                frequency=Frequency.monthly,
            )
        )
        TransactionService(session).create(
            TransactionIn(
                description="Dinner",
                amount_cents=25_000,
                type=TransactionType.expense,
                category="Food",
                payment_method="Card",
                date=date(2024, 3, 9),
            )
        )
        service = BudgetService(session)
        service.create(_budget())

        [food] = service.with_spending(2024, 3)
        assert food.spent == 55_000
        assert food.remaining == -5_000
        assert food.is_over_budget is True
        assert food.percentage == 100
        assert food.budget.category == "Food"
