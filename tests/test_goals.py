from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from schemas import GoalIn, GoalUpdateIn
from services import GoalService, NotFoundError


def _session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def test_create_applies_default_color_and_icon():
    with _session() as session:
        goal = GoalService(session).create(
            GoalIn(name="Emergency fund", target_amount_cents=500_000)
        )
        assert goal.color == "#6366f1"
        assert goal.icon == "savings"
        assert goal.is_completed is False
        assert goal.current_amount_cents == 0


def test_create_with_target_already_met_is_completed():
    with _session() as session:
        goal = GoalService(session).create(
            GoalIn(name="Bike", target_amount_cents=1_000, current_amount_cents=1_000)
        )
        assert goal.is_completed is True


def test_add_amount_completes_goal_once():
    with _session() as session:
        service = GoalService(session)
        goal = service.create(GoalIn(name="Trip", target_amount_cents=10_000))

        service.add_amount(goal.id, 6_000)
        assert service.get(goal.id).is_completed is False

        service.add_amount(goal.id, 4_000)
        assert service.get(goal.id).current_amount_cents == 10_000
        assert service.get(goal.id).is_completed is True

        # Withdrawing afterwards does not reopen the goal.
        service.add_amount(goal.id, -3_000)
        assert service.get(goal.id).current_amount_cents == 7_000
        assert service.get(goal.id).is_completed is True


def test_add_amount_cannot_go_below_zero():
    with _session() as session:
        service = GoalService(session)
        goal = service.create(
            GoalIn(name="Trip", target_amount_cents=10_000, current_amount_cents=500)
        )
        with pytest.raises(ValueError):
            service.add_amount(goal.id, -501)
        assert service.get(goal.id).current_amount_cents == 500


def test_add_amount_to_missing_goal():
    with _session() as session:
        with pytest.raises(NotFoundError):
            GoalService(session).add_amount(42, 100)


def test_update_only_touches_given_fields():
    with _session() as session:
        service = GoalService(session)
        goal = service.create(
            GoalIn(name="Car", target_amount_cents=80_000, deadline=date(2025, 1, 1))
        )
        updated = service.update(goal.id, GoalUpdateIn(name="New car"))
        assert updated.name == "New car"
        assert updated.target_amount_cents == 80_000
        assert updated.deadline == date(2025, 1, 1)


def test_goals_are_ordered_by_completion_then_deadline():
    with _session() as session:
        service = GoalService(session)
        later = service.create(
            GoalIn(name="Later", target_amount_cents=100, deadline=date(2025, 6, 1))
        )
        open_ended = service.create(GoalIn(name="Someday", target_amount_cents=100))
        sooner = service.create(
            GoalIn(name="Sooner", target_amount_cents=100, deadline=date(2024, 9, 1))
        )
        done = service.create(
            GoalIn(name="Done", target_amount_cents=100, current_amount_cents=100)
        )

        assert [g.id for g in service.list_all()] == [
            sooner.id,
            later.id,
            open_ended.id,
            done.id,
        ]
        assert done.id not in [g.id for g in service.list_active()]


def test_progress_reports_overdue_goals():
    with _session() as session:
        service = GoalService(session)
        service.create(
            GoalIn(
                name="Course",
                target_amount_cents=20_000,
                current_amount_cents=5_000,
                deadline=date(2024, 4, 30),
            )
        )
        [progress] = service.progress(today=date(2024, 5, 2))
        assert progress.percentage == 25
        assert progress.remaining_amount == 15_000
        assert progress.days_remaining == -2
        assert progress.is_overdue is True
        assert progress.goal.name == "Course"


def test_delete_goal():
    with _session() as session:
        service = GoalService(session)
        goal = service.create(GoalIn(name="Gone", target_amount_cents=100))
        service.delete(goal.id)
        assert service.list_all() == []


def test_update_rejects_null_name_but_clears_deadline():
    with pytest.raises(ValueError, match="name cannot be null"):
        GoalUpdateIn(name=None)

    with _session() as session:
        service = GoalService(session)
        goal = service.create(
            GoalIn(name="Car", target_amount_cents=80_000, deadline=date(2025, 1, 1))
        )
        updated = service.update(goal.id, GoalUpdateIn(deadline=None))
        assert updated.deadline is None
        assert updated.name == "Car"
