from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from config import get_settings
from metrics import (
    analytics_stats,
    category_breakdown,
    check_amounts,
    compare_to_previous_month,
    monthly_series,
    payment_method_summary,
    summarize,
)
from models import (
    Account,
    Budget,
    Goal,
    Tag,
    Transaction,
    TransactionType,
    transaction_tags,
)
from periods import MonthPeriod
from progress import apply_goal_contribution, evaluate_budgets, evaluate_goals
from recurrence import (
    clamp_day,
    installment_dates,
    month_transactions,
    parse_virtual_id,
    split_installments,
)
from records import (
    AccountRecord,
    BudgetRecord,
    BudgetWithSpending,
    GoalProgress,
    GoalRecord,
    PaymentMethodSummary,
    TagRecord,
    TransactionRecord,
)
from schemas import (
    AccountIn,
    AccountUpdateIn,
    BudgetCopyIn,
    BudgetIn,
    BudgetUpdateIn,
    GoalIn,
    GoalUpdateIn,
    TagIn,
    TagUpdateIn,
    TransactionIn,
)


logger = logging.getLogger(__name__)


class NotFoundError(ValueError):
    pass


class DuplicateBudgetError(ValueError):
    pass


def get_current_user_id() -> int:
    return 1


def transaction_record(txn: Transaction) -> TransactionRecord:
    return TransactionRecord(
        id=txn.id,
        description=txn.description,
        amount=txn.amount_cents,
        type=txn.type,
        category=txn.category,
        payment_method=txn.payment_method,
        date=txn.date,
        is_recurring=txn.is_recurring,
        frequency=txn.frequency,
        installments=txn.installments,
        current_installment=txn.current_installment,
        installment_group_id=txn.installment_group_id,
        is_paid=txn.is_paid,
        excluded_dates=frozenset(txn.excluded_dates),
        tag_ids=frozenset(tag.id for tag in txn.tags),
    )


def budget_record(budget: Budget) -> BudgetRecord:
    return BudgetRecord(
        id=budget.id,
        category=budget.category,
        type=budget.type,
        limit_amount=budget.limit_amount_cents,
        month=budget.month,
        year=budget.year,
        is_recurring=budget.is_recurring,
    )


def goal_record(goal: Goal) -> GoalRecord:
    return GoalRecord(
        id=goal.id,
        name=goal.name,
        target_amount=goal.target_amount_cents,
        current_amount=goal.current_amount_cents,
        deadline=goal.deadline,
        is_completed=goal.is_completed,
        color=goal.color,
        icon=goal.icon,
        category=goal.category,
    )


def tag_record(tag: Tag, transaction_count: int = 0) -> TagRecord:
    return TagRecord(
        id=tag.id, name=tag.name, color=tag.color, transaction_count=transaction_count
    )


def account_record(account: Account) -> AccountRecord:
    return AccountRecord(
        id=account.id,
        name=account.name,
        type=account.type,
        initial_balance=account.initial_balance_cents,
        color=account.color,
        icon=account.icon,
        is_active=account.is_active,
    )


TAG_PALETTE = (
    "#6366f1",
    "#ec4899",
    "#10b981",
    "#f59e0b",
    "#8b5cf6",
    "#06b6d4",
    "#ef4444",
    "#84cc16",
)
DEFAULT_ACCOUNT_COLOR = "#6366f1"
DEFAULT_ACCOUNT_ICON = "account_balance"


def _checked(records: list[TransactionRecord]) -> list[TransactionRecord]:
    if get_settings().strict_amounts:
        check_amounts(records)
    return records


class TransactionService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def _all(self) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .options(selectinload(Transaction.tags))
            .where(Transaction.user_id == self.user_id)
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        )
        return list(self.session.scalars(stmt).all())

    def list_all(self) -> list[TransactionRecord]:
        return [transaction_record(txn) for txn in self._all()]

    def get(self, transaction_id: str) -> Transaction:
        txn = self.session.get(Transaction, transaction_id)
        if not txn or txn.user_id != self.user_id:
            raise NotFoundError("Transaction not found")
        return txn

    def _template_for(self, virtual_id: str) -> tuple[Transaction, int, int]:
        parts = parse_virtual_id(virtual_id)
        if parts is None:
            raise NotFoundError("Transaction not found")
        template_id, year, month = parts
        template = self.get(template_id)
        if not template.is_recurring:
            raise ValueError("Transaction is not recurring")
        return template, year, month

    def create(self, data: TransactionIn) -> list[Transaction]:
        if data.installments and data.installments > 1:
            rows = self._installment_rows(data)
        else:
            rows = [
                Transaction(
                    user_id=self.user_id,
                    description=data.description,
                    amount_cents=data.amount_cents,
                    type=data.type,
                    category=data.category,
                    payment_method=data.payment_method,
                    date=data.date,
                    is_recurring=data.is_recurring,
                    frequency=data.frequency,
                    is_paid=data.is_paid,
                )
            ]
        tags = self._resolve_tags(data.tags)
        for row in rows:
            row.tags = list(tags)
        self.session.add_all(rows)
        self.session.commit()
        for row in rows:
            self.session.refresh(row)
        logger.info(
            f"transaction_created: first_id={rows[0].id} rows={len(rows)} "
            f"recurring={data.is_recurring}"
        )
        return rows

    def _installment_rows(self, data: TransactionIn) -> list[Transaction]:
        count = data.installments or 1
        group_id = str(uuid.uuid4())
        amounts = split_installments(data.amount_cents, count)
        dates = installment_dates(data.date, count)
        return [
            Transaction(
                user_id=self.user_id,
                description=data.description,
                amount_cents=amount,
                type=data.type,
                category=data.category,
                payment_method=data.payment_method,
                date=occurs_on,
                is_recurring=data.is_recurring,
                frequency=data.frequency,
                installments=count,
                current_installment=index + 1,
                installment_group_id=group_id,
                is_paid=False,
            )
            for index, (amount, occurs_on) in enumerate(zip(amounts, dates))
        ]

    def update(self, transaction_id: str, data: TransactionIn) -> Transaction:
        if parse_virtual_id(transaction_id):
            return self._detach_occurrence(transaction_id, data)
        txn = self.get(transaction_id)
        txn.description = data.description
        txn.amount_cents = data.amount_cents
        txn.type = data.type
        txn.category = data.category
        txn.payment_method = data.payment_method
        txn.date = data.date
        txn.is_recurring = data.is_recurring
        txn.frequency = data.frequency
        txn.is_paid = data.is_paid
        if data.tags is not None:
            txn.tags = self._resolve_tags(data.tags)
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def _resolve_tags(self, names: Optional[list[str]]) -> list[Tag]:
        tag_service = TagService(self.session, self.user_id)
        tags: list[Tag] = []
        tag_ids: set[int] = set()
        for name in names or []:
            tag = tag_service.get_or_create(name)
            if tag.id not in tag_ids:
                tags.append(tag)
                tag_ids.add(tag.id)
        return tags

    def _detach_occurrence(self, virtual_id: str, data: TransactionIn) -> Transaction:
        """Edit one projected occurrence by turning it into a real row."""
        template, year, month = self._template_for(virtual_id)
        occurrence = clamp_day(year, month, template.date.day)
        template.excluded_dates = template.excluded_dates + [occurrence]
        txn = Transaction(
            user_id=self.user_id,
            description=data.description,
            amount_cents=data.amount_cents,
            type=data.type,
            category=data.category,
            payment_method=data.payment_method,
            date=data.date,
            is_recurring=False,
            frequency=None,
            is_paid=data.is_paid,
        )
        if data.tags is None:
            txn.tags = list(template.tags)
        else:
            txn.tags = self._resolve_tags(data.tags)
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        logger.info(
            f"occurrence_detached: template_id={template.id} date={occurrence} "
            f"new_id={txn.id}"
        )
        return txn

    def delete(self, transaction_id: str, *, whole_series: bool = False) -> int:
        if parse_virtual_id(transaction_id):
            self.skip_occurrence(transaction_id)
            return 0
        txn = self.get(transaction_id)
        rows = [txn]
        if whole_series and txn.installment_group_id:
            rows = list(
                self.session.scalars(
                    select(Transaction).where(
                        Transaction.user_id == self.user_id,
                        Transaction.installment_group_id == txn.installment_group_id,
                    )
                ).all()
            )
        for row in rows:
            self.session.delete(row)
        self.session.commit()
        logger.info(f"transaction_deleted: id={transaction_id} rows={len(rows)}")
        return len(rows)

    def skip_occurrence(self, virtual_id: str) -> Transaction:
        template, year, month = self._template_for(virtual_id)
        occurrence = clamp_day(year, month, template.date.day)
        template.excluded_dates = template.excluded_dates + [occurrence]
        self.session.commit()
        self.session.refresh(template)
        logger.info(f"occurrence_skipped: template_id={template.id} date={occurrence}")
        return template

    def set_paid(self, transaction_id: str, is_paid: bool) -> Transaction:
        # A projected occurrence has no row; its paid flag lives on the template.
        if parse_virtual_id(transaction_id):
            txn, _, _ = self._template_for(transaction_id)
        else:
            txn = self.get(transaction_id)
        txn.is_paid = is_paid
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def pay_all(self, payment_method: str, year: int, month: int) -> int:
        period = MonthPeriod(year, month)
        stmt = select(Transaction).where(
            Transaction.user_id == self.user_id,
            Transaction.payment_method == payment_method,
            Transaction.type == TransactionType.expense,
            Transaction.is_paid.is_(False),
            Transaction.date.between(period.start, period.end),
        )
        rows = list(self.session.scalars(stmt).all())
        for row in rows:
            row.is_paid = True
        self.session.commit()
        logger.info(
            f"pay_all: payment_method={payment_method} month={period.key} "
            f"rows={len(rows)}"
        )
        return len(rows)

    def set_tags(self, transaction_id: str, tag_ids: list[int]) -> Transaction:
        """Replace the tags of a row; a projected occurrence tags its template."""
        if parse_virtual_id(transaction_id):
            txn, _, _ = self._template_for(transaction_id)
        else:
            txn = self.get(transaction_id)
        tag_service = TagService(self.session, self.user_id)
        txn.tags = [tag_service.get(tag_id) for tag_id in dict.fromkeys(tag_ids)]
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def for_month(
        self, year: int, month: int, tag_id: Optional[int] = None
    ) -> list[TransactionRecord]:
        records = month_transactions(self.list_all(), month, year)
        if tag_id is not None:
            # Projected rows carry their template's tags.
            records = [txn for txn in records if tag_id in txn.tag_ids]
        return _checked(records)

    def payment_methods(self) -> list[str]:
        stmt = (
            select(Transaction.payment_method)
            .where(Transaction.user_id == self.user_id)
            .distinct()
            .order_by(Transaction.payment_method)
        )
        return list(self.session.scalars(stmt).all())

    def payment_method_summary(
        self, year: int, month: int
    ) -> list[PaymentMethodSummary]:
        return payment_method_summary(
            self.for_month(year, month), methods=self.payment_methods()
        )


class BudgetService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def list_all(self) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(Budget.user_id == self.user_id)
            .order_by(Budget.year.desc(), Budget.month.desc(), Budget.category)
        )
        return list(self.session.scalars(stmt).all())

    def get(self, budget_id: int) -> Budget:
        budget = self.session.get(Budget, budget_id)
        if not budget or budget.user_id != self.user_id:
            raise NotFoundError("Budget not found")
        return budget

    def _month_budgets(self, year: int, month: int) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(
                Budget.user_id == self.user_id,
                Budget.year == year,
                Budget.month == month,
            )
            .order_by(Budget.type, Budget.category)
        )
        return list(self.session.scalars(stmt).all())

    def _exists(
        self,
        category: str,
        txn_type: TransactionType,
        year: int,
        month: int,
        *,
        exclude_id: Optional[int] = None,
    ) -> bool:
        stmt = select(Budget.id).where(
            Budget.user_id == self.user_id,
            Budget.category == category,
            Budget.type == txn_type,
            Budget.year == year,
            Budget.month == month,
        )
        if exclude_id is not None:
            stmt = stmt.where(Budget.id != exclude_id)
        return self.session.execute(stmt.limit(1)).scalar_one_or_none() is not None

    def create(self, data: BudgetIn) -> Budget:
        if self._exists(data.category, data.type, data.year, data.month):
            raise DuplicateBudgetError(
                f"A budget for {data.category} already exists in "
                f"{data.year:04d}-{data.month:02d}"
            )
        budget = Budget(
            user_id=self.user_id,
            category=data.category,
            type=data.type,
            limit_amount_cents=data.limit_amount_cents,
            month=data.month,
            year=data.year,
            is_recurring=data.is_recurring,
        )
        self.session.add(budget)
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def update(self, budget_id: int, data: BudgetUpdateIn) -> Budget:
        budget = self.get(budget_id)
        changes = data.model_dump(exclude_unset=True)
        category = changes.get("category", budget.category)
        txn_type = changes.get("type", budget.type)
        year = changes.get("year", budget.year)
        month = changes.get("month", budget.month)
        if self._exists(category, txn_type, year, month, exclude_id=budget.id):
            raise DuplicateBudgetError(
                f"A budget for {category} already exists in {year:04d}-{month:02d}"
            )
        for key, value in changes.items():
            setattr(budget, key, value)
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def delete(self, budget_id: int) -> None:
        budget = self.get(budget_id)
        self.session.delete(budget)
        self.session.commit()

    def generate_recurring(self, year: int, month: int) -> list[Budget]:
        """Roll the latest recurring budget of each category into an empty month."""
        if self._month_budgets(year, month):
            return []

        stmt = (
            select(Budget)
            .where(
                Budget.user_id == self.user_id,
                Budget.is_recurring.is_(True),
                or_(
                    Budget.year < year,
                    and_(Budget.year == year, Budget.month < month),
                ),
            )
            .order_by(Budget.year.desc(), Budget.month.desc(), Budget.id.desc())
        )
        latest: dict[tuple[TransactionType, str], Budget] = {}
        for budget in self.session.scalars(stmt):
            latest.setdefault((budget.type, budget.category), budget)
        if not latest:
            return []

        created = [
            Budget(
                user_id=self.user_id,
                category=source.category,
                type=source.type,
                limit_amount_cents=source.limit_amount_cents,
                month=month,
                year=year,
                is_recurring=True,
            )
            for source in latest.values()
        ]
        self.session.add_all(created)
        try:
            self.session.commit()
        except IntegrityError:
            # Another writer filled the month first.
            self.session.rollback()
            logger.warning(
                f"budget_rollover_conflict: month={year:04d}-{month:02d}"
            )
            return []
        for budget in created:
            self.session.refresh(budget)
        logger.info(
            f"budget_rollover: month={year:04d}-{month:02d} created={len(created)}"
        )
        return created

    def list_for_month(self, year: int, month: int) -> list[Budget]:
        # Reading a month materializes its recurring budgets, future months
        # included, so later edits to that month start from real rows.
        self.generate_recurring(year, month)
        return self._month_budgets(year, month)

    def copy_to_month(self, data: BudgetCopyIn) -> list[Budget]:
        source = self.list_for_month(data.from_year, data.from_month)
        existing = {
            (b.type, b.category)
            for b in self.list_for_month(data.to_year, data.to_month)
        }
        copies = [
            Budget(
                user_id=self.user_id,
                category=b.category,
                type=b.type,
                limit_amount_cents=b.limit_amount_cents,
                month=data.to_month,
                year=data.to_year,
                is_recurring=b.is_recurring,
            )
            for b in source
            if (b.type, b.category) not in existing
        ]
        self.session.add_all(copies)
        self.session.commit()
        for budget in copies:
            self.session.refresh(budget)
        return copies

    def available_categories(
        self,
        year: int,
        month: int,
        txn_type: TransactionType,
        categories: Iterable[str],
    ) -> list[str]:
        budgeted = {
            b.category for b in self._month_budgets(year, month) if b.type == txn_type
        }
        return [name for name in categories if name not in budgeted]

    def with_spending(
        self,
        year: int,
        month: int,
        transactions: Optional[list[TransactionRecord]] = None,
    ) -> list[BudgetWithSpending]:
        if transactions is None:
            transactions = TransactionService(self.session, self.user_id).for_month(
                year, month
            )
        budgets = [budget_record(b) for b in self.list_for_month(year, month)]
        return evaluate_budgets(budgets, transactions)


class GoalService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def _ordered(self, stmt):
        return stmt.order_by(
            Goal.is_completed.asc(),
            Goal.deadline.is_(None).asc(),
            Goal.deadline.asc(),
            Goal.created_at.desc(),
            Goal.id.desc(),
        )

    def list_all(self) -> list[Goal]:
        stmt = self._ordered(select(Goal).where(Goal.user_id == self.user_id))
        return list(self.session.scalars(stmt).all())

    def list_active(self) -> list[Goal]:
        stmt = self._ordered(
            select(Goal).where(
                Goal.user_id == self.user_id, Goal.is_completed.is_(False)
            )
        )
        return list(self.session.scalars(stmt).all())

    def get(self, goal_id: int) -> Goal:
        goal = self.session.get(Goal, goal_id)
        if not goal or goal.user_id != self.user_id:
            raise NotFoundError("Goal not found")
        return goal

    def create(self, data: GoalIn) -> Goal:
        settings = get_settings()
        goal = Goal(
            user_id=self.user_id,
            name=data.name,
            target_amount_cents=data.target_amount_cents,
            current_amount_cents=data.current_amount_cents,
            deadline=data.deadline,
            category=data.category,
            color=data.color or settings.default_goal_color,
            icon=data.icon or settings.default_goal_icon,
            is_completed=data.current_amount_cents >= data.target_amount_cents,
        )
        self.session.add(goal)
        self.session.commit()
        self.session.refresh(goal)
        return goal

    def update(self, goal_id: int, data: GoalUpdateIn) -> Goal:
        goal = self.get(goal_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(goal, key, value)
        self.session.commit()
        self.session.refresh(goal)
        return goal

    def add_amount(self, goal_id: int, amount_cents: int) -> Goal:
        goal = self.get(goal_id)
        new_amount, reached = apply_goal_contribution(
            goal.current_amount_cents, goal.target_amount_cents, amount_cents
        )
        if new_amount < 0:
            raise ValueError("Goal amount cannot go below zero")
        goal.current_amount_cents = new_amount
        if reached and not goal.is_completed:
            goal.is_completed = True
            logger.info(f"goal_completed: id={goal.id} name={goal.name}")
        self.session.commit()
        self.session.refresh(goal)
        return goal

    def delete(self, goal_id: int) -> None:
        goal = self.get(goal_id)
        self.session.delete(goal)
        self.session.commit()

    def progress(self, today: Optional[date] = None) -> list[GoalProgress]:
        return evaluate_goals([goal_record(g) for g in self.list_all()], today=today)


class TagService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def list_all(self) -> list[Tag]:
        stmt = select(Tag).where(Tag.user_id == self.user_id).order_by(Tag.name)
        return list(self.session.scalars(stmt).all())

    def list_with_counts(self) -> list[TagRecord]:
        stmt = (
            select(Tag, func.count(transaction_tags.c.transaction_id))
            .outerjoin(transaction_tags, transaction_tags.c.tag_id == Tag.id)
            .where(Tag.user_id == self.user_id)
            .group_by(Tag.id)
            .order_by(Tag.name)
        )
        return [tag_record(tag, count) for tag, count in self.session.execute(stmt)]

    def get(self, tag_id: int) -> Tag:
        tag = self.session.get(Tag, tag_id)
        if not tag or tag.user_id != self.user_id:
            raise NotFoundError("Tag not found")
        return tag

    def _find(self, name: str, exclude_id: Optional[int] = None) -> Optional[Tag]:
        stmt = select(Tag).where(
            Tag.user_id == self.user_id, func.lower(Tag.name) == name.lower()
        )
        if exclude_id is not None:
            stmt = stmt.where(Tag.id != exclude_id)
        return self.session.scalar(stmt)

    def _next_color(self) -> str:
        count = self.session.scalar(
            select(func.count(Tag.id)).where(Tag.user_id == self.user_id)
        )
        return TAG_PALETTE[(count or 0) % len(TAG_PALETTE)]

    def get_or_create(self, name: str) -> Tag:
        clean_name = name.strip()
        if not clean_name:
            raise ValueError("Tag name cannot be empty")

        existing = self._find(clean_name)
        if existing:
            return existing

        tag = Tag(user_id=self.user_id, name=clean_name, color=self._next_color())
        self.session.add(tag)
        self.session.flush()
        return tag

    def create(self, data: TagIn) -> Tag:
        clean_name = data.name.strip()
        if not clean_name:
            raise ValueError("Tag name cannot be empty")
        if self._find(clean_name):
            raise ValueError("Tag already exists")

        tag = Tag(
            user_id=self.user_id,
            name=clean_name,
            color=data.color or self._next_color(),
        )
        self.session.add(tag)
        self.session.commit()
        self.session.refresh(tag)
        return tag

    def update(self, tag_id: int, data: TagUpdateIn) -> Tag:
        tag = self.get(tag_id)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes:
            clean_name = changes["name"].strip()
            if not clean_name:
                raise ValueError("Tag name cannot be empty")
            if self._find(clean_name, exclude_id=tag.id):
                raise ValueError("Tag with this name already exists")
            tag.name = clean_name
        if "color" in changes:
            tag.color = changes["color"]
        self.session.commit()
        self.session.refresh(tag)
        return tag

    def delete(self, tag_id: int) -> None:
        tag = self.get(tag_id)
        self.session.execute(
            delete(transaction_tags).where(transaction_tags.c.tag_id == tag.id)
        )
        self.session.expire(tag, ["transactions"])
        self.session.delete(tag)
        self.session.commit()
        logger.info(f"tag_deleted: id={tag_id}")

    def for_transaction(self, transaction_id: str) -> list[Tag]:
        txn = TransactionService(self.session, self.user_id).get(transaction_id)
        return sorted(txn.tags, key=lambda tag: tag.name)


class AccountService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def list_all(self) -> list[Account]:
        stmt = (
            select(Account)
            .where(Account.user_id == self.user_id)
            .order_by(Account.created_at, Account.id)
        )
        return list(self.session.scalars(stmt).all())

    def list_active(self) -> list[Account]:
        stmt = (
            select(Account)
            .where(Account.user_id == self.user_id, Account.is_active.is_(True))
            .order_by(Account.name)
        )
        return list(self.session.scalars(stmt).all())

    def get(self, account_id: int) -> Account:
        account = self.session.get(Account, account_id)
        if not account or account.user_id != self.user_id:
            raise NotFoundError("Account not found")
        return account

    def create(self, data: AccountIn) -> Account:
        account = Account(
            user_id=self.user_id,
            name=data.name,
            type=data.type,
            initial_balance_cents=data.initial_balance_cents,
            color=data.color or DEFAULT_ACCOUNT_COLOR,
            icon=data.icon or DEFAULT_ACCOUNT_ICON,
        )
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        return account

    def update(self, account_id: int, data: AccountUpdateIn) -> Account:
        account = self.get(account_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(account, key, value)
        self.session.commit()
        self.session.refresh(account)
        return account

    def set_active(self, account_id: int, is_active: bool) -> Account:
        account = self.get(account_id)
        account.is_active = is_active
        self.session.commit()
        self.session.refresh(account)
        logger.info(f"account_active_changed: id={account_id} active={is_active}")
        return account

    def delete(self, account_id: int) -> None:
        account = self.get(account_id)
        self.session.delete(account)
        self.session.commit()


class DashboardService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.transactions = TransactionService(session, self.user_id)

    def month_overview(self, year: int, month: int) -> dict[str, object]:
        all_records = _checked(self.transactions.list_all())
        period = month_transactions(all_records, month, year)
        summary = summarize(period)
        previous = MonthPeriod(year, month).previous()
        previous_period = month_transactions(
            all_records, previous.month, previous.year
        )
        comparison = compare_to_previous_month(previous_period, summary, month, year)
        return {
            "month": MonthPeriod(year, month).key,
            "summary": summary,
            "comparison": comparison,
            "income_by_category": category_breakdown(period, TransactionType.income),
            "expense_by_category": category_breakdown(
                period, TransactionType.expense
            ),
            "budgets": BudgetService(self.session, self.user_id).with_spending(
                year, month, period
            ),
            "transactions": period,
        }

    def analytics(self, year: Optional[int] = None) -> dict[str, object]:
        records = _checked(self.transactions.list_all())
        if year is not None:
            records = [txn for txn in records if txn.date.year == year]
        return {
            "stats": analytics_stats(records),
            "monthly": monthly_series(records),
        }
