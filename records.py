"""Plain value types shared by the projection, aggregation and progress code.

Records are snapshots: the calculation functions never mutate them and always
return freshly built results, so the same list can be fed to several
consumers. Amounts are plain numbers in whatever unit the caller uses (the
services pass integer cents).
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from models import AccountType, Frequency, TransactionType


@dataclass(frozen=True)
class TransactionRecord:
    id: str
    description: str
    amount: float
    type: TransactionType
    category: str
    payment_method: str
    date: date
    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    installments: Optional[int] = None
    current_installment: Optional[int] = None
    installment_group_id: Optional[str] = None
    is_paid: bool = True
    is_virtual: bool = False
    original_transaction_id: Optional[str] = None
    excluded_dates: frozenset[date] = field(default_factory=frozenset)
    tag_ids: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class BudgetRecord:
    id: int
    category: str
    type: TransactionType
    limit_amount: float
    month: int
    year: int
    is_recurring: bool = True


@dataclass(frozen=True)
class GoalRecord:
    id: int
    name: str
    target_amount: float
    current_amount: float
    deadline: Optional[date] = None
    is_completed: bool = False
    color: str = "#6366f1"
    icon: str = "savings"
    category: Optional[str] = None


@dataclass(frozen=True)
class FinancialSummary:
    total_income: float
    total_expense: float
    balance: float


@dataclass(frozen=True)
class MonthComparison:
    income_change_pct: float
    expense_change_pct: float
    income_progress_pct: float
    expense_progress_pct: float


@dataclass(frozen=True)
class BudgetWithSpending:
    budget: BudgetRecord
    spent: float
    remaining: float
    percentage: float
    is_over_budget: bool


@dataclass(frozen=True)
class GoalProgress:
    goal: GoalRecord
    percentage: float
    remaining_amount: float
    days_remaining: Optional[int] = None
    is_overdue: Optional[bool] = None


@dataclass(frozen=True)
class CategoryShare:
    category: str
    amount: float
    percentage: float


@dataclass
class PaymentMethodSummary:
    name: str
    total_income: float = 0
    total_expense: float = 0
    transaction_count: int = 0
    unpaid_count: int = 0
    unpaid_amount: float = 0


@dataclass(frozen=True)
class MonthTotals:
    year: int
    month: int
    income: float
    expense: float

    @property
    def balance(self) -> float:
        return self.income - self.expense


@dataclass(frozen=True)
class TagRecord:
    id: int
    name: str
    color: str
    transaction_count: int = 0


@dataclass(frozen=True)
class AccountRecord:
    id: int
    name: str
    type: AccountType
    initial_balance: float
    color: str
    icon: str
    is_active: bool = True
