import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models import AccountType, Frequency, TransactionType


def _reject_explicit_nulls(model: BaseModel, fields: tuple[str, ...]) -> None:
    # Omitted fields stay untouched; an explicit null would clear a NOT NULL column.
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise ValueError(f"{name} cannot be null")


class TransactionIn(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    amount_cents: int = Field(..., ge=0)
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=100)
    payment_method: str = Field(..., min_length=1, max_length=100)
    date: dt.date
    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    installments: Optional[int] = Field(default=None, ge=1, le=480)
    is_paid: bool = True
    tags: Optional[list[str]] = None

    @model_validator(mode="after")
    def _recurring_needs_frequency(self) -> "TransactionIn":
        if self.is_recurring and self.frequency is None:
            raise ValueError("Recurring transactions need a frequency")
        if not self.is_recurring:
            self.frequency = None
        return self


class PaidIn(BaseModel):
    is_paid: bool


class PayAllIn(BaseModel):
    payment_method: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1970, le=3000)
    month: int = Field(..., ge=1, le=12)


class BudgetIn(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    limit_amount_cents: int = Field(..., gt=0)
    year: int = Field(..., ge=1970, le=3000)
    month: int = Field(..., ge=1, le=12)
    is_recurring: bool = True


class BudgetUpdateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[TransactionType] = None
    limit_amount_cents: Optional[int] = Field(default=None, gt=0)
    year: Optional[int] = Field(default=None, ge=1970, le=3000)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    is_recurring: Optional[bool] = None

    @model_validator(mode="after")
    def _no_nulls(self) -> "BudgetUpdateIn":
        _reject_explicit_nulls(
            self,
            ("category", "type", "limit_amount_cents", "year", "month", "is_recurring"),
        )
        return self


class BudgetCopyIn(BaseModel):
    from_year: int = Field(..., ge=1970, le=3000)
    from_month: int = Field(..., ge=1, le=12)
    to_year: int = Field(..., ge=1970, le=3000)
    to_month: int = Field(..., ge=1, le=12)


class GoalIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    target_amount_cents: int = Field(..., gt=0)
    current_amount_cents: int = Field(default=0, ge=0)
    deadline: Optional[dt.date] = None
    category: Optional[str] = Field(default=None, max_length=100)
    color: Optional[str] = Field(default=None, max_length=9)
    icon: Optional[str] = Field(default=None, max_length=50)


class GoalUpdateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    target_amount_cents: Optional[int] = Field(default=None, gt=0)
    current_amount_cents: Optional[int] = Field(default=None, ge=0)
    deadline: Optional[dt.date] = None
    category: Optional[str] = Field(default=None, max_length=100)
    color: Optional[str] = Field(default=None, max_length=9)
    icon: Optional[str] = Field(default=None, max_length=50)
    is_completed: Optional[bool] = None

    @model_validator(mode="after")
    def _no_nulls(self) -> "GoalUpdateIn":
        # deadline and category may be cleared.
        _reject_explicit_nulls(
            self,
            (
                "name",
                "target_amount_cents",
                "current_amount_cents",
                "color",
                "icon",
                "is_completed",
            ),
        )
        return self


class GoalContributionIn(BaseModel):
    amount_cents: int


class TagIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = Field(None, max_length=9)


class TagUpdateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    color: Optional[str] = Field(default=None, max_length=9)

    @model_validator(mode="after")
    def _no_nulls(self) -> "TagUpdateIn":
        _reject_explicit_nulls(self, ("name", "color"))
        return self


class TransactionTagsIn(BaseModel):
    tag_ids: list[int] = Field(default_factory=list)


class AccountIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType
    initial_balance_cents: int = 0
    color: Optional[str] = Field(default=None, max_length=9)
    icon: Optional[str] = Field(default=None, max_length=50)


class AccountUpdateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[AccountType] = None
    initial_balance_cents: Optional[int] = None
    color: Optional[str] = Field(default=None, max_length=9)
    icon: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def _no_nulls(self) -> "AccountUpdateIn":
        _reject_explicit_nulls(
            self,
            ("name", "type", "initial_balance_cents", "color", "icon", "is_active"),
        )
        return self
