from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class MonthPeriod:
    year: int
    month: int

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        year, month = add_months(self.year, self.month, 1)
        return date(year, month, 1) - date.resolution

    def previous(self) -> "MonthPeriod":
        return MonthPeriod(*previous_month(self.year, self.month))

    def shift(self, count: int) -> "MonthPeriod":
        return MonthPeriod(*add_months(self.year, self.month, count))

    def contains(self, value: date) -> bool:
        return in_month(value, self.year, self.month)


def add_months(year: int, month: int, count: int) -> tuple[int, int]:
    month_index = year * 12 + (month - 1) + count
    return month_index // 12, month_index % 12 + 1


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def in_month(value: date, year: int, month: int) -> bool:
    # Calendar fields only; dates are never shifted through a timezone.
    return value.year == year and value.month == month


def month_index(value: date) -> int:
    return value.year * 12 + (value.month - 1)


def resolve_month(value: Optional[str], *, today: Optional[date] = None) -> MonthPeriod:
    """Parse a ``YYYY-MM`` query value, defaulting to the month of ``today``."""
    if not value:
        today = today or date.today()
        return MonthPeriod(today.year, today.month)
    try:
        year_str, month_str = value.split("-", 1)
        year = int(year_str)
        month = int(month_str)
    except ValueError as exc:
        raise ValueError("Month must be formatted as YYYY-MM") from exc
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 1 and 12")
    if not 1970 <= year <= 3000:
        raise ValueError("Year out of range")
    return MonthPeriod(year, month)
