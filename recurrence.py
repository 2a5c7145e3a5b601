from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from config import get_settings
from models import Frequency
from periods import add_months, in_month, month_index
from records import TransactionRecord


def local_today() -> date:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).date()


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - date(year, month, 1)).days


def clamp_day(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, days_in_month(year, month)))


def virtual_id(template_id: str, year: int, month: int) -> str:
    return f"{template_id}_recurring_{year:04d}-{month:02d}"


def _is_installment_series(txn: TransactionRecord) -> bool:
    return bool(txn.installments and txn.installments > 1)


def _occurs_in(template: TransactionRecord, month: int, year: int) -> bool:
    origin = template.date
    target = year * 12 + (month - 1)
    if target < month_index(origin):
        return False
    if target == month_index(origin):
        # The persisted row already covers its own month.
        return False
    if template.frequency == Frequency.monthly:
        return True
    if template.frequency == Frequency.yearly:
        return month == origin.month and year > origin.year
    return False


def project_recurring(
    transactions: Iterable[TransactionRecord], month: int, year: int
) -> list[TransactionRecord]:
    """Build the virtual occurrences of recurring templates for one month.

    ``month`` is 1-based. Nothing is persisted; ids are derived from the
    template id and the month, so repeated calls give equal results.
    """
    virtuals: list[TransactionRecord] = []
    for txn in transactions:
        if not txn.is_recurring or not txn.frequency or txn.is_virtual:
            continue
        if _is_installment_series(txn):
            continue
        if not _occurs_in(txn, month, year):
            continue
        occurrence = clamp_day(year, month, txn.date.day)
        if occurrence in txn.excluded_dates:
            continue
        virtuals.append(
            replace(
                txn,
                id=virtual_id(txn.id, year, month),
                date=occurrence,
                is_virtual=True,
                original_transaction_id=txn.id,
            )
        )
    return virtuals


def month_transactions(
    transactions: Iterable[TransactionRecord], month: int, year: int
) -> list[TransactionRecord]:
    """Real rows dated in the month plus the month's projected occurrences."""
    snapshot = list(transactions)
    real = [
        txn
        for txn in snapshot
        if in_month(txn.date, year, month)
        and not (txn.is_recurring and txn.date in txn.excluded_dates)
    ]
    combined = real + project_recurring(snapshot, month, year)
    return sorted(combined, key=lambda txn: txn.date, reverse=True)


def payable_id(txn: TransactionRecord) -> str:
    if txn.is_virtual and txn.original_transaction_id:
        return txn.original_transaction_id
    return txn.id


def parse_virtual_id(value: str) -> Optional[tuple[str, int, int]]:
    """Split ``{template}_recurring_{YYYY-MM}`` into its parts, or ``None``."""
    template_id, sep, suffix = value.rpartition("_recurring_")
    if not sep or not template_id:
        return None
    try:
        year_str, month_str = suffix.split("-", 1)
        year, month = int(year_str), int(month_str)
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    return template_id, year, month


def installment_dates(start: date, count: int) -> list[date]:
    dates = []
    for offset in range(count):
        year, month = add_months(start.year, start.month, offset)
        dates.append(clamp_day(year, month, start.day))
    return dates


def split_installments(amount_cents: int, count: int) -> list[int]:
    if count < 1:
        raise ValueError("Installment count must be positive")
    # Half-up to the cent; the first part absorbs the rounding remainder.
    part = (amount_cents * 2 + count) // (count * 2)
    remainder = amount_cents - part * count
    return [part + remainder] + [part] * (count - 1)
