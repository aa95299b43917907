"""Installment schedules: due dates, value splitting and due-date status."""


import logging
import re
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

from dateutil import parser as date_parser

from app.services.money import parse_amount, to_cents

logger = logging.getLogger(__name__)

__all__ = [
    "parse_date_string",
    "calculate_due_dates",
    "calculate_installment_values",
    "first_due_date",
    "installment_due_status",
]

DEFAULT_INTERVAL_DAYS = 30
DEFAULT_FIRST_DUE_OFFSET_DAYS = 30
NEXT_WEEK_DAYS = 7

_DATE_FORMATS = (
    "%d/%m/%Y",
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%Y.%m.%d",
    "%d-%m-%Y",
)
_NUMBERS_RE = re.compile(r"\d+")


def parse_date_string(raw: Any) -> date | None:
    """Parse a loosely formatted date; day-first when ambiguous.

    Tries the usual Brazilian and ISO layouts first, then reads the first
    three numbers as day/month/year (two-digit years are 20xx).
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not raw or not isinstance(raw, str):
        return None
    text = raw.strip()
    # ISO timestamps ("2024-03-01T00:00:00Z") keep only the date part
    if len(text) > 10 and text[4:5] == "-" and text[10:11] in ("T", " "):
        text = text[:10]

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    numbers = _NUMBERS_RE.findall(text)
    if len(numbers) >= 3:
        day, month, year = (int(n) for n in numbers[:3])
        if year < 100:
            year += 2000
        try:
            return date(year, month, day)
        except ValueError:
            pass

    try:
        return date_parser.parse(text, dayfirst=True, fuzzy=True).date()
    except (ValueError, OverflowError):
        logger.debug("Unparseable date string: %r", raw)
        return None


def calculate_due_dates(
    base: date | str | None,
    count: int,
    interval_days: int = DEFAULT_INTERVAL_DAYS,
    *,
    today: date | None = None,
) -> list[date]:
    """Return *count* due dates starting at *base*, *interval_days* apart.

    A missing or unparseable *base* means today + 30 days.
    """
    start = parse_date_string(base) if base is not None else None
    if start is None:
        start = (today or date.today()) + timedelta(days=DEFAULT_FIRST_DUE_OFFSET_DAYS)
    return [start + timedelta(days=interval_days * i) for i in range(max(count, 0))]


def calculate_installment_values(total: Decimal | float | str, count: int) -> list[Decimal]:
    """Split *total* into *count* cent-rounded shares that add up to it exactly.

    The last share absorbs the rounding remainder.
    """
    amount = parse_amount(total)
    if count <= 0:
        return [amount]

    share = to_cents(amount / count)
    values = [share] * (count - 1)
    values.append(amount - share * (count - 1))
    return values


def first_due_date(
    raw: Any,
    *,
    today: date | None = None,
    offset_days: int = DEFAULT_FIRST_DUE_OFFSET_DAYS,
) -> date:
    """First installment due date: policy start + *offset_days*, else today + *offset_days*."""
    start = None
    proposal = raw.get("proposta") if isinstance(raw, dict) else None
    if not isinstance(proposal, dict) and isinstance(raw, dict):
        result = raw.get("resultado")
        proposal = result.get("proposta") if isinstance(result, dict) else None
    if isinstance(proposal, dict):
        start = parse_date_string(
            proposal.get("vigencia_inicial") or proposal.get("vigencia_inicio")
        )
    return (start or today or date.today()) + timedelta(days=offset_days)


def installment_due_status(due: date | None, today: date | None = None) -> str:
    """Classify a pending installment by its due date."""
    if due is None:
        return "pending"
    ref = today or date.today()
    if due == ref:
        return "due_today"
    if due < ref:
        return "overdue"
    if due < ref + timedelta(days=NEXT_WEEK_DAYS):
        return "next_week"
    return "pending"
