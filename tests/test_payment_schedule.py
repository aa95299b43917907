from datetime import date, datetime
from decimal import Decimal

import pytest

from app.services.payment_schedule import (
    calculate_due_dates,
    calculate_installment_values,
    first_due_date,
    installment_due_status,
    parse_date_string,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("15/03/2026", date(2026, 3, 15)),
        ("2026-03-15", date(2026, 3, 15)),
        ("2026-03-15T10:30:00Z", date(2026, 3, 15)),
        ("15.03.2026", date(2026, 3, 15)),
        ("15.03.26", date(2026, 3, 15)),
        (datetime(2026, 3, 15, 9, 0), date(2026, 3, 15)),
        (date(2026, 3, 15), date(2026, 3, 15)),
    ],
)
def test_parse_date_string(raw, expected):
    assert parse_date_string(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "sem data", 20260315])
def test_parse_date_string_unreadable(raw):
    assert parse_date_string(raw) is None


def test_due_dates_are_thirty_days_apart():
    assert calculate_due_dates(date(2026, 1, 31), 3) == [
        date(2026, 1, 31),
        date(2026, 3, 2),
        date(2026, 4, 1),
    ]


def test_due_dates_accept_strings_and_custom_interval():
    assert calculate_due_dates("10/01/2026", 2, interval_days=15) == [
        date(2026, 1, 10),
        date(2026, 1, 25),
    ]


def test_due_dates_without_base_start_a_month_from_today():
    assert calculate_due_dates(None, 2, today=date(2026, 1, 1)) == [
        date(2026, 1, 31),
        date(2026, 3, 2),
    ]
    assert calculate_due_dates("lixo", 1, today=date(2026, 1, 1)) == [date(2026, 1, 31)]


def test_installment_values_add_up_to_total():
    values = calculate_installment_values("100,00", 3)
    assert values == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(values) == Decimal("100.00")


def test_installment_values_even_split():
    assert calculate_installment_values(Decimal("1200"), 4) == [Decimal("300.00")] * 4


def test_installment_values_without_count():
    assert calculate_installment_values(500, 0) == [Decimal("500.00")]


def test_first_due_date_follows_policy_start():
    raw = {"proposta": {"vigencia_inicio": "01/03/2026"}}
    assert first_due_date(raw, today=date(2026, 1, 1)) == date(2026, 3, 31)


def test_first_due_date_reads_nested_result():
    raw = {"resultado": {"proposta": {"vigencia_inicial": "2026-02-01"}}}
    assert first_due_date(raw, offset_days=10) == date(2026, 2, 11)


def test_first_due_date_without_start_uses_today():
    assert first_due_date({}, today=date(2026, 1, 1)) == date(2026, 1, 31)
    assert first_due_date(None, today=date(2026, 1, 1)) == date(2026, 1, 31)


@pytest.mark.parametrize(
    "due, expected",
    [
        (date(2026, 5, 1), "due_today"),
        (date(2026, 4, 30), "overdue"),
        (date(2026, 5, 4), "next_week"),
        (date(2026, 5, 8), "pending"),
        (None, "pending"),
    ],
)
def test_installment_due_status(due, expected):
    assert installment_due_status(due, today=date(2026, 5, 1)) == expected
