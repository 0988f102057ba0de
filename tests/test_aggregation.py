from __future__ import annotations

from datetime import date

import pytest

from parish_office.aggregation import (
    DateRange,
    PeriodBucket,
    category_totals,
    daily_series,
    exclude_voided,
    filter_by_date_range,
    filter_by_period,
    group_by_period,
    month_bounds,
    month_shift,
    monthly_series,
    percent_of,
    percentage_shares,
    period_key,
    period_range,
    period_label,
    quarter_bounds,
    running_totals,
    total_cents,
    week_start,
)
from parish_office.records import Donation


def _donation(day: str | None, amount: float, category: str = "Tithes", voided: bool = False) -> Donation:
    return Donation.from_api(
        {
            "donor": "Rosa Cruz",
            "category": category,
            "amount": amount,
            "donation_date": day,
            "is_voided": voided,
        }
    )


def test_group_by_month_sums_each_month() -> None:
    records = [
        _donation("2025-12-01", 100),
        _donation("2025-12-01", 50),
        _donation("2025-11-01", 25),
    ]

    buckets = group_by_period(records, "monthly")

    assert buckets == [
        PeriodBucket(period="2025-11", total_cents=2500, count=1),
        PeriodBucket(period="2025-12", total_cents=15000, count=2),
    ]
    assert sum(bucket.total_cents for bucket in buckets) == total_cents(records)


def test_weekly_buckets_start_on_sunday() -> None:
    assert week_start(date(2025, 12, 3)) == date(2025, 11, 30)
    assert week_start(date(2025, 11, 30)) == date(2025, 11, 30)
    assert week_start(date(2025, 12, 6)) == date(2025, 11, 30)

    buckets = group_by_period(
        [_donation("2025-12-01", 10), _donation("2025-12-06", 5), _donation("2025-12-07", 1)],
        "weekly",
    )
    assert [bucket.period for bucket in buckets] == ["2025-11-30", "2025-12-07"]
    assert buckets[0].total_cents == 1500
    assert period_label("2025-11-30", "weekly") == "Week of Nov 30"


def test_period_keys_and_labels() -> None:
    day = date(2025, 12, 1)
    assert period_key(day, "daily") == "2025-12-01"
    assert period_key(day, "monthly") == "2025-12"
    assert period_key(day, "yearly") == "2025"
    assert period_label("2025-12-01", "daily") == "Dec 1"
    assert period_label("2025-12", "monthly") == "Dec 2025"

    with pytest.raises(ValueError):
        period_key(day, "hourly")


def test_undated_records_are_not_grouped() -> None:
    buckets = group_by_period([_donation(None, 40), _donation("2025-01-05", 10)], "yearly")
    assert buckets == [PeriodBucket(period="2025", total_cents=1000, count=1)]


def test_date_range_filter_is_inclusive_and_drops_undated() -> None:
    records = [
        _donation("2025-12-01", 1),
        _donation("2025-12-15", 2),
        _donation("2025-12-31", 3),
        _donation(None, 4),
    ]

    kept = filter_by_date_range(records, date(2025, 12, 1), date(2025, 12, 15))
    assert [record.amount_cents for record in kept] == [100, 200]

    open_ended = filter_by_date_range(records, date(2025, 12, 15), None)
    assert [record.amount_cents for record in open_ended] == [200, 300]

    assert len(filter_by_date_range(records, None, None)) == 4


def test_period_filter_windows() -> None:
    today = date(2025, 12, 10)
    records = [
        _donation("2025-12-10", 1),
        _donation("2025-12-04", 2),
        _donation("2025-12-03", 3),
        _donation("2025-01-15", 4),
        _donation("2024-12-31", 5),
    ]

    def amounts(period: str) -> list[int]:
        return [record.amount_cents for record in filter_by_period(records, period, today)]

    assert amounts("today") == [100]
    assert amounts("week") == [100, 200]
    assert period_range("week", today) == DateRange(date(2025, 12, 4), today)
    assert amounts("month") == [100, 200, 300]
    assert amounts("year") == [100, 200, 300, 400]
    assert len(amounts("all")) == 5

    with pytest.raises(ValueError):
        filter_by_period(records, "decade", today)


def test_voided_records_are_excluded() -> None:
    records = [_donation("2025-12-01", 10), _donation("2025-12-01", 99, voided=True)]
    assert total_cents(exclude_voided(records)) == 1000


def test_category_totals_sort_largest_first_and_sum_to_total() -> None:
    records = [
        _donation("2025-12-01", 0.1, "Tithes"),
        _donation("2025-12-01", 0.2, "Tithes"),
        _donation("2025-12-02", 5, "Building Fund"),
        _donation("2025-12-02", 1, ""),
    ]

    totals = category_totals(records)

    assert list(totals) == ["Building Fund", "Other", "Tithes"]
    assert totals["Tithes"] == 30
    assert sum(totals.values()) == total_cents(records)


def test_percentage_shares_never_exceed_one_hundred() -> None:
    shares = percentage_shares({"a": 1, "b": 1, "c": 1})
    assert shares == {"a": 33.3, "b": 33.3, "c": 33.3}
    assert sum(shares.values()) <= 100

    assert percent_of(0, 0) == 0.0
    assert percent_of(5, 0) == 0.0
    assert percent_of(2, 3) == 66.6


def test_calendar_bounds() -> None:
    assert month_bounds(date(2024, 2, 14)) == DateRange(date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(date(2025, 12, 9)).end == date(2025, 12, 31)
    assert month_shift(date(2025, 1, 1), 1) == date(2024, 12, 1)
    assert month_shift(date(2025, 11, 1), -2) == date(2026, 1, 1)
    assert quarter_bounds(2025, 4) == DateRange(date(2025, 10, 1), date(2025, 12, 31))

    with pytest.raises(ValueError):
        quarter_bounds(2025, 5)


def test_series_are_zero_filled() -> None:
    records = [_donation("2025-11-20", 10), _donation("2025-12-09", 3)]

    months = monthly_series(records, months=3, today=date(2025, 12, 10))
    assert [(bucket.period, bucket.total_cents) for bucket in months] == [
        ("2025-10", 0),
        ("2025-11", 1000),
        ("2025-12", 300),
    ]

    days = daily_series(records, days=3, today=date(2025, 12, 10))
    assert [(bucket.period, bucket.total_cents) for bucket in days] == [
        ("2025-12-08", 0),
        ("2025-12-09", 300),
        ("2025-12-10", 0),
    ]
    assert monthly_series(records, months=0) == []


def test_running_totals_accumulate() -> None:
    buckets = [
        PeriodBucket(period="2025-10", total_cents=100, count=1),
        PeriodBucket(period="2025-11", total_cents=0, count=0),
        PeriodBucket(period="2025-12", total_cents=250, count=2),
    ]
    assert running_totals(buckets) == [("2025-10", 100), ("2025-11", 100), ("2025-12", 350)]
