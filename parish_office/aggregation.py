"""Shared grouping and totals over donation and payment records."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Hashable, Iterable, Mapping, Sequence, TypeVar

RecordT = TypeVar("RecordT")

GRANULARITIES = ("daily", "weekly", "monthly", "yearly")
PERIODS = ("today", "week", "month", "year", "all")


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def contains(self, day: date | None) -> bool:
        return day is not None and self.start <= day <= self.end


@dataclass(frozen=True)
class PeriodBucket:
    period: str
    total_cents: int
    count: int


def month_bounds(anchor: date) -> DateRange:
    first_day = anchor.replace(day=1)
    if first_day.month == 12:
        next_month = date(first_day.year + 1, 1, 1)
    else:
        next_month = date(first_day.year, first_day.month + 1, 1)
    return DateRange(start=first_day, end=next_month - timedelta(days=1))


def month_shift(first_day_of_month: date, months_back: int) -> date:
    year = first_day_of_month.year
    month = first_day_of_month.month - months_back
    while month <= 0:
        month += 12
        year -= 1
    while month > 12:
        month -= 12
        year += 1
    return date(year, month, 1)


def quarter_bounds(year: int, quarter: int) -> DateRange:
    if quarter not in (1, 2, 3, 4):
        raise ValueError("Quarter must be between 1 and 4.")
    first_month = (quarter - 1) * 3 + 1
    start = date(year, first_month, 1)
    end = month_bounds(date(year, first_month + 2, 1)).end
    return DateRange(start=start, end=end)


def year_bounds(year: int) -> DateRange:
    return DateRange(start=date(year, 1, 1), end=date(year, 12, 31))


def exclude_voided(records: Iterable[RecordT]) -> list[RecordT]:
    return [record for record in records if not getattr(record, "is_voided", False)]


def filter_by_date_range(
    records: Iterable[RecordT],
    start: date | None,
    end: date | None,
) -> list[RecordT]:
    """Keep records dated within ``[start, end]``; ``None`` leaves a side open."""

    if start is None and end is None:
        return list(records)

    kept: list[RecordT] = []
    for record in records:
        day = getattr(record, "day", None)
        if day is None:
            continue
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        kept.append(record)
    return kept


def period_range(period: str, today: date) -> DateRange | None:
    if period == "today":
        return DateRange(start=today, end=today)
    if period == "week":
        # Seven calendar days including today.
        return DateRange(start=today - timedelta(days=6), end=today)
    if period == "month":
        return month_bounds(today)
    if period == "year":
        return year_bounds(today.year)
    if period == "all":
        return None
    raise ValueError(f"Unknown period '{period}'. Expected one of: {', '.join(PERIODS)}.")


def filter_by_period(
    records: Iterable[RecordT],
    period: str,
    today: date | None = None,
) -> list[RecordT]:
    window = period_range(period, today or date.today())
    if window is None:
        return list(records)
    return filter_by_date_range(records, window.start, window.end)


def week_start(day: date) -> date:
    # Weeks start on Sunday.
    return day - timedelta(days=(day.weekday() + 1) % 7)


def period_key(day: date, granularity: str) -> str:
    if granularity == "daily":
        return day.isoformat()
    if granularity == "weekly":
        return week_start(day).isoformat()
    if granularity == "monthly":
        return f"{day.year:04d}-{day.month:02d}"
    if granularity == "yearly":
        return f"{day.year:04d}"
    raise ValueError(
        f"Unknown granularity '{granularity}'. Expected one of: {', '.join(GRANULARITIES)}."
    )


def period_label(key: str, granularity: str) -> str:
    if granularity == "daily":
        day = date.fromisoformat(key)
        return f"{day:%b} {day.day}"
    if granularity == "weekly":
        day = date.fromisoformat(key)
        return f"Week of {day:%b} {day.day}"
    if granularity == "monthly":
        year, month = key.split("-")
        return f"{date(int(year), int(month), 1):%b %Y}"
    if granularity == "yearly":
        return key
    raise ValueError(f"Unknown granularity '{granularity}'.")


def group_by_period(records: Iterable[Any], granularity: str) -> list[PeriodBucket]:
    totals: dict[str, int] = defaultdict(int)
    counts: dict[str, int] = defaultdict(int)
    for record in records:
        day = getattr(record, "day", None)
        if day is None:
            continue
        key = period_key(day, granularity)
        totals[key] += int(record.amount_cents)
        counts[key] += 1

    return [
        PeriodBucket(period=key, total_cents=totals[key], count=counts[key])
        for key in sorted(totals)
    ]


def total_cents(records: Iterable[Any]) -> int:
    return sum(int(record.amount_cents) for record in records)


def average_cents(records: Sequence[Any]) -> int:
    if not records:
        return 0
    return int(round(total_cents(records) / len(records)))


def unique_count(values: Iterable[Hashable | None]) -> int:
    return len({value for value in values if value})


def category_totals(records: Iterable[Any]) -> dict[str, int]:
    totals: dict[str, int] = defaultdict(int)
    for record in records:
        totals[getattr(record, "category", None) or "Other"] += int(record.amount_cents)
    return dict(sorted(totals.items(), key=lambda item: (-item[1], item[0])))


def percent_of(part: int, whole: int) -> float:
    """Share of ``whole`` as a percentage, floored to one decimal place."""

    if whole <= 0 or part <= 0:
        return 0.0
    return (part * 1000 // whole) / 10


def percentage_shares(totals: Mapping[str, int]) -> dict[str, float]:
    whole = sum(value for value in totals.values() if value > 0)
    return {key: percent_of(value, whole) for key, value in totals.items()}


def running_totals(buckets: Iterable[PeriodBucket]) -> list[tuple[str, int]]:
    output: list[tuple[str, int]] = []
    running = 0
    for bucket in buckets:
        running += bucket.total_cents
        output.append((bucket.period, running))
    return output


def monthly_series(
    records: Iterable[Any],
    months: int = 12,
    today: date | None = None,
) -> list[PeriodBucket]:
    if months <= 0:
        return []

    anchor = (today or date.today()).replace(day=1)
    start_month = month_shift(anchor, months - 1)
    window = filter_by_date_range(records, start_month, month_bounds(anchor).end)
    grouped = {bucket.period: bucket for bucket in group_by_period(window, "monthly")}

    output: list[PeriodBucket] = []
    for month_offset in range(months - 1, -1, -1):
        key = period_key(month_shift(anchor, month_offset), "monthly")
        output.append(grouped.get(key) or PeriodBucket(period=key, total_cents=0, count=0))
    return output


def daily_series(
    records: Iterable[Any],
    days: int = 7,
    today: date | None = None,
) -> list[PeriodBucket]:
    if days <= 0:
        return []

    anchor = today or date.today()
    first_day = anchor - timedelta(days=days - 1)
    window = filter_by_date_range(records, first_day, anchor)
    grouped = {bucket.period: bucket for bucket in group_by_period(window, "daily")}

    output: list[PeriodBucket] = []
    for offset in range(days):
        key = (first_day + timedelta(days=offset)).isoformat()
        output.append(grouped.get(key) or PeriodBucket(period=key, total_cents=0, count=0))
    return output
