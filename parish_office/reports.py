"""Dashboard and report figures built from donation and payment records."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Any, Generic, Iterable, Sequence, TypeVar, Union

import pandas as pd

from .aggregation import (
    DateRange,
    PeriodBucket,
    average_cents,
    category_totals,
    daily_series,
    exclude_voided,
    filter_by_date_range,
    filter_by_period,
    group_by_period,
    month_bounds,
    monthly_series,
    percent_of,
    percentage_shares,
    period_label,
    quarter_bounds,
    running_totals,
    total_cents,
    unique_count,
    year_bounds,
)
from .audit import AuditLog
from .records import Donation, PaymentRecord, amount_from_cents, format_date_short

Transaction = Union[Donation, PaymentRecord]
ItemT = TypeVar("ItemT")

REPORT_TYPES = ("monthly", "quarterly", "annual")
PENDING_STATUSES = {"unpaid", "pending"}


def _breakdown_rows(totals: dict[str, int]) -> list[dict[str, Any]]:
    shares = percentage_shares(totals)
    return [
        {"name": name, "total_cents": cents, "share": shares[name]}
        for name, cents in totals.items()
    ]


def finance_stats(
    donations: Sequence[Donation],
    payments: Sequence[PaymentRecord],
    today: date | None = None,
) -> dict[str, dict[str, int]]:
    report_date = today or date.today()
    active_donations = exclude_voided(donations)
    active_payments = exclude_voided(payments)
    combined: list[Transaction] = [*active_donations, *active_payments]

    return {
        "donations": {
            "total_cents": total_cents(active_donations),
            "count": len(active_donations),
            "voided": len(donations) - len(active_donations),
            "today_cents": total_cents(filter_by_period(active_donations, "today", report_date)),
        },
        "event_payments": {
            "total_cents": total_cents(active_payments),
            "count": len(active_payments),
            "voided": len(payments) - len(active_payments),
            "pending": sum(
                1 for payment in active_payments if payment.payment_status in PENDING_STATUSES
            ),
        },
        "combined": {
            "total_cents": total_cents(combined),
            "count": len(combined),
            "voided": (len(donations) + len(payments)) - len(combined),
        },
    }


def combined_ledger(
    donations: Iterable[Donation],
    payments: Iterable[PaymentRecord],
) -> list[Transaction]:
    items: list[Transaction] = [*donations, *payments]
    items.sort(key=lambda item: (item.day or date.min, item.id or 0), reverse=True)
    return items


def filter_transactions(
    items: Iterable[Transaction],
    search: str = "",
    period: str = "all",
    status: str = "all",
    today: date | None = None,
) -> list[Transaction]:
    needle = search.strip().lower()
    matched = filter_by_period(items, period, today)

    kept: list[Transaction] = []
    for item in matched:
        if needle and not any(
            needle in value.lower() for value in (item.party, item.category, item.label)
        ):
            continue
        if status == "active" and item.is_voided:
            continue
        if status == "voided" and not item.is_voided:
            continue
        kept.append(item)
    return kept


def revenue_trend(
    donations: Iterable[Donation],
    payments: Iterable[PaymentRecord],
    days: int = 7,
    today: date | None = None,
) -> list[dict[str, Any]]:
    donation_days = daily_series(exclude_voided(donations), days, today)
    payment_days = daily_series(exclude_voided(payments), days, today)

    rows: list[dict[str, Any]] = []
    for donation_bucket, payment_bucket in zip(donation_days, payment_days):
        rows.append(
            {
                "day": donation_bucket.period,
                "label": period_label(donation_bucket.period, "daily"),
                "donations_cents": donation_bucket.total_cents,
                "event_fees_cents": payment_bucket.total_cents,
                "total_cents": donation_bucket.total_cents + payment_bucket.total_cents,
            }
        )
    return rows


def payment_report(
    payments: Iterable[PaymentRecord],
    donations: Iterable[Donation],
    granularity: str = "monthly",
    today: date | None = None,
) -> dict[str, Any]:
    """Donations and event fees bucketed by period, with grand totals."""

    active_payments = exclude_voided(payments)
    active_donations = exclude_voided(donations)

    grouping = granularity
    if granularity == "today":
        report_date = today or date.today()
        active_payments = filter_by_period(active_payments, "today", report_date)
        active_donations = filter_by_period(active_donations, "today", report_date)
        grouping = "daily"

    donation_buckets = {b.period: b for b in group_by_period(active_donations, grouping)}
    payment_buckets = {b.period: b for b in group_by_period(active_payments, grouping)}

    rows: list[dict[str, Any]] = []
    for key in sorted(set(donation_buckets) | set(payment_buckets)):
        donation_bucket = donation_buckets.get(key)
        payment_bucket = payment_buckets.get(key)
        donations_cents = donation_bucket.total_cents if donation_bucket else 0
        event_fees_cents = payment_bucket.total_cents if payment_bucket else 0
        count = (donation_bucket.count if donation_bucket else 0) + (
            payment_bucket.count if payment_bucket else 0
        )
        rows.append(
            {
                "period": key,
                "label": "Today" if granularity == "today" else period_label(key, grouping),
                "donations_cents": donations_cents,
                "event_fees_cents": event_fees_cents,
                "total_cents": donations_cents + event_fees_cents,
                "count": count,
            }
        )

    cumulative = dict(
        running_totals(
            PeriodBucket(period=row["period"], total_cents=row["total_cents"], count=row["count"])
            for row in rows
        )
    )
    for row in rows:
        row["cumulative_cents"] = cumulative[row["period"]]

    totals = {
        "donations_cents": sum(row["donations_cents"] for row in rows),
        "event_fees_cents": sum(row["event_fees_cents"] for row in rows),
        "total_cents": sum(row["total_cents"] for row in rows),
        "count": sum(row["count"] for row in rows),
    }
    return {"granularity": granularity, "rows": rows, "totals": totals}


def donations_summary(
    donations: Iterable[Donation],
    period: str = "month",
    today: date | None = None,
) -> dict[str, Any]:
    selected = filter_by_period(exclude_voided(donations), period, today)
    amount = total_cents(selected)
    count = len(selected)
    return {
        "period": period,
        "total_cents": amount,
        "count": count,
        "average_cents": average_cents(selected),
        "unique_donors": unique_count(
            donation.donor for donation in selected if donation.donor != "Anonymous"
        ),
        "categories": _breakdown_rows(category_totals(selected)),
    }


_BREAKDOWN_WINDOWS = {"daily": "today", "weekly": "week", "monthly": "month"}


def category_breakdown(
    donations: Iterable[Donation],
    window: str = "monthly",
    today: date | None = None,
) -> dict[str, Any]:
    period = _BREAKDOWN_WINDOWS.get(window)
    if period is None:
        raise ValueError("Breakdown window must be daily, weekly, or monthly.")
    selected = filter_by_period(exclude_voided(donations), period, today)
    totals = category_totals(selected)
    return {
        "window": window,
        "total_cents": sum(totals.values()),
        "categories": _breakdown_rows(totals),
    }


def monthly_income_summary(
    donations: Iterable[Donation],
    payments: Iterable[PaymentRecord],
    months: int = 6,
    today: date | None = None,
) -> list[dict[str, Any]]:
    donation_months = monthly_series(exclude_voided(donations), months, today)
    payment_months = monthly_series(exclude_voided(payments), months, today)

    rows: list[dict[str, Any]] = []
    for donation_bucket, payment_bucket in zip(donation_months, payment_months):
        month_total = donation_bucket.total_cents + payment_bucket.total_cents
        rows.append(
            {
                "month": donation_bucket.period,
                "label": period_label(donation_bucket.period, "monthly"),
                "donations_cents": donation_bucket.total_cents,
                "event_fees_cents": payment_bucket.total_cents,
                "total_cents": month_total,
                "donations_share": percent_of(donation_bucket.total_cents, month_total),
                "event_fees_share": percent_of(payment_bucket.total_cents, month_total),
            }
        )
    return rows


def report_range(report_type: str, year: int, month: int = 1) -> DateRange:
    if report_type == "monthly":
        return month_bounds(date(year, month, 1))
    if report_type == "quarterly":
        return quarter_bounds(year, (month - 1) // 3 + 1)
    if report_type == "annual":
        return year_bounds(year)
    raise ValueError(f"Report type must be one of: {', '.join(REPORT_TYPES)}.")


def financial_report(
    donations: Iterable[Donation],
    payments: Iterable[PaymentRecord],
    report_type: str,
    year: int,
    month: int = 1,
) -> dict[str, Any]:
    window = report_range(report_type, year, month)
    selected_donations = filter_by_date_range(exclude_voided(donations), window.start, window.end)
    selected_payments = filter_by_date_range(exclude_voided(payments), window.start, window.end)

    service_counts: dict[str, int] = defaultdict(int)
    for payment in selected_payments:
        service_counts[payment.service] += 1

    services = _breakdown_rows(category_totals(selected_payments))
    for row in services:
        row["count"] = service_counts[row["name"]]

    donations_cents = total_cents(selected_donations)
    event_fees_cents = total_cents(selected_payments)
    return {
        "report_type": report_type,
        "start": window.start,
        "end": window.end,
        "donations_cents": donations_cents,
        "event_fees_cents": event_fees_cents,
        "total_cents": donations_cents + event_fees_cents,
        "donation_count": len(selected_donations),
        "payment_count": len(selected_payments),
        "donation_categories": _breakdown_rows(category_totals(selected_donations)),
        "event_fee_services": services,
    }


def donor_history(
    donations: Iterable[Donation],
    donor: str,
    today: date | None = None,
) -> dict[str, Any]:
    report_date = today or date.today()
    needle = donor.strip().lower()
    gifts = [
        donation
        for donation in exclude_voided(donations)
        if needle and donation.donor.lower() == needle
    ]
    gifts.sort(key=lambda gift: (gift.day or date.min, gift.id or 0), reverse=True)
    this_year = [gift for gift in gifts if gift.day and gift.day.year == report_date.year]
    return {
        "donor": donor.strip(),
        "year_total_cents": total_cents(this_year),
        "all_time_cents": total_cents(gifts),
        "gift_count": len(gifts),
        "categories": _breakdown_rows(category_totals(gifts)),
        "gifts": gifts,
    }


@dataclass(frozen=True)
class Page(Generic[ItemT]):
    items: list[ItemT]
    page: int
    pages: int
    total: int


def paginate(items: Sequence[ItemT], page: int = 1, per_page: int = 10) -> Page[ItemT]:
    if per_page <= 0:
        raise ValueError("Items per page must be positive.")
    total = len(items)
    pages = max(1, -(-total // per_page))
    current = min(max(page, 1), pages)
    start = (current - 1) * per_page
    return Page(items=list(items[start:start + per_page]), page=current, pages=pages, total=total)


def ledger_frame(items: Iterable[Transaction]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Date": format_date_short(item.day),
                "Type": "Donation" if item.kind == "donation" else "Event Payment",
                "From": item.party,
                "Category": item.label,
                "Amount": amount_from_cents(item.amount_cents),
                "Status": "Voided" if item.is_voided else "Active",
                "Void Reason": item.void_reason or "",
            }
            for item in items
        ]
    )


def payment_report_frame(report: dict[str, Any]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Period": row["label"],
                "Donations": amount_from_cents(row["donations_cents"]),
                "Event Fees": amount_from_cents(row["event_fees_cents"]),
                "Total": amount_from_cents(row["total_cents"]),
                "Transactions": row["count"],
                "Cumulative": amount_from_cents(row["cumulative_cents"]),
            }
            for row in report["rows"]
        ]
    )


def breakdown_frame(rows: Iterable[dict[str, Any]], name_label: str = "Category") -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                name_label: row["name"],
                "Amount": amount_from_cents(row["total_cents"]),
                "Share (%)": row["share"],
            }
            for row in rows
        ]
    )


def audit_frame(logs: Iterable[AuditLog]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Timestamp": log.timestamp.strftime("%Y-%m-%d %H:%M:%S") if log.timestamp else "N/A",
                "User": log.user,
                "Role": log.role,
                "Action": log.action,
                "Module": log.module,
                "Details": log.details,
                "IP Address": log.ip,
            }
            for log in logs
        ]
    )


def to_csv_bytes(frame: pd.DataFrame) -> bytes:
    return frame.to_csv(index=False).encode("utf-8")
