"""Streamlit app for parish finance, records, and activity review."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable

import pandas as pd
import streamlit as st

from parish_office import (
    Actor,
    ApiClient,
    ApiError,
    Appointment,
    AuditAction,
    AuditModule,
    AuditTrail,
    Category,
    Donation,
    LocalCache,
    Member,
    ParishApi,
    PaymentRecord,
    fetch_lists,
    format_currency,
    format_date,
    load_settings,
    member_display_name,
    unwrap_list,
)
from parish_office.aggregation import filter_by_period
from parish_office.audit import filter_logs
from parish_office.finance import (
    DONATION_CATEGORIES,
    PAYMENT_METHODS,
    record_donation,
    record_payment,
    void_transaction,
)
from parish_office.office import (
    PAYMENT_STATUSES,
    REQUEST_STATUSES,
    filter_accounts,
    filter_sacrament_records,
    filter_service_requests,
    mark_all_notifications_read,
    mark_notification_read,
    request_status_counts,
    reset_account_password,
    toggle_account_status,
    unread_count,
    update_request_payment_status,
    update_request_status,
)
from parish_office.records import (
    SACRAMENT_KINDS,
    Notification,
    SacramentRecord,
    ServiceRequest,
    UserAccount,
    amount_from_cents,
    parse_user_id,
)
from parish_office.reports import (
    audit_frame,
    breakdown_frame,
    category_breakdown,
    combined_ledger,
    donations_summary,
    donor_history,
    filter_transactions,
    finance_stats,
    financial_report,
    ledger_frame,
    monthly_income_summary,
    paginate,
    payment_report,
    payment_report_frame,
    revenue_trend,
    to_csv_bytes,
)
from parish_office.roles import ROLE_LABELS, dashboard_path, has_permission, pages_for_role


SETTINGS = load_settings()
logging.basicConfig(level=SETTINGS.log_level)
logger = logging.getLogger(__name__)

CACHE = LocalCache(SETTINGS.cache_path)
API = ParishApi(
    ApiClient(
        SETTINGS.api_base_url,
        token=SETTINGS.api_token,
        timeout=SETTINGS.request_timeout,
    )
)
TRAIL = AuditTrail(API, CACHE, limit=SETTINGS.audit_cache_limit)

PERIOD_OPTIONS = {
    "all": "All Time",
    "today": "Today",
    "week": "Last 7 Days",
    "month": "This Month",
    "year": "This Year",
}
GRANULARITY_OPTIONS = {
    "today": "Today",
    "daily": "Daily",
    "weekly": "Weekly",
    "monthly": "Monthly",
    "yearly": "Yearly",
}
MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]


def _inject_styles() -> None:
    st.markdown(
        """
        <style>
          :root {
            --parish-navy: #0a1628;
            --parish-blue: #1e3a8a;
            --parish-sky: #eff6ff;
            --parish-card: #ffffff;
            --parish-text: #111827;
            --parish-muted: #1e3a8a;
            --parish-border: #bfdbfe;
          }

          .stApp {
            background: linear-gradient(160deg, #f8fafc 0%, var(--parish-sky) 55%, #f1f5f9 100%);
            color: var(--parish-text);
          }

          .parish-hero {
            background: linear-gradient(120deg, #000000, var(--parish-navy) 45%, var(--parish-blue));
            border-radius: 16px;
            color: #ffffff;
            padding: 1.1rem 1.25rem;
            box-shadow: 0 14px 28px rgba(10, 22, 40, 0.3);
            margin-bottom: 1rem;
          }

          .parish-hero h1,
          .parish-hero p {
            color: #ffffff !important;
            margin: 0;
          }

          .parish-hero p {
            margin-top: 0.45rem;
            opacity: 0.9;
          }

          .metric-card {
            border-radius: 12px;
            border: 1px solid var(--parish-border);
            background: var(--parish-card);
            box-shadow: 0 4px 12px rgba(30, 58, 138, 0.08);
            padding: 0.75rem 0.85rem;
            min-height: 104px;
          }

          .metric-label {
            margin: 0;
            color: var(--parish-muted);
            font-weight: 600;
            font-size: 0.84rem;
          }

          .metric-value {
            margin: 0.3rem 0 0;
            color: var(--parish-text);
            font-size: 1.45rem;
            font-weight: 700;
          }

          .metric-sub {
            margin: 0.35rem 0 0;
            color: #4b5563;
            font-size: 0.8rem;
          }

          .section-note {
            color: var(--parish-muted);
            margin-top: -0.2rem;
            margin-bottom: 0.8rem;
          }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _render_metric_card(title: str, value: str, subtitle: str) -> None:
    st.markdown(
        f"""
        <div class="metric-card">
          <p class="metric-label">{title}</p>
          <p class="metric-value">{value}</p>
          <p class="metric-sub">{subtitle}</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def _hero(role: str) -> None:
    st.markdown(
        f"""
        <div class="parish-hero">
          <h1>Parish Office</h1>
          <p>{ROLE_LABELS[role]} workspace &middot; {dashboard_path(role)}</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def _section_note(text: str) -> None:
    st.markdown(f"<p class='section-note'>{text}</p>", unsafe_allow_html=True)


def _money(cents: int) -> str:
    return format_currency(int(cents), SETTINGS.currency_symbol)


def _table_or_info(frame: pd.DataFrame, empty_message: str) -> None:
    if frame.empty:
        st.info(empty_message)
        return
    st.dataframe(frame, use_container_width=True, hide_index=True)


def _download(frame: pd.DataFrame, label: str, file_stem: str, key: str) -> bool:
    if frame.empty:
        return False
    return st.download_button(
        label,
        data=to_csv_bytes(frame),
        file_name=f"{file_stem}-{date.today().isoformat()}.csv",
        mime="text/csv",
        key=key,
    )


def _load(*names: str) -> dict[str, list[Any]]:
    results, errors = fetch_lists(API, names)
    for name, rows in results.items():
        if name in errors:
            results[name] = CACHE.get_value(f"list:{name}", default=[])
            st.toast(f"Failed to load {name.replace('_', ' ')}: {errors[name]}", icon="⚠️")
        else:
            CACHE.set_value(f"list:{name}", rows)
    return results


def _load_finance() -> tuple[list[Donation], list[PaymentRecord]]:
    data = _load("donations", "payment_records")
    donations = [Donation.from_api(row) for row in data["donations"] if isinstance(row, dict)]
    payments = [PaymentRecord.from_api(row) for row in data["payment_records"] if isinstance(row, dict)]
    return donations, payments


def _acting_user_id() -> int | None:
    return parse_user_id(st.session_state.get("acting_user_id"))


def _current_actor(role: str) -> Actor:
    return Actor(
        user_id=_acting_user_id(),
        name=st.session_state.get("acting_user_name") or ROLE_LABELS[role],
        role=role,
    )


def _log_export(role: str, module: str, details: str) -> None:
    TRAIL.log_activity(
        actor=_current_actor(role),
        action=AuditAction.EXPORT,
        module=module,
        details=details,
    )


def _render_accountant_dashboard(role: str) -> None:
    donations, payments = _load_finance()
    today = date.today()
    stats = finance_stats(donations, payments, today=today)
    today_payments = filter_by_period(
        [payment for payment in payments if not payment.is_voided], "today", today
    )

    metric_columns = st.columns(4)
    with metric_columns[0]:
        _render_metric_card(
            "Total Revenue",
            _money(stats["combined"]["total_cents"]),
            f"{stats['combined']['count']} active transactions",
        )
    with metric_columns[1]:
        collected_today = stats["donations"]["today_cents"] + sum(
            payment.amount_cents for payment in today_payments
        )
        _render_metric_card("Collections Today", _money(collected_today), today.strftime("%b %d, %Y"))
    with metric_columns[2]:
        _render_metric_card(
            "Pending Payments",
            str(stats["event_payments"]["pending"]),
            "Unpaid or pending event fees",
        )
    with metric_columns[3]:
        income = monthly_income_summary(donations, payments, months=1, today=today)
        _render_metric_card("Monthly Income", _money(income[-1]["total_cents"]), "This calendar month")

    st.markdown("### Monthly Income Summary")
    _section_note("Six-month revenue breakdown of donations and event fees.")
    income_rows = monthly_income_summary(donations, payments, months=6, today=today)
    income_df = pd.DataFrame(
        [
            {
                "Month": row["label"],
                "Donations": amount_from_cents(row["donations_cents"]),
                "Event Fees": amount_from_cents(row["event_fees_cents"]),
            }
            for row in income_rows
        ]
    ).set_index("Month")
    st.bar_chart(income_df, color=["#0A1628", "#1E3A8A"])

    st.markdown("### Donation Summary")
    window = st.selectbox(
        "Breakdown",
        options=["daily", "weekly", "monthly"],
        index=2,
        format_func=str.title,
        key="accountant-breakdown-window",
    )
    breakdown = category_breakdown(donations, window=window, today=today)
    st.metric("Total", _money(breakdown["total_cents"]))
    _table_or_info(
        breakdown_frame(breakdown["categories"]),
        "No donations recorded for this window.",
    )


def _render_priest_dashboard(role: str) -> None:
    donations, _ = _load_finance()
    summary = donations_summary(donations, period="month")
    data = _load("appointments")
    appointments = [Appointment.from_api(row) for row in data["appointments"] if isinstance(row, dict)]
    upcoming = sorted(
        (item for item in appointments if item.day and item.day >= date.today()),
        key=lambda item: item.day or date.max,
    )

    metric_columns = st.columns(3)
    with metric_columns[0]:
        _render_metric_card("This Month's Collections", _money(summary["total_cents"]), f"{summary['count']} gifts")
    with metric_columns[1]:
        _render_metric_card("Unique Donors", str(summary["unique_donors"]), "Named donors this month")
    with metric_columns[2]:
        _render_metric_card("Upcoming Appointments", str(len(upcoming)), "From today onward")

    st.markdown("### Upcoming Appointments")
    _table_or_info(_appointments_frame(upcoming[:10]), "No upcoming appointments.")


def _render_admin_dashboard(role: str) -> None:
    data = _load("members", "users", "donations", "payment_records", "appointments")
    donations = [Donation.from_api(row) for row in data["donations"] if isinstance(row, dict)]
    payments = [PaymentRecord.from_api(row) for row in data["payment_records"] if isinstance(row, dict)]
    stats = finance_stats(donations, payments)

    metric_columns = st.columns(4)
    with metric_columns[0]:
        _render_metric_card("Members", str(len(data["members"])), "Registered parishioners")
    with metric_columns[1]:
        _render_metric_card("User Accounts", str(len(data["users"])), "Staff and parishioner logins")
    with metric_columns[2]:
        _render_metric_card("Total Revenue", _money(stats["combined"]["total_cents"]), "Donations and event fees")
    with metric_columns[3]:
        _render_metric_card("Appointments", str(len(data["appointments"])), "All scheduled services")

    st.markdown("### Revenue, Last 12 Months")
    income_rows = monthly_income_summary(donations, payments, months=12)
    income_df = pd.DataFrame(
        [
            {"Month": row["label"], "Total": amount_from_cents(row["total_cents"])}
            for row in income_rows
        ]
    ).set_index("Month")
    st.bar_chart(income_df["Total"], color="#1E3A8A")

    st.markdown("### Recent Activity")
    recent = TRAIL.load()[:8]
    _table_or_info(audit_frame(recent), "No activity recorded yet.")


def _render_church_admin_dashboard(role: str) -> None:
    data = _load("members", "appointments", "schedules", "service_requests")
    members = [Member.from_api(row) for row in data["members"] if isinstance(row, dict)]
    appointments = [Appointment.from_api(row) for row in data["appointments"] if isinstance(row, dict)]
    pending = [item for item in appointments if item.status == "pending"]

    metric_columns = st.columns(4)
    with metric_columns[0]:
        active = sum(1 for member in members if member.status.lower() == "active")
        _render_metric_card("Members", str(len(members)), f"{active} active")
    with metric_columns[1]:
        _render_metric_card("Pending Appointments", str(len(pending)), "Awaiting confirmation")
    with metric_columns[2]:
        _render_metric_card("Schedules", str(len(data["schedules"])), "Masses and staff schedules")
    with metric_columns[3]:
        _render_metric_card("Service Requests", str(len(data["service_requests"])), "All requests")

    st.markdown("### Pending Appointments")
    _table_or_info(_appointments_frame(pending), "No pending appointments.")


def _render_user_dashboard(role: str) -> None:
    payments = _load_user_payments()
    active = [payment for payment in payments if not payment.is_voided]
    metric_columns = st.columns(2)
    with metric_columns[0]:
        _render_metric_card(
            "Total Paid",
            _money(sum(payment.amount_cents for payment in active)),
            f"{len(active)} payments",
        )
    with metric_columns[1]:
        pending = sum(1 for payment in active if payment.payment_status in {"unpaid", "pending"})
        _render_metric_card("Pending", str(pending), "Payments awaiting settlement")


def render_dashboard(role: str) -> None:
    renderers = {
        "admin": _render_admin_dashboard,
        "priest": _render_priest_dashboard,
        "accountant": _render_accountant_dashboard,
        "church_admin": _render_church_admin_dashboard,
        "user": _render_user_dashboard,
    }
    st.markdown("### Dashboard")
    renderers[role](role)


def render_finance_page(role: str) -> None:
    st.markdown("### Finance & Donations")
    _section_note("Donations, event payments, and the combined ledger.")

    donations, payments = _load_finance()
    stats = finance_stats(donations, payments)

    metric_columns = st.columns(4)
    with metric_columns[0]:
        _render_metric_card(
            "Donations",
            _money(stats["donations"]["total_cents"]),
            f"{stats['donations']['count']} active, {stats['donations']['voided']} voided",
        )
    with metric_columns[1]:
        _render_metric_card("Donations Today", _money(stats["donations"]["today_cents"]), "Recorded today")
    with metric_columns[2]:
        _render_metric_card(
            "Event Payments",
            _money(stats["event_payments"]["total_cents"]),
            f"{stats['event_payments']['pending']} pending",
        )
    with metric_columns[3]:
        _render_metric_card(
            "Combined",
            _money(stats["combined"]["total_cents"]),
            f"{stats['combined']['voided']} voided overall",
        )

    tabs = st.tabs(["Ledger", "7-Day Trend", "Donor History"])

    with tabs[0]:
        filters = st.columns([2, 1, 1], gap="small")
        with filters[0]:
            search = st.text_input(
                "Search",
                placeholder="donor, payer, category, or service",
                key="finance-search",
            )
        with filters[1]:
            period = st.selectbox(
                "Period",
                options=list(PERIOD_OPTIONS),
                format_func=PERIOD_OPTIONS.get,
                key="finance-period",
            )
        with filters[2]:
            status = st.selectbox(
                "Status",
                options=["all", "active", "voided"],
                format_func=str.title,
                key="finance-status",
            )

        ledger = filter_transactions(
            combined_ledger(donations, payments),
            search=search,
            period=period,
            status=status,
        )
        page_number = st.number_input("Page", min_value=1, value=1, step=1, key="finance-page")
        page = paginate(ledger, page=int(page_number), per_page=10)
        st.caption(f"Page {page.page} of {page.pages} | {page.total} transactions")
        _table_or_info(ledger_frame(page.items), "No transactions match the selected filters.")
        if _download(ledger_frame(ledger), "Download Ledger CSV", "finance-ledger", "finance-download"):
            _log_export(role, AuditModule.REPORTS, f"Exported finance ledger ({len(ledger)} rows)")

    with tabs[1]:
        trend = revenue_trend(donations, payments, days=7)
        trend_df = pd.DataFrame(
            [
                {
                    "Day": row["label"],
                    "Donations": amount_from_cents(row["donations_cents"]),
                    "Event Fees": amount_from_cents(row["event_fees_cents"]),
                    "Total": amount_from_cents(row["total_cents"]),
                }
                for row in trend
            ]
        ).set_index("Day")
        st.line_chart(trend_df)

    with tabs[2]:
        donor_names = sorted({donation.donor for donation in donations if donation.donor != "Anonymous"})
        if not donor_names:
            st.info("No named donors yet.")
        else:
            donor = st.selectbox("Donor", options=donor_names, key="finance-donor")
            history = donor_history(donations, donor)
            history_columns = st.columns(3)
            with history_columns[0]:
                st.metric("This Year", _money(history["year_total_cents"]))
            with history_columns[1]:
                st.metric("All Time", _money(history["all_time_cents"]))
            with history_columns[2]:
                st.metric("Gifts", str(history["gift_count"]))
            _table_or_info(breakdown_frame(history["categories"]), "No gifts recorded.")

    if has_permission(role, "record_payments"):
        _render_recording_forms(role)
    if has_permission(role, "void_transactions"):
        _render_void_form(role, combined_ledger(donations, payments))


def _render_recording_forms(role: str) -> None:
    st.markdown("### Record a Transaction")
    donation_col, payment_col = st.columns(2, gap="large")

    with donation_col:
        with st.form("record-donation-form", clear_on_submit=True):
            st.markdown("**Donation**")
            anonymous = st.checkbox("Anonymous donor")
            donor = st.text_input("Donor Name")
            category = st.selectbox("Category", options=DONATION_CATEGORIES)
            amount = st.number_input("Amount", min_value=0.0, step=50.0, format="%.2f", key="donation-amount")
            method = st.selectbox("Payment Method", options=PAYMENT_METHODS, key="donation-method")
            receipt = st.text_input("Receipt Number", placeholder="Leave blank to generate")
            notes = st.text_area("Notes")
            submitted = st.form_submit_button("Record Donation")

        if submitted:
            try:
                record_donation(
                    API,
                    TRAIL,
                    _current_actor(role),
                    donor=donor,
                    category=category,
                    amount=amount,
                    payment_method=method,
                    receipt_number=receipt,
                    notes=notes,
                    anonymous=anonymous,
                )
                st.toast("Donation recorded successfully", icon="✅")
                st.rerun()
            except (ValueError, ApiError) as exc:
                st.error(str(exc))

    with payment_col:
        with st.form("record-payment-form", clear_on_submit=True):
            st.markdown("**Event / Service Payment**")
            payer = st.text_input("Payer Name")
            service = st.text_input("Service or Event", placeholder="e.g. Baptism, Wedding")
            amount = st.number_input("Amount", min_value=0.0, step=50.0, format="%.2f", key="payment-amount")
            method = st.selectbox("Payment Method", options=PAYMENT_METHODS, key="payment-method")
            reference = st.text_input("Reference Number", placeholder="Leave blank to generate")
            description = st.text_area("Description")
            submitted = st.form_submit_button("Record Payment")

        if submitted:
            try:
                record_payment(
                    API,
                    TRAIL,
                    _current_actor(role),
                    payer=payer,
                    service_name=service,
                    amount=amount,
                    payment_method=method,
                    reference_number=reference,
                    description=description,
                )
                st.toast("Payment recorded successfully", icon="✅")
                st.rerun()
            except (ValueError, ApiError) as exc:
                st.error(str(exc))


def _render_void_form(role: str, ledger: list[Donation | PaymentRecord]) -> None:
    voidable = [item for item in ledger if not item.is_voided and item.id is not None]
    if not voidable:
        return

    st.markdown("### Void a Transaction")
    with st.form("void-transaction-form", clear_on_submit=True):
        selected_index = st.selectbox(
            "Transaction",
            options=list(range(len(voidable))),
            format_func=lambda index: (
                f"#{voidable[index].id} {format_date(voidable[index].day)} "
                f"{_money(voidable[index].amount_cents)} - {voidable[index].party} ({voidable[index].label})"
            ),
        )
        reason = st.text_input("Reason")
        submitted = st.form_submit_button("Void Transaction")

    if submitted:
        try:
            void_transaction(API, TRAIL, _current_actor(role), voidable[selected_index], reason)
            st.toast("Transaction voided", icon="✅")
            st.rerun()
        except (ValueError, ApiError) as exc:
            st.error(str(exc))


def render_payment_reports_page(role: str) -> None:
    st.markdown("### Payment Reports")
    _section_note("Donations and event fees grouped by period.")

    granularity = st.selectbox(
        "Period",
        options=list(GRANULARITY_OPTIONS),
        index=3,
        format_func=GRANULARITY_OPTIONS.get,
        key="payment-report-granularity",
    )
    donations, payments = _load_finance()
    report = payment_report(payments, donations, granularity=granularity)
    totals = report["totals"]

    metric_columns = st.columns(4)
    with metric_columns[0]:
        _render_metric_card("Total Revenue", _money(totals["total_cents"]), GRANULARITY_OPTIONS[granularity])
    with metric_columns[1]:
        _render_metric_card("Donations", _money(totals["donations_cents"]), "Offerings and gifts")
    with metric_columns[2]:
        _render_metric_card("Event Fees", _money(totals["event_fees_cents"]), "Sacraments and services")
    with metric_columns[3]:
        _render_metric_card("Total Transactions", str(totals["count"]), "Active records")

    frame = payment_report_frame(report)
    if not frame.empty:
        st.line_chart(frame.set_index("Period")[["Donations", "Event Fees", "Total"]])
    _table_or_info(frame, "No transactions for this period.")
    if _download(frame, "Download Report CSV", f"payment-report-{granularity}", "payment-report-download"):
        _log_export(role, AuditModule.REPORTS, f"Exported {granularity} payment report")


def render_financial_reports_page(role: str) -> None:
    st.markdown("### Financial Reports")
    today = date.today()

    config = st.columns(3, gap="small")
    with config[0]:
        report_type = st.selectbox(
            "Report Type",
            options=["monthly", "quarterly", "annual"],
            format_func=lambda value: f"{value.title()} Report",
            key="financial-report-type",
        )
    with config[1]:
        month = st.selectbox(
            "Month",
            options=list(range(1, 13)),
            index=today.month - 1,
            format_func=lambda value: MONTH_NAMES[value - 1],
            disabled=report_type == "annual",
            key="financial-report-month",
        )
    with config[2]:
        year = st.selectbox(
            "Year",
            options=list(range(today.year - 3, today.year + 1)),
            index=3,
            key="financial-report-year",
        )

    donations, payments = _load_finance()
    report = financial_report(donations, payments, report_type, year=int(year), month=int(month))
    st.caption(f"{format_date(report['start'])} to {format_date(report['end'])}")

    metric_columns = st.columns(3)
    with metric_columns[0]:
        _render_metric_card("Donations", _money(report["donations_cents"]), f"{report['donation_count']} gifts")
    with metric_columns[1]:
        _render_metric_card("Event Fees", _money(report["event_fees_cents"]), f"{report['payment_count']} payments")
    with metric_columns[2]:
        _render_metric_card("Net Income", _money(report["total_cents"]), "Donations plus event fees")

    left, right = st.columns(2, gap="large")
    with left:
        st.markdown("#### Donation Breakdown")
        categories_df = breakdown_frame(report["donation_categories"])
        _table_or_info(categories_df, "No donations in this range.")
    with right:
        st.markdown("#### Event Fees by Service")
        services_df = breakdown_frame(report["event_fee_services"], name_label="Service")
        if not services_df.empty:
            services_df["Payments"] = [row["count"] for row in report["event_fee_services"]]
        _table_or_info(services_df, "No event payments in this range.")

    if _download(categories_df, "Download Donation Breakdown CSV", f"financial-report-{report_type}", "financial-download"):
        _log_export(role, AuditModule.REPORTS, f"Exported {report_type} financial report for {year}")


def render_donations_summary_page(role: str) -> None:
    st.markdown("### Donations & Collections Summary")
    period = st.selectbox(
        "Period",
        options=["today", "week", "month", "year", "all"],
        index=2,
        format_func=PERIOD_OPTIONS.get,
        key="donations-summary-period",
    )
    donations, _ = _load_finance()
    summary = donations_summary(donations, period=period)

    metric_columns = st.columns(4)
    with metric_columns[0]:
        _render_metric_card("Total Collections", _money(summary["total_cents"]), PERIOD_OPTIONS[period])
    with metric_columns[1]:
        _render_metric_card("Total Donations", str(summary["count"]), "Active gifts")
    with metric_columns[2]:
        _render_metric_card("Average Donation", _money(summary["average_cents"]), "Per gift")
    with metric_columns[3]:
        _render_metric_card("Unique Donors", str(summary["unique_donors"]), "Excluding anonymous")

    frame = breakdown_frame(summary["categories"])
    if not frame.empty:
        st.bar_chart(frame.set_index("Category")["Amount"], color="#1E3A8A")
    _table_or_info(frame, "No donations for this period.")
    if _download(frame, "Download Summary CSV", f"donations-summary-{period}", "donations-summary-download"):
        _log_export(role, AuditModule.REPORTS, f"Exported donations summary ({period})")


def render_audit_log_page(role: str) -> None:
    st.markdown("### Audit Log")
    _section_note("Every recorded action across the parish office, newest first.")

    actions = st.columns([1, 4], gap="small")
    with actions[0]:
        if st.button("Sync Pending", key="audit-sync", use_container_width=True):
            synced = TRAIL.sync_pending()
            st.toast(f"Synced {synced} pending entr{'y' if synced == 1 else 'ies'}", icon="🔄")

    logs = TRAIL.load()
    unsynced = sum(1 for log in logs if not log.synced)

    metric_columns = st.columns(3)
    with metric_columns[0]:
        st.metric("Total Entries", str(len(logs)))
    with metric_columns[1]:
        st.metric("Users", str(len({log.user for log in logs})))
    with metric_columns[2]:
        st.metric("Waiting to Sync", str(unsynced))

    filters = st.columns([2, 1, 1, 1, 1], gap="small")
    with filters[0]:
        search = st.text_input("Search", placeholder="user, module, or details", key="audit-search")
    with filters[1]:
        user = st.selectbox("User", options=["all", *sorted({log.user for log in logs})], key="audit-user")
    with filters[2]:
        action = st.selectbox("Action", options=["all", *sorted({log.action for log in logs})], key="audit-action")
    with filters[3]:
        date_from = st.date_input("From", value=None, key="audit-from")
    with filters[4]:
        date_to = st.date_input("To", value=None, key="audit-to")

    filtered = filter_logs(
        logs,
        search=search,
        user=user,
        action=action,
        date_from=date_from if isinstance(date_from, date) else None,
        date_to=date_to if isinstance(date_to, date) else None,
    )

    per_page = st.selectbox("Rows per page", options=[10, 25, 50], key="audit-per-page")
    page_number = st.number_input("Page", min_value=1, value=1, step=1, key="audit-page")
    page = paginate(filtered, page=int(page_number), per_page=int(per_page))
    st.caption(f"Recent Activity ({page.total} logs) | Page {page.page} of {page.pages}")
    _table_or_info(audit_frame(page.items), "No audit entries match your filters.")
    if _download(audit_frame(filtered), "Download Audit Log CSV", "audit-logs", "audit-download"):
        _log_export(role, AuditModule.REPORTS, f"Exported audit log ({len(filtered)} rows)")


def _categories_frame(categories: Iterable[Category]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Name": category.name,
                "Description": category.description or "-",
                "Suggested Amount": _money(category.suggested_amount_cents),
                "Active": "Yes" if category.active else "No",
            }
            for category in categories
        ]
    )


def render_categories_page(role: str) -> None:
    st.markdown("### Categories")
    data = _load("donation_categories", "event_fee_categories")
    donation_categories = [Category.from_api(row) for row in data["donation_categories"] if isinstance(row, dict)]
    fee_categories = [Category.from_api(row) for row in data["event_fee_categories"] if isinstance(row, dict)]

    left, right = st.columns(2, gap="large")
    with left:
        st.markdown("#### Donation Categories")
        _table_or_info(_categories_frame(donation_categories), "No donation categories yet.")
    with right:
        st.markdown("#### Event Fee Categories")
        _table_or_info(_categories_frame(fee_categories), "No event fee categories yet.")

    if not has_permission(role, "manage_categories"):
        return

    st.markdown("#### Add Category")
    with st.form("add-category-form", clear_on_submit=True):
        kind = st.radio("Type", options=["Donation", "Event Fee"], horizontal=True)
        name = st.text_input("Name")
        suggested = st.number_input("Suggested Amount", min_value=0.0, step=50.0, format="%.2f")
        description = st.text_area("Description")
        submitted = st.form_submit_button("Add Category")

    if submitted:
        if not name.strip():
            st.error("Category name is required.")
            return
        payload = {"name": name.strip(), "description": description.strip() or None, "active": True}
        resource = API.donation_categories
        if kind == "Event Fee":
            payload["suggested_amount"] = suggested
            resource = API.event_fee_categories
        try:
            resource.create(payload)
        except ApiError as exc:
            st.error(str(exc))
            return
        TRAIL.log_activity(
            actor=_current_actor(role),
            action=AuditAction.CREATE,
            module=AuditModule.CATEGORIES,
            details=f"Created {kind.lower()} category {name.strip()}",
            new_value=payload,
        )
        st.toast("Category added", icon="✅")
        st.rerun()


def render_members_page(role: str) -> None:
    st.markdown("### Members")
    search = st.text_input("Search", placeholder="name, email, or phone", key="members-search").strip().lower()
    data = _load("members")
    members = [Member.from_api(row) for row in data["members"] if isinstance(row, dict)]
    if search:
        members = [
            member
            for member in members
            if search in member_display_name(member).lower()
            or search in (member.email or "").lower()
            or search in (member.phone or "")
        ]

    members_df = pd.DataFrame(
        [
            {
                "Name": member_display_name(member),
                "Email": member.email or "-",
                "Phone": member.phone or "-",
                "Status": member.status,
            }
            for member in members
        ]
    )
    _table_or_info(members_df, "No members matched your search.")


def _appointments_frame(appointments: Iterable[Appointment]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Date": format_date(item.day),
                "Time": item.time or "-",
                "Service": item.title,
                "Requested By": item.requester or "-",
                "Status": item.status.title(),
                "Payment": (item.payment_status or "-").title(),
            }
            for item in appointments
        ]
    )


def render_appointments_page(role: str) -> None:
    st.markdown("### Appointments")
    data = _load("appointments")
    appointments = [Appointment.from_api(row) for row in data["appointments"] if isinstance(row, dict)]
    statuses = sorted({item.status for item in appointments})
    selected = st.multiselect("Status", options=statuses, default=statuses, key="appointments-status")
    shown = [item for item in appointments if not selected or item.status in selected]
    shown.sort(key=lambda item: item.day or date.max)
    _table_or_info(_appointments_frame(shown), "No appointments found.")


def _load_user_payments() -> list[PaymentRecord]:
    user_id = _acting_user_id()
    if user_id is None:
        st.info("Enter your user ID in the sidebar to see your payments.")
        return []
    try:
        rows = unwrap_list(API.payment_records.user_payments(user_id))
    except ApiError as exc:
        logger.warning("Loading payments for user %s failed: %s", user_id, exc)
        st.toast(f"Failed to load your payments: {exc}", icon="⚠️")
        return []
    return [PaymentRecord.from_api(row) for row in rows if isinstance(row, dict)]


def render_my_payments_page(role: str) -> None:
    st.markdown("### My Payments")
    payments = _load_user_payments()
    payments_df = pd.DataFrame(
        [
            {
                "Date": format_date(payment.day),
                "Service": payment.service,
                "Amount": _money(payment.amount_cents),
                "Method": payment.payment_method or "-",
                "Reference": payment.reference_number or "-",
                "Status": "Voided" if payment.is_voided else payment.payment_status.title(),
            }
            for payment in sorted(payments, key=lambda item: item.day or date.min, reverse=True)
        ]
    )
    _table_or_info(payments_df, "No payments on record.")


SACRAMENT_RESOURCES = {
    "baptism": "baptism_records",
    "marriage": "marriage_records",
    "birth": "birth_records",
}


def render_sacrament_records_page(role: str) -> None:
    st.markdown("### Sacrament Records")
    _section_note("Baptism, marriage, and birth registers kept by the parish office.")

    data = _load(*SACRAMENT_RESOURCES.values())
    records = [
        SacramentRecord.from_api(row, kind)
        for kind, name in SACRAMENT_RESOURCES.items()
        for row in data[name]
        if isinstance(row, dict)
    ]

    metric_columns = st.columns(len(SACRAMENT_KINDS))
    for column, kind in zip(metric_columns, SACRAMENT_KINDS):
        with column:
            count = sum(1 for record in records if record.kind == kind)
            _render_metric_card(f"{kind.title()} Records", str(count), "On file")

    filters = st.columns([2, 1], gap="small")
    with filters[0]:
        search = st.text_input("Search", placeholder="name, place, or certificate no.", key="sacrament-search")
    with filters[1]:
        kind = st.selectbox(
            "Type",
            options=["all", *SACRAMENT_KINDS],
            format_func=lambda value: "All Types" if value == "all" else value.title(),
            key="sacrament-kind",
        )

    shown = filter_sacrament_records(records, search=search, kind=kind)
    frame = pd.DataFrame(
        [
            {
                "Type": record.kind.title(),
                "Name": record.name,
                "Related Party": record.partner or "-",
                "Date": format_date(record.day),
                "Place": record.place or "-",
                "Certificate No.": record.certificate_no or "-",
                "Status": record.status.title(),
            }
            for record in shown
        ]
    )
    _table_or_info(frame, "No sacrament records match your search.")
    if _download(frame, "Download Records CSV", "sacrament-records", "sacrament-download"):
        _log_export(role, AuditModule.REPORTS, f"Exported sacrament records ({len(shown)} rows)")


def _service_requests_frame(requests: Iterable[ServiceRequest]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "ID": request.id,
                "Service": request.request_type,
                "Requested By": request.requester,
                "Participant": request.participant or "-",
                "Preferred Date": format_date(request.day),
                "Status": request.status.title(),
                "Payment": request.payment_status.upper() if request.requires_payment else "N/A",
                "Fee": _money(request.fee_cents),
            }
            for request in requests
        ]
    )


def render_service_requests_page(role: str) -> None:
    st.markdown("### Service Requests")
    data = _load("service_requests")
    requests = [ServiceRequest.from_api(row) for row in data["service_requests"] if isinstance(row, dict)]
    counts = request_status_counts(requests)

    metric_columns = st.columns(4)
    with metric_columns[0]:
        _render_metric_card("Pending", str(counts["pending"]), "Awaiting review")
    with metric_columns[1]:
        _render_metric_card("Approved", str(counts["approved"]), "Ready to schedule")
    with metric_columns[2]:
        _render_metric_card("Completed", str(counts["completed"]), "Services rendered")
    with metric_columns[3]:
        awaiting = sum(1 for request in requests if request.awaiting_payment)
        _render_metric_card("Awaiting Payment", str(awaiting), "Unpaid fees block approval")

    filters = st.columns([2, 1], gap="small")
    with filters[0]:
        search = st.text_input("Search", placeholder="requester, service, or participant", key="requests-search")
    with filters[1]:
        status = st.selectbox(
            "Status",
            options=["all", *REQUEST_STATUSES],
            format_func=lambda value: "All Status" if value == "all" else value.title(),
            key="requests-status",
        )

    shown = filter_service_requests(requests, search=search, status=status)
    _table_or_info(_service_requests_frame(shown), "No service requests match your filters.")

    editable = [request for request in shown if request.id is not None]
    if not editable:
        return

    st.markdown("#### Update a Request")
    with st.form("service-request-form"):
        selected_index = st.selectbox(
            "Request",
            options=list(range(len(editable))),
            format_func=lambda index: (
                f"#{editable[index].id} {editable[index].request_type} - {editable[index].requester}"
                f" ({editable[index].status})"
            ),
        )
        columns = st.columns(2)
        with columns[0]:
            new_status = st.selectbox("Status", options=REQUEST_STATUSES, format_func=str.title)
            notes = st.text_input("Notes")
            status_clicked = st.form_submit_button("Update Status")
        with columns[1]:
            new_payment = st.selectbox("Payment Status", options=PAYMENT_STATUSES, format_func=str.title)
            payment_clicked = st.form_submit_button("Update Payment")

    request = editable[selected_index]
    try:
        if status_clicked:
            update_request_status(API, TRAIL, _current_actor(role), request, new_status, notes)
            st.toast("Request status updated", icon="✅")
            st.rerun()
        if payment_clicked:
            update_request_payment_status(API, TRAIL, _current_actor(role), request, new_payment)
            st.toast("Payment status updated", icon="✅")
            st.rerun()
    except (ValueError, ApiError) as exc:
        st.error(str(exc))


def _load_notifications() -> list[Notification]:
    user_id = _acting_user_id()
    try:
        response = API.notifications.get_all(params={"user_id": user_id} if user_id else None)
    except ApiError as exc:
        logger.warning("Loading notifications failed: %s", exc)
        st.toast(f"Failed to load notifications: {exc}", icon="⚠️")
        return []
    notifications = [Notification.from_api(row) for row in unwrap_list(response) if isinstance(row, dict)]
    notifications.sort(key=lambda item: (item.day or date.min, item.id or 0), reverse=True)
    return notifications


def render_notifications_page(role: str) -> None:
    st.markdown("### Notifications")
    notifications = _load_notifications()
    unread = unread_count(notifications)

    header = st.columns([3, 1], gap="small")
    with header[0]:
        st.caption(f"{unread} unread of {len(notifications)}")
    with header[1]:
        if st.button("Mark All as Read", disabled=unread == 0, key="notifications-read-all", use_container_width=True):
            try:
                mark_all_notifications_read(API, notifications)
            except ApiError as exc:
                st.error(str(exc))
            else:
                st.rerun()

    if not notifications:
        st.info("You have no notifications.")
        return

    for notification in notifications:
        with st.container(border=True):
            badge = " :blue[New]" if not notification.read else ""
            st.markdown(f"**{notification.title}**{badge}")
            st.caption(f"{format_date(notification.day)} | {notification.type.title()}")
            if notification.message:
                st.write(notification.message)
            if not notification.read and notification.id is not None:
                if st.button("Mark as read", key=f"notification-read-{notification.id}"):
                    try:
                        mark_notification_read(API, notification)
                    except ApiError as exc:
                        st.error(str(exc))
                    else:
                        st.rerun()


def render_user_accounts_page(role: str) -> None:
    st.markdown("### User Accounts")
    data = _load("users")
    accounts = [UserAccount.from_api(row) for row in data["users"] if isinstance(row, dict)]
    active = sum(1 for account in accounts if account.active)

    metric_columns = st.columns(3)
    with metric_columns[0]:
        _render_metric_card("Total Users", str(len(accounts)), "All roles")
    with metric_columns[1]:
        _render_metric_card("Active Users", str(active), "Can sign in")
    with metric_columns[2]:
        _render_metric_card("Inactive Users", str(len(accounts) - active), "Sign-in disabled")

    filters = st.columns([2, 1], gap="small")
    with filters[0]:
        search = st.text_input("Search", placeholder="name or email", key="accounts-search")
    with filters[1]:
        role_filter = st.selectbox(
            "Role",
            options=["all", *ROLE_LABELS],
            format_func=lambda value: "All Roles" if value == "all" else ROLE_LABELS[value],
            key="accounts-role",
        )

    shown = filter_accounts(accounts, search=search, role=role_filter)
    accounts_df = pd.DataFrame(
        [
            {
                "Name": account.name,
                "Email": account.email or "-",
                "Role": ROLE_LABELS.get(account.role, account.role.title()),
                "Status": "Active" if account.active else "Inactive",
            }
            for account in shown
        ]
    )
    _table_or_info(accounts_df, "No accounts match your filters.")

    saved = [account for account in shown if account.id is not None]
    if not saved:
        return

    def account_label(index: int) -> str:
        account = saved[index]
        return f"{account.name} ({'Active' if account.active else 'Inactive'})"

    toggle_col, reset_col = st.columns(2, gap="large")
    with toggle_col:
        with st.form("toggle-account-form"):
            st.markdown("**Activate / Deactivate**")
            toggle_index = st.selectbox(
                "Account", options=list(range(len(saved))), format_func=account_label, key="toggle-account"
            )
            toggled = st.form_submit_button("Toggle Status")
        if toggled:
            try:
                toggle_account_status(API, TRAIL, _current_actor(role), saved[toggle_index])
                st.toast("Account status updated", icon="✅")
                st.rerun()
            except (ValueError, ApiError) as exc:
                st.error(str(exc))

    with reset_col:
        with st.form("reset-password-form", clear_on_submit=True):
            st.markdown("**Reset Password**")
            reset_index = st.selectbox(
                "Account", options=list(range(len(saved))), format_func=account_label, key="reset-account"
            )
            password = st.text_input("New Password", type="password")
            confirmation = st.text_input("Confirm Password", type="password")
            reset = st.form_submit_button("Reset Password")
        if reset:
            try:
                reset_account_password(API, TRAIL, _current_actor(role), saved[reset_index], password, confirmation)
                st.toast("Password reset", icon="✅")
            except (ValueError, ApiError) as exc:
                st.error(str(exc))


PAGE_RENDERERS = {
    "Dashboard": render_dashboard,
    "Finance & Donations": render_finance_page,
    "Payment Reports": render_payment_reports_page,
    "Financial Reports": render_financial_reports_page,
    "Donations Summary": render_donations_summary_page,
    "Audit Log": render_audit_log_page,
    "Categories": render_categories_page,
    "Members": render_members_page,
    "Appointments": render_appointments_page,
    "Sacrament Records": render_sacrament_records_page,
    "Service Requests": render_service_requests_page,
    "User Accounts": render_user_accounts_page,
    "Notifications": render_notifications_page,
    "My Payments": render_my_payments_page,
}


def _sidebar() -> tuple[str, str]:
    with st.sidebar:
        st.markdown("## Parish Office")
        role = st.selectbox(
            "Role",
            options=list(ROLE_LABELS),
            format_func=ROLE_LABELS.get,
            key="acting_role",
        )
        st.text_input("Your Name", key="acting_user_name")
        raw_user_id = st.text_input("User ID", key="acting_user_id")
        if raw_user_id.strip() and parse_user_id(raw_user_id) is None:
            st.warning("User ID must be a positive whole number; it is ignored until corrected.")
        page = st.radio("Page", options=pages_for_role(role), key=f"page-{role}")
        st.caption(f"API: {SETTINGS.api_base_url}")
        st.caption(f"Refreshed {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    return role, page


def main() -> None:
    st.set_page_config(
        page_title="Parish Office",
        page_icon=":church:",
        layout="wide",
    )
    CACHE.init_db()
    _inject_styles()

    role, page = _sidebar()
    _hero(role)
    PAGE_RENDERERS[page](role)


if __name__ == "__main__":
    main()
