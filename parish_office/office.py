"""Office desk actions: sacrament records, service requests, notifications, accounts."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable

from .api import ParishApi
from .audit import Actor, AuditAction, AuditModule, AuditTrail
from .records import (
    Notification,
    SacramentRecord,
    ServiceRequest,
    UserAccount,
    clean_text,
    format_currency,
)

logger = logging.getLogger(__name__)

REQUEST_STATUSES = (
    "pending",
    "processing",
    "approved",
    "scheduled",
    "completed",
    "rejected",
    "cancelled",
)
PAYMENT_STATUSES = ("unpaid", "processing", "paid", "waived")
MIN_PASSWORD_LENGTH = 8


def filter_sacrament_records(
    records: Iterable[SacramentRecord],
    search: str = "",
    kind: str = "all",
) -> list[SacramentRecord]:
    needle = search.strip().lower()
    kept: list[SacramentRecord] = []
    for record in records:
        if kind != "all" and record.kind != kind:
            continue
        haystack = (record.name, record.partner or "", record.place or "", record.certificate_no or "")
        if needle and not any(needle in value.lower() for value in haystack):
            continue
        kept.append(record)
    kept.sort(key=lambda record: record.day or date.min, reverse=True)
    return kept


def filter_service_requests(
    requests: Iterable[ServiceRequest],
    search: str = "",
    status: str = "all",
) -> list[ServiceRequest]:
    needle = search.strip().lower()
    return [
        request
        for request in requests
        if (status == "all" or request.status == status)
        and (
            not needle
            or any(
                needle in value.lower()
                for value in (request.requester, request.request_type, request.participant or "")
            )
        )
    ]


def request_status_counts(requests: Iterable[ServiceRequest]) -> dict[str, int]:
    counts = {status: 0 for status in REQUEST_STATUSES}
    for request in requests:
        counts[request.status] = counts.get(request.status, 0) + 1
    return counts


def _saved_id(record_id: int | None, noun: str) -> int:
    if record_id is None:
        raise ValueError(f"Only saved {noun}s can be updated.")
    return record_id


def update_request_status(
    api: ParishApi,
    trail: AuditTrail,
    actor: Actor,
    request: ServiceRequest,
    status: str,
    notes: str | None = None,
) -> dict[str, Any]:
    if status not in REQUEST_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(REQUEST_STATUSES)}.")
    record_id = _saved_id(request.id, "request")
    if status in {"approved", "scheduled", "completed"} and request.awaiting_payment:
        raise ValueError("Payment must be settled or waived before this request can be approved.")

    update = {
        "status": status,
        "admin_notes": clean_text(notes),
        "processed_by": actor.name,
        "processed_at": datetime.now().isoformat(timespec="seconds"),
    }
    api.service_requests.update(record_id, update)

    action = {"approved": AuditAction.APPROVE, "rejected": AuditAction.REJECT}.get(status, AuditAction.UPDATE)
    trail.log_activity(
        actor=actor,
        action=action,
        module=AuditModule.SERVICE_REQUESTS,
        details=f"Set {request.request_type} request #{record_id} to {status}",
        record_id=record_id,
        old_value={"status": request.status},
        new_value={"status": status},
    )
    return update


def update_request_payment_status(
    api: ParishApi,
    trail: AuditTrail,
    actor: Actor,
    request: ServiceRequest,
    payment_status: str,
) -> dict[str, Any]:
    if payment_status not in PAYMENT_STATUSES:
        raise ValueError(f"Payment status must be one of: {', '.join(PAYMENT_STATUSES)}.")
    record_id = _saved_id(request.id, "request")

    update = {"payment_status": payment_status}
    api.service_requests.update_payment_status(record_id, update)

    trail.log_activity(
        actor=actor,
        action=AuditAction.PAYMENT if payment_status == "paid" else AuditAction.UPDATE,
        module=AuditModule.SERVICE_REQUESTS,
        details=(
            f"Marked {request.request_type} request #{record_id} as {payment_status}"
            f" ({format_currency(request.fee_cents)})"
        ),
        record_id=record_id,
        old_value={"payment_status": request.payment_status},
        new_value=update,
    )
    return update


def unread_count(notifications: Iterable[Notification]) -> int:
    return sum(1 for notification in notifications if not notification.read)


def mark_notification_read(api: ParishApi, notification: Notification) -> bool:
    if notification.read:
        return False
    api.notifications.mark_as_read(_saved_id(notification.id, "notification"))
    return True


def mark_all_notifications_read(api: ParishApi, notifications: Iterable[Notification]) -> int:
    pending = unread_count(notifications)
    if pending:
        api.notifications.mark_all_as_read()
    return pending


def filter_accounts(
    accounts: Iterable[UserAccount],
    search: str = "",
    role: str = "all",
) -> list[UserAccount]:
    needle = search.strip().lower()
    return [
        account
        for account in accounts
        if (role == "all" or account.role == role)
        and (not needle or needle in account.name.lower() or needle in (account.email or "").lower())
    ]


def toggle_account_status(
    api: ParishApi,
    trail: AuditTrail,
    actor: Actor,
    account: UserAccount,
) -> bool:
    record_id = _saved_id(account.id, "account")
    if account.active and actor.user_id == record_id:
        raise ValueError("You cannot deactivate your own account.")

    api.users.toggle_status(record_id)
    now_active = not account.active
    trail.log_activity(
        actor=actor,
        action=AuditAction.UPDATE,
        module=AuditModule.USERS,
        details=f"{'Activated' if now_active else 'Deactivated'} account {account.name}",
        record_id=record_id,
        old_value={"active": account.active},
        new_value={"active": now_active},
    )
    logger.info("Account %s is now %s", record_id, "active" if now_active else "inactive")
    return now_active


def reset_account_password(
    api: ParishApi,
    trail: AuditTrail,
    actor: Actor,
    account: UserAccount,
    password: str,
    confirmation: str,
) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if password != confirmation:
        raise ValueError("Passwords do not match.")
    record_id = _saved_id(account.id, "account")

    api.users.reset_password(
        record_id,
        {"password": password, "password_confirmation": confirmation},
    )
    trail.log_activity(
        actor=actor,
        action=AuditAction.UPDATE,
        module=AuditModule.USERS,
        details=f"Reset password for {account.name}",
        record_id=record_id,
    )
