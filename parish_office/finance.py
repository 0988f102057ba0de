"""Recording and voiding donations and event payments."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date, datetime
from typing import Any

from .api import ParishApi
from .audit import Actor, AuditAction, AuditModule, AuditTrail
from .records import (
    Donation,
    PaymentRecord,
    amount_from_cents,
    cents_from_amount,
    clean_text,
    format_currency,
)

logger = logging.getLogger(__name__)

DONATION_CATEGORIES = [
    "Tithes",
    "Sunday Offerings",
    "Building Fund",
    "Special Collection",
    "Mass Intention",
    "Other",
]
PAYMENT_METHODS = ["Cash", "GCash", "Bank Transfer", "Check", "Credit Card"]


def _receipt_number(prefix: str, now: datetime | None = None) -> str:
    moment = now or datetime.now()
    return f"{prefix}-{int(moment.timestamp() * 1000)}"


def _positive_cents(amount: Any) -> int:
    cents = cents_from_amount(amount)
    if cents <= 0:
        raise ValueError("Please enter a valid amount.")
    return cents


def record_donation(
    api: ParishApi,
    trail: AuditTrail,
    actor: Actor,
    donor: str | None,
    category: str,
    amount: Any,
    payment_method: str,
    receipt_number: str | None = None,
    notes: str | None = None,
    anonymous: bool = False,
    today: date | None = None,
) -> dict[str, Any]:
    cents = _positive_cents(amount)
    clean_category = clean_text(category)
    if not clean_category:
        raise ValueError("Donation category is required.")

    donation_data = {
        "donor": "Anonymous" if anonymous else (clean_text(donor) or "Anonymous"),
        "category": clean_category,
        "amount": amount_from_cents(cents),
        "payment_method": clean_text(payment_method) or "Cash",
        "receipt_number": clean_text(receipt_number) or _receipt_number("DN"),
        "notes": clean_text(notes),
        "recorded_by": actor.name,
        "date": (today or date.today()).isoformat(),
    }

    created = api.donations.create(donation_data)
    record_id = created.get("id") if isinstance(created, dict) else None
    trail.log_activity(
        actor=actor,
        action=AuditAction.CREATE,
        module=AuditModule.DONATIONS,
        details=f"Recorded donation of {format_currency(cents)} - {clean_category}",
        record_id=record_id if isinstance(record_id, int) else None,
        new_value=donation_data,
    )
    return donation_data


def record_payment(
    api: ParishApi,
    trail: AuditTrail,
    actor: Actor,
    payer: str | None,
    service_name: str,
    amount: Any,
    payment_method: str,
    reference_number: str | None = None,
    description: str | None = None,
    user_id: int | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    cents = _positive_cents(amount)
    clean_service = clean_text(service_name)
    if not clean_service:
        raise ValueError("Service or event is required.")

    payment_data = {
        "user_id": user_id,
        "payer_name": clean_text(payer) or "Walk-in",
        "payment_type": "event_fee",
        "service_name": clean_service,
        "amount": amount_from_cents(cents),
        "payment_method": clean_text(payment_method) or "Cash",
        "reference_number": clean_text(reference_number) or _receipt_number("PAY"),
        "description": clean_text(description),
        "recorded_by": actor.name,
        "payment_date": (today or date.today()).isoformat(),
        "visible_to_user": user_id is not None,
    }

    created = api.payment_records.create(payment_data)
    record_id = created.get("id") if isinstance(created, dict) else None
    trail.log_activity(
        actor=actor,
        action=AuditAction.PAYMENT,
        module=AuditModule.PAYMENTS,
        details=f"Recorded payment of {format_currency(cents)} - {clean_service}",
        record_id=record_id if isinstance(record_id, int) else None,
        new_value=payment_data,
    )
    return payment_data


def void_transaction(
    api: ParishApi,
    trail: AuditTrail,
    actor: Actor,
    transaction: Donation | PaymentRecord,
    reason: str,
) -> dict[str, Any]:
    clean_reason = clean_text(reason)
    if not clean_reason:
        raise ValueError("Please provide a reason for voiding this transaction.")
    if transaction.is_voided:
        raise ValueError("This transaction has already been voided.")
    if transaction.id is None:
        raise ValueError("Only saved transactions can be voided.")

    update = {
        "is_voided": True,
        "void_reason": clean_reason,
        "voided_by": actor.name,
        "voided_at": datetime.now().isoformat(timespec="seconds"),
    }

    if isinstance(transaction, Donation):
        api.donations.update(transaction.id, update)
        module = AuditModule.DONATIONS
        noun = "donation"
    else:
        api.payment_records.update(transaction.id, update)
        module = AuditModule.PAYMENTS
        noun = "payment"

    old_value = asdict(transaction)
    trail.log_activity(
        actor=actor,
        action=AuditAction.VOID,
        module=module,
        details=(
            f"Voided {noun} #{transaction.id} of {format_currency(transaction.amount_cents)}: "
            f"{clean_reason}"
        ),
        record_id=transaction.id,
        old_value=old_value,
        new_value={**old_value, "is_voided": True, "void_reason": clean_reason},
    )
    logger.info("Voided %s #%s", noun, transaction.id)
    return update
