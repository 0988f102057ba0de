from __future__ import annotations

import json
from datetime import date
from types import SimpleNamespace
from typing import Any

import pytest

from parish_office.audit import Actor, AuditAction, AuditModule
from parish_office.finance import record_donation, record_payment, void_transaction
from parish_office.records import Donation, PaymentRecord

ACTOR = Actor(user_id=3, name="Grace Villanueva", role="accountant")
TODAY = date(2025, 12, 10)


class FakeResource:
    def __init__(self) -> None:
        self.created: list[dict[str, Any]] = []
        self.updated: list[tuple[int, dict[str, Any]]] = []

    def create(self, data: dict[str, Any]) -> Any:
        self.created.append(data)
        return {"id": 100 + len(self.created), **data}

    def update(self, record_id: int, data: dict[str, Any]) -> Any:
        self.updated.append((record_id, data))
        return {"id": record_id, **data}


class FakeTrail:
    def __init__(self) -> None:
        self.entries: list[dict[str, Any]] = []

    def log_activity(self, **kwargs: Any) -> dict[str, Any]:
        self.entries.append(kwargs)
        return {**kwargs, "synced": True}


def _fakes() -> tuple[Any, FakeTrail]:
    api = SimpleNamespace(donations=FakeResource(), payment_records=FakeResource())
    return api, FakeTrail()


def test_record_donation_posts_and_audits() -> None:
    api, trail = _fakes()

    donation = record_donation(
        api,
        trail,  # type: ignore[arg-type]
        ACTOR,
        donor="  Rosa Cruz ",
        category="Tithes",
        amount="1,500",
        payment_method="GCash",
        notes="",
        today=TODAY,
    )

    assert api.donations.created == [donation]
    assert donation["donor"] == "Rosa Cruz"
    assert donation["amount"] == 1500.0
    assert donation["date"] == "2025-12-10"
    assert donation["notes"] is None
    assert donation["receipt_number"].startswith("DN-")
    assert donation["recorded_by"] == "Grace Villanueva"

    entry = trail.entries[0]
    assert entry["action"] == AuditAction.CREATE
    assert entry["module"] == AuditModule.DONATIONS
    assert entry["record_id"] == 101
    assert entry["details"] == "Recorded donation of ₱1,500.00 - Tithes"


def test_anonymous_donation_hides_donor_name() -> None:
    api, trail = _fakes()

    donation = record_donation(
        api,
        trail,  # type: ignore[arg-type]
        ACTOR,
        donor="Rosa Cruz",
        category="Building Fund",
        amount=200,
        payment_method="Cash",
        receipt_number="OR-0042",
        anonymous=True,
        today=TODAY,
    )

    assert donation["donor"] == "Anonymous"
    assert donation["receipt_number"] == "OR-0042"


def test_invalid_donations_are_rejected_before_posting() -> None:
    api, trail = _fakes()

    with pytest.raises(ValueError, match="valid amount"):
        record_donation(api, trail, ACTOR, donor="Ana", category="Tithes", amount=0, payment_method="Cash")  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="valid amount"):
        record_donation(api, trail, ACTOR, donor="Ana", category="Tithes", amount="abc", payment_method="Cash")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        record_donation(api, trail, ACTOR, donor="Ana", category=" ", amount=10, payment_method="Cash")  # type: ignore[arg-type]

    assert api.donations.created == []
    assert trail.entries == []


def test_record_payment_defaults_walk_in_payer() -> None:
    api, trail = _fakes()

    payment = record_payment(
        api,
        trail,  # type: ignore[arg-type]
        ACTOR,
        payer="",
        service_name="Baptism",
        amount=750.25,
        payment_method="Cash",
        today=TODAY,
    )

    assert payment["payer_name"] == "Walk-in"
    assert payment["payment_date"] == "2025-12-10"
    assert payment["amount"] == 750.25
    assert payment["reference_number"].startswith("PAY-")
    assert payment["visible_to_user"] is False
    assert trail.entries[0]["action"] == AuditAction.PAYMENT
    assert trail.entries[0]["module"] == AuditModule.PAYMENTS

    with pytest.raises(ValueError):
        record_payment(api, trail, ACTOR, payer="Ana", service_name="", amount=10, payment_method="Cash")  # type: ignore[arg-type]


def test_void_donation_updates_record_and_logs_old_and_new_values() -> None:
    api, trail = _fakes()
    donation = Donation.from_api(
        {"id": 7, "donor": "Rosa Cruz", "category": "Tithes", "amount": 300, "donation_date": "2025-12-01"}
    )

    update = void_transaction(api, trail, ACTOR, donation, "  Duplicate entry ")  # type: ignore[arg-type]

    record_id, payload = api.donations.updated[0]
    assert record_id == 7
    assert payload == update
    assert payload["is_voided"] is True
    assert payload["void_reason"] == "Duplicate entry"
    assert payload["voided_by"] == "Grace Villanueva"
    assert api.payment_records.updated == []

    entry = trail.entries[0]
    assert entry["action"] == AuditAction.VOID
    assert entry["module"] == AuditModule.DONATIONS
    assert entry["old_value"]["is_voided"] is False
    assert entry["new_value"]["is_voided"] is True
    assert json.dumps(entry["old_value"], default=str)


def test_void_payment_targets_payment_records() -> None:
    api, trail = _fakes()
    payment = PaymentRecord.from_api({"id": 9, "service_name": "Wedding", "amount": 5000})

    void_transaction(api, trail, ACTOR, payment, "Cancelled event")  # type: ignore[arg-type]

    assert api.payment_records.updated[0][0] == 9
    assert trail.entries[0]["module"] == AuditModule.PAYMENTS


def test_void_requires_reason_and_active_saved_transaction() -> None:
    api, trail = _fakes()
    active = Donation.from_api({"id": 1, "amount": 10})
    voided = Donation.from_api({"id": 2, "amount": 10, "is_voided": True})
    unsaved = Donation.from_api({"amount": 10})

    with pytest.raises(ValueError, match="reason"):
        void_transaction(api, trail, ACTOR, active, "   ")  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="already been voided"):
        void_transaction(api, trail, ACTOR, voided, "Duplicate")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        void_transaction(api, trail, ACTOR, unsaved, "Duplicate")  # type: ignore[arg-type]

    assert api.donations.updated == []
    assert trail.entries == []
