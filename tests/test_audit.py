from __future__ import annotations

import json
from datetime import date, datetime
from types import SimpleNamespace
from typing import Any

from parish_office.api import ApiError
from parish_office.audit import (
    Actor,
    AuditAction,
    AuditModule,
    AuditTrail,
    filter_logs,
    merge_entries,
    normalize_log,
)
from parish_office.store import LocalCache

ACTOR = Actor(user_id=3, name="Grace Villanueva", role="accountant")


class FakeAuditResource:
    def __init__(self, remote: Any = None) -> None:
        self.remote = remote if remote is not None else []
        self.created: list[dict[str, Any]] = []
        self.fail_create = False
        self.fail_list = False

    def create(self, data: dict[str, Any]) -> Any:
        if self.fail_create:
            raise ApiError("Could not reach the server.")
        self.created.append(data)
        return {"id": len(self.created), **data}

    def get_all(self, params: dict[str, Any] | None = None) -> Any:
        if self.fail_list:
            raise ApiError("Could not reach the server.")
        return self.remote


def _build_trail(tmp_path, resource: FakeAuditResource, limit: int = 1000) -> AuditTrail:  # type: ignore[no-untyped-def]
    cache = LocalCache(tmp_path / "audit_test.db")
    cache.init_db()
    return AuditTrail(SimpleNamespace(audit_logs=resource), cache, limit=limit)  # type: ignore[arg-type]


def test_log_activity_posts_and_keeps_local_copy(tmp_path) -> None:  # type: ignore[no-untyped-def]
    resource = FakeAuditResource()
    trail = _build_trail(tmp_path, resource)

    entry = trail.log_activity(
        actor=ACTOR,
        action=AuditAction.CREATE,
        module=AuditModule.DONATIONS,
        details="Recorded donation of ₱500.00 - Tithes",
        record_id=17,
        new_value={"amount": 500.0},
        metadata={"ip": "10.0.0.8"},
    )

    assert entry["synced"] is True
    assert resource.created[0]["user_name"] == "Grace Villanueva"
    assert resource.created[0]["user_role"] == "accountant"
    assert resource.created[0]["record_id"] == 17
    assert resource.created[0]["ip_address"] == "10.0.0.8"
    assert json.loads(resource.created[0]["new_value"]) == {"amount": 500.0}
    assert resource.created[0]["old_value"] is None

    cached = trail.cache.list_audit_entries()
    assert len(cached) == 1
    assert cached[0]["synced"] is True


def test_log_activity_survives_api_failure(tmp_path) -> None:  # type: ignore[no-untyped-def]
    resource = FakeAuditResource()
    resource.fail_create = True
    trail = _build_trail(tmp_path, resource)

    entry = trail.log_activity(
        actor=ACTOR,
        action=AuditAction.VOID,
        module=AuditModule.PAYMENTS,
        details="Voided payment #4",
    )

    assert entry["synced"] is False
    assert [item["details"] for item in trail.cache.unsynced_audit_entries()] == ["Voided payment #4"]


def test_load_falls_back_to_local_entries(tmp_path) -> None:  # type: ignore[no-untyped-def]
    resource = FakeAuditResource()
    resource.fail_create = True
    resource.fail_list = True
    trail = _build_trail(tmp_path, resource)
    trail.log_activity(actor=ACTOR, action=AuditAction.EXPORT, module=AuditModule.REPORTS, details="Exported ledger")

    logs = trail.load()

    assert len(logs) == 1
    assert logs[0].user == "Grace Villanueva"
    assert logs[0].action == "EXPORT"
    assert logs[0].synced is False


def test_load_merges_server_entries_with_pending_local_ones(tmp_path) -> None:  # type: ignore[no-untyped-def]
    resource = FakeAuditResource(
        remote={
            "data": [
                {
                    "id": 1,
                    "user_name": "Fr. Jose",
                    "user_role": "priest",
                    "action": "VIEW",
                    "module": "Reports",
                    "details": "Viewed summary",
                    "created_at": "2025-12-01T09:00:00Z",
                }
            ]
        }
    )
    trail = _build_trail(tmp_path, resource)
    trail.log_activity(actor=ACTOR, action=AuditAction.CREATE, module=AuditModule.DONATIONS, details="synced one")
    resource.fail_create = True
    trail.log_activity(actor=ACTOR, action=AuditAction.CREATE, module=AuditModule.DONATIONS, details="pending one")

    logs = trail.load()

    assert [log.details for log in logs] == ["pending one", "Viewed summary"]
    assert logs[1].timestamp == datetime(2025, 12, 1, 9, 0)


def test_sync_pending_pushes_in_order_and_stops_on_failure(tmp_path) -> None:  # type: ignore[no-untyped-def]
    resource = FakeAuditResource()
    resource.fail_create = True
    trail = _build_trail(tmp_path, resource)
    for index in range(3):
        trail.log_activity(actor=ACTOR, action=AuditAction.UPDATE, module=AuditModule.MEMBERS, details=f"edit {index}")

    assert trail.sync_pending() == 0
    assert len(trail.cache.unsynced_audit_entries()) == 3

    resource.fail_create = False
    assert trail.sync_pending() == 3
    assert [item["details"] for item in resource.created] == ["edit 0", "edit 1", "edit 2"]
    assert all("_local_id" not in item and "synced" not in item for item in resource.created)
    assert trail.cache.unsynced_audit_entries() == []


def test_local_copy_is_trimmed_to_limit(tmp_path) -> None:  # type: ignore[no-untyped-def]
    trail = _build_trail(tmp_path, FakeAuditResource(), limit=2)
    for index in range(4):
        trail.log_activity(actor=ACTOR, action=AuditAction.VIEW, module=AuditModule.REPORTS, details=f"view {index}")

    assert [item["details"] for item in trail.cache.list_audit_entries()] == ["view 3", "view 2"]


def test_normalize_log_defaults_and_types() -> None:
    log = normalize_log({"action": "VOID", "user": "Ana", "ip": "1.2.3.4"})
    assert log.type == "error"
    assert log.role == "N/A"
    assert log.ip == "1.2.3.4"
    assert log.details == "No details"
    assert log.timestamp is None

    assert normalize_log({"action": "PAYMENT"}).type == "success"
    assert normalize_log({"action": "LOGIN"}).type == "info"
    assert normalize_log({}).user == "Unknown"


def test_merge_entries_dedupes_and_sorts_newest_first() -> None:
    merged = merge_entries(
        [{"id": 1, "details": "old copy", "timestamp": "2025-12-01T08:00:00"}],
        [
            {"id": 1, "details": "new copy", "timestamp": "2025-12-01T08:00:00"},
            {"details": "local", "timestamp": "2025-12-02T08:00:00"},
            {"details": "local", "timestamp": "2025-12-02T08:00:00"},
        ],
    )

    assert [entry["details"] for entry in merged] == ["local", "new copy"]


def test_filter_logs_by_search_user_action_and_dates() -> None:
    logs = [
        normalize_log({"user_name": "Ana", "action": "CREATE", "module": "Donations & Collections", "details": "Tithes", "timestamp": "2025-12-01T10:00:00"}),
        normalize_log({"user_name": "Ben", "action": "VOID", "module": "Payment Records", "details": "Wedding", "timestamp": "2025-12-05T10:00:00"}),
        normalize_log({"user_name": "Ben", "action": "EXPORT", "module": "Reports", "details": "Ledger"}),
    ]

    assert [log.details for log in filter_logs(logs, search="payment")] == ["Wedding"]
    assert [log.details for log in filter_logs(logs, user="Ben")] == ["Wedding", "Ledger"]
    assert [log.details for log in filter_logs(logs, user="all", action="CREATE")] == ["Tithes"]
    assert [log.details for log in filter_logs(logs, date_from=date(2025, 12, 2))] == ["Wedding"]
    assert [log.details for log in filter_logs(logs, date_to=date(2025, 12, 1))] == ["Tithes"]
