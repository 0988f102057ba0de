"""Activity audit trail backed by the API with a local fallback copy."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping

from .api import ApiError, ParishApi
from .records import parse_timestamp, unwrap_list
from .store import LocalCache

logger = logging.getLogger(__name__)


class AuditAction:
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VIEW = "VIEW"
    EXPORT = "EXPORT"
    IMPORT = "IMPORT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    VOID = "VOID"
    RESTORE = "RESTORE"
    DOWNLOAD = "DOWNLOAD"
    UPLOAD = "UPLOAD"
    PRINT = "PRINT"
    SEND = "SEND"
    PAYMENT = "PAYMENT"
    REFUND = "REFUND"


class AuditModule:
    USERS = "User Management"
    MEMBERS = "Member Records"
    DONATIONS = "Donations & Collections"
    PAYMENTS = "Payment Records"
    SERVICE_REQUESTS = "Service Requests"
    APPOINTMENTS = "Appointments"
    EVENTS = "Events"
    SCHEDULES = "Schedules"
    MARRIAGE = "Marriage Records"
    BAPTISM = "Baptism Records"
    BIRTH = "Birth Records"
    DEATH = "Death Records"
    CERTIFICATES = "Certificates"
    FINANCIAL_DOCS = "Financial Documents"
    REPORTS = "Reports"
    SETTINGS = "System Settings"
    CATEGORIES = "Categories & Settings"


@dataclass(frozen=True)
class Actor:
    user_id: int | None
    name: str
    role: str


@dataclass(frozen=True)
class AuditLog:
    id: int | None
    user: str
    role: str
    action: str
    module: str
    details: str
    timestamp: datetime | None
    ip: str
    type: str
    synced: bool = True


def _log_type(action: str) -> str:
    upper = action.upper()
    if "DELETE" in upper or "VOID" in upper:
        return "error"
    if "CREATE" in upper or "PAYMENT" in upper:
        return "success"
    return "info"


def normalize_log(payload: Mapping[str, Any]) -> AuditLog:
    action = str(payload.get("action") or "N/A")
    raw_id = payload.get("id")
    return AuditLog(
        id=raw_id if isinstance(raw_id, int) else None,
        user=str(payload.get("user_name") or payload.get("user") or "Unknown"),
        role=str(payload.get("user_role") or payload.get("role") or "N/A"),
        action=action,
        module=str(payload.get("module") or "N/A"),
        details=str(payload.get("details") or "No details"),
        timestamp=parse_timestamp(payload.get("timestamp") or payload.get("created_at")),
        ip=str(payload.get("ip_address") or payload.get("ip") or "N/A"),
        type=str(payload.get("type") or _log_type(action)),
        synced=bool(payload.get("synced", True)),
    )


def _dedupe_key(entry: Mapping[str, Any]) -> str:
    if entry.get("id") is not None:
        return f"id:{entry['id']}"
    stamp = entry.get("timestamp") or entry.get("created_at") or ""
    return f"local:{stamp}{entry.get('details') or ''}"


def merge_entries(*sources: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Merge entry lists, later sources winning on duplicates, newest first."""

    merged: dict[str, dict[str, Any]] = {}
    for source in sources:
        for entry in source:
            if isinstance(entry, Mapping):
                merged[_dedupe_key(entry)] = dict(entry)

    def sort_key(entry: Mapping[str, Any]) -> datetime:
        parsed = parse_timestamp(entry.get("timestamp") or entry.get("created_at"))
        return parsed or datetime.min

    return sorted(merged.values(), key=sort_key, reverse=True)


def filter_logs(
    logs: Iterable[AuditLog],
    search: str = "",
    user: str | None = None,
    action: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[AuditLog]:
    needle = search.strip().lower()
    kept: list[AuditLog] = []
    for log in logs:
        if needle and not any(
            needle in value.lower() for value in (log.user, log.module, log.details)
        ):
            continue
        if user and user != "all" and log.user != user:
            continue
        if action and action != "all" and log.action != action:
            continue
        if date_from or date_to:
            if log.timestamp is None:
                continue
            logged_on = log.timestamp.date()
            if date_from and logged_on < date_from:
                continue
            if date_to and logged_on > date_to:
                continue
        kept.append(log)
    return kept


class AuditTrail:
    """Writes activity entries to the backend and keeps a local backup."""

    def __init__(self, api: ParishApi, cache: LocalCache, limit: int = 1000) -> None:
        self.api = api
        self.cache = cache
        self.limit = limit

    def log_activity(
        self,
        actor: Actor,
        action: str,
        module: str,
        details: str,
        record_id: int | None = None,
        old_value: Any = None,
        new_value: Any = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        extra = dict(metadata or {})
        entry: dict[str, Any] = {
            "user_id": actor.user_id,
            "user_name": actor.name,
            "user_role": actor.role,
            "action": action,
            "module": module,
            "details": details,
            "record_id": record_id,
            "old_value": json.dumps(old_value, default=str) if old_value else None,
            "new_value": json.dumps(new_value, default=str) if new_value else None,
            "ip_address": extra.get("ip") or "N/A",
            "user_agent": extra.get("user_agent") or "parish-office",
            "timestamp": datetime.now().isoformat(timespec="seconds"),
            "metadata": json.dumps(extra, default=str),
        }

        synced = True
        try:
            self.api.audit_logs.create(entry)
        except ApiError as exc:
            logger.error("Could not save audit entry to the server: %s", exc)
            synced = False

        self.cache.add_audit_entry(entry, synced=synced)
        self.cache.trim_audit_entries(self.limit)
        logger.info("Audit entry recorded: %s %s %s", action, module, details)
        return {**entry, "synced": synced}

    def load(self) -> list[AuditLog]:
        local_entries = self.cache.list_audit_entries(limit=self.limit)
        try:
            remote_entries = unwrap_list(self.api.audit_logs.get_all())
        except ApiError as exc:
            logger.warning("Falling back to locally cached audit entries: %s", exc)
            merged = merge_entries(local_entries)
        else:
            # Synced local copies are already part of the server list.
            pending = [entry for entry in local_entries if not entry.get("synced")]
            merged = merge_entries(remote_entries, pending)
        logger.info("Loaded %s audit entries", len(merged))
        return [normalize_log(entry) for entry in merged]

    def sync_pending(self) -> int:
        synced_count = 0
        for entry in self.cache.unsynced_audit_entries():
            local_id = entry.pop("_local_id")
            entry.pop("synced", None)
            try:
                self.api.audit_logs.create(entry)
            except ApiError as exc:
                logger.error("Audit sync stopped after %s entries: %s", synced_count, exc)
                break
            self.cache.mark_audit_entries_synced([local_id])
            synced_count += 1
        return synced_count
