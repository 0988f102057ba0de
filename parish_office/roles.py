"""Roles, permissions, and the pages each role can open."""

from __future__ import annotations

ROLE_LABELS = {
    "admin": "Administrator",
    "priest": "Priest",
    "accountant": "Accountant",
    "church_admin": "Church Admin",
    "user": "Parishioner",
}

ROLE_PERMISSIONS: dict[str, set[str]] = {
    "admin": {
        "view_finance",
        "view_reports",
        "view_audit_log",
        "manage_categories",
        "view_members",
        "view_appointments",
        "view_sacrament_records",
        "manage_service_requests",
        "manage_users",
        "view_notifications",
    },
    "priest": {
        "view_finance",
        "view_reports",
        "view_donations_summary",
        "view_members",
        "view_appointments",
        "view_sacrament_records",
        "view_notifications",
    },
    "accountant": {
        "view_finance",
        "view_reports",
        "record_payments",
        "void_transactions",
        "manage_categories",
        "view_appointments",
        "view_notifications",
    },
    "church_admin": {
        "view_finance",
        "view_audit_log",
        "view_members",
        "view_appointments",
        "view_sacrament_records",
        "manage_service_requests",
        "view_notifications",
    },
    "user": {
        "view_own_payments",
        "view_categories",
        "view_notifications",
    },
}

PAGE_PERMISSIONS = {
    "Dashboard": None,
    "Finance & Donations": "view_finance",
    "Payment Reports": "view_reports",
    "Financial Reports": "view_reports",
    "Donations Summary": "view_donations_summary",
    "Audit Log": "view_audit_log",
    "Categories": ("manage_categories", "view_categories"),
    "Members": "view_members",
    "Appointments": "view_appointments",
    "Sacrament Records": "view_sacrament_records",
    "Service Requests": "manage_service_requests",
    "User Accounts": "manage_users",
    "Notifications": "view_notifications",
    "My Payments": "view_own_payments",
}


def normalize_role(value: str | None) -> str | None:
    if value is None:
        return None
    role = value.strip().lower().replace("-", "_").replace(" ", "_")
    return role if role in ROLE_PERMISSIONS else None


def has_permission(role: str | None, permission: str) -> bool:
    normalized = normalize_role(role)
    if normalized is None:
        return False
    return permission in ROLE_PERMISSIONS[normalized]


def pages_for_role(role: str | None) -> list[str]:
    if normalize_role(role) is None:
        return []

    pages: list[str] = []
    for page, required in PAGE_PERMISSIONS.items():
        if required is None:
            pages.append(page)
        elif isinstance(required, tuple):
            if any(has_permission(role, permission) for permission in required):
                pages.append(page)
        elif has_permission(role, required):
            pages.append(page)
    return pages


def dashboard_path(role: str | None) -> str:
    normalized = normalize_role(role)
    if normalized is None:
        return "/"
    segment = "church-admin" if normalized == "church_admin" else normalized
    return f"/{segment}/dashboard"
