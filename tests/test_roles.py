from __future__ import annotations

from parish_office.roles import dashboard_path, has_permission, normalize_role, pages_for_role


def test_role_names_are_normalized() -> None:
    assert normalize_role("Church Admin") == "church_admin"
    assert normalize_role("church-admin") == "church_admin"
    assert normalize_role(" ACCOUNTANT ") == "accountant"
    assert normalize_role("treasurer") is None
    assert normalize_role(None) is None


def test_only_accountants_record_and_void() -> None:
    assert has_permission("accountant", "record_payments")
    assert has_permission("accountant", "void_transactions")
    for role in ("admin", "priest", "church_admin", "user"):
        assert not has_permission(role, "record_payments")
        assert not has_permission(role, "void_transactions")
    assert not has_permission(None, "view_finance")


def test_pages_follow_permissions() -> None:
    assert pages_for_role("accountant") == [
        "Dashboard",
        "Finance & Donations",
        "Payment Reports",
        "Financial Reports",
        "Categories",
        "Appointments",
        "Notifications",
    ]
    assert "Donations Summary" in pages_for_role("priest")
    assert "Audit Log" in pages_for_role("admin")
    assert "Audit Log" in pages_for_role("Church Admin")
    assert "Audit Log" not in pages_for_role("accountant")
    assert pages_for_role("user") == ["Dashboard", "Categories", "Notifications", "My Payments"]
    assert pages_for_role("guest") == []


def test_dashboard_paths() -> None:
    assert dashboard_path("accountant") == "/accountant/dashboard"
    assert dashboard_path("church_admin") == "/church-admin/dashboard"
    assert dashboard_path("user") == "/user/dashboard"
    assert dashboard_path("nobody") == "/"


def test_office_desk_pages() -> None:
    admin = pages_for_role("admin")
    assert {"Sacrament Records", "Service Requests", "User Accounts", "Notifications"} <= set(admin)
    assert "Sacrament Records" in pages_for_role("priest")
    assert "Service Requests" not in pages_for_role("priest")
    assert "Service Requests" in pages_for_role("church_admin")
    assert "User Accounts" not in pages_for_role("church_admin")
    assert not has_permission("accountant", "view_sacrament_records")
