"""Data access and reporting helpers for the parish office app."""

from .api import ApiClient, ApiError, ParishApi, UnauthorizedError, fetch_lists
from .audit import Actor, AuditAction, AuditModule, AuditTrail
from .records import (
    Appointment,
    Category,
    Donation,
    Member,
    Notification,
    PaymentRecord,
    SacramentRecord,
    ServiceRequest,
    UserAccount,
    cents_from_amount,
    format_currency,
    format_date,
    member_display_name,
    parse_user_id,
    unwrap_list,
)
from .settings import Settings, load_settings
from .store import LocalCache

__all__ = [
    "Actor",
    "ApiClient",
    "ApiError",
    "Appointment",
    "AuditAction",
    "AuditModule",
    "AuditTrail",
    "Category",
    "Donation",
    "LocalCache",
    "Member",
    "Notification",
    "ParishApi",
    "PaymentRecord",
    "SacramentRecord",
    "ServiceRequest",
    "Settings",
    "UnauthorizedError",
    "UserAccount",
    "cents_from_amount",
    "fetch_lists",
    "format_currency",
    "format_date",
    "load_settings",
    "member_display_name",
    "parse_user_id",
    "unwrap_list",
]
