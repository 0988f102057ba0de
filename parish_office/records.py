"""Record types mirrored from the parish REST backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping


def clean_text(value: Any) -> str | None:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def parse_user_id(value: Any) -> int | None:
    """Positive integer user id from free text, or ``None``."""

    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not (text.isascii() and text.isdigit()):
        return None
    user_id = int(text)
    return user_id if user_id > 0 else None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse backend timestamps into naive UTC datetimes."""

    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                return datetime.fromisoformat(text[:10])
            except ValueError:
                return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        return None
    text = str(value).strip()
    if len(text) >= 10:
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    parsed = parse_timestamp(text)
    return parsed.date() if parsed else None


def cents_from_amount(amount: Any) -> int:
    if amount is None or isinstance(amount, bool):
        return 0
    try:
        value = Decimal(str(amount).replace(",", "").strip())
        if not value.is_finite():
            return 0
        return int((value * 100).quantize(Decimal("1")))
    except InvalidOperation:
        return 0


def amount_from_cents(cents: int) -> float:
    return cents / 100


def format_currency(cents: int, symbol: str = "₱") -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{amount_from_cents(abs(cents)):,.2f}"


def format_date(value: Any) -> str:
    parsed = parse_date(value)
    if parsed is None:
        return "N/A"
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_date_short(value: Any) -> str:
    parsed = parse_date(value)
    if parsed is None:
        return "N/A"
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def unwrap_list(response: Any) -> list[Any]:
    """Accept either a bare list or a ``{"data": [...]}`` envelope."""

    if isinstance(response, list):
        return response
    if isinstance(response, dict) and isinstance(response.get("data"), list):
        return response["data"]
    return []


@dataclass(frozen=True)
class Donation:
    id: int | None
    donor: str
    category: str
    amount_cents: int
    day: date | None
    payment_method: str | None = None
    receipt_number: str | None = None
    is_voided: bool = False
    void_reason: str | None = None
    notes: str | None = None

    kind = "donation"

    @property
    def party(self) -> str:
        return self.donor

    @property
    def label(self) -> str:
        return self.category

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Donation":
        return cls(
            id=_as_int(payload.get("id")),
            donor=clean_text(_first(payload, "donor_name", "donor")) or "Anonymous",
            category=clean_text(payload.get("category")) or "Other",
            amount_cents=cents_from_amount(payload.get("amount")),
            day=parse_date(_first(payload, "donation_date", "date", "created_at")),
            payment_method=clean_text(payload.get("payment_method")),
            receipt_number=clean_text(_first(payload, "receipt_number", "reference_number")),
            is_voided=_as_bool(payload.get("is_voided")),
            void_reason=clean_text(payload.get("void_reason")),
            notes=clean_text(payload.get("notes")),
        )


@dataclass(frozen=True)
class PaymentRecord:
    id: int | None
    payer: str
    service: str
    amount_cents: int
    day: date | None
    payment_status: str = "paid"
    payment_method: str | None = None
    reference_number: str | None = None
    user_id: int | None = None
    is_voided: bool = False
    void_reason: str | None = None

    kind = "event_payment"

    @property
    def party(self) -> str:
        return self.payer

    @property
    def label(self) -> str:
        return self.service

    @property
    def category(self) -> str:
        return self.service

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "PaymentRecord":
        user = payload.get("user")
        user_name = user.get("name") if isinstance(user, Mapping) else None
        return cls(
            id=_as_int(payload.get("id")),
            payer=clean_text(_first(payload, "payer_name")) or clean_text(user_name) or "Walk-in",
            service=clean_text(_first(payload, "service_name", "payment_type", "event_type")) or "Other",
            amount_cents=cents_from_amount(payload.get("amount")),
            day=parse_date(_first(payload, "payment_date", "date", "created_at")),
            payment_status=(clean_text(payload.get("payment_status")) or "paid").lower(),
            payment_method=clean_text(payload.get("payment_method")),
            reference_number=clean_text(payload.get("reference_number")),
            user_id=_as_int(payload.get("user_id")),
            is_voided=_as_bool(payload.get("is_voided")),
            void_reason=clean_text(payload.get("void_reason")),
        )


@dataclass(frozen=True)
class Category:
    id: int | None
    name: str
    description: str | None
    active: bool
    suggested_amount_cents: int

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Category":
        active_raw = payload.get("active")
        if active_raw is None:
            active_raw = payload.get("is_active")
        return cls(
            id=_as_int(payload.get("id")),
            name=clean_text(payload.get("name")) or "Unnamed category",
            description=clean_text(payload.get("description")),
            active=_as_bool(active_raw, default=True),
            suggested_amount_cents=cents_from_amount(_first(payload, "suggested_amount", "amount")),
        )


@dataclass(frozen=True)
class Member:
    id: int | None
    first_name: str | None
    middle_name: str | None
    last_name: str | None
    email: str | None
    phone: str | None
    status: str

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Member":
        return cls(
            id=_as_int(payload.get("id")),
            first_name=clean_text(payload.get("first_name")),
            middle_name=clean_text(payload.get("middle_name")),
            last_name=clean_text(payload.get("last_name")),
            email=clean_text(payload.get("email")),
            phone=clean_text(_first(payload, "phone", "contact_number")),
            status=clean_text(payload.get("status")) or "Active",
        )


def member_display_name(member: Member) -> str:
    pieces = [member.first_name, member.middle_name, member.last_name]
    full_name = " ".join(piece for piece in pieces if piece)
    return full_name or "Unnamed member"


@dataclass(frozen=True)
class Appointment:
    id: int | None
    title: str
    day: date | None
    time: str | None
    status: str
    payment_status: str | None
    requester: str | None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Appointment":
        return cls(
            id=_as_int(payload.get("id")),
            title=clean_text(_first(payload, "title", "service_type", "type")) or "Appointment",
            day=parse_date(_first(payload, "appointment_date", "date", "created_at")),
            time=clean_text(_first(payload, "appointment_time", "time")),
            status=(clean_text(payload.get("status")) or "pending").lower(),
            payment_status=clean_text(payload.get("payment_status")),
            requester=clean_text(_first(payload, "name", "requester_name", "user_name")),
        )


SACRAMENT_KINDS = ("baptism", "marriage", "birth")

# name, partner, date, place, certificate fields per record kind
_SACRAMENT_FIELDS = {
    "baptism": (
        ("child_name",),
        ("godfather_name", "godmother_name"),
        ("baptism_date", "created_at"),
        ("baptism_location",),
        ("baptism_certificate_no",),
    ),
    "marriage": (
        ("groom_name",),
        ("bride_name",),
        ("marriage_date", "created_at"),
        ("marriage_location", "venue"),
        ("marriage_certificate_no", "marriage_license_no"),
    ),
    "birth": (
        ("child_name",),
        ("mother_maiden_name", "mother_name", "father_name"),
        ("birth_date", "created_at"),
        ("birth_place", "residence_city"),
        ("birth_certificate_no",),
    ),
}


@dataclass(frozen=True)
class SacramentRecord:
    id: int | None
    kind: str
    name: str
    partner: str | None
    day: date | None
    place: str | None
    certificate_no: str | None
    status: str

    @classmethod
    def from_api(cls, payload: Mapping[str, Any], kind: str) -> "SacramentRecord":
        if kind not in _SACRAMENT_FIELDS:
            raise ValueError(f"Unknown sacrament record kind '{kind}'.")
        name_keys, partner_keys, date_keys, place_keys, certificate_keys = _SACRAMENT_FIELDS[kind]
        return cls(
            id=_as_int(payload.get("id")),
            kind=kind,
            name=clean_text(_first(payload, *name_keys)) or "Unnamed",
            partner=clean_text(_first(payload, *partner_keys)),
            day=parse_date(_first(payload, *date_keys)),
            place=clean_text(_first(payload, *place_keys)),
            certificate_no=clean_text(_first(payload, *certificate_keys)),
            status=(clean_text(payload.get("status")) or "recorded").lower(),
        )


@dataclass(frozen=True)
class ServiceRequest:
    id: int | None
    request_type: str
    requester: str
    participant: str | None
    day: date | None
    status: str
    payment_status: str
    fee_cents: int
    requires_payment: bool

    @property
    def awaiting_payment(self) -> bool:
        return self.requires_payment and self.payment_status == "unpaid"

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "ServiceRequest":
        request_type = payload.get("service_request_type")
        type_info = request_type if isinstance(request_type, Mapping) else {}
        user = payload.get("user")
        user_name = user.get("name") if isinstance(user, Mapping) else None
        fee_cents = cents_from_amount(payload.get("service_fee"))
        return cls(
            id=_as_int(payload.get("id")),
            request_type=(
                clean_text(type_info.get("type_name"))
                or clean_text(_first(payload, "request_type", "category"))
                or "Service"
            ),
            requester=clean_text(user_name) or clean_text(payload.get("requestor_name")) or "Unknown",
            participant=clean_text(payload.get("participant_name")),
            day=parse_date(_first(payload, "preferred_date", "scheduled_date", "created_at")),
            status=(clean_text(payload.get("status")) or "pending").lower(),
            payment_status=(clean_text(payload.get("payment_status")) or "unpaid").lower(),
            fee_cents=fee_cents,
            requires_payment=_as_bool(type_info.get("requires_payment"), default=fee_cents > 0),
        )


@dataclass(frozen=True)
class Notification:
    id: int | None
    title: str
    message: str
    type: str
    read: bool
    day: date | None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Notification":
        read_flag = payload.get("read")
        if read_flag is None:
            read_flag = payload.get("is_read")
        if read_flag is None:
            read_flag = payload.get("read_at") is not None
        return cls(
            id=_as_int(payload.get("id")),
            title=clean_text(payload.get("title")) or "Notification",
            message=clean_text(payload.get("message")) or "",
            type=(clean_text(payload.get("type")) or "info").lower(),
            read=_as_bool(read_flag),
            day=parse_date(_first(payload, "date", "created_at")),
        )


@dataclass(frozen=True)
class UserAccount:
    id: int | None
    name: str
    email: str | None
    role: str
    active: bool

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "UserAccount":
        status = clean_text(payload.get("status"))
        if status is not None:
            active = status.lower() == "active"
        else:
            active = _as_bool(payload.get("is_active"), default=True)
        return cls(
            id=_as_int(payload.get("id")),
            name=clean_text(_first(payload, "name", "full_name", "username")) or "Unnamed user",
            email=clean_text(payload.get("email")),
            role=(clean_text(payload.get("role")) or "user").lower(),
            active=active,
        )
