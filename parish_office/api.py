"""REST client for the parish backend."""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Any, Iterable

import requests

from .records import unwrap_list

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised when a backend call fails or returns an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(ApiError):
    pass


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error"):
            if isinstance(body.get(key), str) and body[key].strip():
                return body[key].strip()
    text = (response.text or "").strip()
    if text:
        return text[:200]
    return response.reason or f"HTTP {response.status_code}"


class ApiClient:
    """Thin JSON-over-HTTP wrapper that attaches the bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        url = self.url_for(path)
        try:
            response = self.session.request(
                method,
                url,
                params=params or None,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise ApiError(f"Could not reach the server ({exc}).") from exc

        if response.status_code == 401:
            logger.warning("%s %s rejected the token; clearing it", method, url)
            self.token = None
            raise UnauthorizedError("Your session has expired. Please sign in again.", 401)

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error("%s %s returned %s: %s", method, url, response.status_code, message)
            raise ApiError(message, response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.error("%s %s returned a non-JSON body", method, url)
            raise ApiError("The server returned an unreadable response.", response.status_code) from exc

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: Any = None) -> Any:
        return self.request("POST", path, payload=payload)

    def put(self, path: str, payload: Any = None) -> Any:
        return self.request("PUT", path, payload=payload)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)


class Resource:
    """Conventional list/show/create/update/delete endpoints under one path."""

    def __init__(self, client: ApiClient, path: str) -> None:
        self.client = client
        self.path = path.strip("/")

    def _item(self, record_id: int | str, action: str | None = None) -> str:
        if action:
            return f"{self.path}/{record_id}/{action}"
        return f"{self.path}/{record_id}"

    def get_all(self, params: dict[str, Any] | None = None) -> Any:
        return self.client.get(self.path, params=params)

    def show(self, record_id: int | str) -> Any:
        return self.client.get(self._item(record_id))

    def create(self, data: dict[str, Any]) -> Any:
        return self.client.post(self.path, data)

    def update(self, record_id: int | str, data: dict[str, Any]) -> Any:
        return self.client.put(self._item(record_id), data)

    def delete(self, record_id: int | str) -> Any:
        return self.client.delete(self._item(record_id))


class StatusToggleResource(Resource):
    def toggle_status(self, record_id: int | str) -> Any:
        return self.client.post(self._item(record_id, "toggle-status"))


class UserResource(StatusToggleResource):
    def reset_password(self, record_id: int | str, password_data: dict[str, Any]) -> Any:
        return self.client.post(self._item(record_id, "reset-password"), password_data)


class PaymentRecordResource(Resource):
    def user_payments(self, user_id: int | str) -> Any:
        return self.client.get(f"{self.path}/user/{user_id}")


class PaymentStatusResource(Resource):
    def update_payment_status(self, record_id: int | str, data: dict[str, Any]) -> Any:
        return self.client.put(self._item(record_id, "payment-status"), data)


class UserScopedResource(Resource):
    def for_user(self, user_id: int | str) -> Any:
        return self.get_all(params={"user_id": user_id})


class NotificationResource(Resource):
    def mark_as_read(self, record_id: int | str) -> Any:
        return self.client.put(self._item(record_id), {"read": True})

    def mark_all_as_read(self) -> Any:
        return self.client.post(f"{self.path}/mark-all-read")


class MessageResource(Resource):
    def mark_as_read(self, record_id: int | str) -> Any:
        return self.client.post(self._item(record_id, "mark-read"))

    def mark_all_as_read(self, user_id: int | str) -> Any:
        return self.client.post(f"{self.path}/mark-all-read", {"user_id": user_id})


class ParishApi:
    """All backend resources used by the app, keyed by attribute name."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.members = StatusToggleResource(client, "members")
        self.priests = Resource(client, "priests")
        self.schedules = Resource(client, "schedules")
        self.marriage_records = Resource(client, "marriage-records")
        self.baptism_records = Resource(client, "baptism-records")
        self.birth_records = Resource(client, "birth-records")
        self.donations = Resource(client, "donations")
        self.payment_records = PaymentRecordResource(client, "payment-records")
        self.appointments = PaymentStatusResource(client, "appointments")
        self.events = Resource(client, "events")
        self.announcements = Resource(client, "announcements")
        self.documents = Resource(client, "documents")
        self.service_requests = PaymentStatusResource(client, "service-requests")
        self.correction_requests = UserScopedResource(client, "correction-requests")
        self.certificate_requests = UserScopedResource(client, "certificate-requests")
        self.notifications = NotificationResource(client, "user-notifications")
        self.messages = MessageResource(client, "messages")
        self.audit_logs = Resource(client, "audit-logs")
        self.donation_categories = Resource(client, "donation-categories")
        self.event_fee_categories = Resource(client, "event-fee-categories")
        self.users = UserResource(client, "users")

    def resource(self, name: str) -> Resource:
        resource = getattr(self, name, None)
        if not isinstance(resource, Resource):
            raise ValueError(f"Unknown resource '{name}'.")
        return resource


def fetch_lists(
    api: ParishApi,
    names: Iterable[str],
    max_workers: int = 4,
) -> tuple[dict[str, list[Any]], dict[str, str]]:
    """Load several list endpoints in parallel.

    A failing endpoint yields an empty list and an entry in the error map, so
    pages can always render.
    """

    resources = {name: api.resource(name) for name in names}
    results: dict[str, list[Any]] = {name: [] for name in resources}
    errors: dict[str, str] = {}
    if not resources:
        return results, errors

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(resource.get_all): name for name, resource in resources.items()
        }
        for future in concurrent.futures.as_completed(futures):
            name = futures[future]
            try:
                results[name] = unwrap_list(future.result())
            except ApiError as exc:
                logger.warning("Loading %s failed: %s", name, exc)
                errors[name] = str(exc)

    return results, errors
