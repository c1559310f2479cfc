from __future__ import annotations
import datetime as dt
from typing import Any, Iterable, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError as SchemaError

from .core.logging import get_logger
from .exceptions import RemoteApiError
from .models import EntryStatus, TimeEntry

logger = get_logger(__name__)


class RemoteEntry(BaseModel):
    """Server shape of a time entry: the local fields in snake_case."""

    id: str
    employee_id: str
    project_id: str
    date: dt.date
    start: Optional[str] = None
    end: Optional[str] = None
    break_minutes: int = 0
    work_type: str = ""
    notes: str = ""
    hours: float = 0.0
    rounded_from_minutes: int = 0
    rounding_increment: int = 1
    status: EntryStatus = EntryStatus.PENDING
    locked: bool = False
    created_at: Optional[dt.datetime] = None

    @classmethod
    def from_entry(cls, entry: TimeEntry) -> "RemoteEntry":
        return cls(
            id=entry.id,
            employee_id=entry.employee_id,
            project_id=entry.project_id,
            date=entry.date,
            start=entry.start,
            end=entry.end,
            break_minutes=entry.break_minutes,
            work_type=entry.work_type,
            notes=entry.notes,
            hours=entry.hours,
            rounded_from_minutes=entry.rounded_from_minutes,
            rounding_increment=entry.rounding_increment,
            status=entry.status,
            locked=entry.locked,
            created_at=entry.created_at,
        )

    def to_entry(self) -> TimeEntry:
        return TimeEntry(**self.model_dump())


class LoginResult(BaseModel):
    user: dict[str, Any] = Field(default_factory=dict)
    token: str


class ApiClient:
    """Blocking client for the remote entries API.

    Every failure (transport error, non-2xx status, unexpected body) is raised
    as ``RemoteApiError``; nothing is retried.
    """

    def __init__(self, base_url: str, *, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("remote_request_failed", method=method, path=path, error=str(exc))
            raise RemoteApiError(str(exc) or exc.__class__.__name__) from exc
        if response.is_error:
            detail = response.text.strip() or response.reason_phrase
            logger.warning("remote_request_rejected", method=method, path=path, status=response.status_code)
            raise RemoteApiError(f"{response.status_code}: {detail}")
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteApiError("Response was not valid JSON") from exc

    def health(self) -> Any:
        return self._json(self._request("GET", "/health"))

    def login(self, username: str, password: str) -> LoginResult:
        response = self._request("POST", "/auth/login", data={"username": username, "password": password})
        try:
            return LoginResult.model_validate(self._json(response))
        except SchemaError as exc:
            raise RemoteApiError("Login response missing user or token") from exc

    def fetch_entries(self) -> List[TimeEntry]:
        payload = self._json(self._request("GET", "/entries/"))
        if not isinstance(payload, list):
            raise RemoteApiError("Expected a list of entries")
        try:
            return [RemoteEntry.model_validate(item).to_entry() for item in payload]
        except SchemaError as exc:
            raise RemoteApiError(f"Malformed entry from server: {exc.error_count()} errors") from exc

    def push_entries(self, entries: Iterable[TimeEntry]) -> int:
        payload = [RemoteEntry.from_entry(entry).model_dump(mode="json") for entry in entries]
        self._request("POST", "/entries/", json=payload)
        logger.info("entries_pushed", count=len(payload))
        return len(payload)
