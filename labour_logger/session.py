from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from labour_reports.exporter import EXPORT_ERRORS, get_exporter
from labour_reports.filters import EntryFilter, filter_entries
from labour_reports.reports import (
    FilteredTotals,
    ReportRow,
    WeeklyReport,
    build_export_rows,
    summarize,
    weekly_report,
)

from .core.config import Settings
from .core.logging import get_logger
from .exceptions import RemoteApiError
from .models import EntryStatus, OvertimeSplit, TimeEntry, TrackingSettings
from .overtime import OvertimeScope, allocate_overtime
from .remote import ApiClient
from .storage import DataStore
from .time_tracking import (
    approve_week,
    create_time_entry,
    delete_time_entry,
    entries_in_week,
    reject_week,
    set_entry_status,
)
from .weeks import iso_week_label, parse_week_label

logger = get_logger(__name__)

ClientFactory = Callable[[str], ApiClient]


@dataclass(frozen=True)
class AuthState:
    """Signed-in user and token. Kept in memory only and never sent with requests."""

    user: Optional[dict] = None
    token: Optional[str] = None

    @property
    def signed_in(self) -> bool:
        return self.token is not None


class LoggerSession:
    """Top-level state: the store, current filters, overtime scope and auth.

    Derived views (visible entries, allocations, totals, weekly report) are
    rebuilt from the current snapshot on every call.
    """

    def __init__(
        self,
        store: DataStore,
        *,
        filters: EntryFilter | None = None,
        scope: OvertimeScope = OvertimeScope.VISIBLE,
        client_factory: ClientFactory | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.store = store
        self.filters = filters or EntryFilter()
        self.scope = OvertimeScope(scope)
        self.auth = AuthState()
        self.status = ""
        self._client_factory = client_factory or (lambda base: ApiClient(base, timeout=timeout))

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "LoggerSession":
        store = DataStore(
            settings.data_path,
            settings=TrackingSettings(
                rounding_increment=settings.default_rounding_increment,
                daily_overtime_threshold=settings.default_daily_overtime_threshold,
            ),
            api_base=settings.api_base,
        )
        kwargs.setdefault("timeout", settings.request_timeout)
        return cls(store, **kwargs)

    def _notify(self, message: str) -> str:
        self.status = message
        return message

    # filters

    def with_filters(self, **changes: Any) -> EntryFilter:
        self.filters = replace(self.filters, **changes)
        return self.filters

    def clear_filters(self) -> EntryFilter:
        self.filters = EntryFilter()
        return self.filters

    # derived views

    def visible_entries(self) -> List[TimeEntry]:
        return filter_entries(self.store.find_entries(), self.filters, self.store.employees, self.store.projects)

    def allocations(self, entries: List[TimeEntry] | None = None) -> Dict[str, OvertimeSplit]:
        targets = self.visible_entries() if entries is None else entries
        context = self.store.time_entries.values() if self.scope is OvertimeScope.FULL_DAY else None
        return allocate_overtime(targets, self.store.settings.daily_overtime_threshold, context=context)

    def totals(self) -> FilteredTotals:
        entries = self.visible_entries()
        return summarize(entries, self.allocations(entries), self.store.employees, self.store.projects)

    def weekly_report(self, week: str | None = None) -> WeeklyReport:
        week = week or iso_week_label(date.today())
        parse_week_label(week)
        in_week = entries_in_week(self.store.time_entries.values(), week)
        # every entry of a day is in the same week, so this is the full-day allocation
        allocations = allocate_overtime(in_week, self.store.settings.daily_overtime_threshold)
        return weekly_report(in_week, allocations, week, self.store.employees, self.store.projects)

    def export_rows(self) -> List[ReportRow]:
        entries = self.visible_entries()
        return build_export_rows(entries, self.allocations(entries), self.store.employees, self.store.projects)

    def export(self, fmt: str, output_path: Path, title: str = "Labour entries") -> Optional[Path]:
        """Write the visible entries; a failed write is reported in ``status``."""

        exporter = get_exporter(fmt)
        try:
            path = exporter.export(self.export_rows(), output_path, title=title)
        except EXPORT_ERRORS as exc:
            self._notify(f"Export failed: {exc}")
            logger.warning("export_failed", format=exporter.name, path=str(output_path), error=str(exc))
            return None
        self._notify(f"Exported {exporter.name.upper()} to {path}")
        logger.info("entries_exported", format=exporter.name, path=str(path))
        return path

    # entry operations

    def log_time(self, **fields: Any) -> TimeEntry:
        entry = create_time_entry(self.store, **fields)
        self._notify(f"Logged {entry.hours:.2f}h")
        return entry

    def set_status(self, entry_id: str, status: EntryStatus) -> TimeEntry:
        entry = set_entry_status(self.store, entry_id, status)
        self._notify(f"Entry {entry_id} marked {entry.status.value}")
        return entry

    def approve_week(self, week: str) -> List[TimeEntry]:
        affected = approve_week(self.store, week)
        self._notify(f"Approved and locked {len(affected)} entries in {week}")
        return affected

    def reject_week(self, week: str) -> List[TimeEntry]:
        affected = reject_week(self.store, week)
        self._notify(f"Rejected {len(affected)} entries in {week}")
        return affected

    def delete_entry(self, entry_id: str) -> TimeEntry:
        entry = delete_time_entry(self.store, entry_id)
        self._notify(f"Deleted entry {entry_id}")
        return entry

    # remote collaborator

    def set_api_base(self, url: str) -> str:
        self.store.api_base = url.strip().rstrip("/")
        self.store.save()
        return self.store.api_base

    def check_health(self) -> Any:
        try:
            with self._client_factory(self.store.api_base) as client:
                payload = client.health()
        except RemoteApiError as exc:
            self._notify(f"Health check failed: {exc}")
            return None
        self._notify(f"Backend health: {payload}")
        return payload

    def login(self, username: str, password: str) -> bool:
        try:
            with self._client_factory(self.store.api_base) as client:
                result = client.login(username, password)
        except RemoteApiError as exc:
            self._notify(f"Login failed: {exc}")
            return False
        self.auth = AuthState(user=result.user, token=result.token)
        self._notify("Signed in")
        logger.info("signed_in", user=result.user.get("name"))
        return True

    def logout(self) -> None:
        self.auth = AuthState()
        self._notify("Signed out")

    def push_entries(self) -> bool:
        entries = self.store.find_entries()
        try:
            with self._client_factory(self.store.api_base) as client:
                count = client.push_entries(entries)
        except RemoteApiError as exc:
            self._notify(f"Save to server failed: {exc}")
            return False
        self._notify(f"Saved {count} entries to server")
        return True

    def pull_entries(self) -> bool:
        """Replace local entries with the server's list; a failed load changes nothing."""

        try:
            with self._client_factory(self.store.api_base) as client:
                entries = client.fetch_entries()
        except RemoteApiError as exc:
            self._notify(f"Load from server failed: {exc}")
            return False
        self.store.replace_entries(entries)
        self.store.save()
        self._notify(f"Loaded {len(entries)} entries from server")
        return True
