from datetime import date

import pytest
from fastapi.testclient import TestClient

from labour_logger.core.config import Settings
from labour_logger.models import EntryStatus, OvertimeSplit
from labour_logger.overtime import OvertimeScope
from labour_logger.remote import ApiClient
from labour_logger.session import LoggerSession
from labour_logger.storage import DataStore
from labour_reports.filters import EntryFilter
from labour_reports.reports import HoursTotals


@pytest.fixture
def session(store, make_entry, fake_api):
    app, _ = fake_api
    store.add_time_entry(make_entry("a", start="08:00", hours=5))
    store.add_time_entry(make_entry("b", project_id="p2", start="13:00", hours=5))
    store.add_time_entry(make_entry("c", employee_id="e2", day=date(2024, 1, 16), hours=2))
    store.save()
    return LoggerSession(store, client_factory=lambda base: ApiClient(base, client=TestClient(app)))


def test_filters_are_replaced_not_mutated(session):
    before = session.filters

    after = session.with_filters(project_id="p2", search="paint")

    assert before == EntryFilter()
    assert after == EntryFilter(project_id="p2", search="paint")
    assert [entry.id for entry in session.visible_entries()] == ["b"]
    assert session.clear_filters() == EntryFilter()
    assert len(session.visible_entries()) == 3


def test_visible_scope_allocates_only_what_is_shown(session):
    session.with_filters(project_id="p2")

    assert session.allocations() == {"b": OvertimeSplit(base=5, ot=0)}
    assert session.totals().totals == HoursTotals(hours=5, base=5, ot=0)


def test_full_day_scope_counts_hidden_entries_of_the_same_day(session):
    session.scope = OvertimeScope.FULL_DAY
    session.with_filters(project_id="p2")

    assert session.allocations() == {"b": OvertimeSplit(base=3, ot=2)}
    assert session.totals().by_project == {"PRJ-2": HoursTotals(hours=5, base=3, ot=2)}


def test_weekly_report_ignores_active_filters(session):
    session.with_filters(project_id="p2", search="nothing matches this")

    report = session.weekly_report("2024-W02")

    assert report.totals == HoursTotals(hours=10, base=8, ot=2)
    assert report.by_project == {
        "PRJ-1": HoursTotals(hours=5, base=5, ot=0),
        "PRJ-2": HoursTotals(hours=5, base=3, ot=2),
    }


def test_entry_operations_update_status_line(session):
    entry = session.log_time(employee_id="e2", project_id="p1", day=date(2024, 1, 9), manual_hours=1.25)
    assert session.status == "Logged 1.25h"

    session.approve_week("2024-W02")
    assert session.status == "Approved and locked 3 entries in 2024-W02"
    assert entry.status is EntryStatus.APPROVED

    session.reject_week("2024-W02")
    session.delete_entry(entry.id)
    assert session.status == f"Deleted entry {entry.id}"


def test_login_keeps_token_in_memory_only(session):
    assert session.login("mark@example.com", "secret") is True
    assert session.auth.signed_in
    assert session.auth.token == "tok-123"
    assert "tok-123" not in session.store.path.read_text(encoding="utf-8")

    session.logout()
    assert not session.auth.signed_in
    assert session.status == "Signed out"


def test_failed_login_reports_instead_of_raising(session):
    assert session.login("mark@example.com", "nope") is False
    assert session.status.startswith("Login failed: 401")
    assert not session.auth.signed_in


def test_health_check(session):
    assert session.check_health() == {"status": "ok", "db": "up"}
    assert session.status.startswith("Backend health:")


def test_push_sends_every_local_entry(session, fake_api):
    _, state = fake_api

    assert session.push_entries() is True
    assert sorted(item["id"] for item in state["saved"]) == ["a", "b", "c"]
    assert session.status == "Saved 3 entries to server"


def test_pull_replaces_local_entries(session, fake_api, server_entry):
    _, state = fake_api
    state["entries"] = [server_entry]

    assert session.pull_entries() is True
    assert list(session.store.time_entries) == ["srv-1"]
    assert list(DataStore(session.store.path).time_entries) == ["srv-1"]
    assert session.status == "Loaded 1 entries from server"


def test_failed_sync_leaves_local_state_alone(session, fake_api):
    _, state = fake_api
    state["fail"] = True

    assert session.pull_entries() is False
    assert session.status.startswith("Load from server failed: 503")
    assert sorted(session.store.time_entries) == ["a", "b", "c"]
    assert session.push_entries() is False
    assert session.status.startswith("Save to server failed")


def test_api_base_is_persisted_without_trailing_slash(session):
    session.set_api_base(" http://localhost:8000/ ")

    assert DataStore(session.store.path).api_base == "http://localhost:8000"


def test_export_uses_visible_entries(session, tmp_path):
    session.with_filters(project_id="p1")

    path = session.export("csv", tmp_path / "p1.csv")

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert session.status == f"Exported CSV to {path}"


def test_from_settings_seeds_store_defaults(tmp_path):
    settings = Settings(
        data_path=tmp_path / "fresh.json",
        default_rounding_increment=6,
        default_daily_overtime_threshold=7.5,
        api_base="http://api.local/",
    )

    session = LoggerSession.from_settings(settings)

    assert session.store.settings.rounding_increment == 6
    assert session.store.settings.daily_overtime_threshold == 7.5
    assert session.store.api_base == "http://api.local"


def test_failed_export_is_reported_in_status(session, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")

    assert session.export("csv", blocker / "out.csv") is None
    assert session.status.startswith("Export failed:")
