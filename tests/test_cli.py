import csv

from openpyxl import load_workbook

from labour_logger import cli
from labour_logger.exceptions import RemoteApiError
from labour_logger.models import EntryStatus
from labour_logger.storage import DataStore


def run(capsys, data_path, *argv):
    code = cli.main(["--data", str(data_path), *argv])
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def test_seed_then_list_employees_sorted(capsys, tmp_path):
    data_path = tmp_path / "store.json"

    code, out, _ = run(capsys, data_path, "seed")
    assert code == 0
    assert out.startswith("Seeded 6 records")

    _, out, _ = run(capsys, data_path, "list-employees")
    lines = out.strip().splitlines()
    assert lines[0].startswith("e1 Aoife Byrne")
    assert "badge: B-1001" in lines[0]
    assert lines[-1].startswith("e3 Niamh Kelly")

    _, out, _ = run(capsys, data_path, "seed")
    assert out.startswith("Seeded 0 records")


def test_log_time_resolves_badge_and_project_code(capsys, store):
    code, out, _ = run(
        capsys, store.path, "log-time", "B-2", "PRJ-2", "2024-01-08",
        "--start", "07:00", "--end", "15:37", "--break", "30",
    )

    assert code == 0
    assert "for 8.00 hours on 2024-01-08" in out
    (entry,) = DataStore(store.path).time_entries.values()
    assert (entry.employee_id, entry.project_id) == ("e2", "p2")
    assert entry.rounded_from_minutes == 487


def test_invalid_entry_exits_with_message(capsys, store):
    code, out, err = run(capsys, store.path, "log-time", "e1", "p1", "2024-01-08", "--start", "09:00", "--end", "08:00")

    assert code == 1
    assert out == ""
    assert "End time must be after start time" in err


def test_entries_and_totals_show_overtime_split(capsys, store):
    run(capsys, store.path, "log-time", "e1", "p1", "2024-01-08", "--start", "08:00", "--end", "13:00", "--id", "a")
    run(capsys, store.path, "log-time", "e1", "p2", "2024-01-08", "--start", "13:00", "--end", "18:00", "--id", "b")

    _, out, _ = run(capsys, store.path, "entries", "--project", "PRJ-2", "--scope", "full_day")
    (row,) = out.strip().splitlines()[1:]
    assert "3.00   2.00" in row
    assert row.endswith(" b")

    _, out, _ = run(capsys, store.path, "totals", "--project", "PRJ-2")
    assert "All visible entries" in out
    assert "5.00     5.00     0.00" in out


def test_weekly_report_and_week_approval_lock(capsys, store):
    run(capsys, store.path, "log-time", "e1", "p1", "2024-01-09", "--hours", "9", "--id", "a")

    _, out, _ = run(capsys, store.path, "weekly-report", "2024-W02")
    assert out.startswith("Week 2024-W02 (2024-01-08 - 2024-01-14)")
    assert "Ana Diaz" in out
    assert "9.00     8.00     1.00" in out.splitlines()[-1]

    _, out, _ = run(capsys, store.path, "approve-week", "2024-W02")
    assert out.strip() == "Approved and locked 1 entries in 2024-W02"
    assert DataStore(store.path).get_entry("a").status is EntryStatus.APPROVED

    code, _, err = run(capsys, store.path, "delete", "a")
    assert code == 1
    assert "locked" in err


def test_bad_week_label_is_reported(capsys, store):
    code, _, err = run(capsys, store.path, "approve-week", "2024-2")

    assert code == 1
    assert err.startswith("Error:")


def test_import_and_export_csv(capsys, store, tmp_path):
    source = tmp_path / "projects.csv"
    source.write_text("Code,Name\nPRJ-9,NewProj\nbad-row-missing-name,\n", encoding="utf-8")

    _, out, _ = run(capsys, store.path, "import-projects", str(source))
    assert out.strip() == "Imported 1 projects (1 invalid, 0 duplicate rows skipped)"

    run(capsys, store.path, "log-time", "e1", "PRJ-9", "2024-01-08", "--hours", "2", "--notes", "setup, trial")
    target = tmp_path / "out.csv"
    code, out, _ = run(capsys, store.path, "export", "csv", str(target), "--search", "newproj")
    assert code == 0
    with target.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert rows[0]["Project Code"] == "PRJ-9"
    assert rows[0]["Notes"] == "setup, trial"


def test_preview_does_not_save(capsys, store):
    _, out, _ = run(capsys, store.path, "preview", "--start", "08:00", "--end", "16:07", "--increment", "6")

    assert out.splitlines() == ["Raw minutes: 487", "Rounded minutes: 486 (increment 6)", "Hours: 8.10"]
    assert DataStore(store.path).time_entries == {}


def test_settings_update(capsys, store):
    _, out, _ = run(capsys, store.path, "settings", "--rounding", "30", "--threshold", "7.5")

    assert "Rounding increment: 30 min" in out
    assert "Daily overtime threshold: 7.5 h" in out
    assert DataStore(store.path).settings.rounding_increment == 30


def test_kiosk_commands(capsys, store):
    code, out, _ = run(capsys, store.path, "clock-in", "1111", "PRJ-1")
    assert code == 0
    assert out.startswith("Ana Diaz clocked in at")

    code, _, err = run(capsys, store.path, "clock-in", "B-1", "PRJ-1")
    assert code == 1
    assert "already clocked in" in err


def test_remote_failures_exit_non_zero(capsys, store, monkeypatch):
    class Unreachable:
        def __init__(self, base_url, **kwargs):
            pass

        def __enter__(self):
            raise RemoteApiError("connection refused")

        def __exit__(self, *exc_info):
            return None

    monkeypatch.setattr("labour_logger.session.ApiClient", Unreachable)

    code, out, _ = run(capsys, store.path, "pull")

    assert code == 1
    assert out.strip() == "Load from server failed: connection refused"


def test_export_failure_exits_non_zero(capsys, store, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")

    code, out, _ = run(capsys, store.path, "export", "csv", str(blocker / "out.csv"))

    assert code == 1
    assert out.startswith("Export failed:")


def test_import_of_non_utf8_file_reports_an_error(capsys, store, tmp_path):
    source = tmp_path / "excel.csv"
    source.write_bytes("code,name\nC-1,Café\n".encode("cp1252"))

    code, _, err = run(capsys, store.path, "import-projects", str(source))

    assert code == 1
    assert err.startswith("Error: excel.csv is not UTF-8 encoded")


def test_export_title_defaults_to_the_app_name(capsys, store, tmp_path):
    target = tmp_path / "entries.xlsx"

    code, _, _ = run(capsys, store.path, "export", "xlsx", str(target))

    assert code == 0
    assert load_workbook(target).active.title == "Factory Labour Logger"
