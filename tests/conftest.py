import sys
from datetime import date, datetime
from pathlib import Path
from urllib.parse import parse_qs

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from labour_logger.models import Employee, EntryStatus, Project, TimeEntry
from labour_logger.storage import DataStore


@pytest.fixture
def store(tmp_path):
    store = DataStore(tmp_path / "store.json")
    store.add_employee(Employee(id="e1", name="Ana Diaz", badge="B-1", pin="1111"))
    store.add_employee(Employee(id="e2", name="Ben Ortiz", badge="B-2", pin="2222"))
    store.add_project(Project(id="p1", code="PRJ-1", name="Line Assembly"))
    store.add_project(Project(id="p2", code="PRJ-2", name="Paint Shop"))
    store.save()
    return store


@pytest.fixture
def make_entry():
    def factory(
        entry_id,
        *,
        employee_id="e1",
        project_id="p1",
        day=date(2024, 1, 8),
        start="08:00",
        hours=1.0,
        status=EntryStatus.PENDING,
        locked=False,
        notes="",
        work_type="",
    ):
        return TimeEntry(
            id=entry_id,
            employee_id=employee_id,
            project_id=project_id,
            date=day,
            start=start,
            end=None,
            hours=hours,
            rounded_from_minutes=int(hours * 60),
            rounding_increment=15,
            notes=notes,
            work_type=work_type,
            status=status,
            locked=locked,
            created_at=datetime(2024, 1, 8, 17, 0),
        )

    return factory


@pytest.fixture
def fake_api():
    """In-process stand-in for the remote entries API."""

    state = {"entries": [], "saved": None, "fail": False, "login_content_type": None}
    app = FastAPI()

    @app.get("/health")
    def health():
        return {"status": "ok", "db": "up"}

    @app.post("/auth/login")
    async def login(request: Request):
        state["login_content_type"] = request.headers.get("content-type")
        fields = parse_qs((await request.body()).decode())
        if fields.get("username") == ["mark@example.com"] and fields.get("password") == ["secret"]:
            return {"user": {"name": "Mark", "role": "admin"}, "token": "tok-123"}
        return JSONResponse({"detail": "Invalid credentials"}, status_code=401)

    @app.get("/entries/")
    def list_entries():
        if state["fail"]:
            return JSONResponse({"detail": "database unavailable"}, status_code=503)
        return state["entries"]

    @app.post("/entries/")
    async def save_entries(request: Request):
        if state["fail"]:
            return JSONResponse({"detail": "database unavailable"}, status_code=503)
        state["saved"] = await request.json()
        return {"saved": len(state["saved"])}

    return app, state


@pytest.fixture
def server_entry():
    return {
        "id": "srv-1",
        "employee_id": "e1",
        "project_id": "p1",
        "date": "2024-01-08",
        "start": "07:00",
        "end": "15:30",
        "break_minutes": 30,
        "work_type": "Assembly",
        "notes": "",
        "hours": 8.0,
        "rounded_from_minutes": 480,
        "rounding_increment": 15,
        "status": "approved",
        "locked": True,
        "created_at": "2024-01-08T15:35:00",
    }
