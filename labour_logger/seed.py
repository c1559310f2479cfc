from __future__ import annotations

from .core.logging import get_logger
from .models import Employee, Project
from .storage import DataStore

logger = get_logger(__name__)

SEED_EMPLOYEES = [
    Employee(id="e1", name="Aoife Byrne", badge="B-1001", pin="1001"),
    Employee(id="e2", name="Ciaran Walsh", badge="B-1002", pin="1002"),
    Employee(id="e3", name="Niamh Kelly", badge="B-1003", pin="1003"),
]

SEED_PROJECTS = [
    Project(id="p1", code="PRJ-100", name="Line 1 Assembly"),
    Project(id="p2", code="PRJ-200", name="Paint Shop"),
    Project(id="p3", code="MAINT", name="Maintenance"),
]


def seed_store(store: DataStore) -> int:
    """Add the demo employees and projects that are not in the store yet."""

    added = 0
    for employee in SEED_EMPLOYEES:
        if employee.id not in store.employees:
            store.add_employee(Employee(**vars(employee)))
            added += 1
    for project in SEED_PROJECTS:
        if project.id not in store.projects and not store.find_project_by_code(project.code):
            store.add_project(Project(**vars(project)))
            added += 1
    store.save()
    logger.info("store_seeded", added=added)
    return added
