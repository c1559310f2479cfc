from __future__ import annotations
import csv
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import List
from uuid import uuid4

from .core.logging import get_logger
from .exceptions import ImportFormatError
from .models import Project
from .storage import DataStore

logger = get_logger(__name__)

REQUIRED_COLUMNS = ("code", "name")


@dataclass
class ImportSummary:
    imported: List[Project] = field(default_factory=list)
    skipped_invalid: int = 0
    skipped_duplicate: int = 0

    @property
    def skipped(self) -> int:
        return self.skipped_invalid + self.skipped_duplicate

    def describe(self) -> str:
        return (
            f"Imported {len(self.imported)} projects "
            f"({self.skipped_invalid} invalid, {self.skipped_duplicate} duplicate rows skipped)"
        )


def _header_positions(header: List[str]) -> dict[str, int]:
    normalized = [column.strip().lower() for column in header]
    missing = [column for column in REQUIRED_COLUMNS if column not in normalized]
    if missing:
        raise ImportFormatError(f"CSV header must contain columns: {', '.join(REQUIRED_COLUMNS)}")
    return {column: normalized.index(column) for column in REQUIRED_COLUMNS}


def import_projects_text(store: DataStore, text: str) -> ImportSummary:
    """Add projects from CSV text with a ``code`` and ``name`` header.

    Quoted fields may hold commas, doubled quotes and newlines. Rows missing
    either value and codes that already exist (case-insensitive) are skipped.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    try:
        header = next(reader)
    except StopIteration:
        raise ImportFormatError("CSV file is empty") from None
    except csv.Error as exc:
        raise ImportFormatError(f"Could not read CSV header: {exc}") from exc
    positions = _header_positions(header)

    summary = ImportSummary()
    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error:
            summary.skipped_invalid += 1
            continue
        if not any(cell.strip() for cell in row):
            continue
        code = row[positions["code"]].strip() if len(row) > positions["code"] else ""
        name = row[positions["name"]].strip() if len(row) > positions["name"] else ""
        if not code or not name:
            summary.skipped_invalid += 1
            continue
        if store.find_project_by_code(code):
            summary.skipped_duplicate += 1
            continue
        project = Project(id=str(uuid4()), code=code, name=name)
        store.add_project(project)
        summary.imported.append(project)

    if summary.imported:
        store.save()
    logger.info(
        "projects_imported",
        imported=len(summary.imported),
        skipped_invalid=summary.skipped_invalid,
        skipped_duplicate=summary.skipped_duplicate,
    )
    return summary


def import_projects(store: DataStore, path: Path) -> ImportSummary:
    try:
        with path.open(newline="", encoding="utf-8") as handle:
            text = handle.read()
    except UnicodeDecodeError as exc:
        raise ImportFormatError(f"{path.name} is not UTF-8 encoded; save it as CSV UTF-8 and retry") from exc
    except OSError as exc:
        raise ImportFormatError(f"Could not read {path}: {exc.strerror or exc}") from exc
    return import_projects_text(store, text)
