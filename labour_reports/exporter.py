from __future__ import annotations

import csv
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.platypus.doctemplate import LayoutError

from .reports import EXPORT_COLUMNS, ReportRow

XLSX_SHEET_TITLE_MAX = 31

# failures reported as a status message instead of raised
EXPORT_ERRORS = (OSError, LayoutError)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class ReportExporter(ABC):
    """Writes entry report rows (in ``EXPORT_COLUMNS`` order) to one file format."""

    name: str = ""
    suffix: str = ""

    @abstractmethod
    def export(self, rows: Iterable[ReportRow], output_path: Path, title: str) -> Path:
        raise NotImplementedError


class CsvExporter(ReportExporter):
    name = "csv"
    suffix = ".csv"

    def export(self, rows: Iterable[ReportRow], output_path: Path, title: str) -> Path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle, quoting=csv.QUOTE_MINIMAL)
            writer.writerow(EXPORT_COLUMNS)
            for row in rows:
                writer.writerow([_stringify(row.get(column)) for column in EXPORT_COLUMNS])
        return output_path


class XlsxExporter(ReportExporter):
    name = "xlsx"
    suffix = ".xlsx"

    def export(self, rows: Iterable[ReportRow], output_path: Path, title: str) -> Path:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = (title or "Entries")[:XLSX_SHEET_TITLE_MAX]
        sheet.append(EXPORT_COLUMNS)
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for row in rows:
            sheet.append([row.get(column) for column in EXPORT_COLUMNS])
        sheet.freeze_panes = "A2"
        output_path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(output_path)
        return output_path


class PdfExporter(ReportExporter):
    name = "pdf"
    suffix = ".pdf"

    def export(self, rows: Iterable[ReportRow], output_path: Path, title: str) -> Path:
        styles = getSampleStyleSheet()
        cell_style = ParagraphStyle("entry_cell", parent=styles["Normal"], fontSize=7, leading=8.5)

        table_rows: List[List[Any]] = [EXPORT_COLUMNS]
        for row in rows:
            table_rows.append(
                [Paragraph(escape(_stringify(row.get(column))), cell_style) for column in EXPORT_COLUMNS]
            )

        story: List[Any] = [Paragraph(escape(title), styles["Title"]), Spacer(1, 8)]
        if len(table_rows) == 1:
            story.append(Paragraph("No entries match the current selection.", styles["Normal"]))
        else:
            table = Table(table_rows, repeatRows=1)
            table.setStyle(
                TableStyle(
                    [
                        ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
                        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                        ("FONTSIZE", (0, 0), (-1, 0), 7),
                        ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                        ("VALIGN", (0, 0), (-1, -1), "TOP"),
                        ("LEFTPADDING", (0, 0), (-1, -1), 3),
                        ("RIGHTPADDING", (0, 0), (-1, -1), 3),
                    ]
                )
            )
            story.append(table)

        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=landscape(letter),
            leftMargin=0.4 * inch,
            rightMargin=0.4 * inch,
            topMargin=0.5 * inch,
            bottomMargin=0.5 * inch,
            title=title,
        )
        output_path.parent.mkdir(parents=True, exist_ok=True)
        doc.build(story)
        return output_path


EXPORTERS: Dict[str, ReportExporter] = {
    exporter.name: exporter for exporter in (CsvExporter(), XlsxExporter(), PdfExporter())
}


def get_exporter(fmt: str) -> ReportExporter:
    try:
        return EXPORTERS[fmt.lower().lstrip(".")]
    except KeyError:
        raise ValueError(f"Unsupported export format {fmt!r}. Use one of: {', '.join(EXPORTERS)}") from None


def export_report(rows: Iterable[ReportRow], output_path: Path, title: str, fmt: str | None = None) -> Path:
    exporter = get_exporter(fmt or output_path.suffix)
    return exporter.export(rows, output_path, title=title)
