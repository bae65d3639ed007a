from __future__ import annotations

from io import BytesIO
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from taskboard.services.report_csv import TASK_REPORT_COLUMNS


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "title",
            parent=base["Title"],
            fontName="Helvetica-Bold",
            fontSize=18,
            leading=22,
            alignment=1,
            spaceAfter=4,
        ),
        "cell": ParagraphStyle(
            "cell",
            parent=base["Normal"],
            fontName="Helvetica",
            fontSize=8,
            leading=10,
        ),
        "small": ParagraphStyle(
            "small",
            parent=base["Normal"],
            fontName="Helvetica",
            fontSize=9,
            leading=11,
        ),
    }


def _tasks_table(rows: list[dict[str, Any]], styles: dict[str, ParagraphStyle]) -> Table:
    data: list[list[Any]] = [[header for _, header in TASK_REPORT_COLUMNS]]
    for row in rows:
        data.append([Paragraph(escape(str(row.get(key, ""))), styles["cell"]) for key, _ in TASK_REPORT_COLUMNS])

    table = Table(
        data,
        colWidths=[16 * mm, 45 * mm, 70 * mm, 20 * mm, 24 * mm, 24 * mm, 68 * mm],
        repeatRows=1,
    )
    table.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 9),
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#ececec")),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("TOPPADDING", (0, 0), (-1, -1), 3),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
            ]
        )
    )
    return table


def build_tasks_pdf(rows: list[dict[str, Any]], generated_at: str) -> bytes:
    output = BytesIO()
    document = SimpleDocTemplate(
        output,
        pagesize=landscape(A4),
        leftMargin=10 * mm,
        rightMargin=10 * mm,
        topMargin=10 * mm,
        bottomMargin=10 * mm,
        title="Tasks Report",
    )

    styles = _styles()
    story: list[Any] = [
        Paragraph("Tasks Report", styles["title"]),
        Paragraph(f"Generated at: {generated_at}", styles["small"]),
        Spacer(1, 6),
    ]
    if rows:
        story.append(_tasks_table(rows, styles))
    else:
        story.append(Paragraph("No tasks registered.", styles["small"]))

    document.build(story)
    return output.getvalue()
