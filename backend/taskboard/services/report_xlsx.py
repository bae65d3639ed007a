from __future__ import annotations

from io import BytesIO
from typing import Any, Iterable

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from taskboard.services.report_csv import (
    TASK_REPORT_COLUMNS,
    USER_REPORT_COLUMNS,
    task_report_rows,
    user_report_rows,
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

TASKS_SHEET_TITLE = "Tasks Report"
USERS_SHEET_TITLE = "User Task Report"

TASK_COLUMN_WIDTHS = [25, 30, 50, 15, 20, 20, 30]
USER_COLUMN_WIDTHS = [30, 40, 20, 20, 20, 20]


def build_workbook(
    title: str,
    columns: list[tuple[str, str]],
    widths: list[int],
    rows: Iterable[dict[str, Any]],
) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = title

    sheet.append([header for _, header in columns])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append([row.get(key, "") for key, _ in columns])

    for index, width in enumerate(widths, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width
    sheet.freeze_panes = "A2"

    output = BytesIO()
    workbook.save(output)
    return output.getvalue()


def build_tasks_xlsx(tasks: Iterable[Any]) -> bytes:
    return build_workbook(TASKS_SHEET_TITLE, TASK_REPORT_COLUMNS, TASK_COLUMN_WIDTHS, task_report_rows(tasks))


def build_users_xlsx(users: Iterable[Any], counts: dict[int, dict[str, int]]) -> bytes:
    return build_workbook(USERS_SHEET_TITLE, USER_REPORT_COLUMNS, USER_COLUMN_WIDTHS, user_report_rows(users, counts))
