from datetime import datetime
from io import BytesIO
from typing import Literal

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from taskboard.core.auth import get_current_admin
from taskboard.database.deps import get_db
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.services.dashboard import user_task_counts
from taskboard.services.report_csv import build_tasks_csv, build_users_csv, task_report_rows
from taskboard.services.report_pdf import build_tasks_pdf
from taskboard.services.report_xlsx import XLSX_MEDIA_TYPE, build_tasks_xlsx, build_users_xlsx

router = APIRouter(prefix="/api/reports", tags=["Reports"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _attachment(payload: bytes, media_type: str, filename: str) -> StreamingResponse:
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(BytesIO(payload), media_type=media_type, headers=headers)


@router.get("/export/tasks")
def export_tasks_report(
    format: Literal["xlsx", "csv", "pdf"] = "xlsx",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    tasks = db.query(Task).order_by(Task.id.asc()).all()
    if format == "pdf":
        pdf_bytes = build_tasks_pdf(task_report_rows(tasks), datetime.now().strftime("%Y-%m-%d %H:%M"))
        return _attachment(pdf_bytes, "application/pdf", "tasks_report.pdf")
    if format == "csv":
        return _attachment(build_tasks_csv(tasks), CSV_MEDIA_TYPE, "tasks_report.csv")
    return _attachment(build_tasks_xlsx(tasks), XLSX_MEDIA_TYPE, "tasks_report.xlsx")


@router.get("/export/users")
def export_users_report(
    format: Literal["xlsx", "csv"] = "xlsx",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    users = db.query(User).order_by(User.name.asc(), User.id.asc()).all()
    counts = user_task_counts(db, users)
    if format == "csv":
        return _attachment(build_users_csv(users, counts), CSV_MEDIA_TYPE, "users_report.csv")
    return _attachment(build_users_xlsx(users, counts), XLSX_MEDIA_TYPE, "users_report.xlsx")
