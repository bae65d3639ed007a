import logging
import threading

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from taskboard.routes import auth, reports, tasks, users
from taskboard.database.base import Base
from taskboard.database.session import engine
from taskboard import models  # noqa: F401
from taskboard.core.config import CLIENT_URL, DB_BOOTSTRAP_MODE, PORT, parse_cors_origins
from taskboard.core.errors import StoreError, TaskboardError

logger = logging.getLogger("uvicorn.error")
app = FastAPI(title="Taskboard API")

cors_origins = parse_cors_origins(CLIENT_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials="*" not in cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"]
)


@app.middleware("http")
async def ensure_utf8_json_charset(request: Request, call_next):
    response = await call_next(request)
    content_type = str(response.headers.get("content-type", ""))
    if content_type.startswith("application/json") and "charset=" not in content_type.lower():
        response.headers["content-type"] = "application/json; charset=utf-8"
    return response


@app.exception_handler(TaskboardError)
async def taskboard_error_handler(request: Request, exc: TaskboardError):
    if isinstance(exc, StoreError):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": "Server error", "error": exc.message})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=exc.headers)


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unhandled store error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Server error", "error": str(getattr(exc, "orig", None) or exc)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server error", "error": str(exc)})


def ensure_task_defaults():
    inspector = inspect(engine)
    if "tasks" not in inspector.get_table_names():
        return
    with engine.begin() as conn:
        conn.execute(text("UPDATE tasks SET progress = 0 WHERE progress IS NULL"))
        conn.execute(text("UPDATE tasks SET status = 'Pending' WHERE status IS NULL OR TRIM(status) = ''"))
        conn.execute(text("UPDATE tasks SET priority = 'Medium' WHERE priority IS NULL OR TRIM(priority) = ''"))


def run_db_bootstrap() -> None:
    steps = [
        ("create_all", lambda: Base.metadata.create_all(bind=engine)),
        ("ensure_task_defaults", ensure_task_defaults),
    ]
    for step_name, step_fn in steps:
        try:
            step_fn()
        except Exception:  # pragma: no cover - startup hardening
            logger.exception("Database bootstrap failed (step: %s)", step_name)


_bootstrap_lock = threading.Lock()
_bootstrap_started = False


def trigger_db_bootstrap() -> None:
    global _bootstrap_started
    with _bootstrap_lock:
        if _bootstrap_started:
            return
        _bootstrap_started = True

    mode = str(DB_BOOTSTRAP_MODE or "background").strip().lower()
    if mode == "off":
        logger.info("DB bootstrap disabled (DB_BOOTSTRAP_MODE=off).")
        return
    if mode == "sync":
        logger.info("Running DB bootstrap synchronously.")
        run_db_bootstrap()
        return

    logger.info("Running DB bootstrap in background.")
    threading.Thread(target=run_db_bootstrap, daemon=True, name="db-bootstrap").start()


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(tasks.router)
app.include_router(reports.router)

@app.get("/")
def root():
    return {"message": "Taskboard API running"}


@app.get("/health")
def healthcheck():
    return {"status": "ok"}


@app.get("/health/db")
def healthcheck_db():
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    return {"status": "ok"}


@app.on_event("startup")
def startup_event():
    trigger_db_bootstrap()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("taskboard.main:app", host="0.0.0.0", port=PORT)
