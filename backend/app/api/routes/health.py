from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.config import get_settings
from app.services.email import is_email_configured

router = APIRouter()

REQUIRED_TABLES = {
    "timetable_slots",
    "subject_requirements",
    "teacher_availability",
    "teacher_subject_assignments",
    "timetable_versions",
    "lessons",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": _now()}


@router.get("/health/ready")
def health_ready(db: Session = Depends(get_db)) -> JSONResponse:
    settings = get_settings()
    missing_tables: list[str] = []
    db_error: str | None = None

    try:
        connection = db.connection()
        connection.execute(text("SELECT 1"))
        missing_tables = sorted(REQUIRED_TABLES - set(inspect(connection).get_table_names()))
    except SQLAlchemyError as exc:
        db_error = str(exc)

    db_ok = db_error is None
    ready = db_ok and not missing_tables
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": _now(),
        "database": {
            "ok": db_ok,
            "schema_ok": db_ok and not missing_tables,
            "missing_tables": missing_tables,
            "error": db_error,
        },
        "smtp": {
            "configured": is_email_configured(),
            "distribution_email_enabled": settings.distribution_deliver_email,
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
