from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import health, subject_requirements, teacher_preferences, timetable_slots, timetables
from app.core.config import get_settings
from app.core.exceptions import AppError
from app.db.bootstrap import ensure_runtime_schema

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.auto_create_schema:
        ensure_runtime_schema()
    yield


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("Unhandled application error on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(
    timetable_slots.router,
    prefix=f"{settings.api_prefix}/timetable-slots",
    tags=["timetable-slots"],
)
app.include_router(
    subject_requirements.router,
    prefix=f"{settings.api_prefix}/subject-requirements",
    tags=["subject-requirements"],
)
app.include_router(
    teacher_preferences.router,
    prefix=f"{settings.api_prefix}/teacher-preferences",
    tags=["teacher-preferences"],
)
app.include_router(timetables.router, prefix=f"{settings.api_prefix}/timetables", tags=["timetables"])
