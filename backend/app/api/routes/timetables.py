from collections.abc import Callable

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_actor_id, get_db, get_session_factory
from app.models.timetable_version import TimetableType
from app.schemas.activity import ActivityLogOut
from app.schemas.personal import PersonalTimetable
from app.schemas.reports import (
    ClashReport,
    FreeSlotsOut,
    TeacherWorkloadReport,
    VenueUtilizationReport,
    VersionComparison,
)
from app.schemas.timetable import (
    GenerationResult,
    LessonCreate,
    LessonDetail,
    LessonOut,
    TimetableVersionClone,
    TimetableVersionCreate,
    TimetableVersionOut,
    VersionWithLessons,
)
from app.services import timetable_versions as version_service
from app.services.audit import activity_for
from app.services.conflict_service import find_clashes_in_term
from app.services.notifications import run_timetable_distribution
from app.services.personal_timetable import (
    find_published_timetables_by_user_details,
    get_published_timetable_for_user,
)
from app.services.timetable_generator import generate_timetable
from app.services.timetable_reports import (
    compare_versions,
    find_free_slots,
    teacher_workload_report,
    venue_utilization_report,
)

router = APIRouter()


@router.post("/versions", response_model=TimetableVersionOut, status_code=status.HTTP_201_CREATED)
def create_version(
    payload: TimetableVersionCreate,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> TimetableVersionOut:
    return version_service.create_version(db, payload=payload, actor_id=actor_id)


@router.post("/versions/{version_id}/clone", response_model=TimetableVersionOut, status_code=status.HTTP_201_CREATED)
def clone_version(
    version_id: str,
    payload: TimetableVersionClone,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> TimetableVersionOut:
    return version_service.clone_version(db, version_id, name=payload.name, actor_id=actor_id)


@router.get("/versions/by-term/{term_id}", response_model=list[TimetableVersionOut])
def list_versions(term_id: str, db: Session = Depends(get_db)) -> list[TimetableVersionOut]:
    return version_service.list_versions_for_term(db, term_id)


@router.get("/versions/{version_id}", response_model=VersionWithLessons)
def get_version(version_id: str, db: Session = Depends(get_db)) -> VersionWithLessons:
    return version_service.find_version_with_lessons(db, version_id)


@router.get("/versions/{version_id}/activity", response_model=list[ActivityLogOut])
def version_activity(version_id: str, db: Session = Depends(get_db)) -> list[ActivityLogOut]:
    version = version_service.get_version(db, version_id)
    return activity_for(db, entity_type="timetable_version", entity_id=version.id)


@router.patch("/versions/{version_id}/publish", response_model=TimetableVersionOut)
def publish_version(
    version_id: str,
    background_tasks: BackgroundTasks,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> TimetableVersionOut:
    version, changed = version_service.publish_version(db, version_id, actor_id=actor_id)
    if changed:
        background_tasks.add_task(run_timetable_distribution, version.id, session_factory)
    return version


@router.delete("/versions/{version_id}", response_model=TimetableVersionOut)
def archive_version(
    version_id: str,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> TimetableVersionOut:
    return version_service.archive_version(db, version_id, actor_id=actor_id)


@router.post("/versions/{version_id}/generate", response_model=GenerationResult)
def generate_version(
    version_id: str,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> GenerationResult:
    return generate_timetable(db, version_id, actor_id=actor_id)


@router.post("/lessons", response_model=LessonOut, status_code=status.HTTP_201_CREATED)
def add_lesson(
    payload: LessonCreate,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> LessonOut:
    return version_service.add_lesson(db, payload=payload, actor_id=actor_id)


@router.get("/lessons/{lesson_id}", response_model=LessonDetail)
def get_lesson(lesson_id: str, db: Session = Depends(get_db)) -> LessonDetail:
    return version_service.find_lesson(db, lesson_id)


@router.delete("/lessons/{lesson_id}")
def remove_lesson(
    lesson_id: str,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> dict:
    version_service.remove_lesson(db, lesson_id, actor_id=actor_id)
    return {"success": True}


@router.get("/published/by-user", response_model=PersonalTimetable)
def published_for_user(
    user_id: str = Query(min_length=1),
    term_id: str = Query(min_length=1),
    db: Session = Depends(get_db),
) -> PersonalTimetable:
    return get_published_timetable_for_user(db, user_id=user_id, term_id=term_id)


@router.get("/published/search-by-user", response_model=list[PersonalTimetable])
def search_published_by_user(
    term_id: str = Query(min_length=1),
    school_id: str = Query(min_length=1),
    search: str = Query(default=""),
    db: Session = Depends(get_db),
) -> list[PersonalTimetable]:
    return find_published_timetables_by_user_details(db, term_id=term_id, search=search, school_id=school_id)


@router.get("/reports/clashes/{term_id}", response_model=ClashReport)
def clashes(term_id: str, db: Session = Depends(get_db)) -> ClashReport:
    return find_clashes_in_term(db, term_id)


@router.get("/reports/compare", response_model=VersionComparison)
def compare(
    version_a_id: str = Query(min_length=1),
    version_b_id: str = Query(min_length=1),
    db: Session = Depends(get_db),
) -> VersionComparison:
    return compare_versions(db, version_a_id, version_b_id)


@router.get("/reports/free-slots/{term_id}", response_model=FreeSlotsOut)
def free_slots(
    term_id: str,
    teacher_id: str | None = Query(default=None),
    class_id: str | None = Query(default=None),
    venue_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> FreeSlotsOut:
    return find_free_slots(db, term_id, teacher_id=teacher_id, class_id=class_id, venue_id=venue_id)


@router.get("/reports/venue-utilization/{term_id}", response_model=VenueUtilizationReport)
def venue_utilization(
    term_id: str,
    timetable_type: TimetableType = Query(default=TimetableType.lesson, alias="type"),
    db: Session = Depends(get_db),
) -> VenueUtilizationReport:
    return venue_utilization_report(db, term_id, timetable_type=timetable_type)


@router.get("/reports/teacher-workload/{term_id}", response_model=TeacherWorkloadReport)
def teacher_workload(
    term_id: str,
    timetable_type: TimetableType = Query(default=TimetableType.lesson, alias="type"),
    db: Session = Depends(get_db),
) -> TeacherWorkloadReport:
    return teacher_workload_report(db, term_id, timetable_type=timetable_type)
