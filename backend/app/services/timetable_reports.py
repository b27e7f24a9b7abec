from __future__ import annotations

from collections import Counter

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.lesson import Lesson
from app.models.school import Venue
from app.models.timetable_version import TimetableType, TimetableVersion
from app.models.user import User, UserRole
from app.schemas.reports import (
    FreeSlotsOut,
    LessonIdentity,
    TeacherWorkload,
    TeacherWorkloadReport,
    VenueUtilization,
    VenueUtilizationReport,
    VersionComparison,
    VersionSummary,
)
from app.schemas.timetable_slot import TimetableSlotOut
from app.services.timetable_slots import list_slots, resolve_term_school_id
from app.services.timetable_versions import get_version, published_lessons_in_term, published_version_ids

LessonKey = tuple[str, str, str, str, str | None]


def _lesson_key(lesson: Lesson) -> LessonKey:
    return (lesson.class_id, lesson.subject_id, lesson.teacher_id, lesson.slot_id, lesson.venue_id)


def _identity(key: LessonKey) -> LessonIdentity:
    class_id, subject_id, teacher_id, slot_id, venue_id = key
    return LessonIdentity(
        class_id=class_id,
        subject_id=subject_id,
        teacher_id=teacher_id,
        slot_id=slot_id,
        venue_id=venue_id,
    )


def _summary(version: TimetableVersion, lesson_count: int) -> VersionSummary:
    return VersionSummary(
        id=version.id,
        name=version.name,
        status=version.status,
        timetable_type=version.timetable_type,
        lesson_count=lesson_count,
    )


def _version_lessons(db: Session, version_id: str) -> list[Lesson]:
    return list(db.execute(select(Lesson).where(Lesson.timetable_version_id == version_id)).scalars())


def _sorted_identities(counter: Counter) -> list[LessonIdentity]:
    keys = sorted(counter.elements(), key=lambda key: tuple(part or "" for part in key))
    return [_identity(key) for key in keys]


def compare_versions(db: Session, version_a_id: str, version_b_id: str) -> VersionComparison:
    version_a = get_version(db, version_a_id)
    version_b = get_version(db, version_b_id)
    lessons_a = _version_lessons(db, version_a.id)
    lessons_b = _version_lessons(db, version_b.id)

    keys_a = Counter(_lesson_key(item) for item in lessons_a)
    keys_b = Counter(_lesson_key(item) for item in lessons_b)
    return VersionComparison(
        version_a=_summary(version_a, len(lessons_a)),
        version_b=_summary(version_b, len(lessons_b)),
        lessons_added_in_b=_sorted_identities(keys_b - keys_a),
        lessons_removed_from_a=_sorted_identities(keys_a - keys_b),
    )


def find_free_slots(
    db: Session,
    term_id: str,
    *,
    teacher_id: str | None = None,
    class_id: str | None = None,
    venue_id: str | None = None,
) -> FreeSlotsOut:
    """Slots where no published lesson involves any of the given teacher, class or venue.

    Without filters a slot is free only when no published lesson uses it at all.
    """
    school_id = resolve_term_school_id(db, term_id)
    filtered = any(item is not None for item in (teacher_id, class_id, venue_id))

    occupied: set[str] = set()
    for lesson in published_lessons_in_term(db, term_id):
        if not filtered or (
            (teacher_id is not None and lesson.teacher_id == teacher_id)
            or (class_id is not None and lesson.class_id == class_id)
            or (venue_id is not None and lesson.venue_id == venue_id)
        ):
            occupied.add(lesson.slot_id)

    free = [
        TimetableSlotOut.model_validate(slot)
        for slot in list_slots(db, school_id)
        if slot.id not in occupied
    ]
    return FreeSlotsOut(term_id=term_id, free_slots=free)


def _require_published(db: Session, term_id: str, timetable_type: TimetableType) -> list[Lesson]:
    if not published_version_ids(db, term_id, timetable_type=timetable_type):
        raise NotFoundError(
            "TimetableVersion",
            message=f"No published {timetable_type.value} timetable found for term {term_id}.",
        )
    return published_lessons_in_term(db, term_id, timetable_type=timetable_type)


def venue_utilization_report(
    db: Session,
    term_id: str,
    *,
    timetable_type: TimetableType = TimetableType.lesson,
) -> VenueUtilizationReport:
    school_id = resolve_term_school_id(db, term_id)
    lessons = _require_published(db, term_id, timetable_type)
    total_slots = len(list_slots(db, school_id))
    hosted = Counter(item.venue_id for item in lessons if item.venue_id)

    venues = db.execute(select(Venue).where(Venue.school_id == school_id).order_by(Venue.name, Venue.id)).scalars()
    rows = [
        VenueUtilization(
            venue_id=venue.id,
            venue_name=venue.name,
            venue_type=venue.venue_type,
            lessons_hosted=hosted[venue.id],
            utilization_percentage=round(hosted[venue.id] / total_slots * 100, 2) if total_slots else 0.0,
        )
        for venue in venues
    ]
    return VenueUtilizationReport(
        term_id=term_id,
        timetable_type=timetable_type,
        total_slots=total_slots,
        message=None if total_slots else "No timetable slots are defined for this school.",
        venues=rows,
    )


def teacher_workload_report(
    db: Session,
    term_id: str,
    *,
    timetable_type: TimetableType = TimetableType.lesson,
) -> TeacherWorkloadReport:
    school_id = resolve_term_school_id(db, term_id)
    lessons = _require_published(db, term_id, timetable_type)
    assigned = Counter(item.teacher_id for item in lessons)

    teachers = [
        user
        for user in db.execute(select(User).where(User.school_id == school_id)).scalars()
        if user.has_role(UserRole.teacher)
    ]
    rows = [
        TeacherWorkload(teacher_id=user.id, full_name=user.full_name, lessons_assigned=assigned[user.id])
        for user in teachers
    ]
    rows.sort(key=lambda item: (-item.lessons_assigned, item.full_name))
    return TeacherWorkloadReport(term_id=term_id, timetable_type=timetable_type, teachers=rows)
