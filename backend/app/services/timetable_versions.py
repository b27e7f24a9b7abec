from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from app.models.lesson import Lesson
from app.models.school import SchoolClass, Subject, Term, Venue
from app.models.teacher_assignment import TeacherSubjectAssignment
from app.models.timetable_slot import TimetableSlot
from app.models.timetable_version import TimetableStatus, TimetableType, TimetableVersion
from app.models.user import User
from app.schemas.timetable import (
    ClassRef,
    LessonCreate,
    LessonDetail,
    SlotRef,
    SubjectRef,
    TeacherRef,
    TimetableVersionCreate,
    TimetableVersionOut,
    VenueRef,
    VersionWithLessons,
)
from app.services.audit import log_activity
from app.services.version_locks import version_locks

logger = logging.getLogger(__name__)


def _load_by_ids(db: Session, model, ids: Iterable[str]) -> dict:
    wanted = {item for item in ids if item}
    if not wanted:
        return {}
    return {row.id: row for row in db.execute(select(model).where(model.id.in_(wanted))).scalars()}


def get_version(db: Session, version_id: str) -> TimetableVersion:
    version = db.get(TimetableVersion, version_id)
    if version is None:
        raise NotFoundError("TimetableVersion", version_id)
    return version


def ensure_draft(version: TimetableVersion, action: str) -> None:
    if version.status != TimetableStatus.draft:
        raise InvalidStateError(
            f"Cannot {action}: timetable version '{version.name}' is {version.status.value}. "
            "Only draft versions can be modified.",
            details={"version_id": version.id, "status": version.status.value},
        )


@contextmanager
def draft_for_update(db: Session, version: TimetableVersion, action: str) -> Iterator[TimetableVersion]:
    """Hold the version lock with the version re-read and confirmed to still be a draft."""
    with version_locks.hold(version.id):
        db.refresh(version)
        ensure_draft(version, action)
        yield version


def published_version_ids(db: Session, term_id: str, *, timetable_type: TimetableType | None = None) -> list[str]:
    query = select(TimetableVersion.id).where(
        TimetableVersion.term_id == term_id,
        TimetableVersion.status == TimetableStatus.published,
    )
    if timetable_type is not None:
        query = query.where(TimetableVersion.timetable_type == timetable_type)
    return list(db.execute(query).scalars())


def published_lessons_in_term(db: Session, term_id: str, *, timetable_type: TimetableType | None = None) -> list[Lesson]:
    version_ids = published_version_ids(db, term_id, timetable_type=timetable_type)
    if not version_ids:
        return []
    return list(db.execute(select(Lesson).where(Lesson.timetable_version_id.in_(version_ids))).scalars())


def build_lesson_details(db: Session, lessons: Sequence[Lesson]) -> list[LessonDetail]:
    """Resolve lesson references in bulk and order the result by day, then start time."""
    if not lessons:
        return []
    slots = _load_by_ids(db, TimetableSlot, (item.slot_id for item in lessons))
    classes = _load_by_ids(db, SchoolClass, (item.class_id for item in lessons))
    subjects = _load_by_ids(db, Subject, (item.subject_id for item in lessons))
    teachers = _load_by_ids(db, User, (item.teacher_id for item in lessons))
    venues = _load_by_ids(db, Venue, (item.venue_id for item in lessons))

    details: list[LessonDetail] = []
    for lesson in lessons:
        slot = slots.get(lesson.slot_id)
        if slot is None:
            logger.warning("Lesson %s references missing slot %s", lesson.id, lesson.slot_id)
            continue
        school_class = classes.get(lesson.class_id)
        subject = subjects.get(lesson.subject_id)
        teacher = teachers.get(lesson.teacher_id)
        venue = venues.get(lesson.venue_id) if lesson.venue_id else None
        details.append(
            LessonDetail(
                id=lesson.id,
                timetable_version_id=lesson.timetable_version_id,
                term_id=lesson.term_id,
                slot=SlotRef(
                    id=slot.id,
                    day_of_week=slot.day_of_week,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                ),
                school_class=ClassRef(
                    id=lesson.class_id,
                    name=school_class.display_name if school_class else lesson.class_id,
                ),
                subject=SubjectRef(
                    id=lesson.subject_id,
                    name=subject.name if subject else lesson.subject_id,
                    code=subject.code if subject else None,
                ),
                teacher=TeacherRef(
                    id=lesson.teacher_id,
                    full_name=teacher.full_name if teacher else lesson.teacher_id,
                ),
                venue=VenueRef(id=venue.id, name=venue.name, venue_type=venue.venue_type) if venue else None,
            )
        )
    details.sort(key=lambda item: (item.slot.day_of_week, item.slot.start_time))
    return details


def create_version(db: Session, *, payload: TimetableVersionCreate, actor_id: str | None = None) -> TimetableVersion:
    if db.get(Term, payload.term_id) is None:
        raise NotFoundError("Term", payload.term_id)

    version = TimetableVersion(
        term_id=payload.term_id,
        name=payload.name.strip(),
        description=payload.description,
        timetable_type=payload.timetable_type,
        status=TimetableStatus.draft,
        created_by_id=actor_id,
    )
    db.add(version)
    db.flush()
    log_activity(
        db,
        actor_id=actor_id,
        action="timetable.version.create",
        entity_type="timetable_version",
        entity_id=version.id,
        details={"term_id": version.term_id, "timetable_type": version.timetable_type.value},
    )
    db.commit()
    db.refresh(version)
    return version


def find_version_with_lessons(db: Session, version_id: str) -> VersionWithLessons:
    version = get_version(db, version_id)
    lessons = list(db.execute(select(Lesson).where(Lesson.timetable_version_id == version.id)).scalars())
    base = TimetableVersionOut.model_validate(version)
    return VersionWithLessons(**base.model_dump(), lessons=build_lesson_details(db, lessons))


def list_versions_for_term(db: Session, term_id: str) -> list[TimetableVersion]:
    if db.get(Term, term_id) is None:
        raise NotFoundError("Term", term_id)
    return list(
        db.execute(
            select(TimetableVersion)
            .where(
                TimetableVersion.term_id == term_id,
                TimetableVersion.status != TimetableStatus.archived,
            )
            .order_by(TimetableVersion.created_at.desc(), TimetableVersion.id.desc())
        ).scalars()
    )


def publish_version(
    db: Session,
    version_id: str,
    *,
    actor_id: str | None = None,
) -> tuple[TimetableVersion, bool]:
    """Publish a version, archiving whichever version previously held its (term, type).

    Returns the version and whether anything changed; publishing an already published
    version is a no-op.
    """
    version = get_version(db, version_id)

    with version_locks.hold(version.id):
        db.refresh(version)
        if version.status == TimetableStatus.published:
            return version, False
        if version.status == TimetableStatus.archived:
            raise InvalidStateError(
                f"Cannot publish: timetable version '{version.name}' is archived.",
                details={"version_id": version.id, "status": version.status.value},
            )

        now = datetime.now(timezone.utc)
        superseded = list(
            db.execute(
                select(TimetableVersion).where(
                    TimetableVersion.term_id == version.term_id,
                    TimetableVersion.timetable_type == version.timetable_type,
                    TimetableVersion.status == TimetableStatus.published,
                    TimetableVersion.id != version.id,
                )
            ).scalars()
        )
        for other in superseded:
            other.status = TimetableStatus.archived
            other.archived_at = now

        version.status = TimetableStatus.published
        version.published_at = now
        log_activity(
            db,
            actor_id=actor_id,
            action="timetable.version.publish",
            entity_type="timetable_version",
            entity_id=version.id,
            details={"archived_version_ids": [item.id for item in superseded]},
        )
        db.commit()
    db.refresh(version)
    logger.info(
        "Published timetable version %s for term %s (archived %s sibling(s))",
        version.id,
        version.term_id,
        len(superseded),
    )
    return version, True


def archive_version(db: Session, version_id: str, *, actor_id: str | None = None) -> TimetableVersion:
    version = get_version(db, version_id)
    with version_locks.hold(version.id):
        version.status = TimetableStatus.archived
        version.archived_at = datetime.now(timezone.utc)
        log_activity(
            db,
            actor_id=actor_id,
            action="timetable.version.archive",
            entity_type="timetable_version",
            entity_id=version.id,
        )
        db.commit()
    db.refresh(version)
    return version


def clone_version(
    db: Session,
    source_id: str,
    *,
    name: str,
    actor_id: str | None = None,
) -> TimetableVersion:
    source = get_version(db, source_id)
    cloned_at = datetime.now(timezone.utc).isoformat()
    clone = TimetableVersion(
        term_id=source.term_id,
        name=name.strip(),
        description=f'Cloned from "{source.name}" on {cloned_at}',
        timetable_type=source.timetable_type,
        status=TimetableStatus.draft,
        created_by_id=actor_id,
    )
    db.add(clone)
    db.flush()

    source_lessons = list(db.execute(select(Lesson).where(Lesson.timetable_version_id == source.id)).scalars())
    for lesson in source_lessons:
        db.add(
            Lesson(
                timetable_version_id=clone.id,
                term_id=clone.term_id,
                slot_id=lesson.slot_id,
                class_id=lesson.class_id,
                subject_id=lesson.subject_id,
                teacher_id=lesson.teacher_id,
                venue_id=lesson.venue_id,
            )
        )
    log_activity(
        db,
        actor_id=actor_id,
        action="timetable.version.clone",
        entity_type="timetable_version",
        entity_id=clone.id,
        details={"source_version_id": source.id, "lessons_copied": len(source_lessons)},
    )
    db.commit()
    db.refresh(clone)
    return clone


def _check_slot_conflicts(db: Session, version: TimetableVersion, payload: LessonCreate) -> None:
    published_ids = published_version_ids(db, version.term_id)
    occupying = list(
        db.execute(
            select(Lesson).where(
                Lesson.slot_id == payload.slot_id,
                or_(
                    Lesson.timetable_version_id == version.id,
                    Lesson.timetable_version_id.in_(published_ids),
                ),
            )
        ).scalars()
    )
    for existing in occupying:
        details = {"lesson_id": existing.id, "timetable_version_id": existing.timetable_version_id}
        if existing.teacher_id == payload.teacher_id:
            raise ConflictError(
                f"Teacher {payload.teacher_id} is already scheduled in slot {payload.slot_id}.",
                details=details,
            )
        if existing.class_id == payload.class_id:
            raise ConflictError(
                f"Class {payload.class_id} already has a lesson in slot {payload.slot_id}.",
                details=details,
            )
        if payload.venue_id and existing.venue_id == payload.venue_id:
            raise ConflictError(
                f"Venue {payload.venue_id} is already booked in slot {payload.slot_id}.",
                details=details,
            )


def add_lesson(db: Session, *, payload: LessonCreate, actor_id: str | None = None) -> Lesson:
    version = get_version(db, payload.timetable_version_id)
    ensure_draft(version, "add lesson")
    if db.get(TimetableSlot, payload.slot_id) is None:
        raise NotFoundError("TimetableSlot", payload.slot_id)
    if payload.venue_id and db.get(Venue, payload.venue_id) is None:
        raise NotFoundError("Venue", payload.venue_id)

    with draft_for_update(db, version, "add lesson"):
        _check_slot_conflicts(db, version, payload)

        assignment = db.execute(
            select(TeacherSubjectAssignment.id).where(
                TeacherSubjectAssignment.teacher_id == payload.teacher_id,
                TeacherSubjectAssignment.subject_id == payload.subject_id,
                TeacherSubjectAssignment.class_id == payload.class_id,
            )
        ).first()
        if assignment is None:
            raise ValidationError(
                f"Teacher {payload.teacher_id} is not assigned to teach subject {payload.subject_id} "
                f"for class {payload.class_id}.",
                details={
                    "teacher_id": payload.teacher_id,
                    "subject_id": payload.subject_id,
                    "class_id": payload.class_id,
                },
            )

        lesson = Lesson(
            timetable_version_id=version.id,
            term_id=version.term_id,
            slot_id=payload.slot_id,
            class_id=payload.class_id,
            subject_id=payload.subject_id,
            teacher_id=payload.teacher_id,
            venue_id=payload.venue_id,
        )
        db.add(lesson)
        db.flush()
        log_activity(
            db,
            actor_id=actor_id,
            action="timetable.lesson.add",
            entity_type="lesson",
            entity_id=lesson.id,
            details={"timetable_version_id": version.id, "slot_id": payload.slot_id},
        )
        db.commit()
    db.refresh(lesson)
    return lesson


def find_lesson(db: Session, lesson_id: str) -> LessonDetail:
    lesson = db.get(Lesson, lesson_id)
    if lesson is None:
        raise NotFoundError("Lesson", lesson_id)
    details = build_lesson_details(db, [lesson])
    if not details:
        raise NotFoundError("Lesson", lesson_id, message=f"Lesson {lesson_id} references a missing slot")
    return details[0]


def remove_lesson(db: Session, lesson_id: str, *, actor_id: str | None = None) -> None:
    lesson = db.get(Lesson, lesson_id)
    if lesson is None:
        raise NotFoundError("Lesson", lesson_id)
    version = get_version(db, lesson.timetable_version_id)
    ensure_draft(version, "remove lesson")

    with draft_for_update(db, version, "remove lesson"):
        db.delete(lesson)
        log_activity(
            db,
            actor_id=actor_id,
            action="timetable.lesson.remove",
            entity_type="lesson",
            entity_id=lesson_id,
            details={"timetable_version_id": version.id},
        )
        db.commit()
