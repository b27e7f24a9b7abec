from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.lesson import Lesson
from app.models.school import AcademicYear, Term
from app.models.student import EnrollmentStatus, ParentStudentLink, Student, StudentEnrollment
from app.models.user import User, UserRole
from app.schemas.personal import ChildSchedule, PersonalTimetable, PersonalTimetables, StudentSchedule
from app.schemas.timetable import LessonDetail
from app.services.timetable_versions import build_lesson_details, published_version_ids

MIN_SEARCH_LENGTH = 3


def active_class_id(db: Session, student_id: str) -> str | None:
    """Class of the student's active enrollment in the most recent academic year."""
    return db.execute(
        select(StudentEnrollment.class_id)
        .join(AcademicYear, AcademicYear.id == StudentEnrollment.academic_year_id)
        .where(
            StudentEnrollment.student_id == student_id,
            StudentEnrollment.status == EnrollmentStatus.active,
        )
        .order_by(AcademicYear.start_date.desc())
        .limit(1)
    ).scalar_one_or_none()


def _published_lessons(db: Session, version_ids: list[str], **filters: str) -> list[LessonDetail]:
    if not version_ids:
        return []
    query = select(Lesson).where(Lesson.timetable_version_id.in_(version_ids))
    for column, value in filters.items():
        query = query.where(getattr(Lesson, column) == value)
    return build_lesson_details(db, list(db.execute(query).scalars()))


def _student_lessons(db: Session, version_ids: list[str], student_id: str) -> list[LessonDetail]:
    class_id = active_class_id(db, student_id)
    if class_id is None:
        return []
    return _published_lessons(db, version_ids, class_id=class_id)


def _student_name(db: Session, student: Student) -> str:
    if student.user_id:
        user = db.get(User, student.user_id)
        if user is not None:
            return user.full_name
    return student.admission_number


def _resolve_for_user(db: Session, user: User, version_ids: list[str]) -> PersonalTimetable:
    timetables = PersonalTimetables()

    if user.has_role(UserRole.teacher):
        timetables.teacher_schedule = _published_lessons(db, version_ids, teacher_id=user.id)

    student = db.execute(select(Student).where(Student.user_id == user.id).limit(1)).scalar_one_or_none()
    if student is not None:
        timetables.student_schedule = StudentSchedule(
            student_id=student.id,
            lessons=_student_lessons(db, version_ids, student.id),
        )

    if user.has_role(UserRole.parent):
        children = db.execute(
            select(Student)
            .join(ParentStudentLink, ParentStudentLink.student_id == Student.id)
            .where(ParentStudentLink.parent_user_id == user.id)
            .order_by(Student.admission_number)
        ).scalars()
        timetables.children_schedules = [
            ChildSchedule(
                student_id=child.id,
                student_name=_student_name(db, child),
                lessons=_student_lessons(db, version_ids, child.id),
            )
            for child in children
        ]

    return PersonalTimetable(user_id=user.id, full_name=user.full_name, timetables=timetables)


def get_published_timetable_for_user(db: Session, *, user_id: str, term_id: str) -> PersonalTimetable:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    if db.get(Term, term_id) is None:
        raise NotFoundError("Term", term_id)
    return _resolve_for_user(db, user, published_version_ids(db, term_id))


def _has_schedule(result: PersonalTimetable) -> bool:
    timetables = result.timetables
    if timetables.teacher_schedule:
        return True
    if timetables.student_schedule is not None and timetables.student_schedule.lessons:
        return True
    return any(child.lessons for child in timetables.children_schedules or [])


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def find_published_timetables_by_user_details(
    db: Session,
    *,
    term_id: str,
    search: str,
    school_id: str,
) -> list[PersonalTimetable]:
    needle = (search or "").strip().lower()
    if len(needle) < MIN_SEARCH_LENGTH:
        raise ValidationError(f"Search term must be at least {MIN_SEARCH_LENGTH} characters long.")
    if db.get(Term, term_id) is None:
        raise NotFoundError("Term", term_id)

    pattern = f"%{_escape_like(needle)}%"
    candidates = db.execute(
        select(User)
        .where(
            User.school_id == school_id,
            User.is_active.is_(True),
            or_(
                func.lower(User.full_name).like(pattern, escape="\\"),
                func.lower(User.email).like(pattern, escape="\\"),
            ),
        )
        .order_by(User.full_name)
    ).scalars()
    student_user_ids = set(
        db.execute(select(Student.user_id).where(Student.school_id == school_id, Student.user_id.is_not(None))).scalars()
    )

    version_ids = published_version_ids(db, term_id)
    results: list[PersonalTimetable] = []
    for user in candidates:
        if not (user.has_role(UserRole.teacher) or user.has_role(UserRole.parent) or user.id in student_user_ids):
            continue
        resolved = _resolve_for_user(db, user, version_ids)
        if _has_schedule(resolved):
            results.append(resolved)
    return results
