from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db, get_session_factory
from app.db.base import Base
from app.main import app
from app.models.lesson import Lesson
from app.models.school import AcademicYear, School, SchoolClass, Subject, Term, Venue
from app.models.student import EnrollmentStatus, ParentStudentLink, Student, StudentEnrollment
from app.models.subject_requirement import SubjectRequirement
from app.models.teacher_assignment import TeacherSubjectAssignment
from app.models.teacher_availability import AvailabilityStatus, TeacherAvailability
from app.models.timetable_slot import TimetableSlot
from app.models.timetable_version import TimetableStatus, TimetableType, TimetableVersion
from app.models.user import User
from app.services.version_locks import version_locks


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    version_locks.clear()


class Seeder:
    """Writes reference rows straight to the database, committing each one."""

    def __init__(self, db):
        self.db = db
        self._counter = 0

    def _save(self, record):
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def school(self, name: str = "Test School") -> School:
        return self._save(School(name=name))

    def academic_year(self, school: School, *, name: str = "2026", start: date = date(2026, 1, 5)) -> AcademicYear:
        return self._save(
            AcademicYear(school_id=school.id, name=name, start_date=start, end_date=date(start.year, 11, 27))
        )

    def term(self, school: School, *, academic_year: AcademicYear | None = None, name: str = "Term 1") -> Term:
        year = academic_year or self.academic_year(school)
        return self._save(
            Term(
                academic_year_id=year.id,
                name=name,
                start_date=year.start_date,
                end_date=year.end_date,
            )
        )

    def slot(self, school: School, day: int, start_time: str, end_time: str) -> TimetableSlot:
        return self._save(
            TimetableSlot(school_id=school.id, day_of_week=day, start_time=start_time, end_time=end_time)
        )

    def venue(self, school: School, name: str | None = None, venue_type: str | None = None) -> Venue:
        return self._save(Venue(school_id=school.id, name=name or f"Room {self._next()}", venue_type=venue_type))

    def school_class(self, school: School, grade_level: str = "Grade 7", stream_name: str | None = None) -> SchoolClass:
        return self._save(SchoolClass(school_id=school.id, grade_level=grade_level, stream_name=stream_name))

    def subject(self, school: School, name: str | None = None) -> Subject:
        return self._save(Subject(school_id=school.id, name=name or f"Subject {self._next()}"))

    def user(self, school: School, full_name: str, roles: list[str], *, email: str | None = None) -> User:
        return self._save(
            User(
                school_id=school.id,
                full_name=full_name,
                email=email or f"user{self._next()}@school.test",
                roles=roles,
                is_active=True,
            )
        )

    def teacher(self, school: School, full_name: str | None = None) -> User:
        return self.user(school, full_name or f"Teacher {self._next()}", ["teacher"])

    def assign(self, teacher: User, subject: Subject, school_class: SchoolClass) -> TeacherSubjectAssignment:
        return self._save(
            TeacherSubjectAssignment(teacher_id=teacher.id, subject_id=subject.id, class_id=school_class.id)
        )

    def requirement(
        self,
        term: Term,
        school_class: SchoolClass,
        subject: Subject,
        lessons_per_week: int,
        *,
        venue_type: str | None = None,
        double_period: bool = False,
    ) -> SubjectRequirement:
        return self._save(
            SubjectRequirement(
                term_id=term.id,
                class_id=school_class.id,
                subject_id=subject.id,
                lessons_per_week=lessons_per_week,
                requires_venue_type=venue_type,
                is_double_period=double_period,
            )
        )

    def availability(self, teacher: User, term: Term, slot: TimetableSlot, status: AvailabilityStatus):
        return self._save(
            TeacherAvailability(teacher_id=teacher.id, term_id=term.id, slot_id=slot.id, status=status)
        )

    def version(
        self,
        term: Term,
        name: str = "Draft",
        *,
        status: TimetableStatus = TimetableStatus.draft,
        timetable_type: TimetableType = TimetableType.lesson,
    ) -> TimetableVersion:
        return self._save(TimetableVersion(term_id=term.id, name=name, status=status, timetable_type=timetable_type))

    def lesson(
        self,
        version: TimetableVersion,
        slot: TimetableSlot,
        school_class: SchoolClass,
        subject: Subject,
        teacher: User,
        venue: Venue | None = None,
    ) -> Lesson:
        return self._save(
            Lesson(
                timetable_version_id=version.id,
                term_id=version.term_id,
                slot_id=slot.id,
                class_id=school_class.id,
                subject_id=subject.id,
                teacher_id=teacher.id,
                venue_id=venue.id if venue else None,
            )
        )

    def student(self, school: School, user: User | None = None, admission_number: str | None = None) -> Student:
        return self._save(
            Student(
                school_id=school.id,
                user_id=user.id if user else None,
                admission_number=admission_number or f"ADM-{self._next():04d}",
            )
        )

    def enroll(
        self,
        student: Student,
        school_class: SchoolClass,
        academic_year: AcademicYear,
        status: EnrollmentStatus = EnrollmentStatus.active,
    ) -> StudentEnrollment:
        return self._save(
            StudentEnrollment(
                student_id=student.id,
                class_id=school_class.id,
                academic_year_id=academic_year.id,
                status=status,
            )
        )

    def link_parent(self, parent: User, student: Student) -> ParentStudentLink:
        return self._save(ParentStudentLink(parent_user_id=parent.id, student_id=student.id))


@pytest.fixture()
def seed(db_session):
    return Seeder(db_session)


@pytest.fixture()
def monday_school(seed):
    """Two Monday slots, one untyped venue, one class needing two maths lessons from one teacher."""
    school = seed.school()
    term = seed.term(school)
    slots = [seed.slot(school, 1, "08:00", "08:40"), seed.slot(school, 1, "08:40", "09:20")]
    venue = seed.venue(school, "Room 1")
    school_class = seed.school_class(school, "Grade 7", "North")
    maths = seed.subject(school, "Mathematics")
    teacher = seed.teacher(school, "Teacher Seven")
    seed.assign(teacher, maths, school_class)
    seed.requirement(term, school_class, maths, 2)
    return {
        "school": school,
        "term": term,
        "slots": slots,
        "venue": venue,
        "class": school_class,
        "subject": maths,
        "teacher": teacher,
    }
