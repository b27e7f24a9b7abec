"""Seed a small demo school that can be scheduled end to end.

Run:
  PYTHONPATH=backend python scripts/seed_demo_school.py
"""

from __future__ import annotations

from datetime import date
import os

from sqlalchemy import func, select

from app.db.bootstrap import ensure_runtime_schema
from app.db.session import SessionLocal
from app.models.school import AcademicYear, School, SchoolClass, Subject, Term, Venue
from app.models.student import EnrollmentStatus, ParentStudentLink, Student, StudentEnrollment
from app.models.subject_requirement import SubjectRequirement
from app.models.teacher_assignment import TeacherSubjectAssignment
from app.models.timetable_slot import TimetableSlot
from app.models.user import User, UserRole

SCHOOL_NAME = os.getenv("SEED_SCHOOL_NAME", "Riverside Secondary School").strip() or "Riverside Secondary School"
MOCK_EMAIL_DOMAIN = os.getenv("SEED_MOCK_EMAIL_DOMAIN", "riverside.school").strip().lower() or "riverside.school"

WEEKDAYS = [1, 2, 3, 4, 5]
DAILY_PERIODS = [
    ("08:00", "08:40"),
    ("08:40", "09:20"),
    ("09:20", "10:00"),
    ("10:30", "11:10"),
    ("11:10", "11:50"),
    ("12:30", "13:10"),
]

CLASSES = [("Grade 7", "North"), ("Grade 7", "South"), ("Grade 8", "East")]
SUBJECTS = [
    ("Mathematics", "MATH", 5, None),
    ("English", "ENG", 4, None),
    ("Integrated Science", "SCI", 3, "lab"),
    ("Physical Education", "PE", 2, "gym"),
    ("History", "HIST", 2, None),
]
VENUES = [
    ("Room 101", 40, None),
    ("Room 102", 40, None),
    ("Room 103", 40, None),
    ("Science Lab", 30, "lab"),
    ("Main Gym", 80, "gym"),
]
TEACHERS = {
    "MATH": "Amina Otieno",
    "ENG": "Brian Mwangi",
    "SCI": "Clara Njeri",
    "PE": "David Kiprop",
    "HIST": "Esther Wanjiku",
}


def mock_email(name: str) -> str:
    local = ".".join(part.lower() for part in name.split())
    return f"{local}@{MOCK_EMAIL_DOMAIN}"


def add_user(session, *, school: School, full_name: str, roles: list[UserRole]) -> User:
    user = User(
        school_id=school.id,
        full_name=full_name,
        email=mock_email(full_name),
        roles=[role.value for role in roles],
        is_active=True,
    )
    session.add(user)
    session.flush()
    return user


def seed_calendar(session, school: School) -> Term:
    year = AcademicYear(
        school_id=school.id,
        name="2026",
        start_date=date(2026, 1, 5),
        end_date=date(2026, 11, 27),
    )
    session.add(year)
    session.flush()
    term = Term(
        academic_year_id=year.id,
        name="Term 3",
        start_date=date(2026, 8, 31),
        end_date=date(2026, 11, 27),
    )
    session.add(term)
    session.flush()
    return term


def seed_slots_and_venues(session, school: School) -> None:
    for day in WEEKDAYS:
        for start_time, end_time in DAILY_PERIODS:
            session.add(TimetableSlot(school_id=school.id, day_of_week=day, start_time=start_time, end_time=end_time))
    for name, capacity, venue_type in VENUES:
        session.add(Venue(school_id=school.id, name=name, capacity=capacity, venue_type=venue_type))
    session.flush()


def seed_curriculum(session, school: School, term: Term) -> list[SchoolClass]:
    classes = []
    for grade_level, stream_name in CLASSES:
        school_class = SchoolClass(school_id=school.id, grade_level=grade_level, stream_name=stream_name)
        session.add(school_class)
        classes.append(school_class)
    session.flush()

    for name, code, lessons_per_week, venue_type in SUBJECTS:
        subject = Subject(school_id=school.id, name=name, code=code)
        session.add(subject)
        session.flush()
        teacher = add_user(session, school=school, full_name=TEACHERS[code], roles=[UserRole.teacher])
        for school_class in classes:
            session.add(TeacherSubjectAssignment(teacher_id=teacher.id, subject_id=subject.id, class_id=school_class.id))
            session.add(
                SubjectRequirement(
                    term_id=term.id,
                    class_id=school_class.id,
                    subject_id=subject.id,
                    lessons_per_week=lessons_per_week,
                    requires_venue_type=venue_type,
                    is_double_period=False,
                )
            )
    session.flush()
    return classes


def seed_families(session, school: School, term: Term, classes: list[SchoolClass]) -> None:
    academic_year_id = term.academic_year_id
    parent = add_user(session, school=school, full_name="Grace Achieng", roles=[UserRole.parent])
    for index, school_class in enumerate(classes, start=1):
        user = add_user(session, school=school, full_name=f"Student {index:02d}", roles=[UserRole.student])
        student = Student(school_id=school.id, user_id=user.id, admission_number=f"ADM-{index:04d}")
        session.add(student)
        session.flush()
        session.add(
            StudentEnrollment(
                student_id=student.id,
                class_id=school_class.id,
                academic_year_id=academic_year_id,
                status=EnrollmentStatus.active,
            )
        )
        if index <= 2:
            session.add(ParentStudentLink(parent_user_id=parent.id, student_id=student.id))
    session.flush()


def main() -> None:
    ensure_runtime_schema()
    with SessionLocal() as session:
        existing = session.execute(select(School).where(School.name == SCHOOL_NAME)).scalar_one_or_none()
        if existing is not None:
            print(f"School '{SCHOOL_NAME}' already seeded (id={existing.id}); nothing to do.")
            return

        school = School(name=SCHOOL_NAME)
        session.add(school)
        session.flush()

        term = seed_calendar(session, school)
        seed_slots_and_venues(session, school)
        classes = seed_curriculum(session, school, term)
        seed_families(session, school, term, classes)
        add_user(session, school=school, full_name="Henry Principal", roles=[UserRole.admin])
        session.commit()

        slot_count = session.execute(select(func.count(TimetableSlot.id))).scalar_one()
        requirement_count = session.execute(select(func.count(SubjectRequirement.id))).scalar_one()
        school_id, term_id, term_name = school.id, term.id, term.name

    print("Demo school seeded successfully.")
    print("")
    print(f"School:       {SCHOOL_NAME} ({school_id})")
    print(f"Term:         {term_name} ({term_id})")
    print(f"Slots:        {slot_count}")
    print(f"Requirements: {requirement_count}")
    print("")
    print("Create a draft with POST /api/timetables/versions, then POST .../generate.")


if __name__ == "__main__":
    main()
