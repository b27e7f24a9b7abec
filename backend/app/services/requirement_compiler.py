"""Expands weekly subject requirements into individual lessons awaiting placement."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ConfigurationError, MissingAssignmentError
from app.models.subject_requirement import SubjectRequirement
from app.models.teacher_assignment import TeacherSubjectAssignment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnscheduledLesson:
    class_id: str
    subject_id: str
    teacher_id: str
    requires_venue_type: str | None
    is_double_period: bool
    lesson_key: str

    @property
    def is_constrained(self) -> bool:
        return self.is_double_period or self.requires_venue_type is not None


def build_lesson_key(class_id: str, subject_id: str, number: int) -> str:
    return f"C{class_id}-S{subject_id}-#{number}"


def compile_requirements(
    requirements: Sequence[SubjectRequirement],
    assignments: Sequence[TeacherSubjectAssignment],
) -> list[UnscheduledLesson]:
    """Turn requirements into one UnscheduledLesson per weekly lesson.

    The first assignment for a (class, subject) pair, in the order given, supplies the
    teacher. Lessons that need a double period or a venue type come first; relative order
    is otherwise preserved.
    """
    if not requirements:
        raise ConfigurationError("No subject requirements found for this term. Nothing to schedule.")

    teacher_by_pair: dict[tuple[str, str], str] = {}
    for assignment in assignments:
        teacher_by_pair.setdefault((assignment.class_id, assignment.subject_id), assignment.teacher_id)

    lessons: list[UnscheduledLesson] = []
    for requirement in requirements:
        teacher_id = teacher_by_pair.get((requirement.class_id, requirement.subject_id))
        if teacher_id is None:
            raise MissingAssignmentError(requirement.class_id, requirement.subject_id)
        venue_type = (requirement.requires_venue_type or "").strip() or None
        for number in range(1, requirement.lessons_per_week + 1):
            lessons.append(
                UnscheduledLesson(
                    class_id=requirement.class_id,
                    subject_id=requirement.subject_id,
                    teacher_id=teacher_id,
                    requires_venue_type=venue_type,
                    is_double_period=bool(requirement.is_double_period),
                    lesson_key=build_lesson_key(requirement.class_id, requirement.subject_id, number),
                )
            )

    # list.sort is stable, so this only lifts constrained lessons to the front.
    lessons.sort(key=lambda item: not item.is_constrained)
    return lessons


def load_unscheduled_lessons(db: Session, term_id: str) -> list[UnscheduledLesson]:
    requirements = list(
        db.execute(
            select(SubjectRequirement)
            .where(SubjectRequirement.term_id == term_id)
            .order_by(SubjectRequirement.created_at, SubjectRequirement.id)
        ).scalars()
    )
    class_ids = {item.class_id for item in requirements}
    assignments: list[TeacherSubjectAssignment] = []
    if class_ids:
        assignments = list(
            db.execute(
                select(TeacherSubjectAssignment)
                .where(TeacherSubjectAssignment.class_id.in_(class_ids))
                .order_by(TeacherSubjectAssignment.created_at, TeacherSubjectAssignment.id)
            ).scalars()
        )
    lessons = compile_requirements(requirements, assignments)
    logger.debug(
        "Compiled %s requirement(s) for term %s into %s lesson(s)",
        len(requirements),
        term_id,
        len(lessons),
    )
    return lessons
