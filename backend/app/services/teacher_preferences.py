from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.models.school import Term
from app.models.teacher_availability import AvailabilityStatus, TeacherAvailability
from app.models.timetable_slot import TimetableSlot
from app.models.user import User, UserRole
from app.schemas.teacher_preference import SlotPreferenceOut, TeacherPreferencesOut, TeacherPreferencesUpdate
from app.services.timetable_slots import list_slots, resolve_term_school_id


def _require_teacher_and_term(db: Session, teacher_id: str, term_id: str) -> str:
    teacher = db.get(User, teacher_id)
    if teacher is None:
        raise ValidationError(f"Teacher {teacher_id} not found.")
    if db.get(Term, term_id) is None:
        raise ValidationError(f"Term {term_id} not found.")
    if not teacher.has_role(UserRole.teacher):
        raise ValidationError(f"User {teacher_id} is not a teacher.")
    return resolve_term_school_id(db, term_id)


def set_preferences(db: Session, *, payload: TeacherPreferencesUpdate) -> TeacherPreferencesOut:
    """Replace every availability record the teacher holds for the term."""
    school_id = _require_teacher_and_term(db, payload.teacher_id, payload.term_id)

    slot_ids = {item.slot_id for item in payload.preferences}
    if slot_ids:
        known = set(
            db.execute(
                select(TimetableSlot.id).where(
                    TimetableSlot.id.in_(slot_ids),
                    TimetableSlot.school_id == school_id,
                )
            ).scalars()
        )
        invalid = sorted(slot_ids - known)
        if invalid:
            raise ValidationError(
                "One or more slots do not belong to this term's school.",
                details={"slot_ids": invalid},
            )

    db.execute(
        delete(TeacherAvailability).where(
            TeacherAvailability.teacher_id == payload.teacher_id,
            TeacherAvailability.term_id == payload.term_id,
        )
    )
    for item in payload.preferences:
        db.add(
            TeacherAvailability(
                teacher_id=payload.teacher_id,
                term_id=payload.term_id,
                slot_id=item.slot_id,
                status=item.status,
            )
        )
    db.commit()
    return get_preferences(db, teacher_id=payload.teacher_id, term_id=payload.term_id)


def get_preferences(
    db: Session,
    *,
    teacher_id: str,
    term_id: str,
    include_all_slots: bool = False,
) -> TeacherPreferencesOut:
    school_id = _require_teacher_and_term(db, teacher_id, term_id)
    stored = {
        record.slot_id: record.status
        for record in db.execute(
            select(TeacherAvailability).where(
                TeacherAvailability.teacher_id == teacher_id,
                TeacherAvailability.term_id == term_id,
            )
        ).scalars()
    }

    preferences: list[SlotPreferenceOut] = []
    for slot in list_slots(db, school_id):
        if slot.id not in stored and not include_all_slots:
            continue
        preferences.append(
            SlotPreferenceOut(
                slot_id=slot.id,
                day_of_week=slot.day_of_week,
                start_time=slot.start_time,
                end_time=slot.end_time,
                status=stored.get(slot.id, AvailabilityStatus.available),
            )
        )
    return TeacherPreferencesOut(teacher_id=teacher_id, term_id=term_id, preferences=preferences)


def get_availability_matrix(db: Session, term_id: str) -> dict[tuple[str, str], AvailabilityStatus]:
    return {
        (record.teacher_id, record.slot_id): record.status
        for record in db.execute(select(TeacherAvailability).where(TeacherAvailability.term_id == term_id)).scalars()
    }
