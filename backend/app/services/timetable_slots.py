from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.lesson import Lesson
from app.models.school import AcademicYear, School, Term
from app.models.timetable_slot import TimetableSlot
from app.schemas.timetable_slot import TimetableSlotCreate, TimetableSlotUpdate, parse_time_to_minutes


def resolve_term_school_id(db: Session, term_id: str) -> str:
    term = db.get(Term, term_id)
    if term is None:
        raise NotFoundError("Term", term_id)
    academic_year = db.get(AcademicYear, term.academic_year_id)
    if academic_year is None:
        raise NotFoundError("AcademicYear", term.academic_year_id)
    return academic_year.school_id


def list_slots(db: Session, school_id: str) -> list[TimetableSlot]:
    return list(
        db.execute(
            select(TimetableSlot)
            .where(TimetableSlot.school_id == school_id)
            .order_by(TimetableSlot.day_of_week, TimetableSlot.start_time)
        ).scalars()
    )


def get_slot(db: Session, slot_id: str) -> TimetableSlot:
    slot = db.get(TimetableSlot, slot_id)
    if slot is None:
        raise NotFoundError("TimetableSlot", slot_id)
    return slot


def _ensure_no_overlap(
    db: Session,
    *,
    school_id: str,
    day_of_week: int,
    start_time: str,
    end_time: str,
    exclude_id: str | None = None,
) -> None:
    start = parse_time_to_minutes(start_time)
    end = parse_time_to_minutes(end_time)
    if end <= start:
        raise ValidationError("Slot end time must be after its start time.")

    query = select(TimetableSlot).where(
        TimetableSlot.school_id == school_id,
        TimetableSlot.day_of_week == day_of_week,
    )
    if exclude_id is not None:
        query = query.where(TimetableSlot.id != exclude_id)
    for other in db.execute(query).scalars():
        if start < parse_time_to_minutes(other.end_time) and end > parse_time_to_minutes(other.start_time):
            raise ConflictError(
                f"Slot overlaps with an existing slot on day {day_of_week} "
                f"({other.start_time}-{other.end_time}).",
                details={"slot_id": other.id},
            )


def create_slot(db: Session, *, payload: TimetableSlotCreate) -> TimetableSlot:
    if db.get(School, payload.school_id) is None:
        raise NotFoundError("School", payload.school_id)
    _ensure_no_overlap(
        db,
        school_id=payload.school_id,
        day_of_week=payload.day_of_week,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )
    slot = TimetableSlot(**payload.model_dump())
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


def _ensure_unused(db: Session, slot: TimetableSlot, action: str) -> None:
    in_use = db.execute(select(Lesson.id).where(Lesson.slot_id == slot.id).limit(1)).first()
    if in_use is not None:
        raise ConflictError(
            f"Cannot {action} slot: it is used by one or more lessons.",
            details={"slot_id": slot.id},
        )


def update_slot(db: Session, slot_id: str, *, payload: TimetableSlotUpdate) -> TimetableSlot:
    slot = get_slot(db, slot_id)
    _ensure_unused(db, slot, "update")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    merged = {
        "day_of_week": changes.get("day_of_week", slot.day_of_week),
        "start_time": changes.get("start_time", slot.start_time),
        "end_time": changes.get("end_time", slot.end_time),
    }
    _ensure_no_overlap(db, school_id=slot.school_id, exclude_id=slot.id, **merged)
    for key, value in merged.items():
        setattr(slot, key, value)
    db.commit()
    db.refresh(slot)
    return slot


def delete_slot(db: Session, slot_id: str) -> None:
    slot = get_slot(db, slot_id)
    _ensure_unused(db, slot, "delete")
    db.delete(slot)
    db.commit()
