from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.school import SchoolClass, Subject, Term
from app.models.subject_requirement import SubjectRequirement
from app.schemas.subject_requirement import SubjectRequirementCreate, SubjectRequirementUpdate
from app.services.timetable_slots import resolve_term_school_id


def _validate_references(db: Session, payload: SubjectRequirementCreate) -> None:
    term = db.get(Term, payload.term_id)
    school_class = db.get(SchoolClass, payload.class_id)
    subject = db.get(Subject, payload.subject_id)
    missing = [
        name
        for name, record in (("term", term), ("class", school_class), ("subject", subject))
        if record is None
    ]
    if missing:
        raise ValidationError(
            f"Invalid reference: {', '.join(missing)} not found.",
            details={"missing": missing},
        )

    school_id = resolve_term_school_id(db, payload.term_id)
    if school_class.school_id != school_id or subject.school_id != school_id:
        raise ValidationError(
            "Term, class and subject must belong to the same school.",
            details={"school_id": school_id},
        )


def create_requirement(db: Session, *, payload: SubjectRequirementCreate) -> SubjectRequirement:
    existing = db.execute(
        select(SubjectRequirement.id).where(
            SubjectRequirement.term_id == payload.term_id,
            SubjectRequirement.class_id == payload.class_id,
            SubjectRequirement.subject_id == payload.subject_id,
        )
    ).first()
    if existing is not None:
        raise ConflictError(
            "A requirement for this subject and class already exists in this term.",
            details={"requirement_id": existing[0]},
        )
    _validate_references(db, payload)

    requirement = SubjectRequirement(**payload.model_dump())
    db.add(requirement)
    db.commit()
    db.refresh(requirement)
    return requirement


def list_requirements(db: Session, term_id: str) -> list[SubjectRequirement]:
    if db.get(Term, term_id) is None:
        raise NotFoundError("Term", term_id)
    return list(
        db.execute(
            select(SubjectRequirement)
            .where(SubjectRequirement.term_id == term_id)
            .order_by(SubjectRequirement.class_id, SubjectRequirement.subject_id)
        ).scalars()
    )


def get_requirement(db: Session, requirement_id: str) -> SubjectRequirement:
    requirement = db.get(SubjectRequirement, requirement_id)
    if requirement is None:
        raise NotFoundError("SubjectRequirement", requirement_id)
    return requirement


def update_requirement(
    db: Session,
    requirement_id: str,
    *,
    payload: SubjectRequirementUpdate,
) -> SubjectRequirement:
    requirement = get_requirement(db, requirement_id)
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        # requires_venue_type may be cleared; the other fields may not
        if value is None and key != "requires_venue_type":
            continue
        setattr(requirement, key, value)
    db.commit()
    db.refresh(requirement)
    return requirement


def delete_requirement(db: Session, requirement_id: str) -> None:
    requirement = get_requirement(db, requirement_id)
    db.delete(requirement)
    db.commit()
