from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.teacher_preference import TeacherPreferencesOut, TeacherPreferencesUpdate
from app.services import teacher_preferences as preference_service

router = APIRouter()


@router.put("", response_model=TeacherPreferencesOut)
def set_preferences(payload: TeacherPreferencesUpdate, db: Session = Depends(get_db)) -> TeacherPreferencesOut:
    return preference_service.set_preferences(db, payload=payload)


@router.get("/{teacher_id}/term/{term_id}", response_model=TeacherPreferencesOut)
def get_preferences(
    teacher_id: str,
    term_id: str,
    include_all_slots: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> TeacherPreferencesOut:
    return preference_service.get_preferences(
        db,
        teacher_id=teacher_id,
        term_id=term_id,
        include_all_slots=include_all_slots,
    )
