from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.timetable_slot import TimetableSlotCreate, TimetableSlotOut, TimetableSlotUpdate
from app.services import timetable_slots as slot_service

router = APIRouter()


@router.post("", response_model=TimetableSlotOut, status_code=status.HTTP_201_CREATED)
def create_slot(payload: TimetableSlotCreate, db: Session = Depends(get_db)) -> TimetableSlotOut:
    return slot_service.create_slot(db, payload=payload)


@router.get("/school/{school_id}", response_model=list[TimetableSlotOut])
def list_slots(school_id: str, db: Session = Depends(get_db)) -> list[TimetableSlotOut]:
    return slot_service.list_slots(db, school_id)


@router.get("/{slot_id}", response_model=TimetableSlotOut)
def get_slot(slot_id: str, db: Session = Depends(get_db)) -> TimetableSlotOut:
    return slot_service.get_slot(db, slot_id)


@router.put("/{slot_id}", response_model=TimetableSlotOut)
def update_slot(slot_id: str, payload: TimetableSlotUpdate, db: Session = Depends(get_db)) -> TimetableSlotOut:
    return slot_service.update_slot(db, slot_id, payload=payload)


@router.delete("/{slot_id}")
def delete_slot(slot_id: str, db: Session = Depends(get_db)) -> dict:
    slot_service.delete_slot(db, slot_id)
    return {"success": True}
