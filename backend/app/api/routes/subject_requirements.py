from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.subject_requirement import (
    SubjectRequirementCreate,
    SubjectRequirementOut,
    SubjectRequirementUpdate,
)
from app.services import subject_requirements as requirement_service

router = APIRouter()


@router.post("", response_model=SubjectRequirementOut, status_code=status.HTTP_201_CREATED)
def create_requirement(payload: SubjectRequirementCreate, db: Session = Depends(get_db)) -> SubjectRequirementOut:
    return requirement_service.create_requirement(db, payload=payload)


@router.get("/term/{term_id}", response_model=list[SubjectRequirementOut])
def list_requirements(term_id: str, db: Session = Depends(get_db)) -> list[SubjectRequirementOut]:
    return requirement_service.list_requirements(db, term_id)


@router.get("/{requirement_id}", response_model=SubjectRequirementOut)
def get_requirement(requirement_id: str, db: Session = Depends(get_db)) -> SubjectRequirementOut:
    return requirement_service.get_requirement(db, requirement_id)


@router.put("/{requirement_id}", response_model=SubjectRequirementOut)
def update_requirement(
    requirement_id: str,
    payload: SubjectRequirementUpdate,
    db: Session = Depends(get_db),
) -> SubjectRequirementOut:
    return requirement_service.update_requirement(db, requirement_id, payload=payload)


@router.delete("/{requirement_id}")
def delete_requirement(requirement_id: str, db: Session = Depends(get_db)) -> dict:
    requirement_service.delete_requirement(db, requirement_id)
    return {"success": True}
