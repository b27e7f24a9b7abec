from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def _clean_venue_type(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


class SubjectRequirementCreate(BaseModel):
    term_id: str = Field(min_length=1, max_length=36)
    class_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    lessons_per_week: int = Field(ge=1, le=60)
    requires_venue_type: str | None = Field(default=None, max_length=50)
    is_double_period: bool = False

    @field_validator("requires_venue_type")
    @classmethod
    def normalize_venue_type(cls, value: str | None) -> str | None:
        return _clean_venue_type(value)


class SubjectRequirementUpdate(BaseModel):
    lessons_per_week: int | None = Field(default=None, ge=1, le=60)
    requires_venue_type: str | None = Field(default=None, max_length=50)
    is_double_period: bool | None = None

    @field_validator("requires_venue_type")
    @classmethod
    def normalize_venue_type(cls, value: str | None) -> str | None:
        return _clean_venue_type(value)


class SubjectRequirementOut(BaseModel):
    id: str
    term_id: str
    class_id: str
    subject_id: str
    lessons_per_week: int
    requires_venue_type: str | None
    is_double_period: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
