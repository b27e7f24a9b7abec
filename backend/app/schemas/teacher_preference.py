from pydantic import BaseModel, Field, field_validator

from app.models.teacher_availability import AvailabilityStatus


class SlotPreference(BaseModel):
    slot_id: str = Field(min_length=1, max_length=36)
    status: AvailabilityStatus


class TeacherPreferencesUpdate(BaseModel):
    teacher_id: str = Field(min_length=1, max_length=36)
    term_id: str = Field(min_length=1, max_length=36)
    preferences: list[SlotPreference] = Field(default_factory=list)

    @field_validator("preferences")
    @classmethod
    def reject_duplicate_slots(cls, value: list[SlotPreference]) -> list[SlotPreference]:
        seen: set[str] = set()
        for item in value:
            if item.slot_id in seen:
                raise ValueError(f"Duplicate preference for slot {item.slot_id}")
            seen.add(item.slot_id)
        return value


class SlotPreferenceOut(BaseModel):
    slot_id: str
    day_of_week: int
    start_time: str
    end_time: str
    status: AvailabilityStatus


class TeacherPreferencesOut(BaseModel):
    teacher_id: str
    term_id: str
    preferences: list[SlotPreferenceOut]
