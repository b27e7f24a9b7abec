from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.timetable_version import TimetableStatus, TimetableType


class TimetableVersionCreate(BaseModel):
    term_id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=255)
    timetable_type: TimetableType = TimetableType.lesson
    description: str | None = Field(default=None, max_length=2000)


class TimetableVersionClone(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class TimetableVersionOut(BaseModel):
    id: str
    term_id: str
    name: str
    description: str | None
    timetable_type: TimetableType
    status: TimetableStatus
    created_by_id: str | None
    created_at: datetime | None = None
    published_at: datetime | None = None
    archived_at: datetime | None = None

    model_config = {"from_attributes": True}


class SlotRef(BaseModel):
    id: str
    day_of_week: int
    start_time: str
    end_time: str


class ClassRef(BaseModel):
    id: str
    name: str


class SubjectRef(BaseModel):
    id: str
    name: str
    code: str | None = None


class TeacherRef(BaseModel):
    id: str
    full_name: str


class VenueRef(BaseModel):
    id: str
    name: str
    venue_type: str | None = None


class LessonDetail(BaseModel):
    id: str
    timetable_version_id: str
    term_id: str
    slot: SlotRef
    school_class: ClassRef
    subject: SubjectRef
    teacher: TeacherRef
    venue: VenueRef | None = None


class VersionWithLessons(TimetableVersionOut):
    lessons: list[LessonDetail] = Field(default_factory=list)


class LessonCreate(BaseModel):
    timetable_version_id: str = Field(min_length=1, max_length=36)
    slot_id: str = Field(min_length=1, max_length=36)
    class_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    venue_id: str | None = Field(default=None, max_length=36)


class LessonOut(BaseModel):
    id: str
    timetable_version_id: str
    term_id: str
    slot_id: str
    class_id: str
    subject_id: str
    teacher_id: str
    venue_id: str | None

    model_config = {"from_attributes": True}


class GenerationResult(BaseModel):
    message: str
    conflicts: list[str] = Field(default_factory=list)
    score: int = 0
    placed_lessons: int = 0
    total_lessons: int = 0
    budget_exhausted: bool = False
