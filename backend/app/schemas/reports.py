from pydantic import BaseModel, Field

from app.models.timetable_version import TimetableStatus, TimetableType
from app.schemas.timetable_slot import TimetableSlotOut


class Clash(BaseModel):
    resource_id: str
    slot_id: str
    lessons: list[str]


class ClashReport(BaseModel):
    message: str
    teacher_clashes: list[Clash] = Field(default_factory=list)
    class_clashes: list[Clash] = Field(default_factory=list)
    venue_clashes: list[Clash] = Field(default_factory=list)


class VersionSummary(BaseModel):
    id: str
    name: str
    status: TimetableStatus
    timetable_type: TimetableType
    lesson_count: int


class LessonIdentity(BaseModel):
    class_id: str
    subject_id: str
    teacher_id: str
    slot_id: str
    venue_id: str | None = None


class VersionComparison(BaseModel):
    version_a: VersionSummary
    version_b: VersionSummary
    lessons_added_in_b: list[LessonIdentity]
    lessons_removed_from_a: list[LessonIdentity]


class FreeSlotsOut(BaseModel):
    term_id: str
    free_slots: list[TimetableSlotOut]


class VenueUtilization(BaseModel):
    venue_id: str
    venue_name: str
    venue_type: str | None = None
    lessons_hosted: int
    utilization_percentage: float


class VenueUtilizationReport(BaseModel):
    term_id: str
    timetable_type: TimetableType
    total_slots: int
    message: str | None = None
    venues: list[VenueUtilization]


class TeacherWorkload(BaseModel):
    teacher_id: str
    full_name: str
    lessons_assigned: int


class TeacherWorkloadReport(BaseModel):
    term_id: str
    timetable_type: TimetableType
    teachers: list[TeacherWorkload]
