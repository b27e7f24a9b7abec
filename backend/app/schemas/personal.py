from pydantic import BaseModel, Field

from app.schemas.timetable import LessonDetail


class StudentSchedule(BaseModel):
    student_id: str
    lessons: list[LessonDetail] = Field(default_factory=list)


class ChildSchedule(BaseModel):
    student_id: str
    student_name: str
    lessons: list[LessonDetail] = Field(default_factory=list)


class PersonalTimetables(BaseModel):
    teacher_schedule: list[LessonDetail] | None = None
    student_schedule: StudentSchedule | None = None
    children_schedules: list[ChildSchedule] | None = None


class PersonalTimetable(BaseModel):
    user_id: str
    full_name: str
    timetables: PersonalTimetables
