from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.lesson import Lesson  # noqa: F401
from app.models.notification import Notification, NotificationType  # noqa: F401
from app.models.school import AcademicYear, School, SchoolClass, Subject, Term, Venue  # noqa: F401
from app.models.student import (  # noqa: F401
    EnrollmentStatus,
    ParentStudentLink,
    Student,
    StudentEnrollment,
)
from app.models.subject_requirement import SubjectRequirement  # noqa: F401
from app.models.teacher_assignment import TeacherSubjectAssignment  # noqa: F401
from app.models.teacher_availability import AvailabilityStatus, TeacherAvailability  # noqa: F401
from app.models.timetable_slot import TimetableSlot  # noqa: F401
from app.models.timetable_version import TimetableStatus, TimetableType, TimetableVersion  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
