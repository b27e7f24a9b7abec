from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.lesson import Lesson
from app.models.notification import Notification, NotificationType
from app.models.student import EnrollmentStatus, ParentStudentLink, Student, StudentEnrollment
from app.models.timetable_version import TimetableStatus, TimetableVersion
from app.models.user import User
from app.services.email import EmailDeliveryError, is_email_configured, send_email

logger = logging.getLogger(__name__)


@dataclass
class DistributionSummary:
    version_id: str
    teacher_ids: list[str]
    student_user_ids: list[str]
    parent_user_ids: list[str]
    notifications_created: int = 0


def _send_notification_email(recipient: User, *, title: str, message: str) -> None:
    if not recipient.email:
        return
    try:
        send_email(
            to_email=recipient.email,
            subject=f"Timetabler: {title}",
            text_content=f"{title}\n\n{message}",
        )
    except EmailDeliveryError:
        logger.warning("Notification email delivery failed for %s", recipient.email, exc_info=True)


def create_notification(
    db: Session,
    *,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    recipient: User | None = None,
    deliver_email: bool = False,
) -> Notification:
    record = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
    )
    db.add(record)
    db.flush()

    if deliver_email and recipient is not None:
        _send_notification_email(recipient, title=title, message=message)
    return record


def notify_users(
    db: Session,
    *,
    user_ids: list[str] | set[str] | tuple[str, ...],
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    deliver_email: bool = False,
) -> list[Notification]:
    requested_ids = [item for item in dict.fromkeys(user_ids) if item]
    if not requested_ids:
        return []

    recipients = list(
        db.execute(
            select(User).where(
                User.id.in_(requested_ids),
                User.is_active.is_(True),
            )
        ).scalars()
    )
    return [
        create_notification(
            db,
            user_id=recipient.id,
            title=title,
            message=message,
            notification_type=notification_type,
            recipient=recipient,
            deliver_email=deliver_email,
        )
        for recipient in recipients
    ]


def resolve_timetable_audience(db: Session, version_id: str) -> tuple[list[str], list[str], list[str]]:
    """Teachers of the version, students actively enrolled in its classes, and their parents."""
    lessons = list(db.execute(select(Lesson).where(Lesson.timetable_version_id == version_id)).scalars())
    teacher_ids = list(dict.fromkeys(item.teacher_id for item in lessons))
    class_ids = {item.class_id for item in lessons}
    if not class_ids:
        return teacher_ids, [], []

    student_ids = list(
        dict.fromkeys(
            db.execute(
                select(StudentEnrollment.student_id).where(
                    StudentEnrollment.class_id.in_(class_ids),
                    StudentEnrollment.status == EnrollmentStatus.active,
                )
            ).scalars()
        )
    )
    if not student_ids:
        return teacher_ids, [], []

    student_user_ids = [
        user_id
        for user_id in db.execute(select(Student.user_id).where(Student.id.in_(student_ids))).scalars()
        if user_id
    ]
    parent_user_ids = list(
        dict.fromkeys(
            db.execute(
                select(ParentStudentLink.parent_user_id).where(ParentStudentLink.student_id.in_(student_ids))
            ).scalars()
        )
    )
    return teacher_ids, list(dict.fromkeys(student_user_ids)), parent_user_ids


def distribute_timetable(db: Session, version_id: str) -> DistributionSummary | None:
    version = db.get(TimetableVersion, version_id)
    if version is None or version.status != TimetableStatus.published:
        logger.warning("Skipping distribution: timetable version %s is not published", version_id)
        return None

    teacher_ids, student_user_ids, parent_user_ids = resolve_timetable_audience(db, version.id)
    summary = DistributionSummary(
        version_id=version.id,
        teacher_ids=teacher_ids,
        student_user_ids=student_user_ids,
        parent_user_ids=parent_user_ids,
    )
    logger.debug(
        "Distributing timetable %s to teachers=%s students=%s parents=%s",
        version.id,
        teacher_ids,
        student_user_ids,
        parent_user_ids,
    )

    settings = get_settings()
    deliver_email = settings.distribution_deliver_email and is_email_configured()
    title = "Timetable Published"
    audiences = (
        (teacher_ids, f'Timetable "{version.name}" has been published. Your teaching schedule is now available.'),
        (student_user_ids, f'Timetable "{version.name}" has been published. Your class schedule is now available.'),
        (parent_user_ids, f'Timetable "{version.name}" has been published for your child\'s class.'),
    )
    for user_ids, message in audiences:
        created = notify_users(
            db,
            user_ids=user_ids,
            title=title,
            message=message,
            notification_type=NotificationType.timetable,
            deliver_email=deliver_email,
        )
        summary.notifications_created += len(created)
    db.commit()
    logger.info(
        "Timetable %s distributed: %s notification(s) created",
        version.id,
        summary.notifications_created,
    )
    return summary


def run_timetable_distribution(version_id: str, session_factory: Callable[[], Session]) -> None:
    """Background entry point; distribution problems never surface to the publisher."""
    db = session_factory()
    try:
        distribute_timetable(db, version_id)
    except Exception:
        db.rollback()
        logger.exception("TIMETABLE DISTRIBUTION FAILED | version_id=%s", version_id)
    finally:
        db.close()
