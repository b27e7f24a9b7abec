from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.lesson import Lesson
from app.models.school import Term
from app.models.timetable_version import TimetableStatus, TimetableVersion
from app.schemas.reports import Clash, ClashReport


class ClashDetector:
    """Buckets lessons from several versions by (resource, slot) and reports shared buckets."""

    def __init__(self, lessons: Sequence[Lesson], version_names: Mapping[str, str]):
        self.lessons = sorted(lessons, key=lambda item: item.id)
        self.version_names = version_names

    def describe(self, lesson: Lesson) -> str:
        name = self.version_names.get(lesson.timetable_version_id, lesson.timetable_version_id)
        return f'Lesson ID {lesson.id} in Timetable "{name}"'

    def _clashes_by(self, attribute: str) -> list[Clash]:
        buckets: dict[tuple[str, str], list[Lesson]] = defaultdict(list)
        for lesson in self.lessons:
            resource_id = getattr(lesson, attribute)
            if resource_id is None:
                continue
            buckets[(resource_id, lesson.slot_id)].append(lesson)

        clashes: list[Clash] = []
        for (resource_id, slot_id), members in sorted(buckets.items()):
            if len(members) < 2:
                continue
            clashes.append(
                Clash(
                    resource_id=resource_id,
                    slot_id=slot_id,
                    lessons=[self.describe(item) for item in members],
                )
            )
        return clashes

    def detect(self) -> ClashReport:
        teacher_clashes = self._clashes_by("teacher_id")
        class_clashes = self._clashes_by("class_id")
        venue_clashes = self._clashes_by("venue_id")
        return ClashReport(
            message=(
                f"Found {len(teacher_clashes)} teacher clashes, {len(class_clashes)} class clashes "
                f"and {len(venue_clashes)} venue clashes."
            ),
            teacher_clashes=teacher_clashes,
            class_clashes=class_clashes,
            venue_clashes=venue_clashes,
        )


def find_clashes_in_term(db: Session, term_id: str) -> ClashReport:
    if db.get(Term, term_id) is None:
        raise NotFoundError("Term", term_id)

    published = list(
        db.execute(
            select(TimetableVersion).where(
                TimetableVersion.term_id == term_id,
                TimetableVersion.status == TimetableStatus.published,
            )
        ).scalars()
    )
    if len(published) < 2:
        return ClashReport(
            message="No potential for clashes: fewer than two published timetables exist for this term.",
        )

    version_names = {item.id: item.name for item in published}
    lessons = list(
        db.execute(select(Lesson).where(Lesson.timetable_version_id.in_(list(version_names)))).scalars()
    )
    return ClashDetector(lessons, version_names).detect()
