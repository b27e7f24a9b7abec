from __future__ import annotations

import logging
import random
from time import perf_counter

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.lesson import Lesson
from app.models.school import Venue
from app.models.timetable_version import TimetableVersion
from app.schemas.timetable import GenerationResult
from app.services.audit import log_activity
from app.services.requirement_compiler import load_unscheduled_lessons
from app.services.teacher_preferences import get_availability_matrix
from app.services.timetable_slots import list_slots, resolve_term_school_id
from app.services.timetable_solver import BacktrackingSolver, SolveResult
from app.services.timetable_versions import draft_for_update, ensure_draft, get_version, published_lessons_in_term

logger = logging.getLogger(__name__)


def _build_message(result: SolveResult) -> str:
    if not result.conflicts:
        return "Timetable generated successfully!"
    return (
        f"Timetable generated with {len(result.conflicts)} conflicts. "
        "Some lessons could not be placed."
    )


def _replace_lessons(db: Session, version: TimetableVersion, result: SolveResult) -> None:
    db.execute(delete(Lesson).where(Lesson.timetable_version_id == version.id))
    for placement in result.placed:
        db.add(
            Lesson(
                timetable_version_id=version.id,
                term_id=version.term_id,
                slot_id=placement.slot_id,
                class_id=placement.lesson.class_id,
                subject_id=placement.lesson.subject_id,
                teacher_id=placement.lesson.teacher_id,
                venue_id=placement.venue_id,
            )
        )


def generate_timetable(
    db: Session,
    version_id: str,
    *,
    actor_id: str | None = None,
    rng: random.Random | None = None,
) -> GenerationResult:
    """Fill a draft version with a freshly solved layout.

    The draft's lessons are replaced only when at least one lesson could be placed.
    """
    settings = get_settings()
    version = get_version(db, version_id)
    ensure_draft(version, "generate timetable")

    with draft_for_update(db, version, "generate timetable"):
        started = perf_counter()
        logger.info("Generating timetable %s: gathering constraints for term %s", version.id, version.term_id)
        school_id = resolve_term_school_id(db, version.term_id)
        slots = list_slots(db, school_id)
        venues = list(
            db.execute(select(Venue).where(Venue.school_id == school_id).order_by(Venue.name, Venue.id)).scalars()
        )
        availability = get_availability_matrix(db, version.term_id)

        logger.info("Generating timetable %s: compiling subject requirements", version.id)
        lessons = load_unscheduled_lessons(db, version.term_id)

        reserved = []
        if settings.solver_seed_published_lessons:
            reserved = published_lessons_in_term(db, version.term_id)

        logger.info(
            "Generating timetable %s: solving %s lesson(s) over %s slot(s) and %s venue(s), %s reserved",
            version.id,
            len(lessons),
            len(slots),
            len(venues),
            len(reserved),
        )
        solver = BacktrackingSolver(
            slots,
            venues,
            availability,
            rng=rng if rng is not None else random.Random(settings.solver_random_seed),
            max_nodes=settings.solver_max_nodes,
            time_limit_seconds=settings.solver_time_limit_seconds,
            reserved=reserved,
        )
        result = solver.solve(lessons)
        if result.budget_exhausted:
            logger.warning(
                "Search budget exhausted for timetable %s after %s node(s); keeping best partial layout",
                version.id,
                result.nodes_explored,
            )

        if result.placed:
            logger.info("Generating timetable %s: saving %s lesson(s)", version.id, result.placed_count)
            _replace_lessons(db, version, result)
            log_activity(
                db,
                actor_id=actor_id,
                action="timetable.version.generate",
                entity_type="timetable_version",
                entity_id=version.id,
                details={
                    "placed_lessons": result.placed_count,
                    "total_lessons": result.total_lessons,
                    "conflicts": len(result.conflicts),
                    "score": result.score,
                },
            )
            db.commit()
        else:
            logger.warning("No lessons could be placed for timetable %s; existing lessons kept", version.id)

    logger.info(
        "Timetable %s generated: placed=%s total=%s conflicts=%s score=%s elapsed=%.2fs",
        version.id,
        result.placed_count,
        result.total_lessons,
        len(result.conflicts),
        result.score,
        perf_counter() - started,
    )
    return GenerationResult(
        message=_build_message(result),
        conflicts=result.conflicts,
        score=result.score,
        placed_lessons=result.placed_count,
        total_lessons=result.total_lessons,
        budget_exhausted=result.budget_exhausted,
    )
