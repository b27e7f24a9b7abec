from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
import logging
import random
from time import perf_counter
from typing import Protocol

from app.models.teacher_availability import AvailabilityStatus
from app.services.requirement_compiler import UnscheduledLesson

logger = logging.getLogger(__name__)

PREFERRED_SLOT_SCORE = 10
DEFAULT_SLOT_SCORE = 5


class SlotLike(Protocol):
    id: str


class VenueLike(Protocol):
    id: str
    venue_type: str | None


class OccupyingLesson(Protocol):
    slot_id: str
    teacher_id: str
    class_id: str
    venue_id: str | None


@dataclass(frozen=True)
class PlacedLesson:
    lesson: UnscheduledLesson
    slot_id: str
    venue_id: str | None


@dataclass
class SolveResult:
    placed: list[PlacedLesson] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    score: int = 0
    total_lessons: int = 0
    budget_exhausted: bool = False
    nodes_explored: int = 0

    @property
    def placed_count(self) -> int:
        return len(self.placed)


# A placement option is (slot_id, venue_id); None means "leave this lesson unplaced".
Option = tuple[str, str | None] | None


@dataclass
class _Frame:
    options: list[Option]
    cursor: int = 0
    applied: Option = None


class _Occupancy:
    def __init__(self) -> None:
        self.teachers: set[tuple[str, str]] = set()
        self.classes: set[tuple[str, str]] = set()
        self.venues: set[tuple[str, str]] = set()

    def is_free(self, slot_id: str, teacher_id: str, class_id: str) -> bool:
        return (slot_id, teacher_id) not in self.teachers and (slot_id, class_id) not in self.classes

    def venue_free(self, slot_id: str, venue_id: str) -> bool:
        return (slot_id, venue_id) not in self.venues

    def hold(self, slot_id: str, teacher_id: str, class_id: str, venue_id: str | None) -> None:
        self.teachers.add((slot_id, teacher_id))
        self.classes.add((slot_id, class_id))
        if venue_id is not None:
            self.venues.add((slot_id, venue_id))

    def release(self, slot_id: str, teacher_id: str, class_id: str, venue_id: str | None) -> None:
        self.teachers.discard((slot_id, teacher_id))
        self.classes.discard((slot_id, class_id))
        if venue_id is not None:
            self.venues.discard((slot_id, venue_id))


class BacktrackingSolver:
    """Depth-first lesson placement with an explicit stack.

    Every lesson may also be skipped, so the search always ends with a (possibly partial)
    layout. It keeps the layout with the most lessons placed, prunes branches that cannot beat
    it and stops at the first complete layout or when the node/time budget runs out.
    All search state lives inside ``solve``; one solver can be reused across calls.
    """

    def __init__(
        self,
        slots: Sequence[SlotLike],
        venues: Sequence[VenueLike],
        availability: Mapping[tuple[str, str], AvailabilityStatus] | None = None,
        *,
        rng: random.Random | None = None,
        max_nodes: int | None = None,
        time_limit_seconds: float | None = None,
        reserved: Iterable[OccupyingLesson] = (),
    ) -> None:
        self.slot_ids = [slot.id for slot in slots]
        self.venues = [(venue.id, venue.venue_type) for venue in venues]
        self.availability = dict(availability or {})
        self.random = rng if rng is not None else random.Random()
        self.max_nodes = max_nodes
        self.time_limit_seconds = time_limit_seconds
        self.reserved = [(item.slot_id, item.teacher_id, item.class_id, item.venue_id) for item in reserved]

    def _status(self, teacher_id: str, slot_id: str) -> AvailabilityStatus:
        return self.availability.get((teacher_id, slot_id), AvailabilityStatus.available)

    def _options_for(self, lesson: UnscheduledLesson, occupancy: _Occupancy) -> list[Option]:
        slot_order = list(self.slot_ids)
        self.random.shuffle(slot_order)

        options: list[Option] = []
        for slot_id in slot_order:
            if self._status(lesson.teacher_id, slot_id) == AvailabilityStatus.unavailable:
                continue
            if not occupancy.is_free(slot_id, lesson.teacher_id, lesson.class_id):
                continue
            if not self.venues:
                if lesson.requires_venue_type is None:
                    options.append((slot_id, None))
                continue
            # venues of one type are interchangeable; the first free one stands for the rest
            seen_types: set[str | None] = set()
            for venue_id, venue_type in self.venues:
                if lesson.requires_venue_type is not None and venue_type != lesson.requires_venue_type:
                    continue
                if venue_type in seen_types or not occupancy.venue_free(slot_id, venue_id):
                    continue
                seen_types.add(venue_type)
                options.append((slot_id, venue_id))
        options.append(None)
        return options

    def score_placement(self, lesson: UnscheduledLesson, slot_id: str) -> int:
        if self._status(lesson.teacher_id, slot_id) == AvailabilityStatus.preferred:
            return PREFERRED_SLOT_SCORE
        return DEFAULT_SLOT_SCORE

    def solve(self, lessons: Sequence[UnscheduledLesson]) -> SolveResult:
        total = len(lessons)
        if total == 0:
            return SolveResult()

        occupancy = _Occupancy()
        for slot_id, teacher_id, class_id, venue_id in self.reserved:
            occupancy.hold(slot_id, teacher_id, class_id, venue_id)

        started = perf_counter()
        deadline = started + self.time_limit_seconds if self.time_limit_seconds is not None else None

        best: list[Option] = []
        best_placed = -1
        placed = 0
        nodes = 0
        exhausted = False
        stack = [_Frame(self._options_for(lessons[0], occupancy))]

        while stack:
            depth = len(stack) - 1
            frame = stack[-1]
            lesson = lessons[depth]

            if frame.applied is not None:
                slot_id, venue_id = frame.applied
                occupancy.release(slot_id, lesson.teacher_id, lesson.class_id, venue_id)
                frame.applied = None
                placed -= 1

            remaining = total - depth
            if frame.cursor >= len(frame.options) or placed + remaining <= best_placed:
                stack.pop()
                continue

            if (self.max_nodes is not None and nodes >= self.max_nodes) or (
                deadline is not None and perf_counter() >= deadline
            ):
                exhausted = True
                break

            option = frame.options[frame.cursor]
            frame.cursor += 1
            nodes += 1

            if option is None:
                if placed + remaining - 1 <= best_placed:
                    continue
            else:
                slot_id, venue_id = option
                occupancy.hold(slot_id, lesson.teacher_id, lesson.class_id, venue_id)
                frame.applied = option
                placed += 1

            if depth + 1 == total:
                if placed > best_placed:
                    best_placed = placed
                    best = [item.applied for item in stack]
                if placed == total:
                    break
                continue

            stack.append(_Frame(self._options_for(lessons[depth + 1], occupancy)))

        if exhausted:
            current = [item.applied for item in stack]
            current_placed = sum(1 for item in current if item is not None)
            if current_placed > best_placed:
                best = current
        best = best + [None] * (total - len(best))

        result = SolveResult(total_lessons=total, budget_exhausted=exhausted, nodes_explored=nodes)
        for lesson, option in zip(lessons, best):
            if option is None:
                result.conflicts.append(f"Could not place: Lesson {lesson.lesson_key}")
                continue
            slot_id, venue_id = option
            result.placed.append(PlacedLesson(lesson=lesson, slot_id=slot_id, venue_id=venue_id))
            result.score += self.score_placement(lesson, slot_id)

        logger.debug(
            "Solver placed %s/%s lesson(s) after %s node(s) in %.3fs%s",
            result.placed_count,
            total,
            nodes,
            perf_counter() - started,
            " (budget exhausted)" if exhausted else "",
        )
        return result
