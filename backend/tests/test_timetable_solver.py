import random
from types import SimpleNamespace

from app.models.teacher_availability import AvailabilityStatus
from app.services.requirement_compiler import UnscheduledLesson
from app.services.timetable_solver import BacktrackingSolver


def _slots(count):
    return [SimpleNamespace(id=f"s{index}") for index in range(1, count + 1)]


def _venue(venue_id, venue_type=None):
    return SimpleNamespace(id=venue_id, venue_type=venue_type)


def _lesson(key, *, teacher="t1", school_class="c1", venue_type=None):
    return UnscheduledLesson(
        class_id=school_class,
        subject_id="maths",
        teacher_id=teacher,
        requires_venue_type=venue_type,
        is_double_period=False,
        lesson_key=key,
    )


def _assert_no_double_booking(result, reserved=()):
    seen_teacher = {(item.slot_id, item.teacher_id) for item in reserved}
    seen_class = {(item.slot_id, item.class_id) for item in reserved}
    seen_venue = {(item.slot_id, item.venue_id) for item in reserved if item.venue_id}
    for placement in result.placed:
        teacher_key = (placement.slot_id, placement.lesson.teacher_id)
        class_key = (placement.slot_id, placement.lesson.class_id)
        assert teacher_key not in seen_teacher
        assert class_key not in seen_class
        seen_teacher.add(teacher_key)
        seen_class.add(class_key)
        if placement.venue_id is not None:
            venue_key = (placement.slot_id, placement.venue_id)
            assert venue_key not in seen_venue
            seen_venue.add(venue_key)


def test_two_slots_one_venue_places_two_of_three():
    lessons = [
        _lesson("A", teacher="t1", school_class="c1"),
        _lesson("B", teacher="t2", school_class="c2"),
        _lesson("C", teacher="t3", school_class="c3"),
    ]
    solver = BacktrackingSolver(_slots(2), [_venue("v1")], rng=random.Random(3))

    result = solver.solve(lessons)

    assert result.placed_count == 2
    assert len(result.conflicts) == 1
    assert result.conflicts[0].startswith("Could not place: Lesson ")
    assert result.budget_exhausted is False
    _assert_no_double_booking(result)


def test_same_teacher_lessons_fill_both_monday_slots():
    lessons = [_lesson("C1-SM-#1", teacher="7"), _lesson("C1-SM-#2", teacher="7")]
    solver = BacktrackingSolver(_slots(2), [_venue("v1")], rng=random.Random(1))

    result = solver.solve(lessons)

    assert result.placed_count == 2
    assert result.conflicts == []
    assert result.score == 10
    assert {item.slot_id for item in result.placed} == {"s1", "s2"}


def test_preferred_slots_score_ten_each():
    lessons = [_lesson("C1-SM-#1", teacher="7"), _lesson("C1-SM-#2", teacher="7")]
    availability = {("7", "s1"): AvailabilityStatus.preferred, ("7", "s2"): AvailabilityStatus.preferred}
    solver = BacktrackingSolver(_slots(2), [_venue("v1")], availability, rng=random.Random(1))

    assert solver.solve(lessons).score == 20


def test_unavailable_slot_is_never_used():
    availability = {("t1", "s1"): AvailabilityStatus.unavailable}
    lessons = [_lesson("A"), _lesson("B")]
    solver = BacktrackingSolver(_slots(2), [_venue("v1")], availability, rng=random.Random(5))

    result = solver.solve(lessons)

    assert [item.slot_id for item in result.placed] == ["s2"]
    assert result.conflicts == ["Could not place: Lesson B"] or result.conflicts == ["Could not place: Lesson A"]


def test_required_venue_type_is_respected():
    venues = [_venue("room"), _venue("lab", "lab")]
    lessons = [
        _lesson("L1", teacher="t1", school_class="c1", venue_type="lab"),
        _lesson("L2", teacher="t2", school_class="c2", venue_type="lab"),
    ]
    result = BacktrackingSolver(_slots(3), venues, rng=random.Random(2)).solve(lessons)

    assert result.placed_count == 2
    assert {item.venue_id for item in result.placed} == {"lab"}
    _assert_no_double_booking(result)


def test_backtracks_out_of_a_greedy_dead_end():
    venues = [_venue("lab", "lab"), _venue("room")]
    lessons = [
        _lesson("plain", teacher="t1", school_class="c1"),
        _lesson("science", teacher="t2", school_class="c2", venue_type="lab"),
    ]
    result = BacktrackingSolver(_slots(1), venues, rng=random.Random(0)).solve(lessons)

    assert result.placed_count == 2
    venue_by_key = {item.lesson.lesson_key: item.venue_id for item in result.placed}
    assert venue_by_key == {"plain": "room", "science": "lab"}


def test_same_seed_reproduces_layout():
    lessons = [
        _lesson(f"L{index}", teacher=f"t{index % 3}", school_class=f"c{index % 2}") for index in range(6)
    ]
    venues = [_venue("v1"), _venue("v2")]

    first = BacktrackingSolver(_slots(8), venues, rng=random.Random(42)).solve(lessons)
    second = BacktrackingSolver(_slots(8), venues, rng=random.Random(42)).solve(lessons)

    assert [(item.slot_id, item.venue_id) for item in first.placed] == [
        (item.slot_id, item.venue_id) for item in second.placed
    ]
    _assert_no_double_booking(first)


def test_reserved_occupancy_is_avoided():
    reserved = [SimpleNamespace(slot_id="s1", teacher_id="t1", class_id="other", venue_id="elsewhere")]
    result = BacktrackingSolver(
        _slots(2),
        [_venue("v1")],
        rng=random.Random(9),
        reserved=reserved,
    ).solve([_lesson("A")])

    assert [item.slot_id for item in result.placed] == ["s2"]
    _assert_no_double_booking(result, reserved)


def test_reserved_venue_blocks_slot():
    reserved = [SimpleNamespace(slot_id="s1", teacher_id="other", class_id="other", venue_id="v1")]
    result = BacktrackingSolver(_slots(2), [_venue("v1")], rng=random.Random(9), reserved=reserved).solve(
        [_lesson("A")]
    )
    assert [(item.slot_id, item.venue_id) for item in result.placed] == [("s2", "v1")]


def test_no_venues_places_without_venue():
    lessons = [_lesson("plain"), _lesson("lab", teacher="t2", school_class="c2", venue_type="lab")]
    result = BacktrackingSolver(_slots(2), [], rng=random.Random(4)).solve(lessons)

    assert [(item.lesson.lesson_key, item.venue_id) for item in result.placed] == [("plain", None)]
    assert result.conflicts == ["Could not place: Lesson lab"]


def test_node_budget_returns_best_partial_result():
    lessons = [_lesson(f"L{index}", teacher=f"t{index}", school_class=f"c{index}") for index in range(3)]
    result = BacktrackingSolver(_slots(3), [_venue("v1")], rng=random.Random(0), max_nodes=1).solve(lessons)

    assert result.budget_exhausted is True
    assert result.placed_count == 1
    assert len(result.conflicts) == 2


def test_zero_budget_places_nothing():
    result = BacktrackingSolver(_slots(3), [_venue("v1")], max_nodes=0).solve([_lesson("A")])

    assert result.budget_exhausted is True
    assert result.placed == []
    assert result.conflicts == ["Could not place: Lesson A"]


def test_empty_input_is_trivially_solved():
    result = BacktrackingSolver(_slots(2), [_venue("v1")]).solve([])
    assert result.placed == []
    assert result.conflicts == []
    assert result.total_lessons == 0


def test_solver_state_is_local_to_each_call():
    solver = BacktrackingSolver(_slots(2), [_venue("v1")], rng=random.Random(7))
    lessons = [_lesson("A"), _lesson("B")]

    first = solver.solve(lessons)
    second = solver.solve(lessons)

    assert first.placed_count == 2
    assert second.placed_count == 2


def test_interchangeable_venues_do_not_multiply_the_search():
    lessons = [_lesson(f"L{index}") for index in range(1, 4)]
    single = BacktrackingSolver(_slots(1), [_venue("v1"), _venue("lab", "lab")], rng=random.Random(2))
    crowded = BacktrackingSolver(
        _slots(1),
        [_venue(f"v{index}") for index in range(1, 7)] + [_venue("lab", "lab")],
        rng=random.Random(2),
    )

    few = single.solve(lessons)
    many = crowded.solve(lessons)

    assert few.placed_count == many.placed_count == 1
    assert many.nodes_explored == few.nodes_explored
