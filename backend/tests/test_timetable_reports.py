import random

import pytest

from app.core.exceptions import NotFoundError
from app.models.timetable_version import TimetableStatus, TimetableType
from app.services.conflict_service import find_clashes_in_term
from app.services.timetable_generator import generate_timetable
from app.services.timetable_reports import (
    compare_versions,
    find_free_slots,
    teacher_workload_report,
    venue_utilization_report,
)
from app.services.timetable_versions import publish_version


def test_clash_report_needs_two_published_versions(db_session, seed, monday_school):
    data = monday_school
    live = seed.version(data["term"], status=TimetableStatus.published)
    seed.lesson(live, data["slots"][0], data["class"], data["subject"], data["teacher"])

    report = find_clashes_in_term(db_session, data["term"].id)

    assert report.message.startswith("No potential for clashes")
    assert report.teacher_clashes == []
    assert report.class_clashes == []


def test_clash_report_lists_shared_teacher_class_and_venue(db_session, seed, monday_school):
    data = monday_school
    lessons_version = seed.version(data["term"], "Lessons", status=TimetableStatus.published)
    exams_version = seed.version(
        data["term"],
        "Exams",
        status=TimetableStatus.published,
        timetable_type=TimetableType.exam,
    )
    first = seed.lesson(lessons_version, data["slots"][0], data["class"], data["subject"], data["teacher"], data["venue"])
    second = seed.lesson(exams_version, data["slots"][0], data["class"], data["subject"], data["teacher"], data["venue"])
    seed.lesson(exams_version, data["slots"][1], data["class"], data["subject"], data["teacher"])

    report = find_clashes_in_term(db_session, data["term"].id)

    assert report.message == "Found 1 teacher clashes, 1 class clashes and 1 venue clashes."
    clash = report.teacher_clashes[0]
    assert clash.resource_id == data["teacher"].id
    assert clash.slot_id == data["slots"][0].id
    assert sorted(clash.lessons) == sorted(
        [
            f'Lesson ID {first.id} in Timetable "Lessons"',
            f'Lesson ID {second.id} in Timetable "Exams"',
        ]
    )
    assert report.venue_clashes[0].resource_id == data["venue"].id


def test_compare_reports_added_and_removed_lessons(db_session, seed, monday_school):
    data = monday_school
    version_a = seed.version(data["term"], "A")
    version_b = seed.version(data["term"], "B")
    seed.lesson(version_a, data["slots"][0], data["class"], data["subject"], data["teacher"])
    seed.lesson(version_a, data["slots"][1], data["class"], data["subject"], data["teacher"])
    seed.lesson(version_b, data["slots"][1], data["class"], data["subject"], data["teacher"])
    seed.lesson(version_b, data["slots"][0], data["class"], data["subject"], data["teacher"], data["venue"])

    comparison = compare_versions(db_session, version_a.id, version_b.id)

    assert comparison.version_a.lesson_count == 2
    assert comparison.version_b.name == "B"
    assert [(item.slot_id, item.venue_id) for item in comparison.lessons_added_in_b] == [
        (data["slots"][0].id, data["venue"].id)
    ]
    assert [(item.slot_id, item.venue_id) for item in comparison.lessons_removed_from_a] == [
        (data["slots"][0].id, None)
    ]

    with pytest.raises(NotFoundError):
        compare_versions(db_session, version_a.id, "missing")


def test_free_slots_after_publishing_generated_timetable(db_session, seed, monday_school):
    data = monday_school
    extra = [seed.slot(data["school"], 2, "08:00", "08:40"), seed.slot(data["school"], 2, "08:40", "09:20")]
    version = seed.version(data["term"])
    generate_timetable(db_session, version.id, rng=random.Random(5))
    publish_version(db_session, version.id)

    free = find_free_slots(db_session, data["term"].id, teacher_id=data["teacher"].id)

    all_slot_ids = {slot.id for slot in data["slots"] + extra}
    assert len(free.free_slots) == len(all_slot_ids) - 2
    assert {slot.id for slot in free.free_slots} < all_slot_ids


def test_free_slots_match_any_filter(db_session, seed, monday_school):
    data = monday_school
    other_teacher = seed.teacher(data["school"])
    other_class = seed.school_class(data["school"], "Grade 8")
    third = seed.slot(data["school"], 1, "09:20", "10:00")
    live = seed.version(data["term"], status=TimetableStatus.published)
    seed.lesson(live, data["slots"][0], data["class"], data["subject"], data["teacher"])
    seed.lesson(live, data["slots"][1], other_class, data["subject"], other_teacher, data["venue"])

    by_teacher_or_venue = find_free_slots(
        db_session,
        data["term"].id,
        teacher_id=data["teacher"].id,
        venue_id=data["venue"].id,
    )
    by_class = find_free_slots(db_session, data["term"].id, class_id=other_class.id)
    unfiltered = find_free_slots(db_session, data["term"].id)

    assert [slot.id for slot in by_teacher_or_venue.free_slots] == [third.id]
    assert [slot.id for slot in by_class.free_slots] == [data["slots"][0].id, third.id]
    assert [slot.id for slot in unfiltered.free_slots] == [third.id]


def test_free_slots_ignore_draft_lessons(db_session, seed, monday_school):
    data = monday_school
    draft = seed.version(data["term"])
    seed.lesson(draft, data["slots"][0], data["class"], data["subject"], data["teacher"])

    free = find_free_slots(db_session, data["term"].id, teacher_id=data["teacher"].id)

    assert len(free.free_slots) == 2


def test_venue_utilization_percentages(db_session, seed, monday_school):
    data = monday_school
    spare = seed.venue(data["school"], "Spare Room")
    seed.slot(data["school"], 2, "08:00", "08:40")
    live = seed.version(data["term"], status=TimetableStatus.published)
    seed.lesson(live, data["slots"][0], data["class"], data["subject"], data["teacher"], data["venue"])
    seed.lesson(live, data["slots"][1], data["class"], data["subject"], data["teacher"], data["venue"])

    report = venue_utilization_report(db_session, data["term"].id)

    assert report.total_slots == 3
    by_name = {row.venue_name: row for row in report.venues}
    assert by_name["Room 1"].lessons_hosted == 2
    assert by_name["Room 1"].utilization_percentage == 66.67
    assert by_name[spare.name].utilization_percentage == 0.0


def test_venue_utilization_needs_published_version_of_type(db_session, seed, monday_school):
    data = monday_school
    seed.version(data["term"], status=TimetableStatus.published, timetable_type=TimetableType.exam)

    with pytest.raises(NotFoundError):
        venue_utilization_report(db_session, data["term"].id)
    exam_report = venue_utilization_report(db_session, data["term"].id, timetable_type=TimetableType.exam)
    assert exam_report.venues[0].lessons_hosted == 0


def test_venue_utilization_without_slots(db_session, seed):
    school = seed.school()
    term = seed.term(school)
    seed.venue(school, "Hall")
    seed.version(term, status=TimetableStatus.published)

    report = venue_utilization_report(db_session, term.id)

    assert report.total_slots == 0
    assert report.message is not None
    assert report.venues[0].utilization_percentage == 0.0


def test_teacher_workload_sorted_descending(db_session, seed, monday_school):
    data = monday_school
    busy = seed.teacher(data["school"], "Busy Teacher")
    idle = seed.teacher(data["school"], "Idle Teacher")
    other_class = seed.school_class(data["school"], "Grade 8")
    live = seed.version(data["term"], status=TimetableStatus.published)
    seed.lesson(live, data["slots"][0], data["class"], data["subject"], data["teacher"])
    seed.lesson(live, data["slots"][0], other_class, data["subject"], busy)
    seed.lesson(live, data["slots"][1], other_class, data["subject"], busy)

    report = teacher_workload_report(db_session, data["term"].id)

    assert [(row.full_name, row.lessons_assigned) for row in report.teachers] == [
        ("Busy Teacher", 2),
        ("Teacher Seven", 1),
        (idle.full_name, 0),
    ]


def test_workload_requires_published_version(db_session, monday_school):
    with pytest.raises(NotFoundError):
        teacher_workload_report(db_session, monday_school["term"].id)
