from app.models.timetable_version import TimetableStatus


def _create(client, school_id, day=1, start="08:00", end="08:40"):
    return client.post(
        "/api/timetable-slots",
        json={"school_id": school_id, "day_of_week": day, "start_time": start, "end_time": end},
    )


def test_create_and_list_slots_in_day_order(client, seed):
    school = seed.school()
    assert _create(client, school.id, 2, "08:00", "08:40").status_code == 201
    assert _create(client, school.id, 1, "09:00", "09:40").status_code == 201
    assert _create(client, school.id, 1, "08:00", "08:40").status_code == 201

    listed = client.get(f"/api/timetable-slots/school/{school.id}")

    assert listed.status_code == 200
    assert [(item["day_of_week"], item["start_time"]) for item in listed.json()] == [
        (1, "08:00"),
        (1, "09:00"),
        (2, "08:00"),
    ]


def test_overlapping_slot_is_rejected(client, seed):
    school = seed.school()
    assert _create(client, school.id, 1, "08:00", "08:40").status_code == 201

    overlap = _create(client, school.id, 1, "08:30", "09:10")
    touching = _create(client, school.id, 1, "08:40", "09:20")
    other_day = _create(client, school.id, 3, "08:30", "09:10")

    assert overlap.status_code == 409
    assert "08:00-08:40" in overlap.json()["message"]
    assert touching.status_code == 201
    assert other_day.status_code == 201


def test_invalid_windows_are_rejected(client, seed):
    school = seed.school()

    assert _create(client, school.id, 1, "09:00", "08:00").status_code == 422
    assert _create(client, school.id, 1, "9:00", "10:00").status_code == 422
    assert _create(client, school.id, 8, "08:00", "08:40").status_code == 422
    assert _create(client, "missing-school").status_code == 404


def test_update_revalidates_merged_values(client, seed):
    school = seed.school()
    first = _create(client, school.id, 1, "08:00", "08:40").json()
    second = _create(client, school.id, 1, "08:40", "09:20").json()

    clash = client.put(f"/api/timetable-slots/{second['id']}", json={"start_time": "08:20"})
    inverted = client.put(f"/api/timetable-slots/{first['id']}", json={"end_time": "07:30"})
    moved = client.put(f"/api/timetable-slots/{second['id']}", json={"day_of_week": 2, "start_time": "08:20"})

    assert clash.status_code == 409
    assert inverted.status_code == 400
    assert moved.status_code == 200
    assert moved.json()["day_of_week"] == 2
    assert client.put(f"/api/timetable-slots/{first['id']}", json={"end_time": "08:50"}).status_code == 200


def test_delete_blocked_while_lessons_use_slot(client, seed, monday_school):
    data = monday_school
    version = seed.version(data["term"])
    seed.lesson(version, data["slots"][0], data["class"], data["subject"], data["teacher"])
    spare = seed.slot(data["school"], 5, "14:00", "14:40")

    blocked = client.delete(f"/api/timetable-slots/{data['slots'][0].id}")
    removed = client.delete(f"/api/timetable-slots/{spare.id}")

    assert blocked.status_code == 409
    assert removed.status_code == 200
    assert client.get(f"/api/timetable-slots/{spare.id}").status_code == 404


def test_update_blocked_while_lessons_use_slot(client, seed, monday_school):
    data = monday_school
    live = seed.version(data["term"], status=TimetableStatus.published)
    seed.lesson(live, data["slots"][0], data["class"], data["subject"], data["teacher"])

    blocked = client.put(f"/api/timetable-slots/{data['slots'][0].id}", json={"day_of_week": 3})
    free = client.put(f"/api/timetable-slots/{data['slots'][1].id}", json={"day_of_week": 3})

    assert blocked.status_code == 409
    assert client.get(f"/api/timetable-slots/{data['slots'][0].id}").json()["day_of_week"] == 1
    assert free.status_code == 200
    assert free.json()["day_of_week"] == 3
