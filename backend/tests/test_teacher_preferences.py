def test_preferences_replace_previous_records(client, seed, monday_school):
    data = monday_school
    first, second = data["slots"]
    url = f"/api/teacher-preferences/{data['teacher'].id}/term/{data['term'].id}"

    initial = client.put(
        "/api/teacher-preferences",
        json={
            "teacher_id": data["teacher"].id,
            "term_id": data["term"].id,
            "preferences": [
                {"slot_id": first.id, "status": "preferred"},
                {"slot_id": second.id, "status": "unavailable"},
            ],
        },
    )
    assert initial.status_code == 200
    assert [item["status"] for item in initial.json()["preferences"]] == ["preferred", "unavailable"]

    replaced = client.put(
        "/api/teacher-preferences",
        json={
            "teacher_id": data["teacher"].id,
            "term_id": data["term"].id,
            "preferences": [{"slot_id": second.id, "status": "preferred"}],
        },
    )
    assert [(item["slot_id"], item["status"]) for item in replaced.json()["preferences"]] == [
        (second.id, "preferred")
    ]

    full = client.get(url, params={"include_all_slots": True}).json()["preferences"]
    assert [(item["slot_id"], item["status"]) for item in full] == [
        (first.id, "available"),
        (second.id, "preferred"),
    ]

    cleared = client.put(
        "/api/teacher-preferences",
        json={"teacher_id": data["teacher"].id, "term_id": data["term"].id, "preferences": []},
    )
    assert cleared.json()["preferences"] == []


def test_preferences_validate_teacher_and_slots(client, seed, monday_school):
    data = monday_school
    parent = seed.user(data["school"], "Some Parent", ["parent"])
    other_school = seed.school("Elsewhere")
    foreign_slot = seed.slot(other_school, 1, "08:00", "08:40")

    not_teacher = client.put(
        "/api/teacher-preferences",
        json={"teacher_id": parent.id, "term_id": data["term"].id, "preferences": []},
    )
    foreign = client.put(
        "/api/teacher-preferences",
        json={
            "teacher_id": data["teacher"].id,
            "term_id": data["term"].id,
            "preferences": [{"slot_id": foreign_slot.id, "status": "preferred"}],
        },
    )
    unknown_term = client.put(
        "/api/teacher-preferences",
        json={"teacher_id": data["teacher"].id, "term_id": "missing", "preferences": []},
    )
    duplicated = client.put(
        "/api/teacher-preferences",
        json={
            "teacher_id": data["teacher"].id,
            "term_id": data["term"].id,
            "preferences": [
                {"slot_id": data["slots"][0].id, "status": "preferred"},
                {"slot_id": data["slots"][0].id, "status": "unavailable"},
            ],
        },
    )

    assert not_teacher.status_code == 400
    assert foreign.status_code == 400
    assert foreign.json()["details"]["slot_ids"] == [foreign_slot.id]
    assert unknown_term.status_code == 400
    assert duplicated.status_code == 422
