from datetime import date, timedelta

from app.core.config import get_settings
from app.services import substitutions as substitution_service


def substitution_payload(**overrides):
    payload = {
        "substitution_date": (date.today() + timedelta(days=1)).isoformat(),
        "start_time": "09:00",
        "end_time": "10:00",
        "reason": "illness",
    }
    payload.update(overrides)
    return payload


def test_recommend_assign_and_exhaust_weekly_quota(client, create_admin, create_teacher, get_quota, auth_headers):
    admin = auth_headers(create_admin())
    teacher_id = create_teacher(email="ana@example.com", name="Ana", weekly_free_hours=3, used=2)

    recommended = client.get("/api/substitutions/recommended-teacher", headers=admin)
    assert recommended.status_code == 200
    body = recommended.json()
    assert body["available"] is True
    assert body["week"] == "2026-W43"
    assert body["teacher"]["user_id"] == teacher_id
    assert body["teacher"]["remaining_hours"] == 1

    created = client.post("/api/substitutions", json=substitution_payload(), headers=admin)
    assert created.status_code == 201
    assert created.json()["assigned_teacher_id"] == teacher_id
    assert created.json()["assigned_teacher_name"] == "Ana"
    assert get_quota(teacher_id).substitutions_this_week == 3

    exhausted = client.get("/api/substitutions/recommended-teacher", headers=admin)
    assert exhausted.status_code == 200
    assert exhausted.json() == {"available": False, "week": "2026-W43", "teacher": None}

    rejected = client.post("/api/substitutions", json=substitution_payload(), headers=admin)
    assert rejected.status_code == 409
    assert rejected.json()["details"] == {"week": "2026-W43"}
    assert get_quota(teacher_id).substitutions_this_week == 3


def test_recommendation_resets_counters_from_previous_week(client, create_admin, create_teacher, get_quota, auth_headers):
    admin = auth_headers(create_admin())
    teacher_id = create_teacher(email="ana@example.com", used=3, last_reset_week="2026-W42")

    response = client.get("/api/substitutions/recommended-teacher", headers=admin)
    assert response.status_code == 200
    assert response.json()["teacher"]["user_id"] == teacher_id
    assert response.json()["teacher"]["substitutions_this_week"] == 0

    quota = get_quota(teacher_id)
    assert quota.substitutions_this_week == 0
    assert quota.last_reset_week == "2026-W43"


def test_auto_assignment_skips_the_absent_teacher(client, create_admin, create_teacher, get_quota, auth_headers):
    admin = auth_headers(create_admin())
    absent_id = create_teacher(email="absent@example.com", teacher_id="t-1")
    cover_id = create_teacher(email="cover@example.com", used=1, teacher_id="t-2")

    response = client.post(
        "/api/substitutions",
        json=substitution_payload(absent_teacher_id=absent_id),
        headers=admin,
    )
    assert response.status_code == 201
    assert response.json()["assigned_teacher_id"] == cover_id
    assert get_quota(absent_id).substitutions_this_week == 0
    assert get_quota(cover_id).substitutions_this_week == 2


def test_manual_assignment_is_counted_even_over_capacity(client, create_admin, create_teacher, get_quota, auth_headers):
    admin = auth_headers(create_admin())
    teacher_id = create_teacher(email="full@example.com", weekly_free_hours=1, used=1)

    response = client.post(
        "/api/substitutions",
        json=substitution_payload(assigned_teacher_id=teacher_id),
        headers=admin,
    )
    assert response.status_code == 201
    assert get_quota(teacher_id).substitutions_this_week == 2


def test_manual_assignment_rejects_non_teachers_and_unknown_references(client, create_admin, create_teacher, get_quota, auth_headers):
    admin_id = create_admin()
    admin = auth_headers(admin_id)
    teacher_id = create_teacher(email="t@example.com")
    inactive_id = create_teacher(email="gone@example.com", is_active=False)

    to_admin = client.post("/api/substitutions", json=substitution_payload(assigned_teacher_id=admin_id), headers=admin)
    assert to_admin.status_code == 400

    to_inactive = client.post(
        "/api/substitutions",
        json=substitution_payload(assigned_teacher_id=inactive_id),
        headers=admin,
    )
    assert to_inactive.status_code == 400

    unknown_group = client.post(
        "/api/substitutions",
        json=substitution_payload(assigned_teacher_id=teacher_id, group_id="missing-group"),
        headers=admin,
    )
    assert unknown_group.status_code == 404
    assert unknown_group.json()["details"] == {"resource_type": "Group", "resource_id": "missing-group"}

    # Failed requests never count against the quota.
    assert get_quota(teacher_id).substitutions_this_week == 0


def test_create_validates_times_reason_and_teachers(client, create_admin, create_teacher, auth_headers):
    admin = auth_headers(create_admin())
    teacher_id = create_teacher(email="t@example.com")

    reversed_times = client.post(
        "/api/substitutions",
        json=substitution_payload(start_time="11:00", end_time="10:00"),
        headers=admin,
    )
    assert reversed_times.status_code == 422

    bad_format = client.post("/api/substitutions", json=substitution_payload(start_time="9am"), headers=admin)
    assert bad_format.status_code == 422

    missing_other = client.post("/api/substitutions", json=substitution_payload(reason="other"), headers=admin)
    assert missing_other.status_code == 422

    same_teacher = client.post(
        "/api/substitutions",
        json=substitution_payload(assigned_teacher_id=teacher_id, absent_teacher_id=teacher_id),
        headers=admin,
    )
    assert same_teacher.status_code == 422


def test_update_and_delete_leave_quotas_untouched(client, create_admin, create_teacher, get_quota, auth_headers):
    admin = auth_headers(create_admin())
    first_id = create_teacher(email="first@example.com")
    second_id = create_teacher(email="second@example.com")

    created = client.post(
        "/api/substitutions",
        json=substitution_payload(assigned_teacher_id=first_id),
        headers=admin,
    )
    assert created.status_code == 201
    substitution_id = created.json()["id"]

    updated = client.put(
        f"/api/substitutions/{substitution_id}",
        json={"assigned_teacher_id": second_id, "notes": "Bring worksheets", "period": "third"},
        headers=admin,
    )
    assert updated.status_code == 200
    assert updated.json()["assigned_teacher_id"] == second_id
    assert updated.json()["period"] == "third"
    assert get_quota(first_id).substitutions_this_week == 1
    assert get_quota(second_id).substitutions_this_week == 0

    bad_update = client.put(
        f"/api/substitutions/{substitution_id}",
        json={"end_time": "08:00"},
        headers=admin,
    )
    assert bad_update.status_code == 400

    deleted = client.delete(f"/api/substitutions/{substitution_id}", headers=admin)
    assert deleted.status_code == 200
    assert client.get(f"/api/substitutions/{substitution_id}", headers=admin).status_code == 404
    assert get_quota(first_id).substitutions_this_week == 1


def test_teacher_sees_marks_and_confirms_own_substitutions(client, create_admin, create_teacher, auth_headers):
    admin = auth_headers(create_admin())
    teacher_id = create_teacher(email="ana@example.com", name="Ana", surname="Ruiz")
    other_id = create_teacher(email="luis@example.com", name="Luis")
    teacher = auth_headers(teacher_id)
    other = auth_headers(other_id)

    group = client.post("/api/groups", json={"level": "2 ESO", "name": "B"}, headers=admin)
    assert group.status_code == 201
    payload = substitution_payload(assigned_teacher_id=teacher_id, group_id=group.json()["id"])
    created = client.post("/api/substitutions", json=payload, headers=admin)
    assert created.status_code == 201
    substitution_id = created.json()["id"]
    assert created.json()["group_name"] == "2 ESO B"

    own = client.get("/api/substitutions", headers=teacher)
    assert [item["id"] for item in own.json()] == [substitution_id]
    assert client.get("/api/substitutions", headers=other).json() == []

    pending = client.get("/api/substitutions/pending", headers=teacher)
    assert [item["id"] for item in pending.json()] == [substitution_id]

    assert client.post(f"/api/substitutions/{substitution_id}/seen", headers=other).status_code == 403
    assert client.get(f"/api/substitutions/{substitution_id}", headers=other).status_code == 403

    seen = client.post(f"/api/substitutions/{substitution_id}/seen", headers=teacher)
    assert seen.status_code == 200
    assert seen.json()["seen"] is True
    assert seen.json()["confirmed_by_teacher"] is False

    confirmed = client.post(f"/api/substitutions/{substitution_id}/confirm", headers=teacher)
    assert confirmed.status_code == 200
    assert confirmed.json()["confirmed_by_teacher"] is True
    assert client.get("/api/substitutions/pending", headers=teacher).json() == []

    confirmations = client.get(
        "/api/substitutions/confirmations",
        params={"date": payload["substitution_date"]},
        headers=admin,
    )
    assert confirmations.status_code == 200
    assert confirmations.json() == [
        {
            "substitution_id": substitution_id,
            "teacher_id": teacher_id,
            "teacher_name": "Ana Ruiz",
            "group_name": "2 ESO B",
            "start_time": "09:00",
            "end_time": "10:00",
            "seen": True,
            "confirmed": True,
        }
    ]


def test_list_filters_by_date_range(client, create_admin, create_teacher, auth_headers):
    admin = auth_headers(create_admin())
    teacher_id = create_teacher(email="t@example.com", weekly_free_hours=10)
    today = date.today()
    for offset in (1, 2, 5):
        day = (today + timedelta(days=offset)).isoformat()
        response = client.post(
            "/api/substitutions",
            json=substitution_payload(assigned_teacher_id=teacher_id, substitution_date=day),
            headers=admin,
        )
        assert response.status_code == 201

    single = client.get(
        "/api/substitutions",
        params={"date": (today + timedelta(days=2)).isoformat()},
        headers=admin,
    )
    assert len(single.json()) == 1

    ranged = client.get(
        "/api/substitutions",
        params={"start": (today + timedelta(days=1)).isoformat(), "end": (today + timedelta(days=3)).isoformat()},
        headers=admin,
    )
    assert len(ranged.json()) == 2

    inverted = client.get(
        "/api/substitutions",
        params={"start": (today + timedelta(days=3)).isoformat(), "end": today.isoformat()},
        headers=admin,
    )
    assert inverted.status_code == 400


def test_substitution_management_requires_admin(client, create_teacher, auth_headers):
    teacher_id = create_teacher(email="t@example.com")
    teacher = auth_headers(teacher_id)

    assert client.post("/api/substitutions", json=substitution_payload(), headers=teacher).status_code == 403
    assert client.get("/api/substitutions/recommended-teacher", headers=teacher).status_code == 403
    assert client.get("/api/substitutions/confirmations", headers=teacher).status_code == 403

    invalid = client.get("/api/substitutions", headers={"Authorization": "Bearer not-a-token"})
    assert invalid.status_code == 401


def test_auto_assignment_moves_on_when_capacity_is_taken_first(
    client, create_admin, create_teacher, get_quota, auth_headers, monkeypatch
):
    admin = auth_headers(create_admin())
    first_id = create_teacher(email="first@example.com", teacher_id="t-1")
    second_id = create_teacher(email="second@example.com", used=1, teacher_id="t-2")
    real_consume = substitution_service.consume_capacity
    attempted: list[str] = []

    def consume_after_competing_request(db, teacher_id, *, week):
        attempted.append(teacher_id)
        if teacher_id == first_id:
            # Another request took this teacher's hours between read and update.
            return False
        return real_consume(db, teacher_id, week=week)

    monkeypatch.setattr(substitution_service, "consume_capacity", consume_after_competing_request)

    response = client.post("/api/substitutions", json=substitution_payload(), headers=admin)
    assert response.status_code == 201
    assert response.json()["assigned_teacher_id"] == second_id
    assert attempted == [first_id, second_id]
    assert get_quota(first_id).substitutions_this_week == 0
    assert get_quota(second_id).substitutions_this_week == 2


def test_auto_assignment_gives_up_after_max_attempts(
    client, create_admin, create_teacher, get_quota, auth_headers, monkeypatch
):
    admin = auth_headers(create_admin())
    first_id = create_teacher(email="first@example.com", teacher_id="t-1")
    second_id = create_teacher(email="second@example.com", teacher_id="t-2")
    attempted: list[str] = []

    def always_taken(db, teacher_id, *, week):
        attempted.append(teacher_id)
        return False

    monkeypatch.setattr(substitution_service, "consume_capacity", always_taken)
    monkeypatch.setattr(get_settings(), "auto_assign_max_attempts", 1)

    response = client.post("/api/substitutions", json=substitution_payload(), headers=admin)
    assert response.status_code == 409
    assert response.json()["details"] == {"week": "2026-W43"}
    assert attempted == [first_id]
    assert client.get("/api/substitutions", headers=admin).json() == []
    assert get_quota(second_id).substitutions_this_week == 0
