def test_quota_listing_reports_current_week_usage(client, create_admin, create_teacher, auth_headers):
    admin = auth_headers(create_admin())
    ana_id = create_teacher(email="ana@example.com", name="Ana", used=2)
    create_teacher(email="luis@example.com", name="Luis", used=3, last_reset_week="2026-W40")

    response = client.get("/api/quotas", headers=admin)
    assert response.status_code == 200
    rows = {item["name"]: item for item in response.json()}
    assert rows["Ana"]["user_id"] == ana_id
    assert rows["Ana"]["remaining_hours"] == 1
    # Not reset yet, but last week's usage no longer counts.
    assert rows["Luis"]["substitutions_this_week"] == 0
    assert rows["Luis"]["last_reset_week"] == "2026-W40"


def test_manual_reset_is_idempotent_and_audited(client, create_admin, create_teacher, get_quota, auth_headers):
    admin = auth_headers(create_admin())
    stale_id = create_teacher(email="stale@example.com", used=3, last_reset_week="2026-W42")
    create_teacher(email="fresh@example.com", used=1)

    first = client.post("/api/quotas/reset", headers=admin)
    assert first.status_code == 200
    assert first.json() == {"week": "2026-W43", "reset_count": 1}
    assert get_quota(stale_id).substitutions_this_week == 0

    second = client.post("/api/quotas/reset", headers=admin)
    assert second.json() == {"week": "2026-W43", "reset_count": 0}

    logs = client.get("/api/activity/logs", params={"entity_type": "quota"}, headers=admin)
    assert [item["action"] for item in logs.json()] == ["quota.reset"]


def test_increment_endpoint_is_silent_for_unknown_teachers(client, create_admin, create_teacher, get_quota, auth_headers):
    admin = auth_headers(create_admin())
    teacher_id = create_teacher(email="t@example.com", used=1)

    response = client.post(f"/api/quotas/{teacher_id}/increment", headers=admin)
    assert response.status_code == 204
    quota = get_quota(teacher_id)
    assert quota.substitutions_this_week == 2
    assert quota.weekly_free_hours == 3

    unknown = client.post("/api/quotas/nobody/increment", headers=admin)
    assert unknown.status_code == 204


def test_quota_endpoints_require_admin(client, create_teacher, auth_headers):
    teacher = auth_headers(create_teacher(email="t@example.com"))

    assert client.get("/api/quotas", headers=teacher).status_code == 403
    assert client.post("/api/quotas/reset", headers=teacher).status_code == 403


def test_increment_counts_for_this_week_on_stale_or_new_quotas(
    client, create_admin, create_teacher, get_quota, auth_headers
):
    admin = auth_headers(create_admin())
    new_id = create_teacher(email="new@example.com", name="New", last_reset_week=None)
    stale_id = create_teacher(email="stale@example.com", name="Stale", used=3, last_reset_week="2026-W42")

    assert client.post(f"/api/quotas/{new_id}/increment", headers=admin).status_code == 204
    assert client.post(f"/api/quotas/{stale_id}/increment", headers=admin).status_code == 204

    rows = {item["name"]: item for item in client.get("/api/quotas", headers=admin).json()}
    assert rows["New"]["substitutions_this_week"] == 1
    assert rows["Stale"]["substitutions_this_week"] == 1
    assert rows["Stale"]["last_reset_week"] == "2026-W43"

    # A later reset in the same week keeps the counted hour.
    assert client.post("/api/quotas/reset", headers=admin).json()["reset_count"] == 0
    assert get_quota(new_id).substitutions_this_week == 1
