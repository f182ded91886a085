from datetime import date


def test_group_lifecycle(client, create_admin, create_teacher, auth_headers):
    admin = auth_headers(create_admin())
    teacher_id = create_teacher(email="t@example.com")
    teacher = auth_headers(teacher_id)

    created = client.post("/api/groups", json={"level": "1 ESO", "name": "A"}, headers=admin)
    assert created.status_code == 201
    group_id = created.json()["id"]
    client.post("/api/groups", json={"level": "1 Bach", "name": "C"}, headers=admin)

    duplicate = client.post("/api/groups", json={"level": "1 ESO", "name": " A "}, headers=admin)
    assert duplicate.status_code == 409

    listing = client.get("/api/groups", headers=teacher)
    assert listing.status_code == 200
    assert [(item["level"], item["name"]) for item in listing.json()] == [("1 Bach", "C"), ("1 ESO", "A")]

    assert client.post("/api/groups", json={"level": "2 ESO", "name": "A"}, headers=teacher).status_code == 403

    substitution = client.post(
        "/api/substitutions",
        json={
            "substitution_date": date.today().isoformat(),
            "start_time": "08:00",
            "end_time": "09:00",
            "assigned_teacher_id": teacher_id,
            "group_id": group_id,
        },
        headers=admin,
    )
    assert substitution.status_code == 201
    assert client.delete(f"/api/groups/{group_id}", headers=admin).status_code == 409

    client.delete(f"/api/substitutions/{substitution.json()['id']}", headers=admin)
    assert client.delete(f"/api/groups/{group_id}", headers=admin).status_code == 200
    assert client.delete(f"/api/groups/{group_id}", headers=admin).status_code == 404
