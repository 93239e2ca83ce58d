def test_admin_routes_need_admin_role(client, make, headers):
    employee = make.employee("eka@example.com")
    assert client.get("/api/v1/admin/users", headers=headers(employee)).status_code == 403


def test_manage_users(client, make, headers):
    admin = make.employee("admin@example.com", role="admin")

    created = client.post(
        "/api/v1/admin/users",
        json={"email": "new@example.com", "password": "pw-123456", "full_name": "New Hire", "phone": "0812"},
        headers=headers(admin),
    )
    assert created.status_code == 201
    user_id = created.json()["id"]
    assert created.json()["role"] == "employee"

    duplicate = client.post(
        "/api/v1/admin/users", json={"email": "new@example.com", "password": "x"}, headers=headers(admin)
    )
    assert duplicate.status_code == 409

    updated = client.put(f"/api/v1/admin/users/{user_id}", json={"title": "Analyst"}, headers=headers(admin))
    assert updated.json()["title"] == "Analyst"
    assert client.put("/api/v1/admin/users/999", json={"title": "x"}, headers=headers(admin)).status_code == 404

    emails = [row["email"] for row in client.get("/api/v1/admin/users", headers=headers(admin)).json()]
    assert emails == ["admin@example.com", "new@example.com"]

    login = client.post("/auth/token", data={"username": "new@example.com", "password": "pw-123456"})
    assert login.status_code == 200


def test_manage_supervisor_relations(client, make, headers):
    admin = make.employee("admin@example.com", role="admin")
    employee = make.employee("eka@example.com")
    supervisor = make.employee("sari@example.com")
    body = {"employee_id": employee.id, "supervisor_id": supervisor.id, "start_date": "2026-01-01"}

    created = client.post("/api/v1/admin/supervisors", json=body, headers=headers(admin))
    assert created.status_code == 201
    relation_id = created.json()["id"]
    assert created.json()["kind"] == "Direct"

    assert client.post("/api/v1/admin/supervisors", json=body, headers=headers(admin)).status_code == 409
    reversed_pair = {"employee_id": supervisor.id, "supervisor_id": employee.id, "start_date": "2026-02-01"}
    assert client.post("/api/v1/admin/supervisors", json=reversed_pair, headers=headers(admin)).status_code == 409

    own = {"employee_id": employee.id, "supervisor_id": employee.id, "start_date": "2026-01-01"}
    assert client.post("/api/v1/admin/supervisors", json=own, headers=headers(admin)).status_code == 400

    backwards = client.put(
        f"/api/v1/admin/supervisors/{relation_id}", json={"end_date": "2025-12-31"}, headers=headers(admin)
    )
    assert backwards.status_code == 400

    for cleared in ({"start_date": None}, {"is_active": None}, {"kind": None}, {"supervisor_id": None}):
        response = client.put(f"/api/v1/admin/supervisors/{relation_id}", json=cleared, headers=headers(admin))
        assert response.status_code == 400, cleared

    ended = client.put(
        f"/api/v1/admin/supervisors/{relation_id}", json={"end_date": "2026-03-01"}, headers=headers(admin)
    )
    assert ended.status_code == 200
    assert ended.json()["end_date"] == "2026-03-01"

    listed = client.get("/api/v1/admin/supervisors", params={"employee_id": employee.id}, headers=headers(admin))
    assert [row["id"] for row in listed.json()] == [relation_id]

    assert client.delete(f"/api/v1/admin/supervisors/{relation_id}", headers=headers(admin)).status_code == 204
    assert client.delete(f"/api/v1/admin/supervisors/{relation_id}", headers=headers(admin)).status_code == 404


def test_emails_are_stored_lowercase_and_unique_regardless_of_case(client, make, headers):
    admin = make.employee("admin@example.com", role="admin")

    created = client.post(
        "/api/v1/admin/users", json={"email": "New.Hire@Example.com", "password": "pw-123456"}, headers=headers(admin)
    )
    assert created.status_code == 201
    assert created.json()["email"] == "new.hire@example.com"

    again = client.post(
        "/api/v1/admin/users", json={"email": "new.hire@example.com", "password": "pw-123456"}, headers=headers(admin)
    )
    assert again.status_code == 409
    shouted = client.post(
        "/api/v1/admin/users", json={"email": "NEW.HIRE@EXAMPLE.COM", "password": "pw-123456"}, headers=headers(admin)
    )
    assert shouted.status_code == 409

    login = client.post("/auth/token", data={"username": "New.Hire@example.com", "password": "pw-123456"})
    assert login.status_code == 200


def test_relation_changes_are_logged(client, make, headers):
    admin = make.employee("admin@example.com", role="admin")
    employee = make.employee("eka@example.com")
    supervisor = make.employee("sari@example.com")
    body = {"employee_id": employee.id, "supervisor_id": supervisor.id, "start_date": "2026-01-01"}

    relation_id = client.post("/api/v1/admin/supervisors", json=body, headers=headers(admin)).json()["id"]
    client.put(f"/api/v1/admin/supervisors/{relation_id}", json={"start_date": None}, headers=headers(admin))
    client.put(f"/api/v1/admin/supervisors/{relation_id}", json={"end_date": "2026-03-01"}, headers=headers(admin))
    client.delete(f"/api/v1/admin/supervisors/{relation_id}", headers=headers(admin))

    logs = client.get(
        "/api/v1/admin/logs", params={"module": "SupervisorRelation"}, headers=headers(admin)
    ).json()
    assert [row["action"] for row in logs] == ["Delete", "Update", "Create"]
    assert all(row["employee_id"] == admin.id for row in logs)

    deleted, updated, created = logs
    assert created["data_before"] is None
    assert created["data_after"]["supervisor_id"] == supervisor.id
    assert updated["data_before"]["end_date"] is None
    assert updated["data_after"]["end_date"] == "2026-03-01"
    assert deleted["data_before"]["id"] == relation_id
    assert deleted["data_after"] is None
    assert updated["method"] == "PUT"
    assert updated["endpoint"] == f"/api/v1/admin/supervisors/{relation_id}"

    only_updates = client.get("/api/v1/admin/logs", params={"action": "Update"}, headers=headers(admin)).json()
    assert [row["id"] for row in only_updates] == [updated["id"]]


def test_activity_log_needs_admin_role(client, make, headers):
    employee = make.employee("eka@example.com")
    admin = make.employee("admin@example.com", role="admin")

    assert client.get("/api/v1/admin/logs", headers=headers(employee)).status_code == 403
    assert client.get("/api/v1/admin/logs", headers=headers(admin)).json() == []
    assert client.get("/api/v1/admin/logs", params={"action": "Approve"}, headers=headers(admin)).status_code == 422
