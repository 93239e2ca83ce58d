from datetime import date


def test_profile_update(client, make, headers):
    employee = make.employee("eka@example.com")

    updated = client.put("/api/v1/users/me", json={"phone": "0812 3456 789", "full_name": "Eka P."}, headers=headers(employee))
    assert updated.status_code == 200
    assert updated.json()["phone"] == "0812 3456 789"
    assert updated.json()["full_name"] == "Eka P."

    assert client.put("/api/v1/users/me", json={"phone": "none"}, headers=headers(employee)).status_code == 400


def test_my_supervisor(client, make, headers):
    employee = make.employee("eka@example.com")
    supervisor = make.employee("sari@example.com")

    assert client.get("/api/v1/users/me/supervisor", headers=headers(employee)).json() is None

    make.relation(employee, supervisor, start_date=date(2026, 1, 1))
    assert client.get("/api/v1/users/me/supervisor", headers=headers(employee)).json()["id"] == supervisor.id


def test_change_password(client, make, headers):
    employee = make.employee("eka@example.com")

    wrong = client.put(
        "/api/v1/users/me/password",
        json={"current_password": "bad", "new_password": "long-enough-1"},
        headers=headers(employee),
    )
    assert wrong.status_code == 400

    changed = client.put(
        "/api/v1/users/me/password",
        json={"current_password": "secret-pass", "new_password": "long-enough-1"},
        headers=headers(employee),
    )
    assert changed.status_code == 204

    login = client.post("/auth/token", data={"username": "EKA@example.com", "password": "long-enough-1"})
    assert login.status_code == 200
