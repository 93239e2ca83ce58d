from datetime import date

import pytest

from reportflow.db import models

START = date(2026, 1, 1)


@pytest.fixture
def team(make):
    owner = make.employee("eka@example.com", phone="081234567890", full_name="Eka")
    supervisor = make.employee("sari@example.com", phone="081200000001", full_name="Sari")
    make.relation(owner, supervisor, start_date=START)
    return owner, supervisor


def verify(client, headers, actor, report_id, **body):
    body.setdefault("status", "Verified")
    return client.post(f"/api/v1/reports/{report_id}/verification", json=body, headers=headers(actor))


def test_supervisor_verifies(client, db, make, headers, team, sender):
    owner, supervisor = team
    report = make.report(owner)

    response = verify(client, headers, supervisor, report.id, note="ok", rating=4)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Report verified"
    assert body["report"]["status"] == "Verified"
    assert body["report"]["verifier_id"] == supervisor.id
    assert body["daily_aggregate"]["verified_count"] == 1
    assert body["daily_aggregate"]["productivity_percent"] == 100.0
    assert body["daily_aggregate"]["average_rating"] == 4.0

    assert sender.sent[0][0] == "6281234567890"
    inbox = client.get("/api/v1/notifications", headers=headers(owner)).json()
    assert inbox["count"] == 1
    assert inbox["items"][0]["category"] == "Verified"


@pytest.mark.parametrize("status,message", [
    ("Rejected", "Report rejected"),
    ("NeedsRevision", "Report returned for revision"),
])
def test_other_outcomes(client, make, headers, team, status, message):
    owner, supervisor = team
    report = make.report(owner)
    response = verify(client, headers, supervisor, report.id, status=status, note="see comments")
    assert response.status_code == 200
    assert response.json()["message"] == message
    assert response.json()["report"]["status"] == status


def test_delivery_failure_does_not_fail_the_request(client, db, make, headers, team, sender):
    owner, supervisor = team
    report = make.report(owner)
    sender.succeed = False

    response = verify(client, headers, supervisor, report.id)

    assert response.status_code == 200
    db.expire_all()
    assert db.query(models.DeliveryLog).one().outcome == "failed"
    assert client.get("/api/v1/notifications", headers=headers(owner)).json()["count"] == 0


def test_rejections(client, make, headers, team):
    owner, supervisor = team
    stranger = make.employee("budi@example.com")
    admin = make.employee("admin@example.com", role="admin")
    report = make.report(owner)
    draft = make.report(owner, status="Draft")

    assert verify(client, headers, owner, report.id).status_code == 403
    assert verify(client, headers, stranger, report.id).status_code == 403
    assert verify(client, headers, admin, report.id).status_code == 403
    assert verify(client, headers, supervisor, 9999).status_code == 404
    assert verify(client, headers, supervisor, report.id, rating=7).status_code == 422
    assert verify(client, headers, supervisor, report.id, status="Draft").status_code == 422
    assert verify(client, headers, supervisor, draft.id).status_code == 403

    unchanged = client.get(f"/api/v1/reports/{report.id}", headers=headers(owner)).json()
    assert unchanged["status"] == "Submitted"


def test_verification_view(client, make, headers, team):
    owner, supervisor = team
    stranger = make.employee("budi@example.com")
    report = make.report(owner)

    view = client.get(f"/api/v1/reports/{report.id}/verification", headers=headers(supervisor))
    assert view.status_code == 200
    assert view.json()["report"]["id"] == report.id
    assert view.json()["daily_aggregate"] is None

    assert client.get(f"/api/v1/reports/{report.id}/verification", headers=headers(stranger)).status_code == 403
    assert client.get(f"/api/v1/reports/{report.id}/verification", headers=headers(owner)).status_code == 403


def test_team_dashboard(client, make, headers, team):
    owner, supervisor = team
    stranger = make.employee("budi@example.com")
    report = make.report(owner)
    verify(client, headers, supervisor, report.id, rating=5, is_complete=True)

    day = client.get("/api/v1/dashboard/team", headers=headers(supervisor)).json()
    assert day["activity_date"] == "2026-03-10"
    [member] = day["members"]
    assert member["employee_id"] == owner.id
    assert member["name"] == "Eka"
    assert member["aggregate"]["verified_count"] == 1
    assert member["aggregate"]["is_complete"] is True

    assert client.get("/api/v1/dashboard/team", headers=headers(stranger)).json()["members"] == []

    daily = client.get("/api/v1/dashboard/daily", params={"employee_id": owner.id}, headers=headers(supervisor))
    assert daily.status_code == 200
    denied = client.get("/api/v1/dashboard/daily", params={"employee_id": owner.id}, headers=headers(stranger))
    assert denied.status_code == 403

    monthly = client.get(
        "/api/v1/dashboard/monthly",
        params={"year": 2026, "month": 3, "employee_id": owner.id},
        headers=headers(supervisor),
    ).json()
    assert monthly["report_count"] == 1
    assert monthly["verification_percent"] == 100.0
    assert monthly["category_breakdown"] == {"Development": 1}


def test_verification_shows_up_in_activity_log(client, make, headers, team):
    owner, supervisor = team
    admin = make.employee("admin@example.com", role="admin")
    report = make.report(owner)

    assert verify(client, headers, supervisor, report.id, status="Rejected").status_code == 200

    logs = client.get("/api/v1/admin/logs", params={"module": "Report"}, headers=headers(admin)).json()
    assert len(logs) == 1
    entry = logs[0]
    assert (entry["action"], entry["employee_id"]) == ("Update", supervisor.id)
    assert entry["endpoint"] == f"/api/v1/reports/{report.id}/verification"
    assert entry["method"] == "POST"
    assert entry["data_before"]["report"]["status"] == "Submitted"
    assert entry["data_after"]["report"]["status"] == "Rejected"
    assert entry["data_after"]["daily_aggregate"]["rejected_count"] == 1
