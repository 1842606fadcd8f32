from dataclasses import replace
from datetime import date, datetime

import pytest

from attendance_payroll.core.enums import AttendanceStatus
from attendance_payroll.core.exceptions import StorageError
from attendance_payroll.main import create_app

ADMIN_ID = 50


@pytest.fixture
def app(world, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=world.container)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, user_id, role, company_id=1):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role
        sess["company_id"] = company_id


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_requires_session(client):
    resp = client.post("/api/attendance/validate", json={"type": "in"})

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "UNAUTHORIZED"


def test_staff_cannot_use_admin_routes(client):
    login(client, 1, "STAFF")

    resp = client.get("/api/admin/reports/attendance")

    assert resp.status_code == 403


def test_validate_then_punch_in(client, world):
    login(client, 1, "STAFF")

    validation = client.post("/api/attendance/validate", json={"type": "in"})
    assert validation.status_code == 200
    token = validation.get_json()["validationToken"]

    punch = client.post("/api/attendance/punch", json={"type": "in", "photo": "s3://bucket/in.jpg", "validationToken": token})

    assert punch.status_code == 201
    body = punch.get_json()["attendance"]
    assert body["state"] == "PUNCHED_IN"
    assert body["punchInImageRef"] == "s3://bucket/in.jpg"
    assert len(world.attendance.all()) == 1

    today = client.get("/api/attendance/today").get_json()["attendance"]
    assert today["id"] == body["id"]


def test_refused_validation_is_a_400_value(client):
    login(client, 2, "STAFF")

    resp = client.post("/api/attendance/validate", json={"type": "in"})

    assert resp.status_code == 400
    assert resp.get_json() == {
        "valid": False,
        "punchType": "in",
        "code": "SALARY_NOT_CONFIGURED",
        "error": "Salary is not configured. Contact your administrator.",
    }


def test_punch_without_token_is_rejected(client):
    login(client, 1, "STAFF")

    resp = client.post("/api/attendance/punch", json={"type": "in"})

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "INVALID_VALIDATION_TOKEN"


def test_bad_punch_type(client):
    login(client, 1, "STAFF")

    resp = client.post("/api/attendance/validate", json={"type": "lunch"})

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "INVALID_PUNCH_TYPE"


def test_admin_approves_and_reads_audit(client, world):
    record = world.closed_record(date(2025, 3, 10))
    login(client, ADMIN_ID, "ADMIN")

    resp = client.post(f"/api/admin/attendance/{record.attendance_id}/approval", json={"decision": "approve"})

    assert resp.status_code == 200
    assert resp.get_json()["attendance"]["status"] == "APPROVED"
    audit = client.get(f"/api/admin/attendance/{record.attendance_id}/audit").get_json()["entries"]
    assert [e["action"] for e in audit] == ["APPROVED"]
    assert audit[0]["actorId"] == ADMIN_ID


def test_approving_open_record_is_a_conflict(client, world):
    closed = world.closed_record(date(2025, 3, 10))
    record = world.attendance.add(replace(closed, attendance_date=date(2025, 3, 11), punch_out=None))
    login(client, ADMIN_ID, "ADMIN")

    resp = client.post(f"/api/admin/attendance/{record.attendance_id}/approval", json={"decision": "APPROVE"})

    assert resp.status_code == 409
    assert resp.get_json()["code"] == "CANNOT_APPROVE_WITHOUT_PUNCH_OUT"


def test_admin_cannot_see_other_company_records(client, world):
    record = world.closed_record(date(2025, 3, 10), user_id=4)
    login(client, ADMIN_ID, "ADMIN", company_id=1)

    resp = client.get(f"/api/admin/attendance/{record.attendance_id}")

    assert resp.status_code == 404


def test_override_and_leave(client, world):
    record = world.closed_record(date(2025, 3, 10))
    login(client, ADMIN_ID, "ADMIN")

    patched = client.patch(
        f"/api/admin/attendance/{record.attendance_id}",
        json={"fields": {"working_hours": "8"}, "reason": "Manual correction"},
    )
    leave = client.post("/api/admin/attendance/leave", json={"userId": 1, "date": "2025-03-11", "reason": "Sick"})
    no_reason = client.post("/api/admin/attendance/leave", json={"userId": 1, "date": "2025-03-12"})

    assert patched.status_code == 200
    assert patched.get_json()["attendance"]["workingHours"] == "8"
    assert leave.status_code == 200
    assert leave.get_json()["attendance"]["status"] == "LEAVE"
    assert no_reason.status_code == 400


def test_salary_round_trip_over_api(client):
    login(client, ADMIN_ID, "ADMIN")

    saved = client.put(
        "/api/admin/salary/2",
        json={"salaryType": "HOURLY", "workingDaysTarget": 26, "hourlyRate": "150", "effectiveFrom": "2025-03-01"},
    )
    fetched = client.get("/api/admin/salary/2").get_json()

    assert saved.status_code == 200
    assert fetched["current"]["hourlyRate"] == "150"
    assert len(fetched["history"]) == 1


def test_payroll_endpoints(client, world):
    world.closed_record(date(2025, 3, 3), status=AttendanceStatus.APPROVED)
    login(client, ADMIN_ID, "ADMIN")

    ledger = client.post(
        "/api/admin/payroll/1/ledger",
        json={"type": "payment", "amount": "400", "year": 2025, "month": 3, "date": "2025-03-20"},
    )
    payroll = client.get("/api/admin/payroll/1?year=2025&month=3").get_json()["payroll"]
    batch = client.post("/api/admin/payroll/generate", json={"year": 2025, "month": 3}).get_json()

    assert ledger.status_code == 201
    assert payroll["grossAmount"] == "1000.00"
    assert payroll["balanceAmount"] == "600.00"
    assert len(batch["results"]) == 3
    assert client.get("/api/admin/payroll/4?year=2025&month=3").status_code == 404


def test_reports_endpoints(client, world):
    world.closed_record(date(2025, 3, 10), status=AttendanceStatus.APPROVED)
    login(client, ADMIN_ID, "ADMIN")

    report = client.get("/api/admin/reports/attendance?start=2025-03-10&end=2025-03-11&status=approved").get_json()
    salary = client.get("/api/admin/reports/salary?year=2025&month=3").get_json()
    bad = client.get("/api/admin/reports/attendance?start=2025-03-10&end=2025-03-01")

    assert report["summary"]["present"] == 1
    assert salary["summary"]["staffCount"] == "3"
    assert bad.status_code == 400


def test_default_periods_follow_company_time_zone(client, world, monkeypatch):
    world.set_company(timezone="America/New_York")
    seen = []

    def fake_now(tz):
        seen.append(tz)
        return datetime(2025, 2, 28, 21, 0)

    monkeypatch.setattr("attendance_payroll.common.web.now_local", fake_now)
    login(client, 1, "STAFF")
    payroll = client.get("/api/payroll/me").get_json()["payroll"]
    login(client, ADMIN_ID, "ADMIN")
    report = client.get("/api/admin/reports/attendance").get_json()

    assert (payroll["year"], payroll["month"]) == (2025, 2)
    assert (report["startDate"], report["endDate"]) == ("2025-02-22", "2025-02-28")
    assert set(seen) == {"America/New_York"}


def test_history_limit_is_clamped(client, world):
    world.closed_record(date(2025, 3, 10))
    login(client, 1, "STAFF")

    resp = client.get("/api/attendance/history?limit=-5")

    assert resp.status_code == 200
    assert [r["date"] for r in resp.get_json()["rows"]] == ["2025-03-10"]


def test_storage_failure_is_a_generic_500(client, world, monkeypatch):
    def broken(attendance_id):
        raise StorageError("connection lost")

    monkeypatch.setattr(world.attendance, "get_by_id", broken)
    login(client, ADMIN_ID, "ADMIN")

    resp = client.get("/api/admin/attendance/1")

    assert resp.status_code == 500
    assert resp.get_json()["code"] == "INTERNAL_ERROR"
    assert "connection" not in resp.get_json()["message"]
