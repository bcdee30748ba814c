import pytest
from datetime import datetime, timedelta

from app.services import time_tracking_service


def test_clock_in_and_out(client, employee_user, auth_headers):
    headers = auth_headers(employee_user)

    response = client.post("/api/time-entries/clock-in", headers=headers, json={"description": "Warehouse"})
    assert response.status_code == 200
    assert response.json()["end_time"] is None

    status = client.get("/api/time-entries/current", headers=headers).json()
    assert status["is_clocked"] is True

    response = client.post("/api/time-entries/clock-out", headers=headers, json={"break_minutes": 0})
    assert response.status_code == 200
    assert response.json()["is_clocked"] is False
    assert response.json()["current_entry"] is None


def test_double_clock_in_is_rejected(client, employee_user, auth_headers):
    headers = auth_headers(employee_user)
    client.post("/api/time-entries/clock-in", headers=headers)
    response = client.post("/api/time-entries/clock-in", headers=headers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "ALREADY_CLOCKED_IN"


def test_clock_out_without_open_entry(client, employee_user, auth_headers):
    response = client.post("/api/time-entries/clock-out", headers=auth_headers(employee_user))
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "NOT_CLOCKED_IN"


def test_negative_break_is_a_validation_error(client, employee_user, auth_headers):
    headers = auth_headers(employee_user)
    client.post("/api/time-entries/clock-in", headers=headers)
    response = client.post("/api/time-entries/clock-out", headers=headers, json={"break_minutes": -5})
    assert response.status_code == 422


def test_clock_out_reports_today_and_week_hours(db_session, employee_user):
    monday_morning = datetime(2024, 6, 3, 8, 0)
    time_tracking_service.clock_in(db_session, employee_user, now=monday_morning)
    status = time_tracking_service.clock_out(
        db_session, employee_user, break_minutes=30, now=monday_morning + timedelta(hours=8, minutes=30)
    )
    assert status.today_hours == pytest.approx(8.0)
    assert status.week_hours == pytest.approx(8.0)


def test_list_entries_filters_by_date(client, employee_user, auth_headers, add_entry):
    add_entry(employee_user, datetime(2024, 6, 3, 9), datetime(2024, 6, 3, 17))
    add_entry(employee_user, datetime(2024, 7, 1, 9), datetime(2024, 7, 1, 17))

    response = client.get("/api/time-entries?start=2024-06-01&end=2024-06-30", headers=auth_headers(employee_user))
    assert response.status_code == 200
    entries = response.json()
    assert len(entries) == 1
    assert entries[0]["start_time"].startswith("2024-06-03")
