import pytest
from datetime import date, datetime, time, timedelta

from app.core.clock import today_local
from app.models.time_entry import TimeEntry, WorkType, EntryStatus

# 2024-06-01 is a Saturday: 10:00-19:00 accrues 5.5h, two of them 11h
SATURDAY = date(2024, 6, 1)


def _future(days=30):
    return today_local() + timedelta(days=days)


@pytest.fixture
def accrued_employee(employee_user, add_entry):
    """Employee with 11 hours of accrued compensation."""
    for d in (SATURDAY, SATURDAY + timedelta(days=7)):
        add_entry(employee_user, datetime.combine(d, time(10)), datetime.combine(d, time(19)))
    return employee_user


def _request(client, headers, hours, day=None, reason=None):
    body = {"date": (day or _future()).isoformat(), "hours": hours, "type": "CUSTOM"}
    if reason:
        body["reason"] = reason
    return client.post("/api/time-tracking/compensation/request", headers=headers, json=body)


def test_balance_reflects_accrued_hours(client, accrued_employee, auth_headers):
    response = client.get("/api/time-tracking/compensation/balance", headers=auth_headers(accrued_employee))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_accrued"] == pytest.approx(11.0)
    assert data["current_balance"] == pytest.approx(11.0)


def test_create_request_writes_pending_entry(client, accrued_employee, auth_headers, db_session):
    target = _future()
    response = _request(client, auth_headers(accrued_employee), 5, target, reason="Dentist")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["remaining_balance"] == pytest.approx(6.0)
    assert data["formatted_remaining_balance"] == "6u 0m"
    assert data["status"] == "PENDING"

    entry = db_session.get(TimeEntry, data["request_id"])
    assert entry.work_type == WorkType.COMPENSATION_USED
    assert entry.approved is False
    assert entry.start_time == datetime.combine(target, time(9))
    assert entry.end_time == datetime.combine(target, time(14))
    assert entry.description == "Dentist"


def test_request_reduces_balance_immediately(client, accrued_employee, auth_headers):
    headers = auth_headers(accrued_employee)
    _request(client, headers, 3)
    data = client.get("/api/time-tracking/compensation/balance", headers=headers).json()["data"]
    assert data["current_balance"] == pytest.approx(8.0)
    assert data["pending_requests"] == pytest.approx(3.0)


def test_insufficient_balance_is_rejected(client, employee_user, auth_headers, add_entry):
    add_entry(employee_user, datetime.combine(SATURDAY, time(10)), datetime.combine(SATURDAY, time(19)))
    response = _request(client, auth_headers(employee_user), 6)
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "INSUFFICIENT_BALANCE"


def test_daily_cap_is_enforced(client, accrued_employee, auth_headers):
    response = _request(client, auth_headers(accrued_employee), 9)
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "DAILY_CAP_EXCEEDED"


def test_past_date_is_rejected(client, accrued_employee, auth_headers):
    response = _request(client, auth_headers(accrued_employee), 2, today_local() - timedelta(days=1))
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "DATE_IN_PAST"


def test_duplicate_date_is_rejected(client, accrued_employee, auth_headers):
    headers = auth_headers(accrued_employee)
    target = _future()
    assert _request(client, headers, 2, target).status_code == 200
    response = _request(client, headers, 2, target)
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "DUPLICATE_DATE"


def test_manager_approves_request(client, accrued_employee, manager_user, auth_headers, db_session):
    request_id = _request(client, auth_headers(accrued_employee), 4).json()["data"]["request_id"]
    response = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=auth_headers(manager_user),
        json={"action": "approve"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "APPROVED"
    assert data["approved"] is True
    assert data["approved_by_id"] == manager_user.id

    balance = client.get("/api/time-tracking/compensation/balance", headers=auth_headers(accrued_employee)).json()["data"]
    assert balance["pending_requests"] == 0
    assert balance["current_balance"] == pytest.approx(7.0)


def test_employee_cannot_approve(client, accrued_employee, other_employee, auth_headers):
    request_id = _request(client, auth_headers(accrued_employee), 4).json()["data"]["request_id"]
    response = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=auth_headers(other_employee),
        json={"action": "approve"},
    )
    assert response.status_code == 403


def test_manager_cannot_approve_own_request(client, manager_user, auth_headers, add_entry):
    add_entry(manager_user, datetime.combine(SATURDAY, time(10)), datetime.combine(SATURDAY, time(19)))
    request_id = _request(client, auth_headers(manager_user), 2).json()["data"]["request_id"]
    response = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=auth_headers(manager_user),
        json={"action": "approve"},
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "OWN_REQUEST"


def test_rejected_request_restores_balance(client, accrued_employee, manager_user, auth_headers):
    headers = auth_headers(accrued_employee)
    request_id = _request(client, headers, 4).json()["data"]["request_id"]
    response = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=auth_headers(manager_user),
        json={"action": "reject", "reason": "Busy week"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["rejection_reason"] == "Busy week"

    balance = client.get("/api/time-tracking/compensation/balance", headers=headers).json()["data"]
    assert balance["current_balance"] == pytest.approx(11.0)

    # A processed request cannot be approved afterwards
    again = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=auth_headers(manager_user),
        json={"action": "approve"},
    )
    assert again.status_code == 400
    assert again.json()["errors"][0]["code"] == "NOT_PENDING"


def test_owner_cancels_and_can_rebook_same_date(client, accrued_employee, auth_headers):
    headers = auth_headers(accrued_employee)
    target = _future()
    request_id = _request(client, headers, 3, target).json()["data"]["request_id"]

    response = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=headers,
        json={"action": "cancel"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "CANCELLED"
    assert _request(client, headers, 3, target).status_code == 200


def test_only_owner_can_cancel(client, accrued_employee, manager_user, auth_headers):
    request_id = _request(client, auth_headers(accrued_employee), 3).json()["data"]["request_id"]
    response = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=auth_headers(manager_user),
        json={"action": "cancel"},
    )
    assert response.status_code == 403


def test_update_revalidates_without_counting_itself(client, accrued_employee, auth_headers):
    headers = auth_headers(accrued_employee)
    request_id = _request(client, headers, 6).json()["data"]["request_id"]
    new_date = _future(45)

    # 8h would fail if the existing 6h were still counted (11 - 6 = 5)
    response = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=headers,
        json={"action": "update", "hours": 8, "date": new_date.isoformat(), "reason": "Long weekend"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["start_time"].startswith(new_date.isoformat())
    assert data["description"] == "Long weekend"

    balance = client.get("/api/time-tracking/compensation/balance", headers=headers).json()["data"]
    assert balance["current_balance"] == pytest.approx(3.0)


def test_unknown_action_is_a_validation_error(client, accrued_employee, auth_headers):
    headers = auth_headers(accrued_employee)
    request_id = _request(client, headers, 2).json()["data"]["request_id"]
    response = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=headers,
        json={"action": "archive"},
    )
    assert response.status_code == 422


def test_missing_request_returns_404(client, manager_user, auth_headers):
    response = client.put(
        "/api/time-tracking/compensation/requests/9999",
        headers=auth_headers(manager_user),
        json={"action": "approve"},
    )
    assert response.status_code == 404


def test_overview_for_current_month(client, employee_user, auth_headers, add_entry):
    first = today_local().replace(day=1)
    add_entry(employee_user, datetime.combine(first, time(10)), datetime.combine(first, time(20)))
    # Outside the period, must not show up
    add_entry(employee_user, datetime.combine(SATURDAY, time(10)), datetime.combine(SATURDAY, time(19)))

    response = client.get(f"/api/personnel/{employee_user.id}/compensation", headers=auth_headers(employee_user))
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    expected = 7.0 if first.weekday() >= 5 else 4.5
    assert data["total_accrued"] == pytest.approx(expected)
    assert data["breakdown"]["overtime_hours"]["total"] == pytest.approx(2.0)
    assert data["period"]["label"] == "current_month"
    assert data["period"]["start"] == first.isoformat()
    assert len(data["recent_transactions"]) == 1
    assert data["contract_hours_per_week"] == 40


def test_overview_of_colleague_is_forbidden(client, employee_user, other_employee, auth_headers):
    response = client.get(f"/api/personnel/{other_employee.id}/compensation", headers=auth_headers(employee_user))
    assert response.status_code == 403


def test_manager_can_view_any_overview(client, employee_user, manager_user, auth_headers):
    response = client.get(
        f"/api/personnel/{employee_user.id}/compensation?period=last_3_months",
        headers=auth_headers(manager_user),
    )
    assert response.status_code == 200
    assert response.json()["data"]["period"]["label"] == "last_3_months"


def test_list_requests_is_scoped_to_caller(client, accrued_employee, other_employee, manager_user, auth_headers, add_entry):
    add_entry(other_employee, datetime.combine(SATURDAY, time(10)), datetime.combine(SATURDAY, time(19)))
    _request(client, auth_headers(accrued_employee), 2)
    _request(client, auth_headers(other_employee), 2)

    own = client.get("/api/time-tracking/compensation/requests", headers=auth_headers(accrued_employee)).json()["data"]
    assert {r["user_id"] for r in own} == {accrued_employee.id}

    everyone = client.get("/api/time-tracking/compensation/requests", headers=auth_headers(manager_user)).json()["data"]
    assert len(everyone) == 2


def test_unauthenticated_request_is_rejected(client):
    response = client.get("/api/time-tracking/compensation/balance")
    assert response.status_code == 401


def test_actions_are_audited(client, accrued_employee, manager_user, auth_headers, db_session):
    from app.models.audit_log import AuditLog

    request_id = _request(client, auth_headers(accrued_employee), 2).json()["data"]["request_id"]
    client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=auth_headers(manager_user),
        json={"action": "approve"},
    )

    logs = db_session.query(AuditLog).filter(AuditLog.entity_type == "time_entry", AuditLog.entity_id == request_id).order_by(AuditLog.id).all()
    assert [log.action for log in logs] == ["create_compensation_request", "approve_compensation_request"]
    assert logs[1].before_state["status"] == "PENDING"
    assert logs[1].after_state["status"] == "APPROVED"
    assert logs[1].user_id == manager_user.id


@pytest.mark.parametrize("action", [
    {"action": "update", "hours": 3},
    {"action": "approve"},
])
def test_owner_lock_is_held_until_the_action_is_written(
    client, accrued_employee, manager_user, auth_headers, monkeypatch, action
):
    from app.services import compensation_service
    from app.services.audit import AuditService

    request_id = _request(client, auth_headers(accrued_employee), 2).json()["data"]["request_id"]
    seen = []
    original_log = AuditService.log

    def recording_log(db, *args, **kwargs):
        seen.append(compensation_service._user_locks[accrued_employee.id].locked())
        return original_log(db, *args, **kwargs)

    monkeypatch.setattr(AuditService, "log", staticmethod(recording_log))
    actor = accrued_employee if action["action"] == "update" else manager_user
    response = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=auth_headers(actor),
        json=action,
    )
    assert response.status_code == 200
    assert seen == [True]
    assert not compensation_service._user_locks[accrued_employee.id].locked()


def test_rejected_update_releases_owner_lock(client, accrued_employee, auth_headers):
    from app.services import compensation_service

    headers = auth_headers(accrued_employee)
    request_id = _request(client, headers, 2).json()["data"]["request_id"]
    response = client.put(
        f"/api/time-tracking/compensation/requests/{request_id}",
        headers=headers,
        json={"action": "update", "hours": 12},
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "DAILY_CAP_EXCEEDED"
    assert not compensation_service._user_locks[accrued_employee.id].locked()
