from datetime import date, timedelta

from fastapi import status

from attendly.models.leave_type import LeaveType


def _future(days):
    return date.today() + timedelta(days=days)


def _request_leave(client, headers, leave_type, start, end, **extra):
    data = {
        "leave_type_id": str(leave_type.id),
        "from_date": start.isoformat(),
        "to_date": end.isoformat(),
        "reason": "Visiting family",
        **extra,
    }
    return client.post("/api/leaves/request", headers=headers, data=data)


def test_submit_leave(client, employee, manager, leave_type, auth_headers):
    start, end = _future(10), _future(11)
    response = _request_leave(client, auth_headers(employee), leave_type, start, end)
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["status"] == "pending"
    assert body["total_days"] == 2
    assert body["leave_type"]["code"] == "CL"

    balances = client.get(f"/api/leaves/balance?year={start.year}", headers=auth_headers(employee)).json()
    casual = next(b for b in balances if b["leave_type_id"] == leave_type.id)
    assert casual["pending"] == 2
    assert casual["balance"] == 10


def test_submit_requires_fields(client, employee, leave_type, auth_headers):
    response = client.post(
        "/api/leaves/request",
        headers=auth_headers(employee),
        data={"leave_type_id": str(leave_type.id), "reason": "Trip"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["code"] == "VALIDATION_ERROR"


def test_submit_rejects_malformed_dates(client, employee, leave_type, auth_headers):
    response = client.post(
        "/api/leaves/request",
        headers=auth_headers(employee),
        data={"leave_type_id": str(leave_type.id), "from_date": "next week", "to_date": "2030-01-01",
              "reason": "Trip"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "from_date" in response.json()["errors"][0]["fields"]


def test_overlap_conflict(client, employee, leave_type, auth_headers):
    _request_leave(client, auth_headers(employee), leave_type, _future(10), _future(12))
    response = _request_leave(client, auth_headers(employee), leave_type, _future(12), _future(13))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["errors"][0]["code"] == "LEAVE_OVERLAP"


def test_insufficient_balance_reports_available(client, employee, leave_type, auth_headers):
    response = _request_leave(client, auth_headers(employee), leave_type, _future(10), _future(22))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    error = response.json()["errors"][0]
    assert error["code"] == "INSUFFICIENT_BALANCE"
    assert error["available_balance"] == 12
    assert error["requested"] == 13


def test_attachment_upload(client, employee, sick_leave_type, auth_headers, upload_dir):
    response = client.post(
        "/api/leaves/request",
        headers=auth_headers(employee),
        data={
            "leave_type_id": str(sick_leave_type.id),
            "from_date": _future(3).isoformat(),
            "to_date": _future(3).isoformat(),
            "reason": "Fever",
        },
        files={"attachment": ("certificate.pdf", b"%PDF-1.4 certificate", "application/pdf")},
    )
    assert response.status_code == status.HTTP_201_CREATED
    path = response.json()["attachment"]
    assert path.startswith("/api/uploads/leaves/")
    assert (upload_dir / "leaves" / path.rsplit("/", 1)[-1]).exists()


def test_missing_attachment_is_policy_violation(client, employee, sick_leave_type, auth_headers):
    response = _request_leave(client, auth_headers(employee), sick_leave_type, _future(3), _future(3))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["errors"][0]["code"] == "POLICY_VIOLATION"


def test_half_day_request(client, employee, leave_type, auth_headers):
    response = _request_leave(client, auth_headers(employee), leave_type, _future(5), _future(5),
                              is_half_day="true", half_day_type="second-half")
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["total_days"] == 0.5


def test_review_flow(client, employee, manager, leave_type, auth_headers):
    leave_id = _request_leave(client, auth_headers(employee), leave_type, _future(10), _future(11)).json()["id"]

    pending = client.get("/api/leaves/pending", headers=auth_headers(manager)).json()
    assert [leave["id"] for leave in pending] == [leave_id]

    response = client.put(f"/api/leaves/{leave_id}/hold", headers=auth_headers(manager),
                          json={"manager_remarks": "Checking cover"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["leave"]["status"] == "on-hold"

    response = client.put(f"/api/leaves/{leave_id}/hold", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["errors"][0]["code"] == "INVALID_TRANSITION"

    response = client.put(f"/api/leaves/{leave_id}/approve", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["leave"]["status"] == "approved"
    assert body["leave"]["reviewed_by"] == manager.id
    assert body["conflict_warning"] is None


def test_reject_without_remarks(client, employee, manager, leave_type, auth_headers):
    leave_id = _request_leave(client, auth_headers(employee), leave_type, _future(10), _future(11)).json()["id"]

    response = client.put(f"/api/leaves/{leave_id}/reject", headers=auth_headers(manager), json={})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["code"] == "MISSING_REMARKS"

    response = client.put(f"/api/leaves/{leave_id}/reject", headers=auth_headers(manager),
                          json={"manager_remarks": "Quarter close"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["leave"]["status"] == "rejected"


def test_employees_cannot_review(client, employee, leave_type, auth_headers):
    leave_id = _request_leave(client, auth_headers(employee), leave_type, _future(10), _future(11)).json()["id"]
    response = client.put(f"/api/leaves/{leave_id}/approve", headers=auth_headers(employee))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["errors"][0]["code"] == "PERMISSION_DENIED"


def test_review_unknown_leave(client, manager, auth_headers):
    response = client.put("/api/leaves/9999/approve", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_my_leaves_and_check_today(client, employee, leave_type, auth_headers):
    _request_leave(client, auth_headers(employee), leave_type, _future(10), _future(11))

    my_leaves = client.get("/api/leaves/my-leaves", headers=auth_headers(employee)).json()
    assert len(my_leaves) == 1

    today = client.get("/api/leaves/check-today", headers=auth_headers(employee)).json()
    assert today == {"has_leave": False, "leave": None}


def test_notifications_follow_the_workflow(client, employee, manager, leave_type, auth_headers):
    leave_id = _request_leave(client, auth_headers(employee), leave_type, _future(10), _future(11)).json()["id"]

    count = client.get("/api/notifications/unread-count", headers=auth_headers(manager)).json()
    assert count == {"unread": 1}

    client.put(f"/api/leaves/{leave_id}/approve", headers=auth_headers(manager))
    notes = client.get("/api/notifications/", headers=auth_headers(employee)).json()
    assert [n["type"] for n in notes] == ["leave-approved"]

    response = client.patch(f"/api/notifications/{notes[0]['id']}/read", headers=auth_headers(employee))
    assert response.json()["is_read"] is True

    client.post("/api/notifications/mark-all-read", headers=auth_headers(manager))
    unread = client.get("/api/notifications/?unread_only=true", headers=auth_headers(manager)).json()
    assert unread == []


def test_leave_type_management(client, db_session, employee, manager, leave_type, auth_headers):
    payload = {"name": "Paternity Leave", "code": "pl", "yearly_quota": 10}

    response = client.post("/api/leave-types/", headers=auth_headers(employee), json=payload)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.post("/api/leave-types/", headers=auth_headers(manager), json=payload)
    assert response.status_code == status.HTTP_201_CREATED
    created = response.json()
    assert created["code"] == "PL"

    response = client.post("/api/leave-types/", headers=auth_headers(manager),
                           json={"name": "casual leave", "code": "XX", "yearly_quota": 1})
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.delete(f"/api/leave-types/{created['id']}", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_200_OK
    assert db_session.get(LeaveType, created["id"]).is_active is False

    listed = client.get("/api/leave-types/", headers=auth_headers(employee)).json()
    assert [lt["code"] for lt in listed] == ["CL"]


def test_leave_analytics_endpoints(client, employee, manager, leave_type, auth_headers):
    start = _future(10)
    leave_id = _request_leave(client, auth_headers(employee), leave_type, start, start).json()["id"]
    client.put(f"/api/leaves/{leave_id}/approve", headers=auth_headers(manager))

    mine = client.get(f"/api/leave-analytics/employee?year={start.year}", headers=auth_headers(employee)).json()
    assert mine["summary"]["approved_leaves"] == 1

    response = client.get("/api/leave-analytics/manager", headers=auth_headers(employee))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.get("/api/leave-analytics/export", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment;" in response.headers["content-disposition"]
    assert "Asha Rao" in response.text

    rows = client.get("/api/leave-analytics/export?format=json", headers=auth_headers(manager)).json()
    assert rows[0]["status"] == "approved"


def test_update_leave_type_with_null_fields(client, db_session, manager, wfh_type, auth_headers):
    url = f"/api/leave-types/{wfh_type.id}"

    for field in ("name", "code"):
        response = client.put(url, headers=auth_headers(manager), json={field: None})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"][0]["code"] == "VALIDATION_ERROR"

    response = client.put(url, headers=auth_headers(manager),
                          json={"yearly_quota": None, "allow_half_day": None, "description": "Remote day"})
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["yearly_quota"] == 20
    assert body["allow_half_day"] is False
    assert body["description"] == "Remote day"
    assert body["max_continuous_days"] == 5

    response = client.put(url, headers=auth_headers(manager),
                          json={"max_continuous_days": None, "name": " Remote Work ", "code": "rw"})
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["max_continuous_days"] is None
    assert body["name"] == "Remote Work"
    assert body["code"] == "RW"
    assert db_session.get(LeaveType, wfh_type.id).max_continuous_days is None
