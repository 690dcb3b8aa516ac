import logging

from fastapi import status

from attendly.core.init_system import DEFAULT_LEAVE_TYPES, DEMO_USERS, seed_demo_users, seed_leave_types
from attendly.core.logging import RequestContextFilter, request_id_var, setup_logging
from attendly.models.leave_type import LeaveType
from attendly.models.user import User, UserRole
from attendly.services.auth import verify_password


def test_health_check(client):
    """Test the /health endpoint returns 200 and up status."""
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "up"
    assert "version" in data
    assert "timestamp" in data


def test_readiness_check(client):
    """Test the /readiness endpoint returns 200 and database status."""
    response = client.get("/readiness")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ready"
    assert data["components"]["database"] == "connected"


def test_root_endpoint(client):
    """Test the API root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert "Attendance" in response.json()["message"]


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-Process-Time" in response.headers


def test_log_records_carry_request_id():
    record = logging.LogRecord("attendly", logging.INFO, __file__, 1, "checked in", None, None)
    token = request_id_var.set("req-456")
    try:
        RequestContextFilter().filter(record)
    finally:
        request_id_var.reset(token)
    assert record.request_id == "req-456"
    assert record.timestamp.endswith("+00:00")

    setup_logging()
    setup_logging()
    assert sum(h.get_name() == "attendly-json" for h in logging.getLogger().handlers) == 1


def test_default_leave_types_seeded_once(db_session):
    assert seed_leave_types(db_session) == len(DEFAULT_LEAVE_TYPES)
    assert seed_leave_types(db_session) == 0
    codes = {lt.code for lt in db_session.query(LeaveType).all()}
    assert codes == {"CL", "SL", "EL", "CO", "WFH"}


def test_demo_users_seeded_once(db_session):
    created = seed_demo_users(db_session)
    assert len(created) == len(DEMO_USERS)
    assert seed_demo_users(db_session) == []

    manager = db_session.query(User).filter(User.email == "manager@company.com").one()
    assert manager.role == UserRole.MANAGER
    assert verify_password("manager123", manager.hashed_password)
