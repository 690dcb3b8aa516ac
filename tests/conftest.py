import os
import tempfile
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="attendly-uploads-"))

from attendly.core.config import settings  # noqa: E402
from attendly.database import Base, get_db, get_session_factory  # noqa: E402
from attendly.main import app  # noqa: E402
from attendly.models.leave_type import LeaveType  # noqa: E402
from attendly.models.user import User, UserRole  # noqa: E402
from attendly.services import auth as auth_service  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite manages transactions itself; hand BEGIN/SAVEPOINT over to SQLAlchemy
# so services can commit and roll back inside the per-test outer transaction.
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


PASSWORD = "Password123!"


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def connection():
    connection = engine.connect()
    transaction = connection.begin()
    yield connection
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def session_factory(connection):
    """Sessions that share the test transaction; commit/rollback only touch a savepoint."""
    return sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        join_transaction_mode="create_savepoint",
    )


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Get a clean database session for each test function with rollback safety."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function", autouse=True)
def upload_dir(tmp_path, monkeypatch):
    target = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(target))
    return target


def _make_user(db, email, role, name, code, department="Engineering"):
    user = User(
        email=email,
        hashed_password=auth_service.get_password_hash(PASSWORD),
        name=name,
        role=role,
        employee_code=code,
        department=department,
        badges=[],
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture(scope="function")
def employee(db_session):
    return _make_user(db_session, "employee@example.com", UserRole.EMPLOYEE, "Asha Rao", "EMP001")


@pytest.fixture(scope="function")
def colleague(db_session):
    return _make_user(db_session, "colleague@example.com", UserRole.EMPLOYEE, "Ben Cole, Jr.", "EMP002")


@pytest.fixture(scope="function")
def manager(db_session):
    return _make_user(db_session, "manager@example.com", UserRole.MANAGER, "Mina Park", "MGR001",
                      department="Management")


@pytest.fixture(scope="function")
def leave_type(db_session):
    leave_type = LeaveType(
        name="Casual Leave",
        code="CL",
        yearly_quota=12,
        carry_forward=True,
        max_carry_forward=3,
        requires_attachment=False,
        max_continuous_days=None,
        allow_half_day=True,
    )
    db_session.add(leave_type)
    db_session.commit()
    return leave_type


@pytest.fixture(scope="function")
def sick_leave_type(db_session):
    leave_type = LeaveType(
        name="Sick Leave",
        code="SL",
        yearly_quota=10,
        carry_forward=False,
        max_carry_forward=0,
        requires_attachment=True,
        allow_half_day=True,
    )
    db_session.add(leave_type)
    db_session.commit()
    return leave_type


@pytest.fixture(scope="function")
def wfh_type(db_session):
    leave_type = LeaveType(
        name="Work From Home",
        code="WFH",
        yearly_quota=20,
        carry_forward=False,
        max_continuous_days=5,
        allow_half_day=False,
    )
    db_session.add(leave_type)
    db_session.commit()
    return leave_type


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens."""
    def _get_token(user):
        return auth_service.create_access_token(data={
            "sub": user.email,
            "role": user.role.value,
            "user_id": user.id,
        })
    return _get_token


@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _headers(user):
        return {"Authorization": f"Bearer {get_token(user)}"}
    return _headers


@pytest.fixture(scope="function")
def client(db_session, session_factory):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
