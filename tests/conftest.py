import pytest
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Must be set before app.core.config is imported
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from app.database import Base, get_db
from app.main import app
from fastapi.testclient import TestClient

TEST_PASSWORD = "Password123!"

# One shared in-memory connection so every session sees the same tables
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Session joined to an outer transaction that is rolled back after the test."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def make_user(db_session):
    from app.models.user import User
    from app.services.auth import get_password_hash

    def _make_user(email, role, full_name, **fields):
        user = User(
            email=email,
            hashed_password=get_password_hash(TEST_PASSWORD),
            role=role,
            full_name=full_name,
            is_active=True,
            **fields
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make_user


@pytest.fixture(scope="function")
def admin_user(make_user):
    from app.models.user import UserRole
    return make_user("admin@jobflow.nl", UserRole.ADMIN, "Anna Admin")


@pytest.fixture(scope="function")
def manager_user(make_user):
    from app.models.user import UserRole
    return make_user("manager@jobflow.nl", UserRole.MANAGER, "Mila Manager")


@pytest.fixture(scope="function")
def employee_user(make_user):
    from app.models.user import UserRole
    return make_user("employee@jobflow.nl", UserRole.EMPLOYEE, "Eva Employee")


@pytest.fixture(scope="function")
def other_employee(make_user):
    from app.models.user import UserRole
    return make_user("colleague@jobflow.nl", UserRole.EMPLOYEE, "Cas Colleague")


@pytest.fixture(scope="function")
def auth_headers():
    """Bearer headers for a user, skipping the login endpoint."""
    from app.services.auth import create_access_token

    def _auth_headers(user):
        token = create_access_token(data={"sub": user.email, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture(scope="function")
def add_entry(db_session):
    """Insert a time entry directly; regular work is approved by default."""
    from app.models.time_entry import TimeEntry, WorkType, EntryStatus

    def _add_entry(user, start, end, break_minutes=0, work_type=WorkType.REGULAR, approved=True):
        entry = TimeEntry(
            user_id=user.id,
            start_time=start,
            end_time=end,
            total_break_minutes=break_minutes,
            work_type=work_type,
            approved=approved,
            status=EntryStatus.APPROVED if approved else EntryStatus.PENDING,
        )
        db_session.add(entry)
        db_session.commit()
        return entry
    return _add_entry


@pytest.fixture(scope="function")
def client(db_session):
    """TestClient whose requests share the test's db_session."""
    app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
