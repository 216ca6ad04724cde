"""
Pytest configuration and fixtures for testing.
"""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from course_catalog.main import app
from course_catalog.db.base import Base
from course_catalog.db.deps import get_db
from course_catalog.core.security import create_access_token
from course_catalog.db.mixins import utcnow
from course_catalog.modules.auth.models import User
from course_catalog.modules.courses.models import Course
from course_catalog.modules.enrollments.models import Enrollment
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4


# Test database URL
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)


@event.listens_for(engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE actions unless enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """FastAPI test client with test database."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_user(db, email, name):
    user = User(id=uuid4(), email=email, name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def student_user(db):
    """Create a learner account."""
    return _make_user(db, "student@test.com", "Test Student")


@pytest.fixture
def other_user(db):
    """Create a second, unrelated learner account."""
    return _make_user(db, "other@test.com", "Other Student")


@pytest.fixture
def auth_headers(student_user):
    """Bearer token headers for the student user."""
    token = create_access_token(str(student_user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(other_user):
    """Bearer token headers for the other user."""
    token = create_access_token(str(other_user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_course(db):
    """Factory inserting a course directly through the session."""
    def _make_course(
        name="Python Basics",
        price="100000.00",
        category_tag=("prakerja",),
        rating=None,
        created_by=None,
        created_at=None,
    ):
        now = created_at or utcnow()
        course = Course(
            id=uuid4(),
            name=name,
            price=Decimal(price),
            category_tag=list(category_tag),
            rating=Decimal(rating) if rating is not None else None,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        db.add(course)
        db.commit()
        db.refresh(course)
        return course

    return _make_course


@pytest.fixture
def paid_course(make_course):
    """A paid prakerja course."""
    return make_course(name="Data Analysis", price="1500000.00", category_tag=("prakerja",), rating="4.5")


@pytest.fixture
def free_course(make_course):
    """A free SPL course."""
    return make_course(name="Intro to Git", price="0.00", category_tag=("spl",), rating="3.0")


@pytest.fixture
def enrollment(db, student_user, paid_course):
    """The student enrolled in the paid course a week ago."""
    enrollment = Enrollment(
        id=uuid4(),
        user_id=student_user.id,
        course_id=paid_course.id,
        enrolled_at=utcnow() - timedelta(days=7),
    )
    db.add(enrollment)
    db.commit()
    db.refresh(enrollment)
    return enrollment
