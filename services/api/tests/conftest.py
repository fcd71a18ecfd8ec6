import pytest
from datetime import date
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db import Base, get_db
from app.models import Household, Child

# --- Test Database Setup ---

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, 'sqlite')
def compile_jsonb(element, compiler, **kw):
    return "JSON"


SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# check_same_thread is needed for SQLite; StaticPool shares the in-memory db across sessions
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Monday of a fixed reporting week
WEEK_START = date(2026, 10, 5)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """Test client with DB override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def week_start():
    return WEEK_START


@pytest.fixture
def household(db_session):
    """A household with two children."""
    h = Household(id="00000000-0000-0000-0000-000000000001", name="Test Family")
    h.children = [
        Child(id="00000000-0000-0000-0000-0000000000c1", name="Ada"),
        Child(id="00000000-0000-0000-0000-0000000000c2", name="Ben"),
    ]
    db_session.add(h)
    db_session.commit()
    db_session.refresh(h)
    return h


import fakeredis
import fakeredis.aioredis
from app.infra import redis_client


@pytest.fixture(autouse=True)
def mock_redis(monkeypatch):
    server = fakeredis.FakeServer()
    # Force the fake client into the infra module
    redis_client._redis_async = fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)

    yield

    redis_client._redis_async = None
