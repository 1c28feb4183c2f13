"""Pytest configuration and fixtures."""

import os
import tempfile

# Settings are read once and cached, so the test environment goes in first
os.environ.setdefault("TOKEN_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="astroshare-uploads-"))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, update  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from astroshare.api.dependencies import get_google_verifier, get_token_service  # noqa: E402
from astroshare.database import Base, get_db  # noqa: E402
from astroshare.exceptions import InvalidGoogleCredentialError  # noqa: E402
from astroshare.main import app  # noqa: E402
from astroshare.models.user import User  # noqa: E402
from astroshare.services.google import GoogleIdentity  # noqa: E402
from astroshare.services.tokens import TokenService  # noqa: E402


class AuthHeaders(dict):
    """Dict subclass that also stores the signed-in user's details."""

    def __init__(self, *args, user_id: int | None = None, user_name: str = "", tokens=None, **kw):
        super().__init__(*args, **kw)
        self.user_id = user_id
        self.user_name = user_name
        self.tokens = tokens or {}


SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"]

if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
else:
    # Running against PostgreSQL in Docker
    connect_args = {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeGoogleVerifier:
    """Stands in for Google: maps credential strings to identities."""

    def __init__(self):
        self.identities: dict[str, GoogleIdentity] = {}
        self.calls: list[str] = []

    def register(self, credential: str, **claims) -> None:
        self.identities[credential] = GoogleIdentity(**claims)

    async def verify(self, credential: str) -> GoogleIdentity:
        self.calls.append(credential)
        if credential not in self.identities:
            raise InvalidGoogleCredentialError()
        return self.identities[credential]


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def google():
    return FakeGoogleVerifier()


@pytest.fixture
def token_service():
    return TokenService("test-secret")


@pytest.fixture(scope="function")
def client(db, google, token_service):
    """Create a test client with database and collaborator overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_google_verifier] = lambda: google
    app.dependency_overrides[get_token_service] = lambda: token_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register_and_login(client, user_name: str, email: str, password: str = "testpass123"):
    """Register a password user, log in, and return auth headers."""
    response = client.post(
        "/api/auth/register",
        data={"userName": user_name, "email": email, "password": password},
    )
    assert response.status_code == 200, response.text

    response = client.post("/api/auth/login", json={"userName": user_name, "password": password})
    assert response.status_code == 200, response.text
    data = response.json()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['accessToken']}"},
        user_id=data["_id"],
        user_name=user_name,
        tokens={"accessToken": data["accessToken"], "refreshToken": data["refreshToken"]},
    )


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return register_and_login(client, "tester", "tester@example.com")


@pytest.fixture
def make_user(client):
    """Factory fixture: register and log in another user."""

    def _make_user(user_name: str, email: str | None = None, password: str = "testpass123"):
        return register_and_login(client, user_name, email or f"{user_name}@example.com", password)

    return _make_user


@pytest.fixture
def concurrent_write():
    """Commit a change to a user from another session, as a parallel request would."""

    def _write(user_id: int, **values) -> None:
        other = TestingSessionLocal()
        try:
            other.execute(
                update(User).where(User.id == user_id).values(version=User.version + 1, **values)
            )
            other.commit()
        finally:
            other.close()

    return _write
