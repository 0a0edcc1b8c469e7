import os
import tempfile
import uuid
from types import SimpleNamespace

import pytest

# Point the app at a throwaway database before anything imports fitlive.db.base.
_db_dir = tempfile.mkdtemp(prefix="fitlive-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
# No account gets admin rights just by being created first
os.environ["MAIN_ADMIN_USER_ID"] = "0"

from fastapi.testclient import TestClient  # noqa: E402

from fitlive.main import app  # noqa: E402
from fitlive.db.base import SessionLocal  # noqa: E402
from fitlive.auth.models import User  # noqa: E402

PASSWORD = "password123"


@pytest.fixture
def client():
    # Fresh cookie jar per test
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(client):
    """
    Sign up and log in a new user; returns id, username and bearer headers.
    Extra keyword arguments are written straight onto the User row.
    """
    def _make(role="user", **fields):
        name = f"user_{uuid.uuid4().hex[:10]}"
        r = client.post(
            "/auth/signup",
            data={"email": f"{name}@example.com", "username": name, "password": PASSWORD},
        )
        assert r.status_code == 200, r.text
        user_id = r.json()["user_id"]

        if role != "user" or fields:
            session = SessionLocal()
            try:
                user = session.get(User, user_id)
                user.role = role
                for key, value in fields.items():
                    setattr(user, key, value)
                session.commit()
            finally:
                session.close()

        r = client.post("/auth/login", data={"email_or_username": name, "password": PASSWORD})
        assert r.status_code == 200, r.text
        # Requests below authenticate with the header only
        client.cookies.clear()
        token = r.json()["access_token"]
        return SimpleNamespace(
            id=user_id,
            username=name,
            headers={"Authorization": f"Bearer {token}"},
        )

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(role="admin")
