import os
import sys
from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, selectinload, sessionmaker

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from backend.app.auth.dependencies import get_current_user  # noqa: E402
from backend.app.main import create_app  # noqa: E402
from core.db import get_db  # noqa: E402
from core.models import User  # noqa: E402


@pytest.fixture
def test_app_client(test_db) -> Iterator[tuple[TestClient, sessionmaker]]:
    db_url, TestingSessionLocal, engine = test_db

    app = create_app()

    def override_get_db() -> Iterator[Session]:
        db = TestingSessionLocal()
        try:
            yield db
            db.commit()  # Auto-commit on success like production
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client, TestingSessionLocal


@pytest.fixture
def client(test_app_client) -> TestClient:
    """Client acting as the anonymous user until ``login_as`` is called."""
    return test_app_client[0]


@pytest.fixture
def login_as(test_app_client) -> Iterator[Callable[[User], None]]:
    """Make every following request act as ``user``."""
    client, TestingSessionLocal = test_app_client

    def _login(user: User) -> None:
        user_id = user.id

        def override_current_user() -> User:
            session_inner = TestingSessionLocal()
            try:
                return (
                    session_inner.query(User)
                    .options(selectinload(User.memberships))
                    .filter(User.id == user_id)
                    .one()
                )
            finally:
                session_inner.close()

        client.app.dependency_overrides[get_current_user] = override_current_user

    yield _login

    client.app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def session_factory(test_app_client) -> sessionmaker:
    """Session factory for reading back what a request stored."""
    return test_app_client[1]
