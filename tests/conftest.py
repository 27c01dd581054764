import os
import sys

import pytest
from fastapi.testclient import TestClient

repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from shared.database import make_engine, make_session_factory  # noqa: E402
from feedback_service import middleware  # noqa: E402
from feedback_service.crud import create_form  # noqa: E402
from feedback_service.main import create_app  # noqa: E402

ADMIN_TOKEN = "admin-token"
USER_TOKEN = "user-token"
ADMIN_HEADERS = {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def fake_auth(monkeypatch):
    users = {
        ADMIN_TOKEN: {"sub": "admin-1", "email": "admin@test.com", "role": "admin"},
        USER_TOKEN: {"sub": "user-1", "email": "user@test.com", "role": "user"},
    }

    async def _verify(token):
        return users.get(token)

    monkeypatch.setattr(middleware, "_verify_token", _verify)
    return users


@pytest.fixture
def client(session_factory, fake_auth):
    app = create_app(session_factory)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_form(client, db):
    def _make(questions, title="Test Form", owner="admin-1"):
        return create_form(db, owner, {"title": title, "questions": questions})

    return _make
