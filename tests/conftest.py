import pytest
from fastapi.testclient import TestClient

from todo_api.db import Database
from todo_api.main import create_app
from todo_api.repositories import TodoRepository, UserRepository
from todo_api.settings import Settings
from todo_api.tokens import TokenService

TEST_SECRET = "test-secret"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        db_path=str(tmp_path / "data" / "todos.db"),
        jwt_secret=TEST_SECRET,
        jwt_expiry_seconds=3600,
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # Entering the client runs the lifespan, which opens the database
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "repo.db"))
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def users(db):
    return UserRepository(db)


@pytest.fixture
def todos(db):
    return TodoRepository(db)


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET, 3600)


def register(client, email="a@x.com", password="password1", name="A"):
    res = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
    assert res.status_code == 201, res.text
    return res.json()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_a(client):
    return register(client, email="a@x.com", name="A")


@pytest.fixture
def user_b(client):
    return register(client, email="b@x.com", name="B")
