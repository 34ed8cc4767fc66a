import mongomock
import pytest

from app import create_app
from store import PostStore, SessionStore, UserStore, ensure_indexes


@pytest.fixture()
def db():
    client = mongomock.MongoClient(tz_aware=True)
    database = client.blogi
    ensure_indexes(database)
    yield database
    client.drop_database("blogi")


@pytest.fixture()
def users(db) -> UserStore:
    # minimum bcrypt cost keeps the suite fast
    return UserStore(db, rounds=4)


@pytest.fixture()
def posts(db) -> PostStore:
    return PostStore(db)


@pytest.fixture()
def sessions(db) -> SessionStore:
    return SessionStore(db)


@pytest.fixture()
def app(db):
    return create_app(
        {"TESTING": True, "SECRET_KEY": "test-secret", "BCRYPT_ROUNDS": 4},
        db=db,
    )


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login(client):
    """Register and sign in a user through the HTTP surface."""

    def _login(username="alice", password="pw1"):
        client.post("/register", data={"username": username, "password": password})
        return client.post("/login", data={"username": username, "password": password})

    return _login
