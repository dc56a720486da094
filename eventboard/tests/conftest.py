import os

# Secrets and cheap hash costs must be in place before any eventboard import
os.environ["JWT_SECRET"] = "test_secret_that_is_long_enough_for_hs256"
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "8"
os.environ["ARGON2_PARALLELISM"] = "1"

import pytest

from eventboard.auth_service.hasher import hash_password
from eventboard.auth_service.utils import create_token
from eventboard.database.store import InMemoryStore
from eventboard.gateway.server import create_app

_EVENT_PAYLOAD = {
    "name": "Conf",
    "description": "D",
    "location": "Hall",
    "dateTime": "2025-01-01T00:00:00Z",
}


@pytest.fixture
def event_payload():
    """
    A valid create/update body for an event.
    """
    return dict(_EVENT_PAYLOAD)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def app(store):
    app = create_app(store=store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(store):
    """
    Insert a user straight into the store and return it.
    """
    def _make_user(email="owner@example.com", password="password123"):
        return store.create_user(email, hash_password(password))
    return _make_user


@pytest.fixture
def auth_header():
    """
    Build an Authorization header carrying a valid token for a user.
    """
    def _auth_header(user):
        return {"Authorization": create_token(user.id, user.email)}
    return _auth_header
