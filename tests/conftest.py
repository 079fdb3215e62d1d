import mongomock
import pytest
from fastapi.testclient import TestClient

from ishariu.database import get_database
from ishariu.main import app


@pytest.fixture
def mongo_db():
    """A fresh in-memory database per test."""
    return mongomock.MongoClient()["ishariu_test"]


@pytest.fixture
def client(mongo_db):
    """TestClient wired to the in-memory database instead of a real server."""
    app.dependency_overrides[get_database] = lambda: mongo_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register_and_sign_in(client):
    """Return a helper that registers a user and yields (user_id, auth headers)."""
    def _make(username='alice', password='secret1'):
        r = client.post('/account/register', json={'username': username, 'password': password})
        assert r.status_code == 200
        login = client.post('/account/signin', json={'username': username, 'password': password})
        assert login.status_code == 200
        token = login.json()['access_token']
        return r.json()['id'], {'Authorization': f'Bearer {token}'}
    return _make
