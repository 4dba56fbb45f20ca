import os

# Settings are read at import time
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256-signing"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core.rate_limit import limiter
from app.database.supabase_client import get_supabase
from app.modules.auth.identity import get_identity_verifier
from tests.fakes import FakeIdentityVerifier, FakeSupabase

DEFAULT_PASSWORD = "secret123"


@pytest.fixture
def store():
    return FakeSupabase()


@pytest.fixture
def verifier():
    return FakeIdentityVerifier()


@pytest.fixture
def client(store, verifier):
    app.dependency_overrides[get_supabase] = lambda: store
    app.dependency_overrides[get_identity_verifier] = lambda: verifier
    limiter.reset()
    # Context manager runs the startup event, which creates the room registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class Account:
    def __init__(self, body):
        self.token = body["token"]
        self.user = body["user"]
        self.user_id = body["user"]["userId"]
        self.display_name = body["user"]["displayName"]
        self.headers = {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
def register(client):
    def _register(email: str, display_name: str, password: str = DEFAULT_PASSWORD) -> Account:
        response = client.post(
            "/auth/register",
            json={"email": email, "password": password, "displayName": display_name},
        )
        assert response.status_code == 201, response.text
        return Account(response.json())
    return _register


@pytest.fixture
def alice(register):
    return register("alice@example.com", "Alice")


@pytest.fixture
def bob(register):
    return register("bob@example.com", "Bob")


@pytest.fixture
def group(client, alice, bob):
    """A group created by Alice that Bob has joined"""
    response = client.post("/groups", json={"name": "Algorithms"}, headers=alice.headers)
    assert response.status_code == 201, response.text
    body = response.json()
    joined = client.post(
        f"/groups/{body['groupId']}/join",
        json={"inviteCode": body["inviteCode"]},
        headers=bob.headers,
    )
    assert joined.status_code == 200, joined.text
    return joined.json()
