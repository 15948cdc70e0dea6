import pytest
from fastapi.testclient import TestClient

from app import app
from auth.utils import auth_client, client_factory
from config import settings
from tests.fakes import FakeSupabase


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def api(supabase, monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", None)
    monkeypatch.setattr(settings, "DB_HOST", None)
    app.dependency_overrides[client_factory] = lambda: (lambda access_token=None: supabase)
    app.dependency_overrides[auth_client] = lambda: (lambda: supabase)
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(supabase):
    token = supabase.auth.sign_in_as("ann@example.com")
    return {"Authorization": f"Bearer {token}"}
