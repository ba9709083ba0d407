import pytest
from fastapi.testclient import TestClient
from grantguardian.main import app
from grantguardian.core.audit import audit_repo
from grantguardian.core.config import settings
from grantguardian.db.memory import InMemoryBackend
from grantguardian.db.session import get_backend

PASSWORD = "secret123"
ORG_NAME = "United Way of Central Texas"


def signup(client, email, first_name="Ada", last_name="Admin", password=PASSWORD):
    response = client.post("/signup", data={
        "email": email,
        "password": password,
        "first_name": first_name,
        "last_name": last_name,
    }, follow_redirects=False)
    assert response.status_code == 303, response.text
    return response


@pytest.fixture
def backend():
    """Fresh in-memory backend wired into the app for one test."""
    backend = InMemoryBackend()
    app.dependency_overrides[get_backend] = lambda: backend
    audit_repo.clear()
    yield backend
    app.dependency_overrides.clear()


@pytest.fixture
def make_client(backend):
    # One client per user: each keeps its own session cookies
    return lambda: TestClient(app)


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def user_id(backend):
    def _user_id(client):
        return backend.get_user(client.cookies.get(settings.ACCESS_COOKIE)).id
    return _user_id


@pytest.fixture
def signed_up(make_client):
    """Signs up a new user and returns their client, before onboarding."""
    def _signed_up(email, first_name="Ada", last_name="Admin"):
        client = make_client()
        signup(client, email, first_name, last_name)
        return client
    return _signed_up


@pytest.fixture
def admin_client(signed_up):
    client = signed_up("admin@example.org", "Ada", "Admin")
    response = client.post("/onboarding/create", data={"name": ORG_NAME}, follow_redirects=False)
    assert response.status_code == 303, response.text
    return client


@pytest.fixture
def organization(backend, admin_client):
    return backend.rows("organizations")[0]


@pytest.fixture
def make_member(signed_up, backend, admin_client, user_id):
    """Joins a new user to the admin's organization, optionally moving them to another role."""
    def _make_member(email, first_name="Sam", last_name="Staff", role=None):
        org = backend.rows("organizations")[0]
        client = signed_up(email, first_name, last_name)
        response = client.post("/onboarding/join", data={
            "organization_id": org["id"],
            "invite_code": org["invite_code"],
        }, follow_redirects=False)
        assert response.status_code == 303, response.text
        if role:
            response = admin_client.post(f"/settings/members/{user_id(client)}/role", data={"role": role},
                                         follow_redirects=False)
            assert response.status_code == 303, response.text
        return client
    return _make_member


@pytest.fixture
def add_grant(backend):
    def _add_grant(client, **fields):
        data = {"grant_name": "Test Grant", "funding_agency": "FEMA", "status": "active"}
        data.update(fields)
        before = {g["id"] for g in backend.rows("grants")}
        response = client.post("/grants", data=data, follow_redirects=False)
        assert response.status_code == 303, response.text
        created = [g for g in backend.rows("grants") if g["id"] not in before]
        assert len(created) == 1
        return created[0]
    return _add_grant
