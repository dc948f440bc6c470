import json

import httpx
import pytest
from fastapi.testclient import TestClient

from medicare_web.core.config import Settings
from medicare_web.core.http import ApiClient
from medicare_web.main import create_app
from medicare_web.services.auth_service import SessionStore
from medicare_web.services.storage_service import ClientStorage

API_URL = "http://backend.test/api"

# Test data
DOCTOR_PROFILE = {
    "_id": "u-doc",
    "name": "Jane",
    "email": "jane@medicare.test",
    "role": "doctor",
    "doctorId": "d1",
}

PATIENT_PROFILE = {
    "_id": "u-pat",
    "name": "Sam",
    "email": "sam@medicare.test",
    "role": "patient",
    "patientId": "p1",
}

ADMIN_PROFILE = {
    "_id": "u-admin",
    "name": "Root",
    "email": "admin@medicare.test",
    "role": "admin",
}


class FakeBackend:
    """In-process stand-in for the MediCare+ REST backend.

    Routes are keyed by (method, path) with the ``/api`` prefix removed. Each
    handler takes the ``httpx.Request`` and returns an ``httpx.Response``.
    ``GET /profile/me`` answers for any token registered with ``add_user``.
    """

    def __init__(self):
        self.users = {}
        self.credentials = {}
        self.routes = {}
        self.requests = []
        self.on("GET", "/profile/me", self._profile)
        self.on("POST", "/auth/login", self._login)
        self.on("GET", "/notifications", json=[])

    def add_user(self, token, profile, email=None, password="secret123"):
        self.users[token] = profile
        self.credentials[(email or profile.get("email"), password)] = token

    def on(self, method, path, handler=None, *, status=200, json=None):
        if handler is None:
            def handler(request, status=status, body=json):
                if body is None:
                    return httpx.Response(status)
                return httpx.Response(status, json=body)
        self.routes[(method, path)] = handler

    def calls(self, method, path):
        return [request for m, p, request in self.requests if m == method and p == path]

    def handle(self, request):
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        self.requests.append((request.method, path, request))
        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404, json={"message": f"No route for {request.method} {path}"})
        return handler(request)

    @property
    def transport(self):
        return httpx.MockTransport(self.handle)

    def _profile(self, request):
        profile = self.users.get(request.headers.get("x-auth-token"))
        if profile is None:
            return httpx.Response(401, json={"message": "Token is not valid"})
        return httpx.Response(200, json=profile)

    def _login(self, request):
        body = json.loads(request.content)
        identifier = body.get("email") or body.get("mobileNumber")
        token = self.credentials.get((identifier, body.get("password")))
        if token is None:
            return httpx.Response(401, json={"message": "Invalid credentials"})
        return httpx.Response(200, json={"token": token})


def request_json(request):
    return json.loads(request.content)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def storage_url(tmp_path):
    return f"sqlite:///{tmp_path / 'client.db'}"


@pytest.fixture
def storage(storage_url):
    storage = ClientStorage(storage_url)
    yield storage
    storage.close()


@pytest.fixture
def api(backend):
    return ApiClient(base_url=API_URL, timeout=1, auth_header="x-auth-token", transport=backend.transport)


@pytest.fixture
def store(api, storage):
    return SessionStore(api, storage)


@pytest.fixture
def test_settings():
    return Settings(MEDICARE_API_URL=API_URL, NOTIFICATION_POLL_INTERVAL=3600)


@pytest.fixture
def make_client(backend, storage_url, test_settings):
    """Build a TestClient, optionally with a token already in durable storage."""
    clients = []

    def factory(token=None, profile=None):
        if token:
            seed = ClientStorage(storage_url)
            seed.save_session(token, profile or {})
            seed.close()
        app = create_app(settings=test_settings, transport=backend.transport, storage_url=storage_url)
        client = TestClient(app, base_url="http://testserver", follow_redirects=False)
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)
