"""Pytest shared fixtures for the callable endpoints."""
import json
import os
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

APP_ID = "0123456789abcdef0123456789abcdef"
APP_CERTIFICATE = "fedcba9876543210fedcba9876543210"
PROJECT_ID = "demo-project"

# Configure test environment BEFORE any app imports
os.environ.setdefault("AGORA_APP_ID", APP_ID)
os.environ.setdefault("AGORA_APP_CERTIFICATE", APP_CERTIFICATE)
os.environ.setdefault("AGORA_ORG_NAME", "61234567")
os.environ.setdefault("AGORA_APP_NAME", "demoapp")
os.environ.setdefault("FIREBASE_PROJECT_ID", PROJECT_ID)

import pytest
import requests

from agora_callables.api import decorators
from agora_callables.config import AppConfig
from agora_callables.core.services import build_services
from agora_callables.flask_app import create_app


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from hitting Agora, Firestore or Google JWKS.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _stub_post(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP POST in unit test: {url}")

    def _stub_get(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP GET in unit test: {url}")

    monkeypatch.setattr(requests, "post", _stub_post)
    monkeypatch.setattr(requests, "get", _stub_get)


class StubResponse:
    def __init__(self, status_code: int = 200, payload=None, url: str = ""):
        self.status_code = status_code
        self.text = payload if isinstance(payload, str) else json.dumps(payload)
        self.url = url

    def json(self):
        return json.loads(self.text)


class FakeAgoraAPI:
    """Records POSTs to the Agora Chat REST API and replays queued responses."""

    def __init__(self):
        self.calls = []
        self._responses = []

    def queue(self, status_code: int, payload) -> None:
        self._responses.append((status_code, payload))

    def post(self, url, json=None, headers=None, timeout=None, **kwargs):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if not self._responses:
            raise RuntimeError(f"Unexpected HTTP POST in unit test: {url}")
        status_code, payload = self._responses.pop(0)
        return StubResponse(status_code, payload, url)


@pytest.fixture()
def agora_api(monkeypatch):
    api = FakeAgoraAPI()
    monkeypatch.setattr(requests, "post", api.post)
    return api


@pytest.fixture()
def stub_response():
    return StubResponse


# ─────────────────────────────────────────────────────────────────────────────
# Collaborators
# ─────────────────────────────────────────────────────────────────────────────
class FakeClock:
    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUserStore:
    """In-memory stand-in for the Firestore users collection."""

    def __init__(self, known=()):
        self.known = set(known)
        self.lookups = []
        self.error = None

    def exists(self, uid: str) -> bool:
        self.lookups.append(uid)
        if self.error is not None:
            raise self.error
        return uid in self.known


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def user_store():
    return FakeUserStore(known={"AbC123"})


@pytest.fixture()
def app_config():
    return AppConfig(
        app_id=APP_ID,
        app_certificate=APP_CERTIFICATE,
        org_name="61234567",
        app_name="demoapp",
        chat_base_url="https://chat.example.test",
        request_timeout=5,
        firebase_project_id=PROJECT_ID,
    )


@pytest.fixture()
def services(app_config, user_store, clock):
    return build_services(app_config, user_store=user_store, clock=clock)


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app(app_config, services):
    flask_app = create_app(app_config, services)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture()
def id_tokens(monkeypatch):
    """Map bearer tokens to caller uids without real JWT verification.

    Usage:
        id_tokens["token-abc"] = "AbC123"
        client.post(..., headers={"Authorization": "Bearer token-abc"})
    """
    tokens = {}

    def _verify(token):
        if token not in tokens:
            raise decorators.TokenValidationError("unknown test token")
        return {"sub": tokens[token]}

    monkeypatch.setattr(decorators, "verify_id_token", _verify)
    return tokens


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires running emulators)"
    )
