"""Shared fixtures for contact service tests."""

import json
from datetime import datetime, timezone
import httpx
import pytest

from src.shared.contact.captcha import TurnstileVerifier
from src.shared.contact.config import ContactSettings
from src.shared.kv.database import create_session_factory, init_db
from src.shared.kv.store import SqlKeyValueStore, StoreUnavailable

FIXED_NOW = datetime(2025, 3, 14, 15, 9, 26, 535000, tzinfo=timezone.utc)


class SiteverifyStub:
    """Stands in for Cloudflare's siteverify endpoint and records every call."""

    def __init__(self, result=None, status_code=200, error=None):
        self.result = {"success": True} if result is None else result
        self.status_code = status_code
        self.error = error
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(json.loads(request.content))
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.result)


class RecordingStore(SqlKeyValueStore):
    """SQLite-backed store that remembers every write."""

    def __init__(self, session_factory, **kwargs):
        super().__init__(session_factory, **kwargs)
        self.puts = []

    def put(self, key, value, expiration_ttl=None):
        self.puts.append((key, value, expiration_ttl))
        super().put(key, value, expiration_ttl=expiration_ttl)

    def submission_puts(self):
        return [p for p in self.puts if p[0].startswith("contact_")]

    def rate_limit_puts(self):
        return [p for p in self.puts if p[0].startswith("ratelimit_")]


class UnavailableStore:
    """A store whose backend is down."""

    def __init__(self):
        self.puts = []

    def get(self, key):
        raise StoreUnavailable("connection refused")

    def put(self, key, value, expiration_ttl=None):
        self.puts.append((key, value, expiration_ttl))
        raise StoreUnavailable("connection refused")

    def purge_expired(self):
        raise StoreUnavailable("connection refused")


@pytest.fixture
def settings():
    return ContactSettings(turnstile_secret_key="test-secret")


@pytest.fixture
def session_factory():
    factory = create_session_factory("sqlite://")
    init_db(factory)
    return factory


@pytest.fixture
def store(session_factory):
    return RecordingStore(session_factory)


@pytest.fixture
def siteverify():
    return SiteverifyStub()


@pytest.fixture
def make_verifier():
    """Build a TurnstileVerifier whose HTTP traffic goes to a SiteverifyStub."""
    def _make(settings, stub):
        client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
        return TurnstileVerifier(settings, http_client=client)
    return _make


@pytest.fixture
def valid_body():
    return {
        "name": "Ada",
        "email": "ada@example.com",
        "message": "Hi",
        "cf-turnstile-response": "mock-token",
    }


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def unavailable_store():
    return UnavailableStore()
