"""Pytest fixtures: Stripe provider double, in-memory Firestore and app client."""

import hashlib
import hmac
import time
from typing import Any, Callable
from unittest.mock import Mock

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from paywall.config.settings import AppConfig
from paywall.payments.provider import StripeProvider
from paywall.server import create_app


def _deep_merge(target: dict, updates: dict) -> None:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value


class FakeDocument:
    """Document reference supporting set(..., merge=True) like Firestore."""

    def __init__(self, store: dict, path: tuple[str, str]):
        self._store = store
        self._path = path

    async def set(self, data: dict, merge: bool = False) -> None:
        self._store.setdefault("writes", []).append((self._path, data, merge))
        docs = self._store.setdefault("docs", {})
        if merge and self._path in docs:
            _deep_merge(docs[self._path], data)
        else:
            docs[self._path] = {}
            _deep_merge(docs[self._path], data)


class FakeCollection:
    def __init__(self, store: dict, name: str):
        self._store = store
        self._name = name

    def document(self, doc_id: str) -> FakeDocument:
        return FakeDocument(self._store, (self._name, doc_id))


class FakeFirestore:
    """Minimal in-memory stand-in for google.cloud.firestore.AsyncClient."""

    def __init__(self):
        self._store: dict[str, Any] = {}

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self._store, name)

    def get(self, collection: str, doc_id: str) -> dict | None:
        return self._store.get("docs", {}).get((collection, doc_id))

    @property
    def writes(self) -> list:
        return self._store.get("writes", [])


@pytest.fixture
def db() -> FakeFirestore:
    """Empty in-memory Firestore."""
    return FakeFirestore()


@pytest.fixture
def provider() -> Mock:
    """Stripe provider double; configure return values per test."""
    return Mock(spec=StripeProvider)


@pytest.fixture
def config(tmp_path) -> AppConfig:
    """Config with both plans priced and a static dir holding the two pages."""
    (tmp_path / "app.html").write_text("<html>app</html>")
    (tmp_path / "test.html").write_text("<html>test</html>")
    (tmp_path / "logo.txt").write_text("logo")
    return AppConfig(
        _env_file=None,
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret="whsec_test_123",
        stripe_monthly_price_id="price_monthly_123",
        stripe_yearly_price_id="price_yearly_123",
        static_dir=str(tmp_path),
    )


@pytest_asyncio.fixture
async def client(config, provider, db):
    """aiohttp test client bound to the full application."""
    app = create_app(config, provider, db)
    async with TestClient(TestServer(app)) as test_client:
        yield test_client


def _sign(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header the way Stripe signs webhook deliveries."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def sign_payload() -> Callable[..., str]:
    """Signer for webhook payloads: sign_payload(payload, secret) -> header."""
    return _sign


@pytest.fixture
def stripe_provider(config) -> StripeProvider:
    """Real provider built from config; patch stripe.* calls per test."""
    return StripeProvider.from_config(config)


@pytest_asyncio.fixture
async def stripe_client(config, stripe_provider, db):
    """aiohttp test client bound to the application with a real provider."""
    app = create_app(config, stripe_provider, db)
    async with TestClient(TestServer(app)) as test_client:
        yield test_client
