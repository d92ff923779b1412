"""Test configuration and fixtures."""

import json
import os
import time
from unittest.mock import MagicMock

# Must be set before the app modules configure logging and tracing
os.environ["ENVIRONMENT"] = "test"
os.environ["DISABLE_TRACING"] = "true"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from core.dependencies import get_dispatcher, get_settings  # noqa: E402
from core.settings import Settings  # noqa: E402
from main import app  # noqa: E402
from payments.webhook_handlers import HANDLERS  # noqa: E402
from payments.webhooks import WebhookDispatcher, sign_payload  # noqa: E402

WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Setup test environment variables before each test."""
    # Store original env vars
    original_env = dict(os.environ)

    os.environ.update(
        {
            "STRIPE_API_KEY": "sk_test_dummy",
            "STRIPE_WEBHOOK_SECRET": WEBHOOK_SECRET,
            "APP_NAME": "Test Gateway",
            "ENVIRONMENT": "test",
            "DISABLE_TRACING": "true",
        }
    )

    yield

    # Restore original env vars
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_settings():
    return Settings(
        STRIPE_API_KEY="sk_test_mock",
        STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET,
        STRIPE_PUBLISHABLE_KEY="pk_test_mock",
        SUCCESS_URL="https://shop.example.com/success",
        CANCEL_URL="https://shop.example.com/cancel",
        PAYMENT_RETURN_URL="https://shop.example.com/return",
        ENVIRONMENT="test",
    )


@pytest.fixture
def failure_hook():
    return MagicMock(name="failure_hook")


@pytest.fixture
def handler_mocks():
    """One mock per subscribed event type, plus the default branch."""
    mocks = {event_type: MagicMock(name=event_type) for event_type in HANDLERS}
    mocks["default"] = MagicMock(name="default")
    return mocks


@pytest.fixture
def dispatcher(handler_mocks, failure_hook):
    dispatcher = WebhookDispatcher(
        default=handler_mocks["default"], on_failure=failure_hook
    )
    for event_type in HANDLERS:
        dispatcher.register(event_type, handler_mocks[event_type])
    return dispatcher


@pytest.fixture
def client(mock_settings, dispatcher):
    """Test client with settings and the webhook registry overridden."""
    app.dependency_overrides[get_settings] = lambda: mock_settings
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    with TestClient(app) as test_client:
        yield test_client

    # Clean up
    app.dependency_overrides.clear()


def make_event(event_type: str = "payment_intent.succeeded", **data_object) -> dict:
    obj = {"id": "pi_123", "object": "payment_intent", "amount": 2000}
    obj.update(data_object)
    return {
        "id": "evt_123",
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "data": {"object": obj},
    }


def encode(event: dict) -> bytes:
    return json.dumps(event, separators=(",", ":")).encode("utf-8")


@pytest.fixture
def post_webhook(client):
    """Post a body to /webhook signed with the test secret."""

    def _post(body: bytes, timestamp=None, secret=WEBHOOK_SECRET, signature=None):
        header = signature or sign_payload(body, secret, timestamp)
        return client.post(
            "/webhook",
            content=body,
            headers={"stripe-signature": header, "Content-Type": "application/json"},
        )

    return _post


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "webhook: webhook verification and dispatch")
    config.addinivalue_line("markers", "slow: marks tests as slow running")
