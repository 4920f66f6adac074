import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PAYMENT_PROVIDER", "stub")
os.environ.setdefault("STUB_WEBHOOK_SECRET", "whsec_test_secret")

import orderdesk.models  # noqa: F401
from orderdesk.core.config import Settings
from orderdesk.core.container import build_container
from orderdesk.db.base import Base
from orderdesk.main import app
from orderdesk.services.payment_provider import StubPaymentProvider

WEBHOOK_SECRET = "whsec_test_secret"
BUSINESS_EMAIL = "owner@example.com"


class RecordingEmailTransport:
    name = "recording"

    def __init__(self):
        self.sent = []
        self.fail_for: set[str] = set()

    def deliver(self, message):
        if message["To"] in self.fail_for:
            raise OSError(f"mailbox unavailable: {message['To']}")
        self.sent.append(message)
        return "sent"

    def recipients(self) -> list[str]:
        return [message["To"] for message in self.sent]


def make_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite://",
        "payment_provider": "stub",
        "stub_webhook_secret": WEBHOOK_SECRET,
        "business_notification_emails": [BUSINESS_EMAIL],
        "contact_inbox_email": "inbox@example.com",
        "crypto_wallet_address": "bc1qexamplewallet",
        "base_url": "https://shop.example.com",
    }
    values.update(overrides)
    return Settings(**values)


def _context(settings: Settings, *, provider=None, paypal=None, completion_client=None):
    engine = make_engine()
    transport = RecordingEmailTransport()
    container = build_container(
        settings,
        engine=engine,
        provider=provider,
        transport=transport,
        paypal=paypal,
        completion_client=completion_client,
    )
    original = app.state.container
    app.state.container = container
    try:
        with TestClient(app) as client:
            yield client, container
    finally:
        app.state.container = original
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def test_context():
    provider = StubPaymentProvider(webhook_secret=WEBHOOK_SECRET, publishable_key="pk_test_stub")
    yield from _context(make_settings(), provider=provider)


@pytest.fixture()
def unconfigured_context():
    settings = make_settings(payment_provider="stripe", stripe_secret_key=None)
    yield from _context(settings)
