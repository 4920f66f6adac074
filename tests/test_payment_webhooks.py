import json
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine, func, select

from conftest import BUSINESS_EMAIL, WEBHOOK_SECRET, RecordingEmailTransport, make_settings
from orderdesk.core.container import build_container
from orderdesk.models.processed_event import ProcessedEvent
from orderdesk.services.payment_provider import PaymentMethodDetail, StubPaymentProvider, sign_stub_payload


def _signed_webhook_headers(payload_bytes: bytes) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Stripe-Signature": sign_stub_payload(WEBHOOK_SECRET, payload_bytes),
    }


def _checkout_completed_payload(
    event_id: str,
    *,
    session_id: str = "cs_test_1",
    amount_total: int = 4999,
    metadata: dict | None = None,
    payment_intent: object = "pi_test_1",
    customer_details: dict | None = None,
    customer_email: str | None = None,
) -> bytes:
    event = {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "payment_status": "paid",
                "amount_total": amount_total,
                "currency": "usd",
                "customer_email": customer_email,
                "customer_details": customer_details or {},
                "metadata": metadata
                if metadata is not None
                else {
                    "customerName": "Ada Lovelace",
                    "customerEmail": "ada@example.com",
                    "description": "Discord bot",
                },
                "payment_intent": payment_intent,
            }
        },
    }
    return json.dumps(event).encode("utf-8")


def _post_event(client, payload_bytes: bytes):
    return client.post("/stripe/webhook", content=payload_bytes, headers=_signed_webhook_headers(payload_bytes))


def test_checkout_completed_creates_order_and_sends_confirmations(test_context):
    client, container = test_context
    container.provider.register_payment_method(
        "pi_test_1", PaymentMethodDetail(type="card", wallet_type="apple_pay")
    )

    response = _post_event(client, _checkout_completed_payload("evt_1"))
    assert response.status_code == 200
    assert response.json() == {"received": True, "orderNumber": "ORD-1001"}

    orders = client.get("/api/orders").json()
    assert len(orders) == 1
    order = orders[0]
    assert order["orderNumber"] == "ORD-1001"
    assert order["customerName"] == "Ada Lovelace"
    assert order["customerEmail"] == "ada@example.com"
    assert order["amount"] == "49.99"
    assert order["paymentMethod"] == "Apple Pay"
    assert order["description"] == "Discord bot"
    assert order["rating"] is None

    transport = container.dispatcher.transport
    assert transport.recipients() == ["ada@example.com", BUSINESS_EMAIL]
    assert "ORD-1001" in transport.sent[0]["Subject"]


def test_duplicate_delivery_is_acknowledged_without_second_order(test_context):
    client, container = test_context
    payload = _checkout_completed_payload("evt_dup")

    first = _post_event(client, payload)
    second = _post_event(client, payload)

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json() == {"received": True, "duplicate": True, "message": "Event already processed"}
    assert len(client.get("/api/orders").json()) == 1
    assert len(container.dispatcher.transport.sent) == 2


def test_unrecognized_event_is_acknowledged_and_marked(test_context):
    client, container = test_context
    payload = json.dumps({"id": "evt_refund", "type": "charge.refunded", "data": {"object": {}}}).encode()

    response = _post_event(client, payload)

    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert container.ledger.is_processed("evt_refund")
    assert client.get("/api/orders").json() == []


def test_missing_payment_detail_falls_back_to_unknown_label(test_context):
    client, _ = test_context
    payload = _checkout_completed_payload(
        "evt_nodetail",
        metadata={},
        payment_intent="pi_without_detail",
        customer_details={"name": "Grace Hopper", "email": "grace@example.com"},
    )

    assert _post_event(client, payload).status_code == 200

    order = client.get("/api/orders").json()[0]
    assert order["paymentMethod"] == "Unknown"
    assert order["customerName"] == "Grace Hopper"
    assert order["customerEmail"] == "grace@example.com"
    assert order["description"] == "Project V8 Order"


def test_expanded_payment_intent_labels_without_extra_lookup(test_context):
    client, container = test_context
    payment_intent = {
        "id": "pi_expanded",
        "latest_charge": {"payment_method_details": {"type": "us_bank_account"}},
    }

    assert _post_event(client, _checkout_completed_payload("evt_ach", payment_intent=payment_intent)).status_code == 200

    assert client.get("/api/orders").json()[0]["paymentMethod"] == "ACH Bank Transfer"
    assert "retrieve_payment_method" not in container.provider.calls


def test_missing_customer_email_only_notifies_business(test_context):
    client, container = test_context
    payload = _checkout_completed_payload("evt_noemail", metadata={"customerName": "Walk-in"})

    assert _post_event(client, payload).status_code == 200

    assert container.dispatcher.transport.recipients() == [BUSINESS_EMAIL]


def test_oversized_provider_metadata_is_clipped_not_lost(test_context):
    client, container = test_context
    payload = _checkout_completed_payload(
        "evt_long_name",
        metadata={"customerName": "  " + "A" * 250, "customerEmail": "ada@example.com", "description": "   "},
    )

    response = _post_event(client, payload)
    assert response.status_code == 200
    assert response.json()["orderNumber"] == "ORD-1001"

    order = client.get("/api/orders").json()[0]
    assert order["customerName"] == "A" * 200
    assert order["description"] == "Project V8 Order"
    assert container.ledger.is_processed("evt_long_name")


def test_invalid_signature_is_rejected(test_context):
    client, container = test_context
    payload = _checkout_completed_payload("evt_forged")

    response = client.post(
        "/stripe/webhook",
        content=payload,
        headers={"Content-Type": "application/json", "Stripe-Signature": "sha256=deadbeef"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "webhook_verification_failed"

    missing = client.post("/stripe/webhook", content=payload, headers={"Content-Type": "application/json"})
    assert missing.status_code == 400

    assert not container.ledger.is_processed("evt_forged")
    assert client.get("/api/orders").json() == []


def test_webhook_without_configured_provider_returns_503(unconfigured_context):
    client, _ = unconfigured_context
    payload = _checkout_completed_payload("evt_unconfigured")

    response = _post_event(client, payload)

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "service_unavailable"


def test_notification_failure_does_not_fail_webhook(test_context):
    client, container = test_context
    transport = container.dispatcher.transport
    transport.fail_for.add("ada@example.com")

    response = _post_event(client, _checkout_completed_payload("evt_mailfail"))

    assert response.status_code == 200
    assert response.json()["orderNumber"] == "ORD-1001"
    assert transport.recipients() == [BUSINESS_EMAIL]


def test_materialization_failure_returns_500_and_redelivery_is_skipped(test_context, monkeypatch):
    client, container = test_context

    def broken_create_order(data):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(container.store, "create_order", broken_create_order)
    payload = _checkout_completed_payload("evt_broken")

    response = _post_event(client, payload)
    assert response.status_code == 500
    assert response.json() == {"received": False, "error": "Webhook handler failed"}

    monkeypatch.undo()
    redelivery = _post_event(client, payload)
    assert redelivery.status_code == 200
    assert redelivery.json()["duplicate"] is True
    assert client.get("/api/orders").json() == []


@pytest.fixture(params=["memory", "database"])
def race_container(request, tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    settings = make_settings(store_backend=request.param, ledger_backend=request.param)
    container = build_container(
        settings,
        engine=engine,
        provider=StubPaymentProvider(webhook_secret=WEBHOOK_SECRET),
        transport=RecordingEmailTransport(),
    )
    yield container, engine
    engine.dispose()


def test_concurrent_deliveries_create_single_order(race_container):
    container, engine = race_container
    payload = _checkout_completed_payload("evt_race")
    signature = sign_stub_payload(WEBHOOK_SECRET, payload)

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lambda _: container.processor.handle_webhook(payload, signature), range(8)))

    assert sorted(outcome.state for outcome in outcomes) == ["done"] + ["duplicate"] * 7
    assert len(container.store.list_orders()) == 1
    if container.ledger.backend == "database":
        with engine.connect() as connection:
            assert connection.scalar(select(func.count()).select_from(ProcessedEvent)) == 1
