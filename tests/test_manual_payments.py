from conftest import BUSINESS_EMAIL
from orderdesk.services.manual_payments import ManualPaymentAccounts, ManualPaymentService


def _manual_payload(**overrides):
    payload = {
        "paymentMethod": "cashapp",
        "customerName": "Ada Lovelace",
        "customerEmail": "ada@example.com",
        "amount": "30",
        "description": "Discord bot",
    }
    payload.update(overrides)
    return payload


def test_cashapp_payment_records_order_with_instructions(test_context):
    client, container = test_context
    response = client.post("/api/payment/manual", json=_manual_payload())
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["order"]["paymentMethod"] == "Cash App"
    assert body["order"]["amount"] == "30.00"
    assert body["paymentInstructions"]["cashtag"] == "$DriftV8"
    assert body["paymentInstructions"]["amount"] == "30.00"
    assert body["paymentInstructions"]["note"] == "Order for Discord bot"
    assert container.dispatcher.transport.recipients() == ["ada@example.com", BUSINESS_EMAIL]


def test_crypto_payment_returns_wallet(test_context):
    client, _ = test_context
    response = client.post("/api/payment/manual", json=_manual_payload(paymentMethod="crypto"))
    assert response.status_code == 200
    instructions = response.json()["paymentInstructions"]
    assert instructions["method"] == "Cryptocurrency"
    assert instructions["wallet"] == "bc1qexamplewallet"
    assert instructions["network"] == "Bitcoin (BTC)"


def test_invalid_method_and_amount_rejected(test_context):
    client, _ = test_context
    response = client.post("/api/payment/manual", json=_manual_payload(paymentMethod="venmo"))
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid payment method"

    response = client.post("/api/payment/manual", json=_manual_payload(amount="-1"))
    assert response.status_code == 400
    assert client.get("/api/orders").json() == []


def test_crypto_without_wallet_is_unavailable(test_context):
    client, container = test_context
    container.manual_payments = ManualPaymentService(
        store=container.store,
        dispatcher=container.dispatcher,
        recipients=container.recipients,
        accounts=ManualPaymentAccounts(cashtag="$DriftV8", crypto_wallet=None, crypto_network="Bitcoin (BTC)"),
    )
    response = client.post("/api/payment/manual", json=_manual_payload(paymentMethod="crypto"))
    assert response.status_code == 503
    assert client.get("/api/orders").json() == []
