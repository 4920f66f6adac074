def test_checkout_session_created_with_order_metadata(test_context):
    client, container = test_context
    response = client.post(
        "/stripe/create-checkout-session",
        json={
            "amount": "49.99",
            "description": "Discord bot",
            "customerEmail": "ada@example.com",
            "customerName": "Ada Lovelace",
        },
    )
    assert response.status_code == 200
    body = response.json()
    session_id = body["sessionId"]
    assert session_id.startswith("cs_stub_")
    assert body["url"] == f"https://shop.example.com/orders?session_id={session_id}&payment_success=true"

    session = container.provider.retrieve_session(session_id)
    assert session.amount_total == 4999
    assert session.currency == "usd"
    assert dict(session.metadata) == {
        "customerName": "Ada Lovelace",
        "customerEmail": "ada@example.com",
        "description": "Discord bot",
    }


def test_non_positive_amount_never_reaches_provider(test_context):
    client, container = test_context
    for amount in (-5, 0, "abc", None):
        response = client.post("/stripe/create-checkout-session", json={"amount": amount})
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid amount. Amount must be a positive number."
    assert container.provider.calls == []


def test_customer_fields_are_validated_before_checkout(test_context):
    client, container = test_context
    for overrides, field in (
        ({"customerName": "A" * 250}, "customerName"),
        ({"customerEmail": "not-an-email"}, "customerEmail"),
        ({"description": "x" * 501}, "description"),
    ):
        response = client.post("/stripe/create-checkout-session", json={"amount": "49.99", **overrides})
        assert response.status_code == 400
        assert response.json()["error"]["details"][0]["field"] == field
    assert container.provider.calls == []


def test_session_status_reports_amount_in_major_units(test_context):
    client, container = test_context
    session_id = client.post(
        "/stripe/create-checkout-session",
        json={"amount": 12.5, "customerEmail": "ada@example.com"},
    ).json()["sessionId"]
    container.provider.complete_session(session_id)

    response = client.get(f"/stripe/session/{session_id}")

    assert response.status_code == 200
    assert response.json() == {"status": "paid", "customerEmail": "ada@example.com", "amountTotal": "12.50"}


def test_session_lookup_failure_returns_500(test_context):
    client, _ = test_context
    response = client.get("/stripe/session/cs_missing")
    assert response.status_code == 500
    assert response.json()["error"]["message"] == "Failed to retrieve session"


def test_publishable_key_exposed(test_context):
    client, _ = test_context
    response = client.get("/stripe/config")
    assert response.status_code == 200
    assert response.json() == {"publishableKey": "pk_test_stub"}


def test_unconfigured_provider_answers_503(unconfigured_context):
    client, _ = unconfigured_context
    assert client.get("/stripe/config").status_code == 503
    response = client.post("/stripe/create-checkout-session", json={"amount": "10.00"})
    assert response.status_code == 503
    assert response.json()["error"]["code"] == "service_unavailable"
