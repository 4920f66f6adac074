from conftest import BUSINESS_EMAIL


def _create_order(client, **overrides):
    payload = {
        "customerName": "Ada Lovelace",
        "customerEmail": "ada@example.com",
        "amount": "120.00",
        "paymentMethod": "Cash App",
        "description": "Discord bot with moderation",
    }
    payload.update(overrides)
    return client.post("/api/orders", json=payload)


def test_create_and_fetch_order(test_context):
    client, container = test_context
    response = _create_order(client)
    assert response.status_code == 201
    order = response.json()
    assert order["orderNumber"] == "ORD-1001"
    assert order["amount"] == "120.00"

    fetched = client.get(f"/api/orders/{order['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["orderNumber"] == "ORD-1001"
    assert container.dispatcher.transport.recipients() == ["ada@example.com", BUSINESS_EMAIL]


def test_responses_carry_request_id_only(test_context):
    client, _ = test_context
    response = client.get("/api/orders", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-API-Timeout-Hint-Ms" not in response.headers


def test_order_numbers_increase_and_list_newest_first(test_context):
    client, _ = test_context
    for _ in range(3):
        assert _create_order(client).status_code == 201

    numbers = [order["orderNumber"] for order in client.get("/api/orders").json()]
    assert numbers == ["ORD-1003", "ORD-1002", "ORD-1001"]


def test_unknown_order_returns_404(test_context):
    client, _ = test_context
    response = client.get("/api/orders/missing")
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Order not found"


def test_invalid_order_payload_returns_400(test_context):
    client, _ = test_context
    response = _create_order(client, customerEmail="not-an-email")
    assert response.status_code == 400
    assert response.json()["error"]["details"][0]["field"] == "customerEmail"


def test_rating_bounds(test_context):
    client, _ = test_context
    order_id = _create_order(client).json()["id"]

    for rating in (0, 6):
        response = client.patch(f"/api/orders/{order_id}/rating", json={"rating": rating})
        assert response.status_code == 400
    assert client.get(f"/api/orders/{order_id}").json()["rating"] is None

    response = client.patch(f"/api/orders/{order_id}/rating", json={"rating": 3})
    assert response.status_code == 200
    assert response.json()["rating"] == "3"

    assert client.patch("/api/orders/missing/rating", json={"rating": 4}).status_code == 404


def test_custom_order_request_notifies_business_and_customer(test_context):
    client, container = test_context
    response = client.post(
        "/api/custom-orders",
        json={
            "customerName": "Grace",
            "customerEmail": "grace@example.com",
            "category": "Websites",
            "description": "Portfolio site with <b>blog</b>",
            "estimatedPrice": "150",
            "imageUrls": ["https://cdn.example.com/a.png"],
        },
    )
    assert response.status_code == 201
    custom_order = response.json()
    assert custom_order["status"] == "pending"
    assert custom_order["imageUrls"] == ["https://cdn.example.com/a.png"]

    assert client.get(f"/api/custom-orders/{custom_order['id']}").status_code == 200
    assert len(client.get("/api/custom-orders").json()) == 1
    assert client.get("/api/custom-orders/missing").status_code == 404

    transport = container.dispatcher.transport
    assert transport.recipients() == [BUSINESS_EMAIL, "grace@example.com"]
    html_body = transport.sent[0].get_body(preferencelist=("html",)).get_content()
    assert "&lt;b&gt;blog&lt;/b&gt;" in html_body


def test_contact_submission_goes_to_inbox(test_context):
    client, container = test_context
    response = client.post(
        "/api/contact",
        json={"name": "Alan", "email": "alan@example.com", "subject": "Quote", "message": "Hi there"},
    )
    assert response.status_code == 201
    assert len(client.get("/api/contact").json()) == 1
    assert container.dispatcher.transport.recipients() == ["inbox@example.com", "alan@example.com"]


def test_cart_lifecycle(test_context):
    client, _ = test_context
    first = client.post("/api/cart", json={"productId": "p1"})
    second = client.post("/api/cart", json={"productId": "site-basic", "productName": "Basic Site", "price": "75"})
    assert first.status_code == 201
    assert first.json()["quantity"] == "1"
    item_id = first.json()["id"]

    updated = client.patch(f"/api/cart/{item_id}", json={"quantity": 3})
    assert updated.status_code == 200
    assert updated.json()["quantity"] == "3"

    rejected = client.patch(f"/api/cart/{item_id}", json={"quantity": 0})
    assert rejected.status_code == 400
    assert rejected.json()["error"]["message"] == "Invalid quantity"

    assert client.patch("/api/cart/missing", json={"quantity": 2}).status_code == 404

    assert client.delete(f"/api/cart/{second.json()['id']}").status_code == 204
    assert client.delete(f"/api/cart/{second.json()['id']}").status_code == 404
    assert [item["id"] for item in client.get("/api/cart").json()] == [item_id]

    assert client.delete("/api/cart").status_code == 204
    assert client.get("/api/cart").json() == []


def test_health_endpoints(test_context):
    client, _ = test_context
    assert client.get("/health").json() == {"ok": True}
    assert client.get("/ready").json() == {"ok": True}
    assert client.get("/").json()["docs"] == "/docs"
