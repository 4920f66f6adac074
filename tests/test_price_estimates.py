from orderdesk.services.price_estimator import PriceEstimator


class FakeCompletionClient:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


def _estimate(client, category, description):
    return client.post("/api/estimate-price", json={"category": category, "description": description})


def test_short_description_is_not_assessed(test_context):
    client, _ = test_context
    response = _estimate(client, "Websites", "site")
    assert response.status_code == 200
    assert response.json() == {
        "price": 0,
        "difficulty": "Not assessed",
        "estimatedDays": "N/A",
        "difficultyLevel": 0,
    }


def test_without_ai_key_uses_length_based_estimate(test_context):
    client, _ = test_context
    response = _estimate(client, "Websites", "x" * 200)
    assert response.json()["price"] == 300
    assert response.json()["difficulty"] == "Estimated"


def test_fallback_is_capped_at_max_price(test_context):
    client, _ = test_context
    assert _estimate(client, "Mobile Apps", "y" * 1000).json()["price"] == 500


def test_ai_reply_is_parsed_and_clamped(test_context):
    client, container = test_context
    fake = FakeCompletionClient(
        reply='Here you go: {"price": 900, "difficulty": "Hard", "estimatedDays": "2 weeks", "difficultyLevel": 4}'
    )
    container.estimator = PriceEstimator(fake, max_price=500)

    body = _estimate(client, "Discord Bots", "Moderation bot with ticket system").json()

    assert body == {"price": 500, "difficulty": "Hard", "estimatedDays": "2 weeks", "difficultyLevel": 4}
    assert "Typical Range: $50-$300" in fake.prompts[0]


def test_ai_failure_falls_back(test_context):
    client, container = test_context
    container.estimator = PriceEstimator(FakeCompletionClient(error=RuntimeError("rate limited")), max_price=500)

    body = _estimate(client, "Scripts & Automation", "z" * 100).json()

    assert body["price"] == 100
    assert body["difficulty"] == "Estimated (AI unavailable)"
