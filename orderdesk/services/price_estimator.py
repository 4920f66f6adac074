import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Protocol

from orderdesk.core.errors import ConfigurationError
from orderdesk.core.observability import log_event

logger = logging.getLogger("orderdesk.estimates")

CATEGORY_RANGES = {
    "Discord Bots": "$50-$300",
    "Discord Servers": "$30-$150",
    "Websites": "$75-$400",
    "Web Apps": "$150-$500",
    "Mobile Apps": "$200-$500",
    "Scripts & Automation": "$25-$200",
}
DEFAULT_RANGE = "$25-$500"
MIN_DESCRIPTION_CHARS = 10


@dataclass(frozen=True)
class PriceEstimate:
    price: int
    difficulty: str
    estimated_days: str
    difficulty_level: int


NOT_ASSESSED = PriceEstimate(price=0, difficulty="Not assessed", estimated_days="N/A", difficulty_level=0)


def fallback_price(category: str, description: str) -> int:
    length_multiplier = min(len(description) / 100, 5)
    category_multiplier = 1.5 if "Mobile" in category or "Web" in category else 1
    return math.floor(100 * length_multiplier * category_multiplier + 0.5)


class CompletionClient(Protocol):
    def complete(self, prompt: str) -> str:
        ...


class OpenAICompletionClient:
    """Any OpenAI-compatible chat endpoint (Groq by default)."""

    def __init__(self, *, api_key: str, model: str, base_url: str | None, temperature: float, timeout_seconds: int):
        try:
            from openai import OpenAI
        except ImportError as exc:
            raise ConfigurationError("openai dependency is not installed") from exc

        client_kwargs: dict[str, object] = {"api_key": api_key, "timeout": timeout_seconds, "max_retries": 0}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._temperature = temperature

    def complete(self, prompt: str) -> str:
        completion = self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self._temperature,
            max_tokens=200,
        )
        text = ""
        if completion.choices and completion.choices[0].message:
            text = completion.choices[0].message.content or ""
        return text.strip()


def _build_prompt(category: str, description: str) -> str:
    price_range = CATEGORY_RANGES.get(category, DEFAULT_RANGE)
    return (
        "You are pricing a freelance software request. Be fair and do not inflate prices.\n\n"
        f"Category: {category}\n"
        f"Typical Range: {price_range}\n"
        f"Description: {description}\n\n"
        "Price on actual complexity, not feature count. Standard bots and basic websites sit in "
        "$50-$150; only complex custom systems exceed $250.\n\n"
        "Respond ONLY with valid JSON in this exact format:\n"
        '{"price": <number between 0-500>, "difficulty": "<Easy|Moderate|Medium|Hard|Very Hard>", '
        '"estimatedDays": "<time estimate>", "difficultyLevel": <1-5>}'
    )


def _parse_completion(text: str, *, max_price: int) -> PriceEstimate:
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if not match:
        raise ValueError("No JSON object in completion")
    data = json.loads(match.group(0))
    price = min(max_price, max(0, math.floor(float(data["price"]) + 0.5)))
    level = min(5, max(1, int(data.get("difficultyLevel") or 2)))
    return PriceEstimate(
        price=price,
        difficulty=str(data.get("difficulty") or "Estimated"),
        estimated_days=str(data.get("estimatedDays") or "3-7 days"),
        difficulty_level=level,
    )


class PriceEstimator:
    def __init__(self, client: CompletionClient | None, *, max_price: int = 500):
        self._client = client
        self._max_price = max_price

    def estimate(self, category: str | None, description: str | None) -> PriceEstimate:
        if not category or not description or len(description.strip()) < MIN_DESCRIPTION_CHARS:
            return NOT_ASSESSED

        fallback = min(self._max_price, fallback_price(category, description))
        if self._client is None:
            return PriceEstimate(price=fallback, difficulty="Estimated", estimated_days="3-7 days", difficulty_level=2)

        try:
            return _parse_completion(self._client.complete(_build_prompt(category, description)), max_price=self._max_price)
        except Exception as exc:  # noqa: BLE001 - estimate is best effort
            log_event(logger, logging.WARNING, "estimate.ai_unavailable", category=category, error=str(exc))
            return PriceEstimate(
                price=fallback,
                difficulty="Estimated (AI unavailable)",
                estimated_days="3-7 days",
                difficulty_level=2,
            )
