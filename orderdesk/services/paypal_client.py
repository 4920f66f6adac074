import logging
import time
from decimal import Decimal
from threading import Lock
from typing import Any

import requests

from orderdesk.core.errors import ConfigurationError, TransientDependencyError, ValidationError
from orderdesk.core.money import format_money
from orderdesk.core.observability import log_event

logger = logging.getLogger("orderdesk.paypal")

PAYPAL_BASE_URLS = {
    "live": "https://api-m.paypal.com",
    "sandbox": "https://api-m.sandbox.paypal.com",
}
ALLOWED_INTENTS = {"CAPTURE", "AUTHORIZE"}
TOKEN_REFRESH_MARGIN_SECONDS = 30


class PaypalClient:
    name = "paypal"

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        environment: str = "sandbox",
        timeout_seconds: int = 20,
        session: requests.Session | None = None,
    ):
        if not client_id or not client_secret:
            raise ConfigurationError("PayPal is not configured")
        self._client_id = client_id
        self._client_secret = client_secret
        self._base_url = PAYPAL_BASE_URLS["live" if environment in {"live", "production", "prod"} else "sandbox"]
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = Lock()

    def _access_token(self) -> str:
        with self._token_lock:
            now = time.time()
            if self._token and self._token_expires_at > now + TOKEN_REFRESH_MARGIN_SECONDS:
                return self._token
            try:
                response = self._session.post(
                    f"{self._base_url}/v1/oauth2/token",
                    auth=(self._client_id, self._client_secret),
                    data={"grant_type": "client_credentials"},
                    headers={"Accept": "application/json"},
                    timeout=self._timeout,
                )
                response.raise_for_status()
                body = response.json()
            except (requests.RequestException, ValueError) as exc:
                raise TransientDependencyError(f"PayPal token request failed: {exc}") from exc

            token = body.get("access_token")
            if not token:
                raise TransientDependencyError("PayPal token missing in response")
            self._token = token
            self._token_expires_at = now + max(60, int(body.get("expires_in") or 0))
            return token

    def _request(self, method: str, path: str, *, json_body: dict[str, Any] | None = None) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._access_token()}",
            "Accept": "application/json",
        }
        try:
            response = self._session.request(
                method,
                f"{self._base_url}{path}",
                json=json_body,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise TransientDependencyError(f"PayPal request failed: {exc}") from exc

        if response.status_code >= 400:
            log_event(
                logger,
                logging.ERROR,
                "paypal.http_error",
                path=path,
                status_code=response.status_code,
                body=response.text[:300],
            )
            raise TransientDependencyError(f"PayPal returned HTTP {response.status_code}")
        try:
            return response.json() if response.content else {}
        except ValueError as exc:
            raise TransientDependencyError("PayPal returned a non-JSON body") from exc

    def generate_client_token(self) -> str:
        body = self._request("POST", "/v1/identity/generate-token")
        token = body.get("client_token")
        if not token:
            raise TransientDependencyError("PayPal client token missing in response")
        return token

    def create_order(self, *, amount: Decimal, currency: str, intent: str) -> dict[str, Any]:
        normalized_intent = intent.strip().upper()
        if normalized_intent not in ALLOWED_INTENTS:
            raise ValidationError("Invalid intent. Intent must be CAPTURE or AUTHORIZE.")
        if amount <= 0:
            raise ValidationError("Invalid amount. Amount must be a positive number.")
        order = self._request(
            "POST",
            "/v2/checkout/orders",
            json_body={
                "intent": normalized_intent,
                "purchase_units": [
                    {"amount": {"currency_code": currency.upper(), "value": format_money(amount)}}
                ],
            },
        )
        log_event(logger, logging.INFO, "paypal.order_created", paypal_order_id=order.get("id"))
        return order

    def capture_order(self, order_id: str) -> dict[str, Any]:
        capture = self._request("POST", f"/v2/checkout/orders/{order_id}/capture", json_body={})
        log_event(
            logger,
            logging.INFO,
            "paypal.order_captured",
            paypal_order_id=order_id,
            status=capture.get("status"),
        )
        return capture
