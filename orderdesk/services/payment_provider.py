import hashlib
import hmac
import json
import uuid
from dataclasses import dataclass, field, replace
from threading import Lock
from typing import Any, Literal, Mapping, Protocol, Union

import stripe

from orderdesk.core.errors import ConfigurationError, TransientDependencyError, VerificationError

CHECKOUT_COMPLETED_EVENT_TYPES = frozenset({"checkout.session.completed"})
SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


@dataclass(frozen=True)
class PaymentMethodDetail:
    type: str
    wallet_type: str | None = None


@dataclass(frozen=True)
class CheckoutSessionSnapshot:
    id: str
    payment_status: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    customer_email: str | None = None
    customer_details_name: str | None = None
    customer_details_email: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)
    payment_intent_id: str | None = None
    payment_method: PaymentMethodDetail | None = None


@dataclass(frozen=True)
class CheckoutCompleted:
    event_id: str
    event_type: str
    session: CheckoutSessionSnapshot
    kind: Literal["checkout_completed"] = "checkout_completed"


@dataclass(frozen=True)
class UnrecognizedEvent:
    event_id: str
    event_type: str
    kind: Literal["unrecognized"] = "unrecognized"


ProviderEvent = Union[CheckoutCompleted, UnrecognizedEvent]


@dataclass(frozen=True)
class CheckoutSessionRequest:
    amount_minor: int
    currency: str
    product_name: str
    product_description: str
    success_url: str
    cancel_url: str
    payment_method_types: tuple[str, ...]
    customer_email: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CheckoutSessionResult:
    provider: str
    session_id: str
    url: str | None = None


class PaymentProvider(Protocol):
    name: str
    publishable_key: str | None

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        ...

    def retrieve_session(self, session_id: str) -> CheckoutSessionSnapshot:
        ...

    def retrieve_payment_method(self, payment_intent_id: str) -> PaymentMethodDetail | None:
        ...

    def verify_event(self, payload: bytes, signature: str | None) -> ProviderEvent:
        ...


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def parse_payment_method_details(details: Mapping[str, Any] | None) -> PaymentMethodDetail | None:
    if not details:
        return None
    method_type = _optional_str(details.get("type"))
    if not method_type:
        return None
    wallet_type = None
    if method_type == "card":
        card = details.get("card") or {}
        wallet = card.get("wallet") or {}
        wallet_type = _optional_str(wallet.get("type"))
    return PaymentMethodDetail(type=method_type, wallet_type=wallet_type)


def payment_method_from_intent(intent: Mapping[str, Any] | None) -> PaymentMethodDetail | None:
    if not intent:
        return None
    charge = intent.get("latest_charge")
    if not isinstance(charge, Mapping):
        return None
    return parse_payment_method_details(charge.get("payment_method_details"))


def parse_session(obj: Mapping[str, Any]) -> CheckoutSessionSnapshot:
    customer_details = obj.get("customer_details") or {}
    metadata = {str(key): str(value) for key, value in (obj.get("metadata") or {}).items() if value is not None}

    payment_intent = obj.get("payment_intent")
    payment_intent_id: str | None = None
    payment_method: PaymentMethodDetail | None = None
    if isinstance(payment_intent, Mapping):
        payment_intent_id = _optional_str(payment_intent.get("id"))
        payment_method = payment_method_from_intent(payment_intent)
    else:
        payment_intent_id = _optional_str(payment_intent)

    amount_total = obj.get("amount_total")
    return CheckoutSessionSnapshot(
        id=str(obj.get("id") or ""),
        payment_status=_optional_str(obj.get("payment_status")),
        amount_total=int(amount_total) if amount_total is not None else None,
        currency=_optional_str(obj.get("currency")),
        customer_email=_optional_str(obj.get("customer_email")),
        customer_details_name=_optional_str(customer_details.get("name")),
        customer_details_email=_optional_str(customer_details.get("email")),
        metadata=metadata,
        payment_intent_id=payment_intent_id,
        payment_method=payment_method,
    )


def parse_event(payload: Mapping[str, Any]) -> ProviderEvent:
    event_id = _optional_str(payload.get("id"))
    if not event_id:
        raise VerificationError("Webhook payload has no event id")
    event_type = _optional_str(payload.get("type")) or "unknown"

    if event_type in CHECKOUT_COMPLETED_EVENT_TYPES:
        obj = (payload.get("data") or {}).get("object")
        if isinstance(obj, Mapping):
            return CheckoutCompleted(event_id=event_id, event_type=event_type, session=parse_session(obj))
    return UnrecognizedEvent(event_id=event_id, event_type=event_type)


def _load_payload(payload: bytes) -> Mapping[str, Any]:
    try:
        parsed = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise VerificationError("Webhook payload is not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise VerificationError("Webhook payload must be a JSON object")
    return parsed


class StripePaymentProvider:
    name = "stripe"

    def __init__(
        self,
        *,
        secret_key: str,
        webhook_secret: str | None,
        publishable_key: str | None = None,
        api_version: str | None = None,
        timeout_seconds: int = 20,
    ):
        if not secret_key:
            raise ConfigurationError("Stripe is not configured")
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self._api_version = api_version
        self.publishable_key = publishable_key
        # Provider calls are bounded; redelivery is Stripe's job, not ours.
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout_seconds)
        stripe.max_network_retries = 0

    def _request_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"api_key": self._secret_key}
        if self._api_version:
            options["stripe_version"] = self._api_version
        return options

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        params: dict[str, Any] = {
            "payment_method_types": list(request.payment_method_types),
            "line_items": [
                {
                    "price_data": {
                        "currency": request.currency,
                        "product_data": {
                            "name": request.product_name,
                            "description": request.product_description,
                        },
                        "unit_amount": request.amount_minor,
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": dict(request.metadata),
        }
        if request.customer_email:
            params["customer_email"] = request.customer_email
        try:
            session = stripe.checkout.Session.create(**params, **self._request_options())
        except stripe.StripeError as exc:
            raise TransientDependencyError(f"Stripe checkout session create failed: {exc}") from exc
        return CheckoutSessionResult(provider=self.name, session_id=session["id"], url=session.get("url"))

    def retrieve_session(self, session_id: str) -> CheckoutSessionSnapshot:
        try:
            session = stripe.checkout.Session.retrieve(
                session_id,
                expand=["payment_intent", "payment_intent.latest_charge"],
                **self._request_options(),
            )
        except stripe.StripeError as exc:
            raise TransientDependencyError(f"Stripe session retrieve failed: {exc}") from exc
        return parse_session(session)

    def retrieve_payment_method(self, payment_intent_id: str) -> PaymentMethodDetail | None:
        try:
            intent = stripe.PaymentIntent.retrieve(
                payment_intent_id,
                expand=["latest_charge"],
                **self._request_options(),
            )
        except stripe.StripeError as exc:
            raise TransientDependencyError(f"Stripe payment intent retrieve failed: {exc}") from exc
        return payment_method_from_intent(intent)

    def verify_event(self, payload: bytes, signature: str | None) -> ProviderEvent:
        if not signature or not self._webhook_secret:
            raise VerificationError("Missing signature or webhook secret")
        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise VerificationError(f"Signature verification failed: {exc.user_message or exc}") from exc
        except ValueError as exc:
            raise VerificationError("Webhook payload is not valid JSON") from exc
        return parse_event(_load_payload(payload))


def sign_stub_payload(secret: str, payload: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


class StubPaymentProvider:
    """In-process provider for local runs and tests.

    Sessions live in memory; webhooks are authenticated with an HMAC-SHA256
    signature of the raw body (``sha256=<hex>``).
    """

    name = "stub"

    def __init__(self, *, webhook_secret: str | None, publishable_key: str | None = "pk_stub"):
        self._webhook_secret = webhook_secret
        self.publishable_key = publishable_key
        self._sessions: dict[str, CheckoutSessionSnapshot] = {}
        self._payment_methods: dict[str, PaymentMethodDetail] = {}
        self._lock = Lock()
        self.calls: list[str] = []

    def _record(self, call: str) -> None:
        with self._lock:
            self.calls.append(call)

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        self._record("create_checkout_session")
        session_id = f"cs_stub_{uuid.uuid4().hex[:18]}"
        snapshot = CheckoutSessionSnapshot(
            id=session_id,
            payment_status="unpaid",
            amount_total=request.amount_minor,
            currency=request.currency,
            customer_email=request.customer_email,
            metadata=dict(request.metadata),
        )
        with self._lock:
            self._sessions[session_id] = snapshot
        return CheckoutSessionResult(
            provider=self.name,
            session_id=session_id,
            url=request.success_url.replace(SESSION_PLACEHOLDER, session_id),
        )

    def complete_session(
        self,
        session_id: str,
        *,
        payment_method: PaymentMethodDetail | None = None,
        customer_name: str | None = None,
    ) -> CheckoutSessionSnapshot:
        with self._lock:
            snapshot = self._sessions[session_id]
            payment_intent_id = f"pi_stub_{uuid.uuid4().hex[:18]}"
            if payment_method:
                self._payment_methods[payment_intent_id] = payment_method
            snapshot = replace(
                snapshot,
                payment_status="paid",
                payment_intent_id=payment_intent_id,
                customer_details_name=customer_name,
                customer_details_email=snapshot.customer_email,
            )
            self._sessions[session_id] = snapshot
            return snapshot

    def register_payment_method(self, payment_intent_id: str, detail: PaymentMethodDetail) -> None:
        with self._lock:
            self._payment_methods[payment_intent_id] = detail

    def retrieve_session(self, session_id: str) -> CheckoutSessionSnapshot:
        self._record("retrieve_session")
        with self._lock:
            snapshot = self._sessions.get(session_id)
        if snapshot is None:
            raise TransientDependencyError(f"No such checkout session: {session_id}")
        return snapshot

    def retrieve_payment_method(self, payment_intent_id: str) -> PaymentMethodDetail | None:
        self._record("retrieve_payment_method")
        with self._lock:
            return self._payment_methods.get(payment_intent_id)

    def verify_event(self, payload: bytes, signature: str | None) -> ProviderEvent:
        if not signature or not self._webhook_secret:
            raise VerificationError("Missing signature or webhook secret")
        provided = signature.strip()
        if not provided.startswith("sha256="):
            provided = f"sha256={provided}"
        if not hmac.compare_digest(provided, sign_stub_payload(self._webhook_secret, payload)):
            raise VerificationError("Invalid webhook signature")
        return parse_event(_load_payload(payload))
