"""Turns provider payment notifications into exactly one order or donation.

Webhook lifecycle for one delivery::

    received -> verified -> duplicate
                         -> to-process -> order-materializing -> notified -> done
    received -> rejected            (bad/missing signature, no secret)
    to-process.. -> failed          (logged, answered 500 so the provider redelivers)

The ledger marker is claimed before any other work. A concurrent redelivery
of the same event therefore sees ``duplicate`` even while the first delivery
is still creating the order. If the process dies between the claim and the
order insert the event is skipped on redelivery: duplicate orders are ruled
out at the price of that lost side effect.
"""

import logging
import traceback
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from orderdesk.core.errors import ConfigurationError, TransientDependencyError, VerificationError
from orderdesk.core.money import minor_to_money
from orderdesk.core.observability import log_event
from orderdesk.schemas.donation import DonationCreate
from orderdesk.schemas.order import (
    EMAIL_MAX_LENGTH,
    NAME_MAX_LENGTH,
    PAYMENT_METHOD_MAX_LENGTH,
    OrderCreate,
    OrderOut,
)
from orderdesk.services.email_service import NotificationDispatcher, notify_safely
from orderdesk.services.idempotency_ledger import IdempotencyLedger, donation_marker
from orderdesk.services.notifications import NotificationRecipients, order_confirmation_messages
from orderdesk.services.order_store import OrderStore
from orderdesk.services.payment_provider import (
    CheckoutCompleted,
    CheckoutSessionSnapshot,
    PaymentMethodDetail,
    PaymentProvider,
)

logger = logging.getLogger("orderdesk.payments")

DEFAULT_ORDER_DESCRIPTION = "Project V8 Order"
UNKNOWN_PAYMENT_METHOD = "Unknown"
UNKNOWN_CUSTOMER = "Unknown"

WALLET_LABELS = {
    "apple_pay": "Apple Pay",
    "google_pay": "Google Pay",
    "samsung_pay": "Samsung Pay",
    "amex_express_checkout": "Amex Express Checkout",
    "masterpass": "Masterpass",
    "visa_checkout": "Visa Checkout",
    "link": "Link",
}
PAYMENT_TYPE_LABELS = {
    "card": "Credit/Debit Card",
    "link": "Link",
    "klarna": "Klarna",
    "cashapp": "Cash App",
    "us_bank_account": "ACH Bank Transfer",
    "crypto": "Cryptocurrency",
}

DONATION_SUCCESS = "/?donation_success=true"
DONATION_MISSING_SESSION = "/?donation_error=missing_session"
DONATION_PAYMENT_FAILED = "/?donation_error=payment_failed"
DONATION_SAVE_FAILED = "/?donation_error=save_failed"
DONATION_PROCESSING_FAILED = "/?donation_error=processing_failed"


def _humanize(raw: str) -> str:
    return raw[:1].upper() + raw[1:]


def _clip(value: str | None, limit: int) -> str:
    """Trim provider-supplied text so it fits the order columns."""
    return (value or "").strip()[:limit].strip()


def normalize_payment_method(detail: PaymentMethodDetail | None) -> str:
    if detail is None:
        return UNKNOWN_PAYMENT_METHOD
    if detail.type == "card" and detail.wallet_type:
        label = WALLET_LABELS.get(detail.wallet_type, _humanize(detail.wallet_type.replace("_", " ")))
    else:
        label = PAYMENT_TYPE_LABELS.get(detail.type, _humanize(detail.type))
    return _clip(label, PAYMENT_METHOD_MAX_LENGTH) or UNKNOWN_PAYMENT_METHOD


def resolve_customer_name(session: CheckoutSessionSnapshot) -> str:
    name = session.metadata.get("customerName") or session.customer_details_name
    return _clip(name, NAME_MAX_LENGTH) or UNKNOWN_CUSTOMER


def resolve_customer_email(session: CheckoutSessionSnapshot) -> str:
    email = (
        session.metadata.get("customerEmail")
        or session.customer_details_email
        or session.customer_email
    )
    return _clip(email, EMAIL_MAX_LENGTH)


@dataclass(frozen=True)
class WebhookOutcome:
    state: str
    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


class PaymentEventProcessor:
    def __init__(
        self,
        *,
        provider: PaymentProvider | None,
        ledger: IdempotencyLedger,
        store: OrderStore,
        dispatcher: NotificationDispatcher,
        recipients: NotificationRecipients,
        default_description: str = DEFAULT_ORDER_DESCRIPTION,
    ):
        self._provider = provider
        self._ledger = ledger
        self._store = store
        self._dispatcher = dispatcher
        self._recipients = recipients
        self._default_description = default_description

    # Webhook path

    def handle_webhook(self, payload: bytes, signature: str | None) -> WebhookOutcome:
        if self._provider is None:
            raise ConfigurationError("Stripe is not configured")

        try:
            event = self._provider.verify_event(payload, signature)
        except VerificationError as exc:
            log_event(logger, logging.WARNING, "payment_webhook.rejected", reason=exc.message)
            raise

        log_event(
            logger,
            logging.INFO,
            "payment_webhook.verified",
            event_id=event.event_id,
            event_type=event.event_type,
        )

        if self._ledger.is_processed(event.event_id) or not self._ledger.claim(event.event_id):
            log_event(logger, logging.INFO, "payment_webhook.duplicate", event_id=event.event_id)
            return WebhookOutcome(
                state="duplicate",
                status_code=200,
                body={"received": True, "duplicate": True, "message": "Event already processed"},
            )

        if not isinstance(event, CheckoutCompleted):
            log_event(
                logger,
                logging.INFO,
                "payment_webhook.ignored",
                event_id=event.event_id,
                event_type=event.event_type,
            )
            return WebhookOutcome(state="done", status_code=200, body={"received": True})

        try:
            order = self._materialize_order(event)
        except Exception as exc:  # noqa: BLE001 - provider redelivers on 5xx
            log_event(
                logger,
                logging.ERROR,
                "payment_webhook.failed",
                event_id=event.event_id,
                event_type=event.event_type,
                session_id=event.session.id,
                error=str(exc),
                traceback=traceback.format_exc(limit=10),
            )
            return WebhookOutcome(
                state="failed",
                status_code=500,
                body={"received": False, "error": "Webhook handler failed"},
            )

        return WebhookOutcome(
            state="done",
            status_code=200,
            body={"received": True, "orderNumber": order.order_number},
        )

    def _payment_method_for(self, session: CheckoutSessionSnapshot) -> PaymentMethodDetail | None:
        if session.payment_method is not None or not session.payment_intent_id:
            return session.payment_method
        try:
            return self._provider.retrieve_payment_method(session.payment_intent_id)
        except TransientDependencyError as exc:
            # Label is enrichment; the settled payment still becomes an order.
            log_event(
                logger,
                logging.WARNING,
                "payment_webhook.payment_method_unavailable",
                session_id=session.id,
                payment_intent_id=session.payment_intent_id,
                error=exc.message,
            )
            return None

    def _materialize_order(self, event: CheckoutCompleted) -> OrderOut:
        session = event.session
        payment_method = normalize_payment_method(self._payment_method_for(session))
        order = self._store.create_order(
            OrderCreate(
                customer_name=resolve_customer_name(session),
                customer_email=resolve_customer_email(session),
                amount=minor_to_money(session.amount_total),
                payment_method=payment_method,
                description=(session.metadata.get("description") or "").strip()
                or self._default_description,
            )
        )
        log_event(
            logger,
            logging.INFO,
            "payment_webhook.order_created",
            event_id=event.event_id,
            session_id=session.id,
            order_id=order.id,
            order_number=order.order_number,
            payment_method=payment_method,
        )

        delivered = notify_safely(
            self._dispatcher,
            order_confirmation_messages(order, self._recipients),
            context=f"order:{order.order_number}",
        )
        log_event(
            logger,
            logging.INFO,
            "payment_webhook.notified",
            event_id=event.event_id,
            order_number=order.order_number,
            delivered=delivered,
        )
        return order

    # Donation success redirect path

    def finalize_donation(self, session_id: str | None) -> str:
        """Returns the browser redirect target; never raises."""
        if not session_id:
            return DONATION_MISSING_SESSION

        marker = donation_marker(session_id)
        if self._ledger.is_processed(marker):
            return DONATION_SUCCESS

        if self._provider is None:
            log_event(logger, logging.ERROR, "donation.provider_unconfigured", session_id=session_id)
            return DONATION_PROCESSING_FAILED

        try:
            session = self._provider.retrieve_session(session_id)
        except Exception as exc:  # noqa: BLE001 - human redirect must always resolve
            log_event(
                logger,
                logging.ERROR,
                "donation.retrieve_failed",
                session_id=session_id,
                error=str(exc),
            )
            return DONATION_PROCESSING_FAILED

        donor_name = session.metadata.get("donorName")
        donor_email = session.metadata.get("donorEmail")
        if (
            session.payment_status != "paid"
            or session.metadata.get("type") != "donation"
            or not donor_name
            or not donor_email
        ):
            log_event(
                logger,
                logging.WARNING,
                "donation.not_settled",
                session_id=session_id,
                payment_status=session.payment_status,
            )
            return DONATION_PAYMENT_FAILED

        try:
            donation_data = DonationCreate(
                donor_name=donor_name,
                donor_email=donor_email,
                amount=minor_to_money(session.amount_total),
                message=session.metadata.get("message") or None,
            )
        except SchemaValidationError as exc:
            log_event(logger, logging.ERROR, "donation.invalid", session_id=session_id, error=str(exc))
            return DONATION_SAVE_FAILED

        if not self._ledger.claim(marker):
            return DONATION_SUCCESS

        try:
            donation = self._store.create_donation(donation_data)
        except Exception as exc:  # noqa: BLE001 - human redirect must always resolve
            log_event(
                logger,
                logging.ERROR,
                "donation.save_failed",
                session_id=session_id,
                error=str(exc),
                traceback=traceback.format_exc(limit=10),
            )
            return DONATION_SAVE_FAILED

        log_event(
            logger,
            logging.INFO,
            "donation.recorded",
            session_id=session_id,
            donation_id=donation.id,
            amount=str(donation.amount),
        )
        return DONATION_SUCCESS
