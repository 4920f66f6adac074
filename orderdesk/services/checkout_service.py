import logging
from dataclasses import dataclass
from decimal import Decimal

from orderdesk.core.errors import ConfigurationError, ValidationError
from orderdesk.core.money import format_money, minor_to_money, money_to_minor, parse_money
from orderdesk.core.observability import log_event
from orderdesk.services.payment_provider import (
    SESSION_PLACEHOLDER,
    CheckoutSessionRequest,
    CheckoutSessionResult,
    PaymentProvider,
)

logger = logging.getLogger("orderdesk.payments")

MIN_DONATION = Decimal("1.00")


@dataclass(frozen=True)
class CheckoutIntent:
    amount: object
    currency: str = "usd"
    description: str | None = None
    customer_email: str | None = None
    customer_name: str | None = None


@dataclass(frozen=True)
class DonationIntent:
    donor_name: str
    donor_email: str
    amount: object
    message: str | None = None


@dataclass(frozen=True)
class SessionStatus:
    status: str | None
    customer_email: str | None
    amount_total: Decimal


@dataclass(frozen=True)
class CheckoutUrls:
    base_url: str

    def _join(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"

    @property
    def order_success(self) -> str:
        return self._join(f"/orders?session_id={SESSION_PLACEHOLDER}&payment_success=true")

    @property
    def order_cancel(self) -> str:
        return self._join("/custom-order?payment_cancelled=true")

    @property
    def donation_success(self) -> str:
        return self._join(f"/stripe/donation-success?session_id={SESSION_PLACEHOLDER}")

    @property
    def donation_cancel(self) -> str:
        return self._join("/?donation_cancelled=true")


class CheckoutService:
    def __init__(
        self,
        *,
        provider: PaymentProvider | None,
        urls: CheckoutUrls,
        payment_method_types: tuple[str, ...],
        default_description: str,
        product_description: str,
        donation_description: str,
    ):
        self._provider = provider
        self._urls = urls
        self._payment_method_types = payment_method_types
        self._default_description = default_description
        self._product_description = product_description
        self._donation_description = donation_description

    def _require_provider(self) -> PaymentProvider:
        if self._provider is None:
            raise ConfigurationError("Stripe is not configured. Please set up Stripe credentials.")
        return self._provider

    def publishable_key(self) -> str:
        provider = self._require_provider()
        if not provider.publishable_key:
            raise ConfigurationError("Stripe is not configured.")
        return provider.publishable_key

    def create_checkout(self, intent: CheckoutIntent) -> CheckoutSessionResult:
        provider = self._require_provider()
        amount = parse_money(intent.amount)
        if amount is None or amount <= 0:
            raise ValidationError("Invalid amount. Amount must be a positive number.")

        description = (intent.description or "").strip()
        result = provider.create_checkout_session(
            CheckoutSessionRequest(
                amount_minor=money_to_minor(amount),
                currency=(intent.currency or "usd").lower(),
                product_name=description or self._default_description,
                product_description=self._product_description,
                success_url=self._urls.order_success,
                cancel_url=self._urls.order_cancel,
                payment_method_types=self._payment_method_types,
                customer_email=intent.customer_email or None,
                metadata={
                    "customerName": intent.customer_name or "",
                    "customerEmail": intent.customer_email or "",
                    "description": description,
                },
            )
        )
        log_event(
            logger,
            logging.INFO,
            "checkout.session_created",
            provider=result.provider,
            session_id=result.session_id,
            amount=format_money(amount),
        )
        return result

    def create_donation_checkout(self, intent: DonationIntent) -> CheckoutSessionResult:
        provider = self._require_provider()
        amount = parse_money(intent.amount)
        if amount is None or amount < MIN_DONATION:
            raise ValidationError("Invalid amount. Minimum donation is $1.")

        result = provider.create_checkout_session(
            CheckoutSessionRequest(
                amount_minor=money_to_minor(amount),
                currency="usd",
                product_name=f"Donation from {intent.donor_name}",
                product_description=self._donation_description,
                success_url=self._urls.donation_success,
                cancel_url=self._urls.donation_cancel,
                payment_method_types=self._payment_method_types,
                customer_email=intent.donor_email,
                metadata={
                    "type": "donation",
                    "donorName": intent.donor_name,
                    "donorEmail": intent.donor_email,
                    "amount": format_money(amount),
                    "message": intent.message or "",
                },
            )
        )
        log_event(
            logger,
            logging.INFO,
            "checkout.donation_session_created",
            provider=result.provider,
            session_id=result.session_id,
            amount=format_money(amount),
        )
        return result

    def session_status(self, session_id: str) -> SessionStatus:
        provider = self._require_provider()
        session = provider.retrieve_session(session_id)
        return SessionStatus(
            status=session.payment_status,
            customer_email=session.customer_email or session.customer_details_email,
            amount_total=minor_to_money(session.amount_total),
        )
