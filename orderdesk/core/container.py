"""Builds every service once at process start.

Routes never reach for module globals; they receive these objects through
``orderdesk.core.deps``.
"""

from dataclasses import dataclass

from sqlalchemy import Engine
from sqlalchemy.orm import sessionmaker

import orderdesk.models  # noqa: F401
from orderdesk.core.config import Settings
from orderdesk.db.base import Base
from orderdesk.db.session import build_engine, build_session_factory
from orderdesk.services.checkout_service import CheckoutService, CheckoutUrls
from orderdesk.services.email_service import EmailTransport, NotificationDispatcher, build_email_transport
from orderdesk.services.idempotency_ledger import IdempotencyLedger, build_ledger
from orderdesk.services.manual_payments import ManualPaymentAccounts, ManualPaymentService
from orderdesk.services.notifications import NotificationRecipients
from orderdesk.services.order_store import OrderStore, build_order_store
from orderdesk.services.payment_events import PaymentEventProcessor
from orderdesk.services.payment_provider import PaymentProvider, StripePaymentProvider, StubPaymentProvider
from orderdesk.services.paypal_client import PaypalClient
from orderdesk.services.price_estimator import CompletionClient, OpenAICompletionClient, PriceEstimator


@dataclass
class ServiceContainer:
    settings: Settings
    engine: Engine | None
    store: OrderStore
    ledger: IdempotencyLedger
    provider: PaymentProvider | None
    paypal: PaypalClient | None
    dispatcher: NotificationDispatcher
    recipients: NotificationRecipients
    checkout: CheckoutService
    processor: PaymentEventProcessor
    manual_payments: ManualPaymentService
    estimator: PriceEstimator


def build_payment_provider(settings: Settings) -> PaymentProvider | None:
    """Returns None when the selected provider has no credentials (routes answer 503)."""
    if settings.payment_provider == "stub":
        return StubPaymentProvider(
            webhook_secret=settings.stub_webhook_secret,
            publishable_key=settings.stripe_publishable_key or "pk_stub",
        )
    if settings.payment_provider == "stripe":
        if not settings.stripe_secret_key:
            return None
        return StripePaymentProvider(
            secret_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            publishable_key=settings.stripe_publishable_key,
            api_version=settings.stripe_api_version,
            timeout_seconds=settings.provider_timeout_seconds,
        )
    raise ValueError(f"Unknown payment provider '{settings.payment_provider}'. Available: stripe, stub")


def build_paypal_client(settings: Settings) -> PaypalClient | None:
    if not settings.paypal_client_id or not settings.paypal_client_secret:
        return None
    return PaypalClient(
        client_id=settings.paypal_client_id,
        client_secret=settings.paypal_client_secret,
        environment=settings.paypal_env,
        timeout_seconds=settings.provider_timeout_seconds,
    )


def build_completion_client(settings: Settings) -> CompletionClient | None:
    if not settings.ai_api_key:
        return None
    return OpenAICompletionClient(
        api_key=settings.ai_api_key,
        model=settings.ai_model,
        base_url=settings.ai_base_url,
        temperature=settings.ai_temperature,
        timeout_seconds=settings.provider_timeout_seconds,
    )


def build_container(
    settings: Settings,
    *,
    engine: Engine | None = None,
    provider: PaymentProvider | None = None,
    transport: EmailTransport | None = None,
    paypal: PaypalClient | None = None,
    completion_client: CompletionClient | None = None,
) -> ServiceContainer:
    needs_database = "database" in {settings.store_backend, settings.ledger_backend}
    session_factory: sessionmaker | None = None
    if needs_database:
        engine = engine or build_engine(settings)
        session_factory = build_session_factory(engine)
        if settings.auto_create_tables:
            Base.metadata.create_all(bind=engine)

    store = build_order_store(settings.store_backend, session_factory)
    ledger = build_ledger(settings.ledger_backend, session_factory)
    provider = provider if provider is not None else build_payment_provider(settings)
    paypal = paypal if paypal is not None else build_paypal_client(settings)
    completion_client = completion_client if completion_client is not None else build_completion_client(settings)

    dispatcher = NotificationDispatcher(
        transport or build_email_transport(settings),
        sender_email=settings.smtp_sender_email,
        sender_name=settings.email_sender_name,
        reply_to=settings.smtp_reply_to_email,
    )
    recipients = NotificationRecipients(
        business=tuple(settings.business_notification_emails),
        contact_inbox=settings.contact_inbox_email,
    )

    checkout = CheckoutService(
        provider=provider,
        urls=CheckoutUrls(base_url=settings.base_url),
        payment_method_types=tuple(settings.checkout_payment_method_types),
        default_description=settings.checkout_default_description,
        product_description=settings.checkout_product_description,
        donation_description=settings.donation_product_description,
    )
    processor = PaymentEventProcessor(
        provider=provider,
        ledger=ledger,
        store=store,
        dispatcher=dispatcher,
        recipients=recipients,
        default_description=settings.checkout_default_description,
    )
    manual_payments = ManualPaymentService(
        store=store,
        dispatcher=dispatcher,
        recipients=recipients,
        accounts=ManualPaymentAccounts(
            cashtag=settings.cashapp_cashtag,
            crypto_wallet=settings.crypto_wallet_address,
            crypto_network=settings.crypto_network,
        ),
    )

    return ServiceContainer(
        settings=settings,
        engine=engine,
        store=store,
        ledger=ledger,
        provider=provider,
        paypal=paypal,
        dispatcher=dispatcher,
        recipients=recipients,
        checkout=checkout,
        processor=processor,
        manual_payments=manual_payments,
        estimator=PriceEstimator(completion_client, max_price=settings.ai_max_price),
    )
