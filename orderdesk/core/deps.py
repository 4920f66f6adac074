from fastapi import Depends, Request

from orderdesk.core.container import ServiceContainer
from orderdesk.core.errors import ConfigurationError
from orderdesk.services.checkout_service import CheckoutService
from orderdesk.services.email_service import NotificationDispatcher
from orderdesk.services.manual_payments import ManualPaymentService
from orderdesk.services.notifications import NotificationRecipients
from orderdesk.services.order_store import OrderStore
from orderdesk.services.payment_events import PaymentEventProcessor
from orderdesk.services.paypal_client import PaypalClient
from orderdesk.services.price_estimator import PriceEstimator


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_store(container: ServiceContainer = Depends(get_container)) -> OrderStore:
    return container.store


def get_dispatcher(container: ServiceContainer = Depends(get_container)) -> NotificationDispatcher:
    return container.dispatcher


def get_recipients(container: ServiceContainer = Depends(get_container)) -> NotificationRecipients:
    return container.recipients


def get_checkout_service(container: ServiceContainer = Depends(get_container)) -> CheckoutService:
    return container.checkout


def get_payment_event_processor(container: ServiceContainer = Depends(get_container)) -> PaymentEventProcessor:
    return container.processor


def get_manual_payment_service(container: ServiceContainer = Depends(get_container)) -> ManualPaymentService:
    return container.manual_payments


def get_price_estimator(container: ServiceContainer = Depends(get_container)) -> PriceEstimator:
    return container.estimator


def get_paypal_client(container: ServiceContainer = Depends(get_container)) -> PaypalClient:
    if container.paypal is None:
        raise ConfigurationError("PayPal is not configured")
    return container.paypal
