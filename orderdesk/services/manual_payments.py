import logging
from dataclasses import dataclass

from orderdesk.core.errors import ConfigurationError, ValidationError
from orderdesk.core.money import format_money, parse_money
from orderdesk.core.observability import log_event
from orderdesk.schemas.order import OrderCreate, OrderOut
from orderdesk.schemas.payments import ManualPaymentIn, PaymentInstructionsOut
from orderdesk.services.email_service import NotificationDispatcher, notify_safely
from orderdesk.services.notifications import NotificationRecipients, order_confirmation_messages
from orderdesk.services.order_store import OrderStore

logger = logging.getLogger("orderdesk.payments")

MANUAL_METHOD_LABELS = {
    "cashapp": "Cash App",
    "crypto": "Cryptocurrency",
}


@dataclass(frozen=True)
class ManualPaymentAccounts:
    cashtag: str
    crypto_wallet: str | None
    crypto_network: str


@dataclass(frozen=True)
class ManualPaymentResult:
    order: OrderOut
    instructions: PaymentInstructionsOut


class ManualPaymentService:
    """Cash App and crypto: the order is recorded up front, payment happens off-platform."""

    def __init__(
        self,
        *,
        store: OrderStore,
        dispatcher: NotificationDispatcher,
        recipients: NotificationRecipients,
        accounts: ManualPaymentAccounts,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._recipients = recipients
        self._accounts = accounts

    def _instructions(self, method: str, amount: str, description: str) -> PaymentInstructionsOut:
        note = f"Order for {description}"
        if method == "cashapp":
            return PaymentInstructionsOut(
                method=MANUAL_METHOD_LABELS[method],
                cashtag=self._accounts.cashtag,
                amount=amount,
                note=note,
            )
        if not self._accounts.crypto_wallet:
            raise ConfigurationError("Crypto payments are not configured")
        return PaymentInstructionsOut(
            method=MANUAL_METHOD_LABELS[method],
            wallet=self._accounts.crypto_wallet,
            network=self._accounts.crypto_network,
            amount=amount,
            note=note,
        )

    def record(self, payload: ManualPaymentIn) -> ManualPaymentResult:
        method = payload.payment_method.strip().lower()
        if method not in MANUAL_METHOD_LABELS:
            raise ValidationError("Invalid payment method")
        amount = parse_money(payload.amount)
        if amount is None or amount <= 0:
            raise ValidationError("Invalid amount. Amount must be a positive number.")

        instructions = self._instructions(method, format_money(amount), payload.description)
        order = self._store.create_order(
            OrderCreate(
                customer_name=payload.customer_name,
                customer_email=str(payload.customer_email),
                amount=amount,
                payment_method=MANUAL_METHOD_LABELS[method],
                description=payload.description,
            )
        )
        log_event(
            logger,
            logging.INFO,
            "manual_payment.order_created",
            order_id=order.id,
            order_number=order.order_number,
            payment_method=order.payment_method,
        )
        notify_safely(
            self._dispatcher,
            order_confirmation_messages(order, self._recipients),
            context=f"order:{order.order_number}",
        )
        return ManualPaymentResult(order=order, instructions=instructions)
