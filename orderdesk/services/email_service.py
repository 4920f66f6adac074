import html
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import Literal, Protocol

from orderdesk.core.config import Settings
from orderdesk.core.errors import NotificationError
from orderdesk.core.observability import log_event

logger = logging.getLogger("orderdesk.email")

EmailDeliveryStatus = Literal["sent", "logged"]
SMTP_TIMEOUT_SECONDS = 20


@dataclass(frozen=True)
class OutboundEmail:
    to: str
    subject: str
    text: str
    html: str | None = None


@dataclass(frozen=True)
class EmailDeliveryResult:
    status: EmailDeliveryStatus
    detail: str | None = None


def text_to_html(text: str) -> str:
    return html.escape(text, quote=False).replace("\n", "<br>")


class EmailTransport(Protocol):
    name: str

    def deliver(self, message: EmailMessage) -> EmailDeliveryStatus:
        ...


class SmtpEmailTransport:
    name = "smtp"

    def __init__(self, settings: Settings):
        self._settings = settings

    def deliver(self, message: EmailMessage) -> EmailDeliveryStatus:
        settings = self._settings
        if settings.smtp_use_ssl:
            with smtplib.SMTP_SSL(
                settings.smtp_host,
                settings.smtp_port,
                timeout=SMTP_TIMEOUT_SECONDS,
            ) as server:
                if settings.smtp_username:
                    server.login(settings.smtp_username, settings.smtp_password or "")
                server.send_message(message)
        else:
            with smtplib.SMTP(
                settings.smtp_host,
                settings.smtp_port,
                timeout=SMTP_TIMEOUT_SECONDS,
            ) as server:
                if settings.smtp_use_starttls:
                    server.starttls()
                if settings.smtp_username:
                    server.login(settings.smtp_username, settings.smtp_password or "")
                server.send_message(message)
        return "sent"


class LoggingEmailTransport:
    """Used when SMTP is not configured so local runs still show outgoing mail."""

    name = "log"

    def deliver(self, message: EmailMessage) -> EmailDeliveryStatus:
        log_event(
            logger,
            logging.INFO,
            "email.logged",
            to=message["To"],
            subject=message["Subject"],
        )
        return "logged"


def smtp_configured(settings: Settings) -> bool:
    return bool(settings.smtp_host and settings.smtp_sender_email)


def build_email_transport(settings: Settings) -> EmailTransport:
    if smtp_configured(settings):
        return SmtpEmailTransport(settings)
    return LoggingEmailTransport()


class NotificationDispatcher:
    """Sends one structured message per call.

    Failures are logged with recipient and subject and re-raised as
    ``NotificationError``; callers that must not fail go through
    ``notify_safely``.
    """

    def __init__(self, transport: EmailTransport, *, sender_email: str | None, sender_name: str, reply_to: str | None = None):
        self._transport = transport
        self._sender_email = sender_email or "noreply@localhost"
        self._sender_name = sender_name
        self._reply_to = reply_to

    @property
    def transport(self) -> EmailTransport:
        return self._transport

    def _build_message(self, outbound: OutboundEmail) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = outbound.subject
        message["From"] = formataddr((self._sender_name, self._sender_email))
        message["To"] = outbound.to
        if self._reply_to:
            message["Reply-To"] = self._reply_to
        message.set_content(outbound.text)
        message.add_alternative(outbound.html or text_to_html(outbound.text), subtype="html")
        return message

    def send(self, outbound: OutboundEmail) -> EmailDeliveryResult:
        try:
            status = self._transport.deliver(self._build_message(outbound))
        except Exception as exc:  # noqa: BLE001 - transports raise smtplib/socket/ssl errors
            log_event(
                logger,
                logging.ERROR,
                "email.failed",
                to=outbound.to,
                subject=outbound.subject,
                transport=self._transport.name,
                error=str(exc),
            )
            raise NotificationError(str(exc), recipient=outbound.to, subject=outbound.subject) from exc

        log_event(
            logger,
            logging.INFO,
            "email.sent",
            to=outbound.to,
            subject=outbound.subject,
            transport=self._transport.name,
            status=status,
        )
        return EmailDeliveryResult(status=status)


def notify_safely(dispatcher: NotificationDispatcher, messages: list[OutboundEmail], *, context: str) -> bool:
    """Best-effort delivery: every message is attempted, failures only logged."""
    delivered = True
    for outbound in messages:
        try:
            dispatcher.send(outbound)
        except NotificationError as exc:
            delivered = False
            log_event(
                logger,
                logging.WARNING,
                "notification.skipped",
                context=context,
                to=exc.recipient,
                subject=exc.subject,
            )
    return delivered


def escape(value: object) -> str:
    return html.escape(str(value), quote=True)
