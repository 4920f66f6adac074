from dataclasses import dataclass

from orderdesk.core.money import format_money
from orderdesk.schemas.contact import ContactSubmissionOut
from orderdesk.schemas.custom_order import CustomOrderOut
from orderdesk.schemas.order import OrderOut
from orderdesk.services.email_service import OutboundEmail, escape

BRAND = "Project V8"
TEAM_SIGNATURE = "DriftV8 Team"
PLATFORM_FOOTER = "Project V8 Payment Platform"


@dataclass(frozen=True)
class NotificationRecipients:
    business: tuple[str, ...]
    contact_inbox: str | None

    @property
    def contact(self) -> tuple[str, ...]:
        if self.contact_inbox:
            return (self.contact_inbox,)
        return self.business


def _detail_rows(rows: list[tuple[str, str]]) -> str:
    return "".join(
        f'<tr><td style="padding:8px 0;"><strong>{escape(label)}:</strong></td>'
        f'<td style="padding:8px 0;">{escape(value)}</td></tr>'
        for label, value in rows
    )


def _html_card(title: str, subtitle: str, intro: str, rows: list[tuple[str, str]], outro: str) -> str:
    return (
        "<!DOCTYPE html><html><body style=\"font-family: Arial, sans-serif; color: #333;\">"
        "<div style=\"max-width: 600px; margin: 0 auto; padding: 20px;\">"
        f"<h1>{escape(title)}</h1><p>{escape(subtitle)}</p>"
        f"<p>{escape(intro)}</p>"
        f"<table style=\"width:100%;\">{_detail_rows(rows)}</table>"
        f"<p>{escape(outro)}</p>"
        f"<p style=\"color:#666; font-size:12px;\">{escape(PLATFORM_FOOTER)}</p>"
        "</div></body></html>"
    )


def order_confirmation_messages(order: OrderOut, recipients: NotificationRecipients) -> list[OutboundEmail]:
    amount = format_money(order.amount)
    rows = [
        ("Order Number", order.order_number),
        ("Description", order.description),
        ("Payment Method", order.payment_method),
        ("Total Amount", f"${amount}"),
    ]
    messages: list[OutboundEmail] = []

    if order.customer_email:
        text = "\n".join(
            [
                f"Hello {order.customer_name},",
                "",
                "Your order has been successfully confirmed!",
                "",
                "Order Details:",
                "--------------",
                *(f"{label}: {value}" for label, value in rows),
                "",
                "We appreciate your business! If you have any questions about your order, "
                "please don't hesitate to contact us.",
                "",
                "Best regards,",
                TEAM_SIGNATURE,
                "",
                "---",
                PLATFORM_FOOTER,
                "This is an automated confirmation email.",
            ]
        )
        messages.append(
            OutboundEmail(
                to=order.customer_email,
                subject=f"Order Confirmation #{order.order_number} - {BRAND}",
                text=text,
                html=_html_card(
                    "Order Confirmed",
                    f"Order #{order.order_number}",
                    f"Hello {order.customer_name}, your order has been successfully confirmed!",
                    rows,
                    "We appreciate your business!",
                ),
            )
        )

    business_rows = [
        ("Customer Name", order.customer_name),
        ("Customer Email", order.customer_email or "(not provided)"),
        *rows,
    ]
    business_text = "\n".join(
        [
            "NEW ORDER RECEIVED",
            "",
            *(f"{label}: {value}" for label, value in business_rows),
            "",
            "---",
            f"{PLATFORM_FOOTER} - Order Notification",
        ]
    )
    business_html = _html_card(
        "New Order Received",
        f"Order #{order.order_number}",
        f"A new paid order has been placed on {BRAND}.",
        business_rows,
        "Please begin work on this order.",
    )
    for address in recipients.business:
        messages.append(
            OutboundEmail(
                to=address,
                subject=f"New Order #{order.order_number} - ${amount} - {BRAND}",
                text=business_text,
                html=business_html,
            )
        )
    return messages


def custom_order_messages(custom_order: CustomOrderOut, recipients: NotificationRecipients) -> list[OutboundEmail]:
    rows = [
        ("Customer Name", custom_order.customer_name),
        ("Customer Email", custom_order.customer_email),
        ("Category", custom_order.category),
        ("Estimated Price", f"${custom_order.estimated_price}"),
        ("Description", custom_order.description),
    ]
    business_text = "\n".join(
        [
            "NEW CUSTOM ORDER REQUEST",
            f"Category: {custom_order.category}",
            "",
            *(f"{label}: {value}" for label, value in rows),
            "",
            "ACTION REQUIRED: Please review this request and contact the customer to discuss "
            "the project details and finalize pricing.",
            "",
            "---",
            f"{PLATFORM_FOOTER} - Custom Order Notification",
            "This is an automated notification email.",
        ]
    )
    business_html = _html_card(
        "New Custom Order Request",
        custom_order.category,
        f"A new custom order request has been submitted on {BRAND}!",
        rows,
        "Action Required: Please review this request and contact the customer.",
    )
    messages = [
        OutboundEmail(
            to=address,
            subject=f"New Custom Order: {custom_order.category} - {BRAND}",
            text=business_text,
            html=business_html,
        )
        for address in recipients.business
    ]
    messages.append(
        OutboundEmail(
            to=custom_order.customer_email,
            subject=f"Custom Order Received - {BRAND}",
            text="\n".join(
                [
                    f"Hello {custom_order.customer_name},",
                    "",
                    "Thank you for your custom order request! We've received the following details:",
                    "",
                    f"Category: {custom_order.category}",
                    f"Estimated Price: ${custom_order.estimated_price} (excluding VAT/BTW)",
                    "",
                    "Description:",
                    custom_order.description,
                    "",
                    "We'll review your request and get back to you shortly with a detailed quote and timeline.",
                    "",
                    "Best regards,",
                    TEAM_SIGNATURE,
                    "",
                    "---",
                    PLATFORM_FOOTER,
                ]
            ),
        )
    )
    return messages


def contact_messages(submission: ContactSubmissionOut, recipients: NotificationRecipients) -> list[OutboundEmail]:
    business_text = "\n".join(
        [
            f"New contact form submission from {BRAND}:",
            "",
            f"Name: {submission.name}",
            f"Email: {submission.email}",
            f"Subject: {submission.subject}",
            "",
            "Message:",
            submission.message,
            "",
            "---",
            f"This is an automated notification from {PLATFORM_FOOTER}.",
        ]
    )
    messages = [
        OutboundEmail(
            to=address,
            subject=f"New Contact Form: {submission.subject}",
            text=business_text,
        )
        for address in recipients.contact
    ]
    messages.append(
        OutboundEmail(
            to=submission.email,
            subject=f"We received your message - {BRAND}",
            text="\n".join(
                [
                    f"Hello {submission.name},",
                    "",
                    "Thank you for contacting us! We've received your message and will get back to you shortly.",
                    "",
                    "Your message:",
                    submission.message,
                    "",
                    "Best regards,",
                    TEAM_SIGNATURE,
                    "",
                    "---",
                    PLATFORM_FOOTER,
                ]
            ),
        )
    )
    return messages
