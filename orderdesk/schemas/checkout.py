from decimal import Decimal
from typing import Optional, Union

from pydantic import ConfigDict, EmailStr, Field

from orderdesk.schemas.common import CamelModel
from orderdesk.schemas.order import NAME_MAX_LENGTH

AmountIn = Union[str, float, int, None]

# Stripe rejects metadata values longer than this.
METADATA_VALUE_MAX_LENGTH = 500


class CheckoutSessionCreateIn(CamelModel):
    amount: AmountIn = None
    currency: str = Field(default="usd", min_length=3, max_length=3)
    description: Optional[str] = Field(default=None, max_length=METADATA_VALUE_MAX_LENGTH)
    customer_email: Optional[EmailStr] = None
    customer_name: Optional[str] = Field(default=None, max_length=NAME_MAX_LENGTH)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "amount": "49.99",
                "currency": "usd",
                "description": "Discord bot setup",
                "customerEmail": "ada@example.com",
                "customerName": "Ada Lovelace",
            }
        }
    )


class CheckoutSessionCreateOut(CamelModel):
    session_id: str
    url: Optional[str] = None


class CheckoutSessionStatusOut(CamelModel):
    status: Optional[str] = None
    customer_email: Optional[str] = None
    amount_total: Decimal


class DonationCheckoutIn(CamelModel):
    donor_name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    donor_email: EmailStr
    amount: AmountIn = None
    message: Optional[str] = Field(default=None, max_length=METADATA_VALUE_MAX_LENGTH)


class StripeConfigOut(CamelModel):
    publishable_key: str


class WebhookAckOut(CamelModel):
    received: bool
    duplicate: bool = False
    message: Optional[str] = None
    order_number: Optional[str] = None
