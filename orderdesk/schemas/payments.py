from typing import Optional

from pydantic import EmailStr, Field

from orderdesk.schemas.checkout import AmountIn
from orderdesk.schemas.common import CamelModel
from orderdesk.schemas.order import OrderOut


class ManualPaymentIn(CamelModel):
    payment_method: str
    customer_name: str = Field(min_length=1, max_length=200)
    customer_email: EmailStr
    amount: AmountIn = None
    description: str = Field(min_length=1)


class PaymentInstructionsOut(CamelModel):
    method: str
    amount: str
    note: str
    cashtag: Optional[str] = None
    wallet: Optional[str] = None
    network: Optional[str] = None


class ManualPaymentOut(CamelModel):
    success: bool
    order: OrderOut
    payment_instructions: PaymentInstructionsOut


class PaypalOrderCreateIn(CamelModel):
    amount: AmountIn = None
    currency: str = Field(default="USD", min_length=3, max_length=3)
    intent: str = "CAPTURE"


class PaypalSetupOut(CamelModel):
    client_token: str
