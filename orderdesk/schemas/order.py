from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, EmailStr, Field, StrictInt, field_validator

from orderdesk.schemas.common import CamelModel

MIN_RATING = 1
MAX_RATING = 5
NAME_MAX_LENGTH = 200
EMAIL_MAX_LENGTH = 320
PAYMENT_METHOD_MAX_LENGTH = 60


class OrderCreate(CamelModel):
    customer_name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    customer_email: str = Field(max_length=EMAIL_MAX_LENGTH)
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    payment_method: str = Field(min_length=1, max_length=PAYMENT_METHOD_MAX_LENGTH)
    description: str = Field(min_length=1)

    @field_validator("customer_name", "payment_method", "description")
    @classmethod
    def strip_required(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value is required")
        return cleaned


class OrderCreateIn(OrderCreate):
    customer_email: EmailStr

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "customerName": "Ada Lovelace",
                "customerEmail": "ada@example.com",
                "amount": "120.00",
                "paymentMethod": "Cash App",
                "description": "Discord bot with moderation",
            }
        }
    )


class OrderRatingIn(CamelModel):
    rating: StrictInt


class OrderOut(CamelModel):
    id: str
    order_number: str
    customer_name: str
    customer_email: str
    amount: Decimal
    payment_method: str
    description: str
    rating: Optional[str] = None
    created_at: datetime
