from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from orderdesk.schemas.common import CamelModel


class CustomOrderCreate(CamelModel):
    customer_name: str = Field(min_length=1, max_length=200)
    customer_email: EmailStr
    category: str = Field(min_length=1, max_length=120)
    description: str = Field(min_length=1)
    estimated_price: str = Field(min_length=1, max_length=32)
    payment_method: Optional[str] = Field(default=None, max_length=60)
    image_urls: Optional[list[str]] = None


class CustomOrderOut(CamelModel):
    id: str
    customer_name: str
    customer_email: str
    category: str
    description: str
    estimated_price: str
    payment_method: Optional[str] = None
    image_urls: Optional[list[str]] = None
    status: str
    created_at: datetime
