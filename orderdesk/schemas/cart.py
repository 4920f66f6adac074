from datetime import datetime
from typing import Optional

from pydantic import Field, StrictInt

from orderdesk.schemas.common import CamelModel


class CartItemCreate(CamelModel):
    product_id: str = Field(min_length=1, max_length=120)
    product_name: Optional[str] = Field(default=None, max_length=200)
    price: Optional[str] = Field(default=None, max_length=32)
    category: Optional[str] = Field(default=None, max_length=120)
    image_urls: Optional[list[str]] = None


class CartQuantityIn(CamelModel):
    quantity: StrictInt


class CartItemOut(CamelModel):
    id: str
    product_id: str
    product_name: Optional[str] = None
    price: Optional[str] = None
    category: Optional[str] = None
    image_urls: Optional[list[str]] = None
    quantity: str
    created_at: datetime
