from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import EmailStr, Field

from orderdesk.schemas.common import CamelModel
from orderdesk.schemas.order import NAME_MAX_LENGTH


class DonationCreate(CamelModel):
    donor_name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    donor_email: EmailStr
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    message: Optional[str] = None


class DonationOut(CamelModel):
    id: str
    donor_name: str
    donor_email: str
    amount: Decimal
    message: Optional[str] = None
    created_at: datetime
