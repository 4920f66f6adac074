from typing import Optional

from pydantic import Field

from orderdesk.schemas.common import CamelModel


class PriceEstimateIn(CamelModel):
    category: Optional[str] = None
    description: Optional[str] = None


class PriceEstimateOut(CamelModel):
    price: int = Field(ge=0)
    difficulty: str
    estimated_days: str
    difficulty_level: int = Field(ge=0, le=5)
