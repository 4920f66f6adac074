from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from orderdesk.db.base import Base


class CartItem(Base):
    __tablename__ = "cart_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    product_id: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    price: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    image_urls: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    quantity: Mapped[str] = mapped_column(String(12), nullable=False, default="1", server_default="1")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
