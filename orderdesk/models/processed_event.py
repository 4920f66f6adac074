from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from orderdesk.db.base import Base


class ProcessedEvent(Base):
    __tablename__ = "processed_events"

    # Primary key doubles as the storage-level duplicate guard.
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
