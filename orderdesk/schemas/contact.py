from datetime import datetime

from pydantic import EmailStr, Field

from orderdesk.schemas.common import CamelModel


class ContactSubmissionCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    subject: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)


class ContactSubmissionOut(CamelModel):
    id: str
    name: str
    email: str
    subject: str
    message: str
    created_at: datetime
