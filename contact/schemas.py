# src/contact/schemas.py
from pydantic import BaseModel, EmailStr, field_validator
from pydantic_core import PydanticCustomError
from typing import Optional

class ContactRequest(BaseModel):
    """Schema for a contact form submission."""
    name: str
    email: EmailStr
    subject: str
    message: str
    userType: str
    phone: Optional[str] = None

    @field_validator("name", "email", "subject", "message", "userType", mode="before")
    @classmethod
    def not_blank(cls, v):
        v = str(v or "").strip()
        if not v:
            raise PydanticCustomError("blank", "field cannot be empty")
        return v

    @field_validator("phone", mode="before")
    @classmethod
    def blank_phone(cls, v):
        v = str(v or "").strip()
        return v or None
