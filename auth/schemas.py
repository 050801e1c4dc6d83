# src/auth/schemas.py
from pydantic import BaseModel, EmailStr, field_validator
from datetime import datetime
from typing import Optional

class SignupRequest(BaseModel):
    """Schema for email/password signup."""
    name: str
    email: EmailStr
    password: str
    referral_code: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("password")
    @classmethod
    def password_min_len(cls, v: str) -> str:
        if v is None or len(v.strip()) < 6:
            raise ValueError("password must be at least 6 characters")
        return v.strip()

class SignupResponse(BaseModel):
    message: str
    email: str

class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str

class Token(BaseModel):
    """Schema for token response."""
    access_token: str
    token_type: str
    role: str

class CreateProfileRequest(BaseModel):
    full_name: Optional[str] = None

class AdminActionLogResponse(BaseModel):
    """Schema for admin action log response."""
    id: int
    admin_id: int
    action: str
    timestamp: datetime

    class Config:
        from_attributes = True

class ResendVerificationRequest(BaseModel):
    email: EmailStr

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_min_len(cls, v: str) -> str:
        if v is None or len(v) < 6:
            raise ValueError("password must be at least 6 characters")
        return v
