# src/subscription/schemas.py
from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional, Union
from subscription.models import PACKAGE_TYPES

class PackageResponse(BaseModel):
    """Schema for package response."""
    id: int
    name: str
    type: str
    price: float
    duration_days: Optional[int]
    paper_quantity: Optional[int]
    description: Optional[str]
    is_active: bool

    class Config:
        from_attributes = True

class PackageCreate(BaseModel):
    """Schema for creating a package."""
    name: str
    type: str
    price: float = 0
    duration_days: Optional[int] = None
    paper_quantity: Optional[int] = None
    description: Optional[str] = None
    is_active: bool = True

    @field_validator("type")
    @classmethod
    def known_type(cls, v: str) -> str:
        if v not in PACKAGE_TYPES:
            raise ValueError(f"type must be one of {', '.join(PACKAGE_TYPES)}")
        return v

class PackageUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    price: Optional[float] = None
    duration_days: Optional[int] = None
    paper_quantity: Optional[int] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("type")
    @classmethod
    def known_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in PACKAGE_TYPES:
            raise ValueError(f"type must be one of {', '.join(PACKAGE_TYPES)}")
        return v

class SubscriptionCreate(BaseModel):
    """Schema for a subscription request."""
    package_id: int

class UserPackageResponse(BaseModel):
    """Schema for a user's package, pending or approved."""
    id: int
    user_id: int
    package_id: int
    is_active: bool
    is_trial: bool
    expires_at: Optional[datetime]
    papers_remaining: Optional[int]
    approved_at: Optional[datetime]
    created_at: datetime
    package: Optional[PackageResponse] = None

    class Config:
        from_attributes = True

class OrderResponse(UserPackageResponse):
    """A pending order as the admin sees it."""
    full_name: Optional[str] = None
    email: Optional[str] = None
    cellno: Optional[str] = None

class OrderAction(BaseModel):
    action: str

    @field_validator("action")
    @classmethod
    def lower(cls, v: str) -> str:
        return (v or "").strip().lower()

class TrialStatusResponse(BaseModel):
    isTrial: bool
    trialEndsAt: Optional[datetime]
    daysRemaining: int
    hasActiveSubscription: bool
    papersGenerated: int
    papersRemaining: Union[int, str]
    subscriptionName: Optional[str]
    subscriptionType: Optional[str]
    subscriptionEndDate: Optional[datetime]
    hasCellno: bool
    trialEligible: bool
    referral_code: Optional[str]
    message: Optional[str]

class TrialStartResponse(BaseModel):
    message: str
    trial_ends_at: datetime
    referrer_rewarded: bool
