# src/profiles/schemas.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List
from subscription.schemas import UserPackageResponse

class ProfileResponse(BaseModel):
    """Schema for profile response."""
    id: int
    full_name: Optional[str]
    email: str
    cellno: Optional[str]
    role: str
    subscription_status: str
    trial_given: bool
    trial_ends_at: Optional[datetime]
    papers_generated: int
    referral_code: str
    institution: Optional[str]
    logo: Optional[str]
    login_method: str
    created_at: datetime

    class Config:
        from_attributes = True

class ProfileWithPackages(BaseModel):
    profile: ProfileResponse
    user_packages: List[UserPackageResponse]

class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    full_name: Optional[str] = None
    institution: Optional[str] = None
    cellno: Optional[str] = None

class CellnoCheck(BaseModel):
    cellno: str

class InstitutionResponse(BaseModel):
    institution: Optional[str]

    class Config:
        from_attributes = True
