# src/admin/schemas.py
from pydantic import BaseModel, EmailStr, field_validator
from datetime import datetime
from typing import Optional, List, Dict
from profiles.models import ROLES

SUBSCRIPTION_STATUSES = ("inactive", "active", "trial")

class MonthCount(BaseModel):
    month: str
    label: str
    count: int

class SubjectCount(BaseModel):
    subject: str
    count: int

class DashboardResponse(BaseModel):
    """Schema for admin dashboard statistics."""
    teacherCount: int
    studentCount: int
    academyCount: int
    paperCount: int
    questionCount: int
    pendingOrders: int
    papersByMonth: List[MonthCount]
    questionsBySubject: List[SubjectCount]
    usersByStatus: Dict[str, int]

class AdminProfileCreate(BaseModel):
    """Schema for an admin creating an account with its profile."""
    full_name: str
    email: EmailStr
    password: Optional[str] = None
    role: str = "student"
    subscription_status: str = "inactive"
    cellno: Optional[str] = None
    institution: Optional[str] = None
    package_id: Optional[int] = None

    @field_validator("role")
    @classmethod
    def known_role(cls, v: str) -> str:
        if v not in ROLES:
            raise ValueError(f"role must be one of {', '.join(ROLES)}")
        return v

    @field_validator("subscription_status")
    @classmethod
    def known_status(cls, v: str) -> str:
        if v not in SUBSCRIPTION_STATUSES:
            raise ValueError(f"subscription_status must be one of {', '.join(SUBSCRIPTION_STATUSES)}")
        return v

class AdminProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[str] = None
    subscription_status: Optional[str] = None
    cellno: Optional[str] = None
    institution: Optional[str] = None
    trial_given: Optional[bool] = None
    trial_ends_at: Optional[datetime] = None

    @field_validator("role")
    @classmethod
    def known_role(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ROLES:
            raise ValueError(f"role must be one of {', '.join(ROLES)}")
        return v

    @field_validator("subscription_status")
    @classmethod
    def known_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in SUBSCRIPTION_STATUSES:
            raise ValueError(f"subscription_status must be one of {', '.join(SUBSCRIPTION_STATUSES)}")
        return v
