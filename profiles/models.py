# src/profiles/models.py
from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from typing import Optional

ROLES = ("student", "teacher", "academy", "admin", "super_admin")
ADMIN_ROLES = ("admin", "super_admin")

class Profile(Base):
    """Business profile of an account: role, trial and subscription fields, counters."""
    __tablename__ = "profiles"

    id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    full_name: Optional[str] = Column(String, nullable=True)
    email: str = Column(String, index=True, nullable=False)
    cellno: Optional[str] = Column(String, unique=True, nullable=True)
    role: str = Column(String, nullable=False, default="teacher")
    subscription_status: str = Column(String, nullable=False, default="inactive")  # inactive, active, trial
    trial_given: bool = Column(Boolean, nullable=False, default=False)
    trial_ends_at: Optional[datetime] = Column(DateTime, nullable=True)
    papers_generated: int = Column(Integer, nullable=False, default=0)
    referral_code: str = Column(String(8), unique=True, index=True, nullable=False)
    referred_by_code: Optional[str] = Column(String(8), nullable=True)
    institution: Optional[str] = Column(String, nullable=True)
    logo: Optional[str] = Column(String, nullable=True)
    login_method: str = Column(String, nullable=False, default="email")
    created_at: datetime = Column(DateTime, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="profile")
    user_packages = relationship("UserPackage", back_populates="profile", cascade="all, delete-orphan",
                                 order_by="desc(UserPackage.created_at)")
    papers = relationship("Paper", back_populates="creator", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

class Referral(Base):
    """Links a referrer to a user who signed up with their code."""
    __tablename__ = "referrals"

    id: int = Column(Integer, primary_key=True, index=True)
    referrer_id: int = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    referred_user_id: int = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    reward_given: bool = Column(Boolean, nullable=False, default=False)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    referrer = relationship("Profile", foreign_keys=[referrer_id])
    referred_user = relationship("Profile", foreign_keys=[referred_user_id])

    __table_args__ = (UniqueConstraint('referred_user_id', name='unique_referred_user'),)
