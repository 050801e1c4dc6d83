# src/subscription/models.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Numeric, Text
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from typing import Optional

PACKAGE_TYPES = ("papers", "paper_pack", "subscription", "trial")
METERED_PACKAGE_TYPES = ("paper_pack",)

class Package(Base):
    """A purchasable plan definition."""
    __tablename__ = "packages"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String, nullable=False)
    type: str = Column(String, nullable=False)  # papers, paper_pack, subscription, trial
    price: float = Column(Numeric(10, 2), nullable=False, default=0)
    duration_days: Optional[int] = Column(Integer, nullable=True)
    paper_quantity: Optional[int] = Column(Integer, nullable=True)
    description: Optional[str] = Column(Text, nullable=True)
    is_active: bool = Column(Boolean, nullable=False, default=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    user_packages = relationship("UserPackage", back_populates="package")

class UserPackage(Base):
    """A user holding, or requesting, a package. Pending until an admin approves it."""
    __tablename__ = "user_packages"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: int = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), index=True, nullable=False)
    package_id: int = Column(Integer, ForeignKey("packages.id", ondelete="RESTRICT"), nullable=False)
    is_active: bool = Column(Boolean, nullable=False, default=False)
    is_trial: bool = Column(Boolean, nullable=False, default=False)
    expires_at: Optional[datetime] = Column(DateTime, nullable=True)
    papers_remaining: Optional[int] = Column(Integer, nullable=True)  # NULL means unlimited
    approved_at: Optional[datetime] = Column(DateTime, nullable=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    profile = relationship("Profile", back_populates="user_packages")
    package = relationship("Package", back_populates="user_packages")

    @property
    def is_pending(self) -> bool:
        return not self.is_active and self.approved_at is None

    def is_live(self, now: datetime) -> bool:
        return self.is_active and (self.expires_at is None or self.expires_at > now)
