# src/auth/models.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime

class User(Base):
    """Represents an authentication account. Business fields live on Profile."""
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    email: str = Column(String, unique=True, index=True, nullable=False)
    password_hash: str = Column(String, nullable=False)
    login_method: str = Column(String, nullable=False, default="email")
    email_confirmed: bool = Column(Boolean, nullable=False, default=False)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    tokens = relationship("VerificationToken", back_populates="user", cascade="all, delete-orphan")
    admin_actions = relationship("AdminActionLog", back_populates="admin", cascade="all, delete-orphan")

class VerificationToken(Base):
    """One-time token for email confirmation or password reset."""
    __tablename__ = "verification_tokens"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token: str = Column(String, unique=True, index=True, nullable=False)
    token_type: str = Column(String, nullable=False)  # verify, reset
    expiry: datetime = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="tokens")

class AdminActionLog(Base):
    """Represents a log of admin actions."""
    __tablename__ = "admin_action_logs"

    id: int = Column(Integer, primary_key=True, index=True)
    admin_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    action: str = Column(String, nullable=False)
    timestamp: datetime = Column(DateTime, nullable=False, default=datetime.utcnow)

    admin = relationship("User", back_populates="admin_actions")
