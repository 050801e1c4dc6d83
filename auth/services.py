# src/auth/services.py
import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session
from jose import jwt
from passlib.context import CryptContext
from datetime import datetime, timedelta
from typing import Optional
from auth.models import User, VerificationToken
from auth.schemas import SignupRequest, SignupResponse, CreateProfileRequest
from profiles.models import Profile
from profiles.services import ProfileService
from config import settings
import smtplib
from email.mime.text import MIMEText
from uuid import uuid4

logger = logging.getLogger(__name__)

TOKEN_LIFETIME = timedelta(days=30)

class AuthService:
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt."""
        return AuthService.pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return AuthService.pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token."""
        to_encode = data.copy()
        expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def get_user_by_email(email: str, db: Session) -> Optional[User]:
        """Retrieve a user by email."""
        return db.query(User).filter(User.email == email.strip().lower()).first()

    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> Optional[User]:
        user = AuthService.get_user_by_email(email, db)
        if not user or not AuthService.verify_password(password, user.password_hash):
            return None
        if not user.email_confirmed:
            raise HTTPException(status_code=403, detail="Please verify your email first")
        return user

    @staticmethod
    def signup(data: SignupRequest, db: Session) -> SignupResponse:
        """Create the account, its profile and an optional referral in one transaction."""
        email = data.email.strip().lower()
        if AuthService.get_user_by_email(email, db):
            raise HTTPException(status_code=400, detail="Email already registered")

        try:
            new_user = User(
                email=email,
                password_hash=AuthService.hash_password(data.password),
                login_method="email",
                email_confirmed=False,
            )
            db.add(new_user)
            db.flush()

            profile = ProfileService.provision_profile(new_user, db, full_name=data.name)
            ProfileService.record_referral(profile, data.referral_code, db)

            token = uuid4().hex
            db.add(VerificationToken(
                user_id=new_user.id, token=token, token_type="verify", expiry=datetime.utcnow() + TOKEN_LIFETIME
            ))
            db.commit()
        except HTTPException:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"Signup failed for {email}: {str(e)}", exc_info=True)
            raise HTTPException(status_code=500, detail="Could not create account")

        AuthService.send_verification_email(email, data.name, token)
        logger.info(f"User {new_user.id} signed up")
        return SignupResponse(message="Account created successfully. Confirmation email sent!", email=email)

    @staticmethod
    def send_verification_email(email: str, name: Optional[str], token: str):
        verify_url = f"{settings.BASE_FRONT_URL}/auth/verify?token={token}"
        body = (
            f"Hello {name or 'there'},\n\n"
            f"Click the link below to confirm your email and activate your account:\n{verify_url}\n\n"
            "If you didn't request this, ignore this email."
        )
        AuthService.send_email(email, "Confirm your Examly account", body)

    @staticmethod
    def resend_verification(email: str, db: Session) -> dict:
        """Replace any pending confirmation link with a fresh one and mail it."""
        user = AuthService.get_user_by_email(email, db)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        if user.email_confirmed:
            raise HTTPException(status_code=400, detail="Email already verified")

        db.query(VerificationToken).filter(
            VerificationToken.user_id == user.id,
            VerificationToken.token_type == "verify"
        ).delete(synchronize_session=False)
        token = uuid4().hex
        db.add(VerificationToken(
            user_id=user.id, token=token, token_type="verify", expiry=datetime.utcnow() + TOKEN_LIFETIME
        ))
        db.commit()

        profile = db.query(Profile).filter(Profile.id == user.id).first()
        AuthService.send_verification_email(user.email, profile.full_name if profile else None, token)
        logger.info(f"Verification email resent to user {user.id}")
        return {"message": "Confirmation email sent"}

    @staticmethod
    def create_profile(user: User, data: CreateProfileRequest, db: Session) -> dict:
        """Provision the caller's profile, or refresh its name if it already exists."""
        profile = db.query(Profile).filter(Profile.id == user.id).first()
        if profile:
            if data.full_name:
                profile.full_name = data.full_name.strip()
                db.commit()
            return {"message": "Profile updated successfully", "role": profile.role}
        profile = ProfileService.provision_profile(user, db, full_name=data.full_name)
        db.commit()
        return {"message": "Profile created successfully", "role": profile.role}

    @staticmethod
    def send_email(to_email: str, subject: str, body: str):
        if not settings.SMTP_SERVER:
            logger.warning(f"SMTP is not configured, skipping '{subject}' email to {to_email}")
            return
        try:
            msg = MIMEText(body)
            msg['Subject'] = subject
            msg['From'] = settings.FROM_EMAIL
            msg['To'] = to_email

            with smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT) as server:
                server.starttls()
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
                server.sendmail(settings.FROM_EMAIL, to_email, msg.as_string())
        except Exception as e:
            logger.error(f"SMTP error sending to {to_email}: {str(e)}", exc_info=True)
            raise HTTPException(status_code=503, detail="Email service temporarily unavailable, try again later")

    @staticmethod
    def verify_email(token: str, db: Session) -> dict:
        ver_token = db.query(VerificationToken).filter(
            VerificationToken.token == token,
            VerificationToken.token_type == "verify",
            VerificationToken.expiry > datetime.utcnow()
        ).first()
        if not ver_token:
            raise HTTPException(status_code=400, detail="Invalid or expired token")

        ver_token.user.email_confirmed = True
        db.delete(ver_token)
        db.commit()
        return {"message": "Email verified. You can now login."}

    @staticmethod
    def send_password_reset(email: str, db: Session):
        user = AuthService.get_user_by_email(email, db)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        token = uuid4().hex
        reset_token = VerificationToken(
            user_id=user.id, token=token, token_type="reset", expiry=datetime.utcnow() + TOKEN_LIFETIME
        )
        db.add(reset_token)
        db.commit()

        reset_url = f"{settings.BASE_FRONT_URL}/auth/reset-password?token={token}"
        AuthService.send_email(user.email, "Reset Your Password", f"Click to reset password: {reset_url}")
        return {"message": "Password reset email sent"}

    @staticmethod
    def reset_password(token: str, new_password: str, db: Session):
        reset_token = db.query(VerificationToken).filter(
            VerificationToken.token == token,
            VerificationToken.token_type == "reset",
            VerificationToken.expiry > datetime.utcnow()
        ).first()
        if not reset_token:
            raise HTTPException(status_code=400, detail="Invalid or expired token")

        reset_token.user.password_hash = AuthService.hash_password(new_password)
        db.delete(reset_token)
        db.commit()
        return {"message": "Password reset successful"}
