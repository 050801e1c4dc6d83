# src/auth/routes.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import jwt, JWTError
from datetime import timedelta, datetime
from auth.services import AuthService
from auth.schemas import (
    SignupRequest, SignupResponse, UserLogin, Token, CreateProfileRequest,
    ForgotPasswordRequest, ResetPasswordRequest, ResendVerificationRequest
)
from auth.models import User
from profiles.models import Profile
from profiles.services import ProfileService
from config import settings
from database import get_db

router = APIRouter(prefix="/api/auth", tags=["auth"])
bearer_scheme = HTTPBearer(auto_error=False)

def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme), db: Session = Depends(get_db)) -> User:
    """Retrieve the current authenticated user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        email: str = payload.get("sub")
        if email is None:
            raise credentials_exception
        exp = payload.get("exp")
        if exp is None or datetime.utcfromtimestamp(exp) < datetime.utcnow():
            raise credentials_exception
    except JWTError:
        raise credentials_exception
    user = AuthService.get_user_by_email(email, db)
    if user is None:
        raise credentials_exception
    return user

def get_current_profile(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Profile:
    """Profile of the authenticated user, provisioned on first access if missing."""
    return ProfileService.get_or_provision(current_user, db)

def check_admin_role(current_profile: Profile = Depends(get_current_profile)) -> Profile:
    """Ensure the user has an admin role."""
    if not current_profile.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_profile

@router.post("/signup", response_model=SignupResponse)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    """Register a new account with its profile."""
    return AuthService.signup(data, db)

@router.post("/login", response_model=Token)
def login(user: UserLogin, db: Session = Depends(get_db)):
    """Login and return a JWT token."""
    authenticated_user = AuthService.authenticate_user(user.email, user.password, db)
    if not authenticated_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    profile = ProfileService.get_or_provision(authenticated_user, db)
    access_token = AuthService.create_access_token(
        data={"sub": authenticated_user.email},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": access_token, "token_type": "bearer", "role": profile.role}

@router.post("/create-profile")
def create_profile(
    data: CreateProfileRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return AuthService.create_profile(current_user, data, db)

@router.get("/verify")
def verify_email(token: str, db: Session = Depends(get_db)):
    return AuthService.verify_email(token, db)

@router.post("/resend-verification")
def resend_verification(req: ResendVerificationRequest, db: Session = Depends(get_db)):
    """Send a new confirmation link to an unverified account."""
    return AuthService.resend_verification(req.email, db)

@router.post("/forgot-password")
def forgot_password(req: ForgotPasswordRequest, db: Session = Depends(get_db)):
    return AuthService.send_password_reset(req.email, db)

@router.post("/reset-password")
def reset_password(req: ResetPasswordRequest, db: Session = Depends(get_db)):
    return AuthService.reset_password(req.token, req.new_password, db)
