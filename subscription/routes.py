# src/subscription/routes.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from subscription.services import SubscriptionService
from subscription.schemas import (
    SubscriptionCreate, UserPackageResponse, PackageResponse, TrialStatusResponse, TrialStartResponse
)
from auth.routes import get_current_profile
from database import get_db
from profiles.models import Profile

router = APIRouter(prefix="/api", tags=["subscriptions"])

@router.get("/packages", response_model=List[PackageResponse])
def list_packages(db: Session = Depends(get_db)):
    """Active packages, cheapest first."""
    return SubscriptionService.list_packages(db)

@router.post("/subscriptions", response_model=UserPackageResponse, status_code=status.HTTP_201_CREATED)
def create_subscription(
    subscription_data: SubscriptionCreate,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile)
):
    """Request a package. The order stays pending until an admin approves it."""
    return SubscriptionService.create_request(subscription_data, current_profile, db)

@router.get("/subscriptions/{user_id}", response_model=List[UserPackageResponse])
def get_user_subscriptions(
    user_id: int,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile)
):
    """Retrieve a user's packages, newest first."""
    return SubscriptionService.get_user_packages(user_id, current_profile, db)

@router.get("/user/trial-status", response_model=TrialStatusResponse)
def trial_status(db: Session = Depends(get_db), current_profile: Profile = Depends(get_current_profile)):
    return SubscriptionService.get_eligibility(current_profile, db).to_response()

@router.post("/trial/start", response_model=TrialStartResponse)
def start_trial(db: Session = Depends(get_db), current_profile: Profile = Depends(get_current_profile)):
    return SubscriptionService.start_trial(current_profile, db)
