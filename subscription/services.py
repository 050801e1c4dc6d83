# src/subscription/services.py
import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from subscription.models import Package, UserPackage, METERED_PACKAGE_TYPES
from subscription.schemas import SubscriptionCreate, UserPackageResponse, PackageResponse, TrialStartResponse
from subscription.eligibility import Eligibility, resolve_eligibility
from profiles.models import Profile, Referral
from config import settings

logger = logging.getLogger(__name__)

INCOMPLETE_PROFILE_MESSAGE = "Please complete your profile and add your phone number before subscribing."
DUPLICATE_SUBSCRIPTION_MESSAGE = "You already have a pending or active subscription."

class SubscriptionService:
    @staticmethod
    def get_active_user_package(user_id: int, db: Session) -> Optional[UserPackage]:
        """Newest approved package of a user, expired or not."""
        return db.query(UserPackage).options(joinedload(UserPackage.package)).filter(
            UserPackage.user_id == user_id,
            UserPackage.is_active == True
        ).order_by(UserPackage.created_at.desc(), UserPackage.id.desc()).first()

    @staticmethod
    def get_eligibility(profile: Profile, db: Session, now: Optional[datetime] = None) -> Eligibility:
        user_package = SubscriptionService.get_active_user_package(profile.id, db)
        return resolve_eligibility(profile, user_package, now=now)

    @staticmethod
    def is_paid_user(user_id: int, db: Session, now: Optional[datetime] = None) -> bool:
        """A paid user holds a live package that is not a trial grant."""
        now = now or datetime.utcnow()
        user_package = SubscriptionService.get_active_user_package(user_id, db)
        return bool(user_package and not user_package.is_trial and user_package.is_live(now))

    @staticmethod
    def list_packages(db: Session, include_inactive: bool = False) -> List[PackageResponse]:
        query = db.query(Package)
        if not include_inactive:
            query = query.filter(Package.is_active == True)
        packages = query.order_by(Package.price.asc(), Package.id.asc()).all()
        return [PackageResponse.from_orm(p) for p in packages]

    @staticmethod
    def create_request(data: SubscriptionCreate, profile: Profile, db: Session) -> UserPackageResponse:
        """Insert a pending UserPackage for the caller.

        The profile row is locked first so two concurrent requests from the
        same user cannot both pass the duplicate check.
        """
        package = db.query(Package).filter(Package.id == data.package_id, Package.is_active == True).first()
        if not package:
            raise HTTPException(status_code=404, detail="Package not found")

        locked = db.query(Profile).filter(Profile.id == profile.id).with_for_update().first()
        if not locked.full_name or not locked.cellno:
            raise HTTPException(status_code=400, detail=INCOMPLETE_PROFILE_MESSAGE)

        now = datetime.utcnow()
        existing = db.query(UserPackage).filter(UserPackage.user_id == locked.id).all()
        if any(up.is_pending or up.is_live(now) for up in existing):
            raise HTTPException(status_code=400, detail=DUPLICATE_SUBSCRIPTION_MESSAGE)

        user_package = UserPackage(
            user_id=locked.id,
            package_id=package.id,
            is_active=False,
            is_trial=package.type == "trial",
        )
        db.add(user_package)
        db.commit()
        db.refresh(user_package)
        logger.info(f"Subscription request {user_package.id} created for user {locked.id}, package {package.id}")
        return UserPackageResponse.from_orm(user_package)

    @staticmethod
    def get_user_packages(user_id: int, current_profile: Profile, db: Session) -> List[UserPackageResponse]:
        if current_profile.id != user_id and not current_profile.is_admin:
            raise HTTPException(status_code=403, detail="Forbidden")
        rows = db.query(UserPackage).options(joinedload(UserPackage.package)).filter(
            UserPackage.user_id == user_id
        ).order_by(UserPackage.created_at.desc(), UserPackage.id.desc()).all()
        return [UserPackageResponse.from_orm(up) for up in rows]

    @staticmethod
    def start_trial(profile: Profile, db: Session) -> TrialStartResponse:
        locked = db.query(Profile).filter(Profile.id == profile.id).with_for_update().first()
        if not locked.cellno:
            raise HTTPException(status_code=400, detail="Add a valid cell number to your profile to start the free trial")
        if locked.trial_given:
            raise HTTPException(status_code=400, detail="Free trial has already been used")

        now = datetime.utcnow()
        locked.trial_given = True
        locked.trial_ends_at = now + timedelta(days=settings.TRIAL_DURATION_DAYS)
        locked.subscription_status = "trial"
        rewarded = SubscriptionService.reward_referrer(locked, db, now)
        db.commit()
        db.refresh(locked)
        logger.info(f"Trial started for user {locked.id}, ends at {locked.trial_ends_at}")
        return TrialStartResponse(
            message="Free trial activated",
            trial_ends_at=locked.trial_ends_at,
            referrer_rewarded=rewarded,
        )

    @staticmethod
    def reward_referrer(referred: Profile, db: Session, now: Optional[datetime] = None) -> bool:
        """Extend the referrer's trial once per referred user. Caller commits."""
        now = now or datetime.utcnow()
        referral = db.query(Referral).filter(
            Referral.referred_user_id == referred.id,
            Referral.reward_given == False
        ).first()
        if not referral:
            return False
        referrer = db.query(Profile).filter(Profile.id == referral.referrer_id).first()
        if not referrer:
            return False
        base = referrer.trial_ends_at if referrer.trial_ends_at and referrer.trial_ends_at > now else now
        referrer.trial_ends_at = base + timedelta(days=settings.REFERRAL_REWARD_DAYS)
        referrer.trial_given = True
        if referrer.subscription_status == "inactive":
            referrer.subscription_status = "trial"
        referral.reward_given = True
        logger.info(f"Referrer {referrer.id} rewarded for user {referred.id}, trial now ends {referrer.trial_ends_at}")
        return True

    @staticmethod
    def record_paper_generated(profile: Profile, db: Session, now: Optional[datetime] = None) -> Tuple[int, Optional[int]]:
        """Bump the generated counter and spend one paper of a metered package. Caller commits."""
        now = now or datetime.utcnow()
        profile.papers_generated = (profile.papers_generated or 0) + 1
        remaining = None
        user_package = SubscriptionService.get_active_user_package(profile.id, db)
        if user_package and user_package.is_live(now) and user_package.package.type in METERED_PACKAGE_TYPES:
            user_package.papers_remaining = max(0, (user_package.papers_remaining or 0) - 1)
            remaining = user_package.papers_remaining
        return profile.papers_generated, remaining
