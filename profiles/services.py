# src/profiles/services.py
import logging
import random
import re
import string

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
from profiles.models import Profile, Referral
from profiles.schemas import ProfileResponse, ProfileWithPackages, ProfileUpdate, InstitutionResponse
from subscription.schemas import UserPackageResponse
from auth.models import User
from database import retry_read
from storage import storage
from config import settings

logger = logging.getLogger(__name__)

REFERRAL_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 8
REFERRAL_CODE_ATTEMPTS = 10
CELLNO_PATTERN = re.compile(r"^03\d{9}$")
LOGO_EXTENSIONS = ("png", "jpg", "jpeg", "gif", "webp", "svg")

class ProfileService:
    @staticmethod
    def generate_referral_code(db: Session) -> str:
        """Random 8-character code, checked against existing profiles."""
        for _ in range(REFERRAL_CODE_ATTEMPTS):
            code = "".join(random.choices(REFERRAL_ALPHABET, k=REFERRAL_CODE_LENGTH))
            if not db.query(Profile.id).filter(Profile.referral_code == code).first():
                return code
        logger.error("Could not generate a unique referral code")
        raise HTTPException(status_code=500, detail="Could not generate referral code")

    @staticmethod
    def provision_profile(
            user: User,
            db: Session,
            full_name: Optional[str] = None,
            role: str = "teacher",
            cellno: Optional[str] = None,
            institution: Optional[str] = None
    ) -> Profile:
        """Create the profile row for an auth account. Flushes, the caller commits."""
        profile = Profile(
            id=user.id,
            email=user.email,
            full_name=full_name,
            cellno=cellno,
            institution=institution,
            role=role,
            subscription_status="inactive",
            trial_given=False,
            trial_ends_at=None,
            papers_generated=0,
            referral_code=ProfileService.generate_referral_code(db),
            login_method=user.login_method,
        )
        db.add(profile)
        db.flush()
        logger.info(f"Profile provisioned for user {user.id} with role {role}")
        return profile

    @staticmethod
    def get_or_provision(user: User, db: Session) -> Profile:
        profile = db.query(Profile).filter(Profile.id == user.id).first()
        if profile:
            return profile
        profile = ProfileService.provision_profile(user, db)
        db.commit()
        db.refresh(profile)
        return profile

    @staticmethod
    def record_referral(profile: Profile, referral_code: Optional[str], db: Session) -> Optional[Referral]:
        """Link a new profile to the owner of `referral_code`. Unknown codes are ignored."""
        if not referral_code:
            return None
        code = referral_code.strip().upper()
        referrer = db.query(Profile).filter(Profile.referral_code == code).first()
        if not referrer or referrer.id == profile.id:
            logger.info(f"Referral code {code} ignored for user {profile.id}")
            return None
        profile.referred_by_code = code
        referral = Referral(referrer_id=referrer.id, referred_user_id=profile.id, reward_given=False)
        db.add(referral)
        db.flush()
        return referral

    @staticmethod
    def normalize_cellno(raw: str) -> str:
        cellno = re.sub(r"\D", "", raw or "")
        if not cellno:
            raise HTTPException(status_code=400, detail="Phone number required")
        if not CELLNO_PATTERN.match(cellno):
            raise HTTPException(status_code=400, detail="Phone number must be 11 digits starting with 03")
        return cellno

    @staticmethod
    def ensure_cellno_available(cellno: str, profile_id: int, db: Session) -> None:
        existing = db.query(Profile.id).filter(Profile.cellno == cellno, Profile.id != profile_id).first()
        if existing:
            raise HTTPException(status_code=400, detail="Phone number already registered")

    @staticmethod
    def check_cellno(raw: str, profile: Profile, db: Session) -> dict:
        cellno = ProfileService.normalize_cellno(raw)
        ProfileService.ensure_cellno_available(cellno, profile.id, db)
        return {"available": True}

    @staticmethod
    def get_profile_with_packages(profile: Profile) -> ProfileWithPackages:
        return ProfileWithPackages(
            profile=ProfileResponse.from_orm(profile),
            user_packages=[UserPackageResponse.from_orm(up) for up in profile.user_packages],
        )

    @staticmethod
    def update_profile(profile: Profile, data: ProfileUpdate, db: Session) -> ProfileResponse:
        updates = data.model_dump(exclude_unset=True)
        if "cellno" in updates:
            if updates["cellno"]:
                cellno = ProfileService.normalize_cellno(updates["cellno"])
                ProfileService.ensure_cellno_available(cellno, profile.id, db)
                updates["cellno"] = cellno
            else:
                updates["cellno"] = None
        for field, value in updates.items():
            setattr(profile, field, value.strip() if isinstance(value, str) else value)
        profile.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(profile)
        return ProfileResponse.from_orm(profile)

    @staticmethod
    def upload_logo(profile: Profile, file: UploadFile, db: Session) -> dict:
        if not file or not file.filename:
            raise HTTPException(status_code=400, detail="No file provided")
        if not (file.content_type or "").startswith("image/"):
            raise HTTPException(status_code=400, detail="Logo must be an image")
        data = file.file.read()
        if len(data) > settings.LOGO_MAX_BYTES:
            raise HTTPException(status_code=400, detail="Logo must be 2MB or smaller")

        ext = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else "png"
        if ext not in LOGO_EXTENSIONS:
            ext = "png"
        key = f"{profile.id}-{int(datetime.utcnow().timestamp() * 1000)}.{ext}"
        url = storage.upload(settings.LOGO_BUCKET, key, data, file.content_type)

        old_logo = profile.logo
        profile.logo = url
        profile.updated_at = datetime.utcnow()
        try:
            db.commit()
        except Exception:
            db.rollback()
            storage.delete(url)
            raise
        if old_logo:
            ProfileService._remove_file(old_logo)
        return {"success": True, "logo": url}

    @staticmethod
    def delete_logo(profile: Profile, db: Session) -> dict:
        if profile.logo:
            ProfileService._remove_file(profile.logo)
        profile.logo = None
        profile.updated_at = datetime.utcnow()
        db.commit()
        return {"success": True}

    @staticmethod
    def get_institution(profile_id: int, db: Session) -> InstitutionResponse:
        profile = retry_read(
            db,
            lambda: db.query(Profile).filter(Profile.id == profile_id).first(),
            label="Institute name fetch",
        )
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        return InstitutionResponse.from_orm(profile)

    @staticmethod
    def _remove_file(url: str) -> None:
        try:
            storage.delete(url)
        except Exception as e:
            logger.warning(f"Could not delete stored file {url}: {str(e)}")
