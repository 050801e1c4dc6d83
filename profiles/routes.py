# src/profiles/routes.py
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from profiles.services import ProfileService
from profiles.schemas import ProfileResponse, ProfileWithPackages, ProfileUpdate, CellnoCheck, InstitutionResponse
from profiles.models import Profile
from auth.routes import get_current_profile
from database import get_db

router = APIRouter(prefix="/api", tags=["profile"])

@router.get("/profile", response_model=ProfileWithPackages)
def get_profile(current_profile: Profile = Depends(get_current_profile)):
    """Current user's profile with their packages."""
    return ProfileService.get_profile_with_packages(current_profile)

@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile)
):
    return ProfileService.update_profile(current_profile, data, db)

@router.post("/profile/check-cellno")
def check_cellno(
    data: CellnoCheck,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile)
):
    return ProfileService.check_cellno(data.cellno, current_profile, db)

@router.post("/profile/logo")
def upload_logo(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile)
):
    return ProfileService.upload_logo(current_profile, file, db)

@router.delete("/profile/logo")
def delete_logo(db: Session = Depends(get_db), current_profile: Profile = Depends(get_current_profile)):
    return ProfileService.delete_logo(current_profile, db)

@router.get("/instituteName")
def institute_name(db: Session = Depends(get_db), current_profile: Profile = Depends(get_current_profile)):
    return {"profile": ProfileService.get_institution(current_profile.id, db)}
