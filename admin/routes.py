# src/admin/routes.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from admin.schemas import DashboardResponse, AdminProfileCreate, AdminProfileUpdate
from admin.services import DashboardService, AdminProfileService, OrderService, PackageAdminService, list_logs
from auth.schemas import AdminActionLogResponse
from auth.routes import check_admin_role
from profiles.models import Profile
from profiles.schemas import ProfileResponse, ProfileWithPackages
from profiles.services import ProfileService
from subscription.schemas import OrderResponse, OrderAction, PackageCreate, PackageUpdate, PackageResponse
from subscription.services import SubscriptionService
from database import get_db

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(check_admin_role)])

@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(db: Session = Depends(get_db)):
    """Counts and charts for the admin dashboard."""
    return DashboardService.stats(db)

@router.get("/profiles", response_model=List[ProfileResponse])
def list_profiles(role: Optional[str] = None, search: Optional[str] = None, db: Session = Depends(get_db)):
    return AdminProfileService.list_profiles(db, role, search)

@router.get("/profiles/me", response_model=ProfileResponse)
def my_admin_profile(current_admin: Profile = Depends(check_admin_role)):
    return ProfileResponse.from_orm(current_admin)

@router.post("/profiles", response_model=ProfileWithPackages, status_code=status.HTTP_201_CREATED)
def create_profile(
    data: AdminProfileCreate,
    db: Session = Depends(get_db),
    current_admin: Profile = Depends(check_admin_role)
):
    """Create an account with its profile."""
    return AdminProfileService.create(data, current_admin, db)

@router.get("/profiles/{profile_id}", response_model=ProfileWithPackages)
def get_profile(profile_id: int, db: Session = Depends(get_db)):
    return ProfileService.get_profile_with_packages(AdminProfileService.get(profile_id, db))

@router.put("/profiles/{profile_id}", response_model=ProfileResponse)
def update_profile(
    profile_id: int,
    data: AdminProfileUpdate,
    db: Session = Depends(get_db),
    current_admin: Profile = Depends(check_admin_role)
):
    return AdminProfileService.update(profile_id, data, current_admin, db)

@router.delete("/profiles/{profile_id}")
def delete_profile(profile_id: int, db: Session = Depends(get_db), current_admin: Profile = Depends(check_admin_role)):
    return AdminProfileService.delete(profile_id, current_admin, db)

@router.get("/orders", response_model=List[OrderResponse])
def list_orders(all: bool = False, db: Session = Depends(get_db)):
    """Pending orders, newest first. `all=true` includes approved ones."""
    return OrderService.list_orders(db, pending_only=not all)

@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return OrderService.to_response(OrderService.get(order_id, db))

@router.post("/orders/{order_id}")
def handle_order(
    order_id: int,
    data: OrderAction,
    db: Session = Depends(get_db),
    current_admin: Profile = Depends(check_admin_role)
):
    """Approve or reject an order."""
    return OrderService.handle(order_id, data.action, current_admin, db)

@router.get("/packages", response_model=List[PackageResponse])
def list_packages(db: Session = Depends(get_db)):
    return SubscriptionService.list_packages(db, include_inactive=True)

@router.post("/packages", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
def create_package(data: PackageCreate, db: Session = Depends(get_db), current_admin: Profile = Depends(check_admin_role)):
    return PackageAdminService.create(data, current_admin, db)

@router.put("/packages/{package_id}", response_model=PackageResponse)
def update_package(
    package_id: int,
    data: PackageUpdate,
    db: Session = Depends(get_db),
    current_admin: Profile = Depends(check_admin_role)
):
    return PackageAdminService.update(package_id, data, current_admin, db)

@router.delete("/packages/{package_id}")
def delete_package(package_id: int, db: Session = Depends(get_db), current_admin: Profile = Depends(check_admin_role)):
    return PackageAdminService.delete(package_id, current_admin, db)

@router.get("/logs", response_model=List[AdminActionLogResponse])
def get_admin_logs(db: Session = Depends(get_db)):
    """Retrieve admin action logs."""
    return list_logs(db)
