# src/admin/services.py
import logging
import secrets

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from datetime import datetime
from typing import List, Optional
from admin.schemas import DashboardResponse, AdminProfileCreate, AdminProfileUpdate
from auth.models import User, AdminActionLog
from auth.schemas import AdminActionLogResponse
from auth.services import AuthService
from catalog.models import Question, Subject
from papers.models import Paper
from profiles.models import Profile, ADMIN_ROLES
from profiles.schemas import ProfileResponse, ProfileWithPackages
from profiles.services import ProfileService
from subscription.eligibility import approval_terms
from subscription.models import Package, UserPackage
from subscription.schemas import OrderResponse, UserPackageResponse, PackageCreate, PackageUpdate, PackageResponse
from config import settings

logger = logging.getLogger(__name__)

MONTH_WINDOW = 6


def log_action(admin: Profile, action: str, db: Session) -> None:
    """Record an admin action. Caller commits."""
    db.add(AdminActionLog(admin_id=admin.id, action=action))
    logger.info(f"Admin {admin.id}: {action}")


def last_months(now: datetime, count: int = MONTH_WINDOW) -> List[tuple]:
    """(year, month) pairs for the last `count` months, oldest first, current month included."""
    months = []
    year, month = now.year, now.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


class DashboardService:
    @staticmethod
    def stats(db: Session, now: Optional[datetime] = None) -> DashboardResponse:
        now = now or datetime.utcnow()
        role_counts = dict(db.query(Profile.role, func.count(Profile.id)).group_by(Profile.role).all())
        status_counts = dict(
            db.query(Profile.subscription_status, func.count(Profile.id)).group_by(Profile.subscription_status).all()
        )

        months = last_months(now)
        start = datetime(months[0][0], months[0][1], 1)
        per_month = {key: 0 for key in months}
        for (created_at,) in db.query(Paper.created_at).filter(Paper.created_at >= start).all():
            key = (created_at.year, created_at.month)
            if key in per_month:
                per_month[key] += 1

        by_subject = db.query(Subject.name, func.count(Question.id)).outerjoin(
            Question, Question.subject_id == Subject.id
        ).group_by(Subject.id, Subject.name).order_by(Subject.name.asc()).all()

        return DashboardResponse(
            teacherCount=role_counts.get("teacher", 0),
            studentCount=role_counts.get("student", 0),
            academyCount=role_counts.get("academy", 0),
            paperCount=db.query(func.count(Paper.id)).scalar() or 0,
            questionCount=db.query(func.count(Question.id)).scalar() or 0,
            pendingOrders=db.query(func.count(UserPackage.id)).filter(
                UserPackage.is_active == False, UserPackage.approved_at.is_(None)
            ).scalar() or 0,
            papersByMonth=[
                {"month": f"{year}-{month:02d}", "label": datetime(year, month, 1).strftime("%b"), "count": per_month[(year, month)]}
                for year, month in months
            ],
            questionsBySubject=[{"subject": name, "count": count} for name, count in by_subject],
            usersByStatus=status_counts,
        )


class AdminProfileService:
    @staticmethod
    def get(profile_id: int, db: Session) -> Profile:
        profile = db.query(Profile).filter(Profile.id == profile_id).first()
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        return profile

    @staticmethod
    def list_profiles(db: Session, role: Optional[str] = None, search: Optional[str] = None) -> List[ProfileResponse]:
        query = db.query(Profile)
        if role:
            query = query.filter(Profile.role == role)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(Profile.full_name.ilike(pattern) | Profile.email.ilike(pattern) | Profile.cellno.ilike(pattern))
        return [ProfileResponse.from_orm(p) for p in query.order_by(Profile.created_at.desc(), Profile.id.desc()).all()]

    @staticmethod
    def create(data: AdminProfileCreate, admin: Profile, db: Session) -> ProfileWithPackages:
        """Create a confirmed account and its profile, optionally granting a package right away."""
        if data.role in ADMIN_ROLES and admin.role != "super_admin":
            raise HTTPException(status_code=403, detail="Only a super admin can create admins")
        if AuthService.get_user_by_email(data.email, db):
            raise HTTPException(status_code=400, detail="Email already registered")
        cellno = None
        if data.cellno:
            cellno = ProfileService.normalize_cellno(data.cellno)
            ProfileService.ensure_cellno_available(cellno, 0, db)
        package = None
        if data.package_id is not None:
            package = db.query(Package).filter(Package.id == data.package_id).first()
            if not package:
                raise HTTPException(status_code=404, detail="Package not found")

        user = User(
            email=data.email.strip().lower(),
            password_hash=AuthService.hash_password(data.password or secrets.token_urlsafe(12)),
            login_method="email",
            email_confirmed=True,
        )
        db.add(user)
        db.flush()
        profile = ProfileService.provision_profile(
            user, db, full_name=data.full_name.strip(), role=data.role, cellno=cellno, institution=data.institution
        )
        profile.subscription_status = data.subscription_status
        if package:
            now = datetime.utcnow()
            expires_at, papers_remaining = approval_terms(package, now, settings.PAPERS_PACKAGE_DAYS)
            db.add(UserPackage(
                user_id=profile.id,
                package_id=package.id,
                is_active=True,
                is_trial=package.type == "trial",
                expires_at=expires_at,
                papers_remaining=papers_remaining,
                approved_at=now,
            ))
            profile.subscription_status = "active"
        log_action(admin, f"Created profile {profile.id} ({user.email}) with role {data.role}", db)
        db.commit()
        db.refresh(profile)
        return ProfileService.get_profile_with_packages(profile)

    @staticmethod
    def update(profile_id: int, data: AdminProfileUpdate, admin: Profile, db: Session) -> ProfileResponse:
        profile = AdminProfileService.get(profile_id, db)
        updates = data.model_dump(exclude_unset=True)
        for field in ("full_name", "role", "subscription_status", "trial_given"):
            if field in updates and updates[field] is None:
                updates.pop(field)
        if "role" in updates and (updates["role"] in ADMIN_ROLES or profile.is_admin) and admin.role != "super_admin":
            raise HTTPException(status_code=403, detail="Only a super admin can change admin roles")
        if "cellno" in updates:
            cellno = (updates["cellno"] or "").strip()
            updates["cellno"] = ProfileService.normalize_cellno(cellno) if cellno else None
            if updates["cellno"]:
                ProfileService.ensure_cellno_available(updates["cellno"], profile.id, db)
        for field, value in updates.items():
            setattr(profile, field, value)
        profile.updated_at = datetime.utcnow()
        log_action(admin, f"Updated profile {profile.id}: {', '.join(sorted(updates)) or 'no changes'}", db)
        db.commit()
        db.refresh(profile)
        return ProfileResponse.from_orm(profile)

    @staticmethod
    def delete(profile_id: int, admin: Profile, db: Session) -> dict:
        profile = AdminProfileService.get(profile_id, db)
        if profile.id == admin.id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")
        if profile.is_admin and admin.role != "super_admin":
            raise HTTPException(status_code=403, detail="Only a super admin can delete admins")
        user = db.query(User).filter(User.id == profile.id).first()
        db.delete(user or profile)
        log_action(admin, f"Deleted profile {profile_id}", db)
        db.commit()
        return {"message": "User deleted successfully"}


class OrderService:
    @staticmethod
    def to_response(user_package: UserPackage) -> OrderResponse:
        data = UserPackageResponse.from_orm(user_package).model_dump()
        profile = user_package.profile
        return OrderResponse(
            **data,
            full_name=profile.full_name if profile else None,
            email=profile.email if profile else None,
            cellno=profile.cellno if profile else None,
        )

    @staticmethod
    def get(order_id: int, db: Session) -> UserPackage:
        order = db.query(UserPackage).options(
            joinedload(UserPackage.package), joinedload(UserPackage.profile)
        ).filter(UserPackage.id == order_id).first()
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    @staticmethod
    def list_orders(db: Session, pending_only: bool = True) -> List[OrderResponse]:
        query = db.query(UserPackage).options(joinedload(UserPackage.package), joinedload(UserPackage.profile))
        if pending_only:
            query = query.filter(UserPackage.is_active == False, UserPackage.approved_at.is_(None))
        orders = query.order_by(UserPackage.created_at.desc(), UserPackage.id.desc()).all()
        return [OrderService.to_response(o) for o in orders]

    @staticmethod
    def handle(order_id: int, action: str, admin: Profile, db: Session, now: Optional[datetime] = None) -> dict:
        if action not in ("approve", "reject"):
            raise HTTPException(status_code=400, detail="Invalid action")
        order = OrderService.get(order_id, db)
        if not order.is_pending:
            raise HTTPException(status_code=400, detail="Order has already been processed")
        if action == "reject":
            db.delete(order)
            log_action(admin, f"Rejected order {order_id} of user {order.user_id}", db)
            db.commit()
            return {"message": "Order rejected"}
        return {"message": "Order approved", "order": OrderService.approve(order, admin, db, now)}

    @staticmethod
    def approve(order: UserPackage, admin: Profile, db: Session, now: Optional[datetime] = None) -> OrderResponse:
        now = now or datetime.utcnow()
        expires_at, papers_remaining = approval_terms(order.package, now, settings.PAPERS_PACKAGE_DAYS)

        db.query(UserPackage).filter(
            UserPackage.user_id == order.user_id,
            UserPackage.id != order.id,
            UserPackage.is_active == True
        ).update({UserPackage.is_active: False}, synchronize_session=False)

        order.is_active = True
        order.approved_at = now
        order.expires_at = expires_at
        order.papers_remaining = papers_remaining
        order.profile.subscription_status = "active"
        log_action(admin, f"Approved order {order.id} ({order.package.name}) for user {order.user_id}", db)
        db.commit()
        db.refresh(order)
        return OrderService.to_response(order)


class PackageAdminService:
    @staticmethod
    def get(package_id: int, db: Session) -> Package:
        package = db.query(Package).filter(Package.id == package_id).first()
        if not package:
            raise HTTPException(status_code=404, detail="Package not found")
        return package

    @staticmethod
    def create(data: PackageCreate, admin: Profile, db: Session) -> PackageResponse:
        package = Package(**data.model_dump())
        db.add(package)
        db.flush()
        log_action(admin, f"Created package {package.id} ({package.name})", db)
        db.commit()
        db.refresh(package)
        return PackageResponse.from_orm(package)

    @staticmethod
    def update(package_id: int, data: PackageUpdate, admin: Profile, db: Session) -> PackageResponse:
        package = PackageAdminService.get(package_id, db)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(package, field, value)
        log_action(admin, f"Updated package {package.id}", db)
        db.commit()
        db.refresh(package)
        return PackageResponse.from_orm(package)

    @staticmethod
    def delete(package_id: int, admin: Profile, db: Session) -> dict:
        package = PackageAdminService.get(package_id, db)
        in_use = db.query(UserPackage.id).filter(UserPackage.package_id == package.id).first()
        if in_use:
            raise HTTPException(status_code=400, detail="Package has subscriptions, deactivate it instead")
        db.delete(package)
        log_action(admin, f"Deleted package {package_id}", db)
        db.commit()
        return {"message": "Package deleted"}


def list_logs(db: Session) -> List[AdminActionLogResponse]:
    logs = db.query(AdminActionLog).order_by(AdminActionLog.timestamp.desc(), AdminActionLog.id.desc()).all()
    return [AdminActionLogResponse.from_orm(log) for log in logs]
