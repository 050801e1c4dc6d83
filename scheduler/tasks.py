# src/scheduler/tasks.py
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
from database import SessionLocal
from profiles.models import Profile
from subscription.models import UserPackage

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def expire_packages(db: Optional[Session] = None, now: Optional[datetime] = None) -> int:
    """Deactivate approved packages past their expiry date."""
    logger.info("Starting expire_packages task")
    own_session = db is None
    db = db or SessionLocal()
    now = now or datetime.utcnow()
    expired = 0
    try:
        packages = db.query(UserPackage).filter(
            UserPackage.is_active == True,
            UserPackage.expires_at.isnot(None),
            UserPackage.expires_at <= now
        ).all()
        for user_package in packages:
            user_package.is_active = False
            expired += 1
            logger.info(f"User package {user_package.id} of user {user_package.user_id} expired at {user_package.expires_at}")
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error in expire_packages: {str(e)}", exc_info=True)
    finally:
        if own_session:
            db.close()
    logger.info(f"Finished expire_packages task, {expired} expired")
    return expired

def expire_trials(db: Optional[Session] = None, now: Optional[datetime] = None) -> int:
    """Move profiles whose trial or package ran out back to inactive."""
    logger.info("Starting expire_trials task")
    own_session = db is None
    db = db or SessionLocal()
    now = now or datetime.utcnow()
    updated = 0
    try:
        profiles = db.query(Profile).filter(Profile.subscription_status.in_(("trial", "active"))).all()
        for profile in profiles:
            live_package = any(up.is_live(now) for up in profile.user_packages)
            trial_running = profile.trial_ends_at is not None and profile.trial_ends_at > now
            if live_package:
                continue
            if profile.subscription_status == "active" and trial_running:
                profile.subscription_status = "trial"
            elif not trial_running:
                profile.subscription_status = "inactive"
            else:
                continue
            updated += 1
            logger.info(f"Profile {profile.id} status set to {profile.subscription_status}")
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error in expire_trials: {str(e)}", exc_info=True)
    finally:
        if own_session:
            db.close()
    logger.info(f"Finished expire_trials task, {updated} updated")
    return updated

def start_scheduler() -> BackgroundScheduler:
    """Start the background scheduler."""
    scheduler = BackgroundScheduler()
    scheduler.add_job(expire_packages, 'interval', minutes=30)
    scheduler.add_job(expire_trials, 'interval', hours=1)
    scheduler.start()
    return scheduler
