# src/subscription/eligibility.py
"""Trial and subscription eligibility.

One place decides whether a user may generate papers. The inputs are the
profile row and the user's current active package (joined with its plan);
nothing here touches the database, so every handler that needs the answer
loads those rows and calls :func:`resolve_eligibility`.
"""
import math
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Optional, Union

from subscription.models import METERED_PACKAGE_TYPES

UNLIMITED = "unlimited"

NO_CELLNO_MESSAGE = "Update your profile with a valid cell number to activate your 3 Months free trial."
NO_PLAN_MESSAGE = "Your free trial is not active. Subscribe to a package to continue generating papers."

PapersRemaining = Union[int, str]


@dataclass
class Eligibility:
    is_trial: bool
    trial_ends_at: Optional[datetime]
    days_remaining: int
    has_active_subscription: bool
    papers_generated: int
    papers_remaining: PapersRemaining
    subscription_name: Optional[str]
    subscription_type: Optional[str]
    subscription_end_date: Optional[datetime]
    has_cellno: bool
    trial_eligible: bool
    referral_code: Optional[str]
    message: Optional[str]

    @property
    def can_generate(self) -> bool:
        if self.papers_remaining == UNLIMITED:
            return True
        return self.papers_remaining > 0

    def to_response(self) -> dict:
        """Camel-cased payload used by the trial status endpoint."""
        data = asdict(self)
        return {
            "isTrial": data["is_trial"],
            "trialEndsAt": data["trial_ends_at"],
            "daysRemaining": data["days_remaining"],
            "hasActiveSubscription": data["has_active_subscription"],
            "papersGenerated": data["papers_generated"],
            "papersRemaining": data["papers_remaining"],
            "subscriptionName": data["subscription_name"],
            "subscriptionType": data["subscription_type"],
            "subscriptionEndDate": data["subscription_end_date"],
            "hasCellno": data["has_cellno"],
            "trialEligible": data["trial_eligible"],
            "referral_code": data["referral_code"],
            "message": data["message"],
        }


def days_until(end: datetime, now: datetime) -> int:
    """Whole days left until `end`, rounded up and never negative."""
    return max(0, math.ceil((end - now) / timedelta(days=1)))


def resolve_eligibility(profile, user_package=None, package=None, now: Optional[datetime] = None) -> Eligibility:
    """Combine a profile, its active UserPackage and that package's plan into one decision.

    `user_package` is the newest row with ``is_active`` set; `package` defaults
    to ``user_package.package``.
    """
    now = now or datetime.utcnow()
    if user_package is not None and package is None:
        package = user_package.package

    has_cellno = bool(profile.cellno)
    trial_ends_at = profile.trial_ends_at
    is_trial = bool(has_cellno and trial_ends_at is not None and trial_ends_at > now and profile.trial_given)
    days_remaining = days_until(trial_ends_at, now) if is_trial else 0

    has_active_subscription = False
    papers_remaining: PapersRemaining = 0
    live_package = user_package is not None and user_package.is_live(now)

    if live_package:
        has_active_subscription = True
        if package is not None and package.type in METERED_PACKAGE_TYPES:
            papers_remaining = user_package.papers_remaining or 0
        else:
            papers_remaining = UNLIMITED
    elif is_trial:
        papers_remaining = UNLIMITED

    if not has_cellno:
        message = NO_CELLNO_MESSAGE
    elif papers_remaining == 0:
        message = NO_PLAN_MESSAGE
    else:
        message = None

    return Eligibility(
        is_trial=is_trial,
        trial_ends_at=trial_ends_at,
        days_remaining=days_remaining,
        has_active_subscription=has_active_subscription,
        papers_generated=profile.papers_generated or 0,
        papers_remaining=papers_remaining,
        subscription_name=package.name if live_package and package is not None else None,
        subscription_type=package.type if live_package and package is not None else None,
        subscription_end_date=user_package.expires_at if live_package else None,
        has_cellno=has_cellno,
        # trial_given does not matter here, only whether a trial or plan is running
        trial_eligible=has_cellno and not has_active_subscription and not is_trial,
        referral_code=profile.referral_code,
        message=message,
    )


def approval_terms(package, now: Optional[datetime] = None, papers_package_days: int = 30):
    """Return (expires_at, papers_remaining) for a package an admin approves.

    `papers` orders always run for a fixed window, ignoring duration_days.
    """
    now = now or datetime.utcnow()
    if package.type == "papers":
        expires_at = now + timedelta(days=papers_package_days)
    elif package.duration_days:
        expires_at = now + timedelta(days=package.duration_days)
    else:
        expires_at = None
    papers_remaining = package.paper_quantity if package.type in METERED_PACKAGE_TYPES else None
    return expires_at, papers_remaining
