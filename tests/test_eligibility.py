from datetime import datetime, timedelta
from types import SimpleNamespace

from subscription.models import Package, UserPackage
from subscription.eligibility import (
    UNLIMITED, NO_CELLNO_MESSAGE, NO_PLAN_MESSAGE, approval_terms, days_until, resolve_eligibility
)

NOW = datetime(2025, 3, 1, 12, 0, 0)


def make_profile(**overrides):
    values = dict(
        cellno="03001234567",
        trial_given=False,
        trial_ends_at=None,
        papers_generated=0,
        referral_code="ABCD1234",
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_missing_cellno_blocks_everything():
    profile = make_profile(cellno=None, trial_given=True, trial_ends_at=NOW + timedelta(days=10))
    result = resolve_eligibility(profile, now=NOW)
    assert result.is_trial is False
    assert result.papers_remaining == 0
    assert result.trial_eligible is False
    assert result.message == NO_CELLNO_MESSAGE
    assert not result.can_generate


def test_active_trial_is_unlimited_and_rounds_days_up():
    profile = make_profile(trial_given=True, trial_ends_at=NOW + timedelta(days=2, hours=1))
    result = resolve_eligibility(profile, now=NOW)
    assert result.is_trial is True
    assert result.days_remaining == 3
    assert result.papers_remaining == UNLIMITED
    assert result.trial_eligible is False
    assert result.message is None
    assert result.can_generate


def test_expired_trial_without_package():
    profile = make_profile(trial_given=True, trial_ends_at=NOW - timedelta(hours=1), papers_generated=7)
    result = resolve_eligibility(profile, now=NOW)
    assert result.is_trial is False
    assert result.days_remaining == 0
    assert result.papers_remaining == 0
    assert result.papers_generated == 7
    assert result.message == NO_PLAN_MESSAGE


def test_trial_eligible_ignores_trial_given():
    profile = make_profile(trial_given=True, trial_ends_at=None)
    assert resolve_eligibility(profile, now=NOW).trial_eligible is True


def test_metered_package_reports_remaining_papers():
    package = Package(name="10 Papers", type="paper_pack", paper_quantity=10)
    user_package = UserPackage(is_active=True, is_trial=False, papers_remaining=4, expires_at=None)
    result = resolve_eligibility(make_profile(), user_package, package, now=NOW)
    assert result.has_active_subscription is True
    assert result.papers_remaining == 4
    assert result.subscription_name == "10 Papers"
    assert result.subscription_type == "paper_pack"
    assert result.trial_eligible is False


def test_spent_paper_pack_cannot_generate():
    package = Package(name="10 Papers", type="paper_pack", paper_quantity=10)
    user_package = UserPackage(is_active=True, is_trial=False, papers_remaining=0, expires_at=None)
    result = resolve_eligibility(make_profile(), user_package, package, now=NOW)
    assert result.papers_remaining == 0
    assert result.message == NO_PLAN_MESSAGE
    assert not result.can_generate


def test_time_based_package_is_unlimited_regardless_of_counter():
    package = Package(name="Monthly", type="subscription", duration_days=30)
    expires = NOW + timedelta(days=5)
    user_package = UserPackage(is_active=True, is_trial=False, papers_remaining=None, expires_at=expires)
    result = resolve_eligibility(make_profile(papers_generated=500), user_package, package, now=NOW)
    assert result.papers_remaining == UNLIMITED
    assert result.subscription_end_date == expires


def test_expired_package_falls_back_to_trial():
    package = Package(name="Monthly", type="subscription", duration_days=30)
    user_package = UserPackage(is_active=True, is_trial=False, expires_at=NOW - timedelta(days=1))
    profile = make_profile(trial_given=True, trial_ends_at=NOW + timedelta(days=1))
    result = resolve_eligibility(profile, user_package, package, now=NOW)
    assert result.has_active_subscription is False
    assert result.subscription_name is None
    assert result.is_trial is True
    assert result.papers_remaining == UNLIMITED


def test_response_uses_client_field_names():
    payload = resolve_eligibility(make_profile(), now=NOW).to_response()
    assert set(payload) == {
        "isTrial", "trialEndsAt", "daysRemaining", "hasActiveSubscription", "papersGenerated",
        "papersRemaining", "subscriptionName", "subscriptionType", "subscriptionEndDate",
        "hasCellno", "trialEligible", "referral_code", "message",
    }
    assert payload["referral_code"] == "ABCD1234"


def test_days_until_never_negative():
    assert days_until(NOW - timedelta(days=3), NOW) == 0
    assert days_until(NOW + timedelta(seconds=1), NOW) == 1


def test_approval_terms_per_package_type():
    papers = Package(type="papers", duration_days=365)
    assert approval_terms(papers, now=NOW) == (NOW + timedelta(days=30), None)

    subscription = Package(type="subscription", duration_days=90)
    assert approval_terms(subscription, now=NOW) == (NOW + timedelta(days=90), None)

    pack = Package(type="paper_pack", paper_quantity=25)
    assert approval_terms(pack, now=NOW) == (None, 25)
