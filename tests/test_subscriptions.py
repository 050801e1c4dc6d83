from datetime import datetime, timedelta

from profiles.models import Referral
from subscription.models import UserPackage
from subscription.services import (
    SubscriptionService, INCOMPLETE_PROFILE_MESSAGE, DUPLICATE_SUBSCRIPTION_MESSAGE
)
from conftest import auth_header


def test_packages_listed_cheapest_first(client, db, packages):
    packages["papers"].is_active = False
    db.commit()
    response = client.get("/api/packages")
    assert response.status_code == 200
    assert [p["type"] for p in response.json()] == ["paper_pack", "subscription"]


def test_subscribe_creates_pending_order(client, db, teacher, packages):
    response = client.post(
        "/api/subscriptions", json={"package_id": packages["subscription"].id}, headers=auth_header(teacher)
    )
    assert response.status_code == 201
    body = response.json()
    assert body["is_active"] is False
    assert body["approved_at"] is None

    order = db.query(UserPackage).one()
    assert order.is_pending
    assert order.user_id == teacher.id


def test_subscribe_requires_complete_profile(client, make_user, packages):
    profile = make_user(email="incomplete@examly.pk", cellno=None)
    response = client.post(
        "/api/subscriptions", json={"package_id": packages["paper_pack"].id}, headers=auth_header(profile)
    )
    assert response.status_code == 400
    assert response.json()["error"] == INCOMPLETE_PROFILE_MESSAGE


def test_second_request_is_rejected_while_pending(client, teacher, packages):
    headers = auth_header(teacher)
    client.post("/api/subscriptions", json={"package_id": packages["paper_pack"].id}, headers=headers)
    response = client.post("/api/subscriptions", json={"package_id": packages["subscription"].id}, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == DUPLICATE_SUBSCRIPTION_MESSAGE


def test_request_allowed_after_package_expires(client, teacher, packages, grant_package):
    grant_package(teacher, packages["subscription"], expires_at=datetime.utcnow() - timedelta(days=1))
    response = client.post(
        "/api/subscriptions", json={"package_id": packages["paper_pack"].id}, headers=auth_header(teacher)
    )
    assert response.status_code == 201


def test_unknown_or_inactive_package(client, db, teacher, packages):
    packages["papers"].is_active = False
    db.commit()
    headers = auth_header(teacher)
    assert client.post("/api/subscriptions", json={"package_id": 999}, headers=headers).status_code == 404
    response = client.post("/api/subscriptions", json={"package_id": packages["papers"].id}, headers=headers)
    assert response.status_code == 404


def test_user_packages_visible_to_owner_and_admin(client, teacher, admin, make_user, packages, grant_package):
    grant_package(teacher, packages["paper_pack"], papers_remaining=10)
    stranger = make_user(email="stranger@examly.pk")

    own = client.get(f"/api/subscriptions/{teacher.id}", headers=auth_header(teacher))
    assert own.status_code == 200
    assert own.json()[0]["papers_remaining"] == 10

    assert client.get(f"/api/subscriptions/{teacher.id}", headers=auth_header(admin)).status_code == 200
    assert client.get(f"/api/subscriptions/{teacher.id}", headers=auth_header(stranger)).status_code == 403


def test_trial_status_for_new_user(client, teacher):
    response = client.get("/api/user/trial-status", headers=auth_header(teacher))
    assert response.status_code == 200
    body = response.json()
    assert body["isTrial"] is False
    assert body["hasCellno"] is True
    assert body["trialEligible"] is True
    assert body["papersRemaining"] == 0
    assert body["referral_code"] == teacher.referral_code


def test_trial_status_with_paper_pack(client, teacher, packages, grant_package):
    grant_package(teacher, packages["paper_pack"], papers_remaining=3)
    body = client.get("/api/user/trial-status", headers=auth_header(teacher)).json()
    assert body["hasActiveSubscription"] is True
    assert body["papersRemaining"] == 3
    assert body["subscriptionType"] == "paper_pack"


def test_start_trial(client, db, teacher):
    response = client.post("/api/trial/start", headers=auth_header(teacher))
    assert response.status_code == 200
    assert response.json()["referrer_rewarded"] is False

    db.refresh(teacher)
    assert teacher.trial_given is True
    assert teacher.subscription_status == "trial"
    assert teacher.trial_ends_at > datetime.utcnow() + timedelta(days=89)

    status = client.get("/api/user/trial-status", headers=auth_header(teacher)).json()
    assert status["isTrial"] is True
    assert status["daysRemaining"] == 90
    assert status["papersRemaining"] == "unlimited"

    again = client.post("/api/trial/start", headers=auth_header(teacher))
    assert again.status_code == 400
    assert again.json()["error"] == "Free trial has already been used"


def test_trial_needs_cellno(client, make_user):
    profile = make_user(email="nocell@examly.pk")
    response = client.post("/api/trial/start", headers=auth_header(profile))
    assert response.status_code == 400


def test_referrer_rewarded_once(client, db, teacher, make_user, start_trial):
    start_trial(teacher, days=10)
    original_end = teacher.trial_ends_at
    referred = make_user(email="friend@examly.pk", cellno="03111234567")
    db.add(Referral(referrer_id=teacher.id, referred_user_id=referred.id))
    db.commit()

    response = client.post("/api/trial/start", headers=auth_header(referred))
    assert response.json()["referrer_rewarded"] is True
    db.refresh(teacher)
    assert teacher.trial_ends_at == original_end + timedelta(days=30)
    assert db.query(Referral).one().reward_given is True

    # already rewarded, nothing more happens
    assert SubscriptionService.reward_referrer(referred, db) is False


def test_reward_restarts_an_expired_referrer(db, make_user):
    referrer = make_user(email="lapsed@examly.pk", cellno="03221234567")
    referrer.trial_ends_at = datetime.utcnow() - timedelta(days=40)
    referred = make_user(email="joiner@examly.pk", cellno="03331234567")
    db.add(Referral(referrer_id=referrer.id, referred_user_id=referred.id))
    db.commit()

    now = datetime.utcnow()
    assert SubscriptionService.reward_referrer(referred, db, now) is True
    db.commit()
    db.refresh(referrer)
    assert referrer.trial_ends_at == now + timedelta(days=30)
    assert referrer.trial_given is True
    assert referrer.subscription_status == "trial"


def test_record_paper_generated_spends_metered_papers(db, teacher, packages, grant_package):
    user_package = grant_package(teacher, packages["paper_pack"], papers_remaining=2)
    assert SubscriptionService.record_paper_generated(teacher, db) == (1, 1)
    assert SubscriptionService.record_paper_generated(teacher, db) == (2, 0)
    assert SubscriptionService.record_paper_generated(teacher, db) == (3, 0)
    db.commit()
    db.refresh(user_package)
    assert user_package.papers_remaining == 0


def test_is_paid_user(db, teacher, packages, grant_package):
    assert SubscriptionService.is_paid_user(teacher.id, db) is False
    grant_package(teacher, packages["subscription"], expires_at=datetime.utcnow() + timedelta(days=5))
    assert SubscriptionService.is_paid_user(teacher.id, db) is True
