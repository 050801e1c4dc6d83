from datetime import datetime, timedelta

from auth.models import AdminActionLog, User
from admin.services import last_months
from papers.models import Paper
from profiles.models import Profile
from subscription.models import UserPackage
from conftest import auth_header


def request_package(client, profile, package):
    response = client.post("/api/subscriptions", json={"package_id": package.id}, headers=auth_header(profile))
    assert response.status_code == 201
    return response.json()["id"]


def test_admin_routes_require_admin_role(client, teacher):
    response = client.get("/api/admin/orders", headers=auth_header(teacher))
    assert response.status_code == 403
    assert response.json() == {"error": "Admin access required"}


def test_pending_orders_include_customer_details(client, teacher, admin, packages):
    order_id = request_package(client, teacher, packages["paper_pack"])
    response = client.get("/api/admin/orders", headers=auth_header(admin))
    assert response.status_code == 200
    orders = response.json()
    assert [o["id"] for o in orders] == [order_id]
    assert orders[0]["email"] == teacher.email
    assert orders[0]["cellno"] == teacher.cellno
    assert orders[0]["package"]["name"] == "10 Papers"


def test_approve_papers_package_runs_thirty_days(client, db, teacher, admin, packages):
    order_id = request_package(client, teacher, packages["papers"])
    before = datetime.utcnow()
    response = client.post(f"/api/admin/orders/{order_id}", json={"action": "Approve"}, headers=auth_header(admin))
    assert response.status_code == 200
    assert response.json()["message"] == "Order approved"

    order = db.query(UserPackage).filter(UserPackage.id == order_id).one()
    assert order.is_active is True
    assert order.approved_at >= before
    # duration_days of 365 is ignored for papers packages
    assert timedelta(days=29) < order.expires_at - before <= timedelta(days=30, seconds=5)
    assert order.papers_remaining is None
    assert db.query(Profile).filter(Profile.id == teacher.id).one().subscription_status == "active"
    assert "Approved order" in db.query(AdminActionLog).one().action


def test_approve_paper_pack_sets_quantity(client, db, teacher, admin, packages):
    order_id = request_package(client, teacher, packages["paper_pack"])
    body = client.post(f"/api/admin/orders/{order_id}", json={"action": "approve"}, headers=auth_header(admin)).json()
    assert body["order"]["papers_remaining"] == 10
    assert body["order"]["expires_at"] is None

    status = client.get("/api/user/trial-status", headers=auth_header(teacher)).json()
    assert status["papersRemaining"] == 10


def test_processed_order_cannot_be_handled_again(client, db, teacher, admin, packages):
    order_id = request_package(client, teacher, packages["paper_pack"])
    headers = auth_header(admin)
    assert client.post(f"/api/admin/orders/{order_id}", json={"action": "approve"}, headers=headers).status_code == 200

    order = db.query(UserPackage).filter(UserPackage.id == order_id).one()
    order.papers_remaining = 3
    db.commit()

    for action in ("approve", "reject"):
        response = client.post(f"/api/admin/orders/{order_id}", json={"action": action}, headers=headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Order has already been processed"}
    db.expire_all()
    order = db.query(UserPackage).filter(UserPackage.id == order_id).one()
    assert order.papers_remaining == 3
    assert order.is_active is True


def test_approval_deactivates_previous_packages(client, db, teacher, admin, packages, grant_package):
    old = grant_package(teacher, packages["subscription"], expires_at=datetime.utcnow() - timedelta(days=1))
    order_id = request_package(client, teacher, packages["paper_pack"])
    client.post(f"/api/admin/orders/{order_id}", json={"action": "approve"}, headers=auth_header(admin))

    db.expire_all()
    assert db.query(UserPackage).filter(UserPackage.id == old.id).one().is_active is False
    active = db.query(UserPackage).filter(UserPackage.user_id == teacher.id, UserPackage.is_active == True).all()
    assert [up.id for up in active] == [order_id]


def test_reject_deletes_order(client, db, teacher, admin, packages):
    order_id = request_package(client, teacher, packages["paper_pack"])
    headers = auth_header(admin)
    response = client.post(f"/api/admin/orders/{order_id}", json={"action": "reject"}, headers=headers)
    assert response.json() == {"message": "Order rejected"}
    assert client.get(f"/api/admin/orders/{order_id}", headers=headers).status_code == 404
    assert db.query(UserPackage).count() == 0


def test_invalid_action_and_unknown_order(client, teacher, admin, packages):
    order_id = request_package(client, teacher, packages["paper_pack"])
    headers = auth_header(admin)
    invalid = client.post(f"/api/admin/orders/{order_id}", json={"action": "cancel"}, headers=headers)
    assert invalid.status_code == 400
    assert invalid.json() == {"error": "Invalid action"}
    missing = client.post("/api/admin/orders/9999", json={"action": "approve"}, headers=headers)
    assert missing.status_code == 404


def test_dashboard_counts(client, db, teacher, admin, make_user, packages, catalog):
    make_user(email="student@examly.pk", role="student")
    request_package(client, teacher, packages["paper_pack"])
    db.add(Paper(title="Weekly test", created_by=teacher.id, class_name="9", subject_name="Physics"))
    db.commit()

    body = client.get("/api/admin/dashboard", headers=auth_header(admin)).json()
    assert body["teacherCount"] == 1
    assert body["studentCount"] == 1
    assert body["academyCount"] == 0
    assert body["paperCount"] == 1
    assert body["questionCount"] == len(catalog["questions"])
    assert body["pendingOrders"] == 1
    assert len(body["papersByMonth"]) == 6
    assert body["papersByMonth"][-1]["count"] == 1
    assert {"subject": "Chemistry", "count": 1} in body["questionsBySubject"]
    assert body["usersByStatus"]["inactive"] == 3


def test_last_months_wraps_year():
    assert last_months(datetime(2025, 2, 10), count=4) == [(2024, 11), (2024, 12), (2025, 1), (2025, 2)]


def test_admin_creates_profile_with_package(client, db, admin, packages):
    response = client.post(
        "/api/admin/profiles",
        json={
            "full_name": "Academy Owner",
            "email": "academy@examly.pk",
            "role": "academy",
            "cellno": "0345-1112223",
            "package_id": packages["paper_pack"].id,
        },
        headers=auth_header(admin),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["profile"]["cellno"] == "03451112223"
    assert body["profile"]["subscription_status"] == "active"
    assert body["user_packages"][0]["papers_remaining"] == 10
    assert db.query(User).filter(User.email == "academy@examly.pk").one().email_confirmed is True


def test_only_super_admin_manages_admins(client, db, admin, make_user):
    target = make_user(email="promote@examly.pk")
    response = client.put(f"/api/admin/profiles/{target.id}", json={"role": "admin"}, headers=auth_header(admin))
    assert response.status_code == 403

    boss = make_user(email="boss@examly.pk", role="super_admin")
    response = client.put(f"/api/admin/profiles/{target.id}", json={"role": "admin"}, headers=auth_header(boss))
    assert response.status_code == 200
    assert response.json()["role"] == "admin"


def test_profile_update_ignores_nulls_and_clears_blank_cellno(client, db, admin, teacher, make_user):
    headers = auth_header(admin)
    teacher.subscription_status = "trial"
    db.commit()

    response = client.put(f"/api/admin/profiles/{teacher.id}",
                          json={"subscription_status": None, "role": None, "trial_given": None}, headers=headers)
    assert response.status_code == 200
    assert response.json()["subscription_status"] == "trial"
    assert response.json()["role"] == "teacher"

    other = make_user(email="second@examly.pk", cellno="03007654321")
    for profile in (teacher, other):
        response = client.put(f"/api/admin/profiles/{profile.id}", json={"cellno": "  "}, headers=headers)
        assert response.status_code == 200
        assert response.json()["cellno"] is None
    db.expire_all()
    assert db.query(Profile).filter(Profile.cellno.is_(None)).count() >= 2


def test_admin_deletes_profile(client, db, admin, make_user):
    target = make_user(email="leaving@examly.pk")
    headers = auth_header(admin)
    assert client.delete(f"/api/admin/profiles/{target.id}", headers=headers).status_code == 200
    assert db.query(User).filter(User.email == "leaving@examly.pk").count() == 0
    assert client.delete(f"/api/admin/profiles/{admin.id}", headers=headers).status_code == 400


def test_package_crud(client, admin, teacher, packages):
    headers = auth_header(admin)
    created = client.post(
        "/api/admin/packages",
        json={"name": "Trial", "type": "trial", "price": 0, "duration_days": 7},
        headers=headers,
    )
    assert created.status_code == 201
    package_id = created.json()["id"]

    updated = client.put(f"/api/admin/packages/{package_id}", json={"is_active": False}, headers=headers)
    assert updated.json()["is_active"] is False
    assert package_id not in [p["id"] for p in client.get("/api/packages").json()]
    assert package_id in [p["id"] for p in client.get("/api/admin/packages", headers=headers).json()]

    bad = client.post("/api/admin/packages", json={"name": "x", "type": "lifetime"}, headers=headers)
    assert bad.status_code == 422

    request_package(client, teacher, packages["paper_pack"])
    in_use = client.delete(f"/api/admin/packages/{packages['paper_pack'].id}", headers=headers)
    assert in_use.status_code == 400
    assert client.delete(f"/api/admin/packages/{package_id}", headers=headers).status_code == 200


def test_logs_listed_newest_first(client, teacher, admin, packages):
    headers = auth_header(admin)
    client.post("/api/admin/packages", json={"name": "A", "type": "paper_pack", "paper_quantity": 5}, headers=headers)
    client.post("/api/admin/packages", json={"name": "B", "type": "paper_pack", "paper_quantity": 9}, headers=headers)
    logs = client.get("/api/admin/logs", headers=headers).json()
    assert len(logs) == 2
    assert "(B)" in logs[0]["action"]
