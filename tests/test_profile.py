import os
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from config import settings
from database import retry_read
from conftest import auth_header


def test_get_profile_includes_packages(client, teacher, packages, grant_package):
    grant_package(teacher, packages["paper_pack"], papers_remaining=10)
    response = client.get("/api/profile", headers=auth_header(teacher))
    assert response.status_code == 200
    body = response.json()
    assert body["profile"]["email"] == teacher.email
    assert len(body["user_packages"]) == 1
    assert body["user_packages"][0]["package"]["type"] == "paper_pack"


def test_update_profile_normalizes_cellno(client, make_user):
    profile = make_user(email="nophone@examly.pk")
    response = client.put(
        "/api/profile",
        json={"cellno": "0300-7654321", "institution": " City School "},
        headers=auth_header(profile),
    )
    assert response.status_code == 200
    assert response.json()["cellno"] == "03007654321"
    assert response.json()["institution"] == "City School"


@pytest.mark.parametrize("cellno, message", [
    ("", "Phone number required"),
    ("0400-1234567", "Phone number must be 11 digits starting with 03"),
    ("0300123", "Phone number must be 11 digits starting with 03"),
])
def test_check_cellno_validation(client, teacher, cellno, message):
    response = client.post("/api/profile/check-cellno", json={"cellno": cellno}, headers=auth_header(teacher))
    assert response.status_code == 400
    assert response.json() == {"error": message}


def test_cellno_must_be_unique(client, teacher, make_user):
    other = make_user(email="other@examly.pk")
    response = client.put("/api/profile", json={"cellno": teacher.cellno}, headers=auth_header(other))
    assert response.status_code == 400
    assert response.json()["error"] == "Phone number already registered"

    # a user may keep their own number
    own = client.post("/api/profile/check-cellno", json={"cellno": teacher.cellno}, headers=auth_header(teacher))
    assert own.json() == {"available": True}


def test_logo_upload_replaces_old_file(client, teacher):
    headers = auth_header(teacher)
    first = client.post("/api/profile/logo", files={"file": ("logo.png", b"first", "image/png")}, headers=headers)
    assert first.status_code == 200
    first_url = first.json()["logo"]
    assert first_url.startswith(f"{settings.MEDIA_URL}/{settings.LOGO_BUCKET}/{teacher.id}-")

    second = client.post("/api/profile/logo", files={"file": ("logo.jpg", b"second", "image/jpeg")}, headers=headers)
    assert second.status_code == 200
    assert second.json()["logo"].endswith(".jpg")
    old_name = first_url.rsplit("/", 1)[-1]
    assert not os.path.exists(os.path.join(settings.MEDIA_ROOT, settings.LOGO_BUCKET, old_name))

    deleted = client.delete("/api/profile/logo", headers=headers)
    assert deleted.json() == {"success": True}
    assert client.get("/api/profile", headers=headers).json()["profile"]["logo"] is None


def test_logo_extension_falls_back_to_png(client, teacher):
    headers = auth_header(teacher)
    for filename in ("logo.a/../escaped", "logo.PHP", "logo"):
        response = client.post("/api/profile/logo", files={"file": (filename, b"img", "image/png")}, headers=headers)
        assert response.status_code == 200
        name = response.json()["logo"].rsplit("/", 1)[-1]
        assert name.startswith(f"{teacher.id}-")
        assert name.endswith(".png")


def test_logo_must_be_small_image(client, teacher):
    headers = auth_header(teacher)
    text = client.post("/api/profile/logo", files={"file": ("notes.txt", b"hi", "text/plain")}, headers=headers)
    assert text.status_code == 400
    assert text.json()["error"] == "Logo must be an image"

    big = b"0" * (settings.LOGO_MAX_BYTES + 1)
    large = client.post("/api/profile/logo", files={"file": ("big.png", big, "image/png")}, headers=headers)
    assert large.status_code == 400
    assert large.json()["error"] == "Logo must be 2MB or smaller"


def test_institute_name(client, teacher):
    client.put("/api/profile", json={"institution": "Govt High School"}, headers=auth_header(teacher))
    response = client.get("/api/instituteName", headers=auth_header(teacher))
    assert response.json() == {"profile": {"institution": "Govt High School"}}


def test_retry_read_retries_operational_errors(db):
    error = OperationalError("SELECT 1", {}, Exception("server closed the connection"))
    calls = []

    def fetch():
        calls.append(1)
        if len(calls) < 3:
            raise error
        return "ok"

    with patch("database.time.sleep") as sleep:
        assert retry_read(db, fetch, label="test read") == "ok"
    assert len(calls) == 3
    assert sleep.call_count == 2


def test_retry_read_gives_up(db):
    error = OperationalError("SELECT 1", {}, Exception("down"))

    def fetch():
        raise error

    with patch("database.time.sleep"), pytest.raises(OperationalError):
        retry_read(db, fetch)
