import os
import tempfile

# Settings are read at import time, so the environment has to be ready first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["SMTP_SERVER"] = ""
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="examly-media-"))
os.environ.setdefault("CONTACT_SUBMISSIONS_DIR", tempfile.mkdtemp(prefix="examly-contact-"))
os.environ["READ_RETRY_DELAY"] = "0"

import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient

from database import Base, engine, SessionLocal, get_db, init_db
from main import app
from auth.models import User
from auth.services import AuthService
from profiles.services import ProfileService
from subscription.models import Package, UserPackage
from catalog.models import SchoolClass, Subject, ClassSubject, Chapter, Question


@pytest.fixture()
def db():
    """Fresh in-memory schema per test."""
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    """Create a confirmed account with a profile and return the profile."""
    def _make_user(email="teacher@examly.pk", role="teacher", full_name="Test Teacher",
                   cellno=None, password="secret123", confirmed=True):
        user = User(
            email=email,
            password_hash=AuthService.hash_password(password),
            login_method="email",
            email_confirmed=confirmed,
        )
        db.add(user)
        db.flush()
        profile = ProfileService.provision_profile(user, db, full_name=full_name, role=role, cellno=cellno)
        db.commit()
        db.refresh(profile)
        return profile
    return _make_user


def auth_header(profile):
    token = AuthService.create_access_token({"sub": profile.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def teacher(make_user):
    return make_user(email="teacher@examly.pk", cellno="03001234567")


@pytest.fixture()
def admin(make_user):
    return make_user(email="admin@examly.pk", role="admin", full_name="Site Admin")


@pytest.fixture()
def packages(db):
    """One package per type, keyed by type."""
    rows = {
        "paper_pack": Package(name="10 Papers", type="paper_pack", price=500, paper_quantity=10, is_active=True),
        "subscription": Package(name="Monthly", type="subscription", price=1500, duration_days=90, is_active=True),
        "papers": Package(name="Unlimited Papers", type="papers", price=1000, duration_days=365, is_active=True),
    }
    db.add_all(rows.values())
    db.commit()
    return rows


@pytest.fixture()
def grant_package(db):
    """Give a profile an approved, live package."""
    def _grant(profile, package, papers_remaining=None, expires_at=None, is_trial=False):
        now = datetime.utcnow()
        user_package = UserPackage(
            user_id=profile.id,
            package_id=package.id,
            is_active=True,
            is_trial=is_trial,
            expires_at=expires_at,
            papers_remaining=papers_remaining,
            approved_at=now,
            created_at=now,
        )
        db.add(user_package)
        db.commit()
        db.refresh(user_package)
        return user_package
    return _grant


@pytest.fixture()
def start_trial(db):
    def _start(profile, days=90):
        profile.trial_given = True
        profile.trial_ends_at = datetime.utcnow() + timedelta(days=days)
        profile.subscription_status = "trial"
        db.commit()
        return profile
    return _start


@pytest.fixture()
def catalog(db):
    """Class 9 Physics with four chapters and a small question bank."""
    school_class = SchoolClass(name=9, description="Class 9")
    other_class = SchoolClass(name=10, description="Class 10")
    physics = Subject(name="Physics")
    chemistry = Subject(name="Chemistry")
    db.add_all([school_class, other_class, physics, chemistry])
    db.flush()
    link = ClassSubject(class_id=school_class.id, subject_id=physics.id)
    db.add_all([link, ClassSubject(class_id=school_class.id, subject_id=chemistry.id)])
    db.flush()

    chapters = [
        Chapter(class_id=school_class.id, subject_id=physics.id, name=f"Chapter {n}", chapter_no=n)
        for n in (3, 1, 4, 2)
    ]
    other_chapter = Chapter(class_id=other_class.id, subject_id=physics.id, name="Class 10 Chapter", chapter_no=1)
    chem_chapter = Chapter(class_id=school_class.id, subject_id=chemistry.id, name="Atoms", chapter_no=1)
    db.add_all(chapters + [other_chapter, chem_chapter])
    db.flush()
    by_no = {c.chapter_no: c for c in chapters}

    questions = []
    for n in range(1, 9):
        chapter = by_no[(n - 1) % 4 + 1]
        questions.append(Question(
            subject_id=physics.id, chapter_id=chapter.id, class_subject_id=link.id, question_type="mcq",
            question_text=f"MCQ {n}", option_a="a", option_b="b", option_c="c", option_d="d",
            correct_option="ABCD"[n % 4], difficulty="easy" if n % 2 else "hard", source_type="book",
        ))
    for n in range(1, 5):
        questions.append(Question(
            subject_id=physics.id, chapter_id=by_no[n].id, class_subject_id=link.id, question_type="short",
            question_text=f"Short {n}", difficulty="medium", source_type="past_paper" if n == 1 else "book",
        ))
    for n in range(1, 3):
        questions.append(Question(
            subject_id=physics.id, chapter_id=by_no[n].id, class_subject_id=link.id, question_type="long",
            question_text=f"Long {n}", difficulty="hard", source_type="book",
        ))
    questions.append(Question(
        subject_id=physics.id, chapter_id=other_chapter.id, question_type="mcq", question_text="Class 10 MCQ",
        option_a="a", option_b="b", option_c="c", option_d="d", correct_option="A", difficulty="easy",
    ))
    questions.append(Question(
        subject_id=chemistry.id, chapter_id=chem_chapter.id, question_type="short", question_text="Chemistry short",
        difficulty="easy",
    ))
    db.add_all(questions)
    db.commit()
    return {
        "class": school_class,
        "other_class": other_class,
        "subject": physics,
        "chemistry": chemistry,
        "chapters": sorted(chapters, key=lambda c: c.chapter_no),
        "questions": questions,
    }
