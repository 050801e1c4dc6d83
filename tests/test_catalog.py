from catalog.models import Question
from conftest import auth_header


def test_classes_sorted_by_number(client, catalog):
    response = client.get("/api/classes")
    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == [9, 10]


def test_subjects_for_class(client, catalog):
    response = client.get("/api/subjects", params={"classId": catalog["class"].id})
    assert [s["name"] for s in response.json()] == ["Chemistry", "Physics"]
    assert client.get("/api/subjects", params={"classId": catalog["other_class"].id}).json() == []

    missing = client.get("/api/subjects")
    assert missing.status_code == 400
    assert missing.json() == {"error": "Class ID is required"}


def test_chapters_ordered_by_number(client, catalog):
    response = client.get(
        "/api/chapters", params={"subjectId": catalog["subject"].id, "classId": catalog["class"].id}
    )
    assert [c["chapter_no"] for c in response.json()] == [1, 2, 3, 4]


def test_questions_by_criteria(client, catalog):
    chapters = catalog["chapters"]
    params = {
        "subjectId": catalog["subject"].id,
        "classId": catalog["class"].id,
        "questionType": "mcq",
        "difficulty": "easy",
        "chapterIds": f"{chapters[0].id},{chapters[2].id}",
    }
    body = client.get("/api/questions", params=params).json()
    assert [q["question_text"] for q in body] == ["MCQ 1", "MCQ 3", "MCQ 5", "MCQ 7"]
    assert body[0]["chapter"]["chapter_no"] == 1


def test_questions_by_ids_and_validation(client, catalog):
    ids = [q.id for q in catalog["questions"][:2]]
    body = client.get("/api/questions", params={"questionIds": ",".join(map(str, ids))}).json()
    assert sorted(q["id"] for q in body) == ids

    assert client.get("/api/questions", params={"subjectId": catalog["subject"].id}).status_code == 400
    assert client.get("/api/questions", params={"questionIds": "1,x"}).status_code == 400


def test_bulk_questions_respects_requirements(client, catalog):
    response = client.post("/api/questions/bulk", json={
        "subjectId": catalog["subject"].id,
        "classId": catalog["class"].id,
        "chapterIds": [c.id for c in catalog["chapters"]],
        "requirements": {"mcq": 3, "short": 1},
    })
    assert response.status_code == 200
    body = response.json()
    assert len(body["mcq"]) == 3
    assert len(body["short"]) == 1
    assert len(body["long"]) == 2
    assert body["metadata"]["totalFetched"] == {"mcq": 3, "short": 1, "long": 2}


def test_bulk_ignores_chapters_of_other_classes(client, catalog):
    other = next(q for q in catalog["questions"] if q.question_text == "Class 10 MCQ")
    response = client.post("/api/questions/bulk", json={
        "subjectId": catalog["subject"].id,
        "classId": catalog["class"].id,
        "chapterIds": [other.chapter_id],
    })
    assert response.json()["mcq"] == []


def test_quiz(client, catalog):
    assert [c["name"] for c in client.get("/api/quizz").json()] == [9, 10]
    subjects = client.get(f"/api/quizz/{catalog['class'].id}/subjects").json()
    assert "Physics" in [s["name"] for s in subjects]

    response = client.post("/api/quizz/generate", json={
        "classId": catalog["class"].id,
        "subjectId": catalog["subject"].id,
        "quizType": "chapter",
        "chapters": [catalog["chapters"][1].id],
        "difficulty": "hard",
    })
    assert [q["question_text"] for q in response.json()] == ["MCQ 2", "MCQ 6"]

    limited = client.post("/api/quizz/generate", json={
        "classId": catalog["class"].id,
        "subjectId": catalog["subject"].id,
        "questionCount": 5,
    })
    assert len(limited.json()) == 5
    assert all(q["question_type"] == "mcq" for q in limited.json())


def test_admin_manages_catalog(client, db, admin, teacher, catalog):
    headers = auth_header(admin)
    assert client.post("/api/admin/classes", json={"name": 11}, headers=auth_header(teacher)).status_code == 403

    created = client.post("/api/admin/classes", json={"name": 11}, headers=headers)
    assert created.status_code == 201
    assert client.post("/api/admin/classes", json={"name": 11}, headers=headers).status_code == 400
    assert client.post("/api/admin/classes", json={"name": 13}, headers=headers).status_code == 422

    subject = client.post(
        "/api/admin/subjects", json={"name": "Biology", "class_ids": [created.json()["id"]]}, headers=headers
    )
    assert subject.status_code == 201
    linked = client.get("/api/subjects", params={"classId": created.json()["id"]}).json()
    assert [s["name"] for s in linked] == ["Biology"]

    chapter = client.post("/api/admin/chapters", json={
        "class_id": created.json()["id"], "subject_id": subject.json()["id"], "name": "Cells", "chapter_no": 1,
    }, headers=headers)
    assert chapter.status_code == 201
    renamed = client.put(f"/api/admin/chapters/{chapter.json()['id']}", json={"name": "The Cell"}, headers=headers)
    assert renamed.json()["name"] == "The Cell"


def test_admin_question_rules(client, db, admin, catalog):
    headers = auth_header(admin)
    chapter = catalog["chapters"][0]
    base = {"subject_id": catalog["subject"].id, "chapter_id": chapter.id, "question_type": "mcq",
            "question_text": "What is force?"}

    incomplete = client.post("/api/admin/questions", json=base, headers=headers)
    assert incomplete.status_code == 422

    wrong_subject = dict(base, subject_id=catalog["chemistry"].id, option_a="a", option_b="b",
                         option_c="c", option_d="d", correct_option="b")
    assert client.post("/api/admin/questions", json=wrong_subject, headers=headers).status_code == 400

    payload = dict(base, option_a="push", option_b="pull", option_c="both", option_d="none", correct_option="c")
    created = client.post("/api/admin/questions", json=payload, headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert body["correct_option"] == "C"
    assert body["class_subject_id"] is not None

    updated = client.put(f"/api/admin/questions/{body['id']}", json={"difficulty": "hard"}, headers=headers)
    assert updated.json()["difficulty"] == "hard"
    assert client.delete(f"/api/admin/questions/{body['id']}", headers=headers).status_code == 200
    assert db.query(Question).filter(Question.id == body["id"]).count() == 0
