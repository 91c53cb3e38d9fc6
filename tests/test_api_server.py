from __future__ import annotations

from datetime import timedelta

from fastapi.testclient import TestClient
import pytest

from exam_app.core.clock import utc_now
from exam_app.core.exam_manager import ExamManager
from exam_app.server.api_server import create_api_app

QUESTION = {
    "text": "What is **Big-O** of binary search?",
    "options": ["O(1)", "O(log n)", "O(n)", "O(n log n)"],
    "correct_answer": 1,
    "subject_id": "cs201",
}


@pytest.fixture
def manager() -> ExamManager:
    return ExamManager()


@pytest.fixture
def client(manager) -> TestClient:
    return TestClient(create_api_app(manager))


def _deploy(client, question_ids, *, start_offset=timedelta(minutes=-5), **overrides):
    start = utc_now() + start_offset
    payload = {
        "title": "Searching",
        "question_ids": question_ids,
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(hours=1)).isoformat(),
        "duration_minutes": 30,
        "pass_percentage": 50,
        "class_name": "CSE-A",
        "semester": 4,
    }
    payload.update(overrides)
    return client.post("/exams", json=payload)


def test_question_crud(client):
    created = client.post("/questions", json=QUESTION)
    assert created.status_code == 201
    question_id = created.json()["id"]
    assert created.json()["correct_answer"] == 1

    updated = client.put(f"/questions/{question_id}", json={**QUESTION, "correct_answer": 2})
    assert updated.status_code == 200
    assert updated.json()["correct_answer"] == 2

    listed = client.get("/questions", params={"subject_id": "cs201"})
    assert [q["id"] for q in listed.json()] == [question_id]

    assert client.delete(f"/questions/{question_id}").status_code == 204
    assert client.get("/questions").json() == []
    assert client.delete(f"/questions/{question_id}").status_code == 404


def test_invalid_question_is_rejected(client):
    response = client.post("/questions", json={**QUESTION, "options": ["only", "three", "options"]})

    assert response.status_code == 422


def test_import_questions(client):
    text = "Q: Pick B\nA: a\nB: b\nC: c\nD: d\nCORRECT: B\n"
    response = client.post("/questions/import", json={"text": text, "subject_id": "misc"})

    assert response.status_code == 201
    assert response.json()[0]["correct_answer"] == 1
    assert client.post("/questions/import", json={"text": "nonsense"}).status_code == 422


def test_exam_definition_hides_answer_key(client):
    question_id = client.post("/questions", json=QUESTION).json()["id"]
    exam = _deploy(client, [question_id])
    assert exam.status_code == 201

    response = client.get(f"/exams/{exam.json()['id']}")
    body = response.json()

    assert response.status_code == 200
    assert body["question_count"] == 1
    assert "correct_answer" not in body["questions"][0]
    assert "<strong>Big-O</strong>" in body["questions"][0]["question_html"]


def test_deploy_validation(client):
    question_id = client.post("/questions", json=QUESTION).json()["id"]

    assert _deploy(client, [question_id], pass_percentage=150).status_code == 422
    assert _deploy(client, ["missing"]).status_code == 404
    assert _deploy(client, [question_id], duration_minutes=0).status_code == 422
    assert client.get("/exams/unknown").status_code == 404


def test_list_exams_with_status(client):
    question_id = client.post("/questions", json=QUESTION).json()["id"]
    _deploy(client, [question_id])
    _deploy(client, [question_id], start_offset=timedelta(days=1), title="Later")

    listed = client.get("/exams", params={"class_name": "CSE-A", "semester": 4}).json()

    assert [(e["title"], e["status"]) for e in listed] == [("Searching", "active"), ("Later", "upcoming")]


def test_submission_and_results(client):
    question_id = client.post("/questions", json=QUESTION).json()["id"]
    exam_id = _deploy(client, [question_id]).json()["id"]
    submission = {"student_id": "s-1", "student_name": "Asha", "answers": {question_id: 1}}

    created = client.post(f"/exams/{exam_id}/submissions", json=submission)
    assert created.status_code == 201
    assert created.json()["status"] == "pass"
    assert created.json()["percentage"] == 100

    assert client.post(f"/exams/{exam_id}/submissions", json=submission).status_code == 409

    listed = client.get("/exams", params={"student_id": "s-1"}).json()
    assert listed[0]["status"] == "attended"

    results = client.get(f"/exams/{exam_id}/results").json()
    assert results["summary"] == {"attempts": 1, "passed": 1, "average_percentage": 100.0}
    assert results["results"][0]["answers"] == [
        {"question_id": question_id, "selected_option": 1, "is_correct": True}
    ]


def test_submission_outside_window_conflicts(client):
    question_id = client.post("/questions", json=QUESTION).json()["id"]
    exam_id = _deploy(client, [question_id], start_offset=timedelta(days=1)).json()["id"]

    response = client.post(
        f"/exams/{exam_id}/submissions",
        json={"student_id": "s-1", "student_name": "Asha", "answers": {}},
    )

    assert response.status_code == 409


def test_subject_routes(client):
    payload = {"code": "CS201", "name": "Algorithms", "department": "CSE", "semester": 3}
    created = client.post("/subjects", json=payload)
    assert created.status_code == 201
    subject_id = created.json()["id"]

    assert client.post("/subjects", json=payload).status_code == 409
    assert client.post("/subjects", json={**payload, "code": "CS202", "semester": 0}).status_code == 422

    teacher = {"teacher_id": "t-7", "name": "Dr. Menon", "username": "menon"}
    assigned = client.post(f"/subjects/{subject_id}/teachers", json=teacher)
    assert assigned.status_code == 200
    assert assigned.json()["teachers"] == [teacher]
    assert client.post(f"/subjects/{subject_id}/teachers", json=teacher).status_code == 409
    assert client.post("/subjects/missing/teachers", json=teacher).status_code == 404

    mine = client.get("/subjects", params={"teacher_id": "t-7"}).json()
    assert [s["code"] for s in mine] == ["CS201"]

    removed = client.delete(f"/subjects/{subject_id}/teachers/t-7")
    assert removed.status_code == 200
    assert removed.json()["teachers"] == []
    assert client.get("/subjects", params={"teacher_id": "t-7"}).json() == []
    assert client.get(f"/subjects/{subject_id}").json()["code"] == "CS201"
    assert client.get("/subjects/missing").status_code == 404
