import uuid

from quizdesk.models.attempt import Attempt
from quizdesk.models.quiz import Question, Quiz
from quizdesk.models.user import UserRole

API = "/api/v1"


def _create_quiz(client, actor, **overrides):
    payload = {"title": "Algebra", "description": "basics", "timeLimit": 20, "attemptsAllowed": 3, "visibility": True}
    payload.update(overrides)
    return client.post(f"{API}/quizzes", json=payload, headers=actor.headers)


def test_author_creates_quiz_with_camel_case_fields(client, teacher):
    r = _create_quiz(client, teacher)
    assert r.status_code == 201
    quiz = r.json()["quiz"]
    assert quiz["title"] == "Algebra"
    assert quiz["time_limit"] == 20
    assert quiz["attempts_allowed"] == 3
    assert quiz["created_by"] == str(teacher.id)
    assert quiz["question_count"] == 0


def test_quiz_validation(client, teacher, student):
    assert _create_quiz(client, teacher, title="   ").status_code == 400
    assert _create_quiz(client, teacher, timeLimit=-1).status_code == 400
    assert _create_quiz(client, student).status_code == 403


def test_published_list_hides_drafts(client, teacher, student, make_quiz):
    live = make_quiz(teacher, title="Live")
    draft = make_quiz(teacher, title="Draft", visibility=False)

    r = client.get(f"{API}/quizzes")
    assert r.status_code == 200
    assert [q["id"] for q in r.json()] == [str(live.id)]

    assert client.get(f"{API}/quizzes/{draft.id}", headers=student.headers).status_code == 404
    assert client.get(f"{API}/quizzes/{draft.id}", headers=teacher.headers).status_code == 200

    r = client.get(f"{API}/quizzes/mine", headers=teacher.headers)
    assert {q["title"] for q in r.json()} == {"Live", "Draft"}


def test_partial_update_keeps_unsent_fields(client, teacher):
    quiz_id = _create_quiz(client, teacher).json()["quiz"]["id"]

    r = client.put(f"{API}/quizzes/{quiz_id}", json={"attempts_allowed": None}, headers=teacher.headers)
    assert r.status_code == 200
    quiz = r.json()["quiz"]
    assert quiz["attempts_allowed"] is None
    assert quiz["time_limit"] == 20
    assert quiz["title"] == "Algebra"


def test_only_creator_or_admin_may_modify(client, make_actor, admin):
    owner = make_actor(UserRole.teacher)
    other = make_actor(UserRole.staff)
    quiz_id = _create_quiz(client, owner).json()["quiz"]["id"]

    assert client.put(f"{API}/quizzes/{quiz_id}", json={"title": "x"}, headers=other.headers).status_code == 403
    assert client.put(f"{API}/quizzes/{quiz_id}", json={"title": "By admin"}, headers=admin.headers).status_code == 200


def test_delete_quiz_removes_questions_and_attempts(client, db, teacher, student, make_quiz):
    quiz = make_quiz(teacher, questions=[{"type": "short", "correct_answer": "4"}])
    quiz_id = quiz.id
    assert client.post(f"{API}/attempts/start/{quiz_id}", headers=student.headers).status_code == 201

    r = client.delete(f"{API}/quizzes/{quiz_id}", headers=teacher.headers)
    assert r.status_code == 200

    db.expire_all()
    assert db.get(Quiz, quiz_id) is None
    assert db.query(Question).filter(Question.quiz_id == quiz_id).count() == 0
    assert db.query(Attempt).filter(Attempt.quiz_id == quiz_id).count() == 0

    assert client.delete(f"{API}/quizzes/{quiz_id}", headers=teacher.headers).status_code == 404


def test_add_questions(client, teacher, student, make_quiz):
    quiz = make_quiz(teacher)

    r = client.post(
        f"{API}/questions",
        json={"quizId": str(quiz.id), "text": "2+2?", "type": "mcq", "options": ["3", "4"], "correctAnswer": "4", "points": 2},
        headers=teacher.headers,
    )
    assert r.status_code == 201
    assert r.json()["question"]["points"] == 2

    r = client.post(
        f"{API}/questions",
        json={"quiz_id": str(quiz.id), "text": "Earth is flat", "type": "truefalse", "correct_answer": "False"},
        headers=teacher.headers,
    )
    assert r.status_code == 201
    question = r.json()["question"]
    assert question["options"] == ["True", "False"]
    assert question["points"] == 1

    r = client.get(f"{API}/questions/{quiz.id}", headers=student.headers)
    assert r.status_code == 200
    assert len(r.json()) == 2
    assert all(q["correct_answer"] is None for q in r.json())

    r = client.get(f"{API}/questions/{quiz.id}", headers=teacher.headers)
    assert {q["correct_answer"] for q in r.json()} == {"4", "False"}


def test_question_validation(client, teacher, make_quiz):
    quiz = make_quiz(teacher)
    base = {"quiz_id": str(quiz.id), "text": "pick"}

    assert client.post(f"{API}/questions", json={**base, "type": "essay"}, headers=teacher.headers).status_code == 400
    assert (
        client.post(
            f"{API}/questions", json={**base, "type": "mcq", "options": ["only"], "correct_answer": "only"}, headers=teacher.headers
        ).status_code
        == 400
    )
    assert (
        client.post(f"{API}/questions", json={**base, "type": "mcq", "options": ["a", "b"]}, headers=teacher.headers).status_code
        == 400
    )
    assert client.post(f"{API}/questions", json={"text": "no quiz", "type": "short"}, headers=teacher.headers).status_code == 400
    assert (
        client.post(f"{API}/questions", json={**base, "quiz_id": str(uuid.uuid4()), "type": "short"}, headers=teacher.headers).status_code
        == 404
    )


def test_update_and_delete_question(client, teacher, make_quiz, qids):
    quiz = make_quiz(teacher, questions=[{"text": "old", "type": "short", "correct_answer": "x"}])
    question_id = qids(quiz)["old"]

    r = client.put(f"{API}/questions/{question_id}", json={"text": "new", "points": 0}, headers=teacher.headers)
    assert r.status_code == 200
    assert r.json()["question"]["text"] == "new"
    assert r.json()["question"]["points"] == 0
    assert r.json()["question"]["correct_answer"] == "x"

    assert client.delete(f"{API}/questions/{question_id}", headers=teacher.headers).status_code == 200
    assert client.delete(f"{API}/questions/{question_id}", headers=teacher.headers).status_code == 404
