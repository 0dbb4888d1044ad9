from quizdesk.models.attempt import Attempt
from quizdesk.models.quiz import Question, Quiz
from quizdesk.models.user import User, UserRole

API = "/api/v1"


def test_list_users(client, admin, student):
    r = client.get(f"{API}/users", headers=admin.headers)
    assert r.status_code == 200
    assert {u["username"] for u in r.json()} == {admin.username, student.username}
    assert all("password_hash" not in u for u in r.json())


def test_change_role_revokes_sessions(client, admin, student):
    r = client.put(f"{API}/users/{student.id}/role", json={"role": "teacher"}, headers=admin.headers)
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "teacher"

    # The old session carried the student role.
    assert client.get(f"{API}/auth/me", headers=student.headers).status_code == 401


def test_change_role_validation(client, admin, student):
    r = client.put(f"{API}/users/{student.id}/role", json={}, headers=admin.headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Role required"

    assert client.put(f"{API}/users/{student.id}/role", json={"role": "overlord"}, headers=admin.headers).status_code == 400
    assert client.put(f"{API}/users/not-a-uuid/role", json={"role": "staff"}, headers=admin.headers).status_code == 400


def test_last_admin_cannot_be_demoted(client, admin):
    r = client.put(f"{API}/users/{admin.id}/role", json={"role": "student"}, headers=admin.headers)
    assert r.status_code == 400


def test_delete_user_cascades(client, db, admin, teacher, student, make_quiz):
    own_quiz = make_quiz(teacher, questions=[{"type": "short", "correct_answer": "a"}])
    other_quiz = make_quiz(admin, questions=[{"type": "short", "correct_answer": "a"}])
    own_quiz_id, other_quiz_id, teacher_id = own_quiz.id, other_quiz.id, teacher.id

    assert client.post(f"{API}/attempts/start/{own_quiz_id}", headers=student.headers).status_code == 201
    assert client.post(f"{API}/attempts/start/{other_quiz_id}", headers=teacher.headers).status_code == 201

    r = client.delete(f"{API}/users/{teacher_id}", headers=admin.headers)
    assert r.status_code == 200

    db.expire_all()
    assert db.get(User, teacher_id) is None
    assert db.get(Quiz, own_quiz_id) is None
    assert db.query(Question).filter(Question.quiz_id == own_quiz_id).count() == 0
    assert db.query(Attempt).filter(Attempt.quiz_id == own_quiz_id).count() == 0
    assert db.query(Attempt).filter(Attempt.user_id == teacher_id).count() == 0
    assert db.get(Quiz, other_quiz_id) is not None

    assert client.get(f"{API}/auth/me", headers=teacher.headers).status_code == 401
    assert client.delete(f"{API}/users/{teacher_id}", headers=admin.headers).status_code == 404


def test_admin_cannot_delete_self(client, admin):
    assert client.delete(f"{API}/users/{admin.id}", headers=admin.headers).status_code == 400
