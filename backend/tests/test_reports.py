import uuid
from datetime import datetime, timedelta, timezone

from quizdesk.models.attempt import Attempt
from quizdesk.models.user import UserRole

API = "/api/v1"

QUESTIONS = [
    {"text": "one", "type": "short", "correct_answer": "1"},
    {"text": "two", "type": "short", "correct_answer": "2"},
    {"text": "three", "type": "short", "correct_answer": "3"},
    {"text": "four", "type": "short", "correct_answer": "4"},
]

T0 = datetime(2026, 5, 4, 12, 0, tzinfo=timezone.utc)


def _attempt(db, quiz, actor, *, score, submitted_at):
    a = Attempt(
        quiz_id=quiz.id,
        user_id=actor.id,
        start_time=T0 - timedelta(minutes=5),
        submitted_at=submitted_at,
        answers={} if submitted_at else None,
        score=score,
    )
    db.add(a)
    db.commit()
    return a


def test_leaderboard_orders_by_score_then_submission(client, db, teacher, make_actor, make_quiz):
    quiz = make_quiz(teacher, questions=QUESTIONS)
    early, late, best, idle = (make_actor(UserRole.student) for _ in range(4))

    _attempt(db, quiz, late, score=2, submitted_at=T0 + timedelta(minutes=9))
    _attempt(db, quiz, early, score=2, submitted_at=T0 + timedelta(minutes=1))
    _attempt(db, quiz, best, score=4, submitted_at=T0 + timedelta(minutes=5))
    _attempt(db, quiz, idle, score=None, submitted_at=None)

    r = client.get(f"{API}/reports/leaderboard/{quiz.id}", headers=teacher.headers)
    assert r.status_code == 200
    rows = r.json()
    assert [row["username"] for row in rows] == [best.username, early.username, late.username]
    assert [row["rank"] for row in rows] == [1, 2, 3]


def test_analytics_counts_submitted_attempts(client, db, teacher, make_actor, make_quiz):
    quiz = make_quiz(teacher, questions=QUESTIONS)
    a, b, c = (make_actor(UserRole.student) for _ in range(3))

    _attempt(db, quiz, a, score=3, submitted_at=T0)
    _attempt(db, quiz, b, score=0, submitted_at=T0)
    _attempt(db, quiz, c, score=None, submitted_at=None)

    r = client.get(f"{API}/reports/analytics/{quiz.id}", headers=teacher.headers)
    assert r.status_code == 200
    assert r.json() == {
        "quiz_id": str(quiz.id),
        "total_attempts": 2,
        "avg_score": 1.5,
        "max_score": 3,
        "min_score": 0,
        "in_progress_attempts": 1,
    }


def test_analytics_for_quiz_without_attempts(client, teacher, make_quiz):
    quiz = make_quiz(teacher)
    r = client.get(f"{API}/reports/analytics/{quiz.id}", headers=teacher.headers)
    assert r.json()["total_attempts"] == 0
    assert r.json()["avg_score"] is None


def test_reports_for_unknown_quiz(client, teacher):
    assert client.get(f"{API}/reports/leaderboard/{uuid.uuid4()}", headers=teacher.headers).status_code == 404
    assert client.get(f"{API}/reports/analytics/{uuid.uuid4()}", headers=teacher.headers).status_code == 404


def test_user_report_percentage(client, db, teacher, student, make_quiz):
    quiz = make_quiz(teacher, questions=QUESTIONS, title="Counting")
    empty = make_quiz(teacher, title="Empty")
    _attempt(db, quiz, student, score=3, submitted_at=T0)
    _attempt(db, empty, student, score=0, submitted_at=T0 - timedelta(days=1))
    _attempt(db, quiz, student, score=None, submitted_at=None)

    r = client.get(f"{API}/reports/user", headers=student.headers)
    assert r.status_code == 200
    rows = r.json()
    assert [row["quiz"] for row in rows] == ["Counting", "Empty"]
    assert rows[0]["total_questions"] == 4
    assert rows[0]["percentage"] == 75.0
    assert rows[1]["percentage"] == 0.0


def test_user_report_exports(client, db, teacher, student, make_quiz):
    quiz = make_quiz(teacher, questions=QUESTIONS, title="Counting")
    _attempt(db, quiz, student, score=2, submitted_at=T0)

    r = client.get(f"{API}/reports/user/export/csv", headers=student.headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert 'filename="my-quiz-results.csv"' in r.headers["content-disposition"]
    lines = r.text.strip().splitlines()
    assert lines[0] == "Quiz,Score,Total Questions,Submitted At"
    assert lines[1].startswith("Counting,2,4,2026-05-04T12:00:00")

    r = client.get(f"{API}/reports/user/export/pdf", headers=student.headers)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")


def test_empty_pdf_export(client, student):
    r = client.get(f"{API}/reports/user/export/pdf", headers=student.headers)
    assert r.status_code == 200
    assert r.content.startswith(b"%PDF")


def test_system_summary(client, db, admin, teacher, staff, student, make_quiz):
    popular = make_quiz(teacher, title="Popular")
    make_quiz(teacher, title="Draft", visibility=False)
    _attempt(db, popular, student, score=1, submitted_at=T0)
    _attempt(db, popular, staff, score=1, submitted_at=T0)
    _attempt(db, popular, admin, score=None, submitted_at=None)

    r = client.get(f"{API}/reports/system", headers=admin.headers)
    assert r.status_code == 200
    body = r.json()
    assert body["users"] == {"total": 4, "students": 1, "teachers": 2, "admins": 1}
    assert body["quizzes"] == {"total": 2, "published": 1, "draft": 1}
    assert body["submitted_attempts"] == 2
    assert body["popular_quizzes"] == [{"quiz_id": str(popular.id), "title": "Popular", "attempts": 2}]
