from scripts.seed_users import ensure_user

from quizdesk.models.user import User, UserRole
from quizdesk.routers.auth import verify_password


def test_ensure_user_is_idempotent(db):
    user, created = ensure_user(db, username="root", role=UserRole.admin, password="bootstrap-pass")
    assert created is True
    assert user.role == UserRole.admin
    assert verify_password("bootstrap-pass", user.password_hash)

    again, created = ensure_user(db, username="root", role=UserRole.student, password="other-pass")
    assert created is False
    assert again.id == user.id
    assert again.role == UserRole.admin
    assert db.query(User).filter(User.username == "root").count() == 1


def test_seeded_admin_can_log_in(client, db):
    ensure_user(db, username="root", role=UserRole.admin, password="bootstrap-pass")

    r = client.post("/api/v1/auth/login", json={"username": "root", "password": "bootstrap-pass"})
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "admin"
