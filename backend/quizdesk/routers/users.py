from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from quizdesk.core.errors import InvalidInput, NotFound, parse_uuid
from quizdesk.core.security import require_admin
from quizdesk.core.security_audit_log import audit_log
from quizdesk.core.sessions import Identity, destroy_user_sessions
from quizdesk.db.session import get_db
from quizdesk.models.attempt import Attempt
from quizdesk.models.quiz import Question, Quiz
from quizdesk.models.user import User, UserRole
from quizdesk.schemas.auth import RoleUpdateRequest, UserPublic, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


def user_public(u: User) -> dict[str, str]:
    return {"id": str(u.id), "username": u.username, "role": u.role.value}


def _admin_count(db: Session) -> int:
    return int(db.scalar(select(func.count()).select_from(User).where(User.role == UserRole.admin)) or 0)


@router.get("", response_model=list[UserPublic])
def list_users(db: Session = Depends(get_db), _: Identity = Depends(require_admin)):
    return [user_public(u) for u in db.scalars(select(User).order_by(User.created_at, User.username)).all()]


@router.put("/{user_id}/role", response_model=UserResponse)
def change_role(
    request: Request,
    user_id: str,
    body: RoleUpdateRequest,
    db: Session = Depends(get_db),
    current: Identity = Depends(require_admin),
):
    if body.role is None:
        raise InvalidInput("Role required")

    u = db.scalar(select(User).where(User.id == parse_uuid(user_id, field="user id")))
    if u is None:
        raise NotFound("User not found")

    previous = u.role
    if previous == UserRole.admin and body.role != UserRole.admin and _admin_count(db) <= 1:
        raise HTTPException(status_code=400, detail="cannot demote last admin")

    u.role = body.role
    db.add(u)
    audit_log(
        db=db,
        request=request,
        event_type="admin_change_role",
        actor_user_id=current.id,
        target_user_id=u.id,
        meta={"previous_role": previous.value, "role": body.role.value},
    )
    db.commit()
    db.refresh(u)

    # Live sessions carry the old role.
    if previous != u.role:
        destroy_user_sessions(u.id)

    return {"message": "User role updated", "user": user_public(u)}


@router.delete("/{user_id}")
def remove_user(
    request: Request,
    user_id: str,
    db: Session = Depends(get_db),
    current: Identity = Depends(require_admin),
):
    uid = parse_uuid(user_id, field="user id")
    u = db.scalar(select(User).where(User.id == uid))
    if u is None:
        raise NotFound("User not found")
    if u.id == current.id:
        raise HTTPException(status_code=400, detail="cannot delete yourself")

    owned_quiz_ids = list(db.scalars(select(Quiz.id).where(Quiz.created_by == uid)).all())

    db.execute(delete(Attempt).where(Attempt.user_id == uid))
    if owned_quiz_ids:
        db.execute(delete(Attempt).where(Attempt.quiz_id.in_(owned_quiz_ids)))
        db.execute(delete(Question).where(Question.quiz_id.in_(owned_quiz_ids)))
        db.execute(delete(Quiz).where(Quiz.id.in_(owned_quiz_ids)))
    db.delete(u)

    audit_log(
        db=db,
        request=request,
        event_type="admin_delete_user",
        actor_user_id=current.id,
        target_user_id=uid,
        meta={"username": u.username, "quizzes_removed": len(owned_quiz_ids)},
    )
    db.commit()

    destroy_user_sessions(uid)
    return {"message": "User deleted successfully"}
