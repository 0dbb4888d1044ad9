from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from quizdesk.core.config import settings
from quizdesk.core.errors import InvalidInput
from quizdesk.core.rate_limit import rate_limit
from quizdesk.core.security import get_current_identity
from quizdesk.core.security_audit_log import audit_log
from quizdesk.core.sessions import Identity, create_session, destroy_session
from quizdesk.db.session import get_db
from quizdesk.models.user import User, UserRole
from quizdesk.schemas.auth import AuthResponse, LoginRequest, RegisterRequest

router = APIRouter(prefix="/auth", tags=["auth"])

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SELF_REGISTER_ROLES = {UserRole.student, UserRole.teacher, UserRole.staff}


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _identity(user: User) -> Identity:
    return Identity(id=user.id, username=user.username, role=user.role)


def _open_session(response: Response, user: User) -> Identity:
    identity = _identity(user)
    sid = create_session(identity)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=sid,
        max_age=int(settings.session_ttl_minutes) * 60,
        httponly=True,
        secure=bool(settings.session_cookie_secure),
        samesite="lax",
    )
    return identity


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    request: Request,
    response: Response,
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_register", limit=10, window_seconds=60),
):
    if not settings.allow_public_register:
        raise HTTPException(status_code=403, detail="registration disabled")

    username = str(payload.username or "").strip()
    if not username or not payload.password:
        raise InvalidInput("Username and password required")
    if len(payload.password) < int(settings.password_min_length or 0):
        raise InvalidInput("password too short")
    if payload.role not in SELF_REGISTER_ROLES:
        raise HTTPException(status_code=403, detail="role cannot be self-assigned")

    existing = db.scalar(select(User).where(User.username == username))
    if existing is not None:
        audit_log(db=db, request=request, event_type="auth_register_failed", meta={"reason": "user_exists", "username": username})
        db.commit()
        raise HTTPException(status_code=409, detail="Username already exists")

    user = User(username=username, role=payload.role, password_hash=hash_password(payload.password))
    db.add(user)
    db.commit()
    db.refresh(user)

    audit_log(db=db, request=request, event_type="auth_register_success", actor_user_id=user.id, target_user_id=user.id)
    db.commit()

    identity = _open_session(response, user)
    return {"message": "Registered successfully", "user": identity.to_public()}


@router.post("/login", response_model=AuthResponse)
def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_login", limit=20, window_seconds=60),
):
    if not payload.username or not payload.password:
        raise InvalidInput("Username and password required")

    user = db.scalar(select(User).where(User.username == payload.username.strip()))
    if user is None or not verify_password(payload.password, user.password_hash):
        audit_log(db=db, request=request, event_type="auth_login_failed", meta={"username": payload.username})
        db.commit()
        raise HTTPException(status_code=401, detail="Invalid credentials")

    audit_log(
        db=db,
        request=request,
        event_type="auth_login_success",
        actor_user_id=user.id,
        target_user_id=user.id,
        meta={"user_agent": str(request.headers.get("user-agent") or "").strip()},
    )
    db.commit()

    identity = _open_session(response, user)
    return {"message": "Logged in successfully", "user": identity.to_public()}


@router.post("/logout")
def logout(request: Request, response: Response):
    destroy_session(request.cookies.get(settings.session_cookie_name))
    response.delete_cookie(settings.session_cookie_name)
    return {"message": "Logged out successfully"}


@router.get("/me")
def me(identity: Identity = Depends(get_current_identity)):
    return {"user": identity.to_public()}
