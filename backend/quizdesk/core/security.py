from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from quizdesk.core.config import settings
from quizdesk.core.sessions import Identity, load_session
from quizdesk.models.user import AUTHOR_ROLES, UserRole


def get_current_identity(request: Request) -> Identity:
    sid = request.cookies.get(settings.session_cookie_name)
    identity = load_session(sid)
    if identity is None:
        raise HTTPException(status_code=401, detail="Authentication required")

    request.state.user_id = str(identity.id)
    return identity


def get_optional_identity(request: Request) -> Identity | None:
    identity = load_session(request.cookies.get(settings.session_cookie_name))
    if identity is not None:
        request.state.user_id = str(identity.id)
    return identity


def require_roles(*roles: UserRole):
    allowed = set(roles)
    # teacher and staff are the same role for authorization.
    if allowed & AUTHOR_ROLES:
        allowed |= AUTHOR_ROLES

    def _dep(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role == UserRole.admin:
            return identity

        if identity.role not in allowed:
            raise HTTPException(status_code=403, detail="Access denied")
        return identity

    return _dep


require_author = require_roles(UserRole.teacher, UserRole.staff)
require_admin = require_roles(UserRole.admin)
