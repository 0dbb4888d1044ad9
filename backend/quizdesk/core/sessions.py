"""Server-side sessions kept in Redis.

The cookie carries only an opaque random id. The payload stored under
``session:<sid>`` is the resolved identity ``{id, username, role}``; a per-user
set ``user_sessions:<user_id>`` indexes live sessions so they can all be
revoked when the user is deleted or their role changes.
"""

from __future__ import annotations

import json
import secrets
import uuid
from dataclasses import dataclass

from quizdesk.core.config import settings
from quizdesk.core.redis_client import get_redis
from quizdesk.models.user import UserRole, is_author_role


@dataclass(frozen=True)
class Identity:
    id: uuid.UUID
    username: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    @property
    def is_author(self) -> bool:
        return is_author_role(self.role)

    def to_public(self) -> dict[str, str]:
        return {"id": str(self.id), "username": self.username, "role": self.role.value}


def _session_key(sid: str) -> str:
    return f"session:{sid}"


def _user_sessions_key(user_id: str) -> str:
    return f"user_sessions:{user_id}"


def _ttl_seconds() -> int:
    return max(60, int(settings.session_ttl_minutes) * 60)


def create_session(identity: Identity) -> str:
    sid = secrets.token_urlsafe(32)
    r = get_redis()
    r.set(_session_key(sid), json.dumps(identity.to_public()), ex=_ttl_seconds())
    r.sadd(_user_sessions_key(str(identity.id)), sid)
    return sid


def load_session(sid: str | None) -> Identity | None:
    """Resolve a session id to its identity and slide its expiry."""
    if not sid:
        return None
    r = get_redis()
    raw = r.get(_session_key(sid))
    if raw is None:
        return None
    try:
        data = json.loads(raw)
        identity = Identity(id=uuid.UUID(str(data["id"])), username=str(data["username"]), role=UserRole(data["role"]))
    except (ValueError, KeyError, TypeError):
        r.delete(_session_key(sid))
        return None
    r.expire(_session_key(sid), _ttl_seconds())
    return identity


def destroy_session(sid: str | None) -> None:
    if not sid:
        return
    r = get_redis()
    raw = r.get(_session_key(sid))
    r.delete(_session_key(sid))
    if raw is None:
        return
    try:
        user_id = str(json.loads(raw).get("id") or "")
    except (ValueError, AttributeError):
        return
    if user_id:
        r.srem(_user_sessions_key(user_id), sid)


def destroy_user_sessions(user_id: uuid.UUID | str) -> int:
    r = get_redis()
    index_key = _user_sessions_key(str(user_id))
    sids = list(r.smembers(index_key) or [])
    for sid in sids:
        r.delete(_session_key(sid))
    r.delete(index_key)
    return len(sids)
