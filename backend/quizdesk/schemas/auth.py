from __future__ import annotations

from pydantic import BaseModel

from quizdesk.models.user import UserRole


class RegisterRequest(BaseModel):
    username: str
    password: str
    role: UserRole = UserRole.student


class LoginRequest(BaseModel):
    username: str
    password: str


class UserPublic(BaseModel):
    id: str
    username: str
    role: str


class AuthResponse(BaseModel):
    message: str
    user: UserPublic


class RoleUpdateRequest(BaseModel):
    role: UserRole | None = None


class UserResponse(BaseModel):
    message: str
    user: UserPublic
