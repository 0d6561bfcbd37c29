"""Request dependencies: the bearer-token user and role gates."""

from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from lms_quiz.core.app_exceptions import forbidden, unauthorized
from lms_quiz.core.security import verify_access_token
from lms_quiz.db.session import get_db
from lms_quiz.models.user import User, UserRole


def bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise unauthorized("Authorization header missing")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise unauthorized("Expected 'Authorization: Bearer <token>'")
    return token.strip()


def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """
    Resolve the caller from an access token issued by the auth service.

    The token's role must still match the stored role; a user whose role
    changed has to sign in again.
    """
    try:
        payload = verify_access_token(bearer_token(authorization))
        user_id = UUID(payload["sub"])
        role = payload["role"]
    except (jwt.InvalidTokenError, KeyError, ValueError) as e:
        raise unauthorized(f"Invalid or expired token: {e}") from e

    user = db.get(User, user_id)
    if user is None or user.role != role:
        raise unauthorized("Token does not match an active account")
    if not user.is_active:
        raise forbidden("User account is inactive")
    return user


def require_roles(*allowed_roles: UserRole):
    """Dependency that admits only the given roles."""

    def role_checker(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if UserRole(current_user.role) not in allowed_roles:
            raise forbidden(f"Requires role: {', '.join(r.value for r in allowed_roles)}")
        return current_user

    return role_checker


CurrentUser = Annotated[User, Depends(get_current_user)]
StudentUser = Annotated[User, Depends(require_roles(UserRole.STUDENT))]
StaffUser = Annotated[User, Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN))]
