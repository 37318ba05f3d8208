# happytails/core/auth.py
import uuid
from datetime import timedelta
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from happytails.core.config import get_settings
from happytails.core.errors import AuthError
from happytails.core.money import utcnow
from happytails.database import get_session
from happytails.models.user import User

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so public routes can still resolve an optional user.
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user: User, minutes: int | None = None) -> str:
    """
    Issue an HS256 access token for a user.

    Claims:
      - sub  : user id (UUID string)
      - role : application role
      - exp  : now + ACCESS_TOKEN_MINUTES
    """
    expires = utcnow() + timedelta(minutes=minutes or settings.ACCESS_TOKEN_MINUTES)
    claims = {"sub": str(user.id), "role": user.role, "exp": expires}
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an access token (signature + exp).

    Raises:
        AuthError(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError:
        raise AuthError("Invalid or expired token")


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    Resolve the current user from the bearer token.

    Flow:
      1. If no Authorization header => guest => return None.
      2. Decode JWT => extract 'sub'.
      3. Load the user row; unknown users are rejected.
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise AuthError("Token missing sub")

    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise AuthError("Invalid sub in token")

    user = session.get(User, sub_uuid)
    if user is None:
        raise AuthError("User not found")
    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """Reject guests with 401."""
    if user is None:
        raise AuthError("Authentication required")
    return user


def require_admin(user: User = Depends(require_auth)) -> User:
    """
    Enforce admin role.

    Raises:
        AuthError(403): if role is not admin.
    """
    if user.role != "admin":
        raise AuthError("Admin access required", forbidden=True)
    return user


def require_customer(user: User = Depends(require_auth)) -> User:
    """
    Enforce that only customers can access a route.

    Use this for:
      - checkout / payment endpoints
      - ticket booking
    """
    if user.role != "customer":
        raise AuthError("Customer access required", forbidden=True)
    return user
