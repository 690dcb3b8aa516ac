"""
Bearer-token dependencies shared by every protected router.

`get_current_user` answers 401 for anything wrong with the token itself and
403 for a valid token whose account has been deactivated. `require_manager`
is the guard used by all approval, listing and catalogue endpoints.
"""
import logging
from typing import Callable, Iterable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from attendly.core.exceptions import AccessDeniedError
from attendly.database import get_db
from attendly.models.user import User, UserRole
from attendly.services import auth as auth_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _token_subject(token: str) -> str:
    """Email carried by a usable access token."""
    claims = auth_service.decode_access_token(token) or {}
    if claims.get("error") == "TOKEN_EXPIRED":
        raise _unauthorized("TOKEN_EXPIRED")
    subject = claims.get("sub")
    if claims.get("type") != "access" or not subject:
        logger.warning("Bearer token rejected", extra={"has_claims": bool(claims)})
        raise _unauthorized("Could not validate credentials")
    return subject


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    email = _token_subject(token)
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise _unauthorized("Could not validate credentials")
    if not user.is_active:
        logger.info("Inactive account used a valid token", extra={"user_id": user.id})
        raise AccessDeniedError("User is inactive")
    return user


def require_role(allowed_roles: Iterable[UserRole]) -> Callable:
    allowed = tuple(allowed_roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise AccessDeniedError("This action requires one of: " + ", ".join(sorted(r.value for r in allowed)))
        return current_user
    return role_checker


require_manager = require_role([UserRole.MANAGER])
