"""
FastAPI dependencies for authentication and authorization.

Every data endpoint resolves a ``SessionUser`` from the bearer token. Users
with an admin or group-admin role see every marina; everyone else is scoped
to the marina in their token.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import BaseModel

from marinaops.auth.jwt import decode_access_token
from marinaops.models.enums import UserRole
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)

CROSS_MARINA_ROLES = frozenset({UserRole.ADMIN, UserRole.GROUP_ADMIN})


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    marina_id: Optional[str] = None
    role: UserRole = UserRole.VIEWER

    @property
    def sees_all_marinas(self) -> bool:
        return self.role in CROSS_MARINA_ROLES

    @property
    def marina_scope(self) -> Optional[str]:
        """Marina filter for list reads; None means unrestricted."""
        return None if self.sees_all_marinas else self.marina_id

    def can_access(self, marina_id: Optional[str]) -> bool:
        return self.sees_all_marinas or (
            self.marina_id is not None and marina_id == self.marina_id
        )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> SessionUser:
    """
    Resolve the session user from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or has no subject
    """
    if not credentials:
        logger.warning("auth_failed", reason="missing_token")
        raise _unauthorized("Missing authentication token")

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as e:
        logger.warning("auth_failed", reason="invalid_token", error=str(e))
        raise _unauthorized(f"Invalid authentication token: {str(e)}")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("auth_failed", reason="missing_subject")
        raise _unauthorized("Invalid token payload")

    try:
        role = UserRole(payload.get("role") or UserRole.VIEWER.value)
    except ValueError:
        logger.warning("auth_failed", reason="unknown_role", role=payload.get("role"))
        raise _unauthorized("Invalid token payload")

    user = SessionUser(
        id=user_id,
        email=payload.get("email"),
        marina_id=payload.get("marina_id"),
        role=role,
    )
    if not user.sees_all_marinas and user.marina_id is None:
        logger.warning("access_denied", user_id=user.id, reason="no_marina_assignment")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not assigned to a marina",
        )
    logger.debug("auth_success", user_id=user.id, role=user.role.value)
    return user


def require_marina_access(user: SessionUser, marina_id: Optional[str], resource: str) -> None:
    """
    Raise 403 when ``user`` may not read a record belonging to ``marina_id``.
    """
    if not user.can_access(marina_id):
        logger.warning(
            "access_denied",
            user_id=user.id,
            resource=resource,
            marina_id=marina_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )


async def require_manager(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    """Dependency for endpoints that change global state (managers and above)."""
    if user.role not in (UserRole.ADMIN, UserRole.GROUP_ADMIN, UserRole.MANAGER):
        logger.warning("access_denied", user_id=user.id, resource="manager_only")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    return user
