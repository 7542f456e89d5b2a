"""
RBAC Dependencies.
Resolve the bearer token to the caller's profile and enforce roles.
"""
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from typing import List, Callable
from talentflow.database import get_db
from talentflow.models.user import AuthIdentity, UserProfile, UserRole, STAFF_ROLES, PROVISIONING_ROLES
from talentflow.services import auth as auth_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> UserProfile:
    """
    Extracts and validates the current user from the JWT token.
    The token subject is the auth identity id; the returned object is the
    matching profile.
    """
    payload = auth_service.decode_access_token(token)

    if payload is None:
        logger.warning("Authentication failed: Invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("error") == "TOKEN_EXPIRED":
        logger.info("Authentication failed: Token expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="TOKEN_EXPIRED",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != "access":
        logger.warning("Authentication failed: Invalid token type")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    identity_id = payload.get("sub")
    identity = db.get(AuthIdentity, identity_id) if identity_id else None
    if identity is None:
        logger.warning(f"Authentication failed: identity {identity_id} not found")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication",
            headers={"WWW-Authenticate": "Bearer"},
        )

    profile = db.get(UserProfile, identity.id)
    if profile is None:
        logger.warning(f"Access denied: identity {identity.id} has no profile")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User profile not found")
    if not profile.is_active:
        logger.warning(f"Access denied: user {profile.email} is inactive")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")
    return profile


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks if the user has one of the allowed roles.

    Usage:
        @router.get("/admin-only")
        def admin_endpoint(user: UserProfile = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    def role_checker(current_user: UserProfile = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            logger.warning(
                f"Access denied for {current_user.email}: role {current_user.role.value} "
                f"not in {[r.value for r in allowed_roles]}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user
    return role_checker


def require_staff():
    """HR coach, direction or admin."""
    return require_role(list(STAFF_ROLES))


def require_provisioner():
    """Direction or admin."""
    return require_role(list(PROVISIONING_ROLES))
