from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import datetime, timedelta, timezone
import logging
from talentflow.core.config import settings
from talentflow.core.limiter import limiter
from talentflow.database import get_db
from talentflow.models.user import AuthIdentity, UserProfile, UserSession
from talentflow.routers.auth_deps import get_current_user
from talentflow.services import auth as auth_service
from talentflow.services.audit import AuditService
from talentflow.schemas.auth import LoginRequest, RefreshRequest, Token
from talentflow.schemas.user import ProfileResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _issue_tokens(db: Session, identity: AuthIdentity, profile: UserProfile) -> dict:
    access_token = auth_service.create_access_token(
        data={"sub": identity.id, "role": profile.role.value}
    )
    refresh_token = auth_service.create_refresh_token(data={"sub": identity.id})
    db.add(UserSession(
        identity_id=identity.id,
        refresh_token=refresh_token,
        expires_at=datetime.now(timezone.utc) + timedelta(days=auth_service.REFRESH_TOKEN_EXPIRE_DAYS),
    ))
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "user": {
            "id": profile.id,
            "email": profile.email,
            "full_name": profile.full_name,
            "role": profile.role.value,
        },
    }


@router.post("/login", response_model=Token)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    identity = (
        db.query(AuthIdentity)
        .filter(func.lower(AuthIdentity.email) == login_data.email.lower())
        .first()
    )
    if not identity or not auth_service.verify_password(login_data.password, identity.hashed_password):
        AuditService.log(
            db,
            action="failed_login",
            entity_type="user",
            entity_id=None,
            user_id=None,
            user_role=None,
            details={"email": login_data.email, "reason": "invalid_credentials"}
        )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    profile = db.get(UserProfile, identity.id)
    if profile is None or not profile.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")

    now = datetime.now(timezone.utc)
    identity.last_sign_in_at = now
    profile.last_login = now
    tokens = _issue_tokens(db, identity, profile)
    AuditService.log(
        db,
        action="login",
        entity_type="user",
        entity_id=identity.id,
        user_id=identity.id,
        user_role=profile.role,
        details={"email": identity.email},
    )
    db.commit()
    return tokens


@router.post("/refresh", response_model=Token)
def refresh_token(data: RefreshRequest, db: Session = Depends(get_db)):
    payload = auth_service.decode_access_token(data.refresh_token)
    if payload is None or payload.get("type") != "refresh":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    db_session = db.query(UserSession).filter(
        UserSession.refresh_token == data.refresh_token,
        UserSession.is_revoked.is_(False),
    ).first()
    if not db_session or _as_utc(db_session.expires_at) <= datetime.now(timezone.utc):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired or revoked")

    identity = db_session.identity
    profile = db.get(UserProfile, identity.id) if identity else None
    if not profile or not profile.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive or not found")

    # Rotation: Revoke old, create new
    db_session.is_revoked = True
    tokens = _issue_tokens(db, identity, profile)
    db.commit()
    return tokens


@router.post("/logout")
def logout(data: RefreshRequest, db: Session = Depends(get_db)):
    db_session = db.query(UserSession).filter(UserSession.refresh_token == data.refresh_token).first()
    if db_session:
        db_session.is_revoked = True
        db.commit()
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=ProfileResponse)
def get_me(current_user: UserProfile = Depends(get_current_user)):
    return current_user
