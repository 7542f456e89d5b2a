"""
Administrative user provisioning.

Creating an account writes two records in two separate transactions: the
auth identity first, then the HR profile sharing its id. The profile insert
is retried with a linearly increasing wait; if it still fails the identity
is deleted again so no orphan login survives.

The duplicate-email check and the identity insert are not atomic. The unique
constraint on auth_users.email catches the race.
"""
import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from talentflow.core.config import settings
from talentflow.core.exceptions import ValidationFailedError
from talentflow.models.user import AuthIdentity, UserProfile, UserRole
from talentflow.services import auth as auth_service
from talentflow.services.audit import AuditService
from talentflow.services.base import BaseService

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DUPLICATE_EMAIL = "A user with this email already exists"
PROFILE_FAILED = "Failed to create user profile"


def _is_unique_violation(exc: Exception) -> bool:
    if not isinstance(exc, IntegrityError):
        return False
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message or "already exists" in message


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_create_user_payload(body: Any) -> Tuple[str, str, Dict[str, Any]]:
    """
    Check a create-user body in the order the endpoint reports problems.
    Returns (email, password, user_data) with the email lower-cased.
    """
    if not isinstance(body, dict):
        raise ValidationFailedError("Missing required fields")

    email = body.get("email")
    password = body.get("password")
    user_data = body.get("userData")
    if not email or not password or not user_data:
        raise ValidationFailedError(
            "Missing required fields",
            details={"received": {"email": bool(email), "password": bool(password), "userData": bool(user_data)}},
        )

    if not isinstance(email, str) or not EMAIL_RE.match(email):
        raise ValidationFailedError("Invalid email format")

    if not isinstance(password, str) or len(password) < settings.password_min_length:
        raise ValidationFailedError(
            f"Password must be at least {settings.password_min_length} characters long"
        )

    if not isinstance(user_data, dict) or not _optional_text(user_data.get("full_name")) or not user_data.get("role"):
        raise ValidationFailedError("Missing required user data fields (full_name, role)")

    try:
        UserRole(user_data["role"])
    except ValueError:
        raise ValidationFailedError(
            f"Invalid role '{user_data['role']}'",
            details={"allowed": [r.value for r in UserRole]},
        )

    for field in ("birth_date", "hire_date"):
        raw = user_data.get(field)
        if raw:
            try:
                date.fromisoformat(str(raw))
            except ValueError:
                raise ValidationFailedError(f"Invalid {field}, expected YYYY-MM-DD")

    return email.lower(), password, user_data


class UserProvisioningService(BaseService):
    def __init__(self, db):
        super().__init__(db)
        self.audit = AuditService(db)

    def email_taken(self, email: str) -> bool:
        return (
            self.db.query(AuthIdentity.id)
            .filter(func.lower(AuthIdentity.email) == email.lower())
            .first()
            is not None
        )

    def create_user(self, actor: UserProfile, body: Any) -> Dict[str, Any]:
        email, password, user_data = validate_create_user_payload(body)
        self._check_references(user_data)

        if self.email_taken(email):
            self.log_warning(f"create-user rejected: {email} already registered")
            raise ValidationFailedError(DUPLICATE_EMAIL)

        identity = self._create_identity(actor, email, password)
        identity_id = identity.id

        try:
            self._insert_profile_with_retry(identity_id, email, user_data)
        except SQLAlchemyError as exc:
            self.log_error(
                f"Profile creation failed after {settings.profile_insert_attempts} attempts, "
                f"cleaning up auth user {identity_id}: {exc}"
            )
            self.delete_identity(identity_id)
            self.audit.log_action(
                action="create_user_failed",
                entity_type="user",
                entity_id=identity_id,
                user_id=actor.id,
                user_role=actor.role,
                details={"email": email, "reason": str(getattr(exc, "orig", exc))},
            )
            self.db.commit()
            raise ValidationFailedError(DUPLICATE_EMAIL if _is_unique_violation(exc) else PROFILE_FAILED)

        self.audit.log_action(
            action="create_user",
            entity_type="user",
            entity_id=identity_id,
            user_id=actor.id,
            user_role=actor.role,
            details={"email": email, "role": user_data["role"]},
        )
        self.db.commit()
        self.log_info(f"User {email} created by {actor.email}")
        return {"id": identity_id, "email": email}

    def _check_references(self, user_data: Dict[str, Any]):
        for field in ("manager_id", "coach_id"):
            ref = user_data.get(field)
            if ref and not self.db.get(UserProfile, ref):
                raise ValidationFailedError(f"Unknown {field}")

    def _create_identity(self, actor: UserProfile, email: str, password: str) -> AuthIdentity:
        identity = AuthIdentity(
            email=email,
            hashed_password=auth_service.get_password_hash(password),
            email_confirmed=True,
            user_metadata={
                "created_by_admin": True,
                "created_by": actor.id,
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        self.db.add(identity)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            self.log_warning(f"Auth user insert for {email} hit a constraint: {exc.orig}")
            raise ValidationFailedError(DUPLICATE_EMAIL if _is_unique_violation(exc) else "Failed to create authentication user")
        except SQLAlchemyError as exc:
            self.db.rollback()
            self.log_error(f"Auth user insert for {email} failed: {exc}")
            raise ValidationFailedError("Failed to create authentication user")
        self.db.refresh(identity)
        return identity

    def _insert_profile_with_retry(self, identity_id: str, email: str, user_data: Dict[str, Any]) -> UserProfile:
        wait = settings.profile_retry_wait_seconds
        retryer = Retrying(
            stop=stop_after_attempt(settings.profile_insert_attempts),
            wait=wait_incrementing(start=wait, increment=wait),
            retry=retry_if_exception_type(SQLAlchemyError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        for attempt in retryer:
            with attempt:
                return self._insert_profile(identity_id, email, user_data)

    def _insert_profile(self, identity_id: str, email: str, user_data: Dict[str, Any]) -> UserProfile:
        birth_date = user_data.get("birth_date")
        hire_date = user_data.get("hire_date")
        profile = UserProfile(
            id=identity_id,
            email=email,
            full_name=str(user_data["full_name"]).strip(),
            phone=_optional_text(user_data.get("phone")),
            department=_optional_text(user_data.get("department")),
            role=UserRole(user_data["role"]),
            manager_id=user_data.get("manager_id") or None,
            coach_id=user_data.get("coach_id") or None,
            birth_date=date.fromisoformat(str(birth_date)) if birth_date else None,
            hire_date=date.fromisoformat(str(hire_date)) if hire_date else None,
            job_description=_optional_text(user_data.get("job_description")),
            country=_optional_text(user_data.get("country")),
            is_active=user_data.get("is_active", True) is not False,
        )
        self.db.add(profile)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return profile

    def delete_identity(self, identity_id: str) -> bool:
        """
        Best-effort removal of an auth identity. Deleting an identity that
        is already gone is a no-op; failures are logged, not raised.
        """
        try:
            deleted = (
                self.db.query(AuthIdentity)
                .filter(AuthIdentity.id == identity_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            self.log_error(f"Failed to cleanup auth user {identity_id}: {exc}")
            return False
        if deleted:
            self.log_info(f"Auth user {identity_id} cleanup successful")
        return bool(deleted)
