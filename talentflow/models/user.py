"""
Identity and profile models.

An AuthIdentity is the login credential; a UserProfile is the HR record that
shares its id. They are written in two separate steps by the create-user
endpoint, so an identity can briefly exist without its profile.
"""
import enum
import uuid
from sqlalchemy import Column, String, Enum, DateTime, Date, Boolean, ForeignKey, Text, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from talentflow.database import Base, enum_values


class UserRole(str, enum.Enum):
    """
    Fixed set of roles.

    - EMPLOYEE: self-service (own objectives, own self-evaluations)
    - PROJECT_REFERENT: leads projects and evaluates collaborators
    - HR_COACH: follows coachees' development, reviews annual objectives
    - DIRECTION: management, can provision users
    - ADMIN: full access, can provision users
    """
    EMPLOYEE = "employee"
    PROJECT_REFERENT = "project_referent"
    HR_COACH = "hr_coach"
    DIRECTION = "direction"
    ADMIN = "admin"


# Roles allowed to provision new accounts through the create-user endpoint
PROVISIONING_ROLES = (UserRole.DIRECTION, UserRole.ADMIN)
# Roles that may edit anyone's objectives and read every employee record
STAFF_ROLES = (UserRole.HR_COACH, UserRole.DIRECTION, UserRole.ADMIN)


def _uuid() -> str:
    return str(uuid.uuid4())


class AuthIdentity(Base):
    __tablename__ = "auth_users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    email_confirmed = Column(Boolean, default=False, nullable=False)
    user_metadata = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)

    sessions = relationship("UserSession", back_populates="identity", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<AuthIdentity {self.email}>"


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String(36), primary_key=True, default=_uuid)
    identity_id = Column(String(36), ForeignKey("auth_users.id", ondelete="CASCADE"), nullable=False, index=True)
    refresh_token = Column(String, unique=True, index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    is_revoked = Column(Boolean, default=False, nullable=False)

    identity = relationship("AuthIdentity", back_populates="sessions")


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(String(36), ForeignKey("auth_users.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    department = Column(String, nullable=True, index=True)

    role = Column(
        Enum(UserRole, values_callable=enum_values, name="user_role"),
        default=UserRole.EMPLOYEE,
        nullable=False,
    )

    manager_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=True)
    coach_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=True, index=True)
    career_pathway_id = Column(String(36), ForeignKey("career_areas.id"), nullable=True)
    career_level_id = Column(String(36), ForeignKey("career_levels.id"), nullable=True)

    birth_date = Column(Date, nullable=True)
    hire_date = Column(Date, nullable=True)
    job_description = Column(Text, nullable=True)
    country = Column(String, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    manager = relationship("UserProfile", remote_side=[id], foreign_keys=[manager_id])
    coach = relationship("UserProfile", remote_side=[id], foreign_keys=[coach_id])
    career_pathway = relationship("CareerArea")
    career_level = relationship("CareerLevel")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<UserProfile {self.email} ({self.role.value})>"

    @property
    def is_staff(self) -> bool:
        """HR coach, direction and admin see and edit every employee's objectives."""
        return self.role in STAFF_ROLES

    @property
    def can_provision_users(self) -> bool:
        return self.role in PROVISIONING_ROLES
