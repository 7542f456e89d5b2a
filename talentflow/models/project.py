import enum
import uuid
from sqlalchemy import Column, Integer, String, Date, Float, Enum, ForeignKey, DateTime, Boolean, Text, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from talentflow.database import Base, enum_values


def _uuid() -> str:
    return str(uuid.uuid4())


class ProjectStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class ProjectPriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Project(Base):
    __tablename__ = "projets"

    id = Column(String(36), primary_key=True, default=_uuid)
    client_name = Column(String, nullable=False)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    planned_end_date = Column(Date, nullable=True)
    estimated_budget = Column(Float, nullable=True)
    status = Column(
        Enum(ProjectStatus, values_callable=enum_values, name="project_status"),
        default=ProjectStatus.IN_PROGRESS,
        nullable=False,
    )
    priority = Column(
        Enum(ProjectPriority, values_callable=enum_values, name="project_priority"),
        default=ProjectPriority.NORMAL,
        nullable=False,
    )
    progress = Column(Integer, default=0, nullable=False)  # percent
    referent_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=False, index=True)
    author_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=False)
    goals = Column(JSON, default=list)
    risks = Column(JSON, default=list)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    referent = relationship("UserProfile", foreign_keys=[referent_id])
    author = relationship("UserProfile", foreign_keys=[author_id])
    collaborations = relationship("ProjectCollaboration", back_populates="project", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Project {self.title} ({self.status.value})>"


class ProjectCollaboration(Base):
    __tablename__ = "projet_collaborateurs"

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(String(36), ForeignKey("projets.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=False, index=True)
    project_role = Column(String, nullable=False)
    allocation_pct = Column(Integer, default=100, nullable=False)
    responsibilities = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    project = relationship("Project", back_populates="collaborations")
    employee = relationship("UserProfile")
    objectives = relationship("CollaborationObjectives", back_populates="collaboration", uselist=False)
