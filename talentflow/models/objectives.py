"""
Objective sets.

Both tables store the entries as one JSON list that every save overwrites as
a whole; see talentflow.services.objective_editor for the entry rules.
"""
import enum
import uuid
from sqlalchemy import Column, Integer, String, Enum, ForeignKey, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from talentflow.database import Base, enum_values


def _uuid() -> str:
    return str(uuid.uuid4())


class AnnualObjectiveStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class AnnualObjective(Base):
    __tablename__ = "annual_objectives"
    __table_args__ = (
        UniqueConstraint("employee_id", "year", name="uq_annual_objectives_employee_year"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    employee_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    career_pathway_id = Column(String(36), ForeignKey("career_areas.id"), nullable=True)
    career_level_id = Column(String(36), ForeignKey("career_levels.id"), nullable=True)
    selected_themes = Column(JSON, default=list)
    objectives = Column(JSON, nullable=False)
    status = Column(
        Enum(AnnualObjectiveStatus, values_callable=enum_values, name="annual_objective_status"),
        default=AnnualObjectiveStatus.DRAFT,
        nullable=False,
    )
    reviewer_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=True)
    review_comment = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("UserProfile", foreign_keys=[employee_id])
    career_pathway = relationship("CareerArea")
    career_level = relationship("CareerLevel")


class CollaborationObjectives(Base):
    __tablename__ = "objectifs_collaborateurs"

    id = Column(String(36), primary_key=True, default=_uuid)
    collaboration_id = Column(
        String(36), ForeignKey("projet_collaborateurs.id", ondelete="CASCADE"),
        nullable=False, unique=True, index=True,
    )
    objectives = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    collaboration = relationship("ProjectCollaboration", back_populates="objectives")
    evaluation = relationship("ObjectiveEvaluation", back_populates="objectives_record", uselist=False)
