import enum
import uuid
from sqlalchemy import Column, String, Float, Enum, ForeignKey, DateTime, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from talentflow.database import Base, enum_values


class EvaluationStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    REFERENT_EVALUATED = "referent_evaluated"
    FINALIZED = "finalized"


class ObjectiveEvaluation(Base):
    """
    Evaluation of one collaboration's objectives.

    self_evaluation / referent_evaluation are independently nullable; which of
    them is present encodes the workflow stage.
    """
    __tablename__ = "evaluations_objectifs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    objectives_id = Column(
        String(36), ForeignKey("objectifs_collaborateurs.id", ondelete="CASCADE"),
        nullable=False, unique=True, index=True,
    )
    self_evaluation = Column(JSON, nullable=True)
    referent_evaluation = Column(JSON, nullable=True)
    status = Column(
        Enum(EvaluationStatus, values_callable=enum_values, name="evaluation_status"),
        default=EvaluationStatus.SUBMITTED,
        nullable=False,
    )

    self_score = Column(Float, nullable=True)
    referent_score = Column(Float, nullable=True)
    final_score = Column(Float, nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=True)
    referent_evaluated_at = Column(DateTime(timezone=True), nullable=True)
    finalized_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    objectives_record = relationship("CollaborationObjectives", back_populates="evaluation")
