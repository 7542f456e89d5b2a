from pydantic import BaseModel, ConfigDict, StrictInt
from typing import Dict, List, Optional
from datetime import datetime
from talentflow.models.evaluation import EvaluationStatus
from talentflow.schemas.project import CollaborationResponse, ProjectSummary
from talentflow.schemas.user import ProfileSummary
from talentflow.services.evaluation_workflow import Stage


class SelfEvaluationEntry(BaseModel):
    skill_id: str
    score: Optional[StrictInt] = None
    comment: Optional[str] = None
    achievements: Optional[str] = None
    difficulties: Optional[str] = None
    learnings: Optional[str] = None
    next_steps: Optional[str] = None


class SelfEvaluationRequest(BaseModel):
    evaluations: List[SelfEvaluationEntry]


class ReferentEvaluationEntry(BaseModel):
    skill_id: str
    score: Optional[StrictInt] = None
    comment: Optional[str] = None
    observed_achievements: Optional[str] = None
    areas_for_improvement: Optional[str] = None
    overall_performance: Optional[str] = None
    development_recommendations: Optional[str] = None


class ReferentEvaluationRequest(BaseModel):
    evaluations: List[ReferentEvaluationEntry]


class EvaluationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    objectives_id: str
    status: EvaluationStatus
    self_evaluation: Optional[dict] = None
    referent_evaluation: Optional[dict] = None
    self_score: Optional[float] = None
    referent_score: Optional[float] = None
    final_score: Optional[float] = None
    submitted_at: Optional[datetime] = None
    referent_evaluated_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None


class CollaborationObjectivesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    collaboration_id: str
    objectives: List[dict]
    updated_at: Optional[datetime] = None


class CollaborationDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    collaboration: CollaborationResponse
    project: ProjectSummary
    employee: ProfileSummary
    objectives: Optional[List[dict]] = None
    evaluation: Optional[EvaluationResponse] = None
    stage: Stage
    permissions: Dict[str, bool]


class CoachingEvaluation(BaseModel):
    evaluation_id: str
    collaboration_id: str
    employee_id: str
    employee_name: str
    employee_department: Optional[str] = None
    coach_id: Optional[str] = None
    project_id: str
    project_title: str
    client_name: str
    project_role: str
    referent_id: Optional[str] = None
    referent_name: Optional[str] = None
    objectives: List[dict]
    self_evaluation: Optional[dict] = None
    referent_evaluation: Optional[dict] = None
    self_score: Optional[float] = None
    referent_score: Optional[float] = None
    final_score: Optional[float] = None
    finalized_at: Optional[datetime] = None


class CoachingEvaluationList(BaseModel):
    items: List[CoachingEvaluation]
    total: int
    average_final_score: Optional[float] = None
