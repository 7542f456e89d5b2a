from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from talentflow.models.objectives import AnnualObjectiveStatus


class ObjectiveEntry(BaseModel):
    """
    One objective as sent by the client. Field rules (which SMART fields are
    required, vocabulary membership, duplicates) are enforced by the
    objective editor so errors can name the objective they concern.
    """
    skill_id: Optional[str] = None
    skill_description: Optional[str] = None
    theme_name: Optional[str] = None
    smart_objective: Optional[str] = None
    specific: Optional[str] = None
    measurable: Optional[str] = None
    achievable: Optional[str] = None
    relevant: Optional[str] = None
    time_bound: Optional[str] = None
    is_custom: bool = False
    objective_type: Optional[str] = None


class ObjectiveSetRequest(BaseModel):
    objectives: List[ObjectiveEntry]


class AnnualObjectiveCreate(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    employee_id: Optional[str] = None
    career_pathway_id: Optional[str] = None
    career_level_id: Optional[str] = None
    selected_themes: List[str] = []
    objectives: List[ObjectiveEntry]


class AnnualObjectiveUpdate(BaseModel):
    career_pathway_id: Optional[str] = None
    career_level_id: Optional[str] = None
    selected_themes: Optional[List[str]] = None
    objectives: Optional[List[ObjectiveEntry]] = None


class ReviewRequest(BaseModel):
    comment: Optional[str] = None


class AnnualObjectiveResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    year: int
    career_pathway_id: Optional[str] = None
    career_level_id: Optional[str] = None
    selected_themes: List[str] = []
    objectives: List[dict]
    status: AnnualObjectiveStatus
    reviewer_id: Optional[str] = None
    review_comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
