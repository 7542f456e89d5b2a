from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date, datetime
from talentflow.models.project import ProjectPriority, ProjectStatus


class CollaboratorCreate(BaseModel):
    employee_id: str
    project_role: str = Field(..., min_length=1)
    allocation_pct: int = Field(100, ge=0, le=100)
    responsibilities: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProjectCreate(BaseModel):
    client_name: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_date: date
    planned_end_date: Optional[date] = None
    estimated_budget: Optional[float] = Field(None, ge=0)
    priority: ProjectPriority = ProjectPriority.NORMAL
    referent_id: Optional[str] = None
    goals: List[str] = []
    risks: List[str] = []
    notes: Optional[str] = None
    collaborators: List[CollaboratorCreate] = []


class ProjectUpdate(BaseModel):
    client_name: Optional[str] = Field(None, min_length=1)
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    planned_end_date: Optional[date] = None
    estimated_budget: Optional[float] = Field(None, ge=0)
    priority: Optional[ProjectPriority] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    status: Optional[ProjectStatus] = None
    referent_id: Optional[str] = None
    goals: Optional[List[str]] = None
    risks: Optional[List[str]] = None
    notes: Optional[str] = None


class ProjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_name: str
    title: str
    status: ProjectStatus
    referent_id: str
    start_date: date
    planned_end_date: Optional[date] = None


class CollaborationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    employee_id: str
    project_role: str
    allocation_pct: int
    responsibilities: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool


class ProjectResponse(ProjectSummary):
    description: Optional[str] = None
    estimated_budget: Optional[float] = None
    priority: ProjectPriority
    progress: int
    author_id: str
    goals: List[str] = []
    risks: List[str] = []
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    collaborations: List[CollaborationResponse] = []


class CollaborationListItem(CollaborationResponse):
    project: ProjectSummary
    stage: Optional[str] = None
