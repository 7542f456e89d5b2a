"""
Collaboration objectives and the project evaluation workflow.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from talentflow.database import get_db
from talentflow.models.user import UserProfile
from talentflow.routers.auth_deps import get_current_user
from talentflow.schemas.evaluation import (
    CollaborationDetail, CollaborationObjectivesResponse, EvaluationResponse,
    ReferentEvaluationRequest, SelfEvaluationRequest,
)
from talentflow.schemas.objectives import ObjectiveSetRequest
from talentflow.schemas.project import CollaborationListItem, CollaborationResponse, ProjectSummary
from talentflow.services.evaluation_workflow import EvaluationWorkflowService

router = APIRouter(prefix="/collaborations", tags=["evaluations"])


@router.get("", response_model=List[CollaborationListItem])
def list_collaborations(
    project_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    service = EvaluationWorkflowService(db)
    return [
        CollaborationListItem(
            **CollaborationResponse.model_validate(c).model_dump(),
            project=ProjectSummary.model_validate(c.project),
            stage=service.stage(c).value,
        )
        for c in service.list_for(current_user, project_id=project_id)
    ]


@router.get("/{collaboration_id}", response_model=CollaborationDetail)
def get_collaboration(
    collaboration_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return EvaluationWorkflowService(db).detail(current_user, collaboration_id)


@router.put("/{collaboration_id}/objectives", response_model=CollaborationObjectivesResponse)
def define_objectives(
    collaboration_id: str,
    data: ObjectiveSetRequest,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    entries = [entry.model_dump() for entry in data.objectives]
    return EvaluationWorkflowService(db).define_objectives(current_user, collaboration_id, entries)


@router.post("/{collaboration_id}/self-evaluation", response_model=EvaluationResponse)
def submit_self_evaluation(
    collaboration_id: str,
    data: SelfEvaluationRequest,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    entries = [entry.model_dump() for entry in data.evaluations]
    return EvaluationWorkflowService(db).self_evaluate(current_user, collaboration_id, entries)


@router.post("/{collaboration_id}/referent-evaluation", response_model=EvaluationResponse)
def submit_referent_evaluation(
    collaboration_id: str,
    data: ReferentEvaluationRequest,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    entries = [entry.model_dump() for entry in data.evaluations]
    return EvaluationWorkflowService(db).referent_evaluate(current_user, collaboration_id, entries)


@router.post("/{collaboration_id}/finalize", response_model=EvaluationResponse)
def finalize_evaluation(
    collaboration_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return EvaluationWorkflowService(db).finalize(current_user, collaboration_id)
