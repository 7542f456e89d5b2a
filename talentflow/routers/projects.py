from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from talentflow.core.exceptions import AccessDeniedError
from talentflow.database import get_db
from talentflow.models.project import ProjectStatus
from talentflow.models.user import UserProfile, UserRole, STAFF_ROLES
from talentflow.routers.auth_deps import get_current_user, require_role
from talentflow.schemas.project import (
    CollaboratorCreate, CollaborationResponse, ProjectCreate, ProjectResponse, ProjectUpdate,
)
from talentflow.services.project_service import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])

PROJECT_CREATORS = [UserRole.PROJECT_REFERENT, *STAFF_ROLES]


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    status: Optional[ProjectStatus] = None,
    referent_id: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return ProjectService(db).list_for(current_user, status=status, referent_id=referent_id, search=search)


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_role(PROJECT_CREATORS)),
):
    payload = data.model_dump()
    return ProjectService(db).create(current_user, payload)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    service = ProjectService(db)
    project = service.get(project_id)
    involved = any(c.employee_id == current_user.id for c in project.collaborations)
    if not (involved or service.can_manage(current_user, project) or current_user.role in STAFF_ROLES):
        raise AccessDeniedError("You are not involved in this project")
    return project


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: str,
    data: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return ProjectService(db).update(current_user, project_id, data.model_dump(exclude_unset=True))


@router.post("/{project_id}/collaborators", response_model=CollaborationResponse, status_code=201)
def add_collaborator(
    project_id: str,
    data: CollaboratorCreate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return ProjectService(db).add_collaborator(current_user, project_id, data.model_dump())


@router.delete("/{project_id}/collaborators/{collaboration_id}", response_model=CollaborationResponse)
def remove_collaborator(
    project_id: str,
    collaboration_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return ProjectService(db).remove_collaborator(current_user, project_id, collaboration_id)


@router.post("/{project_id}/complete", response_model=ProjectResponse)
def complete_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return ProjectService(db).complete(current_user, project_id)
