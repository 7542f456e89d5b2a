from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from talentflow.database import get_db
from talentflow.models.objectives import AnnualObjectiveStatus
from talentflow.models.user import UserProfile
from talentflow.routers.auth_deps import get_current_user
from talentflow.schemas.objectives import (
    AnnualObjectiveCreate, AnnualObjectiveResponse, AnnualObjectiveUpdate, ReviewRequest,
)
from talentflow.services.annual_objectives import AnnualObjectiveService

router = APIRouter(prefix="/annual-objectives", tags=["annual-objectives"])


def _as_payload(data) -> dict:
    # Nested objective entries are dumped to plain dicts as well
    return data.model_dump(exclude_unset=True)


@router.get("", response_model=List[AnnualObjectiveResponse])
def list_annual_objectives(
    employee_id: Optional[str] = None,
    year: Optional[int] = None,
    status: Optional[AnnualObjectiveStatus] = None,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return AnnualObjectiveService(db).list_for(current_user, employee_id=employee_id, year=year, status=status)


@router.post("", response_model=AnnualObjectiveResponse, status_code=201)
def create_annual_objectives(
    data: AnnualObjectiveCreate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return AnnualObjectiveService(db).create(current_user, _as_payload(data))


@router.get("/{objective_id}", response_model=AnnualObjectiveResponse)
def get_annual_objectives(
    objective_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return AnnualObjectiveService(db).get(current_user, objective_id)


@router.put("/{objective_id}", response_model=AnnualObjectiveResponse)
def update_annual_objectives(
    objective_id: str,
    data: AnnualObjectiveUpdate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return AnnualObjectiveService(db).update(current_user, objective_id, _as_payload(data))


@router.post("/{objective_id}/submit", response_model=AnnualObjectiveResponse)
def submit_annual_objectives(
    objective_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return AnnualObjectiveService(db).submit(current_user, objective_id)


@router.post("/{objective_id}/approve", response_model=AnnualObjectiveResponse)
def approve_annual_objectives(
    objective_id: str,
    data: Optional[ReviewRequest] = None,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    comment = data.comment if data else None
    return AnnualObjectiveService(db).review(current_user, objective_id, approve=True, comment=comment)


@router.post("/{objective_id}/reject", response_model=AnnualObjectiveResponse)
def reject_annual_objectives(
    objective_id: str,
    data: Optional[ReviewRequest] = None,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    comment = data.comment if data else None
    return AnnualObjectiveService(db).review(current_user, objective_id, approve=False, comment=comment)


@router.delete("/{objective_id}", status_code=204)
def delete_annual_objectives(
    objective_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    AnnualObjectiveService(db).delete(current_user, objective_id)
