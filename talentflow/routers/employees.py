from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from talentflow.core.exceptions import AccessDeniedError
from talentflow.database import get_db
from talentflow.models.user import UserProfile, UserRole, STAFF_ROLES
from talentflow.routers.auth_deps import get_current_user, require_provisioner
from talentflow.schemas.evaluation import CoachingEvaluationList
from talentflow.schemas.objectives import AnnualObjectiveResponse
from talentflow.schemas.project import CollaborationResponse
from talentflow.schemas.user import EmployeeUpdate, ProfileCompletion, ProfileResponse
from talentflow.services.annual_objectives import AnnualObjectiveService
from talentflow.services.coaching import CoachingService
from talentflow.services.employee_service import EmployeeService
from talentflow.services.evaluation_workflow import EvaluationWorkflowService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=List[ProfileResponse])
def list_employees(
    department: Optional[str] = None,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    service = EmployeeService(db)
    if current_user.role in STAFF_ROLES or current_user.role == UserRole.PROJECT_REFERENT:
        return service.list_employees(department=department, role=role, is_active=is_active, search=search)
    # Employees only see themselves
    return [current_user]


@router.patch("/me", response_model=ProfileResponse)
def complete_my_profile(
    data: ProfileCompletion,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return EmployeeService(db).update_own_profile(current_user, data.model_dump(exclude_unset=True))


@router.get("/{employee_id}", response_model=ProfileResponse)
def get_employee(
    employee_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return EmployeeService(db).get_for(current_user, employee_id)


@router.patch("/{employee_id}", response_model=ProfileResponse)
def update_employee(
    employee_id: str,
    data: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_provisioner()),
):
    return EmployeeService(db).update(current_user, employee_id, data.model_dump(exclude_unset=True))


@router.get("/{employee_id}/annual-objectives", response_model=List[AnnualObjectiveResponse])
def employee_annual_objectives(
    employee_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    EmployeeService(db).get_for(current_user, employee_id)
    if current_user.id != employee_id and current_user.role not in STAFF_ROLES:
        raise AccessDeniedError("You cannot view this employee's annual objectives")
    return AnnualObjectiveService(db).list_for(current_user, employee_id=employee_id)


@router.get("/{employee_id}/collaborations", response_model=List[CollaborationResponse])
def employee_collaborations(
    employee_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    EmployeeService(db).get_for(current_user, employee_id)
    return EvaluationWorkflowService(db).list_for(current_user, employee_id=employee_id)


@router.get("/{employee_id}/evaluations", response_model=CoachingEvaluationList)
def employee_evaluations(
    employee_id: str,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    employee = EmployeeService(db).get_for(current_user, employee_id)
    if not (current_user.id == employee.id or current_user.role in STAFF_ROLES or employee.coach_id == current_user.id):
        raise AccessDeniedError("You cannot view this employee's evaluations")
    return CoachingService(db).employee_evaluations(employee_id)
