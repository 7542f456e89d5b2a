from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from talentflow.core.exceptions import AccessDeniedError
from talentflow.database import get_db
from talentflow.models.user import UserProfile, UserRole, STAFF_ROLES
from talentflow.routers.auth_deps import get_current_user, require_provisioner
from talentflow.schemas.career import (
    CareerAreaCreate, CareerAreaResponse,
    CareerLevelCreate, CareerLevelResponse,
    DevelopmentThemeCreate, DevelopmentThemeResponse,
    PathwaySkillCreate, PathwaySkillResponse,
)
from talentflow.services.career import CareerService
from talentflow.services.employee_service import EmployeeService

router = APIRouter(prefix="/career", tags=["career"])


@router.get("/areas", response_model=List[CareerAreaResponse])
def list_areas(db: Session = Depends(get_db), current_user: UserProfile = Depends(get_current_user)):
    return CareerService(db).list_areas()


@router.get("/levels", response_model=List[CareerLevelResponse])
def list_levels(db: Session = Depends(get_db), current_user: UserProfile = Depends(get_current_user)):
    return CareerService(db).list_levels()


@router.get("/themes", response_model=List[DevelopmentThemeResponse])
def list_themes(
    career_area_id: Optional[str] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return CareerService(db).list_themes(career_area_id, include_inactive)


@router.get("/skills", response_model=List[PathwaySkillResponse])
def list_skills(
    career_area_id: Optional[str] = None,
    career_level_id: Optional[str] = None,
    theme_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    return CareerService(db).list_skills(career_area_id, career_level_id, theme_id)


@router.get("/skills/available", response_model=List[PathwaySkillResponse])
def available_skills(
    employee_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    """The skills an objective may reference for the caller (or the given employee)."""
    employee = current_user
    if employee_id and employee_id != current_user.id:
        if current_user.role not in STAFF_ROLES and current_user.role != UserRole.PROJECT_REFERENT:
            raise AccessDeniedError("You cannot view another employee's skills")
        employee = EmployeeService(db).get(employee_id)
    return CareerService(db).available_skills(employee.career_pathway_id, employee.career_level_id)


@router.post("/areas", response_model=CareerAreaResponse, status_code=201)
def create_area(data: CareerAreaCreate, db: Session = Depends(get_db),
                current_user: UserProfile = Depends(require_provisioner())):
    return CareerService(db).create_area(data.model_dump())


@router.post("/levels", response_model=CareerLevelResponse, status_code=201)
def create_level(data: CareerLevelCreate, db: Session = Depends(get_db),
                 current_user: UserProfile = Depends(require_provisioner())):
    return CareerService(db).create_level(data.model_dump())


@router.post("/themes", response_model=DevelopmentThemeResponse, status_code=201)
def create_theme(data: DevelopmentThemeCreate, db: Session = Depends(get_db),
                 current_user: UserProfile = Depends(require_provisioner())):
    return CareerService(db).create_theme(data.model_dump())


@router.post("/skills", response_model=PathwaySkillResponse, status_code=201)
def create_skill(data: PathwaySkillCreate, db: Session = Depends(get_db),
                 current_user: UserProfile = Depends(require_provisioner())):
    return CareerService(db).create_skill(data.model_dump())
