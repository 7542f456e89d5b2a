from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from talentflow.core.exceptions import ConflictError, NotFoundError
from talentflow.database import get_db
from talentflow.models.department import Department
from talentflow.models.user import UserProfile
from talentflow.routers.auth_deps import get_current_user, require_provisioner
from talentflow.schemas.department import DepartmentCreate, DepartmentResponse, DepartmentUpdate

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("", response_model=List[DepartmentResponse])
def list_departments(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    query = db.query(Department)
    if not include_inactive:
        query = query.filter(Department.is_active.is_(True))
    departments = query.order_by(Department.sort_order, Department.name).all()

    # Profiles reference their department by name
    counts = dict(
        db.query(UserProfile.department, func.count(UserProfile.id))
        .group_by(UserProfile.department)
        .all()
    )
    result = []
    for dept in departments:
        item = DepartmentResponse.model_validate(dept)
        item.employee_count = counts.get(dept.name, 0)
        result.append(item)
    return result


@router.post("", response_model=DepartmentResponse, status_code=201)
def create_department(
    data: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_provisioner()),
):
    if db.query(Department).filter(func.lower(Department.name) == data.name.lower()).first():
        raise ConflictError(f"Department '{data.name}' already exists")
    dept = Department(**data.model_dump())
    db.add(dept)
    db.commit()
    db.refresh(dept)
    return dept


@router.patch("/{department_id}", response_model=DepartmentResponse)
def update_department(
    department_id: int,
    data: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_provisioner()),
):
    dept = db.get(Department, department_id)
    if not dept:
        raise NotFoundError("Department not found")
    updates = data.model_dump(exclude_unset=True)
    if "name" in updates and updates["name"] != dept.name:
        clash = db.query(Department).filter(
            func.lower(Department.name) == updates["name"].lower(), Department.id != dept.id
        ).first()
        if clash:
            raise ConflictError(f"Department '{updates['name']}' already exists")
        # Keep profiles pointing at the renamed department
        db.query(UserProfile).filter(UserProfile.department == dept.name).update(
            {UserProfile.department: updates["name"]}, synchronize_session=False
        )
    for field, value in updates.items():
        setattr(dept, field, value)
    db.commit()
    db.refresh(dept)
    return dept
