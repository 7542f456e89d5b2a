from typing import List, Optional

from sqlalchemy import or_

from talentflow.core.exceptions import AccessDeniedError, NotFoundError, ValidationFailedError
from talentflow.models.career import CareerArea, CareerLevel
from talentflow.models.user import UserProfile, UserRole, STAFF_ROLES
from talentflow.services.audit import AuditService
from talentflow.services.base import BaseService

# Fields an employee may fill in on their own profile
SELF_EDITABLE = {"full_name", "phone", "birth_date", "job_description", "country"}


class EmployeeService(BaseService):
    def __init__(self, db):
        super().__init__(db)
        self.audit = AuditService(db)

    def get(self, employee_id: str) -> UserProfile:
        employee = self.db.get(UserProfile, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    @staticmethod
    def can_view(user: UserProfile, employee: UserProfile) -> bool:
        return (
            user.id == employee.id
            or user.role in STAFF_ROLES
            or user.role == UserRole.PROJECT_REFERENT
            or employee.manager_id == user.id
            or employee.coach_id == user.id
        )

    def get_for(self, user: UserProfile, employee_id: str) -> UserProfile:
        employee = self.get(employee_id)
        if not self.can_view(user, employee):
            raise AccessDeniedError("You cannot view this employee")
        return employee

    def list_employees(self, department: Optional[str] = None, role: Optional[UserRole] = None,
                       is_active: Optional[bool] = None, search: Optional[str] = None,
                       coach_id: Optional[str] = None) -> List[UserProfile]:
        query = self.db.query(UserProfile)
        if department:
            query = query.filter(UserProfile.department == department)
        if role is not None:
            query = query.filter(UserProfile.role == role)
        if is_active is not None:
            query = query.filter(UserProfile.is_active.is_(is_active))
        if coach_id:
            query = query.filter(UserProfile.coach_id == coach_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(UserProfile.full_name.ilike(pattern), UserProfile.email.ilike(pattern)))
        return query.order_by(UserProfile.full_name).all()

    def _check_references(self, data: dict, employee_id: str):
        for field in ("manager_id", "coach_id"):
            ref = data.get(field)
            if ref is None:
                continue
            if ref == employee_id:
                raise ValidationFailedError(f"An employee cannot be their own {field[:-3]}")
            if not self.db.get(UserProfile, ref):
                raise ValidationFailedError(f"Unknown {field}")
        if data.get("career_pathway_id") and not self.db.get(CareerArea, data["career_pathway_id"]):
            raise ValidationFailedError("Unknown career_pathway_id")
        if data.get("career_level_id") and not self.db.get(CareerLevel, data["career_level_id"]):
            raise ValidationFailedError("Unknown career_level_id")

    def update(self, user: UserProfile, employee_id: str, data: dict) -> UserProfile:
        employee = self.get(employee_id)
        self._check_references(data, employee.id)
        before = {field: getattr(employee, field) for field in data}
        for field, value in data.items():
            setattr(employee, field, value)
        self.audit.log_action(
            action="update_employee",
            entity_type="user",
            entity_id=employee.id,
            user_id=user.id,
            user_role=user.role,
            details={"fields": sorted(data)},
            before_state=before,
            after_state=data,
        )
        self.db.commit()
        self.db.refresh(employee)
        return employee

    def update_own_profile(self, user: UserProfile, data: dict) -> UserProfile:
        extra = set(data) - SELF_EDITABLE
        if extra:
            raise AccessDeniedError(f"You cannot change: {', '.join(sorted(extra))}")
        for field, value in data.items():
            setattr(user, field, value)
        self.db.commit()
        self.db.refresh(user)
        return user
