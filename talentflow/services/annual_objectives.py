"""
Annual objective sets: one per (employee, year), exactly four entries,
moving draft -> submitted -> approved | rejected. A rejected set goes back to
draft when it is edited.
"""
from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError

from talentflow.core.exceptions import AccessDeniedError, ConflictError, NotFoundError, WorkflowError
from talentflow.models.objectives import AnnualObjective, AnnualObjectiveStatus
from talentflow.models.user import UserProfile, STAFF_ROLES
from talentflow.services.audit import AuditService
from talentflow.services.base import BaseService
from talentflow.services.career import CareerService
from talentflow.services.notification import NotificationService
from talentflow.services.objective_editor import validate_annual_objectives

EDITABLE_STATUSES = (AnnualObjectiveStatus.DRAFT, AnnualObjectiveStatus.REJECTED)


class AnnualObjectiveService(BaseService):
    def __init__(self, db):
        super().__init__(db)
        self.audit = AuditService(db)
        self.career = CareerService(db)

    # --- access ---

    def _get(self, objective_id: str) -> AnnualObjective:
        record = self.db.get(AnnualObjective, objective_id)
        if not record:
            raise NotFoundError("Annual objectives not found")
        return record

    def _employee(self, employee_id: str) -> UserProfile:
        employee = self.db.get(UserProfile, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    @staticmethod
    def can_edit(user: UserProfile, record: AnnualObjective) -> bool:
        return record.employee_id == user.id or user.role in STAFF_ROLES

    @staticmethod
    def can_review(user: UserProfile, record: AnnualObjective) -> bool:
        if record.employee_id == user.id:
            return False
        if user.role in STAFF_ROLES:
            return True
        return record.employee is not None and record.employee.coach_id == user.id

    def _ensure_can_edit(self, user: UserProfile, record: AnnualObjective):
        if not self.can_edit(user, record):
            raise AccessDeniedError("You cannot modify these annual objectives")

    # --- reads ---

    def get(self, user: UserProfile, objective_id: str) -> AnnualObjective:
        record = self._get(objective_id)
        if not (self.can_edit(user, record) or self.can_review(user, record)):
            raise AccessDeniedError("You cannot view these annual objectives")
        return record

    def list_for(self, user: UserProfile, employee_id: Optional[str] = None, year: Optional[int] = None,
                 status: Optional[AnnualObjectiveStatus] = None) -> List[AnnualObjective]:
        query = self.db.query(AnnualObjective)
        if user.role in STAFF_ROLES:
            if employee_id:
                query = query.filter(AnnualObjective.employee_id == employee_id)
        else:
            # Employees and referents only see their own sets
            query = query.filter(AnnualObjective.employee_id == user.id)
        if year is not None:
            query = query.filter(AnnualObjective.year == year)
        if status is not None:
            query = query.filter(AnnualObjective.status == status)
        return query.order_by(AnnualObjective.year.desc(), AnnualObjective.created_at.desc()).all()

    # --- writes ---

    def create(self, user: UserProfile, data: dict) -> AnnualObjective:
        employee_id = data.get("employee_id") or user.id
        if employee_id != user.id and user.role not in STAFF_ROLES:
            raise AccessDeniedError("You can only create your own annual objectives")
        employee = self._employee(employee_id)

        pathway_id = data.get("career_pathway_id") or employee.career_pathway_id
        level_id = data.get("career_level_id") or employee.career_level_id
        objectives = validate_annual_objectives(
            data.get("objectives"), self.career.vocabulary(pathway_id, level_id)
        )

        existing = (
            self.db.query(AnnualObjective)
            .filter(AnnualObjective.employee_id == employee_id, AnnualObjective.year == data["year"])
            .first()
        )
        if existing:
            raise ConflictError(
                f"Annual objectives for {data['year']} already exist",
                details={"id": existing.id},
            )

        record = AnnualObjective(
            employee_id=employee_id,
            year=data["year"],
            career_pathway_id=pathway_id,
            career_level_id=level_id,
            selected_themes=data.get("selected_themes") or [],
            objectives=objectives,
            status=AnnualObjectiveStatus.DRAFT,
        )
        self.db.add(record)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Annual objectives for {data['year']} already exist")

        self.audit.log_action(
            action="create_annual_objectives",
            entity_type="annual_objectives",
            entity_id=record.id,
            user_id=user.id,
            user_role=user.role,
            details={"employee_id": employee_id, "year": record.year},
        )
        self.db.commit()
        self.db.refresh(record)
        return record

    def update(self, user: UserProfile, objective_id: str, data: dict) -> AnnualObjective:
        record = self._get(objective_id)
        self._ensure_can_edit(user, record)
        if record.status not in EDITABLE_STATUSES:
            raise WorkflowError(
                f"Annual objectives in status '{record.status.value}' can no longer be edited"
            )

        pathway_id = data.get("career_pathway_id") or record.career_pathway_id
        level_id = data.get("career_level_id") or record.career_level_id
        entries = data.get("objectives")
        if entries is not None or (pathway_id, level_id) != (record.career_pathway_id, record.career_level_id):
            # Stored entries must still belong to a changed pathway or level
            objectives = validate_annual_objectives(
                record.objectives if entries is None else entries,
                self.career.vocabulary(pathway_id, level_id),
            )
            record.objectives = objectives
        record.career_pathway_id = pathway_id
        record.career_level_id = level_id
        if data.get("selected_themes") is not None:
            record.selected_themes = data["selected_themes"]

        before = record.status
        if record.status == AnnualObjectiveStatus.REJECTED:
            record.status = AnnualObjectiveStatus.DRAFT
            record.review_comment = None

        self.audit.log_action(
            action="update_annual_objectives",
            entity_type="annual_objectives",
            entity_id=record.id,
            user_id=user.id,
            user_role=user.role,
            details={"year": record.year},
            before_state={"status": before},
            after_state={"status": record.status},
        )
        self.db.commit()
        self.db.refresh(record)
        return record

    def submit(self, user: UserProfile, objective_id: str) -> AnnualObjective:
        record = self._get(objective_id)
        self._ensure_can_edit(user, record)
        if record.status != AnnualObjectiveStatus.DRAFT:
            raise WorkflowError(f"Only draft objectives can be submitted (current: {record.status.value})")
        # Re-check count and vocabulary at the gate
        validate_annual_objectives(
            record.objectives,
            self.career.vocabulary(record.career_pathway_id, record.career_level_id),
        )

        record.status = AnnualObjectiveStatus.SUBMITTED
        employee = record.employee
        NotificationService.notify_users(
            self.db,
            [employee.coach_id if employee else None],
            "Annual objectives submitted",
            f"{employee.full_name if employee else 'An employee'} submitted objectives for {record.year}.",
            link=f"/annual-objectives/{record.id}",
        )
        self._audit_transition(user, record, AnnualObjectiveStatus.DRAFT, "submit_annual_objectives")
        self.db.commit()
        self.db.refresh(record)
        return record

    def review(self, user: UserProfile, objective_id: str, approve: bool, comment: Optional[str] = None) -> AnnualObjective:
        record = self._get(objective_id)
        if not self.can_review(user, record):
            raise AccessDeniedError("Only the employee's coach, HR or direction can review annual objectives")
        if record.status != AnnualObjectiveStatus.SUBMITTED:
            raise WorkflowError(f"Only submitted objectives can be reviewed (current: {record.status.value})")

        record.status = AnnualObjectiveStatus.APPROVED if approve else AnnualObjectiveStatus.REJECTED
        record.reviewer_id = user.id
        record.review_comment = comment

        verdict = "approved" if approve else "rejected"
        NotificationService.create_notification(
            self.db,
            record.employee_id,
            f"Annual objectives {verdict}",
            f"Your objectives for {record.year} were {verdict}." + (f" Comment: {comment}" if comment else ""),
            type="success" if approve else "warning",
            link=f"/annual-objectives/{record.id}",
        )
        self._audit_transition(user, record, AnnualObjectiveStatus.SUBMITTED, f"{'approve' if approve else 'reject'}_annual_objectives")
        self.db.commit()
        self.db.refresh(record)
        return record

    def delete(self, user: UserProfile, objective_id: str):
        record = self._get(objective_id)
        self._ensure_can_edit(user, record)
        if record.status != AnnualObjectiveStatus.DRAFT:
            raise WorkflowError("Only draft objectives can be deleted")
        self.audit.log_action(
            action="delete_annual_objectives",
            entity_type="annual_objectives",
            entity_id=record.id,
            user_id=user.id,
            user_role=user.role,
            details={"employee_id": record.employee_id, "year": record.year},
        )
        self.db.delete(record)
        self.db.commit()

    def _audit_transition(self, user: UserProfile, record: AnnualObjective, before: Any, action: str):
        self.audit.log_action(
            action=action,
            entity_type="annual_objectives",
            entity_id=record.id,
            user_id=user.id,
            user_role=user.role,
            details={"employee_id": record.employee_id, "year": record.year},
            before_state={"status": before},
            after_state={"status": record.status},
        )
