from typing import List, Optional

from talentflow.core.exceptions import AccessDeniedError, ConflictError, NotFoundError, ValidationFailedError, WorkflowError
from talentflow.models.project import Project, ProjectCollaboration, ProjectStatus
from talentflow.models.user import UserProfile, UserRole, STAFF_ROLES
from talentflow.services.audit import AuditService
from talentflow.services.base import BaseService
from talentflow.services.notification import NotificationService

# Statuses a project can be moved to through a plain update; completion has its own endpoint
UPDATABLE_STATUSES = (ProjectStatus.IN_PROGRESS, ProjectStatus.ON_HOLD, ProjectStatus.CANCELLED)

SELF_REFERENT = "The project referent cannot also be a collaborator on the project"


class ProjectService(BaseService):
    def __init__(self, db):
        super().__init__(db)
        self.audit = AuditService(db)

    def get(self, project_id: str) -> Project:
        project = self.db.get(Project, project_id)
        if not project:
            raise NotFoundError("Project not found")
        return project

    @staticmethod
    def can_manage(user: UserProfile, project: Project) -> bool:
        return user.id in (project.author_id, project.referent_id) or user.role == UserRole.ADMIN

    def _ensure_can_manage(self, user: UserProfile, project: Project):
        if not self.can_manage(user, project):
            raise AccessDeniedError("Only the project author, its referent or an admin can modify this project")

    def _profile(self, profile_id: str, field: str) -> UserProfile:
        profile = self.db.get(UserProfile, profile_id)
        if not profile:
            raise ValidationFailedError(f"Unknown {field}")
        return profile

    def list_for(self, user: UserProfile, status: Optional[ProjectStatus] = None,
                 referent_id: Optional[str] = None, search: Optional[str] = None) -> List[Project]:
        query = self.db.query(Project)
        if user.role not in STAFF_ROLES:
            # Referents and employees see the projects they lead, wrote or work on
            involved = self.db.query(ProjectCollaboration.project_id).filter(
                ProjectCollaboration.employee_id == user.id
            )
            query = query.filter(
                (Project.referent_id == user.id)
                | (Project.author_id == user.id)
                | (Project.id.in_(involved))
            )
        if status is not None:
            query = query.filter(Project.status == status)
        if referent_id:
            query = query.filter(Project.referent_id == referent_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(Project.title.ilike(pattern) | Project.client_name.ilike(pattern))
        return query.order_by(Project.created_at.desc()).all()

    def create(self, user: UserProfile, data: dict) -> Project:
        collaborators = data.pop("collaborators", None) or []
        referent_id = data.get("referent_id") or user.id
        self._profile(referent_id, "referent_id")
        if data.get("planned_end_date") and data["planned_end_date"] < data["start_date"]:
            raise ValidationFailedError("planned_end_date must not be before start_date")

        seen = set()
        for item in collaborators:
            if item["employee_id"] in seen:
                raise ValidationFailedError("An employee can only be added once to a project")
            if item["employee_id"] == referent_id:
                raise ValidationFailedError(SELF_REFERENT)
            seen.add(item["employee_id"])
            self._profile(item["employee_id"], "employee_id")

        project = Project(
            **{**data, "referent_id": referent_id},
            author_id=user.id,
            status=ProjectStatus.IN_PROGRESS,
        )
        self.db.add(project)
        self.db.flush()
        for item in collaborators:
            self.db.add(ProjectCollaboration(project_id=project.id, **item))

        self.audit.log_action(
            action="create_project",
            entity_type="project",
            entity_id=project.id,
            user_id=user.id,
            user_role=user.role,
            details={"title": project.title, "collaborators": len(collaborators)},
        )
        self.db.commit()
        self.db.refresh(project)
        self.log_info(f"Project {project.id} created by {user.email}")
        return project

    def update(self, user: UserProfile, project_id: str, data: dict) -> Project:
        project = self.get(project_id)
        self._ensure_can_manage(user, project)
        if project.status == ProjectStatus.COMPLETED:
            raise WorkflowError("A completed project can no longer be modified")
        if data.get("referent_id"):
            self._profile(data["referent_id"], "referent_id")
            if any(c.is_active and c.employee_id == data["referent_id"] for c in project.collaborations):
                raise ValidationFailedError(SELF_REFERENT)

        status = data.pop("status", None)
        if status is not None:
            if status not in UPDATABLE_STATUSES:
                raise WorkflowError("Use the complete endpoint to close a project")
            before = project.status
            project.status = status
            self.audit.log_action(
                action="update_project_status",
                entity_type="project",
                entity_id=project.id,
                user_id=user.id,
                user_role=user.role,
                details={"title": project.title},
                before_state={"status": before},
                after_state={"status": status},
            )
        for field, value in data.items():
            setattr(project, field, value)

        self.db.commit()
        self.db.refresh(project)
        return project

    def add_collaborator(self, user: UserProfile, project_id: str, data: dict) -> ProjectCollaboration:
        project = self.get(project_id)
        self._ensure_can_manage(user, project)
        if project.status in (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED):
            raise WorkflowError(f"Cannot add collaborators to a {project.status.value} project")
        self._profile(data["employee_id"], "employee_id")
        if data["employee_id"] == project.referent_id:
            raise ValidationFailedError(SELF_REFERENT)

        existing = (
            self.db.query(ProjectCollaboration)
            .filter(
                ProjectCollaboration.project_id == project.id,
                ProjectCollaboration.employee_id == data["employee_id"],
            )
            .first()
        )
        if existing and existing.is_active:
            raise ConflictError("Employee is already a collaborator on this project")
        if existing:
            for field, value in data.items():
                setattr(existing, field, value)
            existing.is_active = True
            collaboration = existing
        else:
            collaboration = ProjectCollaboration(project_id=project.id, **data)
            self.db.add(collaboration)

        NotificationService.create_notification(
            self.db,
            data["employee_id"],
            "Added to a project",
            f"You were added to project '{project.title}' as {data['project_role']}.",
            link=f"/projects/{project.id}",
        )
        self.db.commit()
        self.db.refresh(collaboration)
        return collaboration

    def remove_collaborator(self, user: UserProfile, project_id: str, collaboration_id: str) -> ProjectCollaboration:
        project = self.get(project_id)
        self._ensure_can_manage(user, project)
        collaboration = self.db.get(ProjectCollaboration, collaboration_id)
        if not collaboration or collaboration.project_id != project.id:
            raise NotFoundError("Collaboration not found")
        collaboration.is_active = False
        self.db.commit()
        self.db.refresh(collaboration)
        return collaboration

    def complete(self, user: UserProfile, project_id: str) -> Project:
        """Close the project and ask each active collaborator for a self-evaluation."""
        project = self.get(project_id)
        self._ensure_can_manage(user, project)
        if project.status != ProjectStatus.IN_PROGRESS:
            raise WorkflowError(f"Only in-progress projects can be completed (current: {project.status.value})")

        project.status = ProjectStatus.COMPLETED
        project.progress = 100

        active = [c for c in project.collaborations if c.is_active]
        for collaboration in active:
            NotificationService.create_notification(
                self.db,
                collaboration.employee_id,
                "Project completed: self-evaluation required",
                f"Project '{project.title}' is completed. Please submit your self-evaluation.",
                type="warning",
                link=f"/collaborations/{collaboration.id}",
            )

        self.audit.log_action(
            action="complete_project",
            entity_type="project",
            entity_id=project.id,
            user_id=user.id,
            user_role=user.role,
            details={"notified": len(active)},
            before_state={"status": ProjectStatus.IN_PROGRESS},
            after_state={"status": ProjectStatus.COMPLETED},
        )
        self.db.commit()
        self.db.refresh(project)
        return project
