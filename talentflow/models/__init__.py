# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, department, career, project, objectives, evaluation,
    notification, audit_log
)

# Explicit class exports for cleaner imports
from .user import AuthIdentity, UserSession, UserProfile, UserRole
from .department import Department
from .career import CareerArea, CareerLevel, DevelopmentTheme, PathwaySkill
from .project import Project, ProjectCollaboration, ProjectStatus
from .objectives import AnnualObjective, AnnualObjectiveStatus, CollaborationObjectives
from .evaluation import ObjectiveEvaluation, EvaluationStatus
from .notification import Notification
from .audit_log import AuditLog

__all__ = [
    "AuthIdentity",
    "UserSession",
    "UserProfile",
    "UserRole",
    "Department",
    "CareerArea",
    "CareerLevel",
    "DevelopmentTheme",
    "PathwaySkill",
    "Project",
    "ProjectCollaboration",
    "ProjectStatus",
    "AnnualObjective",
    "AnnualObjectiveStatus",
    "CollaborationObjectives",
    "ObjectiveEvaluation",
    "EvaluationStatus",
    "Notification",
    "AuditLog",
]
