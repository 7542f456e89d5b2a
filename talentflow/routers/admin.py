from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from datetime import datetime

from talentflow.database import get_db
from talentflow.models.audit_log import AuditLog
from talentflow.models.evaluation import EvaluationStatus, ObjectiveEvaluation
from talentflow.models.objectives import AnnualObjective, AnnualObjectiveStatus
from talentflow.models.project import Project, ProjectStatus
from talentflow.models.user import UserProfile
from talentflow.routers.auth_deps import require_provisioner

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_provisioner())]
)


class DashboardStat(BaseModel):
    name: str
    value: str


class DashboardSummary(BaseModel):
    stats: List[DashboardStat]
    active_employees: int
    projects_by_status: dict
    annual_objectives_by_status: dict
    evaluations_by_status: dict
    average_final_score: Optional[float] = None


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    user_id: Optional[str] = None
    user_role: Optional[str] = None
    request_id: Optional[str] = None
    details: Optional[dict] = None
    before_state: Optional[dict] = None
    after_state: Optional[dict] = None
    timestamp: Optional[datetime] = None


def _count_by(db: Session, column) -> dict:
    return {
        (status.value if hasattr(status, "value") else status): count
        for status, count in db.query(column, func.count()).group_by(column).all()
    }


@router.get("/summary", response_model=DashboardSummary)
def get_dashboard_summary(db: Session = Depends(get_db)):
    """
    Aggregated counts for the administration dashboard.
    """
    active_employees = db.query(UserProfile).filter(UserProfile.is_active.is_(True)).count()
    projects = _count_by(db, Project.status)
    annual = _count_by(db, AnnualObjective.status)
    evaluations = _count_by(db, ObjectiveEvaluation.status)
    avg_score = db.query(func.avg(ObjectiveEvaluation.final_score)).filter(
        ObjectiveEvaluation.status == EvaluationStatus.FINALIZED
    ).scalar()

    stats = [
        {"name": "Active Employees", "value": f"{active_employees:,}"},
        {"name": "Projects In Progress", "value": str(projects.get(ProjectStatus.IN_PROGRESS.value, 0))},
        {"name": "Objectives Awaiting Review", "value": str(annual.get(AnnualObjectiveStatus.SUBMITTED.value, 0))},
        {"name": "Finalized Evaluations", "value": str(evaluations.get(EvaluationStatus.FINALIZED.value, 0))},
    ]
    return {
        "stats": stats,
        "active_employees": active_employees,
        "projects_by_status": projects,
        "annual_objectives_by_status": annual,
        "evaluations_by_status": evaluations,
        "average_final_score": round(avg_score, 2) if avg_score is not None else None,
    }


@router.get("/audit-logs", response_model=List[AuditLogResponse])
def get_audit_logs(
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    user_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    query = db.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    return query.order_by(AuditLog.id.desc()).limit(limit).all()
