from statistics import mean
from typing import Any, Dict, List, Optional

from talentflow.models.evaluation import EvaluationStatus, ObjectiveEvaluation
from talentflow.models.objectives import CollaborationObjectives
from talentflow.models.project import ProjectCollaboration
from talentflow.models.user import UserProfile
from talentflow.services.base import BaseService


class CoachingService(BaseService):
    """Finalized project evaluations, seen from the coach's side."""

    def _rows(self, employee_ids: Optional[List[str]] = None, coach_id: Optional[str] = None):
        query = (
            self.db.query(ObjectiveEvaluation, CollaborationObjectives, ProjectCollaboration)
            .join(CollaborationObjectives, ObjectiveEvaluation.objectives_id == CollaborationObjectives.id)
            .join(ProjectCollaboration, CollaborationObjectives.collaboration_id == ProjectCollaboration.id)
            .join(UserProfile, ProjectCollaboration.employee_id == UserProfile.id)
            .filter(ObjectiveEvaluation.status == EvaluationStatus.FINALIZED)
        )
        if coach_id:
            query = query.filter(UserProfile.coach_id == coach_id)
        if employee_ids is not None:
            query = query.filter(ProjectCollaboration.employee_id.in_(employee_ids))
        return query.order_by(ObjectiveEvaluation.finalized_at.desc()).all()

    @staticmethod
    def _summarize(evaluation: ObjectiveEvaluation, objectives: CollaborationObjectives,
                   collaboration: ProjectCollaboration) -> Dict[str, Any]:
        project = collaboration.project
        employee = collaboration.employee
        referent = project.referent
        return {
            "evaluation_id": evaluation.id,
            "collaboration_id": collaboration.id,
            "employee_id": employee.id,
            "employee_name": employee.full_name,
            "employee_department": employee.department,
            "coach_id": employee.coach_id,
            "project_id": project.id,
            "project_title": project.title,
            "client_name": project.client_name,
            "project_role": collaboration.project_role,
            "referent_id": referent.id if referent else None,
            "referent_name": referent.full_name if referent else None,
            "objectives": objectives.objectives,
            "self_evaluation": evaluation.self_evaluation,
            "referent_evaluation": evaluation.referent_evaluation,
            "self_score": evaluation.self_score,
            "referent_score": evaluation.referent_score,
            "final_score": evaluation.final_score,
            "finalized_at": evaluation.finalized_at,
        }

    @staticmethod
    def _with_average(items: List[Dict[str, Any]]) -> Dict[str, Any]:
        scores = [i["final_score"] for i in items if i["final_score"] is not None]
        return {
            "items": items,
            "total": len(items),
            "average_final_score": round(mean(scores), 2) if scores else None,
        }

    def coachee_evaluations(self, coach_id: str) -> Dict[str, Any]:
        return self._with_average([self._summarize(*row) for row in self._rows(coach_id=coach_id)])

    def employee_evaluations(self, employee_id: str) -> Dict[str, Any]:
        return self._with_average([self._summarize(*row) for row in self._rows(employee_ids=[employee_id])])
