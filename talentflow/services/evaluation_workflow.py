"""
Project evaluation workflow.

A collaboration moves through five stages, derived from what is stored:

    no_objectives -> objectives_defined -> self_evaluated
                  -> referent_evaluated -> finalized

Nothing is reversible. Once finalized every write is refused.
"""
import enum
from datetime import datetime, timezone
from statistics import mean
from typing import Any, Dict, List, Mapping, Optional, Sequence

from talentflow.core.exceptions import AccessDeniedError, NotFoundError, ValidationFailedError, WorkflowError
from talentflow.models.evaluation import EvaluationStatus, ObjectiveEvaluation
from talentflow.models.objectives import CollaborationObjectives
from talentflow.models.project import Project, ProjectCollaboration, ProjectStatus
from talentflow.models.user import UserProfile, UserRole, STAFF_ROLES
from talentflow.services.audit import AuditService
from talentflow.services.base import BaseService
from talentflow.services.career import CareerService
from talentflow.services.notification import NotificationService
from talentflow.services.objective_editor import validate_collaboration_objectives

SCORE_MIN, SCORE_MAX = 1, 5

SELF_REQUIRED = ("comment", "achievements", "learnings")
SELF_OPTIONAL = ("difficulties", "next_steps")
REFERENT_REQUIRED = ("comment", "observed_achievements", "overall_performance")
REFERENT_OPTIONAL = ("areas_for_improvement", "development_recommendations")

FINALIZER_ROLES = (UserRole.HR_COACH, UserRole.DIRECTION, UserRole.ADMIN)


class Stage(str, enum.Enum):
    NO_OBJECTIVES = "no_objectives"
    OBJECTIVES_DEFINED = "objectives_defined"
    SELF_EVALUATED = "self_evaluated"
    REFERENT_EVALUATED = "referent_evaluated"
    FINALIZED = "finalized"


def stage_of(objectives: Optional[CollaborationObjectives], evaluation: Optional[ObjectiveEvaluation]) -> Stage:
    if objectives is None:
        return Stage.NO_OBJECTIVES
    if evaluation is None:
        return Stage.OBJECTIVES_DEFINED
    if evaluation.status == EvaluationStatus.FINALIZED:
        return Stage.FINALIZED
    if evaluation.referent_evaluation:
        return Stage.REFERENT_EVALUATED
    return Stage.SELF_EVALUATED


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_score(index: int, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not SCORE_MIN <= value <= SCORE_MAX:
        raise ValidationFailedError(
            f"Objective {index}: score must be an integer between {SCORE_MIN} and {SCORE_MAX}",
            details={"objective": index, "field": "score"},
        )
    return value


def _match_entries(objectives: Sequence[Mapping[str, Any]], entries: Any) -> Dict[str, Mapping[str, Any]]:
    """Index entries by skill_id, rejecting unknown and duplicate skills."""
    if not isinstance(entries, list) or not entries:
        raise ValidationFailedError("At least one evaluation entry is required")
    known = {o["skill_id"] for o in objectives}
    by_skill: Dict[str, Mapping[str, Any]] = {}
    for position, entry in enumerate(entries, start=1):
        skill_id = entry.get("skill_id") if isinstance(entry, Mapping) else None
        if skill_id not in known:
            raise ValidationFailedError(
                f"Evaluation entry {position} does not match any objective",
                details={"entry": position, "skill_id": skill_id},
            )
        if skill_id in by_skill:
            raise ValidationFailedError(
                f"Evaluation entry {position} duplicates objective '{skill_id}'",
                details={"entry": position, "skill_id": skill_id},
            )
        by_skill[skill_id] = entry
    return by_skill


def build_self_evaluation(objectives: Sequence[Mapping[str, Any]], entries: Any) -> Dict[str, Any]:
    """Validate self entries (one per objective) and build the stored payload."""
    by_skill = _match_entries(objectives, entries)
    evaluations = []
    for index, objective in enumerate(objectives, start=1):
        entry = by_skill.get(objective["skill_id"])
        if entry is None:
            raise ValidationFailedError(
                f"Objective {index}: self-evaluation entry is missing",
                details={"objective": index, "skill_id": objective["skill_id"]},
            )
        item = {
            "skill_id": objective["skill_id"],
            "skill_description": objective.get("skill_description"),
            "theme_name": objective.get("theme_name"),
            "smart_objective": objective.get("smart_objective"),
            "score": _check_score(index, entry.get("score")),
        }
        for field in SELF_REQUIRED:
            if _blank(entry.get(field)):
                raise ValidationFailedError(
                    f"Objective {index}: {field} is required",
                    details={"objective": index, "field": field},
                )
            item[field] = str(entry[field]).strip()
        for field in SELF_OPTIONAL:
            item[field] = None if _blank(entry.get(field)) else str(entry[field]).strip()
        evaluations.append(item)
    return {"evaluations": evaluations, "submitted_at": _now_iso(), "status": "submitted"}


def build_referent_evaluation(
    objectives: Sequence[Mapping[str, Any]],
    self_evaluation: Optional[Mapping[str, Any]],
    entries: Any,
) -> Dict[str, Any]:
    """
    Validate referent entries against the stored self-evaluation. An entry is
    refused when its objective has no self entry.
    """
    self_skills = {e["skill_id"] for e in (self_evaluation or {}).get("evaluations", [])}
    by_skill = _match_entries(objectives, entries)

    evaluations = []
    for index, objective in enumerate(objectives, start=1):
        skill_id = objective["skill_id"]
        entry = by_skill.get(skill_id)
        if skill_id not in self_skills:
            if entry is not None:
                raise ValidationFailedError(
                    f"Objective {index}: no self-evaluation entry to review",
                    details={"objective": index, "skill_id": skill_id},
                )
            continue
        if entry is None:
            raise ValidationFailedError(
                f"Objective {index}: referent evaluation entry is missing",
                details={"objective": index, "skill_id": skill_id},
            )
        item = {"skill_id": skill_id, "score": _check_score(index, entry.get("score"))}
        for field in REFERENT_REQUIRED:
            if _blank(entry.get(field)):
                raise ValidationFailedError(
                    f"Objective {index}: {field} is required",
                    details={"objective": index, "field": field},
                )
            item[field] = str(entry[field]).strip()
        for field in REFERENT_OPTIONAL:
            item[field] = None if _blank(entry.get(field)) else str(entry[field]).strip()
        evaluations.append(item)
    return {"evaluations": evaluations, "evaluated_at": _now_iso(), "status": "referent_evaluated"}


def average_score(payload: Optional[Mapping[str, Any]]) -> Optional[float]:
    scores = [e["score"] for e in (payload or {}).get("evaluations", []) if e.get("score") is not None]
    if not scores:
        return None
    return round(mean(scores), 2)


def final_score(self_score: Optional[float], referent_score: Optional[float]) -> Optional[float]:
    if self_score is None or referent_score is None:
        return None
    return round((self_score + referent_score) / 2, 2)


class EvaluationWorkflowService(BaseService):
    def __init__(self, db):
        super().__init__(db)
        self.audit = AuditService(db)
        self.career = CareerService(db)

    # --- lookup & permissions ---

    def get_collaboration(self, collaboration_id: str) -> ProjectCollaboration:
        collaboration = self.db.get(ProjectCollaboration, collaboration_id)
        if not collaboration:
            raise NotFoundError("Collaboration not found")
        return collaboration

    @staticmethod
    def evaluation_of(collaboration: ProjectCollaboration) -> Optional[ObjectiveEvaluation]:
        return collaboration.objectives.evaluation if collaboration.objectives else None

    @classmethod
    def stage(cls, collaboration: ProjectCollaboration) -> Stage:
        return stage_of(collaboration.objectives, cls.evaluation_of(collaboration))

    @staticmethod
    def is_referent(user: UserProfile, project: Project) -> bool:
        return project.referent_id == user.id

    def can_view(self, user: UserProfile, collaboration: ProjectCollaboration) -> bool:
        project = collaboration.project
        employee = collaboration.employee
        return (
            collaboration.employee_id == user.id
            or user.id in (project.referent_id, project.author_id)
            or user.role in STAFF_ROLES
            or (employee is not None and employee.coach_id == user.id)
        )

    def permissions(self, user: UserProfile, collaboration: ProjectCollaboration) -> Dict[str, bool]:
        """Which workflow actions the caller may take right now."""
        stage = self.stage(collaboration)
        project = collaboration.project
        is_collaborator = collaboration.employee_id == user.id
        is_referent = self.is_referent(user, project)
        return {
            "can_define_objectives": (is_collaborator or is_referent)
            and project.status != ProjectStatus.CANCELLED
            and stage in (Stage.NO_OBJECTIVES, Stage.OBJECTIVES_DEFINED),
            "can_self_evaluate": is_collaborator
            and project.status == ProjectStatus.COMPLETED
            and stage == Stage.OBJECTIVES_DEFINED,
            "can_referent_evaluate": (is_referent or user.role == UserRole.ADMIN)
            and not is_collaborator
            and stage == Stage.SELF_EVALUATED,
            "can_finalize": (is_referent or user.role in FINALIZER_ROLES)
            and not is_collaborator
            and stage == Stage.REFERENT_EVALUATED,
        }

    def detail(self, user: UserProfile, collaboration_id: str) -> Dict[str, Any]:
        collaboration = self.get_collaboration(collaboration_id)
        if not self.can_view(user, collaboration):
            raise AccessDeniedError("You cannot view this collaboration")
        return {
            "collaboration": collaboration,
            "project": collaboration.project,
            "employee": collaboration.employee,
            "objectives": collaboration.objectives.objectives if collaboration.objectives else None,
            "evaluation": self.evaluation_of(collaboration),
            "stage": self.stage(collaboration),
            "permissions": self.permissions(user, collaboration),
        }

    def list_for(self, user: UserProfile, project_id: Optional[str] = None,
                 employee_id: Optional[str] = None) -> List[ProjectCollaboration]:
        query = self.db.query(ProjectCollaboration).join(Project)
        if user.role not in STAFF_ROLES:
            query = query.filter(
                (ProjectCollaboration.employee_id == user.id) | (Project.referent_id == user.id)
            )
        if project_id:
            query = query.filter(ProjectCollaboration.project_id == project_id)
        if employee_id:
            query = query.filter(ProjectCollaboration.employee_id == employee_id)
        return query.order_by(ProjectCollaboration.created_at.desc()).all()

    # --- transitions ---

    def define_objectives(self, user: UserProfile, collaboration_id: str, entries: Any) -> CollaborationObjectives:
        collaboration = self.get_collaboration(collaboration_id)
        project = collaboration.project
        if not (collaboration.employee_id == user.id or self.is_referent(user, project)):
            raise AccessDeniedError("Only the collaborator or the project referent can define objectives")
        if project.status == ProjectStatus.CANCELLED:
            raise WorkflowError("Objectives cannot be defined on a cancelled project")
        stage = self.stage(collaboration)
        if stage not in (Stage.NO_OBJECTIVES, Stage.OBJECTIVES_DEFINED):
            raise WorkflowError(
                f"Objectives are locked once the evaluation has started (stage: {stage.value})"
            )

        objectives = validate_collaboration_objectives(entries, self.career.vocabulary_for(collaboration.employee))

        record = collaboration.objectives
        if record is None:
            record = CollaborationObjectives(collaboration_id=collaboration.id, objectives=objectives)
            self.db.add(record)
            action = "define_objectives"
        else:
            record.objectives = objectives
            action = "update_objectives"

        self.db.flush()
        self.audit.log_action(
            action=action,
            entity_type="collaboration",
            entity_id=collaboration.id,
            user_id=user.id,
            user_role=user.role,
            details={"count": len(objectives)},
        )
        self.db.commit()
        self.db.refresh(record)
        return record

    def self_evaluate(self, user: UserProfile, collaboration_id: str, entries: Any) -> ObjectiveEvaluation:
        collaboration = self.get_collaboration(collaboration_id)
        if collaboration.employee_id != user.id:
            raise AccessDeniedError("Only the collaborator can submit a self-evaluation")
        record = collaboration.objectives
        if record is None:
            raise WorkflowError("Objectives must be defined before self-evaluation")
        if collaboration.project.status != ProjectStatus.COMPLETED:
            raise WorkflowError("Self-evaluation is only possible once the project is completed")
        if record.evaluation is not None:
            raise WorkflowError(f"Self-evaluation already submitted (stage: {self.stage(collaboration).value})")

        payload = build_self_evaluation(record.objectives, entries)
        evaluation = ObjectiveEvaluation(
            objectives_id=record.id,
            self_evaluation=payload,
            status=EvaluationStatus.SUBMITTED,
            submitted_at=datetime.now(timezone.utc),
        )
        self.db.add(evaluation)
        self.db.flush()

        project = collaboration.project
        NotificationService.create_notification(
            self.db,
            project.referent_id,
            "Self-evaluation submitted",
            f"{collaboration.employee.full_name} submitted a self-evaluation for '{project.title}'.",
            link=f"/collaborations/{collaboration.id}",
        )
        self._audit(user, collaboration, "self_evaluate", None, EvaluationStatus.SUBMITTED)
        self.db.commit()
        self.db.refresh(evaluation)
        return evaluation

    def referent_evaluate(self, user: UserProfile, collaboration_id: str, entries: Any) -> ObjectiveEvaluation:
        collaboration = self.get_collaboration(collaboration_id)
        if not (self.is_referent(user, collaboration.project) or user.role == UserRole.ADMIN):
            raise AccessDeniedError("Only the project referent can evaluate this collaborator")
        if collaboration.employee_id == user.id:
            raise AccessDeniedError("A collaborator cannot evaluate their own work")
        evaluation = self.evaluation_of(collaboration)
        if evaluation is None or not evaluation.self_evaluation:
            raise WorkflowError("The collaborator has not submitted a self-evaluation yet")
        if evaluation.status != EvaluationStatus.SUBMITTED:
            raise WorkflowError(f"Referent evaluation not allowed (stage: {self.stage(collaboration).value})")

        evaluation.referent_evaluation = build_referent_evaluation(
            collaboration.objectives.objectives, evaluation.self_evaluation, entries
        )
        evaluation.status = EvaluationStatus.REFERENT_EVALUATED
        evaluation.referent_evaluated_at = datetime.now(timezone.utc)

        self._audit(user, collaboration, "referent_evaluate", EvaluationStatus.SUBMITTED, evaluation.status)
        self.db.commit()
        self.db.refresh(evaluation)
        return evaluation

    def finalize(self, user: UserProfile, collaboration_id: str) -> ObjectiveEvaluation:
        collaboration = self.get_collaboration(collaboration_id)
        if not (self.is_referent(user, collaboration.project) or user.role in FINALIZER_ROLES):
            raise AccessDeniedError("Only the referent, HR or direction can finalize an evaluation")
        if collaboration.employee_id == user.id:
            raise AccessDeniedError("A collaborator cannot finalize their own evaluation")
        evaluation = self.evaluation_of(collaboration)
        if evaluation is None or not evaluation.self_evaluation or not evaluation.referent_evaluation:
            raise WorkflowError("Both the self and the referent evaluation are required to finalize")
        if evaluation.status != EvaluationStatus.REFERENT_EVALUATED:
            raise WorkflowError(f"Evaluation cannot be finalized (stage: {self.stage(collaboration).value})")

        evaluation.self_score = average_score(evaluation.self_evaluation)
        evaluation.referent_score = average_score(evaluation.referent_evaluation)
        evaluation.final_score = final_score(evaluation.self_score, evaluation.referent_score)
        evaluation.status = EvaluationStatus.FINALIZED
        evaluation.finalized_at = datetime.now(timezone.utc)

        employee = collaboration.employee
        project = collaboration.project
        NotificationService.notify_users(
            self.db,
            [employee.id, employee.coach_id],
            "Project evaluation finalized",
            f"The evaluation of {employee.full_name} on '{project.title}' is finalized "
            f"(final score {evaluation.final_score}).",
            type="success",
            link=f"/collaborations/{collaboration.id}",
        )
        self._audit(user, collaboration, "finalize_evaluation", EvaluationStatus.REFERENT_EVALUATED, evaluation.status,
                    extra={"final_score": evaluation.final_score})
        self.db.commit()
        self.db.refresh(evaluation)
        self.log_info(f"Evaluation {evaluation.id} finalized with score {evaluation.final_score}")
        return evaluation

    def _audit(self, user, collaboration, action, before, after, extra=None):
        self.audit.log_action(
            action=action,
            entity_type="collaboration",
            entity_id=collaboration.id,
            user_id=user.id,
            user_role=user.role,
            details={"project_id": collaboration.project_id, "employee_id": collaboration.employee_id, **(extra or {})},
            before_state={"status": before},
            after_state={"status": after},
        )
