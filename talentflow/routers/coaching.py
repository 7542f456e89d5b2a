from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from talentflow.database import get_db
from talentflow.models.user import UserProfile, UserRole
from talentflow.routers.auth_deps import require_staff
from talentflow.schemas.evaluation import CoachingEvaluationList
from talentflow.services.coaching import CoachingService

router = APIRouter(prefix="/coaching", tags=["coaching"])


@router.get("/evaluations", response_model=CoachingEvaluationList)
def coachee_evaluations(
    coach_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_staff()),
):
    """
    Finalized project evaluations of a coach's coachees, with the average
    final score. HR coaches always see their own coachees; direction and
    admin may look at any coach.
    """
    if current_user.role == UserRole.HR_COACH or not coach_id:
        coach_id = current_user.id
    return CoachingService(db).coachee_evaluations(coach_id)
