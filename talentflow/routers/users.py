"""
Administrative user creation.

Authentication and the role check run as dependencies, before the body is
read: a caller outside direction/admin is refused without any write.
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from talentflow.core.config import settings
from talentflow.core.exceptions import ValidationFailedError
from talentflow.core.limiter import limiter
from talentflow.core.logging import request_id_var
from talentflow.database import get_db
from talentflow.models.user import UserProfile
from talentflow.routers.auth_deps import require_provisioner
from talentflow.schemas.user import CreateUserResponse
from talentflow.services.user_admin import UserProvisioningService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


@router.post("/create-user", response_model=CreateUserResponse)
@limiter.limit(settings.create_user_rate_limit)
async def create_user(
    request: Request,
    db: Session = Depends(get_db),
    current_user: UserProfile = Depends(require_provisioner()),
):
    try:
        body = await request.json()
    except ValueError:
        logger.info("create-user: invalid JSON body")
        raise ValidationFailedError("Invalid JSON in request body")

    service = UserProvisioningService(db)
    user = await run_in_threadpool(service.create_user, current_user, body)
    return {
        "success": True,
        "user": user,
        "message": "User created successfully",
        "request_id": request_id_var.get() or None,
    }
