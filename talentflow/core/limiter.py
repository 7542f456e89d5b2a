from slowapi import Limiter
from slowapi.util import get_remote_address

from talentflow.core.config import settings

# Applied per-endpoint with @limiter.limit(...); decorated endpoints must accept `request: Request`.
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
)
