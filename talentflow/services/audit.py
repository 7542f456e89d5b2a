import enum
from datetime import date, datetime
from typing import Any, Optional

from talentflow.core.logging import request_id_var
from talentflow.models.audit_log import AuditLog
from talentflow.services.base import BaseService


def _sanitize(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_sanitize(i) for i in obj]
    return obj


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[str],
        user_id: Optional[str],
        user_role: Any,
        details: dict,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
    ) -> Optional[AuditLog]:
        """
        Create an audit log entry in the current session.

        The entry is flushed, not committed: it becomes durable together with
        the action it describes. Audit failures are logged and never break the
        calling flow.
        """
        try:
            db_log = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                user_id=user_id,
                user_role=_sanitize(user_role),
                request_id=request_id_var.get(),
                details=_sanitize(details),
                before_state=_sanitize(before_state),
                after_state=_sanitize(after_state),
            )
            self.db.add(db_log)
            self.db.flush()
            return db_log
        except Exception as e:
            self.log_error(f"FAILED TO AUDIT LOG: {e}", exc_info=True)
            return None

    @staticmethod
    def log(db, *args, **kwargs):
        return AuditService(db).log_action(*args, **kwargs)
