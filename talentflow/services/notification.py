from typing import Iterable, Optional
from sqlalchemy.orm import Session
from talentflow.models.notification import Notification


class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        user_id: str,
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None
    ) -> Notification:
        """
        Adds a notification to the session. The caller commits it together
        with the change that triggered it.
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            link=link
        )
        db.add(notification)
        return notification

    @staticmethod
    def notify_users(
        db: Session,
        user_ids: Iterable[Optional[str]],
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None
    ):
        """Notify each distinct, non-empty recipient once."""
        sent = []
        for user_id in dict.fromkeys(u for u in user_ids if u):
            sent.append(NotificationService.create_notification(db, user_id, title, message, type, link))
        return sent
