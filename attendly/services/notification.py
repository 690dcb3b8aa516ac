import logging
from typing import Iterable, Optional
from sqlalchemy.orm import Session
from attendly.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        user_id: int,
        type: str,
        title: str,
        message: str,
        related_leave_id: Optional[int] = None,
    ) -> Notification:
        """
        Stages a notification in the caller's transaction.
        The caller owns the commit so the notification lands with the change that caused it.
        """
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            related_leave_id=related_leave_id,
        )
        db.add(notification)
        db.flush()
        return notification

    @staticmethod
    def notify_many(
        db: Session,
        user_ids: Iterable[int],
        type: str,
        title: str,
        message: str,
        related_leave_id: Optional[int] = None,
    ):
        created = [
            NotificationService.create_notification(db, uid, type, title, message, related_leave_id)
            for uid in user_ids
        ]
        logger.info(f"Queued {len(created)} '{type}' notification(s)")
        return created
