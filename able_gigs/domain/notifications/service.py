"""Notification service - in-app notifications raised by gig events"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Notification, NotificationPreference, User
from .repository import NotificationRepository
from .schemas import NotificationPreferencesUpdate

logger = logging.getLogger(__name__)


class NotificationService:
    """Service layer for notifications and notification preferences"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository()

    def notify(
        self,
        user_id: Optional[str],
        type: str,
        title: str,
        body: Optional[str] = None,
        path: Optional[str] = None,
        gig_id: Optional[str] = None,
    ) -> Optional[Notification]:
        """
        Queue a notification for `user_id` in the current transaction.

        Callers commit together with the state change that triggered it, so a
        failed gig update never leaves an orphan notification behind.
        """
        if not user_id:
            return None
        logger.info(f"🔔 Notification '{type}' for user {user_id}")
        return self.repo.add_notification(
            self.db, user_id=user_id, type=type, title=title, body=body, path=path, gig_id=gig_id
        )

    def list_notifications(self, user: User, unread_only: bool = False) -> list[Notification]:
        return self.repo.list_for_user(self.db, user.id, unread_only)

    def unread_count(self, user: User) -> int:
        return self.repo.count_unread(self.db, user.id)

    def mark_read(self, notification_id: str, user: User) -> Notification:
        notification = self.repo.get_for_user(self.db, notification_id, user.id)
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        notification.is_read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user: User) -> dict:
        updated = self.repo.mark_all_read(self.db, user.id)
        return {"message": "Notifications marked as read", "updated": updated}

    def get_preferences(self, user: User) -> NotificationPreference:
        preferences = self.repo.get_preferences(self.db, user.id)
        if not preferences:
            preferences = self.repo.create_preferences(self.db, user.id)
        return preferences

    def update_preferences(self, user: User, data: NotificationPreferencesUpdate) -> NotificationPreference:
        preferences = self.get_preferences(user)
        for key, value in data.model_dump(exclude_none=True).items():
            setattr(preferences, key, value)
        self.db.commit()
        self.db.refresh(preferences)
        logger.info(f"✅ Notification preferences updated for user {user.id}")
        return preferences
