"""Notification repository - Database operations for in-app notifications and preferences"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Notification, NotificationPreference


class NotificationRepository:
    """Repository for notification database operations"""

    @staticmethod
    def add_notification(db: Session, **data) -> Notification:
        """Stage a notification; the caller's transaction commits it"""
        notification = Notification(**data)
        db.add(notification)
        return notification

    @staticmethod
    def list_for_user(db: Session, user_id: str, unread_only: bool = False, limit: int = 50) -> list[Notification]:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc()).limit(limit).all()

    @staticmethod
    def count_unread(db: Session, user_id: str) -> int:
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .count()
        )

    @staticmethod
    def get_for_user(db: Session, notification_id: str, user_id: str) -> Optional[Notification]:
        return (
            db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )

    @staticmethod
    def mark_all_read(db: Session, user_id: str) -> int:
        updated = (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def get_preferences(db: Session, user_id: str) -> Optional[NotificationPreference]:
        return db.query(NotificationPreference).filter(NotificationPreference.user_id == user_id).first()

    @staticmethod
    def create_preferences(db: Session, user_id: str) -> NotificationPreference:
        preferences = NotificationPreference(user_id=user_id)
        db.add(preferences)
        db.commit()
        db.refresh(preferences)
        return preferences
