"""Notification domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    body: Optional[str] = None
    path: Optional[str] = None
    gig_id: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    unread_count: int


class NotificationPreferences(BaseModel):
    email_gig_updates: bool
    email_platform_announcements: bool
    email_marketing: bool
    sms_gig_alerts: bool
    fcm_updates: bool

    class Config:
        from_attributes = True


class NotificationPreferencesUpdate(BaseModel):
    email_gig_updates: Optional[bool] = None
    email_platform_announcements: Optional[bool] = None
    email_marketing: Optional[bool] = None
    sms_gig_alerts: Optional[bool] = None
    fcm_updates: Optional[bool] = None
