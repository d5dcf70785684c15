# app/models/notification.py
from typing import Literal
from pydantic import BaseModel

NotificationType = Literal["alert", "info", "success"]

NOTIFICATION_TYPES = ("alert", "info", "success")
DEFAULT_TYPE = "info"


class NotificationContent(BaseModel):
    text: str


class Notification(BaseModel):
    id: str                # uuid4, nunca se reutiliza
    type: NotificationType
    content: NotificationContent
    timestamp: int         # ms desde epoch
    read: bool = False
