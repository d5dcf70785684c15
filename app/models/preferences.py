# app/models/preferences.py
from typing import List
from pydantic import BaseModel

from app.models.notification import NotificationType


class Preferences(BaseModel):
    displayDuration: int = 5000   # ms
    preferredTypes: List[NotificationType] = ["alert", "info"]
