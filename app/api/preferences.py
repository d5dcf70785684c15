# app/api/preferences.py
from fastapi import APIRouter, Response

from app.models.preferences import Preferences
from app.services import preferences as preference_issuer

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@router.get("", response_model=Preferences)
async def get_preferences(response: Response):
    """
    Devuelve las preferencias por defecto y además las deja en una
    cookie HttpOnly.
    """
    preferences, cookie = preference_issuer.issue()
    response.headers["Set-Cookie"] = cookie
    return preferences
