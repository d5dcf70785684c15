# app/services/preferences.py
import json
from typing import Tuple
from urllib.parse import quote

from app.models.preferences import Preferences

COOKIE_NAME = "preferences"
COOKIE_PATH = "/api/notifications/cookie"
COOKIE_MAX_AGE = 2516100  # ~29 días, en segundos


def build_cookie(preferences: Preferences) -> str:
    # mismo escape que encodeURIComponent del lado del navegador
    value = json.dumps(preferences.model_dump(), separators=(",", ":"))
    encoded = quote(value, safe="!~*'()")
    return f"{COOKIE_NAME}={encoded}; Path={COOKIE_PATH}; Max-Age={COOKIE_MAX_AGE}; HttpOnly"


def issue() -> Tuple[Preferences, str]:
    """
    Preferencias por defecto (constantes por ahora, no salen del store
    ni del request) y el Set-Cookie correspondiente.
    """
    preferences = Preferences()
    return preferences, build_cookie(preferences)
