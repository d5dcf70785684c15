# app/api/dependencies.py
import json

from fastapi import Request

from app.errors import InvalidPayload
from app.services.classifier import Classifier
from app.services.notification_store import NotificationStore


def get_notification_store(request: Request) -> NotificationStore:
    # instanciado una sola vez en create_app()
    return request.app.state.notification_store


def get_classifier(request: Request) -> Classifier:
    return request.app.state.classifier


async def read_json_body(request: Request):
    """
    Lee el body como JSON sin esquema: la validación de notificaciones
    es propia (coerciones, campos extra) y no encaja con un BaseModel.
    """
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidPayload("Invalid request body")
