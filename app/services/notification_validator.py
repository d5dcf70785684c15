# app/services/notification_validator.py
import time
import uuid
from typing import Any, List

from app.errors import EmptyBatch, InvalidPayload, UnexpectedField
from app.models.notification import (
    DEFAULT_TYPE,
    NOTIFICATION_TYPES,
    Notification,
    NotificationContent,
)

ALLOWED_FIELDS = ("type", "content", "read")


def now_ms() -> int:
    return int(time.time() * 1000)


def validate_notification(candidate: Any) -> Notification:
    """
    Valida y normaliza UNA notificación cruda del body.
    Estructura esperada:
      {
        "type": "alert" | "info" | "success",   # opcional, default "info"
        "content": {"text": "..."},             # obligatorio
        "read": true | false                    # opcional, default false
      }
    No modifica el dict de entrada.
    """
    if not isinstance(candidate, dict):
        raise InvalidPayload("Notification must be an object.")

    content = candidate.get("content")
    if not isinstance(content, dict) or not isinstance(content.get("text"), str):
        raise InvalidPayload(
            "Notification content must include a 'text' field of type string."
        )

    # tipos inválidos o ausentes -> "info" (no es error)
    noti_type = candidate.get("type")
    if noti_type not in NOTIFICATION_TYPES:
        noti_type = DEFAULT_TYPE

    read = candidate.get("read")
    if not isinstance(read, bool):
        read = False

    # OJO: se revisan las keys del input, antes de agregar id/timestamp
    unexpected = [key for key in candidate if key not in ALLOWED_FIELDS]
    if unexpected:
        raise UnexpectedField(unexpected)

    return Notification(
        id=str(uuid.uuid4()),
        type=noti_type,
        content=NotificationContent(text=content["text"]),
        timestamp=now_ms(),
        read=read,
    )


def validate_notifications(payload: Any) -> List[Notification]:
    """
    Acepta un objeto o un array de objetos. Todo o nada: si una sola
    falla, se rechaza el lote completo (y nadie toca el store).
    """
    candidates = payload if isinstance(payload, list) else [payload]
    if not candidates:
        raise EmptyBatch()

    return [validate_notification(candidate) for candidate in candidates]
