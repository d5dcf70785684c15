# app/api/notifications.py
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_notification_store, read_json_body
from app.models.notification import Notification
from app.services.notification_store import NotificationStore
from app.services.notification_validator import validate_notifications

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=List[Notification])
async def create_notifications(
    payload: Any = Depends(read_json_body),
    store: NotificationStore = Depends(get_notification_store),
):
    """
    Crea una o varias notificaciones.
    Body: un objeto {type?, content: {text}, read?} o un array de ellos.
    Se valida todo el lote antes de tocar el store.
    """
    logger.debug("[notifications] 📥 Body recibido: %r", payload)
    notifications = validate_notifications(payload)
    await store.append_all(notifications)
    return notifications


@router.get("", response_model=List[Notification])
async def list_notifications(store: NotificationStore = Depends(get_notification_store)):
    return await store.load()


@router.delete("")
async def delete_all_notifications(
    store: NotificationStore = Depends(get_notification_store),
) -> Dict[str, str]:
    await store.clear()
    return {"message": "Notifications deleted successfully!"}
