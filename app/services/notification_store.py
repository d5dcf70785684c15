# app/services/notification_store.py
import json
import logging
import os
from typing import List

from pydantic import ValidationError

from app.errors import StoreUnavailable
from app.infra.kv_store import KeyValueStore
from app.models.notification import Notification

logger = logging.getLogger(__name__)

NOTIFICATIONS_KEY = os.getenv("NOTIFICATIONS_KEY", "notifications")


class NotificationStore:
    """
    Toda la colección vive serializada como un array JSON bajo una sola key.
    No hay cache: cada lectura vuelve a pedir el valor al store y cada
    escritura re-serializa la lista completa.
    """

    def __init__(self, kv: KeyValueStore, key: str = NOTIFICATIONS_KEY):
        self.kv = kv
        self.key = key

    async def load(self) -> List[Notification]:
        raw = await self.kv.get(self.key)
        if not raw:
            # key ausente = lista vacía
            return []

        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("stored value is not an array")
            return [Notification(**item) for item in items]
        except (ValueError, TypeError, ValidationError) as e:
            logger.error("[store] ❗ Valor corrupto en '%s': %s", self.key, e)
            raise StoreUnavailable(f"Stored value under '{self.key}' is corrupt") from e

    async def append_all(self, records: List[Notification]) -> int:
        """
        Read-modify-write SIN control de concurrencia: dos appends
        simultáneos pueden pisarse y perder registros de uno de ellos.
        Devuelve el largo de la lista guardada.
        """
        current = await self.load()
        updated = current + list(records)
        await self.kv.put(self.key, json.dumps([n.model_dump() for n in updated]))
        logger.info("[store] ✅ %d notificación(es) agregada(s), total %d", len(records), len(updated))
        return len(updated)

    async def clear(self) -> None:
        await self.kv.delete(self.key)
        logger.info("[store] 🗑️ Notificaciones borradas")
