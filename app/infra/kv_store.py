# app/infra/kv_store.py
import asyncio
import logging
import os
from typing import Dict, List, Optional

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.data.tables import UpdateMode
from azure.data.tables.aio import TableClient, TableServiceClient

from app.errors import StoreUnavailable

logger = logging.getLogger(__name__)

TABLE_NAME = os.getenv("TABLE_NAME", "notifications")
CONN_STR = os.getenv("AZURE_STORAGE_CONNECTION_STRING")

# todas las keys viven en la misma partición
PARTITION_KEY = "kv"

# límites de Table Storage: 64 KiB por propiedad string (UTF-16) y 1 MiB por
# entidad. El valor se parte en value_0..value_n de hasta CHUNK_UNITS cada una.
CHUNK_UNITS = 32_000
MAX_CHUNKS = 15


class KeyValueStore:
    """
    Contrato mínimo del key-value store externo: get/put/delete
    sobre keys y valores string.
    """

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def put(self, key: str, value: str) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Store en memoria del proceso. Sirve para desarrollo local y tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def put(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


def split_value(value: str, limit: int = CHUNK_UNITS) -> List[str]:
    """Parte el string en trozos de como mucho `limit` unidades UTF-16."""
    chunks = []
    start = 0
    units = 0
    for i, ch in enumerate(value):
        size = 2 if ord(ch) > 0xFFFF else 1
        if units + size > limit:
            chunks.append(value[start:i])
            start = i
            units = 0
        units += size
    chunks.append(value[start:])
    return chunks


class AzureTableKeyValueStore(KeyValueStore):
    """
    Key-value store sobre Azure Table Storage.
    Cada key es una fila: PartitionKey = "kv", RowKey = key. El valor va
    repartido en las columnas value_0..value_{n-1} y "chunks" guarda n.
    """

    def __init__(self, conn_str: str, table_name: str = TABLE_NAME):
        self.service = TableServiceClient.from_connection_string(conn_str=conn_str)
        self.table_name = table_name
        self.table: TableClient = self.service.get_table_client(table_name=table_name)
        self._table_ready = False
        self._create_lock = asyncio.Lock()

    async def _get_table(self) -> TableClient:
        # la tabla se crea una sola vez, aunque lleguen requests en paralelo
        if not self._table_ready:
            async with self._create_lock:
                if not self._table_ready:
                    try:
                        await self.table.create_table()
                    except ResourceExistsError:
                        pass
                    self._table_ready = True
        return self.table

    async def get(self, key: str) -> Optional[str]:
        try:
            table = await self._get_table()
            entity = await table.get_entity(partition_key=PARTITION_KEY, row_key=key)
        except ResourceNotFoundError:
            return None
        except AzureError as e:
            logger.error("[store] ❗ Error leyendo '%s': %s", key, e)
            raise StoreUnavailable(f"Could not read '{key}' from store") from e

        chunks = entity.get("chunks")
        if chunks is None:
            # filas escritas antes de partir el valor
            return entity.get("value")
        return "".join(entity[f"value_{i}"] for i in range(chunks))

    async def put(self, key: str, value: str) -> None:
        chunks = split_value(value)
        if len(chunks) > MAX_CHUNKS:
            logger.error("[store] ❗ Valor de '%s' demasiado grande (%d trozos)", key, len(chunks))
            raise StoreUnavailable(f"Value for '{key}' exceeds the store entity size limit")

        entity = {
            "PartitionKey": PARTITION_KEY,
            "RowKey": key,
            "chunks": len(chunks),
        }
        for i, chunk in enumerate(chunks):
            entity[f"value_{i}"] = chunk

        try:
            table = await self._get_table()
            # REPLACE borra los value_i sobrantes de una escritura anterior
            await table.upsert_entity(entity=entity, mode=UpdateMode.REPLACE)
        except AzureError as e:
            logger.error("[store] ❗ Error escribiendo '%s': %s", key, e)
            raise StoreUnavailable(f"Could not write '{key}' to store") from e

    async def delete(self, key: str) -> None:
        try:
            table = await self._get_table()
            await table.delete_entity(partition_key=PARTITION_KEY, row_key=key)
        except ResourceNotFoundError:
            return
        except AzureError as e:
            logger.error("[store] ❗ Error borrando '%s': %s", key, e)
            raise StoreUnavailable(f"Could not delete '{key}' from store") from e

    async def close(self) -> None:
        await self.table.close()
        await self.service.close()


def build_kv_store() -> KeyValueStore:
    if not CONN_STR:
        logger.warning(
            "⚠️  Falta AZURE_STORAGE_CONNECTION_STRING. "
            "Se usa un store en memoria (se pierde al reiniciar)."
        )
        return InMemoryKeyValueStore()

    logger.info("[store] Usando Azure Table Storage (tabla: %s)", TABLE_NAME)
    return AzureTableKeyValueStore(CONN_STR, TABLE_NAME)
