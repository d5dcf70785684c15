import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from azure.core.exceptions import HttpResponseError, ResourceExistsError, ResourceNotFoundError
from azure.data.tables import UpdateMode

from app.errors import StoreUnavailable
from app.infra import kv_store as kv_module
from app.infra.kv_store import (
    CHUNK_UNITS,
    MAX_CHUNKS,
    AzureTableKeyValueStore,
    InMemoryKeyValueStore,
    build_kv_store,
    split_value,
)


@pytest.fixture
def table():
    return AsyncMock()


@pytest.fixture
def azure_store(table):
    service = MagicMock()
    service.get_table_client = MagicMock(return_value=table)
    service.close = AsyncMock()
    with patch.object(kv_module.TableServiceClient, "from_connection_string", return_value=service):
        store = AzureTableKeyValueStore("UseDevelopmentStorage=true", table_name="kvtest")
    return store


class TableRows:
    """Guarda lo que recibe upsert_entity y lo devuelve en get_entity."""

    def __init__(self, table):
        self.rows = {}
        table.upsert_entity.side_effect = self.upsert
        table.get_entity.side_effect = self.get

    async def upsert(self, entity, mode):
        self.rows[entity["RowKey"]] = dict(entity)

    async def get(self, partition_key, row_key):
        if row_key not in self.rows:
            raise ResourceNotFoundError("nope")
        return self.rows[row_key]


def test_in_memory_get_put_delete():
    store = InMemoryKeyValueStore()

    async def scenario():
        assert await store.get("k") is None
        await store.put("k", "v")
        assert await store.get("k") == "v"
        await store.delete("k")
        await store.delete("k")
        return await store.get("k")

    assert asyncio.run(scenario()) is None


def test_azure_get_reads_chunked_columns(azure_store, table):
    table.get_entity.return_value = {
        "PartitionKey": "kv",
        "RowKey": "k",
        "chunks": 2,
        "value_0": "[1,",
        "value_1": "2]",
    }

    assert asyncio.run(azure_store.get("k")) == "[1,2]"
    table.get_entity.assert_awaited_once_with(partition_key="kv", row_key="k")
    azure_store.service.get_table_client.assert_called_once_with(table_name="kvtest")
    table.create_table.assert_awaited_once()


def test_azure_get_reads_single_value_column(azure_store, table):
    table.get_entity.return_value = {"PartitionKey": "kv", "RowKey": "k", "value": "[]"}
    assert asyncio.run(azure_store.get("k")) == "[]"


def test_azure_get_missing_row_returns_none(azure_store, table):
    table.get_entity.side_effect = ResourceNotFoundError("nope")
    assert asyncio.run(azure_store.get("k")) is None


def test_azure_put_upserts_row(azure_store, table):
    asyncio.run(azure_store.put("k", "[1]"))

    table.upsert_entity.assert_awaited_once_with(
        entity={"PartitionKey": "kv", "RowKey": "k", "chunks": 1, "value_0": "[1]"},
        mode=UpdateMode.REPLACE,
    )


def test_azure_stores_values_larger_than_one_property(azure_store, table):
    rows = TableRows(table)
    items = [{"content": {"text": "x" * 100}, "n": i} for i in range(1000)]
    value = json.dumps(items)
    assert len(value) > 64 * 1024

    async def scenario():
        await azure_store.put("notifications", value)
        return await azure_store.get("notifications")

    assert asyncio.run(scenario()) == value
    entity = rows.rows["notifications"]
    assert entity["chunks"] > 1
    for i in range(entity["chunks"]):
        assert len(entity[f"value_{i}"]) <= CHUNK_UNITS


def test_azure_rejects_values_over_entity_limit(azure_store, table):
    value = "x" * (CHUNK_UNITS * MAX_CHUNKS + 1)

    with pytest.raises(StoreUnavailable, match="size limit"):
        asyncio.run(azure_store.put("k", value))
    table.upsert_entity.assert_not_awaited()


def test_split_value_counts_astral_chars_twice():
    value = "\U0001F514" * 3  # 🔔, dos unidades UTF-16 cada una
    assert split_value(value, limit=4) == ["\U0001F514" * 2, "\U0001F514"]
    assert split_value("abcde", limit=2) == ["ab", "cd", "e"]
    assert split_value("") == [""]


def test_azure_delete_missing_row_is_noop(azure_store, table):
    table.delete_entity.side_effect = ResourceNotFoundError("nope")
    asyncio.run(azure_store.delete("k"))
    table.delete_entity.assert_awaited_once_with(partition_key="kv", row_key="k")


@pytest.mark.parametrize("method,args", [("get", ("k",)), ("put", ("k", "v")), ("delete", ("k",))])
def test_azure_faults_become_store_unavailable(azure_store, table, method, args):
    error = HttpResponseError("boom")
    table.get_entity.side_effect = error
    table.upsert_entity.side_effect = error
    table.delete_entity.side_effect = error

    with pytest.raises(StoreUnavailable):
        asyncio.run(getattr(azure_store, method)(*args))


def test_existing_table_is_not_an_error(azure_store, table):
    table.create_table.side_effect = ResourceExistsError("exists")
    table.get_entity.return_value = {"value": "x"}

    assert asyncio.run(azure_store.get("k")) == "x"


def test_table_is_created_once_under_concurrent_first_requests(azure_store, table):
    async def slow_create():
        await asyncio.sleep(0)

    table.create_table.side_effect = slow_create
    table.get_entity.return_value = {"value": "x"}

    async def scenario():
        await asyncio.gather(*(azure_store.get(str(i)) for i in range(5)))

    asyncio.run(scenario())
    table.create_table.assert_awaited_once()
    azure_store.service.get_table_client.assert_called_once()


def test_close_closes_table_and_service(azure_store, table):
    asyncio.run(azure_store.close())
    table.close.assert_awaited_once()
    azure_store.service.close.assert_awaited_once()


def test_build_kv_store_without_connection_string_uses_memory(monkeypatch):
    monkeypatch.setattr(kv_module, "CONN_STR", None)
    assert isinstance(build_kv_store(), InMemoryKeyValueStore)
