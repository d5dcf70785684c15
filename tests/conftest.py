from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from app.errors import StoreUnavailable
from app.infra.kv_store import InMemoryKeyValueStore, KeyValueStore
from app.main import create_app


class FakeAIClient:
    """Devuelve siempre la misma respuesta y guarda las llamadas."""

    def __init__(self, response: Any = "finance"):
        self.response = response
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    async def run(self, model_id: str, inputs: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((model_id, inputs))
        return {"response": self.response}

    async def close(self) -> None:
        pass


class BrokenKeyValueStore(KeyValueStore):
    async def get(self, key: str) -> Optional[str]:
        raise StoreUnavailable("store down")

    async def put(self, key: str, value: str) -> None:
        raise StoreUnavailable("store down")

    async def delete(self, key: str) -> None:
        raise StoreUnavailable("store down")


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def ai_client() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture
def client(kv_store, ai_client) -> TestClient:
    app = create_app(kv_store=kv_store, ai_client=ai_client)
    return TestClient(app)


@pytest.fixture
def broken_client(ai_client) -> TestClient:
    app = create_app(kv_store=BrokenKeyValueStore(), ai_client=ai_client)
    return TestClient(app, raise_server_exceptions=False)
