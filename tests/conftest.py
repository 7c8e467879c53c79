from typing import Dict

import pytest
from fastapi.testclient import TestClient

from app_server import create_app
from birthorder.config import Settings
from birthorder.store import MemoryStore
from birthorder.store_sqlite import SqliteStore


def make_payload(**overrides) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "region": "British",
        "family-size": "3",
        "firstborn-gender": "male",
        "attitude-score": "0.45",
        "firstborn-education": "16",
        "laterborn-education": "14",
        "age-range": "26-30",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def payload() -> Dict[str, object]:
    return make_payload()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings.model_validate({"SQLITE_PATH": str(tmp_path / "submissions.db"), "LOG_LEVEL": "WARNING"})


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sqlite_store(tmp_path) -> SqliteStore:
    return SqliteStore(str(tmp_path / "db" / "submissions.db"))


@pytest.fixture
def mongo_store():
    mongomock = pytest.importorskip("mongomock")
    from birthorder.store_mongo import MongoStore

    return MongoStore(client=mongomock.MongoClient(), database="birth-order-test")


@pytest.fixture(params=["memory", "sqlite", "mongodb"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    if request.param == "sqlite":
        return SqliteStore(str(tmp_path / "submissions.db"))
    return request.getfixturevalue("mongo_store")


@pytest.fixture
def client(settings, memory_store) -> TestClient:
    app = create_app(settings, store=memory_store)
    return TestClient(app)


@pytest.fixture(params=["memory", "sqlite", "mongodb"])
def any_client(request, settings, tmp_path) -> TestClient:
    if request.param == "memory":
        backing = MemoryStore()
    elif request.param == "sqlite":
        backing = SqliteStore(str(tmp_path / "api.db"))
    else:
        backing = request.getfixturevalue("mongo_store")
    return TestClient(create_app(settings, store=backing))
