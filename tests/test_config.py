import pytest
from pydantic import ValidationError as PydanticValidationError

from birthorder.backend import open_store
from birthorder.config import Settings, load_settings
from birthorder.store import MemoryStore
from birthorder.store_sqlite import SqliteStore


def test_defaults():
    s = load_settings({})
    assert s.port == 3000
    assert s.store_backend == "memory"
    assert s.mongodb_uri == "mongodb://localhost:27017/birth-order-research"
    assert s.cors_origin_list == ["*"]


def test_env_overrides():
    s = load_settings({"PORT": "8080", "STORE_BACKEND": "sqlite", "CORS_ORIGINS": "http://a, http://b"})
    assert s.port == 8080
    assert s.store_backend == "sqlite"
    assert s.cors_origin_list == ["http://a", "http://b"]


def test_unknown_backend_fails_fast():
    with pytest.raises(PydanticValidationError):
        load_settings({"STORE_BACKEND": "redis"})


def test_open_store_selects_backend(tmp_path):
    assert isinstance(open_store(Settings()), MemoryStore)

    s = Settings.model_validate({"STORE_BACKEND": "sqlite", "SQLITE_PATH": str(tmp_path / "x" / "s.db")})
    store = open_store(s)
    assert isinstance(store, SqliteStore)
    assert (tmp_path / "x" / "s.db").exists()
