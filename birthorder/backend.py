# birthorder/backend.py
from __future__ import annotations

import logging

from .config import Settings
from .store import MemoryStore, SubmissionStore

logger = logging.getLogger(__name__)


def open_store(settings: Settings) -> SubmissionStore:
    backend = settings.store_backend

    if backend == "memory":
        store: SubmissionStore = MemoryStore()
    elif backend == "sqlite":
        from .store_sqlite import SqliteStore

        store = SqliteStore(settings.sqlite_path)
    elif backend == "mongodb":
        from .store_mongo import MongoStore

        store = MongoStore(uri=settings.mongodb_uri, database=settings.mongodb_database)
    else:
        raise ValueError(f"Unknown store backend: {backend!r} (expected memory, sqlite or mongodb)")

    logger.info("[Startup] submission store backend=%s", store.name)
    return store
