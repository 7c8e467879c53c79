# birthorder/store.py
from __future__ import annotations

import abc
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .errors import NotFoundError
from .models import Statistics, Submission, SubmissionCreate
from .stats import compute_statistics


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def page_offset(page: int, page_size: int) -> int:
    return (max(page, 1) - 1) * max(page_size, 1)


class SubmissionStore(abc.ABC):
    """
    Persistence for submissions. Records are append-only: there is no
    update or delete.

    Implementations raise StorageError on backend failures and
    NotFoundError when a lookup by id matches nothing.
    """

    name: str = "store"
    has_database: bool = True

    @abc.abstractmethod
    def create(self, record: SubmissionCreate) -> Submission:
        ...

    @abc.abstractmethod
    def list(self, page: int = 1, page_size: int = 50) -> Tuple[List[Submission], int]:
        """Newest first. Returns the requested page and the total count."""

    @abc.abstractmethod
    def list_by_region(self, region: str) -> List[Submission]:
        ...

    @abc.abstractmethod
    def get(self, submission_id: str) -> Submission:
        ...

    @abc.abstractmethod
    def count(self) -> int:
        ...

    @abc.abstractmethod
    def statistics(self) -> Optional[Statistics]:
        """None when the store is empty."""

    @abc.abstractmethod
    def export_rows(self) -> List[Dict[str, Any]]:
        """All records, newest first, keyed the way this backend stores them."""

    def ping(self) -> None:
        return None

    def close(self) -> None:
        return None


class MemoryStore(SubmissionStore):
    """Process-local store. Contents are lost on restart."""

    name = "memory"
    has_database = False

    def __init__(self) -> None:
        self._items: List[Submission] = []
        self._lock = threading.Lock()

    def create(self, record: SubmissionCreate) -> Submission:
        sub = Submission(
            id=uuid.uuid4().hex,
            timestamp=_now_utc(),
            **record.model_dump(),
        )
        with self._lock:
            self._items.append(sub)
        return sub

    def _newest_first(self) -> List[Submission]:
        with self._lock:
            items = list(reversed(self._items))
        # Stable sort: equal timestamps keep newest-inserted first.
        return sorted(items, key=lambda s: s.timestamp, reverse=True)

    def list(self, page: int = 1, page_size: int = 50) -> Tuple[List[Submission], int]:
        items = self._newest_first()
        skip = page_offset(page, page_size)
        return items[skip:skip + page_size], len(items)

    def list_by_region(self, region: str) -> List[Submission]:
        return [s for s in self._newest_first() if s.region == region]

    def get(self, submission_id: str) -> Submission:
        with self._lock:
            for sub in self._items:
                if sub.id == submission_id:
                    return sub
        raise NotFoundError(f"Submission '{submission_id}' not found")

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def statistics(self) -> Optional[Statistics]:
        with self._lock:
            items = list(self._items)
        return compute_statistics(items)

    def export_rows(self) -> List[Dict[str, Any]]:
        return [s.model_dump() for s in self._newest_first()]
