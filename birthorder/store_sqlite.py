# birthorder/store_sqlite.py
from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .errors import NotFoundError, StorageError
from .models import GroupSummary, Statistics, Submission, SubmissionCreate
from .schema import COLUMN_MAP
from .stats import combine_groups
from .store import SubmissionStore, page_offset

logger = logging.getLogger(__name__)

_KEY_FOR_COLUMN = {col: key for key, col in COLUMN_MAP.items()}

_INSERT_COLUMNS = [
    "region",
    "family_size",
    "firstborn_gender",
    "attitude_score",
    "firstborn_education",
    "laterborn_education",
    "age_range",
    "notes",
    "contact_email",
    "ip_address",
    "user_agent",
    "timestamp",
]


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _row_to_submission(row: sqlite3.Row) -> Submission:
    data: Dict[str, Any] = {_KEY_FOR_COLUMN[k]: row[k] for k in row.keys() if k in _KEY_FOR_COLUMN}
    data["id"] = str(data["id"])
    ts = datetime.fromisoformat(data["timestamp"])
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    data["timestamp"] = ts
    return Submission.model_validate(data)


class SqliteStore(SubmissionStore):
    """Relational store. One connection per operation; locking is left to SQLite."""

    name = "sqlite"

    def __init__(self, db_path: str = "./data/submissions.db") -> None:
        self.db_path = db_path
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        folder = os.path.dirname(self.db_path)
        if folder:
            os.makedirs(folder, exist_ok=True)

        try:
            conn = self._connect()
        except sqlite3.Error as e:
            logger.exception("[Store] cannot open sqlite database path=%s", self.db_path)
            raise StorageError("Database error") from e
        try:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS submissions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    region TEXT NOT NULL,
                    family_size INTEGER NOT NULL,
                    firstborn_gender TEXT NOT NULL,
                    attitude_score REAL NOT NULL,
                    firstborn_education REAL NOT NULL,
                    laterborn_education REAL NOT NULL,
                    age_range TEXT NOT NULL,
                    notes TEXT,
                    contact_email TEXT,
                    ip_address TEXT,
                    user_agent TEXT,
                    timestamp TEXT NOT NULL
                );
                """
            )

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_submissions_region_ts ON submissions(region, timestamp DESC);"
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_submissions_attitude ON submissions(attitude_score);")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_submissions_ts ON submissions(timestamp DESC);")

            conn.commit()
        except sqlite3.Error as e:
            logger.exception("[Store] sqlite schema initialisation failed")
            raise StorageError("Database error") from e
        finally:
            conn.close()

        logger.info("[Store] sqlite ready path=%s", self.db_path)

    def _query(self, sql: str, params: Tuple[Any, ...] = ()) -> List[sqlite3.Row]:
        try:
            conn = self._connect()
            try:
                return conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.exception("[Store] sqlite query failed")
            raise StorageError("Database error") from e

    def create(self, record: SubmissionCreate) -> Submission:
        data = record.model_dump()
        created_at = _now_utc_iso()
        values = [data[_KEY_FOR_COLUMN[col]] for col in _INSERT_COLUMNS[:-1]] + [created_at]

        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        sql = f"INSERT INTO submissions ({', '.join(_INSERT_COLUMNS)}) VALUES ({placeholders});"

        try:
            conn = self._connect()
            try:
                cur = conn.execute(sql, values)
                conn.commit()
                new_id = cur.lastrowid
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.exception("[Store] sqlite insert failed")
            raise StorageError("Database error") from e

        return Submission(id=str(new_id), timestamp=datetime.fromisoformat(created_at), **data)

    def list(self, page: int = 1, page_size: int = 50) -> Tuple[List[Submission], int]:
        rows = self._query(
            "SELECT * FROM submissions ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?;",
            (page_size, page_offset(page, page_size)),
        )
        return [_row_to_submission(r) for r in rows], self.count()

    def list_by_region(self, region: str) -> List[Submission]:
        rows = self._query(
            "SELECT * FROM submissions WHERE region = ? ORDER BY timestamp DESC, id DESC;",
            (region,),
        )
        return [_row_to_submission(r) for r in rows]

    def get(self, submission_id: str) -> Submission:
        try:
            row_id = int(submission_id)
        except (TypeError, ValueError):
            raise NotFoundError(f"Submission '{submission_id}' not found")

        rows = self._query("SELECT * FROM submissions WHERE id = ? LIMIT 1;", (row_id,))
        if not rows:
            raise NotFoundError(f"Submission '{submission_id}' not found")
        return _row_to_submission(rows[0])

    def count(self) -> int:
        rows = self._query("SELECT COUNT(*) FROM submissions;")
        return int(rows[0][0])

    def statistics(self) -> Optional[Statistics]:
        rows = self._query(
            """
            SELECT
                region,
                firstborn_gender,
                COUNT(*) AS total,
                AVG(family_size) AS avg_family_size,
                AVG(attitude_score) AS avg_attitude_score,
                AVG(firstborn_education - laterborn_education) AS avg_education_diff
            FROM submissions
            GROUP BY region, firstborn_gender;
            """
        )
        groups = [
            GroupSummary(
                region=r["region"],
                gender=r["firstborn_gender"],
                count=r["total"],
                avg_family_size=r["avg_family_size"],
                avg_attitude_score=r["avg_attitude_score"],
                avg_education_difference=r["avg_education_diff"],
            )
            for r in rows
        ]
        return combine_groups(groups)

    def export_rows(self) -> List[Dict[str, Any]]:
        rows = self._query("SELECT * FROM submissions ORDER BY timestamp DESC, id DESC;")
        return [dict(r) for r in rows]

    def ping(self) -> None:
        self._query("SELECT 1;")
