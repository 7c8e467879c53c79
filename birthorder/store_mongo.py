# birthorder/store_mongo.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from .errors import NotFoundError, StorageError
from .models import GroupSummary, Statistics, Submission, SubmissionCreate
from .stats import combine_groups
from .store import SubmissionStore, page_offset

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "birth-order-research"
COLLECTION = "submissions"

_NEWEST_FIRST = [("timestamp", DESCENDING), ("_id", DESCENDING)]
_HIDDEN_FIELDS = {"_id": 0, "__v": 0}


def _now_utc_ms() -> datetime:
    # BSON dates keep millisecond precision; truncate so the returned record matches the stored one.
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def _doc_to_submission(doc: Dict[str, Any]) -> Submission:
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    data.pop("__v", None)
    ts = data.get("timestamp")
    if isinstance(ts, datetime) and ts.tzinfo is None:
        data["timestamp"] = ts.replace(tzinfo=timezone.utc)
    return Submission.model_validate(data)


class MongoStore(SubmissionStore):
    """Document store backed by a MongoDB collection."""

    name = "mongodb"

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017/" + DEFAULT_DATABASE,
        database: str = "",
        client: Optional[MongoClient] = None,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        self._owns_client = client is None
        if client is None:
            client = MongoClient(uri, tz_aware=True, serverSelectionTimeoutMS=server_selection_timeout_ms)
        self.client = client

        if database:
            self.db = client[database]
        else:
            self.db = client.get_default_database(default=DEFAULT_DATABASE)
        self.collection = self.db[COLLECTION]

        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        try:
            self.collection.create_index([("region", ASCENDING), ("timestamp", DESCENDING)])
            self.collection.create_index([("attitudeScore", ASCENDING)])
            self.collection.create_index([("timestamp", DESCENDING)])
        except PyMongoError:
            # The server may come up after us; /api/health reports the connection state.
            logger.exception("[Store] could not create mongodb indexes db=%s", self.db.name)
            return
        logger.info("[Store] mongodb ready db=%s collection=%s", self.db.name, COLLECTION)

    def create(self, record: SubmissionCreate) -> Submission:
        doc = record.model_dump()
        doc["timestamp"] = _now_utc_ms()
        try:
            result = self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.exception("[Store] mongodb insert failed")
            raise StorageError("Database error") from e

        doc["_id"] = result.inserted_id
        return _doc_to_submission(doc)

    def list(self, page: int = 1, page_size: int = 50) -> Tuple[List[Submission], int]:
        try:
            cursor = (
                self.collection.find({}, {"__v": 0})
                .sort(_NEWEST_FIRST)
                .skip(page_offset(page, page_size))
                .limit(page_size)
            )
            docs = list(cursor)
            total = self.collection.count_documents({})
        except PyMongoError as e:
            logger.exception("[Store] mongodb list failed")
            raise StorageError("Database error") from e
        return [_doc_to_submission(d) for d in docs], total

    def list_by_region(self, region: str) -> List[Submission]:
        try:
            docs = list(self.collection.find({"region": region}, {"__v": 0}).sort(_NEWEST_FIRST))
        except PyMongoError as e:
            logger.exception("[Store] mongodb region query failed")
            raise StorageError("Database error") from e
        return [_doc_to_submission(d) for d in docs]

    def get(self, submission_id: str) -> Submission:
        try:
            oid = ObjectId(submission_id)
        except (InvalidId, TypeError):
            raise NotFoundError(f"Submission '{submission_id}' not found")

        try:
            doc = self.collection.find_one({"_id": oid}, {"__v": 0})
        except PyMongoError as e:
            logger.exception("[Store] mongodb lookup failed")
            raise StorageError("Database error") from e
        if doc is None:
            raise NotFoundError(f"Submission '{submission_id}' not found")
        return _doc_to_submission(doc)

    def count(self) -> int:
        try:
            return self.collection.count_documents({})
        except PyMongoError as e:
            logger.exception("[Store] mongodb count failed")
            raise StorageError("Database error") from e

    def statistics(self) -> Optional[Statistics]:
        pipeline = [
            {
                "$group": {
                    "_id": {"region": "$region", "gender": "$firstbornGender"},
                    "count": {"$sum": 1},
                    "avgFamilySize": {"$avg": "$familySize"},
                    "avgAttitudeScore": {"$avg": "$attitudeScore"},
                    "avgEducationDifference": {
                        "$avg": {"$subtract": ["$firstbornEducation", "$laterbornEducation"]}
                    },
                }
            }
        ]
        try:
            rows = list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            logger.exception("[Store] mongodb aggregation failed")
            raise StorageError("Database error") from e

        groups = [
            GroupSummary(
                region=r["_id"]["region"],
                gender=r["_id"]["gender"],
                count=r["count"],
                avg_family_size=r["avgFamilySize"],
                avg_attitude_score=r["avgAttitudeScore"],
                avg_education_difference=r["avgEducationDifference"],
            )
            for r in rows
        ]
        return combine_groups(groups)

    def export_rows(self) -> List[Dict[str, Any]]:
        try:
            return list(self.collection.find({}, _HIDDEN_FIELDS).sort(_NEWEST_FIRST))
        except PyMongoError as e:
            logger.exception("[Store] mongodb export failed")
            raise StorageError("Database error") from e

    def ping(self) -> None:
        try:
            self.client.admin.command("ping")
        except PyMongoError as e:
            logger.exception("[Store] mongodb ping failed")
            raise StorageError("Database error") from e

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
