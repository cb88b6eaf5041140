from __future__ import annotations

from typing import Any

from pymongo import DESCENDING
from pymongo.database import Database

from .documents.point_history_document import PointHistoryDocument
from .interfaces import PointHistoryRepositoryInterface
from ..models.point_history import PointHistoryEntry, PointType


MAX_RECENT_LIMIT = 200


class PointHistoryRepository(PointHistoryRepositoryInterface):
    """point_history 컬렉션에 대한 MongoDB 접근 레이어 (append-only)."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["point_history"]

    def insert(
        self, entry: PointHistoryEntry, session: Any = None
    ) -> PointHistoryEntry:
        doc = PointHistoryDocument.from_domain(entry)
        payload = doc.to_mongo_record()
        result = self._col.insert_one(payload, session=session)
        return entry.model_copy(update={"id": str(result.inserted_id)})

    def list_by_student(
        self, student_id: str, entry_type: PointType | None = None
    ) -> list[PointHistoryEntry]:
        query: dict[str, Any] = {"student_id": student_id}
        if entry_type is not None:
            query["type"] = entry_type.value

        cursor = self._col.find(
            query,
            sort=[("created_at", DESCENDING), ("_id", DESCENDING)],
        )
        return [PointHistoryDocument.model_validate(raw).to_domain() for raw in cursor]

    def list_recent(self, limit: int) -> list[PointHistoryEntry]:
        if limit <= 0 or limit > MAX_RECENT_LIMIT:
            limit = 50

        cursor = self._col.find(
            {},
            sort=[("created_at", DESCENDING), ("_id", DESCENDING)],
            limit=limit,
        )
        return [PointHistoryDocument.model_validate(raw).to_domain() for raw in cursor]

    def sum_by_student(self, student_id: str) -> tuple[int, int]:
        pipeline = [
            {"$match": {"student_id": student_id}},
            {
                "$group": {
                    "_id": "$student_id",
                    "total": {"$sum": "$amount"},
                    "count": {"$sum": 1},
                }
            },
        ]
        for doc in self._col.aggregate(pipeline):
            return int(doc["total"]), int(doc["count"])
        return 0, 0
