from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database

from common.mongo.types import parse_object_id

from .documents.student_document import StudentDocument
from .interfaces import StudentRepositoryInterface
from ..models.student import Student


class StudentRepository(StudentRepositoryInterface):
    """students 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["students"]

    def insert(self, student: Student) -> Student:
        doc = StudentDocument.from_domain(student)
        payload = doc.to_mongo_record()
        result = self._col.insert_one(payload)
        return student.model_copy(update={"id": str(result.inserted_id)})

    def find_by_id(self, student_id: str, session: Any = None) -> Student | None:
        oid = parse_object_id(student_id)
        if oid is None:
            return None
        raw = self._col.find_one({"_id": oid}, session=session)
        if raw is None:
            return None
        return StudentDocument.model_validate(raw).to_domain()

    def list_all(self) -> list[Student]:
        cursor = self._col.find(
            {},
            sort=[
                ("grade", ASCENDING),
                ("class_number", ASCENDING),
                ("number", ASCENDING),
            ],
        )
        return [StudentDocument.model_validate(raw).to_domain() for raw in cursor]

    def increment_points(
        self, student_id: str, delta: int, session: Any = None
    ) -> Student | None:
        """잔액 검사와 변경을 하나의 find_one_and_update 로 수행한다.

        동시 요청이 같은 잔액을 읽고 각각 차감하는 경쟁 상태를 막기 위해,
        차감 조건(points >= -delta)을 필터에 포함시킨다.
        """
        oid = parse_object_id(student_id)
        if oid is None:
            return None

        query: dict[str, Any] = {"_id": oid}
        if delta < 0:
            query["points"] = {"$gte": -delta}

        raw = self._col.find_one_and_update(
            query,
            {
                "$inc": {"points": delta},
                "$set": {"updated_at": datetime.now(timezone.utc)},
            },
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if raw is None:
            return None
        return StudentDocument.model_validate(raw).to_domain()

    def compare_and_increment(
        self, student_id: str, expected: int, delta: int, session: Any = None
    ) -> Student | None:
        """잔액이 expected 일 때만 delta 를 적용한다 (잔액 초기화용)."""
        oid = parse_object_id(student_id)
        if oid is None:
            return None

        raw = self._col.find_one_and_update(
            {"_id": oid, "points": expected},
            {
                "$inc": {"points": delta},
                "$set": {"updated_at": datetime.now(timezone.utc)},
            },
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if raw is None:
            return None
        return StudentDocument.model_validate(raw).to_domain()
