from __future__ import annotations

from datetime import datetime
from typing import Any

from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from common.mongo.types import parse_object_id

from .documents.coupon_document import CouponDocument
from .interfaces import CouponRepositoryInterface
from ..models.coupon import SWEEPABLE_STATUSES, Coupon, CouponStatus


class CouponRepository(CouponRepositoryInterface):
    """coupons 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["coupons"]

    def insert(self, coupon: Coupon, session: Any = None) -> Coupon:
        doc = CouponDocument.from_domain(coupon)
        payload = doc.to_mongo_record()
        result = self._col.insert_one(payload, session=session)
        return coupon.model_copy(update={"id": str(result.inserted_id)})

    def find_by_id(self, coupon_id: str) -> Coupon | None:
        oid = parse_object_id(coupon_id)
        if oid is None:
            return None
        raw = self._col.find_one({"_id": oid})
        if raw is None:
            return None
        return CouponDocument.model_validate(raw).to_domain()

    def list(
        self,
        status: CouponStatus | None = None,
        student_id: str | None = None,
    ) -> list[Coupon]:
        query: dict[str, Any] = {}
        if status is not None:
            query["status"] = status.value
        if student_id is not None:
            query["student_id"] = student_id

        cursor = self._col.find(
            query,
            sort=[("purchased_at", DESCENDING), ("_id", DESCENDING)],
        )
        return [CouponDocument.model_validate(raw).to_domain() for raw in cursor]

    def compare_and_set_status(
        self,
        coupon_id: str,
        expected: CouponStatus,
        new_status: CouponStatus,
        now: datetime,
        used_at: datetime | None = None,
    ) -> Coupon | None:
        oid = parse_object_id(coupon_id)
        if oid is None:
            return None

        fields: dict[str, Any] = {"status": new_status.value, "updated_at": now}
        if used_at is not None:
            fields["used_at"] = used_at

        raw = self._col.find_one_and_update(
            {"_id": oid, "status": expected.value},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if raw is None:
            return None
        return CouponDocument.model_validate(raw).to_domain()

    def expire_overdue(self, now: datetime, student_id: str | None = None) -> int:
        query: dict[str, Any] = {
            "status": {"$in": [s.value for s in SWEEPABLE_STATUSES]},
            "expires_at": {"$lt": now},
        }
        if student_id is not None:
            query["student_id"] = student_id

        result = self._col.update_many(
            query,
            {"$set": {"status": CouponStatus.EXPIRED.value, "updated_at": now}},
        )
        return result.modified_count
