"""쿠폰 MongoDB 도큐먼트.

구매 시점의 아이템 정보는 item 서브 도큐먼트로 임베드한다 (shop_items 참조 아님).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.coupon import Coupon, CouponItemSnapshot, CouponStatus


class CouponItemSubDocument(BaseModel):
    item_id: str
    title: str
    category: str
    price: int


class CouponDocument(BaseDocument):
    """MongoDB coupons 컬렉션 도큐먼트 모델."""

    student_id: str
    student_name: str
    item: CouponItemSubDocument
    purchased_at: MongoDateTime
    expires_at: MongoDateTime
    status: str
    used_at: Optional[MongoDateTime] = None

    @classmethod
    def from_domain(cls, coupon: Coupon) -> "CouponDocument":
        data = build_document_data_from_domain(coupon)
        return cls.model_validate(data)

    def to_domain(self) -> Coupon:
        return Coupon(
            id=from_object_id(self.id),
            student_id=self.student_id,
            student_name=self.student_name,
            item=CouponItemSnapshot(**self.item.model_dump()),
            purchased_at=self.purchased_at,
            expires_at=self.expires_at,
            status=CouponStatus(self.status),
            used_at=self.used_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
