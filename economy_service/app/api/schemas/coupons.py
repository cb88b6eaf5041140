from __future__ import annotations

from pydantic import BaseModel

from common.types.datetime import UtcDateTime

from ...models.coupon import Coupon, CouponStatus


class CouponItemResponse(BaseModel):
    item_id: str
    title: str
    category: str
    price: int


class CouponResponse(BaseModel):
    """쿠폰 응답 DTO."""

    id: str | None
    student_id: str
    student_name: str
    item: CouponItemResponse
    purchased_at: UtcDateTime
    expires_at: UtcDateTime
    status: CouponStatus
    used_at: UtcDateTime | None = None

    @classmethod
    def from_domain(cls, coupon: Coupon) -> "CouponResponse":
        return cls.model_validate(coupon.model_dump())


class ListCouponsResponse(BaseModel):
    """쿠폰 목록 + 상태별 건수 (필터 탭용). counts 는 status 필터와 무관한 전체 기준."""

    items: list[CouponResponse]
    counts: dict[str, int]


class UseCouponRequest(BaseModel):
    student_id: str | None = None


class ExpireCouponsResponse(BaseModel):
    expired: int
