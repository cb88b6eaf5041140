"""쿠폰 도메인 모델과 상태 전이 규칙.

상태 전이 (역방향 없음):

    unused --(사용 요청)--> pending --(선생님 승인)--> approved
    unused | pending --(만료일 경과)--> expired

approved, expired 는 종착 상태다. 만료 스윕은 ``sweep_status`` 순수 함수로
정의되며, 조회 시점(lazy)과 백그라운드 스케줄러 모두 같은 결과로 수렴한다.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel


DEFAULT_VALIDITY_MONTHS = 1


class CouponStatus(str, Enum):
    UNUSED = "unused"  # 미사용
    PENDING = "pending"  # 승인 대기
    APPROVED = "approved"  # 사용 완료
    EXPIRED = "expired"  # 기간 만료


# 만료 스윕 대상. approved 는 이미 사용된 쿠폰이므로 제외한다.
SWEEPABLE_STATUSES = frozenset({CouponStatus.UNUSED, CouponStatus.PENDING})

TERMINAL_STATUSES = frozenset({CouponStatus.APPROVED, CouponStatus.EXPIRED})

ALLOWED_TRANSITIONS: dict[CouponStatus, frozenset[CouponStatus]] = {
    CouponStatus.UNUSED: frozenset({CouponStatus.PENDING, CouponStatus.EXPIRED}),
    CouponStatus.PENDING: frozenset({CouponStatus.APPROVED, CouponStatus.EXPIRED}),
    CouponStatus.APPROVED: frozenset(),
    CouponStatus.EXPIRED: frozenset(),
}


class CouponItemSnapshot(BaseModel):
    """구매 시점의 상점 아이템 값.

    이후 상점 아이템이 수정되어도 발급된 쿠폰에는 영향이 없다.
    """

    item_id: str
    title: str
    category: str
    price: int


class Coupon(BaseModel):
    """쿠폰 도메인 모델."""

    id: str | None = None
    student_id: str
    student_name: str
    item: CouponItemSnapshot
    purchased_at: datetime
    expires_at: datetime
    status: CouponStatus = CouponStatus.UNUSED
    used_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


def compute_expires_at(
    purchased_at: datetime, months: int = DEFAULT_VALIDITY_MONTHS
) -> datetime:
    """구매 시각 + N 개월 (달력 기준).

    말일 구매는 다음 달 말일로 맞춘다 (1/31 + 1개월 = 2/28 또는 2/29).
    """
    return purchased_at + relativedelta(months=months)


def sweep_status(coupon: Coupon, now: datetime) -> CouponStatus:
    """now 기준으로 쿠폰이 가져야 할 상태를 반환한다 (멱등)."""
    if coupon.status in SWEEPABLE_STATUSES and coupon.expires_at < now:
        return CouponStatus.EXPIRED
    return coupon.status


def apply_sweep(coupon: Coupon, now: datetime) -> Coupon:
    """sweep_status 를 적용한 쿠폰 사본을 반환한다. 변화가 없으면 원본 그대로."""
    swept = sweep_status(coupon, now)
    if swept == coupon.status:
        return coupon
    return coupon.model_copy(update={"status": swept, "updated_at": now})


def can_transition(current: CouponStatus, target: CouponStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]
