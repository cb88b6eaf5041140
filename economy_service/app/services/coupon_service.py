"""쿠폰 상태 관리 서비스.

상태 변경은 모두 현재 상태를 조건으로 하는 compare-and-set 으로 수행하므로
동시에 같은 쿠폰을 승인/사용 요청하더라도 한 번만 반영된다.
어떤 상태 변경도 포인트 잔액에는 영향을 주지 않는다.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Callable

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database
from common.types.datetime import utc_now

from ..exceptions import InvalidTransitionError, NotFoundError
from ..models.coupon import (
    Coupon,
    CouponStatus,
    apply_sweep,
    can_transition,
    sweep_status,
)
from ..repositories.coupon_repository import CouponRepository
from ..repositories.interfaces import CouponRepositoryInterface


logger = logging.getLogger(__name__)


class CouponService:
    def __init__(
        self,
        coupon_repo: CouponRepositoryInterface,
        clock: Callable[[], Any] = utc_now,
    ) -> None:
        self._repo = coupon_repo
        self._clock = clock

    def get_coupon(self, coupon_id: str) -> Coupon:
        coupon = self._repo.find_by_id(coupon_id)
        if coupon is None:
            raise NotFoundError(f"coupon {coupon_id} not found")
        return apply_sweep(coupon, self._clock())

    def list_coupons(
        self,
        status: CouponStatus | None = None,
        student_id: str | None = None,
    ) -> list[Coupon]:
        """만료 스윕을 먼저 반영한 뒤 쿠폰 목록을 반환한다 (구매일 최신순)."""

        now = self._clock()
        self._repo.expire_overdue(now, student_id=student_id)
        coupons = [apply_sweep(c, now) for c in self._repo.list(student_id=student_id)]
        if status is not None:
            coupons = [c for c in coupons if c.status == status]
        return coupons

    def request_use(self, coupon_id: str, student_id: str | None = None) -> Coupon:
        """학생의 사용 요청: unused -> pending.

        student_id 가 주어지면 본인 쿠폰이 아닌 경우 NotFoundError.
        """

        coupon = self._load_current(coupon_id)
        if student_id is not None and coupon.student_id != student_id:
            raise NotFoundError(f"coupon {coupon_id} not found")
        return self._transition(coupon, CouponStatus.PENDING)

    def approve(self, coupon_id: str) -> Coupon:
        """선생님 승인: pending -> approved. used_at 을 기록한다."""

        coupon = self._load_current(coupon_id)
        return self._transition(coupon, CouponStatus.APPROVED)

    def expire_overdue(self) -> int:
        """기간이 지난 unused/pending 쿠폰을 expired 로 바꾼다. 여러 번 실행해도 결과는 같다."""

        count = self._repo.expire_overdue(self._clock())
        if count:
            logger.info("expired %d overdue coupons", count)
        return count

    @staticmethod
    def count_by_status(coupons: list[Coupon]) -> dict[str, int]:
        counter = Counter(c.status for c in coupons)
        return {s.value: counter.get(s, 0) for s in CouponStatus}

    def _load_current(self, coupon_id: str) -> Coupon:
        """쿠폰을 읽고, 기간이 지났다면 expired 로 저장한 뒤 반환한다."""

        coupon = self._repo.find_by_id(coupon_id)
        if coupon is None:
            raise NotFoundError(f"coupon {coupon_id} not found")

        now = self._clock()
        if sweep_status(coupon, now) == CouponStatus.EXPIRED and coupon.status != CouponStatus.EXPIRED:
            assert coupon.id is not None
            expired = self._repo.compare_and_set_status(
                coupon.id, coupon.status, CouponStatus.EXPIRED, now
            )
            if expired is not None:
                return expired
            # 다른 요청이 먼저 상태를 바꿨다. 최신 상태로 다시 판단한다.
            latest = self._repo.find_by_id(coupon_id)
            if latest is None:
                raise NotFoundError(f"coupon {coupon_id} not found")
            return apply_sweep(latest, now)
        return coupon

    def _transition(self, coupon: Coupon, target: CouponStatus) -> Coupon:
        assert coupon.id is not None

        if not can_transition(coupon.status, target):
            raise InvalidTransitionError(
                f"coupon {coupon.id} cannot move from {coupon.status.value} to {target.value}"
            )

        now = self._clock()
        used_at = now if target == CouponStatus.APPROVED else None
        updated = self._repo.compare_and_set_status(
            coupon.id, coupon.status, target, now, used_at=used_at
        )
        if updated is None:
            # 읽은 뒤 다른 요청이 상태를 바꿨다 (중복 승인 등)
            raise InvalidTransitionError(
                f"coupon {coupon.id} is no longer {coupon.status.value}"
            )

        logger.info(
            "coupon status changed %s -> %s",
            coupon.status.value,
            target.value,
            extra={"coupon_id": coupon.id, "student_id": coupon.student_id},
        )
        return updated


def get_coupon_repository(
    db: Database = Depends(get_database),
) -> CouponRepositoryInterface:
    """FastAPI DI용 CouponRepository 팩토리."""

    return CouponRepository(db)


def get_coupon_service(
    repo: CouponRepositoryInterface = Depends(get_coupon_repository),
) -> CouponService:
    """FastAPI DI용 CouponService 팩토리."""

    return CouponService(repo)
