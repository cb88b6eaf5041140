"""상점 구매 서비스.

구매 한 건은 다음 세 가지 변경으로 이뤄지며, 전부 반영되거나 전부 반영되지 않는다.

1. 학생 잔액 차감 (가격만큼)
2. 포인트 내역 추가 (type=spend, source=shop, amount=-가격)
3. 쿠폰 발급 (status=unused, 유효기간 N개월)

트랜잭션을 지원하지 않는 환경(MONGO_TRANSACTIONS_ENABLED=false)에서는
쿠폰 발급이 실패하면 환불 내역을 추가하여 잔액과 원장을 되돌린다.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database
from common.types.datetime import utc_now

from ..config import get_config
from ..exceptions import InsufficientBalanceError, ItemInactiveError, NotFoundError
from ..models.coupon import (
    DEFAULT_VALIDITY_MONTHS,
    Coupon,
    CouponItemSnapshot,
    CouponStatus,
    compute_expires_at,
)
from ..models.point_history import PointSource
from ..models.shop_item import ShopItem
from ..models.student import Student
from ..repositories.coupon_repository import CouponRepository
from ..repositories.interfaces import (
    CouponRepositoryInterface,
    ShopItemRepositoryInterface,
    StudentRepositoryInterface,
    TransactionRunnerInterface,
)
from ..repositories.shop_item_repository import ShopItemRepository
from ..repositories.student_repository import StudentRepository
from .ledger_service import LedgerService, get_ledger_service, get_transaction_runner


logger = logging.getLogger(__name__)


class PurchaseService:
    def __init__(
        self,
        student_repo: StudentRepositoryInterface,
        item_repo: ShopItemRepositoryInterface,
        coupon_repo: CouponRepositoryInterface,
        ledger: LedgerService,
        tx_runner: TransactionRunnerInterface,
        validity_months: int = DEFAULT_VALIDITY_MONTHS,
        clock: Callable[[], Any] = utc_now,
    ) -> None:
        self._student_repo = student_repo
        self._item_repo = item_repo
        self._coupon_repo = coupon_repo
        self._ledger = ledger
        self._tx = tx_runner
        self._validity_months = validity_months
        self._clock = clock

    def purchase(self, student_id: str, item_id: str) -> Coupon:
        """학생이 상점 아이템을 구매하고 발급된 쿠폰을 반환한다.

        Raises:
            NotFoundError: 학생 또는 아이템이 없음
            ItemInactiveError: 비활성화된 아이템
            InsufficientBalanceError: 잔액 부족 (동시 구매 경쟁에서 진 경우 포함)
        """

        student = self._student_repo.find_by_id(student_id)
        if student is None:
            raise NotFoundError(f"student {student_id} not found")

        item = self._item_repo.find_by_id(item_id)
        if item is None:
            raise NotFoundError(f"shop item {item_id} not found")
        if not item.is_active:
            raise ItemInactiveError(f"shop item {item_id} is not active")

        # 빠른 실패용 사전 검사. 최종 판정은 원장 차감 시의 조건부 변경이 한다.
        if student.points < item.price:
            raise InsufficientBalanceError(
                f"insufficient balance: have {student.points}, need {item.price}"
            )

        coupon = self._tx.run(lambda s: self._purchase(student, item, s))

        logger.info(
            "shop item purchased",
            extra={
                "student_id": student_id,
                "item_id": item_id,
                "coupon_id": coupon.id,
                "amount": -item.price,
            },
        )
        return coupon

    def _purchase(self, student: Student, item: ShopItem, session: Any) -> Coupon:
        assert student.id is not None
        assert item.id is not None

        self._ledger.record_entry(
            student.id,
            -item.price,
            PointSource.SHOP,
            f"{item.title} 구매",
            session=session,
        )

        now = self._clock()
        coupon = Coupon(
            student_id=student.id,
            student_name=student.name,
            item=CouponItemSnapshot(
                item_id=item.id,
                title=item.title,
                category=item.category.value,
                price=item.price,
            ),
            purchased_at=now,
            expires_at=compute_expires_at(now, self._validity_months),
            status=CouponStatus.UNUSED,
            created_at=now,
            updated_at=now,
        )

        try:
            return self._coupon_repo.insert(coupon, session=session)
        except Exception:
            if session is None and not self._tx.is_atomic:
                self._refund(student, item)
            raise

    def _refund(self, student: Student, item: ShopItem) -> None:
        """쿠폰 발급 실패 시 차감분을 환불 내역으로 되돌린다."""
        assert student.id is not None
        logger.warning(
            "coupon issue failed, refunding purchase",
            extra={"student_id": student.id, "item_id": item.id, "amount": item.price},
        )
        try:
            self._ledger.record_entry(
                student.id,
                item.price,
                PointSource.SHOP,
                f"{item.title} 구매 취소",
            )
        except Exception:  # noqa: BLE001
            logger.exception(
                "refund after failed purchase did not complete",
                extra={"student_id": student.id, "item_id": item.id},
            )


def get_purchase_service(
    db: Database = Depends(get_database),
    ledger: LedgerService = Depends(get_ledger_service),
    tx_runner: TransactionRunnerInterface = Depends(get_transaction_runner),
) -> PurchaseService:
    """FastAPI DI용 PurchaseService 팩토리."""

    return PurchaseService(
        student_repo=StudentRepository(db),
        item_repo=ShopItemRepository(db),
        coupon_repo=CouponRepository(db),
        ledger=ledger,
        tx_runner=tx_runner,
        validity_months=get_config().coupon.validity_months,
    )
