from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Protocol, TypeVar

from ..models.coupon import Coupon, CouponStatus
from ..models.point_history import PointHistoryEntry, PointType
from ..models.shop_item import ShopCategory, ShopItem
from ..models.student import Student


T = TypeVar("T")


class TransactionRunnerInterface(Protocol):
    """여러 Repository 쓰기를 하나의 단위로 묶는 계약.

    callback 은 session 을 인자로 받아 각 Repository 호출에 전달한다.
    is_atomic 이 False 이면 실패 시 호출자가 보상 쓰기를 해야 한다.
    """

    @property
    def is_atomic(self) -> bool:  # pragma: no cover - Protocol
        ...

    def run(self, callback: Callable[[Any], T]) -> T:  # pragma: no cover - Protocol
        ...


class StudentRepositoryInterface(Protocol):
    """StudentRepository가 따라야 할 최소한의 계약.

    잔액(points)은 increment_points 로만 변경한다.
    """

    def insert(self, student: Student) -> Student:  # pragma: no cover - Protocol
        ...

    def find_by_id(
        self, student_id: str, session: Any = None
    ) -> Student | None:  # pragma: no cover - Protocol
        ...

    def list_all(self) -> list[Student]:  # pragma: no cover - Protocol
        ...

    def increment_points(
        self, student_id: str, delta: int, session: Any = None
    ) -> Student | None:  # pragma: no cover - Protocol
        """잔액을 delta 만큼 원자적으로 변경하고 변경 후 학생을 반환한다.

        delta 가 음수이면 points >= -delta 인 경우에만 적용된다.
        학생이 없거나 잔액 조건을 만족하지 못하면 None.
        """
        ...

    def compare_and_increment(
        self, student_id: str, expected: int, delta: int, session: Any = None
    ) -> Student | None:  # pragma: no cover - Protocol
        """현재 잔액이 expected 와 같을 때만 delta 를 적용한다. 아니면 None."""
        ...


class PointHistoryRepositoryInterface(Protocol):
    """PointHistoryRepository가 따라야 할 최소한의 계약 (append-only)."""

    def insert(
        self, entry: PointHistoryEntry, session: Any = None
    ) -> PointHistoryEntry:  # pragma: no cover - Protocol
        ...

    def list_by_student(
        self, student_id: str, entry_type: PointType | None = None
    ) -> list[PointHistoryEntry]:  # pragma: no cover - Protocol
        """최신순 정렬."""
        ...

    def list_recent(
        self, limit: int
    ) -> list[PointHistoryEntry]:  # pragma: no cover - Protocol
        ...

    def sum_by_student(
        self, student_id: str
    ) -> tuple[int, int]:  # pragma: no cover - Protocol
        """(amount 합계, 내역 건수)."""
        ...


class ShopItemRepositoryInterface(Protocol):
    """ShopItemRepository가 따라야 할 최소한의 계약. 삭제는 지원하지 않는다."""

    def insert(self, item: ShopItem) -> ShopItem:  # pragma: no cover - Protocol
        ...

    def find_by_id(
        self, item_id: str, session: Any = None
    ) -> ShopItem | None:  # pragma: no cover - Protocol
        ...

    def list(
        self, active_only: bool = False, category: ShopCategory | None = None
    ) -> list[ShopItem]:  # pragma: no cover - Protocol
        ...

    def update_fields(
        self, item_id: str, updates: dict[str, Any]
    ) -> ShopItem | None:  # pragma: no cover - Protocol
        ...


class CouponRepositoryInterface(Protocol):
    """CouponRepository가 따라야 할 최소한의 계약.

    - 발급 후에는 status(와 used_at)만 변경한다.
    - 상태 변경은 현재 상태를 조건으로 하는 compare-and-set 으로만 수행한다.
    """

    def insert(
        self, coupon: Coupon, session: Any = None
    ) -> Coupon:  # pragma: no cover - Protocol
        ...

    def find_by_id(self, coupon_id: str) -> Coupon | None:  # pragma: no cover - Protocol
        ...

    def list(
        self,
        status: CouponStatus | None = None,
        student_id: str | None = None,
    ) -> list[Coupon]:  # pragma: no cover - Protocol
        """구매일 최신순 정렬."""
        ...

    def compare_and_set_status(
        self,
        coupon_id: str,
        expected: CouponStatus,
        new_status: CouponStatus,
        now: datetime,
        used_at: datetime | None = None,
    ) -> Coupon | None:  # pragma: no cover - Protocol
        """현재 상태가 expected 일 때만 new_status 로 바꾼다. 실패 시 None."""
        ...

    def expire_overdue(
        self, now: datetime, student_id: str | None = None
    ) -> int:  # pragma: no cover - Protocol
        """unused/pending 중 expires_at < now 인 쿠폰을 expired 로 바꾸고 건수를 반환한다."""
        ...
