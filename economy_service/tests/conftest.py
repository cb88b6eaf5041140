from __future__ import annotations

import copy
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, TypeVar

import pytest
from bson import ObjectId

from economy_service.app.models.coupon import SWEEPABLE_STATUSES, Coupon, CouponStatus
from economy_service.app.models.point_history import (
    PointHistoryEntry,
    PointSource,
    PointType,
)
from economy_service.app.models.shop_item import ShopCategory, ShopItem
from economy_service.app.models.student import Student
from economy_service.app.repositories.interfaces import (
    CouponRepositoryInterface,
    PointHistoryRepositoryInterface,
    ShopItemRepositoryInterface,
    StudentRepositoryInterface,
)
from economy_service.app.services.adjustment_service import AdjustmentService
from economy_service.app.services.catalog_service import CatalogService
from economy_service.app.services.coupon_service import CouponService
from economy_service.app.services.ledger_service import LedgerService
from economy_service.app.services.purchase_service import PurchaseService
from economy_service.app.services.students_service import StudentsService


T = TypeVar("T")

FIXED_NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """테스트에서 시간을 직접 움직일 수 있는 clock."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeStudentRepository(StudentRepositoryInterface):
    """increment_points 의 잔액 조건을 락으로 원자적으로 흉내 낸다."""

    def __init__(self) -> None:
        self.students: dict[str, Student] = {}
        self.before_compare_and_increment: Callable[[str], None] | None = None
        self._lock = threading.Lock()

    def insert(self, student: Student) -> Student:
        created = student.model_copy(update={"id": str(ObjectId())})
        with self._lock:
            self.students[created.id] = created  # type: ignore[index]
        return created

    def find_by_id(self, student_id: str, session: Any = None) -> Student | None:
        return self.students.get(student_id)

    def list_all(self) -> list[Student]:
        return sorted(
            self.students.values(),
            key=lambda s: (s.grade, s.class_number, s.number),
        )

    def increment_points(
        self, student_id: str, delta: int, session: Any = None
    ) -> Student | None:
        with self._lock:
            student = self.students.get(student_id)
            if student is None:
                return None
            if delta < 0 and student.points < -delta:
                return None
            updated = student.model_copy(update={"points": student.points + delta})
            self.students[student_id] = updated
            return updated

    def compare_and_increment(
        self, student_id: str, expected: int, delta: int, session: Any = None
    ) -> Student | None:
        # 잔액을 읽은 뒤 차감하기 전에 다른 요청이 끼어드는 상황을 재현한다
        if self.before_compare_and_increment is not None:
            self.before_compare_and_increment(student_id)

        with self._lock:
            student = self.students.get(student_id)
            if student is None or student.points != expected:
                return None
            updated = student.model_copy(update={"points": student.points + delta})
            self.students[student_id] = updated
            return updated

    def snapshot(self) -> Any:
        return dict(self.students)

    def restore(self, state: Any) -> None:
        self.students.clear()
        self.students.update(state)


class FakePointHistoryRepository(PointHistoryRepositoryInterface):
    def __init__(self) -> None:
        self.entries: list[PointHistoryEntry] = []
        self.fail_next_insert = False
        self._lock = threading.Lock()

    def insert(
        self, entry: PointHistoryEntry, session: Any = None
    ) -> PointHistoryEntry:
        if self.fail_next_insert:
            self.fail_next_insert = False
            raise RuntimeError("point_history insert failed")
        created = entry.model_copy(update={"id": str(ObjectId())})
        with self._lock:
            self.entries.append(created)
        return created

    def list_by_student(
        self, student_id: str, entry_type: PointType | None = None
    ) -> list[PointHistoryEntry]:
        matched = [
            e
            for e in self.entries
            if e.student_id == student_id and (entry_type is None or e.type == entry_type)
        ]
        return _newest_first(matched, key=lambda e: e.created_at)

    def list_recent(self, limit: int) -> list[PointHistoryEntry]:
        return _newest_first(list(self.entries), key=lambda e: e.created_at)[:limit]

    def sum_by_student(self, student_id: str) -> tuple[int, int]:
        amounts = [e.amount for e in self.entries if e.student_id == student_id]
        return sum(amounts), len(amounts)

    def snapshot(self) -> Any:
        return list(self.entries)

    def restore(self, state: Any) -> None:
        self.entries[:] = state


class FakeShopItemRepository(ShopItemRepositoryInterface):
    def __init__(self) -> None:
        self.items: dict[str, ShopItem] = {}

    def insert(self, item: ShopItem) -> ShopItem:
        created = item.model_copy(update={"id": str(ObjectId())})
        self.items[created.id] = created  # type: ignore[index]
        return created

    def find_by_id(self, item_id: str, session: Any = None) -> ShopItem | None:
        return self.items.get(item_id)

    def list(
        self, active_only: bool = False, category: ShopCategory | None = None
    ) -> list[ShopItem]:
        return [
            i
            for i in reversed(list(self.items.values()))
            if (not active_only or i.is_active)
            and (category is None or i.category == category)
        ]

    def update_fields(self, item_id: str, updates: dict[str, Any]) -> ShopItem | None:
        item = self.items.get(item_id)
        if item is None:
            return None
        updated = item.model_copy(update=updates)
        self.items[item_id] = updated
        return updated


class FakeCouponRepository(CouponRepositoryInterface):
    """compare_and_set_status 를 락으로 원자적으로 흉내 낸다."""

    def __init__(self) -> None:
        self.coupons: dict[str, Coupon] = {}
        self.fail_next_insert = False
        self._lock = threading.Lock()

    def insert(self, coupon: Coupon, session: Any = None) -> Coupon:
        if self.fail_next_insert:
            self.fail_next_insert = False
            raise RuntimeError("coupon insert failed")
        created = coupon.model_copy(update={"id": str(ObjectId())})
        with self._lock:
            self.coupons[created.id] = created  # type: ignore[index]
        return created

    def find_by_id(self, coupon_id: str) -> Coupon | None:
        return self.coupons.get(coupon_id)

    def list(
        self,
        status: CouponStatus | None = None,
        student_id: str | None = None,
    ) -> list[Coupon]:
        matched = [
            c
            for c in self.coupons.values()
            if (status is None or c.status == status)
            and (student_id is None or c.student_id == student_id)
        ]
        return _newest_first(matched, key=lambda c: c.purchased_at)

    def compare_and_set_status(
        self,
        coupon_id: str,
        expected: CouponStatus,
        new_status: CouponStatus,
        now: datetime,
        used_at: datetime | None = None,
    ) -> Coupon | None:
        with self._lock:
            coupon = self.coupons.get(coupon_id)
            if coupon is None or coupon.status != expected:
                return None
            update: dict[str, Any] = {"status": new_status, "updated_at": now}
            if used_at is not None:
                update["used_at"] = used_at
            updated = coupon.model_copy(update=update)
            self.coupons[coupon_id] = updated
            return updated

    def expire_overdue(self, now: datetime, student_id: str | None = None) -> int:
        count = 0
        with self._lock:
            for coupon_id, coupon in list(self.coupons.items()):
                if student_id is not None and coupon.student_id != student_id:
                    continue
                if coupon.status in SWEEPABLE_STATUSES and coupon.expires_at < now:
                    self.coupons[coupon_id] = coupon.model_copy(
                        update={"status": CouponStatus.EXPIRED, "updated_at": now}
                    )
                    count += 1
        return count

    def snapshot(self) -> Any:
        return dict(self.coupons)

    def restore(self, state: Any) -> None:
        self.coupons.clear()
        self.coupons.update(state)


class FakeTransactionRunner:
    """트랜잭션 러너 가짜 구현.

    - atomic=True: 하나의 락 안에서 callback 을 실행하고, 예외가 나면 모든
      저장소를 실행 전 상태로 되돌린다.
    - atomic=False: callback(None) 을 그대로 실행한다 (단일 노드 MongoDB 와 같음).
    """

    SESSION = object()

    def __init__(self, repos: list[Any], atomic: bool = True) -> None:
        self._repos = repos
        self._atomic = atomic
        self._lock = threading.RLock()
        self.run_count = 0

    @property
    def is_atomic(self) -> bool:
        return self._atomic

    def run(self, callback: Callable[[Any], T]) -> T:
        self.run_count += 1
        if not self._atomic:
            return callback(None)

        with self._lock:
            states = [copy.copy(repo.snapshot()) for repo in self._repos]
            try:
                return callback(self.SESSION)
            except Exception:
                for repo, state in zip(self._repos, states):
                    repo.restore(state)
                raise


def _newest_first(items: list[Any], key: Callable[[Any], datetime]) -> list[Any]:
    # 같은 시각이면 나중에 추가된 항목이 먼저 온다 (_id 역순과 같음)
    indexed = list(enumerate(items))
    indexed.sort(key=lambda pair: (key(pair[1]), pair[0]), reverse=True)
    return [item for _, item in indexed]


# -------- Fixtures --------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def student_repo() -> FakeStudentRepository:
    return FakeStudentRepository()


@pytest.fixture
def history_repo() -> FakePointHistoryRepository:
    return FakePointHistoryRepository()


@pytest.fixture
def item_repo() -> FakeShopItemRepository:
    return FakeShopItemRepository()


@pytest.fixture
def coupon_repo() -> FakeCouponRepository:
    return FakeCouponRepository()


@pytest.fixture
def atomic() -> bool:
    """트랜잭션 사용 여부. 테스트 모듈에서 parametrize 로 덮어쓸 수 있다."""
    return True


@pytest.fixture
def tx_runner(
    student_repo: FakeStudentRepository,
    history_repo: FakePointHistoryRepository,
    coupon_repo: FakeCouponRepository,
    atomic: bool,
) -> FakeTransactionRunner:
    return FakeTransactionRunner([student_repo, history_repo, coupon_repo], atomic=atomic)


@pytest.fixture
def ledger(
    student_repo: FakeStudentRepository,
    history_repo: FakePointHistoryRepository,
    tx_runner: FakeTransactionRunner,
    clock: FakeClock,
) -> LedgerService:
    return LedgerService(student_repo, history_repo, tx_runner, clock=clock)


@pytest.fixture
def students_service(
    student_repo: FakeStudentRepository,
    history_repo: FakePointHistoryRepository,
    clock: FakeClock,
) -> StudentsService:
    return StudentsService(student_repo, history_repo, clock=clock)


@pytest.fixture
def adjustment_service(
    student_repo: FakeStudentRepository, ledger: LedgerService
) -> AdjustmentService:
    return AdjustmentService(student_repo, ledger)


@pytest.fixture
def catalog_service(item_repo: FakeShopItemRepository, clock: FakeClock) -> CatalogService:
    return CatalogService(item_repo, clock=clock)


@pytest.fixture
def purchase_service(
    student_repo: FakeStudentRepository,
    item_repo: FakeShopItemRepository,
    coupon_repo: FakeCouponRepository,
    ledger: LedgerService,
    tx_runner: FakeTransactionRunner,
    clock: FakeClock,
) -> PurchaseService:
    return PurchaseService(
        student_repo=student_repo,
        item_repo=item_repo,
        coupon_repo=coupon_repo,
        ledger=ledger,
        tx_runner=tx_runner,
        clock=clock,
    )


@pytest.fixture
def coupon_service(coupon_repo: FakeCouponRepository, clock: FakeClock) -> CouponService:
    return CouponService(coupon_repo, clock=clock)


@pytest.fixture
def make_student(
    students_service: StudentsService, ledger: LedgerService
) -> Callable[..., Student]:
    """학생을 등록하고, points 가 주어지면 원장 내역과 함께 지급한다."""

    counter = {"number": 0}

    def _make(name: str = "김민준", points: int = 0) -> Student:
        counter["number"] += 1
        student = students_service.register(name, 5, 2, counter["number"])
        assert student.id is not None
        if points > 0:
            ledger.record_entry(student.id, points, PointSource.ADMIN, "초기 지급")
        return students_service.get_student(student.id)

    return _make


@pytest.fixture
def make_item(catalog_service: CatalogService) -> Callable[..., ShopItem]:
    def _make(
        title: str = "좌석 변경권",
        price: int = 30,
        category: ShopCategory = ShopCategory.PRIVILEGE,
        is_active: bool = True,
    ) -> ShopItem:
        return catalog_service.create_item(
            title=title, category=category, price=price, is_active=is_active
        )

    return _make
