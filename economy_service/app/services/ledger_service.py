"""포인트 원장 서비스.

포인트 내역 추가와 잔액 변경을 한 번의 논리적 연산으로 처리한다.
잔액 부족 검사는 호출자의 사전 조회가 아니라 잔액 변경(increment_points) 자체의
조건으로 수행되므로, 동시 요청이 있어도 잔액이 음수가 되지 않는다.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database
from common.mongo.config import is_transactions_enabled
from common.mongo.transaction import MongoTransactionRunner
from common.types.datetime import utc_now

from ..config import RewardConfig, get_config
from ..exceptions import (
    BalanceConflictError,
    InsufficientBalanceError,
    InvalidArgumentError,
    NotFoundError,
)
from ..models.point_history import (
    ACTIVITY_SOURCES,
    BalanceCheck,
    PointHistoryEntry,
    PointSource,
    PointType,
    point_type_for,
)
from ..repositories.interfaces import (
    PointHistoryRepositoryInterface,
    StudentRepositoryInterface,
    TransactionRunnerInterface,
)
from ..repositories.point_history_repository import PointHistoryRepository
from ..repositories.student_repository import StudentRepository


logger = logging.getLogger(__name__)


# 잔액 초기화 중 다른 요청과 충돌했을 때 다시 시도하는 횟수
ZERO_BALANCE_MAX_ATTEMPTS = 5

# 잔액 초기화 callback 이 "읽은 잔액이 바뀌었음" 을 알리는 표시
_CONFLICT = object()


class LedgerService:
    """포인트 원장(point_history) + 잔액(students.points) 관리."""

    def __init__(
        self,
        student_repo: StudentRepositoryInterface,
        history_repo: PointHistoryRepositoryInterface,
        tx_runner: TransactionRunnerInterface,
        rewards: RewardConfig | None = None,
        clock: Callable[[], Any] = utc_now,
    ) -> None:
        self._student_repo = student_repo
        self._history_repo = history_repo
        self._tx = tx_runner
        self._rewards = rewards or RewardConfig()
        self._clock = clock

    def record_entry(
        self,
        student_id: str,
        amount: int,
        source: PointSource,
        description: str,
        *,
        session: Any = None,
    ) -> PointHistoryEntry:
        """잔액을 amount 만큼 변경하고 같은 단위로 내역을 추가한다.

        session 이 주어지면 호출자의 트랜잭션 안에서 실행된다.
        """

        if amount == 0:
            raise InvalidArgumentError("amount must not be zero")
        if not description.strip():
            raise InvalidArgumentError("description must not be empty")

        if session is not None:
            return self._record(student_id, amount, source, description, session)
        return self._tx.run(
            lambda s: self._record(student_id, amount, source, description, s)
        )

    def _record(
        self,
        student_id: str,
        amount: int,
        source: PointSource,
        description: str,
        session: Any,
    ) -> PointHistoryEntry:
        student = self._student_repo.find_by_id(student_id, session=session)
        if student is None:
            raise NotFoundError(f"student {student_id} not found")

        updated = self._student_repo.increment_points(student_id, amount, session=session)
        if updated is None:
            # 학생은 존재하므로 잔액 조건(points >= -amount) 불만족
            raise InsufficientBalanceError(
                f"insufficient balance for student {student_id}: need {-amount}"
            )

        now = self._clock()
        entry = PointHistoryEntry(
            student_id=student_id,
            student_name=student.name,
            type=point_type_for(amount),
            amount=amount,
            source=source,
            description=description.strip(),
            created_at=now,
            updated_at=now,
        )

        try:
            created = self._history_repo.insert(entry, session=session)
        except Exception:
            if session is None and not self._tx.is_atomic:
                self._revert_increment(student_id, amount)
            raise

        logger.info(
            "point entry recorded",
            extra={
                "student_id": student_id,
                "amount": amount,
                "balance": updated.points,
            },
        )
        return created

    def _revert_increment(self, student_id: str, amount: int) -> None:
        """트랜잭션 없이 내역 추가가 실패했을 때 잔액 변경을 되돌린다."""
        reverted = self._student_repo.increment_points(student_id, -amount)
        if reverted is None:
            logger.error(
                "failed to revert balance after ledger insert failure",
                extra={"student_id": student_id, "amount": -amount},
            )

    def zero_balance(
        self,
        student_id: str,
        description: str,
        max_attempts: int = ZERO_BALANCE_MAX_ATTEMPTS,
    ) -> PointHistoryEntry | None:
        """학생의 잔액 전부를 차감 내역으로 남기고 0 으로 만든다.

        잔액은 트랜잭션 안에서 다시 읽고, 읽은 값과 같을 때만 차감한다.
        그 사이 다른 지급/차감이 끼어들면 처음부터 다시 시도한다.
        이미 0 이면 아무것도 기록하지 않고 None.

        Raises:
            NotFoundError: 학생이 없음
            BalanceConflictError: max_attempts 번 모두 충돌
        """

        if not description.strip():
            raise InvalidArgumentError("description must not be empty")

        for attempt in range(1, max_attempts + 1):
            result = self._tx.run(
                lambda s: self._zero(student_id, description.strip(), s)
            )
            if result is not _CONFLICT:
                return result
            logger.info(
                "balance changed during reset, retrying (attempt=%d)",
                attempt,
                extra={"student_id": student_id},
            )

        raise BalanceConflictError(
            f"balance of student {student_id} kept changing during reset"
        )

    def _zero(self, student_id: str, description: str, session: Any) -> Any:
        student = self._student_repo.find_by_id(student_id, session=session)
        if student is None:
            raise NotFoundError(f"student {student_id} not found")
        if student.points == 0:
            return None

        observed = student.points
        updated = self._student_repo.compare_and_increment(
            student_id, observed, -observed, session=session
        )
        if updated is None:
            return _CONFLICT

        now = self._clock()
        entry = PointHistoryEntry(
            student_id=student_id,
            student_name=student.name,
            type=point_type_for(-observed),
            amount=-observed,
            source=PointSource.ADMIN,
            description=description,
            created_at=now,
            updated_at=now,
        )

        try:
            created = self._history_repo.insert(entry, session=session)
        except Exception:
            if session is None and not self._tx.is_atomic:
                self._revert_increment(student_id, -observed)
            raise

        logger.info(
            "balance reset to zero",
            extra={"student_id": student_id, "amount": -observed, "balance": updated.points},
        )
        return created

    def award_activity(
        self, student_id: str, source: PointSource, description: str
    ) -> PointHistoryEntry:
        """학생 활동(과제, 칭찬, 목표, 출석)에 대한 설정된 포인트를 지급한다."""

        if source not in ACTIVITY_SOURCES:
            raise InvalidArgumentError(f"{source.value} is not an activity source")
        amount = self._rewards.amount_for(source.value)
        return self.record_entry(student_id, amount, source, description)

    def get_balance(self, student_id: str) -> int:
        student = self._student_repo.find_by_id(student_id)
        if student is None:
            raise NotFoundError(f"student {student_id} not found")
        return student.points

    def list_history(
        self, student_id: str, entry_type: PointType | None = None
    ) -> list[PointHistoryEntry]:
        if self._student_repo.find_by_id(student_id) is None:
            raise NotFoundError(f"student {student_id} not found")
        return self._history_repo.list_by_student(student_id, entry_type)

    def verify_balance(self, student_id: str) -> BalanceCheck:
        """잔액(캐시)과 원장 합계를 대조한다."""

        balance = self.get_balance(student_id)
        total, count = self._history_repo.sum_by_student(student_id)
        check = BalanceCheck(
            student_id=student_id,
            balance=balance,
            ledger_total=total,
            entry_count=count,
        )
        if not check.is_consistent:
            logger.warning(
                "balance drift detected (drift=%d)",
                check.drift,
                extra={"student_id": student_id, "balance": balance},
            )
        return check


def get_transaction_runner(
    db: Database = Depends(get_database),
) -> TransactionRunnerInterface:
    """FastAPI DI용 트랜잭션 러너 팩토리."""

    return MongoTransactionRunner(db, enabled=is_transactions_enabled())


def get_ledger_service(
    db: Database = Depends(get_database),
    tx_runner: TransactionRunnerInterface = Depends(get_transaction_runner),
) -> LedgerService:
    """FastAPI DI용 LedgerService 팩토리."""

    return LedgerService(
        student_repo=StudentRepository(db),
        history_repo=PointHistoryRepository(db),
        tx_runner=tx_runner,
        rewards=get_config().rewards,
    )
