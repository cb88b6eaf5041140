"""선생님의 포인트 지급/차감."""

from __future__ import annotations

import logging

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database

from ..exceptions import BalanceConflictError, InvalidArgumentError, NotFoundError
from ..models.point_history import PointHistoryEntry, PointSource
from ..repositories.interfaces import StudentRepositoryInterface
from ..repositories.student_repository import StudentRepository
from .ledger_service import LedgerService, get_ledger_service


logger = logging.getLogger(__name__)


class AdjustmentService:
    def __init__(
        self,
        student_repo: StudentRepositoryInterface,
        ledger: LedgerService,
    ) -> None:
        self._student_repo = student_repo
        self._ledger = ledger

    def adjust(
        self,
        student_id: str,
        amount: int,
        reason: str,
        is_deduction: bool = False,
    ) -> PointHistoryEntry:
        """amount 는 항상 양수로 받고, is_deduction 이면 차감한다."""

        _validate(amount, reason)
        signed = -amount if is_deduction else amount
        entry = self._ledger.record_entry(
            student_id, signed, PointSource.ADMIN, reason.strip()
        )
        logger.info(
            "points %s by admin",
            "deducted" if is_deduction else "granted",
            extra={"student_id": student_id, "amount": signed},
        )
        return entry

    def grant_all(self, amount: int, reason: str) -> list[PointHistoryEntry]:
        """등록된 모든 학생에게 같은 포인트를 지급한다.

        학생마다 독립적으로 기록된다. 도중에 사라진 학생은 건너뛰고 로그를 남기며,
        반환값은 실제로 지급된 내역만 담는다.
        """

        _validate(amount, reason)
        entries: list[PointHistoryEntry] = []
        for student in self._student_repo.list_all():
            if student.id is None:
                continue
            try:
                entries.append(
                    self._ledger.record_entry(
                        student.id, amount, PointSource.ADMIN, reason.strip()
                    )
                )
            except NotFoundError:
                logger.warning(
                    "student disappeared during bulk grant, skipped",
                    extra={"student_id": student.id, "amount": amount},
                )
        logger.info("granted %d points to %d students", amount, len(entries))
        return entries

    def reset_all(self, reason: str) -> list[PointHistoryEntry]:
        """모든 학생의 잔액을 0 으로 만든다.

        잔액을 직접 덮어쓰지 않고 잔액만큼의 차감 내역을 남겨 원장 합계와 잔액을 일치시킨다.
        학생별 잔액은 목록 조회 시점이 아니라 차감 직전에 다시 읽는다 (LedgerService.zero_balance).
        한 학생의 실패는 나머지 학생의 초기화를 막지 않는다.
        """

        if not reason.strip():
            raise InvalidArgumentError("reason must not be empty")

        entries: list[PointHistoryEntry] = []
        for student in self._student_repo.list_all():
            if student.id is None:
                continue
            try:
                entry = self._ledger.zero_balance(student.id, reason.strip())
            except (NotFoundError, BalanceConflictError) as exc:
                logger.error(
                    "points reset skipped: %s",
                    exc.code,
                    extra={"student_id": student.id},
                )
                continue
            if entry is not None:
                entries.append(entry)
        logger.warning("points reset for %d students", len(entries))
        return entries


def _validate(amount: int, reason: str) -> None:
    if amount <= 0:
        raise InvalidArgumentError("amount must be a positive integer")
    if not reason.strip():
        raise InvalidArgumentError("reason must not be empty")


def get_adjustment_service(
    db: Database = Depends(get_database),
    ledger: LedgerService = Depends(get_ledger_service),
) -> AdjustmentService:
    """FastAPI DI용 AdjustmentService 팩토리."""

    return AdjustmentService(student_repo=StudentRepository(db), ledger=ledger)
