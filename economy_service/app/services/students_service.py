from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database
from common.types.datetime import utc_now

from ..exceptions import InvalidArgumentError, NotFoundError
from ..models.point_history import PointHistoryEntry
from ..models.student import Student, StudentBalance
from ..repositories.interfaces import (
    PointHistoryRepositoryInterface,
    StudentRepositoryInterface,
)
from ..repositories.point_history_repository import PointHistoryRepository
from ..repositories.student_repository import StudentRepository


logger = logging.getLogger(__name__)


DEFAULT_OVERVIEW_LIMIT = 50


@dataclass(slots=True)
class PointsOverview:
    """포인트 현황: 학생별 잔액, 전체 유통 포인트, 최근 내역."""

    students: list[StudentBalance]
    total_points: int
    recent_history: list[PointHistoryEntry]


class StudentsService:
    """학생 등록/조회와 포인트 현황.

    잔액은 여기서 변경하지 않는다 (LedgerService 전용).
    """

    def __init__(
        self,
        student_repo: StudentRepositoryInterface,
        history_repo: PointHistoryRepositoryInterface,
        clock: Callable[[], Any] = utc_now,
    ) -> None:
        self._student_repo = student_repo
        self._history_repo = history_repo
        self._clock = clock

    def register(self, name: str, grade: int, class_number: int, number: int) -> Student:
        if not name or not name.strip():
            raise InvalidArgumentError("name must not be empty")
        if grade <= 0 or class_number <= 0 or number <= 0:
            raise InvalidArgumentError("grade, class_number and number must be positive")

        now = self._clock()
        student = Student(
            name=name.strip(),
            grade=grade,
            class_number=class_number,
            number=number,
            points=0,
            created_at=now,
            updated_at=now,
        )
        created = self._student_repo.insert(student)
        logger.info("student registered", extra={"student_id": created.id})
        return created

    def list_students(self) -> list[Student]:
        return self._student_repo.list_all()

    def get_student(self, student_id: str) -> Student:
        student = self._student_repo.find_by_id(student_id)
        if student is None:
            raise NotFoundError(f"student {student_id} not found")
        return student

    def points_overview(self, limit: int = DEFAULT_OVERVIEW_LIMIT) -> PointsOverview:
        students = self._student_repo.list_all()
        balances = [
            StudentBalance(
                student_id=s.id or "",
                name=s.name,
                grade=s.grade,
                class_number=s.class_number,
                number=s.number,
                points=s.points,
            )
            for s in students
        ]
        return PointsOverview(
            students=balances,
            total_points=sum(b.points for b in balances),
            recent_history=self._history_repo.list_recent(limit),
        )


def get_students_service(
    db: Database = Depends(get_database),
) -> StudentsService:
    """FastAPI DI용 StudentsService 팩토리."""

    return StudentsService(
        student_repo=StudentRepository(db),
        history_repo=PointHistoryRepository(db),
    )
