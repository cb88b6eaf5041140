from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Student(BaseModel):
    """학생 도메인 모델.

    - points 는 포인트 내역(point_history)의 합계를 캐시한 잔액이다.
    - 잔액은 LedgerService 를 통해서만 변경된다.
    """

    id: str | None = None
    name: str
    grade: int
    class_number: int
    number: int  # 출석 번호
    points: int = 0
    created_at: datetime
    updated_at: datetime


class StudentBalance(BaseModel):
    """포인트 현황 화면용 학생별 잔액."""

    student_id: str
    name: str
    grade: int
    class_number: int
    number: int
    points: int
