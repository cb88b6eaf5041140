from __future__ import annotations

from pydantic import BaseModel

from .students import PointHistoryResponse


class StudentBalanceResponse(BaseModel):
    student_id: str
    name: str
    grade: int
    class_number: int
    number: int
    points: int


class PointsOverviewResponse(BaseModel):
    """포인트 현황: 학생별 잔액 + 전체 유통 포인트 + 최근 내역."""

    students: list[StudentBalanceResponse]
    total_points: int
    recent_history: list[PointHistoryResponse]


class GrantAllRequest(BaseModel):
    amount: int
    reason: str


class ResetPointsRequest(BaseModel):
    reason: str = "포인트 초기화"


class BulkEntriesResponse(BaseModel):
    """일괄 지급/초기화 결과."""

    affected: int
    entries: list[PointHistoryResponse]
