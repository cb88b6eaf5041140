from __future__ import annotations

from pydantic import BaseModel, Field

from common.types.datetime import UtcDateTime

from ...models.point_history import BalanceCheck, PointHistoryEntry, PointSource, PointType
from ...models.student import Student


class RegisterStudentRequest(BaseModel):
    """학생 등록 요청."""

    name: str = Field(..., min_length=1)
    grade: int = Field(..., ge=1)
    class_number: int = Field(..., ge=1)
    number: int = Field(..., ge=1, description="출석 번호")


class StudentResponse(BaseModel):
    """학생 응답 DTO."""

    id: str | None
    name: str
    grade: int
    class_number: int
    number: int
    points: int
    created_at: UtcDateTime
    updated_at: UtcDateTime

    @classmethod
    def from_domain(cls, student: Student) -> "StudentResponse":
        return cls.model_validate(student.model_dump())


class BalanceResponse(BaseModel):
    student_id: str
    points: int


class BalanceCheckResponse(BaseModel):
    """잔액과 원장 합계 대조 결과."""

    student_id: str
    balance: int
    ledger_total: int
    entry_count: int
    is_consistent: bool

    @classmethod
    def from_domain(cls, check: BalanceCheck) -> "BalanceCheckResponse":
        return cls(
            student_id=check.student_id,
            balance=check.balance,
            ledger_total=check.ledger_total,
            entry_count=check.entry_count,
            is_consistent=check.is_consistent,
        )


class PointHistoryResponse(BaseModel):
    """포인트 내역 응답 DTO."""

    id: str | None
    student_id: str
    student_name: str
    type: PointType
    amount: int
    source: PointSource
    description: str
    created_at: UtcDateTime

    @classmethod
    def from_domain(cls, entry: PointHistoryEntry) -> "PointHistoryResponse":
        return cls.model_validate(entry.model_dump())


class AdjustPointsRequest(BaseModel):
    """선생님 포인트 지급/차감 요청. amount 는 항상 양수."""

    amount: int
    reason: str
    is_deduction: bool = False


class AwardActivityRequest(BaseModel):
    """활동 포인트 지급 요청. 지급량은 설정(rewards)에서 정해진다."""

    source: PointSource
    description: str
