"""포인트 내역(원장) 도메인 모델.

한 번 기록된 내역은 수정/삭제하지 않는다. 학생별 amount 합계는 학생의 잔액과 같다.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class PointType(str, Enum):
    EARN = "earn"
    SPEND = "spend"


class PointSource(str, Enum):
    ASSIGNMENT = "assignment"  # 과제 제출
    PRAISE_RECEIVED = "praise_received"  # 칭찬 받기
    PRAISE_GIVEN = "praise_given"  # 칭찬 주기
    GOAL = "goal"  # 목표 달성
    ATTENDANCE = "attendance"  # 출석
    ADMIN = "admin"  # 선생님 지급/차감
    SHOP = "shop"  # 상점 구매


# 학생 활동으로 자동 지급되는 출처. admin/shop 은 별도 경로로만 기록된다.
ACTIVITY_SOURCES = frozenset(
    {
        PointSource.ASSIGNMENT,
        PointSource.PRAISE_RECEIVED,
        PointSource.PRAISE_GIVEN,
        PointSource.GOAL,
        PointSource.ATTENDANCE,
    }
)


class PointHistoryEntry(BaseModel):
    """포인트 내역 한 건."""

    id: str | None = None
    student_id: str
    student_name: str
    type: PointType
    amount: int  # earn 은 양수, spend 는 음수
    source: PointSource
    description: str
    created_at: datetime
    updated_at: datetime


class BalanceCheck(BaseModel):
    """잔액(캐시)과 원장 합계의 대조 결과."""

    student_id: str
    balance: int
    ledger_total: int
    entry_count: int

    @property
    def is_consistent(self) -> bool:
        return self.balance == self.ledger_total

    @property
    def drift(self) -> int:
        return self.balance - self.ledger_total


def point_type_for(amount: int) -> PointType:
    return PointType.EARN if amount > 0 else PointType.SPEND
