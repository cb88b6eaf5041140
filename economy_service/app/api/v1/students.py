from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ..schemas.coupons import CouponResponse
from ..schemas.students import (
    AdjustPointsRequest,
    AwardActivityRequest,
    BalanceCheckResponse,
    BalanceResponse,
    PointHistoryResponse,
    RegisterStudentRequest,
    StudentResponse,
)
from ...models.coupon import CouponStatus
from ...models.point_history import PointType
from ...services.adjustment_service import AdjustmentService, get_adjustment_service
from ...services.coupon_service import CouponService, get_coupon_service
from ...services.ledger_service import LedgerService, get_ledger_service
from ...services.students_service import StudentsService, get_students_service


router = APIRouter()


@router.post(
    "",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="학생 등록",
)
def register_student(
    req: RegisterStudentRequest,
    service: StudentsService = Depends(get_students_service),
) -> StudentResponse:
    student = service.register(req.name, req.grade, req.class_number, req.number)
    return StudentResponse.from_domain(student)


@router.get(
    "",
    response_model=list[StudentResponse],
    summary="학생 목록",
    description="학년, 반, 번호 순으로 정렬된 학생 목록을 반환한다.",
)
def list_students(
    service: StudentsService = Depends(get_students_service),
) -> list[StudentResponse]:
    return [StudentResponse.from_domain(s) for s in service.list_students()]


@router.get("/{student_id}", response_model=StudentResponse, summary="학생 조회")
def get_student(
    student_id: str,
    service: StudentsService = Depends(get_students_service),
) -> StudentResponse:
    return StudentResponse.from_domain(service.get_student(student_id))


@router.get("/{student_id}/balance", response_model=BalanceResponse, summary="잔액 조회")
def get_balance(
    student_id: str,
    ledger: LedgerService = Depends(get_ledger_service),
) -> BalanceResponse:
    return BalanceResponse(student_id=student_id, points=ledger.get_balance(student_id))


@router.get(
    "/{student_id}/balance/verify",
    response_model=BalanceCheckResponse,
    summary="잔액-원장 대조",
)
def verify_balance(
    student_id: str,
    ledger: LedgerService = Depends(get_ledger_service),
) -> BalanceCheckResponse:
    return BalanceCheckResponse.from_domain(ledger.verify_balance(student_id))


@router.get(
    "/{student_id}/history",
    response_model=list[PointHistoryResponse],
    summary="포인트 내역",
    description="최신순 포인트 내역. type 으로 earn/spend 만 필터링할 수 있다.",
)
def list_history(
    student_id: str,
    entry_type: PointType | None = Query(None, alias="type"),
    ledger: LedgerService = Depends(get_ledger_service),
) -> list[PointHistoryResponse]:
    entries = ledger.list_history(student_id, entry_type)
    return [PointHistoryResponse.from_domain(e) for e in entries]


@router.post(
    "/{student_id}/adjust",
    response_model=PointHistoryResponse,
    summary="포인트 지급/차감",
)
def adjust_points(
    student_id: str,
    req: AdjustPointsRequest,
    service: AdjustmentService = Depends(get_adjustment_service),
) -> PointHistoryResponse:
    entry = service.adjust(student_id, req.amount, req.reason, req.is_deduction)
    return PointHistoryResponse.from_domain(entry)


@router.post(
    "/{student_id}/awards",
    response_model=PointHistoryResponse,
    summary="활동 포인트 지급",
)
def award_activity(
    student_id: str,
    req: AwardActivityRequest,
    ledger: LedgerService = Depends(get_ledger_service),
) -> PointHistoryResponse:
    entry = ledger.award_activity(student_id, req.source, req.description)
    return PointHistoryResponse.from_domain(entry)


@router.get(
    "/{student_id}/coupons",
    response_model=list[CouponResponse],
    summary="학생 쿠폰함",
)
def list_student_coupons(
    student_id: str,
    coupon_status: CouponStatus | None = Query(None, alias="status"),
    students: StudentsService = Depends(get_students_service),
    coupons: CouponService = Depends(get_coupon_service),
) -> list[CouponResponse]:
    students.get_student(student_id)
    items = coupons.list_coupons(status=coupon_status, student_id=student_id)
    return [CouponResponse.from_domain(c) for c in items]
