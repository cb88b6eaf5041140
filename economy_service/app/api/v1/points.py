from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..schemas.points import (
    BulkEntriesResponse,
    GrantAllRequest,
    PointsOverviewResponse,
    ResetPointsRequest,
    StudentBalanceResponse,
)
from ..schemas.students import PointHistoryResponse
from ...services.adjustment_service import AdjustmentService, get_adjustment_service
from ...services.students_service import StudentsService, get_students_service


router = APIRouter()


@router.get(
    "/overview",
    response_model=PointsOverviewResponse,
    summary="포인트 현황",
    description="전체 학생 잔액, 유통 중인 포인트 합계, 최근 포인트 내역을 반환한다.",
)
def points_overview(
    limit: int = Query(50, ge=1, le=200, description="최근 내역 개수"),
    service: StudentsService = Depends(get_students_service),
) -> PointsOverviewResponse:
    overview = service.points_overview(limit)
    return PointsOverviewResponse(
        students=[
            StudentBalanceResponse.model_validate(b.model_dump())
            for b in overview.students
        ],
        total_points=overview.total_points,
        recent_history=[
            PointHistoryResponse.from_domain(e) for e in overview.recent_history
        ],
    )


@router.post("/grant-all", response_model=BulkEntriesResponse, summary="전체 학생 지급")
def grant_all(
    req: GrantAllRequest,
    service: AdjustmentService = Depends(get_adjustment_service),
) -> BulkEntriesResponse:
    entries = service.grant_all(req.amount, req.reason)
    return BulkEntriesResponse(
        affected=len(entries),
        entries=[PointHistoryResponse.from_domain(e) for e in entries],
    )


@router.post("/reset", response_model=BulkEntriesResponse, summary="포인트 초기화")
def reset_points(
    req: ResetPointsRequest,
    service: AdjustmentService = Depends(get_adjustment_service),
) -> BulkEntriesResponse:
    entries = service.reset_all(req.reason)
    return BulkEntriesResponse(
        affected=len(entries),
        entries=[PointHistoryResponse.from_domain(e) for e in entries],
    )
