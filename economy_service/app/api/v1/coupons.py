from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Query

from ..schemas.coupons import (
    CouponResponse,
    ExpireCouponsResponse,
    ListCouponsResponse,
    UseCouponRequest,
)
from ...models.coupon import CouponStatus
from ...services.coupon_service import CouponService, get_coupon_service


router = APIRouter()


@router.get(
    "",
    response_model=ListCouponsResponse,
    summary="쿠폰 목록",
    description="기간이 지난 쿠폰을 만료 처리한 뒤, 구매일 최신순 목록과 상태별 건수를 반환한다.",
)
def list_coupons(
    coupon_status: CouponStatus | None = Query(None, alias="status"),
    service: CouponService = Depends(get_coupon_service),
) -> ListCouponsResponse:
    coupons = service.list_coupons()
    counts = service.count_by_status(coupons)
    if coupon_status is not None:
        coupons = [c for c in coupons if c.status == coupon_status]
    return ListCouponsResponse(
        items=[CouponResponse.from_domain(c) for c in coupons],
        counts=counts,
    )


@router.post("/expire", response_model=ExpireCouponsResponse, summary="만료 쿠폰 정리")
def expire_coupons(
    service: CouponService = Depends(get_coupon_service),
) -> ExpireCouponsResponse:
    return ExpireCouponsResponse(expired=service.expire_overdue())


@router.get("/{coupon_id}", response_model=CouponResponse, summary="쿠폰 조회")
def get_coupon(
    coupon_id: str,
    service: CouponService = Depends(get_coupon_service),
) -> CouponResponse:
    return CouponResponse.from_domain(service.get_coupon(coupon_id))


@router.post("/{coupon_id}/use", response_model=CouponResponse, summary="쿠폰 사용 요청")
def request_use(
    coupon_id: str,
    req: UseCouponRequest | None = Body(None),
    service: CouponService = Depends(get_coupon_service),
) -> CouponResponse:
    student_id = req.student_id if req is not None else None
    return CouponResponse.from_domain(service.request_use(coupon_id, student_id))


@router.post(
    "/{coupon_id}/approve",
    response_model=CouponResponse,
    summary="쿠폰 사용 승인",
)
def approve(
    coupon_id: str,
    service: CouponService = Depends(get_coupon_service),
) -> CouponResponse:
    return CouponResponse.from_domain(service.approve(coupon_id))
