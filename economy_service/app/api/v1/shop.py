from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ..schemas.coupons import CouponResponse
from ..schemas.shop import (
    CreateShopItemRequest,
    PurchaseRequest,
    ShopItemResponse,
    UpdateShopItemRequest,
)
from ...models.shop_item import ShopCategory
from ...services.catalog_service import CatalogService, get_catalog_service
from ...services.purchase_service import PurchaseService, get_purchase_service


router = APIRouter()


@router.get(
    "/items",
    response_model=list[ShopItemResponse],
    summary="상점 아이템 목록",
)
def list_items(
    active_only: bool = Query(False, description="판매 중인 아이템만"),
    category: ShopCategory | None = Query(None),
    service: CatalogService = Depends(get_catalog_service),
) -> list[ShopItemResponse]:
    items = service.list_items(active_only=active_only, category=category)
    return [ShopItemResponse.from_domain(i) for i in items]


@router.post(
    "/items",
    response_model=ShopItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="상점 아이템 추가",
)
def create_item(
    req: CreateShopItemRequest,
    service: CatalogService = Depends(get_catalog_service),
) -> ShopItemResponse:
    item = service.create_item(
        title=req.title,
        category=req.category,
        price=req.price,
        description=req.description,
        is_active=req.is_active,
    )
    return ShopItemResponse.from_domain(item)


@router.patch("/items/{item_id}", response_model=ShopItemResponse, summary="상점 아이템 수정")
def update_item(
    item_id: str,
    req: UpdateShopItemRequest,
    service: CatalogService = Depends(get_catalog_service),
) -> ShopItemResponse:
    item = service.update_item(item_id, req.model_dump(exclude_unset=True))
    return ShopItemResponse.from_domain(item)


@router.post(
    "/items/{item_id}/deactivate",
    response_model=ShopItemResponse,
    summary="상점 아이템 비활성화",
)
def deactivate_item(
    item_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> ShopItemResponse:
    return ShopItemResponse.from_domain(service.deactivate_item(item_id))


@router.post(
    "/purchases",
    response_model=CouponResponse,
    status_code=status.HTTP_201_CREATED,
    summary="아이템 구매",
    description="잔액을 차감하고 쿠폰을 발급한다. 잔액 부족 시 402.",
)
def purchase(
    req: PurchaseRequest,
    service: PurchaseService = Depends(get_purchase_service),
) -> CouponResponse:
    coupon = service.purchase(req.student_id, req.item_id)
    return CouponResponse.from_domain(coupon)
