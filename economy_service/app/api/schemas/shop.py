from __future__ import annotations

from pydantic import BaseModel, Field

from common.types.datetime import UtcDateTime

from ...models.shop_item import ShopCategory, ShopItem


class ShopItemResponse(BaseModel):
    """상점 아이템 응답 DTO."""

    id: str | None
    title: str
    description: str
    category: ShopCategory
    price: int
    is_active: bool
    created_at: UtcDateTime
    updated_at: UtcDateTime

    @classmethod
    def from_domain(cls, item: ShopItem) -> "ShopItemResponse":
        return cls.model_validate(item.model_dump())


class CreateShopItemRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    category: ShopCategory
    price: int
    is_active: bool = True


class UpdateShopItemRequest(BaseModel):
    """부분 수정 요청. 지정하지 않은 필드는 유지된다."""

    title: str | None = None
    description: str | None = None
    category: ShopCategory | None = None
    price: int | None = None
    is_active: bool | None = None


class PurchaseRequest(BaseModel):
    student_id: str
    item_id: str
