from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.shop_item import ShopCategory, ShopItem


class ShopItemDocument(BaseDocument):
    """MongoDB shop_items 컬렉션 도큐먼트 모델."""

    title: str
    description: str = ""
    category: str
    price: int
    is_active: bool = True

    @classmethod
    def from_domain(cls, item: ShopItem) -> "ShopItemDocument":
        data = build_document_data_from_domain(item)
        return cls.model_validate(data)

    def to_domain(self) -> ShopItem:
        return ShopItem(
            id=from_object_id(self.id),
            title=self.title,
            description=self.description,
            category=ShopCategory(self.category),
            price=self.price,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
