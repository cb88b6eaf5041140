from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database
from common.types.datetime import utc_now

from ..exceptions import InvalidArgumentError, NotFoundError
from ..models.shop_item import ShopCategory, ShopItem
from ..repositories.interfaces import ShopItemRepositoryInterface
from ..repositories.shop_item_repository import ShopItemRepository


logger = logging.getLogger(__name__)


class CatalogService:
    """상점 아이템 관리.

    - 아이템은 삭제하지 않고 비활성화한다.
    - 아이템을 수정해도 이미 발급된 쿠폰(구매 시점 스냅샷)에는 영향이 없다.
    """

    def __init__(
        self,
        repo: ShopItemRepositoryInterface,
        clock: Callable[[], Any] = utc_now,
    ) -> None:
        self._repo = repo
        self._clock = clock

    def list_items(
        self, active_only: bool = False, category: ShopCategory | None = None
    ) -> list[ShopItem]:
        return self._repo.list(active_only=active_only, category=category)

    def get_item(self, item_id: str) -> ShopItem:
        item = self._repo.find_by_id(item_id)
        if item is None:
            raise NotFoundError(f"shop item {item_id} not found")
        return item

    def create_item(
        self,
        title: str,
        category: ShopCategory,
        price: int,
        description: str = "",
        is_active: bool = True,
    ) -> ShopItem:
        _validate_title(title)
        _validate_price(price)

        now = self._clock()
        item = ShopItem(
            title=title.strip(),
            description=description.strip(),
            category=category,
            price=price,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        created = self._repo.insert(item)
        logger.info("shop item created", extra={"item_id": created.id, "amount": price})
        return created

    def update_item(self, item_id: str, updates: dict[str, Any]) -> ShopItem:
        """주어진 필드만 수정한다 (None 값은 무시)."""

        fields = {k: v for k, v in updates.items() if v is not None}
        if "title" in fields:
            _validate_title(fields["title"])
            fields["title"] = fields["title"].strip()
        if "description" in fields:
            fields["description"] = fields["description"].strip()
        if "price" in fields:
            _validate_price(fields["price"])
        if "category" in fields:
            fields["category"] = ShopCategory(fields["category"])

        if not fields:
            return self.get_item(item_id)

        updated = self._repo.update_fields(item_id, fields)
        if updated is None:
            raise NotFoundError(f"shop item {item_id} not found")
        logger.info("shop item updated", extra={"item_id": item_id})
        return updated

    def deactivate_item(self, item_id: str) -> ShopItem:
        updated = self._repo.update_fields(item_id, {"is_active": False})
        if updated is None:
            raise NotFoundError(f"shop item {item_id} not found")
        logger.info("shop item deactivated", extra={"item_id": item_id})
        return updated


def _validate_title(title: str) -> None:
    if not title or not title.strip():
        raise InvalidArgumentError("title must not be empty")


def _validate_price(price: int) -> None:
    if price <= 0:
        raise InvalidArgumentError("price must be a positive integer")


def get_shop_item_repository(
    db: Database = Depends(get_database),
) -> ShopItemRepositoryInterface:
    """FastAPI DI용 ShopItemRepository 팩토리."""

    return ShopItemRepository(db)


def get_catalog_service(
    repo: ShopItemRepositoryInterface = Depends(get_shop_item_repository),
) -> CatalogService:
    """FastAPI DI용 CatalogService 팩토리."""

    return CatalogService(repo)
