from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from common.mongo.types import parse_object_id

from .documents.shop_item_document import ShopItemDocument
from .interfaces import ShopItemRepositoryInterface
from ..models.shop_item import ShopCategory, ShopItem


# update_fields 로 변경 가능한 필드. 그 외 키는 무시한다.
UPDATABLE_FIELDS = frozenset({"title", "description", "category", "price", "is_active"})


class ShopItemRepository(ShopItemRepositoryInterface):
    """shop_items 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["shop_items"]

    def insert(self, item: ShopItem) -> ShopItem:
        doc = ShopItemDocument.from_domain(item)
        payload = doc.to_mongo_record()
        result = self._col.insert_one(payload)
        return item.model_copy(update={"id": str(result.inserted_id)})

    def find_by_id(self, item_id: str, session: Any = None) -> ShopItem | None:
        oid = parse_object_id(item_id)
        if oid is None:
            return None
        raw = self._col.find_one({"_id": oid}, session=session)
        if raw is None:
            return None
        return ShopItemDocument.model_validate(raw).to_domain()

    def list(
        self, active_only: bool = False, category: ShopCategory | None = None
    ) -> list[ShopItem]:
        query: dict[str, Any] = {}
        if active_only:
            query["is_active"] = True
        if category is not None:
            query["category"] = category.value

        cursor = self._col.find(query, sort=[("created_at", DESCENDING)])
        return [ShopItemDocument.model_validate(raw).to_domain() for raw in cursor]

    def update_fields(self, item_id: str, updates: dict[str, Any]) -> ShopItem | None:
        oid = parse_object_id(item_id)
        if oid is None:
            return None

        fields = {
            key: (value.value if isinstance(value, ShopCategory) else value)
            for key, value in updates.items()
            if key in UPDATABLE_FIELDS
        }
        fields["updated_at"] = datetime.now(timezone.utc)

        raw = self._col.find_one_and_update(
            {"_id": oid},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if raw is None:
            return None
        return ShopItemDocument.model_validate(raw).to_domain()
