"""기본 상점 아이템을 등록한다.

    python -m economy_service.app.seed

같은 제목의 아이템이 이미 있으면 건너뛰므로 여러 번 실행해도 된다.
"""

from __future__ import annotations

import logging

from common.logger import setup_logger
from common.mongo.client import get_database

from .config import DefaultShopItem, get_config
from .models.shop_item import ShopCategory, ShopItem
from .repositories.shop_item_repository import ShopItemRepository
from .services.catalog_service import CatalogService


logger = logging.getLogger(__name__)


def seed_default_items(
    service: CatalogService, defaults: list[DefaultShopItem]
) -> list[ShopItem]:
    existing = {item.title for item in service.list_items()}
    created: list[ShopItem] = []
    for d in defaults:
        if d.title in existing:
            logger.info("shop item already exists, skipping: %s", d.title)
            continue
        created.append(
            service.create_item(
                title=d.title,
                category=ShopCategory(d.category),
                price=d.price,
                description=d.description,
                is_active=d.is_active,
            )
        )
        existing.add(d.title)
    return created


def main() -> None:
    setup_logger(name="economy-seed")
    service = CatalogService(ShopItemRepository(get_database()))
    created = seed_default_items(service, get_config().shop.default_items)
    logger.info("seeded %d shop items", len(created))


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
