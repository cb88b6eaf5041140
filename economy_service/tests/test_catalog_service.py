from __future__ import annotations

import pytest

from economy_service.app.config import DefaultShopItem
from economy_service.app.exceptions import InvalidArgumentError, NotFoundError
from economy_service.app.models.shop_item import ShopCategory
from economy_service.app.seed import seed_default_items


def test_create_and_list_items(catalog_service) -> None:
    free_time = catalog_service.create_item("자유시간 10분", ShopCategory.TIME, 10)
    seat = catalog_service.create_item("좌석 변경권", ShopCategory.PRIVILEGE, 30)
    hidden = catalog_service.create_item(
        "숙제 면제권", ShopCategory.PRIVILEGE, 50, is_active=False
    )

    all_ids = {i.id for i in catalog_service.list_items()}
    active_ids = {i.id for i in catalog_service.list_items(active_only=True)}
    privilege_ids = {i.id for i in catalog_service.list_items(category=ShopCategory.PRIVILEGE)}

    assert all_ids == {free_time.id, seat.id, hidden.id}
    assert active_ids == {free_time.id, seat.id}
    assert privilege_ids == {seat.id, hidden.id}


@pytest.mark.parametrize(("title", "price"), [("", 10), ("   ", 10), ("좌석 변경권", 0), ("좌석 변경권", -5)])
def test_create_item_validates_input(catalog_service, title: str, price: int) -> None:
    with pytest.raises(InvalidArgumentError):
        catalog_service.create_item(title, ShopCategory.PRIVILEGE, price)


def test_update_item_changes_only_given_fields(catalog_service) -> None:
    item = catalog_service.create_item(
        "좌석 변경권", ShopCategory.PRIVILEGE, 30, description="1주일"
    )

    updated = catalog_service.update_item(item.id, {"price": 35, "title": None})

    assert updated.price == 35
    assert updated.title == "좌석 변경권"
    assert updated.description == "1주일"


def test_update_item_rejects_invalid_price(catalog_service) -> None:
    item = catalog_service.create_item("좌석 변경권", ShopCategory.PRIVILEGE, 30)

    with pytest.raises(InvalidArgumentError):
        catalog_service.update_item(item.id, {"price": 0})


def test_deactivate_item(catalog_service) -> None:
    item = catalog_service.create_item("좌석 변경권", ShopCategory.PRIVILEGE, 30)

    deactivated = catalog_service.deactivate_item(item.id)

    assert deactivated.is_active is False
    assert catalog_service.list_items(active_only=True) == []


def test_missing_item_is_not_found(catalog_service) -> None:
    with pytest.raises(NotFoundError):
        catalog_service.get_item("507f1f77bcf86cd799439011")
    with pytest.raises(NotFoundError):
        catalog_service.update_item("507f1f77bcf86cd799439011", {"price": 10})
    with pytest.raises(NotFoundError):
        catalog_service.deactivate_item("507f1f77bcf86cd799439011")


def test_seed_skips_existing_titles(catalog_service) -> None:
    catalog_service.create_item("좌석 변경권", ShopCategory.PRIVILEGE, 30)
    defaults = [
        DefaultShopItem("자유시간 10분", "쉬는 시간 +10분", "time", 10),
        DefaultShopItem("좌석 변경권", "원하는 자리로", "privilege", 30),
    ]

    created = seed_default_items(catalog_service, defaults)
    again = seed_default_items(catalog_service, defaults)

    assert [i.title for i in created] == ["자유시간 10분"]
    assert again == []
    assert len(catalog_service.list_items()) == 2
