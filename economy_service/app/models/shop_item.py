from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class ShopCategory(str, Enum):
    TIME = "time"  # 자유시간
    PRIVILEGE = "privilege"  # 특권


class ShopItem(BaseModel):
    """상점 아이템 도메인 모델.

    삭제하지 않고 is_active=False 로 비활성화한다.
    """

    id: str | None = None
    title: str
    description: str = ""
    category: ShopCategory
    price: int
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
