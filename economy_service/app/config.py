from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_FILE_NAME = "config.yaml"
ECONOMY_CONFIG_PATH_ENV = "ECONOMY_CONFIG_PATH"


@dataclass(slots=True)
class CouponConfig:
    validity_months: int = 1
    sweep_interval_seconds: float = 3600.0
    sweep_scheduler_enabled: bool = True


@dataclass(slots=True)
class RewardConfig:
    """활동별 자동 지급 포인트."""

    assignment: int = 5
    praise_given: int = 1
    praise_received: int = 2
    goal: int = 20
    attendance: int = 1

    def amount_for(self, source: str) -> int:
        return int(getattr(self, source))


@dataclass(slots=True)
class DefaultShopItem:
    title: str
    description: str
    category: str
    price: int
    is_active: bool = True


def _builtin_shop_items() -> list[DefaultShopItem]:
    return [
        DefaultShopItem("자유시간 10분", "쉬는 시간을 10분 더 가질 수 있어요", "time", 10),
        DefaultShopItem("좌석 변경권", "원하는 자리로 이동할 수 있어요 (1주일)", "privilege", 30),
        DefaultShopItem("과제 제출 연장권", "과제 제출 기한을 1일 연장할 수 있어요", "privilege", 25),
        DefaultShopItem("숙제 면제권", "숙제 1개를 면제받을 수 있어요", "privilege", 50),
        DefaultShopItem("음악 듣기 허가권", "자습시간에 이어폰으로 음악을 들을 수 있어요", "privilege", 35),
        DefaultShopItem("간식 반입 허가권", "교실에서 간식을 먹을 수 있어요", "privilege", 20),
    ]


@dataclass(slots=True)
class ShopConfig:
    default_items: list[DefaultShopItem] = field(default_factory=_builtin_shop_items)


@dataclass(slots=True)
class AppConfig:
    """economy-service 전체 설정 루트."""

    coupon: CouponConfig = field(default_factory=CouponConfig)
    rewards: RewardConfig = field(default_factory=RewardConfig)
    shop: ShopConfig = field(default_factory=ShopConfig)


def _find_config_path() -> Path | None:
    """ECONOMY_CONFIG_PATH 가 있으면 그 경로를, 없으면 현재 작업 디렉토리부터
    상위로 올라가며 config.yaml 을 찾는다. 찾지 못하면 None.
    """

    explicit = os.getenv(ECONOMY_CONFIG_PATH_ENV, "").strip()
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise RuntimeError(f"{ECONOMY_CONFIG_PATH_ENV} points to missing file: {path}")
        return path

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def _as_int(section: dict[str, Any], key: str, default: int, path: Path, *, minimum: int) -> int:
    raw = section.get(key, default)
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(f"invalid {key} in {path}: {raw!r}") from exc
    if value < minimum:
        raise RuntimeError(f"invalid {key} in {path}: must be >= {minimum}, got {value}")
    return value


def _parse_coupon(data: dict[str, Any], path: Path) -> CouponConfig:
    section = data.get("coupon") or {}
    defaults = CouponConfig()

    raw_interval = section.get("sweep_interval_seconds", defaults.sweep_interval_seconds)
    try:
        interval = float(raw_interval)
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(
            f"invalid coupon.sweep_interval_seconds in {path}: {raw_interval!r}",
        ) from exc
    if interval <= 0:
        raise RuntimeError(f"invalid coupon.sweep_interval_seconds in {path}: {interval}")

    return CouponConfig(
        validity_months=_as_int(
            section, "validity_months", defaults.validity_months, path, minimum=1
        ),
        sweep_interval_seconds=interval,
        sweep_scheduler_enabled=bool(
            section.get("sweep_scheduler_enabled", defaults.sweep_scheduler_enabled)
        ),
    )


def _parse_rewards(data: dict[str, Any], path: Path) -> RewardConfig:
    section = data.get("rewards") or {}
    defaults = RewardConfig()
    return RewardConfig(
        assignment=_as_int(section, "assignment", defaults.assignment, path, minimum=1),
        praise_given=_as_int(section, "praise_given", defaults.praise_given, path, minimum=1),
        praise_received=_as_int(
            section, "praise_received", defaults.praise_received, path, minimum=1
        ),
        goal=_as_int(section, "goal", defaults.goal, path, minimum=1),
        attendance=_as_int(section, "attendance", defaults.attendance, path, minimum=1),
    )


def _parse_shop(data: dict[str, Any], path: Path) -> ShopConfig:
    section = data.get("shop") or {}
    if "default_items" not in section:
        return ShopConfig()

    items: list[DefaultShopItem] = []
    for raw in section.get("default_items") or []:
        if not isinstance(raw, dict):
            continue
        title = str(raw.get("title", "")).strip()
        if not title:
            continue
        items.append(
            DefaultShopItem(
                title=title,
                description=str(raw.get("description") or "").strip(),
                category=str(raw.get("category") or "privilege").strip(),
                price=_as_int(raw, "price", 0, path, minimum=1),
                is_active=bool(raw.get("is_active", True)),
            )
        )
    return ShopConfig(default_items=items)


def load_config() -> AppConfig:
    """economy-service 설정을 로드하여 AppConfig 로 반환한다.

    config.yaml 이 없으면 기본값을 사용한다.
    """

    path = _find_config_path()
    if path is None:
        logger.info("%s not found, using built-in defaults", DEFAULT_CONFIG_FILE_NAME)
        return AppConfig()

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return AppConfig(
        coupon=_parse_coupon(data, path),
        rewards=_parse_rewards(data, path),
        shop=_parse_shop(data, path),
    )


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """프로세스 전역에서 재사용하는 설정 (요청마다 파일을 다시 읽지 않는다)."""

    return load_config()
