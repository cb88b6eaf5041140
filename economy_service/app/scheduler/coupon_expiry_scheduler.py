from __future__ import annotations

import logging
import threading

from common.mongo.client import get_database

from ..config import get_config
from ..repositories.coupon_repository import CouponRepository
from ..services.coupon_service import CouponService


logger = logging.getLogger(__name__)


_EXPIRY_SCHEDULER_THREAD: threading.Thread | None = None
_EXPIRY_SCHEDULER_STOP_EVENT: threading.Event | None = None


def _run_scheduler_loop(stop_event: threading.Event, interval: float) -> None:
    logger.info(
        "coupon expiry scheduler thread started (interval=%.0f seconds)",
        interval,
    )

    service = CouponService(CouponRepository(get_database()))

    try:
        # 최초 실행
        try:
            expired = service.expire_overdue()
            logger.info("coupon expiry sweep completed (initial run, expired=%d)", expired)
        except Exception:  # noqa: BLE001
            logger.exception("coupon expiry sweep failed (initial run)")

        # 주기적 실행
        while not stop_event.wait(interval):
            try:
                expired = service.expire_overdue()
                logger.info(
                    "coupon expiry sweep completed (scheduled run, expired=%d)", expired
                )
            except Exception:  # noqa: BLE001
                logger.exception("coupon expiry sweep failed (scheduled run)")
    finally:
        logger.info("coupon expiry scheduler thread stopped")


def start_coupon_expiry_scheduler(interval: float | None = None) -> None:
    """쿠폰 만료 스케줄러 스레드를 시작한다.

    FastAPI lifespan 에서 호출된다. 만료 처리는 조회 시점에도 수행되므로
    이 스레드는 아무도 조회하지 않는 쿠폰의 상태를 저장소에 반영하는 역할이다.
    """

    global _EXPIRY_SCHEDULER_THREAD, _EXPIRY_SCHEDULER_STOP_EVENT

    if _EXPIRY_SCHEDULER_THREAD and _EXPIRY_SCHEDULER_THREAD.is_alive():
        return

    if interval is None:
        interval = get_config().coupon.sweep_interval_seconds

    stop_event = threading.Event()
    thread = threading.Thread(
        target=_run_scheduler_loop,
        args=(stop_event, interval),
        name="coupon-expiry-scheduler",
        daemon=True,
    )

    _EXPIRY_SCHEDULER_STOP_EVENT = stop_event
    _EXPIRY_SCHEDULER_THREAD = thread

    thread.start()
    logger.info("coupon expiry scheduler thread launched")


def stop_coupon_expiry_scheduler() -> None:
    """쿠폰 만료 스케줄러 스레드를 정지한다."""

    global _EXPIRY_SCHEDULER_THREAD, _EXPIRY_SCHEDULER_STOP_EVENT

    if _EXPIRY_SCHEDULER_THREAD is None or _EXPIRY_SCHEDULER_STOP_EVENT is None:
        return

    _EXPIRY_SCHEDULER_STOP_EVENT.set()
    _EXPIRY_SCHEDULER_THREAD.join(timeout=10.0)

    _EXPIRY_SCHEDULER_THREAD = None
    _EXPIRY_SCHEDULER_STOP_EVENT = None

    logger.info("coupon expiry scheduler thread stopped by shutdown")
