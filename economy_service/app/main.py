from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from common.logger import setup_logger
from common.middleware.request_trace import RequestTraceMiddleware

from .api.errors import register_exception_handlers
from .api.health import router as health_router
from .api.v1 import api_router
from .config import get_config
from .scheduler.coupon_expiry_scheduler import (
    start_coupon_expiry_scheduler,
    stop_coupon_expiry_scheduler,
)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - framework hook
    """애플리케이션 생명주기 동안 쿠폰 만료 스케줄러 스레드를 관리한다."""

    coupon_cfg = get_config().coupon
    if coupon_cfg.sweep_scheduler_enabled:
        start_coupon_expiry_scheduler(coupon_cfg.sweep_interval_seconds)
    try:
        yield
    finally:
        stop_coupon_expiry_scheduler()


def create_app() -> FastAPI:
    setup_logger(name="economy-service")
    app = FastAPI(
        title="Classroom Economy Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    # 공통 Request/Span ID 로그 미들웨어
    app.add_middleware(RequestTraceMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


def main() -> None:
    import uvicorn

    port = int(os.getenv("ECONOMY_SERVICE_PORT", "8003"))
    uvicorn.run(
        "economy_service.app.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        access_log=False,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
