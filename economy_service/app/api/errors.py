"""비즈니스 예외를 HTTP 응답으로 변환한다.

라우터는 서비스 예외를 잡지 않고, 여기 등록된 핸들러가 일괄 변환한다.
응답 형식: {"detail": {"code": ..., "message": ...}}
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..exceptions import (
    BalanceConflictError,
    EconomyServiceError,
    InsufficientBalanceError,
    InvalidArgumentError,
    InvalidTransitionError,
    ItemInactiveError,
    NotFoundError,
)


logger = logging.getLogger(__name__)


STATUS_BY_ERROR: dict[type[EconomyServiceError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InsufficientBalanceError: status.HTTP_402_PAYMENT_REQUIRED,
    ItemInactiveError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    BalanceConflictError: status.HTTP_409_CONFLICT,
    InvalidArgumentError: status.HTTP_400_BAD_REQUEST,
}


def status_code_for(exc: EconomyServiceError) -> int:
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def economy_error_handler(request: Request, exc: EconomyServiceError) -> JSONResponse:
    code = status_code_for(exc)
    logger.info(
        "request rejected: %s",
        exc.code,
        extra={"method": request.method, "path": request.url.path, "status": code},
    )
    return JSONResponse(
        status_code=code,
        content={"detail": {"code": exc.code, "message": exc.message}},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EconomyServiceError, economy_error_handler)  # type: ignore[arg-type]
