"""HTTP exception handlers.

将领域异常转换为标准错误响应：{"error": {"code", "message"}}。
各模块的异常类通过 http_status_code 和 error_code 类属性自定义响应。
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from src.core.domain.exceptions import DomainException


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Handle domain exceptions."""
    status_code = getattr(exc, "http_status_code", status.HTTP_400_BAD_REQUEST)
    error_code = getattr(exc, "error_code", "DOMAIN_ERROR")
    logger.warning(f"{error_code} on {request.method} {request.url.path}: {exc.message}")
    return _error_response(status_code, error_code, exc.message)


async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An internal error occurred",
    )
