"""
业务异常 -> HTTP 状态码映射
"""
from fastapi import HTTPException
from loguru import logger

from soulscribe.exceptions import (
    ConfigurationError,
    DocumentUnreadableError,
    InputValidationError,
    MessageNotFoundError,
    NoProfileError,
    SoulScribeError,
    StaleResponseError,
    SurfaceBusyError,
    UpstreamError,
)


STATUS_CODES = (
    (InputValidationError, 400),
    (DocumentUnreadableError, 422),
    (NoProfileError, 404),
    (MessageNotFoundError, 404),
    (SurfaceBusyError, 409),
    (StaleResponseError, 409),
    (UpstreamError, 502),
    (ConfigurationError, 500),
)


def status_code_for(error: SoulScribeError) -> int:
    for error_type, status_code in STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


def error_detail(error: SoulScribeError) -> dict:
    """面向用户的错误信息（不包含上游原始报错）"""
    return {
        "error": type(error).__name__,
        "message": error.message,
    }


def to_http_exception(error: SoulScribeError) -> HTTPException:
    status_code = status_code_for(error)
    if status_code >= 500:
        logger.error(f"请求失败 [{status_code}]: {error}")
    else:
        logger.warning(f"请求被拒绝 [{status_code}]: {error}")
    return HTTPException(status_code=status_code, detail=error_detail(error))
