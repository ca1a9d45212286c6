"""API Key 认证中间件"""

import logging
import secrets
from typing import Iterable, Optional, Set

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"
DEFAULT_WHITELIST_PATHS: Set[str] = {"/health", "/docs", "/openapi.json", "/redoc"}


def mask_api_key(api_key: Optional[str]) -> str:
    """
    掩码 API Key，用于日志输出

    长度大于 8 时保留前 3 位和后 3 位，否则完全掩码。

    Args:
        api_key: 原始 API Key

    Returns:
        掩码后的字符串
    """
    if not api_key or len(api_key) <= 8:
        return "***"
    return f"{api_key[:3]}***{api_key[-3:]}"


class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    API Key 认证中间件

    校验 X-API-Key 请求头，白名单路径跳过认证。
    比较使用 secrets.compare_digest，日志中只出现掩码后的 Key。
    """

    def __init__(
        self,
        app: ASGIApp,
        api_key: str,
        whitelist_paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self._api_key = api_key
        self._whitelist = set(DEFAULT_WHITELIST_PATHS if whitelist_paths is None else whitelist_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self._whitelist:
            return await call_next(request)

        provided = request.headers.get(API_KEY_HEADER)
        if provided is None:
            logger.warning(f"Missing API Key: {request.method} {request.url.path}")
            return JSONResponse(status_code=401, content={"detail": "API Key required"})

        if not secrets.compare_digest(provided.encode(), self._api_key.encode()):
            logger.warning(
                f"Invalid API Key {mask_api_key(provided)}: {request.method} {request.url.path}"
            )
            return JSONResponse(status_code=401, content={"detail": "Invalid API Key"})

        return await call_next(request)
