"""API 中间件"""

from interfaces.api.middleware.api_key_middleware import APIKeyMiddleware, mask_api_key

__all__ = ["APIKeyMiddleware", "mask_api_key"]
