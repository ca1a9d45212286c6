"""
REST API 路由

定义 REST API 端点。
"""

from interfaces.api.routes.accounts import router as accounts_router
from interfaces.api.routes.emails import router as emails_router
from interfaces.api.routes.rules import router as rules_router
from interfaces.api.routes.smtp_accounts import router as smtp_accounts_router
from interfaces.api.routes.tags import router as tags_router

__all__ = ["accounts_router", "emails_router", "rules_router", "smtp_accounts_router", "tags_router"]
