"""
API 接口层

提供 FastAPI 应用封装和 REST 路由。

用法：
    from interfaces.api import DDDApp

    app = DDDApp("Webmail Sync Service")

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    app.run()
"""

from interfaces.api.app import DDDApp, create_app

__all__ = [
    "DDDApp",
    "create_app",
]
