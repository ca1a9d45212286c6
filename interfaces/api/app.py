"""
DDDApp：FastAPI 应用封装

负责：
- 装配 DI 容器（bootstrap）
- 配置日志
- API Key 认证中间件
- 生命周期：建表、启动/停止后台同步与用量刷新
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Iterable, Optional

from fastapi import FastAPI

from infrastructure.config.settings import Settings
from infrastructure.containers import Bootstrap, bootstrap
from infrastructure.database.database_factory import DatabaseFactory
from interfaces.api.middleware.api_key_middleware import (
    DEFAULT_WHITELIST_PATHS,
    APIKeyMiddleware,
    mask_api_key,
)

logger = logging.getLogger(__name__)


class DDDApp:
    """
    FastAPI 应用封装

    用法：
        app = DDDApp("Webmail Sync Service")

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        app.run()
    """

    def __init__(
        self,
        title: str,
        description: str = "",
        version: Optional[str] = None,
        enable_api_key_auth: bool = True,
        api_key_whitelist_paths: Optional[Iterable[str]] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Args:
            title: 服务名称
            description: 服务描述
            version: 版本号，默认取配置中的 app_version
            enable_api_key_auth: 是否启用 API Key 认证（配置的 api_key 为空时不启用）
            api_key_whitelist_paths: 跳过认证的路径
            settings: 覆盖默认配置（测试用）
        """
        self.bootstrap: Bootstrap = bootstrap(settings)
        self.settings: Settings = self.bootstrap.config.settings()

        _configure_logging(self.settings.log_level)

        self.fastapi = FastAPI(
            title=title,
            description=description,
            version=version or self.settings.app_version,
            lifespan=self._lifespan,
        )

        if enable_api_key_auth and self.settings.api_key:
            whitelist = set(DEFAULT_WHITELIST_PATHS)
            whitelist.update(api_key_whitelist_paths or ())
            self.fastapi.add_middleware(
                APIKeyMiddleware,
                api_key=self.settings.api_key,
                whitelist_paths=whitelist,
            )
            logger.info(f"API Key authentication enabled (key={mask_api_key(self.settings.api_key)})")
        elif enable_api_key_auth:
            logger.warning("API Key authentication requested but api_key is not configured")

    def get(self, path: str, **kwargs: Any) -> Callable:
        return self.fastapi.get(path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Callable:
        return self.fastapi.post(path, **kwargs)

    def run(self, host: str = "0.0.0.0", port: int = 8000) -> None:
        import uvicorn

        uvicorn.run(self.fastapi, host=host, port=port, log_level=self.settings.log_level.lower())

    @asynccontextmanager
    async def _lifespan(self, _: FastAPI) -> AsyncIterator[None]:
        DatabaseFactory.create_schema(self.bootstrap.infra.db_engine())
        logger.info(f"Database ready ({self.settings.app_env})")

        background_sync = None
        usage_scheduler = None

        if self.settings.background_sync_enabled:
            background_sync = self.bootstrap.app.background_sync_service()
            await background_sync.start()

        if self.settings.usage_refresh_enabled:
            usage_scheduler = self.bootstrap.app.usage_refresh_scheduler()
            await usage_scheduler.start()

        try:
            yield
        finally:
            if usage_scheduler is not None:
                await usage_scheduler.stop()
            if background_sync is not None:
                await background_sync.stop()
            logger.info("Application shutdown complete")


def create_app(title: str = "Webmail Sync Service", **kwargs: Any) -> DDDApp:
    """创建 DDDApp 的快捷方式"""
    return DDDApp(title=title, **kwargs)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
