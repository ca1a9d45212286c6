"""
数据库工厂

按运行环境创建 Engine 和 Session 工厂：
- test: SQLite 内存库（StaticPool，所有连接共享同一个库）
- dev: SQLite 文件库
- staging / prod: 外部数据库（连接池）
"""

import logging
import os
from enum import Enum
from typing import Iterator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from infrastructure.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    """运行环境"""

    TEST = "test"
    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class DatabaseFactory:
    """Engine / Session 工厂"""

    @staticmethod
    def create_engine(settings: Optional[Settings] = None) -> Engine:
        """
        创建数据库引擎

        Args:
            settings: 配置，默认使用全局配置

        Returns:
            Engine 实例
        """
        settings = settings or get_settings()
        env = Environment(settings.app_env)
        url = settings.database_url

        if not url:
            raise ValueError(f"Database URL is not configured for environment '{env.value}'")

        if env == Environment.TEST or url == "sqlite:///:memory:":
            engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=settings.debug,
            )
        elif url.startswith("sqlite"):
            # 后台同步在线程池里访问数据库
            os.makedirs(os.path.dirname(settings.dev_db_path) or ".", exist_ok=True)
            engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                echo=settings.debug,
            )
        elif env == Environment.STAGING:
            engine = create_engine(
                url,
                pool_size=settings.staging_db_pool_size,
                max_overflow=settings.staging_db_max_overflow,
                pool_pre_ping=True,
                echo=settings.debug,
            )
        else:
            engine = create_engine(
                url,
                pool_size=settings.prod_db_pool_size,
                max_overflow=settings.prod_db_max_overflow,
                pool_pre_ping=True,
                echo=settings.debug,
            )

        logger.info(f"Database engine created for environment '{env.value}'")
        return engine

    @staticmethod
    def create_session_factory(engine: Engine) -> sessionmaker:
        """创建 Session 工厂（expire_on_commit=False，提交后实体仍可读取）"""
        return sessionmaker(bind=engine, expire_on_commit=False)

    @staticmethod
    def create_schema(engine: Engine) -> None:
        """创建所有表（已存在的表不受影响）"""
        # 导入全部模型，注册到 Base.metadata
        from infrastructure.mailbox.models.mailbox_account_model import Base
        import infrastructure.mail.models.email_model  # noqa: F401
        import infrastructure.mail.models.attachment_model  # noqa: F401
        import infrastructure.mail.models.tag_model  # noqa: F401
        import infrastructure.mail.models.smtp_account_model  # noqa: F401
        import infrastructure.rules.models.mail_rule_model  # noqa: F401
        import infrastructure.usage.models.usage_snapshot_model  # noqa: F401

        Base.metadata.create_all(engine)


_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """获取全局 Engine（单例）"""
    global _engine
    if _engine is None:
        _engine = DatabaseFactory.create_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """获取全局 Session 工厂（单例）"""
    global _session_factory
    if _session_factory is None:
        _session_factory = DatabaseFactory.create_session_factory(get_engine())
    return _session_factory


def get_session() -> Iterator[Session]:
    """
    获取一个 Session，用完自动关闭

    可直接用作 FastAPI 依赖。
    """
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()
