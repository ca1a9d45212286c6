"""
应用配置管理

使用 pydantic-settings 管理环境变量和配置
"""

from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    应用配置类

    自动从环境变量和 .env 文件读取配置
    """

    # ========== 应用环境 ==========
    app_env: Literal["test", "dev", "staging", "prod"] = "dev"
    app_name: str = "Webmail Sync Service"
    app_version: str = "1.0.0"
    debug: bool = False

    # ========== 数据库配置 ==========
    # 开发环境（SQLite）
    dev_db_path: str = "data/dev.db"

    # Staging 环境
    staging_database_url: str = ""
    staging_db_pool_size: int = 10
    staging_db_max_overflow: int = 20

    # 生产环境
    prod_database_url: str = ""
    prod_db_pool_size: int = 20
    prod_db_max_overflow: int = 40

    # ========== 日志配置 ==========
    log_level: str = "INFO"

    # ========== 安全配置 ==========
    # Fernet 密钥，用于加密邮箱密码
    encryption_key: str = ""
    # API Key，为空时不启用认证
    api_key: str = ""

    # ========== 同步配置 ==========
    sync_lease_minutes: float = 60
    sync_lease_renew_seconds: float = 30
    # 读取邮件时，距上次同步超过该秒数的账号会触发后台同步
    sync_stale_threshold_seconds: float = 120
    # 远程已读/星标只能打开本地标志，不会关闭
    sync_merge_remote_flags: bool = False

    # ========== 后台同步 ==========
    background_sync_enabled: bool = True
    background_sync_interval_seconds: float = 60
    # 周期扫描时距上次同步超过该秒数视为过期
    background_sync_stale_seconds: float = 14 * 60
    background_sync_max_concurrent: int = 4
    background_sync_queue_size: int = 100
    background_sync_timeout_seconds: float = 600

    # ========== 附件存储 ==========
    attachments_local_dir: str = "data/attachments"

    # ========== 默认 SMTP 发信配置（规则转发） ==========
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_from_address: str = ""
    smtp_timeout_seconds: float = 30

    # ========== 用量与计费 ==========
    usage_refresh_enabled: bool = True
    usage_refresh_hour_utc: int = 0
    # 存储上限（字节），0 表示不限制
    storage_limit_bytes: int = 0

    # ========== 规则 ==========
    rule_apply_batch_size: int = 100

    # ========== 通知 ==========
    # 同步事件 Webhook，为空时只记录日志
    mailbox_update_webhook_url: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # 忽略未定义的环境变量
    )

    @property
    def is_test(self) -> bool:
        """是否为测试环境"""
        return self.app_env == "test"

    @property
    def is_dev(self) -> bool:
        """是否为开发环境"""
        return self.app_env == "dev"

    @property
    def is_staging(self) -> bool:
        """是否为 staging 环境"""
        return self.app_env == "staging"

    @property
    def is_prod(self) -> bool:
        """是否为生产环境"""
        return self.app_env == "prod"

    @property
    def database_url(self) -> str:
        """获取当前环境的数据库 URL"""
        if self.is_test:
            return "sqlite:///:memory:"
        elif self.is_dev:
            return f"sqlite:///{self.dev_db_path}"
        elif self.is_staging:
            return self.staging_database_url
        else:  # prod
            return self.prod_database_url

    @property
    def smtp_configured(self) -> bool:
        """是否配置了默认发信服务器"""
        return bool(self.smtp_host and self.smtp_from_address)


# 全局配置实例（单例）
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    获取配置实例（单例模式）

    Returns:
        Settings 实例
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
